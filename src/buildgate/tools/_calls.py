# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Closed set of tool calls and their ingress validation.

The oracle names tools with strings. Those strings are checked once, here,
and turned into one of five frozen variants; everything past this point
works on the variant and never sees an unknown name.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import ClassVar, Final, Literal, get_args

from ..dataclasses import FrozenDataclass
from ..errors import ToolArgumentsError, UnknownToolError
from ..workspace import InvalidTargetError, PathEscapeError, normalize_relative_path

ToolName = Literal[
    "write_file",
    "append_file",
    "read_file",
    "list_directory",
    "create_directory",
]

TOOL_NAMES: Final[tuple[ToolName, ...]] = get_args(ToolName)

TRUNCATION_HINT: Final[str] = (
    "Content is missing, which usually means the reply was cut off by the "
    "token limit. Use write_file for the first chunk, then append_file for "
    "subsequent chunks. Keep chunks under 8KB."
)


@FrozenDataclass()
class WriteFile:
    """Overwrite a file with complete content (or the first chunk)."""

    name: ClassVar[ToolName] = "write_file"

    path: str
    content: str
    call_id: str = ""


@FrozenDataclass()
class AppendFile:
    """Append one bounded chunk to a file."""

    name: ClassVar[ToolName] = "append_file"

    path: str
    content: str
    call_id: str = ""


@FrozenDataclass()
class ReadFile:
    name: ClassVar[ToolName] = "read_file"

    path: str
    call_id: str = ""


@FrozenDataclass()
class ListDirectory:
    name: ClassVar[ToolName] = "list_directory"

    path: str
    call_id: str = ""


@FrozenDataclass()
class CreateDirectory:
    name: ClassVar[ToolName] = "create_directory"

    path: str
    call_id: str = ""


type ToolCall = WriteFile | AppendFile | ReadFile | ListDirectory | CreateDirectory


def parse_tool_call(
    name: str, arguments: Mapping[str, object] | None, *, call_id: str = ""
) -> ToolCall:
    """Validate a raw oracle request and build its :data:`ToolCall` variant.

    Raises:
        UnknownToolError: ``name`` is not one of :data:`TOOL_NAMES`.
        ToolArgumentsError: ``path`` is missing or not a string, or
            ``content`` is missing or not a string for write/append.
    """

    if name not in TOOL_NAMES:
        raise UnknownToolError(f"Unknown tool: {name}")

    args: Mapping[str, object] = arguments if arguments is not None else {}
    path = args.get("path")
    if not isinstance(path, str):
        raise ToolArgumentsError(f"{name} requires a string 'path' argument.")

    match name:
        case "write_file":
            return WriteFile(path=path, content=_content(name, args), call_id=call_id)
        case "append_file":
            return AppendFile(path=path, content=_content(name, args), call_id=call_id)
        case "read_file":
            return ReadFile(path=path, call_id=call_id)
        case "list_directory":
            return ListDirectory(path=path, call_id=call_id)
        case _:
            return CreateDirectory(path=path, call_id=call_id)


def _content(name: str, args: Mapping[str, object]) -> str:
    content = args.get("content")
    if content is None:
        raise ToolArgumentsError(
            f"{name}: content is missing or undefined. {TRUNCATION_HINT}"
        )
    if not isinstance(content, str):
        raise ToolArgumentsError(
            f"{name}: content must be a string, got {type(content).__name__}."
        )
    return content


def failure_target(arguments: Mapping[str, object] | None, call_id: str) -> str:
    """Return the breaker target for a call that may not have parsed.

    Spellings of the same file (``index.html``, ``/index.html``,
    ``./index.html``) share one target. Paths that cannot be normalized keep
    their raw spelling; calls without a usable path fall back to the call id.
    """

    path = (arguments or {}).get("path")
    if not isinstance(path, str) or not path:
        return call_id
    try:
        normalized = normalize_relative_path(path)
    except (PathEscapeError, InvalidTargetError):
        return path
    return normalized or path


__all__ = [
    "TOOL_NAMES",
    "TRUNCATION_HINT",
    "AppendFile",
    "CreateDirectory",
    "ListDirectory",
    "ReadFile",
    "ToolCall",
    "ToolName",
    "WriteFile",
    "failure_target",
    "parse_tool_call",
]
