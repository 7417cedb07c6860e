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

"""Workspace result types and size limits.

Constants:

- ``MAX_FILE_BYTES``: Hard cap for any single file (32 KiB)
- ``MAX_CHUNK_BYTES``: Cap for one ``append`` chunk (8 KiB)
- ``WARN_FILE_BYTES``: Size above which the validator warns (24 KiB)

The chunk cap is smaller than the file cap because oracle replies are
themselves token bounded: a large file is written as one idempotent
``write`` followed by bounded ``append`` calls, each small enough to finish
inside a single reply.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal

MAX_FILE_BYTES: Final[int] = 32 * 1024
MAX_CHUNK_BYTES: Final[int] = 8 * 1024
WARN_FILE_BYTES: Final[int] = 24 * 1024

EntryKind = Literal["file", "directory"]
WriteMode = Literal["overwrite", "append"]


def utf8_size(content: str) -> int:
    """Return the encoded size of ``content`` in bytes."""
    return len(content.encode("utf-8"))


@dataclass(slots=True, frozen=True)
class FileEntry:
    """Directory listing entry returned by ``WorkspaceGateway.list()``.

    Attributes:
        name: Entry name without path (e.g., "main.js").
        kind: ``"file"`` or ``"directory"``.
    """

    name: str
    kind: EntryKind


@dataclass(slots=True, frozen=True)
class FileRecord:
    """A file found while walking the workspace."""

    path: str
    size_bytes: int


@dataclass(slots=True, frozen=True)
class WriteResult:
    """Confirmation returned from ``write()`` and ``append()``.

    Attributes:
        path: Normalized path relative to the workspace root.
        bytes_written: Bytes written by this call.
        size_bytes: Size of the file after the call.
        mode: ``"overwrite"`` for ``write`` and ``"append"`` for ``append``.
    """

    path: str
    bytes_written: int
    size_bytes: int
    mode: WriteMode


@dataclass(slots=True, frozen=True)
class ReadResult:
    """Content returned from ``WorkspaceGateway.read()``."""

    path: str
    content: str
    size_bytes: int


__all__ = [
    "MAX_CHUNK_BYTES",
    "MAX_FILE_BYTES",
    "WARN_FILE_BYTES",
    "EntryKind",
    "FileEntry",
    "FileRecord",
    "ReadResult",
    "WriteMode",
    "WriteResult",
    "utf8_size",
]
