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

"""Provider-neutral tool schema advertised to the oracle."""

from __future__ import annotations

from typing import Any

from ..dataclasses import FrozenDataclass
from ._calls import ToolName


@FrozenDataclass()
class ToolSpec:
    """Name, description and JSON schema of one tool."""

    name: ToolName
    description: str
    path_description: str
    content_description: str | None = None

    def input_schema(self) -> dict[str, Any]:
        properties: dict[str, Any] = {
            "path": {"type": "string", "description": self.path_description}
        }
        required = ["path"]
        if self.content_description is not None:
            properties["content"] = {
                "type": "string",
                "description": self.content_description,
            }
            required.append("content")
        return {"type": "object", "properties": properties, "required": required}


def build_tool_specs(*, max_chunk_bytes: int) -> tuple[ToolSpec, ...]:
    """Return the five workspace tools in a stable order."""

    chunk_kb = max_chunk_bytes // 1024
    return (
        ToolSpec(
            name="write_file",
            description=(
                "Write content to a file in the workspace. Creates parent "
                "directories if needed. Overwrites any existing file, so it is "
                "safe to retry and must be used for the first chunk of a large file."
            ),
            path_description=(
                'File path relative to workspace root (e.g., "src/index.js" '
                'or "README.md")'
            ),
            content_description="Complete file content, or the first chunk",
        ),
        ToolSpec(
            name="append_file",
            description=(
                "Append content to a file. Creates the file if it does not "
                "exist. Use this for writing large files in chunks: first chunk "
                "uses write_file, subsequent chunks use append_file."
            ),
            path_description="File path relative to workspace root",
            content_description=f"Content to append (keep under {chunk_kb}KB per call)",
        ),
        ToolSpec(
            name="read_file",
            description="Read the contents of a file in the workspace.",
            path_description="File path relative to workspace root",
        ),
        ToolSpec(
            name="list_directory",
            description="List files and directories in a workspace directory.",
            path_description=(
                'Directory path relative to workspace root (use "." for root)'
            ),
        ),
        ToolSpec(
            name="create_directory",
            description="Create a directory in the workspace.",
            path_description="Directory path relative to workspace root",
        ),
    )


__all__ = ["ToolSpec", "build_tool_specs"]
