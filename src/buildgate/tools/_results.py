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

"""Uniform result envelope returned to the oracle for every tool call."""

from __future__ import annotations

import json
from typing import Any

from ..dataclasses import FrozenDataclass
from ..errors import ErrorKind
from ..workspace import FileEntry


@FrozenDataclass()
class ToolResult:
    """Outcome of one tool call.

    Only the fields relevant to the operation are populated; ``None`` fields
    are omitted from the payload sent back to the oracle.
    """

    success: bool
    path: str | None = None
    bytes_written: int | None = None
    size_bytes: int | None = None
    content: str | None = None
    items: tuple[FileEntry, ...] | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    hint: str | None = None

    @classmethod
    def failure(
        cls,
        error: str,
        *,
        kind: ErrorKind,
        path: str | None = None,
        hint: str | None = None,
    ) -> ToolResult:
        return cls(success=False, path=path, error=error, error_kind=kind, hint=hint)

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-compatible mapping without unset fields."""

        payload: dict[str, Any] = {"success": self.success}
        for key in (
            "path",
            "bytes_written",
            "size_bytes",
            "content",
            "error",
            "error_kind",
            "hint",
        ):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        if self.items is not None:
            payload["items"] = [
                {"name": item.name, "type": item.kind} for item in self.items
            ]
        return payload

    def render(self) -> str:
        """Return the JSON text sent as the tool result body."""

        return json.dumps(self.to_payload(), ensure_ascii=False)


__all__ = ["ToolResult"]
