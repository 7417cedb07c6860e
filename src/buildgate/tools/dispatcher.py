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

"""Route tool calls to the workspace gateway.

Nothing raised while executing a call escapes the dispatcher: gateway
errors, malformed arguments and unexpected I/O failures all come back as a
failed :class:`ToolResult` the oracle can read and correct.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..errors import BuildGateError, ErrorKind
from ..runtime.logging import StructuredLogger, get_logger
from ..workspace import WorkspaceGateway
from ._calls import (
    TRUNCATION_HINT,
    AppendFile,
    CreateDirectory,
    ListDirectory,
    ReadFile,
    ToolCall,
    WriteFile,
    parse_tool_call,
)
from ._results import ToolResult

logger: StructuredLogger = get_logger(
    __name__, context={"component": "tools.dispatcher"}
)

_HINTS: dict[ErrorKind, str] = {
    "OversizeWrite": (
        "Split the file: write_file for the first chunk, then append_file "
        "for the rest."
    ),
    "OversizeChunk": "Send smaller append_file chunks.",
    "OversizeFile": (
        "The file is over the size limit. Rewrite it with write_file using "
        "less content."
    ),
    "PathEscape": "Use a path relative to the workspace root without '..'.",
    "InvalidArguments": TRUNCATION_HINT,
    "UnknownTool": (
        "Use one of write_file, append_file, read_file, list_directory, "
        "create_directory."
    ),
}


class ToolDispatcher:
    """Executes :data:`ToolCall` variants against a :class:`WorkspaceGateway`."""

    def __init__(
        self,
        gateway: WorkspaceGateway,
        *,
        logger_override: StructuredLogger | None = None,
    ) -> None:
        super().__init__()
        self._gateway = gateway
        self._logger = logger_override or logger

    @property
    def gateway(self) -> WorkspaceGateway:
        return self._gateway

    def execute(
        self, name: str, arguments: Mapping[str, object] | None, *, call_id: str = ""
    ) -> ToolResult:
        """Validate a raw oracle request and dispatch it."""

        try:
            call = parse_tool_call(name, arguments, call_id=call_id)
        except BuildGateError as error:
            return self._failed(name, call_id, error)
        return self.dispatch(call)

    def dispatch(self, call: ToolCall) -> ToolResult:
        """Run ``call`` and wrap the outcome in a :class:`ToolResult`."""

        try:
            result = self._run(call)
        except BuildGateError as error:
            return self._failed(call.name, call.call_id, error)
        except Exception as error:
            self._logger.exception(
                "Tool raised an unexpected error.",
                event="tool.failed",
                context={"tool": call.name, "call_id": call.call_id},
            )
            return ToolResult.failure(str(error), kind="Internal", path=call.path)

        self._logger.info(
            "Tool executed.",
            event="tool.executed",
            context={
                "tool": call.name,
                "call_id": call.call_id,
                "path": result.path,
                "bytes_written": result.bytes_written,
            },
        )
        return result

    def _run(self, call: ToolCall) -> ToolResult:
        gateway = self._gateway
        match call:
            case WriteFile(path=path, content=content):
                written = gateway.write(path, content)
                return ToolResult(
                    success=True,
                    path=written.path,
                    bytes_written=written.bytes_written,
                    size_bytes=written.size_bytes,
                )
            case AppendFile(path=path, content=content):
                written = gateway.append(path, content)
                return ToolResult(
                    success=True,
                    path=written.path,
                    bytes_written=written.bytes_written,
                    size_bytes=written.size_bytes,
                )
            case ReadFile(path=path):
                read = gateway.read(path)
                return ToolResult(
                    success=True,
                    path=read.path,
                    content=read.content,
                    size_bytes=read.size_bytes,
                )
            case ListDirectory(path=path):
                items = tuple(gateway.list(path))
                normalized, _ = gateway.resolve(path)
                return ToolResult(success=True, path=normalized or ".", items=items)
            case CreateDirectory(path=path):
                created = gateway.mkdir(path)
                return ToolResult(success=True, path=created or ".")

    def _failed(self, name: str, call_id: str, error: BuildGateError) -> ToolResult:
        path = getattr(error, "path", None)
        self._logger.warning(
            "Tool call failed.",
            event="tool.failed",
            context={
                "tool": name,
                "call_id": call_id,
                "error_kind": error.kind,
                "error": str(error),
            },
        )
        return ToolResult.failure(
            str(error),
            kind=error.kind,
            path=path if isinstance(path, str) else None,
            hint=_HINTS.get(error.kind),
        )


__all__ = ["ToolDispatcher"]
