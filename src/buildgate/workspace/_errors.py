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

"""Errors raised by the workspace gateway."""

from __future__ import annotations

from typing import ClassVar

from ..errors import BuildGateError, ErrorKind


class WorkspaceError(BuildGateError):
    """Base class for failures of a workspace operation."""

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class PathEscapeError(WorkspaceError, PermissionError):
    """Raised when a path traverses upward or resolves outside the root."""

    kind: ClassVar[ErrorKind] = "PathEscape"


class InvalidTargetError(WorkspaceError, OSError):
    """Raised when a path names the wrong kind of entry for the operation."""

    kind: ClassVar[ErrorKind] = "InvalidTarget"


class WorkspaceNotFoundError(WorkspaceError, FileNotFoundError):
    """Raised when reading or listing a path that does not exist."""

    kind: ClassVar[ErrorKind] = "NotFound"


class _SizeLimitError(WorkspaceError, ValueError):
    def __init__(self, message: str, *, path: str, size: int, limit: int) -> None:
        super().__init__(message, path=path)
        self.size = size
        self.limit = limit


class OversizeWriteError(_SizeLimitError):
    """Raised when a single ``write`` exceeds the per-file hard cap."""

    kind: ClassVar[ErrorKind] = "OversizeWrite"


class OversizeChunkError(_SizeLimitError):
    """Raised when a single ``append`` chunk exceeds the chunk cap."""

    kind: ClassVar[ErrorKind] = "OversizeChunk"


class OversizeFileError(_SizeLimitError):
    """Raised after an ``append`` pushed the file past the hard cap.

    The chunk has already been written when this is raised; the file is
    over budget and should be rewritten from its first chunk.
    """

    kind: ClassVar[ErrorKind] = "OversizeFile"


__all__ = [
    "InvalidTargetError",
    "OversizeChunkError",
    "OversizeFileError",
    "OversizeWriteError",
    "PathEscapeError",
    "WorkspaceError",
    "WorkspaceNotFoundError",
]
