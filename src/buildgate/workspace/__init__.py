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

"""Sandboxed filesystem gateway for the generation workspace.

Example usage::

    from buildgate.workspace import WorkspaceGateway, PathEscapeError

    gateway = WorkspaceGateway(_root="/workspace")
    try:
        gateway.read("../etc/passwd")
    except PathEscapeError:
        ...
"""

from __future__ import annotations

from ._errors import (
    InvalidTargetError,
    OversizeChunkError,
    OversizeFileError,
    OversizeWriteError,
    PathEscapeError,
    WorkspaceError,
    WorkspaceNotFoundError,
)
from ._gateway import WorkspaceGateway
from ._path import (
    MAX_PATH_DEPTH,
    MAX_SEGMENT_LENGTH,
    normalize_relative_path,
    split_segments,
    validate_path,
)
from ._types import (
    MAX_CHUNK_BYTES,
    MAX_FILE_BYTES,
    WARN_FILE_BYTES,
    EntryKind,
    FileEntry,
    FileRecord,
    ReadResult,
    WriteMode,
    WriteResult,
    utf8_size,
)

__all__ = [
    "MAX_CHUNK_BYTES",
    "MAX_FILE_BYTES",
    "MAX_PATH_DEPTH",
    "MAX_SEGMENT_LENGTH",
    "WARN_FILE_BYTES",
    "EntryKind",
    "FileEntry",
    "FileRecord",
    "InvalidTargetError",
    "OversizeChunkError",
    "OversizeFileError",
    "OversizeWriteError",
    "PathEscapeError",
    "ReadResult",
    "WorkspaceError",
    "WorkspaceGateway",
    "WorkspaceNotFoundError",
    "WriteMode",
    "WriteResult",
    "normalize_relative_path",
    "split_segments",
    "utf8_size",
    "validate_path",
]
