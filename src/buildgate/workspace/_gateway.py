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

"""Sandboxed host directory gateway.

The gateway is the only component that touches workspace storage. Every
path is normalized, resolved against the root and checked to stay inside it
before any I/O happens.

Example usage::

    from buildgate.workspace import WorkspaceGateway

    gateway = WorkspaceGateway(_root="/workspace")
    gateway.write("styles.css", part_one)
    gateway.append("styles.css", part_two)
    assert gateway.read("styles.css").content == part_one + part_two
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from ._errors import (
    InvalidTargetError,
    OversizeChunkError,
    OversizeFileError,
    OversizeWriteError,
    PathEscapeError,
    WorkspaceNotFoundError,
)
from ._path import normalize_relative_path
from ._types import (
    MAX_CHUNK_BYTES,
    MAX_FILE_BYTES,
    FileEntry,
    FileRecord,
    ReadResult,
    WriteResult,
    utf8_size,
)

__all__ = ["WorkspaceGateway"]


@dataclass(slots=True)
class WorkspaceGateway:
    """Filesystem gateway rooted at a host directory.

    All paths are resolved relative to the root and validated so they
    cannot escape it through ``..`` segments, absolute prefixes or symlinks.
    The root directory is created when missing.
    """

    _root: str
    max_file_bytes: int = MAX_FILE_BYTES
    max_chunk_bytes: int = MAX_CHUNK_BYTES

    def __post_init__(self) -> None:
        Path(self._root).mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> str:
        """Workspace root path."""
        return self._root

    def resolve(self, path: str) -> tuple[str, Path]:
        """Resolve ``path`` to its normalized form and absolute location.

        Raises:
            PathEscapeError: If the path has a ``..`` segment or resolves
                outside the root.
        """
        root_path = Path(self._root).resolve()
        normalized = normalize_relative_path(path)
        if not normalized:
            return "", root_path

        candidate = (root_path / normalized).resolve()
        try:
            _ = candidate.relative_to(root_path)
        except ValueError:
            msg = f"Path outside workspace: {path}"
            raise PathEscapeError(msg, path=path) from None
        return normalized, candidate

    def write(self, path: str, content: str) -> WriteResult:
        """Overwrite ``path`` with ``content``, creating parents as needed.

        The new content is written to a sibling temporary file and renamed
        into place, so readers never observe a partial file.
        """
        normalized, resolved = self._resolve_file_target(path)

        size = utf8_size(content)
        if size > self.max_file_bytes:
            msg = (
                f"Content is {size} bytes, exceeding the {self.max_file_bytes} "
                "byte file limit."
            )
            raise OversizeWriteError(
                msg, path=normalized, size=size, limit=self.max_file_bytes
            )

        resolved.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=resolved.parent, prefix=f".{resolved.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                _ = handle.write(content)
            os.replace(tmp_name, resolved)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        return WriteResult(
            path=normalized, bytes_written=size, size_bytes=size, mode="overwrite"
        )

    def append(self, path: str, content: str) -> WriteResult:
        """Append a bounded chunk to ``path``, creating the file if absent.

        Raises:
            OversizeChunkError: If the chunk exceeds the chunk cap. Nothing
                is written.
            OversizeFileError: If the file exceeds the hard cap after the
                append. The chunk has already been written.
        """
        normalized, resolved = self._resolve_file_target(path)

        size = utf8_size(content)
        if size > self.max_chunk_bytes:
            msg = (
                f"Chunk is {size} bytes, exceeding the {self.max_chunk_bytes} "
                "byte chunk limit."
            )
            raise OversizeChunkError(
                msg, path=normalized, size=size, limit=self.max_chunk_bytes
            )

        resolved.parent.mkdir(parents=True, exist_ok=True)
        with resolved.open("a", encoding="utf-8", newline="") as handle:
            _ = handle.write(content)

        total = resolved.stat().st_size
        if total > self.max_file_bytes:
            msg = (
                f"File is now {total} bytes, exceeding the {self.max_file_bytes} "
                "byte file limit."
            )
            raise OversizeFileError(
                msg, path=normalized, size=total, limit=self.max_file_bytes
            )

        return WriteResult(
            path=normalized, bytes_written=size, size_bytes=total, mode="append"
        )

    def read(self, path: str) -> ReadResult:
        """Read a text file."""
        normalized, resolved = self.resolve(path)

        if not resolved.exists():
            raise WorkspaceNotFoundError(f"File not found: {path}", path=path)
        if resolved.is_dir():
            raise InvalidTargetError(f"Is a directory: {path}", path=path)

        data = resolved.read_bytes()
        return ReadResult(
            path=normalized,
            content=data.decode("utf-8", errors="replace"),
            size_bytes=len(data),
        )

    def list(self, path: str = ".") -> Sequence[FileEntry]:
        """List directory contents sorted by name."""
        _, resolved = self.resolve(path)

        if not resolved.exists():
            raise WorkspaceNotFoundError(f"Directory not found: {path}", path=path)
        if not resolved.is_dir():
            raise InvalidTargetError(f"Not a directory: {path}", path=path)

        entries = [
            FileEntry(name=item.name, kind="directory" if item.is_dir() else "file")
            for item in resolved.iterdir()
        ]
        entries.sort(key=lambda entry: entry.name)
        return entries

    def mkdir(self, path: str) -> str:
        """Create ``path`` and any missing parents. Idempotent."""
        normalized, resolved = self.resolve(path)
        if resolved.exists() and not resolved.is_dir():
            raise InvalidTargetError(f"Not a directory: {path}", path=path)
        resolved.mkdir(parents=True, exist_ok=True)
        return normalized

    def walk(self) -> Sequence[FileRecord]:
        """Return every regular file under the root sorted by path."""
        root_path = Path(self._root).resolve()
        records = [
            FileRecord(
                path=file_path.relative_to(root_path).as_posix(),
                size_bytes=file_path.stat().st_size,
            )
            for file_path in root_path.rglob("*")
            if file_path.is_file()
        ]
        records.sort(key=lambda record: record.path)
        return records

    def _resolve_file_target(self, path: str) -> tuple[str, Path]:
        normalized, resolved = self.resolve(path)
        if not normalized:
            raise InvalidTargetError("Cannot write to workspace root", path=path)
        if resolved.is_dir():
            raise InvalidTargetError(f"Is a directory: {path}", path=path)
        return normalized, resolved
