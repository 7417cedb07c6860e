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

"""Path normalization shared by the gateway and the manifest gate.

Constants:
    MAX_PATH_DEPTH: Maximum allowed path depth (16 segments)
    MAX_SEGMENT_LENGTH: Maximum allowed segment length (128 characters)

Functions:
    normalize_relative_path: Strip leading separators and reject ".." segments
    split_segments: Split a raw path on either separator
    validate_path: Validate depth and segment length of a normalized path
"""

from __future__ import annotations

import re
from typing import Final

from ._errors import InvalidTargetError, PathEscapeError

MAX_PATH_DEPTH: Final[int] = 16
MAX_SEGMENT_LENGTH: Final[int] = 128
PARENT_SEGMENT: Final[str] = ".."

_SEPARATORS = re.compile(r"[\\/]+")


def split_segments(path: str) -> list[str]:
    """Split ``path`` on ``/`` or ``\\`` dropping empty and ``.`` segments.

    Examples:
        >>> split_segments("src//app/./main.js")
        ['src', 'app', 'main.js']
    """
    return [s for s in _SEPARATORS.split(path.strip()) if s and s != "."]


def normalize_relative_path(path: str) -> str:
    """Normalize a caller-supplied path relative to the workspace root.

    Leading separators are stripped so ``/index.html`` means ``index.html``.
    Unlike a general normalizer, ``..`` is never collapsed: any parent
    segment is rejected outright.

    Args:
        path: The raw path string from a tool call.

    Returns:
        Normalized path joined with ``/``, or ``""`` for the root.

    Raises:
        PathEscapeError: If any segment equals ``..``.
        InvalidTargetError: If depth or segment length limits are exceeded.

    Examples:
        >>> normalize_relative_path("/src/index.js")
        'src/index.js'
        >>> normalize_relative_path(".")
        ''
    """
    segments = split_segments(path)
    if PARENT_SEGMENT in segments:
        msg = f"Path traversal not allowed: {path}"
        raise PathEscapeError(msg, path=path)
    normalized = "/".join(segments)
    validate_path(normalized, original=path)
    return normalized


def validate_path(path: str, *, original: str | None = None) -> None:
    """Validate path constraints.

    Args:
        path: The normalized path to validate.
        original: Raw path reported in the error, defaults to ``path``.

    Raises:
        InvalidTargetError: If path depth exceeds MAX_PATH_DEPTH or any
            segment exceeds MAX_SEGMENT_LENGTH.
    """
    if not path:
        return
    reported = original if original is not None else path
    segments = path.split("/")
    if len(segments) > MAX_PATH_DEPTH:
        msg = f"Path depth exceeds limit of {MAX_PATH_DEPTH} segments."
        raise InvalidTargetError(msg, path=reported)
    for segment in segments:
        if len(segment) > MAX_SEGMENT_LENGTH:
            msg = f"Path segment exceeds limit of {MAX_SEGMENT_LENGTH} characters."
            raise InvalidTargetError(msg, path=reported)


__all__ = [
    "MAX_PATH_DEPTH",
    "MAX_SEGMENT_LENGTH",
    "PARENT_SEGMENT",
    "normalize_relative_path",
    "split_segments",
    "validate_path",
]
