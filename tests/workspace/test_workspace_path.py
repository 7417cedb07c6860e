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

from __future__ import annotations

import pytest

from buildgate.workspace import (
    MAX_PATH_DEPTH,
    MAX_SEGMENT_LENGTH,
    InvalidTargetError,
    PathEscapeError,
    normalize_relative_path,
    split_segments,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("index.html", "index.html"),
        ("/index.html", "index.html"),
        ("//src//app.js", "src/app.js"),
        ("./src/./main.js", "src/main.js"),
        ("src\\styles\\site.css", "src/styles/site.css"),
        (".", ""),
        ("", ""),
        ("  public/logo.svg  ", "public/logo.svg"),
    ],
)
def test_normalize_relative_path(raw: str, expected: str) -> None:
    assert normalize_relative_path(raw) == expected


@pytest.mark.parametrize(
    "raw", ["..", "../etc/passwd", "src/../../secret", "a/b/..", "..\\windows"]
)
def test_normalize_rejects_parent_segments(raw: str) -> None:
    with pytest.raises(PathEscapeError) as err:
        _ = normalize_relative_path(raw)

    assert err.value.kind == "PathEscape"
    assert err.value.path == raw


def test_dotted_names_are_not_parent_segments() -> None:
    assert normalize_relative_path("..hidden/file..txt") == "..hidden/file..txt"


def test_depth_limit() -> None:
    too_deep = "/".join(["d"] * (MAX_PATH_DEPTH + 1))

    with pytest.raises(InvalidTargetError):
        _ = normalize_relative_path(too_deep)


def test_segment_length_limit() -> None:
    with pytest.raises(InvalidTargetError):
        _ = normalize_relative_path("x" * (MAX_SEGMENT_LENGTH + 1))


def test_split_segments_drops_empty_and_current_segments() -> None:
    assert split_segments("a//b/./c\\d") == ["a", "b", "c", "d"]
