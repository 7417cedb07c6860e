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

from buildgate.manifest import ManifestCandidate, TolerantManifestParser

_PARSER = TolerantManifestParser()


def test_fenced_json_block() -> None:
    text = (
        "Here is my plan.\n\n"
        "```json\n"
        '{"files": [{"path": "index.html", "purpose": "page", "estimatedBytes": 500}]}\n'
        "```\n"
        "I will start once approved."
    )

    candidate = _PARSER.parse(text)

    assert candidate == ManifestCandidate(
        files=[{"path": "index.html", "purpose": "page", "estimatedBytes": 500}],
        source="fenced",
    )


def test_untagged_and_manifest_fences() -> None:
    untagged = _PARSER.parse('```\n{"files": []}\n```')
    tagged = _PARSER.parse('```manifest\n{"files": [1]}\n```')

    assert untagged is not None
    assert untagged.source == "fenced"
    assert tagged is not None
    assert tagged.files == [1]


def test_skips_fenced_blocks_without_files() -> None:
    text = (
        "```json\n{\"name\": \"demo\"}\n```\n"
        "```json\n{\"files\": [{\"path\": \"a.js\"}]}\n```"
    )

    candidate = _PARSER.parse(text)

    assert candidate is not None
    assert candidate.files == [{"path": "a.js"}]


def test_embedded_object_in_prose() -> None:
    text = 'My manifest is {"files": [{"path": "app.js", "estimatedBytes": 10}]} ok?'

    candidate = _PARSER.parse(text)

    assert candidate is not None
    assert candidate.source == "embedded"
    assert candidate.files == [{"path": "app.js", "estimatedBytes": 10}]


def test_nested_manifest_key() -> None:
    candidate = _PARSER.parse('{"manifest": {"files": [{"path": "x"}]}}')

    assert candidate is not None
    assert candidate.files == [{"path": "x"}]


def test_broken_json_falls_through_to_later_objects() -> None:
    text = '```json\n{"files": [oops]}\n```\nRetry: {"files": [{"path": "b"}]}'

    candidate = _PARSER.parse(text)

    assert candidate is not None
    assert candidate.source == "embedded"
    assert candidate.files == [{"path": "b"}]


def test_no_manifest() -> None:
    assert _PARSER.parse("I'll write index.html now.") is None
    assert _PARSER.parse('{"path": "index.html"}') is None
    assert _PARSER.parse("{ not json") is None
    assert _PARSER.parse("") is None
