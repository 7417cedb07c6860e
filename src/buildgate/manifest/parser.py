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

"""Extract a file plan from free-form oracle prose.

The gate only depends on the :class:`ManifestParser` protocol, so the
heuristics below can be swapped without touching the conversation driver.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Mapping
from typing import Final, Protocol, cast

from ._types import ManifestCandidate, ManifestSource

_FENCED_BLOCK: Final = re.compile(
    r"```[ \t]*(?:json|manifest)?[ \t]*\r?\n(?P<body>.*?)```",
    re.DOTALL | re.IGNORECASE,
)


class ManifestParser(Protocol):
    """Finds a manifest candidate in reply text, or returns ``None``."""

    def parse(self, text: str) -> ManifestCandidate | None: ...


class TolerantManifestParser:
    """Fenced JSON blocks first, then any embedded JSON object with ``files``.

    Example:
        >>> parser = TolerantManifestParser()
        >>> parser.parse('Plan: {"files": []}').source
        'embedded'
    """

    def parse(self, text: str) -> ManifestCandidate | None:
        for block in _FENCED_BLOCK.finditer(text):
            candidate = _candidate_from_json(block.group("body"), "fenced")
            if candidate is not None:
                return candidate
        for document in _embedded_objects(text):
            candidate = _candidate_from_mapping(document, "embedded")
            if candidate is not None:
                return candidate
        return None


def _candidate_from_json(body: str, source: ManifestSource) -> ManifestCandidate | None:
    try:
        document: object = json.loads(body)
    except json.JSONDecodeError:
        return None
    return _candidate_from_mapping(document, source)


def _candidate_from_mapping(
    document: object, source: ManifestSource
) -> ManifestCandidate | None:
    if not isinstance(document, Mapping):
        return None
    mapping = cast(Mapping[str, object], document)
    if "files" in mapping:
        return ManifestCandidate(files=mapping["files"], source=source)
    nested = mapping.get("manifest")
    if isinstance(nested, Mapping) and "files" in nested:
        return ManifestCandidate(
            files=cast(Mapping[str, object], nested)["files"], source=source
        )
    return None


def _embedded_objects(text: str) -> Iterator[object]:
    """Yield every JSON object that decodes from an opening brace in ``text``."""

    decoder = json.JSONDecoder()
    index = text.find("{")
    while index != -1:
        try:
            document, end = decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            index = text.find("{", index + 1)
            continue
        yield document
        index = text.find("{", end)


__all__ = ["ManifestParser", "TolerantManifestParser"]
