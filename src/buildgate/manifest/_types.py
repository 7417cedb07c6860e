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

"""Manifest data model and gate decisions."""

from __future__ import annotations

from typing import Literal

from ..dataclasses import FrozenDataclass

ViolationCode = Literal[
    "empty",
    "malformed_entry",
    "bad_path",
    "duplicate_path",
    "oversize_estimate",
    "budget_exceeded",
    "missing_required",
    "forbidden_present",
]

ManifestSource = Literal["fenced", "embedded"]


@FrozenDataclass()
class ManifestEntry:
    """One planned file."""

    path: str
    purpose: str
    estimated_bytes: int


@FrozenDataclass()
class Manifest:
    """The oracle's declared file plan, in declaration order."""

    entries: tuple[ManifestEntry, ...]

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(entry.path for entry in self.entries)

    @property
    def total_bytes(self) -> int:
        return sum(entry.estimated_bytes for entry in self.entries)

    def summary(self) -> dict[str, object]:
        return {
            "files": len(self.entries),
            "estimated_bytes": self.total_bytes,
            "paths": list(self.paths),
        }


@FrozenDataclass()
class ManifestCandidate:
    """A raw file plan found in reply text, before validation.

    ``files`` is the undecoded value of the ``files`` key; the gate decides
    whether it is well formed.
    """

    files: object
    source: ManifestSource


@FrozenDataclass()
class ManifestViolation:
    """One itemized reason a manifest was rejected."""

    code: ViolationCode
    message: str
    path: str | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


@FrozenDataclass()
class GateDecision:
    """Result of validating a :class:`ManifestCandidate`.

    ``manifest`` is set only when there are no violations.
    """

    manifest: Manifest | None
    violations: tuple[ManifestViolation, ...] = ()

    @property
    def accepted(self) -> bool:
        return self.manifest is not None and not self.violations


__all__ = [
    "GateDecision",
    "Manifest",
    "ManifestCandidate",
    "ManifestEntry",
    "ManifestSource",
    "ManifestViolation",
    "ViolationCode",
]
