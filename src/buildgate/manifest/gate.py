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

"""One-time admission check for the oracle's file plan."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final, cast

from ..contracts import Contract
from ..workspace import (
    MAX_FILE_BYTES,
    InvalidTargetError,
    PathEscapeError,
    normalize_relative_path,
)
from ._types import (
    GateDecision,
    Manifest,
    ManifestCandidate,
    ManifestEntry,
    ManifestViolation,
)
from .parser import ManifestParser, TolerantManifestParser

DEFAULT_PROJECT_BUDGET_BYTES: Final[int] = 256 * 1024

_ESTIMATE_KEYS: Final = ("estimatedBytes", "estimated_bytes", "bytes")
_PURPOSE_KEYS: Final = ("purpose", "description")


class ManifestGate:
    """Parses and validates the manifest, then disarms itself.

    The gate is armed until a manifest is accepted. Callers consult
    :attr:`armed` to decide whether a reply still needs admission; once
    disarmed it never re-arms for the lifetime of the run.
    """

    def __init__(
        self,
        contract: Contract | None,
        *,
        max_file_bytes: int = MAX_FILE_BYTES,
        project_budget_bytes: int = DEFAULT_PROJECT_BUDGET_BYTES,
        parser: ManifestParser | None = None,
    ) -> None:
        super().__init__()
        self._contract = contract
        self._max_file_bytes = max_file_bytes
        self._project_budget_bytes = project_budget_bytes
        self._parser: ManifestParser = parser or TolerantManifestParser()
        self._accepted: Manifest | None = None

    @property
    def armed(self) -> bool:
        return self._accepted is None

    @property
    def manifest(self) -> Manifest | None:
        return self._accepted

    def find(self, text: str) -> ManifestCandidate | None:
        """Return the manifest candidate in ``text``, if any."""

        return self._parser.parse(text)

    def admit(self, candidate: ManifestCandidate) -> GateDecision:
        """Validate ``candidate``; an accepted manifest disarms the gate."""

        if not self.armed:
            msg = "Manifest gate already accepted a manifest for this run."
            raise RuntimeError(msg)
        decision = self.validate(candidate)
        if decision.accepted:
            self._accepted = decision.manifest
        return decision

    def validate(self, candidate: ManifestCandidate) -> GateDecision:
        """Check ``candidate`` against the size, path and contract rules."""

        if not isinstance(candidate.files, list):
            return GateDecision(
                manifest=None,
                violations=(
                    ManifestViolation(
                        code="malformed_entry", message="'files' must be a list."
                    ),
                ),
            )
        raw_entries = cast(list[object], candidate.files)
        if not raw_entries:
            return GateDecision(
                manifest=None,
                violations=(
                    ManifestViolation(code="empty", message="Manifest lists no files."),
                ),
            )

        violations: list[ManifestViolation] = []
        entries: list[ManifestEntry] = []
        seen: set[str] = set()
        for position, raw in enumerate(raw_entries):
            entry = self._coerce_entry(position, raw, violations)
            if entry is None:
                continue
            if entry.path in seen:
                violations.append(
                    ManifestViolation(
                        code="duplicate_path",
                        message=f"{entry.path} is listed more than once.",
                        path=entry.path,
                    )
                )
                continue
            seen.add(entry.path)
            entries.append(entry)

        manifest = Manifest(entries=tuple(entries))
        if manifest.total_bytes > self._project_budget_bytes:
            violations.append(
                ManifestViolation(
                    code="budget_exceeded",
                    message=(
                        f"Estimated total of {manifest.total_bytes} bytes exceeds "
                        f"the project budget of {self._project_budget_bytes} bytes."
                    ),
                )
            )
        violations.extend(self._contract_violations(seen))

        if violations:
            return GateDecision(manifest=None, violations=tuple(violations))
        return GateDecision(manifest=manifest)

    def _coerce_entry(
        self, position: int, raw: object, violations: list[ManifestViolation]
    ) -> ManifestEntry | None:
        if not isinstance(raw, Mapping):
            violations.append(
                ManifestViolation(
                    code="malformed_entry",
                    message=f"Entry {position} is not an object.",
                )
            )
            return None
        fields = cast(Mapping[str, object], raw)

        raw_path = fields.get("path")
        if not isinstance(raw_path, str):
            violations.append(
                ManifestViolation(
                    code="malformed_entry",
                    message=f"Entry {position} has no string 'path'.",
                )
            )
            return None
        path = _normalize_manifest_path(raw_path)
        if path is None:
            violations.append(
                ManifestViolation(
                    code="bad_path",
                    message=f"{raw_path!r} is not a relative path inside the workspace.",
                    path=raw_path,
                )
            )
            return None

        estimate = _first_present(fields, _ESTIMATE_KEYS)
        if not _is_whole_number(estimate):
            violations.append(
                ManifestViolation(
                    code="malformed_entry",
                    message=f"{path} has no numeric 'estimatedBytes'.",
                    path=path,
                )
            )
            return None
        estimated_bytes = int(cast(int | float, estimate))
        if estimated_bytes < 0:
            violations.append(
                ManifestViolation(
                    code="malformed_entry",
                    message=f"{path} has a negative size estimate.",
                    path=path,
                )
            )
            return None
        if estimated_bytes > self._max_file_bytes:
            violations.append(
                ManifestViolation(
                    code="oversize_estimate",
                    message=(
                        f"{path} is estimated at {estimated_bytes} bytes; the "
                        f"per-file limit is {self._max_file_bytes} bytes."
                    ),
                    path=path,
                )
            )
            return None

        purpose = _first_present(fields, _PURPOSE_KEYS)
        return ManifestEntry(
            path=path,
            purpose=purpose if isinstance(purpose, str) else "",
            estimated_bytes=estimated_bytes,
        )

    def _contract_violations(self, paths: set[str]) -> list[ManifestViolation]:
        contract = self._contract
        if contract is None:
            return []
        violations = [
            ManifestViolation(
                code="missing_required",
                message=f"Contract requires {required.describe()}.",
                path=required.alternatives[0],
            )
            for required in contract.missing_required(paths)
        ]
        violations.extend(
            ManifestViolation(
                code="forbidden_present",
                message=f"{path} is not allowed for a {contract.project_type.value} project.",
                path=path,
            )
            for path in contract.forbidden_present(paths)
        )
        return violations


def _normalize_manifest_path(raw_path: str) -> str | None:
    """Return the normalized path, or ``None`` for anything not plainly relative."""

    stripped = raw_path.strip()
    if not stripped or stripped.startswith("/") or "\\" in stripped:
        return None
    if len(stripped) > 1 and stripped[1] == ":":
        return None
    try:
        normalized = normalize_relative_path(stripped)
    except (PathEscapeError, InvalidTargetError):
        return None
    return normalized or None


def _first_present(fields: Mapping[str, object], keys: tuple[str, ...]) -> object:
    for key in keys:
        if key in fields:
            return fields[key]
    return None


def _is_whole_number(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


__all__ = ["DEFAULT_PROJECT_BUDGET_BYTES", "ManifestGate"]
