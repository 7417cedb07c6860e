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

"""Post-run structural audit of the workspace.

The validator looks only at what is on disk. It never consults the manifest
or the oracle's own account of what it wrote.
"""

from __future__ import annotations

from typing import Literal

from .contracts import Contract, HealthCheckRule
from .dataclasses import FrozenDataclass
from .runtime.logging import StructuredLogger, get_logger
from .workspace import (
    MAX_FILE_BYTES,
    WARN_FILE_BYTES,
    WorkspaceError,
    WorkspaceGateway,
)

logger: StructuredLogger = get_logger(__name__, context={"component": "validator"})

IssueCode = Literal[
    "missing_required",
    "forbidden_present",
    "oversize_file",
    "large_file",
    "missing_health_route",
]


@FrozenDataclass()
class ValidationIssue:
    code: IssueCode
    message: str
    path: str | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


@FrozenDataclass()
class ValidationResult:
    """Aggregate audit result. Warnings never affect ``ok``."""

    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


class WorkspaceValidator:
    """Checks a finished workspace against a contract and the size limits."""

    def __init__(
        self,
        gateway: WorkspaceGateway,
        contract: Contract | None,
        *,
        max_file_bytes: int = MAX_FILE_BYTES,
        warn_file_bytes: int = WARN_FILE_BYTES,
    ) -> None:
        super().__init__()
        self._gateway = gateway
        self._contract = contract
        self._max_file_bytes = max_file_bytes
        self._warn_file_bytes = warn_file_bytes

    def validate(self) -> ValidationResult:
        records = self._gateway.walk()
        paths = {record.path for record in records}
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        contract = self._contract
        if contract is not None:
            errors.extend(
                ValidationIssue(
                    code="missing_required",
                    message=f"Required file missing: {required.describe()}",
                    path=required.alternatives[0],
                )
                for required in contract.missing_required(paths)
            )
            errors.extend(
                ValidationIssue(
                    code="forbidden_present",
                    message=(
                        f"Forbidden file present for {contract.project_type.value}: {path}"
                    ),
                    path=path,
                )
                for path in contract.forbidden_present(paths)
            )

        for record in records:
            if record.size_bytes > self._max_file_bytes:
                errors.append(
                    ValidationIssue(
                        code="oversize_file",
                        message=(
                            f"{record.path} is {record.size_bytes} bytes; the limit "
                            f"is {self._max_file_bytes} bytes."
                        ),
                        path=record.path,
                    )
                )
            elif record.size_bytes > self._warn_file_bytes:
                warnings.append(
                    ValidationIssue(
                        code="large_file",
                        message=(
                            f"{record.path} is {record.size_bytes} bytes, close to "
                            f"the {self._max_file_bytes} byte limit."
                        ),
                        path=record.path,
                    )
                )

        if contract is not None and contract.health_check is not None:
            issue = self._check_health_route(contract.health_check, paths)
            if issue is not None:
                errors.append(issue)

        result = ValidationResult(errors=tuple(errors), warnings=tuple(warnings))
        logger.info(
            "Workspace validated.",
            event="validator.finished",
            context={
                "ok": result.ok,
                "files": len(records),
                "errors": [str(error) for error in result.errors],
                "warnings": len(result.warnings),
            },
        )
        return result

    def _check_health_route(
        self, rule: HealthCheckRule, paths: set[str]
    ) -> ValidationIssue | None:
        pattern = rule.pattern()
        for entry in rule.entry_files:
            if entry not in paths:
                continue
            try:
                content = self._gateway.read(entry).content
            except WorkspaceError:
                continue
            if pattern.search(content):
                return None
        return ValidationIssue(
            code="missing_health_route",
            message=(
                f"No server entry ({', '.join(rule.entry_files)}) registers a "
                f"health route ({', '.join(rule.routes)})."
            ),
        )


__all__ = [
    "IssueCode",
    "ValidationIssue",
    "ValidationResult",
    "WorkspaceValidator",
]
