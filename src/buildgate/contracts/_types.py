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

"""Project types and the structural contracts attached to them."""

from __future__ import annotations

import re
from collections.abc import Collection, Mapping
from enum import Enum

from ..dataclasses import FrozenDataclass


class ProjectType(Enum):
    """Kind of project a run generates. Fixed for the whole run."""

    STATIC = "static"
    NODE_API = "node-api"
    FULLSTACK_FRAMEWORK = "fullstack-framework"
    SPA_FRAMEWORK = "spa-framework"


@FrozenDataclass()
class RequiredFile:
    """A required path, or a set of alternatives at least one of which must exist."""

    alternatives: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.alternatives:
            msg = "RequiredFile needs at least one path."
            raise ValueError(msg)

    def satisfied_by(self, paths: Collection[str]) -> bool:
        return any(candidate in paths for candidate in self.alternatives)

    def describe(self) -> str:
        return " or ".join(self.alternatives)


@FrozenDataclass()
class HealthCheckRule:
    """Requires one entry file to register a literal health route."""

    entry_files: tuple[str, ...]
    routes: tuple[str, ...] = ("/health", "/api/health")

    def pattern(self) -> re.Pattern[str]:
        """Match ``app.get('/health'`` style registrations of any route."""

        alternatives = "|".join(re.escape(route) for route in self.routes)
        return re.compile(
            r"\.\s*(?:get|all|use|route|head)\s*\(\s*['\"`](?:" + alternatives + r")/?['\"`]"
        )


@FrozenDataclass()
class Contract:
    """Structural rules for one project type.

    Used twice: by the manifest gate against the declared file plan, and by
    the workspace validator against the files actually written.
    """

    project_type: ProjectType
    required_files: tuple[RequiredFile, ...] = ()
    forbidden_files: tuple[str, ...] = ()
    guidance: str = ""
    health_check: HealthCheckRule | None = None

    def missing_required(self, paths: Collection[str]) -> tuple[RequiredFile, ...]:
        return tuple(
            required for required in self.required_files if not required.satisfied_by(paths)
        )

    def forbidden_present(self, paths: Collection[str]) -> tuple[str, ...]:
        return tuple(path for path in self.forbidden_files if path in paths)


class ContractRegistry:
    """Read-only lookup of contracts by project type.

    A project type without a contract is not an error: ``get`` returns
    ``None`` and no structural rules apply.
    """

    def __init__(self, contracts: Mapping[ProjectType, Contract] | None = None) -> None:
        super().__init__()
        self._contracts: dict[ProjectType, Contract] = dict(contracts or {})

    def get(self, project_type: ProjectType) -> Contract | None:
        return self._contracts.get(project_type)

    def __contains__(self, project_type: object) -> bool:
        return project_type in self._contracts

    def __len__(self) -> int:
        return len(self._contracts)


__all__ = [
    "Contract",
    "ContractRegistry",
    "HealthCheckRule",
    "ProjectType",
    "RequiredFile",
]
