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

"""Project types and per-type structural contracts."""

from __future__ import annotations

from ._defaults import (
    DEFAULT_CONTRACTS,
    FULLSTACK_FRAMEWORK_CONTRACT,
    NODE_API_CONTRACT,
    NODE_ENTRY_FILES,
    SPA_FRAMEWORK_CONTRACT,
    STATIC_CONTRACT,
    default_registry,
)
from ._loader import load_contracts
from ._types import Contract, ContractRegistry, HealthCheckRule, ProjectType, RequiredFile
from .project_type import infer_project_type, parse_project_type, resolve_project_type

__all__ = [
    "DEFAULT_CONTRACTS",
    "FULLSTACK_FRAMEWORK_CONTRACT",
    "NODE_API_CONTRACT",
    "NODE_ENTRY_FILES",
    "SPA_FRAMEWORK_CONTRACT",
    "STATIC_CONTRACT",
    "Contract",
    "ContractRegistry",
    "HealthCheckRule",
    "ProjectType",
    "RequiredFile",
    "default_registry",
    "infer_project_type",
    "load_contracts",
    "parse_project_type",
    "resolve_project_type",
]
