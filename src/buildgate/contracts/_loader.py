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

"""Load contract documents from a directory.

Each project type may have a ``<type>.yaml`` (or ``.yml``) document::

    requiredFiles:
      - package.json
      - [server.js, index.js]
    forbiddenFiles: []
    guidance: |
      Build a Node.js HTTP API.
    healthCheck:
      entryFiles: [server.js, index.js]
      routes: [/health]

A sibling ``<type>.md`` file, when present, supplies the guidance text.
Types without a document get no contract.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, MutableMapping
from pathlib import Path
from typing import cast

import yaml

from ..errors import ConfigError
from ..runtime.logging import StructuredLogger, get_logger
from ..workspace import InvalidTargetError, PathEscapeError, normalize_relative_path
from ._types import Contract, ContractRegistry, HealthCheckRule, ProjectType, RequiredFile

logger: StructuredLogger = get_logger(__name__, context={"component": "contracts"})

_DOCUMENT_SUFFIXES = (".yaml", ".yml")


def load_contracts(directory: Path) -> ContractRegistry:
    """Build a registry from the contract documents found in ``directory``."""

    if not directory.is_dir():
        msg = f"Contract directory not found: {directory}"
        raise ConfigError(msg)

    contracts: dict[ProjectType, Contract] = {}
    for project_type in ProjectType:
        contract = _load_contract(directory, project_type)
        if contract is None:
            logger.debug(
                "No contract document for project type.",
                event="contracts.missing",
                context={"project_type": project_type.value, "directory": str(directory)},
            )
            continue
        contracts[project_type] = contract
    return ContractRegistry(contracts)


def _load_contract(directory: Path, project_type: ProjectType) -> Contract | None:
    document_path = next(
        (
            candidate
            for suffix in _DOCUMENT_SUFFIXES
            if (candidate := directory / f"{project_type.value}{suffix}").is_file()
        ),
        None,
    )
    guidance_path = directory / f"{project_type.value}.md"
    if document_path is None and not guidance_path.is_file():
        return None

    raw: Mapping[str, object] = {}
    if document_path is not None:
        raw = _read_document(document_path)

    guidance = raw.get("guidance", "")
    if guidance_path.is_file():
        guidance = guidance_path.read_text(encoding="utf-8")
    if not isinstance(guidance, str):
        msg = f"{project_type.value}: guidance must be a string."
        raise ConfigError(msg)

    return Contract(
        project_type=project_type,
        required_files=_coerce_required(raw.get("requiredFiles"), project_type),
        forbidden_files=_coerce_files(
            raw.get("forbiddenFiles"), f"{project_type.value}: forbiddenFiles"
        ),
        guidance=guidance.strip(),
        health_check=_coerce_health_check(raw.get("healthCheck"), project_type),
    )


def _read_document(path: Path) -> Mapping[str, object]:
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as error:
            msg = f"Invalid contract document {path}: {error}"
            raise ConfigError(msg) from error
    if not isinstance(data, MutableMapping):
        msg = f"Contract document {path} must contain a mapping at the root."
        raise ConfigError(msg)
    return cast(Mapping[str, object], data)


def _coerce_required(value: object, project_type: ProjectType) -> tuple[RequiredFile, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        msg = f"{project_type.value}: requiredFiles must be a list."
        raise ConfigError(msg)
    required: list[RequiredFile] = []
    for entry in cast(list[object], value):
        alternatives = _coerce_files(entry, f"{project_type.value}: requiredFiles")
        if not alternatives:
            msg = f"{project_type.value}: empty alternative set in requiredFiles."
            raise ConfigError(msg)
        required.append(RequiredFile(alternatives))
    return tuple(required)


def _coerce_health_check(
    value: object, project_type: ProjectType
) -> HealthCheckRule | None:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        msg = f"{project_type.value}: healthCheck must be a mapping."
        raise ConfigError(msg)
    section = cast(Mapping[str, object], value)
    entry_files = _coerce_files(
        section.get("entryFiles"), f"{project_type.value}: healthCheck.entryFiles"
    )
    if not entry_files:
        msg = f"{project_type.value}: healthCheck.entryFiles must not be empty."
        raise ConfigError(msg)
    routes = _coerce_paths(
        section.get("routes"), f"{project_type.value}: healthCheck.routes"
    )
    if routes:
        return HealthCheckRule(entry_files=entry_files, routes=routes)
    return HealthCheckRule(entry_files=entry_files)


def _coerce_files(value: object, label: str) -> tuple[str, ...]:
    """Coerce workspace paths, normalized the way the gateway stores them."""

    files: list[str] = []
    for raw in _coerce_paths(value, label):
        try:
            normalized = normalize_relative_path(raw)
        except (PathEscapeError, InvalidTargetError) as error:
            msg = f"{label}: invalid path {raw!r}: {error}"
            raise ConfigError(msg) from error
        if not normalized:
            msg = f"{label}: {raw!r} does not name a file."
            raise ConfigError(msg)
        files.append(normalized)
    return tuple(files)


def _coerce_paths(value: object, label: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        result: list[str] = []
        for item in cast(Iterable[object], value):
            if not isinstance(item, str):
                msg = f"{label} must contain strings (got {item!r})."
                raise ConfigError(msg)
            result.append(item)
        return tuple(result)
    msg = f"{label} must be a string or a list of strings."
    raise ConfigError(msg)


__all__ = ["load_contracts"]
