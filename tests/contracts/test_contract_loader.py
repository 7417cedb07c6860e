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

from pathlib import Path

import pytest

from buildgate.contracts import (
    NODE_API_CONTRACT,
    STATIC_CONTRACT,
    HealthCheckRule,
    ProjectType,
    RequiredFile,
    default_registry,
    load_contracts,
)
from buildgate.errors import ConfigError


def test_default_registry_covers_every_project_type() -> None:
    registry = default_registry()

    assert len(registry) == len(ProjectType)
    for project_type in ProjectType:
        contract = registry.get(project_type)
        assert contract is not None
        assert contract.project_type is project_type
        assert contract.guidance


def test_static_contract_rules() -> None:
    assert STATIC_CONTRACT.missing_required({"index.html"}) == ()
    assert STATIC_CONTRACT.missing_required({"about.html"}) == (
        RequiredFile(("index.html",)),
    )
    assert STATIC_CONTRACT.forbidden_present({"index.html", "package.json"}) == (
        "package.json",
    )


def test_alternative_sets_need_one_member() -> None:
    paths = {"package.json", "src/server.js"}

    assert NODE_API_CONTRACT.missing_required(paths) == ()
    missing = NODE_API_CONTRACT.missing_required({"package.json"})
    assert len(missing) == 1
    assert " or " in missing[0].describe()


def test_required_file_needs_alternatives() -> None:
    with pytest.raises(ValueError):
        _ = RequiredFile(())


@pytest.mark.parametrize(
    "source",
    [
        "app.get('/health', (req, res) => res.send('ok'))",
        'router.get( "/api/health" , handler)',
        "fastify.route(`/health/`, opts)",
        "app.use('/health', healthRouter)",
    ],
)
def test_health_pattern_matches_registrations(source: str) -> None:
    assert HealthCheckRule(entry_files=("server.js",)).pattern().search(source)


@pytest.mark.parametrize(
    "source",
    [
        "// TODO add /health later",
        "app.get('/healthz', handler)",
        "app.get('/status', handler)",
    ],
)
def test_health_pattern_ignores_other_text(source: str) -> None:
    assert HealthCheckRule(entry_files=("server.js",)).pattern().search(source) is None


def test_load_contracts_from_yaml(tmp_path: Path) -> None:
    (tmp_path / "node-api.yaml").write_text(
        "requiredFiles:\n"
        "  - package.json\n"
        "  - [server.js, index.js]\n"
        "forbiddenFiles: [Dockerfile]\n"
        "guidance: Build an API.\n"
        "healthCheck:\n"
        "  entryFiles: [server.js, index.js]\n"
        "  routes: [/healthz]\n",
        encoding="utf-8",
    )

    registry = load_contracts(tmp_path)

    assert len(registry) == 1
    assert ProjectType.NODE_API in registry
    assert registry.get(ProjectType.STATIC) is None
    contract = registry.get(ProjectType.NODE_API)
    assert contract is not None
    assert contract.required_files == (
        RequiredFile(("package.json",)),
        RequiredFile(("server.js", "index.js")),
    )
    assert contract.forbidden_files == ("Dockerfile",)
    assert contract.guidance == "Build an API."
    assert contract.health_check == HealthCheckRule(
        entry_files=("server.js", "index.js"), routes=("/healthz",)
    )


def test_markdown_guidance_overrides_document(tmp_path: Path) -> None:
    (tmp_path / "static.yml").write_text(
        "requiredFiles: [index.html]\nguidance: short\n", encoding="utf-8"
    )
    (tmp_path / "static.md").write_text("# Static\n\nPlain files only.\n")

    contract = load_contracts(tmp_path).get(ProjectType.STATIC)

    assert contract is not None
    assert contract.guidance == "# Static\n\nPlain files only."
    assert contract.health_check is None


def test_markdown_only_contract_has_no_file_rules(tmp_path: Path) -> None:
    (tmp_path / "spa-framework.md").write_text("Use Vite.")

    contract = load_contracts(tmp_path).get(ProjectType.SPA_FRAMEWORK)

    assert contract is not None
    assert contract.required_files == ()
    assert contract.guidance == "Use Vite."


def test_health_check_routes_default(tmp_path: Path) -> None:
    (tmp_path / "node-api.yaml").write_text(
        "healthCheck:\n  entryFiles: server.js\n", encoding="utf-8"
    )

    contract = load_contracts(tmp_path).get(ProjectType.NODE_API)

    assert contract is not None
    assert contract.health_check == HealthCheckRule(entry_files=("server.js",))


def test_missing_directory_is_a_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        _ = load_contracts(tmp_path / "absent")


@pytest.mark.parametrize(
    "document",
    [
        "- just\n- a list\n",
        "requiredFiles: index.html\n",
        "requiredFiles: [[]]\n",
        "forbiddenFiles: [1, 2]\n",
        "guidance: [not, text]\n",
        "healthCheck: server.js\n",
        "healthCheck:\n  routes: [/health]\n",
        "requiredFiles: [index.html\n",
    ],
)
def test_invalid_documents_raise_config_error(tmp_path: Path, document: str) -> None:
    (tmp_path / "static.yaml").write_text(document, encoding="utf-8")

    with pytest.raises(ConfigError):
        _ = load_contracts(tmp_path)


def test_document_paths_are_normalized(tmp_path: Path) -> None:
    (tmp_path / "node-api.yaml").write_text(
        "requiredFiles:\n"
        "  - ./package.json\n"
        "  - [/server.js, src//index.js]\n"
        "forbiddenFiles: [./Dockerfile]\n"
        "healthCheck:\n"
        "  entryFiles: [/server.js]\n"
        "  routes: [/healthz]\n",
        encoding="utf-8",
    )

    contract = load_contracts(tmp_path).get(ProjectType.NODE_API)

    assert contract is not None
    assert contract.required_files == (
        RequiredFile(("package.json",)),
        RequiredFile(("server.js", "src/index.js")),
    )
    assert contract.forbidden_files == ("Dockerfile",)
    assert contract.health_check == HealthCheckRule(
        entry_files=("server.js",), routes=("/healthz",)
    )
    assert contract.missing_required({"package.json", "server.js"}) == ()


@pytest.mark.parametrize("path", ["../outside.txt", "/", "./"])
def test_document_paths_must_name_workspace_files(tmp_path: Path, path: str) -> None:
    (tmp_path / "static.yaml").write_text(
        f"requiredFiles: ['{path}']\n", encoding="utf-8"
    )

    with pytest.raises(ConfigError, match="requiredFiles"):
        _ = load_contracts(tmp_path)
