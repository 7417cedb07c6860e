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

from collections.abc import Iterable

import pytest

from buildgate.contracts import NODE_API_CONTRACT, STATIC_CONTRACT, Contract
from buildgate.validator import (
    IssueCode,
    ValidationIssue,
    ValidationResult,
    WorkspaceValidator,
)
from buildgate.workspace import OversizeFileError, WorkspaceGateway


def _codes(issues: Iterable[ValidationIssue]) -> list[IssueCode]:
    return [issue.code for issue in issues]


def _validate(gateway: WorkspaceGateway, contract: Contract | None) -> ValidationResult:
    return WorkspaceValidator(
        gateway,
        contract,
        max_file_bytes=gateway.max_file_bytes,
        warn_file_bytes=800,
    ).validate()


def test_static_site_passes(gateway: WorkspaceGateway) -> None:
    _ = gateway.write("index.html", "<!doctype html>")

    result = _validate(gateway, STATIC_CONTRACT)

    assert result.ok
    assert result.errors == ()
    assert result.warnings == ()


def test_missing_required_and_forbidden(gateway: WorkspaceGateway) -> None:
    _ = gateway.write("package.json", "{}")

    result = _validate(gateway, STATIC_CONTRACT)

    assert not result.ok
    assert _codes(result.errors) == ["missing_required", "forbidden_present"]
    assert "index.html" in str(result.errors[0])
    assert result.errors[1].path == "package.json"


def test_oversize_file_is_an_error_and_large_file_a_warning(
    gateway: WorkspaceGateway,
) -> None:
    _ = gateway.write("index.html", "x" * 900)
    _ = gateway.write("big.js", "y" * 1000)
    with pytest.raises(OversizeFileError):
        _ = gateway.append("big.js", "z" * 100)

    result = _validate(gateway, STATIC_CONTRACT)

    assert _codes(result.errors) == ["oversize_file"]
    assert result.errors[0].path == "big.js"
    assert _codes(result.warnings) == ["large_file"]
    assert result.warnings[0].path == "index.html"


def test_warnings_do_not_fail_validation(gateway: WorkspaceGateway) -> None:
    _ = gateway.write("index.html", "x" * 900)

    result = _validate(gateway, STATIC_CONTRACT)

    assert result.ok
    assert len(result.warnings) == 1


def test_no_contract_only_checks_sizes(gateway: WorkspaceGateway) -> None:
    _ = gateway.write("anything.txt", "hello")

    assert _validate(gateway, None).ok


def test_node_api_requires_health_route(gateway: WorkspaceGateway) -> None:
    _ = gateway.write("package.json", '{"scripts": {"start": "node server.js"}}')
    _ = gateway.write("server.js", "app.get('/todos', list);\napp.listen(3000);\n")

    result = _validate(gateway, NODE_API_CONTRACT)

    assert not result.ok
    assert _codes(result.errors) == ["missing_health_route"]


def test_node_api_health_route_in_any_entry_file(gateway: WorkspaceGateway) -> None:
    _ = gateway.write("package.json", "{}")
    _ = gateway.write("server.js", "require('./src/index.js');\n")
    _ = gateway.write(
        "src/index.js", "router.get(\"/api/health\", (req, res) => res.json({}));\n"
    )

    assert _validate(gateway, NODE_API_CONTRACT).ok


def test_validator_reads_disk_not_claims(
    gateway: WorkspaceGateway,
) -> None:
    result = _validate(gateway, NODE_API_CONTRACT)

    assert _codes(result.errors) == [
        "missing_required",
        "missing_required",
        "missing_health_route",
    ]
