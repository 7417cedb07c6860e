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

from buildgate.contracts import NODE_API_CONTRACT, STATIC_CONTRACT, ProjectType
from buildgate.manifest import Manifest, ManifestEntry
from buildgate.prompts import (
    MANIFEST_PENDING_ERROR,
    MANIFEST_REMINDER,
    manifest_acknowledgment,
    render_system_prompt,
    truncation_nudge,
)


def test_system_prompt_includes_limits_and_contract() -> None:
    prompt = render_system_prompt(
        project_type=ProjectType.STATIC,
        contract=STATIC_CONTRACT,
        max_file_bytes=32 * 1024,
        max_chunk_bytes=8 * 1024,
        project_budget_bytes=256 * 1024,
    )

    assert "## Manifest" in prompt
    assert "no larger than 32768" in prompt
    assert "at most 262144 bytes" in prompt
    assert "each under 8KB" in prompt
    assert "No file may exceed 32KB" in prompt
    assert prompt.rstrip().endswith("Forbidden files:\n- package.json")
    assert "## Project Contract: static" in prompt
    assert "Required files:\n- index.html" in prompt


def test_system_prompt_lists_alternatives() -> None:
    prompt = render_system_prompt(
        project_type=ProjectType.NODE_API,
        contract=NODE_API_CONTRACT,
        max_file_bytes=32 * 1024,
        max_chunk_bytes=8 * 1024,
        project_budget_bytes=256 * 1024,
    )

    assert "- server.js or index.js or src/server.js" in prompt
    assert "Forbidden files" not in prompt


def test_system_prompt_without_contract() -> None:
    prompt = render_system_prompt(
        project_type=ProjectType.SPA_FRAMEWORK,
        contract=None,
        max_file_bytes=1024,
        max_chunk_bytes=1024,
        project_budget_bytes=4096,
    )

    assert "Project Contract" not in prompt
    assert "## Best Practices" in prompt


def test_control_texts() -> None:
    manifest = Manifest(
        entries=(
            ManifestEntry(path="a.js", purpose="", estimated_bytes=100),
            ManifestEntry(path="b.js", purpose="", estimated_bytes=250),
        )
    )

    assert manifest_acknowledgment(manifest).startswith(
        "Manifest accepted (2 files, ~350 bytes)."
    )
    assert "under 4KB" in truncation_nudge(max_chunk_bytes=4096)
    assert "manifest" in MANIFEST_REMINDER
    assert "manifest is accepted" in MANIFEST_PENDING_ERROR
