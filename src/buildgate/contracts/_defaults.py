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

"""Built-in contracts used when no contract directory is configured."""

from __future__ import annotations

from typing import Final

from ._types import Contract, ContractRegistry, HealthCheckRule, ProjectType, RequiredFile

NODE_ENTRY_FILES: Final[tuple[str, ...]] = (
    "server.js",
    "index.js",
    "src/server.js",
    "src/index.js",
    "app.js",
)

STATIC_CONTRACT: Final = Contract(
    project_type=ProjectType.STATIC,
    required_files=(RequiredFile(("index.html",)),),
    forbidden_files=("package.json",),
    guidance=(
        "Build a static site: plain HTML, CSS and JavaScript served as-is.\n"
        "- index.html at the workspace root is the entry point.\n"
        "- Do not create package.json or any build tooling."
    ),
)

NODE_API_CONTRACT: Final = Contract(
    project_type=ProjectType.NODE_API,
    required_files=(
        RequiredFile(("package.json",)),
        RequiredFile(NODE_ENTRY_FILES),
    ),
    guidance=(
        "Build a Node.js HTTP API.\n"
        "- package.json must declare a start script.\n"
        "- The server entry is one of: " + ", ".join(NODE_ENTRY_FILES) + ".\n"
        "- Register a GET /health route that responds with HTTP 200."
    ),
    health_check=HealthCheckRule(entry_files=NODE_ENTRY_FILES),
)

FULLSTACK_FRAMEWORK_CONTRACT: Final = Contract(
    project_type=ProjectType.FULLSTACK_FRAMEWORK,
    required_files=(
        RequiredFile(("package.json",)),
        RequiredFile(
            (
                "app/page.tsx",
                "app/page.jsx",
                "app/page.js",
                "pages/index.tsx",
                "pages/index.jsx",
                "pages/index.js",
            )
        ),
    ),
    guidance=(
        "Build a full-stack framework project (Next.js style).\n"
        "- package.json declares the framework and dev/build/start scripts.\n"
        "- Provide a root page under app/ or pages/."
    ),
)

SPA_FRAMEWORK_CONTRACT: Final = Contract(
    project_type=ProjectType.SPA_FRAMEWORK,
    required_files=(
        RequiredFile(("package.json",)),
        RequiredFile(("index.html",)),
        RequiredFile(
            (
                "src/main.tsx",
                "src/main.jsx",
                "src/main.ts",
                "src/main.js",
                "src/App.tsx",
                "src/App.jsx",
                "src/App.vue",
                "src/App.svelte",
            )
        ),
    ),
    guidance=(
        "Build a single-page application with a bundler (Vite style).\n"
        "- index.html at the root loads the bundle.\n"
        "- The application entry lives under src/ (main.* or App.*)."
    ),
)

DEFAULT_CONTRACTS: Final[tuple[Contract, ...]] = (
    STATIC_CONTRACT,
    NODE_API_CONTRACT,
    FULLSTACK_FRAMEWORK_CONTRACT,
    SPA_FRAMEWORK_CONTRACT,
)


def default_registry() -> ContractRegistry:
    return ContractRegistry(
        {contract.project_type: contract for contract in DEFAULT_CONTRACTS}
    )


__all__ = [
    "DEFAULT_CONTRACTS",
    "FULLSTACK_FRAMEWORK_CONTRACT",
    "NODE_API_CONTRACT",
    "NODE_ENTRY_FILES",
    "SPA_FRAMEWORK_CONTRACT",
    "STATIC_CONTRACT",
    "default_registry",
]
