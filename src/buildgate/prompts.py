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

"""Instruction and control texts sent to the oracle.

Templates are rendered with :class:`string.Template` from dedented markdown
sections, one ``## Title`` heading per section.
"""

from __future__ import annotations

import textwrap
from string import Template
from typing import Final

from .contracts import Contract, ProjectType
from .manifest import Manifest

_ROLE: Final[str] = (
    "You are an expert full-stack developer generating production-ready code "
    "into an empty workspace using the provided file tools."
)

_MANIFEST_SECTION: Final = Template(
    textwrap.dedent(
        """
        Before writing anything, reply with a manifest of every file you will
        create, as a fenced JSON block:

        ```json
        {"files": [{"path": "index.html", "purpose": "Landing page", "estimatedBytes": 1800}]}
        ```

        Rules:
        - Paths are relative to the workspace root, use "/" and never contain "..".
        - estimatedBytes is a whole number no larger than ${max_file_bytes}.
        - The estimates must add up to at most ${project_budget_bytes} bytes.
        - Do not call any tool in the manifest reply. Tools called before the
          manifest is accepted end the run.
        """
    ).strip()
)

_CHUNKING_SECTION: Final = Template(
    textwrap.dedent(
        """
        **Small files (<4KB):** Use write_file directly.

        **Large files (>4KB, especially CSS/JS):** Use chunked writing:
        1. First chunk: write_file, which creates or overwrites the file.
        2. Subsequent chunks: append_file, each under ${chunk_kb}KB.
        3. No file may exceed ${file_kb}KB in total.

        Replies are limited in length. A file written in one oversized call can be
        cut off mid-write; write_file for the first chunk keeps retries
        idempotent and append_file adds the rest incrementally.
        """
    ).strip()
)

_PRACTICES_SECTION: Final[str] = textwrap.dedent(
    """
    - Prefer minimal, inline styles when possible and avoid verbose CSS.
    - Keep CSS concise with shorthand properties and no redundant rules.
    - Write modular JavaScript in separate files when appropriate.
    - Prioritize functionality over elaborate styling.
    - When every file is written, reply with a short summary and no tool calls.
    """
).strip()

_ACKNOWLEDGMENT: Final = Template(
    textwrap.dedent(
        """
        Manifest accepted (${count} files, ~${total_bytes} bytes). Proceed to
        write the files now, following the chunking guidelines.
        """
    ).strip()
)

MANIFEST_REMINDER: Final[str] = (
    "No manifest found. Reply with the fenced JSON manifest of the files you "
    'will create ({"files": [{"path", "purpose", "estimatedBytes"}]}) before '
    "calling any tool."
)

MANIFEST_TRUNCATED: Final[str] = (
    "Your reply was cut off by the length limit before the manifest was "
    "complete. Resend only the fenced JSON manifest with short purposes, and "
    "do not call any tool yet."
)

MANIFEST_PENDING_ERROR: Final[str] = (
    "Not executed: tool calls are not allowed in the same reply as the "
    "manifest. Call the tool again now that the manifest is accepted."
)

_TRUNCATION_NUDGE: Final = Template(
    textwrap.dedent(
        """
        Your last reply was cut off by the length limit. Do not restart files
        that are already written. Continue where you stopped using append_file
        with chunks under ${chunk_kb}KB. If a write_file call was cut off,
        resend it with its first chunk only.
        """
    ).strip()
)


def _section(title: str, body: str) -> str:
    return f"## {title}\n\n{body}"


def render_system_prompt(
    *,
    project_type: ProjectType,
    contract: Contract | None,
    max_file_bytes: int,
    max_chunk_bytes: int,
    project_budget_bytes: int,
) -> str:
    """Return the system prompt for a run, with contract guidance appended."""

    sections = [
        _ROLE,
        _section(
            "Manifest",
            _MANIFEST_SECTION.substitute(
                max_file_bytes=max_file_bytes,
                project_budget_bytes=project_budget_bytes,
            ),
        ),
        _section(
            "File Writing Guidelines",
            _CHUNKING_SECTION.substitute(
                chunk_kb=max_chunk_bytes // 1024,
                file_kb=max_file_bytes // 1024,
            ),
        ),
        _section("Best Practices", _PRACTICES_SECTION),
    ]
    if contract is not None:
        body = contract.guidance
        required = "\n".join(
            f"- {required.describe()}" for required in contract.required_files
        )
        if required:
            body = f"{body}\n\nRequired files:\n{required}".strip()
        if contract.forbidden_files:
            forbidden = "\n".join(f"- {path}" for path in contract.forbidden_files)
            body = f"{body}\n\nForbidden files:\n{forbidden}"
        sections.append(_section(f"Project Contract: {project_type.value}", body))
    return "\n\n".join(sections)


def manifest_acknowledgment(manifest: Manifest) -> str:
    return _ACKNOWLEDGMENT.substitute(
        count=len(manifest.entries), total_bytes=manifest.total_bytes
    )


def truncation_nudge(*, max_chunk_bytes: int) -> str:
    return _TRUNCATION_NUDGE.substitute(chunk_kb=max_chunk_bytes // 1024)


__all__ = [
    "MANIFEST_PENDING_ERROR",
    "MANIFEST_REMINDER",
    "MANIFEST_TRUNCATED",
    "manifest_acknowledgment",
    "render_system_prompt",
    "truncation_nudge",
]
