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

"""Resolve the project type of a run from configuration or request text."""

from __future__ import annotations

import re
from typing import Final

from ..errors import ConfigError
from ._types import ProjectType

_FRAMEWORK_KEYWORDS: Final = re.compile(
    r"\b(?:next\.?js|remix|nuxt|sveltekit|full[- ]?stack|app router)\b",
    re.IGNORECASE,
)
_BACKEND_KEYWORDS: Final = re.compile(
    r"\b(?:apis?|backend|back-end|server|express|fastify|endpoints?|rest|"
    r"crud|database|node\.?js)\b",
    re.IGNORECASE,
)
_UI_FRAMEWORK_KEYWORDS: Final = re.compile(
    r"\b(?:react|vue|svelte|angular|preact|solid\.?js|vite|spa|single[- ]page)\b",
    re.IGNORECASE,
)

_ALIASES: Final[dict[str, ProjectType]] = {
    "static": ProjectType.STATIC,
    "html": ProjectType.STATIC,
    "node-api": ProjectType.NODE_API,
    "node": ProjectType.NODE_API,
    "api": ProjectType.NODE_API,
    "fullstack-framework": ProjectType.FULLSTACK_FRAMEWORK,
    "fullstack": ProjectType.FULLSTACK_FRAMEWORK,
    "nextjs": ProjectType.FULLSTACK_FRAMEWORK,
    "spa-framework": ProjectType.SPA_FRAMEWORK,
    "spa": ProjectType.SPA_FRAMEWORK,
    "react": ProjectType.SPA_FRAMEWORK,
}


def infer_project_type(request: str) -> ProjectType:
    """Infer the project type from free-text request wording.

    Checked in priority order: a full-stack framework mention, then a
    backend mention, then a UI framework mention. Anything else is a static
    site.

    Examples:
        >>> infer_project_type("A Next.js blog with an API").value
        'fullstack-framework'
        >>> infer_project_type("REST API for todos").value
        'node-api'
        >>> infer_project_type("A landing page").value
        'static'
    """

    if _FRAMEWORK_KEYWORDS.search(request):
        return ProjectType.FULLSTACK_FRAMEWORK
    if _BACKEND_KEYWORDS.search(request):
        return ProjectType.NODE_API
    if _UI_FRAMEWORK_KEYWORDS.search(request):
        return ProjectType.SPA_FRAMEWORK
    return ProjectType.STATIC


def parse_project_type(value: str | ProjectType) -> ProjectType:
    """Parse an explicit project-type setting, accepting common aliases."""

    if isinstance(value, ProjectType):
        return value
    key = value.strip().lower().replace("_", "-")
    try:
        return _ALIASES[key]
    except KeyError:
        choices = ", ".join(member.value for member in ProjectType)
        raise ConfigError(
            f"Unknown project type {value!r}; expected one of: {choices}."
        ) from None


def resolve_project_type(
    request: str, explicit: str | ProjectType | None = None
) -> ProjectType:
    """Return the explicit project type when given, else infer it from ``request``."""

    if explicit is not None and (not isinstance(explicit, str) or explicit.strip()):
        return parse_project_type(explicit)
    return infer_project_type(request)


__all__ = [
    "infer_project_type",
    "parse_project_type",
    "resolve_project_type",
]
