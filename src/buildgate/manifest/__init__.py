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

"""Manifest extraction and admission."""

from __future__ import annotations

from ._types import (
    GateDecision,
    Manifest,
    ManifestCandidate,
    ManifestEntry,
    ManifestSource,
    ManifestViolation,
    ViolationCode,
)
from .gate import DEFAULT_PROJECT_BUDGET_BYTES, ManifestGate
from .parser import ManifestParser, TolerantManifestParser

__all__ = [
    "DEFAULT_PROJECT_BUDGET_BYTES",
    "GateDecision",
    "Manifest",
    "ManifestCandidate",
    "ManifestEntry",
    "ManifestGate",
    "ManifestParser",
    "ManifestSource",
    "ManifestViolation",
    "TolerantManifestParser",
    "ViolationCode",
]
