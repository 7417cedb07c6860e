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

"""Workspace tools exposed to the oracle."""

from __future__ import annotations

from ._calls import (
    TOOL_NAMES,
    TRUNCATION_HINT,
    AppendFile,
    CreateDirectory,
    ListDirectory,
    ReadFile,
    ToolCall,
    ToolName,
    WriteFile,
    failure_target,
    parse_tool_call,
)
from ._results import ToolResult
from .dispatcher import ToolDispatcher
from .specs import ToolSpec, build_tool_specs

__all__ = [
    "TOOL_NAMES",
    "TRUNCATION_HINT",
    "AppendFile",
    "CreateDirectory",
    "ListDirectory",
    "ReadFile",
    "ToolCall",
    "ToolDispatcher",
    "ToolName",
    "ToolResult",
    "ToolSpec",
    "WriteFile",
    "build_tool_specs",
    "failure_target",
    "parse_tool_call",
]
