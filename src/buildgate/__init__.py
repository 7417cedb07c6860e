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

"""Manifest-gated model runs that write projects into a sandboxed workspace."""

from __future__ import annotations

from .config import RunConfig, load_run_config
from .contracts import ProjectType, infer_project_type
from .driver import ConversationDriver
from .errors import BuildGateError, ConfigError, ErrorKind
from .report import RunOutcome, RunReport
from .runtime.logging import StructuredLogger, configure_logging, get_logger

__all__ = [
    "BuildGateError",
    "ConfigError",
    "ConversationDriver",
    "ErrorKind",
    "ProjectType",
    "RunConfig",
    "RunOutcome",
    "RunReport",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
    "infer_project_type",
    "load_run_config",
]
