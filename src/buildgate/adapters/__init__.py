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

"""Oracle protocol and provider integrations.

The Anthropic integration is imported lazily from
:mod:`buildgate.adapters.anthropic` so the optional SDK is only needed
when it is used.
"""

from __future__ import annotations

from .config import AnthropicClientConfig, AnthropicModelConfig
from .core import (
    ContentBlock,
    Oracle,
    OracleError,
    OracleReply,
    OracleRequest,
    RateLimitError,
    Role,
    StopKind,
    TextBlock,
    TokenUsage,
    ToolResultBlock,
    ToolUseBlock,
    Turn,
)
from .throttle import (
    DEFAULT_THROTTLE_PROVIDERS,
    ThrottlePolicy,
    ThrottleProviders,
    jittered_backoff,
    new_throttle_policy,
    new_throttle_providers,
    sleep_for,
)

__all__ = [
    "DEFAULT_THROTTLE_PROVIDERS",
    "AnthropicClientConfig",
    "AnthropicModelConfig",
    "ContentBlock",
    "Oracle",
    "OracleError",
    "OracleReply",
    "OracleRequest",
    "RateLimitError",
    "Role",
    "StopKind",
    "TextBlock",
    "ThrottlePolicy",
    "ThrottleProviders",
    "TokenUsage",
    "ToolResultBlock",
    "ToolUseBlock",
    "Turn",
    "jittered_backoff",
    "new_throttle_policy",
    "new_throttle_providers",
    "sleep_for",
]
