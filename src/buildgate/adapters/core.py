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

"""Oracle protocol shared by the driver and provider integrations."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from typing import Any, ClassVar, Literal, Protocol

from ..dataclasses import FrozenDataclass
from ..errors import BuildGateError, ErrorKind
from ..tools import ToolSpec

StopKind = Literal["normal-completion", "length-truncated", "tool-calls", "other"]
"""Provider stop reason normalized to the signals the driver acts on."""

Role = Literal["user", "assistant"]


@FrozenDataclass()
class TokenUsage:
    """Token counts reported for one exchange, or accumulated over a run."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )


@FrozenDataclass()
class TextBlock:
    text: str


@FrozenDataclass()
class ToolUseBlock:
    """A tool call requested by the oracle, exactly as received."""

    call_id: str
    name: str
    arguments: Mapping[str, object] | None


@FrozenDataclass()
class ToolResultBlock:
    """The rendered outcome of one tool call, returned as user input."""

    call_id: str
    content: str
    is_error: bool = False


type ContentBlock = TextBlock | ToolUseBlock | ToolResultBlock


@FrozenDataclass()
class Turn:
    """One entry of the conversation state."""

    role: Role
    blocks: tuple[ContentBlock, ...]

    @classmethod
    def user_text(cls, text: str) -> Turn:
        return cls(role="user", blocks=(TextBlock(text),))


@FrozenDataclass()
class OracleRequest:
    system: str
    turns: tuple[Turn, ...]
    tools: tuple[ToolSpec, ...]
    max_tokens: int


@FrozenDataclass()
class OracleReply:
    blocks: tuple[ContentBlock, ...]
    stop: StopKind
    usage: TokenUsage = TokenUsage()

    @property
    def text(self) -> str:
        return "\n".join(
            block.text for block in self.blocks if isinstance(block, TextBlock)
        )

    @property
    def tool_uses(self) -> tuple[ToolUseBlock, ...]:
        return tuple(block for block in self.blocks if isinstance(block, ToolUseBlock))

    def as_turn(self) -> Turn:
        return Turn(role="assistant", blocks=self.blocks)


class Oracle(Protocol):
    """Black-box request/response service the driver converses with."""

    def exchange(self, request: OracleRequest) -> OracleReply: ...


class OracleError(BuildGateError, RuntimeError):
    """Raised when a provider request fails."""

    kind: ClassVar[ErrorKind] = "OracleFailure"

    def __init__(
        self,
        message: str,
        *,
        provider_payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider_payload = provider_payload


class RateLimitError(OracleError):
    """Raised when the provider throttles a request. Safe to retry."""

    kind: ClassVar[ErrorKind] = "TransientRateLimit"

    def __init__(
        self,
        message: str,
        *,
        retry_after: timedelta | None = None,
        provider_payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, provider_payload=provider_payload)
        self.retry_after = retry_after


__all__ = [
    "ContentBlock",
    "Oracle",
    "OracleError",
    "OracleReply",
    "OracleRequest",
    "RateLimitError",
    "Role",
    "StopKind",
    "TextBlock",
    "TokenUsage",
    "ToolResultBlock",
    "ToolUseBlock",
    "Turn",
]
