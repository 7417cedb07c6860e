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

"""Oracle backed by Anthropic's Messages API."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from http import HTTPStatus
from importlib import import_module
from typing import Any, Final, Protocol, cast

from ..runtime.logging import StructuredLogger, get_logger
from ..tools import ToolSpec
from ._retry_utils import extract_error_payload, retry_after_from_error
from .config import AnthropicClientConfig, AnthropicModelConfig
from .core import (
    ContentBlock,
    OracleError,
    OracleReply,
    OracleRequest,
    RateLimitError,
    StopKind,
    TextBlock,
    TokenUsage,
    ToolResultBlock,
    ToolUseBlock,
    Turn,
)

logger: StructuredLogger = get_logger(
    __name__, context={"component": "adapters.anthropic"}
)

_ERROR_MESSAGE: Final[str] = (
    "Anthropic support requires the optional 'anthropic' dependency. "
    "Install it with `pip install buildgate[anthropic]`."
)

DEFAULT_MODEL: Final[str] = "claude-sonnet-4-20250514"

_ANTHROPIC_OVERLOADED_STATUS: Final[int] = 529

_STOP_REASONS: Final[dict[str, StopKind]] = {
    "end_turn": "normal-completion",
    "stop_sequence": "normal-completion",
    "max_tokens": "length-truncated",
    "tool_use": "tool-calls",
}


class _MessagesAPI(Protocol):
    def create(self, *args: object, **kwargs: object) -> object: ...


class _AnthropicProtocol(Protocol):
    """Structural type for the Anthropic client."""

    @property
    def messages(self) -> _MessagesAPI: ...


class _AnthropicClientFactory(Protocol):
    def __call__(self, **kwargs: object) -> _AnthropicProtocol: ...


class _AnthropicModule(Protocol):
    Anthropic: _AnthropicClientFactory


AnthropicProtocol = _AnthropicProtocol


def _load_anthropic_module() -> _AnthropicModule:
    try:
        module = import_module("anthropic")
    except ModuleNotFoundError as exc:
        raise RuntimeError(_ERROR_MESSAGE) from exc
    return cast(_AnthropicModule, module)


def create_anthropic_client(**kwargs: object) -> _AnthropicProtocol:
    """Create an Anthropic client, raising a helpful error if the extra is missing."""

    anthropic_module = _load_anthropic_module()
    return anthropic_module.Anthropic(**kwargs)


def _normalize_anthropic_throttle(error: Exception) -> RateLimitError | None:
    """Map 429/529 responses and rate-limit messages to :class:`RateLimitError`."""

    message = str(error) or "Anthropic request failed."
    status_code = getattr(error, "status_code", None)
    lower_message = message.lower()
    if not (
        status_code in {HTTPStatus.TOO_MANY_REQUESTS, _ANTHROPIC_OVERLOADED_STATUS}
        or "rate limit" in lower_message
        or "overloaded" in lower_message
    ):
        return None
    return RateLimitError(
        message,
        retry_after=retry_after_from_error(error),
        provider_payload=extract_error_payload(error),
    )


def tool_to_anthropic_spec(spec: ToolSpec) -> dict[str, Any]:
    return {
        "name": spec.name,
        "description": spec.description,
        "input_schema": spec.input_schema(),
    }


def _block_to_anthropic(block: ContentBlock) -> dict[str, Any]:
    match block:
        case TextBlock(text=text):
            return {"type": "text", "text": text}
        case ToolUseBlock(call_id=call_id, name=name, arguments=arguments):
            return {
                "type": "tool_use",
                "id": call_id,
                "name": name,
                "input": dict(arguments) if arguments is not None else {},
            }
        case ToolResultBlock(call_id=call_id, content=content, is_error=is_error):
            payload: dict[str, Any] = {
                "type": "tool_result",
                "tool_use_id": call_id,
                "content": content,
            }
            if is_error:
                payload["is_error"] = True
            return payload


def _turns_to_messages(turns: Sequence[Turn]) -> list[dict[str, Any]]:
    return [
        {
            "role": turn.role,
            "content": [_block_to_anthropic(block) for block in turn.blocks],
        }
        for turn in turns
    ]


def _blocks_from_response(response: object) -> tuple[ContentBlock, ...]:
    content = getattr(response, "content", None)
    if not isinstance(content, Sequence):
        return ()

    blocks: list[ContentBlock] = []
    for block in cast(Sequence[object], content):
        block_type = getattr(block, "type", None)
        if block_type == "text":
            text = getattr(block, "text", None)
            if isinstance(text, str):
                blocks.append(TextBlock(text))
        elif block_type == "tool_use":
            call_id = getattr(block, "id", None)
            name = getattr(block, "name", None)
            input_data = getattr(block, "input", None)
            blocks.append(
                ToolUseBlock(
                    call_id=str(call_id) if call_id is not None else "",
                    name=name if isinstance(name, str) else "",
                    arguments=(
                        dict(cast(Mapping[str, object], input_data))
                        if isinstance(input_data, Mapping)
                        else None
                    ),
                )
            )
    return tuple(blocks)


def _usage_from_response(response: object) -> TokenUsage:
    usage = getattr(response, "usage", None)

    def _count(name: str) -> int:
        value = getattr(usage, name, None)
        if isinstance(value, bool) or not isinstance(value, int):
            return 0
        return max(value, 0)

    return TokenUsage(
        input_tokens=_count("input_tokens"), output_tokens=_count("output_tokens")
    )


def reply_from_anthropic_response(response: object) -> OracleReply:
    """Normalize an Anthropic ``Message`` into an :class:`OracleReply`."""

    blocks = _blocks_from_response(response)
    stop_reason = getattr(response, "stop_reason", None)
    stop: StopKind = (
        _STOP_REASONS.get(stop_reason, "other")
        if isinstance(stop_reason, str)
        else "other"
    )
    if stop == "tool-calls" and not any(isinstance(b, ToolUseBlock) for b in blocks):
        raise OracleError("Anthropic indicated tool_use but no tool calls found.")
    return OracleReply(blocks=blocks, stop=stop, usage=_usage_from_response(response))


class AnthropicOracle:
    """Oracle that sends each exchange to ``client.messages.create``.

    Args:
        model: Model identifier.
        model_config: Sampling parameters merged into each request.
        client: Pre-configured Anthropic client instance. Mutually exclusive with
            client_config.
        client_config: Typed configuration for client instantiation. Used when
            client is not provided.
    """

    def __init__(
        self,
        *,
        model: str = DEFAULT_MODEL,
        model_config: AnthropicModelConfig | None = None,
        client: _AnthropicProtocol | None = None,
        client_config: AnthropicClientConfig | None = None,
    ) -> None:
        super().__init__()
        if client is not None:
            if client_config is not None:
                raise ValueError(
                    "client_config cannot be provided when an explicit client is supplied.",
                )
        else:
            client_kwargs = (client_config or AnthropicClientConfig()).to_client_kwargs()
            client = create_anthropic_client(**client_kwargs)

        self._client = client
        self._model = model
        self._model_config = model_config

    @property
    def model(self) -> str:
        return self._model

    def build_payload(self, request: OracleRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self._model,
            "max_tokens": request.max_tokens,
            "system": request.system,
            "tools": [tool_to_anthropic_spec(spec) for spec in request.tools],
            "messages": _turns_to_messages(request.turns),
        }
        if self._model_config is not None:
            payload.update(self._model_config.to_request_params())
        return payload

    def exchange(self, request: OracleRequest) -> OracleReply:
        payload = self.build_payload(request)
        try:
            response = self._client.messages.create(**payload)
        except Exception as error:
            throttle_error = _normalize_anthropic_throttle(error)
            if throttle_error is not None:
                raise throttle_error from error
            logger.warning(
                "Anthropic request failed.",
                event="oracle.request.failed",
                context={"model": self._model, "error": str(error)},
            )
            raise OracleError(
                f"Anthropic request failed: {error}",
                provider_payload=extract_error_payload(error),
            ) from error
        return reply_from_anthropic_response(response)


__all__ = [
    "DEFAULT_MODEL",
    "AnthropicOracle",
    "AnthropicProtocol",
    "create_anthropic_client",
    "reply_from_anthropic_response",
    "tool_to_anthropic_spec",
]
