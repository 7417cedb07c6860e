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

import sys
import types
from collections.abc import Sequence
from datetime import timedelta
from importlib import import_module as std_import_module
from typing import Any, cast

import pytest

from buildgate.adapters import (
    AnthropicClientConfig,
    AnthropicModelConfig,
    OracleError,
    OracleRequest,
    RateLimitError,
    TextBlock,
    TokenUsage,
    ToolResultBlock,
    ToolUseBlock,
    Turn,
)
from buildgate.adapters import anthropic as anthropic_module
from buildgate.adapters.anthropic import (
    DEFAULT_MODEL,
    AnthropicOracle,
    reply_from_anthropic_response,
)
from buildgate.tools import build_tool_specs


class DummyTextBlock:
    def __init__(self, text: str) -> None:
        self.type = "text"
        self.text = text


class DummyToolUseBlock:
    def __init__(self, call_id: str, name: str, input_data: dict[str, Any]) -> None:
        self.type = "tool_use"
        self.id = call_id
        self.name = name
        self.input = input_data


class DummyUsage:
    def __init__(self, input_tokens: int, output_tokens: int) -> None:
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens


class DummyAnthropicResponse:
    def __init__(
        self,
        content: Sequence[object],
        *,
        stop_reason: str | None = "end_turn",
        usage: DummyUsage | None = None,
    ) -> None:
        self.content = list(content)
        self.stop_reason = stop_reason
        self.usage = usage or DummyUsage(10, 5)


class DummyAnthropicMessagesAPI:
    def __init__(self, responses: Sequence[DummyAnthropicResponse | Exception]) -> None:
        self._responses = list(responses)
        self.requests: list[dict[str, object]] = []

    def create(self, **kwargs: object) -> DummyAnthropicResponse:
        self.requests.append(kwargs)
        if not self._responses:
            raise AssertionError("No responses available")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class DummyAnthropicClient:
    def __init__(self, responses: Sequence[DummyAnthropicResponse | Exception]) -> None:
        self._messages = DummyAnthropicMessagesAPI(responses)

    @property
    def messages(self) -> DummyAnthropicMessagesAPI:
        return self._messages


class DummyStatusError(Exception):
    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        headers: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.headers = headers or {}
        self.body = body


def _request() -> OracleRequest:
    return OracleRequest(
        system="You are a builder.",
        turns=(
            Turn.user_text("Build a site"),
            Turn(
                role="assistant",
                blocks=(
                    TextBlock("Writing"),
                    ToolUseBlock(
                        call_id="t1",
                        name="write_file",
                        arguments={"path": "a", "content": "b"},
                    ),
                ),
            ),
            Turn(
                role="user",
                blocks=(ToolResultBlock(call_id="t1", content="{}", is_error=True),),
            ),
        ),
        tools=build_tool_specs(max_chunk_bytes=8192),
        max_tokens=4096,
    )


def test_create_anthropic_client_requires_optional_dependency(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fail_import(name: str, package: str | None = None) -> types.ModuleType:
        if name == "anthropic":
            raise ModuleNotFoundError("No module named 'anthropic'")
        return std_import_module(name, package)

    monkeypatch.setattr(anthropic_module, "import_module", fail_import)

    with pytest.raises(RuntimeError) as err:
        _ = anthropic_module.create_anthropic_client()

    assert "pip install buildgate[anthropic]" in str(err.value)


def test_oracle_constructs_client_from_config(monkeypatch: pytest.MonkeyPatch) -> None:
    class DummyAnthropic:
        def __init__(self, **kwargs: object) -> None:
            self.kwargs = kwargs
            self.messages = DummyAnthropicMessagesAPI([])

    dummy_module = cast(Any, types.ModuleType("anthropic"))
    dummy_module.Anthropic = DummyAnthropic
    monkeypatch.setitem(sys.modules, "anthropic", dummy_module)

    oracle = AnthropicOracle(client_config=AnthropicClientConfig(api_key="secret"))

    client = cast(DummyAnthropic, oracle._client)
    assert client.kwargs == {"api_key": "secret", "max_retries": 0}
    assert oracle.model == DEFAULT_MODEL


def test_client_and_client_config_are_exclusive() -> None:
    with pytest.raises(ValueError):
        _ = AnthropicOracle(
            client=DummyAnthropicClient([]),
            client_config=AnthropicClientConfig(),
        )


def test_payload_translates_turns_and_tools() -> None:
    oracle = AnthropicOracle(
        model="claude-test",
        model_config=AnthropicModelConfig(temperature=0.2, stop=("END",)),
        client=DummyAnthropicClient([]),
    )

    payload = oracle.build_payload(_request())

    assert payload["model"] == "claude-test"
    assert payload["max_tokens"] == 4096
    assert payload["system"] == "You are a builder."
    assert payload["temperature"] == 0.2
    assert payload["stop_sequences"] == ["END"]
    assert [tool["name"] for tool in payload["tools"]][0] == "write_file"
    assert payload["tools"][0]["input_schema"]["required"] == ["path", "content"]
    assert payload["messages"] == [
        {"role": "user", "content": [{"type": "text", "text": "Build a site"}]},
        {
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Writing"},
                {
                    "type": "tool_use",
                    "id": "t1",
                    "name": "write_file",
                    "input": {"path": "a", "content": "b"},
                },
            ],
        },
        {
            "role": "user",
            "content": [
                {
                    "type": "tool_result",
                    "tool_use_id": "t1",
                    "content": "{}",
                    "is_error": True,
                }
            ],
        },
    ]


def test_exchange_normalizes_tool_calls() -> None:
    response = DummyAnthropicResponse(
        [
            DummyTextBlock("On it."),
            DummyToolUseBlock("toolu_1", "write_file", {"path": "a.txt", "content": "x"}),
        ],
        stop_reason="tool_use",
        usage=DummyUsage(120, 30),
    )
    client = DummyAnthropicClient([response])
    oracle = AnthropicOracle(client=client)

    reply = oracle.exchange(_request())

    assert reply.stop == "tool-calls"
    assert reply.text == "On it."
    assert reply.tool_uses == (
        ToolUseBlock(
            call_id="toolu_1",
            name="write_file",
            arguments={"path": "a.txt", "content": "x"},
        ),
    )
    assert reply.usage == TokenUsage(input_tokens=120, output_tokens=30)
    assert len(client.messages.requests) == 1


@pytest.mark.parametrize(
    ("stop_reason", "expected"),
    [
        ("end_turn", "normal-completion"),
        ("stop_sequence", "normal-completion"),
        ("max_tokens", "length-truncated"),
        ("refusal", "other"),
        (None, "other"),
    ],
)
def test_stop_reasons(stop_reason: str | None, expected: str) -> None:
    reply = reply_from_anthropic_response(
        DummyAnthropicResponse([DummyTextBlock("x")], stop_reason=stop_reason)
    )

    assert reply.stop == expected


def test_truncated_tool_input_is_preserved_as_missing() -> None:
    block = DummyToolUseBlock("t", "write_file", {})
    block.input = None  # type: ignore[assignment]

    reply = reply_from_anthropic_response(
        DummyAnthropicResponse([block], stop_reason="max_tokens")
    )

    assert reply.stop == "length-truncated"
    assert reply.tool_uses[0].arguments is None


def test_tool_use_stop_without_tools_is_an_error() -> None:
    with pytest.raises(OracleError):
        _ = reply_from_anthropic_response(
            DummyAnthropicResponse([DummyTextBlock("x")], stop_reason="tool_use")
        )


@pytest.mark.parametrize("status_code", [429, 529])
def test_throttle_status_becomes_rate_limit_error(status_code: int) -> None:
    error = DummyStatusError(
        "Too many requests",
        status_code=status_code,
        headers={"Retry-After": "12"},
        body={"type": "error"},
    )
    oracle = AnthropicOracle(client=DummyAnthropicClient([error]))

    with pytest.raises(RateLimitError) as err:
        _ = oracle.exchange(_request())

    assert err.value.kind == "TransientRateLimit"
    assert err.value.retry_after == timedelta(seconds=12)
    assert err.value.provider_payload == {"type": "error"}
    assert err.value.__cause__ is error


def test_other_failures_become_oracle_errors() -> None:
    error = DummyStatusError("invalid request", status_code=400)
    oracle = AnthropicOracle(client=DummyAnthropicClient([error]))

    with pytest.raises(OracleError) as err:
        _ = oracle.exchange(_request())

    assert not isinstance(err.value, RateLimitError)
    assert err.value.kind == "OracleFailure"
    assert "invalid request" in err.value.message


def test_overloaded_message_is_throttling() -> None:
    oracle = AnthropicOracle(
        client=DummyAnthropicClient([RuntimeError("Overloaded, try later")])
    )

    with pytest.raises(RateLimitError) as err:
        _ = oracle.exchange(_request())

    assert err.value.retry_after is None


@pytest.mark.parametrize(
    "kwargs",
    [{"temperature": 1.5}, {"top_p": -0.1}, {"top_k": 0}],
)
def test_model_config_rejects_out_of_range_sampling(kwargs: dict[str, Any]) -> None:
    with pytest.raises(ValueError):
        _ = AnthropicModelConfig(**kwargs)


def test_client_config_rejects_negative_retries() -> None:
    with pytest.raises(ValueError, match="max_retries"):
        _ = AnthropicClientConfig(max_retries=-1)
