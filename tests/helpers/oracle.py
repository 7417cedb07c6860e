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

"""Scripted oracle and throttle providers for driver tests."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from datetime import timedelta

from buildgate.adapters import (
    OracleReply,
    OracleRequest,
    StopKind,
    TextBlock,
    ThrottleProviders,
    TokenUsage,
    ToolUseBlock,
)


class ScriptedOracle:
    """Replays a fixed list of replies or exceptions, recording each request."""

    def __init__(self, script: Sequence[OracleReply | Exception]) -> None:
        super().__init__()
        self._script = list(script)
        self.requests: list[OracleRequest] = []

    def exchange(self, request: OracleRequest) -> OracleReply:
        self.requests.append(request)
        if not self._script:
            raise AssertionError("ScriptedOracle ran out of replies")
        step = self._script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step

    @property
    def remaining(self) -> int:
        return len(self._script)


class RecordingSleeper:
    """Collects requested delays instead of sleeping."""

    def __init__(self) -> None:
        super().__init__()
        self.delays: list[timedelta] = []

    def __call__(self, delay: timedelta) -> None:
        self.delays.append(delay)


class FixedJitter:
    """Returns ``low + (high - low) * factor``."""

    def __init__(self, factor: float = 1.0) -> None:
        super().__init__()
        self._factor = factor

    def __call__(self, low: float, high: float) -> float:
        return low + (high - low) * self._factor


def recording_providers() -> tuple[ThrottleProviders, RecordingSleeper]:
    sleeper = RecordingSleeper()
    return ThrottleProviders(sleeper=sleeper, jitter=FixedJitter()), sleeper


USAGE = TokenUsage(input_tokens=100, output_tokens=20)


def manifest_text(files: Iterable[tuple[str, int]], *, preamble: str = "Plan:") -> str:
    payload = {
        "files": [
            {"path": path, "purpose": f"{path} file", "estimatedBytes": size}
            for path, size in files
        ]
    }
    return f"{preamble}\n\n```json\n{json.dumps(payload)}\n```\n"


def text_reply(text: str, *, stop: StopKind = "normal-completion") -> OracleReply:
    return OracleReply(blocks=(TextBlock(text),), stop=stop, usage=USAGE)


def tool_use(call_id: str, name: str, **arguments: object) -> ToolUseBlock:
    return ToolUseBlock(call_id=call_id, name=name, arguments=arguments)


def tool_reply(
    *calls: ToolUseBlock, text: str = "", stop: StopKind = "tool-calls"
) -> OracleReply:
    blocks: tuple[TextBlock | ToolUseBlock, ...] = (
        (TextBlock(text), *calls) if text else calls
    )
    return OracleReply(blocks=blocks, stop=stop, usage=USAGE)


__all__ = [
    "USAGE",
    "FixedJitter",
    "RecordingSleeper",
    "ScriptedOracle",
    "manifest_text",
    "recording_providers",
    "text_reply",
    "tool_reply",
    "tool_use",
]
