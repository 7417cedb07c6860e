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

"""Repeated-failure circuit breaker keyed by ``(tool, target path)``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from .dataclasses import FrozenDataclass
from .tools import ToolResult

DEFAULT_FAILURE_THRESHOLD: Final[int] = 3

DEFAULT_TRIP_HINT: Final[str] = (
    "Try breaking the file into smaller chunks with write_file (first) + "
    "append_file (subsequent)."
)

type FailureKey = tuple[str, str]
"""``(tool_name, target)`` where target is the path or, failing that, the call id."""


@FrozenDataclass()
class CircuitTrip:
    """Details of the key that tripped the breaker."""

    tool: str
    path: str | None
    call_id: str
    last_error: str
    hint: str
    failures: int


@dataclass(slots=True)
class CircuitBreaker:
    """Counts consecutive failures per :data:`FailureKey`.

    The counter map is owned by the caller and passed in, so every run gets
    a fresh map and nothing is shared between runs. Keys never share a
    counter; a success on a key deletes its counter.
    """

    failures: dict[FailureKey, int] = field(default_factory=dict[FailureKey, int])
    threshold: int = DEFAULT_FAILURE_THRESHOLD

    def __post_init__(self) -> None:
        if self.threshold < 1:
            msg = "Circuit breaker threshold must be at least 1."
            raise ValueError(msg)

    def count(self, key: FailureKey) -> int:
        return self.failures.get(key, 0)

    def record(
        self,
        key: FailureKey,
        result: ToolResult,
        *,
        path: str | None = None,
        call_id: str = "",
    ) -> CircuitTrip | None:
        """Record ``result`` for ``key`` and return a trip once the threshold is hit."""

        if result.success:
            _ = self.failures.pop(key, None)
            return None

        failures = self.failures.get(key, 0) + 1
        self.failures[key] = failures
        if failures < self.threshold:
            return None

        return CircuitTrip(
            tool=key[0],
            path=path,
            call_id=call_id,
            last_error=result.error or "unknown error",
            hint=result.hint or DEFAULT_TRIP_HINT,
            failures=failures,
        )


__all__ = [
    "DEFAULT_FAILURE_THRESHOLD",
    "DEFAULT_TRIP_HINT",
    "CircuitBreaker",
    "CircuitTrip",
    "FailureKey",
]
