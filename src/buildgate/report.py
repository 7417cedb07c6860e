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

"""Terminal run report."""

from __future__ import annotations

from typing import Any, Final, Literal

from .adapters import TokenUsage
from .breaker import CircuitTrip
from .dataclasses import FrozenDataclass
from .manifest import Manifest
from .workspace import FileEntry

RunOutcome = Literal[
    "Completed",
    "ManifestRejected",
    "ProtocolViolation",
    "CircuitBroken",
    "ValidationFailed",
    "TurnBudgetExceeded",
    "OracleFailed",
]

DEFAULT_INPUT_COST_PER_MTOK: Final[float] = 3.0
DEFAULT_OUTPUT_COST_PER_MTOK: Final[float] = 15.0


def estimate_cost(
    usage: TokenUsage,
    *,
    input_cost_per_mtok: float = DEFAULT_INPUT_COST_PER_MTOK,
    output_cost_per_mtok: float = DEFAULT_OUTPUT_COST_PER_MTOK,
) -> float:
    """Rough USD cost of ``usage`` at per-million-token prices."""

    return (
        usage.input_tokens / 1_000_000 * input_cost_per_mtok
        + usage.output_tokens / 1_000_000 * output_cost_per_mtok
    )


@FrozenDataclass()
class RunReport:
    """Everything the caller learns about a finished run.

    ``errors`` holds the terminal diagnostics (manifest violations, protocol
    or oracle failures) followed by the validator's errors. The listing is
    the top level of the workspace after the run.
    """

    outcome: RunOutcome
    project_type: str
    turns: int
    usage: TokenUsage
    cost_usd: float
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    trip: CircuitTrip | None = None
    manifest: Manifest | None = None
    listing: tuple[FileEntry, ...] = ()

    @property
    def success(self) -> bool:
        return self.outcome == "Completed"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "outcome": self.outcome,
            "project_type": self.project_type,
            "turns": self.turns,
            "tokens": {
                "input": self.usage.input_tokens,
                "output": self.usage.output_tokens,
                "total": self.usage.total_tokens,
            },
            "cost_usd": round(self.cost_usd, 4),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "listing": [{"name": item.name, "type": item.kind} for item in self.listing],
        }
        if self.trip is not None:
            payload["circuit_breaker"] = {
                "tool": self.trip.tool,
                "path": self.trip.path,
                "tool_use_id": self.trip.call_id,
                "last_error": self.trip.last_error,
                "hint": self.trip.hint,
                "failures": self.trip.failures,
            }
        if self.manifest is not None:
            payload["manifest"] = self.manifest.summary()
        return payload


__all__ = [
    "DEFAULT_INPUT_COST_PER_MTOK",
    "DEFAULT_OUTPUT_COST_PER_MTOK",
    "RunOutcome",
    "RunReport",
    "estimate_cost",
]
