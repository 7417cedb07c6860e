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

"""Manifest-gated conversation loop.

A run moves from ``AwaitingManifest`` to ``Writing`` once the manifest gate
accepts a file plan, and ends in exactly one :data:`RunOutcome`. Whatever
the outcome, the workspace is validated and listed before the report is
built, so partial artifacts are always inspected.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from .adapters import (
    ContentBlock,
    Oracle,
    OracleError,
    OracleReply,
    OracleRequest,
    RateLimitError,
    TextBlock,
    ThrottleProviders,
    TokenUsage,
    ToolResultBlock,
    ToolUseBlock,
    Turn,
    jittered_backoff,
    sleep_for,
)
from .breaker import CircuitBreaker, CircuitTrip, FailureKey
from .config import RunConfig
from .contracts import (
    Contract,
    ContractRegistry,
    ProjectType,
    default_registry,
    load_contracts,
    resolve_project_type,
)
from .manifest import ManifestGate, ManifestParser
from .prompts import (
    MANIFEST_PENDING_ERROR,
    MANIFEST_REMINDER,
    MANIFEST_TRUNCATED,
    manifest_acknowledgment,
    render_system_prompt,
    truncation_nudge,
)
from .report import RunOutcome, RunReport, estimate_cost
from .runtime.logging import StructuredLogger, get_logger
from .tools import ToolDispatcher, ToolResult, build_tool_specs, failure_target
from .tools.dispatcher import logger as dispatcher_logger
from .validator import WorkspaceValidator
from .workspace import FileEntry, WorkspaceError, WorkspaceGateway

logger: StructuredLogger = get_logger(__name__, context={"component": "driver"})

DriverPhase = Literal["AwaitingManifest", "Writing"]


class ConversationState:
    """Append-only dialogue of one run. Never shared between runs."""

    def __init__(self, initial: Sequence[Turn] = ()) -> None:
        super().__init__()
        self._turns: list[Turn] = list(initial)

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)


class _TurnBudgetSpent(Exception):
    """A rate-limited retry needed a turn the budget no longer has."""


@dataclass(slots=True)
class _Run:
    """Mutable bookkeeping for one run."""

    run_id: str
    gateway: WorkspaceGateway
    dispatcher: ToolDispatcher
    breaker: CircuitBreaker
    gate: ManifestGate
    conversation: ConversationState
    logger: StructuredLogger
    phase: DriverPhase = "AwaitingManifest"
    turn_count: int = 0
    usage: TokenUsage = TokenUsage()
    outcome: RunOutcome | None = None
    errors: list[str] = field(default_factory=list[str])
    trip: CircuitTrip | None = None


class ConversationDriver:
    """Drives one oracle through a bounded, sequential generation run.

    Args:
        config: Tunables for the run.
        oracle: The model to converse with.
        registry: Contract lookup. Defaults to documents in
            ``config.contracts_dir`` when set, otherwise the built-in contracts.
        throttle_providers: Sleeper and jitter used while waiting out rate
            limits.
        manifest_parser: Replaces the tolerant manifest parser.
    """

    def __init__(
        self,
        config: RunConfig,
        oracle: Oracle,
        *,
        registry: ContractRegistry | None = None,
        throttle_providers: ThrottleProviders | None = None,
        manifest_parser: ManifestParser | None = None,
    ) -> None:
        super().__init__()
        self._config = config
        self._oracle = oracle
        self._registry = registry
        self._throttle_policy = config.throttle_policy()
        self._throttle_providers = throttle_providers
        self._manifest_parser = manifest_parser

    def run(self) -> RunReport:
        """Execute a full run and return its report. Never raises for oracle failures."""

        config = self._config
        project_type = resolve_project_type(config.request, config.project_type)
        contract = self._contract_registry().get(project_type)
        run = self._start(project_type, contract)
        run.logger.info(
            "Run started.",
            event="driver.run.start",
            context={
                "model": config.model,
                "max_turns": config.max_turns,
                "workspace_root": str(config.workspace_root),
                "contract": contract is not None,
            },
        )

        request_template = OracleRequest(
            system=render_system_prompt(
                project_type=project_type,
                contract=contract,
                max_file_bytes=config.max_file_bytes,
                max_chunk_bytes=config.max_chunk_bytes,
                project_budget_bytes=config.project_budget_bytes,
            ),
            turns=(),
            tools=build_tool_specs(max_chunk_bytes=config.max_chunk_bytes),
            max_tokens=config.max_reply_tokens,
        )

        while run.outcome is None:
            if run.turn_count >= config.max_turns:
                run.outcome = "TurnBudgetExceeded"
                run.errors.append(f"Reached maximum turns ({config.max_turns}).")
                break
            run.turn_count += 1
            run.logger.debug(
                "Turn started.",
                event="driver.turn.start",
                context={"turn": run.turn_count, "phase": run.phase},
            )
            try:
                reply = self._exchange(
                    run, request_template.update(turns=run.conversation.turns)
                )
            except _TurnBudgetSpent:
                run.outcome = "TurnBudgetExceeded"
                run.errors.append(
                    f"Reached maximum turns ({config.max_turns}) while rate limited."
                )
                break
            except OracleError as error:
                run.outcome = "OracleFailed"
                run.errors.append(f"{error.kind}: {error.message}")
                break

            self._record_reply(run, reply)
            if run.phase == "AwaitingManifest":
                self._admit_manifest(run, reply)
            else:
                self._write_turn(run, reply)

        return self._finish(run, project_type, contract)

    def _contract_registry(self) -> ContractRegistry:
        if self._registry is not None:
            return self._registry
        if self._config.contracts_dir is not None:
            return load_contracts(self._config.contracts_dir)
        return default_registry()

    def _start(self, project_type: ProjectType, contract: Contract | None) -> _Run:
        config = self._config
        run_id = uuid.uuid4().hex
        gateway = WorkspaceGateway(
            str(config.workspace_root),
            max_file_bytes=config.max_file_bytes,
            max_chunk_bytes=config.max_chunk_bytes,
        )
        return _Run(
            run_id=run_id,
            gateway=gateway,
            dispatcher=ToolDispatcher(
                gateway, logger_override=dispatcher_logger.bind(run_id=run_id)
            ),
            breaker=CircuitBreaker(
                failures=dict[FailureKey, int](), threshold=config.failure_threshold
            ),
            gate=ManifestGate(
                contract,
                max_file_bytes=config.max_file_bytes,
                project_budget_bytes=config.project_budget_bytes,
                parser=self._manifest_parser,
            ),
            conversation=ConversationState((Turn.user_text(config.request),)),
            logger=logger.bind(run_id=run_id, project_type=project_type.value),
        )

    def _exchange(self, run: _Run, request: OracleRequest) -> OracleReply:
        """Send ``request``, waiting out rate limits on the same turn."""

        policy = self._throttle_policy
        retries = 0
        while True:
            try:
                return self._oracle.exchange(request)
            except RateLimitError as error:
                if retries >= policy.max_retries:
                    raise
                retries += 1
                delay = jittered_backoff(
                    policy=policy,
                    attempt=retries,
                    retry_after=error.retry_after,
                    providers=self._throttle_providers,
                )
                run.logger.warning(
                    "Oracle rate limited; waiting before retrying the turn.",
                    event="driver.rate_limited",
                    context={
                        "turn": run.turn_count,
                        "retry": retries,
                        "delay_seconds": delay.total_seconds(),
                    },
                )
                sleep_for(delay, providers=self._throttle_providers)
                if policy.consumes_turn:
                    if run.turn_count >= self._config.max_turns:
                        raise _TurnBudgetSpent from error
                    run.turn_count += 1

    def _record_reply(self, run: _Run, reply: OracleReply) -> None:
        run.usage = run.usage + reply.usage
        run.conversation.append(reply.as_turn())
        run.logger.info(
            "Oracle replied.",
            event="driver.turn.reply",
            context={
                "turn": run.turn_count,
                "stop": reply.stop,
                "tool_calls": len(reply.tool_uses),
                "input_tokens": reply.usage.input_tokens,
                "output_tokens": reply.usage.output_tokens,
            },
        )

    def _admit_manifest(self, run: _Run, reply: OracleReply) -> None:
        tool_uses = reply.tool_uses
        candidate = run.gate.find(reply.text)
        if candidate is None:
            if tool_uses:
                run.outcome = "ProtocolViolation"
                names = ", ".join(tool_use.name for tool_use in tool_uses)
                run.errors.append(
                    f"ProtocolViolation: tool calls ({names}) requested before a "
                    "manifest was accepted."
                )
                run.logger.error(
                    "Tool calls before manifest approval.",
                    event="driver.protocol_violation",
                    context={"turn": run.turn_count, "tools": names},
                )
                return
            if reply.stop == "length-truncated":
                run.logger.warning(
                    "Reply truncated before the manifest was complete.",
                    event="driver.truncated",
                    context={"turn": run.turn_count, "phase": run.phase},
                )
                run.conversation.append(Turn.user_text(MANIFEST_TRUNCATED))
                return
            run.conversation.append(Turn.user_text(MANIFEST_REMINDER))
            return

        decision = run.gate.admit(candidate)
        if decision.manifest is None or not decision.accepted:
            run.outcome = "ManifestRejected"
            run.errors.extend(str(violation) for violation in decision.violations)
            run.logger.error(
                "Manifest rejected.",
                event="driver.manifest.rejected",
                context={
                    "turn": run.turn_count,
                    "violations": [str(v) for v in decision.violations],
                },
            )
            return

        run.phase = "Writing"
        manifest = decision.manifest
        run.logger.info(
            "Manifest accepted.",
            event="driver.manifest.accepted",
            context={
                "turn": run.turn_count,
                "files": len(manifest.entries),
                "estimated_bytes": manifest.total_bytes,
            },
        )
        pending = ToolResult.failure(MANIFEST_PENDING_ERROR, kind="ManifestPending")
        blocks: list[ContentBlock] = [
            ToolResultBlock(
                call_id=tool_use.call_id, content=pending.render(), is_error=True
            )
            for tool_use in tool_uses
        ]
        blocks.append(TextBlock(manifest_acknowledgment(manifest)))
        run.conversation.append(Turn(role="user", blocks=tuple(blocks)))

    def _write_turn(self, run: _Run, reply: OracleReply) -> None:
        truncated = reply.stop == "length-truncated"
        tool_uses = reply.tool_uses
        if not tool_uses:
            if truncated:
                self._nudge(run, [])
                return
            run.outcome = "Completed"
            return

        blocks: list[ContentBlock] = []
        for tool_use in tool_uses:
            result = self._dispatch(run, tool_use)
            blocks.append(
                ToolResultBlock(
                    call_id=tool_use.call_id,
                    content=result.render(),
                    is_error=not result.success,
                )
            )
            if run.outcome is not None:
                return

        if truncated:
            self._nudge(run, blocks)
            return
        run.conversation.append(Turn(role="user", blocks=tuple(blocks)))

    def _dispatch(self, run: _Run, tool_use: ToolUseBlock) -> ToolResult:
        result = run.dispatcher.execute(
            tool_use.name, tool_use.arguments, call_id=tool_use.call_id
        )
        raw_path = (tool_use.arguments or {}).get("path")
        key: FailureKey = (
            tool_use.name,
            failure_target(tool_use.arguments, tool_use.call_id),
        )
        trip = run.breaker.record(
            key,
            result,
            path=raw_path if isinstance(raw_path, str) else None,
            call_id=tool_use.call_id,
        )
        if trip is not None:
            run.trip = trip
            run.outcome = "CircuitBroken"
            run.errors.append(
                f"CircuitBroken: {trip.tool}({trip.path or trip.call_id!r}) failed "
                f"{trip.failures} times. Last error: {trip.last_error}"
            )
            run.logger.error(
                "Circuit breaker tripped.",
                event="driver.circuit_broken",
                context={
                    "tool": trip.tool,
                    "path": trip.path,
                    "failures": trip.failures,
                    "last_error": trip.last_error,
                },
            )
        return result

    def _nudge(self, run: _Run, blocks: list[ContentBlock]) -> None:
        run.logger.warning(
            "Reply truncated by the length limit; nudging to continue.",
            event="driver.truncated",
            context={"turn": run.turn_count, "tool_results": len(blocks)},
        )
        nudge = truncation_nudge(max_chunk_bytes=self._config.max_chunk_bytes)
        blocks.append(TextBlock(nudge))
        run.conversation.append(Turn(role="user", blocks=tuple(blocks)))

    def _finish(
        self, run: _Run, project_type: ProjectType, contract: Contract | None
    ) -> RunReport:
        config = self._config
        validation = WorkspaceValidator(
            run.gateway,
            contract,
            max_file_bytes=config.max_file_bytes,
            warn_file_bytes=config.warn_file_bytes,
        ).validate()

        outcome = run.outcome or "TurnBudgetExceeded"
        if outcome == "Completed" and not validation.ok:
            outcome = "ValidationFailed"

        report = RunReport(
            outcome=outcome,
            project_type=project_type.value,
            turns=run.turn_count,
            usage=run.usage,
            cost_usd=estimate_cost(
                run.usage,
                input_cost_per_mtok=config.input_cost_per_mtok,
                output_cost_per_mtok=config.output_cost_per_mtok,
            ),
            errors=(*run.errors, *(str(issue) for issue in validation.errors)),
            warnings=tuple(str(issue) for issue in validation.warnings),
            trip=run.trip,
            manifest=run.gate.manifest,
            listing=self._listing(run),
        )
        run.logger.info(
            "Run finished.",
            event="driver.run.finished",
            context={
                "outcome": report.outcome,
                "turns": report.turns,
                "total_tokens": report.usage.total_tokens,
                "cost_usd": round(report.cost_usd, 4),
            },
        )
        return report

    @staticmethod
    def _listing(run: _Run) -> tuple[FileEntry, ...]:
        try:
            return tuple(run.gateway.list("."))
        except WorkspaceError:
            run.logger.exception(
                "Could not list workspace contents.",
                event="driver.listing.failed",
                context={"workspace_root": run.gateway.root},
            )
            return ()


__all__ = ["ConversationDriver", "ConversationState", "DriverPhase"]
