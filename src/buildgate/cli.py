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

"""Command line entry point for the ``buildgate`` executable."""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import TextIO

from .adapters import Oracle
from .config import RunConfig, load_run_config
from .contracts import load_contracts
from .driver import ConversationDriver
from .errors import ConfigError
from .report import RunReport
from .runtime.logging import configure_logging, get_logger

API_KEY_ENV = "ANTHROPIC_API_KEY"

type OracleFactory = Callable[[RunConfig], Oracle]


def main(
    argv: Sequence[str] | None = None,
    *,
    env: Mapping[str, str] | None = None,
    oracle_factory: OracleFactory | None = None,
    stdout: TextIO | None = None,
) -> int:
    """Run one generation and return the process exit status.

    Exits 0 only when the run completes and the workspace validates.
    """

    parser = _build_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
    except SystemExit as exc:  # argparse exits with code 2 on errors
        code = exc.code if isinstance(exc.code, int) else 2
        return int(code)

    env_map = os.environ if env is None else env
    out = stdout or sys.stdout
    configure_logging(level=args.log_level, json_mode=args.json_logs, env=env_map)
    logger = get_logger(__name__, context={"component": "cli"})

    try:
        config = load_run_config(
            args.config,
            {
                "request": args.request,
                "project_type": args.project_type,
                "workspace_root": args.workspace,
                "model": args.model,
                "max_turns": args.max_turns,
                "contracts_dir": args.contracts_dir,
            },
            env=env_map,
        )
    except ConfigError as error:
        logger.error(
            "Invalid configuration.",
            event="cli.config_error",
            context={"error": str(error)},
        )
        print(f"❌ {error}", file=sys.stderr)
        return 1

    if oracle_factory is None:
        if not env_map.get(API_KEY_ENV):
            print(f"❌ {API_KEY_ENV} environment variable is required", file=sys.stderr)
            return 1

    try:
        registry = (
            load_contracts(config.contracts_dir)
            if config.contracts_dir is not None
            else None
        )
        oracle = (oracle_factory or _anthropic_oracle)(config)
    except (ConfigError, RuntimeError) as error:
        logger.error(
            "Could not prepare the run.",
            event="cli.setup_error",
            context={"error": str(error)},
        )
        print(f"❌ {error}", file=sys.stderr)
        return 1

    report = ConversationDriver(config, oracle, registry=registry).run()
    if args.report_json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False), file=out)
    else:
        print(render_report(report, workspace_root=config.workspace_root), file=out)
    return 0 if report.success else 1


def _anthropic_oracle(config: RunConfig) -> Oracle:
    from .adapters.anthropic import AnthropicOracle

    return AnthropicOracle(model=config.model)


def render_report(report: RunReport, *, workspace_root: Path) -> str:
    """Human-readable summary of a finished run."""

    rule = "=" * 48
    lines = [rule]
    if report.trip is not None:
        lines.extend(
            [
                "❌ Generation stopped by circuit breaker",
                f"   Tool: {report.trip.tool}",
                f"   Path: {report.trip.path or 'N/A'}",
                f"   Error: {report.trip.last_error}",
                f"   Hint: {report.trip.hint}",
            ]
        )
    elif report.success:
        lines.append("✅ Generation finished")
    else:
        lines.append(f"❌ Generation ended: {report.outcome}")
    lines.extend(f"   - {error}" for error in report.errors)
    lines.extend(f"   ⚠️ {warning}" for warning in report.warnings)

    lines.append(f"📁 Contents of {workspace_root}:")
    lines.append(f"total {len(report.listing)}")
    lines.extend(
        f"{'📂' if item.kind == 'directory' else '📄'} {item.name}"
        for item in report.listing
    )
    lines.append(rule)

    usage = report.usage
    lines.extend(
        [
            f"💰 Total tokens: {usage.total_tokens}",
            f"   Input:  {usage.input_tokens}",
            f"   Output: {usage.output_tokens}",
            f"   Cost:   ~${report.cost_usd:.4f}",
            f"   Turns:  {report.turns}",
        ]
    )
    return "\n".join(lines)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildgate",
        description="Generate a project into a sandboxed workspace with a manifest-gated model run.",
    )
    _ = parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="TOML or YAML configuration file.",
    )
    _ = parser.add_argument(
        "--request",
        default=None,
        help="Generation request (defaults to the PROMPT environment variable).",
    )
    _ = parser.add_argument(
        "--project-type",
        default=None,
        help="static, node-api, fullstack-framework or spa-framework (inferred when omitted).",
    )
    _ = parser.add_argument(
        "--workspace",
        type=Path,
        default=None,
        help="Workspace root (defaults to OUTPUT_DIR or /workspace).",
    )
    _ = parser.add_argument("--model", default=None, help="Model identifier.")
    _ = parser.add_argument(
        "--max-turns", type=int, default=None, help="Maximum conversation turns."
    )
    _ = parser.add_argument(
        "--contracts-dir",
        type=Path,
        default=None,
        help="Directory of contract documents replacing the built-in contracts.",
    )
    _ = parser.add_argument(
        "--report-json",
        action="store_true",
        help="Print the final report as JSON instead of a summary.",
    )
    _ = parser.add_argument(
        "--log-level",
        choices=("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"),
        default=None,
        help="Override the log level emitted by the CLI.",
    )
    _ = parser.add_argument(
        "--json-logs",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Emit structured JSON logs (disable with --no-json-logs).",
    )
    return parser


__all__ = ["API_KEY_ENV", "OracleFactory", "main", "render_report"]
