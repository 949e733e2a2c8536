"""Command-line entry points.

``guardrails-preflight`` runs every check, writes the snapshot artifact, and
exits 1 when the posture is red (0 otherwise).  It is also the default
command the local-script posture source runs.
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Sequence

import structlog

from guardrails.domain.value_objects.mode import Scenario
from guardrails.engine.config import PreflightConfig
from guardrails.engine.preflight import PreflightEngine, write_snapshot
from guardrails.shared.config import settings
from guardrails.shared.logging import bind_run_id, setup_logging

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="guardrails", description="Guardrails preflight")
    sub = parser.add_subparsers(dest="command", required=True)

    pre = sub.add_parser("preflight", help="run checks and write the status artifact")
    pre.add_argument("--repo-root", type=Path, default=None, help="project root (default: settings)")
    pre.add_argument("--status-path", default=None, help="artifact path relative to the repo root")
    pre.add_argument(
        "--simulate",
        choices=[scenario.value for scenario in Scenario],
        default=None,
        help="inject a fault scenario",
    )
    pre.add_argument("--audit-timeout", type=float, default=None, help="audit timeout in seconds")
    return parser


async def run_preflight(config: PreflightConfig, scenario: Scenario | None) -> int:
    engine = PreflightEngine(config)
    snapshot = await engine.run(scenario=scenario)
    await write_snapshot(snapshot, config.status_file)
    return 1 if snapshot.is_red else 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=settings.log_level, json_output=settings.log_json, environment=settings.environment)

    config = PreflightConfig.from_settings(settings)
    updates: dict[str, object] = {}
    if args.repo_root is not None:
        updates["repo_root"] = args.repo_root
    if args.status_path is not None:
        updates["status_path"] = args.status_path
    if args.audit_timeout is not None:
        updates["audit_timeout_seconds"] = args.audit_timeout
    if updates:
        config = PreflightConfig.model_validate({**config.model_dump(), **updates})

    scenario = Scenario(args.simulate) if args.simulate else None
    bind_run_id()
    try:
        return asyncio.run(run_preflight(config, scenario))
    except OSError as exc:
        logger.error("preflight_failed", error=str(exc))
        print(f"Preflight failed to execute: {exc}", file=sys.stderr)
        return 1


def preflight_main() -> None:
    """Entry point for the ``guardrails-preflight`` console script."""
    sys.exit(main(["preflight", *sys.argv[1:]]))


if __name__ == "__main__":
    sys.exit(main())
