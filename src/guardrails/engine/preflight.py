"""Preflight engine: run every check and produce a posture snapshot.

Composes the structural check runner, the audit policy check, and the
policy evaluator.  The audit subprocess is the dominant cost, so it runs
concurrently with the structural checks; display order stays fixed.

Each :meth:`PreflightEngine.run` call yields a new, complete snapshot and
shares no mutable state with concurrent runs.

@GL-governed
@GL-layer: GL30-49
@GL-semantic: guardrails-preflight
"""
from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path

import structlog
from pydantic import ValidationError

from guardrails.domain.entities.outcome import EnforcementOutcome
from guardrails.domain.entities.posture import PostureSnapshot
from guardrails.domain.value_objects.mode import EnforcementMode, Scenario
from guardrails.engine.audit.audit_check import run_audit_check
from guardrails.engine.config import PreflightConfig
from guardrails.engine.enforcer.gate import decide
from guardrails.engine.evaluator.policy_evaluator import evaluate
from guardrails.engine.evaluator.scenarios import simulate_version_mismatch
from guardrails.engine.runner.check_runner import CheckRunner
from guardrails.shared.exceptions import SnapshotReadError

logger = structlog.get_logger(__name__)


class PreflightEngine:
    """Runs the guardrails preflight for one project.

    Usage::

        engine = PreflightEngine(PreflightConfig(repo_root=Path(".")))
        snapshot = await engine.run()
        outcome = await engine.run_and_decide(EnforcementMode.ENFORCED)
    """

    def __init__(self, config: PreflightConfig) -> None:
        self._config = config
        self._runner = CheckRunner(config)

    @property
    def config(self) -> PreflightConfig:
        return self._config

    async def run(self, *, scenario: Scenario | None = None) -> PostureSnapshot:
        """Run all checks and return a fresh snapshot.

        Args:
            scenario: Optional injected fault applied after evaluation.
        """
        cfg = self._config
        # A failure in either branch cancels the other, killing the audit child
        try:
            async with asyncio.TaskGroup() as group:
                structural_task = group.create_task(self._runner.run())
                audit_task = group.create_task(
                    run_audit_check(
                        cfg.audit_command,
                        cwd=cfg.repo_root,
                        timeout=cfg.audit_timeout_seconds,
                        tool_label=cfg.audit_label,
                    )
                )
        except ExceptionGroup as errors:
            raise errors.exceptions[0] from errors
        structural = structural_task.result()
        audit = audit_task.result()

        snapshot = evaluate([*structural.checks, audit], structural.lockfile_sha256)

        if scenario == Scenario.VERSION_MISMATCH:
            location = (
                structural.lockfile_entry.location
                if structural.lockfile_entry is not None
                else f'packages["node_modules/{cfg.target_dependency}"]'
            )
            snapshot = simulate_version_mismatch(
                snapshot,
                check_name=self._runner.names.version_alignment,
                location=location,
                pinned_version=structural.pinned_version,
            )

        logger.info(
            "preflight_complete",
            overall=snapshot.overall.value,
            scenario=scenario.value if scenario else None,
            lockfile_sha256=snapshot.lockfile_sha256,
        )
        return snapshot

    async def run_and_decide(
        self,
        mode: EnforcementMode,
        *,
        scenario: Scenario | None = None,
    ) -> EnforcementOutcome:
        """Run the preflight and pass the snapshot through the gate."""
        snapshot = await self.run(scenario=scenario)
        snapshot = snapshot.annotate(
            bypass_enabled=mode == EnforcementMode.BYPASS,
            simulated_scenario=scenario,
        )
        return decide(snapshot, mode, source="local")


# ---------------------------------------------------------------------------
# Snapshot artifact
# ---------------------------------------------------------------------------


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


async def write_snapshot(snapshot: PostureSnapshot, path: Path) -> Path:
    """Write *snapshot* as indented JSON, replacing any previous artifact."""
    text = json.dumps(snapshot.to_payload(), indent=2) + "\n"
    await asyncio.to_thread(_write_atomic, path, text)
    logger.info("snapshot_written", path=str(path), overall=snapshot.overall.value)
    return path


async def read_snapshot(path: Path) -> PostureSnapshot:
    """Read and validate a snapshot artifact.

    Raises:
        SnapshotReadError: when the file is missing, not JSON, or not a
            valid guardrails payload.
    """
    try:
        raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
        return PostureSnapshot.from_payload(json.loads(raw))
    except (OSError, UnicodeDecodeError, ValueError, RecursionError) as exc:
        # ValidationError and JSONDecodeError are both ValueError subclasses
        reason = (
            f"{path.name} does not contain a valid guardrails payload"
            if isinstance(exc, ValidationError)
            else str(exc)
        )
        raise SnapshotReadError(
            f"could not read posture snapshot: {reason}",
            context={"path": str(path)},
        ) from exc
