"""Guardrails preflight engine.

Coordinates the preflight: structural checks and audit policy check, reduced
by the policy evaluator to one posture snapshot, consulted per action by the
enforcement gate.

Exports:
    PreflightEngine  -- Runs all checks and produces a snapshot.
    PreflightConfig  -- Project layout and audit tool settings.
    CheckRunner      -- Structural manifest and lockfile checks.
    decide           -- Pure block/allow decision for a snapshot and mode.
    evaluate         -- Worst-status-wins reduction of checks.
"""

from guardrails.engine.config import PreflightConfig
from guardrails.engine.enforcer.gate import decide
from guardrails.engine.evaluator.policy_evaluator import evaluate
from guardrails.engine.preflight import PreflightEngine, read_snapshot, write_snapshot
from guardrails.engine.runner.check_runner import CheckRunner

__all__ = [
    "CheckRunner",
    "PreflightConfig",
    "PreflightEngine",
    "decide",
    "evaluate",
    "read_snapshot",
    "write_snapshot",
]
