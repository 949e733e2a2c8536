"""Policy evaluation -- worst-status-wins reduction and injected scenarios."""

from guardrails.engine.evaluator.policy_evaluator import evaluate, overall_for
from guardrails.engine.evaluator.scenarios import drifted_version, simulate_version_mismatch

__all__ = ["drifted_version", "evaluate", "overall_for", "simulate_version_mismatch"]
