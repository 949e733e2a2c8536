"""Enforcement gate subsystem."""

from guardrails.engine.enforcer.gate import DEFAULT_FAILURE_REASON, decide, failure_reason

__all__ = ["DEFAULT_FAILURE_REASON", "decide", "failure_reason"]
