"""Guardrails domain entities."""
from __future__ import annotations

from guardrails.domain.entities.check import Check, CheckStatus
from guardrails.domain.entities.outcome import EnforcementOutcome
from guardrails.domain.entities.posture import PostureLevel, PostureSnapshot

__all__: list[str] = [
    "Check",
    "CheckStatus",
    "EnforcementOutcome",
    "PostureLevel",
    "PostureSnapshot",
]
