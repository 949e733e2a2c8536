"""Domain layer: immutable guardrails entities and value objects.

Re-exports the public model surface so consumers can write::

    from guardrails.domain import Check, CheckStatus, PostureSnapshot
"""
from __future__ import annotations

from guardrails.domain.entities import (
    Check,
    CheckStatus,
    EnforcementOutcome,
    PostureLevel,
    PostureSnapshot,
)
from guardrails.domain.value_objects import (
    EnforcementMode,
    Scenario,
    SeverityLevel,
    SeveritySummary,
)

__all__: list[str] = [
    "Check",
    "CheckStatus",
    "EnforcementMode",
    "EnforcementOutcome",
    "PostureLevel",
    "PostureSnapshot",
    "Scenario",
    "SeverityLevel",
    "SeveritySummary",
]
