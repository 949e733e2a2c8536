"""Value objects for the guardrails domain layer."""
from __future__ import annotations

from guardrails.domain.value_objects.mode import EnforcementMode, Scenario
from guardrails.domain.value_objects.severity import (
    MAX_AFFECTED_PACKAGES,
    SeverityLevel,
    SeveritySummary,
)

__all__: list[str] = [
    "MAX_AFFECTED_PACKAGES",
    "EnforcementMode",
    "Scenario",
    "SeverityLevel",
    "SeveritySummary",
]
