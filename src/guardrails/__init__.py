"""Guardrails preflight platform.

Inspects dependency pinning, lockfile consistency and vulnerability-audit
results, reduces them to one posture, and gates sensitive actions on it.
"""

from guardrails.client import (
    GuardedClient,
    GuardrailsOptions,
    assert_guardrails,
    guarded,
    guarded_call,
    preflight_guardrails,
)
from guardrails.domain import (
    Check,
    CheckStatus,
    EnforcementMode,
    EnforcementOutcome,
    PostureLevel,
    PostureSnapshot,
    Scenario,
    SeveritySummary,
)
from guardrails.engine import PreflightConfig, PreflightEngine, decide, evaluate
from guardrails.shared.exceptions import (
    GuardrailsError,
    GuardrailsUnavailableError,
    GuardrailsViolationError,
    PreflightTransportError,
    SnapshotReadError,
)

__version__ = "1.0.0"

__all__ = [
    "Check",
    "CheckStatus",
    "EnforcementMode",
    "EnforcementOutcome",
    "GuardedClient",
    "GuardrailsError",
    "GuardrailsOptions",
    "GuardrailsUnavailableError",
    "GuardrailsViolationError",
    "PostureLevel",
    "PostureSnapshot",
    "PreflightConfig",
    "PreflightEngine",
    "PreflightTransportError",
    "Scenario",
    "SeveritySummary",
    "SnapshotReadError",
    "assert_guardrails",
    "decide",
    "evaluate",
    "guarded",
    "guarded_call",
    "preflight_guardrails",
]
