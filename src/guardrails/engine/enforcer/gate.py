"""Enforcement gate: the single block/allow decision point.

:func:`decide` is pure.  Identical inputs always yield identical outcomes,
and no state is kept between calls, so the API boundary and the in-process
wrapper always agree.

* ``BYPASS``: never blocked; ``reason`` is still set for a red posture so
  callers can warn that the action *would* have been blocked.
* ``ENFORCED``: blocked exactly when the posture is red.

@GL-governed
@GL-layer: GL30-49
@GL-semantic: guardrails-enforcement
"""
from __future__ import annotations

from guardrails.domain.entities.outcome import EnforcementOutcome
from guardrails.domain.entities.posture import PostureSnapshot
from guardrails.domain.value_objects.mode import EnforcementMode

DEFAULT_FAILURE_REASON = "Guardrails checks failed."


def failure_reason(snapshot: PostureSnapshot, fallback: str | None = None) -> str | None:
    """Describe why *snapshot* is red; None when it is not red.

    Uses the first failing check, formatted ``"<name> (<details>)"``, and
    falls back to *fallback* when no failing check is identifiable.
    """
    if not snapshot.is_red:
        return None
    failing = snapshot.first_failing_check()
    if failing is not None:
        return failing.describe()
    return fallback or DEFAULT_FAILURE_REASON


def decide(
    snapshot: PostureSnapshot,
    mode: EnforcementMode,
    *,
    fallback_reason: str | None = None,
    source: str = "local",
) -> EnforcementOutcome:
    """Decide whether an action is blocked under *mode*.

    Args:
        snapshot: Posture to decide on.
        mode: Enforcement mode for this decision.
        fallback_reason: Description used when the snapshot is red but has
            no failing check, e.g. a transport or read failure.
        source: Provenance tag copied into the outcome.
    """
    return EnforcementOutcome(
        snapshot=snapshot,
        mode=mode,
        blocked=mode == EnforcementMode.ENFORCED and snapshot.is_red,
        reason=failure_reason(snapshot, fallback_reason),
        source=source,
    )
