"""Policy evaluator: reduce checks to one posture snapshot.

Worst-status-wins over the lattice ``fail > warn > pass``.  Check order
affects display only, never the verdict.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

import structlog

from guardrails.domain.entities.check import Check, CheckStatus
from guardrails.domain.entities.posture import PostureLevel, PostureSnapshot

logger = structlog.get_logger(__name__)


def overall_for(checks: Iterable[Check]) -> PostureLevel:
    """Return the aggregate posture level for *checks*."""
    return PostureLevel.from_status(CheckStatus.worst(check.status for check in checks))


def evaluate(
    checks: Iterable[Check],
    lockfile_sha256: str | None = None,
    *,
    timestamp: datetime | None = None,
) -> PostureSnapshot:
    """Build a fresh :class:`PostureSnapshot` from *checks*.

    Args:
        checks: Checks in display order.
        lockfile_sha256: Digest carried through from the check runner.
        timestamp: Generation time, defaults to now (UTC).
    """
    ordered = tuple(checks)
    overall = overall_for(ordered)
    snapshot = PostureSnapshot(
        overall=overall,
        timestamp=timestamp or datetime.now(timezone.utc),
        lockfile_sha256=lockfile_sha256,
        checks=ordered,
    )
    logger.info(
        "posture_evaluated",
        overall=overall.value,
        checks=len(ordered),
        failing=sum(1 for check in ordered if check.status == CheckStatus.FAIL),
        warning=sum(1 for check in ordered if check.status == CheckStatus.WARN),
    )
    return snapshot
