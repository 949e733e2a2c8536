"""Injected-fault scenarios applied to a finished snapshot.

A scenario replaces exactly one check and re-derives the verdict; it never
touches any other check.  Used to exercise enforced/bypass decision paths
without a real dependency drift.
"""
from __future__ import annotations

import structlog

from guardrails.domain.entities.check import Check, CheckStatus
from guardrails.domain.entities.posture import PostureSnapshot
from guardrails.domain.value_objects.mode import Scenario
from guardrails.engine.evaluator.policy_evaluator import overall_for
from guardrails.engine.runner.lockfile import EXACT_VERSION_RE

logger = structlog.get_logger(__name__)


def drifted_version(version: str | None) -> str:
    """Return a plausible version that differs from *version*."""
    if version is None:
        return "0.0.0-simulated"
    match = EXACT_VERSION_RE.match(version)
    if match is None:
        return f"{version}-simulated"
    major, minor, patch = match.groups()
    return f"{major}.{minor}.{int(patch) + 1}"


def simulate_version_mismatch(
    snapshot: PostureSnapshot,
    *,
    check_name: str,
    location: str,
    pinned_version: str | None,
) -> PostureSnapshot:
    """Force the alignment check named *check_name* to ``fail``.

    The details name both the drifted and the pinned version.  The check
    keeps its display position; it is appended if absent.
    """
    expected = pinned_version if pinned_version is not None else "unknown"
    forced = Check(
        name=check_name,
        status=CheckStatus.FAIL,
        details=(
            f'simulated mismatch: {location} is "{drifted_version(pinned_version)}", '
            f'expected "{expected}"'
        ),
    )

    checks = [forced if check.name == check_name else check for check in snapshot.checks]
    if snapshot.get_check(check_name) is None:
        checks.append(forced)

    logger.info("scenario_applied", scenario=Scenario.VERSION_MISMATCH.value, check=check_name)
    return snapshot.model_copy(
        update={
            "checks": tuple(checks),
            "overall": overall_for(checks),
            "simulated_scenario": Scenario.VERSION_MISMATCH,
        }
    )
