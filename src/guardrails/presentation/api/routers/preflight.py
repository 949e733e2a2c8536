"""Enforcement boundary -- run the preflight and report posture.

The response body is the posture snapshot and is authoritative.  The status
code is a coarse, redundant signal: ``423 Locked`` when the mode is enforced
and the posture is red, ``200`` otherwise.
"""
from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from guardrails.domain.value_objects.mode import EnforcementMode, Scenario
from guardrails.engine.enforcer.gate import decide
from guardrails.engine.preflight import PreflightEngine, write_snapshot
from guardrails.presentation.api.dependencies import get_engine

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["guardrails"])


def status_code_for(blocked: bool) -> int:
    return status.HTTP_423_LOCKED if blocked else status.HTTP_200_OK


@router.post("/preflight")
async def run_preflight(
    mode: str = Query(default=EnforcementMode.ENFORCED.value),
    simulate: Scenario | None = Query(default=None),
    engine: PreflightEngine = Depends(get_engine),
) -> JSONResponse:
    """Run every check, persist the artifact, and decide under *mode*."""
    effective_mode = EnforcementMode.normalize(mode)
    snapshot = await engine.run(scenario=simulate)

    # Simulated postures are never persisted for dashboards
    if simulate is None:
        try:
            await write_snapshot(snapshot, engine.config.status_file)
        except OSError as exc:
            logger.warning("snapshot_write_failed", error=str(exc))

    outcome = decide(
        snapshot.annotate(
            bypass_enabled=effective_mode == EnforcementMode.BYPASS,
            simulated_scenario=simulate,
        ),
        effective_mode,
    )
    logger.info(
        "preflight_served",
        mode=effective_mode.value,
        overall=outcome.snapshot.overall.value,
        blocked=outcome.blocked,
        reason=outcome.reason,
    )
    return JSONResponse(outcome.snapshot.to_payload(), status_code=status_code_for(outcome.blocked))
