"""Demo sensitive action guarded by the enforcement gate."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from guardrails.domain.value_objects.mode import EnforcementMode
from guardrails.engine.preflight import PreflightEngine
from guardrails.presentation.api.dependencies import get_engine

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["demo"])


class TransferRequest(BaseModel):
    """Body of a demo transfer."""

    from_account: str = Field(alias="from")
    to: str
    amount: float = Field(allow_inf_nan=False)
    mode: Literal["enforced", "bypass"]

    model_config = {"strict": True, "populate_by_name": True}


def _error(message: str, code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse({"ok": False, "error": message}, status_code=code)


@router.post("/transfer")
async def create_transfer(
    request: Request,
    engine: PreflightEngine = Depends(get_engine),
) -> JSONResponse:
    """Validate the transfer, consult the gate, then fake a transaction."""
    try:
        raw = await request.json()
    except ValueError:
        return _error("Invalid JSON body")

    try:
        body = TransferRequest.model_validate(raw)
    except ValidationError:
        return _error("Body must include from, to, amount, and mode")

    if body.amount <= 0:
        return _error("Amount must be a positive number")

    mode = EnforcementMode(body.mode)
    outcome = await engine.run_and_decide(mode)
    if outcome.blocked:
        logger.warning("transfer_blocked", reason=outcome.reason)
        return JSONResponse(
            {
                "ok": False,
                "error": "Guardrails blocked the transfer in enforced mode",
                "reason": outcome.reason,
                "posture": outcome.snapshot.to_payload(),
            },
            status_code=status.HTTP_423_LOCKED,
        )

    tx_id = f"demo_{uuid.uuid4().hex[:16]}"
    logger.info(
        "transfer_accepted",
        tx_id=tx_id,
        mode=mode.value,
        overall=outcome.snapshot.overall.value,
        would_have_blocked=outcome.would_have_blocked,
    )
    return JSONResponse(
        {
            "ok": True,
            "txId": tx_id,
            "from": body.from_account,
            "to": body.to,
            "amount": body.amount,
            "mode": mode.value,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "guardrails": {
                "overall": outcome.snapshot.overall.value,
                "reason": outcome.reason,
            },
        }
    )
