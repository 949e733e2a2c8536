"""Health check endpoint."""
from __future__ import annotations

from fastapi import APIRouter

from guardrails.shared.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "environment": settings.environment}
