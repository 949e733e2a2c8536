"""Shared FastAPI dependencies."""
from __future__ import annotations

from guardrails.engine.config import PreflightConfig
from guardrails.engine.preflight import PreflightEngine
from guardrails.shared.config import settings

# Process-wide engine; stateless between runs so sharing it is safe
_engine: PreflightEngine | None = None


def get_engine() -> PreflightEngine:
    """Return the preflight engine, built from settings on first use."""
    global _engine
    if _engine is None:
        _engine = PreflightEngine(PreflightConfig.from_settings(settings))
    return _engine
