"""Enforcement outcome entity produced by the enforcement gate."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from guardrails.domain.entities.posture import PostureSnapshot
from guardrails.domain.value_objects.mode import EnforcementMode


class EnforcementOutcome(BaseModel):
    """Result of consulting the enforcement gate.

    Attributes:
        snapshot: The posture the decision was based on.
        mode: Mode the decision was made under.
        blocked: True iff ``mode`` is enforced and the posture is red.
        reason: Populated whenever the posture is red, in either mode.
        source: Where the snapshot came from (``local``, ``http``, ``script``).
    """

    snapshot: PostureSnapshot
    mode: EnforcementMode
    blocked: bool
    reason: str | None = None
    source: str = "local"

    model_config = {"frozen": True}

    @property
    def would_have_blocked(self) -> bool:
        """True when a bypassed call would have been blocked under enforcement."""
        return self.mode == EnforcementMode.BYPASS and self.snapshot.is_red

    def to_payload(self) -> dict[str, Any]:
        return {
            **self.snapshot.to_payload(),
            "mode": self.mode.value,
            "blocked": self.blocked,
            "reason": self.reason,
            "source": self.source,
        }
