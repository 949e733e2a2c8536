"""Posture snapshot entity.

A :class:`PostureSnapshot` is the complete, immutable result of one preflight
run.  Its ``overall`` level is derived from the checks via worst-status-wins:

* ``RED`` iff at least one check failed,
* else ``YELLOW`` iff at least one check warned,
* else ``GREEN``.

Snapshots read back from external sources are validated so that ``overall``
is never *less* severe than what the checks imply, and ``yellow`` always has
a warning check behind it.  A red snapshot without a failing check is
accepted; it denotes a posture that could not be computed.
"""
from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel, Field, model_validator

from guardrails.domain.entities.check import Check, CheckStatus
from guardrails.domain.value_objects.mode import Scenario

logger = structlog.get_logger(__name__)


class PostureLevel(str, enum.Enum):
    """Aggregate posture verdict."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"

    @classmethod
    def from_status(cls, status: CheckStatus) -> PostureLevel:
        return _LEVEL_BY_STATUS[status]

    @property
    def weight(self) -> int:
        return _STATUS_BY_LEVEL[self].weight


_LEVEL_BY_STATUS: dict[CheckStatus, PostureLevel] = {
    CheckStatus.PASS: PostureLevel.GREEN,
    CheckStatus.WARN: PostureLevel.YELLOW,
    CheckStatus.FAIL: PostureLevel.RED,
}
_STATUS_BY_LEVEL: dict[PostureLevel, CheckStatus] = {v: k for k, v in _LEVEL_BY_STATUS.items()}


class PostureSnapshot(BaseModel):
    """Latest guardrails posture.

    Attributes:
        overall: Aggregate verdict across all checks.
        timestamp: UTC generation time.
        lockfile_sha256: Hex digest of the lockfile, or None when unavailable.
        checks: Checks in display order.
        bypass_enabled: Run annotation, set when served in bypass mode.
        simulated_scenario: Run annotation, set when a fault was injected.
    """

    overall: PostureLevel
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    lockfile_sha256: str | None = Field(default=None, alias="lockfileSha256")
    checks: tuple[Check, ...] = ()
    bypass_enabled: bool | None = Field(default=None, alias="bypassEnabled")
    simulated_scenario: Scenario | None = Field(default=None, alias="simulatedScenario")

    model_config = {"frozen": True, "populate_by_name": True}

    @model_validator(mode="after")
    def _overall_not_weaker_than_checks(self) -> PostureSnapshot:
        implied = PostureLevel.from_status(CheckStatus.worst(c.status for c in self.checks))
        if self.overall.weight < implied.weight:
            raise ValueError(
                f"overall '{self.overall.value}' is inconsistent with checks "
                f"(expected at least '{implied.value}')"
            )
        # Only red may exceed the checks; it stands for an uncomputable posture
        if self.overall == PostureLevel.YELLOW and implied != PostureLevel.YELLOW:
            raise ValueError("overall 'yellow' requires at least one 'warn' check")
        return self

    # -- queries -------------------------------------------------------------

    @property
    def is_red(self) -> bool:
        return self.overall == PostureLevel.RED

    def first_failing_check(self) -> Check | None:
        return next((check for check in self.checks if check.failed), None)

    def get_check(self, name: str) -> Check | None:
        return next((check for check in self.checks if check.name == name), None)

    def without_timestamp(self) -> dict[str, Any]:
        """Payload minus ``timestamp``, for comparing independent runs."""
        payload = self.to_payload()
        payload.pop("timestamp")
        return payload

    # -- derivation ----------------------------------------------------------

    def annotate(
        self,
        *,
        bypass_enabled: bool | None = None,
        simulated_scenario: Scenario | None = None,
    ) -> PostureSnapshot:
        """Return a copy carrying run metadata; checks and verdict are unchanged."""
        return self.model_copy(
            update={
                "bypass_enabled": bypass_enabled,
                "simulated_scenario": simulated_scenario,
            }
        )

    # -- serialisation -------------------------------------------------------

    def to_payload(self) -> dict[str, Any]:
        """Serialise to the wire format consumed by dashboards and clients."""
        payload: dict[str, Any] = {
            "overall": self.overall.value,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
            "lockfileSha256": self.lockfile_sha256,
            "checks": [check.to_payload() for check in self.checks],
        }
        if self.bypass_enabled is not None:
            payload["bypassEnabled"] = self.bypass_enabled
        if self.bypass_enabled is not None or self.simulated_scenario is not None:
            payload["simulatedScenario"] = (
                self.simulated_scenario.value if self.simulated_scenario else None
            )
        return payload

    @classmethod
    def from_payload(cls, payload: Any) -> PostureSnapshot:
        """Validate a wire payload; raises ``pydantic.ValidationError`` when malformed."""
        snapshot = cls.model_validate(payload)
        logger.debug(
            "posture_snapshot_parsed",
            overall=snapshot.overall.value,
            check_count=len(snapshot.checks),
        )
        return snapshot

    @classmethod
    def unreachable(cls) -> PostureSnapshot:
        """Red snapshot with no checks, used when no posture could be obtained."""
        return cls(overall=PostureLevel.RED)
