"""Check entity: one discrete, independently evaluable policy rule result.

Checks are produced by the check runner and the audit policy check and are
never mutated afterwards.  The three-valued :class:`CheckStatus` forms a
strict lattice ``fail > warn > pass`` used by the policy evaluator.
"""
from __future__ import annotations

import enum
from typing import Any, Iterable

from pydantic import BaseModel


_STATUS_WEIGHTS: dict[str, int] = {
    "pass": 0,
    "warn": 1,
    "fail": 2,
}


class CheckStatus(str, enum.Enum):
    """Outcome of a single check, ordered ``FAIL > WARN > PASS``."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"

    @property
    def weight(self) -> int:
        return _STATUS_WEIGHTS[self.value]

    @classmethod
    def worst(cls, statuses: Iterable[CheckStatus]) -> CheckStatus:
        """Return the most severe status in *statuses* (``PASS`` when empty)."""
        return max(statuses, key=lambda status: status.weight, default=cls.PASS)


class Check(BaseModel):
    """Immutable result of one policy check.

    Attributes:
        name: Human-readable check name, treated as the lookup key.
        status: Three-valued result.
        details: Optional diagnostic explaining the status.
    """

    name: str
    status: CheckStatus
    details: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_result(cls, name: str, ok: bool, details: str | None = None) -> Check:
        """Build a pass/fail check from a boolean result."""
        return cls(
            name=name,
            status=CheckStatus.PASS if ok else CheckStatus.FAIL,
            details=details or None,
        )

    @property
    def failed(self) -> bool:
        return self.status == CheckStatus.FAIL

    def describe(self) -> str:
        """Return ``"<name> (<details>)"`` or just the name without details."""
        return f"{self.name} ({self.details})" if self.details else self.name

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "status": self.status.value}
        if self.details is not None:
            payload["details"] = self.details
        return payload
