"""Severity value objects for vulnerability audit results.

Defines the four recognised audit severity tiers and the
:class:`SeveritySummary` built once per audit invocation.
"""
from __future__ import annotations

import enum
from typing import Iterable

from pydantic import BaseModel, Field, field_validator

# Maximum number of affected package names carried in a summary
MAX_AFFECTED_PACKAGES: int = 5


class SeverityLevel(str, enum.Enum):
    """Audit severity tiers, most severe first."""

    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"

    @property
    def is_blocking(self) -> bool:
        """Return True for severities that fail the audit policy."""
        return self in {SeverityLevel.CRITICAL, SeverityLevel.HIGH}

    @classmethod
    def parse(cls, raw: object) -> SeverityLevel | None:
        """Case-insensitively parse *raw*; return None for anything unrecognised."""
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


class SeveritySummary(BaseModel):
    """Aggregate vulnerability counts by severity tier.

    Attributes:
        critical: Number of critical findings.
        high: Number of high findings.
        moderate: Number of moderate findings.
        low: Number of low findings.
        affected_packages: Sorted, de-duplicated package names, capped at
            :data:`MAX_AFFECTED_PACKAGES`.
    """

    critical: int = Field(default=0, ge=0)
    high: int = Field(default=0, ge=0)
    moderate: int = Field(default=0, ge=0)
    low: int = Field(default=0, ge=0)
    affected_packages: tuple[str, ...] = ()

    model_config = {"frozen": True}

    @field_validator("affected_packages", mode="before")
    @classmethod
    def _normalise_packages(cls, value: Iterable[str]) -> tuple[str, ...]:
        names = {name for name in value if isinstance(name, str) and name}
        return tuple(sorted(names)[:MAX_AFFECTED_PACKAGES])

    def count(self, level: SeverityLevel) -> int:
        return getattr(self, level.value)

    @property
    def has_blocking(self) -> bool:
        return self.critical > 0 or self.high > 0

    @property
    def has_advisory(self) -> bool:
        return self.moderate > 0 or self.low > 0

    def describe(self, note: str | None = None) -> str:
        """Render the deterministic audit details string."""
        packages = ", ".join(self.affected_packages) if self.affected_packages else "none"
        details = (
            f"critical={self.critical}, high={self.high}, "
            f"moderate={self.moderate}, low={self.low}; "
            f"packages={packages}"
        )
        return f"{details}; note={note}" if note else details
