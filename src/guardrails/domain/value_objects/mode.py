"""Enforcement mode and fault-injection scenario value objects."""
from __future__ import annotations

import enum

# Accepted spellings for enforced mode, including a historical typo
_ENFORCED_ALIASES: frozenset[str] = frozenset({"enforced", "enforce", "eforce"})


class EnforcementMode(str, enum.Enum):
    """Operating mode passed explicitly with every gate decision."""

    ENFORCED = "enforced"
    BYPASS = "bypass"

    @classmethod
    def normalize(cls, raw: object) -> EnforcementMode:
        """Parse *raw* leniently, defaulting to ``ENFORCED`` when unrecognised."""
        if isinstance(raw, EnforcementMode):
            return raw
        if isinstance(raw, str):
            value = raw.strip().lower()
            if value in _ENFORCED_ALIASES:
                return cls.ENFORCED
            if value == cls.BYPASS.value:
                return cls.BYPASS
        return cls.ENFORCED


class Scenario(str, enum.Enum):
    """Injected-fault scenarios for exercising the decision paths."""

    VERSION_MISMATCH = "version_mismatch"
