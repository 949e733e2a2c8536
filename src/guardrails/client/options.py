"""Options accepted by the guarded action wrapper and preflight sources."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from guardrails.domain.value_objects.mode import EnforcementMode, Scenario
from guardrails.shared.config import GuardrailsSettings

DEFAULT_STATUS_PATH = "apps/web/public/status.json"

# Slack on top of the audit timeout for the script's own checks and startup
SCRIPT_TIMEOUT_MARGIN_SECONDS = 30.0
DEFAULT_SCRIPT_TIMEOUT_SECONDS = 120.0 + SCRIPT_TIMEOUT_MARGIN_SECONDS


def default_script_command() -> tuple[str, ...]:
    return (sys.executable, "-m", "guardrails.cli", "preflight")


class GuardrailsOptions(BaseModel):
    """Per-call guardrails configuration.

    Instances are immutable; :meth:`merged` returns a new instance so
    per-call overrides never change a wrapper's defaults.

    Attributes:
        mode: Enforcement mode; strings are normalised, unknown values
            become ``enforced``.
        preflight_endpoint: Remote enforcement endpoint; when unset the
            preflight script runs locally.
        simulate_version_mismatch: Request the ``version_mismatch`` scenario.
        timeout_seconds: Remote request timeout.
        script_timeout_seconds: Local script timeout; must leave room for the
            audit tool timeout the script itself waits on.
        headers: Extra HTTP headers for the remote endpoint.
        cwd: Working directory for the local script (default: process cwd).
        script_command: Local preflight command.
        status_path: Snapshot artifact read after the local script runs;
            relative paths resolve against ``cwd``.
        expected_distribution: Library whose installed version is asserted.
        expected_version: Required version of ``expected_distribution``.
    """

    mode: EnforcementMode = EnforcementMode.ENFORCED
    preflight_endpoint: str | None = None
    simulate_version_mismatch: bool = False
    timeout_seconds: float = Field(default=10.0, gt=0)
    script_timeout_seconds: float = Field(default=DEFAULT_SCRIPT_TIMEOUT_SECONDS, gt=0)
    headers: dict[str, str] = Field(default_factory=dict)
    cwd: Path | None = None
    script_command: tuple[str, ...] = Field(default_factory=default_script_command)
    status_path: Path = Path(DEFAULT_STATUS_PATH)
    expected_distribution: str | None = None
    expected_version: str | None = None

    model_config = {"frozen": True}

    @field_validator("mode", mode="before")
    @classmethod
    def _normalise_mode(cls, value: Any) -> EnforcementMode:
        return EnforcementMode.normalize(value)

    @classmethod
    def from_settings(cls, settings: GuardrailsSettings, **overrides: Any) -> GuardrailsOptions:
        base: dict[str, Any] = {
            "mode": settings.default_mode,
            "preflight_endpoint": settings.preflight_endpoint,
            "timeout_seconds": settings.http_timeout_seconds,
            "script_timeout_seconds": settings.audit_timeout_seconds + SCRIPT_TIMEOUT_MARGIN_SECONDS,
            "cwd": Path(settings.repo_root),
            "status_path": Path(settings.status_path),
        }
        return cls.model_validate({**base, **overrides})

    def merged(self, **overrides: Any) -> GuardrailsOptions:
        """Return a copy with *overrides* applied and re-validated."""
        if not overrides:
            return self
        return type(self).model_validate({**self.model_dump(), **overrides})

    @property
    def scenario(self) -> Scenario | None:
        return Scenario.VERSION_MISMATCH if self.simulate_version_mismatch else None

    @property
    def working_dir(self) -> Path:
        return self.cwd if self.cwd is not None else Path.cwd()

    @property
    def status_file(self) -> Path:
        return self.status_path if self.status_path.is_absolute() else self.working_dir / self.status_path
