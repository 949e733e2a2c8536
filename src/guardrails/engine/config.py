"""Engine-facing preflight configuration."""
from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from guardrails.shared.config import GuardrailsSettings


class PreflightConfig(BaseModel):
    """Where the checks look and how the audit tool is invoked.

    Relative paths resolve against ``repo_root``.  Every engine entry point
    takes a config explicitly; nothing reads global settings at call time.
    """

    repo_root: Path = Path(".")
    manifest_path: str = "apps/web/package.json"
    lockfile_path: str = "package-lock.json"
    secondary_lockfile_path: str = "apps/web/package-lock.json"
    target_dependency: str = "xrpl"
    status_path: str = "apps/web/public/status.json"
    audit_command: tuple[str, ...] = ("npm", "audit", "--json")
    audit_label: str = "npm audit"
    audit_timeout_seconds: float | None = Field(default=120.0, gt=0)

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: GuardrailsSettings) -> PreflightConfig:
        return cls(
            repo_root=Path(settings.repo_root),
            manifest_path=settings.manifest_path,
            lockfile_path=settings.lockfile_path,
            secondary_lockfile_path=settings.secondary_lockfile_path,
            target_dependency=settings.target_dependency,
            status_path=settings.status_path,
            audit_command=tuple(settings.audit_command),
            audit_label=settings.audit_label,
            audit_timeout_seconds=settings.audit_timeout_seconds,
        )

    def resolve(self, relative: str) -> Path:
        return self.repo_root / relative

    @property
    def status_file(self) -> Path:
        return self.resolve(self.status_path)
