"""Centralized configuration for the guardrails preflight platform."""
from __future__ import annotations

from pydantic_settings import BaseSettings


class GuardrailsSettings(BaseSettings):
    """Guardrails configuration loaded from environment variables."""

    environment: str = "development"

    # Project layout, relative paths resolve against repo_root
    repo_root: str = "."
    manifest_path: str = "apps/web/package.json"
    lockfile_path: str = "package-lock.json"
    secondary_lockfile_path: str = "apps/web/package-lock.json"
    target_dependency: str = "xrpl"
    status_path: str = "apps/web/public/status.json"

    # Audit tool
    audit_command: list[str] = ["npm", "audit", "--json"]
    audit_label: str = "npm audit"
    audit_timeout_seconds: float = 120.0

    # Enforcement
    default_mode: str = "enforced"
    preflight_endpoint: str | None = None
    http_timeout_seconds: float = 10.0

    # Logging
    log_level: str = "info"
    log_json: bool = False

    # API server
    host: str = "0.0.0.0"
    port: int = 8095

    model_config = {"env_prefix": "GUARDRAILS_", "env_file": ".env", "extra": "ignore"}


settings = GuardrailsSettings()
