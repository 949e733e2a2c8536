"""Shared fixtures: throwaway project trees and a scriptable fake audit tool."""
from __future__ import annotations

import json
import sys
import textwrap
from pathlib import Path
from typing import Any, Callable

import pytest

from guardrails.engine.config import PreflightConfig

FakeAudit = Callable[..., tuple[str, ...]]


def write_project(
    root: Path,
    *,
    pin: str | None = "2.14.0",
    locked: str | None = "2.14.0",
    lockfile_shape: str = "packages",
    secondary_lockfile: bool = False,
) -> Path:
    """Lay out ``apps/web/package.json`` and a root ``package-lock.json``."""
    web = root / "apps" / "web"
    web.mkdir(parents=True, exist_ok=True)

    dependencies: dict[str, Any] = {"next": "14.2.3"}
    if pin is not None:
        dependencies["xrpl"] = pin
    (web / "package.json").write_text(
        json.dumps({"name": "web", "dependencies": dependencies}), encoding="utf-8"
    )

    if locked is not None:
        if lockfile_shape == "packages":
            lock = {
                "lockfileVersion": 3,
                "packages": {
                    "": {"name": "root"},
                    "apps/web": {"dependencies": {"xrpl": pin}},
                    "node_modules/xrpl": {"version": locked},
                },
            }
        else:
            lock = {"lockfileVersion": 1, "dependencies": {"xrpl": {"version": locked}}}
        (root / "package-lock.json").write_text(json.dumps(lock, indent=2), encoding="utf-8")

    if secondary_lockfile:
        (web / "package-lock.json").write_text("{}", encoding="utf-8")
    return root


@pytest.fixture
def project_factory(tmp_path: Path) -> Callable[..., Path]:
    """Build a project under a fresh directory with custom pin/lock values."""
    counter = {"n": 0}

    def _make(**kwargs: Any) -> Path:
        counter["n"] += 1
        return write_project(tmp_path / f"repo_{counter['n']}", **kwargs)

    return _make


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A healthy project: exact pin matching the lockfile."""
    return write_project(tmp_path / "repo")


@pytest.fixture
def fake_audit(tmp_path: Path) -> FakeAudit:
    """Factory for an audit command that prints canned output and exits."""
    counter = {"n": 0}

    def _make(
        stdout: str | dict[str, Any] = "",
        *,
        stderr: str = "",
        exit_code: int = 0,
        sleep: float = 0.0,
    ) -> tuple[str, ...]:
        counter["n"] += 1
        if isinstance(stdout, dict):
            stdout = json.dumps(stdout)
        script = tmp_path / f"fake_audit_{counter['n']}.py"
        script.write_text(
            textwrap.dedent(
                f"""
                import sys, time
                time.sleep({sleep!r})
                sys.stdout.write({stdout!r})
                sys.stderr.write({stderr!r})
                sys.exit({exit_code!r})
                """
            ),
            encoding="utf-8",
        )
        return (sys.executable, str(script))

    return _make


@pytest.fixture
def clean_audit_report() -> dict[str, Any]:
    return {
        "auditReportVersion": 2,
        "vulnerabilities": {},
        "metadata": {"vulnerabilities": {"info": 0, "low": 0, "moderate": 0, "high": 0, "critical": 0, "total": 0}},
    }


@pytest.fixture
def make_config(project: Path, fake_audit: FakeAudit, clean_audit_report: dict[str, Any]) -> Callable[..., PreflightConfig]:
    """Build a config for the healthy project with a clean audit by default."""

    def _make(**overrides: Any) -> PreflightConfig:
        values: dict[str, Any] = {
            "repo_root": project,
            "audit_command": fake_audit(clean_audit_report),
            "audit_timeout_seconds": 30.0,
        }
        values.update(overrides)
        return PreflightConfig(**values)

    return _make
