"""Structural check runner: manifest pinning and lockfile consistency.

Executes a fixed, ordered set of checks against the project's manifest and
lockfile:

1. lockfile exists
2. secondary (nested) lockfile does not exist
3. lockfile sha256 digest computed
4. manifest pins the target dependency to an exact version
5. lockfile resolves the target dependency to the pinned version

Every check runs regardless of earlier failures.  The alignment check
reports "cannot compare" when the pin check already failed.

@GL-governed
@GL-layer: GL30-49
@GL-semantic: guardrails-structural-checks
"""
from __future__ import annotations

import asyncio
import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from guardrails.domain.entities.check import Check
from guardrails.engine.config import PreflightConfig
from guardrails.engine.runner.lockfile import LockfileEntry, find_lockfile_entry, read_manifest_pin

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CheckNames:
    """Display names of the structural checks for one configuration."""

    lockfile_exists: str
    secondary_lockfile_absent: str
    lockfile_digest: str
    manifest_pin: str
    version_alignment: str

    @classmethod
    def for_config(cls, config: PreflightConfig) -> CheckNames:
        dep = config.target_dependency
        return cls(
            lockfile_exists=f"{config.lockfile_path} exists",
            secondary_lockfile_absent=f"{config.secondary_lockfile_path} does not exist",
            lockfile_digest=f"sha256 of {config.lockfile_path} computed",
            manifest_pin=f"{config.manifest_path} pins {dep} to an exact version",
            version_alignment=f"{config.lockfile_path} contains {dep} at the same version",
        )


@dataclass(frozen=True, slots=True)
class RunnerResult:
    """Checks plus the facts later stages need.

    Attributes:
        checks: Structural checks in display order.
        lockfile_sha256: Hex digest of the lockfile, or None.
        pinned_version: Valid exact pin from the manifest, or None.
        lockfile_entry: Resolved lockfile entry for the dependency, or None.
    """

    checks: tuple[Check, ...]
    lockfile_sha256: str | None = None
    pinned_version: str | None = None
    lockfile_entry: LockfileEntry | None = None


@dataclass(slots=True)
class _LockfileRead:
    digest: str | None = None
    document: Any = None
    error: str | None = None


class CheckRunner:
    """Runs the structural checks for one project configuration.

    Usage::

        runner = CheckRunner(PreflightConfig(repo_root=Path("/srv/app")))
        result = await runner.run()
    """

    def __init__(self, config: PreflightConfig) -> None:
        self._config = config
        self.names = CheckNames.for_config(config)

    async def run(self) -> RunnerResult:
        cfg = self._config
        names = self.names
        lockfile_path = cfg.resolve(cfg.lockfile_path)
        manifest_path = cfg.resolve(cfg.manifest_path)
        secondary_path = cfg.resolve(cfg.secondary_lockfile_path)

        checks: list[Check] = []

        has_lockfile = await asyncio.to_thread(lockfile_path.exists)
        checks.append(Check.from_result(names.lockfile_exists, has_lockfile))

        has_secondary = await asyncio.to_thread(secondary_path.exists)
        checks.append(Check.from_result(names.secondary_lockfile_absent, not has_secondary))

        lockfile = _LockfileRead(error=f"{cfg.lockfile_path} is missing")
        if has_lockfile:
            lockfile = await self._read_lockfile(lockfile_path)
            checks.append(
                Check.from_result(
                    names.lockfile_digest,
                    lockfile.digest is not None,
                    None if lockfile.digest is not None else lockfile.error,
                )
            )
        else:
            checks.append(Check.from_result(names.lockfile_digest, False, lockfile.error))

        pinned_version, pin_details = await self._read_pin(manifest_path)
        checks.append(Check.from_result(names.manifest_pin, pinned_version is not None, pin_details))

        entry, alignment_details = self._compare(pinned_version, has_lockfile, lockfile)
        checks.append(Check.from_result(names.version_alignment, alignment_details is None, alignment_details))

        failed = [check.name for check in checks if check.failed]
        logger.info(
            "structural_checks_complete",
            total=len(checks),
            failed=len(failed),
            failed_checks=failed,
        )
        return RunnerResult(
            checks=tuple(checks),
            lockfile_sha256=lockfile.digest,
            pinned_version=pinned_version,
            lockfile_entry=entry,
        )

    # -- helpers -------------------------------------------------------------

    async def _read_lockfile(self, path: Path) -> _LockfileRead:
        """Hash the lockfile bytes, then attempt a JSON parse."""
        result = _LockfileRead()
        try:
            raw = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            logger.warning("lockfile_read_failed", path=str(path), error=str(exc))
            result.error = str(exc)
            return result

        result.digest = hashlib.sha256(raw).hexdigest()
        try:
            result.document = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError, RecursionError) as exc:
            result.error = str(exc)
        return result

    async def _read_pin(self, path: Path) -> tuple[str | None, str | None]:
        cfg = self._config
        if not await asyncio.to_thread(path.exists):
            return None, f"{cfg.manifest_path} is missing"
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
            manifest = json.loads(text)
        except (OSError, UnicodeDecodeError, ValueError, RecursionError) as exc:
            return None, str(exc)
        return read_manifest_pin(manifest, cfg.target_dependency, cfg.manifest_path)

    def _compare(
        self,
        pinned_version: str | None,
        has_lockfile: bool,
        lockfile: _LockfileRead,
    ) -> tuple[LockfileEntry | None, str | None]:
        """Return the lockfile entry and failure details (None when aligned)."""
        cfg = self._config
        if pinned_version is None:
            return None, (
                f"{cfg.manifest_path} {cfg.target_dependency} version check failed, "
                "cannot compare lockfile"
            )
        if not has_lockfile:
            return None, f"{cfg.lockfile_path} is missing"
        if lockfile.document is None:
            return None, f"could not parse {cfg.lockfile_path} ({lockfile.error})"

        entry = find_lockfile_entry(lockfile.document, cfg.target_dependency)
        if entry is None:
            return None, (
                f"{cfg.lockfile_path} does not contain a {cfg.target_dependency} "
                f'entry at version "{pinned_version}"'
            )
        if entry.version != pinned_version:
            return entry, f'{entry.location} is "{entry.version}", expected "{pinned_version}"'
        return entry, None
