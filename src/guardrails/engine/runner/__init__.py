"""Structural check runner -- manifest pinning and lockfile consistency."""

from guardrails.engine.runner.check_runner import CheckNames, CheckRunner, RunnerResult
from guardrails.engine.runner.lockfile import (
    LockfileEntry,
    find_lockfile_entry,
    is_exact_version,
    read_manifest_pin,
)

__all__ = [
    "CheckNames",
    "CheckRunner",
    "LockfileEntry",
    "RunnerResult",
    "find_lockfile_entry",
    "is_exact_version",
    "read_manifest_pin",
]
