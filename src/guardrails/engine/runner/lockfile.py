"""Manifest pin validation and lockfile entry lookup."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

# Exact MAJOR.MINOR.PATCH with optional pre-release and build metadata
EXACT_VERSION_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)


def is_exact_version(version: str) -> bool:
    """Return True when *version* is an exact pin with no range operator."""
    return EXACT_VERSION_RE.match(version) is not None


@dataclass(frozen=True, slots=True)
class LockfileEntry:
    """A resolved dependency version and where in the lockfile it was found."""

    location: str
    version: str


def find_in_packages_map(lockfile: dict[str, Any], dependency: str) -> LockfileEntry | None:
    """Look up ``packages["node_modules/<dependency>"]`` (nested paths allowed)."""
    packages = lockfile.get("packages")
    if not isinstance(packages, dict):
        return None

    suffix = f"node_modules/{dependency}"
    for entry_path, entry in packages.items():
        if entry_path != suffix and not entry_path.endswith(f"/{suffix}"):
            continue
        if isinstance(entry, dict) and isinstance(entry.get("version"), str):
            return LockfileEntry(location=f'packages["{entry_path}"]', version=entry["version"])
    return None


def find_in_dependency_map(lockfile: dict[str, Any], dependency: str) -> LockfileEntry | None:
    """Look up ``dependencies.<dependency>.version`` (flat legacy schema)."""
    dependencies = lockfile.get("dependencies")
    if not isinstance(dependencies, dict):
        return None

    entry = dependencies.get(dependency)
    if isinstance(entry, dict) and isinstance(entry.get("version"), str):
        return LockfileEntry(location=f"dependencies.{dependency}", version=entry["version"])
    return None


_LOOKUP_STRATEGIES: tuple[Callable[[dict[str, Any], str], LockfileEntry | None], ...] = (
    find_in_packages_map,
    find_in_dependency_map,
)


def find_lockfile_entry(lockfile: Any, dependency: str) -> LockfileEntry | None:
    """Return the first entry any lookup strategy finds, else None."""
    if not isinstance(lockfile, dict):
        return None
    for strategy in _LOOKUP_STRATEGIES:
        entry = strategy(lockfile, dependency)
        if entry is not None:
            return entry
    return None


def read_manifest_pin(manifest: Any, dependency: str, manifest_label: str) -> tuple[str | None, str | None]:
    """Validate the manifest's pin for *dependency*.

    Returns:
        ``(version, None)`` for a valid exact pin, otherwise
        ``(None, details)`` describing the missing field or offending value.
    """
    if not isinstance(manifest, dict):
        return None, f"{manifest_label} must contain a JSON object"
    dependencies = manifest.get("dependencies")
    if not isinstance(dependencies, dict):
        return None, f"{manifest_label} dependencies is missing"
    version = dependencies.get(dependency)
    if not isinstance(version, str):
        return None, f"dependencies.{dependency} is missing"
    if not is_exact_version(version):
        return None, (
            f"dependencies.{dependency} must be an exact version (no ^ or ~); "
            f'found "{version}"'
        )
    return version, None
