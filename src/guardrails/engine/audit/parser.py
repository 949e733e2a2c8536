"""Defensive parsing of vulnerability-audit tool output.

The audit tool's JSON schema has changed across releases, and depending on
version and failure mode the JSON may land on stdout, on stderr, or be
wrapped in diagnostic noise.  Parsing is therefore modelled as small, named
strategies tried in priority order:

* **JSON recovery** -- strict parse of stdout, strict parse of stderr, then
  brace-slice extraction (first ``{`` to last ``}``) of stdout and stderr.
* **Severity counts** -- an aggregate ``metadata.vulnerabilities`` block when
  it carries numeric counts, otherwise per-package records in either the
  ``vulnerabilities`` map (current schema) or the ``advisories`` map
  (legacy schema).
* **Tool error** -- an explicit error message reported by the tool itself.

No function in this module raises on malformed input.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

import structlog

from guardrails.domain.value_objects.severity import SeverityLevel, SeveritySummary

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# JSON recovery
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class JsonRecovery:
    """Outcome of trying to recover a JSON object from tool output.

    Attributes:
        document: The recovered JSON object, or None.
        strategy: Tag of the strategy that succeeded.
        error: First parse error encountered, reported when nothing succeeded.
    """

    document: dict[str, Any] | None
    strategy: str | None = None
    error: str | None = None

    @property
    def recovered(self) -> bool:
        return self.document is not None


def _loads_object(text: str) -> dict[str, Any]:
    value = json.loads(text)
    if not isinstance(value, dict):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    return value


def parse_strict(text: str) -> dict[str, Any]:
    """Parse the whole of *text* as a JSON object."""
    stripped = text.strip()
    if not stripped:
        raise ValueError("no JSON output")
    return _loads_object(stripped)


def parse_brace_slice(text: str) -> dict[str, Any]:
    """Parse the span from the first ``{`` to the last ``}`` of *text*."""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise ValueError("no JSON object delimiters found")
    return _loads_object(text[start : end + 1])


_RECOVERY_STRATEGIES: tuple[tuple[str, str, Callable[[str], dict[str, Any]]], ...] = (
    ("stdout_strict", "stdout", parse_strict),
    ("stderr_strict", "stderr", parse_strict),
    ("stdout_brace_slice", "stdout", parse_brace_slice),
    ("stderr_brace_slice", "stderr", parse_brace_slice),
)


def recover_json(stdout: str | None, stderr: str | None) -> JsonRecovery:
    """Try every recovery strategy in priority order."""
    streams = {"stdout": stdout or "", "stderr": stderr or ""}
    first_error: str | None = None

    for tag, stream, strategy in _RECOVERY_STRATEGIES:
        try:
            document = strategy(streams[stream])
        except (ValueError, RecursionError) as exc:
            if first_error is None:
                first_error = str(exc) or type(exc).__name__
            continue
        logger.debug("audit_json_recovered", strategy=tag)
        return JsonRecovery(document=document, strategy=tag)

    return JsonRecovery(document=None, error=first_error or "no JSON output")


# ---------------------------------------------------------------------------
# Severity extraction
# ---------------------------------------------------------------------------


def _as_count(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value < 0:
        return None
    return int(value)


@dataclass(slots=True)
class SeverityExtraction:
    """Partial counts and package names gathered by one strategy."""

    counts: dict[SeverityLevel, int] = field(
        default_factory=lambda: {level: 0 for level in SeverityLevel}
    )
    packages: set[str] = field(default_factory=set)
    found: bool = False

    def add(self, raw_severity: Any) -> None:
        level = SeverityLevel.parse(raw_severity)
        if level is not None:
            self.counts[level] += 1


def extract_metadata_counts(document: Mapping[str, Any]) -> SeverityExtraction:
    """Read aggregate counts from ``metadata.vulnerabilities``."""
    result = SeverityExtraction()
    metadata = document.get("metadata")
    block = metadata.get("vulnerabilities") if isinstance(metadata, dict) else None
    if not isinstance(block, dict):
        return result

    for level in SeverityLevel:
        count = _as_count(block.get(level.value))
        if count is not None:
            result.counts[level] = count
            result.found = True
    return result


def extract_vulnerability_map(document: Mapping[str, Any]) -> SeverityExtraction:
    """Count per-package records in ``vulnerabilities: {name: {severity}}``."""
    result = SeverityExtraction()
    records = document.get("vulnerabilities")
    if not isinstance(records, dict):
        return result

    result.found = True
    for package_name, record in records.items():
        if package_name:
            result.packages.add(package_name)
        if isinstance(record, dict):
            result.add(record.get("severity"))
    return result


def extract_advisories(document: Mapping[str, Any]) -> SeverityExtraction:
    """Count legacy records in ``advisories: {id: {module_name, severity}}``."""
    result = SeverityExtraction()
    records = document.get("advisories")
    if not isinstance(records, dict):
        return result

    result.found = True
    for advisory in records.values():
        if not isinstance(advisory, dict):
            continue
        module_name = advisory.get("module_name")
        if isinstance(module_name, str) and module_name:
            result.packages.add(module_name)
        result.add(advisory.get("severity"))
    return result


_PACKAGE_RECORD_STRATEGIES: tuple[Callable[[Mapping[str, Any]], SeverityExtraction], ...] = (
    extract_vulnerability_map,
    extract_advisories,
)


def extract_severity_summary(document: Any) -> SeveritySummary:
    """Build a :class:`SeveritySummary` from a recovered audit document.

    Aggregate metadata counts win when present.  Otherwise counts come from
    the first per-package record shape that is present.  Package names are
    collected from every record shape regardless of where counts came from.
    """
    if not isinstance(document, dict):
        return SeveritySummary()

    package_results = [strategy(document) for strategy in _PACKAGE_RECORD_STRATEGIES]
    packages: set[str] = set()
    for partial in package_results:
        packages |= partial.packages

    metadata = extract_metadata_counts(document)
    if metadata.found:
        counts = metadata.counts
    else:
        counts = next(
            (partial.counts for partial in package_results if partial.found),
            SeverityExtraction().counts,
        )

    return SeveritySummary(
        critical=counts[SeverityLevel.CRITICAL],
        high=counts[SeverityLevel.HIGH],
        moderate=counts[SeverityLevel.MODERATE],
        low=counts[SeverityLevel.LOW],
        affected_packages=packages,
    )


# ---------------------------------------------------------------------------
# Tool-reported errors
# ---------------------------------------------------------------------------


def _non_empty(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def extract_tool_error(document: Any, *, tool_label: str = "audit") -> str | None:
    """Return an explicit error message reported by the audit tool, if any.

    Recognised shapes, in priority order: ``error`` as a string; ``error``
    as an object with ``summary``, ``message`` or ``detail``; a root
    ``message``; finally ``error.code``.
    """
    if not isinstance(document, dict):
        return None

    root_message = _non_empty(document.get("message"))
    error = document.get("error")

    as_string = _non_empty(error)
    if as_string:
        return as_string
    if not isinstance(error, dict):
        return root_message

    for key in ("summary", "message", "detail"):
        text = _non_empty(error.get(key))
        if text:
            return text
    if root_message:
        return root_message

    code = _non_empty(error.get("code"))
    return f"{tool_label} error code: {code}" if code else None
