"""Audit policy check: run the vulnerability-audit tool and grade its output.

The tool is trusted, not re-implemented.  Whatever it does -- crash, hang,
print garbage, exit non-zero -- the result is always a single
:class:`~guardrails.domain.entities.check.Check`:

* ``fail`` when critical or high findings exist, when the tool reported an
  explicit error, when output could not be parsed, or when the process
  failed to run or exited non-zero on an otherwise clean result;
* ``warn`` when only moderate or low findings exist;
* ``pass`` otherwise.

@GL-governed
@GL-layer: GL30-49
@GL-semantic: guardrails-audit
"""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

import structlog

from guardrails.domain.entities.check import Check, CheckStatus
from guardrails.domain.value_objects.severity import SeveritySummary
from guardrails.engine.audit.parser import (
    extract_severity_summary,
    extract_tool_error,
    recover_json,
)
from guardrails.engine.audit.process import CommandResult, run_command

logger = structlog.get_logger(__name__)

# Documented exit code meaning "vulnerabilities were found"
VULNERABILITIES_FOUND_EXIT_CODE: int = 1


def _exit_code_note(exit_code: int | None, tool_label: str) -> str | None:
    if exit_code is None or exit_code == 0:
        return None
    if exit_code == VULNERABILITIES_FOUND_EXIT_CODE:
        return f"{tool_label} returned non-zero because vulnerabilities were found (expected)"
    return f"{tool_label} exited with code {exit_code}"


def grade_summary(summary: SeveritySummary) -> CheckStatus:
    """Map severity counts alone to a check status."""
    if summary.has_blocking:
        return CheckStatus.FAIL
    if summary.has_advisory:
        return CheckStatus.WARN
    return CheckStatus.PASS


def evaluate_audit_output(result: CommandResult, *, tool_label: str = "npm audit") -> Check:
    """Convert captured audit process output into a policy check.

    This is the pure half of the audit check; it never raises.
    """
    name = f"{tool_label} policy"

    if not result.completed:
        return Check(
            name=name,
            status=CheckStatus.FAIL,
            details=SeveritySummary().describe(result.spawn_error),
        )

    recovery = recover_json(result.stdout, result.stderr)
    exit_note = _exit_code_note(result.exit_code, tool_label)

    if not recovery.recovered:
        notes = [f"could not parse {tool_label} JSON ({recovery.error})"]
        if exit_note:
            notes.append(exit_note)
        logger.warning(
            "audit_output_unparseable",
            error=recovery.error,
            exit_code=result.exit_code,
        )
        return Check(
            name=name,
            status=CheckStatus.FAIL,
            details=SeveritySummary().describe("; ".join(notes)),
        )

    summary = extract_severity_summary(recovery.document)
    tool_error = extract_tool_error(recovery.document, tool_label=tool_label)

    status = CheckStatus.FAIL if tool_error else grade_summary(summary)
    if status == CheckStatus.PASS and exit_note:
        # Clean counts with a non-zero exit is an unexplained anomaly
        status = CheckStatus.FAIL

    notes = [note for note in (tool_error, exit_note) if note]
    check = Check(
        name=name,
        status=status,
        details=summary.describe("; ".join(notes) if notes else None),
    )
    logger.info(
        "audit_check_evaluated",
        status=status.value,
        strategy=recovery.strategy,
        exit_code=result.exit_code,
        critical=summary.critical,
        high=summary.high,
        moderate=summary.moderate,
        low=summary.low,
    )
    return check


async def run_audit_check(
    command: Sequence[str],
    *,
    cwd: Path | str | None = None,
    timeout: float | None = None,
    tool_label: str = "npm audit",
) -> Check:
    """Invoke the audit tool and grade its output."""
    result = await run_command(command, cwd=cwd, timeout=timeout)
    return evaluate_audit_output(result, tool_label=tool_label)
