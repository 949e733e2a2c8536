"""Audit subsystem -- invoke the vulnerability-audit tool and grade its output."""

from guardrails.engine.audit.audit_check import (
    evaluate_audit_output,
    grade_summary,
    run_audit_check,
)
from guardrails.engine.audit.parser import (
    extract_severity_summary,
    extract_tool_error,
    recover_json,
)
from guardrails.engine.audit.process import CommandResult, run_command

__all__ = [
    "CommandResult",
    "evaluate_audit_output",
    "extract_severity_summary",
    "extract_tool_error",
    "grade_summary",
    "recover_json",
    "run_audit_check",
    "run_command",
]
