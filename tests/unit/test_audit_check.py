"""Tests for grading captured audit output into a policy check."""
from __future__ import annotations

import json

import pytest

from guardrails.domain.entities.check import CheckStatus
from guardrails.domain.value_objects.severity import SeveritySummary
from guardrails.engine.audit.audit_check import evaluate_audit_output, grade_summary
from guardrails.engine.audit.process import CommandResult


def _report(critical: int = 0, high: int = 0, moderate: int = 0, low: int = 0, **extra: object) -> str:
    vulnerabilities = {}
    for name, severity, count in (
        ("crit-pkg", "critical", critical),
        ("high-pkg", "high", high),
        ("mod-pkg", "moderate", moderate),
        ("low-pkg", "low", low),
    ):
        if count:
            vulnerabilities[name] = {"name": name, "severity": severity}
    return json.dumps(
        {
            "vulnerabilities": vulnerabilities,
            "metadata": {
                "vulnerabilities": {"critical": critical, "high": high, "moderate": moderate, "low": low}
            },
            **extra,
        }
    )


def _result(stdout: str = "", stderr: str = "", exit_code: int | None = 0) -> CommandResult:
    return CommandResult(exit_code=exit_code, stdout=stdout, stderr=stderr)


class TestGrading:
    @pytest.mark.parametrize(
        ("summary", "expected"),
        [
            (SeveritySummary(), CheckStatus.PASS),
            (SeveritySummary(low=2), CheckStatus.WARN),
            (SeveritySummary(moderate=1), CheckStatus.WARN),
            (SeveritySummary(high=1, low=5), CheckStatus.FAIL),
            (SeveritySummary(critical=1), CheckStatus.FAIL),
        ],
    )
    def test_grade_summary(self, summary: SeveritySummary, expected: CheckStatus) -> None:
        assert grade_summary(summary) == expected


class TestEvaluateAuditOutput:
    def test_clean_report_passes(self) -> None:
        check = evaluate_audit_output(_result(_report()))
        assert check.name == "npm audit policy"
        assert check.status == CheckStatus.PASS
        assert check.details == "critical=0, high=0, moderate=0, low=0; packages=none"

    def test_single_moderate_warns(self) -> None:
        check = evaluate_audit_output(_result(_report(moderate=1)))
        assert check.status == CheckStatus.WARN
        assert check.details == "critical=0, high=0, moderate=1, low=0; packages=mod-pkg"

    def test_high_with_expected_exit_code_fails(self) -> None:
        check = evaluate_audit_output(_result(_report(high=1), exit_code=1))
        assert check.status == CheckStatus.FAIL
        assert check.details == (
            "critical=0, high=1, moderate=0, low=0; packages=high-pkg; "
            "note=npm audit returned non-zero because vulnerabilities were found (expected)"
        )

    def test_clean_counts_with_exit_code_one_is_anomaly(self) -> None:
        check = evaluate_audit_output(_result(_report(), exit_code=1))
        assert check.status == CheckStatus.FAIL
        assert "vulnerabilities were found (expected)" in check.details

    def test_warn_with_exit_code_one_stays_warn(self) -> None:
        check = evaluate_audit_output(_result(_report(low=1), exit_code=1))
        assert check.status == CheckStatus.WARN

    def test_unexpected_exit_code_surfaced(self) -> None:
        check = evaluate_audit_output(_result(_report(), exit_code=3))
        assert check.status == CheckStatus.FAIL
        assert check.details.endswith("note=npm audit exited with code 3")

    def test_tool_error_forces_fail(self) -> None:
        stdout = json.dumps({"error": {"code": "ENOLOCK", "summary": "This command requires an existing lockfile."}})
        check = evaluate_audit_output(_result(stdout, exit_code=1))
        assert check.status == CheckStatus.FAIL
        assert "note=This command requires an existing lockfile.; npm audit returned non-zero" in check.details

    def test_json_on_stderr(self) -> None:
        check = evaluate_audit_output(_result(stdout="", stderr=_report(low=1)))
        assert check.status == CheckStatus.WARN

    def test_unparseable_output_fails_with_exit_note(self) -> None:
        check = evaluate_audit_output(_result("npm ERR! something broke", exit_code=1))
        assert check.status == CheckStatus.FAIL
        assert check.details.startswith("critical=0, high=0, moderate=0, low=0; packages=none; note=could not parse npm audit JSON (")
        assert check.details.endswith("vulnerabilities were found (expected)")

    def test_unparseable_output_without_exit_code(self) -> None:
        check = evaluate_audit_output(_result("", exit_code=0))
        assert check.status == CheckStatus.FAIL
        assert check.details == (
            "critical=0, high=0, moderate=0, low=0; packages=none; "
            "note=could not parse npm audit JSON (no JSON output)"
        )

    def test_spawn_failure(self) -> None:
        result = CommandResult(exit_code=None, spawn_error="[Errno 2] No such file or directory: 'npm'")
        check = evaluate_audit_output(result)
        assert check.status == CheckStatus.FAIL
        assert check.details == (
            "critical=0, high=0, moderate=0, low=0; packages=none; "
            "note=[Errno 2] No such file or directory: 'npm'"
        )

    def test_custom_tool_label(self) -> None:
        check = evaluate_audit_output(_result(_report(), exit_code=2), tool_label="pip-audit")
        assert check.name == "pip-audit policy"
        assert "pip-audit exited with code 2" in check.details

    @pytest.mark.parametrize(
        "stdout",
        ["", "{", '{"vulnerabilities": 7}', '{"metadata": {"vulnerabilities": "x"}}', "[]", "\x00\x01"],
    )
    def test_never_raises(self, stdout: str) -> None:
        check = evaluate_audit_output(_result(stdout))
        assert check.status in set(CheckStatus)
        assert check.details.startswith("critical=")

    def test_details_are_deterministic(self) -> None:
        stdout = _report(high=1, low=1)
        assert evaluate_audit_output(_result(stdout)) == evaluate_audit_output(_result(stdout))
