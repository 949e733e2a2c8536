"""Tests for checks, severity summaries, snapshots and modes."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from guardrails.domain.entities.check import Check, CheckStatus
from guardrails.domain.entities.posture import PostureLevel, PostureSnapshot
from guardrails.domain.value_objects.mode import EnforcementMode, Scenario
from guardrails.domain.value_objects.severity import SeverityLevel, SeveritySummary


class TestCheck:
    def test_from_result(self) -> None:
        assert Check.from_result("a", True).status == CheckStatus.PASS
        failed = Check.from_result("a", False, "why")
        assert failed.status == CheckStatus.FAIL
        assert failed.details == "why"

    def test_empty_details_become_none(self) -> None:
        assert Check.from_result("a", False, "").details is None

    def test_is_immutable(self) -> None:
        check = Check(name="a", status=CheckStatus.PASS)
        with pytest.raises(ValidationError):
            check.status = CheckStatus.FAIL  # type: ignore[misc]

    def test_payload_omits_missing_details(self) -> None:
        assert Check(name="a", status=CheckStatus.WARN).to_payload() == {"name": "a", "status": "warn"}
        assert Check(name="a", status=CheckStatus.FAIL, details="x").to_payload()["details"] == "x"

    def test_worst(self) -> None:
        assert CheckStatus.worst([]) == CheckStatus.PASS
        assert CheckStatus.worst([CheckStatus.WARN, CheckStatus.PASS]) == CheckStatus.WARN
        assert CheckStatus.worst([CheckStatus.WARN, CheckStatus.FAIL]) == CheckStatus.FAIL


class TestSeveritySummary:
    def test_defaults_are_zero(self) -> None:
        summary = SeveritySummary()
        assert (summary.critical, summary.high, summary.moderate, summary.low) == (0, 0, 0, 0)
        assert summary.describe() == "critical=0, high=0, moderate=0, low=0; packages=none"

    def test_packages_sorted_deduplicated_and_capped(self) -> None:
        summary = SeveritySummary(affected_packages=["g", "b", "a", "b", "f", "e", "d", "c"])
        assert summary.affected_packages == ("a", "b", "c", "d", "e")

    def test_describe_with_note(self) -> None:
        summary = SeveritySummary(moderate=1, affected_packages=["ws"])
        assert summary.describe("hello") == (
            "critical=0, high=0, moderate=1, low=0; packages=ws; note=hello"
        )

    def test_negative_counts_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SeveritySummary(high=-1)

    def test_severity_parse(self) -> None:
        assert SeverityLevel.parse(" HIGH ") == SeverityLevel.HIGH
        assert SeverityLevel.parse("info") is None
        assert SeverityLevel.parse(3) is None


class TestEnforcementMode:
    @pytest.mark.parametrize("raw", ["enforced", "ENFORCE", " eforce ", None, "", "whatever", 1])
    def test_defaults_to_enforced(self, raw: object) -> None:
        assert EnforcementMode.normalize(raw) == EnforcementMode.ENFORCED

    @pytest.mark.parametrize("raw", ["bypass", " Bypass", EnforcementMode.BYPASS])
    def test_bypass(self, raw: object) -> None:
        assert EnforcementMode.normalize(raw) == EnforcementMode.BYPASS


class TestPostureSnapshot:
    def _payload(self, **overrides: object) -> dict[str, object]:
        payload: dict[str, object] = {
            "overall": "red",
            "timestamp": "2025-03-01T12:00:00.000Z",
            "lockfileSha256": None,
            "checks": [
                {"name": "a", "status": "pass"},
                {"name": "b", "status": "fail", "details": "boom"},
            ],
        }
        payload.update(overrides)
        return payload

    def test_from_payload(self) -> None:
        snapshot = PostureSnapshot.from_payload(self._payload())
        assert snapshot.overall == PostureLevel.RED
        assert snapshot.timestamp == datetime(2025, 3, 1, 12, tzinfo=timezone.utc)
        assert snapshot.first_failing_check() == Check(name="b", status=CheckStatus.FAIL, details="boom")

    def test_payload_shape(self) -> None:
        snapshot = PostureSnapshot.from_payload(self._payload(lockfileSha256="00ff"))
        payload = snapshot.to_payload()
        assert payload["overall"] == "red"
        assert payload["lockfileSha256"] == "00ff"
        assert payload["timestamp"] == "2025-03-01T12:00:00Z"
        assert payload["checks"][0] == {"name": "a", "status": "pass"}
        assert "bypassEnabled" not in payload
        assert "simulatedScenario" not in payload

    def test_annotations_serialised(self) -> None:
        snapshot = PostureSnapshot.from_payload(self._payload())
        annotated = snapshot.annotate(bypass_enabled=True, simulated_scenario=Scenario.VERSION_MISMATCH)
        payload = annotated.to_payload()
        assert payload["bypassEnabled"] is True
        assert payload["simulatedScenario"] == "version_mismatch"
        assert annotated.checks == snapshot.checks
        assert annotated.overall == snapshot.overall
        assert snapshot.bypass_enabled is None

    def test_bypass_disabled_reports_null_scenario(self) -> None:
        payload = PostureSnapshot.from_payload(self._payload()).annotate(bypass_enabled=False).to_payload()
        assert payload["bypassEnabled"] is False
        assert payload["simulatedScenario"] is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"overall": "green"},
            {"overall": "purple"},
            {"checks": [{"name": "a", "status": "broken"}]},
            {"checks": [{"status": "pass"}]},
            {"checks": "nope"},
        ],
    )
    def test_invalid_payloads_rejected(self, overrides: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            PostureSnapshot.from_payload(self._payload(**overrides))

    def test_yellow_with_failing_check_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PostureSnapshot.from_payload(self._payload(overall="yellow"))

    @pytest.mark.parametrize(
        "checks",
        [[{"name": "a", "status": "pass"}], []],
    )
    def test_yellow_without_warning_check_rejected(self, checks: list[dict[str, str]]) -> None:
        with pytest.raises(ValidationError):
            PostureSnapshot.from_payload({"overall": "yellow", "checks": checks})

    def test_yellow_with_warning_check_accepted(self) -> None:
        snapshot = PostureSnapshot.from_payload(
            {"overall": "yellow", "checks": [{"name": "a", "status": "pass"}, {"name": "b", "status": "warn"}]}
        )
        assert snapshot.overall == PostureLevel.YELLOW

    def test_red_without_failing_check_accepted(self) -> None:
        snapshot = PostureSnapshot.from_payload({"overall": "red", "checks": []})
        assert snapshot.is_red
        assert snapshot.first_failing_check() is None

    def test_without_timestamp(self) -> None:
        snapshot = PostureSnapshot.from_payload(self._payload())
        assert "timestamp" not in snapshot.without_timestamp()
