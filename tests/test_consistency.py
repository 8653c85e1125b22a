"""Tests for the cross-source consistency validator."""

from __future__ import annotations

import pytest

from workforce.classification.models import Position
from workforce.classification.rules import ClassificationEngine
from workforce.core.types import Classification, Severity
from workforce.governance.validation_log import RecordingValidationLogger
from workforce.review.consistency import ConsistencyValidator
from tests.conftest import make_position


@pytest.fixture()
def validator(engine: ClassificationEngine, recording_log: RecordingValidationLogger) -> ConsistencyValidator:
    return ConsistencyValidator(engine, log=recording_log)


class TestValidateConsistency:
    def test_empty_registry_is_valid(self, validator: ConsistencyValidator) -> None:
        report = validator.validate_consistency()
        assert report.is_valid is True
        assert report.inconsistencies == []
        assert report.summary.total_positions == 0
        assert report.summary.classification_counts == {"direct": 0, "indirect": 0, "OH": 0}
        assert report.summary.pages_covered == []

    def test_conflicting_tags_across_pages(self, validator: ConsistencyValidator) -> None:
        validator.register_positions(
            "page1", [make_position("CE", "TM", subtitle="Mixing", classification="direct", source="page1")]
        )
        validator.register_positions(
            "page2", [make_position("CE", "TM", subtitle="Mixing", classification="OH", source="page2")]
        )
        report = validator.validate_consistency()

        assert report.is_valid is False
        assert len(report.inconsistencies) == 1
        issue = report.inconsistencies[0]
        assert issue.pages == ["page1", "page2"]
        assert issue.expected_classification == Classification.DIRECT
        assert issue.actual_classification == Classification.OH
        assert issue.severity == Severity.ERROR
        assert issue.reason == "Position appears with different classifications across pages: page1, page2"
        assert report.summary.total_positions == 2
        assert report.summary.valid_positions == 1
        assert report.summary.inconsistent_positions == 1

    def test_consistent_tags_pass(self, validator: ConsistencyValidator) -> None:
        validator.register_positions("page1", [make_position("Quality", "GL", classification="OH")])
        validator.register_positions("page2", [make_position("Quality", "GL", classification="OH")])
        assert validator.validate_consistency().is_valid is True

    def test_untagged_members_use_engine(self, validator: ConsistencyValidator) -> None:
        validator.register_positions("page1", [make_position("Raw Material", "TM")])
        validator.register_positions("page2", [make_position("RawMaterial", "TM")])
        report = validator.validate_consistency()
        assert report.is_valid is True
        assert report.summary.classification_counts["indirect"] == 1

    def test_single_member_groups_never_flagged(self, validator: ConsistencyValidator) -> None:
        # The tag is wrong, but nothing contradicts it across sources.
        validator.register_positions("page1", [make_position("CE", "TM", subtitle="Mixing", classification="OH")])
        assert validator.validate_consistency().is_valid is True

    def test_multiline_department_groups_with_canonical(self, validator: ConsistencyValidator) -> None:
        validator.register_positions(
            "page1", [make_position("Plant Production\n(Outsole degreasing)", "TM", classification="indirect")]
        )
        validator.register_positions("page2", [make_position("Plant Production", "TM", classification="direct")])
        report = validator.validate_consistency()
        assert len(report.inconsistencies) == 1
        assert report.inconsistencies[0].department == "Plant Production\n(Outsole degreasing)"
        assert report.inconsistencies[0].expected_classification == Classification.DIRECT

    def test_counts_are_per_group(self, validator: ConsistencyValidator) -> None:
        validator.register_positions(
            "page1",
            [
                make_position("CE", "TM", subtitle="Mixing"),
                make_position("Quality", "GL"),
                make_position("Quality", "TL"),
            ],
        )
        validator.register_positions(
            "page2",
            [make_position("CE", "TM", subtitle="Mixing"), make_position("Admin", "TM")],
        )
        summary = validator.validate_consistency().summary
        assert summary.total_positions == 5
        assert summary.classification_counts == {"direct": 1, "indirect": 1, "OH": 2}
        assert summary.pages_covered == ["page1", "page2"]

    def test_repeated_runs_are_identical(self, validator: ConsistencyValidator) -> None:
        validator.register_positions("page1", [make_position("CE", "TM", subtitle="Mixing", classification="direct")])
        validator.register_positions("page2", [make_position("CE", "TM", subtitle="Mixing", classification="OH")])
        first = validator.validate_consistency()
        second = validator.validate_consistency()
        assert first.is_valid == second.is_valid
        assert first.inconsistencies == second.inconsistencies
        assert first.summary == second.summary

    def test_malformed_entry_is_skipped(
        self, validator: ConsistencyValidator, recording_log: RecordingValidationLogger
    ) -> None:
        validator.register_positions(
            "page1",
            [
                make_position("Quality", "GL"),
                {"department": ["CE"], "level": "TM"},
            ],
        )
        report = validator.validate_consistency()
        assert report.is_valid is True
        assert report.summary.total_positions == 1
        assert len(recording_log.get_logs(category="system")) == 1

    def test_accepts_position_models(self, validator: ConsistencyValidator) -> None:
        validator.register_positions("page1", [Position(department="Quality", level="GL", classification="OH")])
        validator.register_positions("page2", [Position(department="Quality", level="GL", classification="indirect")])
        report = validator.validate_consistency()
        assert len(report.inconsistencies) == 1
        assert report.inconsistencies[0].pages == ["page1", "page2"]

    def test_failure_logged_as_warning(
        self, validator: ConsistencyValidator, recording_log: RecordingValidationLogger
    ) -> None:
        validator.register_positions("page1", [make_position("CE", "TM", subtitle="Mixing", classification="direct")])
        validator.register_positions("page2", [make_position("CE", "TM", subtitle="Mixing", classification="OH")])
        validator.validate_consistency()
        messages = [e.message for e in recording_log.get_logs(level="warning")]
        assert "Validation report: FAILED - 1 inconsistencies found" in messages


class TestRegistry:
    def test_register_replaces_source(self, validator: ConsistencyValidator) -> None:
        validator.register_positions("page1", [make_position("Quality", "GL"), make_position("Quality", "TL")])
        validator.register_positions("page1", [make_position("Quality", "GL")])
        assert validator.validate_consistency().summary.total_positions == 1

    def test_clear(self, validator: ConsistencyValidator) -> None:
        validator.register_positions("page1", [make_position("Quality", "GL")])
        validator.clear_positions()
        assert validator.registered_sources == []
        assert validator.validate_consistency().summary.total_positions == 0

    def test_registration_snapshots_iterables(self, validator: ConsistencyValidator) -> None:
        validator.register_positions("page1", (make_position("Quality", level) for level in ("GL", "TL")))
        assert validator.validate_consistency().summary.total_positions == 2
        assert validator.validate_consistency().summary.total_positions == 2


class TestValidatePosition:
    def test_valid_position(self, validator: ConsistencyValidator) -> None:
        result = validator.validate_position(make_position("CE", "TM", subtitle="Mixing", classification="direct"))
        assert result.is_valid is True
        assert result.expected_classification == Classification.DIRECT
        assert result.issues == []
        assert result.warnings == []

    def test_missing_fields(self, validator: ConsistencyValidator) -> None:
        result = validator.validate_position({"id": "x"})
        assert result.is_valid is False
        assert result.issues == ["Department is required", "Level is required"]

    def test_mismatch_is_a_warning(self, validator: ConsistencyValidator) -> None:
        result = validator.validate_position(make_position("Quality", "GL", classification="direct"))
        assert result.is_valid is True
        assert result.warnings == ["Classification mismatch: expected OH, got direct"]

    def test_unknown_department_warns(self, validator: ConsistencyValidator) -> None:
        result = validator.validate_position(make_position("Kitchen", "TM"))
        assert result.is_valid is True
        assert result.warnings == ["Unknown department: Kitchen"]

    def test_alias_is_known(self, validator: ConsistencyValidator) -> None:
        assert validator.validate_position(make_position("FGWH", "TM")).warnings == []

    def test_unparseable_record(self, validator: ConsistencyValidator) -> None:
        result = validator.validate_position({"id": "bad", "department": ["x"], "level": "TM"})
        assert result.is_valid is False
        assert result.position.id == "bad"
        assert result.issues == ["System error during position validation"]


class TestDetailedReport:
    def test_breakdowns(self, validator: ConsistencyValidator) -> None:
        validator.register_positions(
            "page1",
            [
                make_position("CE", "TM", subtitle="Mixing", classification="direct"),
                make_position("Quality", "GL"),
            ],
        )
        validator.register_positions(
            "page2",
            [
                make_position("CE", "TM", subtitle="Mixing", classification="OH"),
                make_position("Quality", "TL"),
            ],
        )
        report = validator.generate_detailed_report()

        assert report.is_valid is False
        ce = report.department_analysis["CE"]
        assert ce.total_positions == 2
        assert ce.classifications["direct"] == 2
        assert ce.inconsistencies == 1
        quality = report.department_analysis["Quality"]
        assert quality.total_positions == 2
        assert quality.classifications["OH"] == 1
        assert quality.classifications["indirect"] == 1
        assert quality.inconsistencies == 0
        assert report.level_analysis["TM"].inconsistencies == 1
        assert report.level_analysis["GL"].total_positions == 1

    def test_camel_case_output(self, validator: ConsistencyValidator) -> None:
        validator.register_positions("page1", [make_position("Quality", "GL")])
        data = validator.generate_detailed_report().model_dump(by_alias=True)
        assert data["isValid"] is True
        assert "departmentAnalysis" in data
        assert data["summary"]["classificationCounts"]["OH"] == 1


class TestExplicitTags:
    def test_empty_tag_is_untagged(self, validator: ConsistencyValidator) -> None:
        validator.register_positions("page1", [make_position("CE", "TM", subtitle="Mixing", classification="")])
        validator.register_positions("page2", [make_position("CE", "TM", subtitle="Mixing", classification="OH")])
        report = validator.validate_consistency()

        assert report.summary.total_positions == 2
        assert len(report.inconsistencies) == 1
        issue = report.inconsistencies[0]
        assert issue.expected_classification == Classification.DIRECT
        assert issue.actual_classification == Classification.OH
        assert issue.pages == ["page1", "page2"]

    def test_unknown_tag_is_reported(self, validator: ConsistencyValidator) -> None:
        validator.register_positions("page1", [make_position("Quality", "GL", classification="OH")])
        validator.register_positions("page2", [make_position("Quality", "GL", classification="Indirect")])
        report = validator.validate_consistency()

        assert report.is_valid is False
        assert report.summary.total_positions == 2
        assert len(report.inconsistencies) == 1
        assert report.inconsistencies[0].actual_classification == "Indirect"
        assert report.model_dump(by_alias=True)["inconsistencies"][0]["actualClassification"] == "Indirect"

    def test_unknown_tag_in_validate_position(self, validator: ConsistencyValidator) -> None:
        result = validator.validate_position(make_position("Quality", "GL", classification="Overhead"))
        assert result.is_valid is True
        assert result.actual_classification == "Overhead"
        assert result.warnings == ["Classification mismatch: expected OH, got Overhead"]


class TestDegradedReport:
    def test_registry_failure_gives_system_record(
        self,
        validator: ConsistencyValidator,
        recording_log: RecordingValidationLogger,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def broken_snapshot():
            raise RuntimeError("registry unavailable")

        validator.register_positions("page1", [make_position("Quality", "GL")])
        monkeypatch.setattr(validator, "_snapshot", broken_snapshot)
        report = validator.validate_consistency()

        assert report.is_valid is False
        assert len(report.inconsistencies) == 1
        record = report.inconsistencies[0]
        assert record.department == "SYSTEM"
        assert record.level == "ERROR"
        assert record.reason == "System error during validation"
        assert report.summary.inconsistent_positions == 1
        errors = recording_log.get_logs(category="system")
        assert errors[-1].details["context"] == "ConsistencyValidator.validate_consistency"

    def test_report_logging_failure_gives_system_record(
        self, validator: ConsistencyValidator, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def broken_log_report(report):
            raise ValueError("cannot summarize")

        monkeypatch.setattr(validator, "_log_report", broken_log_report)
        report = validator.validate_consistency()
        assert report.is_valid is False
        assert [i.department for i in report.inconsistencies] == ["SYSTEM"]
