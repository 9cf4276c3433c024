"""Tests for the text and JSON reporters."""

from __future__ import annotations

import json

from pg_standards.models import (
    BestPracticesResult,
    Finding,
    FindingKind,
    HealthCheckResult,
    HealthStatus,
    OverallHealth,
    SequenceFixResult,
    StructureReport,
    TriggerFixResult,
    TriggerOutcome,
    ValidationResult,
)
from pg_standards.reporters import json_reporter, text_reporter


def _health() -> OverallHealth:
    return OverallHealth(
        overall_score=70,
        checks={
            "sequences": HealthCheckResult(HealthStatus.HEALTHY, "All 3 sequences are properly configured", 100),
            "triggers": HealthCheckResult(
                HealthStatus.WARNING,
                "1 of 2 tables missing updated_at triggers",
                50,
                details={"missing_triggers": ["a", "b", "c", "d", "e"]},
                recommendation="Add triggers",
            ),
            "indexes": HealthCheckResult(
                HealthStatus.HEALTHY,
                "1 duplicate indexes found",
                85,
                details={"unused_indexes": [], "duplicate_indexes": {"users": ["i1", "i2"]}},
            ),
        },
        recommendations=["Add triggers"],
    )


def _structure() -> StructureReport:
    bad = ValidationResult("users", errors=["Missing required column: id"])
    warn = ValidationResult("orders")
    warn.add_finding(Finding(FindingKind.SEQUENCE_NEEDS_RESET, "orders", "orders_id_seq"))
    return StructureReport(tables_checked=2, results={"users": bad, "orders": warn})


class TestTextHealth:
    def test_score_and_checks(self):
        out = text_reporter.render_health(_health())
        assert "Overall Health Score: 70%" in out
        assert "[WARN] triggers: 1 of 2 tables missing updated_at triggers (50)" in out
        assert "Recommendations:\n  * Add triggers" in out

    def test_details_only_when_verbose(self):
        assert "missing_triggers" not in text_reporter.render_health(_health())
        out = text_reporter.render_health(_health(), verbose=True)
        assert "- missing_triggers: a, b, c" in out
        assert "... and 2 more" in out
        assert "- duplicate_indexes: users (i1, i2)" in out


class TestTextStructure:
    def test_errors_and_warnings(self):
        out = text_reporter.render_structure(_structure())
        assert "Tables checked: 2" in out
        assert "Validation errors found!" in out
        assert "  users:\n    - Missing required column: id" in out
        assert "Sequence 'orders_id_seq' may need to be reset" in out

    def test_valid(self):
        out = text_reporter.render_structure(StructureReport(tables_checked=1))
        assert "All tables pass validation!" in out
        assert "Warnings" not in out


class TestTextFixes:
    def test_fix(self):
        out = text_reporter.render_fix(
            SequenceFixResult(sequences_fixed=["orders_id_seq"]),
            TriggerFixResult(outcomes={"widgets": TriggerOutcome.CREATED, "tags": TriggerOutcome.NOT_APPLICABLE}),
        )
        assert out.splitlines() == [
            "Sequences fixed: orders_id_seq",
            "Triggers created: widgets",
            "Database issues fixed!",
        ]

    def test_best_practices_dry_run(self):
        result = BestPracticesResult(
            tables_processed=1, triggers_created=["t1 (would create)"], dry_run=True
        )
        out = text_reporter.render_best_practices(result)
        assert "Triggers to create:\n  - t1 (would create)" in out
        assert out.endswith("Use without --dry-run to apply changes.")


class TestJson:
    def test_health(self):
        data = json.loads(json_reporter.render_health(_health(), database="app"))
        assert data["meta"]["database"] == "app"
        assert data["meta"]["report"] == "health"
        assert data["overall_score"] == 70
        assert data["checks"]["triggers"]["status"] == "warning"
        assert "details" not in data["checks"]["sequences"]
        assert data["recommendations"] == ["Add triggers"]

    def test_structure(self):
        data = json.loads(json_reporter.render_structure(_structure()))
        assert data["valid"] is False
        assert data["meta"]["pg_version"] == ""
        assert data["errors"] == {"users": ["Missing required column: id"]}
        assert data["findings"] == [
            {
                "kind": "sequence_needs_reset",
                "table": "orders",
                "detail": "orders_id_seq",
                "message": "Sequence 'orders_id_seq' may need to be reset",
            }
        ]

    def test_server_version_in_meta(self):
        data = json.loads(
            json_reporter.render_health(_health(), database="app", schema="tenant", pg_version="16.2")
        )
        assert data["meta"]["pg_version"] == "16.2"
        assert data["meta"]["schema"] == "tenant"
