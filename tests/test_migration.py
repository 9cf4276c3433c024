"""Tests for pg_standards.migration."""

from __future__ import annotations

import ast
import os
from datetime import datetime

from pg_standards.migration import (
    generate_standards_migration,
    tables_needing_standards,
    write_migration,
)
from pg_standards.models import Finding, FindingKind, StructureReport, ValidationResult

NOW = datetime(2026, 3, 1, 14, 5, 9)


def _report(*findings: Finding) -> StructureReport:
    report = StructureReport()
    for finding in findings:
        result = report.results.setdefault(finding.table, ValidationResult(finding.table))
        result.add_finding(finding)
    report.tables_checked = len(report.results)
    return report


class TestTablesNeedingStandards:
    def test_unique_first_seen(self):
        report = _report(
            Finding(FindingKind.SEQUENCE_NEEDS_RESET, "orders", "orders_id_seq"),
            Finding(FindingKind.MISSING_TRIGGER, "orders"),
            Finding(FindingKind.MISSING_TRIGGER, "widgets"),
        )
        assert tables_needing_standards(report) == ["orders", "widgets"]

    def test_errors_alone_do_not_count(self):
        report = StructureReport(
            tables_checked=1,
            results={"users": ValidationResult("users", errors=["Missing required column: id"])},
        )
        assert tables_needing_standards(report) == []


class TestGenerate:
    def test_path(self):
        artifact = generate_standards_migration(_report(), now=NOW)
        assert artifact.path == os.path.join(
            "migrations", "2026_03_01_140509_apply_postgresql_standards.py"
        )
        assert artifact.created_at == NOW

    def test_content_is_valid_python(self):
        artifact = generate_standards_migration(
            _report(Finding(FindingKind.MISSING_TRIGGER, "widgets")), schema="app", now=NOW
        )
        tree = ast.parse(artifact.content)
        names = {node.name for node in tree.body if isinstance(node, ast.FunctionDef)}
        assert names == {"upgrade", "downgrade"}
        assert "SCHEMA = 'app'" in artifact.content
        assert "'widgets'," in artifact.content
        assert "helper.fix_all()" in artifact.content

    def test_no_tables(self):
        artifact = generate_standards_migration(_report(), now=NOW)
        assert artifact.tables == []
        assert "TABLES = []" in artifact.content


class TestWrite:
    def test_creates_directory(self, tmp_path):
        artifact = generate_standards_migration(_report(), now=NOW)
        path = write_migration(artifact, str(tmp_path))
        assert os.path.isfile(path)
        assert path.startswith(str(tmp_path))
        with open(path) as f:
            assert f.read() == artifact.content
