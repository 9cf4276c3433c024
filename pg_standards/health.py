"""Health scoring: five independent checks and their aggregate."""

from __future__ import annotations

import math
from typing import Callable

from pg_standards import catalog
from pg_standards.catalog import DuplicateIndexGroup, IndexUsage, LargeTable
from pg_standards.models import (
    HealthCheckResult,
    HealthStatus,
    OperationStat,
    OverallHealth,
    SequenceState,
    StructureReport,
)
from pg_standards.validators.sequences import is_problematic
from pg_standards.validators.triggers import updated_at_trigger_name

CHECK_ORDER = ("sequences", "triggers", "structure", "performance", "indexes")

RECOMMENDATION_THRESHOLD = 80
SLOW_AVERAGE_SECONDS = 1.0

SEQUENCE_RECOMMENDATION = "Run `pg-standards fix` to resynchronise sequences"
TRIGGER_RECOMMENDATION = "Run `pg-standards fix` to add missing updated_at triggers"
STRUCTURE_RECOMMENDATION = "Review structure validation errors and update schema accordingly"
PERFORMANCE_RECOMMENDATION = (
    "Consider using selective operations for large tables and optimizing slow operations"
)
INDEX_RECOMMENDATION = "Review and remove unused or duplicate indexes to improve performance"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def ratio_score(total: int, problems: int) -> int:
    """Percentage of healthy items; 100 when there is nothing to check."""
    if total <= 0:
        return 100
    return round_half_up(100 * (total - problems) / total)


def count_status(problems: int, warning_below: int) -> HealthStatus:
    if problems == 0:
        return HealthStatus.HEALTHY
    if problems < warning_below:
        return HealthStatus.WARNING
    return HealthStatus.CRITICAL


# -- Sequences ----------------------------------------------------------------


def find_problematic_sequences(
    sequences: list[SequenceState], column_max: Callable[[SequenceState], int | None]
) -> list[str]:
    problems = []
    for sequence in sequences:
        # Only look up MAX() when last_value alone does not decide it.
        if sequence.last_value < 1 or is_problematic(sequence, column_max(sequence)):
            problems.append(sequence.sequence_name)
    return problems


def build_sequence_result(total: int, problems: list[str]) -> HealthCheckResult:
    count = len(problems)
    if count == 0:
        return HealthCheckResult(
            status=HealthStatus.HEALTHY,
            message=f"All {total} sequences are properly configured",
            score=ratio_score(total, 0),
        )
    return HealthCheckResult(
        status=count_status(count, warning_below=3),
        message=f"{count} of {total} sequences need attention",
        score=ratio_score(total, count),
        details={"problem_sequences": problems},
        recommendation=SEQUENCE_RECOMMENDATION,
    )


def check_sequence_health(conn, schema: str = "public") -> HealthCheckResult:
    sequences = catalog.list_sequences(conn, schema)

    def column_max(sequence: SequenceState) -> int | None:
        if not sequence.column_name:
            return None
        return catalog.column_max_value(conn, sequence.table_name, sequence.column_name, schema)

    return build_sequence_result(len(sequences), find_problematic_sequences(sequences, column_max))


# -- Triggers -----------------------------------------------------------------


def build_trigger_result(total: int, missing: list[str]) -> HealthCheckResult:
    count = len(missing)
    if count == 0:
        return HealthCheckResult(
            status=HealthStatus.HEALTHY,
            message=f"All {total} tables with updated_at have triggers",
            score=ratio_score(total, 0),
        )
    return HealthCheckResult(
        status=count_status(count, warning_below=5),
        message=f"{count} of {total} tables missing updated_at triggers",
        score=ratio_score(total, count),
        details={"missing_triggers": missing},
        recommendation=TRIGGER_RECOMMENDATION,
    )


def check_trigger_health(conn, schema: str = "public") -> HealthCheckResult:
    tables = catalog.list_tables_with_column(conn, "updated_at", schema)
    missing = [
        t for t in tables if not catalog.trigger_exists(conn, updated_at_trigger_name(t), t, schema)
    ]
    return build_trigger_result(len(tables), missing)


# -- Structure ----------------------------------------------------------------


def structure_score(tables_checked: int, error_tables: int, warning_tables: int) -> int:
    if tables_checked <= 0:
        return 100
    penalty = 50 * error_tables / tables_checked + 25 * warning_tables / tables_checked
    return max(0, round_half_up(100 - penalty))


def check_structure_health(report: StructureReport) -> HealthCheckResult:
    """Score a full validation; errors weigh twice as much as warnings."""
    errors = report.errors
    warnings = report.warnings
    error_count = len(errors)
    warning_count = len(warnings)

    if error_count:
        status = HealthStatus.CRITICAL
    elif warning_count:
        status = HealthStatus.WARNING
    else:
        status = HealthStatus.HEALTHY

    details = None
    recommendation = None
    if error_count or warning_count:
        details = {"errors": errors, "warnings": warnings}
        recommendation = STRUCTURE_RECOMMENDATION

    return HealthCheckResult(
        status=status,
        message=(
            f"Checked {report.tables_checked} tables: "
            f"{error_count} errors, {warning_count} warnings"
        ),
        score=structure_score(report.tables_checked, error_count, warning_count),
        details=details,
        recommendation=recommendation,
    )


# -- Performance --------------------------------------------------------------


def build_performance_result(
    operations: dict[str, OperationStat], large_tables: list[LargeTable]
) -> HealthCheckResult:
    score = 100.0
    issues = []

    for name, stat in operations.items():
        if stat.average_time > SLOW_AVERAGE_SECONDS:
            score -= 20
            issues.append(f"{name} averaging {stat.average_time:.2f}s")

    # 10 points per large table, 30 at most in total.
    for table in large_tables:
        score -= min(10, 30 / len(large_tables))
        issues.append(f"Large table: {table.table_name} ({table.size})")

    final = max(0, round_half_up(score))
    if not issues:
        return HealthCheckResult(
            status=HealthStatus.from_score(final),
            message="No performance concerns detected",
            score=final,
        )
    return HealthCheckResult(
        status=HealthStatus.from_score(final),
        message="Performance issues detected",
        score=final,
        details={"issues": issues},
        recommendation=PERFORMANCE_RECOMMENDATION,
    )


def check_performance_health(conn, operations: dict[str, OperationStat], schema: str = "public"):
    return build_performance_result(operations, catalog.list_large_tables(conn, schema))


# -- Indexes ------------------------------------------------------------------


def build_index_result(
    unused: list[IndexUsage], duplicates: list[DuplicateIndexGroup]
) -> HealthCheckResult:
    score = 100
    score -= min(50, len(unused) * 10)
    score -= min(30, len(duplicates) * 15)
    score = max(0, score)

    issues = []
    if unused:
        issues.append(f"{len(unused)} unused indexes consuming space")
    if duplicates:
        issues.append(f"{len(duplicates)} duplicate indexes found")

    if not issues:
        return HealthCheckResult(
            status=HealthStatus.from_score(score),
            message="Index configuration is optimal",
            score=score,
        )
    return HealthCheckResult(
        status=HealthStatus.from_score(score),
        message=", ".join(issues),
        score=score,
        details={
            "unused_indexes": [i.index_name for i in unused],
            "duplicate_indexes": {d.table_name: d.indexes for d in duplicates},
        },
        recommendation=INDEX_RECOMMENDATION,
    )


def check_index_health(conn, schema: str = "public") -> HealthCheckResult:
    return build_index_result(
        catalog.list_unused_indexes(conn, schema),
        catalog.list_duplicate_indexes(conn, schema),
    )


# -- Aggregate ----------------------------------------------------------------


def aggregate(checks: dict[str, HealthCheckResult]) -> OverallHealth:
    """Combine check results into an overall score and recommendation list.

    The overall score is the rounded mean. Recommendations come from checks
    scoring below 80, in CHECK_ORDER (unknown names last, in insertion order).
    """
    ordered = [n for n in CHECK_ORDER if n in checks] + [n for n in checks if n not in CHECK_ORDER]
    ordered_checks = {name: checks[name] for name in ordered}

    if not ordered_checks:
        return OverallHealth(overall_score=100)

    scores = [c.score for c in ordered_checks.values()]
    recommendations = [
        c.recommendation
        for c in ordered_checks.values()
        if c.score < RECOMMENDATION_THRESHOLD and c.recommendation
    ]
    return OverallHealth(
        overall_score=round_half_up(sum(scores) / len(scores)),
        checks=ordered_checks,
        recommendations=recommendations,
    )
