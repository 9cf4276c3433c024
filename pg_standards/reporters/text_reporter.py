"""Plain-text console rendering of helper results."""

from __future__ import annotations

from pg_standards.models import (
    BestPracticesResult,
    HealthStatus,
    OverallHealth,
    SequenceFixResult,
    StructureReport,
    TriggerFixResult,
)

_STATUS_LABEL = {
    HealthStatus.HEALTHY: "OK",
    HealthStatus.WARNING: "WARN",
    HealthStatus.CRITICAL: "FAIL",
}

# Detail lists are cut to this many items unless verbose.
_DETAIL_PREVIEW = 3


def render_health(health: OverallHealth, verbose: bool = False) -> str:
    lines = [f"Overall Health Score: {health.overall_score}%", "", "Health Check Results:"]

    for name, check in health.checks.items():
        lines.append(f"  [{_STATUS_LABEL[check.status]:4s}] {name}: {check.message} ({check.score})")
        if verbose and check.details:
            lines.extend(_render_details(check.details))

    if health.recommendations:
        lines.append("")
        lines.append("Recommendations:")
        for recommendation in health.recommendations:
            lines.append(f"  * {recommendation}")

    return "\n".join(lines)


def _render_details(details: dict) -> list[str]:
    lines = []
    for key, value in details.items():
        if isinstance(value, dict):
            value = [f"{k} ({', '.join(v)})" for k, v in value.items()]
        if isinstance(value, list):
            lines.append(f"     - {key}: {', '.join(str(v) for v in value[:_DETAIL_PREVIEW])}")
            if len(value) > _DETAIL_PREVIEW:
                lines.append(f"       ... and {len(value) - _DETAIL_PREVIEW} more")
        else:
            lines.append(f"     - {key}: {value}")
    return lines


def render_structure(report: StructureReport) -> str:
    lines = [f"Tables checked: {report.tables_checked}"]

    if report.valid:
        lines.append("All tables pass validation!")
    else:
        lines.append("Validation errors found!")
        for table, errors in report.errors.items():
            lines.append(f"  {table}:")
            lines.extend(f"    - {error}" for error in errors)

    if report.warnings:
        lines.append("")
        lines.append("Warnings:")
        for table, warnings in report.warnings.items():
            lines.append(f"  {table}:")
            lines.extend(f"    - {warning}" for warning in warnings)

    return "\n".join(lines)


def render_fix(sequences: SequenceFixResult, triggers: TriggerFixResult) -> str:
    lines = []
    if sequences.sequences_fixed:
        lines.append(f"Sequences fixed: {', '.join(sequences.sequences_fixed)}")
    if triggers.triggers_created:
        lines.append(f"Triggers created: {', '.join(triggers.triggers_created)}")
    lines.append("Database issues fixed!")
    return "\n".join(lines)


def render_best_practices(result: BestPracticesResult) -> str:
    lines = [f"Tables processed: {result.tables_processed}"]

    if result.sequences_fixed:
        lines.append("Sequences to fix:" if result.dry_run else "Sequences fixed:")
        lines.extend(f"  - {s}" for s in result.sequences_fixed)

    if result.triggers_created:
        lines.append("Triggers to create:" if result.dry_run else "Triggers created:")
        lines.extend(f"  - {t}" for t in result.triggers_created)

    if result.dry_run:
        lines.append("This was a dry run. Use without --dry-run to apply changes.")
    else:
        lines.append("PostgreSQL standards applied!")

    return "\n".join(lines)
