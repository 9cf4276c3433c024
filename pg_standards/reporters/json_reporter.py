"""JSON report renderer."""

from __future__ import annotations

import json
from datetime import datetime

from pg_standards import __version__
from pg_standards.models import OverallHealth, StructureReport


def _meta(kind: str, database: str, schema: str, pg_version: str) -> dict:
    return {
        "tool": "pg-standards",
        "version": __version__,
        "report": kind,
        "timestamp": datetime.now().isoformat(),
        "database": database,
        "schema": schema,
        "pg_version": pg_version,
    }


def render_health(
    health: OverallHealth, database: str = "", schema: str = "public", pg_version: str = ""
) -> str:
    """Render an OverallHealth as a JSON string."""
    data = {
        "meta": _meta("health", database, schema, pg_version),
        "overall_score": health.overall_score,
        "checks": {},
        "recommendations": list(health.recommendations),
    }

    for name, check in health.checks.items():
        entry = {
            "status": check.status.value,
            "message": check.message,
            "score": check.score,
        }
        if check.details is not None:
            entry["details"] = check.details
        if check.recommendation is not None:
            entry["recommendation"] = check.recommendation
        data["checks"][name] = entry

    return json.dumps(data, indent=2, default=str)


def render_structure(
    report: StructureReport, database: str = "", schema: str = "public", pg_version: str = ""
) -> str:
    """Render a StructureReport as a JSON string."""
    data = {
        "meta": _meta("structure", database, schema, pg_version),
        "valid": report.valid,
        "tables_checked": report.tables_checked,
        "errors": report.errors,
        "warnings": report.warnings,
        "findings": [
            {
                "kind": f.kind.value,
                "table": f.table,
                "detail": f.detail,
                "message": f.message,
            }
            for f in report.findings
        ],
    }
    return json.dumps(data, indent=2, default=str)
