"""updated_at trigger checks."""

from __future__ import annotations

from pg_standards.models import Finding, FindingKind

# PostgreSQL truncates identifiers to NAMEDATALEN - 1 bytes.
MAX_IDENTIFIER_LENGTH = 63


def updated_at_trigger_name(table: str) -> str:
    name = f"update_{table}_updated_at"
    return name.encode("utf-8")[:MAX_IDENTIFIER_LENGTH].decode("utf-8", "ignore")


def validate_updated_at_trigger(
    table: str, has_updated_at: bool, trigger_present: bool
) -> list[Finding]:
    if not has_updated_at or trigger_present:
        return []
    return [Finding(kind=FindingKind.MISSING_TRIGGER, table=table)]
