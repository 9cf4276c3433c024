"""Required-column and column-type validation."""

from __future__ import annotations

from pg_standards.catalog import ColumnInfo

# Expected type -> catalog types accepted for it.
TYPE_ALIASES: dict[str, set[str]] = {
    "bigint": {"bigint"},
    "integer": {"integer", "int"},
    "text": {"text", "character varying", "varchar"},
    "timestamp": {"timestamp without time zone", "timestamp with time zone"},
    "boolean": {"boolean", "bool"},
}


def validate_required_columns(existing: list[str], required: set[str]) -> list[str]:
    """Return one error per required column missing from `existing`."""
    present = set(existing)
    return [f"Missing required column: {name}" for name in sorted(required - present)]


def type_matches(actual: str, expected: str) -> bool:
    actual = actual.strip().lower()
    expected = expected.strip().lower()
    if actual == expected:
        return True
    return actual in TYPE_ALIASES.get(expected, set())


def validate_column_types(columns: list[ColumnInfo], expected_types: dict[str, str]) -> list[str]:
    """Check configured columns that exist; absent columns are not reported here."""
    errors = []
    for column in columns:
        expected = expected_types.get(column.name)
        if expected is None:
            continue
        if not type_matches(column.data_type, expected):
            errors.append(
                f"Column '{column.name}' has type '{column.data_type}', expected '{expected}'"
            )
    return errors
