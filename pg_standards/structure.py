"""Structure validation: configured rules plus best-practice checks."""

from __future__ import annotations

from pg_standards import catalog
from pg_standards.models import StructureReport, ValidationResult, ValidationRule
from pg_standards.rules import match_rules
from pg_standards.validators.columns import validate_column_types, validate_required_columns
from pg_standards.validators.constraints import validate_required_constraints
from pg_standards.validators.indexes import validate_required_indexes
from pg_standards.validators.sequences import validate_sequences
from pg_standards.validators.triggers import (
    updated_at_trigger_name,
    validate_updated_at_trigger,
)


def validate_table(
    conn,
    table: str,
    rules: dict[str, ValidationRule],
    schema: str = "public",
) -> ValidationResult:
    """Validate one table.

    Errors come from rule violations (missing columns or constraints, type
    mismatches). Warnings come from missing indexes and from best-practice
    findings, which run whether or not a rule matched.
    """
    result = ValidationResult(table=table)

    rule = match_rules(table, rules)
    if not rule.is_empty:
        _validate_with_rule(conn, table, rule, schema, result)

    _validate_best_practices(conn, table, schema, result)
    return result


def validate_structure(
    conn,
    rules: dict[str, ValidationRule],
    tables: list[str] | None = None,
    schema: str = "public",
) -> StructureReport:
    """Validate the given tables, or every table in the schema."""
    targets = tables if tables is not None else catalog.list_tables(conn, schema)
    report = StructureReport()
    for table in targets:
        report.tables_checked += 1
        report.results[table] = validate_table(conn, table, rules, schema)
    return report


def _validate_with_rule(
    conn, table: str, rule: ValidationRule, schema: str, result: ValidationResult
) -> None:
    if rule.required_columns or rule.column_types:
        columns = catalog.list_columns(conn, table, schema)
        names = [c.name for c in columns]
        result.errors.extend(validate_required_columns(names, rule.required_columns))
        if rule.column_types:
            result.errors.extend(validate_column_types(columns, rule.column_types))

    if rule.required_indexes:
        indexes = catalog.list_indexes(conn, table, schema)
        result.warnings.extend(validate_required_indexes(table, indexes, rule.required_indexes))

    if rule.required_constraints:
        constraints = catalog.list_constraints(conn, table, schema)
        result.errors.extend(validate_required_constraints(constraints, rule.required_constraints))


def _validate_best_practices(conn, table: str, schema: str, result: ValidationResult) -> None:
    sequences = catalog.list_table_sequences(conn, table, schema)
    for finding in validate_sequences(table, sequences):
        result.add_finding(finding)

    has_updated_at = catalog.column_exists(conn, table, "updated_at", schema)
    trigger_present = has_updated_at and catalog.trigger_exists(
        conn, updated_at_trigger_name(table), table, schema
    )
    for finding in validate_updated_at_trigger(table, has_updated_at, trigger_present):
        result.add_finding(finding)
