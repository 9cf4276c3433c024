"""Resolve which table_validations rules apply to a table."""

from __future__ import annotations

import fnmatch

from pg_standards.models import ValidationRule

_WILDCARDS = "*?["


def matches(pattern: str, name: str) -> bool:
    """Case-sensitive glob match (`*` matches any run of characters)."""
    return fnmatch.fnmatchcase(name, pattern)


def specificity(pattern: str) -> tuple[int, str]:
    """Sort key: patterns with more literal characters are more specific."""
    literal = sum(1 for ch in pattern if ch not in _WILDCARDS)
    return literal, pattern


def matching_patterns(table: str, rules: dict[str, ValidationRule]) -> list[str]:
    """Return the patterns that match `table`, least specific first."""
    return sorted((p for p in rules if matches(p, table)), key=specificity)


def match_rules(table: str, rules: dict[str, ValidationRule]) -> ValidationRule:
    """Merge every rule whose pattern matches the table name.

    Sets are unioned and mappings are merged. Rules are applied from the least
    to the most specific pattern, so when two rules set the same column type or
    constraint name, the more specific pattern wins.

    Returns an empty rule when nothing matches.
    """
    merged = ValidationRule()
    for pattern in matching_patterns(table, rules):
        rule = rules[pattern]
        merged.required_columns |= rule.required_columns
        merged.required_indexes |= rule.required_indexes
        merged.required_constraints.update(rule.required_constraints)
        merged.column_types.update(rule.column_types)
    return merged


def find_conflicts(table: str, rules: dict[str, ValidationRule]) -> list[str]:
    """Describe keys that two matching patterns set to different values."""
    conflicts = []
    seen_types: dict[str, tuple[str, str]] = {}
    seen_constraints: dict[str, tuple[str, str]] = {}

    for pattern in matching_patterns(table, rules):
        rule = rules[pattern]
        for column, expected in rule.column_types.items():
            previous = seen_types.get(column)
            if previous and previous[1] != expected:
                conflicts.append(
                    f"column_types[{column}]: '{previous[0]}' says '{previous[1]}', "
                    f"'{pattern}' says '{expected}'"
                )
            seen_types[column] = (pattern, expected)
        for name, kind in rule.required_constraints.items():
            previous = seen_constraints.get(name)
            if previous and previous[1] != kind:
                conflicts.append(
                    f"required_constraints[{name}]: '{previous[0]}' says '{previous[1]}', "
                    f"'{pattern}' says '{kind}'"
                )
            seen_constraints[name] = (pattern, kind)

    return conflicts
