"""Required-index validation."""

from __future__ import annotations

from pg_standards.rules import matches


def validate_required_indexes(table: str, existing: list[str], required: set[str]) -> list[str]:
    """Return one warning per required index with no match.

    Each required entry is a suffix: ``name_unique`` on table ``users`` is
    looked up as the glob ``users_name_unique``.
    """
    warnings = []
    for index in sorted(required):
        pattern = f"{table}_{index}"
        if not any(matches(pattern, name) for name in existing):
            warnings.append(f"Missing recommended index: {index}")
    return warnings
