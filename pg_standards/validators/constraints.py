"""Required-constraint validation."""

from __future__ import annotations

from pg_standards.catalog import ConstraintInfo
from pg_standards.rules import matches


def validate_required_constraints(
    existing: list[ConstraintInfo], required: dict[str, str]
) -> list[str]:
    """Each (name pattern, kind) pair needs a constraint matching both."""
    errors = []
    for name, kind in required.items():
        found = any(matches(name, c.name) and c.kind == kind for c in existing)
        if not found:
            errors.append(f"Missing required constraint: {name} (type: {kind})")
    return errors
