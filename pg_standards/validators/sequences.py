"""Sequence sanity checks."""

from __future__ import annotations

from pg_standards.models import Finding, FindingKind, SequenceState


def needs_reset(sequence: SequenceState) -> bool:
    return sequence.last_value < 1


def is_problematic(sequence: SequenceState, column_max: int | None) -> bool:
    """A sequence is problematic below 1 or behind its column's max value."""
    if needs_reset(sequence):
        return True
    return column_max is not None and sequence.last_value < column_max


def validate_sequences(table: str, sequences: list[SequenceState]) -> list[Finding]:
    """Findings for sequences a repair would reset.

    Sequences with no owning column are skipped; repair cannot resync them.
    """
    return [
        Finding(kind=FindingKind.SEQUENCE_NEEDS_RESET, table=table, detail=s.sequence_name)
        for s in sequences
        if s.column_name and needs_reset(s)
    ]
