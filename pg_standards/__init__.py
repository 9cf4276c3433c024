"""pg-standards: PostgreSQL sequence, trigger and structure maintenance."""

__version__ = "0.1.0"
