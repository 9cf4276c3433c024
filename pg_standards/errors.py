"""Exceptions raised by pg-standards."""

from __future__ import annotations


class PgStandardsError(Exception):
    """Base class for all pg-standards errors."""


class ConfigError(PgStandardsError):
    """Raised when configuration or command-line input is invalid."""


class SqlAssetError(PgStandardsError):
    """Raised when a packaged SQL script is missing or unreadable.

    This points at a broken installation, not a database problem.
    """
