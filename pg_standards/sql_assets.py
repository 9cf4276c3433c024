"""Packaged SQL scripts (trigger and repair functions)."""

from __future__ import annotations

import logging
from pathlib import Path

from pg_standards.errors import SqlAssetError

logger = logging.getLogger(__name__)

SQL_DIR = Path(__file__).parent / "sql"

UPDATED_AT_FUNCTION = "000020_update_updated_at_column.sql"
UPDATED_AT_TRIGGERS = "000030_updated_at_column_for_tables.sql"
FIX_ALL_SEQ = "000040_fix_all_seq.sql"
FIX_DB = "000050_fix_db.sql"
AUTO_APPLY_STANDARDS = "000060_auto_apply_standards.sql"
UUID_HELPERS = "000070_uuid_helper_functions.sql"

ALL_SCRIPTS = (
    UPDATED_AT_FUNCTION,
    UPDATED_AT_TRIGGERS,
    FIX_ALL_SEQ,
    FIX_DB,
    AUTO_APPLY_STANDARDS,
    UUID_HELPERS,
)

# Scripts fix_db() needs, in install order.
FIX_DB_SCRIPTS = (UPDATED_AT_FUNCTION, UPDATED_AT_TRIGGERS, FIX_ALL_SEQ, FIX_DB)

# Scripts the event trigger function needs, in install order.
EVENT_TRIGGER_SCRIPTS = (UPDATED_AT_FUNCTION, UPDATED_AT_TRIGGERS, FIX_ALL_SEQ, AUTO_APPLY_STANDARDS)


def sql_path(name: str, sql_dir: Path = SQL_DIR) -> Path:
    return sql_dir / name


def load_sql(name: str, sql_dir: Path = SQL_DIR) -> str:
    """Return the contents of a packaged SQL script.

    Raises:
        SqlAssetError: The script is missing or cannot be read.
    """
    path = sql_path(name, sql_dir)
    if not path.is_file():
        raise SqlAssetError(f"SQL file not found: {name}")
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise SqlAssetError(f"Failed to read SQL file: {name}") from e


def verify_sql_assets(sql_dir: Path = SQL_DIR, names: tuple[str, ...] = ALL_SCRIPTS) -> None:
    """Fail fast if the installation is missing any packaged script."""
    missing = [name for name in names if not sql_path(name, sql_dir).is_file()]
    if missing:
        raise SqlAssetError(f"Missing packaged SQL files: {', '.join(missing)}")


def execute_sql_file(conn, name: str, sql_dir: Path = SQL_DIR) -> None:
    """Run a packaged script verbatim."""
    script = load_sql(name, sql_dir)
    logger.debug("Executing SQL script %s", name)
    with conn.cursor() as cur:
        cur.execute(script)


def install_functions(conn, names: tuple[str, ...] = ALL_SCRIPTS, sql_dir: Path = SQL_DIR) -> list[str]:
    """Install (CREATE OR REPLACE) the packaged functions. Safe to repeat."""
    for name in names:
        execute_sql_file(conn, name, sql_dir)
    return list(names)
