"""Selective sequence and trigger repair.

Each repair is a single database-side statement so concurrent runs converge:
``setval`` always moves a sequence to the same target, and a lost race on
trigger creation is treated as "already present".
"""

from __future__ import annotations

import logging

import psycopg2
import psycopg2.errors
from psycopg2 import sql

from pg_standards import catalog
from pg_standards.models import SequenceState, TriggerOutcome
from pg_standards.sql_assets import FIX_DB_SCRIPTS, UPDATED_AT_FUNCTION, execute_sql_file, install_functions
from pg_standards.validators.triggers import updated_at_trigger_name

logger = logging.getLogger(__name__)

FUNCTIONS_SCHEMA = "public"
UPDATED_AT_COLUMN = "updated_at"


def resync_sequence(conn, sequence: SequenceState, schema: str = "public") -> int:
    """Set the sequence to GREATEST(MAX(owning column), 1) with is_called = true.

    The next nextval() returns a value strictly greater than any existing row.
    `schema` is the table's schema; the sequence is addressed in its own.
    Returns the value the sequence was set to.
    """
    query = sql.SQL(
        "SELECT setval(format('%%I.%%I', %s, %s)::regclass, "
        "GREATEST(COALESCE((SELECT MAX({column}) FROM {table}), 0), 1), true);"
    ).format(
        column=sql.Identifier(sequence.column_name),
        table=sql.Identifier(schema, sequence.table_name),
    )
    with conn.cursor() as cur:
        cur.execute(query, (sequence.sequence_schema, sequence.sequence_name))
        value = cur.fetchone()[0]
    logger.debug("Sequence %s set to %s", sequence.sequence_name, value)
    return int(value)


def fix_table_sequences(conn, table: str, schema: str = "public") -> list[str]:
    """Resynchronise every sequence owned by `table`.

    Sequences without a resolvable owning column are left alone. Every
    sequence that was set is reported, even if it already had the right value.
    """
    fixed = []
    for sequence in catalog.list_table_sequences(conn, table, schema):
        if not sequence.column_name:
            logger.debug("Sequence %s has no owning column, skipping", sequence.sequence_name)
            continue
        resync_sequence(conn, sequence, schema)
        fixed.append(sequence.sequence_name)
    return fixed


def fix_sequences(conn, tables: list[str], schema: str = "public") -> list[str]:
    fixed = []
    for table in tables:
        fixed.extend(fix_table_sequences(conn, table, schema))
    return fixed


def install_updated_at_function(conn) -> None:
    execute_sql_file(conn, UPDATED_AT_FUNCTION)


def create_updated_at_trigger(conn, table: str, schema: str = "public") -> TriggerOutcome:
    """Create the BEFORE UPDATE trigger, treating a concurrent creator as success."""
    query = sql.SQL(
        "CREATE TRIGGER {trigger} BEFORE UPDATE ON {table} "
        "FOR EACH ROW EXECUTE PROCEDURE {function}();"
    ).format(
        trigger=sql.Identifier(updated_at_trigger_name(table)),
        table=sql.Identifier(schema, table),
        function=sql.Identifier(FUNCTIONS_SCHEMA, "update_updated_at_column"),
    )
    in_transaction = not conn.autocommit
    with conn.cursor() as cur:
        if in_transaction:
            cur.execute("SAVEPOINT pg_standards_trigger;")
        try:
            cur.execute(query)
        except psycopg2.errors.DuplicateObject:
            if in_transaction:
                cur.execute("ROLLBACK TO SAVEPOINT pg_standards_trigger;")
            logger.info("Trigger on %s was created concurrently", table)
            return TriggerOutcome.ALREADY_PRESENT
        if in_transaction:
            cur.execute("RELEASE SAVEPOINT pg_standards_trigger;")
    return TriggerOutcome.CREATED


def ensure_updated_at_trigger(conn, table: str, schema: str = "public") -> TriggerOutcome:
    """Make sure `table` has its updated_at trigger.

    Returns NOT_APPLICABLE when the table has no updated_at column and
    ALREADY_PRESENT when the trigger exists. Assumes the trigger function has
    been installed.
    """
    if not catalog.column_exists(conn, table, UPDATED_AT_COLUMN, schema):
        return TriggerOutcome.NOT_APPLICABLE
    if catalog.trigger_exists(conn, updated_at_trigger_name(table), table, schema):
        return TriggerOutcome.ALREADY_PRESENT
    return create_updated_at_trigger(conn, table, schema)


def fix_triggers(conn, tables: list[str], schema: str = "public") -> dict[str, TriggerOutcome]:
    install_updated_at_function(conn)
    return {table: ensure_updated_at_trigger(conn, table, schema) for table in tables}


def fix_all(conn, schema: str = "public") -> None:
    """Whole-schema repair through the packaged fix_db() routine."""
    install_functions(conn, FIX_DB_SCRIPTS)
    with conn.cursor() as cur:
        cur.execute("SELECT public.fix_db(%s);", (schema,))
