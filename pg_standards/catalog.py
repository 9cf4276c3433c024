"""Read-only catalog queries.

Every function takes a psycopg2 connection and a schema name and returns
plain Python values. Nothing here mutates the database.
"""

from __future__ import annotations

from dataclasses import dataclass

from psycopg2 import sql

from pg_standards.models import SequenceState

LARGE_TABLE_BYTES = 100 * 1024 * 1024
UNUSED_INDEX_BYTES = 1024 * 1024


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    data_type: str
    is_nullable: bool = True


@dataclass(frozen=True)
class ConstraintInfo:
    name: str
    kind: str


@dataclass(frozen=True)
class LargeTable:
    table_name: str
    size: str
    size_bytes: int


@dataclass(frozen=True)
class IndexUsage:
    table_name: str
    index_name: str
    size: str


@dataclass(frozen=True)
class DuplicateIndexGroup:
    table_name: str
    indexes: list[str]


def list_tables(conn, schema: str = "public") -> list[str]:
    """Return the names of all ordinary tables in the schema."""
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT tablename
            FROM pg_catalog.pg_tables
            WHERE schemaname = %s
            ORDER BY tablename;
            """,
            (schema,),
        )
        return [row[0] for row in cur.fetchall()]


def list_tables_with_column(conn, column: str, schema: str = "public") -> list[str]:
    """Return the tables (not views) in the schema that have the given column."""
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT c.table_name
            FROM information_schema.columns c
            JOIN pg_catalog.pg_tables t
                ON t.schemaname = c.table_schema
                AND t.tablename = c.table_name
            WHERE c.table_schema = %s
              AND c.column_name = %s
            ORDER BY c.table_name;
            """,
            (schema, column),
        )
        return [row[0] for row in cur.fetchall()]


def list_columns(conn, table: str, schema: str = "public") -> list[ColumnInfo]:
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT column_name, data_type, is_nullable
            FROM information_schema.columns
            WHERE table_schema = %s
              AND table_name = %s
            ORDER BY ordinal_position;
            """,
            (schema, table),
        )
        rows = cur.fetchall()
    return [
        ColumnInfo(name=name, data_type=data_type, is_nullable=(nullable == "YES"))
        for name, data_type, nullable in rows
    ]


def column_exists(conn, table: str, column: str, schema: str = "public") -> bool:
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT 1
            FROM information_schema.columns
            WHERE table_schema = %s
              AND table_name = %s
              AND column_name = %s;
            """,
            (schema, table, column),
        )
        return cur.fetchone() is not None


def list_indexes(conn, table: str, schema: str = "public") -> list[str]:
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT indexname
            FROM pg_catalog.pg_indexes
            WHERE schemaname = %s
              AND tablename = %s
            ORDER BY indexname;
            """,
            (schema, table),
        )
        return [row[0] for row in cur.fetchall()]


def list_constraints(conn, table: str, schema: str = "public") -> list[ConstraintInfo]:
    """Return constraints with their single-letter pg_constraint.contype code."""
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT con.conname, con.contype
            FROM pg_catalog.pg_constraint con
            JOIN pg_catalog.pg_class c ON c.oid = con.conrelid
            JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
            WHERE n.nspname = %s
              AND c.relname = %s
            ORDER BY con.conname;
            """,
            (schema, table),
        )
        return [ConstraintInfo(name=name, kind=kind) for name, kind in cur.fetchall()]


# Owned sequences (serial and identity columns) with their owning column.
# pg_sequences.last_value is NULL until the first nextval()/setval().
_SEQUENCES_QUERY = """
    SELECT
        seq.relname AS sequence_name,
        tbl.relname AS table_name,
        att.attname AS column_name,
        COALESCE(ps.last_value, 0) AS last_value,
        seq_ns.nspname AS sequence_schema
    FROM pg_catalog.pg_class seq
    JOIN pg_catalog.pg_namespace seq_ns ON seq_ns.oid = seq.relnamespace
    JOIN pg_catalog.pg_depend dep
        ON dep.objid = seq.oid
        AND dep.classid = 'pg_catalog.pg_class'::regclass
        AND dep.refclassid = 'pg_catalog.pg_class'::regclass
        AND dep.deptype IN ('a', 'i')
    JOIN pg_catalog.pg_class tbl ON tbl.oid = dep.refobjid
    JOIN pg_catalog.pg_namespace tbl_ns ON tbl_ns.oid = tbl.relnamespace
    LEFT JOIN pg_catalog.pg_attribute att
        ON att.attrelid = tbl.oid
        AND att.attnum = dep.refobjsubid
    LEFT JOIN pg_catalog.pg_sequences ps
        ON ps.schemaname = seq_ns.nspname
        AND ps.sequencename = seq.relname
    WHERE seq.relkind = 'S'
      AND tbl_ns.nspname = %s
"""


def list_sequences(conn, schema: str = "public") -> list[SequenceState]:
    """Return every table-owned sequence in the schema."""
    with conn.cursor() as cur:
        cur.execute(_SEQUENCES_QUERY + " ORDER BY tbl.relname, seq.relname;", (schema,))
        rows = cur.fetchall()
    return [_sequence_state(row) for row in rows]


def list_table_sequences(conn, table: str, schema: str = "public") -> list[SequenceState]:
    with conn.cursor() as cur:
        cur.execute(
            _SEQUENCES_QUERY + " AND tbl.relname = %s ORDER BY seq.relname;",
            (schema, table),
        )
        rows = cur.fetchall()
    return [_sequence_state(row) for row in rows]


def _sequence_state(row) -> SequenceState:
    sequence_name, table_name, column_name, last_value, sequence_schema = row
    return SequenceState(
        sequence_name=sequence_name,
        table_name=table_name,
        column_name=column_name,
        last_value=int(last_value or 0),
        sequence_schema=sequence_schema,
    )


def trigger_exists(conn, trigger_name: str, table: str, schema: str = "public") -> bool:
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT 1
            FROM information_schema.triggers
            WHERE trigger_schema = %s
              AND event_object_table = %s
              AND trigger_name = %s
            LIMIT 1;
            """,
            (schema, table, trigger_name),
        )
        return cur.fetchone() is not None


def column_max_value(conn, table: str, column: str, schema: str = "public") -> int:
    """Return MAX(column) for the table, or 0 when the table is empty."""
    query = sql.SQL("SELECT COALESCE(MAX({column}), 0) FROM {table};").format(
        column=sql.Identifier(column),
        table=sql.Identifier(schema, table),
    )
    with conn.cursor() as cur:
        cur.execute(query)
        row = cur.fetchone()
    return int(row[0]) if row and row[0] is not None else 0


def list_large_tables(
    conn, schema: str = "public", min_bytes: int = LARGE_TABLE_BYTES
) -> list[LargeTable]:
    """Return tables whose total relation size exceeds min_bytes, largest first."""
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT
                tablename,
                pg_size_pretty(pg_total_relation_size(format('%%I.%%I', schemaname, tablename))),
                pg_total_relation_size(format('%%I.%%I', schemaname, tablename))
            FROM pg_catalog.pg_tables
            WHERE schemaname = %s
              AND pg_total_relation_size(format('%%I.%%I', schemaname, tablename)) > %s
            ORDER BY 3 DESC;
            """,
            (schema, min_bytes),
        )
        return [
            LargeTable(table_name=name, size=size, size_bytes=int(size_bytes))
            for name, size, size_bytes in cur.fetchall()
        ]


def list_unused_indexes(
    conn, schema: str = "public", min_bytes: int = UNUSED_INDEX_BYTES
) -> list[IndexUsage]:
    """Return never-scanned, non-primary-key indexes larger than min_bytes."""
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT
                s.relname,
                s.indexrelname,
                pg_size_pretty(pg_relation_size(s.indexrelid))
            FROM pg_catalog.pg_stat_user_indexes s
            JOIN pg_catalog.pg_index i ON i.indexrelid = s.indexrelid
            WHERE s.schemaname = %s
              AND s.idx_scan = 0
              AND NOT i.indisprimary
              AND pg_relation_size(s.indexrelid) > %s
            ORDER BY s.relname, s.indexrelname;
            """,
            (schema, min_bytes),
        )
        return [
            IndexUsage(table_name=table, index_name=index, size=size)
            for table, index, size in cur.fetchall()
        ]


def list_duplicate_indexes(conn, schema: str = "public") -> list[DuplicateIndexGroup]:
    """Return groups of indexes that cover the same key columns of one table."""
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT
                c.relname,
                array_agg(ic.relname::text ORDER BY ic.relname)
            FROM pg_catalog.pg_index i
            JOIN pg_catalog.pg_class c ON c.oid = i.indrelid
            JOIN pg_catalog.pg_class ic ON ic.oid = i.indexrelid
            JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
            WHERE n.nspname = %s
            GROUP BY c.relname, i.indrelid, i.indkey,
                     COALESCE(i.indexprs::text, ''), COALESCE(i.indpred::text, '')
            HAVING COUNT(*) > 1
            ORDER BY c.relname;
            """,
            (schema,),
        )
        return [
            DuplicateIndexGroup(table_name=table, indexes=list(indexes))
            for table, indexes in cur.fetchall()
        ]


def event_trigger_enabled(conn, name: str) -> bool:
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT 1
            FROM pg_catalog.pg_event_trigger
            WHERE evtname = %s
              AND evtenabled <> 'D';
            """,
            (name,),
        )
        return cur.fetchone() is not None
