"""Database connection management."""

from __future__ import annotations

import os

import psycopg2
import psycopg2.extensions


def connect(
    host: str | None = None,
    port: int | None = None,
    dbname: str | None = None,
    user: str | None = None,
    password: str | None = None,
    dsn: str | None = None,
) -> psycopg2.extensions.connection:
    """Create a database connection from explicit args or a DSN string.

    Without a DSN or any explicit argument, DATABASE_URL is used if set.
    Otherwise falls back to standard PG* environment variables.

    The session runs in autocommit mode: every repair statement commits on
    its own, so one failing table does not roll back the others.
    """
    if not dsn and not any((host, dbname, user, password)):
        dsn = os.environ.get("DATABASE_URL")

    if dsn:
        conn = psycopg2.connect(dsn)
    else:
        params = {}
        if host:
            params["host"] = host
        if port:
            params["port"] = port
        if dbname:
            params["dbname"] = dbname
        if user:
            params["user"] = user
        if password:
            params["password"] = password
        elif os.environ.get("PGPASSWORD"):
            params["password"] = os.environ["PGPASSWORD"]
        conn = psycopg2.connect(**params)

    conn.set_session(autocommit=True)
    return conn


def get_server_version(conn) -> str:
    """Return the short server version, e.g. ``16.2``."""
    with conn.cursor() as cur:
        cur.execute("SHOW server_version;")
        row = cur.fetchone()
    return row[0] if row else ""
