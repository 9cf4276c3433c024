"""Generate a deferred-repair migration script."""

from __future__ import annotations

import os
import string
from datetime import datetime

from pg_standards import __version__
from pg_standards.models import MigrationArtifact, StructureReport

MIGRATIONS_DIR = "migrations"

_TEMPLATE = string.Template('''"""Apply PostgreSQL standards to existing tables.

Generated by pg-standards $version on $generated_at.

Run it with ``python $filename``. The connection comes from DATABASE_URL or
the standard PG* environment variables.
"""

from pg_standards.connection import connect
from pg_standards.helper import PgHelper

SCHEMA = $schema

TABLES = $tables


def upgrade(conn) -> None:
    helper = PgHelper(conn, schema=SCHEMA)

    if TABLES:
        print(f"Applying PostgreSQL standards to {len(TABLES)} tables...")
        for table in TABLES:
            helper.apply_table_standards(table)
            print(f"  Applied standards to {table}")
    else:
        print("All tables already have PostgreSQL standards applied.")

    # Final whole-database pass
    helper.fix_all()


def downgrade(conn) -> None:
    """Standards are best practices and are not reversed."""


if __name__ == "__main__":
    connection = connect()
    try:
        upgrade(connection)
    finally:
        connection.close()
''')


def tables_needing_standards(report: StructureReport) -> list[str]:
    """Tables with at least one repairable finding, in first-seen order."""
    tables = []
    for finding in report.findings:
        if finding.table not in tables:
            tables.append(finding.table)
    return tables


def _format_tables(tables: list[str]) -> str:
    if not tables:
        return "[]"
    lines = "".join(f"    {table!r},\n" for table in tables)
    return f"[\n{lines}]"


def generate_standards_migration(
    report: StructureReport,
    schema: str = "public",
    now: datetime | None = None,
) -> MigrationArtifact:
    """Render a migration script for the tables a validation flagged.

    The tables are captured now; running the script later repairs exactly
    those tables and then performs a whole-database pass.
    """
    now = now or datetime.now()
    filename = f"{now.strftime('%Y_%m_%d_%H%M%S')}_apply_postgresql_standards.py"
    tables = tables_needing_standards(report)

    content = _TEMPLATE.substitute(
        version=__version__,
        generated_at=now.isoformat(timespec="seconds"),
        filename=filename,
        schema=repr(schema),
        tables=_format_tables(tables),
    )
    return MigrationArtifact(
        path=os.path.join(MIGRATIONS_DIR, filename),
        content=content,
        tables=tables,
        created_at=now,
    )


def write_migration(artifact: MigrationArtifact, base_dir: str = ".") -> str:
    """Write the artifact below base_dir and return the full path."""
    path = os.path.join(base_dir, artifact.path)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w") as f:
        f.write(artifact.content)
    return path
