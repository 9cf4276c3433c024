"""CLI entry point for pg-standards."""

from __future__ import annotations

import argparse
import logging
import sys

from pg_standards import __version__

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

_CONFIRM_PROMPT = "This will automatically apply standards to all new tables. Continue? [y/N] "


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pg-standards",
        description="Validate, score and repair PostgreSQL sequences, updated_at triggers and table structure.",
    )
    parser.add_argument("--version", action="version", version=f"pg-standards {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # -- health --
    health_parser = subparsers.add_parser("health", help="Run the weighted database health check")
    _add_common_args(health_parser)
    _add_format_arg(health_parser)

    # -- validate --
    validate_parser = subparsers.add_parser(
        "validate", help="Validate table structure against the configured rules"
    )
    _add_common_args(validate_parser)
    _add_tables_arg(validate_parser)
    _add_format_arg(validate_parser)

    # -- fix --
    fix_parser = subparsers.add_parser(
        "fix", help="Fix sequences and updated_at triggers (whole database by default)"
    )
    _add_common_args(fix_parser)
    _add_tables_arg(fix_parser)

    # -- standards --
    standards_parser = subparsers.add_parser(
        "standards", help="Apply PostgreSQL best practices table by table"
    )
    _add_common_args(standards_parser)
    _add_tables_arg(standards_parser)
    standards_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without making changes",
    )

    # -- event-triggers --
    event_parser = subparsers.add_parser(
        "event-triggers", help="Manage automatic standards for newly created tables"
    )
    _add_common_args(event_parser)
    event_parser.add_argument("--enable", action="store_true", help="Install the DDL event trigger")
    event_parser.add_argument("--disable", action="store_true", help="Drop the DDL event trigger")
    event_parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    # -- generate-migration --
    migration_parser = subparsers.add_parser(
        "generate-migration", help="Write a migration script for tables that need standards"
    )
    _add_common_args(migration_parser)
    migration_parser.add_argument(
        "--output", "-o", default=".", help="Base directory for migrations/ (default: cwd)"
    )

    return parser


def _add_connection_args(parser: argparse.ArgumentParser):
    grp = parser.add_argument_group("connection")
    grp.add_argument("--dsn", help="PostgreSQL connection URI (postgres://...)")
    grp.add_argument("--host", "-H", default=None, help="Database host")
    grp.add_argument("--port", "-p", type=int, default=5432, help="Database port (default: 5432)")
    grp.add_argument("--dbname", "-d", default=None, help="Database name")
    grp.add_argument("--user", "-U", default=None, help="Database user")
    grp.add_argument("--password", "-W", default=None, help="Database password")


def _add_common_args(parser: argparse.ArgumentParser):
    _add_connection_args(parser)
    parser.add_argument("--schema", "-s", default=None, help="Schema to operate on (default: public)")
    parser.add_argument("--config", "-c", default=None, help="Path to pg-standards.yaml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print progress and details")


def _add_tables_arg(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--tables",
        help="Comma-separated list of tables to process (default: all)",
    )


def _add_format_arg(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--format",
        "-f",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )


def _parse_tables(value: str | None) -> list[str] | None:
    if not value:
        return None
    tables = [t.strip() for t in value.split(",") if t.strip()]
    return tables or None


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )


def main(argv: list[str] | None = None) -> int:
    from pg_standards.config import load_config
    from pg_standards.errors import ConfigError

    parser = build_parser()

    raw_args = argv if argv is not None else sys.argv[1:]
    if not raw_args:
        parser.print_help()
        sys.exit(1)

    args = parser.parse_args(raw_args)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    _setup_logging(args.verbose)

    if args.command == "event-triggers" and args.enable and args.disable:
        print("Error: Cannot use both --enable and --disable", file=sys.stderr)
        return 1

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if args.schema:
        config.schema = args.schema

    conn = _connect(args)
    if conn is None:
        return 1

    try:
        from pg_standards.helper import PgHelper

        helper = PgHelper(conn, config=config)
        return _COMMANDS[args.command](helper, args)
    finally:
        conn.close()


def _connect(args):
    """Open the connection, printing a hint and returning None on failure."""
    import psycopg2
    from pg_standards.connection import connect

    try:
        return connect(
            host=args.host,
            port=args.port,
            dbname=args.dbname,
            user=args.user,
            password=args.password,
            dsn=args.dsn,
        )
    except psycopg2.OperationalError as e:
        error_msg = str(e).strip()
        print("Error: Could not connect to database.", file=sys.stderr)
        print(f"       {error_msg}", file=sys.stderr)
        if "no password supplied" in error_msg:
            print("\nHint: Use --password to provide a password, or set PGPASSWORD environment variable.", file=sys.stderr)
        elif "does not exist" in error_msg:
            print("\nHint: Check that the database name is correct.", file=sys.stderr)
        elif "Connection refused" in error_msg or "could not connect" in error_msg.lower():
            print(f"\nHint: Check that PostgreSQL is running on {args.host or 'localhost'}:{args.port or 5432}.", file=sys.stderr)
        return None


def _dbname(helper) -> str:
    info = getattr(helper.conn, "info", None)
    return getattr(info, "dbname", "") or ""


def _json_meta(helper) -> dict:
    from pg_standards.connection import get_server_version

    return {
        "database": _dbname(helper),
        "schema": helper.schema,
        "pg_version": get_server_version(helper.conn),
    }


def _cmd_health(helper, args) -> int:
    print("Running database health check...", file=sys.stderr)
    health = helper.run_health_check()

    if args.format == "json":
        from pg_standards.reporters.json_reporter import render_health

        print(render_health(health, **_json_meta(helper)))
    else:
        from pg_standards.reporters.text_reporter import render_health

        print(render_health(health, verbose=args.verbose))
    return 0


def _cmd_validate(helper, args) -> int:
    print("Validating database structure...", file=sys.stderr)
    report = helper.validate_structure(_parse_tables(args.tables))

    if args.format == "json":
        from pg_standards.reporters.json_reporter import render_structure

        print(render_structure(report, **_json_meta(helper)))
    else:
        from pg_standards.reporters.text_reporter import render_structure

        print(render_structure(report))
    return 0 if report.valid else 1


def _cmd_fix(helper, args) -> int:
    from pg_standards.reporters.text_reporter import render_fix

    print("Fixing database issues...", file=sys.stderr)
    tables = _parse_tables(args.tables)

    if tables or helper.config.auto_standards.selective_fixing:
        sequences = helper.fix_sequences(tables)
        triggers = helper.fix_triggers(tables)
        print(render_fix(sequences, triggers))
    else:
        print("Running fix_all() on entire database...", file=sys.stderr)
        helper.fix_all()
        print("Database issues fixed!")

    if helper.config.auto_standards.enable_event_triggers and not helper.event_triggers_enabled():
        print(helper.enable_event_triggers(True).message)
    return 0


def _cmd_standards(helper, args) -> int:
    from pg_standards.reporters.text_reporter import render_best_practices

    if args.dry_run:
        print("Checking what standards would be applied...", file=sys.stderr)
    else:
        print("Applying PostgreSQL standards...", file=sys.stderr)
    result = helper.apply_best_practices(_parse_tables(args.tables), dry_run=args.dry_run)
    print(render_best_practices(result))
    return 0


def _cmd_event_triggers(helper, args) -> int:
    import psycopg2

    if not args.enable and not args.disable:
        enabled = helper.event_triggers_enabled()
        print(f"Event triggers are currently: {'ENABLED' if enabled else 'DISABLED'}")
        if not enabled:
            print("Use --enable to automatically apply standards to new tables.")
        return 0

    if args.enable and not args.yes and not _confirm(_CONFIRM_PROMPT):
        print("Aborted.", file=sys.stderr)
        return 1

    try:
        status = helper.enable_event_triggers(args.enable)
    except psycopg2.Error as e:
        print(f"Error: Failed to configure event triggers: {e}", file=sys.stderr)
        return 1
    print(status.message)
    return 0


def _confirm(prompt: str) -> bool:
    try:
        answer = input(prompt)
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _cmd_generate_migration(helper, args) -> int:
    from pg_standards.migration import write_migration

    print("Generating migration to apply PostgreSQL standards...", file=sys.stderr)
    artifact = helper.generate_standards_migration()
    path = write_migration(artifact, args.output)

    print(f"Migration created: {path}")
    print(f"Run `python {path}` to apply standards to existing tables.")
    return 0


_COMMANDS = {
    "health": _cmd_health,
    "validate": _cmd_validate,
    "fix": _cmd_fix,
    "standards": _cmd_standards,
    "event-triggers": _cmd_event_triggers,
    "generate-migration": _cmd_generate_migration,
}
