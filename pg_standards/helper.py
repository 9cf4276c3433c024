"""PgHelper: the entry point for validation, health scoring and repair."""

from __future__ import annotations

import logging
import time
from datetime import datetime

from pg_standards import catalog, health, repair, structure
from pg_standards.cache import StandardsCache
from pg_standards.config import Config
from pg_standards.migration import generate_standards_migration
from pg_standards.models import (
    BestPracticesResult,
    EventTriggerStatus,
    FindingKind,
    MigrationArtifact,
    OverallHealth,
    SequenceFixResult,
    StructureReport,
    TriggerFixResult,
)
from pg_standards.rules import find_conflicts
from pg_standards.sql_assets import (
    EVENT_TRIGGER_SCRIPTS,
    UUID_HELPERS,
    install_functions,
    verify_sql_assets,
)
from pg_standards.timing import OperationStats
from pg_standards.validators.sequences import needs_reset
from pg_standards.validators.triggers import updated_at_trigger_name

EVENT_TRIGGER_NAME = "auto_apply_standards_trigger"


class PgHelper:
    """Validate, score and repair one schema over a psycopg2 connection.

    Args:
        conn: psycopg2 connection. Autocommit is recommended (see connection.connect).
        config: Loaded configuration; defaults to Config().
        stats: Operation statistics collector; built from config when omitted.
        cache: Cache for has_standards_applied(); built from config when omitted.
        schema: Overrides config.schema.

    Raises:
        SqlAssetError: A packaged SQL script is missing.
    """

    def __init__(
        self,
        conn,
        config: Config | None = None,
        stats: OperationStats | None = None,
        cache: StandardsCache | None = None,
        schema: str | None = None,
    ):
        verify_sql_assets()
        self.conn = conn
        self.config = config if config is not None else Config()
        self.schema = schema or self.config.schema
        self.stats = stats if stats is not None else OperationStats.from_config(self.config)
        self.cache = (
            cache if cache is not None else StandardsCache(ttl=self.config.performance.cache_duration)
        )
        self.logger = logging.getLogger(self.config.logging.channel)

    # -- Installation ---------------------------------------------------------

    def install_functions(self) -> list[str]:
        """Install every packaged SQL function (CREATE OR REPLACE)."""
        with self.stats.timed("install_functions"):
            return install_functions(self.conn)

    def add_uuid_helper_functions(self) -> None:
        """Enable uuid-ossp and install generate_uuid_if_null()."""
        with self.stats.timed("add_uuid_helper_functions"):
            install_functions(self.conn, (UUID_HELPERS,))

    # -- Validation -----------------------------------------------------------

    def _targets(self, tables: list[str] | None) -> list[str]:
        return list(tables) if tables is not None else catalog.list_tables(self.conn, self.schema)

    def validate_structure(self, tables: list[str] | None = None) -> StructureReport:
        """Validate tables against the configured rules and best practices."""
        with self.stats.timed("validate_structure", tables=tables):
            targets = self._targets(tables)
            self._log_rule_conflicts(targets)
            return structure.validate_structure(
                self.conn, self.config.table_validations, targets, self.schema
            )

    def _log_rule_conflicts(self, tables: list[str]) -> None:
        for table in tables:
            for conflict in find_conflicts(table, self.config.table_validations):
                self.logger.warning("Conflicting validation rules for %s: %s", table, conflict)

    # -- Repair ---------------------------------------------------------------

    def fix_sequences(self, tables: list[str] | None = None) -> SequenceFixResult:
        """Resynchronise owned sequences for the given tables (default: all)."""
        start = time.perf_counter()
        with self.stats.timed("fix_sequences", tables=tables):
            fixed = repair.fix_sequences(self.conn, self._targets(tables), self.schema)
        return SequenceFixResult(sequences_fixed=fixed, time_taken=time.perf_counter() - start)

    def fix_triggers(self, tables: list[str] | None = None) -> TriggerFixResult:
        """Ensure updated_at triggers (default: every table with updated_at)."""
        start = time.perf_counter()
        with self.stats.timed("fix_triggers", tables=tables):
            targets = (
                list(tables)
                if tables is not None
                else catalog.list_tables_with_column(self.conn, "updated_at", self.schema)
            )
            outcomes = repair.fix_triggers(self.conn, targets, self.schema)
        return TriggerFixResult(outcomes=outcomes, time_taken=time.perf_counter() - start)

    def fix_all(self) -> None:
        """Whole-schema repair in one database-side call."""
        with self.stats.timed("fix_all"):
            repair.fix_all(self.conn, self.schema)
        self.cache.clear()

    def apply_table_standards(self, table: str) -> None:
        with self.stats.timed("apply_table_standards", table=table):
            self.fix_sequences([table])
            self.fix_triggers([table])
        self.cache.forget(StandardsCache.key_for(table))

    def apply_best_practices(
        self, tables: list[str] | None = None, dry_run: bool = False
    ) -> BestPracticesResult:
        """Fix sequences and triggers per table, or report what would change.

        A dry run only validates; nothing is written to the database.
        """
        result = BestPracticesResult(dry_run=dry_run)
        with self.stats.timed("apply_best_practices", tables=tables, dry_run=dry_run):
            for table in self._targets(tables):
                result.tables_processed += 1
                if dry_run:
                    self._plan_table(table, result)
                    continue
                result.sequences_fixed.extend(self.fix_sequences([table]).sequences_fixed)
                result.triggers_created.extend(self.fix_triggers([table]).triggers_created)
                self.cache.forget(StandardsCache.key_for(table))
        return result

    def _plan_table(self, table: str, result: BestPracticesResult) -> None:
        report = self.validate_structure([table])
        kinds = {f.kind for f in report.findings}
        if FindingKind.SEQUENCE_NEEDS_RESET in kinds:
            result.sequences_fixed.append(f"{table} (would fix)")
        if FindingKind.MISSING_TRIGGER in kinds:
            result.triggers_created.append(f"{table} (would create)")

    def has_standards_applied(self, table: str) -> bool:
        """True when the updated_at trigger exists and no owned sequence is below 1.

        Cached for performance.cache_duration seconds; repairs invalidate it.
        """
        return self.cache.remember(
            StandardsCache.key_for(table), lambda: self._check_standards(table)
        )

    def _check_standards(self, table: str) -> bool:
        has_trigger = catalog.trigger_exists(
            self.conn, updated_at_trigger_name(table), table, self.schema
        )
        if not has_trigger:
            return False
        sequences = catalog.list_table_sequences(self.conn, table, self.schema)
        return not any(needs_reset(s) for s in sequences)

    # -- Health ---------------------------------------------------------------

    def check_sequence_health(self):
        return health.check_sequence_health(self.conn, self.schema)

    def check_trigger_health(self):
        return health.check_trigger_health(self.conn, self.schema)

    def check_structure_health(self):
        return health.check_structure_health(self.validate_structure())

    def check_performance_health(self):
        return health.check_performance_health(
            self.conn, self.stats.snapshot()["operations"], self.schema
        )

    def check_index_health(self):
        return health.check_index_health(self.conn, self.schema)

    def run_health_check(self) -> OverallHealth:
        """Run the five checks in order and aggregate them."""
        checks = {
            "sequences": self.check_sequence_health,
            "triggers": self.check_trigger_health,
            "structure": self.check_structure_health,
            "performance": self.check_performance_health,
            "indexes": self.check_index_health,
        }
        with self.stats.timed("run_health_check"):
            return health.aggregate({name: check() for name, check in checks.items()})

    # -- Event triggers -------------------------------------------------------

    def enable_event_triggers(self, enable: bool = True) -> EventTriggerStatus:
        """Create or drop the DDL hook that applies standards to new tables."""
        try:
            with self.stats.timed("enable_event_triggers", enabled=enable):
                if enable:
                    install_functions(self.conn, EVENT_TRIGGER_SCRIPTS)
                    with self.conn.cursor() as cur:
                        cur.execute(
                            f"""
                            DO $$
                            BEGIN
                                IF NOT EXISTS (
                                    SELECT 1 FROM pg_catalog.pg_event_trigger
                                    WHERE evtname = '{EVENT_TRIGGER_NAME}'
                                ) THEN
                                    CREATE EVENT TRIGGER {EVENT_TRIGGER_NAME}
                                        ON ddl_command_end
                                        WHEN TAG IN ('CREATE TABLE')
                                        EXECUTE FUNCTION public.auto_apply_table_standards();
                                ELSE
                                    ALTER EVENT TRIGGER {EVENT_TRIGGER_NAME} ENABLE;
                                END IF;
                            END
                            $$;
                            """
                        )
                    message = (
                        "Event triggers enabled - standards will be automatically "
                        "applied to new tables"
                    )
                else:
                    with self.conn.cursor() as cur:
                        cur.execute(f"DROP EVENT TRIGGER IF EXISTS {EVENT_TRIGGER_NAME};")
                    message = "Event triggers disabled"
        except Exception as e:
            self.logger.error("Failed to configure event triggers (enable=%s): %s", enable, e)
            raise
        return EventTriggerStatus(enabled=enable, message=message)

    def event_triggers_enabled(self) -> bool:
        return catalog.event_trigger_enabled(self.conn, EVENT_TRIGGER_NAME)

    # -- Migration ------------------------------------------------------------

    def generate_standards_migration(self, now: datetime | None = None) -> MigrationArtifact:
        report = self.validate_structure()
        return generate_standards_migration(report, schema=self.schema, now=now)

    # -- Statistics -----------------------------------------------------------

    @property
    def last_operation_time(self) -> float | None:
        return self.stats.last_operation_time

    def operation_stats(self) -> dict:
        return self.stats.snapshot()
