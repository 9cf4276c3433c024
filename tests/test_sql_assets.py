"""Tests for the packaged SQL scripts."""

from __future__ import annotations

import pytest

from pg_standards.errors import SqlAssetError
from pg_standards.sql_assets import (
    ALL_SCRIPTS,
    FIX_DB,
    UPDATED_AT_TRIGGERS,
    UUID_HELPERS,
    execute_sql_file,
    install_functions,
    load_sql,
    verify_sql_assets,
)


class TestPackagedScripts:
    def test_all_present(self):
        verify_sql_assets()

    @pytest.mark.parametrize("name", ALL_SCRIPTS)
    def test_scripts_are_replaceable(self, name):
        assert "CREATE OR REPLACE FUNCTION" in load_sql(name)

    def test_fix_db_takes_schema(self):
        assert "public.fix_db(p_schema text" in load_sql(FIX_DB)

    def test_trigger_names_cut_by_bytes(self):
        script = load_sql(UPDATED_AT_TRIGGERS)
        assert "octet_length(v_trigger) > 63" in script
        assert "left('update_'" not in script

    def test_uuid_helpers_enable_extension(self):
        script = load_sql(UUID_HELPERS)
        assert 'CREATE EXTENSION IF NOT EXISTS "uuid-ossp"' in script
        assert "uuid_generate_v4()" in script


class TestMissingScripts:
    def test_load_missing(self, tmp_path):
        with pytest.raises(SqlAssetError, match="not found"):
            load_sql("nope.sql", tmp_path)

    def test_verify_lists_missing(self, tmp_path):
        (tmp_path / "a.sql").write_text("SELECT 1;")
        with pytest.raises(SqlAssetError, match="b.sql"):
            verify_sql_assets(tmp_path, ("a.sql", "b.sql"))


class TestExecution:
    def test_execute_runs_script_verbatim(self, db, conn):
        execute_sql_file(conn, FIX_DB)
        text, params = db.executed[-1]
        assert text == load_sql(FIX_DB)
        assert params is None

    def test_install_functions(self, db, conn):
        assert install_functions(conn) == list(ALL_SCRIPTS)
        assert {
            "update_updated_at_column",
            "add_updated_at_trigger",
            "add_updated_at_triggers",
            "fix_sequence_for_table",
            "fix_all_seq",
            "fix_db",
            "auto_apply_table_standards",
            "generate_uuid_if_null",
        } <= db.functions
        assert db.extensions == {"uuid-ossp"}

    def test_install_uuid_helpers_only(self, db, conn):
        assert install_functions(conn, (UUID_HELPERS,)) == [UUID_HELPERS]
        assert db.functions == {"generate_uuid_if_null"}
        assert db.extensions == {"uuid-ossp"}
