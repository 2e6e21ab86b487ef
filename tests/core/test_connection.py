"""Tests for resource_spine.core.connection module."""

import gc

import pytest

from resource_spine.core.adapters.sqlite import SQLiteDriver
from resource_spine.core.connection import (
    Connection,
    format_time_zone,
    is_write_statement,
    open_connection,
)
from resource_spine.core.errors import (
    ConnectionFailedError,
    DuplicateEntryError,
    QueryFailedError,
    SchemaSelectError,
    StatementError,
    UnsupportedFeatureError,
)
from resource_spine.core.settings import DatabaseBackend, StoreSettings


class TestHelpers:
    @pytest.mark.parametrize(
        "sql, expected",
        [
            ("INSERT INTO t VALUES (1)", True),
            ("  update t SET a = 1", True),
            ("Delete FROM t", True),
            ("SELECT * FROM t", False),
            ("deleted_at", False),
            ("", False),
        ],
    )
    def test_is_write_statement(self, sql, expected):
        assert is_write_statement(sql) is expected

    @pytest.mark.parametrize(
        "minutes, expected",
        [(-360, "-6:00"), (330, "+5:30"), (0, "+0:00"), (-570, "-9:30"), (840, "+14:00")],
    )
    def test_format_time_zone(self, minutes, expected):
        assert format_time_zone(minutes) == expected


class TestLifecycle:
    def test_connects_and_selects_schema(self, scripted_driver):
        conn = Connection(scripted_driver, schema="beestat")
        assert scripted_driver.connected
        assert scripted_driver.schema == "beestat"
        assert conn.schema == "beestat"
        conn.close()

    def test_connect_failure_propagates(self, make_scripted_driver):
        driver = make_scripted_driver(connect_error=ConnectionFailedError("refused"))
        with pytest.raises(ConnectionFailedError):
            Connection(driver)

    def test_schema_failure_closes_driver(self, make_scripted_driver):
        driver = make_scripted_driver(schema_error=SchemaSelectError("unknown database"))
        with pytest.raises(SchemaSelectError):
            Connection(driver, schema="missing")
        assert driver.closed

    def test_close_commits_open_transaction(self, mysql_conn, scripted_driver):
        mysql_conn.query("INSERT INTO `t` (`a`) VALUES (1)")
        mysql_conn.close()
        assert scripted_driver.statements == [
            "START TRANSACTION",
            "INSERT INTO `t` (`a`) VALUES (1)",
            "COMMIT",
        ]
        assert scripted_driver.closed
        assert mysql_conn.closed

    def test_dropped_connection_commits(self, scripted_driver):
        conn = Connection(scripted_driver)
        conn.query("INSERT INTO `t` (`a`) VALUES (1)")
        del conn
        gc.collect()
        assert scripted_driver.statements[-1] == "COMMIT"
        assert scripted_driver.closed

    def test_close_is_idempotent(self, mysql_conn, scripted_driver):
        mysql_conn.close()
        mysql_conn.close()
        assert scripted_driver.statements == []

    def test_exception_in_block_rolls_back(self, scripted_driver):
        with pytest.raises(RuntimeError):
            with Connection(scripted_driver) as conn:
                conn.query("UPDATE `t` SET `a` = 1")
                raise RuntimeError("caller bug")
        assert scripted_driver.statements[-1] == "ROLLBACK"
        assert "COMMIT" not in scripted_driver.statements
        assert scripted_driver.closed

    def test_repr(self, mysql_conn):
        assert repr(mysql_conn) == "Connection(backend='mysql', schema='beestat', demo=False)"


class TestQuery:
    """Transaction policy around single statements."""

    def test_write_starts_transaction(self, mysql_conn):
        mysql_conn.query("DELETE FROM `t`")
        assert mysql_conn.transactions.active

    def test_read_does_not_start_transaction(self, mysql_conn, scripted_driver):
        mysql_conn.query("SELECT 1")
        assert not mysql_conn.transactions.active
        assert scripted_driver.statements == ["SELECT 1"]

    def test_transactions_disabled(self, scripted_driver):
        conn = Connection(scripted_driver, use_transactions=False)
        conn.query("INSERT INTO `t` () VALUES ()")
        assert not conn.transactions.active
        conn.close()
        assert "START TRANSACTION" not in scripted_driver.statements

    def test_failure_rolls_back_and_raises(self, mysql_conn, scripted_driver):
        scripted_driver.on("INSERT", error=StatementError("Table 't' doesn't exist", code=1146))
        with pytest.raises(QueryFailedError) as exc_info:
            mysql_conn.query("INSERT INTO `t` () VALUES ()")
        assert scripted_driver.statements[-1] == "ROLLBACK"
        assert not mysql_conn.transactions.active
        assert exc_info.value.context.query == "INSERT INTO `t` () VALUES ()"
        assert exc_info.value.context.database_error == "Table 't' doesn't exist"
        assert exc_info.value.message == "Database query failed."

    def test_duplicate_entry(self, mysql_conn, scripted_driver):
        scripted_driver.on(
            "INSERT",
            error=StatementError("Duplicate entry 'x' for key 'name'", code=1062, duplicate=True),
        )
        with pytest.raises(DuplicateEntryError) as exc_info:
            mysql_conn.query("INSERT INTO `t` (`name`) VALUES ('x')")
        assert exc_info.value.message == "Duplicate database entry."
        assert isinstance(exc_info.value.cause, StatementError)

    def test_failed_read_outside_transaction(self, mysql_conn, scripted_driver):
        scripted_driver.on("SELECT", error=StatementError("syntax"))
        with pytest.raises(QueryFailedError):
            mysql_conn.query("SELECT nonsense")
        assert "ROLLBACK" not in scripted_driver.statements

    def test_failed_rollback_does_not_mask_statement_error(self, mysql_conn, scripted_driver):
        scripted_driver.on("INSERT", error=StatementError("lost connection"))
        scripted_driver.on("ROLLBACK", error=StatementError("lost connection"))
        with pytest.raises(QueryFailedError):
            mysql_conn.query("INSERT INTO `t` () VALUES ()")

    def test_statistics_count_successful_statements(self, mysql_conn, scripted_driver):
        scripted_driver.on("broken", error=StatementError("x"))
        mysql_conn.query("SELECT 1")
        mysql_conn.query("SELECT 2")
        with pytest.raises(QueryFailedError):
            mysql_conn.query("SELECT broken")
        assert mysql_conn.query_count == 2
        assert mysql_conn.query_time >= 0.0

    def test_escape_delegates(self, mysql_conn):
        assert mysql_conn.escape("O'Brien") == "'O\\'Brien'"
        assert mysql_conn.escape_identifier("order") == "`order`"


class TestTimeZone:
    def test_mysql(self, mysql_conn, scripted_driver):
        mysql_conn.set_time_zone(-360)
        assert scripted_driver.statements == ["SET time_zone = '-6:00'"]

    def test_sqlite_unsupported(self, sqlite_conn):
        with pytest.raises(UnsupportedFeatureError):
            sqlite_conn.set_time_zone(0)


class TestPersistence:
    """Commit-on-close against a real SQLite file."""

    def test_close_commits(self, sqlite_file):
        with Connection(SQLiteDriver(sqlite_file)) as conn:
            conn.create("sensor", {"name": "attic"})
        with Connection(SQLiteDriver(sqlite_file)) as conn:
            assert [r["name"] for r in conn.read("sensor")] == ["attic"]

    def test_exception_discards_writes(self, sqlite_file):
        with pytest.raises(RuntimeError):
            with Connection(SQLiteDriver(sqlite_file)) as conn:
                conn.create("sensor", {"name": "attic"})
                raise RuntimeError("abort")
        with Connection(SQLiteDriver(sqlite_file)) as conn:
            assert conn.read("sensor") == []

    def test_explicit_commit_survives_later_failure(self, sqlite_file):
        with pytest.raises(DuplicateEntryError):
            with Connection(SQLiteDriver(sqlite_file)) as conn:
                conn.create("thermostat", {"name": "Hall"})
                conn.commit_transaction()
                conn.create("thermostat", {"name": "Hall"})
        with Connection(SQLiteDriver(sqlite_file)) as conn:
            assert len(conn.read("thermostat")) == 1


class TestOpenConnection:
    def test_from_sqlite_settings(self, sqlite_file):
        settings = StoreSettings(database_backend=DatabaseBackend.SQLITE, database_path=sqlite_file)
        with open_connection(settings) as conn:
            assert conn.dialect.name == "sqlite"
            assert conn.schema is None
            assert conn.demo is False
            assert conn.read("sensor") == []

    def test_demo_override(self, sqlite_file):
        settings = StoreSettings(
            database_backend=DatabaseBackend.SQLITE, database_path=sqlite_file, demo=False
        )
        with open_connection(settings, demo=True) as conn:
            assert conn.demo is True

    def test_lock_namespace_from_database_name(self, sqlite_file):
        settings = StoreSettings(
            database_backend=DatabaseBackend.SQLITE,
            database_path=sqlite_file,
            database_name="beestat",
        )
        with open_connection(settings) as conn:
            assert conn.locks.namespace == "beestat"
            assert conn.schema is None
