"""run_migrations: schema parsing and the dry-run / failure paths."""

import psycopg2
import pytest

from itinerary_engine.scripts import run_migrations
from itinerary_engine.scripts.run_migrations import (
    SCHEMA_FILE,
    load_statements,
    split_statements,
    strip_comments,
)


def test_strip_comments_removes_line_and_block_comments():
    sql = "/* header\n spanning lines */\nCREATE TABLE t (id int); -- trailing\n-- whole line\n"
    cleaned = strip_comments(sql)
    assert "header" not in cleaned
    assert "trailing" not in cleaned
    assert "CREATE TABLE t (id int);" in cleaned


def test_split_statements_drops_empty_chunks():
    assert split_statements("SELECT 1;\n\n;  SELECT 2 ;  ") == ["SELECT 1", "SELECT 2"]


def test_bundled_schema_creates_place_table():
    statements = load_statements()
    assert SCHEMA_FILE.exists()
    assert any("CREATE TABLE IF NOT EXISTS place" in s for s in statements)


def test_missing_schema_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_statements(tmp_path / "absent.sql")


def test_dry_run_does_not_connect(monkeypatch, tmp_path):
    schema = tmp_path / "schema.sql"
    schema.write_text("CREATE TABLE a (x int);\nCREATE INDEX i ON a (x);\n", encoding="utf-8")

    def refuse(*args, **kwargs):
        raise AssertionError("dry run must not connect")

    monkeypatch.setattr(psycopg2, "connect", refuse)
    assert run_migrations.run(dry_run=True, path=schema) == 2


def test_main_reports_connection_failure(monkeypatch):
    def unreachable(*args, **kwargs):
        raise psycopg2.OperationalError("could not connect")

    monkeypatch.setattr(psycopg2, "connect", unreachable)
    assert run_migrations.main([]) == 1
