"""Tests for SQLite schema — idempotency, table/index creation, CHECK constraints."""

from __future__ import annotations

import sqlite3

import pytest

from fengshui_engine.db.connection import get_connection
from fengshui_engine.db.schema import (
    ALL_TABLE_NAMES,
    apply_schema,
    get_existing_indexes,
    get_existing_tables,
)

_RULE_INSERT = """
INSERT INTO element_rules (
    element, birth_years, compatible_colors, beneficial_colors, avoid_colors,
    lucky_directions, status, created_at, updated_at
) VALUES (?, '[1990]', '["a"]', '["b"]', '["c"]', '["North"]', ?, 'now', 'now');
"""


class TestApplySchema:
    def test_all_tables_created(self, in_memory_db):
        tables = get_existing_tables(in_memory_db)
        for expected_table in ALL_TABLE_NAMES:
            assert expected_table in tables, (
                f"Expected table '{expected_table}' not found in database. "
                f"Found: {tables}"
            )

    def test_idempotent_double_apply(self, in_memory_db):
        """apply_schema() called twice must not raise errors."""
        apply_schema(in_memory_db)
        tables = get_existing_tables(in_memory_db)
        assert set(ALL_TABLE_NAMES) <= set(tables)

    def test_key_indexes_created(self, in_memory_db):
        indexes = get_existing_indexes(in_memory_db)
        for idx in (
            "uq_element_rules_active_element",
            "idx_element_rules_status",
            "idx_catalog_items_candidates",
        ):
            assert idx in indexes, f"Expected index '{idx}' not found. Found: {indexes}"


class TestActiveElementUniqueness:
    def test_second_active_row_rejected(self, in_memory_db):
        in_memory_db.execute(_RULE_INSERT, ("Metal", "active"))
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(_RULE_INSERT, ("Metal", "active"))

    def test_deleted_rows_do_not_count(self, in_memory_db):
        in_memory_db.execute(_RULE_INSERT, ("Metal", "deleted"))
        in_memory_db.execute(_RULE_INSERT, ("Metal", "deleted"))
        in_memory_db.execute(_RULE_INSERT, ("Metal", "active"))
        row = in_memory_db.execute("SELECT COUNT(*) FROM element_rules;").fetchone()
        assert row[0] == 3


class TestCheckConstraints:
    def test_unknown_element_rejected(self, in_memory_db):
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(_RULE_INSERT, ("Aether", "active"))

    def test_unknown_status_rejected(self, in_memory_db):
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(_RULE_INSERT, ("Metal", "archived"))

    def test_negative_stock_rejected(self, in_memory_db):
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(
                "INSERT INTO catalog_items (item_id, name, elements, price, stock) "
                "VALUES ('x', 'x', '[\"Metal\"]', 10.0, -1);"
            )


class TestGetConnection:
    def test_creates_parent_dirs_and_enables_wal(self, tmp_path):
        db_file = tmp_path / "nested" / "dir" / "engine.db"
        with get_connection(str(db_file)) as conn:
            mode = conn.execute("PRAGMA journal_mode;").fetchone()[0]
            fk = conn.execute("PRAGMA foreign_keys;").fetchone()[0]
        assert db_file.exists()
        assert mode.lower() == "wal"
        assert fk == 1

    def test_rolls_back_on_error(self, tmp_path):
        db_file = str(tmp_path / "engine.db")
        with get_connection(db_file) as conn:
            apply_schema(conn)

        with pytest.raises(RuntimeError):
            with get_connection(db_file) as conn:
                conn.execute(_RULE_INSERT, ("Metal", "active"))
                raise RuntimeError("boom")

        with get_connection(db_file) as conn:
            count = conn.execute("SELECT COUNT(*) FROM element_rules;").fetchone()[0]
        assert count == 0
