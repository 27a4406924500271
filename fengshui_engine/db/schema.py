"""
SQLite schema DDL.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent.

Tables:
  1. element_rules   — one row per rule record, soft-deleted rows retained.
  2. catalog_items   — read model of the storefront catalog.

The "one active rule per element" invariant is a partial UNIQUE index, so two
concurrent creates for the same element cannot both commit regardless of any
application-level pre-check.

List-valued attributes are stored as JSON text.  Birth-year lookups use the
JSON1 ``json_each`` table-valued function.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

_DDL_ELEMENT_RULES = """
CREATE TABLE IF NOT EXISTS element_rules (
    rule_id               INTEGER PRIMARY KEY AUTOINCREMENT,
    element               TEXT    NOT NULL
                          CHECK (element IN ('Metal', 'Wood', 'Water', 'Fire', 'Earth')),
    birth_years           TEXT    NOT NULL,
    compatible_colors     TEXT    NOT NULL,
    beneficial_colors     TEXT    NOT NULL,
    avoid_colors          TEXT    NOT NULL,
    lucky_directions      TEXT    NOT NULL,
    lucky_numbers         TEXT    NOT NULL DEFAULT '[]',
    compatible_elements   TEXT    NOT NULL DEFAULT '[]',
    supporting_elements   TEXT    NOT NULL DEFAULT '[]',
    supported_by_elements TEXT    NOT NULL DEFAULT '[]',
    conflicting_elements  TEXT    NOT NULL DEFAULT '[]',
    characteristics       TEXT    NOT NULL DEFAULT '{}',
    career_advice         TEXT    NOT NULL DEFAULT '[]',
    health_advice         TEXT    NOT NULL DEFAULT '[]',
    relationship_advice   TEXT    NOT NULL DEFAULT '[]',
    wealth_advice         TEXT    NOT NULL DEFAULT '[]',
    suitable_materials    TEXT    NOT NULL DEFAULT '[]',
    suitable_shapes       TEXT    NOT NULL DEFAULT '[]',
    suitable_locations    TEXT    NOT NULL DEFAULT '[]',
    recommended_stones    TEXT    NOT NULL DEFAULT '[]',
    recommended_plants    TEXT    NOT NULL DEFAULT '[]',
    status                TEXT    NOT NULL DEFAULT 'active'
                          CHECK (status IN ('active', 'deleted')),
    created_at            TEXT    NOT NULL,
    updated_at            TEXT    NOT NULL,
    deleted_at            TEXT
);
"""

_DDL_ELEMENT_RULES_INDEXES = """
CREATE UNIQUE INDEX IF NOT EXISTS uq_element_rules_active_element
    ON element_rules(element)
    WHERE status = 'active';
CREATE INDEX IF NOT EXISTS idx_element_rules_status
    ON element_rules(status, element);
"""

_DDL_CATALOG_ITEMS = """
CREATE TABLE IF NOT EXISTS catalog_items (
    item_id      TEXT    PRIMARY KEY,
    name         TEXT    NOT NULL,
    category     TEXT,
    colors       TEXT    NOT NULL DEFAULT '[]',
    elements     TEXT    NOT NULL,
    price        REAL    NOT NULL CHECK (price > 0),
    rating       REAL    NOT NULL DEFAULT 0 CHECK (rating >= 0),
    sold_count   INTEGER NOT NULL DEFAULT 0 CHECK (sold_count >= 0),
    stock        INTEGER NOT NULL DEFAULT 0 CHECK (stock >= 0),
    is_active    INTEGER NOT NULL DEFAULT 1,
    created_at   TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    updated_at   TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_CATALOG_ITEMS_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_catalog_items_candidates
    ON catalog_items(is_active, category)
    WHERE stock > 0;
"""

_ALL_DDL = [
    _DDL_ELEMENT_RULES,
    _DDL_ELEMENT_RULES_INDEXES,
    _DDL_CATALOG_ITEMS,
    _DDL_CATALOG_ITEMS_INDEXES,
]

ALL_TABLE_NAMES = [
    "element_rules",
    "catalog_items",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn``.

    Idempotent — safe to call on an already-initialized database.

    Args:
        conn: An open ``sqlite3.Connection``.
    """
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    """Split a multi-statement DDL block on semicolons."""
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]


def get_existing_indexes(conn: sqlite3.Connection) -> list[str]:
    """Return index names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='index' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
