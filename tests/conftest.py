"""
Shared pytest fixtures for the five-element engine test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema applied. Created anew for each test that requests it.
  - ``fixed_clock`` / ``rule_store``: a rule store stamping a fixed UTC time.
  - ``seeded_store``: the rule store with the five default rules loaded from
    ``config/rules/default_rules.json``.
  - ``engine``: a ``FengShuiEngine`` over the seeded database.
  - ``valid_rule_data`` and ``make_item``: domain object factories.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

from fengshui_engine.db.schema import apply_schema
from fengshui_engine.engine import FengShuiEngine
from fengshui_engine.models.catalog import CatalogItem
from fengshui_engine.rules.seed_loader import seed_defaults
from fengshui_engine.rules.store import CompatibilityRuleStore

PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_RULES_FILE = PROJECT_ROOT / "config" / "rules" / "default_rules.json"

FIXED_NOW = datetime(2024, 9, 15, 12, 0, 0, tzinfo=timezone.utc)


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the full schema applied.

    Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    yield conn
    conn.close()


# ── Rule store fixtures ───────────────────────────────────────────────────────

@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def rule_store(in_memory_db, fixed_clock) -> CompatibilityRuleStore:
    """An empty rule store."""
    return CompatibilityRuleStore(in_memory_db, clock=fixed_clock)


@pytest.fixture
def seeded_store(rule_store) -> CompatibilityRuleStore:
    """A rule store holding the five default rules."""
    seed_defaults(rule_store, DEFAULT_RULES_FILE)
    return rule_store


@pytest.fixture
def engine(in_memory_db, fixed_clock) -> FengShuiEngine:
    """An engine over a seeded in-memory database."""
    eng = FengShuiEngine(in_memory_db, clock=fixed_clock)
    eng.seed_default_rules(DEFAULT_RULES_FILE)
    return eng


# ── Sample domain object factories ────────────────────────────────────────────

@pytest.fixture
def valid_rule_data() -> dict[str, Any]:
    """A complete, valid rule payload for Metal."""
    return {
        "element": "Metal",
        "birth_years": [1980, 1981, 1990],
        "compatible_colors": ["white", "silver", "yellow"],
        "beneficial_colors": ["yellow", "brown"],
        "avoid_colors": ["red", "orange"],
        "lucky_directions": ["West", "Northwest"],
        "lucky_numbers": [6, 7],
        "compatible_elements": ["Water"],
        "supporting_elements": ["Water"],
        "supported_by_elements": ["Earth"],
        "conflicting_elements": ["Fire"],
        "career_advice": ["Work with precision"],
    }


@pytest.fixture
def make_item() -> Callable[..., CatalogItem]:
    """Factory for ``CatalogItem`` with neutral defaults."""

    def _make(item_id: str = "item-001", **overrides: Any) -> CatalogItem:
        fields: dict[str, Any] = {
            "item_id": item_id,
            "name": f"Item {item_id}",
            "category": "bracelet",
            "colors": ["teal"],
            "elements": ["Wood"],
            "price": 100.0,
            "rating": 0.0,
            "sold_count": 0,
            "stock": 5,
            "is_active": True,
        }
        fields.update(overrides)
        return CatalogItem(**fields)

    return _make
