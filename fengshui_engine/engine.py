"""
Engine facade — the function-level boundary of the five-element engine.

``FengShuiEngine`` binds a SQLite connection and an ``AppConfig`` and exposes
the operations a storefront (or the CLI) calls.  Errors from
``fengshui_engine.errors`` propagate unchanged.

Usage::

    from fengshui_engine.db.connection import get_connection
    from fengshui_engine.engine import FengShuiEngine

    with get_connection("data/db/fengshui.db") as conn:
        engine = FengShuiEngine(conn)
        engine.seed_default_rules()
        engine.classify(1990)                      # Element.EARTH
        engine.compatibility("Wood", "Fire").score # 6
        engine.rank(1990, category="bracelet", limit=10)
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

from fengshui_engine.analysis.analyzer import analyze
from fengshui_engine.config import AppConfig
from fengshui_engine.db.repositories.catalog_repo import CatalogRepository
from fengshui_engine.elements.classifier import classify, validate_birth_year
from fengshui_engine.models.analysis import AnalysisResult
from fengshui_engine.models.rule import RuleRecord
from fengshui_engine.recommendations import ranker, scorer
from fengshui_engine.recommendations.ranker import RankedResult
from fengshui_engine.recommendations.scorer import CompatibilityResult
from fengshui_engine.rules.seed_loader import SeedResult, seed_defaults
from fengshui_engine.rules.store import Clock, CompatibilityRuleStore, _utcnow
from fengshui_engine.taxonomy.element_taxonomy import Element, FocusArea, Gender

logger = logging.getLogger(__name__)


class FengShuiEngine:
    """Classification, rule lookup, compatibility and ranking over one DB.

    Args:
        conn:   Open SQLite connection with the schema applied.
        config: Application config; defaults to ``AppConfig()``.
        clock:  Timestamp source for rule writes.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        config: Optional[AppConfig] = None,
        clock: Clock = _utcnow,
    ) -> None:
        self.config = config or AppConfig()
        self.rules = CompatibilityRuleStore(conn, clock=clock)
        self.catalog = CatalogRepository(conn)

    def classify(self, birth_year: int) -> Element:
        """Element for ``birth_year`` (1900–2100).

        Raises:
            ValidationError: If the year is out of range.
        """
        return classify(validate_birth_year(birth_year))

    def analyze(
        self,
        birth_year: int,
        gender: Optional[Gender | str] = None,
        focus_area: Optional[FocusArea | str] = None,
        preferences: Optional[str] = None,
    ) -> AnalysisResult:
        return analyze(self.rules, birth_year, gender, focus_area, preferences)

    def get_rule(self, element: Element | str) -> RuleRecord:
        return self.rules.get_by_element(element)

    def compatibility(
        self, element_a: Element | str, element_b: Element | str
    ) -> CompatibilityResult:
        return scorer.compatibility(self.rules, element_a, element_b)

    def rank(
        self,
        birth_year: int,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        prioritize_beneficial: Optional[bool] = None,
    ) -> RankedResult:
        """Rank catalog items for ``birth_year``.

        ``prioritize_beneficial`` defaults to the configured value.
        """
        if prioritize_beneficial is None:
            prioritize_beneficial = self.config.ranking.prioritize_beneficial
        return ranker.rank(
            self.rules,
            self.catalog,
            birth_year,
            category=category,
            limit=limit,
            prioritize_beneficial=prioritize_beneficial,
            config=self.config.ranking,
        )

    def seed_default_rules(self, path: Optional[Path] = None) -> SeedResult:
        """Insert the five canonical rules if the rule table is empty."""
        seed_path = Path(path) if path else Path(self.config.data.rules_seed_file)
        return seed_defaults(self.rules, seed_path)
