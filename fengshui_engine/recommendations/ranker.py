"""
Product ranking pipeline: birth year → element → scored, ordered catalog slice.

Usage flow
----------
1. ``classify(birth_year)`` resolves the person's element and its active rule
   is fetched.  A missing rule here is a broken invariant
   (``DataIntegrityError``), not a lookup miss: every element must always
   have exactly one active rule.

2. ``CatalogRepository.fetch_candidates(category)`` returns active, in-stock
   items in one read.

3. ``score_candidates`` scores each item and drops those with total ≤ 0.

4. ``sort_ranked`` orders by score desc, rating desc, price asc, item_id asc.

5. The list is truncated to the requested limit.

The pipeline never writes to the catalog.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fengshui_engine.config import RankingConfig
from fengshui_engine.db.repositories.catalog_repo import CatalogRepository
from fengshui_engine.elements.classifier import classify, validate_birth_year
from fengshui_engine.errors import DataIntegrityError, NotFoundError, ValidationError
from fengshui_engine.models.catalog import CatalogItem
from fengshui_engine.models.rule import RuleRecord
from fengshui_engine.recommendations.scorer import ScoreComponents, compute_item_score
from fengshui_engine.rules.store import CompatibilityRuleStore
from fengshui_engine.taxonomy.element_taxonomy import Element

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedItem:
    """A catalog item with its score breakdown.

    Attributes:
        item:       The candidate item.
        components: Additive score terms.
    """

    item:       CatalogItem
    components: ScoreComponents

    @property
    def score(self) -> float:
        return round(self.components.total, 4)


@dataclass(frozen=True)
class RankedResult:
    """Output of ``rank``.

    Attributes:
        birth_year:        Year the ranking was computed for.
        element:           Element resolved by the classifier.
        compatible_colors: Rule colours echoed for display.
        beneficial_colors: Rule colours echoed for display.
        avoid_colors:      Rule colours echoed for display.
        items:             Ranked items, best first, already truncated.
    """

    birth_year:        int
    element:           Element
    compatible_colors: list[str]
    beneficial_colors: list[str]
    avoid_colors:      list[str]
    items:             list[RankedItem]


def resolve_limit(limit: Optional[int], config: RankingConfig) -> int:
    """Apply the configured default and bounds to a caller-supplied limit.

    Raises:
        ValidationError: If ``limit`` is not an int in ``1..config.max_limit``.
    """
    if limit is None:
        return config.default_limit
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValidationError(f"limit must be an integer, got {limit!r}.")
    if not 1 <= limit <= config.max_limit:
        raise ValidationError(
            f"limit must be between 1 and {config.max_limit}, got {limit}."
        )
    return limit


def score_candidates(
    candidates: list[CatalogItem],
    rule: RuleRecord,
    prioritize_beneficial: bool = True,
) -> list[RankedItem]:
    """Score every candidate and keep only those with a positive total."""
    ranked: list[RankedItem] = []
    for item in candidates:
        components = compute_item_score(item, rule, prioritize_beneficial)
        if components.total <= 0:
            continue
        ranked.append(RankedItem(item=item, components=components))
    return ranked


def sort_ranked(ranked: list[RankedItem]) -> list[RankedItem]:
    """Order by score desc, then rating desc, then price asc, then item_id."""
    return sorted(
        ranked,
        key=lambda r: (-r.score, -r.item.rating, r.item.price, r.item.item_id),
    )


def rank(
    store: CompatibilityRuleStore,
    catalog: CatalogRepository,
    birth_year: int,
    category: Optional[str] = None,
    limit: Optional[int] = None,
    prioritize_beneficial: bool = True,
    config: Optional[RankingConfig] = None,
) -> RankedResult:
    """Rank catalog items for a person born in ``birth_year``.

    Args:
        store:                 Rule store for the element lookup.
        catalog:               Catalog read model.
        birth_year:            Year in 1900–2100.
        category:              Optional exact category filter.
        limit:                 Maximum items returned; config default if None.
        prioritize_beneficial: Weight beneficial colours at 30 instead of 20.
        config:                Ranking limits; defaults to ``RankingConfig()``.

    Returns:
        ``RankedResult`` with the rule colours and the ranked items.

    Raises:
        ValidationError: Bad birth year or limit.
        DataIntegrityError: If the classified element has no active rule.
    """
    config = config or RankingConfig()
    validate_birth_year(birth_year)
    limit = resolve_limit(limit, config)

    element = classify(birth_year)
    try:
        rule = store.get_by_element(element)
    except NotFoundError as exc:
        logger.error("No active rule for classified element %s.", element.value)
        raise DataIntegrityError(
            f"Element '{element.value}' (birth year {birth_year}) has no active rule."
        ) from exc

    candidates = catalog.fetch_candidates(category)
    ranked = sort_ranked(score_candidates(candidates, rule, prioritize_beneficial))

    logger.debug(
        "Ranked %d/%d candidates for %d (%s), returning %d.",
        len(ranked), len(candidates), birth_year, element.value, min(limit, len(ranked)),
    )

    return RankedResult(
        birth_year=birth_year,
        element=element,
        compatible_colors=list(rule.compatible_colors),
        beneficial_colors=list(rule.beneficial_colors),
        avoid_colors=list(rule.avoid_colors),
        items=ranked[:limit],
    )
