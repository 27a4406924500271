"""
Compatibility and item scoring.

Two pure scoring functions live here; neither touches the database.

Element compatibility
---------------------
The relation of element A towards element B is read from **A's** rule record
only.  The first relation list of A that contains B decides the kind:

    1. compatible_elements    → compatible     +6
    2. supporting_elements    → supporting     +8
    3. supported_by_elements  → supported_by  +10
    4. conflicting_elements   → conflicting    -5
    5. none of the above      → neutral         0

Because rules are declared per element and are not symmetric,
``compatibility(A, B)`` and ``compatibility(B, A)`` may differ.  With the
default rules, Metal → Water is *compatible* while Water → Metal is
*supported_by*.

Item score (additive, unbounded above)
--------------------------------------
    total = (
        beneficial_term      # 30 (20 when not prioritising) if colours ∩ beneficial
        + compatible_term    # 15 if colours ∩ compatible
        + element_term       # 10 if the person's element is among item.elements
        + rating
        + sold_count / 100
    )

Colour names are compared after ``strip().casefold()``, so ``" Yellow"`` on
an item matches ``"yellow"`` in a rule.  Avoid-colours do not subtract; they
are reported to callers for display only.

Example: an item whose colours hit the beneficial set, prioritised, rated
4.5 with 200 units sold scores 30 + 4.5 + 2 = 36.5.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Mapping

from fengshui_engine.models.catalog import CatalogItem
from fengshui_engine.models.rule import RuleRecord
from fengshui_engine.taxonomy.element_taxonomy import Element, RelationKind

if TYPE_CHECKING:
    from fengshui_engine.rules.store import CompatibilityRuleStore

# ── Relation scores ───────────────────────────────────────────────────────────

RELATION_SCORES: dict[RelationKind, int] = {
    RelationKind.COMPATIBLE:    6,
    RelationKind.SUPPORTING:    8,
    RelationKind.SUPPORTED_BY: 10,
    RelationKind.CONFLICTING:  -5,
    RelationKind.NEUTRAL:       0,
}

_DESCRIPTIONS: dict[RelationKind, str] = {
    RelationKind.COMPATIBLE:   "{a} and {b} are in harmony.",
    RelationKind.SUPPORTING:   "{a} nourishes {b}.",
    RelationKind.SUPPORTED_BY: "{a} is nourished by {b}.",
    RelationKind.CONFLICTING:  "{a} clashes with {b}.",
    RelationKind.NEUTRAL:      "{a} has no particular relation to {b}.",
}

# ── Item score weights ────────────────────────────────────────────────────────

BENEFICIAL_WEIGHT_PRIORITISED = 30.0
BENEFICIAL_WEIGHT = 20.0
COMPATIBLE_COLOR_WEIGHT = 15.0
ELEMENT_MATCH_WEIGHT = 10.0
SOLD_COUNT_DIVISOR = 100.0


@dataclass(frozen=True)
class CompatibilityResult:
    """Directional relation of ``element_a`` towards ``element_b``.

    Attributes:
        element_a:     Element whose rule record was consulted.
        element_b:     The other element.
        relation_kind: First matching relation (see module docstring).
        score:         Fixed score for ``relation_kind``.
        description:   Human-readable sentence naming both elements.
    """

    element_a:     Element
    element_b:     Element
    relation_kind: RelationKind
    score:         int
    description:   str


def classify_relation(rule: RuleRecord, other: Element) -> RelationKind:
    """Return the relation ``rule.element`` has towards ``other``.

    Relation lists are scanned in ``RelationKind`` declaration order and the
    first hit wins, so an element listed both as compatible and supporting
    resolves to compatible.
    """
    for kind, members in rule.relations.items():
        if other in members:
            return kind
    return RelationKind.NEUTRAL


def compatibility_from_rule(rule: RuleRecord, other: Element | str) -> CompatibilityResult:
    """Build a ``CompatibilityResult`` from an already-resolved rule record."""
    other = Element.parse(other)
    kind = classify_relation(rule, other)
    return CompatibilityResult(
        element_a=rule.element,
        element_b=other,
        relation_kind=kind,
        score=RELATION_SCORES[kind],
        description=_DESCRIPTIONS[kind].format(a=rule.element.value, b=other.value),
    )


def compatibility(
    store: "CompatibilityRuleStore",
    element_a: Element | str,
    element_b: Element | str,
) -> CompatibilityResult:
    """Relation of ``element_a`` towards ``element_b`` using the active rules.

    Only ``element_a`` needs an active rule.

    Raises:
        ValidationError: If either argument is not an element name.
        NotFoundError: If ``element_a`` has no active rule.
    """
    element_b = Element.parse(element_b)
    rule = store.get_by_element(element_a)
    return compatibility_from_rule(rule, element_b)


def build_relation_graph(
    rules: Iterable[RuleRecord],
) -> dict[Element, Mapping[RelationKind, frozenset[Element]]]:
    """Adjacency view of the rule table: element → relation kind → targets."""
    return {rule.element: rule.relations for rule in rules}


# ── Item scoring ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoreComponents:
    """All additive terms of an item's ranking score.

    Attributes:
        beneficial_term: 30/20 when the item has a beneficial colour, else 0.
        compatible_term: 15 when the item has a compatible colour, else 0.
        element_term:    10 when the item carries the person's element, else 0.
        rating_term:     The item's rating.
        popularity_term: ``sold_count / 100``.
    """

    beneficial_term: float
    compatible_term: float
    element_term:    float
    rating_term:     float
    popularity_term: float

    @property
    def total(self) -> float:
        """Sum of all terms."""
        return (
            self.beneficial_term
            + self.compatible_term
            + self.element_term
            + self.rating_term
            + self.popularity_term
        )


def normalize_color(name: str) -> str:
    return name.strip().casefold()


def _color_set(colors: Iterable[str]) -> frozenset[str]:
    return frozenset(normalize_color(c) for c in colors)


def compute_item_score(
    item: CatalogItem,
    rule: RuleRecord,
    prioritize_beneficial: bool = True,
) -> ScoreComponents:
    """Score one catalog item against the person's element rule.

    Args:
        item:                  Candidate item.
        rule:                  Active rule of the person's element.
        prioritize_beneficial: Weight beneficial colours at 30 instead of 20.

    Returns:
        ScoreComponents with every term populated.
    """
    item_colors = _color_set(item.colors)

    beneficial_term = 0.0
    if item_colors & _color_set(rule.beneficial_colors):
        beneficial_term = (
            BENEFICIAL_WEIGHT_PRIORITISED if prioritize_beneficial else BENEFICIAL_WEIGHT
        )

    compatible_term = 0.0
    if item_colors & _color_set(rule.compatible_colors):
        compatible_term = COMPATIBLE_COLOR_WEIGHT

    element_term = ELEMENT_MATCH_WEIGHT if rule.element in item.elements else 0.0

    return ScoreComponents(
        beneficial_term=beneficial_term,
        compatible_term=compatible_term,
        element_term=element_term,
        rating_term=float(item.rating),
        popularity_term=item.sold_count / SOLD_COUNT_DIVISOR,
    )
