"""
Tests for fengshui_engine/recommendations/scorer.py.

What we test
------------
classify_relation() / compatibility():
  - First matching relation list wins, in declaration order.
  - Directionality with the default rules (Metal→Water vs Water→Metal).
  - Totality: every ordered pair yields one of the five kinds with its fixed
    score.
  - Only the first element needs an active rule.
  - Descriptions name both elements.

build_relation_graph():
  - One adjacency entry per rule.

compute_item_score():
  - Beneficial term 30 when prioritised, 20 otherwise.
  - Compatible-colour and element-match terms.
  - Colour matching ignores case and surrounding whitespace.
  - Reference example: beneficial hit, rating 4.5, 200 sold → 36.5.

ScoreComponents.total:
  - Sums every term.
"""

from __future__ import annotations

import pytest

from fengshui_engine.errors import NotFoundError, ValidationError
from fengshui_engine.models.rule import RuleRecord
from fengshui_engine.recommendations.scorer import (
    RELATION_SCORES,
    ScoreComponents,
    build_relation_graph,
    classify_relation,
    compatibility,
    compatibility_from_rule,
    compute_item_score,
)
from fengshui_engine.taxonomy.element_taxonomy import Element, RelationKind


# ── Helpers ────────────────────────────────────────────────────────────────────

def _rule(valid_rule_data, **overrides) -> RuleRecord:
    return RuleRecord(**{**valid_rule_data, **overrides})


class TestClassifyRelation:
    def test_first_match_wins(self, valid_rule_data):
        # Water is both compatible and supporting; compatible is checked first.
        rule = _rule(valid_rule_data)
        assert classify_relation(rule, Element.WATER) is RelationKind.COMPATIBLE

    def test_supporting_reached_when_not_compatible(self, valid_rule_data):
        rule = _rule(valid_rule_data, compatible_elements=[])
        assert classify_relation(rule, Element.WATER) is RelationKind.SUPPORTING

    def test_supported_by(self, valid_rule_data):
        assert classify_relation(_rule(valid_rule_data), Element.EARTH) is RelationKind.SUPPORTED_BY

    def test_conflicting(self, valid_rule_data):
        assert classify_relation(_rule(valid_rule_data), Element.FIRE) is RelationKind.CONFLICTING

    def test_neutral(self, valid_rule_data):
        assert classify_relation(_rule(valid_rule_data), Element.WOOD) is RelationKind.NEUTRAL

    def test_self_is_neutral_by_default(self, valid_rule_data):
        assert classify_relation(_rule(valid_rule_data), Element.METAL) is RelationKind.NEUTRAL


class TestCompatibility:
    def test_wood_fire(self, seeded_store):
        result = compatibility(seeded_store, "Wood", "Fire")
        assert result.relation_kind is RelationKind.COMPATIBLE
        assert result.score == 6

    def test_directional(self, seeded_store):
        forward = compatibility(seeded_store, Element.METAL, Element.WATER)
        backward = compatibility(seeded_store, Element.WATER, Element.METAL)
        assert forward.relation_kind is RelationKind.COMPATIBLE
        assert forward.score == 6
        assert backward.relation_kind is RelationKind.SUPPORTED_BY
        assert backward.score == 10

    def test_conflicting_default(self, seeded_store):
        result = compatibility(seeded_store, "Fire", "Water")
        assert result.relation_kind is RelationKind.CONFLICTING
        assert result.score == -5

    def test_neutral_default(self, seeded_store):
        result = compatibility(seeded_store, "Metal", "Wood")
        assert result.relation_kind is RelationKind.NEUTRAL
        assert result.score == 0

    def test_total_over_all_pairs(self, seeded_store):
        for a in Element:
            for b in Element:
                result = compatibility(seeded_store, a, b)
                assert result.score == RELATION_SCORES[result.relation_kind]

    def test_deterministic(self, seeded_store):
        results = {compatibility(seeded_store, "Earth", "Metal") for _ in range(3)}
        assert len(results) == 1

    def test_vietnamese_names(self, seeded_store):
        result = compatibility(seeded_store, "Thủy", "Mộc")
        assert result.element_a is Element.WATER
        assert result.element_b is Element.WOOD

    def test_description_names_both(self, seeded_store):
        result = compatibility(seeded_store, "Water", "Metal")
        assert "Water" in result.description and "Metal" in result.description

    def test_first_element_needs_rule(self, rule_store, valid_rule_data):
        rule_store.create(valid_rule_data)
        # Water has no rule; Metal → Water still resolves.
        assert compatibility(rule_store, "Metal", "Water").score == 6
        with pytest.raises(NotFoundError):
            compatibility(rule_store, "Water", "Metal")

    def test_invalid_element(self, seeded_store):
        with pytest.raises(ValidationError):
            compatibility(seeded_store, "Metal", "Ice")

    def test_from_rule(self, valid_rule_data):
        result = compatibility_from_rule(_rule(valid_rule_data), "Earth")
        assert result.relation_kind is RelationKind.SUPPORTED_BY
        assert result.score == 10


class TestRelationScores:
    def test_fixed_table(self):
        assert RELATION_SCORES == {
            RelationKind.SUPPORTED_BY: 10,
            RelationKind.SUPPORTING: 8,
            RelationKind.COMPATIBLE: 6,
            RelationKind.NEUTRAL: 0,
            RelationKind.CONFLICTING: -5,
        }


class TestRelationGraph:
    def test_graph(self, seeded_store):
        graph = build_relation_graph(seeded_store.list_active())
        assert set(graph) == set(Element)
        assert graph[Element.WOOD][RelationKind.CONFLICTING] == frozenset({Element.METAL})


class TestComputeItemScore:
    def test_reference_example(self, valid_rule_data, make_item):
        # "brown" is beneficial but not compatible for this rule.
        rule = _rule(valid_rule_data)
        item = make_item(colors=["brown"], elements=["Wood"], rating=4.5, sold_count=200)
        comps = compute_item_score(item, rule, prioritize_beneficial=True)
        assert comps.beneficial_term == 30
        assert comps.compatible_term == 0
        assert comps.element_term == 0
        assert comps.total == pytest.approx(36.5)

    def test_not_prioritised(self, valid_rule_data, make_item):
        item = make_item(colors=["brown"], rating=4.5, sold_count=200)
        comps = compute_item_score(item, _rule(valid_rule_data), prioritize_beneficial=False)
        assert comps.beneficial_term == 20
        assert comps.total == pytest.approx(26.5)

    def test_all_terms(self, valid_rule_data, make_item):
        item = make_item(colors=["yellow"], elements=["Metal"], rating=4.5, sold_count=200)
        comps = compute_item_score(item, _rule(valid_rule_data))
        assert comps.total == pytest.approx(30 + 15 + 10 + 4.5 + 2)

    def test_colour_match_case_and_space_insensitive(self, valid_rule_data, make_item):
        item = make_item(colors=["  Brown "])
        assert compute_item_score(item, _rule(valid_rule_data)).beneficial_term == 30

    def test_no_match_zero(self, valid_rule_data, make_item):
        comps = compute_item_score(make_item(), _rule(valid_rule_data))
        assert comps.total == 0

    def test_avoid_colours_do_not_subtract(self, valid_rule_data, make_item):
        comps = compute_item_score(make_item(colors=["red"], rating=1.0), _rule(valid_rule_data))
        assert comps.total == pytest.approx(1.0)


class TestScoreComponentsTotal:
    def test_sums_terms(self):
        comps = ScoreComponents(
            beneficial_term=30.0,
            compatible_term=15.0,
            element_term=10.0,
            rating_term=3.0,
            popularity_term=0.5,
        )
        assert comps.total == pytest.approx(58.5)
