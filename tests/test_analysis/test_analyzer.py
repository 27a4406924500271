"""
Tests for fengshui_engine/analysis/analyzer.py.

What we test
------------
analyze():
  - Reference-table years resolve via the table (1984 → Wood), even where the
    classifier disagrees.
  - Years outside every table fall back to the classifier (2025 → Fire).
  - Rule attributes are copied onto the result.
  - Gender and preferences shape the guidance text.
  - Focus area selects personalised advice.
  - Invalid year, gender or focus area → ValidationError.
  - No rule on either path → NotFoundError.

parse_option():
  - Case-insensitive, None passes through.
"""

from __future__ import annotations

import pytest

from fengshui_engine.analysis.analyzer import analyze, build_guidance, parse_option
from fengshui_engine.errors import NotFoundError, ValidationError
from fengshui_engine.taxonomy.element_taxonomy import Element, FocusArea, Gender


class TestResolution:
    def test_table_wins_over_classifier(self, seeded_store):
        result = analyze(seeded_store, 1984)
        assert result.element is Element.WOOD
        assert result.resolved_by == "birth_year_table"

    def test_formula_fallback(self, seeded_store):
        result = analyze(seeded_store, 2025)
        assert result.element is Element.FIRE
        assert result.resolved_by == "formula"

    def test_formula_fallback_missing_rule(self, seeded_store):
        seeded_store.soft_delete("Fire")
        with pytest.raises(NotFoundError):
            analyze(seeded_store, 2025)

    def test_empty_store(self, rule_store):
        with pytest.raises(NotFoundError):
            analyze(rule_store, 1990)

    @pytest.mark.parametrize("year", [1899, 2101])
    def test_year_out_of_range(self, seeded_store, year):
        with pytest.raises(ValidationError):
            analyze(seeded_store, year)


class TestResultContent:
    def test_copies_rule_attributes(self, seeded_store):
        result = analyze(seeded_store, 1994)
        assert result.birth_year == 1994
        assert result.beneficial_colors == ["black", "dark blue"]
        assert result.lucky_directions == ["East", "Southeast"]
        assert result.lucky_numbers == [3, 4]
        assert result.stones == ["emerald", "malachite", "aventurine"]
        assert result.characteristics["personality"] == ["creative", "flexible", "patient"]
        assert set(result.advice) == set(FocusArea)

    def test_metal_has_empty_advice(self, seeded_store):
        result = analyze(seeded_store, 1990, focus_area="career")
        assert result.element is Element.METAL
        assert result.personalized_advice == []
        assert result.plants == []

    def test_focus_area(self, seeded_store):
        result = analyze(seeded_store, 1984, focus_area="Wealth")
        assert result.focus_area is FocusArea.WEALTH
        assert result.personalized_advice == [
            "Invest in real estate",
            "Do business in green industries",
            "Build wealth slowly and sustainably",
        ]

    def test_no_focus_area(self, seeded_store):
        result = analyze(seeded_store, 1984)
        assert result.focus_area is None
        assert result.personalized_advice is None


class TestGuidance:
    def test_basic_text(self, seeded_store):
        text = analyze(seeded_store, 1984).guidance
        assert text.startswith("Born in 1984, you belong to the Wood (Mộc) element.")
        assert "man" not in text
        assert "Tips" not in text

    def test_gender_paragraph(self, seeded_store):
        text = analyze(seeded_store, 1984, gender="female").guidance
        assert "As a Wood woman" in text

    def test_preferences_add_tips(self, seeded_store):
        text = analyze(seeded_store, 1984, preferences="I like jade").guidance
        assert "Tips for your preferences:" in text

    def test_blank_preferences_ignored(self):
        assert "Tips" not in build_guidance(Element.FIRE, 1986, preferences="   ")

    def test_invalid_gender(self, seeded_store):
        with pytest.raises(ValidationError):
            analyze(seeded_store, 1984, gender="other")

    def test_invalid_focus(self, seeded_store):
        with pytest.raises(ValidationError):
            analyze(seeded_store, 1984, focus_area="travel")


class TestParseOption:
    def test_none(self):
        assert parse_option(Gender, None, "gender") is None

    def test_case_insensitive(self):
        assert parse_option(Gender, " MALE ", "gender") is Gender.MALE

    def test_enum_passthrough(self):
        assert parse_option(FocusArea, FocusArea.HEALTH, "focus_area") is FocusArea.HEALTH

    def test_non_string(self):
        with pytest.raises(ValidationError):
            parse_option(FocusArea, 3, "focus_area")
