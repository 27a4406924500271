"""
Personal element analysis.

``analyze`` resolves a person's rule record in two steps:

  1. the rule whose reference ``birth_years`` list contains the year
     (``resolved_by="birth_year_table"``);
  2. failing that, ``classify(birth_year)`` and the active rule for the
     resulting element (``resolved_by="formula"``).

The two paths are known to disagree for some years (the reference table puts
1984 under Wood, the classifier says Metal).  Neither is reconciled against
the other; ``resolved_by`` tells callers which one answered.

The guidance text is assembled from fixed sentence templates: an element
description, an optional gender paragraph and an optional tips paragraph
when the shopper stated preferences.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Optional, TypeVar

from fengshui_engine.elements.classifier import classify, validate_birth_year
from fengshui_engine.errors import NotFoundError, ValidationError
from fengshui_engine.models.analysis import AnalysisResult, ResolvedBy
from fengshui_engine.models.rule import RuleRecord
from fengshui_engine.rules.store import CompatibilityRuleStore
from fengshui_engine.taxonomy.element_taxonomy import Element, FocusArea, Gender

logger = logging.getLogger(__name__)

_ELEMENT_DESCRIPTIONS: dict[Element, str] = {
    Element.METAL: "strong-willed, steadfast, practical and well organised.",
    Element.WATER: "intelligent, adaptable, imaginative and a good communicator.",
    Element.WOOD:  "kind-hearted, creative, sociable and caring.",
    Element.FIRE:  "enthusiastic, energetic and inspiring.",
    Element.EARTH: "steady, sincere and dependable.",
}

_GENDER_PARAGRAPHS: dict[Gender, str] = {
    Gender.MALE: "As a {element} man, build on your leadership and decisiveness.",
    Gender.FEMALE: "As a {element} woman, cultivate your finesse and your ability to listen.",
}

_PREFERENCE_TIPS = (
    "Tips for your preferences:\n"
    "- Wear compatible and beneficial colours to invite prosperity.\n"
    "- Arrange your home and desk to face one of your lucky directions.\n"
    "- Use your lucky numbers when picking dates, phone numbers or plates."
)

_E = TypeVar("_E", bound=StrEnum)


def parse_option(enum_cls: type[_E], value: Optional[_E | str], label: str) -> Optional[_E]:
    """Parse an optional enum hint, case-insensitively.

    Raises:
        ValidationError: If ``value`` is not one of ``enum_cls``'s values.
    """
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    raise ValidationError(
        f"{label} must be one of {[m.value for m in enum_cls]}, got {value!r}."
    )


def resolve_rule(store: CompatibilityRuleStore, birth_year: int) -> tuple[RuleRecord, ResolvedBy]:
    """Find the rule for ``birth_year``: reference table first, classifier second.

    Raises:
        NotFoundError: If neither path yields an active rule.
    """
    try:
        return store.get_by_birth_year(birth_year), "birth_year_table"
    except NotFoundError:
        element = classify(birth_year)
        logger.debug(
            "Birth year %d not in any reference table; classifier gives %s.",
            birth_year, element.value,
        )
        return store.get_by_element(element), "formula"


def build_guidance(
    element: Element,
    birth_year: int,
    gender: Optional[Gender] = None,
    preferences: Optional[str] = None,
) -> str:
    """Assemble the free-text guidance shown with an analysis."""
    paragraphs = [
        f"Born in {birth_year}, you belong to the {element.value} "
        f"({element.source_name}) element.",
        f"You are {_ELEMENT_DESCRIPTIONS[element]}",
    ]
    if gender is not None:
        paragraphs.append(_GENDER_PARAGRAPHS[gender].format(element=element.value))
    if preferences and preferences.strip():
        paragraphs.append(_PREFERENCE_TIPS)
    return "\n\n".join(paragraphs)


def analyze(
    store: CompatibilityRuleStore,
    birth_year: int,
    gender: Optional[Gender | str] = None,
    focus_area: Optional[FocusArea | str] = None,
    preferences: Optional[str] = None,
) -> AnalysisResult:
    """Full element analysis for a person.

    Args:
        store:       Rule store.
        birth_year:  Year in 1900–2100.
        gender:      Optional ``male``/``female`` hint, used only in the text.
        focus_area:  Optional area to pull personalised advice for.
        preferences: Optional free text; when non-blank, tips are appended.

    Returns:
        ``AnalysisResult``.

    Raises:
        ValidationError: Bad year, gender or focus area.
        NotFoundError: If no active rule can be resolved.
    """
    validate_birth_year(birth_year)
    gender = parse_option(Gender, gender, "gender")
    focus_area = parse_option(FocusArea, focus_area, "focus_area")

    rule, resolved_by = resolve_rule(store, birth_year)

    return AnalysisResult(
        birth_year=birth_year,
        element=rule.element,
        resolved_by=resolved_by,
        compatible_colors=list(rule.compatible_colors),
        beneficial_colors=list(rule.beneficial_colors),
        avoid_colors=list(rule.avoid_colors),
        lucky_directions=list(rule.lucky_directions),
        lucky_numbers=list(rule.lucky_numbers),
        materials=list(rule.suitable_materials),
        shapes=list(rule.suitable_shapes),
        stones=list(rule.recommended_stones),
        plants=list(rule.recommended_plants),
        characteristics={k: list(v) for k, v in rule.characteristics.items()},
        advice={area: rule.advice_for(area) for area in FocusArea},
        guidance=build_guidance(rule.element, birth_year, gender, preferences),
        focus_area=focus_area,
        personalized_advice=rule.advice_for(focus_area) if focus_area else None,
    )
