"""
Field-level validation for rule payloads.

``collect_rule_errors`` inspects a raw mapping (seed JSON entry, CLI input,
or a merged update) and returns **every** violated constraint.  Callers raise
one ``ValidationError`` carrying the whole list, so an operator fixing a rule
file sees all problems in one pass.

Rules checked
-------------
- ``element`` is one of the five elements (English or Vietnamese name).
- ``birth_years`` is a non-empty list of integers, each in 1900–2100.
- ``compatible_colors``, ``beneficial_colors``, ``avoid_colors`` and
  ``lucky_directions`` are non-empty lists of non-blank strings.
- ``lucky_numbers`` is a list of integers.
- The four relation lists contain only valid element names.
- Other advice/suggestion fields are lists of strings; ``characteristics``
  maps headings to lists of strings.
- No unknown keys.
"""

from __future__ import annotations

from typing import Any, Mapping

from fengshui_engine.elements.classifier import MAX_BIRTH_YEAR, MIN_BIRTH_YEAR
from fengshui_engine.errors import ValidationError
from fengshui_engine.models.rule import ADVICE_FIELDS, RELATION_FIELDS
from fengshui_engine.taxonomy.element_taxonomy import Element

REQUIRED_COLOR_FIELDS: tuple[str, ...] = (
    "compatible_colors",
    "beneficial_colors",
    "avoid_colors",
)

_OPTIONAL_TEXT_LIST_FIELDS: tuple[str, ...] = (
    *ADVICE_FIELDS.values(),
    "suitable_materials",
    "suitable_shapes",
    "suitable_locations",
    "recommended_stones",
    "recommended_plants",
)

EDITABLE_FIELDS: frozenset[str] = frozenset({
    "birth_years",
    *REQUIRED_COLOR_FIELDS,
    "lucky_directions",
    "lucky_numbers",
    *RELATION_FIELDS.values(),
    *_OPTIONAL_TEXT_LIST_FIELDS,
    "characteristics",
})

ALLOWED_FIELDS: frozenset[str] = EDITABLE_FIELDS | {"element"}


def collect_rule_errors(data: Mapping[str, Any]) -> list[str]:
    """Return every constraint ``data`` violates (empty list when valid)."""
    errors: list[str] = []

    unknown = sorted(set(data) - ALLOWED_FIELDS)
    if unknown:
        errors.append(f"Unknown rule fields: {unknown}.")

    element = data.get("element")
    try:
        Element.parse(element)
    except ValidationError:
        errors.append(
            f"element must be one of {[e.value for e in Element]}, got {element!r}."
        )

    errors.extend(_birth_year_errors(data.get("birth_years")))

    for field in (*REQUIRED_COLOR_FIELDS, "lucky_directions"):
        value = data.get(field)
        if not _is_text_list(value) or not value:
            errors.append(f"{field} must be a non-empty list of names.")

    numbers = data.get("lucky_numbers", [])
    if not isinstance(numbers, list) or not all(_is_int(n) for n in numbers):
        errors.append("lucky_numbers must be a list of integers.")

    for field in RELATION_FIELDS.values():
        value = data.get(field, [])
        if not isinstance(value, (list, tuple, set, frozenset)):
            errors.append(f"{field} must be a list of elements.")
            continue
        bad = [e for e in value if not _is_element(e)]
        if bad:
            errors.append(f"{field} contains unknown elements: {bad}.")

    for field in _OPTIONAL_TEXT_LIST_FIELDS:
        if not _is_text_list(data.get(field, [])):
            errors.append(f"{field} must be a list of strings.")

    characteristics = data.get("characteristics", {})
    if not isinstance(characteristics, Mapping) or not all(
        isinstance(k, str) and _is_text_list(v) for k, v in characteristics.items()
    ):
        errors.append("characteristics must map headings to lists of strings.")

    return errors


def validate_rule_data(data: Mapping[str, Any]) -> None:
    """Raise ``ValidationError`` with all violations if ``data`` is invalid."""
    errors = collect_rule_errors(data)
    if errors:
        raise ValidationError(errors)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _birth_year_errors(years: Any) -> list[str]:
    if not isinstance(years, (list, tuple, set, frozenset)) or not years:
        return ["birth_years must be a non-empty list of years."]
    errors: list[str] = []
    non_int = [y for y in years if not _is_int(y)]
    if non_int:
        errors.append(f"birth_years must contain only integers, got {non_int}.")
    out_of_range = sorted(
        y for y in years if _is_int(y) and not MIN_BIRTH_YEAR <= y <= MAX_BIRTH_YEAR
    )
    if out_of_range:
        errors.append(
            f"birth_years must be between {MIN_BIRTH_YEAR} and {MAX_BIRTH_YEAR}, "
            f"got {out_of_range}."
        )
    return errors


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_text_list(value: Any) -> bool:
    return isinstance(value, list) and all(
        isinstance(v, str) and v.strip() for v in value
    )


def _is_element(value: Any) -> bool:
    try:
        Element.parse(value)
    except ValidationError:
        return False
    return True
