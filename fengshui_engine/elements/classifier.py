"""
Birth-year → element classifier.

The classification is a 60-year cycle built from two interleaved modular
cycles anchored at 1984 (the first year of the current sexagenary cycle):

  - the *stem* cycle, period 10, contributes a value 1–5 (two years per value);
  - the *branch* cycle, period 12, contributes 0, 1 or 2.

Their sum, folded back into 1–5, indexes a fixed element table::

    1 → Metal   2 → Water   3 → Fire   4 → Earth   5 → Wood

Because lcm(10, 12) = 60, ``classify(y) == classify(y + 60)`` for every year.

``classify`` is total over all integers.  The supported business range is
``MIN_BIRTH_YEAR..MAX_BIRTH_YEAR``; enforcing it is the caller's job
(``validate_birth_year`` is provided for that).

Examples::

    classify(1984)  # Element.METAL
    classify(1990)  # Element.EARTH
    classify(2003)  # Element.WOOD
"""

from __future__ import annotations

from fengshui_engine.errors import ValidationError
from fengshui_engine.taxonomy.element_taxonomy import Element

MIN_BIRTH_YEAR = 1900
MAX_BIRTH_YEAR = 2100

CYCLE_ANCHOR_YEAR = 1984
STEM_CYCLE = 10
BRANCH_CYCLE = 12

# Order matters: index = folded stem + branch value.
_ELEMENT_BY_VALUE: dict[int, Element] = {
    1: Element.METAL,
    2: Element.WATER,
    3: Element.FIRE,
    4: Element.EARTH,
    5: Element.WOOD,
}

_BRANCH_VALUE: dict[int, int] = {
    **dict.fromkeys((0, 1, 6, 7), 0),
    **dict.fromkeys((2, 3, 8, 9), 1),
    **dict.fromkeys((4, 5, 10, 11), 2),
}


def stem_index(birth_year: int) -> int:
    """Position of ``birth_year`` in the 10-year stem cycle (0–9)."""
    return (birth_year - CYCLE_ANCHOR_YEAR) % STEM_CYCLE


def branch_index(birth_year: int) -> int:
    """Position of ``birth_year`` in the 12-year branch cycle (0–11)."""
    return (birth_year - CYCLE_ANCHOR_YEAR) % BRANCH_CYCLE


def classify(birth_year: int) -> Element:
    """Return the element for ``birth_year``.

    Python's ``%`` already yields a non-negative result for a positive
    modulus, so years before the anchor need no extra correction.

    Args:
        birth_year: Any integer year.

    Returns:
        The ``Element`` for that year.
    """
    stem_value = stem_index(birth_year) // 2 + 1
    branch_value = _BRANCH_VALUE[branch_index(birth_year)]

    element_value = stem_value + branch_value
    if element_value > 5:
        element_value -= 5

    return _ELEMENT_BY_VALUE[element_value]


def validate_birth_year(birth_year: int) -> int:
    """Enforce the supported birth-year range.

    Args:
        birth_year: Year supplied by a caller.

    Returns:
        ``birth_year`` unchanged.

    Raises:
        ValidationError: If the value is not an int in
            ``[MIN_BIRTH_YEAR, MAX_BIRTH_YEAR]``.
    """
    # bool is an int subclass; True is not a year.
    if isinstance(birth_year, bool) or not isinstance(birth_year, int):
        raise ValidationError(f"Birth year must be an integer, got {birth_year!r}.")
    if not MIN_BIRTH_YEAR <= birth_year <= MAX_BIRTH_YEAR:
        raise ValidationError(
            f"Birth year must be between {MIN_BIRTH_YEAR} and {MAX_BIRTH_YEAR}, "
            f"got {birth_year}."
        )
    return birth_year
