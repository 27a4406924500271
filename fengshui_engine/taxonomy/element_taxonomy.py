"""
Five-element taxonomy.

``Element`` is the closed set of five symbolic categories used to classify
people and catalog items.  No sixth value is ever valid.

``RelationKind`` is the directional relation one element has towards another,
read from the first element's rule record (see ``recommendations.scorer``).

``FocusArea`` and ``Gender`` are the optional hints accepted by ``analyze``.

``RuleStatus`` is the soft-delete lifecycle of a rule record: records are
never physically removed, they move from ``active`` to ``deleted``.

Usage example::

    from fengshui_engine.taxonomy.element_taxonomy import Element

    Element.parse("Mộc")     # Element.WOOD
    Element.parse("water")   # Element.WATER

This module imports only ``fengshui_engine.errors``.
"""

from __future__ import annotations

import unicodedata
from enum import StrEnum

from fengshui_engine.errors import ValidationError


class Element(StrEnum):
    """One of the five elements.  Values are the canonical storage names."""

    METAL = "Metal"
    """Kim."""

    WOOD = "Wood"
    """Mộc."""

    WATER = "Water"
    """Thủy."""

    FIRE = "Fire"
    """Hỏa."""

    EARTH = "Earth"
    """Thổ."""

    @property
    def source_name(self) -> str:
        """Vietnamese name used by the storefront's reference data."""
        return _SOURCE_NAMES[self]

    @classmethod
    def parse(cls, value: "Element | str") -> "Element":
        """Resolve an English or Vietnamese element name to an ``Element``.

        English names are matched case-insensitively.  Vietnamese names are
        matched after Unicode NFC normalisation, so decomposed input such as
        ``"Mo\\u0323\\u0302c"`` still resolves.

        Raises:
            ValidationError: If ``value`` names no element.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = unicodedata.normalize("NFC", value.strip()).casefold()
            element = _LOOKUP.get(key)
            if element is not None:
                return element
        raise ValidationError(
            f"Unknown element {value!r}. Must be one of {[e.value for e in cls]} "
            f"or {sorted(_SOURCE_NAMES.values())}."
        )


_SOURCE_NAMES: dict[Element, str] = {
    Element.METAL: "Kim",
    Element.WOOD:  "Mộc",
    Element.WATER: "Thủy",
    Element.FIRE:  "Hỏa",
    Element.EARTH: "Thổ",
}

_LOOKUP: dict[str, Element] = {
    **{e.value.casefold(): e for e in Element},
    **{unicodedata.normalize("NFC", name).casefold(): e for e, name in _SOURCE_NAMES.items()},
}


class RelationKind(StrEnum):
    """Directional relation of element A towards element B.

    Declaration order is the resolution order used by the scorer: the first
    relation list of A that contains B decides the kind.
    """

    COMPATIBLE = "compatible"
    """B is listed in A's compatible elements."""

    SUPPORTING = "supporting"
    """A supports (generates) B."""

    SUPPORTED_BY = "supported_by"
    """A is supported (generated) by B."""

    CONFLICTING = "conflicting"
    """A and B clash."""

    NEUTRAL = "neutral"
    """B appears in none of A's relation lists."""


class FocusArea(StrEnum):
    """Life area a shopper can ask for targeted advice on."""

    CAREER = "career"
    HEALTH = "health"
    RELATIONSHIP = "relationship"
    WEALTH = "wealth"


class Gender(StrEnum):
    """Optional gender hint used only to phrase guidance text."""

    MALE = "male"
    FEMALE = "female"


class RuleStatus(StrEnum):
    """Lifecycle state of a rule record."""

    ACTIVE = "active"
    DELETED = "deleted"
