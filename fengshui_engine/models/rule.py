"""
Element rule record model.

``RuleRecord`` is the static reference-data unit holding every attribute of
one element: birth-year enumeration, colour sets, lucky directions/numbers,
the four directional relation sets, advice lists and suggestion lists.

The four relation sets form a small directed graph over the five elements.
They are declared per element and are **not** required to be symmetric:
Metal listing Water as compatible says nothing about what Water lists.
``relations`` exposes them as an adjacency mapping in scorer resolution order.

Field-level business constraints (non-empty lists, year range) are checked by
``fengshui_engine.rules.validation`` before a record is built, so that every
violation can be reported at once.  The model itself only coerces types.
"""

from __future__ import annotations

from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from fengshui_engine.taxonomy.element_taxonomy import (
    Element,
    FocusArea,
    RelationKind,
    RuleStatus,
)

RELATION_FIELDS: dict[RelationKind, str] = {
    RelationKind.COMPATIBLE:   "compatible_elements",
    RelationKind.SUPPORTING:   "supporting_elements",
    RelationKind.SUPPORTED_BY: "supported_by_elements",
    RelationKind.CONFLICTING:  "conflicting_elements",
}

ADVICE_FIELDS: dict[FocusArea, str] = {
    FocusArea.CAREER:       "career_advice",
    FocusArea.HEALTH:       "health_advice",
    FocusArea.RELATIONSHIP: "relationship_advice",
    FocusArea.WEALTH:       "wealth_advice",
}

# Fields stored as JSON arrays/objects in the element_rules table.
LIST_FIELDS: tuple[str, ...] = (
    "compatible_colors",
    "beneficial_colors",
    "avoid_colors",
    "lucky_directions",
    "lucky_numbers",
    *RELATION_FIELDS.values(),
    *ADVICE_FIELDS.values(),
    "suitable_materials",
    "suitable_shapes",
    "suitable_locations",
    "recommended_stones",
    "recommended_plants",
)


class RuleRecord(BaseModel):
    """All reference attributes for one element.

    Attributes:
        rule_id: Auto-assigned DB PK; ``None`` before insertion.
        element: The element this record describes (unique among active rules).
        birth_years: Years mapped to this element by the reference table.
            This enumeration is independent of the classifier formula and the
            two are known to disagree for some years.
        compatible_colors: Colours in harmony with the element.
        beneficial_colors: Colours that actively bring luck (weighted highest
            when ranking products).
        avoid_colors: Colours to stay away from.
        lucky_directions: Favourable compass directions.
        lucky_numbers: Favourable numbers.
        compatible_elements / supporting_elements / supported_by_elements /
            conflicting_elements: Directional relation sets towards other
            elements.
        characteristics: Free-form trait lists keyed by heading
            (``personality``, ``strengths``, ``weaknesses``).
        career_advice / health_advice / relationship_advice / wealth_advice:
            Advice lines per focus area.
        suitable_materials / suitable_shapes / suitable_locations /
            recommended_stones / recommended_plants: Suggestion lists.
        status: Soft-delete lifecycle state.
        created_at / updated_at / deleted_at: UTC timestamps.
    """

    model_config = ConfigDict(frozen=True)

    rule_id: Optional[int] = None
    element: Element
    birth_years: frozenset[int]

    compatible_colors: list[str]
    beneficial_colors: list[str]
    avoid_colors: list[str]
    lucky_directions: list[str]
    lucky_numbers: list[int] = []

    compatible_elements: frozenset[Element] = frozenset()
    supporting_elements: frozenset[Element] = frozenset()
    supported_by_elements: frozenset[Element] = frozenset()
    conflicting_elements: frozenset[Element] = frozenset()

    characteristics: dict[str, list[str]] = {}
    career_advice: list[str] = []
    health_advice: list[str] = []
    relationship_advice: list[str] = []
    wealth_advice: list[str] = []

    suitable_materials: list[str] = []
    suitable_shapes: list[str] = []
    suitable_locations: list[str] = []
    recommended_stones: list[str] = []
    recommended_plants: list[str] = []

    status: RuleStatus = RuleStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @field_validator("element", mode="before")
    @classmethod
    def parse_element(cls, v: Any) -> Element:
        return Element.parse(v)

    @field_validator(*RELATION_FIELDS.values(), mode="before")
    @classmethod
    def parse_relation_set(cls, v: Any) -> frozenset[Element]:
        if v is None:
            return frozenset()
        return frozenset(Element.parse(e) for e in v)

    @property
    def is_active(self) -> bool:
        """``True`` unless the record has been soft-deleted."""
        return self.status == RuleStatus.ACTIVE

    @property
    def relations(self) -> Mapping[RelationKind, frozenset[Element]]:
        """Outgoing edges of this element, in scorer resolution order."""
        return MappingProxyType(
            {kind: getattr(self, field) for kind, field in RELATION_FIELDS.items()}
        )

    def advice_for(self, focus_area: FocusArea) -> list[str]:
        """Return the advice list for ``focus_area``."""
        return list(getattr(self, ADVICE_FIELDS[focus_area]))

    def covers_birth_year(self, birth_year: int) -> bool:
        return birth_year in self.birth_years
