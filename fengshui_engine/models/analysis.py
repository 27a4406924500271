"""
Analysis result model — the full classification output for one person.

Computed on demand by ``fengshui_engine.analysis.analyzer.analyze``; never
persisted.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from fengshui_engine.taxonomy.element_taxonomy import Element, FocusArea

ResolvedBy = Literal["birth_year_table", "formula"]


class AnalysisResult(BaseModel):
    """Everything the storefront shows a shopper about their element.

    Attributes:
        birth_year: The year analysed.
        element: Resolved element.
        resolved_by: ``"birth_year_table"`` when the rule's reference year list
            matched, ``"formula"`` when the classifier fallback was used.
        compatible_colors / beneficial_colors / avoid_colors: Colour sets.
        lucky_directions / lucky_numbers: Favourable directions and numbers.
        materials / shapes / stones / plants: Suggestion lists.
        characteristics: Trait lists keyed by heading.
        advice: Advice lines for every focus area.
        guidance: Generated free-text guidance.
        focus_area: The focus area requested, if any.
        personalized_advice: Advice for ``focus_area``; ``None`` without one.
    """

    model_config = ConfigDict(frozen=True)

    birth_year: int
    element: Element
    resolved_by: ResolvedBy

    compatible_colors: list[str]
    beneficial_colors: list[str]
    avoid_colors: list[str]
    lucky_directions: list[str]
    lucky_numbers: list[int]

    materials: list[str] = []
    shapes: list[str] = []
    stones: list[str] = []
    plants: list[str] = []

    characteristics: dict[str, list[str]] = {}
    advice: dict[FocusArea, list[str]] = {}
    guidance: str = ""

    focus_area: Optional[FocusArea] = None
    personalized_advice: Optional[list[str]] = None
