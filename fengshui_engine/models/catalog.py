"""
Catalog item model — the subset of a storefront product the engine reads.

The catalog's lifecycle (creation, editing, images, reviews) belongs to the
storefront.  The ranking pipeline only reads ``colors``, ``elements``,
``rating``, ``sold_count``, ``stock``, ``price``, ``category`` and
``is_active``; it never writes any of them.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from fengshui_engine.taxonomy.element_taxonomy import Element


class CatalogItem(BaseModel):
    """A sellable product with its elemental and popularity attributes.

    Attributes:
        item_id: Storefront product identifier (opaque string).
        name: Display name.
        category: Storefront category label, e.g. ``"bracelet"``.
        colors: Colour names of the product, matched against rule colour sets.
        elements: The product's own elemental association(s); never empty.
        price: Unit price; strictly positive.
        rating: Average review rating; ``>= 0``.
        sold_count: Units sold to date; ``>= 0``.
        stock: Units on hand; ``>= 0``.
        is_active: ``False`` once the storefront soft-deletes the product.
    """

    model_config = ConfigDict(frozen=True)

    item_id: str
    name: str
    category: Optional[str] = None
    colors: list[str] = []
    elements: list[Element]
    price: float
    rating: float = 0.0
    sold_count: int = 0
    stock: int = 0
    is_active: bool = True

    @field_validator("elements", mode="before")
    @classmethod
    def parse_elements(cls, v: Any) -> list[Element]:
        if not v:
            raise ValueError("An item must belong to at least one element.")
        return [Element.parse(e) for e in v]

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"price must be > 0, got {v}.")
        return v

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"rating must be >= 0, got {v}.")
        return v

    @field_validator("sold_count", "stock")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Counts must be >= 0, got {v}.")
        return v

    @property
    def in_stock(self) -> bool:
        return self.stock > 0
