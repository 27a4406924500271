"""
Repository for the catalog read model.

The storefront owns product lifecycle; this table mirrors the fields the
ranking pipeline reads.  ``fetch_candidates`` is the single logical read a
ranking call issues.

``decrement_stock`` is the sale-side write the storefront must use: it is one
conditional UPDATE, so concurrent sales can never drive ``stock`` negative.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Optional

from fengshui_engine.db.repositories.base import BaseRepository
from fengshui_engine.models.catalog import CatalogItem

logger = logging.getLogger(__name__)


class CatalogRepository(BaseRepository):
    """Read/write access to the ``catalog_items`` table."""

    def upsert(self, item: CatalogItem) -> None:
        """Insert or replace an item by ``item_id``."""
        self.execute(
            """
            INSERT INTO catalog_items (
                item_id, name, category, colors, elements,
                price, rating, sold_count, stock, is_active
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(item_id) DO UPDATE SET
                name       = excluded.name,
                category   = excluded.category,
                colors     = excluded.colors,
                elements   = excluded.elements,
                price      = excluded.price,
                rating     = excluded.rating,
                sold_count = excluded.sold_count,
                stock      = excluded.stock,
                is_active  = excluded.is_active,
                updated_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now');
            """,
            (
                item.item_id,
                item.name,
                item.category,
                json.dumps(item.colors, ensure_ascii=False),
                json.dumps([e.value for e in item.elements]),
                item.price,
                item.rating,
                item.sold_count,
                item.stock,
                int(item.is_active),
            ),
        )

    def get_by_id(self, item_id: str) -> Optional[CatalogItem]:
        row = self.fetchone("SELECT * FROM catalog_items WHERE item_id = ?;", (item_id,))
        return _row_to_item(row) if row else None

    def fetch_candidates(self, category: Optional[str] = None) -> list[CatalogItem]:
        """Active, in-stock items, optionally restricted to one category.

        Args:
            category: Exact category label to match, or ``None`` for all.

        Returns:
            Candidate items ordered by ``item_id``.
        """
        sql = "SELECT * FROM catalog_items WHERE is_active = 1 AND stock > 0"
        params: tuple = ()
        if category is not None:
            sql += " AND category = ?"
            params = (category,)
        rows = self.fetchall(sql + " ORDER BY item_id;", params)
        return [_row_to_item(r) for r in rows]

    def decrement_stock(self, item_id: str, quantity: int) -> bool:
        """Atomically take ``quantity`` units from stock and record the sale.

        Returns:
            ``True`` if the sale was applied; ``False`` if the item does not
            exist or has fewer than ``quantity`` units on hand.
        """
        if quantity <= 0:
            raise ValueError(f"quantity must be > 0, got {quantity}.")
        cursor = self.execute(
            """
            UPDATE catalog_items
               SET stock      = stock - ?,
                   sold_count = sold_count + ?,
                   updated_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now')
             WHERE item_id = ? AND stock >= ?;
            """,
            (quantity, quantity, item_id, quantity),
        )
        applied = cursor.rowcount > 0
        if not applied:
            logger.info("Stock decrement refused for %s (qty=%d).", item_id, quantity)
        return applied

    def count(self) -> int:
        row = self.fetchone("SELECT COUNT(*) AS n FROM catalog_items;")
        assert row is not None
        return int(row["n"])


def _row_to_item(row: sqlite3.Row) -> CatalogItem:
    """Convert a ``catalog_items`` row to a ``CatalogItem``."""
    return CatalogItem(
        item_id=row["item_id"],
        name=row["name"],
        category=row["category"],
        colors=json.loads(row["colors"]),
        elements=json.loads(row["elements"]),
        price=row["price"],
        rating=row["rating"],
        sold_count=row["sold_count"],
        stock=row["stock"],
        is_active=bool(row["is_active"]),
    )
