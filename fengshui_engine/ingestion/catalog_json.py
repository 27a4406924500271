"""
JSON import for the catalog read model.

Format — a JSON array of objects with the ``CatalogItem`` fields::

    [
      {"item_id": "bracelet-001", "name": "Citrine bracelet",
       "category": "bracelet", "colors": ["yellow"], "elements": ["Metal"],
       "price": 450000, "rating": 4.5, "sold_count": 200, "stock": 12}
    ]

``elements`` accepts English or Vietnamese element names.  All entries are
validated before anything is written; one bad entry rejects the file.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from fengshui_engine.db.repositories.catalog_repo import CatalogRepository
from fengshui_engine.errors import ValidationError
from fengshui_engine.models.catalog import CatalogItem

logger = logging.getLogger(__name__)

_MAX_REPORTED_ERRORS = 10


def parse_catalog_json(path: Path) -> list[CatalogItem]:
    """Parse a catalog JSON file into validated ``CatalogItem`` objects.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValidationError: If the file is not an array or any entry is invalid
            (the first ten failures are listed).
    """
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    try:
        raw_items = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Catalog file is not valid JSON: {exc}") from exc

    if not isinstance(raw_items, list):
        raise ValidationError("Catalog file must contain a JSON array of items.")

    items: list[CatalogItem] = []
    errors: list[str] = []
    seen: set[str] = set()
    for i, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            errors.append(f"item #{i}: expected an object, got {type(raw).__name__}.")
            continue
        try:
            item = CatalogItem(**raw)
        except (PydanticValidationError, ValidationError) as exc:
            errors.append(f"item #{i} ({raw.get('item_id')}): {exc}")
            continue
        if item.item_id in seen:
            errors.append(f"item #{i}: duplicate item_id '{item.item_id}'.")
            continue
        seen.add(item.item_id)
        items.append(item)

    if errors:
        shown = errors[:_MAX_REPORTED_ERRORS]
        if len(errors) > _MAX_REPORTED_ERRORS:
            shown.append(f"... and {len(errors) - _MAX_REPORTED_ERRORS} more.")
        raise ValidationError(shown)

    logger.info("Parsed %d catalog item(s) from %s", len(items), path)
    return items


def import_catalog_file(conn: sqlite3.Connection, path: Path) -> int:
    """Validate ``path`` and upsert every item in one transaction.

    Returns:
        Number of items upserted.
    """
    items = parse_catalog_json(path)
    repo = CatalogRepository(conn)
    try:
        for item in items:
            repo.upsert(item)
    except Exception:
        conn.rollback()
        raise
    conn.commit()
    logger.info("Upserted %d catalog item(s).", len(items))
    return len(items)
