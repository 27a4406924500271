"""
Tests for fengshui_engine.ingestion.catalog_json — catalog JSON import.

Covers:
  - parse_catalog_json(): valid file, Vietnamese element names, invalid JSON,
    non-array, invalid entries, duplicate ids, error list truncation,
    missing file
  - import_catalog_file(): upserts every item, nothing written on failure
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from fengshui_engine.db.repositories.catalog_repo import CatalogRepository
from fengshui_engine.errors import ValidationError
from fengshui_engine.ingestion.catalog_json import import_catalog_file, parse_catalog_json
from fengshui_engine.taxonomy.element_taxonomy import Element


# ── Helpers ────────────────────────────────────────────────────────────────────

def _write_json(tmp_path: Path, payload) -> Path:
    p = tmp_path / "catalog.json"
    p.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return p


VALID_ITEM = {
    "item_id": "bracelet-001",
    "name": "Citrine bracelet",
    "category": "bracelet",
    "colors": ["yellow"],
    "elements": ["Metal"],
    "price": 450000,
    "rating": 4.5,
    "sold_count": 200,
    "stock": 12,
}


# ── parse_catalog_json ─────────────────────────────────────────────────────────

class TestParseCatalogJson:
    def test_valid_file(self, tmp_path):
        items = parse_catalog_json(_write_json(tmp_path, [VALID_ITEM]))
        assert len(items) == 1
        assert items[0].item_id == "bracelet-001"
        assert items[0].elements == [Element.METAL]
        assert items[0].is_active is True

    def test_vietnamese_elements(self, tmp_path):
        item = {**VALID_ITEM, "elements": ["Thổ", "Hỏa"]}
        items = parse_catalog_json(_write_json(tmp_path, [item]))
        assert items[0].elements == [Element.EARTH, Element.FIRE]

    def test_empty_array(self, tmp_path):
        assert parse_catalog_json(_write_json(tmp_path, [])) == []

    def test_invalid_json(self, tmp_path):
        p = tmp_path / "catalog.json"
        p.write_text("[{", encoding="utf-8")
        with pytest.raises(ValidationError, match="not valid JSON"):
            parse_catalog_json(p)

    def test_non_array(self, tmp_path):
        with pytest.raises(ValidationError, match="JSON array"):
            parse_catalog_json(_write_json(tmp_path, VALID_ITEM))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_catalog_json(tmp_path / "nope.json")

    def test_reports_every_bad_entry(self, tmp_path):
        payload = [
            {**VALID_ITEM, "item_id": "a", "price": 0},
            "not-an-object",
            {**VALID_ITEM, "item_id": "c", "elements": ["Plasma"]},
            {**VALID_ITEM, "item_id": "d", "elements": []},
        ]
        with pytest.raises(ValidationError) as exc_info:
            parse_catalog_json(_write_json(tmp_path, payload))
        errors = exc_info.value.errors
        assert len(errors) == 4
        assert errors[0].startswith("item #0 (a)")
        assert errors[1].startswith("item #1: expected an object")

    def test_duplicate_item_id(self, tmp_path):
        with pytest.raises(ValidationError, match="duplicate item_id"):
            parse_catalog_json(_write_json(tmp_path, [VALID_ITEM, VALID_ITEM]))

    def test_error_list_truncated(self, tmp_path):
        payload = [{**VALID_ITEM, "item_id": f"x{i}", "stock": -1} for i in range(13)]
        with pytest.raises(ValidationError) as exc_info:
            parse_catalog_json(_write_json(tmp_path, payload))
        errors = exc_info.value.errors
        assert len(errors) == 11
        assert errors[-1] == "... and 3 more."


# ── import_catalog_file ────────────────────────────────────────────────────────

class TestImportCatalogFile:
    def test_upserts_items(self, in_memory_db, tmp_path):
        payload = [VALID_ITEM, {**VALID_ITEM, "item_id": "ring-001", "category": "ring"}]
        count = import_catalog_file(in_memory_db, _write_json(tmp_path, payload))
        assert count == 2
        repo = CatalogRepository(in_memory_db)
        assert repo.count() == 2
        assert repo.get_by_id("ring-001").category == "ring"

    def test_reimport_updates(self, in_memory_db, tmp_path):
        import_catalog_file(in_memory_db, _write_json(tmp_path, [VALID_ITEM]))
        import_catalog_file(in_memory_db, _write_json(tmp_path, [{**VALID_ITEM, "stock": 3}]))
        repo = CatalogRepository(in_memory_db)
        assert repo.count() == 1
        assert repo.get_by_id("bracelet-001").stock == 3

    def test_invalid_file_writes_nothing(self, in_memory_db, tmp_path):
        payload = [VALID_ITEM, {**VALID_ITEM, "item_id": "bad", "rating": -1}]
        with pytest.raises(ValidationError):
            import_catalog_file(in_memory_db, _write_json(tmp_path, payload))
        assert CatalogRepository(in_memory_db).count() == 0
