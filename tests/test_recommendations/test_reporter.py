"""Tests for ranking CSV/JSON report writers."""

from __future__ import annotations

import csv
import json
from datetime import date

import pytest

from fengshui_engine.recommendations.ranker import RankedItem, RankedResult
from fengshui_engine.recommendations.reporter import write_ranking_csv, write_ranking_json
from fengshui_engine.recommendations.scorer import ScoreComponents
from fengshui_engine.taxonomy.element_taxonomy import Element

_RUN_DATE = date(2024, 9, 15)


@pytest.fixture
def result(make_item) -> RankedResult:
    items = [
        RankedItem(
            item=make_item("a", name="Vòng tay", colors=["green", "red"], elements=["Fire", "Wood"]),
            components=ScoreComponents(30.0, 15.0, 10.0, 4.5, 2.0),
        ),
        RankedItem(
            item=make_item("b", category=None, colors=["azure"]),
            components=ScoreComponents(30.0, 0.0, 0.0, 1.0, 0.0),
        ),
    ]
    return RankedResult(
        birth_year=1986,
        element=Element.FIRE,
        compatible_colors=["green"],
        beneficial_colors=["green", "azure"],
        avoid_colors=["black"],
        items=items,
    )


class TestWriteRankingCsv:
    def test_writes_rows(self, result, tmp_path):
        path = write_ranking_csv(result, tmp_path / "out", run_date=_RUN_DATE)
        assert path.name == "ranking_1986_2024-09-15.csv"

        with path.open(encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert [r["rank"] for r in rows] == ["1", "2"]
        assert rows[0]["name"] == "Vòng tay"
        assert rows[0]["colors"] == "green|red"
        assert rows[0]["elements"] == "Fire|Wood"
        assert float(rows[0]["score"]) == pytest.approx(61.5)
        assert rows[1]["category"] == ""

    def test_empty_result_writes_header(self, result, tmp_path):
        empty = RankedResult(**{**result.__dict__, "items": []})
        path = write_ranking_csv(empty, tmp_path, run_date=_RUN_DATE)
        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        assert lines[0].startswith("rank,item_id")


class TestWriteRankingJson:
    def test_payload(self, result, tmp_path):
        path = write_ranking_json(result, tmp_path, run_date=_RUN_DATE)
        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["element"] == "Fire"
        assert payload["generated_at"] == "2024-09-15"
        assert payload["beneficial_colors"] == ["green", "azure"]
        first = payload["items"][0]
        assert first["rank"] == 1
        assert first["components"]["popularity"] == 2.0
        assert payload["items"][1]["category"] is None

    def test_keeps_non_ascii(self, result, tmp_path):
        path = write_ranking_json(result, tmp_path, run_date=_RUN_DATE)
        assert "Vòng tay" in path.read_text(encoding="utf-8")
