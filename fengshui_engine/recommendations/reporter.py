"""
Ranking report writer: CSV and JSON output for a ``RankedResult``.

All functions are pure I/O — no DB access.

Output files (written by ``fengshui-engine rank --output-dir``)
----------------------------------------------------------------
  data/outputs/
    ranking_{birth_year}_{date}.csv   -- one row per ranked item
    ranking_{birth_year}_{date}.json  -- same data plus the element context
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from pathlib import Path

from fengshui_engine.recommendations.ranker import RankedResult

logger = logging.getLogger(__name__)

_CSV_FIELDS = [
    "rank", "item_id", "name", "category", "colors", "elements",
    "price", "rating", "sold_count", "score",
    "beneficial_term", "compatible_term", "element_term",
]


def write_ranking_csv(
    result: RankedResult,
    output_dir: Path,
    run_date: date | None = None,
) -> Path:
    """Write ranked items to a CSV file.

    List-valued columns (colours, elements) are joined with ``|``.

    Args:
        result:     Output of ``rank``.
        output_dir: Directory to write the file (created if missing).
        run_date:   Date label for the filename. Defaults to today.

    Returns:
        Path to the written CSV file.
    """
    if run_date is None:
        run_date = date.today()

    output_dir.mkdir(parents=True, exist_ok=True)
    csv_path = output_dir / f"ranking_{result.birth_year}_{run_date}.csv"

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_FIELDS)
        writer.writeheader()
        for position, ranked in enumerate(result.items, start=1):
            item = ranked.item
            writer.writerow(
                {
                    "rank":            position,
                    "item_id":         item.item_id,
                    "name":            item.name,
                    "category":        item.category or "",
                    "colors":          "|".join(item.colors),
                    "elements":        "|".join(e.value for e in item.elements),
                    "price":           item.price,
                    "rating":          item.rating,
                    "sold_count":      item.sold_count,
                    "score":           ranked.score,
                    "beneficial_term": ranked.components.beneficial_term,
                    "compatible_term": ranked.components.compatible_term,
                    "element_term":    ranked.components.element_term,
                }
            )

    logger.info("Ranking CSV written: %s (%d rows)", csv_path, len(result.items))
    return csv_path


def write_ranking_json(
    result: RankedResult,
    output_dir: Path,
    run_date: date | None = None,
) -> Path:
    """Write the ranking with its element context to a JSON file."""
    if run_date is None:
        run_date = date.today()

    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / f"ranking_{result.birth_year}_{run_date}.json"

    payload: dict = {
        "birth_year":        result.birth_year,
        "element":           result.element.value,
        "generated_at":      run_date.isoformat(),
        "compatible_colors": result.compatible_colors,
        "beneficial_colors": result.beneficial_colors,
        "avoid_colors":      result.avoid_colors,
        "items": [
            {
                "rank":       position,
                "item_id":    ranked.item.item_id,
                "name":       ranked.item.name,
                "category":   ranked.item.category,
                "colors":     ranked.item.colors,
                "elements":   [e.value for e in ranked.item.elements],
                "price":      ranked.item.price,
                "rating":     ranked.item.rating,
                "sold_count": ranked.item.sold_count,
                "score":      ranked.score,
                "components": {
                    "beneficial": ranked.components.beneficial_term,
                    "compatible": ranked.components.compatible_term,
                    "element":    ranked.components.element_term,
                    "rating":     ranked.components.rating_term,
                    "popularity": ranked.components.popularity_term,
                },
            }
            for position, ranked in enumerate(result.items, start=1)
        ],
    }

    json_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Ranking JSON written: %s", json_path)
    return json_path
