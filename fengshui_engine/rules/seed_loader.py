"""
Default rule loader: JSON → SQLite → Parquet.

Responsibilities
----------------
1. Load ``config/rules/default_rules.json`` — the single source of the five
   canonical rule records — and validate it as a whole.
2. Insert the records into ``element_rules`` when the table is empty.
3. Export the active rule table to ``element_rules.parquet`` for offline
   analysis.

Validation rules
----------------
- The file is a JSON array; entries without an ``element`` key are treated as
  comments and skipped.
- Every entry passes ``collect_rule_errors`` (errors are prefixed with the
  entry index).
- Each of the five elements appears exactly once.

Seeding is idempotent: if any rule row exists — active or soft-deleted — the
loader does nothing.  A deleted rule is an operator decision and is not
silently resurrected.

Usage
-----
    from fengshui_engine.rules.seed_loader import seed_defaults

    result = seed_defaults(store, Path("config/rules/default_rules.json"))
    result.count   # 5 on first run, 0 afterwards
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from fengshui_engine.db.repositories.rule_repo import RuleRepository
from fengshui_engine.errors import ValidationError
from fengshui_engine.models.rule import RuleRecord
from fengshui_engine.rules.store import CompatibilityRuleStore
from fengshui_engine.rules.validation import collect_rule_errors
from fengshui_engine.taxonomy.element_taxonomy import Element, RuleStatus

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedResult:
    """Outcome of ``seed_defaults``.

    Attributes:
        count:   Number of rule records inserted (0 when skipped).
        skipped: ``True`` if the table already held rules.
    """

    count: int
    skipped: bool


# ── Parquet schema ─────────────────────────────────────────────────────────────

_RULES_PA_SCHEMA = pa.schema([
    pa.field("element",               pa.string(),               nullable=False),
    pa.field("source_name",           pa.string(),               nullable=False),
    pa.field("birth_years",           pa.list_(pa.int32()),      nullable=False),
    pa.field("compatible_colors",     pa.list_(pa.string()),     nullable=False),
    pa.field("beneficial_colors",     pa.list_(pa.string()),     nullable=False),
    pa.field("avoid_colors",          pa.list_(pa.string()),     nullable=False),
    pa.field("lucky_directions",      pa.list_(pa.string()),     nullable=False),
    pa.field("lucky_numbers",         pa.list_(pa.int32()),      nullable=False),
    pa.field("compatible_elements",   pa.list_(pa.string()),     nullable=False),
    pa.field("supporting_elements",   pa.list_(pa.string()),     nullable=False),
    pa.field("supported_by_elements", pa.list_(pa.string()),     nullable=False),
    pa.field("conflicting_elements",  pa.list_(pa.string()),     nullable=False),
    pa.field("updated_at",            pa.timestamp("us", tz="UTC"), nullable=True),
])


# ── Loading & validation ──────────────────────────────────────────────────────

def load_rule_file(path: Path) -> list[dict[str, Any]]:
    """Read and validate the default rules file.

    Args:
        path: JSON file holding an array of rule objects.

    Returns:
        The rule entries (comment entries removed).

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValidationError: Listing every problem found in the file.
    """
    log.info("Loading default rules from %s", path)
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValidationError(f"{path} must contain a JSON array of rule objects.")

    records = [r for r in raw if isinstance(r, dict) and "element" in r]
    errors: list[str] = []
    for i, rec in enumerate(records):
        errors.extend(f"rule #{i} ({rec.get('element')}): {e}" for e in collect_rule_errors(rec))

    parsed = Counter()
    for rec in records:
        try:
            parsed[Element.parse(rec["element"])] += 1
        except ValidationError:
            continue  # already reported above
    duplicates = sorted(e.value for e, n in parsed.items() if n > 1)
    missing = sorted(e.value for e in Element if e not in parsed)
    if duplicates:
        errors.append(f"Elements defined more than once: {duplicates}.")
    if missing:
        errors.append(f"Elements missing from the rule file: {missing}.")

    if errors:
        raise ValidationError(errors)
    return records


def seed_defaults(store: CompatibilityRuleStore, path: Path) -> SeedResult:
    """Insert the five canonical rules if the rule table is empty.

    All five inserts happen in one transaction: either every record lands or
    none does.

    Args:
        store: Rule store bound to the target connection.
        path:  Default rules JSON file.

    Returns:
        ``SeedResult`` with the number of records inserted.
    """
    existing = store.count(include_deleted=True)
    if existing > 0:
        log.info("Element rules already exist (%d rows), skipping seed.", existing)
        return SeedResult(count=0, skipped=True)

    records = load_rule_file(path)
    now = store.clock()
    try:
        for rec in records:
            store.repo.insert(
                RuleRecord(**rec, status=RuleStatus.ACTIVE, created_at=now, updated_at=now)
            )
    except Exception:
        store.conn.rollback()
        raise
    store.conn.commit()

    log.info("Seeded %d default element rules.", len(records))
    return SeedResult(count=len(records), skipped=False)


# ── Parquet export ────────────────────────────────────────────────────────────

def export_rules_parquet(conn: sqlite3.Connection, output_dir: Path) -> Path:
    """Export active rules to ``element_rules.parquet`` with a fixed schema."""
    rules = RuleRepository(conn).list_active()

    def column(getter) -> list:
        return [getter(r) for r in rules]

    table = pa.table(
        {
            "element":               column(lambda r: r.element.value),
            "source_name":           column(lambda r: r.element.source_name),
            "birth_years":           column(lambda r: sorted(r.birth_years)),
            "compatible_colors":     column(lambda r: r.compatible_colors),
            "beneficial_colors":     column(lambda r: r.beneficial_colors),
            "avoid_colors":          column(lambda r: r.avoid_colors),
            "lucky_directions":      column(lambda r: r.lucky_directions),
            "lucky_numbers":         column(lambda r: r.lucky_numbers),
            "compatible_elements":   column(lambda r: sorted(e.value for e in r.compatible_elements)),
            "supporting_elements":   column(lambda r: sorted(e.value for e in r.supporting_elements)),
            "supported_by_elements": column(lambda r: sorted(e.value for e in r.supported_by_elements)),
            "conflicting_elements":  column(lambda r: sorted(e.value for e in r.conflicting_elements)),
            "updated_at":            column(lambda r: r.updated_at),
        },
        schema=_RULES_PA_SCHEMA,
    )

    output_dir.mkdir(parents=True, exist_ok=True)
    out_path = output_dir / "element_rules.parquet"
    pq.write_table(table, out_path, compression="snappy")
    log.info("Exported %d element rules to %s", len(rules), out_path)
    return out_path
