"""
Repository for element rule records — insert, fetch, update and soft-delete.

Only this module knows how a ``RuleRecord`` maps onto the ``element_rules``
table.  Business validation happens upstream in ``rules.store``; this layer
translates the one database-level invariant it owns (a single active rule per
element) into ``DuplicateRuleError``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from fengshui_engine.db.repositories.base import BaseRepository
from fengshui_engine.errors import DataIntegrityError, DuplicateRuleError
from fengshui_engine.models.rule import LIST_FIELDS, RELATION_FIELDS, RuleRecord
from fengshui_engine.taxonomy.element_taxonomy import Element, RuleStatus

logger = logging.getLogger(__name__)

_JSON_COLUMNS: tuple[str, ...] = ("birth_years", *LIST_FIELDS, "characteristics")

# Unordered in the model; stored sorted so rows are stable across writes.
_SET_COLUMNS: frozenset[str] = frozenset({"birth_years", *RELATION_FIELDS.values()})

_INSERT_COLUMNS: tuple[str, ...] = (
    "element", *_JSON_COLUMNS, "status", "created_at", "updated_at", "deleted_at",
)


class RuleRepository(BaseRepository):
    """Read/write access to the ``element_rules`` table."""

    def insert(self, rule: RuleRecord) -> int:
        """Insert a rule record and return its ``rule_id``.

        Raises:
            DuplicateRuleError: If the record is active and another active
                record for the same element already exists.
        """
        values = _rule_to_params(rule)
        placeholders = ", ".join("?" for _ in _INSERT_COLUMNS)
        try:
            self.execute(
                f"INSERT INTO element_rules ({', '.join(_INSERT_COLUMNS)}) "
                f"VALUES ({placeholders});",
                tuple(values[c] for c in _INSERT_COLUMNS),
            )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" in str(exc).upper():
                raise DuplicateRuleError(rule.element.value) from exc
            raise
        return self.last_insert_rowid()

    def get_active_by_element(self, element: Element) -> Optional[RuleRecord]:
        row = self.fetchone(
            "SELECT * FROM element_rules WHERE element = ? AND status = 'active';",
            (element.value,),
        )
        return _row_to_rule(row) if row else None

    def get_active_by_birth_year(self, birth_year: int) -> Optional[RuleRecord]:
        """Fetch the active rule whose ``birth_years`` array contains ``birth_year``.

        If several active rules list the same year, the first by element name
        wins so the answer is deterministic.
        """
        row = self.fetchone(
            """
            SELECT r.* FROM element_rules r
            WHERE r.status = 'active'
              AND EXISTS (
                  SELECT 1 FROM json_each(r.birth_years) AS y WHERE y.value = ?
              )
            ORDER BY r.element
            LIMIT 1;
            """,
            (birth_year,),
        )
        return _row_to_rule(row) if row else None

    def list_active(self) -> list[RuleRecord]:
        """All active rules ordered by canonical element name."""
        rows = self.fetchall(
            "SELECT * FROM element_rules WHERE status = 'active' ORDER BY element;"
        )
        return [_row_to_rule(r) for r in rows]

    def list_all(self) -> list[RuleRecord]:
        """Every rule row, deleted ones included, ordered by element then age."""
        rows = self.fetchall("SELECT * FROM element_rules ORDER BY element, rule_id;")
        return [_row_to_rule(r) for r in rows]

    def replace_active(self, rule: RuleRecord) -> bool:
        """Overwrite the attribute columns of the active row for ``rule.element``.

        Returns:
            ``False`` if no active row exists (e.g. deleted concurrently).
        """
        values = _rule_to_params(rule)
        assignments = ", ".join(f"{c} = ?" for c in (*_JSON_COLUMNS, "updated_at"))
        cursor = self.execute(
            f"UPDATE element_rules SET {assignments} "
            "WHERE element = ? AND status = 'active';",
            (
                *(values[c] for c in _JSON_COLUMNS),
                values["updated_at"],
                rule.element.value,
            ),
        )
        return cursor.rowcount > 0

    def mark_deleted(self, element: Element, at: datetime) -> bool:
        """Move the active rule for ``element`` to the deleted state.

        Returns:
            ``False`` if there was no active row to delete.
        """
        stamp = at.isoformat()
        cursor = self.execute(
            """
            UPDATE element_rules
               SET status = 'deleted', deleted_at = ?, updated_at = ?
             WHERE element = ? AND status = 'active';
            """,
            (stamp, stamp, element.value),
        )
        return cursor.rowcount > 0

    def count(self, include_deleted: bool = True) -> int:
        sql = "SELECT COUNT(*) AS n FROM element_rules"
        if not include_deleted:
            sql += " WHERE status = 'active'"
        row = self.fetchone(sql + ";")
        assert row is not None
        return int(row["n"])


# ── Private helpers ───────────────────────────────────────────────────────────

def _rule_to_params(rule: RuleRecord) -> dict[str, Any]:
    """Flatten a ``RuleRecord`` to column → SQLite value."""
    dumped = rule.model_dump(mode="json")
    params: dict[str, Any] = {
        "element": rule.element.value,
        "status": rule.status.value,
        "created_at": rule.created_at.isoformat() if rule.created_at else None,
        "updated_at": rule.updated_at.isoformat() if rule.updated_at else None,
        "deleted_at": rule.deleted_at.isoformat() if rule.deleted_at else None,
    }
    for column in _JSON_COLUMNS:
        value = dumped[column]
        if column in _SET_COLUMNS:
            value = sorted(value)
        params[column] = json.dumps(value, ensure_ascii=False)
    return params


def _row_to_rule(row: sqlite3.Row) -> RuleRecord:
    """Convert an ``element_rules`` row to a ``RuleRecord``.

    Raises:
        DataIntegrityError: If a stored row no longer decodes to a valid record.
    """
    try:
        data: dict[str, Any] = {c: json.loads(row[c]) for c in _JSON_COLUMNS}
        return RuleRecord(
            rule_id=row["rule_id"],
            element=row["element"],
            status=RuleStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            deleted_at=(
                datetime.fromisoformat(row["deleted_at"]) if row["deleted_at"] else None
            ),
            **data,
        )
    except (json.JSONDecodeError, PydanticValidationError, ValueError) as exc:
        logger.error("Corrupt element_rules row rule_id=%s: %s", row["rule_id"], exc)
        raise DataIntegrityError(
            f"element_rules row {row['rule_id']} cannot be decoded: {exc}"
        ) from exc
