"""
Compatibility rule store: validated CRUD over the element rule table.

``CompatibilityRuleStore`` is the only writer of ``element_rules``.  It adds
to the raw repository:

  - collect-all validation (``ValidationError`` lists every violation);
  - ``NotFoundError`` instead of ``None`` for lookups that must succeed;
  - timestamp stamping and the soft-delete lifecycle.

Concurrency
-----------
Uniqueness of the active rule per element is enforced by the database's
partial UNIQUE index, so the pre-insert existence check here is only a fast
path for a friendlier error; a racing insert still fails inside
``RuleRepository.insert`` with ``DuplicateRuleError``.  Updates and deletes
are single conditional UPDATE statements keyed on the active element row.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from fengshui_engine.db.repositories.rule_repo import RuleRepository
from fengshui_engine.elements.classifier import validate_birth_year
from fengshui_engine.errors import DuplicateRuleError, NotFoundError, ValidationError
from fengshui_engine.models.rule import RuleRecord
from fengshui_engine.rules.validation import (
    ALLOWED_FIELDS,
    EDITABLE_FIELDS,
    validate_rule_data,
)
from fengshui_engine.taxonomy.element_taxonomy import Element, RuleStatus

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class DeleteAck:
    """Acknowledgement of a soft delete."""

    element: Element
    deleted_at: datetime


class CompatibilityRuleStore:
    """Validated create/read/update/soft-delete of element rule records.

    Args:
        conn:  Open SQLite connection with the schema applied.
        clock: Source of "now" for timestamps; UTC wall clock by default.
    """

    def __init__(self, conn: sqlite3.Connection, clock: Clock = _utcnow) -> None:
        self.conn = conn
        self.repo = RuleRepository(conn)
        self.clock = clock

    # ── Writes ────────────────────────────────────────────────────────────────

    def create(self, data: Mapping[str, Any]) -> RuleRecord:
        """Validate and insert a new active rule record.

        Args:
            data: Rule fields keyed by ``RuleRecord`` attribute name.

        Returns:
            The stored record, with ``rule_id`` and timestamps populated.

        Raises:
            ValidationError: Listing every violated field constraint.
            DuplicateRuleError: If the element already has an active rule.
        """
        validate_rule_data(data)
        element = Element.parse(data["element"])

        if self.repo.get_active_by_element(element) is not None:
            raise DuplicateRuleError(element.value)

        now = self.clock()
        record = RuleRecord(
            **{**dict(data), "element": element},
            status=RuleStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        rule_id = self.repo.insert(record)
        self.conn.commit()
        logger.info("Created rule for %s (rule_id=%d).", element.value, rule_id)
        return record.model_copy(update={"rule_id": rule_id})

    def update(self, element: Element | str, patch: Mapping[str, Any]) -> RuleRecord:
        """Merge ``patch`` into the active rule for ``element``.

        The merged record is re-validated as a whole.  ``element``, ``status``,
        ``rule_id`` and timestamps cannot be changed through a patch.

        Raises:
            ValidationError: Bad patch keys or an invalid merged record.
            NotFoundError: If ``element`` has no active rule.
        """
        element = Element.parse(element)
        locked = sorted(set(patch) - EDITABLE_FIELDS)
        if locked:
            raise ValidationError(f"Fields cannot be updated: {locked}.")

        current = self.get_by_element(element)
        merged: dict[str, Any] = {
            **current.model_dump(include=set(ALLOWED_FIELDS)),
            **dict(patch),
        }
        validate_rule_data(merged)

        updated = RuleRecord(
            **merged,
            rule_id=current.rule_id,
            status=current.status,
            created_at=current.created_at,
            updated_at=self.clock(),
        )
        if not self.repo.replace_active(updated):
            raise NotFoundError(f"No active rule for element '{element.value}'.")
        self.conn.commit()
        logger.info("Updated rule for %s: %s.", element.value, sorted(patch))
        return updated

    def soft_delete(self, element: Element | str) -> DeleteAck:
        """Mark the active rule for ``element`` as deleted.

        Raises:
            NotFoundError: If ``element`` has no active rule.
        """
        element = Element.parse(element)
        now = self.clock()
        if not self.repo.mark_deleted(element, now):
            raise NotFoundError(f"No active rule for element '{element.value}'.")
        self.conn.commit()
        logger.info("Soft-deleted rule for %s.", element.value)
        return DeleteAck(element=element, deleted_at=now)

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get_by_element(self, element: Element | str) -> RuleRecord:
        """Return the active rule for ``element``.

        Raises:
            ValidationError: If ``element`` is not a valid element name.
            NotFoundError: If there is no active rule for it.
        """
        element = Element.parse(element)
        rule = self.repo.get_active_by_element(element)
        if rule is None:
            raise NotFoundError(f"No active rule for element '{element.value}'.")
        return rule

    def get_by_birth_year(self, birth_year: int) -> RuleRecord:
        """Return the active rule whose reference birth-year list contains the year.

        This consults the stored enumeration only; it never runs the
        classifier.  Callers that need a result for every year fall back to
        ``classify()`` + ``get_by_element()`` themselves.

        Raises:
            ValidationError: If ``birth_year`` is outside 1900–2100.
            NotFoundError: If no active rule lists ``birth_year``.
        """
        validate_birth_year(birth_year)
        rule = self.repo.get_active_by_birth_year(birth_year)
        if rule is None:
            raise NotFoundError(f"No active rule lists birth year {birth_year}.")
        return rule

    def list_active(self) -> list[RuleRecord]:
        """Active rules ordered by canonical element name."""
        return self.repo.list_active()

    def list_all(self, include_deleted: bool = True) -> list[RuleRecord]:
        if not include_deleted:
            return self.repo.list_active()
        return self.repo.list_all()

    def count(self, include_deleted: bool = True) -> int:
        return self.repo.count(include_deleted=include_deleted)
