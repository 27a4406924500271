"""
Engine exception taxonomy.

Every error the engine raises to its callers is one of these four types.
They are surfaced unchanged; the CLI (or any HTTP layer on top) maps them to
user-facing messages and exit codes.

  ``ValidationError``     — input outside declared constraints.  Carries the
                            complete list of violations, not just the first.
  ``NotFoundError``       — lookup by element / id / year matched no active record.
  ``DuplicateRuleError``  — a second active rule for an element was attempted.
  ``DataIntegrityError``  — an internal invariant is broken (e.g. the classifier
                            resolved an element that has no active rule).

This module has NO imports from any other ``fengshui_engine`` package.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all errors raised by the five-element engine."""


class ValidationError(EngineError, ValueError):
    """Raised when input violates one or more declared constraints.

    Attributes:
        errors: Every violated constraint, in the order they were checked.
    """

    def __init__(self, errors: list[str] | str) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors: list[str] = list(errors)
        super().__init__("Validation failed: " + "; ".join(self.errors))


class NotFoundError(EngineError, LookupError):
    """Raised when no active record matches a lookup."""


class DuplicateRuleError(EngineError):
    """Raised when an active rule already exists for the element being created.

    Attributes:
        element: Canonical name of the element that already has an active rule.
    """

    def __init__(self, element: str) -> None:
        self.element = element
        super().__init__(f"An active rule for element '{element}' already exists.")


class DataIntegrityError(EngineError):
    """Raised when stored reference data contradicts an engine invariant."""
