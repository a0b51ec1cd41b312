"""Exception taxonomy shared by the calculators and the document pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from uaetax.backend.config.schema import ConfigurationError

if TYPE_CHECKING:  # pragma: no cover - only for static type checkers
    from .models.documents import ValidationIssue


class InvalidInput(ValueError):
    """Raised for malformed or out-of-range request fields."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class EncodingError(ValueError):
    """Raised when a value cannot be represented in the target encoding."""


class ValidationFailure(ValueError):
    """Raised when business rules reject a request; carries every issue found."""

    def __init__(self, issues: Sequence[ValidationIssue]) -> None:
        self.issues = tuple(issues)
        summary = "; ".join(f"{issue.field}: {issue.message}" for issue in self.issues)
        super().__init__(summary or "Validation failed")


__all__ = [
    "ConfigurationError",
    "EncodingError",
    "InvalidInput",
    "ValidationFailure",
]
