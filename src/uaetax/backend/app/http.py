"""RFC 7807-style problem payloads returned by the HTTP surface."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Mapping

from flask import jsonify

from .models import ValidationIssue


@dataclass(frozen=True)
class ProblemResponse:
    """Error code, HTTP status and optional detail for a failed request."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.message:
            payload["message"] = self.message
        if self.extra:
            payload.update(self.extra)
        return payload

    def to_response(self) -> tuple[Any, int]:
        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    """Build a ``ProblemResponse``; keyword extras are merged into the payload."""

    additional: Mapping[str, Any] | None = extra or None
    return ProblemResponse(error=error, status=status, message=message, extra=additional)


def validation_problem(
    issues: Iterable[ValidationIssue], message: str | None = None
) -> ProblemResponse:
    """Return a 422 problem listing every ``ValidationIssue`` verbatim."""

    return problem_response(
        "validation_failed",
        status=422,
        message=message or "Request failed business-rule validation",
        issues=[issue.model_dump(mode="json") for issue in issues],
    )


__all__ = ["ProblemResponse", "problem_response", "validation_problem"]
