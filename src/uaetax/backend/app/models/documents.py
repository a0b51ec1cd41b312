"""Compliance document artefacts and validation results."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict

from .invoice import InvoiceModel


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(_Record):
    field: str
    message: str
    severity: Severity = Severity.ERROR


class ValidationResult(_Record):
    issues: tuple[ValidationIssue, ...] = ()

    @property
    def errors(self) -> tuple[ValidationIssue, ...]:
        return tuple(issue for issue in self.issues if issue.severity is Severity.ERROR)

    @property
    def warnings(self) -> tuple[ValidationIssue, ...]:
        return tuple(issue for issue in self.issues if issue.severity is Severity.WARNING)

    @property
    def valid(self) -> bool:
        return not self.errors


class DocumentStage(str, Enum):
    """Lifecycle of a compliance document; stages only move forwards."""

    DRAFT = "draft"
    BUILT = "built"
    SERIALIZED = "serialized"
    HASHED = "hashed"
    ENCODED = "encoded"
    VALID = "valid"
    INVALID = "invalid"


class QrTag(IntEnum):
    SELLER_NAME = 1
    SELLER_TRN = 2
    TIMESTAMP = 3
    INVOICE_TOTAL = 4
    VAT_TOTAL = 5
    XML_HASH = 6


class QrField(NamedTuple):
    tag: int
    value: bytes


class BuildFailure(_Record):
    """Returned instead of a model when a request cannot be built."""

    issues: tuple[ValidationIssue, ...]
    stage: DocumentStage = DocumentStage.DRAFT


class ComplianceDocument(_Record):
    """The XML, hash and QR payload produced for one finalised invoice."""

    invoice: InvoiceModel
    xml: bytes
    xml_hash: str
    qr_payload: str
    valid: bool
    issues: tuple[ValidationIssue, ...] = ()
    stage: DocumentStage


__all__ = [
    "BuildFailure",
    "ComplianceDocument",
    "DocumentStage",
    "QrField",
    "QrTag",
    "Severity",
    "ValidationIssue",
    "ValidationResult",
]
