"""Typed request/response models shared across the engine and the HTTP layer.

Calculator inputs and results, invoice requests and built invoices, and the
compliance document artefacts are all frozen Pydantic records. Centralising
them here keeps validation, arithmetic invariants, and serialisation for the
routes in sync.
"""

from __future__ import annotations

from .api import (
    CitCalculationRequest,
    DocumentRequest,
    DocumentVerificationRequest,
    QrRenderRequest,
    RateSelection,
    VatCalculationRequest,
    VatExtractionRequest,
    VatRegistrationRequest,
    format_validation_error,
)
from .documents import (
    BuildFailure,
    ComplianceDocument,
    DocumentStage,
    QrField,
    QrTag,
    Severity,
    ValidationIssue,
    ValidationResult,
)
from .invoice import (
    Address,
    BillingReference,
    InvoiceLine,
    InvoiceLineRequest,
    InvoiceModel,
    InvoiceRequest,
    InvoiceTotals,
    InvoiceTypeCode,
    Party,
    VatBreakdownEntry,
    VatCategory,
)
from .tax import (
    CalculationStep,
    CitInput,
    CitResult,
    CitRule,
    TaxableIncomeInput,
    VatExtraction,
    VatLineInput,
    VatRegistrationAssessment,
    VatRegistrationStatus,
    VatResult,
)

__all__ = [
    "Address",
    "BillingReference",
    "BuildFailure",
    "CalculationStep",
    "CitCalculationRequest",
    "CitInput",
    "CitResult",
    "CitRule",
    "ComplianceDocument",
    "DocumentRequest",
    "DocumentStage",
    "DocumentVerificationRequest",
    "InvoiceLine",
    "InvoiceLineRequest",
    "InvoiceModel",
    "InvoiceRequest",
    "InvoiceTotals",
    "InvoiceTypeCode",
    "Party",
    "QrField",
    "QrRenderRequest",
    "QrTag",
    "RateSelection",
    "Severity",
    "TaxableIncomeInput",
    "ValidationIssue",
    "ValidationResult",
    "VatBreakdownEntry",
    "VatCalculationRequest",
    "VatCategory",
    "VatExtraction",
    "VatExtractionRequest",
    "VatLineInput",
    "VatRegistrationAssessment",
    "VatRegistrationRequest",
    "VatRegistrationStatus",
    "VatResult",
    "format_validation_error",
]
