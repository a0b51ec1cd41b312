"""Pydantic models describing the public API surface."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from .invoice import InvoiceRequest
from .tax import TaxableIncomeInput

__all__ = [
    "CitCalculationRequest",
    "DocumentRequest",
    "DocumentVerificationRequest",
    "QrRenderRequest",
    "RateSelection",
    "VatCalculationRequest",
    "VatExtractionRequest",
    "VatRegistrationRequest",
    "format_validation_error",
]


class RateSelection(BaseModel):
    """Optional pointer to the rate table a request should be computed with."""

    model_config = ConfigDict(extra="forbid")

    version: str | None = None
    as_of: date | None = None

    @model_validator(mode="after")
    def _single_selector(self) -> "RateSelection":
        if self.version is not None and self.as_of is not None:
            raise ValueError("Provide either 'version' or 'as_of', not both")
        return self


class CitCalculationRequest(RateSelection):
    """Corporate tax request given either taxable income or accounting figures."""

    taxable_income: Decimal | None = None
    income: TaxableIncomeInput | None = None
    is_qfzp: bool = False
    is_small_business: bool = False

    @model_validator(mode="after")
    def _single_income_source(self) -> "CitCalculationRequest":
        if (self.taxable_income is None) == (self.income is None):
            raise ValueError("Provide exactly one of 'taxable_income' or 'income'")
        return self


class VatCalculationRequest(RateSelection):
    taxable_sales: Decimal = Decimal("0")
    exempt_sales: Decimal = Decimal("0")
    zero_rated_sales: Decimal = Decimal("0")
    taxable_purchases: Decimal = Decimal("0")
    exempt_purchases: Decimal = Decimal("0")


class VatRegistrationRequest(RateSelection):
    annual_taxable_supplies: Decimal


class VatExtractionRequest(RateSelection):
    """VAT-inclusive amount to split; the rate defaults to the standard rate."""

    gross_amount: Decimal
    vat_rate: Decimal | None = None


class DocumentRequest(BaseModel):
    """Invoice to finalise; the rate table defaults to the one in force on issue."""

    model_config = ConfigDict(extra="forbid")

    invoice: InvoiceRequest
    version: str | None = None


class DocumentVerificationRequest(DocumentRequest):
    """Previously issued artefacts to re-check against their invoice."""

    xml: str
    xml_hash: str
    qr_payload: str


class QrRenderRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    qr_payload: str


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid request payload: {details}"
