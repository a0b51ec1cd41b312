"""Invoice request and canonical invoice models.

Requests are deliberately permissive about values (signs, TRN formats,
category codes) so that the builder can report every problem at once as
``ValidationIssue`` entries. Built models are frozen and check their own
arithmetic invariants on construction.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class VatCategory(str, Enum):
    """UN/ECE 5305 duty or tax category codes supported by the engine."""

    STANDARD = "S"
    ZERO_RATED = "Z"
    EXEMPT = "E"
    OUT_OF_SCOPE = "O"


class InvoiceTypeCode(str, Enum):
    """UN/ECE 1001 document type codes."""

    TAX_INVOICE = "388"
    CREDIT_NOTE = "381"


class Address(_Record):
    street: str = ""
    city: str = ""
    postal_code: str | None = None
    country: str = "AE"


class Party(_Record):
    name: str
    trn: str | None = None
    address: Address = Address()


class BillingReference(_Record):
    """Pointer from an amending document to the invoice it corrects."""

    invoice_number: str
    issue_date: date
    xml_hash: str


class InvoiceLineRequest(_Record):
    id: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    vat_category_code: str
    vat_rate: Decimal | None = None
    unit_code: str = "EA"


class InvoiceRequest(_Record):
    """Caller-supplied data for a single invoice to finalise."""

    invoice_number: str
    issue_date: date
    issue_time: time = time(0, 0, 0)
    due_date: date | None = None
    currency_code: str = "AED"
    supplier: Party
    customer: Party
    lines: tuple[InvoiceLineRequest, ...]
    b2c: bool = False
    note: str | None = None
    invoice_type_code: InvoiceTypeCode = InvoiceTypeCode.TAX_INVOICE
    billing_reference: BillingReference | None = None


class InvoiceLine(_Record):
    id: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    unit_code: str
    vat_category_code: VatCategory
    vat_rate: Decimal
    line_total: Decimal
    line_vat: Decimal


class VatBreakdownEntry(_Record):
    category_code: VatCategory
    rate: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    exemption_reason: str | None = None


class InvoiceTotals(_Record):
    line_extension: Decimal
    tax_exclusive: Decimal
    tax_inclusive: Decimal
    payable: Decimal


class InvoiceModel(_Record):
    """Canonical, validated representation of a finalised invoice."""

    invoice_number: str
    invoice_type_code: InvoiceTypeCode = InvoiceTypeCode.TAX_INVOICE
    issue_date: date
    issue_time: time
    due_date: date | None = None
    currency_code: str
    supplier: Party
    customer: Party
    lines: tuple[InvoiceLine, ...]
    vat_breakdown: tuple[VatBreakdownEntry, ...]
    totals: InvoiceTotals
    note: str | None = None
    billing_reference: BillingReference | None = None
    config_version: str

    @model_validator(mode="after")
    def _check_totals(self) -> InvoiceModel:
        line_sum = sum((line.line_total for line in self.lines), Decimal("0"))
        if line_sum != self.totals.line_extension:
            raise ValueError("line extension amount must equal the sum of line totals")
        if self.totals.tax_inclusive != self.totals.tax_exclusive + self.tax_total:
            raise ValueError(
                "tax inclusive amount must equal tax exclusive amount plus VAT"
            )
        if self.totals.payable != self.totals.tax_inclusive:
            raise ValueError("payable amount must equal the tax inclusive amount")
        return self

    @property
    def tax_total(self) -> Decimal:
        return sum((entry.tax_amount for entry in self.vat_breakdown), Decimal("0"))

    @property
    def issue_timestamp(self) -> str:
        """ISO-8601 UTC timestamp of issue, as embedded in the QR payload."""

        return f"{self.issue_date.isoformat()}T{self.issue_time.strftime('%H:%M:%S')}Z"


__all__ = [
    "Address",
    "BillingReference",
    "InvoiceLine",
    "InvoiceLineRequest",
    "InvoiceModel",
    "InvoiceRequest",
    "InvoiceTotals",
    "InvoiceTypeCode",
    "Party",
    "VatBreakdownEntry",
    "VatCategory",
]
