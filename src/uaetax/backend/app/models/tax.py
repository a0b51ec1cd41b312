"""Typed inputs and results for the corporate tax and VAT calculators."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class CitRule(str, Enum):
    """Rate path selected for a corporate tax computation."""

    QFZP = "QFZP"
    SMALL_BUSINESS_RELIEF = "SmallBusinessRelief"
    STANDARD = "Standard"


class CalculationStep(_Record):
    """One line of a calculation audit trail.

    ``code`` names the rule applied and keys the citation looked up in the
    rate table's ``meta.references`` section.
    """

    step_number: int
    code: str
    description: str
    formula: str
    inputs: dict[str, Decimal]
    result: Decimal
    reference: str | None = None


class TaxableIncomeInput(_Record):
    """Accounting figures used to derive taxable income for a tax period."""

    revenue: Decimal
    allowable_deductions: Decimal = Decimal("0")
    capital_allowances: Decimal = Decimal("0")
    previous_losses: Decimal = Decimal("0")


class CitInput(_Record):
    """Taxable income and entity flags for a single tax period."""

    taxable_income: Decimal
    is_qfzp: bool = False
    is_small_business: bool = False
    # Steps that produced ``taxable_income`` from accounting figures, if any.
    derivation: tuple[CalculationStep, ...] = ()


class CitResult(_Record):
    taxable_income: Decimal
    cit_rate: Decimal
    cit_amount: Decimal
    small_business_relief: Decimal
    effective_rate: Decimal
    rule_applied: CitRule
    config_version: str
    breakdown: tuple[CalculationStep, ...] = ()


class VatLineInput(_Record):
    """Period totals for a VAT return.

    Zero-rated sales are tracked apart from exempt sales: neither carries
    output VAT, but only exempt activity is excluded from input recovery.
    """

    taxable_sales: Decimal
    exempt_sales: Decimal = Decimal("0")
    taxable_purchases: Decimal = Decimal("0")
    exempt_purchases: Decimal = Decimal("0")
    zero_rated_sales: Decimal = Decimal("0")


class VatResult(_Record):
    output_vat: Decimal
    input_vat: Decimal
    net_vat_due: Decimal
    carry_forward_credit: Decimal
    total_supplies: Decimal
    config_version: str
    breakdown: tuple[CalculationStep, ...] = ()


class VatRegistrationStatus(str, Enum):
    MANDATORY = "mandatory"
    VOLUNTARY = "voluntary"
    NOT_ELIGIBLE = "not_eligible"


class VatRegistrationAssessment(_Record):
    annual_taxable_supplies: Decimal
    status: VatRegistrationStatus
    threshold: Decimal
    registration_required: bool
    eligible: bool


class VatExtraction(_Record):
    """Split of a VAT-inclusive amount into its net and VAT parts."""

    gross_amount: Decimal
    net_amount: Decimal
    vat_amount: Decimal
    vat_rate: Decimal


__all__ = [
    "CalculationStep",
    "CitInput",
    "CitResult",
    "CitRule",
    "TaxableIncomeInput",
    "VatExtraction",
    "VatLineInput",
    "VatRegistrationAssessment",
    "VatRegistrationStatus",
    "VatResult",
]
