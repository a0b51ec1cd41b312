"""VAT return, registration and VAT-inclusive extraction helpers."""

from __future__ import annotations

from decimal import Decimal

from uaetax.backend.app.errors import InvalidInput
from uaetax.backend.app.models import (
    CalculationStep,
    VatExtraction,
    VatLineInput,
    VatRegistrationAssessment,
    VatRegistrationStatus,
    VatResult,
)
from uaetax.backend.config.rate_config import TaxRateConfig

from .audit import cite_steps, record_step
from .utils import ZERO, require_non_negative, round_currency


def calculate_vat(payload: VatLineInput, config: TaxRateConfig) -> VatResult:
    """Compute output VAT, recoverable input VAT and the net amount due.

    Exempt and zero-rated sales carry no output VAT. Exempt purchases carry
    no recoverable input VAT. An input surplus is reported as a carry-forward
    credit and never as a negative amount due.
    """

    taxable_sales = require_non_negative(payload.taxable_sales, "taxable_sales")
    exempt_sales = require_non_negative(payload.exempt_sales, "exempt_sales")
    zero_rated_sales = require_non_negative(payload.zero_rated_sales, "zero_rated_sales")
    taxable_purchases = require_non_negative(payload.taxable_purchases, "taxable_purchases")
    require_non_negative(payload.exempt_purchases, "exempt_purchases")

    rate = config.vat_standard_rate
    steps: list[CalculationStep] = []
    output_vat = record_step(
        steps,
        "output_vat",
        "VAT charged on standard-rated sales",
        "Output VAT = Taxable Sales x VAT Rate",
        round_currency(taxable_sales * rate),
        taxable_sales=taxable_sales,
        vat_rate=rate,
    )
    input_vat = record_step(
        steps,
        "input_vat",
        "Recoverable VAT on standard-rated purchases",
        "Input VAT = Taxable Purchases x VAT Rate",
        round_currency(taxable_purchases * rate),
        taxable_purchases=taxable_purchases,
        vat_rate=rate,
    )
    difference = output_vat - input_vat
    net_vat_due = record_step(
        steps,
        "net_vat_due",
        "Net VAT payable for the period",
        "Net VAT = max(0, Output VAT - Input VAT)",
        round_currency(max(ZERO, difference)),
        output_vat=output_vat,
        input_vat=input_vat,
    )
    carry_forward = record_step(
        steps,
        "carry_forward_credit",
        "Excess input VAT carried forward",
        "Credit = max(0, Input VAT - Output VAT)",
        round_currency(max(ZERO, -difference)),
        output_vat=output_vat,
        input_vat=input_vat,
    )
    total_supplies = record_step(
        steps,
        "total_supplies",
        "Total supplies reported",
        "Total = Taxable + Zero-rated + Exempt Sales",
        round_currency(taxable_sales + zero_rated_sales + exempt_sales),
        taxable_sales=taxable_sales,
        zero_rated_sales=zero_rated_sales,
        exempt_sales=exempt_sales,
    )

    return VatResult(
        output_vat=output_vat,
        input_vat=input_vat,
        net_vat_due=net_vat_due,
        carry_forward_credit=carry_forward,
        total_supplies=total_supplies,
        config_version=config.version,
        breakdown=cite_steps(steps, config),
    )


def assess_vat_registration(
    annual_taxable_supplies: Decimal, config: TaxRateConfig
) -> VatRegistrationAssessment:
    """Classify registration obligations for ``annual_taxable_supplies``."""

    supplies = require_non_negative(annual_taxable_supplies, "annual_taxable_supplies")
    registration = config.vat.registration

    if supplies >= registration.mandatory_threshold:
        status = VatRegistrationStatus.MANDATORY
        threshold = registration.mandatory_threshold
    elif supplies >= registration.voluntary_threshold:
        status = VatRegistrationStatus.VOLUNTARY
        threshold = registration.voluntary_threshold
    else:
        status = VatRegistrationStatus.NOT_ELIGIBLE
        threshold = registration.voluntary_threshold

    return VatRegistrationAssessment(
        annual_taxable_supplies=supplies,
        status=status,
        threshold=threshold,
        registration_required=status is VatRegistrationStatus.MANDATORY,
        eligible=status is not VatRegistrationStatus.NOT_ELIGIBLE,
    )


def extract_vat(gross_amount: Decimal, rate: Decimal) -> VatExtraction:
    """Split a VAT-inclusive ``gross_amount`` into net and VAT components."""

    gross = require_non_negative(gross_amount, "gross_amount")
    if rate < 0 or rate > 1:
        raise InvalidInput("Field 'vat_rate' must be between 0 and 1", field="vat_rate")

    net = round_currency(gross / (1 + rate))
    gross = round_currency(gross)
    return VatExtraction(
        gross_amount=gross,
        net_amount=net,
        vat_amount=gross - net,
        vat_rate=rate,
    )


__all__ = ["assess_vat_registration", "calculate_vat", "extract_vat"]
