"""Corporate Income Tax calculator."""

from __future__ import annotations

from uaetax.backend.app.models import (
    CalculationStep,
    CitInput,
    CitResult,
    CitRule,
    TaxableIncomeInput,
)
from uaetax.backend.config.rate_config import TaxRateConfig

from .audit import cite_steps, record_step
from .utils import ZERO, require_non_negative, round_currency, round_rate


def derive_taxable_income(figures: TaxableIncomeInput) -> CitInput:
    """Return a ``CitInput`` whose taxable income is derived from ``figures``.

    Deductions, capital allowances and brought-forward losses are applied in
    that order; the result is floored at zero. Each adjustment is kept in
    ``derivation`` so ``calculate_cit`` can report it.
    """

    revenue = require_non_negative(figures.revenue, "revenue")
    deductions = require_non_negative(figures.allowable_deductions, "allowable_deductions")
    allowances = require_non_negative(figures.capital_allowances, "capital_allowances")
    losses = require_non_negative(figures.previous_losses, "previous_losses")

    steps: list[CalculationStep] = []
    record_step(
        steps, "revenue", "Total revenue for the tax period", "Revenue", revenue, revenue=revenue
    )
    net_income = record_step(
        steps,
        "allowable_deductions",
        "Apply allowable deductions",
        "Net Income = Revenue - Allowable Deductions",
        revenue - deductions,
        revenue=revenue,
        allowable_deductions=deductions,
    )
    adjusted_income = record_step(
        steps,
        "capital_allowances",
        "Apply capital allowances",
        "Adjusted Income = Net Income - Capital Allowances",
        net_income - allowances,
        net_income=net_income,
        capital_allowances=allowances,
    )
    taxable = record_step(
        steps,
        "previous_losses",
        "Apply losses brought forward",
        "Taxable Income = max(0, Adjusted Income - Previous Losses)",
        max(ZERO, adjusted_income - losses),
        adjusted_income=adjusted_income,
        previous_losses=losses,
    )

    return CitInput(taxable_income=taxable, derivation=tuple(steps))


def calculate_cit(payload: CitInput, config: TaxRateConfig) -> CitResult:
    """Compute corporate tax for ``payload`` under ``config``.

    QFZP status overrides Small Business Relief, which overrides the
    standard rate. Relief eligibility is capped by the configured income
    ceiling; the 0% band itself is the relief threshold.
    """

    taxable_income = require_non_negative(payload.taxable_income, "taxable_income")

    steps = list(payload.derivation)
    record_step(
        steps,
        "taxable_income",
        "Taxable income for the tax period",
        "Taxable Income",
        taxable_income,
        taxable_income=taxable_income,
    )

    if payload.is_qfzp:
        record_step(
            steps,
            "qfzp_rate",
            "Qualifying Free Zone Person rate",
            "Tax Rate = QFZP Rate",
            config.qfzp_rate,
            qfzp_rate=config.qfzp_rate,
        )
        cit_amount = record_step(
            steps,
            "cit_amount",
            "Corporate tax liability",
            "CIT = 0 (QFZP)",
            round_currency(ZERO),
            taxable_income=taxable_income,
        )
        return CitResult(
            taxable_income=taxable_income,
            cit_rate=config.qfzp_rate,
            cit_amount=cit_amount,
            small_business_relief=ZERO,
            effective_rate=round_rate(ZERO),
            rule_applied=CitRule.QFZP,
            config_version=config.version,
            breakdown=cite_steps(steps, config),
        )

    rate = config.cit_standard_rate
    relief = ZERO
    rule = CitRule.STANDARD
    if (
        payload.is_small_business
        and taxable_income <= config.small_business_relief_eligibility_cap
    ):
        relief = record_step(
            steps,
            "small_business_relief",
            "Small Business Relief applied",
            "Relief = min(Taxable Income, Relief Threshold)",
            min(taxable_income, config.small_business_relief_threshold),
            taxable_income=taxable_income,
            threshold=config.small_business_relief_threshold,
            eligibility_cap=config.small_business_relief_eligibility_cap,
        )
        rule = CitRule.SMALL_BUSINESS_RELIEF

    record_step(
        steps,
        "standard_rate",
        "Standard corporate tax rate",
        "Tax Rate = Standard Rate",
        rate,
        standard_rate=rate,
    )
    cit_amount = record_step(
        steps,
        "cit_amount",
        "Corporate tax liability",
        "CIT = (Taxable Income - Relief) x Tax Rate",
        round_currency(max(ZERO, taxable_income - relief) * rate),
        taxable_income=taxable_income,
        relief=relief,
        tax_rate=rate,
    )
    effective_rate = cit_amount / taxable_income if taxable_income > 0 else ZERO

    return CitResult(
        taxable_income=taxable_income,
        cit_rate=rate,
        cit_amount=cit_amount,
        small_business_relief=relief,
        effective_rate=round_rate(effective_rate),
        rule_applied=rule,
        config_version=config.version,
        breakdown=cite_steps(steps, config),
    )


__all__ = ["calculate_cit", "derive_taxable_income"]
