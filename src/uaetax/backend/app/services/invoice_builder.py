"""Assemble canonical invoice models from caller-supplied requests.

The builder never raises for business-rule problems. Every issue found in a
request is collected and returned as a ``BuildFailure`` so callers can fix
all fields in one round trip; a partially built model is never exposed.
"""

from __future__ import annotations

import logging
import re
from datetime import timedelta
from decimal import Decimal

from typing_extensions import assert_never

from uaetax.backend.app.models import (
    BillingReference,
    BuildFailure,
    ComplianceDocument,
    InvoiceLine,
    InvoiceLineRequest,
    InvoiceModel,
    InvoiceRequest,
    InvoiceTotals,
    InvoiceTypeCode,
    Party,
    Severity,
    ValidationIssue,
    VatBreakdownEntry,
    VatCategory,
)
from uaetax.backend.config.rate_config import TaxRateConfig

from .calculators import MAX_AMOUNT, round_currency

_LOGGER = logging.getLogger(__name__)

TRN_PATTERN = re.compile(r"[0-9]{15}")
HASH_PATTERN = re.compile(r"[0-9a-f]{64}")
CURRENCY_PATTERN = re.compile(r"[A-Z]{3}")
ZERO = Decimal("0")


def is_valid_trn(value: str | None) -> bool:
    return value is not None and bool(TRN_PATTERN.fullmatch(value))


def _issue(field: str, message: str, severity: Severity = Severity.ERROR) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, severity=severity)


def resolve_category(code: str) -> VatCategory | None:
    try:
        return VatCategory(code)
    except ValueError:
        return None


def category_rate(category: VatCategory, config: TaxRateConfig) -> Decimal:
    """Return the only VAT rate permitted for ``category``."""

    match category:
        case VatCategory.STANDARD:
            return config.vat_standard_rate
        case VatCategory.ZERO_RATED | VatCategory.EXEMPT | VatCategory.OUT_OF_SCOPE:
            return ZERO
        case _:
            assert_never(category)


def _validate_party(party: Party, field: str, *, trn_required: bool) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    if not party.name.strip():
        issues.append(_issue(f"{field}.name", "name is required"))

    trn = party.trn.strip() if party.trn is not None else ""
    if not trn:
        if trn_required:
            issues.append(_issue(f"{field}.trn", "TRN is required"))
    elif not is_valid_trn(trn):
        issues.append(_issue(f"{field}.trn", "TRN must be exactly 15 digits"))

    return issues


def _validate_header(request: InvoiceRequest) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    if not request.invoice_number.strip():
        issues.append(_issue("invoice_number", "invoice number is required"))

    if not CURRENCY_PATTERN.fullmatch(request.currency_code):
        issues.append(
            _issue("currency_code", "currency code must be an ISO 4217 alphabetic code")
        )

    if request.due_date is not None and request.due_date < request.issue_date:
        issues.append(_issue("due_date", "due date cannot be before the issue date"))

    offset = request.issue_time.utcoffset()
    if offset is not None and offset != timedelta(0):
        issues.append(_issue("issue_time", "issue time must be expressed in UTC"))

    reference = request.billing_reference
    if request.invoice_type_code is InvoiceTypeCode.CREDIT_NOTE and reference is None:
        issues.append(
            _issue("billing_reference", "credit notes must reference the original invoice")
        )
    if reference is not None:
        if not HASH_PATTERN.fullmatch(reference.xml_hash):
            issues.append(
                _issue(
                    "billing_reference.xml_hash",
                    "hash must be 64 lowercase hexadecimal characters",
                )
            )
        if reference.invoice_number == request.invoice_number:
            issues.append(
                _issue(
                    "billing_reference.invoice_number",
                    "an amending document needs its own invoice number",
                )
            )

    return issues


def _build_line(
    index: int, line: InvoiceLineRequest, config: TaxRateConfig
) -> InvoiceLine | list[ValidationIssue]:
    scope = f"lines[{index}]"
    issues: list[ValidationIssue] = []

    if not line.id.strip():
        issues.append(_issue(f"{scope}.id", "line identifier is required"))
    if not line.description.strip():
        issues.append(_issue(f"{scope}.description", "description is required"))
    amounts_valid = True
    if not line.quantity.is_finite() or line.quantity <= 0:
        issues.append(_issue(f"{scope}.quantity", "quantity must be greater than zero"))
        amounts_valid = False
    elif line.quantity >= MAX_AMOUNT:
        issues.append(
            _issue(f"{scope}.quantity", "quantity exceeds the maximum supported amount")
        )
        amounts_valid = False
    if not line.unit_price.is_finite() or line.unit_price < 0:
        issues.append(_issue(f"{scope}.unit_price", "unit price cannot be negative"))
        amounts_valid = False
    elif line.unit_price >= MAX_AMOUNT:
        issues.append(
            _issue(f"{scope}.unit_price", "unit price exceeds the maximum supported amount")
        )
        amounts_valid = False
    if amounts_valid and line.quantity * line.unit_price >= MAX_AMOUNT:
        issues.append(
            _issue(f"{scope}.line_total", "line total exceeds the maximum supported amount")
        )

    category = resolve_category(line.vat_category_code)
    rate = ZERO
    if category is None:
        issues.append(
            _issue(
                f"{scope}.vat_category_code",
                f"'{line.vat_category_code}' is not one of S, Z, E, O",
            )
        )
    else:
        rate = category_rate(category, config)
        if line.vat_rate is not None and line.vat_rate != rate:
            issues.append(
                _issue(
                    f"{scope}.vat_rate",
                    f"rate {line.vat_rate} is inconsistent with category "
                    f"'{category.value}' (expected {rate})",
                )
            )

    if issues or category is None:
        return issues

    line_total = round_currency(line.quantity * line.unit_price)
    return InvoiceLine(
        id=line.id,
        description=line.description,
        quantity=line.quantity,
        unit_price=line.unit_price,
        unit_code=line.unit_code,
        vat_category_code=category,
        vat_rate=rate,
        line_total=line_total,
        line_vat=round_currency(line_total * rate),
    )


def _aggregate_breakdown(
    lines: list[InvoiceLine], config: TaxRateConfig
) -> tuple[VatBreakdownEntry, ...]:
    groups: dict[tuple[VatCategory, Decimal], list[Decimal]] = {}
    for line in lines:
        totals = groups.setdefault((line.vat_category_code, line.vat_rate), [ZERO, ZERO])
        totals[0] += line.line_total
        totals[1] += line.line_vat

    return tuple(
        VatBreakdownEntry(
            category_code=category,
            rate=rate,
            taxable_amount=taxable,
            tax_amount=tax,
            exemption_reason=config.vat.category(category.value).exemption_reason,
        )
        for (category, rate), (taxable, tax) in groups.items()
    )


def build_invoice(
    request: InvoiceRequest, config: TaxRateConfig
) -> InvoiceModel | BuildFailure:
    """Validate ``request`` and return the canonical invoice model."""

    issues = _validate_header(request)
    issues.extend(_validate_party(request.supplier, "supplier", trn_required=True))
    issues.extend(
        _validate_party(request.customer, "customer", trn_required=not request.b2c)
    )

    if not request.lines:
        issues.append(_issue("lines", "at least one invoice line is required"))

    lines: list[InvoiceLine] = []
    seen_ids: set[str] = set()
    for index, line_request in enumerate(request.lines):
        if line_request.id in seen_ids:
            issues.append(
                _issue(f"lines[{index}].id", f"duplicate line identifier '{line_request.id}'")
            )
        seen_ids.add(line_request.id)

        built = _build_line(index, line_request, config)
        if isinstance(built, InvoiceLine):
            lines.append(built)
        else:
            issues.extend(built)

    if issues:
        _LOGGER.debug(
            "Rejected invoice %s with %d issue(s)", request.invoice_number, len(issues)
        )
        return BuildFailure(issues=tuple(issues))

    breakdown = _aggregate_breakdown(lines, config)
    line_extension = sum((line.line_total for line in lines), ZERO)
    tax_total = sum((entry.tax_amount for entry in breakdown), ZERO)
    tax_inclusive = line_extension + tax_total

    return InvoiceModel(
        invoice_number=request.invoice_number,
        invoice_type_code=request.invoice_type_code,
        issue_date=request.issue_date,
        issue_time=request.issue_time.replace(microsecond=0, tzinfo=None),
        due_date=request.due_date,
        currency_code=request.currency_code,
        supplier=_normalise_party(request.supplier),
        customer=_normalise_party(request.customer),
        lines=tuple(lines),
        vat_breakdown=breakdown,
        totals=InvoiceTotals(
            line_extension=line_extension,
            tax_exclusive=line_extension,
            tax_inclusive=tax_inclusive,
            payable=tax_inclusive,
        ),
        note=request.note,
        billing_reference=request.billing_reference,
        config_version=config.version,
    )


def _normalise_party(party: Party) -> Party:
    trn = party.trn.strip() if party.trn is not None else None
    return party.model_copy(update={"name": party.name.strip(), "trn": trn or None})


def build_credit_note(
    request: InvoiceRequest, original: ComplianceDocument, config: TaxRateConfig
) -> InvoiceModel | BuildFailure:
    """Build a credit note amending ``original``; the original is left untouched."""

    reference = BillingReference(
        invoice_number=original.invoice.invoice_number,
        issue_date=original.invoice.issue_date,
        xml_hash=original.xml_hash,
    )
    amended = request.model_copy(
        update={
            "invoice_type_code": InvoiceTypeCode.CREDIT_NOTE,
            "billing_reference": reference,
        }
    )
    return build_invoice(amended, config)


__all__ = [
    "TRN_PATTERN",
    "build_credit_note",
    "build_invoice",
    "category_rate",
    "is_valid_trn",
    "resolve_category",
]
