"""Structural and cross-field checks for finalised compliance documents.

``validate`` never stops at the first problem: each check appends its
findings and the caller receives the full list. Only error-severity issues
make a document invalid; warnings are informational.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from uaetax.backend.app.errors import EncodingError
from uaetax.backend.app.models import (
    InvoiceModel,
    QrTag,
    Severity,
    ValidationIssue,
    ValidationResult,
)
from uaetax.backend.config.rate_config import TaxRateConfig

from . import qr_encoder, ubl_serializer
from .calculators import format_amount
from .integrity import hash_xml
from .invoice_builder import category_rate, is_valid_trn

_LOGGER = logging.getLogger(__name__)

TOLERANCE = Decimal("0.01")
HOME_CURRENCY = "AED"
ZERO = Decimal("0")


def _error(field: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, message=message)


def _warning(field: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, severity=Severity.WARNING)


def _differs(left: Decimal, right: Decimal) -> bool:
    return abs(left - right) >= TOLERANCE


def _check_totals(model: InvoiceModel) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    totals = model.totals

    breakdown_sum = sum(
        (entry.taxable_amount + entry.tax_amount for entry in model.vat_breakdown), ZERO
    )
    if _differs(totals.payable, breakdown_sum):
        issues.append(
            _error(
                "totals.payable",
                f"payable {format_amount(totals.payable)} does not match the VAT "
                f"breakdown total {format_amount(breakdown_sum)}",
            )
        )

    if _differs(totals.tax_inclusive, totals.tax_exclusive + model.tax_total):
        issues.append(
            _error(
                "totals.tax_inclusive",
                "tax inclusive amount must equal tax exclusive amount plus VAT",
            )
        )

    line_sum = sum((line.line_total for line in model.lines), ZERO)
    if _differs(line_sum, totals.line_extension):
        issues.append(
            _error(
                "totals.line_extension",
                f"line extension {format_amount(totals.line_extension)} does not match "
                f"the sum of line totals {format_amount(line_sum)}",
            )
        )
    return issues


def _check_lines(model: InvoiceModel, config: TaxRateConfig) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for index, line in enumerate(model.lines):
        scope = f"lines[{index}]"
        if line.vat_rate < 0:
            issues.append(_error(f"{scope}.vat_rate", "VAT rate cannot be negative"))
            continue
        expected = category_rate(line.vat_category_code, config)
        if line.vat_rate != expected:
            issues.append(
                _error(
                    f"{scope}.vat_rate",
                    f"rate {line.vat_rate} is inconsistent with category "
                    f"'{line.vat_category_code.value}' (expected {expected})",
                )
            )
    return issues


def _check_parties(model: InvoiceModel) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for field, party in (("supplier", model.supplier), ("customer", model.customer)):
        if party.trn is not None and not is_valid_trn(party.trn):
            issues.append(_error(f"{field}.trn", "TRN must be exactly 15 digits"))
    return issues


def _check_qr(model: InvoiceModel, actual_hash: str, qr_payload: str) -> list[ValidationIssue]:
    try:
        values = qr_encoder.qr_text_values(qr_encoder.decode_qr(qr_payload))
    except EncodingError as exc:
        return [_error("qr_payload", str(exc))]

    expected = {
        QrTag.SELLER_NAME: model.supplier.name,
        QrTag.SELLER_TRN: model.supplier.trn or "",
        QrTag.TIMESTAMP: model.issue_timestamp,
        QrTag.INVOICE_TOTAL: format_amount(model.totals.tax_inclusive),
        QrTag.VAT_TOTAL: format_amount(model.tax_total),
    }

    issues: list[ValidationIssue] = []
    for tag, value in expected.items():
        found = values.get(tag)
        if found is None:
            issues.append(_error("qr_payload", f"QR payload is missing tag {int(tag)}"))
        elif found != value:
            issues.append(
                _error(
                    "qr_payload",
                    f"QR tag {int(tag)} is '{found}' but the invoice has '{value}'",
                )
            )

    embedded_hash = values.get(QrTag.XML_HASH)
    if embedded_hash is None:
        issues.append(_error("qr_payload", "QR payload is missing the XML hash"))
    elif embedded_hash != actual_hash:
        issues.append(
            _error("qr_payload", "hash embedded in the QR payload does not match the XML")
        )
    return issues


def _check_xml_content(model: InvoiceModel, xml: bytes) -> list[ValidationIssue]:
    try:
        root = ubl_serializer.parse(xml)
    except EncodingError as exc:
        return [_error("xml", str(exc))]

    namespaces = {"cac": ubl_serializer.CAC, "cbc": ubl_serializer.CBC}
    issues: list[ValidationIssue] = []

    document_id = root.findtext("cbc:ID", namespaces=namespaces)
    if document_id != model.invoice_number:
        issues.append(
            _error("xml", f"document ID '{document_id}' does not match the invoice number")
        )

    payable = root.findtext("cac:LegalMonetaryTotal/cbc:PayableAmount", namespaces=namespaces)
    if payable != format_amount(model.totals.payable):
        issues.append(
            _error("xml", f"PayableAmount '{payable}' does not match the invoice total")
        )

    supplier_trn = root.findtext(
        "cac:AccountingSupplierParty/cac:Party/cac:PartyTaxScheme/cbc:CompanyID",
        namespaces=namespaces,
    )
    if supplier_trn != model.supplier.trn:
        issues.append(_error("xml", "supplier TRN in the XML does not match the invoice"))
    return issues


def validate(
    model: InvoiceModel,
    xml: bytes,
    xml_hash: str,
    qr_payload: str,
    config: TaxRateConfig,
) -> ValidationResult:
    """Return every issue found when checking the artefacts against ``model``."""

    issues: list[ValidationIssue] = []

    actual_hash = hash_xml(xml)
    if xml_hash != actual_hash:
        issues.append(_error("xml_hash", "hash does not match the XML bytes"))

    issues.extend(_check_qr(model, actual_hash, qr_payload))
    issues.extend(_check_totals(model))
    issues.extend(_check_lines(model, config))
    issues.extend(_check_parties(model))
    issues.extend(_check_xml_content(model, xml))

    if model.currency_code != HOME_CURRENCY:
        issues.append(
            _warning(
                "currency_code",
                f"invoice is issued in {model.currency_code}; VAT must also be "
                f"reported in {HOME_CURRENCY}",
            )
        )

    result = ValidationResult(issues=tuple(issues))
    if not result.valid:
        _LOGGER.debug(
            "Invoice %s failed validation with %d error(s)",
            model.invoice_number,
            len(result.errors),
        )
    return result


__all__ = ["HOME_CURRENCY", "TOLERANCE", "validate"]
