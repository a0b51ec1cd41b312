"""Unit tests for invoice model construction."""

from __future__ import annotations

from datetime import date, time, timedelta, timezone
from decimal import Decimal

import pytest

from uaetax.backend.app.models import (
    BuildFailure,
    InvoiceLineRequest,
    InvoiceModel,
    InvoiceRequest,
    InvoiceTypeCode,
    Party,
    VatCategory,
)
from uaetax.backend.app.services.compliance_service import build_compliance_document
from uaetax.backend.app.services.invoice_builder import (
    build_credit_note,
    build_invoice,
    category_rate,
)
from uaetax.backend.config.rate_config import TaxRateConfig


def _fields(failure: BuildFailure) -> set[str]:
    return {issue.field for issue in failure.issues}


def test_builds_lines_breakdown_and_totals(
    invoice_request: InvoiceRequest, rates: TaxRateConfig
) -> None:
    model = build_invoice(invoice_request, rates)

    assert isinstance(model, InvoiceModel)
    assert [line.line_total for line in model.lines] == [Decimal("1500.00"), Decimal("500.00")]
    assert [line.line_vat for line in model.lines] == [Decimal("75.00"), Decimal("0.00")]
    assert [entry.category_code for entry in model.vat_breakdown] == [
        VatCategory.STANDARD,
        VatCategory.ZERO_RATED,
    ]
    assert model.vat_breakdown[1].exemption_reason == "Zero-rated supply"
    assert model.totals.line_extension == Decimal("2000.00")
    assert model.totals.tax_inclusive == Decimal("2075.00")
    assert model.totals.payable == model.totals.tax_inclusive
    assert model.config_version == "2023.1"


def test_lines_sharing_category_and_rate_are_grouped(
    invoice_request: InvoiceRequest, rates: TaxRateConfig
) -> None:
    extra = InvoiceLineRequest(
        id="3",
        description="Training",
        quantity=Decimal("3"),
        unit_price=Decimal("33.33"),
        vat_category_code="S",
        vat_rate=Decimal("0.05"),
    )
    request = invoice_request.model_copy(update={"lines": (*invoice_request.lines, extra)})

    model = build_invoice(request, rates)

    assert isinstance(model, InvoiceModel)
    assert len(model.vat_breakdown) == 2
    standard = model.vat_breakdown[0]
    assert standard.taxable_amount == Decimal("1599.99")
    # Per-line rounding: 75.00 + round(99.99 * 0.05) = 75.00 + 5.00
    assert standard.tax_amount == Decimal("80.00")


def test_collects_every_problem(invoice_request: InvoiceRequest, rates: TaxRateConfig) -> None:
    broken_line = InvoiceLineRequest(
        id="1",
        description="",
        quantity=Decimal("0"),
        unit_price=Decimal("-1"),
        vat_category_code="X",
    )
    request = invoice_request.model_copy(
        update={
            "supplier": Party(name="Falcon Trading LLC", trn="12345"),
            "customer": Party(name="Oasis Retail FZE"),
            "due_date": date(2024, 1, 1),
            "lines": (invoice_request.lines[0], broken_line),
        }
    )

    failure = build_invoice(request, rates)

    assert isinstance(failure, BuildFailure)
    assert {
        "supplier.trn",
        "customer.trn",
        "due_date",
        "lines[1].id",
        "lines[1].description",
        "lines[1].quantity",
        "lines[1].unit_price",
        "lines[1].vat_category_code",
    } <= _fields(failure)


def test_b2c_invoices_do_not_need_a_customer_trn(
    invoice_request: InvoiceRequest, rates: TaxRateConfig
) -> None:
    request = invoice_request.model_copy(
        update={"b2c": True, "customer": Party(name="Walk-in customer")}
    )

    assert isinstance(build_invoice(request, rates), InvoiceModel)


def test_requires_at_least_one_line(invoice_request: InvoiceRequest, rates: TaxRateConfig) -> None:
    failure = build_invoice(invoice_request.model_copy(update={"lines": ()}), rates)

    assert isinstance(failure, BuildFailure)
    assert _fields(failure) == {"lines"}


@pytest.mark.parametrize(("code", "rate"), [("S", "0.00"), ("Z", "0.05"), ("E", "0.05")])
def test_rejects_rate_inconsistent_with_category(
    invoice_request: InvoiceRequest, rates: TaxRateConfig, code: str, rate: str
) -> None:
    line = invoice_request.lines[0].model_copy(
        update={"vat_category_code": code, "vat_rate": Decimal(rate)}
    )
    failure = build_invoice(invoice_request.model_copy(update={"lines": (line,)}), rates)

    assert isinstance(failure, BuildFailure)
    assert _fields(failure) == {"lines[0].vat_rate"}


def test_issue_time_must_be_utc(invoice_request: InvoiceRequest, rates: TaxRateConfig) -> None:
    dubai = timezone(timedelta(hours=4))
    request = invoice_request.model_copy(update={"issue_time": time(13, 30, tzinfo=dubai)})

    failure = build_invoice(request, rates)

    assert isinstance(failure, BuildFailure)
    assert _fields(failure) == {"issue_time"}


def test_category_rate_covers_every_category(rates: TaxRateConfig) -> None:
    assert category_rate(VatCategory.STANDARD, rates) == Decimal("0.05")
    for category in (VatCategory.ZERO_RATED, VatCategory.EXEMPT, VatCategory.OUT_OF_SCOPE):
        assert category_rate(category, rates) == Decimal("0")


def test_credit_note_references_original(
    invoice_request: InvoiceRequest, rates: TaxRateConfig
) -> None:
    original = build_compliance_document(invoice_request, rates)
    assert not isinstance(original, BuildFailure)

    amendment = invoice_request.model_copy(
        update={"invoice_number": "CN-2024-0001", "lines": invoice_request.lines[:1]}
    )
    credit_note = build_credit_note(amendment, original, rates)

    assert isinstance(credit_note, InvoiceModel)
    assert credit_note.invoice_type_code is InvoiceTypeCode.CREDIT_NOTE
    assert credit_note.billing_reference is not None
    assert credit_note.billing_reference.invoice_number == "INV-2024-0001"
    assert credit_note.billing_reference.xml_hash == original.xml_hash
    assert original.invoice.invoice_type_code is InvoiceTypeCode.TAX_INVOICE


def test_credit_note_needs_its_own_number(
    invoice_request: InvoiceRequest, rates: TaxRateConfig
) -> None:
    original = build_compliance_document(invoice_request, rates)
    assert not isinstance(original, BuildFailure)

    failure = build_credit_note(invoice_request, original, rates)

    assert isinstance(failure, BuildFailure)
    assert _fields(failure) == {"billing_reference.invoice_number"}


@pytest.mark.parametrize("trn", ["\u0661" * 15, "\uff11" * 15, "10000000000000\u0663"])
def test_trn_must_use_ascii_digits(
    invoice_request: InvoiceRequest, rates: TaxRateConfig, trn: str
) -> None:
    request = invoice_request.model_copy(
        update={"supplier": invoice_request.supplier.model_copy(update={"trn": trn})}
    )

    failure = build_invoice(request, rates)

    assert isinstance(failure, BuildFailure)
    assert _fields(failure) == {"supplier.trn"}
    assert isinstance(build_compliance_document(request, rates), BuildFailure)


@pytest.mark.parametrize(
    ("update", "field"),
    [
        ({"unit_price": Decimal("1e27")}, "lines[0].unit_price"),
        ({"quantity": Decimal("1e15")}, "lines[0].quantity"),
        ({"quantity": Decimal("1e8"), "unit_price": Decimal("1e8")}, "lines[0].line_total"),
    ],
)
def test_oversized_line_amounts_are_reported(
    invoice_request: InvoiceRequest, rates: TaxRateConfig, update: dict, field: str
) -> None:
    line = invoice_request.lines[0].model_copy(update=update)

    failure = build_invoice(invoice_request.model_copy(update={"lines": (line,)}), rates)

    assert isinstance(failure, BuildFailure)
    assert _fields(failure) == {field}
