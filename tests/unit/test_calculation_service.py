"""Unit tests for the JSON-facing calculation and document services."""

from __future__ import annotations

import base64
from decimal import Decimal

import pytest

from uaetax.backend.app.errors import InvalidInput, ValidationFailure
from uaetax.backend.app.models import CitCalculationRequest
from uaetax.backend.app.services.calculation_service import (
    assess_registration_payload,
    calculate_cit_payload,
    calculate_vat_payload,
    extract_vat_payload,
    resolve_rate_configuration,
)
from uaetax.backend.app.services.document_service import (
    create_document_payload,
    verify_document_payload,
)
from uaetax.backend.app.services.integrity import hash_xml


def test_cit_payload_returns_json_ready_amounts() -> None:
    result = calculate_cit_payload({"taxable_income": 800000, "is_small_business": True})

    assert result["cit_amount"] == "38250.00"
    assert result["rule_applied"] == "SmallBusinessRelief"
    assert result["config_version"] == "2023.1"


def test_cit_payload_requires_a_single_income_source() -> None:
    with pytest.raises(InvalidInput, match="exactly one"):
        calculate_cit_payload(
            {"taxable_income": "100", "income": {"revenue": "100"}}
        )


def test_negative_income_surfaces_as_invalid_input() -> None:
    with pytest.raises(InvalidInput, match="cannot be negative"):
        calculate_cit_payload({"taxable_income": "-5"})


def test_unknown_fields_are_rejected() -> None:
    with pytest.raises(InvalidInput, match="taxable_sales_total"):
        calculate_vat_payload({"taxable_sales_total": "10"})


def test_version_and_as_of_are_mutually_exclusive() -> None:
    with pytest.raises(InvalidInput, match="not both"):
        calculate_vat_payload({"version": "2023.1", "as_of": "2024-01-01"})


def test_vat_payload_nets_output_and_input() -> None:
    result = calculate_vat_payload({"taxable_sales": 100000, "taxable_purchases": 40000})

    assert result["net_vat_due"] == "3000.00"
    assert result["carry_forward_credit"] == "0.00"


def test_registration_payload_reports_table_version() -> None:
    result = assess_registration_payload(
        {"annual_taxable_supplies": "200000", "as_of": "2019-01-01"}
    )

    assert result["status"] == "voluntary"
    assert result["config_version"] == "2018.1"


def test_cit_payload_keeps_flags_for_derived_income() -> None:
    result = calculate_cit_payload(
        {
            "income": {"revenue": "900000", "allowable_deductions": "100000"},
            "is_small_business": True,
        }
    )

    assert result["rule_applied"] == "SmallBusinessRelief"
    assert result["cit_amount"] == "38250.00"
    assert [step["code"] for step in result["breakdown"]][:5] == [
        "revenue",
        "allowable_deductions",
        "capital_allowances",
        "previous_losses",
        "taxable_income",
    ]
    assert result["breakdown"][0]["inputs"] == {"revenue": "900000"}


def test_cit_payload_without_income_source_is_invalid_input() -> None:
    unvalidated = CitCalculationRequest.model_construct(taxable_income=None, income=None)

    with pytest.raises(InvalidInput, match="exactly one"):
        calculate_cit_payload(unvalidated)


def test_oversized_income_surfaces_as_invalid_input() -> None:
    with pytest.raises(InvalidInput, match="maximum supported amount"):
        calculate_cit_payload({"taxable_income": "1e30"})


def test_extract_payload_defaults_to_standard_rate() -> None:
    result = extract_vat_payload({"gross_amount": "105"})

    assert result == {
        "gross_amount": "105.00",
        "net_amount": "100.00",
        "vat_amount": "5.00",
        "vat_rate": "0.05",
        "config_version": "2023.1",
    }


def test_extract_payload_accepts_an_explicit_rate() -> None:
    result = extract_vat_payload({"gross_amount": "105", "vat_rate": "0", "version": "2018.1"})

    assert result["net_amount"] == "105.00"
    assert result["vat_amount"] == "0.00"
    assert result["config_version"] == "2018.1"


def test_resolve_rate_configuration_defaults_to_latest() -> None:
    assert resolve_rate_configuration().version == "2023.1"

    with pytest.raises(FileNotFoundError):
        resolve_rate_configuration(version="1970.1")


def test_document_payload_round_trips_through_verify(invoice_payload: dict) -> None:
    created = create_document_payload({"invoice": invoice_payload})

    xml = base64.b64decode(created["xml"])
    assert created["valid"] is True
    assert created["stage"] == "valid"
    assert created["xml_hash"] == hash_xml(xml)
    assert Decimal(created["invoice"]["totals"]["payable"]) == Decimal("2075.00")

    verified = verify_document_payload(
        {
            "invoice": invoice_payload,
            "xml": created["xml"],
            "xml_hash": created["xml_hash"],
            "qr_payload": created["qr_payload"],
        }
    )
    assert verified == {"valid": True, "issues": [], "config_version": "2023.1"}


def test_document_payload_raises_validation_failure(invoice_payload: dict) -> None:
    invoice_payload["supplier"]["trn"] = "123"

    with pytest.raises(ValidationFailure) as excinfo:
        create_document_payload({"invoice": invoice_payload})

    assert [issue.field for issue in excinfo.value.issues] == ["supplier.trn"]


def test_verify_rejects_non_base64_xml(invoice_payload: dict) -> None:
    with pytest.raises(InvalidInput, match="base64"):
        verify_document_payload(
            {"invoice": invoice_payload, "xml": "<xml/>", "xml_hash": "0" * 64, "qr_payload": ""}
        )
