"""REST endpoints for corporate tax and VAT calculations."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from uaetax.backend.app.services.calculation_service import (
    assess_registration_payload,
    calculate_cit_payload,
    calculate_vat_payload,
    extract_vat_payload,
)
from uaetax.backend.services import build_json_response, parse_json_payload

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1/calculations")


@blueprint.post("/cit")
def create_cit_calculation() -> tuple[Any, int]:
    """Compute corporate tax from taxable income or accounting figures."""

    payload = parse_json_payload(request)
    return build_json_response(calculate_cit_payload(payload))


@blueprint.post("/vat")
def create_vat_calculation() -> tuple[Any, int]:
    """Compute output VAT, input VAT and the net amount due for a period."""

    payload = parse_json_payload(request)
    return build_json_response(calculate_vat_payload(payload))


@blueprint.post("/vat/registration")
def create_vat_registration_assessment() -> tuple[Any, int]:
    payload = parse_json_payload(request)
    return build_json_response(assess_registration_payload(payload))


@blueprint.post("/vat/extract")
def create_vat_extraction() -> tuple[Any, int]:
    """Split a VAT-inclusive amount into its net and VAT components."""

    payload = parse_json_payload(request)
    return build_json_response(extract_vat_payload(payload))
