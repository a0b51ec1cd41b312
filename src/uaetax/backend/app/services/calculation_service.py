"""Orchestrate request validation, rate resolution and tax calculations.

The HTTP layer hands raw JSON mappings to the ``*_payload`` helpers in this
module. Each one validates the mapping into a typed request, resolves the
rate table the request asks for (an explicit version, the table in force on
an ``as_of`` date, or the most recent one) and returns a JSON-ready result.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from uaetax.backend.app.errors import InvalidInput
from uaetax.backend.app.models import (
    CitCalculationRequest,
    CitInput,
    RateSelection,
    VatCalculationRequest,
    VatExtractionRequest,
    VatLineInput,
    VatRegistrationRequest,
    format_validation_error,
)
from uaetax.backend.config.rate_config import (
    TaxRateConfig,
    current_rate_configuration,
    load_rate_configuration,
    rate_configuration_for,
)

from .calculators import (
    assess_vat_registration,
    calculate_cit,
    calculate_vat,
    derive_taxable_income,
    extract_vat,
)

_LOGGER = logging.getLogger(__name__)

_RequestT = TypeVar("_RequestT", bound=BaseModel)


def parse_request(model_type: type[_RequestT], payload: Any) -> _RequestT:
    """Validate ``payload`` into ``model_type`` or raise ``InvalidInput``."""

    if isinstance(payload, model_type):
        return payload
    if not isinstance(payload, Mapping):
        raise InvalidInput("Payload must be a mapping")
    try:
        return model_type.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInput(format_validation_error(exc)) from exc


def resolve_rate_configuration(
    version: str | None = None, as_of: date | None = None
) -> TaxRateConfig:
    """Return the rate table selected by ``version`` or ``as_of``.

    Without either selector the most recent table is used. Unknown versions
    and dates before the first table raise ``FileNotFoundError``.
    """

    if version is not None:
        return load_rate_configuration(version)
    if as_of is not None:
        return rate_configuration_for(as_of)
    return current_rate_configuration()


def _selected_configuration(request: RateSelection) -> TaxRateConfig:
    config = resolve_rate_configuration(request.version, request.as_of)
    _LOGGER.debug("Using rate table %s", config.version)
    return config


def calculate_cit_payload(payload: Mapping[str, Any] | CitCalculationRequest) -> dict[str, Any]:
    """Compute corporate tax for a raw request payload."""

    request = parse_request(CitCalculationRequest, payload)
    config = _selected_configuration(request)

    flags = {"is_qfzp": request.is_qfzp, "is_small_business": request.is_small_business}
    if request.taxable_income is not None:
        payload_input = CitInput(taxable_income=request.taxable_income, **flags)
    elif request.income is not None:
        derived = derive_taxable_income(request.income)
        payload_input = CitInput(
            taxable_income=derived.taxable_income, derivation=derived.derivation, **flags
        )
    else:
        raise InvalidInput("Provide exactly one of 'taxable_income' or 'income'")

    result = calculate_cit(payload_input, config)
    return result.model_dump(mode="json")


def calculate_vat_payload(payload: Mapping[str, Any] | VatCalculationRequest) -> dict[str, Any]:
    """Compute VAT return figures for a raw request payload."""

    request = parse_request(VatCalculationRequest, payload)
    config = _selected_configuration(request)

    result = calculate_vat(
        VatLineInput(
            taxable_sales=request.taxable_sales,
            exempt_sales=request.exempt_sales,
            zero_rated_sales=request.zero_rated_sales,
            taxable_purchases=request.taxable_purchases,
            exempt_purchases=request.exempt_purchases,
        ),
        config,
    )
    return result.model_dump(mode="json")


def assess_registration_payload(
    payload: Mapping[str, Any] | VatRegistrationRequest,
) -> dict[str, Any]:
    """Assess VAT registration obligations for a raw request payload."""

    request = parse_request(VatRegistrationRequest, payload)
    config = _selected_configuration(request)

    assessment = assess_vat_registration(request.annual_taxable_supplies, config)
    return {**assessment.model_dump(mode="json"), "config_version": config.version}


def extract_vat_payload(payload: Mapping[str, Any] | VatExtractionRequest) -> dict[str, Any]:
    """Split a VAT-inclusive amount, at the standard rate unless one is given."""

    request = parse_request(VatExtractionRequest, payload)
    config = _selected_configuration(request)

    rate = request.vat_rate if request.vat_rate is not None else config.vat_standard_rate
    extraction = extract_vat(request.gross_amount, rate)
    return {**extraction.model_dump(mode="json"), "config_version": config.version}


__all__ = [
    "assess_registration_payload",
    "calculate_cit_payload",
    "calculate_vat_payload",
    "extract_vat_payload",
    "parse_request",
    "resolve_rate_configuration",
]
