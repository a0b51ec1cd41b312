"""Expose rate table metadata consumed by the decoupled front-end.

The UI reads the versioned rate tables from here so that forms can show the
rates in force without duplicating them.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify

from uaetax.backend.app.http import ProblemResponse, problem_response
from uaetax.backend.config.rate_config import (
    TaxRateConfig,
    available_versions,
    load_manifest,
    load_rate_configuration,
)
from uaetax.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def _load_rates(version: str) -> TaxRateConfig | ProblemResponse:
    try:
        return load_rate_configuration(version)
    except FileNotFoundError as exc:
        return problem_response("not_found", status=404, message=str(exc))


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the rate manifest."""

    manifest = load_manifest()
    supported_versions = list(manifest.supported_versions)
    default_version = supported_versions[-1] if supported_versions else None
    return {
        "version": get_project_version(),
        "supported_rate_versions": supported_versions,
        "default_rate_version": default_version,
    }


def _serialise_rates(config: TaxRateConfig) -> dict[str, Any]:
    entry = load_manifest().get_entry(config.version)
    payload = config.model_dump(mode="json")
    payload["notes_url"] = entry.notes_url
    return payload


@blueprint.get("/meta")
def get_application_metadata() -> tuple[Any, int]:
    """Expose lightweight application metadata such as the version identifier."""

    return jsonify(get_configuration_metadata()), 200


@blueprint.get("/rates")
def list_rates() -> tuple[Any, int]:
    """Return every configured rate table, oldest first."""

    rates = [_serialise_rates(load_rate_configuration(v)) for v in available_versions()]
    metadata = get_configuration_metadata()
    payload = {
        "rates": rates,
        "default_rate_version": metadata["default_rate_version"],
        "supported_rate_versions": metadata["supported_rate_versions"],
    }
    return jsonify(payload), 200


@blueprint.get("/rates/<version>")
def get_rates(version: str) -> tuple[Any, int]:
    context = _load_rates(version)
    if isinstance(context, ProblemResponse):
        return context.to_response()
    return jsonify(_serialise_rates(context)), 200
