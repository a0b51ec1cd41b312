"""REST endpoints producing and checking compliance documents."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, Response, request

from uaetax.backend.app.services.document_service import (
    create_document_payload,
    render_qr_payload,
    verify_document_payload,
)
from uaetax.backend.services import (
    build_json_response,
    build_svg_response,
    parse_json_payload,
)

blueprint = Blueprint("documents", __name__, url_prefix="/api/v1/documents")


@blueprint.post("")
def create_document() -> tuple[Any, int]:
    """Finalise an invoice into UBL XML, its hash and the QR payload."""

    payload = parse_json_payload(request)
    return build_json_response(create_document_payload(payload), status=201)


@blueprint.post("/verify")
def verify_document() -> tuple[Any, int]:
    """Re-validate previously issued artefacts against their invoice."""

    payload = parse_json_payload(request)
    return build_json_response(verify_document_payload(payload))


@blueprint.post("/qr.svg")
def render_qr() -> Response:
    payload = parse_json_payload(request)
    return build_svg_response(render_qr_payload(payload))
