"""JSON-facing wrappers around the compliance document pipeline."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from typing import Any

from uaetax.backend.app.errors import InvalidInput, ValidationFailure
from uaetax.backend.app.models import (
    BuildFailure,
    ComplianceDocument,
    DocumentRequest,
    DocumentVerificationRequest,
    QrRenderRequest,
    ValidationIssue,
)
from uaetax.backend.config.rate_config import (
    TaxRateConfig,
    load_rate_configuration,
    rate_configuration_for,
)

from .calculation_service import parse_request
from .compliance_service import build_compliance_document, verify_compliance_document
from .qr_encoder import render_qr_svg


def _document_configuration(request: DocumentRequest) -> TaxRateConfig:
    if request.version is not None:
        return load_rate_configuration(request.version)
    return rate_configuration_for(request.invoice.issue_date)


def _serialise_issues(issues: tuple[ValidationIssue, ...]) -> list[dict[str, Any]]:
    return [issue.model_dump(mode="json") for issue in issues]


def serialise_document(document: ComplianceDocument) -> dict[str, Any]:
    """Return a JSON-ready view of ``document`` with the XML base64-encoded."""

    return {
        "valid": document.valid,
        "stage": document.stage.value,
        "xml": base64.b64encode(document.xml).decode("ascii"),
        "xml_hash": document.xml_hash,
        "qr_payload": document.qr_payload,
        "issues": _serialise_issues(document.issues),
        "invoice": document.invoice.model_dump(mode="json"),
    }


def create_document_payload(payload: Mapping[str, Any] | DocumentRequest) -> dict[str, Any]:
    """Build a compliance document for a raw request payload."""

    request = parse_request(DocumentRequest, payload)
    config = _document_configuration(request)

    document = build_compliance_document(request.invoice, config)
    if isinstance(document, BuildFailure):
        raise ValidationFailure(document.issues)
    return serialise_document(document)


def verify_document_payload(
    payload: Mapping[str, Any] | DocumentVerificationRequest,
) -> dict[str, Any]:
    """Check previously issued XML, hash and QR payload against their invoice."""

    request = parse_request(DocumentVerificationRequest, payload)
    config = _document_configuration(request)

    try:
        xml = base64.b64decode(request.xml.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise InvalidInput("Field 'xml' must be base64-encoded", field="xml") from exc

    result = verify_compliance_document(
        request.invoice, xml, request.xml_hash, request.qr_payload, config
    )
    if isinstance(result, BuildFailure):
        raise ValidationFailure(result.issues)
    return {
        "valid": result.valid,
        "issues": _serialise_issues(result.issues),
        "config_version": config.version,
    }


def render_qr_payload(payload: Mapping[str, Any] | QrRenderRequest) -> bytes:
    """Render the QR payload in a raw request as SVG bytes."""

    request = parse_request(QrRenderRequest, payload)
    return render_qr_svg(request.qr_payload)


__all__ = [
    "create_document_payload",
    "render_qr_payload",
    "serialise_document",
    "verify_document_payload",
]
