"""Run invoices through the compliance pipeline.

Each finalised invoice moves forward through build, serialization, hashing,
QR encoding and validation. Encoding problems propagate as
``EncodingError``; business-rule problems are returned as ``BuildFailure``
so the caller receives every issue at once.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from time import perf_counter

from uaetax.backend.app.models import (
    BuildFailure,
    ComplianceDocument,
    DocumentStage,
    InvoiceModel,
    InvoiceRequest,
    ValidationResult,
)
from uaetax.backend.config.rate_config import TaxRateConfig

from .document_validator import validate
from .integrity import hash_xml
from .invoice_builder import build_credit_note, build_invoice
from .qr_encoder import build_qr_fields, encode_qr
from .ubl_serializer import serialize

_LOGGER = logging.getLogger(__name__)


def _profiling_enabled() -> bool:
    """Return ``True`` when pipeline stage timings should be captured."""

    flag = os.getenv("UAETAX_PROFILE_DOCUMENTS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def _advance(invoice_number: str, stage: DocumentStage) -> DocumentStage:
    _LOGGER.debug("Invoice %s reached stage %s", invoice_number, stage.value)
    return stage


def finalize_document(model: InvoiceModel, config: TaxRateConfig) -> ComplianceDocument:
    """Serialize, hash, encode and validate a built ``model``."""

    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    number = model.invoice_number
    _advance(number, DocumentStage.BUILT)

    with _profile_section("serialize", timings):
        xml = serialize(model)
    _advance(number, DocumentStage.SERIALIZED)

    with _profile_section("hash", timings):
        xml_hash = hash_xml(xml)
    _advance(number, DocumentStage.HASHED)

    with _profile_section("encode_qr", timings):
        qr_payload = encode_qr(build_qr_fields(model, xml_hash))
    _advance(number, DocumentStage.ENCODED)

    with _profile_section("validate", timings):
        result = validate(model, xml, xml_hash, qr_payload, config)
    stage = _advance(
        number, DocumentStage.VALID if result.valid else DocumentStage.INVALID
    )

    if timings is not None:
        _LOGGER.debug(
            "finalize_document timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    if result.valid:
        _LOGGER.info(
            "Finalised invoice %s (%d line(s), rates %s)",
            number,
            len(model.lines),
            model.config_version,
        )
    else:
        _LOGGER.warning(
            "Invoice %s produced an invalid document with %d error(s)",
            number,
            len(result.errors),
        )

    return ComplianceDocument(
        invoice=model,
        xml=xml,
        xml_hash=xml_hash,
        qr_payload=qr_payload,
        valid=result.valid,
        issues=result.issues,
        stage=stage,
    )


def build_compliance_document(
    request: InvoiceRequest, config: TaxRateConfig
) -> ComplianceDocument | BuildFailure:
    """Build ``request`` and produce its XML, hash and QR payload."""

    built = build_invoice(request, config)
    if isinstance(built, BuildFailure):
        return built
    return finalize_document(built, config)


def build_credit_note_document(
    request: InvoiceRequest, original: ComplianceDocument, config: TaxRateConfig
) -> ComplianceDocument | BuildFailure:
    """Produce a credit note document amending ``original``."""

    built = build_credit_note(request, original, config)
    if isinstance(built, BuildFailure):
        return built
    return finalize_document(built, config)


def verify_compliance_document(
    request: InvoiceRequest,
    xml: bytes,
    xml_hash: str,
    qr_payload: str,
    config: TaxRateConfig,
) -> ValidationResult | BuildFailure:
    """Rebuild ``request`` and check previously issued artefacts against it."""

    built = build_invoice(request, config)
    if isinstance(built, BuildFailure):
        return built
    return validate(built, xml, xml_hash, qr_payload, config)


__all__ = [
    "build_compliance_document",
    "build_credit_note_document",
    "finalize_document",
    "verify_compliance_document",
]
