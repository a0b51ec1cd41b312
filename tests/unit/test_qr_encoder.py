"""Unit tests for the TLV QR payload and integrity hash."""

from __future__ import annotations

import base64

import pytest

from uaetax.backend.app.errors import EncodingError
from uaetax.backend.app.models import InvoiceModel, InvoiceRequest, QrField, QrTag
from uaetax.backend.app.services.integrity import hash_xml, verify_hash
from uaetax.backend.app.services.invoice_builder import build_invoice
from uaetax.backend.app.services.qr_encoder import (
    build_qr_fields,
    decode_qr,
    encode_qr,
    qr_text_values,
    render_qr_svg,
    text_field,
)
from uaetax.backend.app.services.ubl_serializer import serialize
from uaetax.backend.config.rate_config import TaxRateConfig


def test_hash_is_lowercase_sha256_hex() -> None:
    digest = hash_xml(b"abc")

    assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    assert verify_hash(b"abc", digest)
    assert not verify_hash(b"abd", digest)
    assert not verify_hash(b"abc", digest.upper())


def test_encoding_is_tag_length_value() -> None:
    payload = encode_qr([QrField(1, b"AB"), QrField(2, b"")])

    assert base64.b64decode(payload) == b"\x01\x02AB\x02\x00"


def test_round_trip_recovers_ordered_fields(
    invoice_request: InvoiceRequest, rates: TaxRateConfig
) -> None:
    model = build_invoice(invoice_request, rates)
    assert isinstance(model, InvoiceModel)
    xml_hash = hash_xml(serialize(model))
    fields = build_qr_fields(model, xml_hash)

    decoded = decode_qr(encode_qr(fields))

    assert decoded == fields
    assert [field.tag for field in decoded] == [int(tag) for tag in QrTag]
    values = qr_text_values(decoded)
    assert values[QrTag.SELLER_NAME] == "Falcon Trading LLC"
    assert values[QrTag.SELLER_TRN] == "100000000000003"
    assert values[QrTag.TIMESTAMP] == "2024-03-15T09:30:00Z"
    assert values[QrTag.INVOICE_TOTAL] == "2075.00"
    assert values[QrTag.VAT_TOTAL] == "75.00"
    assert values[QrTag.XML_HASH] == xml_hash


def test_multibyte_values_count_bytes_not_characters() -> None:
    name = "الصقر"
    fields = [text_field(QrTag.SELLER_NAME, name)]

    raw = base64.b64decode(encode_qr(fields))

    assert raw[1] == len(name.encode("utf-8"))
    assert qr_text_values(decode_qr(encode_qr(fields)))[1] == name


def test_value_limit_is_255_bytes() -> None:
    assert decode_qr(encode_qr([QrField(1, b"x" * 255)]))[0].value == b"x" * 255

    with pytest.raises(EncodingError, match="256 bytes"):
        encode_qr([QrField(1, b"x" * 256)])


@pytest.mark.parametrize(
    "payload",
    [
        "not base64!",
        base64.b64encode(b"\x01").decode("ascii"),
        base64.b64encode(b"\x01\x05abc").decode("ascii"),
    ],
)
def test_malformed_payloads_raise(payload: str) -> None:
    with pytest.raises(EncodingError):
        decode_qr(payload)


def test_render_qr_svg_returns_svg_document() -> None:
    payload = encode_qr([text_field(QrTag.SELLER_NAME, "Falcon Trading LLC")])

    image = render_qr_svg(payload)

    assert b"<svg" in image
    assert image == render_qr_svg(payload)


def test_render_qr_svg_rejects_invalid_payload() -> None:
    with pytest.raises(EncodingError):
        render_qr_svg("%%%")
