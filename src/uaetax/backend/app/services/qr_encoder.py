"""Tag-Length-Value encoding of the compliance QR payload."""

from __future__ import annotations

import base64
import binascii
import struct
from collections.abc import Sequence
from io import BytesIO

import qrcode
from qrcode.image.svg import SvgPathImage

from uaetax.backend.app.errors import EncodingError
from uaetax.backend.app.models import InvoiceModel, QrField, QrTag

from .calculators import format_amount

MAX_VALUE_LENGTH = 255


def _tlv(tag: int, value: bytes) -> bytes:
    """Encode a single TLV field with 1-byte tag and 1-byte length."""

    if not 0 <= tag <= 255:
        raise EncodingError(f"QR tag {tag} does not fit in one byte")
    length = len(value)
    if length > MAX_VALUE_LENGTH:
        raise EncodingError(
            f"QR field {tag} is {length} bytes long (max {MAX_VALUE_LENGTH})"
        )
    return struct.pack("BB", tag, length) + value


def text_field(tag: QrTag, text: str) -> QrField:
    return QrField(int(tag), text.encode("utf-8"))


def encode_qr(fields: Sequence[QrField]) -> str:
    """Concatenate ``fields`` as TLV records and return them base64-encoded."""

    return base64.b64encode(b"".join(_tlv(tag, value) for tag, value in fields)).decode(
        "ascii"
    )


def decode_qr(payload: str) -> list[QrField]:
    """Recover the ordered field list from a base64 TLV ``payload``."""

    try:
        raw = base64.b64decode(payload.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as error:
        raise EncodingError("QR payload is not valid base64") from error

    fields: list[QrField] = []
    offset = 0
    while offset < len(raw):
        if offset + 2 > len(raw):
            raise EncodingError(f"QR payload truncated in the header at byte {offset}")
        tag, length = struct.unpack_from("BB", raw, offset)
        offset += 2
        if offset + length > len(raw):
            raise EncodingError(f"QR field {tag} declares {length} bytes but is truncated")
        fields.append(QrField(tag, raw[offset : offset + length]))
        offset += length
    return fields


def build_qr_fields(model: InvoiceModel, xml_hash: str) -> list[QrField]:
    """Return the compliance fields for ``model`` in their fixed tag order."""

    return [
        text_field(QrTag.SELLER_NAME, model.supplier.name),
        text_field(QrTag.SELLER_TRN, model.supplier.trn or ""),
        text_field(QrTag.TIMESTAMP, model.issue_timestamp),
        text_field(QrTag.INVOICE_TOTAL, format_amount(model.totals.tax_inclusive)),
        text_field(QrTag.VAT_TOTAL, format_amount(model.tax_total)),
        text_field(QrTag.XML_HASH, xml_hash),
    ]


def qr_text_values(fields: Sequence[QrField]) -> dict[int, str]:
    """Decode each field value as UTF-8 text keyed by tag."""

    values: dict[int, str] = {}
    for tag, value in fields:
        try:
            values[tag] = value.decode("utf-8")
        except UnicodeDecodeError as error:
            raise EncodingError(f"QR field {tag} is not valid UTF-8") from error
    return values


def render_qr_svg(payload: str) -> bytes:
    """Render ``payload`` as an SVG QR code after checking it decodes."""

    decode_qr(payload)

    code = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        border=1,
        image_factory=SvgPathImage,
    )
    code.add_data(payload)
    code.make(fit=True)

    stream = BytesIO()
    code.make_image().save(stream)
    return stream.getvalue()


__all__ = [
    "MAX_VALUE_LENGTH",
    "build_qr_fields",
    "decode_qr",
    "encode_qr",
    "qr_text_values",
    "render_qr_svg",
    "text_field",
]
