"""Deterministic UBL 2.1 rendering of invoice models.

Output is Canonical XML 1.0 (UTF-8, no XML declaration, sorted namespace
declarations and attributes), so an unchanged model always renders to the
same bytes. Nothing in this module reads the clock: every date and time
comes from the model.
"""

from __future__ import annotations

import re
from decimal import Decimal

from lxml import etree

from uaetax.backend.app.errors import EncodingError
from uaetax.backend.app.models import (
    InvoiceLine,
    InvoiceModel,
    InvoiceTypeCode,
    Party,
    VatBreakdownEntry,
)

from .calculators import format_amount, format_percentage

INVOICE_NS = "urn:oasis:names:specification:ubl:schema:xsd:Invoice-2"
CREDIT_NOTE_NS = "urn:oasis:names:specification:ubl:schema:xsd:CreditNote-2"
CAC = "urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2"
CBC = "urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2"

UBL_VERSION = "2.1"
CUSTOMIZATION_ID = "urn:cen.eu:en16931:2017"
TAX_SCHEME_ID = "VAT"

# Code points outside the XML 1.0 Char production.
_ILLEGAL_XML_CHARS = re.compile(
    "[^\u0009\u000a\u000d\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


def _cbc(name: str) -> str:
    return f"{{{CBC}}}{name}"


def _cac(name: str) -> str:
    return f"{{{CAC}}}{name}"


def _check_text(value: str, field: str) -> str:
    match = _ILLEGAL_XML_CHARS.search(value)
    if match is not None:
        raise EncodingError(
            f"{field} contains U+{ord(match.group()):04X}, which XML cannot represent"
        )
    return value


def _text(
    parent: etree._Element, tag: str, value: str, field: str, **attributes: str
) -> etree._Element:
    element = etree.SubElement(parent, tag)
    element.text = _check_text(value, field)
    for key, attribute in attributes.items():
        element.set(key, _check_text(attribute, field))
    return element


def _amount(parent: etree._Element, name: str, value: Decimal, currency: str) -> None:
    _text(parent, _cbc(name), format_amount(value), name, currencyID=currency)


def format_quantity(value: Decimal) -> str:
    """Render quantities without exponent or trailing zeros (``2.500`` -> ``2.5``)."""

    return format(value.normalize(), "f")


def format_price(value: Decimal) -> str:
    """Render unit prices with at least two decimals, keeping finer precision."""

    exponent = value.normalize().as_tuple().exponent
    if isinstance(exponent, int) and exponent < -2:
        return format(value.normalize(), "f")
    return format_amount(value)


def _tax_scheme(parent: etree._Element) -> None:
    scheme = etree.SubElement(parent, _cac("TaxScheme"))
    _text(scheme, _cbc("ID"), TAX_SCHEME_ID, "TaxScheme.ID")


def _party(parent: etree._Element, wrapper: str, party: Party, field: str) -> None:
    container = etree.SubElement(parent, _cac(wrapper))
    node = etree.SubElement(container, _cac("Party"))

    party_name = etree.SubElement(node, _cac("PartyName"))
    _text(party_name, _cbc("Name"), party.name, f"{field}.name")

    address = party.address
    postal = etree.SubElement(node, _cac("PostalAddress"))
    if address.street:
        _text(postal, _cbc("StreetName"), address.street, f"{field}.address.street")
    if address.city:
        _text(postal, _cbc("CityName"), address.city, f"{field}.address.city")
    if address.postal_code:
        _text(
            postal, _cbc("PostalZone"), address.postal_code, f"{field}.address.postal_code"
        )
    country = etree.SubElement(postal, _cac("Country"))
    _text(
        country, _cbc("IdentificationCode"), address.country, f"{field}.address.country"
    )

    if party.trn:
        tax_scheme = etree.SubElement(node, _cac("PartyTaxScheme"))
        _text(tax_scheme, _cbc("CompanyID"), party.trn, f"{field}.trn", schemeID="TRN")
        _tax_scheme(tax_scheme)

    legal = etree.SubElement(node, _cac("PartyLegalEntity"))
    _text(legal, _cbc("RegistrationName"), party.name, f"{field}.name")


def _tax_category(
    parent: etree._Element, tag: str, entry: VatBreakdownEntry | InvoiceLine
) -> None:
    if isinstance(entry, VatBreakdownEntry):
        code, rate, reason = entry.category_code, entry.rate, entry.exemption_reason
    else:
        code, rate, reason = entry.vat_category_code, entry.vat_rate, None

    category = etree.SubElement(parent, _cac(tag))
    _text(category, _cbc("ID"), code.value, "TaxCategory.ID", schemeID="UNCL5305")
    _text(category, _cbc("Percent"), format_percentage(rate), "TaxCategory.Percent")
    if reason:
        _text(category, _cbc("TaxExemptionReason"), reason, "TaxCategory.TaxExemptionReason")
    _tax_scheme(category)


def _header(root: etree._Element, model: InvoiceModel, credit_note: bool) -> None:
    _text(root, _cbc("UBLVersionID"), UBL_VERSION, "UBLVersionID")
    _text(root, _cbc("CustomizationID"), CUSTOMIZATION_ID, "CustomizationID")
    _text(root, _cbc("ID"), model.invoice_number, "invoice_number")
    _text(root, _cbc("IssueDate"), model.issue_date.isoformat(), "issue_date")
    _text(root, _cbc("IssueTime"), model.issue_time.strftime("%H:%M:%S"), "issue_time")
    if model.due_date is not None and not credit_note:
        _text(root, _cbc("DueDate"), model.due_date.isoformat(), "due_date")

    type_tag = "CreditNoteTypeCode" if credit_note else "InvoiceTypeCode"
    _text(
        root,
        _cbc(type_tag),
        model.invoice_type_code.value,
        "invoice_type_code",
        listID="UNCL1001",
    )
    if model.note:
        _text(root, _cbc("Note"), model.note, "note")
    _text(root, _cbc("DocumentCurrencyCode"), model.currency_code, "currency_code")
    _text(root, _cbc("TaxCurrencyCode"), model.currency_code, "currency_code")

    reference = model.billing_reference
    if reference is not None:
        billing = etree.SubElement(root, _cac("BillingReference"))
        document = etree.SubElement(billing, _cac("InvoiceDocumentReference"))
        _text(document, _cbc("ID"), reference.invoice_number, "billing_reference.invoice_number")
        _text(
            document,
            _cbc("IssueDate"),
            reference.issue_date.isoformat(),
            "billing_reference.issue_date",
        )
        _text(
            document,
            _cbc("DocumentDescription"),
            f"SHA-256:{reference.xml_hash}",
            "billing_reference.xml_hash",
        )


def _tax_total(root: etree._Element, model: InvoiceModel) -> None:
    currency = model.currency_code
    tax_total = etree.SubElement(root, _cac("TaxTotal"))
    _amount(tax_total, "TaxAmount", model.tax_total, currency)
    for entry in model.vat_breakdown:
        subtotal = etree.SubElement(tax_total, _cac("TaxSubtotal"))
        _amount(subtotal, "TaxableAmount", entry.taxable_amount, currency)
        _amount(subtotal, "TaxAmount", entry.tax_amount, currency)
        _tax_category(subtotal, "TaxCategory", entry)


def _monetary_total(root: etree._Element, model: InvoiceModel) -> None:
    currency = model.currency_code
    totals = model.totals
    monetary = etree.SubElement(root, _cac("LegalMonetaryTotal"))
    _amount(monetary, "LineExtensionAmount", totals.line_extension, currency)
    _amount(monetary, "TaxExclusiveAmount", totals.tax_exclusive, currency)
    _amount(monetary, "TaxInclusiveAmount", totals.tax_inclusive, currency)
    _amount(monetary, "PayableAmount", totals.payable, currency)


def _lines(root: etree._Element, model: InvoiceModel, credit_note: bool) -> None:
    currency = model.currency_code
    line_tag = "CreditNoteLine" if credit_note else "InvoiceLine"
    quantity_tag = "CreditedQuantity" if credit_note else "InvoicedQuantity"

    for index, line in enumerate(model.lines):
        scope = f"lines[{index}]"
        node = etree.SubElement(root, _cac(line_tag))
        _text(node, _cbc("ID"), line.id, f"{scope}.id")
        _text(
            node,
            _cbc(quantity_tag),
            format_quantity(line.quantity),
            f"{scope}.quantity",
            unitCode=line.unit_code,
        )
        _amount(node, "LineExtensionAmount", line.line_total, currency)

        item = etree.SubElement(node, _cac("Item"))
        _text(item, _cbc("Name"), line.description, f"{scope}.description")
        _tax_category(item, "ClassifiedTaxCategory", line)

        price = etree.SubElement(node, _cac("Price"))
        _text(
            price,
            _cbc("PriceAmount"),
            format_price(line.unit_price),
            f"{scope}.unit_price",
            currencyID=currency,
        )


def build_document_tree(model: InvoiceModel) -> etree._Element:
    """Return the UBL element tree for ``model`` in schema order."""

    credit_note = model.invoice_type_code is InvoiceTypeCode.CREDIT_NOTE
    namespace = CREDIT_NOTE_NS if credit_note else INVOICE_NS
    root_tag = "CreditNote" if credit_note else "Invoice"
    root = etree.Element(
        f"{{{namespace}}}{root_tag}", nsmap={None: namespace, "cac": CAC, "cbc": CBC}
    )

    _header(root, model, credit_note)
    _party(root, "AccountingSupplierParty", model.supplier, "supplier")
    _party(root, "AccountingCustomerParty", model.customer, "customer")
    _tax_total(root, model)
    _monetary_total(root, model)
    _lines(root, model, credit_note)
    return root


def serialize(model: InvoiceModel) -> bytes:
    """Render ``model`` as canonical UBL 2.1 XML bytes."""

    root = build_document_tree(model)
    return etree.tostring(root, method="c14n")


def parse(xml: bytes) -> etree._Element:
    """Parse UBL bytes without resolving entities or touching the network."""

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    try:
        return etree.fromstring(xml, parser=parser)
    except etree.XMLSyntaxError as error:
        raise EncodingError(f"XML is not well-formed: {error}") from error


__all__ = [
    "CAC",
    "CBC",
    "CREDIT_NOTE_NS",
    "INVOICE_NS",
    "build_document_tree",
    "format_price",
    "format_quantity",
    "parse",
    "serialize",
]
