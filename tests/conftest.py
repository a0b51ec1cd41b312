"""Test configuration utilities and shared fixtures."""

import sys
from datetime import date, time
from decimal import Decimal
from pathlib import Path
from shutil import copy2

# Make ``src`` importable when pytest runs without an editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from uaetax.backend.app import create_app  # noqa: E402
from uaetax.backend.app.models import (  # noqa: E402
    Address,
    InvoiceLineRequest,
    InvoiceRequest,
    Party,
)
from uaetax.backend.config import rate_config  # noqa: E402
from uaetax.backend.config.rate_config import (  # noqa: E402
    TaxRateConfig,
    load_rate_configuration,
)

SUPPLIER_TRN = "100000000000003"
CUSTOMER_TRN = "100000000000101"


@pytest.fixture()
def app() -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app()
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()


@pytest.fixture()
def rates() -> TaxRateConfig:
    """The corporate tax era rate table."""

    return load_rate_configuration("2023.1")


@pytest.fixture()
def invoice_request() -> InvoiceRequest:
    """A two-line B2B invoice mixing standard-rated and zero-rated supplies."""

    return InvoiceRequest(
        invoice_number="INV-2024-0001",
        issue_date=date(2024, 3, 15),
        issue_time=time(9, 30, 0),
        due_date=date(2024, 4, 14),
        supplier=Party(
            name="Falcon Trading LLC",
            trn=SUPPLIER_TRN,
            address=Address(street="Sheikh Zayed Road", city="Dubai"),
        ),
        customer=Party(
            name="Oasis Retail FZE",
            trn=CUSTOMER_TRN,
            address=Address(city="Abu Dhabi"),
        ),
        lines=(
            InvoiceLineRequest(
                id="1",
                description="Consulting services",
                quantity=Decimal("10"),
                unit_price=Decimal("150.00"),
                vat_category_code="S",
            ),
            InvoiceLineRequest(
                id="2",
                description="Export freight",
                quantity=Decimal("1"),
                unit_price=Decimal("500.00"),
                vat_category_code="Z",
            ),
        ),
    )


@pytest.fixture()
def invoice_payload(invoice_request: InvoiceRequest) -> dict:
    """JSON form of ``invoice_request`` as the HTTP API receives it."""

    return invoice_request.model_dump(mode="json")


@pytest.fixture()
def isolated_config_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Return a temporary configuration directory patched into ``rate_config``."""

    original_directory = rate_config.CONFIG_DIRECTORY
    for filename in ("2018.1.yaml", "2023.1.yaml", "manifest.yaml"):
        copy2(original_directory / filename, tmp_path / filename)

    monkeypatch.setattr(rate_config, "CONFIG_DIRECTORY", tmp_path)
    monkeypatch.setattr(rate_config, "MANIFEST_FILE", tmp_path / "manifest.yaml")
    rate_config.load_rate_configuration.cache_clear()
    rate_config.load_manifest.cache_clear()

    yield tmp_path

    rate_config.load_rate_configuration.cache_clear()
    rate_config.load_manifest.cache_clear()
