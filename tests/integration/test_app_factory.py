"""Start-up behaviour of the application factory."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from uaetax.backend.app import create_app
from uaetax.backend.config.rate_config import ConfigurationError


def _rewrite(path: Path, update) -> None:
    data = yaml.safe_load(path.read_text())
    update(data)
    path.write_text(yaml.safe_dump(data, sort_keys=False))


def test_create_app_refuses_out_of_range_rate(
    isolated_config_directory: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("UAETAX_ALLOWED_ORIGINS", "https://app.example.com")
    _rewrite(
        isolated_config_directory / "2023.1.yaml",
        lambda data: data["corporate_tax"].update(standard_rate=-0.09),
    )

    with pytest.raises(ConfigurationError, match="2023.1"):
        create_app()


def test_create_app_refuses_inconsistent_thresholds(
    isolated_config_directory: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("UAETAX_ALLOWED_ORIGINS", "https://app.example.com")
    _rewrite(
        isolated_config_directory / "2018.1.yaml",
        lambda data: data["vat"]["registration"].update(voluntary_threshold=500000),
    )

    with pytest.raises(ConfigurationError, match="voluntary threshold"):
        create_app()


def test_create_app_refuses_missing_table(
    isolated_config_directory: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("UAETAX_ALLOWED_ORIGINS", "https://app.example.com")
    (isolated_config_directory / "2018.1.yaml").unlink()

    with pytest.raises(ConfigurationError, match="missing"):
        create_app()


def test_create_app_loads_shipped_tables(
    isolated_config_directory: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("UAETAX_ALLOWED_ORIGINS", "https://app.example.com")

    app = create_app()

    assert "calculations" in app.blueprints
