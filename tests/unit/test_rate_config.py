"""Unit coverage for rate table discovery and parsing utilities."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from uaetax.backend.config import rate_config
from uaetax.backend.config.rate_config import ConfigurationError


def _declare(directory: Path, entry: dict[str, object]) -> None:
    manifest_path = directory / "manifest.yaml"
    manifest = yaml.safe_load(manifest_path.read_text())
    manifest["versions"].append(entry)
    manifest_path.write_text(yaml.safe_dump(manifest, sort_keys=False))
    rate_config.load_manifest.cache_clear()


def test_default_rates_match_published_values() -> None:
    config = rate_config.load_rate_configuration("2023.1")

    assert config.cit_standard_rate == Decimal("0.09")
    assert config.small_business_relief_threshold == Decimal("375000")
    assert config.small_business_relief_eligibility_cap == Decimal("3000000")
    assert config.qfzp_rate == Decimal("0")
    assert config.qfzp_eligible_income_cap == Decimal("3000000")
    assert config.vat_standard_rate == Decimal("0.05")
    assert config.vat_category_codes == ("S", "Z", "E", "O")
    assert config.currency_code == "AED"


def test_loaded_tables_are_cached_and_frozen() -> None:
    config = rate_config.load_rate_configuration("2023.1")

    assert rate_config.load_rate_configuration("2023.1") is config
    with pytest.raises(ValidationError):
        config.version = "tampered"  # type: ignore[misc]


@pytest.mark.parametrize(
    ("day", "version"),
    [
        (date(2018, 1, 1), "2018.1"),
        (date(2023, 5, 31), "2018.1"),
        (date(2023, 6, 1), "2023.1"),
        (date(2030, 1, 1), "2023.1"),
    ],
)
def test_rate_configuration_for_effective_date(day: date, version: str) -> None:
    assert rate_config.rate_configuration_for(day).version == version


def test_dates_before_first_table_are_unknown() -> None:
    with pytest.raises(FileNotFoundError):
        rate_config.rate_configuration_for(date(2017, 12, 31))


def test_unknown_version_is_not_found() -> None:
    with pytest.raises(FileNotFoundError):
        rate_config.load_rate_configuration("1999.1")


def test_current_configuration_is_latest() -> None:
    assert rate_config.available_versions() == ("2018.1", "2023.1")
    assert rate_config.current_rate_configuration().version == "2023.1"


def test_new_version_is_discovered_from_manifest(isolated_config_directory: Path) -> None:
    raw = yaml.safe_load((isolated_config_directory / "2023.1.yaml").read_text())
    raw.update({"version": "2026.1", "effective_date": date(2026, 1, 1)})
    raw["corporate_tax"]["standard_rate"] = 0.15
    (isolated_config_directory / "2026.1.yaml").write_text(yaml.safe_dump(raw))
    _declare(isolated_config_directory, {"version": "2026.1", "effective_date": date(2026, 1, 1)})

    assert rate_config.available_versions() == ("2018.1", "2023.1", "2026.1")
    assert rate_config.rate_configuration_for(date(2026, 3, 1)).cit_standard_rate == Decimal(
        "0.15"
    )


def test_missing_rate_file_is_a_configuration_error(isolated_config_directory: Path) -> None:
    _declare(isolated_config_directory, {"version": "2030.1", "effective_date": date(2030, 1, 1)})

    with pytest.raises(ConfigurationError, match="missing"):
        rate_config.load_rate_configuration("2030.1")


def test_out_of_range_rate_is_rejected_at_load(isolated_config_directory: Path) -> None:
    path = isolated_config_directory / "2023.1.yaml"
    raw = yaml.safe_load(path.read_text())
    raw["vat"]["standard_rate"] = 5
    path.write_text(yaml.safe_dump(raw))

    with pytest.raises(ConfigurationError, match="VAT standard rate"):
        rate_config.load_rate_configuration("2023.1")


def test_incomplete_category_set_is_rejected(isolated_config_directory: Path) -> None:
    path = isolated_config_directory / "2023.1.yaml"
    raw = yaml.safe_load(path.read_text())
    raw["vat"]["categories"] = raw["vat"]["categories"][:3]
    path.write_text(yaml.safe_dump(raw))

    with pytest.raises(ConfigurationError, match="exactly once"):
        rate_config.load_rate_configuration("2023.1")


def test_effective_date_must_match_manifest(isolated_config_directory: Path) -> None:
    path = isolated_config_directory / "2023.1.yaml"
    raw = yaml.safe_load(path.read_text())
    raw["effective_date"] = date(2023, 1, 1)
    path.write_text(yaml.safe_dump(raw))

    with pytest.raises(ConfigurationError, match="effective date"):
        rate_config.load_rate_configuration("2023.1")


def test_duplicate_manifest_versions_are_rejected(isolated_config_directory: Path) -> None:
    _declare(isolated_config_directory, {"version": "2023.1", "effective_date": date(2025, 1, 1)})

    with pytest.raises(ConfigurationError, match="Duplicate version"):
        rate_config.load_manifest()
