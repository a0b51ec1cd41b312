"""Configuration loader wrapping the shared schema models."""

from __future__ import annotations

from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import ValidationError

from .schema import (
    VAT_CATEGORY_CODES,
    ConfigurationError,
    CorporateTaxConfig,
    QfzpConfig,
    RateManifest,
    RateManifestEntry,
    SmallBusinessReliefConfig,
    TaxRateConfig,
    VatCategoryConfig,
    VatConfig,
    VatRegistrationConfig,
)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
MANIFEST_FILE = CONFIG_DIRECTORY / "manifest.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


@lru_cache(maxsize=1)
def load_manifest() -> RateManifest:
    """Load and cache the configuration manifest."""

    if not MANIFEST_FILE.exists():
        raise ConfigurationError("Configuration manifest not found")

    raw_manifest = _load_yaml(MANIFEST_FILE)

    try:
        return RateManifest.model_validate(raw_manifest)
    except ValidationError as error:
        raise ConfigurationError(f"Manifest validation failed: {error}") from error


def manifest_entries() -> Sequence[RateManifestEntry]:
    """Expose the configured manifest entries."""

    return load_manifest().versions


@lru_cache(maxsize=8)
def load_rate_configuration(version: str) -> TaxRateConfig:
    """Load the rate table identified by ``version`` from disk."""

    try:
        manifest_entry = load_manifest().get_entry(version)
    except KeyError as exc:
        raise FileNotFoundError(
            f"Rate configuration {version} not declared in manifest"
        ) from exc

    config_file = CONFIG_DIRECTORY / manifest_entry.resolved_filename
    if not config_file.exists():
        raise ConfigurationError(
            f"Configuration file for version {version} missing: {config_file.name}"
        )

    raw_config = _load_yaml(config_file)
    raw_config.setdefault("version", version)
    raw_config.setdefault("effective_date", manifest_entry.effective_date)

    try:
        configuration = TaxRateConfig.model_validate(raw_config)
    except ValidationError as error:
        raise ConfigurationError(
            f"Configuration validation failed for {version}: {error}"
        ) from error

    if configuration.version != version:
        raise ConfigurationError(
            f"Configuration version mismatch: expected {version}, found {configuration.version}"
        )
    if configuration.effective_date != manifest_entry.effective_date:
        raise ConfigurationError(
            f"Configuration {version} effective date does not match the manifest"
        )

    return configuration


def rate_configuration_for(day: date) -> TaxRateConfig:
    """Return the rate table in force on ``day``."""

    try:
        entry = load_manifest().entry_for_date(day)
    except KeyError as exc:
        raise FileNotFoundError(
            f"No rate configuration in force on {day.isoformat()}"
        ) from exc
    return load_rate_configuration(entry.version)


def available_versions() -> Sequence[str]:
    """Return the rate table versions declared in the manifest, oldest first."""

    return load_manifest().supported_versions


def current_rate_configuration() -> TaxRateConfig:
    """Return the most recent rate table declared in the manifest."""

    versions = available_versions()
    if not versions:
        raise ConfigurationError("Configuration manifest declares no rate tables")
    return load_rate_configuration(versions[-1])


__all__ = [
    "CONFIG_DIRECTORY",
    "ConfigurationError",
    "CorporateTaxConfig",
    "MANIFEST_FILE",
    "QfzpConfig",
    "RateManifest",
    "RateManifestEntry",
    "SmallBusinessReliefConfig",
    "TaxRateConfig",
    "VAT_CATEGORY_CODES",
    "VatCategoryConfig",
    "VatConfig",
    "VatRegistrationConfig",
    "available_versions",
    "current_rate_configuration",
    "load_manifest",
    "load_rate_configuration",
    "manifest_entries",
    "rate_configuration_for",
]
