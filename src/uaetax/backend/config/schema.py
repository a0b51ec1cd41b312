"""Pydantic models describing the versioned tax rate configuration schema."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)

VAT_CATEGORY_CODES: tuple[str, ...] = ("S", "Z", "E", "O")


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


def _require_rate(value: Decimal, label: str) -> None:
    if value < 0 or value > 1:
        raise ConfigurationError(f"{label} must be between 0 and 1")


def _require_amount(value: Decimal, label: str) -> None:
    if value < 0:
        raise ConfigurationError(f"{label} must be non-negative")


class SmallBusinessReliefConfig(ImmutableModel):
    """Small Business Relief band and eligibility ceiling."""

    threshold: Decimal
    eligibility_cap: Decimal

    @model_validator(mode="after")
    def _validate_amounts(self) -> SmallBusinessReliefConfig:
        _require_amount(self.threshold, "Small Business Relief threshold")
        _require_amount(self.eligibility_cap, "Small Business Relief eligibility cap")
        return self


class QfzpConfig(ImmutableModel):
    """Qualifying Free Zone Person rate table."""

    rate: Decimal
    eligible_income_cap: Decimal

    @model_validator(mode="after")
    def _validate_values(self) -> QfzpConfig:
        _require_rate(self.rate, "QFZP rate")
        _require_amount(self.eligible_income_cap, "QFZP eligible income cap")
        return self


class CorporateTaxConfig(ImmutableModel):
    """Corporate Income Tax parameters."""

    standard_rate: Decimal
    small_business_relief: SmallBusinessReliefConfig
    qfzp: QfzpConfig

    @model_validator(mode="after")
    def _validate_rate(self) -> CorporateTaxConfig:
        _require_rate(self.standard_rate, "CIT standard rate")
        return self


class VatRegistrationConfig(ImmutableModel):
    """Annual taxable supply thresholds for VAT registration."""

    mandatory_threshold: Decimal
    voluntary_threshold: Decimal

    @model_validator(mode="after")
    def _validate_thresholds(self) -> VatRegistrationConfig:
        _require_amount(self.mandatory_threshold, "Mandatory registration threshold")
        _require_amount(self.voluntary_threshold, "Voluntary registration threshold")
        return self


class VatCategoryConfig(ImmutableModel):
    """Describes one of the closed set of VAT category codes."""

    code: str
    label: str
    standard_rated: bool = False
    exemption_reason: str | None = None

    @field_validator("code")
    @classmethod
    def _validate_code(cls, value: str) -> str:
        if value not in VAT_CATEGORY_CODES:
            raise ConfigurationError(
                f"VAT category '{value}' is not one of {', '.join(VAT_CATEGORY_CODES)}"
            )
        return value


class VatConfig(ImmutableModel):
    """Value Added Tax parameters."""

    standard_rate: Decimal
    registration: VatRegistrationConfig
    categories: Sequence[VatCategoryConfig]

    @model_validator(mode="after")
    def _validate_categories(self) -> VatConfig:
        _require_rate(self.standard_rate, "VAT standard rate")
        codes = [category.code for category in self.categories]
        if sorted(codes) != sorted(VAT_CATEGORY_CODES):
            raise ConfigurationError(
                "VAT categories must declare each of "
                f"{', '.join(VAT_CATEGORY_CODES)} exactly once"
            )
        return self

    def category(self, code: str) -> VatCategoryConfig:
        for category in self.categories:
            if category.code == code:
                return category
        raise KeyError(code)


class TaxRateConfig(ImmutableModel):
    """Rates and thresholds in force from ``effective_date`` onwards.

    The nested sections mirror the YAML layout; flat properties expose the
    values calculators need so call sites read like the regulation.
    """

    version: str
    effective_date: date
    description: str | None = None
    currency_code: str = "AED"
    corporate_tax: CorporateTaxConfig
    vat: VatConfig
    meta: Mapping[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _require_sections(cls, data: Any) -> Mapping[str, Any]:
        if not isinstance(data, Mapping):
            raise ConfigurationError("Configuration file must define a mapping at the top level")

        prepared = dict(data)
        for section in ("corporate_tax", "vat"):
            if prepared.get(section) is None:
                raise ConfigurationError(f"Configuration requires a '{section}' section")
        if prepared.get("meta") is None:
            prepared["meta"] = {}
        return prepared

    @property
    def cit_standard_rate(self) -> Decimal:
        return self.corporate_tax.standard_rate

    @property
    def small_business_relief_threshold(self) -> Decimal:
        return self.corporate_tax.small_business_relief.threshold

    @property
    def small_business_relief_eligibility_cap(self) -> Decimal:
        return self.corporate_tax.small_business_relief.eligibility_cap

    @property
    def qfzp_rate(self) -> Decimal:
        return self.corporate_tax.qfzp.rate

    @property
    def qfzp_eligible_income_cap(self) -> Decimal:
        return self.corporate_tax.qfzp.eligible_income_cap

    @property
    def vat_standard_rate(self) -> Decimal:
        return self.vat.standard_rate

    @property
    def vat_category_codes(self) -> tuple[str, ...]:
        return tuple(category.code for category in self.vat.categories)

    def regulatory_reference(self, step: str) -> str | None:
        """Return the citation configured for calculation ``step``, if any."""

        references = self.meta.get("references")
        if not isinstance(references, Mapping):
            return None
        citation = references.get(step)
        return citation if isinstance(citation, str) else None


class RateManifestEntry(ImmutableModel):
    """Entry describing a rate table declared in the manifest."""

    version: str
    effective_date: date
    filename: str | None = None
    notes_url: str | None = None

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.version}.yaml"


class RateManifest(ImmutableModel):
    """Manifest describing the available rate table files."""

    versions: Sequence[RateManifestEntry]

    @model_validator(mode="after")
    def _validate_versions(self) -> RateManifest:
        seen: set[str] = set()
        effective_dates: set[date] = set()
        for entry in self.versions:
            if entry.version in seen:
                raise ConfigurationError(
                    f"Duplicate version {entry.version} declared in the configuration manifest"
                )
            if entry.effective_date in effective_dates:
                raise ConfigurationError(
                    f"Effective date {entry.effective_date.isoformat()} declared more than once"
                )
            seen.add(entry.version)
            effective_dates.add(entry.effective_date)
        return self

    def get_entry(self, version: str) -> RateManifestEntry:
        for entry in self.versions:
            if entry.version == version:
                return entry
        raise KeyError(version)

    def entry_for_date(self, day: date) -> RateManifestEntry:
        """Return the entry in force on ``day``."""

        candidates = [entry for entry in self.versions if entry.effective_date <= day]
        if not candidates:
            raise KeyError(day)
        return max(candidates, key=lambda entry: entry.effective_date)

    @computed_field
    @property
    def supported_versions(self) -> tuple[str, ...]:
        ordered = sorted(self.versions, key=lambda entry: entry.effective_date)
        return tuple(entry.version for entry in ordered)


__all__ = [
    "ConfigurationError",
    "CorporateTaxConfig",
    "ImmutableModel",
    "QfzpConfig",
    "RateManifest",
    "RateManifestEntry",
    "SmallBusinessReliefConfig",
    "TaxRateConfig",
    "VAT_CATEGORY_CODES",
    "ValidationError",
    "VatCategoryConfig",
    "VatConfig",
    "VatRegistrationConfig",
]
