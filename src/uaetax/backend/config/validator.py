"""Utilities for validating rate configuration data and surfacing issues."""

from __future__ import annotations

import argparse
import re
from typing import Mapping, Sequence

from .rate_config import (
    ConfigurationError,
    CorporateTaxConfig,
    RateManifest,
    TaxRateConfig,
    VatConfig,
    available_versions,
    load_manifest,
    load_rate_configuration,
)

_CURRENCY_PATTERN = re.compile(r"[A-Z]{3}")


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_corporate_tax(corporate_tax: CorporateTaxConfig) -> list[str]:
    errors: list[str] = []
    relief = corporate_tax.small_business_relief

    if relief.threshold > relief.eligibility_cap:
        errors.append(
            _format_scope(
                "corporate_tax.small_business_relief",
                "threshold cannot exceed the eligibility cap",
            )
        )

    if corporate_tax.qfzp.rate > corporate_tax.standard_rate:
        errors.append(
            _format_scope(
                "corporate_tax.qfzp",
                "rate cannot exceed the standard corporate tax rate",
            )
        )

    return errors


def _validate_vat(vat: VatConfig) -> list[str]:
    errors: list[str] = []
    registration = vat.registration

    if registration.voluntary_threshold > registration.mandatory_threshold:
        errors.append(
            _format_scope(
                "vat.registration",
                "voluntary threshold cannot exceed the mandatory threshold",
            )
        )

    for category in vat.categories:
        scope = f"vat.categories.{category.code}"
        if category.code == "S" and not category.standard_rated:
            errors.append(_format_scope(scope, "category must be standard rated"))
        if category.code != "S" and category.standard_rated:
            errors.append(
                _format_scope(scope, "only category 'S' may carry the standard rate")
            )
        if category.code != "S" and not (category.exemption_reason or "").strip():
            errors.append(_format_scope(scope, "exemption reason must be provided"))
        if not category.label.strip():
            errors.append(_format_scope(scope, "label must be a non-empty string"))

    return errors


def _validate_manifest(manifest: RateManifest) -> list[str]:
    errors: list[str] = []
    previous = None

    for entry in manifest.versions:
        if previous is not None and entry.effective_date <= previous:
            errors.append(
                _format_scope(
                    "manifest",
                    f"version {entry.version} must be declared in effective date order",
                )
            )
        previous = entry.effective_date

        if entry.notes_url and not entry.notes_url.startswith(("http://", "https://")):
            errors.append(
                _format_scope(
                    f"manifest.{entry.version}",
                    "notes URL must be absolute",
                )
            )

    return errors


def _validate_references(config: TaxRateConfig) -> list[str]:
    errors: list[str] = []
    references = config.meta.get("references", {})

    if not isinstance(references, Mapping):
        return [_format_scope("meta.references", "must map calculation steps to citations")]

    for step, citation in references.items():
        if not isinstance(citation, str) or not citation.strip():
            errors.append(
                _format_scope(f"meta.references.{step}", "citation must be a non-empty string")
            )

    return errors


def validate_rate_configuration(config: TaxRateConfig) -> list[str]:
    """Return a list of validation issues for the provided configuration."""

    errors: list[str] = []

    if not _CURRENCY_PATTERN.fullmatch(config.currency_code):
        errors.append(
            _format_scope(
                "currency_code",
                f"'{config.currency_code}' is not an ISO 4217 alphabetic code",
            )
        )

    errors.extend(_validate_corporate_tax(config.corporate_tax))
    errors.extend(_validate_vat(config.vat))
    errors.extend(_validate_references(config))

    return errors


def validate_all_versions(versions: Sequence[str] | None = None) -> dict[str, list[str]]:
    """Validate all configured rate tables and return issues keyed by version."""

    targets = versions or available_versions()
    results: dict[str, list[str]] = {}

    manifest_issues = _validate_manifest(load_manifest())
    for version in targets:
        config = load_rate_configuration(version)
        results[version] = [*manifest_issues, *validate_rate_configuration(config)]

    return results


def ensure_valid_configuration() -> None:
    """Load every declared rate table and raise ``ConfigurationError`` on any issue."""

    problems = [
        f"[{version}] {issue}"
        for version, issues in validate_all_versions().items()
        for issue in issues
    ]
    if problems:
        raise ConfigurationError("Rate configuration is invalid: " + "; ".join(problems))


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate configured rate tables and report inconsistencies."
    )
    parser.add_argument(
        "versions",
        nargs="*",
        help="Specific versions to validate (defaults to all configured versions)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    versions = args.versions or available_versions()

    if not versions:
        parser.print_help()
        return 1

    exit_code = 0
    manifest_issues = _validate_manifest(load_manifest())
    if manifest_issues:
        exit_code = 1
        for issue in manifest_issues:
            print(f"[manifest] {issue}")

    for version in versions:
        try:
            config = load_rate_configuration(version)
        except (FileNotFoundError, ConfigurationError) as error:
            print(f"[{version}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_rate_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{version}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{version}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
