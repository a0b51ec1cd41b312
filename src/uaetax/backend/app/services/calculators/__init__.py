"""Domain-specific calculation helpers."""

from .cit import calculate_cit, derive_taxable_income
from .utils import (
    MAX_AMOUNT,
    format_amount,
    format_percentage,
    require_non_negative,
    round_currency,
    round_rate,
)
from .vat import assess_vat_registration, calculate_vat, extract_vat

__all__ = [
    "MAX_AMOUNT",
    "assess_vat_registration",
    "calculate_cit",
    "calculate_vat",
    "derive_taxable_income",
    "extract_vat",
    "format_amount",
    "format_percentage",
    "require_non_negative",
    "round_currency",
    "round_rate",
]
