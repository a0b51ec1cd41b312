"""Audit trail helpers shared by the calculators."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from uaetax.backend.app.models import CalculationStep
from uaetax.backend.config.rate_config import TaxRateConfig


def record_step(
    steps: list[CalculationStep],
    code: str,
    description: str,
    formula: str,
    result: Decimal,
    **inputs: Decimal,
) -> Decimal:
    """Append a numbered step to ``steps`` and return its ``result``."""

    steps.append(
        CalculationStep(
            step_number=len(steps) + 1,
            code=code,
            description=description,
            formula=formula,
            inputs=inputs,
            result=result,
        )
    )
    return result


def cite_steps(
    steps: Iterable[CalculationStep], config: TaxRateConfig
) -> tuple[CalculationStep, ...]:
    """Renumber ``steps`` from one and attach the citations ``config`` declares."""

    return tuple(
        step.model_copy(
            update={
                "step_number": number,
                "reference": config.regulatory_reference(step.code),
            }
        )
        for number, step in enumerate(steps, start=1)
    )


__all__ = ["cite_steps", "record_step"]
