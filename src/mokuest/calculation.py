"""Amount calculation invoked after the estimate inputs settle.

The pricing model has not been defined yet. Until it is, the amount is a
placeholder assembled from the inputs so that every distinct input produces
a visibly different figure on the estimate page.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Awaitable, Callable

from .models import CalculationResult, ProjectInputs
from .project_meta import format_number

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "12345"
DEFAULT_LATENCY_MS = 100

Calculator = Callable[[ProjectInputs], Awaitable[CalculationResult]]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def placeholder_amount(inputs: ProjectInputs) -> int:
    """Concatenate the prefix with floors, span and depth and read it back as a number.

    ``floors=3, span=10.5, depth=15`` gives ``"12345310.515"`` -> ``12345310``.
    Raises ``ValueError`` when the concatenation is not a number, which
    happens when more than one of the inputs carries a decimal part.
    """

    text = PLACEHOLDER_PREFIX + "".join(
        format_number(value) for value in (inputs.floors, inputs.span, inputs.depth)
    )
    try:
        return int(Decimal(text))
    except InvalidOperation as exc:
        raise ValueError(f"Placeholder amount is not numeric: {text!r}") from exc


async def calculate_amount(inputs: ProjectInputs, latency_ms: float = DEFAULT_LATENCY_MS) -> CalculationResult:
    """Compute the amount for ``inputs``.

    Failures are reported through ``success=False`` (with ``amount=-1``)
    rather than raised, so callers only need to inspect the result.
    """

    try:
        LOGGER.info("Calculating amount for %s", inputs.to_dict())
        amount = placeholder_amount(inputs)
        if latency_ms > 0:
            await asyncio.sleep(latency_ms / 1000.0)
        return CalculationResult(success=True, amount=amount, calculated_at=_timestamp())
    except Exception as exc:
        LOGGER.error("Amount calculation failed: %s", exc)
        return CalculationResult(success=False, amount=-1, calculated_at=_timestamp())


__all__ = ["Calculator", "DEFAULT_LATENCY_MS", "calculate_amount", "placeholder_amount"]
