"""
Shared metadata for the project inputs surfaced on the estimate form.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

# Keep tuple structure to preserve order for the selection list
FIRE_PREVENTION_CHOICES: Tuple[str, ...] = (
    "防火地域",
    "準防火地域",
    "22条地域",
    "指定なし",
)

UNSET_LABEL = "未指定"


def fire_prevention_display_strings() -> List[str]:
    """Return formatted strings like ``\"1 - 防火地域\"`` for selection prompts."""

    return [f"{number} - {name}" for number, name in enumerate(FIRE_PREVENTION_CHOICES, start=1)]


def normalize_fire_prevention_area(value: Optional[str]) -> Optional[str]:
    """
    Normalize a category label or number into the canonical label.

    Accepts inputs in the form \"1\", \"1 - 防火地域\", or \"防火地域\".
    Returns ``None`` if the value cannot be mapped.
    """

    if not value:
        return None

    candidate = value.strip()
    if not candidate:
        return None

    if candidate in FIRE_PREVENTION_CHOICES:
        return candidate

    # Formatted display string "1 - NAME"
    first = candidate.split("-", 1)[0].strip() if " - " in candidate else candidate
    if first.isdigit():
        index = int(first) - 1
        if 0 <= index < len(FIRE_PREVENTION_CHOICES):
            return FIRE_PREVENTION_CHOICES[index]

    compressed = candidate.replace(" ", "").replace("　", "")
    for name in FIRE_PREVENTION_CHOICES:
        if compressed == name:
            return name
    return None


def format_number(value: float) -> str:
    """Render integral floats without a decimal part (``15.0`` -> ``15``)."""

    numeric = float(value)
    if numeric.is_integer():
        return str(int(numeric))
    return repr(numeric)


def format_floors(floors: int) -> str:
    return f"{floors}階建て" if floors > 0 else UNSET_LABEL


def format_length(value: float) -> str:
    return f"{format_number(value)}m" if value > 0 else UNSET_LABEL


def format_building_area(span: float, depth: float) -> Optional[str]:
    if span > 0 and depth > 0:
        return f"{span * depth:.2f}㎡"
    return None


def format_amount(amount: int) -> str:
    return f"¥{amount:,}"
