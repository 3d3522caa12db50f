"""Provisional cost estimates for wooden construction projects."""

from .models import CalculationResult, ProjectInputs, ProjectState, RenderMode
from .store import ProjectStore
from .subscriber import (
    subscribe_to_user_input_changes,
    subscribe_to_user_input_changes_with_debounce,
)
from .provider import AmountSynchronizer
from .render_gate import HideOnPDF, ShowOnPDF

__all__ = [
    "AmountSynchronizer",
    "CalculationResult",
    "HideOnPDF",
    "ProjectInputs",
    "ProjectState",
    "ProjectStore",
    "RenderMode",
    "ShowOnPDF",
    "subscribe_to_user_input_changes",
    "subscribe_to_user_input_changes_with_debounce",
]
