"""In-memory project state with synchronous change notification."""
from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Callable, List

from .models import INPUT_FIELDS, ProjectState

LOGGER = logging.getLogger(__name__)

Listener = Callable[[ProjectState], None]
Unsubscribe = Callable[[], None]

INITIAL_STATE = ProjectState()

_STATE_FIELDS = frozenset(field.name for field in fields(ProjectState))


class ProjectStore:
    """Holds the estimate inputs, the calculated amount and the PDF mode flag.

    One store is created per application session and handed to everything
    that reads or writes it. ``set`` merges the given fields and notifies
    every listener once, synchronously, in registration order.
    """

    def __init__(self, initial: ProjectState | None = None) -> None:
        self._state = initial or INITIAL_STATE
        self._listeners: List[Listener] = []

    def get(self) -> ProjectState:
        return self._state

    def set(self, **partial: object) -> None:
        unknown = set(partial) - _STATE_FIELDS
        if unknown:
            raise TypeError(f"Unknown project state field(s): {', '.join(sorted(unknown))}")
        self._state = replace(self._state, **partial)
        self._notify()

    def subscribe(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)
        active = True

        def unsubscribe() -> None:
            nonlocal active
            if not active:
                return
            active = False
            self._listeners.remove(listener)

        return unsubscribe

    def reset(self) -> None:
        self._state = INITIAL_STATE
        self._notify()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self) -> None:
        state = self._state
        # Listeners may unsubscribe while being notified.
        for listener in list(self._listeners):
            listener(state)

    # Convenience setters -------------------------------------------------------------

    def set_amount(self, amount: int) -> None:
        self.set(amount=amount)

    def set_fire_prevention_area(self, area: str) -> None:
        self.set(fire_prevention_area=area)

    def set_floors(self, floors: int) -> None:
        self.set(floors=floors)

    def set_span(self, span: float) -> None:
        self.set(span=span)

    def set_depth(self, depth: float) -> None:
        self.set(depth=depth)

    def set_user_input_data(self, **inputs: object) -> None:
        """Update several of the four user inputs with a single notification."""

        unexpected = set(inputs) - set(INPUT_FIELDS)
        if unexpected:
            raise TypeError(f"Not a user input field: {', '.join(sorted(unexpected))}")
        self.set(**inputs)

    def set_generating_pdf(self, is_generating: bool) -> None:
        LOGGER.debug("PDF generation mode -> %s", is_generating)
        self.set(is_generating_pdf=is_generating)


__all__ = ["INITIAL_STATE", "Listener", "ProjectStore", "Unsubscribe"]
