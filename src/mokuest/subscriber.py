"""Watch the four user inputs held by a :class:`ProjectStore`.

Two layers are provided. :func:`subscribe_to_user_input_changes` fires a
callback whenever any of the inputs differs from the previously seen value.
:func:`subscribe_to_user_input_changes_with_debounce` collapses bursts of
such changes into one call made after a quiet period, using the payload of
the last change in the burst.

Both return a stop function. Call it when the watcher is no longer needed,
otherwise the callback keeps firing for as long as the store lives.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Protocol

from .models import INPUT_FIELDS, ProjectInputs, ProjectState
from .store import ProjectStore, Unsubscribe

LOGGER = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 500

InputsCallback = Callable[[ProjectInputs], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def _snapshot(state: ProjectState) -> ProjectInputs:
    return state.inputs


def _has_changed(previous: ProjectInputs, current: ProjectInputs) -> bool:
    return any(getattr(previous, name) != getattr(current, name) for name in INPUT_FIELDS)


def subscribe_to_user_input_changes(store: ProjectStore, callback: InputsCallback) -> Unsubscribe:
    """Invoke ``callback`` with the new inputs whenever one of them changes.

    The comparison baseline is the store state at registration time, so
    nothing fires until an input actually changes. Writes that only touch
    the amount or the PDF mode flag are ignored.
    """

    previous = _snapshot(store.get())

    def _listener(state: ProjectState) -> None:
        nonlocal previous
        current = _snapshot(state)
        if _has_changed(previous, current):
            callback(current)
            previous = current

    return store.subscribe(_listener)


def _loop_scheduler(delay: float, fn: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay, fn)


def subscribe_to_user_input_changes_with_debounce(
    store: ProjectStore,
    callback: InputsCallback,
    debounce_ms: float = DEFAULT_DEBOUNCE_MS,
    scheduler: Optional[Scheduler] = None,
) -> Unsubscribe:
    """Debounced variant of :func:`subscribe_to_user_input_changes`.

    Every change restarts a ``debounce_ms`` timer; ``callback`` runs only when
    the timer elapses without another change. ``scheduler(delay_seconds, fn)``
    must return a handle with ``cancel()``. By default the running asyncio
    loop's ``call_later`` is used, so the default requires a running loop.
    """

    schedule = scheduler or _loop_scheduler
    delay = max(0.0, float(debounce_ms)) / 1000.0
    pending: Optional[TimerHandle] = None

    def _fire(inputs: ProjectInputs) -> None:
        nonlocal pending
        pending = None
        callback(inputs)

    def _on_change(inputs: ProjectInputs) -> None:
        nonlocal pending
        if pending is not None:
            pending.cancel()
        LOGGER.debug("Input change detected; waiting %.3fs for more edits", delay)
        pending = schedule(delay, lambda: _fire(inputs))

    unsubscribe = subscribe_to_user_input_changes(store, _on_change)

    def stop() -> None:
        nonlocal pending
        if pending is not None:
            pending.cancel()
            pending = None
        unsubscribe()

    return stop


__all__ = [
    "DEFAULT_DEBOUNCE_MS",
    "InputsCallback",
    "Scheduler",
    "TimerHandle",
    "subscribe_to_user_input_changes",
    "subscribe_to_user_input_changes_with_debounce",
]
