from __future__ import annotations

from typing import Callable, List

import pytest

from mokuest.store import ProjectStore


class FakeTimer:
    def __init__(self, due: float, fn: Callable[[], None]) -> None:
        self.due = due
        self.fn = fn
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manually advanced clock standing in for ``loop.call_later``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: List[FakeTimer] = []

    def __call__(self, delay: float, fn: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, fn)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[FakeTimer]:
        return [timer for timer in self.timers if not timer.cancelled and timer.fn is not None]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted(
                (timer for timer in self.pending if timer.due <= target),
                key=lambda timer: timer.due,
            )
            if not due:
                break
            timer = due[0]
            self.now = timer.due
            fn, timer.fn = timer.fn, None
            fn()
        self.now = target


@pytest.fixture
def store() -> ProjectStore:
    return ProjectStore()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()
