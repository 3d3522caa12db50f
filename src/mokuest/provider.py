"""Keep the estimate amount in step with the user inputs.

:class:`AmountSynchronizer` watches the store with a debounce. When the
inputs settle and are complete, it runs the amount calculation in the
background and writes the result back to the store. A failed calculation
resets the amount to 0; the failure is logged and goes no further because
nothing is waiting on the background task.

Overlapping calculations are not cancelled or ordered. If a new one starts
while an older one is still running, whichever finishes last decides the
amount.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set

from .calculation import Calculator, calculate_amount
from .models import CalculationResult, ProjectInputs
from .store import ProjectStore, Unsubscribe
from .subscriber import DEFAULT_DEBOUNCE_MS, Scheduler, subscribe_to_user_input_changes_with_debounce

logger = logging.getLogger(__name__)


class AmountCalculationError(RuntimeError):
    """Raised when a calculation reports failure."""


class AmountSynchronizer:
    """Debounced bridge between the project store and the amount calculation."""

    def __init__(
        self,
        store: ProjectStore,
        calculator: Calculator = calculate_amount,
        *,
        debounce_ms: float = DEFAULT_DEBOUNCE_MS,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.store = store
        self.calculator = calculator
        self.debounce_ms = debounce_ms
        self._scheduler = scheduler
        self._unsubscribe: Optional[Unsubscribe] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        """Begin watching the store.

        Must be called from a running event loop. Background calculations are
        created on that loop even when a custom scheduler fires the debounce
        callback from outside it.
        """

        if self._unsubscribe is not None:
            return
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise RuntimeError("AmountSynchronizer.start() requires a running event loop") from exc
        logger.info("Watching project inputs (debounce %sms)", self.debounce_ms)
        self._unsubscribe = subscribe_to_user_input_changes_with_debounce(
            self.store,
            self._on_inputs_changed,
            self.debounce_ms,
            scheduler=self._scheduler,
        )

    def stop(self) -> None:
        if self._unsubscribe is None:
            return
        logger.info("Stopped watching project inputs")
        self._unsubscribe()
        self._unsubscribe = None
        self._loop = None

    def __enter__(self) -> "AmountSynchronizer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _on_inputs_changed(self, inputs: ProjectInputs) -> None:
        logger.debug("Project inputs changed: %s", inputs.to_dict())
        if not inputs.is_complete():
            logger.debug("Required inputs missing; skipping amount calculation")
            return
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._derive(inputs))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _derive(self, inputs: ProjectInputs) -> None:
        try:
            result = await self.calculator(inputs)
            if not result.success:
                raise AmountCalculationError("Amount calculation reported failure")
        except Exception:
            logger.exception("Amount calculation failed for %s", inputs.to_dict())
            self.store.set_amount(0)
            return
        self.store.set_amount(result.amount)
        logger.info("Amount updated to %s (calculated at %s)", result.amount, result.calculated_at)

    @property
    def pending(self) -> int:
        """Number of background calculations that have not finished yet."""

        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every background calculation started so far."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def settle(self) -> None:
        """Wait out the debounce window, then drain outstanding calculations."""

        await asyncio.sleep(self.debounce_ms / 1000.0)
        # Let the debounce timer callback run before draining.
        await asyncio.sleep(0)
        await self.drain()

    async def recalculate(self) -> CalculationResult:
        """Calculate immediately for the current inputs, bypassing the debounce.

        The amount is written on success. Unlike the background path, a
        reported failure is returned and an exception is propagated to the
        caller; the stored amount is left untouched in both cases.
        """

        inputs = self.store.get().inputs
        result = await self.calculator(inputs)
        if result.success:
            self.store.set_amount(result.amount)
            logger.info("Amount recalculated: %s", result.amount)
        else:
            logger.warning("Manual amount calculation failed for %s", inputs.to_dict())
        return result


__all__ = ["AmountCalculationError", "AmountSynchronizer"]
