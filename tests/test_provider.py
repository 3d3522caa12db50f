from __future__ import annotations

import asyncio
from typing import List

import pytest

from mokuest.models import CalculationResult, ProjectInputs
from mokuest.provider import AmountSynchronizer
from mokuest.store import ProjectStore

SAMPLE = dict(fire_prevention_area="防火地域", floors=3, span=10.5, depth=15)


class StubCalculator:
    def __init__(self, *results: object, delay: float = 0.0) -> None:
        self.results = list(results)
        self.delay = delay
        self.calls: List[ProjectInputs] = []

    async def __call__(self, inputs: ProjectInputs) -> CalculationResult:
        self.calls.append(inputs)
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


def _ok(amount: int) -> CalculationResult:
    return CalculationResult(success=True, amount=amount, calculated_at="2026-01-01T00:00:00.000Z")


def test_successful_calculation_updates_amount(store: ProjectStore) -> None:
    calculator = StubCalculator(_ok(123456))

    async def scenario() -> None:
        with AmountSynchronizer(store, calculator, debounce_ms=10) as synchronizer:
            store.set_user_input_data(**SAMPLE)
            await synchronizer.settle()

    asyncio.run(scenario())

    assert store.get().amount == 123456
    assert calculator.calls == [ProjectInputs(**SAMPLE)]


def test_reported_failure_resets_amount(store: ProjectStore) -> None:
    store.set_amount(999)
    calculator = StubCalculator(CalculationResult(success=False, amount=-1, calculated_at=""))

    async def scenario() -> None:
        with AmountSynchronizer(store, calculator, debounce_ms=10) as synchronizer:
            store.set_user_input_data(**SAMPLE)
            await synchronizer.settle()

    asyncio.run(scenario())

    assert store.get().amount == 0


def test_raised_error_is_logged_and_swallowed(store: ProjectStore, caplog) -> None:
    store.set_amount(999)
    calculator = StubCalculator(RuntimeError("server unavailable"))

    async def scenario() -> None:
        with AmountSynchronizer(store, calculator, debounce_ms=10) as synchronizer:
            store.set_user_input_data(**SAMPLE)
            await synchronizer.settle()

    with caplog.at_level("ERROR"):
        asyncio.run(scenario())

    assert store.get().amount == 0
    assert "Amount calculation failed" in caplog.text


@pytest.mark.parametrize(
    "inputs",
    [
        dict(fire_prevention_area="", floors=3, span=10.5, depth=15),
        dict(fire_prevention_area="防火地域", floors=0, span=10.5, depth=15),
        dict(fire_prevention_area="防火地域", floors=3, span=0, depth=15),
        dict(fire_prevention_area="防火地域", floors=3, span=10.5, depth=0),
    ],
)
def test_incomplete_inputs_skip_calculation(store: ProjectStore, inputs) -> None:
    calculator = StubCalculator(_ok(1))
    synchronizer = AmountSynchronizer(store, calculator)

    synchronizer._on_inputs_changed(ProjectInputs(**inputs))

    assert calculator.calls == []
    assert synchronizer.pending == 0
    assert store.get().amount == 0


def test_burst_of_edits_triggers_single_calculation(store: ProjectStore) -> None:
    calculator = StubCalculator(_ok(42))

    async def scenario() -> None:
        with AmountSynchronizer(store, calculator, debounce_ms=30) as synchronizer:
            store.set_fire_prevention_area("防火地域")
            store.set_floors(3)
            store.set_span(10.5)
            store.set_depth(15)
            await synchronizer.settle()

    asyncio.run(scenario())

    assert calculator.calls == [ProjectInputs(**SAMPLE)]
    assert store.get().amount == 42


def test_in_flight_calculation_is_not_cancelled_and_last_completion_wins(store: ProjectStore) -> None:
    slow = _ok(111)
    fast = _ok(222)
    delays = {3: 0.08, 4: 0.0}

    async def calculator(inputs: ProjectInputs) -> CalculationResult:
        await asyncio.sleep(delays[inputs.floors])
        return slow if inputs.floors == 3 else fast

    async def scenario() -> None:
        with AmountSynchronizer(store, calculator, debounce_ms=5) as synchronizer:
            store.set_user_input_data(**SAMPLE)
            await asyncio.sleep(0.03)
            store.set_floors(4)
            await synchronizer.settle()

    asyncio.run(scenario())

    # The first calculation was started first but finished last.
    assert store.get().amount == 111


def test_stop_prevents_pending_calculation(store: ProjectStore) -> None:
    calculator = StubCalculator(_ok(5))

    async def scenario() -> None:
        synchronizer = AmountSynchronizer(store, calculator, debounce_ms=20)
        synchronizer.start()
        store.set_user_input_data(**SAMPLE)
        synchronizer.stop()
        synchronizer.stop()
        await asyncio.sleep(0.05)
        assert synchronizer.running is False

    asyncio.run(scenario())

    assert calculator.calls == []
    assert store.listener_count == 0


def test_recalculate_writes_amount_and_returns_result(store: ProjectStore) -> None:
    store.set_user_input_data(**SAMPLE)
    synchronizer = AmountSynchronizer(store, StubCalculator(_ok(777)))

    result = asyncio.run(synchronizer.recalculate())

    assert result.success is True
    assert store.get().amount == 777


def test_recalculate_failure_keeps_amount(store: ProjectStore) -> None:
    store.set_amount(50)
    failed = CalculationResult(success=False, amount=-1, calculated_at="")
    synchronizer = AmountSynchronizer(store, StubCalculator(failed))

    result = asyncio.run(synchronizer.recalculate())

    assert result.success is False
    assert store.get().amount == 50


def test_recalculate_propagates_errors(store: ProjectStore) -> None:
    synchronizer = AmountSynchronizer(store, StubCalculator(RuntimeError("boom")))

    with pytest.raises(RuntimeError):
        asyncio.run(synchronizer.recalculate())


def test_injected_scheduler_drives_calculation_on_start_loop(store: ProjectStore, scheduler) -> None:
    calculator = StubCalculator(_ok(314))
    synchronizer = AmountSynchronizer(store, calculator, debounce_ms=10, scheduler=scheduler)
    loop = asyncio.new_event_loop()

    async def begin() -> None:
        synchronizer.start()

    try:
        loop.run_until_complete(begin())
        store.set_user_input_data(**SAMPLE)
        assert len(scheduler.pending) == 1

        # The timer fires while no loop is running.
        scheduler.advance(1.0)
        assert synchronizer.pending == 1

        loop.run_until_complete(synchronizer.drain())
    finally:
        synchronizer.stop()
        loop.close()

    assert calculator.calls == [ProjectInputs(**SAMPLE)]
    assert store.get().amount == 314


def test_start_without_running_loop_is_rejected(store: ProjectStore, scheduler) -> None:
    synchronizer = AmountSynchronizer(store, StubCalculator(_ok(1)), scheduler=scheduler)

    with pytest.raises(RuntimeError, match="running event loop"):
        synchronizer.start()

    assert synchronizer.running is False
    assert store.listener_count == 0
