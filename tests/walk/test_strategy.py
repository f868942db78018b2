from __future__ import annotations

import threading

import pytest
from result import Err, Ok

from treesize.walk import PooledStrategy, SequentialStrategy
from treesize.walk.strategy import ExecutionStrategy, Outcome


def _collect(strategy: ExecutionStrategy, fns: list) -> list[Outcome[object]]:
    outcomes: list[Outcome[object] | None] = [None] * len(fns)

    def keep(idx: int):
        def then(outcome: Outcome[object]) -> None:
            outcomes[idx] = outcome

        return then

    with strategy:
        for idx, fn in enumerate(fns):
            strategy.submit(fn, keep(idx))
        strategy.drain()
    assert all(o is not None for o in outcomes)
    return outcomes  # type: ignore[return-value]


def test_sequential_runs_in_submission_order_on_calling_thread() -> None:
    seen: list[int] = []
    caller = threading.get_ident()

    def make(idx: int):
        def fn() -> int:
            assert threading.get_ident() == caller
            seen.append(idx)
            return idx * 2

        return fn

    outcomes = _collect(SequentialStrategy(), [make(i) for i in range(5)])

    assert seen == [0, 1, 2, 3, 4]
    assert [o.unwrap() for o in outcomes] == [0, 2, 4, 6, 8]


@pytest.mark.parametrize("strategy", [SequentialStrategy(), PooledStrategy(workers=2)], ids=["sequential", "pooled"])
def test_exceptions_become_err_outcomes(strategy: ExecutionStrategy) -> None:
    def boom() -> int:
        raise ValueError("bad entry")

    outcomes = _collect(strategy, [lambda: 1, boom, lambda: 3])

    assert isinstance(outcomes[0], Ok)
    assert isinstance(outcomes[1], Err)
    assert isinstance(outcomes[1].unwrap_err(), ValueError)
    assert outcomes[2].unwrap() == 3


@pytest.mark.parametrize("strategy", [SequentialStrategy(), PooledStrategy(workers=3)], ids=["sequential", "pooled"])
def test_drain_waits_for_tasks_submitted_by_tasks(strategy: ExecutionStrategy) -> None:
    """A long chain of tasks, each scheduling the next, runs without nesting calls."""
    depth = 5000
    reached: list[int] = []

    def step(level: int) -> None:
        reached.append(level)
        if level < depth:
            strategy.submit(lambda: step(level + 1), lambda outcome: outcome.unwrap())

    with strategy:
        strategy.submit(lambda: step(0), lambda outcome: outcome.unwrap())
        strategy.drain()

    assert reached == list(range(depth + 1))


def test_failing_callback_does_not_stall_drain() -> None:
    def explode(outcome: Outcome[int]) -> None:
        raise RuntimeError("consumer bug")

    with PooledStrategy(workers=2) as pool:
        pool.submit(lambda: 1, explode)
        pool.drain()


def test_pooled_uses_worker_threads() -> None:
    barrier = threading.Barrier(3, timeout=5)

    def meet() -> int:
        barrier.wait()
        return threading.get_ident()

    outcomes = _collect(PooledStrategy(workers=3), [meet, meet, meet])

    assert len({o.unwrap() for o in outcomes}) == 3


def test_pooled_requires_running_pool() -> None:
    with pytest.raises(RuntimeError, match="not running"):
        PooledStrategy(workers=1).submit(lambda: 1, lambda outcome: None)


def test_pooled_defaults_to_cpu_count(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("treesize.walk.strategy.os.cpu_count", lambda: 6)
    assert PooledStrategy().workers == 6
    assert PooledStrategy(workers=0).workers == 1
