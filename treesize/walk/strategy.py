from __future__ import annotations

import logging
import os
import queue
import threading
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from types import TracebackType
from typing import Any, Generic, Self, TypeVar, override

from result import Err, Ok, Result

logger = logging.getLogger(__name__)

T = TypeVar("T")

Outcome = Result[T, Exception]


class _Job(Generic[T]):
    """One unit of work plus the callback that receives its outcome."""

    __slots__ = ("_fn", "_then")

    def __init__(self, fn: Callable[[], T], then: Callable[[Outcome[T]], None]) -> None:
        self._fn = fn
        self._then = then

    def run(self) -> None:
        outcome: Outcome[T]
        try:
            outcome = Ok(self._fn())
        except Exception as exc:  # noqa: BLE001
            outcome = Err(exc)
        try:
            self._then(outcome)
        except Exception:  # noqa: BLE001
            # The consumer never saw this outcome; it has to notice the gap itself.
            logger.exception("Dropped the outcome of a walk task")


class ExecutionStrategy(ABC):
    """Schedules independent tasks and runs them until none are left.

    Tasks may submit further tasks. ``then`` receives each task's outcome,
    ``Ok(value)`` or ``Err(exc)``, on the thread that ran it. No task ever
    waits on another, so the depth of the work never grows the call stack.
    """

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        return None

    @property
    @abstractmethod
    def workers(self) -> int: ...

    @abstractmethod
    def submit(self, fn: Callable[[], T], then: Callable[[Outcome[T]], None]) -> None: ...

    @abstractmethod
    def drain(self) -> None:
        """Block until every submitted task, and every task those submit, has run."""


class SequentialStrategy(ExecutionStrategy):
    def __init__(self) -> None:
        self._pending: deque[_Job[Any]] = deque()

    @property
    @override
    def workers(self) -> int:
        return 1

    @override
    def submit(self, fn: Callable[[], T], then: Callable[[Outcome[T]], None]) -> None:
        self._pending.append(_Job(fn, then))

    @override
    def drain(self) -> None:
        while self._pending:
            self._pending.popleft().run()


class PooledStrategy(ExecutionStrategy):
    """Bounded pool of worker threads fed by one shared queue."""

    def __init__(self, workers: int | None = None) -> None:
        self._workers = max(1, workers if workers is not None else (os.cpu_count() or 1))
        self._queue: queue.Queue[_Job[Any] | None] | None = None
        self._threads: list[threading.Thread] = []
        self._idle = threading.Condition()
        self._outstanding = 0

    @property
    @override
    def workers(self) -> int:
        return self._workers

    @override
    def __enter__(self) -> Self:
        if self._queue is not None:
            raise RuntimeError("Worker pool is already running")
        q: queue.Queue[_Job[Any] | None] = queue.Queue()
        self._queue = q
        self._outstanding = 0
        self._threads = [
            threading.Thread(target=self._run_worker, args=(q,), name=f"treesize-worker-{idx}", daemon=True)
            for idx in range(self._workers)
        ]
        for thread in self._threads:
            thread.start()
        logger.debug("Started %d walk workers", self._workers)
        return self

    @override
    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        q = self._queue
        if q is None:
            return None
        for _ in self._threads:
            q.put(None)
        for thread in self._threads:
            thread.join()
        self._queue = None
        self._threads = []
        return None

    def _run_worker(self, q: queue.Queue[_Job[Any] | None]) -> None:
        while True:
            job = q.get()
            if job is None:
                break
            try:
                job.run()
            finally:
                with self._idle:
                    self._outstanding -= 1
                    if self._outstanding == 0:
                        self._idle.notify_all()

    @override
    def submit(self, fn: Callable[[], T], then: Callable[[Outcome[T]], None]) -> None:
        q = self._queue
        if q is None:
            raise RuntimeError("Worker pool is not running")
        with self._idle:
            self._outstanding += 1
        q.put(_Job(fn, then))

    @override
    def drain(self) -> None:
        if self._queue is None:
            raise RuntimeError("Worker pool is not running")
        with self._idle:
            self._idle.wait_for(lambda: self._outstanding == 0)
