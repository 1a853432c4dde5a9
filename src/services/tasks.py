"""
Task Scheduler - Background work polled from the UI tick.

Each operation kind owns one in-flight slot. submit() hands work to a
thread pool only when the slot is free; duplicates are dropped, not
queued. poll() is called once per tick and never blocks: it returns the
finished result exactly once and frees the slot.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class OperationKind(Enum):
    BALANCE = "balance"
    CHECK_REGISTRATION = "check_registration"
    REGISTER = "register"


@dataclass
class TaskResult:
    """Outcome of a finished task: a value or the exception it raised."""
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value or re-raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value


class InFlightSlot:
    """Holds at most one outstanding future."""

    def __init__(self, name: str):
        self.name = name
        self._future: Optional[Future] = None

    @property
    def occupied(self) -> bool:
        return self._future is not None

    def submit(self, executor: ThreadPoolExecutor, work: Callable[..., Any], *args: Any) -> bool:
        """Start work if the slot is free. Returns False if it was dropped."""
        if self._future is not None:
            logger.debug(f"{self.name}: already in flight, dropping submission")
            return False
        self._future = executor.submit(work, *args)
        return True

    def poll(self) -> Optional[TaskResult]:
        """Non-blocking completion check; clears the slot when done."""
        future = self._future
        if future is None or not future.done():
            return None

        self._future = None
        error = future.exception()
        if error is not None:
            return TaskResult(error=error)
        return TaskResult(value=future.result())


class TaskScheduler:
    """One slot per OperationKind on a shared worker pool."""

    def __init__(self, max_workers: int = 3, executor: Optional[ThreadPoolExecutor] = None):
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="galawallet-io"
        )
        self._slots = {kind: InFlightSlot(kind.value) for kind in OperationKind}

    def slot(self, kind: OperationKind) -> InFlightSlot:
        return self._slots[kind]

    def is_busy(self, kind: OperationKind) -> bool:
        return self._slots[kind].occupied

    def submit(self, kind: OperationKind, work: Callable[..., Any], *args: Any) -> bool:
        accepted = self._slots[kind].submit(self._executor, work, *args)
        if accepted:
            logger.debug(f"Submitted {kind.value}")
        return accepted

    def poll(self, kind: OperationKind) -> Optional[TaskResult]:
        return self._slots[kind].poll()

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting work. Running tasks finish on their own."""
        self._executor.shutdown(wait=wait)
