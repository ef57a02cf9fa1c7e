"""
Deadline and cancellation checks shared by every suspension point of a run.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Any, Awaitable, Callable, Optional

from ..errors import ExecutionCancelledError, ExecutionTimeoutError


class ExecutionControl:
    """
    Cooperative deadline plus an optional external cancellation signal.

    `check` runs between statements; `guard` races an awaitable against the
    per-call timeout, the overall deadline and the cancel event, and never
    leaves the awaited task running behind it.
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self.timeout_seconds = timeout_seconds
        self.cancel_event = cancel_event
        self.deadline = clock() + timeout_seconds if timeout_seconds else None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def remaining(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return max(self.deadline - self._clock(), 0.0)

    def check(self, where: str) -> None:
        if self.cancelled:
            raise ExecutionCancelledError(f"Execution cancelled {where}")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise ExecutionTimeoutError(f"Execution exceeded {self.timeout_seconds:g}s {where}")

    async def guard(self, awaitable: Awaitable[Any], *, timeout: Optional[float], label: str) -> Any:
        try:
            self.check(f"before {label}")
        except (ExecutionCancelledError, ExecutionTimeoutError):
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise
        remaining = self.remaining()
        budget = timeout
        overall_bound = False
        if remaining is not None and (budget is None or remaining < budget):
            budget = remaining
            overall_bound = True
        task = asyncio.ensure_future(awaitable)
        waiters = {task}
        cancel_waiter = None
        if self.cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(self.cancel_event.wait())
            waiters.add(cancel_waiter)
        try:
            done, _ = await asyncio.wait(waiters, timeout=budget, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()
        if task in done:
            try:
                result = task.result()
            except asyncio.CancelledError as exc:
                if self.cancelled:
                    raise ExecutionCancelledError(f"Execution cancelled during {label}") from None
                raise RuntimeError(f"{label} was cancelled from inside") from exc
            self.check(f"after {label}")
            return result
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        if self.cancelled:
            raise ExecutionCancelledError(f"Execution cancelled during {label}")
        if overall_bound:
            raise ExecutionTimeoutError(f"Execution exceeded {self.timeout_seconds:g}s during {label}")
        raise ExecutionTimeoutError(f"{label} timed out after {timeout:g}s")
