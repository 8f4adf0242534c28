"""ConcurrencyController: run async units of work under a permit ceiling."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Generic, NamedTuple, TypeVar, Union

from taskgate.configs.config import AppConfig, get_app_config
from taskgate.infra.metrics import (
    SEMAPHORE_WAIT_SECONDS,
    TASK_DURATION_SECONDS,
    TASK_RETRIES_TOTAL,
    TASKS_RUNNING,
    TASKS_TOTAL,
)
from taskgate.infra.telemetry import (
    ATTR_BATCH_SIZE,
    ATTR_SEMAPHORE_WAIT,
    ATTR_TASK_ATTEMPTS,
    ATTR_TASK_ID,
    ATTR_TASK_MAX_RETRIES,
    ATTR_TASK_OUTCOME,
    OUTCOME_ERROR,
    OUTCOME_OK,
    OUTCOME_REJECTED,
    SPAN_TASK_BATCH,
    SPAN_TASK_EXECUTE,
    SPAN_TASK_RETRY,
    tracer,
)

from .backoff import ExponentialBackoff
from .base import (
    ConcurrencyError,
    ControllerStats,
    ControllerStopped,
    RetriesExhausted,
    TaskFailed,
)
from .results import Err, Ok, Result
from .semaphore import Semaphore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# A zero-argument callable returning either a value or an awaitable of one.
TaskFn = Callable[[], Union[Awaitable[T], T]]
SleepFn = Callable[[float], Awaitable[Any]]


class TaskEntry(NamedTuple):
    """One unit of work submitted through ``execute_tasks``."""

    id: str
    task: TaskFn


class ConcurrencyController(Generic[T]):
    """Bounded executor for independent async tasks.

    Every submission acquires a permit from an owned ``Semaphore`` before
    the task function is invoked and releases it afterwards, on success,
    failure and cancellation alike.  Task failures are returned as
    ``Err`` values, never raised, so one task cannot abort a batch.

    Usage::

        controller = ConcurrencyController(3)

        result = await controller.execute_task("https://a.example", audit_a)
        if result.ok:
            issues = result.value

        controller.stop()
        await controller.wait_for_completion()
    """

    def __init__(
        self,
        concurrency_limit: int,
        *,
        max_retries: int = 3,
        backoff: ExponentialBackoff | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._semaphore = Semaphore(concurrency_limit)
        self._max_retries = max_retries
        self._backoff = backoff or ExponentialBackoff()
        self._sleep = sleep
        self._stopped = False
        self._in_flight = 0
        self._drained = asyncio.Event()
        self._drained.set()

    @property
    def concurrency_limit(self) -> int:
        return self._semaphore.capacity

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def execute_task(self, task_id: str, task: TaskFn) -> Result[T]:
        """Acquire a permit, run ``task``, release the permit.

        Returns:
            ``Ok(value)`` on success, ``Err(TaskFailed)`` if the task
            raised, ``Err(ControllerStopped)`` if the controller was
            stopped before the task could start.
        """
        if self._stopped:
            TASKS_TOTAL.labels(status=OUTCOME_REJECTED).inc()
            logger.debug("Rejected task %s: controller stopped", task_id)
            return Err(ControllerStopped())

        with tracer.start_as_current_span(SPAN_TASK_EXECUTE) as span:
            span.set_attribute(ATTR_TASK_ID, task_id)
            self._enter()
            try:
                start = time.monotonic()
                await self._semaphore.acquire()
                waited = time.monotonic() - start
                SEMAPHORE_WAIT_SECONDS.observe(waited)
                span.set_attribute(ATTR_SEMAPHORE_WAIT, waited)

                try:
                    if self._stopped:
                        TASKS_TOTAL.labels(status=OUTCOME_REJECTED).inc()
                        span.set_attribute(ATTR_TASK_OUTCOME, OUTCOME_REJECTED)
                        logger.debug(
                            "Task %s admitted after stop; not starting", task_id
                        )
                        return Err(
                            ControllerStopped(
                                f"Concurrency controller was stopped while "
                                f"task {task_id} was waiting"
                            )
                        )
                    return await self._run(task_id, task, span)
                finally:
                    self._semaphore.release()
            finally:
                self._leave()

    async def execute_tasks(
        self, entries: Iterable[TaskEntry | tuple[str, TaskFn]]
    ) -> Result[list[Result[T]]]:
        """Run every entry concurrently; results keep the input order.

        The outer result is ``Ok`` even when individual entries fail.
        """
        batch = [TaskEntry(*entry) for entry in entries]
        with tracer.start_as_current_span(SPAN_TASK_BATCH) as span:
            span.set_attribute(ATTR_BATCH_SIZE, len(batch))
            try:
                results = await asyncio.gather(
                    *(self.execute_task(entry.id, entry.task) for entry in batch)
                )
            except Exception as exc:
                logger.exception("Batch of %d tasks failed to schedule", len(batch))
                return Err(
                    ConcurrencyError(
                        "Failed to execute tasks concurrently", cause=exc
                    )
                )
        return Ok(list(results))

    async def execute_task_with_retry(
        self,
        task_id: str,
        task: TaskFn,
        max_retries: int | None = None,
        base_delay_ms: int | None = None,
    ) -> Result[T]:
        """Run ``task`` up to ``max_retries + 1`` times with exponential backoff.

        Each attempt is a full ``execute_task`` cycle, so the permit is
        released while sleeping between attempts.  A stopped controller
        ends the loop immediately with the rejection.
        """
        backoff = self._backoff
        if base_delay_ms is not None:
            backoff = backoff.with_base(base_delay_ms)
        if max_retries is None:
            max_retries = self._max_retries
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        attempts = max_retries + 1
        last_cause: BaseException | None = None

        with tracer.start_as_current_span(SPAN_TASK_RETRY) as span:
            span.set_attribute(ATTR_TASK_ID, task_id)
            span.set_attribute(ATTR_TASK_MAX_RETRIES, max_retries)

            self._enter()
            try:
                for attempt in range(1, attempts + 1):
                    span.set_attribute(ATTR_TASK_ATTEMPTS, attempt)
                    result = await self.execute_task(task_id, task)
                    if result.ok:
                        span.set_attribute(ATTR_TASK_OUTCOME, OUTCOME_OK)
                        return result
                    if isinstance(result.error, ControllerStopped):
                        span.set_attribute(ATTR_TASK_OUTCOME, OUTCOME_REJECTED)
                        return result

                    last_cause = result.cause
                    if attempt < attempts:
                        delay = backoff.delay_for(attempt)
                        TASK_RETRIES_TOTAL.inc()
                        logger.warning(
                            "Task %s attempt %d/%d failed (%s); retrying in %.3fs",
                            task_id,
                            attempt,
                            attempts,
                            last_cause,
                            delay,
                        )
                        await self._sleep(delay)

                span.set_attribute(ATTR_TASK_OUTCOME, OUTCOME_ERROR)
            finally:
                self._leave()

        logger.error("Task %s failed after %d attempts", task_id, attempts)
        return Err(RetriesExhausted(task_id, attempts, cause=last_cause))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def stop(self) -> None:
        """Reject all future submissions.  Running tasks are not interrupted."""
        if not self._stopped:
            self._stopped = True
            logger.info(
                "Concurrency controller stopped (running=%d, waiting=%d)",
                self._running_count(),
                self._semaphore.waiting_count(),
            )

    async def wait_for_completion(self) -> None:
        """Return once no submitted task is waiting or running."""
        await self._drained.wait()

    def get_stats(self) -> ControllerStats:
        available = self._semaphore.available_permits()
        return ControllerStats(
            is_stopped=self._stopped,
            available_permits=available,
            waiting_tasks=self._semaphore.waiting_count(),
            running_tasks=self._semaphore.capacity - available,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(self, task_id: str, task: TaskFn, span: Any) -> Result[T]:
        TASKS_RUNNING.inc()
        start = time.monotonic()
        try:
            value = task()
            if inspect.isawaitable(value):
                value = await value
        except Exception as exc:
            TASKS_TOTAL.labels(status=OUTCOME_ERROR).inc()
            span.set_attribute(ATTR_TASK_OUTCOME, OUTCOME_ERROR)
            span.record_exception(exc)
            logger.warning("Task %s failed: %r", task_id, exc)
            return Err(TaskFailed(task_id, exc))
        finally:
            TASKS_RUNNING.dec()
            TASK_DURATION_SECONDS.observe(time.monotonic() - start)

        TASKS_TOTAL.labels(status=OUTCOME_OK).inc()
        span.set_attribute(ATTR_TASK_OUTCOME, OUTCOME_OK)
        logger.debug("Task %s completed", task_id)
        return Ok(value)

    def _running_count(self) -> int:
        return self._semaphore.capacity - self._semaphore.available_permits()

    def _enter(self) -> None:
        self._in_flight += 1
        self._drained.clear()

    def _leave(self) -> None:
        self._in_flight -= 1
        if self._in_flight == 0:
            self._drained.set()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_controller(config: AppConfig | None = None) -> ConcurrencyController[Any]:
    """Create a controller sized and tuned from ``AppConfig``."""
    if config is None:
        config = get_app_config()
    cc = config.concurrency
    rc = config.retry
    controller: ConcurrencyController[Any] = ConcurrencyController(
        cc.max_concurrency,
        max_retries=rc.max_retries,
        backoff=ExponentialBackoff(
            base_delay_ms=rc.base_delay_ms, multiplier=rc.multiplier
        ),
    )
    logger.info(
        "ConcurrencyController: max_concurrency=%d, max_retries=%d, "
        "base_delay_ms=%d",
        cc.max_concurrency,
        rc.max_retries,
        rc.base_delay_ms,
    )
    return controller
