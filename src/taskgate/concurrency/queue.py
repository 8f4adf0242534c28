"""TaskQueue: queue-shaped submission API over a ConcurrencyController."""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from taskgate.configs.config import AppConfig

from .base import QueueStats
from .controller import ConcurrencyController, TaskFn, build_controller
from .results import Result

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskQueue(Generic[T]):
    """Submit tasks one at a time; excess submissions wait for a permit.

    There is no explicit buffer: a task "in the queue" is a caller
    blocked on the controller's semaphore, so ``queue_length`` is the
    semaphore's waiter count.

    Usage::

        queue = TaskQueue(2)
        results = await asyncio.gather(
            *(queue.enqueue(url, partial(audit, url)) for url in urls)
        )
    """

    def __init__(
        self,
        concurrency_limit: int | None = None,
        *,
        controller: ConcurrencyController[T] | None = None,
    ) -> None:
        if controller is None:
            if concurrency_limit is None:
                raise ValueError("Either concurrency_limit or controller is required")
            controller = ConcurrencyController(concurrency_limit)
        elif (
            concurrency_limit is not None
            and controller.concurrency_limit != concurrency_limit
        ):
            raise ValueError(
                f"Controller limit {controller.concurrency_limit} does not match "
                f"queue limit {concurrency_limit}"
            )
        self._controller = controller

    @classmethod
    def from_controller(cls, controller: ConcurrencyController[T]) -> TaskQueue[T]:
        """Wrap an existing controller, sharing its permits and stop flag."""
        return cls(controller=controller)

    @property
    def controller(self) -> ConcurrencyController[T]:
        return self._controller

    @property
    def is_stopped(self) -> bool:
        return self._controller.is_stopped

    async def enqueue(self, task_id: str, task: TaskFn) -> Result[T]:
        """Run ``task`` once a permit is free (see ``execute_task``)."""
        return await self._controller.execute_task(task_id, task)

    def stop(self) -> None:
        self._controller.stop()

    async def wait_for_completion(self) -> None:
        await self._controller.wait_for_completion()

    def get_stats(self) -> QueueStats:
        controller_stats = self._controller.get_stats()
        return QueueStats(
            queue_length=controller_stats.waiting_tasks,
            controller_stats=controller_stats,
        )


def build_task_queue(config: AppConfig | None = None) -> TaskQueue[Any]:
    """Create a ``TaskQueue`` around a controller built from ``AppConfig``."""
    controller = build_controller(config)
    logger.info("TaskQueue: max_concurrency=%d", controller.concurrency_limit)
    return TaskQueue.from_controller(controller)
