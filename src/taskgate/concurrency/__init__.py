"""Bounded-concurrency execution core.

Three layers, each built on the one before it:

1. **Semaphore** (``capacity`` permits): FIFO admission.  A released
   permit is handed directly to the longest waiter, so later callers
   can never overtake earlier ones.

2. **ConcurrencyController**: runs independent async tasks under one
   ``Semaphore``, with per-task error isolation, batch execution,
   bounded retry with exponential backoff, and a one-way ``stop()``.

3. **TaskQueue**: thin façade forwarding single submissions to a
   controller.  Its "queue" is the semaphore's waiter list.

Every entry point returns a tagged ``Ok`` / ``Err`` result; ordinary
task failures are never raised across the public API.
"""

from .backoff import ExponentialBackoff
from .base import (
    ConcurrencyError,
    ControllerStats,
    ControllerStopped,
    QueueStats,
    RetriesExhausted,
    TaskFailed,
)
from .controller import ConcurrencyController, TaskEntry, build_controller
from .queue import TaskQueue, build_task_queue
from .results import Err, Ok, Result
from .semaphore import Semaphore

__all__ = [
    "ConcurrencyController",
    "ConcurrencyError",
    "ControllerStats",
    "ControllerStopped",
    "Err",
    "ExponentialBackoff",
    "Ok",
    "QueueStats",
    "Result",
    "RetriesExhausted",
    "Semaphore",
    "TaskEntry",
    "TaskFailed",
    "TaskQueue",
    "build_controller",
    "build_task_queue",
]
