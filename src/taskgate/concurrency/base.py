"""Concurrency primitives: error taxonomy and stats snapshots."""

from __future__ import annotations

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

STOPPED_MESSAGE = "Concurrency controller has been stopped"


class ConcurrencyError(Exception):
    """Base error carried inside an ``Err`` result.

    These are *returned*, not raised, by the controller so one failing
    task never aborts its siblings.  ``Err.unwrap()`` raises them.
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class ControllerStopped(ConcurrencyError):
    """Submission rejected because the controller has been stopped."""

    def __init__(self, message: str = STOPPED_MESSAGE) -> None:
        super().__init__(message)


class TaskFailed(ConcurrencyError):
    """The task function itself raised."""

    def __init__(self, task_id: str, cause: BaseException) -> None:
        super().__init__(f"Task {task_id} failed", cause=cause)
        self.task_id = task_id


class RetriesExhausted(ConcurrencyError):
    """Every attempt under ``execute_task_with_retry`` failed."""

    def __init__(
        self, task_id: str, attempts: int, cause: BaseException | None = None
    ) -> None:
        super().__init__(
            f"Task {task_id} failed after {attempts} attempts", cause=cause
        )
        self.task_id = task_id
        self.attempts = attempts


# ---------------------------------------------------------------------------
# Stats snapshots
# ---------------------------------------------------------------------------


class ControllerStats(BaseModel):
    """Point-in-time view of a ``ConcurrencyController``."""

    is_stopped: bool = Field(description="Whether stop() has been called")
    available_permits: int = Field(ge=0, description="Unclaimed permits")
    waiting_tasks: int = Field(ge=0, description="Callers blocked on acquire")
    running_tasks: int = Field(ge=0, description="Tasks holding a permit")


class QueueStats(BaseModel):
    """Point-in-time view of a ``TaskQueue``."""

    queue_length: int = Field(ge=0, description="Submissions waiting for a permit")
    controller_stats: ControllerStats
