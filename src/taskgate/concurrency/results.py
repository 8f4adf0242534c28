"""Tagged results returned by every controller entry point."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Generic, NoReturn, TypeVar, Union

from .base import ConcurrencyError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome wrapping the task's value."""

    value: T
    ok: ClassVar[bool] = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed outcome wrapping a ``ConcurrencyError``."""

    error: ConcurrencyError
    ok: ClassVar[bool] = False

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def cause(self) -> BaseException | None:
        return self.error.cause

    def unwrap(self) -> NoReturn:
        raise self.error


Result = Union[Ok[T], Err]
