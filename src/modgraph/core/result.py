"""
Outcome types for graph loading.

A load resolves to exactly one of Ok, Err or Aborted. Aborted is a distinct
outcome, not a failure: a superseded build was cancelled and its result must
be discarded without being shown to the user as an error.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Represents a successful computation."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def is_aborted(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    """Represents a failed computation."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def is_aborted(self) -> bool:
        return False

    def unwrap(self) -> T:
        raise ValueError(f"Called unwrap on Err: {self.error}")


@dataclass(frozen=True)
class Aborted:
    """Represents a computation that was cancelled before completing."""
    reason: str = "cancelled"

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return False

    def is_aborted(self) -> bool:
        return True

    def unwrap(self):
        raise ValueError(f"Called unwrap on Aborted: {self.reason}")


LoadOutcome = Union[Ok[T], Err[E], Aborted]

