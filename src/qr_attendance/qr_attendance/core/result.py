from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .failures import Failure

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    failure: Failure

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self):
        return self.failure.kind


Result = Union[Ok[T], Err]


def fail(kind, message: str | None = None, **details) -> Err:
    """Shortcut for ``Err(Failure(kind, message, details))``."""
    return Err(Failure(kind=kind, message=message or kind.default_message, details=details))
