"""Typed result values returned by generated client callables.

A generated callable never raises for a bad call: it returns an :class:`Err`
wrapping a :class:`~restez.exceptions.ValidationError` or
:class:`~restez.exceptions.InterpolationError`, and otherwise returns
whatever the dispatch capability returned.  The bundled
:class:`~restez.transport.http.HttpxDispatcher` also speaks in ``Ok`` /
``Err`` so that a whole call chain can be handled uniformly::

    result = client.view_thread({"thread_id": 7})
    if result.is_ok:
        print(result.value.json())
    else:
        print(f"call failed: {result.error}")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from restez.exceptions import RestezError

T = TypeVar("T")
E = TypeVar("E", bound=RestezError)


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying ``value``."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying the ``error`` that describes it."""

    error: E

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        """Raise the carried error."""
        raise self.error


Result = Union[Ok[T], Err[E]]
