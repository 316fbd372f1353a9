"""
Provides the :class:`Currentable` base class. A subclass instance can be made the "current" one for the
duration of a `with` block, which is how build scripts find the :class:`BuildContext` they contribute to
without it being passed around explicitly.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, ClassVar, Generic, TypeVar, cast, overload

from rdcgraph.common import NotSet

T = TypeVar("T")
U = TypeVar("U")


class Currentable(Generic[T]):
    """
    Base class for classes that should have an :meth:`as_current` method. Every subclass tracks its own
    current instance. Not thread-safe; the current object is visible to all threads.
    """

    __current: ClassVar[Any | None] = None  # note: ClassVar cannot contain type variables

    @contextmanager
    def as_current(self) -> Iterator[T]:
        prev = type(self).__current
        try:
            type(self).__current = self
            yield cast(T, self)
        finally:
            type(self).__current = prev

    @overload
    @classmethod
    def current(cls) -> T:
        """Returns the current object or raises a :class:`RuntimeError`."""

    @overload
    @classmethod
    def current(cls, fallback: U) -> T | U:
        """Returns the current object or *fallback*."""

    @classmethod
    def current(cls, fallback: U | NotSet = NotSet.Value) -> T | U:
        if cls.__current is None:
            if fallback is NotSet.Value:
                raise RuntimeError(f"No current object for type `{cls.__name__}`")
            return fallback
        return cast(T, cls.__current)
