from __future__ import annotations

import enum
from collections.abc import Callable, Hashable, Iterable
from typing import TypeVar

__all__ = [
    "flatten",
    "not_none",
    "unique",
]

T = TypeVar("T")
T_Hashable = TypeVar("T_Hashable", bound=Hashable)


def flatten(it: Iterable[Iterable[T]]) -> Iterable[T]:
    """
    Flatten a nested iterable into a single iterable.

    >>> list(flatten([["a"], ["b", "c"]]))
    ['a', 'b', 'c']
    """

    for item in it:
        yield from item


def unique(it: Iterable[T_Hashable]) -> list[T_Hashable]:
    """
    Returns the items of *it* without duplicates, keeping the position of the first occurrence.

    >>> unique(["b", "a", "b", "c", "a"])
    ['b', 'a', 'c']
    """

    seen: set[T_Hashable] = set()
    result = []
    for item in it:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def not_none(v: T | None, message: str | Callable[[], str] = "expected not-None") -> T:
    """
    Raise a :class:`RuntimeError` if *v* is `None`, otherwise return *v*.
    """

    if v is None:
        if callable(message):
            message = message()
        raise RuntimeError(message)
    return v


class NotSet(enum.Enum):
    Value = 1
