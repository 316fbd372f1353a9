"""
This module provides the typed property store of a target.

Every recognized property is a member of :class:`PropertyKind` with a fixed item type. A property holds two
value lists, the *own* scope that applies when building the target itself and the *interface* scope that
propagates to the targets that consume it. Which of the two a declaration writes to is decided by its
:class:`Visibility`.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import Any, ClassVar, Union

from typeapi import ClassTypeHint, TypeHint, UnionTypeHint

from rdcgraph.common import flatten


@dataclasses.dataclass(frozen=True)
class DeviceLink:
    """
    A link option that is only passed to the device-link step. It names the target whose static artifact is
    consumed by the device linker.

    >>> str(DeviceLink("foo_static"))
    '$<DEVICE_LINK:$<TARGET_FILE:foo_static>>'
    """

    target: str

    def __str__(self) -> str:
        return f"$<DEVICE_LINK:$<TARGET_FILE:{self.target}>>"


class Scope(enum.Enum):
    OWN = "own"
    INTERFACE = "interface"


class Visibility(enum.Enum):
    """
    Controls which scopes a declaration writes to.

    >>> Visibility.PUBLIC.scopes
    (<Scope.OWN: 'own'>, <Scope.INTERFACE: 'interface'>)
    >>> Visibility.parse("interface")
    <Visibility.INTERFACE: 'INTERFACE'>
    """

    PRIVATE = "PRIVATE"
    PUBLIC = "PUBLIC"
    INTERFACE = "INTERFACE"

    @property
    def scopes(self) -> tuple[Scope, ...]:
        if self == Visibility.PRIVATE:
            return (Scope.OWN,)
        elif self == Visibility.PUBLIC:
            return (Scope.OWN, Scope.INTERFACE)
        else:
            return (Scope.INTERFACE,)

    @staticmethod
    def parse(value: str | Visibility) -> Visibility:
        if isinstance(value, Visibility):
            return value
        return Visibility(value.upper())

    @staticmethod
    def of(own: bool, interface: bool) -> Visibility:
        """Returns the visibility that writes exactly the given scopes."""

        if own and interface:
            return Visibility.PUBLIC
        elif own:
            return Visibility.PRIVATE
        elif interface:
            return Visibility.INTERFACE
        raise ValueError("a visibility needs at least one scope")


class PropertyKind(enum.Enum):
    INCLUDE_DIRECTORIES = "include_directories"
    SYSTEM_INCLUDE_DIRECTORIES = "system_include_directories"
    COMPILE_OPTIONS = "compile_options"
    COMPILE_DEFINITIONS = "compile_definitions"
    LINK_OPTIONS = "link_options"
    LINK_LIBRARIES = "link_libraries"

    @property
    def item_type(self) -> TypeHint:
        return TypeHint(_ITEM_TYPES[self])

    @property
    def accepted_types(self) -> tuple[type, ...]:
        def _get_types(hint: TypeHint) -> tuple[type, ...]:
            if isinstance(hint, ClassTypeHint):
                return (hint.type,)
            raise RuntimeError(f"unexpected property item type hint {hint!r}")

        hint = self.item_type
        if isinstance(hint, UnionTypeHint):
            return tuple(flatten(map(_get_types, hint)))
        return _get_types(hint)


_ITEM_TYPES: dict[PropertyKind, Any] = {
    PropertyKind.INCLUDE_DIRECTORIES: Path,
    PropertyKind.SYSTEM_INCLUDE_DIRECTORIES: Path,
    PropertyKind.COMPILE_OPTIONS: str,
    PropertyKind.COMPILE_DEFINITIONS: str,
    PropertyKind.LINK_OPTIONS: Union[str, DeviceLink],
    PropertyKind.LINK_LIBRARIES: str,
}

#: The property kinds that carry usage requirements from a dependency to its consumers.
USAGE_REQUIREMENTS = (
    PropertyKind.INCLUDE_DIRECTORIES,
    PropertyKind.SYSTEM_INCLUDE_DIRECTORIES,
    PropertyKind.COMPILE_OPTIONS,
    PropertyKind.COMPILE_DEFINITIONS,
    PropertyKind.LINK_OPTIONS,
)


def _adapt_path(value: Any) -> Path:
    if isinstance(value, (str, Path)):
        return Path(value)
    raise TypeError(f"expected str or Path, got {type(value).__name__}")


@dataclasses.dataclass
class ScopedValues:
    own: list[Any] = dataclasses.field(default_factory=list)
    interface: list[Any] = dataclasses.field(default_factory=list)

    def get(self, scope: Scope) -> list[Any]:
        return self.own if scope == Scope.OWN else self.interface

    def __bool__(self) -> bool:
        return bool(self.own or self.interface)


class PropertyBag:
    """
    Stores the values of every :class:`PropertyKind` of a single target.

    >>> bag = PropertyBag()
    >>> bag.add(PropertyKind.COMPILE_DEFINITIONS, ["A", "B"], Visibility.PUBLIC)
    True
    >>> bag.add(PropertyKind.COMPILE_DEFINITIONS, ["B"], Visibility.PRIVATE)
    False
    >>> bag.get(PropertyKind.COMPILE_DEFINITIONS, Scope.INTERFACE)
    ['A', 'B']
    """

    ValueAdapter = Callable[[Any], Any]

    # Adapters that are attempted, in order of the accepted types of a property kind, when a value is not
    # already an instance of one of the accepted types.
    VALUE_ADAPTERS: ClassVar[dict[type, ValueAdapter]] = {
        Path: _adapt_path,
    }

    def __init__(self) -> None:
        self._values: dict[PropertyKind, ScopedValues] = {}

    def __repr__(self) -> str:
        return f"PropertyBag({ {k.value: v for k, v in self._values.items() if v} })"

    def _adapt(self, kind: PropertyKind, value: Any) -> Any:
        accepted = kind.accepted_types
        if isinstance(value, accepted):
            return self.VALUE_ADAPTERS.get(type(value), lambda x: x)(value)
        for type_ in accepted:
            adapter = self.VALUE_ADAPTERS.get(type_)
            if adapter is None:
                continue
            try:
                return adapter(value)
            except TypeError:
                pass
        raise TypeError(
            f"{kind.name} items must be of type {kind.item_type}, got {type(value).__name__} ({value!r})"
        )

    def _slot(self, kind: PropertyKind) -> ScopedValues:
        return self._values.setdefault(kind, ScopedValues())

    def get(self, kind: PropertyKind, scope: Scope = Scope.OWN) -> list[Any]:
        values = self._values.get(kind)
        return list(values.get(scope)) if values else []

    def scoped(self, kind: PropertyKind) -> ScopedValues:
        """Returns a copy of both scopes of *kind*."""

        values = self._values.get(kind) or ScopedValues()
        return ScopedValues(list(values.own), list(values.interface))

    def add(
        self,
        kind: PropertyKind,
        items: Iterable[Any],
        visibility: Visibility | Iterable[Scope],
        before: bool = False,
    ) -> bool:
        """
        Adds *items* to the scopes selected by *visibility*. Items already present in a scope are skipped.
        Returns `True` if any scope was modified.
        """

        scopes = visibility.scopes if isinstance(visibility, Visibility) else tuple(visibility)
        adapted = [self._adapt(kind, item) for item in items]
        slot = self._slot(kind)
        changed = False
        for scope in scopes:
            current = slot.get(scope)
            new_items = []
            for item in adapted:
                if item not in current and item not in new_items:
                    new_items.append(item)
            if not new_items:
                continue
            changed = True
            if before:
                current[:0] = new_items
            else:
                current.extend(new_items)
        return changed

    def set(self, kind: PropertyKind, scope: Scope, items: Iterable[Any]) -> None:
        """Replaces the values of *kind* in *scope* verbatim, duplicates included."""

        values = [self._adapt(kind, item) for item in items]
        current = self._slot(kind).get(scope)
        current[:] = values

    def kinds(self) -> Iterator[PropertyKind]:
        """Iterates over the property kinds that have at least one value."""

        for kind in PropertyKind:
            if self._values.get(kind):
                yield kind
