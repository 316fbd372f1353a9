""" A target is a compilation or link unit of the build graph. Logical libraries that contain relocatable device
code are expanded into several physical targets (see :mod:`rdcgraph.core.system.synthesizer`), which refer to each
other through :class:`ShadowRefs`. """

from __future__ import annotations

import dataclasses
import enum
from pathlib import Path

from rdcgraph.core.system.property import PropertyBag, PropertyKind, Scope, Visibility

__all__ = [
    "BinaryType",
    "DependencyEdge",
    "HostKind",
    "InstallRule",
    "LibraryType",
    "RuntimeMode",
    "ShadowRefs",
    "SourceFile",
    "Target",
    "TargetKind",
    "Visibility",
]

#: The language tag of device sources.
DEVICE_LANGUAGE = "CUDA"


class TargetKind(enum.Enum):
    PLAIN = "plain"  #: An ordinary library or executable.
    OBJECT = "object"  #: Compiles the device-separable objects of a device library.
    STATIC = "static"  #: The static archive that is the input of device-link steps.
    SHARED_MIDDLE = "middle"  #: The canonical link target of a device library; never device-linked.
    FINAL = "final"  #: Hosts the device-link result of a device library.
    INTERFACE = "interface"  #: A header-only library.
    ALIAS = "alias"  #: Another name for a canonical target.


class BinaryType(enum.Enum):
    STATIC_LIBRARY = "STATIC_LIBRARY"
    SHARED_LIBRARY = "SHARED_LIBRARY"
    MODULE_LIBRARY = "MODULE_LIBRARY"
    OBJECT_LIBRARY = "OBJECT_LIBRARY"
    INTERFACE_LIBRARY = "INTERFACE_LIBRARY"
    EXECUTABLE = "EXECUTABLE"


class LibraryType(enum.Enum):
    """The kind of library requested by a user."""

    STATIC = "STATIC"
    SHARED = "SHARED"
    MODULE = "MODULE"
    OBJECT = "OBJECT"
    INTERFACE = "INTERFACE"

    @property
    def binary(self) -> BinaryType:
        return BinaryType(f"{self.value}_LIBRARY")

    @staticmethod
    def parse(value: str | LibraryType) -> LibraryType:
        if isinstance(value, LibraryType):
            return value
        return LibraryType(value.upper())


class HostKind(enum.Enum):
    LIBRARY = "library"
    EXECUTABLE = "executable"
    INTERFACE = "interface"


class RuntimeMode(enum.Enum):
    """The flavor of the device runtime that a target and its transitive dependencies must agree on."""

    UNSET = "Unset"
    STATIC = "Static"
    SHARED = "Shared"

    def is_set(self) -> bool:
        return self != RuntimeMode.UNSET

    @staticmethod
    def parse(value: str | RuntimeMode) -> RuntimeMode:
        if isinstance(value, RuntimeMode):
            return value
        return RuntimeMode(value.capitalize())


@dataclasses.dataclass(frozen=True)
class ShadowRefs:
    """
    The physical targets of a logical device library. In static builds :attr:`static_target` and
    :attr:`middle_target` are the same target.
    """

    object_target: str
    static_target: str
    middle_target: str
    final_target: str

    def distinct(self) -> list[str]:
        """
        >>> ShadowRefs("a_objects", "a", "a", "a_final").distinct()
        ['a_objects', 'a', 'a_final']
        """

        result: list[str] = []
        for name in (self.object_target, self.static_target, self.middle_target, self.final_target):
            if name not in result:
                result.append(name)
        return result

    def is_static_build(self) -> bool:
        return self.static_target == self.middle_target


@dataclasses.dataclass(frozen=True)
class SourceFile:
    path: Path
    language: str | None = None

    @property
    def is_device(self) -> bool:
        return self.language == DEVICE_LANGUAGE


@dataclasses.dataclass(frozen=True)
class DependencyEdge:
    consumer: str
    dependency: str
    visibility: Visibility


@dataclasses.dataclass(frozen=True)
class InstallRule:
    destination: str | None = None
    component: str | None = None
    export: str | None = None


class Target:
    """A node of the build graph."""

    def __init__(
        self,
        name: str,
        kind: TargetKind,
        binary: BinaryType | None,
        sources: list[SourceFile] | None = None,
        shadow: ShadowRefs | None = None,
        alias_of: str | None = None,
    ) -> None:
        assert isinstance(name, str) and name, name
        assert (kind == TargetKind.ALIAS) == (alias_of is not None), (kind, alias_of)
        self.name = name
        self.kind = kind
        self.binary = binary
        self.sources: list[SourceFile] = list(sources or ())
        self.shadow = shadow
        self.alias_of = alias_of
        self.properties = PropertyBag()
        self.runtime_mode = RuntimeMode.UNSET
        self.position_independent_code: bool | None = None
        self.separable_compilation: bool | None = None
        self.resolve_device_symbols: bool | None = None
        self.linker_language: str | None = None
        self.exclude_from_all = False
        #: The object library whose compiled objects make up this target (static and middle targets).
        self.object_library: str | None = None
        #: The final libraries this consumer was last resolved against and links directly.
        self.final_libraries: list[str] = []
        self.build_dependencies: list[str] = []
        self.install_rules: list[InstallRule] = []

    def __repr__(self) -> str:
        return f"Target(name={self.name!r}, kind={self.kind.name})"

    @property
    def contains_device_code(self) -> bool:
        return self.shadow is not None or any(source.is_device for source in self.sources)

    @property
    def host_kind(self) -> HostKind:
        if self.binary == BinaryType.EXECUTABLE:
            return HostKind.EXECUTABLE
        if self.binary == BinaryType.INTERFACE_LIBRARY:
            return HostKind.INTERFACE
        return HostKind.LIBRARY

    @property
    def is_interface(self) -> bool:
        return self.host_kind == HostKind.INTERFACE

    @property
    def performs_device_link(self) -> bool:
        """Whether the host runs a device-link step when linking this target."""

        if self.resolve_device_symbols is not None:
            return self.resolve_device_symbols
        return self.binary == BinaryType.EXECUTABLE and self.contains_device_code

    @property
    def link_libraries(self) -> list[str]:
        return self.properties.get(PropertyKind.LINK_LIBRARIES, Scope.OWN)

    @property
    def interface_link_libraries(self) -> list[str]:
        return self.properties.get(PropertyKind.LINK_LIBRARIES, Scope.INTERFACE)
