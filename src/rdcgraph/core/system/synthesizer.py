"""
Expands a logical library into the physical targets required for relocatable device code.

A shared device library `foo` is built as four targets:

* `foo_objects` compiles the sources once, as position independent, separately compiled device code.
* `foo_static` archives those objects; it is the input of every device-link step that involves `foo`.
* `foo` (the *middle* target) links the same objects into the actual library, without resolving device
  symbols. Every other target that links `foo` links this one.
* `foo_final` is built from an empty device translation unit, links `foo` publicly and hosts the result of
  device-linking `foo_static`. Consumers without device code of their own link this one.

In a static build the static archive and the middle target are the same target.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from rdcgraph.common import unique
from rdcgraph.core.system.aliases import AliasResolver
from rdcgraph.core.system.errors import DuplicateTargetError, ModuleLibraryError
from rdcgraph.core.system.graph import TargetGraph
from rdcgraph.core.system.host import Host
from rdcgraph.core.system.property import DeviceLink, PropertyKind, Visibility
from rdcgraph.core.system.settings import BuildSettings
from rdcgraph.core.system.target import (
    DEVICE_LANGUAGE,
    BinaryType,
    LibraryType,
    RuntimeMode,
    ShadowRefs,
    SourceFile,
    Target,
    TargetKind,
)

logger = logging.getLogger(__name__)

EMPTY_DEVICE_SOURCE = "/* intentionally empty. */"


def generate_empty_device_source(directory: Path, name: str) -> Path:
    """
    Returns the path of the empty device translation unit for *name*, writing it first if it does not exist.
    """

    path = directory / f"{name}_emptyfile.cu"
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(EMPTY_DEVICE_SOURCE)
        logger.debug("generated %s", path)
    return path


class ShadowSynthesizer:
    def __init__(self, graph: TargetGraph, aliases: AliasResolver, host: Host, settings: BuildSettings) -> None:
        self._graph = graph
        self._aliases = aliases
        self._host = host
        self._settings = settings

    def is_static_build(self, requested: LibraryType | None) -> bool:
        """A library is static unless it asks for a shared build or shared libraries are the default."""

        shared_default = self._settings.build_shared_libs
        return (not shared_default and requested != LibraryType.SHARED) or requested == LibraryType.STATIC

    def default_binary(self, requested: LibraryType | None) -> BinaryType:
        if requested is not None:
            return requested.binary
        return BinaryType.SHARED_LIBRARY if self._settings.build_shared_libs else BinaryType.STATIC_LIBRARY

    def shadow_names(self, name: str, static_build: bool) -> ShadowRefs:
        settings = self._settings
        middle = name + settings.middle_suffix
        return ShadowRefs(
            object_target=name + settings.object_suffix,
            static_target=middle if static_build else name + settings.static_suffix,
            middle_target=middle,
            final_target=name + settings.final_suffix,
        )

    def empty_device_source(self, name: str) -> SourceFile:
        path = generate_empty_device_source(self._settings.stub_directory, name)
        return SourceFile(path, DEVICE_LANGUAGE)

    # Native declarations

    def declare_native_library(
        self,
        name: str,
        requested: LibraryType | None,
        sources: Sequence[SourceFile],
        exclude_from_all: bool,
    ) -> Target:
        binary = self.default_binary(requested)
        kind = TargetKind.INTERFACE if binary == BinaryType.INTERFACE_LIBRARY else TargetKind.PLAIN
        target = self._graph.add_target(Target(name, kind, binary, list(sources)))
        target.exclude_from_all = exclude_from_all
        self._host.declare_library(name, binary, [s.path for s in sources], exclude_from_all)
        return target

    def declare_executable(self, name: str, sources: Sequence[SourceFile]) -> Target:
        target = self._graph.add_target(Target(name, TargetKind.PLAIN, BinaryType.EXECUTABLE, list(sources)))
        self._host.declare_executable(name, [s.path for s in sources])
        return target

    # Device libraries

    def _set_flag(self, target: Target, flag: str, value: Any) -> None:
        setattr(target, flag, value)
        self._host.declare_target_flag(target.name, flag, value)

    def _add_physical(
        self,
        name: str,
        kind: TargetKind,
        binary: BinaryType,
        refs: ShadowRefs,
        sources: list[SourceFile],
        exclude_from_all: bool,
        object_library: str | None = None,
    ) -> Target:
        target = self._graph.add_target(Target(name, kind, binary, sources, refs))
        target.exclude_from_all = exclude_from_all
        self._host.declare_library(name, binary, [s.path for s in sources], exclude_from_all)
        if object_library is not None:
            self._set_flag(target, "object_library", object_library)
        return target

    def synthesize(
        self,
        name: str,
        requested: LibraryType | None,
        sources: Sequence[SourceFile],
        exclude_from_all: bool = False,
    ) -> ShadowRefs:
        """
        Declares the shadow targets of device library *name* and returns their names. Nothing is declared if the
        request is rejected.
        """

        if requested == LibraryType.MODULE:
            raise ModuleLibraryError(name)

        static_build = self.is_static_build(requested)
        refs = self.shadow_names(name, static_build)
        new_names = refs.distinct() + ([name] if name != refs.middle_target else [])
        for new_name in new_names:
            if self._graph.has_target(new_name):
                raise DuplicateTargetError(new_name)

        binary = BinaryType.STATIC_LIBRARY if static_build else BinaryType.SHARED_LIBRARY
        runtime = RuntimeMode.STATIC if static_build else RuntimeMode.SHARED
        logger.info(
            "synthesizing %s device library %s (%s)",
            "static" if static_build else "shared",
            name,
            ", ".join(refs.distinct()),
        )

        objects = self._add_physical(
            refs.object_target, TargetKind.OBJECT, BinaryType.OBJECT_LIBRARY, refs, list(sources), exclude_from_all
        )
        self._set_flag(objects, "position_independent_code", True)
        self._set_flag(objects, "separable_compilation", True)
        self._set_flag(objects, "runtime_mode", runtime)

        if not static_build:
            static = self._add_physical(
                refs.static_target,
                TargetKind.STATIC,
                BinaryType.STATIC_LIBRARY,
                refs,
                [],
                exclude_from_all,
                refs.object_target,
            )
            self._set_flag(static, "linker_language", DEVICE_LANGUAGE)
            self._set_flag(static, "separable_compilation", True)
            self._set_flag(static, "runtime_mode", runtime)

        middle = self._add_physical(
            refs.middle_target, TargetKind.SHARED_MIDDLE, binary, refs, [], exclude_from_all, refs.object_target
        )
        self._set_flag(middle, "position_independent_code", True)
        self._set_flag(middle, "separable_compilation", True)
        self._set_flag(middle, "runtime_mode", runtime)
        self._set_flag(middle, "resolve_device_symbols", False)

        final = self._add_physical(
            refs.final_target, TargetKind.FINAL, binary, refs, [self.empty_device_source(name)], exclude_from_all
        )
        self._set_flag(final, "linker_language", DEVICE_LANGUAGE)
        self._set_flag(final, "resolve_device_symbols", True)
        self._set_flag(final, "separable_compilation", True)
        self._set_flag(final, "runtime_mode", runtime)

        self._graph.add_link_libraries(final.name, [middle.name], Visibility.PUBLIC)
        self._host.declare_dependency(final.name, Visibility.PUBLIC, [middle.name])
        device_link = DeviceLink(refs.static_target)
        final.properties.add(PropertyKind.LINK_OPTIONS, [device_link], Visibility.PRIVATE)
        self._host.declare_property(final.name, PropertyKind.LINK_OPTIONS, Visibility.PRIVATE, [device_link])
        for dependency in unique([refs.middle_target, refs.static_target]):
            final.build_dependencies.append(dependency)
            self._host.declare_build_dependency(final.name, dependency)

        if name != refs.middle_target:
            self._aliases.add_alias(name, refs.middle_target)
            self._host.declare_alias(name, refs.middle_target)

        return refs
