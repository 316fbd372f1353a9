"""
The consumer facing operations of the build graph. Every operation resolves aliases, asks
:meth:`RdcFacade.is_device_aware` once and then takes either the native path (which maps one-to-one onto the
host's primitives) or the shadow-aware path.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from rdcgraph.common import pluralize, unique
from rdcgraph.core.system.aliases import AliasResolver
from rdcgraph.core.system.errors import ContextFinalizedError, RuntimeModeConflictError, TargetNotFoundError
from rdcgraph.core.system.graph import TargetGraph
from rdcgraph.core.system.host import Host
from rdcgraph.core.system.property import DeviceLink, PropertyKind, Scope, Visibility
from rdcgraph.core.system.propagator import PropertyPropagator
from rdcgraph.core.system.resolver import DependencyResolver
from rdcgraph.core.system.settings import BuildSettings
from rdcgraph.core.system.synthesizer import ShadowSynthesizer
from rdcgraph.core.system.target import (
    BinaryType,
    HostKind,
    InstallRule,
    LibraryType,
    RuntimeMode,
    SourceFile,
    Target,
)

logger = logging.getLogger(__name__)


class RdcFacade:
    def __init__(
        self,
        graph: TargetGraph,
        aliases: AliasResolver,
        host: Host,
        settings: BuildSettings,
        synthesizer: ShadowSynthesizer,
        propagator: PropertyPropagator,
        resolver: DependencyResolver,
    ) -> None:
        self._graph = graph
        self._aliases = aliases
        self._host = host
        self._settings = settings
        self._synthesizer = synthesizer
        self._propagator = propagator
        self._resolver = resolver
        self._frozen = False

    # Internal helpers

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ContextFinalizedError()

    def _classify(self, source: Path | str) -> SourceFile:
        return SourceFile(Path(source), self._host.source_language(source))

    def _set_flag(self, target: Target, flag: str, value: Any) -> None:
        if getattr(target, flag) == value:
            return
        setattr(target, flag, value)
        self._host.declare_target_flag(target.name, flag, value)

    def _link(self, name: str, visibility: Visibility, items: Sequence[str]) -> None:
        """Adds a native link dependency and mirrors the usage requirements that the host propagates."""

        self._graph.add_link_libraries(name, items, visibility)
        self._host.declare_dependency(name, visibility, list(items))
        for item in items:
            self._propagator.propagate_usage(name, item, visibility)

    def _should_finalize(self, target: Target) -> bool:
        if target.host_kind == HostKind.EXECUTABLE:
            return True
        return (
            self._settings.finalize_static_libraries
            and target.binary == BinaryType.STATIC_LIBRARY
            and target.shadow is None
        )

    def _device_libraries(self, target: Target) -> list[str]:
        """Returns the distinct shadow targets of a device library, or just *target* otherwise."""

        if target.shadow is None or not self._host.has_device_compiler():
            return [target.name]
        return target.shadow.distinct()

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # Public API

    def is_device_aware(self, name: str) -> bool:
        """
        The single capability check of every operation: a target takes the shadow-aware path only if the host
        has a device compiler and the target contains device code.
        """

        if not self._host.has_device_compiler():
            return False
        target = self._aliases.find(name)
        return target is not None and target.contains_device_code

    def add_library(
        self,
        name: str,
        kind: LibraryType | str | None = None,
        sources: Iterable[Path | str] = (),
        exclude_from_all: bool = False,
    ) -> str:
        """
        Declares a library and returns the name of its canonical link target. A library with device sources is
        expanded into its shadow targets if the host has a device compiler; every other library is declared
        natively. `OBJECT` and `INTERFACE` libraries are always declared natively.
        """

        self._check_mutable()
        requested = LibraryType.parse(kind) if kind is not None else None
        files = [self._classify(source) for source in sources]
        has_device_sources = self._host.has_device_compiler() and any(f.is_device for f in files)

        if not has_device_sources or requested in (LibraryType.OBJECT, LibraryType.INTERFACE):
            logger.debug("library %s is declared natively", name)
            self._synthesizer.declare_native_library(name, requested, files, exclude_from_all)
            return name

        return self._synthesizer.synthesize(name, requested, files, exclude_from_all).middle_target

    def add_executable(self, name: str, sources: Iterable[Path | str] = ()) -> str:
        self._check_mutable()
        self._synthesizer.declare_executable(name, [self._classify(source) for source in sources])
        return name

    def add_alias(self, alias: str, target: str) -> None:
        self._check_mutable()
        self._aliases.add_alias(alias, target)
        self._host.declare_alias(alias, target)

    def add_dependency(
        self,
        consumer: str,
        *dependencies: str,
        visibility: Visibility | str = Visibility.PRIVATE,
    ) -> None:
        """
        Links *dependencies* into *consumer*.

        For a device library the dependencies are linked into its middle and object targets (and their usage
        requirements are forwarded to its static archive); device libraries among the dependencies are
        referenced through their middle targets. An executable consumer is then resolved against its final
        libraries (see :meth:`resolve_final_libraries`), and a consumer with device code gets a device-link
        step over the static archives of every device library it reaches.
        """

        self._check_mutable()
        visibility = Visibility.parse(visibility)
        items = list(dependencies)
        name = self._aliases.canonical(consumer)
        target = self._graph.get_target(name)

        if not self._host.has_device_compiler():
            self._link(name, visibility, items)
            return

        device = self.is_device_aware(name)
        shadow = target.shadow
        middle = shadow.middle_target if shadow else name
        final = shadow.final_target if shadow else name

        self._link(middle, visibility, items)
        self._propagator.use_middle_targets(middle)
        if shadow is not None:
            self._link(shadow.object_target, visibility, items)
            self._propagator.use_middle_targets(shadow.object_target)
            if not shadow.is_static_build():
                for item in items:
                    self._propagator.propagate_usage(
                        shadow.static_target, self._propagator.middle_of(item), visibility, declare=True
                    )

        if self._should_finalize(target):
            device = self._finalize_consumer(target, device)

        if device:
            self._add_device_link(target, middle, final)
        elif target.resolve_device_symbols is not False and self._resolver.gather_device_dependencies(name):
            # The host would otherwise device-link a consumer that reaches device code on its own.
            self._set_flag(target, "resolve_device_symbols", False)

    def _finalize_consumer(self, target: Target, device: bool) -> bool:
        """
        Applies the final library policy to a consumer. Returns whether the consumer has device code
        afterwards (it is promoted when it reaches more than one final library).
        """

        finals = self._resolver.resolve_final_libraries(target.name)
        target.final_libraries = finals

        if device:
            if finals:
                self._set_flag(target, "separable_compilation", True)
            return True

        if len(finals) == 1:
            logger.info("%s links final library %s", target.name, finals[0])
            self._set_flag(target, "resolve_device_symbols", False)
            if target.binary == BinaryType.STATIC_LIBRARY:
                # A static consumer lists its link inputs around the final library for two-pass resolution.
                current = unique(target.link_libraries)
                bracketed = [*current, *finals, *current]
                self._graph.set_link_libraries(target.name, Scope.OWN, bracketed)
                self._host.set_link_libraries(target.name, Scope.OWN, bracketed)
            else:
                self._link(target.name, Visibility.PUBLIC, finals)
            return False

        if len(finals) > 1:
            logger.info(
                "%s reaches %d independent final %s (%s) and performs its own device link",
                target.name,
                len(finals),
                pluralize("library", finals),
                ", ".join(finals),
            )
            stub = self._synthesizer.empty_device_source(target.name)
            if stub not in target.sources:
                target.sources.append(stub)
                self._host.declare_sources(target.name, [stub.path])
            self._set_flag(target, "separable_compilation", True)
            self._set_flag(target, "resolve_device_symbols", True)
            return True

        return False

    def _add_device_link(self, target: Target, middle: str, final: str) -> None:
        """
        Checks that the device runtime of *target* agrees with every device library it reaches, and makes the
        device-link performer (*final*) consume the static archive of each of them.
        """

        own_mode = target.runtime_mode
        required, source = own_mode, target.name
        performer = self._graph.get_target(final)

        for lib in self._resolver.gather_device_dependencies(middle):
            node = self._graph.get_target(lib)
            mode = node.runtime_mode
            if not required.is_set():
                if mode.is_set():
                    required, source = mode, lib
            elif mode.is_set() and mode != required:
                if own_mode.is_set() and own_mode != mode:
                    raise RuntimeModeConflictError(target.name, lib, mode, target.name, own_mode)
                raise RuntimeModeConflictError(target.name, lib, mode, source, required)

            if not own_mode.is_set() and required.is_set():
                self._set_flag(target, "runtime_mode", required)

            assert node.shadow is not None
            static = node.shadow.static_target
            device_link = DeviceLink(static)
            if performer.properties.add(PropertyKind.LINK_OPTIONS, [device_link], Visibility.PRIVATE):
                self._host.declare_property(final, PropertyKind.LINK_OPTIONS, Visibility.PRIVATE, [device_link])
            self._propagator.catch_up_final(static, final)
            if static not in performer.build_dependencies:
                performer.build_dependencies.append(static)
                self._host.declare_build_dependency(final, static)

    def add_include_dirs(
        self,
        target: str,
        visibility: Visibility | str,
        dirs: Iterable[Path | str],
        system: bool = False,
        before: bool = False,
    ) -> None:
        """Adds include directories. For a device library they apply to its object and middle targets."""

        self._check_mutable()
        visibility = Visibility.parse(visibility)
        paths = [Path(d) for d in dirs]
        kind = PropertyKind.SYSTEM_INCLUDE_DIRECTORIES if system else PropertyKind.INCLUDE_DIRECTORIES
        node = self._graph.get_target(self._aliases.canonical(target))

        if self.is_device_aware(node.name) and node.shadow is not None:
            names = unique([node.shadow.object_target, node.shadow.middle_target])
        else:
            names = [node.name]

        for name in names:
            self._graph.get_target(name).properties.add(kind, paths, visibility, before=before)
            self._host.declare_include_dirs(name, visibility, paths, system, before)

    def _add_property(
        self,
        target: str,
        kind: PropertyKind,
        visibility: Visibility | str,
        items: Sequence[Any],
    ) -> None:
        self._check_mutable()
        visibility = Visibility.parse(visibility)
        node = self._graph.get_target(self._aliases.canonical(target))

        shadow = node.shadow if self.is_device_aware(node.name) else None
        if shadow is not None:
            names = unique([shadow.object_target, shadow.static_target, shadow.middle_target])
        else:
            names = [node.name]

        for name in names:
            self._graph.get_target(name).properties.add(kind, items, visibility)
            self._host.declare_property(name, kind, visibility, list(items))
        if shadow is not None:
            self._propagator.catch_up_final(shadow.static_target, shadow.final_target)

    def add_compile_options(self, target: str, visibility: Visibility | str, options: Sequence[str]) -> None:
        self._add_property(target, PropertyKind.COMPILE_OPTIONS, visibility, options)

    def add_compile_definitions(self, target: str, visibility: Visibility | str, definitions: Sequence[str]) -> None:
        self._add_property(target, PropertyKind.COMPILE_DEFINITIONS, visibility, definitions)

    def add_link_options(self, target: str, visibility: Visibility | str, options: Sequence[str]) -> None:
        self._add_property(target, PropertyKind.LINK_OPTIONS, visibility, options)

    def set_runtime_mode(self, target: str, mode: RuntimeMode | str) -> None:
        """Sets the device runtime of a target; for a device library, of all of its shadow targets."""

        self._check_mutable()
        mode = RuntimeMode.parse(mode)
        node = self._graph.get_target(self._aliases.canonical(target))
        for name in self._device_libraries(node):
            self._set_flag(self._graph.get_target(name), "runtime_mode", mode)

    def install(
        self,
        *targets: str,
        destination: str | None = None,
        component: str | None = None,
        export: str | None = None,
    ) -> list[str]:
        """
        Declares one install rule for *targets*. A device library is installed as its final, middle and static
        targets. Returns the names that were passed to the host.
        """

        self._check_mutable()
        names: list[str] = []
        for name in targets:
            node = self._aliases.find(name)
            if node is None:
                raise TargetNotFoundError(name)
            if self.is_device_aware(node.name) and node.shadow is not None and not node.is_interface:
                shadow = node.shadow
                names.extend(unique([shadow.final_target, shadow.middle_target, shadow.static_target]))
            else:
                names.append(name)

        names = unique(names)
        rule = InstallRule(destination, component, export)
        for name in names:
            node = self._aliases.find(name)
            if node is not None:
                node.install_rules.append(rule)
        self._host.declare_install_rule(names, rule)
        return names

    def resolve_final_libraries(self, consumer: str) -> list[str]:
        """Returns the final libraries that *consumer* must link or device-link, see :class:`DependencyResolver`."""

        return self._resolver.resolve_final_libraries(self._aliases.canonical(consumer))
