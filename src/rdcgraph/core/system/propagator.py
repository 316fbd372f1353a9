"""
Keeps the properties of shadow targets consistent with each other and with their dependencies.

Usage requirements that flow along ordinary link edges are handled by the host itself; the propagator mirrors
them into the target model so that later queries see the same values. Targets that are not connected through a
link edge (the static archive of a device library, and its final library) are told about the values explicitly.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from rdcgraph.common import unique
from rdcgraph.core.system.aliases import AliasResolver
from rdcgraph.core.system.graph import TargetGraph
from rdcgraph.core.system.host import Host
from rdcgraph.core.system.property import USAGE_REQUIREMENTS, PropertyKind, Scope, Visibility

logger = logging.getLogger(__name__)

#: The properties that a final library must receive from the static archive it device-links.
FINAL_CATCH_UP = (
    PropertyKind.COMPILE_OPTIONS,
    PropertyKind.COMPILE_DEFINITIONS,
    PropertyKind.LINK_OPTIONS,
)


class PropertyPropagator:
    def __init__(self, graph: TargetGraph, aliases: AliasResolver, host: Host) -> None:
        self._graph = graph
        self._aliases = aliases
        self._host = host

    def declare(self, target: str, kind: PropertyKind, visibility: Visibility, items: Sequence[Any]) -> None:
        """Forwards a property declaration to the host."""

        if kind in (PropertyKind.INCLUDE_DIRECTORIES, PropertyKind.SYSTEM_INCLUDE_DIRECTORIES):
            system = kind == PropertyKind.SYSTEM_INCLUDE_DIRECTORIES
            self._host.declare_include_dirs(target, visibility, list(items), system, False)
        else:
            self._host.declare_property(target, kind, visibility, list(items))

    def _add(self, target: str, kind: PropertyKind, visibility: Visibility, items: list[Any], declare: bool) -> bool:
        properties = self._graph.get_target(target).properties
        previous = {scope: properties.get(kind, scope) for scope in visibility.scopes}
        if not properties.add(kind, items, visibility):
            return False
        if declare:
            new_items = [item for item in items if any(item not in previous[scope] for scope in visibility.scopes)]
            self.declare(target, kind, visibility, new_items)
        return True

    def transfer(self, source: str, dest: str, kind: PropertyKind) -> bool:
        """
        Copies the own and interface values of *kind* from *source* into the own scope of *dest*. Values that
        *dest* already has are skipped, so repeating a transfer is a no-op. Returns `True` if *dest* changed.
        """

        scoped = self._graph.get_target(source).properties.scoped(kind)
        items = unique([*scoped.own, *scoped.interface])
        if not items:
            return False
        changed = self._add(dest, kind, Visibility.PRIVATE, items, declare=True)
        if changed:
            logger.debug("transferred %s from %s to %s", kind.name, source, dest)
        return changed

    def propagate_usage(self, consumer: str, dependency: str, visibility: Visibility, declare: bool = False) -> bool:
        """
        Copies the interface usage requirements of *dependency* into *consumer* according to *visibility*. If
        *declare* is set, the host is told about the new values (for targets that do not link *dependency*).
        """

        target = self._aliases.find(dependency)
        if target is None:
            return False

        changed = False
        for kind in USAGE_REQUIREMENTS:
            items = target.properties.get(kind, Scope.INTERFACE)
            if items:
                changed = self._add(consumer, kind, visibility, items, declare) or changed
        return changed

    def catch_up_final(self, static: str, final: str) -> bool:
        """
        A final library consumes its static archive only through the device linker, so ordinary usage
        requirements never reach it. Copies the compile options, compile definitions and link options.
        """

        changed = False
        for kind in FINAL_CATCH_UP:
            changed = self.transfer(static, final, kind) or changed
        return changed

    def middle_of(self, item: str) -> str:
        """
        Returns the canonical link target for a link item: the middle target if *item* names (or aliases) any
        shadow target of a device library, otherwise *item* itself.
        """

        target = self._aliases.find(item)
        if target is None or target.shadow is None or target.is_interface:
            return item
        return target.shadow.middle_target

    def use_middle_targets(self, name: str) -> bool:
        """
        Rewrites the link-library lists of *name* so that device libraries are referenced through their middle
        targets (final libraries included), then propagates the usage requirements of every rewritten item.
        Duplicates are removed from a rewritten list. Returns `True` if a list changed.
        """

        target = self._graph.get_target(name)
        changed = False
        for scope, visibility in ((Scope.OWN, Visibility.PRIVATE), (Scope.INTERFACE, Visibility.INTERFACE)):
            items = target.properties.get(PropertyKind.LINK_LIBRARIES, scope)
            rewritten = unique(map(self.middle_of, items))
            if rewritten == items:
                continue
            changed = True
            self._graph.set_link_libraries(name, scope, rewritten)
            self._host.set_link_libraries(name, scope, rewritten)
            for old in unique(items):
                new = self.middle_of(old)
                if old != new:
                    logger.debug("%s: link item %s rewritten to %s", name, old, new)
                    self.propagate_usage(name, new, visibility)
        return changed
