"""
Graph queries over the link edges of the target graph: reachability, and the minimal set of final libraries
that a consumer has to use.

Every device library that a consumer reaches must be device-linked exactly once into the process. When one
device library depends on another, the final library of the dependent one already contains the device code of
both, so only the most downstream libraries of the consumer's dependency graph are relevant. Libraries that are
unrelated to each other each contribute their own final library.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from rdcgraph.common import not_none, unique
from rdcgraph.core.system.aliases import AliasResolver
from rdcgraph.core.system.graph import TargetGraph

logger = logging.getLogger(__name__)


class DependencyResolver:
    def __init__(self, graph: TargetGraph, aliases: AliasResolver) -> None:
        self._graph = graph
        self._aliases = aliases

    def depends_on(self, lib: str, potential_dependency: str) -> bool:
        """
        Returns `True` if *potential_dependency* is a direct or transitive link dependency of *lib*. Both names
        are resolved through aliases. Interface libraries are nodes of the graph but have no link edges of their
        own. Unknown names depend on nothing and are depended on by nothing.
        """

        lib = self._aliases.canonical(lib)
        potential_dependency = self._aliases.canonical(potential_dependency)
        if not (self._graph.has_target(lib) and self._graph.has_target(potential_dependency)):
            return False
        if lib == potential_dependency:
            return False
        return potential_dependency in self._graph.descendants(lib)

    def gather_device_dependencies(self, target: str) -> list[str]:
        """
        Returns the middle targets of all device libraries that *target* reaches through link edges, in
        depth-first preorder and without duplicates. *target* itself is not included.
        """

        result: list[str] = []
        for name in self._graph.preorder(self._aliases.canonical(target)):
            node = self._graph.find_target(name)
            if node is None or node.shadow is None or node.is_interface:
                continue
            result.append(node.shadow.middle_target)
        return unique(result)

    def find_final_libraries(self, candidates: Iterable[str]) -> list[str]:
        """
        Reduces *candidates* to the elements that no other candidate depends on and maps each one to its final
        library. Candidates are folded left to right: a candidate that a kept element depends on is dropped,
        and kept elements that the candidate depends on are replaced by it. Interface libraries and names
        without a final library are ignored.
        """

        kept: list[str] = []
        for candidate in unique(map(self._aliases.canonical, candidates)):
            node = self._graph.find_target(candidate)
            if node is None or node.is_interface or node.shadow is None:
                continue
            if any(self.depends_on(existing, candidate) for existing in kept):
                continue
            kept = [existing for existing in kept if not self.depends_on(candidate, existing)]
            kept.append(candidate)

        finals = [not_none(self._graph.get_target(name).shadow).final_target for name in kept]
        return unique(finals)

    def resolve_final_libraries(self, consumer: str) -> list[str]:
        finals = self.find_final_libraries(self.gather_device_dependencies(consumer))
        logger.debug("%s resolves to final libraries %s", consumer, finals)
        return finals
