from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Iterator
from typing import Any, cast

from networkx import DiGraph, NetworkXUnfeasible, descendants, dfs_preorder_nodes, subgraph_view, transitive_reduction
from networkx.algorithms import topological_sort

from rdcgraph.common import unique
from rdcgraph.core.system.errors import DuplicateTargetError, TargetNotFoundError
from rdcgraph.core.system.property import PropertyKind, Scope, Visibility
from rdcgraph.core.system.target import DependencyEdge, Target

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class _Edge:
    own: bool
    interface: bool
    alias: bool = False


class TargetGraph:
    """The target graph stores the targets of one build description as a directed graph.

    Edges point from a consumer to the items of its link-library lists. Link items that do not (yet) name a
    target are kept as nodes without data, so a library that is declared after it was first referenced is
    connected automatically. An alias target has a single edge to the target it aliases."""

    def __init__(self) -> None:
        # Nodes have the form {'data': Target} (or no data for unknown link items) and edges {'data': _Edge}.
        self._digraph = DiGraph()

    def __len__(self) -> int:
        return sum(1 for _ in self.targets())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find_target(name) is not None

    # Low level internal API

    def _get_edge(self, u: str, v: str) -> _Edge:
        return cast(_Edge, self._digraph.edges[u, v]["data"])

    def _sync_edges(self, name: str) -> None:
        """Rebuild the outgoing link edges of *name* from its link-library lists."""

        target = self.get_target(name)
        for succ in list(self._digraph.successors(name)):
            if not self._get_edge(name, succ).alias:
                self._digraph.remove_edge(name, succ)

        own = target.link_libraries
        interface = target.interface_link_libraries
        for item in unique([*own, *interface]):
            if item == name:
                continue
            self._digraph.add_edge(name, item, data=_Edge(own=item in own, interface=item in interface))

    def _is_link_edge(self, u: str, v: str) -> bool:
        edge = self._get_edge(u, v)
        if edge.alias:
            return True
        if not edge.own:
            return False
        source = self.find_target(u)
        return source is not None and not source.is_interface

    # Public API

    def add_target(self, target: Target) -> Target:
        if self.find_target(target.name) is not None:
            raise DuplicateTargetError(target.name)
        self._digraph.add_node(target.name, data=target)
        if target.alias_of is not None:
            self._digraph.add_edge(target.name, target.alias_of, data=_Edge(own=False, interface=False, alias=True))
        logger.debug("added target %s (%s)", target.name, target.kind.name)
        return target

    def find_target(self, name: str) -> Target | None:
        data = self._digraph.nodes.get(name)
        if data is None:
            return None
        return cast("Target | None", data.get("data"))

    def get_target(self, name: str) -> Target:
        target = self.find_target(name)
        if target is None:
            raise TargetNotFoundError(name)
        return target

    def has_target(self, name: str) -> bool:
        return self.find_target(name) is not None

    def targets(self) -> Iterator[Target]:
        """Returns the targets in the order they were declared."""

        for _name, data in self._digraph.nodes(data="data"):
            if data is not None:
                yield data

    def add_link_libraries(self, name: str, items: Iterable[str], visibility: Visibility) -> bool:
        changed = self.get_target(name).properties.add(PropertyKind.LINK_LIBRARIES, items, visibility)
        if changed:
            self._sync_edges(name)
        return changed

    def set_link_libraries(self, name: str, scope: Scope, items: Iterable[str]) -> None:
        self.get_target(name).properties.set(PropertyKind.LINK_LIBRARIES, scope, items)
        self._sync_edges(name)

    def edges(self) -> Iterator[DependencyEdge]:
        """Returns all dependency edges (alias edges excluded)."""

        for u, v, edge in self._digraph.edges(data="data"):
            if not edge.alias:
                yield DependencyEdge(u, v, Visibility.of(edge.own, edge.interface))

    def link_view(self) -> Any:
        """
        Returns a read-only view of the graph that contains only the edges that participate in linking: the
        own-scope link edges of non-interface targets, and alias edges.
        """

        return subgraph_view(self._digraph, filter_edge=self._is_link_edge)

    def descendants(self, name: str) -> set[str]:
        """Returns every node that is reachable from *name* through link edges."""

        if name not in self._digraph:
            return set()
        return cast("set[str]", descendants(self.link_view(), name))

    def preorder(self, name: str) -> Iterator[str]:
        """Iterates depth-first in preorder over the nodes reachable from *name*, excluding *name* itself."""

        if name not in self._digraph:
            return
        nodes = dfs_preorder_nodes(self.link_view(), name)
        next(nodes)
        yield from nodes

    def dependency_order(self) -> list[Target]:
        """Returns all targets such that every target comes after the targets it depends on."""

        try:
            order = list(topological_sort(self._digraph))
        except NetworkXUnfeasible as exc:
            raise RuntimeError("encountered a dependency cycle in the target graph") from exc
        return [target for target in map(self.find_target, reversed(order)) if target is not None]

    def reduce(self) -> DiGraph:
        """Returns a transitively reduced copy of the graph (node data is kept, edge data is not)."""

        reduced = transitive_reduction(self._digraph)
        reduced.add_nodes_from(self._digraph.nodes(data=True))
        return reduced

    @property
    def digraph(self) -> DiGraph:
        return self._digraph
