from __future__ import annotations

import logging

from rdcgraph.core.system.errors import ConfigurationError
from rdcgraph.core.system.graph import TargetGraph
from rdcgraph.core.system.target import Target, TargetKind

logger = logging.getLogger(__name__)


class AliasResolver:
    """Maps user-visible names to the canonical targets they refer to."""

    def __init__(self, graph: TargetGraph) -> None:
        self._graph = graph

    def canonical(self, name: str) -> str:
        """
        Follows alias targets until a non-alias target is reached. Names that do not refer to a target (plain
        link items such as `m` or `-lpthread`) are returned unchanged.
        """

        visited = {name}
        target = self._graph.find_target(name)
        while target is not None and target.alias_of is not None:
            name = target.alias_of
            if name in visited:
                break
            visited.add(name)
            target = self._graph.find_target(name)
        return name

    def resolve(self, name: str) -> Target:
        """Returns the canonical target for *name*. Raises a :class:`TargetNotFoundError` if there is none."""

        return self._graph.get_target(self.canonical(name))

    def find(self, name: str) -> Target | None:
        return self._graph.find_target(self.canonical(name))

    def add_alias(self, alias: str, target: str) -> Target:
        aliased = self._graph.get_target(target)
        if aliased.kind == TargetKind.ALIAS:
            raise ConfigurationError(f"cannot create alias {alias!r} of {target!r}: {target!r} is itself an alias")
        shadow = aliased.shadow
        if shadow is not None and target != shadow.middle_target:
            # Only the middle target of a device library is user-visible.
            raise ConfigurationError(
                f"cannot create alias {alias!r} of {target!r}: {target!r} is the {aliased.kind.value} "
                f"target of device library {shadow.middle_target!r}"
            )
        logger.debug("alias %s -> %s", alias, target)
        return self._graph.add_target(Target(alias, TargetKind.ALIAS, None, alias_of=target))
