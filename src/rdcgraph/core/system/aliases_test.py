import pytest

from rdcgraph.core.system.aliases import AliasResolver
from rdcgraph.core.system.errors import ConfigurationError, TargetNotFoundError
from rdcgraph.core.system.graph import TargetGraph
from rdcgraph.core.system.target import BinaryType, Target, TargetKind


def test__AliasResolver__canonical() -> None:
    graph = TargetGraph()
    aliases = AliasResolver(graph)
    graph.add_target(Target("core", TargetKind.PLAIN, BinaryType.SHARED_LIBRARY))
    aliases.add_alias("Project::core", "core")

    assert aliases.canonical("Project::core") == "core"
    assert aliases.canonical("core") == "core"
    assert aliases.canonical("-lpthread") == "-lpthread"
    assert aliases.resolve("Project::core") is graph.get_target("core")
    assert aliases.find("m") is None


def test__AliasResolver__rejects_alias_of_alias() -> None:
    graph = TargetGraph()
    aliases = AliasResolver(graph)
    graph.add_target(Target("core", TargetKind.PLAIN, BinaryType.SHARED_LIBRARY))
    aliases.add_alias("Project::core", "core")

    with pytest.raises(ConfigurationError):
        aliases.add_alias("Other::core", "Project::core")
    with pytest.raises(TargetNotFoundError):
        aliases.add_alias("Other::missing", "missing")
