from __future__ import annotations

import dataclasses
import logging
import types
from pathlib import Path

from nr.stream import Stream

from rdcgraph.common import pluralize
from rdcgraph.core.base import Currentable
from rdcgraph.core.system.aliases import AliasResolver
from rdcgraph.core.system.facade import RdcFacade
from rdcgraph.core.system.graph import TargetGraph
from rdcgraph.core.system.host import Host, RecordingHost
from rdcgraph.core.system.property import DeviceLink, PropertyKind, Scope
from rdcgraph.core.system.propagator import PropertyPropagator
from rdcgraph.core.system.resolver import DependencyResolver
from rdcgraph.core.system.settings import BuildSettings
from rdcgraph.core.system.synthesizer import ShadowSynthesizer
from rdcgraph.core.system.target import TargetKind

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class DeviceLinkStep:
    """A target that performs a device link, and the static archives it consumes."""

    target: str
    statics: tuple[str, ...]


class BuildContext(Currentable["BuildContext"]):
    """
    This class owns all state of one build description. A context is populated once by a sequence of
    declarations and then finalized; it cannot be reused for a second construction pass.
    """

    def __init__(self, settings: BuildSettings | None = None, host: Host | None = None) -> None:
        """
        :param settings: The global build policy. Defaults to :class:`BuildSettings` defaults.
        :param host: The build system backend. Defaults to a :class:`RecordingHost` that uses the device
            compiler of the *settings*.
        """

        self.settings = settings or BuildSettings()
        self.host = host if host is not None else RecordingHost(self.settings.device_compiler)
        self.graph = TargetGraph()
        self.aliases = AliasResolver(self.graph)
        self.synthesizer = ShadowSynthesizer(self.graph, self.aliases, self.host, self.settings)
        self.propagator = PropertyPropagator(self.graph, self.aliases, self.host)
        self.resolver = DependencyResolver(self.graph, self.aliases)
        self.facade = RdcFacade(
            self.graph,
            self.aliases,
            self.host,
            self.settings,
            self.synthesizer,
            self.propagator,
            self.resolver,
        )
        self._plan: list[DeviceLinkStep] | None = None

    @property
    def finalized(self) -> bool:
        return self._plan is not None

    @property
    def plan(self) -> list[DeviceLinkStep]:
        assert self._plan is not None, "BuildContext.plan is only available after finalize()"
        return list(self._plan)

    def load_script(self, script: Path) -> None:
        """Executes a Python build script with this context as the current context."""

        logger.debug("loading build script %s", script)
        module = types.ModuleType(str(script.parent))
        module.__file__ = str(script)
        code = compile(script.read_text(), script, "exec")
        with self.as_current():
            exec(code, vars(module))

    def finalize(self) -> list[DeviceLinkStep]:
        """
        Computes the device-link plan, hands every step to the host and freezes the context. Steps are ordered
        such that the device link of a target comes after the ones of the targets it depends on.
        """

        if self._plan is not None:
            logger.warning("BuildContext.finalize() called more than once", stack_info=True)
            return list(self._plan)

        plan: list[DeviceLinkStep] = []
        if self.host.has_device_compiler():
            for target in self.graph.dependency_order():
                if target.kind == TargetKind.ALIAS or not target.performs_device_link:
                    continue
                options = target.properties.get(PropertyKind.LINK_OPTIONS, Scope.OWN)
                statics = tuple(link.target for link in Stream(options).of_type(DeviceLink))
                plan.append(DeviceLinkStep(target.name, statics))

        for step in plan:
            self.host.device_link(step.target, list(step.statics))

        logger.info("device-link plan has %d %s", len(plan), pluralize("step", plan))
        self.facade.freeze()
        self._plan = plan
        return list(plan)
