"""
The :class:`Host` is the narrow interface to the build system that actually stores targets, invokes compilers
and performs installation. The engine only ever talks to the host through the primitives declared here, and
every device-unaware operation maps to exactly one of them.
"""

from __future__ import annotations

import abc
import dataclasses
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from rdcgraph.core.system.property import PropertyKind, Scope, Visibility
from rdcgraph.core.system.target import DEVICE_LANGUAGE, BinaryType, InstallRule

logger = logging.getLogger(__name__)

#: The file extension that classifies a source as device code when it has no explicit language tag.
DEVICE_SOURCE_SUFFIX = ".cu"


class Host(abc.ABC):
    """Base class for build system backends."""

    def __init__(self, device_compiler: str | None = None) -> None:
        self.device_compiler = device_compiler
        self._languages: dict[Path, str] = {}

    def has_device_compiler(self) -> bool:
        return bool(self.device_compiler)

    # Source classification

    def set_source_language(self, path: Path | str, language: str | None) -> None:
        """Tags a source file with an explicit language. Passing `None` removes the tag."""

        if language is None:
            self._languages.pop(Path(path), None)
        else:
            self._languages[Path(path)] = language

    def source_language(self, path: Path | str) -> str | None:
        """
        Returns the explicit language tag of *path*, or `CUDA` if it has none and its last extension is `.cu`.

        >>> host = RecordingHost()
        >>> host.source_language("kernel.cu"), host.source_language("kernel.cu.in")
        ('CUDA', None)
        """

        path = Path(path)
        language = self._languages.get(path)
        if language is not None:
            return language
        if path.suffix == DEVICE_SOURCE_SUFFIX:
            return DEVICE_LANGUAGE
        return None

    def is_device_source(self, path: Path | str) -> bool:
        return self.source_language(path) == DEVICE_LANGUAGE

    # Native declaration primitives

    @abc.abstractmethod
    def declare_library(self, name: str, binary: BinaryType, sources: Sequence[Path], exclude_from_all: bool) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def declare_executable(self, name: str, sources: Sequence[Path]) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def declare_alias(self, alias: str, target: str) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def declare_sources(self, target: str, sources: Sequence[Path]) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def declare_dependency(self, consumer: str, visibility: Visibility, items: Sequence[str]) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def set_link_libraries(self, target: str, scope: Scope, items: Sequence[str]) -> None:
        """Replaces a link-library list verbatim (used after rewriting or bracketing a list)."""

        raise NotImplementedError

    @abc.abstractmethod
    def declare_include_dirs(
        self,
        target: str,
        visibility: Visibility,
        dirs: Sequence[Path],
        system: bool,
        before: bool,
    ) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def declare_property(self, target: str, kind: PropertyKind, visibility: Visibility, items: Sequence[Any]) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def declare_target_flag(self, target: str, flag: str, value: Any) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def declare_build_dependency(self, target: str, dependency: str) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def declare_install_rule(self, targets: Sequence[str], rule: InstallRule) -> None:
        raise NotImplementedError

    # Device link

    @abc.abstractmethod
    def device_link(self, target: str, static_artifacts: Sequence[str]) -> None:
        """Resolves the device code of *static_artifacts* and embeds the result into the output of *target*."""

        raise NotImplementedError


@dataclasses.dataclass(frozen=True)
class HostCall:
    name: str
    args: tuple[Any, ...]

    def __str__(self) -> str:
        return f"{self.name}({', '.join(map(_format_arg, self.args))})"


def _format_arg(value: Any) -> str:
    if isinstance(value, tuple):
        return "[" + ", ".join(map(_format_arg, value)) + "]"
    if isinstance(value, (Visibility, Scope, BinaryType, PropertyKind)):
        return value.name
    return str(value)


def _freeze(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(x) for x in value)
    return value


class RecordingHost(Host):
    """A host that records every primitive it receives, in order."""

    def __init__(self, device_compiler: str | None = None) -> None:
        super().__init__(device_compiler)
        self.calls: list[HostCall] = []

    def _record(self, name: str, *args: Any) -> None:
        call = HostCall(name, tuple(_freeze(arg) for arg in args))
        logger.debug("host: %s", call)
        self.calls.append(call)

    def calls_named(self, name: str) -> list[HostCall]:
        return [call for call in self.calls if call.name == name]

    def calls_for(self, target: str) -> list[HostCall]:
        """Returns the calls whose first argument is *target*."""

        return [call for call in self.calls if call.args and call.args[0] == target]

    def declare_library(self, name: str, binary: BinaryType, sources: Sequence[Path], exclude_from_all: bool) -> None:
        self._record("declare_library", name, binary, list(sources), exclude_from_all)

    def declare_executable(self, name: str, sources: Sequence[Path]) -> None:
        self._record("declare_executable", name, list(sources))

    def declare_alias(self, alias: str, target: str) -> None:
        self._record("declare_alias", alias, target)

    def declare_sources(self, target: str, sources: Sequence[Path]) -> None:
        self._record("declare_sources", target, list(sources))

    def declare_dependency(self, consumer: str, visibility: Visibility, items: Sequence[str]) -> None:
        self._record("declare_dependency", consumer, visibility, list(items))

    def set_link_libraries(self, target: str, scope: Scope, items: Sequence[str]) -> None:
        self._record("set_link_libraries", target, scope, list(items))

    def declare_include_dirs(
        self,
        target: str,
        visibility: Visibility,
        dirs: Sequence[Path],
        system: bool,
        before: bool,
    ) -> None:
        self._record("declare_include_dirs", target, visibility, list(dirs), system, before)

    def declare_property(self, target: str, kind: PropertyKind, visibility: Visibility, items: Sequence[Any]) -> None:
        self._record("declare_property", target, kind, visibility, list(items))

    def declare_target_flag(self, target: str, flag: str, value: Any) -> None:
        self._record("declare_target_flag", target, flag, value)

    def declare_build_dependency(self, target: str, dependency: str) -> None:
        self._record("declare_build_dependency", target, dependency)

    def declare_install_rule(self, targets: Sequence[str], rule: InstallRule) -> None:
        self._record("declare_install_rule", list(targets), rule)

    def device_link(self, target: str, static_artifacts: Iterable[str]) -> None:
        self._record("device_link", target, list(static_artifacts))
