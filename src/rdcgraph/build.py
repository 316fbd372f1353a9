"""
Functions for use in build scripts (`.rdcgraph.py`). Each function operates on the current
:class:`~rdcgraph.core.system.context.BuildContext`.

```py
from rdcgraph.build import add_dependency, add_executable, add_library

add_library("physics", "SHARED", ["physics.cu", "geometry.cc"])
add_executable("demo", ["main.cc"])
add_dependency("demo", "physics")
```
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from rdcgraph.core.system.context import BuildContext
from rdcgraph.core.system.property import Visibility
from rdcgraph.core.system.target import LibraryType, RuntimeMode

__all__ = [
    "add_alias",
    "add_compile_definitions",
    "add_compile_options",
    "add_dependency",
    "add_executable",
    "add_include_dirs",
    "add_library",
    "add_link_options",
    "context",
    "install",
    "resolve_final_libraries",
    "set_runtime_mode",
    "set_source_language",
]


def context() -> BuildContext:
    return BuildContext.current()


def set_source_language(path: Path | str, language: str | None) -> None:
    context().host.set_source_language(path, language)


def add_library(
    name: str,
    kind: LibraryType | str | None = None,
    sources: Iterable[Path | str] = (),
    exclude_from_all: bool = False,
) -> str:
    return context().facade.add_library(name, kind, sources, exclude_from_all)


def add_executable(name: str, sources: Iterable[Path | str] = ()) -> str:
    return context().facade.add_executable(name, sources)


def add_alias(alias: str, target: str) -> None:
    context().facade.add_alias(alias, target)


def add_dependency(consumer: str, *dependencies: str, visibility: Visibility | str = Visibility.PRIVATE) -> None:
    context().facade.add_dependency(consumer, *dependencies, visibility=visibility)


def add_include_dirs(
    target: str,
    visibility: Visibility | str,
    dirs: Iterable[Path | str],
    system: bool = False,
    before: bool = False,
) -> None:
    context().facade.add_include_dirs(target, visibility, dirs, system, before)


def add_compile_options(target: str, visibility: Visibility | str, options: Sequence[str]) -> None:
    context().facade.add_compile_options(target, visibility, options)


def add_compile_definitions(target: str, visibility: Visibility | str, definitions: Sequence[str]) -> None:
    context().facade.add_compile_definitions(target, visibility, definitions)


def add_link_options(target: str, visibility: Visibility | str, options: Sequence[str]) -> None:
    context().facade.add_link_options(target, visibility, options)


def set_runtime_mode(target: str, mode: RuntimeMode | str) -> None:
    context().facade.set_runtime_mode(target, mode)


def install(
    *targets: str,
    destination: str | None = None,
    component: str | None = None,
    export: str | None = None,
) -> list[str]:
    return context().facade.install(*targets, destination=destination, component=component, export=export)


def resolve_final_libraries(consumer: str) -> list[str]:
    return context().facade.resolve_final_libraries(consumer)
