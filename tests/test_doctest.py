from __future__ import annotations

import doctest
import re
from collections.abc import Iterator
from importlib import import_module
from pathlib import Path

import pytest

import rdcgraph

# NOTE: The doctests are collected manually instead of with `pytest --doctest-modules` so that the modules are
#       imported under their package names, the same way the rest of the test suite imports them.


def iter_modules_recursive(prefix: str, path: Path) -> Iterator[tuple[str, Path]]:
    for item in sorted(path.iterdir()):
        if item.name == "__init__.py":
            yield (prefix.rstrip("."), item)
        elif item.is_dir() and re.fullmatch(r"[a-zA-Z][a-zA-Z0-9\_]*", item.name):
            yield from iter_modules_recursive(prefix + item.name + ".", item)
        elif item.suffix == ".py":
            yield (prefix + item.stem, item)


@pytest.mark.parametrize(
    argnames=("module",),
    argvalues=[(name,) for name, _path in iter_modules_recursive("rdcgraph.", Path(rdcgraph.__file__).parent)],
)
def test__doctest(module: str) -> None:
    mod = import_module(module)
    failed, _succeeded = doctest.testmod(mod)
    assert failed == 0
