from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from rdcgraph.core.system.context import BuildContext
from rdcgraph.core.system.settings import BuildSettings

__all__ = [
    "native_ctx",
    "rdc_ctx",
]

logger = logging.getLogger(__name__)


@pytest.fixture(name="rdc_ctx")
def _rdc_ctx_fixture(tmp_path: Path) -> Iterator[BuildContext]:
    with rdc_ctx(tmp_path / "build") as ctx:
        yield ctx


@contextlib.contextmanager
def rdc_ctx(build_directory: Path, **settings: object) -> Iterator[BuildContext]:
    """
    A context whose host has a device compiler and builds shared libraries by default. Additional *settings*
    override the :class:`BuildSettings`.
    """

    defaults: dict[str, object] = {"device_compiler": "nvcc", "build_shared_libs": True}
    defaults.update(settings)
    context = BuildContext(BuildSettings(build_directory).with_overrides(**defaults))
    with context.as_current():
        yield context


@pytest.fixture(name="native_ctx")
def _native_ctx_fixture(tmp_path: Path) -> Iterator[BuildContext]:
    with native_ctx(tmp_path / "build") as ctx:
        yield ctx


@contextlib.contextmanager
def native_ctx(build_directory: Path, **settings: object) -> Iterator[BuildContext]:
    """A context whose host has no device compiler, so that every operation is declared natively."""

    defaults: dict[str, object] = {"device_compiler": None, "build_shared_libs": True}
    defaults.update(settings)
    context = BuildContext(BuildSettings(build_directory).with_overrides(**defaults))
    with context.as_current():
        yield context
