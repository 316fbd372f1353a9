from pathlib import Path

import pytest

from rdcgraph.core.system.context import BuildContext, DeviceLinkStep
from rdcgraph.core.system.errors import ContextFinalizedError
from rdcgraph.core.system.host import HostCall, RecordingHost
from rdcgraph.core.system.settings import BuildSettings


def test__BuildContext__finalize_collects_every_device_link(rdc_ctx: BuildContext) -> None:
    facade = rdc_ctx.facade
    facade.add_library("b", sources=["b.cu"])
    facade.add_library("a", sources=["a.cu"])
    facade.add_dependency("b", "a")
    facade.add_executable("app", ["main.cu"])
    facade.add_dependency("app", "b")

    plan = rdc_ctx.finalize()
    assert set(plan) == {
        DeviceLinkStep("a_final", ("a_static",)),
        DeviceLinkStep("b_final", ("b_static", "a_static")),
        DeviceLinkStep("app", ("b_static", "a_static")),
    }

    assert isinstance(rdc_ctx.host, RecordingHost)
    device_links = rdc_ctx.host.calls_named("device_link")
    assert [call.args[0] for call in device_links] == [step.target for step in plan]
    assert HostCall("device_link", ("app", ("b_static", "a_static"))) in device_links


def test__BuildContext__finalize_is_only_performed_once(rdc_ctx: BuildContext) -> None:
    rdc_ctx.facade.add_library("a", sources=["a.cu"])
    assert not rdc_ctx.finalized
    plan = rdc_ctx.finalize()
    assert rdc_ctx.finalized
    assert rdc_ctx.plan == plan

    assert rdc_ctx.finalize() == plan
    assert isinstance(rdc_ctx.host, RecordingHost)
    assert len(rdc_ctx.host.calls_named("device_link")) == 1
    with pytest.raises(ContextFinalizedError):
        rdc_ctx.facade.add_executable("app", ["main.cc"])


def test__BuildContext__finalize_without_device_compiler_has_no_plan(native_ctx: BuildContext) -> None:
    native_ctx.facade.add_library("a", sources=["a.cu"])
    native_ctx.facade.add_executable("app", ["main.cu"])
    native_ctx.facade.add_dependency("app", "a")
    assert native_ctx.finalize() == []


def test__BuildContext__load_script(tmp_path: Path) -> None:
    script = tmp_path / ".rdcgraph.py"
    script.write_text(
        "from rdcgraph.build import add_dependency, add_executable, add_library, context\n"
        "add_library('physics', 'SHARED', ['physics.cu'])\n"
        "add_executable('demo', ['main.cc'])\n"
        "add_dependency('demo', 'physics')\n"
        "assert context().settings.build_shared_libs is False\n"
        "assert __file__.endswith('.rdcgraph.py')\n"
    )

    ctx = BuildContext(BuildSettings(tmp_path / "build"))
    ctx.load_script(script)
    assert ctx.graph.get_target("demo").final_libraries == ["physics_final"]
    with pytest.raises(RuntimeError):
        BuildContext.current()
