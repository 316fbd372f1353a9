import logging
import textwrap
from pathlib import Path

import pytest

from rdcgraph.common import HOST_LOGGER
from rdcgraph.core.cli.main import main
from rdcgraph.core.system.errors import ModuleLibraryError

BUILD_SCRIPT = """
from rdcgraph.build import add_alias, add_dependency, add_executable, add_library, install

add_library("physics", "SHARED", ["physics.cu", "geometry.cc"])
add_alias("Demo::physics", "physics")
add_library("render", "SHARED", ["render.cu"])
add_executable("demo", ["main.cc"])
add_dependency("demo", "Demo::physics")
add_executable("viewer", ["viewer.cc"])
add_dependency("viewer", "physics", "render")
install("Demo::physics", destination="lib")
"""


@pytest.fixture(autouse=True)
def _no_colors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANSI_COLORS_DISABLED", "1")
    monkeypatch.delenv("RDCGRAPH_PDB", raising=False)


def _project(tmp_path: Path, script: str = BUILD_SCRIPT) -> Path:
    (tmp_path / ".rdcgraph.py").write_text(textwrap.dedent(script))
    return tmp_path


def _run(*argv: str) -> int:
    with pytest.raises(SystemExit) as excinfo:
        main("rdcgraph", list(argv))
    code = excinfo.value.code
    assert isinstance(code, int)
    return code


def test__main__version(capsys: pytest.CaptureFixture[str]) -> None:
    assert _run("--version") == 0
    assert capsys.readouterr().out.startswith("rdcgraph ")


def test__main__without_command_prints_usage(capsys: pytest.CaptureFixture[str]) -> None:
    assert _run() == 0
    assert "usage: rdcgraph" in capsys.readouterr().out


def test__main__plan(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = _project(tmp_path)
    assert _run("plan", "-p", str(project)) == 0

    out = capsys.readouterr().out
    assert "Device-link plan" in out
    assert "physics_final <- physics_static" in out
    assert "render_final <- render_static" in out
    assert "viewer <- physics_static, render_static" in out
    assert "demo <-" not in out
    assert (project / "build" / "rdc" / "physics_emptyfile.cu").is_file()


def test__main__plan_without_device_compiler(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = _project(tmp_path)
    assert _run("plan", "-p", str(project), "--no-device-compiler") == 0
    assert "no device-link steps" in capsys.readouterr().out


def test__main__plan_reads_the_configuration_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = _project(tmp_path)
    (project / "rdcgraph.toml").write_text('[rdcgraph]\nbuild-directory = "out"\nfinal-suffix = "_dlink"\n')
    assert _run("plan", "-p", str(project)) == 0

    assert "physics_dlink <- physics_static" in capsys.readouterr().out
    assert (project / "out" / "rdc" / "physics_emptyfile.cu").is_file()


def test__main__query_ls(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = _project(tmp_path)
    assert _run("query", "ls", "-p", str(project)) == 0

    out = capsys.readouterr().out
    assert "Device library targets" in out
    assert "physics_objects" in out
    assert "alias of physics" in out


def test__main__query_describe(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = _project(tmp_path)
    assert _run("q", "d", "-p", str(project), "Demo::physics", "viewer") == 0

    out = capsys.readouterr().out
    assert "selected 2 targets" in out
    assert "Target physics\n" in out
    assert "Target viewer\n" in out
    assert "Final libraries: physics_final, render_final" in out
    assert "Install: destination=lib" in out


def test__main__query_finals(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = _project(tmp_path)
    assert _run("query", "finals", "-p", str(project), "demo", "viewer", "physics") == 0

    assert capsys.readouterr().out.splitlines() == [
        "demo: physics_final",
        "viewer: physics_final, render_final",
        "physics: <none>",
    ]


def test__main__query_visualize(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = _project(tmp_path)
    assert _run("query", "viz", "-p", str(project), "-R") == 0

    out = capsys.readouterr().out
    assert "digraph" in out
    assert "physics_final" in out


def test__main__missing_build_script(tmp_path: Path) -> None:
    assert _run("plan", "-p", str(tmp_path)) == 1


def test__main__missing_configuration_file(tmp_path: Path) -> None:
    project = _project(tmp_path)
    assert _run("plan", "-p", str(project), "-c", str(project / "missing.toml")) == 1


def test__main__conflicting_device_compiler_options(tmp_path: Path) -> None:
    project = _project(tmp_path)
    assert _run("plan", "-p", str(project), "--device-compiler", "clang", "--no-device-compiler") == 1


def test__main__configuration_error_in_build_script(tmp_path: Path) -> None:
    project = _project(tmp_path, "from rdcgraph.build import add_library\nadd_library('p', 'MODULE', ['p.cu'])\n")
    assert _run("plan", "-p", str(project)) == 1

    with pytest.raises(ModuleLibraryError):
        main("rdcgraph", ["plan", "-p", str(project)], handle_exceptions=False)


def test__main__unexpected_error_in_build_script(tmp_path: Path) -> None:
    project = _project(tmp_path, "raise RuntimeError('oops')\n")
    assert _run("plan", "-p", str(project)) == 2


def test__main__unknown_target(tmp_path: Path) -> None:
    project = _project(tmp_path)
    assert _run("query", "describe", "-p", str(project), "missing") == 1


def test__main__trace_host(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    project = _project(tmp_path)
    try:
        assert _run("plan", "-p", str(project), "--trace-host") == 0
    finally:
        logging.getLogger(HOST_LOGGER).setLevel(logging.NOTSET)

    assert "host: declare_library(physics_objects, OBJECT_LIBRARY, [physics.cu, geometry.cc], False)" in caplog.text
    assert "host: device_link(viewer, [physics_static, render_static])" in caplog.text
