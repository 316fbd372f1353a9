from __future__ import annotations

import argparse
import builtins
import io
import logging
import os
import pdb
import sys
import textwrap
from functools import partial
from pathlib import Path
from typing import NoReturn

from nr.io.graphviz.render import render_to_browser
from nr.io.graphviz.writer import GraphvizWriter
from nr.stream import Stream
from termcolor import colored

from rdcgraph.common import LoggingOptions, pluralize
from rdcgraph.core import __version__
from rdcgraph.core.cli.option_sets import BuildOptions, VizOptions
from rdcgraph.core.system.context import BuildContext
from rdcgraph.core.system.errors import (
    ConfigurationError,
    ContextFinalizedError,
    DuplicateTargetError,
    TargetNotFoundError,
)
from rdcgraph.core.system.property import Scope
from rdcgraph.core.system.target import Target, TargetKind

BUILD_SCRIPT = Path(".rdcgraph.py")
logger = logging.getLogger(__name__)
print = partial(builtins.print, flush=True)


class BuildScriptError(Exception):
    """
    Raised if an exception occurs while executing the build script.
    """


def _get_argument_parser(prog: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog,
        formatter_class=lambda prog: argparse.RawDescriptionHelpFormatter(prog, width=120, max_help_position=60),
        description=textwrap.dedent(
            """
            Build graphs for libraries with relocatable device code.

            Loads the .rdcgraph.py build script of a project and shows how its libraries are expanded and
            which device-link steps every consumer has to perform.
            """
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="cmd")

    plan = subparsers.add_parser("plan", aliases=["p"], description="print the device-link plan of the build")
    LoggingOptions.add_to_parser(plan)
    BuildOptions.add_to_parser(plan)

    query = subparsers.add_parser("query", aliases=["q"])
    query_subparsers = query.add_subparsers(dest="query_cmd")

    ls = query_subparsers.add_parser("ls", description="list all targets in the build")
    LoggingOptions.add_to_parser(ls)
    BuildOptions.add_to_parser(ls)

    describe = query_subparsers.add_parser("describe", aliases=["d"], description="describe one or more targets")
    LoggingOptions.add_to_parser(describe)
    BuildOptions.add_to_parser(describe)
    describe.add_argument("targets", metavar="target", nargs="+", help="the targets to describe")

    finals = query_subparsers.add_parser(
        "finals",
        aliases=["f"],
        description="print the final libraries that one or more consumers resolve to",
    )
    LoggingOptions.add_to_parser(finals)
    BuildOptions.add_to_parser(finals)
    finals.add_argument("targets", metavar="consumer", nargs="+", help="the consumers to resolve")

    viz = query_subparsers.add_parser("visualize", aliases=["viz", "v"], description="generate a GraphViz of the build")
    LoggingOptions.add_to_parser(viz)
    BuildOptions.add_to_parser(viz)
    VizOptions.add_to_parser(viz)

    return parser


def _load_context(build_options: BuildOptions) -> BuildContext:
    """
    Executes the build script of the project directory in a new :class:`BuildContext`.
    """

    project_dir = build_options.project_dir.absolute()
    script = project_dir / BUILD_SCRIPT
    if not script.is_file():
        raise ValueError(f'no {BUILD_SCRIPT} build script found in the directory "{build_options.project_dir}"')

    context = BuildContext(build_options.load_settings())
    logger.info(
        "loading %s (device compiler: %s, build directory: %s)",
        script,
        context.settings.device_compiler or "none",
        context.settings.build_directory,
    )

    try:
        context.load_script(script)
    except (ConfigurationError, TargetNotFoundError, DuplicateTargetError):
        raise
    except BaseException as exc:
        raise BuildScriptError(
            "An unexpected error occurred while executing the build script. Please check the earlier log "
            "messages for more details."
        ) from exc
    return context


def _format_kind(target: Target) -> str:
    if target.kind == TargetKind.ALIAS:
        return colored(f"alias of {target.alias_of}", "grey")
    text = target.kind.value
    if target.binary is not None:
        text += f", {target.binary.value}"
    color = {
        TargetKind.FINAL: "green",
        TargetKind.SHARED_MIDDLE: "cyan",
        TargetKind.STATIC: "yellow",
        TargetKind.OBJECT: "magenta",
    }.get(target.kind)
    return colored(text, color) if color else text


def plan(context: BuildContext) -> None:
    steps = context.finalize()
    if not steps:
        print("no device-link steps")
        return

    print()
    print(colored("Device-link plan", "blue", attrs=["bold", "underline"]))
    print()
    for step in steps:
        statics = ", ".join(step.statics) or colored("<own device code only>", "grey")
        print(" ", colored(step.target, attrs=["bold"]), "<-", statics)
    print()


def ls(context: BuildContext) -> None:
    targets = list(context.graph.targets())
    if not targets:
        print("no targets")
        sys.exit(1)

    longest_name = max(len(t.name) for t in targets) + 1
    plain, shadow = map(lambda x: list(x), Stream(targets).bipartition(lambda t: t.shadow is not None))

    for title, group in (("Targets", plain), ("Device library targets", shadow)):
        if not group:
            continue
        print()
        print(colored(title, "blue", attrs=["bold", "underline"]))
        print()
        for target in group:
            print("  " + target.name.ljust(longest_name), _format_kind(target))
    print()


def describe(context: BuildContext, names: list[str]) -> None:
    """
    Describes the given targets.
    """

    print("selected", len(names), pluralize("target", names))
    print()

    for name in names:
        target = context.aliases.resolve(name)
        print("Target", colored(target.name, attrs=["bold", "underline"]))
        print("  Kind:", _format_kind(target))
        print("  Sources:", ", ".join(str(s.path) for s in target.sources) or "-")
        print("  Device code:", target.contains_device_code)
        print("  Runtime mode:", target.runtime_mode.value)
        for flag in (
            "position_independent_code",
            "separable_compilation",
            "resolve_device_symbols",
            "linker_language",
            "object_library",
        ):
            value = getattr(target, flag)
            if value is not None:
                print(f"  {flag}:", colored(str(value), "blue"))
        if target.shadow is not None:
            print(colored("  Shadow targets", attrs=["bold"]))
            for role, other in (
                ("object", target.shadow.object_target),
                ("static", target.shadow.static_target),
                ("middle", target.shadow.middle_target),
                ("final", target.shadow.final_target),
            ):
                print("".ljust(4), (role + ":").ljust(8), colored(other, "cyan"))
        if target.final_libraries:
            print("  Final libraries:", ", ".join(target.final_libraries))
        if target.build_dependencies:
            print("  Build dependencies:", ", ".join(target.build_dependencies))
        for rule in target.install_rules:
            print("  Install:", f"destination={rule.destination}, component={rule.component}, export={rule.export}")

        kinds = list(target.properties.kinds())
        print(colored("  Properties", attrs=["bold"]), f"({len(kinds)})")
        longest_kind = max((len(k.value) for k in kinds), default=0) + 1
        for kind in kinds:
            for scope in Scope:
                values = target.properties.get(kind, scope)
                if values:
                    label = kind.value if scope == Scope.OWN else f"interface_{kind.value}"
                    print(
                        "".ljust(4),
                        (label + ":").ljust(longest_kind + len("interface_")),
                        colored(", ".join(map(str, values)), "blue"),
                    )
        print()


def finals(context: BuildContext, names: list[str]) -> None:
    for name in names:
        libraries = context.facade.resolve_final_libraries(name)
        print(colored(name, attrs=["bold"]) + ":", ", ".join(libraries) if libraries else colored("<none>", "grey"))


def visualize(context: BuildContext, viz_options: VizOptions) -> None:
    digraph = context.graph.reduce() if viz_options.reduce else context.graph.digraph

    buffer = io.StringIO()
    writer = GraphvizWriter(buffer if viz_options.show else sys.stdout)
    writer.digraph(fontname="monospace", rankdir="LR")
    writer.set_node_style(style="filled", shape="box", fillcolor="white")

    style_kind = {
        TargetKind.OBJECT: {"fillcolor": "plum"},
        TargetKind.STATIC: {"fillcolor": "khaki"},
        TargetKind.SHARED_MIDDLE: {"fillcolor": "lightblue"},
        TargetKind.FINAL: {"fillcolor": "lawngreen"},
        TargetKind.INTERFACE: {"shape": "ellipse"},
        TargetKind.ALIAS: {"shape": "plaintext"},
    }
    style_unknown = {"style": "dashed"}
    style_edge_interface = {"style": "dashed"}
    style_edge_alias = {"style": "dotted"}

    writer.subgraph("cluster_#legend", label="Legend")
    writer.node("#object", label="object library", **style_kind[TargetKind.OBJECT])
    writer.node("#static", label="static archive", **style_kind[TargetKind.STATIC])
    writer.node("#middle", label="middle library", **style_kind[TargetKind.SHARED_MIDDLE])
    writer.node("#final", label="final library", **style_kind[TargetKind.FINAL])
    writer.end()

    writer.subgraph("cluster_#build", label="Build Graph")
    for name in digraph.nodes:
        target = context.graph.find_target(name)
        writer.node(name, **(style_kind.get(target.kind, {}) if target else style_unknown))
    edges = {(e.consumer, e.dependency): e for e in context.graph.edges()}
    for u, v in digraph.edges:
        edge = edges.get((u, v))
        if edge is None:
            writer.edge(u, v, **style_edge_alias)
        elif Scope.OWN not in edge.visibility.scopes:
            writer.edge(u, v, **style_edge_interface)
        else:
            writer.edge(u, v)
    writer.end()
    writer.end()

    if viz_options.show:
        render_to_browser(buffer.getvalue())


def on_exception(exc: BaseException) -> int:
    """
    Called when an exception occurs in #main_internal() to handle common errors and provide better error messages.
    """

    match exc:
        case SystemExit():
            if not isinstance(exc.code, int):
                logger.warning("SystemExit.code is not an integer: %r", exc.code)
                return 1
            return exc.code
        case ConfigurationError() | TargetNotFoundError() | DuplicateTargetError() | ContextFinalizedError():
            logger.error("%s", exc)
            return 1
        case ValueError():
            logger.error("%s", exc)
            return 1
        case BuildScriptError():
            logger.error(
                "An unexpected error occurred when executing the build script. This most likely indicates a "
                "mistake in your build script.\n\n",
                exc_info=exc.__context__ or exc,
            )
            return 2
        case _:
            logger.error("An unexpected error occurred in the rdcgraph CLI.\n\n", exc_info=exc)
            return 3


def main_internal(prog: str, argv: list[str] | None, pdb_enabled: bool) -> NoReturn:
    parser = _get_argument_parser(prog)
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if not args.cmd:
        parser.print_usage()
        sys.exit(0)

    if LoggingOptions.available(args):
        LoggingOptions.collect(args).init_logging()

    if pdb_enabled:
        logger.info("note: RDCGRAPH_PDB=1 is set, an interactive debugging session will be started on exit.")

    if args.cmd in ("plan", "p"):
        plan(_load_context(BuildOptions.collect(args)))

    elif args.cmd in ("query", "q"):
        if not args.query_cmd:
            parser.print_usage()
            sys.exit(0)

        context = _load_context(BuildOptions.collect(args))

        if args.query_cmd == "ls":
            ls(context)
        elif args.query_cmd in ("describe", "d"):
            describe(context, args.targets)
        elif args.query_cmd in ("finals", "f"):
            finals(context, args.targets)
        elif args.query_cmd in ("visualize", "viz", "v"):
            visualize(context, VizOptions.collect(args))
        else:
            assert False, args.query_cmd

    else:
        parser.print_usage()

    sys.exit(0)


def main(prog: str = "rdcgraph", argv: list[str] | None = None, handle_exceptions: bool = True) -> NoReturn:
    pdb_enabled = os.getenv("RDCGRAPH_PDB") == "1"
    try:
        main_internal(prog, argv, pdb_enabled)
    except BaseException as exc:
        if not handle_exceptions:
            raise
        code = on_exception(exc)
        if pdb_enabled:
            pdb.post_mortem()
        sys.exit(code)


if __name__ == "__main__":
    main()
