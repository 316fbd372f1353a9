from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import TYPE_CHECKING

from rdcgraph.core.system.settings import CONFIG_FILE, BuildSettings

if TYPE_CHECKING:
    import argparse

DEFAULT_BUILD_DIR = "build"


@dataclasses.dataclass(frozen=True)
class BuildOptions:
    project_dir: Path
    build_dir: Path | None
    config: Path | None
    device_compiler: str | None
    no_device_compiler: bool
    shared_libs: bool | None

    @staticmethod
    def add_to_parser(parser: argparse.ArgumentParser) -> None:
        group = parser.add_argument_group("build options")
        group.add_argument(
            "-p",
            "--project-dir",
            metavar="PATH",
            type=Path,
            default=Path.cwd(),
            help="the directory that contains the .rdcgraph.py build script [default: current directory]",
        )
        group.add_argument(
            "-b",
            "--build-dir",
            metavar="PATH",
            type=Path,
            help=f"the build directory to write generated files to [default: ${{--project-dir}}/{DEFAULT_BUILD_DIR}]",
        )
        group.add_argument(
            "-c",
            "--config",
            metavar="PATH",
            type=Path,
            help=f"the configuration file to read settings from [default: ${{--project-dir}}/{CONFIG_FILE}]",
        )
        group.add_argument(
            "--device-compiler",
            metavar="NAME",
            help="the device compiler of the host [default: nvcc]",
        )
        group.add_argument(
            "--no-device-compiler",
            action="store_true",
            help="act as if the host had no device compiler; every operation is declared natively",
        )
        group.add_argument(
            "--shared-libs",
            dest="shared_libs",
            action="store_true",
            default=None,
            help="build libraries that do not request a type as shared libraries",
        )
        group.add_argument(
            "--static-libs",
            dest="shared_libs",
            action="store_false",
            help="build libraries that do not request a type as static libraries",
        )

    @classmethod
    def collect(cls, args: argparse.Namespace) -> BuildOptions:
        if args.device_compiler and args.no_device_compiler:
            raise ValueError("--device-compiler and --no-device-compiler are mutually exclusive")
        return cls(
            project_dir=args.project_dir,
            build_dir=args.build_dir,
            config=args.config,
            device_compiler=args.device_compiler,
            no_device_compiler=args.no_device_compiler,
            shared_libs=args.shared_libs,
        )

    def load_settings(self) -> BuildSettings:
        """
        Reads the settings from the configuration file (which may not exist) and applies the command-line
        overrides.
        """

        config = self.config or self.project_dir / CONFIG_FILE
        if self.config and not self.config.is_file():
            raise ValueError(f'configuration file "{self.config}" does not exist')

        settings = BuildSettings.load(config, self.build_dir)
        overrides: dict[str, object] = {}
        if self.build_dir is None and settings.build_directory == BuildSettings().build_directory:
            overrides["build_directory"] = self.project_dir / DEFAULT_BUILD_DIR
        if self.device_compiler:
            overrides["device_compiler"] = self.device_compiler
        if self.no_device_compiler:
            overrides["device_compiler"] = None
        if self.shared_libs is not None:
            overrides["build_shared_libs"] = self.shared_libs
        return settings.with_overrides(**overrides)


@dataclasses.dataclass(frozen=True)
class VizOptions:
    show: bool
    reduce: bool

    @staticmethod
    def add_to_parser(parser: argparse.ArgumentParser) -> None:
        group = parser.add_argument_group("visualization options")
        group.add_argument("-s", "--show", action="store_true", help="show the graph in the browser (requires dot)")
        group.add_argument("-R", "--reduce", action="store_true", help="fully transitively reduce the graph")

    @classmethod
    def collect(cls, args: argparse.Namespace) -> VizOptions:
        return cls(show=args.show, reduce=args.reduce)
