from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, ClassVar

from rdcgraph.common import TomlConfigFile

logger = logging.getLogger(__name__)

#: The name of the configuration file that is picked up from the project directory.
CONFIG_FILE = "rdcgraph.toml"


@dataclasses.dataclass(frozen=True)
class BuildSettings:
    """
    Global policy for one build description.

    :param build_directory: Directory in which generated files (such as the empty device translation units of
        final libraries) are written.
    :param device_compiler: The device compiler configured for the host. If `None`, every operation decays to
        the host's native behavior.
    :param build_shared_libs: The default binary type of libraries that do not request one.
    :param finalize_static_libraries: Whether static libraries that consume device libraries are resolved
        against their final libraries like executables are. Enabling it lists the link inputs of such a library
        around its single final library; by default static libraries link their device libraries unchanged.
    """

    build_directory: Path = Path("build")
    device_compiler: str | None = "nvcc"
    build_shared_libs: bool = False
    finalize_static_libraries: bool = False
    object_suffix: str = "_objects"
    static_suffix: str = "_static"
    middle_suffix: str = ""
    final_suffix: str = "_final"

    CONFIG_TABLE: ClassVar[str] = "rdcgraph"

    # Expected value types of the keys in the configuration file.
    _CONFIG_TYPES: ClassVar[dict[str, type]] = {
        "build_directory": str,
        "device_compiler": str,
        "build_shared_libs": bool,
        "finalize_static_libraries": bool,
        "object_suffix": str,
        "static_suffix": str,
        "middle_suffix": str,
        "final_suffix": str,
    }

    def __post_init__(self) -> None:
        for field in ("object_suffix", "static_suffix", "final_suffix"):
            if not getattr(self, field):
                raise ValueError(f"BuildSettings.{field} must not be empty")
        if len({self.object_suffix, self.static_suffix, self.middle_suffix, self.final_suffix}) != 4:
            raise ValueError("BuildSettings suffixes must be distinct")

    @property
    def stub_directory(self) -> Path:
        """The directory in which empty device translation units are generated."""

        return self.build_directory / "rdc"

    @classmethod
    def load(cls, path: Path, build_directory: Path | None = None) -> BuildSettings:
        """
        Loads settings from the `[rdcgraph]` table of a TOML file. Keys may be spelled with dashes or
        underscores. A relative `build-directory` is interpreted relative to the file. An empty
        `device-compiler` string disables the device compiler.
        """

        table = TomlConfigFile(path).table(cls.CONFIG_TABLE)
        values: dict[str, Any] = {}
        for key, value in table.items():
            name = key.replace("-", "_")
            expected = cls._CONFIG_TYPES.get(name)
            if expected is None:
                raise ValueError(f"{path}: unknown key {key!r} in [{cls.CONFIG_TABLE}]")
            if not isinstance(value, expected):
                raise ValueError(
                    f"{path}: [{cls.CONFIG_TABLE}].{key} must be of type {expected.__name__}, "
                    f"got {type(value).__name__}"
                )
            values[name] = value

        if "device_compiler" in values and not values["device_compiler"]:
            values["device_compiler"] = None
        if build_directory is not None:
            values["build_directory"] = build_directory
        elif "build_directory" in values:
            values["build_directory"] = path.parent / values["build_directory"]

        logger.debug("loaded settings from %s: %s", path, values)
        return cls(**values)

    def with_overrides(self, **kwargs: Any) -> BuildSettings:
        return dataclasses.replace(self, **kwargs)
