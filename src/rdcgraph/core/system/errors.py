from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rdcgraph.core.system.target import RuntimeMode


class ConfigurationError(Exception):
    """
    Base class for fatal errors in a build description. Raising one aborts graph construction; the build
    description must be fixed and the construction re-run from scratch.
    """


class ModuleLibraryError(ConfigurationError):
    def __init__(self, name: str) -> None:
        self.name = name

    def __str__(self) -> str:
        return f"cannot add library {self.name!r}: MODULE libraries containing device code are not supported"


class RuntimeModeConflictError(ConfigurationError):
    """
    Raised when two targets in the same dependency subgraph require a different device runtime. If *other*
    is the consumer itself, the consumer's own runtime mode conflicts with the one of *library*; otherwise
    *other* is another dependency of *target*.
    """

    def __init__(
        self,
        target: str,
        library: str,
        library_mode: RuntimeMode,
        other: str,
        other_mode: RuntimeMode,
    ) -> None:
        self.target = target
        self.library = library
        self.library_mode = library_mode
        self.other = other
        self.other_mode = other_mode

    def __str__(self) -> str:
        message = (
            f"the device runtime used by {self.library} [{self.library_mode.value}] is different from the one "
            f"used by {self.other} [{self.other_mode.value}]"
        )
        if self.other != self.target:
            message += f", another dependency of {self.target}"
        return message


class TargetNotFoundError(Exception):
    def __init__(self, name: str) -> None:
        self.name = name

    def __str__(self) -> str:
        return f"target not found: {self.name}"


class DuplicateTargetError(Exception):
    def __init__(self, name: str) -> None:
        self.name = name

    def __str__(self) -> str:
        return f"a target named {self.name!r} already exists"


class ContextFinalizedError(Exception):
    def __str__(self) -> str:
        return "the build context is finalized and can no longer be modified"
