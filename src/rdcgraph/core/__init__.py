__version__ = "0.1.0"

from rdcgraph.core.system.context import BuildContext, DeviceLinkStep
from rdcgraph.core.system.errors import (
    ConfigurationError,
    ContextFinalizedError,
    DuplicateTargetError,
    ModuleLibraryError,
    RuntimeModeConflictError,
    TargetNotFoundError,
)
from rdcgraph.core.system.facade import RdcFacade
from rdcgraph.core.system.host import Host, HostCall, RecordingHost
from rdcgraph.core.system.property import DeviceLink, PropertyKind, Scope, Visibility
from rdcgraph.core.system.settings import BuildSettings
from rdcgraph.core.system.target import BinaryType, LibraryType, RuntimeMode, ShadowRefs, Target, TargetKind

__all__ = [
    "BinaryType",
    "BuildContext",
    "BuildSettings",
    "ConfigurationError",
    "ContextFinalizedError",
    "DeviceLink",
    "DeviceLinkStep",
    "DuplicateTargetError",
    "Host",
    "HostCall",
    "LibraryType",
    "ModuleLibraryError",
    "PropertyKind",
    "RdcFacade",
    "RecordingHost",
    "RuntimeMode",
    "RuntimeModeConflictError",
    "Scope",
    "ShadowRefs",
    "Target",
    "TargetKind",
    "TargetNotFoundError",
    "Visibility",
]
