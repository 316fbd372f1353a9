from ._generic import NotSet, flatten, not_none, unique
from ._option_sets import HOST_LOGGER, LoggingOptions
from ._text import pluralize
from ._tomlconfig import TomlConfigFile

__all__ = [
    # _generic
    "flatten",
    "not_none",
    "unique",
    "NotSet",
    # _option_sets
    "HOST_LOGGER",
    "LoggingOptions",
    # _text
    "pluralize",
    # _tomlconfig
    "TomlConfigFile",
]
