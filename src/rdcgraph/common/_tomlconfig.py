from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any, Dict

import tomli


class TomlConfigFile(Mapping[str, Any]):
    """
    A read-only view of a TOML configuration file. A file that does not exist reads as empty.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data: "Dict[str, Any] | None" = None

    def _get_data(self) -> "Dict[str, Any]":
        if self._data is None:
            if self.path.is_file():
                self._data = tomli.loads(self.path.read_text())
            else:
                self._data = {}
        return self._data

    def __getitem__(self, key: str) -> Any:
        return self._get_data()[key]

    def __len__(self) -> int:
        return len(self._get_data())

    def __iter__(self) -> Iterator[str]:
        return iter(self._get_data())

    def table(self, key: str) -> "Dict[str, Any]":
        """
        Returns the table under *key*, or an empty dictionary if the file has no such table.
        """

        value = self._get_data().get(key, {})
        if not isinstance(value, dict):
            raise ValueError(f"{self.path}: expected [{key}] to be a table, got {type(value).__name__}")
        return value
