

from typing_extensions import Protocol


class SupportsLen(Protocol):
    def __len__(self) -> int:
        ...


def pluralize(word: str, count: "int | SupportsLen") -> str:
    """
    Very naive implementation to pluralize english words (simply appends an s).

    >>> pluralize("target", 1), pluralize("target", ["a", "b"])
    ('target', 'targets')
    """

    if not isinstance(count, int):
        count = len(count)
    return word if count == 1 else f"{word}s"
