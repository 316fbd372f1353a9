from .currentable import Currentable

__all__ = ["Currentable"]
