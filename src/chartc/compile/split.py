"""
Two-layer property container: explicit (user-given) over implicit (derived) values.

Notes:
    - ``get`` prefers the explicit layer; an implicit write never shadows an explicit value,
      whichever was written first.
    - ``combine`` is the assembled view of both layers, explicit spread last.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

__all__ = ["Split"]


class Split:
    """
    Explicit/implicit property split.

    Examples:
        >>> from chartc.compile.split import Split
        >>> s = Split({"type": "mercator"}, {"name": "projection"})
        >>> s.set("type", "equalEarth", explicit=False)
        >>> s.get("type")
        'mercator'
        >>> s.combine()
        {'name': 'projection', 'type': 'mercator'}
    """

    def __init__(
        self,
        explicit: Mapping[str, Any] | None = None,
        implicit: Mapping[str, Any] | None = None,
    ) -> None:
        self.explicit: dict[str, Any] = dict(explicit or {})
        self.implicit: dict[str, Any] = dict(implicit or {})

    def get(self, key: str) -> Any:
        if key in self.explicit:
            return self.explicit[key]
        return self.implicit.get(key)

    def get_with_explicit(self, key: str) -> tuple[Any, bool]:
        if key in self.explicit:
            return self.explicit[key], True
        return self.implicit.get(key), False

    def has(self, key: str) -> bool:
        return key in self.explicit or key in self.implicit

    def set(self, key: str, value: Any, explicit: bool) -> None:
        layer = self.explicit if explicit else self.implicit
        layer[key] = value

    def set_with_explicit(self, key: str, value: tuple[Any, bool]) -> None:
        self.set(key, value[0], value[1])

    def combine(self) -> dict[str, Any]:
        return {**self.implicit, **self.explicit}

    def clone(self) -> Split:
        return Split(copy.deepcopy(self.explicit), copy.deepcopy(self.implicit))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(explicit={self.explicit!r}, implicit={self.implicit!r})"
