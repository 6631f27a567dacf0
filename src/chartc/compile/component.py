"""
Named components: the per-family unit of resolution.

A NamedComponent is a Split whose implicit layer always carries ``name``. Projection
components additionally carry a size descriptor and a fit-data list; a ``merged`` flag marks
a component superseded by a promoted parent component.

Notes:
    - ``merged`` is a logical soft-delete. Tombstoned components stay attached to their node
      (their specified properties and fit data remain readable for provenance), and the
      assembler skips them.
    - ``data is None`` means the component is not fit to data; an empty list means fit with
      no sources gathered (yet).
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from chartc.core.typing import FitSource, SignalRef

from .split import Split

__all__ = ["NamedComponent"]


class NamedComponent(Split):
    """
    A named, mergeable component.

    Attributes:
        specified (dict): Explicit properties as given at construction (config defaults
            included); copied onto a promoted component.
        size (list[SignalRef] | None): Render-area signal pair for fit projections.
        data (list[FitSource] | None): Ordered fit sources; None when not fit.
        merged (bool): True once promoted into a parent component.
    """

    def __init__(
        self,
        name: str,
        explicit: Mapping[str, Any] | None = None,
        *,
        implicit: Mapping[str, Any] | None = None,
        size: list[SignalRef] | None = None,
        data: list[FitSource] | None = None,
    ) -> None:
        super().__init__(explicit, {**(implicit or {}), "name": name})
        self.specified: dict[str, Any] = copy.deepcopy(self.explicit)
        self.size = size
        self.data = data
        self.merged = False

    @property
    def name(self) -> str:
        return self.implicit["name"]

    @property
    def is_fit(self) -> bool:
        return self.data is not None

    def __repr__(self) -> str:
        state = " merged" if self.merged else ""
        return f"NamedComponent({self.name!r}{state}, explicit={self.explicit!r})"
