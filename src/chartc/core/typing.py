"""
Lightweight typing aliases used across chartc.

Notes:
    - Intended for use in annotations; no runtime logic.
    - ``SignalRef`` mirrors the runtime's ``{"signal": "<expr>"}`` reference object.
"""

from __future__ import annotations

from typing import Any

from .grammar import Channel, PropertyFamily

__all__ = [
    "JsonDict",
    "SignalRef",
    "ComponentKey",
    "FitSource",
]

JsonDict = dict[str, Any]

SignalRef = dict[str, str]

# (family, channel); channel is None for the projection family.
ComponentKey = tuple[PropertyFamily, Channel | None]

# A fit data entry: either a geometry signal reference or an output dataset name.
FitSource = SignalRef | str
