"""
Canonical chartc grammar: node kinds, encoding channels, property families, and naming.

Defines the enum vocabulary shared by the input schema, the resolution engine, and the
assembler, plus the name-sanitizing formatter used to turn path-derived text into
identifier-safe tokens. Zero-IO, stdlib only.

Responsibilities
- Enumerate composition node kinds (the tag of the Spec Tree variant).
- Enumerate encoding channels and group them by role (geo position, scale, axis, legend).
- Enumerate property families and resolve modes used by the merge engine.
- Provide `var_name`, the single naming formatter for every generated identifier.

Design principles
-----------------
1) Enum serialized values match the input grammar verbatim (camelCase where the input
   grammar is camelCase, e.g. ``fillOpacity``); member names are UPPER_SNAKE.
2) Channel groupings are tuples, ordered. Resolution and assembly iterate them in this
   order, so the order is part of the observable output.

Examples
--------
>>> from chartc.core.grammar import Channel, var_name, channel_from_value
>>> var_name("concat_0 projection")
'concat_0_projection'
>>> var_name("2nd-view")
'_2nd_view'
>>> channel_from_value("longitude2") is Channel.LONGITUDE2
True
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Final

from .errors import SpecError

__all__ = [
    "NodeKind",
    "Channel",
    "PropertyFamily",
    "ResolveMode",
    "NameKind",
    "MeasureType",
    "DataSourceType",
    "GEO_POSITION_PAIRS",
    "SCALE_CHANNELS",
    "AXIS_CHANNELS",
    "LEGEND_CHANNELS",
    "LEGEND_TARGETS",
    "channel_from_value",
    "var_name",
]


class NodeKind(Enum):
    """Tag of a Spec Tree node."""

    UNIT = "unit"
    LAYER = "layer"
    FACET = "facet"
    CONCAT = "concat"


class Channel(Enum):
    """
    Encoding channels understood by the compiler.

    Notes:
        Only channels with a role in resolution, the transform graph, or mark assembly are
        listed; other channels are rejected by the input schema.
    """

    X = "x"
    Y = "y"
    X2 = "x2"
    Y2 = "y2"
    LONGITUDE = "longitude"
    LATITUDE = "latitude"
    LONGITUDE2 = "longitude2"
    LATITUDE2 = "latitude2"
    COLOR = "color"
    FILL = "fill"
    STROKE = "stroke"
    SHAPE = "shape"
    SIZE = "size"
    OPACITY = "opacity"
    FILL_OPACITY = "fillOpacity"
    STROKE_OPACITY = "strokeOpacity"
    TEXT = "text"
    TOOLTIP = "tooltip"
    DETAIL = "detail"
    ORDER = "order"
    KEY = "key"
    HREF = "href"
    DESCRIPTION = "description"


class PropertyFamily(Enum):
    """Cross-cutting visual property families that the merge engine resolves."""

    PROJECTION = "projection"
    SCALE = "scale"
    AXIS = "axis"
    LEGEND = "legend"


class ResolveMode(Enum):
    """Resolve mixin value for a composite node's family channel."""

    SHARED = "shared"
    INDEPENDENT = "independent"


class NameKind(Enum):
    """The three independent logical-to-assigned name maps of a Name Scope."""

    SIGNAL = "signal"
    SCALE = "scale"
    PROJECTION = "projection"


class MeasureType(Enum):
    QUANTITATIVE = "quantitative"
    TEMPORAL = "temporal"
    ORDINAL = "ordinal"
    NOMINAL = "nominal"
    GEOJSON = "geojson"


class DataSourceType(Enum):
    """Kinds of per-node output datasets a view can request."""

    RAW = "raw"
    MAIN = "main"


# Primary and secondary coordinate pairs, (longitude, latitude) order.
GEO_POSITION_PAIRS: Final[tuple[tuple[Channel, Channel], ...]] = (
    (Channel.LONGITUDE, Channel.LATITUDE),
    (Channel.LONGITUDE2, Channel.LATITUDE2),
)

SCALE_CHANNELS: Final[tuple[Channel, ...]] = (
    Channel.X,
    Channel.Y,
    Channel.COLOR,
    Channel.FILL,
    Channel.STROKE,
    Channel.SHAPE,
    Channel.SIZE,
    Channel.OPACITY,
)

AXIS_CHANNELS: Final[tuple[Channel, ...]] = (Channel.X, Channel.Y)

LEGEND_CHANNELS: Final[tuple[Channel, ...]] = (
    Channel.COLOR,
    Channel.FILL,
    Channel.STROKE,
    Channel.SHAPE,
    Channel.SIZE,
    Channel.OPACITY,
)

# Output legend property that carries the scale reference for each legend channel.
LEGEND_TARGETS: Final[dict[Channel, str]] = {
    Channel.COLOR: "fill",
    Channel.FILL: "fill",
    Channel.STROKE: "stroke",
    Channel.SHAPE: "shape",
    Channel.SIZE: "size",
    Channel.OPACITY: "opacity",
}

_CHANNELS_BY_VALUE: Final[dict[str, Channel]] = {c.value: c for c in Channel}

_INVALID_NAME_CHARS = re.compile(r"\W")


def channel_from_value(value: str | Channel) -> Channel:
    """
    Normalize a channel key into a Channel.

    Args:
        value (str | Channel): Serialized channel name (e.g. ``"latitude2"``) or member.

    Returns:
        Channel: The matching member.

    Raises:
        SpecError: If the key does not name a known channel.
    """
    if isinstance(value, Channel):
        return value
    try:
        return _CHANNELS_BY_VALUE[value]
    except KeyError as exc:
        raise SpecError(f"unknown encoding channel: {value!r}") from exc


def var_name(text: str) -> str:
    """
    Turn arbitrary path-derived text into an identifier-safe token.

    Every non-word character becomes ``_``; a leading digit is prefixed with ``_``.

    Args:
        text (str): Raw text, typically ``"{node_name}_{suffix}"``.

    Returns:
        str: Sanitized identifier.
    """
    alphanumeric = _INVALID_NAME_CHARS.sub("_", text)
    return f"_{alphanumeric}" if re.match(r"\d", alphanumeric) else alphanumeric
