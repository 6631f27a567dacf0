"""
chartc compile-time defaults and family property sets.

Defines the fixed property sets the merge engine compares when deciding whether sibling
components conflict, and the runtime defaults consumed by chartc.config. This module is
zero-IO and uses only the Python standard library.

Notes:
    - A property outside its family's set never causes a merge conflict; it travels with
      whichever side the merge keeps.
    - Changing defaults should be done here; chartc.config.CompileSettings consumes them.
"""

from __future__ import annotations

from typing import Final

__all__ = [
    "PROJECTION_PROPERTIES",
    "SCALE_PROPERTIES",
    "AXIS_PROPERTIES",
    "LEGEND_PROPERTIES",
    "DEFAULT_PROJECTION_TYPE",
    "CONTINUOUS_WIDTH",
    "CONTINUOUS_HEIGHT",
    "SCHEMA_URL",
    "DEFAULT_SCALE_TYPES",
    "DEFAULT_AXIS_ORIENT",
]

PROJECTION_PROPERTIES: Final[tuple[str, ...]] = (
    "type",
    "clipAngle",
    "clipExtent",
    "center",
    "rotate",
    "precision",
    "reflectX",
    "reflectY",
    "coefficient",
    "distance",
    "fraction",
    "lobes",
    "parallel",
    "parallels",
    "pointRadius",
    "radius",
    "ratio",
    "scale",
    "spacing",
    "tilt",
    "translate",
)

SCALE_PROPERTIES: Final[tuple[str, ...]] = (
    "type",
    "domain",
    "domainMax",
    "domainMin",
    "domainMid",
    "range",
    "scheme",
    "reverse",
    "round",
    "clamp",
    "nice",
    "zero",
    "padding",
    "paddingInner",
    "paddingOuter",
    "exponent",
    "base",
    "constant",
    "interpolate",
)

AXIS_PROPERTIES: Final[tuple[str, ...]] = (
    "orient",
    "title",
    "format",
    "formatType",
    "grid",
    "labels",
    "labelAngle",
    "tickCount",
    "ticks",
    "values",
    "offset",
    "domain",
)

LEGEND_PROPERTIES: Final[tuple[str, ...]] = (
    "type",
    "title",
    "format",
    "formatType",
    "orient",
    "direction",
    "columns",
    "symbolType",
    "values",
)

# Projection type when neither the view nor config names one.
DEFAULT_PROJECTION_TYPE: Final[str] = "equalEarth"

# View size used for size signals when a unit or layer does not specify one.
CONTINUOUS_WIDTH: Final[int] = 300
CONTINUOUS_HEIGHT: Final[int] = 300

SCHEMA_URL: Final[str] = "https://vega.github.io/schema/vega/v5.json"

# (measure type, is positional) -> scale type
DEFAULT_SCALE_TYPES: Final[dict[tuple[str, bool], str]] = {
    ("quantitative", True): "linear",
    ("quantitative", False): "linear",
    ("temporal", True): "time",
    ("temporal", False): "time",
    ("ordinal", True): "point",
    ("ordinal", False): "ordinal",
    ("nominal", True): "band",
    ("nominal", False): "ordinal",
}

DEFAULT_AXIS_ORIENT: Final[dict[str, str]] = {"x": "bottom", "y": "left"}
