"""
Mark collaborator: unit marks in the runtime's vocabulary.

Only the mark shapes the geographic pipeline needs are encoded in detail:

- ``geoshape`` -> a ``shape`` mark with a ``geoshape`` post-encoding transform bound to the
  unit's (looked-up) projection, reading a geojson shape field when one is encoded.
- ``point``/``circle``/``square`` -> a ``symbol`` mark; with a projection, ``x``/``y`` (and
  ``x2``/``y2``) read the geopoint output fields.
- Other marks map onto their runtime type with plain scale-bound encodings.

Encoders are registered per mark type in ``MARK_ENCODERS``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from chartc.core.grammar import Channel, MeasureType, NameKind, PropertyFamily
from chartc.core.schema import ChannelDef
from chartc.core.typing import JsonDict

from .dataflow import coordinate_pairs
from .tree import SpecNode, SpecTree

__all__ = ["MARK_ENCODERS", "assemble_unit_mark"]

_MARK_TYPES: dict[str, str] = {
    "geoshape": "shape",
    "point": "symbol",
    "circle": "symbol",
    "square": "symbol",
    "bar": "rect",
    "rect": "rect",
    "tick": "rect",
    "line": "line",
    "area": "area",
    "rule": "rule",
    "text": "text",
    "trail": "trail",
}

_FILLED: frozenset[str] = frozenset({"geoshape", "circle", "square", "bar", "rect", "area"})

# Encoding channel -> mark property, for channels other than color.
_PROPERTIES: dict[Channel, str] = {
    Channel.X: "x",
    Channel.Y: "y",
    Channel.X2: "x2",
    Channel.Y2: "y2",
    Channel.FILL: "fill",
    Channel.STROKE: "stroke",
    Channel.SHAPE: "shape",
    Channel.SIZE: "size",
    Channel.OPACITY: "opacity",
    Channel.FILL_OPACITY: "fillOpacity",
    Channel.STROKE_OPACITY: "strokeOpacity",
    Channel.TEXT: "text",
    Channel.TOOLTIP: "tooltip",
    Channel.HREF: "href",
    Channel.DESCRIPTION: "description",
}


def _entry(tree: SpecTree, node: SpecNode, channel: Channel, d: ChannelDef) -> JsonDict | None:
    scale = node.component(PropertyFamily.SCALE, channel)
    scale_name = None if scale is None else tree.lookup(node, NameKind.SCALE, scale.name)
    if d.has_field():
        entry: JsonDict = {"field": d.field}
    elif d.is_signal():
        ref = d.datum if d.has_datum() else d.value
        entry = {"signal": ref.get("signal", ref.get("expr"))}
    elif d.has_datum():
        entry = {"value": d.datum}
    elif d.has_value():
        return {"value": d.value}
    else:
        return None
    if scale_name is not None:
        entry["scale"] = scale_name
    return entry


def _encode(tree: SpecTree, node: SpecNode, skip: frozenset[Channel] = frozenset()) -> JsonDict:
    spec = node.spec
    update: JsonDict = {}
    for channel, d in spec.encoding.items():
        if channel in skip or not isinstance(d, ChannelDef):
            continue
        if channel is Channel.COLOR:
            prop = "fill" if spec.mark.type in _FILLED else "stroke"
        elif channel in _PROPERTIES:
            prop = _PROPERTIES[channel]
        else:
            continue
        entry = _entry(tree, node, channel, d)
        if entry is not None:
            update[prop] = entry
    return update


def _projection_name(tree: SpecTree, node: SpecNode) -> str | None:
    comp = node.component(PropertyFamily.PROJECTION)
    if comp is None:
        return None
    return tree.lookup(node, NameKind.PROJECTION, comp.name)


def _geoshape(tree: SpecTree, node: SpecNode) -> JsonDict:
    mark: JsonDict = {"type": "shape", "encode": {"update": _encode(tree, node, frozenset({Channel.SHAPE}))}}
    transform: JsonDict = {"type": "geoshape", "projection": _projection_name(tree, node)}
    shape = node.spec.channel_def(Channel.SHAPE)
    if shape is not None and shape.has_field() and shape.type == MeasureType.GEOJSON.value:
        transform["field"] = f'datum["{shape.field}"]'
    mark["transform"] = [transform]
    return mark


def _symbol(tree: SpecTree, node: SpecNode) -> JsonDict:
    spec = node.spec
    update = _encode(tree, node)
    if _projection_name(tree, node) is not None:
        for suffix, _ in coordinate_pairs(spec):
            update[f"x{suffix}"] = {"field": node.get_name(f"x{suffix}")}
            update[f"y{suffix}"] = {"field": node.get_name(f"y{suffix}")}
    if spec.mark.type in ("circle", "square") and "shape" not in update:
        update["shape"] = {"value": spec.mark.type}
    return {"type": "symbol", "encode": {"update": update}}


def _generic(tree: SpecTree, node: SpecNode) -> JsonDict:
    return {
        "type": _MARK_TYPES.get(node.spec.mark.type, node.spec.mark.type),
        "encode": {"update": _encode(tree, node)},
    }


MARK_ENCODERS: dict[str, Callable[[SpecTree, SpecNode], JsonDict]] = {
    "geoshape": _geoshape,
    "point": _symbol,
    "circle": _symbol,
    "square": _symbol,
}


def assemble_unit_mark(tree: SpecTree, data: Any, node: SpecNode) -> JsonDict:
    """Encode one unit's mark, sourcing it from the unit's concrete dataset."""
    encoder = MARK_ENCODERS.get(node.spec.mark.type, _generic)
    body = encoder(tree, node)
    mark: JsonDict = {"name": node.get_name("marks"), "type": body.pop("type")}
    if node.data is not None:
        mark["from"] = {"data": data.lookup(node.get_name("main"))}
    mark.update(body)
    return mark
