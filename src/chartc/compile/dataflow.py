"""
Data Transform Graph: per-view pipelines of transform nodes.

A unit's data pipeline is a linear chain, ``SourceNode -> GeoJSONNode* -> GeoPointNode* ->
OutputNode``. Every node reports the fields it reads and writes, a structural fingerprint
over its constructor parameters, a parentless ``clone``, and ``assemble`` into the runtime's
transform descriptors.

Responsibilities
- Extract geometry signals for fit projections (GeoJSONNode), from a coordinate pair or a
  geojson-typed shape field; a shape field is filtered with ``isValid`` first.
- Project coordinate pairs to pixel positions (GeoPointNode). The projection name is
  resolved only when the node is assembled, so renames made by later merges are honored.
- Enumerate the geometry roles of a unit (``geometry_roles``); the same enumeration names the
  fit sources gathered during projection resolution, so signal names always agree.

Examples
--------
>>> from chartc.compile.dataflow import SourceNode, GeoJSONNode
>>> src = SourceNode("source_0")
>>> node = GeoJSONNode(src, fields=None, geojson="geo", signal="geojson_0")
>>> [t["type"] for t in node.assemble()]
['filter', 'geojson']
>>> node.clone().parent is None
True
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, NamedTuple

from chartc.core.grammar import GEO_POSITION_PAIRS, Channel, MeasureType
from chartc.core.hashing import hash_value
from chartc.core.typing import JsonDict

__all__ = [
    "DataFlowNode",
    "SourceNode",
    "GeoJSONNode",
    "GeoPointNode",
    "OutputNode",
    "GeometryRole",
    "geometry_roles",
    "coordinate_pairs",
]

# One side of a coordinate pair: a field name, an ``{"expr": ...}`` reference, or absent.
Coordinate = Any


class GeometryRole(NamedTuple):
    """A source of geometry in a unit: a coordinate pair, or a geojson shape field."""

    fields: tuple[Coordinate, Coordinate] | None
    geojson: str | None


def coordinate_pairs(spec: Any) -> list[tuple[str, tuple[Coordinate, Coordinate]]]:
    """
    Present coordinate pairs of a unit, primary first, with their output suffix.

    A pair is present when at least one side carries a field, datum or value.
    """
    pairs = []
    for suffix, (lon, lat) in zip(("", "2"), GEO_POSITION_PAIRS):
        sides = []
        for channel in (lon, lat):
            d = spec.channel_def(channel)
            sides.append(None if d is None else d.as_coordinate())
        if sides[0] is not None or sides[1] is not None:
            pairs.append((suffix, (sides[0], sides[1])))
    return pairs


def geometry_roles(spec: Any) -> list[GeometryRole]:
    """
    Geometry roles of a unit in signal order: coordinate pairs, then a geojson shape field.

    The position of a role in this list is the ``N`` of its ``geojson_N`` signal.
    """
    roles = [GeometryRole(fields=pair, geojson=None) for _, pair in coordinate_pairs(spec)]
    shape = spec.channel_def(Channel.SHAPE)
    if shape is not None and shape.has_field() and shape.type == MeasureType.GEOJSON.value:
        roles.append(GeometryRole(fields=None, geojson=shape.field))
    return roles


class DataFlowNode(ABC):
    """
    Base transform node, linked to at most one upstream parent.

    Subclasses must implement ``clone``, and override ``_params`` (the constructor parameters,
    fingerprinted by ``hash``) and ``assemble`` where they carry parameters or emit transforms.
    """

    type_name = "DataFlow"

    def __init__(self, parent: DataFlowNode | None = None) -> None:
        self.parent = parent

    def dependent_fields(self) -> set[str]:
        return set()

    def produced_fields(self) -> set[str]:
        return set()

    def _params(self) -> JsonDict:
        return {}

    def hash(self) -> str:
        return hash_value({"type": self.type_name, **self._params()})

    @abstractmethod
    def clone(self) -> DataFlowNode:
        """Copy of this node with the same parameters and no parent."""

    def assemble(self) -> list[JsonDict]:
        return []

    def chain(self) -> list[DataFlowNode]:
        """Nodes from the pipeline root down to this node."""
        nodes: list[DataFlowNode] = []
        current: DataFlowNode | None = self
        while current is not None:
            nodes.append(current)
            current = current.parent
        return nodes[::-1]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._params()!r})"


class SourceNode(DataFlowNode):
    """Root of a pipeline: one named dataset."""

    type_name = "Source"

    def __init__(self, name: str, dataset: JsonDict | None = None) -> None:
        super().__init__(None)
        self.name = name
        self.dataset = dataset if dataset is not None else {"name": name}

    def _params(self) -> JsonDict:
        return {"name": self.name}

    def clone(self) -> SourceNode:
        return SourceNode(self.name, copy.deepcopy(self.dataset))


def _named_fields(fields: tuple[Coordinate, Coordinate] | None) -> set[str]:
    return {f for f in (fields or ()) if isinstance(f, str)}


class GeoJSONNode(DataFlowNode):
    """
    Extract a geometry signal from a coordinate pair or a geojson field.

    Args:
        parent (DataFlowNode | None): Upstream node.
        fields (tuple | None): ``(longitude, latitude)`` coordinates.
        geojson (str | None): Name of a geometry-valued field.
        signal (str): Name of the produced geometry signal.
    """

    type_name = "GeoJSON"

    def __init__(
        self,
        parent: DataFlowNode | None,
        fields: tuple[Coordinate, Coordinate] | None = None,
        geojson: str | None = None,
        signal: str = "",
    ) -> None:
        super().__init__(parent)
        self.fields = fields
        self.geojson = geojson
        self.signal = signal

    @classmethod
    def parse_all(
        cls, parent: DataFlowNode, spec: Any, get_name: Callable[[str], str]
    ) -> DataFlowNode:
        """Chain one node per geometry role of ``spec``; returns the new pipeline tail."""
        for i, role in enumerate(geometry_roles(spec)):
            parent = cls(parent, role.fields, role.geojson, get_name(f"geojson_{i}"))
        return parent

    def dependent_fields(self) -> set[str]:
        deps = _named_fields(self.fields)
        if self.geojson:
            deps.add(self.geojson)
        return deps

    def _params(self) -> JsonDict:
        return {
            "fields": list(self.fields) if self.fields is not None else None,
            "geojson": self.geojson,
            "signal": self.signal,
        }

    def clone(self) -> GeoJSONNode:
        return GeoJSONNode(None, copy.deepcopy(self.fields), self.geojson, self.signal)

    def assemble(self) -> list[JsonDict]:
        transforms: list[JsonDict] = []
        if self.geojson:
            transforms.append({"type": "filter", "expr": f'isValid(datum["{self.geojson}"])'})
        t: JsonDict = {"type": "geojson"}
        if self.fields is not None:
            t["fields"] = list(self.fields)
        if self.geojson:
            t["geojson"] = self.geojson
        t["signal"] = self.signal
        transforms.append(t)
        return transforms


class GeoPointNode(DataFlowNode):
    """
    Project a coordinate pair through a named projection into two position fields.

    Args:
        parent (DataFlowNode | None): Upstream node.
        projection (str): Logical projection name, resolved at assembly.
        fields (tuple): ``(longitude, latitude)`` coordinates.
        as_ (tuple[str, str]): Output field names.
        resolve_projection (Callable | None): Maps the logical name to its current assigned
            name; identity when omitted.
    """

    type_name = "GeoPoint"

    def __init__(
        self,
        parent: DataFlowNode | None,
        projection: str,
        fields: tuple[Coordinate, Coordinate],
        as_: tuple[str, str],
        resolve_projection: Callable[[str], str] | None = None,
    ) -> None:
        super().__init__(parent)
        self.projection = projection
        self.fields = fields
        self.as_ = as_
        self.resolve_projection = resolve_projection

    @classmethod
    def parse_all(
        cls,
        parent: DataFlowNode,
        spec: Any,
        projection: str,
        get_name: Callable[[str], str],
        resolve_projection: Callable[[str], str] | None = None,
    ) -> DataFlowNode:
        for suffix, pair in coordinate_pairs(spec):
            as_ = (get_name(f"x{suffix}"), get_name(f"y{suffix}"))
            parent = cls(parent, projection, pair, as_, resolve_projection)
        return parent

    def dependent_fields(self) -> set[str]:
        return _named_fields(self.fields)

    def produced_fields(self) -> set[str]:
        return set(self.as_)

    def _params(self) -> JsonDict:
        return {"projection": self.projection, "fields": list(self.fields), "as": list(self.as_)}

    def clone(self) -> GeoPointNode:
        return GeoPointNode(
            None, self.projection, copy.deepcopy(self.fields), self.as_, self.resolve_projection
        )

    def assemble(self) -> list[JsonDict]:
        name = self.projection
        if self.resolve_projection is not None:
            name = self.resolve_projection(name)
        return [
            {
                "type": "geopoint",
                "projection": name,
                "fields": list(self.fields),
                "as": list(self.as_),
            }
        ]


class OutputNode(DataFlowNode):
    """Named end of a pipeline that views reference by output name."""

    type_name = "Output"

    def __init__(self, parent: DataFlowNode | None, name: str) -> None:
        super().__init__(parent)
        self.name = name

    def _params(self) -> JsonDict:
        return {"name": self.name}

    def clone(self) -> OutputNode:
        return OutputNode(None, self.name)

    def transforms(self) -> list[DataFlowNode]:
        """Transform nodes strictly between the source and this output."""
        return [n for n in self.chain() if not isinstance(n, (SourceNode, OutputNode))]

    def source(self) -> SourceNode | None:
        head = self.chain()[0]
        return head if isinstance(head, SourceNode) else None
