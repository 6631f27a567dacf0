import pytest

from chartc.compile.dataflow import (
    DataFlowNode,
    GeoJSONNode,
    GeoPointNode,
    OutputNode,
    SourceNode,
    geometry_roles,
)
from chartc.compile.names import NameMap
from chartc.core.schema import UnitSpec


def _unit(encoding: dict) -> UnitSpec:
    return UnitSpec.model_validate({"mark": "circle", "encoding": encoding})


def test_geometry_field_is_filtered_before_extraction() -> None:
    node = GeoJSONNode(SourceNode("source_0"), geojson="geo", signal="geojson_0")
    assert node.assemble() == [
        {"type": "filter", "expr": 'isValid(datum["geo"])'},
        {"type": "geojson", "geojson": "geo", "signal": "geojson_0"},
    ]
    assert node.dependent_fields() == {"geo"}


def test_coordinate_pair_has_no_filter() -> None:
    node = GeoJSONNode(None, fields=("lon", {"expr": "10"}), signal="geojson_0")
    assert node.assemble() == [
        {"type": "geojson", "fields": ["lon", {"expr": "10"}], "signal": "geojson_0"}
    ]
    assert node.dependent_fields() == {"lon"}
    assert node.produced_fields() == set()


def test_absent_roles_build_no_nodes() -> None:
    src = SourceNode("source_0")
    unit = _unit({"color": {"field": "a"}})
    assert geometry_roles(unit) == []
    assert GeoJSONNode.parse_all(src, unit, lambda t: t) is src
    assert GeoPointNode.parse_all(src, unit, "projection", lambda t: t) is src


def test_half_present_pair_builds_a_node() -> None:
    unit = _unit({"latitude": {"datum": 10}})
    tail = GeoJSONNode.parse_all(SourceNode("s"), unit, lambda t: f"v_{t}")
    assert isinstance(tail, GeoJSONNode)
    assert tail.fields == (None, {"expr": "10"})
    assert tail.signal == "v_geojson_0"


def test_equal_parameters_hash_equal() -> None:
    a = GeoJSONNode(SourceNode("a"), fields=("lon", "lat"), signal="geojson_0")
    b = GeoJSONNode(None, fields=["lon", "lat"], signal="geojson_0")
    c = GeoJSONNode(None, fields=("lon", "lat"), signal="geojson_1")
    assert a.hash() == b.hash()
    assert a.hash() != c.hash()
    assert GeoPointNode(None, "p", ("lon", "lat"), ("x", "y")).hash() != GeoPointNode(
        None, "q", ("lon", "lat"), ("x", "y")
    ).hash()


def test_clone_keeps_parameters_but_not_parent() -> None:
    node = GeoPointNode(SourceNode("s"), "projection", ("lon", "lat"), ("x", "y"))
    copy = node.clone()
    assert copy.parent is None
    assert copy.hash() == node.hash()
    assert copy.assemble() == node.assemble()


def test_secondary_pair_outputs_are_independent() -> None:
    unit = _unit(
        {
            "longitude": {"field": "lon"},
            "latitude": {"field": "lat"},
            "longitude2": {"field": "lon2"},
            "latitude2": {"field": "lat2"},
        }
    )
    tail = GeoPointNode.parse_all(SourceNode("s"), unit, "projection", lambda t: t)
    nodes = tail.chain()[1:]
    assert [n.as_ for n in nodes] == [("x", "y"), ("x2", "y2")]
    assert [n.fields for n in nodes] == [("lon", "lat"), ("lon2", "lat2")]
    assert tail.produced_fields() == {"x2", "y2"}


def test_projection_name_resolved_at_assembly() -> None:
    names = NameMap()
    names.seed("layer_0_projection")
    node = GeoPointNode(
        None,
        "layer_0_projection",
        ("lon", "lat"),
        ("layer_0_x", "layer_0_y"),
        lambda n: names.get(n) or n,
    )
    names.rename("layer_0_projection", "projection")
    assert node.assemble()[0]["projection"] == "projection"


def test_output_chain_and_transforms() -> None:
    src = SourceNode("source_0")
    geo = GeoJSONNode(src, fields=("lon", "lat"), signal="geojson_0")
    out = OutputNode(geo, "main")
    assert out.source() is src
    assert out.transforms() == [geo]
    assert [type(n).__name__ for n in out.chain()] == ["SourceNode", "GeoJSONNode", "OutputNode"]


def test_base_node_requires_clone() -> None:
    with pytest.raises(TypeError):
        DataFlowNode()

    class Passthrough(DataFlowNode):
        def clone(self) -> "Passthrough":
            return Passthrough()

    node = Passthrough(SourceNode("source_0"))
    assert node.clone().parent is None
    assert node.assemble() == []
