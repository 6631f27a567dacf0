import pytest

from chartc.compile.assemble import assemble, fit_sources, format_fit_expression
from chartc.compile.component import NamedComponent
from chartc.compile.data import DataComponent, parse_data
from chartc.compile.dataflow import GeoJSONNode, SourceNode
from chartc.compile.resolve import resolve
from chartc.compile.tree import SpecTree
from chartc.core.errors import FitSourceMissingError
from chartc.core.grammar import PropertyFamily
from chartc.core.schema import parse_spec


def _compile(spec: dict) -> tuple[SpecTree, DataComponent, dict]:
    top = parse_spec(spec)
    tree = SpecTree.build(top)
    data = DataComponent(top.datasets)
    resolve(tree, data)
    parse_data(tree, data)
    data.link()
    return tree, data, assemble(tree, data)


def test_fit_expression_single_source_unbracketed() -> None:
    assert format_fit_expression(["data('a')"]) == "data('a')"
    assert format_fit_expression(["geojson_0"]) == "geojson_0"


def test_fit_expression_many_sources_bracketed() -> None:
    assert format_fit_expression(["data('a')", "data('b')"]) == "[data('a'), data('b')]"
    assert format_fit_expression(["geojson_0", "data('b')", "x"]) == "[geojson_0, data('b'), x]"


def test_fit_expression_needs_a_source() -> None:
    with pytest.raises(ValueError):
        format_fit_expression([])


def test_fit_sources_dedupe_and_drop_unbacked() -> None:
    data = DataComponent()
    source = SourceNode("source_0")
    data.register_output("a_main", source)
    data.register_output("b_main", source)
    data.register_output("c_main", GeoJSONNode(source, fields=None, geojson="geo", signal="geojson_0"))
    data.link()
    comp = NamedComponent(
        "projection",
        data=[
            {"signal": "geojson_0"},
            "a_main",
            "ghost_main",
            {"signal": "geojson_1"},
            "b_main",
            {"signal": "geojson_0"},
        ],
    )
    assert fit_sources(data, comp) == ["geojson_0", "data('source_0')"]
    assert data.ref_counts["source_0"] == 2


def test_fit_over_two_datasets_is_bracketed() -> None:
    _, _, out = _compile(
        {
            "layer": [
                {"mark": "geoshape", "data": {"url": "countries.json"}},
                {"mark": "geoshape", "data": {"url": "rivers.json"}},
            ]
        }
    )
    assert out["projections"] == [
        {
            "name": "projection",
            "size": {"signal": "[width, height]"},
            "fit": {"signal": "[data('source_0'), data('source_1')]"},
            "type": "equalEarth",
        }
    ]
    assert [d["name"] for d in out["data"]] == ["source_0", "source_1"]


def test_explicit_properties_spread_last() -> None:
    _, _, out = _compile(
        {
            "mark": "geoshape",
            "data": {"url": "world.json"},
            "projection": {"type": "mercator", "size": {"signal": "[100, 100]"}},
        }
    )
    (projection,) = out["projections"]
    assert projection["size"] == {"signal": "[100, 100]"}
    assert projection["type"] == "mercator"
    assert projection["fit"] == {"signal": "data('source_0')"}


def test_non_fit_translate_centers_view_unless_explicit() -> None:
    _, _, out = _compile(
        {"mark": "geoshape", "data": {"url": "world.json"}, "projection": {"scale": 120}}
    )
    assert out["projections"][0]["translate"] == {"signal": "[width / 2, height / 2]"}

    _, _, out = _compile(
        {
            "mark": "geoshape",
            "data": {"url": "world.json"},
            "projection": {"scale": 120, "translate": [5, 5]},
        }
    )
    assert out["projections"][0]["translate"] == [5, 5]


def test_tombstoned_components_are_skipped() -> None:
    tree, _, out = _compile(
        {"data": {"url": "world.json"}, "layer": [{"mark": "geoshape"}, {"mark": "geoshape"}]}
    )
    names = [p["name"] for p in out["projections"]]
    assert names == ["projection"]
    assert len(set(names)) == len(names)
    for mark in out["marks"]:
        assert mark["transform"][0]["projection"] == "projection"


def test_unreferenced_datasets_are_not_emitted() -> None:
    data = DataComponent()
    tree = SpecTree.build(parse_spec({"mark": "point", "data": {"url": "a.json"}}))
    resolve(tree, data)
    parse_data(tree, data)
    data.link()
    assert data.assemble() == []
    assert data.lookup("main") == "source_0"
    assert data.assemble() == [{"name": "source_0", "url": "a.json"}]


def test_geometry_signal_without_a_pipeline_is_not_a_fit_source() -> None:
    spec = {
        "mark": "circle",
        "encoding": {
            "longitude": {"field": "lon", "type": "quantitative"},
            "latitude": {"field": "lat", "type": "quantitative"},
        },
    }
    tree = SpecTree.build(parse_spec(spec))
    data = DataComponent()
    resolve(tree, data)
    comp = tree.root.component(PropertyFamily.PROJECTION)
    assert comp.data == [{"signal": "geojson_0"}]

    parse_data(tree, data)
    data.link()
    assert not data.produces("geojson_0")
    assert fit_sources(data, comp) == []
    with pytest.raises(FitSourceMissingError) as excinfo:
        assemble(tree, data)
    assert excinfo.value.component == "projection"
