import pytest

from chartc.compile.assemble import assemble
from chartc.compile.data import DataComponent, parse_data
from chartc.compile.resolve import resolve
from chartc.compile.tree import SpecTree
from chartc.core.errors import FitSourceMissingError
from chartc.core.grammar import PropertyFamily
from chartc.core.schema import parse_spec

POINTS = {
    "data": {"values": [{"lon": 1.0, "lat": 2.0}]},
    "mark": "circle",
    "encoding": {
        "longitude": {"field": "lon", "type": "quantitative"},
        "latitude": {"field": "lat", "type": "quantitative"},
    },
}


def _resolve(spec: dict) -> tuple[SpecTree, DataComponent]:
    top = parse_spec(spec)
    tree = SpecTree.build(top)
    data = DataComponent(top.datasets)
    resolve(tree, data)
    return tree, data


@pytest.mark.parametrize("explicit", [{"scale": 150}, {"translate": [10, 10]}])
def test_explicit_scale_or_translate_disables_fit(explicit: dict) -> None:
    tree, data = _resolve({**POINTS, "projection": {"type": "mercator", **explicit}})
    comp = tree.root.component(PropertyFamily.PROJECTION)
    assert comp.is_fit is False
    assert comp.size is None
    assert comp.data is None

    parse_data(tree, data)
    data.link()
    out = assemble(tree, data)
    transforms = [t["type"] for d in out["data"] for t in d.get("transform", [])]
    assert "geojson" not in transforms
    assert transforms == ["geopoint"]


def test_config_scale_also_disables_fit() -> None:
    tree, _ = _resolve({**POINTS, "config": {"projection": {"scale": 100}}})
    assert tree.root.component(PropertyFamily.PROJECTION).is_fit is False


def test_fit_gathers_geometry_signals() -> None:
    tree, _ = _resolve(
        {
            **POINTS,
            "encoding": {
                **POINTS["encoding"],
                "longitude2": {"field": "lon2"},
                "latitude2": {"field": "lat2"},
                "shape": {"field": "geo", "type": "geojson"},
            },
        }
    )
    comp = tree.root.component(PropertyFamily.PROJECTION)
    assert comp.size == [{"signal": "width"}, {"signal": "height"}]
    assert comp.data == [
        {"signal": "geojson_0"},
        {"signal": "geojson_1"},
        {"signal": "geojson_2"},
    ]


def test_default_projection_type_is_implicit() -> None:
    tree, _ = _resolve({"mark": "geoshape", "data": {"url": "world.json"}})
    comp = tree.root.component(PropertyFamily.PROJECTION)
    assert comp.explicit == {}
    assert comp.get("type") == "equalEarth"


def test_missing_fit_source_raises_at_assembly_not_resolve() -> None:
    tree, data = _resolve({"mark": "point", "projection": {"type": "mercator"}})
    comp = tree.root.component(PropertyFamily.PROJECTION)
    assert comp.is_fit and comp.data == ["main"]

    parse_data(tree, data)
    data.link()
    with pytest.raises(FitSourceMissingError) as excinfo:
        assemble(tree, data)
    assert excinfo.value.component == "projection"
    assert excinfo.value.node == ""


def test_scenario_explicit_scale_sibling_keeps_independent_projections() -> None:
    tree, data = _resolve(
        {
            "data": {"url": "world.json"},
            "layer": [{"mark": "geoshape"}, {"mark": "geoshape", "projection": {"scale": 200}}],
        }
    )
    first, second = tree.children(tree.root)
    assert tree.root.component(PropertyFamily.PROJECTION) is None

    fit_comp = first.component(PropertyFamily.PROJECTION)
    fixed_comp = second.component(PropertyFamily.PROJECTION)
    assert (fit_comp.name, fit_comp.merged, fit_comp.is_fit) == ("layer_0_projection", False, True)
    assert (fixed_comp.name, fixed_comp.merged, fixed_comp.is_fit) == (
        "layer_1_projection",
        False,
        False,
    )

    parse_data(tree, data)
    data.link()
    projections = assemble(tree, data)["projections"]
    assert projections == [
        {
            "name": "layer_0_projection",
            "size": {"signal": "[width, height]"},
            "fit": {"signal": "data('source_0')"},
            "type": "equalEarth",
        },
        {
            "name": "layer_1_projection",
            "translate": {"signal": "[width / 2, height / 2]"},
            "type": "equalEarth",
            "scale": 200,
        },
    ]
