from chartc.compile.resolve import parse_layout_size
from chartc.compile.tree import SpecTree
from chartc.config import CompileSettings
from chartc.core.grammar import NameKind, NodeKind
from chartc.core.schema import parse_spec


def _tree(spec: dict, settings: CompileSettings | None = None) -> SpecTree:
    return SpecTree.build(parse_spec(spec), settings)


def test_path_derived_names() -> None:
    tree = _tree(
        {
            "hconcat": [
                {"layer": [{"mark": "geoshape"}, {"mark": "point"}]},
                {"facet": {"row": {"field": "r"}}, "spec": {"mark": "point"}},
                {"name": "inset", "mark": "point"},
            ]
        }
    )
    assert [(n.kind, n.name) for n in tree.pre_order()] == [
        (NodeKind.CONCAT, ""),
        (NodeKind.LAYER, "concat_0"),
        (NodeKind.UNIT, "concat_0_layer_0"),
        (NodeKind.UNIT, "concat_0_layer_1"),
        (NodeKind.FACET, "concat_1"),
        (NodeKind.UNIT, "concat_1_child"),
        (NodeKind.UNIT, "inset"),
    ]
    assert tree.root.get_name("projection") == "projection"
    assert tree.nodes[2].get_name("projection") == "concat_0_layer_0_projection"


def test_post_order_visits_children_first() -> None:
    tree = _tree({"layer": [{"layer": [{"mark": "point"}]}, {"mark": "point"}]})
    assert [n.name for n in tree.post_order()] == ["layer_0_layer_0", "layer_0", "layer_1", ""]


def test_parent_lookup_by_index() -> None:
    tree = _tree({"layer": [{"mark": "point"}]})
    child = tree.children(tree.root)[0]
    assert tree.parent(child) is tree.root
    assert tree.parent(tree.root) is None
    assert child.parent == 0


def test_data_is_inherited_from_nearest_ancestor() -> None:
    tree = _tree(
        {
            "data": {"url": "outer.json"},
            "layer": [{"mark": "point"}, {"mark": "point", "data": {"url": "inner.json"}}],
        }
    )
    first, second = tree.children(tree.root)
    assert first.data.url == "outer.json"
    assert second.data.url == "inner.json"


def test_layer_children_share_size_signals() -> None:
    tree = _tree(
        {
            "hconcat": [
                {"layer": [{"mark": "point"}, {"mark": "point", "width": 420}]},
                {"mark": "point"},
            ]
        }
    )
    parse_layout_size(tree)
    layer, first, second, other = tree.nodes[1:]
    assert tree.size_signal(first, "width") == "concat_0_width"
    assert tree.size_signal(second, "height") == "concat_0_height"
    assert tree.size_signal(other, "width") == "concat_1_width"
    assert tree.has_live_size(layer, "width")
    assert not tree.has_live_size(first, "width")
    assert not tree.has_live_size(tree.root, "width")
    assert tree.default_size(layer, "width") == 420
    assert tree.default_size(other, "width") == 300


def test_lookup_passes_unknown_names_through() -> None:
    tree = _tree({"mark": "point"})
    assert tree.lookup(tree.root, NameKind.SCALE, "never_seeded") == "never_seeded"
    assert tree.root.scope.get(NameKind.SIGNAL, "width") == "width"
