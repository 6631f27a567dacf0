from chartc.compile.component import NamedComponent
from chartc.compile.names import NameMap, NameScope
from chartc.compile.split import Split
from chartc.core.grammar import NameKind


def test_explicit_wins_regardless_of_write_order() -> None:
    s = Split()
    s.set("type", "mercator", explicit=True)
    s.set("type", "equalEarth", explicit=False)
    assert s.get("type") == "mercator"

    t = Split()
    t.set("type", "equalEarth", explicit=False)
    t.set("type", "mercator", explicit=True)
    assert t.get("type") == "mercator"
    assert t.get_with_explicit("type") == ("mercator", True)


def test_combine_spreads_explicit_last() -> None:
    s = Split({"center": [0, 0]}, {"center": [1, 1], "name": "p"})
    assert s.combine() == {"center": [0, 0], "name": "p"}
    assert s.get("missing") is None
    assert not s.has("missing")


def test_named_component_defaults() -> None:
    comp = NamedComponent("layer_0_projection", {"type": "mercator"})
    assert comp.name == "layer_0_projection"
    assert comp.implicit == {"name": "layer_0_projection"}
    assert comp.specified == {"type": "mercator"}
    assert comp.merged is False
    assert comp.is_fit is False
    assert NamedComponent("p", data=[]).is_fit is True


def test_specified_is_a_snapshot() -> None:
    comp = NamedComponent("p", {"type": "mercator"})
    comp.set("type", "albers", explicit=True)
    assert comp.specified == {"type": "mercator"}


def test_rename_is_idempotent() -> None:
    once, twice = NameMap(), NameMap()
    for m in (once, twice):
        m.seed("layer_0_projection")
    once.rename("layer_0_projection", "projection")
    twice.rename("layer_0_projection", "projection")
    twice.rename("layer_0_projection", "projection")
    assert once.get("layer_0_projection") == twice.get("layer_0_projection") == "projection"


def test_rename_unregistered_is_noop() -> None:
    m = NameMap()
    m.rename("ghost", "projection")
    assert m.get("ghost") is None
    assert not m.has("ghost")
    assert len(m) == 0


def test_seed_does_not_reset_a_rename() -> None:
    m = NameMap()
    m.seed("a")
    m.rename("a", "b")
    m.seed("a")
    assert m.get("a") == "b"


def test_scope_maps_are_independent() -> None:
    scope = NameScope()
    scope.seed(NameKind.SCALE, "color")
    scope.rename(NameKind.PROJECTION, "color", "other")
    assert scope.get(NameKind.SCALE, "color") == "color"
    assert scope.get(NameKind.PROJECTION, "color") is None
    assert scope[NameKind.SCALE].has("color")
