from chartc.compile.dataflow import GeoJSONNode, SourceNode
from chartc.core.hashing import hash_value


def test_hash_value_key_order_invariant() -> None:
    assert hash_value({"x": 1, "y": {"b": 2, "a": 1}}) == hash_value({"y": {"a": 1, "b": 2}, "x": 1})


def test_hash_value_tuple_and_list_agree() -> None:
    assert hash_value(("lon", "lat")) == hash_value(["lon", "lat"])


def test_hash_value_non_ascii_text() -> None:
    assert hash_value({"label": "Zürich"}) == hash_value({"label": "Zürich"})
    assert hash_value({"label": "Zürich"}) != hash_value({"label": "Zurich"})


def test_hash_value_distinguishes_values() -> None:
    assert hash_value({"signal": "geojson_0"}) != hash_value({"signal": "geojson_1"})
    assert hash_value(None) == hash_value(None)


def test_equal_transform_parameters_fingerprint_equally() -> None:
    a = GeoJSONNode(SourceNode("source_0"), fields=("lon", "lat"), signal="geojson_0")
    b = GeoJSONNode(SourceNode("source_1"), fields=["lon", "lat"], signal="geojson_0")
    assert a.hash() == b.hash()
    assert a.hash() != GeoJSONNode(None, fields=("lon", "lat"), signal="geojson_1").hash()
