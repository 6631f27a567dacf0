import pytest

from chartc.core.errors import SpecError
from chartc.core.grammar import (
    GEO_POSITION_PAIRS,
    LEGEND_CHANNELS,
    LEGEND_TARGETS,
    Channel,
    channel_from_value,
    var_name,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("projection", "projection"),
        ("concat_0_projection", "concat_0_projection"),
        ("my view-projection", "my_view_projection"),
        ("0_width", "_0_width"),
        ("a.b", "a_b"),
    ],
)
def test_var_name_sanitizes(raw: str, expected: str) -> None:
    assert var_name(raw) == expected


def test_channel_from_value_accepts_serialized_and_members() -> None:
    assert channel_from_value("fillOpacity") is Channel.FILL_OPACITY
    assert channel_from_value(Channel.LATITUDE2) is Channel.LATITUDE2


def test_channel_from_value_unknown_raises_spec_error() -> None:
    with pytest.raises(SpecError):
        channel_from_value("row")


def test_geo_pairs_are_primary_then_secondary() -> None:
    assert GEO_POSITION_PAIRS[0] == (Channel.LONGITUDE, Channel.LATITUDE)
    assert GEO_POSITION_PAIRS[1] == (Channel.LONGITUDE2, Channel.LATITUDE2)


def test_every_legend_channel_has_a_target() -> None:
    assert set(LEGEND_TARGETS) == set(LEGEND_CHANNELS)
