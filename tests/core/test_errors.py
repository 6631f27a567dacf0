import pytest

from chartc.core.errors import (
    ChartcError,
    CompileError,
    FitSourceMissingError,
    SpecError,
    UpstreamReferenceError,
)


def test_error_taxonomy() -> None:
    assert issubclass(SpecError, ChartcError)
    assert issubclass(SpecError, ValueError)
    assert issubclass(FitSourceMissingError, CompileError)
    assert issubclass(UpstreamReferenceError, CompileError)
    assert issubclass(CompileError, RuntimeError)


def test_fit_source_missing_names_component_and_node() -> None:
    err = FitSourceMissingError(component="layer_1_projection", node="layer_1")
    assert err.component == "layer_1_projection"
    assert err.node == "layer_1"
    assert "layer_1_projection" in str(err)
    assert "'layer_1'" in str(err)


def test_fit_source_missing_on_root() -> None:
    with pytest.raises(CompileError, match="top-level view"):
        raise FitSourceMissingError(component="projection", node="")
