"""
Exception taxonomy for chartc.

Provides typed exceptions for input and compile failures:
- SpecError for input-model and grammar violations (unknown channel, ambiguous channel def).
- CompileError for fatal conditions detected while compiling; every CompileError aborts the
  whole compile with no partial output.
- FitSourceMissingError when a fit-enabled projection has nothing to fit to.
- UpstreamReferenceError for references that cannot be resolved (e.g. an undeclared dataset).

Notes:
    - Merge conflicts between sibling components are ordinary control flow and never raise.
    - Validators in chartc.core.schema raise SpecError; pydantic surfaces it wrapped in a
      ``pydantic.ValidationError`` at the model boundary.
    - Stdlib only, no side effects.

Examples:
    >>> from chartc.core.errors import FitSourceMissingError, CompileError
    >>> err = FitSourceMissingError(component="layer_0_projection", node="layer_0")
    >>> isinstance(err, CompileError)
    True
    >>> "layer_0_projection" in str(err)
    True
"""

from __future__ import annotations

__all__ = [
    "ChartcError",
    "SpecError",
    "CompileError",
    "FitSourceMissingError",
    "UpstreamReferenceError",
]


class ChartcError(Exception):
    """Base class for all chartc errors."""


class SpecError(ChartcError, ValueError):
    """Input spec does not conform to the normalized grammar."""


class CompileError(ChartcError, RuntimeError):
    """Fatal condition that aborts the compile."""


class FitSourceMissingError(CompileError):
    """
    Raised at assembly when a fit-enabled projection has neither a geometry field nor a
    backing dataset to fit its extent to.

    Attributes:
        component (str): Name of the offending projection component.
        node (str): Path-derived name of the node that owns it (``""`` for the root).
    """

    def __init__(self, component: str, node: str) -> None:
        self.component = component
        self.node = node
        where = repr(node) if node else "the top-level view"
        super().__init__(
            f"projection {component!r} on {where} is fit to its data, "
            "but no geometry field or dataset backs the fit"
        )


class UpstreamReferenceError(CompileError):
    """A reference in the input (dataset, field, selection) cannot be resolved."""
