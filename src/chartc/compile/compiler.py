"""
compile_spec: the single entry point of a compile.

Phases, strictly in order and on one thread:
    1) parse: validate the input into a TopLevelSpec and build the Spec Tree;
    2) resolve: per-node components and merges, post-order;
    3) data: per-view transform pipelines, then dedup/linking of their outputs;
    4) assemble: top-down emission of the output specification.

A compile is a pure function of its input and settings; any ChartcError aborts it with no
partial output.
"""

from __future__ import annotations

import logging
from typing import Any

from chartc.config import CompileSettings
from chartc.core.schema import parse_spec
from chartc.core.typing import JsonDict

from .assemble import assemble
from .data import DataComponent, parse_data
from .resolve import resolve
from .tree import SpecTree

__all__ = ["compile_spec"]

logger = logging.getLogger(__name__)


def compile_spec(spec: Any, *, settings: CompileSettings | None = None) -> JsonDict:
    """
    Compile a chart spec into the runtime specification.

    Args:
        spec (Any): Mapping, TopLevelSpec, or an object with ``to_dict()`` (e.g. an Altair
            chart).
        settings (CompileSettings | None): Compile settings; defaults when omitted. Use
            ``CompileSettings.load()`` to honor env/TOML configuration.

    Returns:
        dict: JSON-serializable output specification.

    Raises:
        pydantic.ValidationError: If the input does not match the normalized grammar.
        FitSourceMissingError: If a fit projection has nothing to fit to.
        UpstreamReferenceError: If ``strict_datasets`` is on and a dataset is undeclared.
    """
    settings = settings or CompileSettings()
    top = parse_spec(spec)
    tree = SpecTree.build(top, settings)
    logger.debug("built spec tree with %d nodes", len(tree.nodes))

    data = DataComponent(top.datasets, strict_datasets=settings.strict_datasets)
    resolve(tree, data)
    parse_data(tree, data)
    data.link()
    return assemble(tree, data)
