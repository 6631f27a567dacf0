"""
Assembler: read the resolved tree and emit the runtime specification.

The walk is read-only with respect to components and Name Scopes; the only state it touches
is the data component's reference counts. Tombstoned components are skipped, and every name
written to the output goes through ``SpecTree.lookup``.

Projection output
- fit: ``{name, size, fit, ...properties}`` with properties (explicit last) overriding the
  fit defaults;
- non-fit: ``{name, translate, ...properties}``, translate centering the view.

Fit expressions join their distinct sources in first-seen order: one source is emitted as
is, several as ``[a, b]``.

Examples
--------
>>> from chartc.compile.assemble import format_fit_expression
>>> format_fit_expression(["data('a')"])
"data('a')"
>>> format_fit_expression(["data('a')", "data('b')"])
"[data('a'), data('b')]"
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from chartc.core.errors import FitSourceMissingError
from chartc.core.grammar import LEGEND_TARGETS, NameKind, NodeKind, PropertyFamily
from chartc.core.typing import JsonDict

from .component import NamedComponent
from .data import DataComponent
from .marks import assemble_unit_mark
from .tree import SIZE_DIMENSIONS, SpecNode, SpecTree

__all__ = [
    "format_fit_expression",
    "fit_sources",
    "assemble_projection",
    "assemble_signals",
    "assemble_marks",
    "assemble",
]

logger = logging.getLogger(__name__)


def format_fit_expression(sources: Sequence[str]) -> str:
    if not sources:
        raise ValueError("a fit expression needs at least one source")
    if len(sources) == 1:
        return sources[0]
    return f"[{', '.join(sources)}]"


def fit_sources(data: DataComponent, comp: NamedComponent) -> list[str]:
    """
    Distinct source expressions of a fit projection, in first-seen order.

    Geometry signals contribute their signal name when a pipeline extracts them; dataset
    names contribute ``data('<concrete>')`` when a dataset backs them. Anything else is
    dropped.
    """
    out: list[str] = []
    for source in comp.data or []:
        if isinstance(source, dict):
            if not data.produces(source["signal"]):
                continue
            expr = source["signal"]
        elif data.backs(source):
            expr = f"data('{data.lookup(source)}')"
        else:
            continue
        if expr not in out:
            out.append(expr)
    return out


def assemble_projection(
    tree: SpecTree, data: DataComponent, node: SpecNode, comp: NamedComponent
) -> JsonDict:
    """
    Emit one live projection.

    Raises:
        FitSourceMissingError: If the projection is fit but nothing backs the fit.
    """
    properties = {k: v for k, v in comp.combine().items() if k != "name"}
    width, height = (tree.size_signal(node, dim) for dim in SIZE_DIMENSIONS)
    if comp.is_fit:
        sources = fit_sources(data, comp)
        if not sources:
            raise FitSourceMissingError(component=comp.name, node=node.name)
        size = comp.size or [{"signal": width}, {"signal": height}]
        return {
            "name": comp.name,
            "size": {"signal": f"[{size[0]['signal']}, {size[1]['signal']}]"},
            "fit": {"signal": format_fit_expression(sources)},
            **properties,
        }
    return {
        "name": comp.name,
        "translate": {"signal": f"[{width} / 2, {height} / 2]"},
        **properties,
    }


def assemble_signals(tree: SpecTree) -> list[JsonDict]:
    signals = []
    for node in tree.pre_order():
        for dim in SIZE_DIMENSIONS:
            if tree.has_live_size(node, dim):
                signals.append({"name": node.get_name(dim), "value": tree.default_size(node, dim)})
    return signals


def _assemble_scale(tree: SpecTree, node: SpecNode, comp: NamedComponent) -> JsonDict:
    return comp.combine()


def _assemble_axis(tree: SpecTree, node: SpecNode, comp: NamedComponent) -> JsonDict:
    return {
        "scale": tree.lookup(node, NameKind.SCALE, comp.get("scale")),
        "orient": comp.get("orient"),
        **comp.explicit,
    }


def _assemble_legend(tree: SpecTree, node: SpecNode, comp: NamedComponent, channel: Any) -> JsonDict:
    return {LEGEND_TARGETS[channel]: tree.lookup(node, NameKind.SCALE, comp.get("scale")), **comp.explicit}


def _group(tree: SpecTree, node: SpecNode, marks: list[JsonDict]) -> JsonDict:
    group: JsonDict = {"type": "group", "name": node.get_name("group")}
    if all(tree.has_live_size(node, dim) for dim in SIZE_DIMENSIONS):
        group["encode"] = {
            "update": {dim: {"signal": tree.size_signal(node, dim)} for dim in SIZE_DIMENSIONS}
        }
    group["marks"] = marks
    return group


def assemble_marks(tree: SpecTree, data: DataComponent, node: SpecNode) -> list[JsonDict]:
    """Marks of ``node``: layers flatten, concat children become groups, facets one group."""
    if node.kind is NodeKind.UNIT:
        return [assemble_unit_mark(tree, data, node)]
    children = tree.children(node)
    if node.kind is NodeKind.LAYER:
        return [mark for child in children for mark in assemble_marks(tree, data, child)]
    if node.kind is NodeKind.CONCAT:
        return [_group(tree, child, assemble_marks(tree, data, child)) for child in children]

    cell: JsonDict = {"type": "group", "name": node.get_name("cell")}
    main = node.get_name("main")
    if data.backs(main):
        cell["from"] = {
            "facet": {
                "name": node.get_name("facet"),
                "data": data.lookup(main),
                "groupby": node.spec.facet.fields(),
            }
        }
    cell["marks"] = [mark for child in children for mark in assemble_marks(tree, data, child)]
    return [cell]


def assemble(tree: SpecTree, data: DataComponent) -> JsonDict:
    """
    Assemble phase: walk the resolved tree top-down and emit the output specification.

    Raises:
        FitSourceMissingError: From any fit projection with no backing source.
    """
    projections: list[JsonDict] = []
    scales: list[JsonDict] = []
    axes: list[JsonDict] = []
    legends: list[JsonDict] = []
    for node in tree.pre_order():
        for _, comp in node.live_components(PropertyFamily.SCALE):
            scales.append(_assemble_scale(tree, node, comp))
        for _, comp in node.live_components(PropertyFamily.AXIS):
            axes.append(_assemble_axis(tree, node, comp))
        for channel, comp in node.live_components(PropertyFamily.LEGEND):
            legends.append(_assemble_legend(tree, node, comp, channel))
        for _, comp in node.live_components(PropertyFamily.PROJECTION):
            projections.append(assemble_projection(tree, data, node, comp))

    marks = assemble_marks(tree, data, tree.root)
    signals = assemble_signals(tree)
    datasets = data.assemble()

    out: JsonDict = {"$schema": tree.settings.schema_url}
    if signals:
        out["signals"] = signals
    out["data"] = datasets
    out["projections"] = projections
    for key, group in (("scales", scales), ("axes", axes), ("legends", legends)):
        if group:
            out[key] = group
    out["marks"] = marks
    logger.debug(
        "assembled %d datasets, %d projections, %d marks", len(datasets), len(projections), len(marks)
    )
    return out
