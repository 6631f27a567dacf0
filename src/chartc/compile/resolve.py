"""
Resolution & Merge Engine.

A post-order walk builds each unit's components, then lets every composite node try to
promote its children's components of each family (projection, scale, axis, legend) into one
shared component of its own.

Responsibilities
- Unit parsing: config defaults under explicit properties, default types, fit decision,
  size descriptor and fit-data gathering for projections.
- Composite reduction: fold the children's components with ``merge_if_no_conflict`` in
  declaration order; any conflict abandons the whole family at that node.
- Promotion: a new component at the composite, with the representative's specified
  properties and size and the order-preserving concatenation of the children's fit data.
  Each child's name is renamed in its scope before the child component is tombstoned.
- Layout sizes: layers share one size descriptor with their direct children.

Notes
- Merge conflicts are ordinary control flow; nothing here raises for them.
- Fit is all-or-nothing: an explicit ``scale`` or ``translate`` anywhere in the explicit
  property bag disables it.
- Per composite node the order is scales, then axes and legends (which require a live
  scale at that node), then the projection.

References
- chartc.compile.assemble for the read-only consumer of the state built here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from chartc.core.constants import (
    AXIS_PROPERTIES,
    DEFAULT_AXIS_ORIENT,
    DEFAULT_SCALE_TYPES,
    LEGEND_PROPERTIES,
    PROJECTION_PROPERTIES,
    SCALE_PROPERTIES,
)
from chartc.core.grammar import (
    AXIS_CHANNELS,
    LEGEND_CHANNELS,
    SCALE_CHANNELS,
    Channel,
    MeasureType,
    NameKind,
    NodeKind,
    PropertyFamily,
    ResolveMode,
)
from chartc.core.typing import FitSource

from .component import NamedComponent
from .dataflow import geometry_roles
from .tree import SIZE_DIMENSIONS, SIZED_KINDS, SpecNode, SpecTree

__all__ = [
    "Family",
    "FAMILIES",
    "merge_if_no_conflict",
    "reduce_components",
    "gather_fit_data",
    "parse_layout_size",
    "resolve",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Family:
    """
    How one property family is resolved.

    Attributes:
        kind (PropertyFamily): The family.
        properties (tuple[str, ...]): Properties compared when merging.
        name_kind (NameKind | None): Name map renamed on promotion; None for families that
            are only tombstoned.
        channels (tuple): Channels the family has components for; ``(None,)`` for projection.
        suffix (Callable): Logical name suffix for a channel.
    """

    kind: PropertyFamily
    properties: tuple[str, ...]
    name_kind: NameKind | None
    channels: tuple[Channel | None, ...]
    suffix: Callable[[Channel | None], str]

    def component_name(self, node: SpecNode, channel: Channel | None) -> str:
        return node.get_name(self.suffix(channel))


SCALE = Family(
    PropertyFamily.SCALE, SCALE_PROPERTIES, NameKind.SCALE, SCALE_CHANNELS, lambda c: c.value
)
AXIS = Family(
    PropertyFamily.AXIS, AXIS_PROPERTIES, None, AXIS_CHANNELS, lambda c: f"{c.value}_axis"
)
LEGEND = Family(
    PropertyFamily.LEGEND, LEGEND_PROPERTIES, None, LEGEND_CHANNELS, lambda c: f"{c.value}_legend"
)
PROJECTION = Family(
    PropertyFamily.PROJECTION, PROJECTION_PROPERTIES, NameKind.PROJECTION, (None,), lambda c: "projection"
)

# Composite resolution order.
FAMILIES: tuple[Family, ...] = (SCALE, AXIS, LEGEND, PROJECTION)

# Scale resolve mode when the composite's resolve mixin is silent.
DEFAULT_RESOLVE: dict[NodeKind, ResolveMode] = {
    NodeKind.LAYER: ResolveMode.SHARED,
    NodeKind.FACET: ResolveMode.SHARED,
    NodeKind.CONCAT: ResolveMode.INDEPENDENT,
}


# ============================================================================
# Merge
# ============================================================================


def merge_if_no_conflict(
    a: NamedComponent, b: NamedComponent, properties: Sequence[str]
) -> NamedComponent | None:
    """
    Merge two sibling components, or return None on conflict.

    Sizes must be equal. The merge then succeeds when every property in ``properties`` is
    explicit on neither side or explicit on both with equal values, giving ``a``. Failing
    that, a side with no explicit properties at all yields to the other one.

    Examples:
        >>> from chartc.compile.component import NamedComponent
        >>> a = NamedComponent("a")
        >>> b = NamedComponent("b", {"type": "mercator"})
        >>> merge_if_no_conflict(a, b, ["type"]).name
        'b'
        >>> merge_if_no_conflict(b, NamedComponent("c", {"type": "albers"}), ["type"]) is None
        True
    """
    if a.size != b.size:
        return None
    shared = all(
        (prop in a.explicit) == (prop in b.explicit)
        and a.explicit.get(prop) == b.explicit.get(prop)
        for prop in properties
    )
    if shared:
        return a
    if not a.explicit:
        return b
    if not b.explicit:
        return a
    return None


def reduce_components(
    components: Sequence[NamedComponent | None], properties: Sequence[str]
) -> tuple[bool, NamedComponent | None]:
    """
    Fold children's components in order.

    Returns:
        tuple[bool, NamedComponent | None]: ``(False, None)`` on the first conflict, else
        ``(True, representative)``; the representative is None when no child had one.
    """
    acc: NamedComponent | None = None
    for comp in components:
        if comp is None:
            continue
        if acc is None:
            acc = comp
            continue
        merged = merge_if_no_conflict(acc, comp, properties)
        if merged is None:
            return False, None
        acc = merged
    return True, acc


# ============================================================================
# Unit components
# ============================================================================


def _explicit(tree: SpecTree, family: PropertyFamily, given: Any) -> dict[str, Any]:
    explicit = tree.config.family_defaults(family)
    if isinstance(given, dict):
        explicit.update(given)
    return explicit


def gather_fit_data(node: SpecNode, data: Any) -> list[FitSource]:
    """
    Fit sources of a unit: one ``geojson_N`` signal per geometry role, or, when the unit has
    no geometry at all, its main dataset.
    """
    sources: list[FitSource] = [
        {"signal": node.get_name(f"geojson_{i}")} for i, _ in enumerate(geometry_roles(node.spec))
    ]
    if not sources:
        sources.append(data.request_data_name(node))
    return sources


def _parse_unit_projection(tree: SpecTree, data: Any, node: SpecNode) -> None:
    spec = node.spec
    if spec.projection is None and not spec.has_projection:
        return
    explicit = _explicit(tree, PropertyFamily.PROJECTION, spec.projection)
    fit = "scale" not in explicit and "translate" not in explicit
    name = PROJECTION.component_name(node, None)
    comp = NamedComponent(
        name,
        explicit,
        size=[tree.size_signal_ref(node, dim) for dim in SIZE_DIMENSIONS] if fit else None,
        data=gather_fit_data(node, data) if fit else None,
    )
    comp.set("type", tree.settings.default_projection_type, explicit=False)
    node.components[(PropertyFamily.PROJECTION, None)] = comp
    node.scope.seed(NameKind.PROJECTION, name)


def _parse_unit_scales(tree: SpecTree, node: SpecNode) -> None:
    for channel in SCALE_CHANNELS:
        d = node.spec.channel_def(channel)
        if d is None or not d.is_field_or_datum() or d.type == MeasureType.GEOJSON.value:
            continue
        name = SCALE.component_name(node, channel)
        comp = NamedComponent(name, _explicit(tree, PropertyFamily.SCALE, d.scale))
        positional = channel in (Channel.X, Channel.Y)
        if d.type is not None:
            comp.set("type", DEFAULT_SCALE_TYPES[(d.type, positional)], explicit=False)
        if positional:
            comp.set("range", "width" if channel is Channel.X else "height", explicit=False)
        node.components[(PropertyFamily.SCALE, channel)] = comp
        node.scope.seed(NameKind.SCALE, name)


def _parse_unit_guides(tree: SpecTree, node: SpecNode) -> None:
    for family, guide, channels in (
        (AXIS, "axis", AXIS_CHANNELS),
        (LEGEND, "legend", LEGEND_CHANNELS),
    ):
        for channel in channels:
            d = node.spec.channel_def(channel)
            scale = node.component(PropertyFamily.SCALE, channel)
            if d is None or scale is None or d.disables(guide):
                continue
            if family is LEGEND and not d.has_field():
                continue
            comp = NamedComponent(
                family.component_name(node, channel),
                _explicit(tree, family.kind, getattr(d, guide)),
                implicit={"scale": scale.name},
            )
            if family is AXIS:
                comp.set("orient", DEFAULT_AXIS_ORIENT[channel.value], explicit=False)
            node.components[(family.kind, channel)] = comp


def parse_unit(tree: SpecTree, data: Any, node: SpecNode) -> None:
    _parse_unit_scales(tree, node)
    _parse_unit_guides(tree, node)
    _parse_unit_projection(tree, data, node)


# ============================================================================
# Composite components
# ============================================================================


def _resolve_mode(node: SpecNode, family: PropertyFamily, channel: Channel) -> ResolveMode:
    mode = node.spec.resolve.mode(family, channel)
    if mode is None:
        mode = node.spec.resolve.mode(PropertyFamily.SCALE, channel)
    return mode or DEFAULT_RESOLVE[node.kind]


def _may_merge(node: SpecNode, family: Family, channel: Channel | None) -> bool:
    if family is PROJECTION or channel is None:
        return True
    if _resolve_mode(node, family.kind, channel) is not ResolveMode.SHARED:
        return False
    if family is SCALE:
        return True
    scale = node.component(PropertyFamily.SCALE, channel)
    return scale is not None and not scale.merged


def _promote(
    node: SpecNode,
    family: Family,
    channel: Channel | None,
    rep: NamedComponent,
    children: list[tuple[SpecNode, NamedComponent]],
) -> NamedComponent:
    name = family.component_name(node, channel)
    fit_lists = [comp.data for _, comp in children if comp.data is not None]
    promoted = NamedComponent(
        name,
        rep.specified,
        implicit={k: v for k, v in rep.implicit.items() if k != "name"},
        size=rep.size,
        data=[source for sources in fit_lists for source in sources] if fit_lists else None,
    )
    if family in (AXIS, LEGEND):
        # Guides at a composite reference the composite's own scale.
        promoted.set("scale", node.component(PropertyFamily.SCALE, channel).name, explicit=False)  # type: ignore[union-attr]
    for child, comp in children:
        if family.name_kind is not None:
            child.scope.rename(family.name_kind, comp.name, name)
        comp.merged = True
    if family.name_kind is not None:
        node.scope.seed(family.name_kind, name)
    node.components[(family.kind, channel)] = promoted
    return promoted


def parse_composite(tree: SpecTree, data: Any, node: SpecNode) -> None:
    kids = tree.children(node)
    for family in FAMILIES:
        for channel in family.channels:
            if not _may_merge(node, family, channel):
                continue
            present: list[tuple[SpecNode, NamedComponent]] = []
            for child in kids:
                comp = child.component(family.kind, channel)
                if comp is not None and not comp.merged:
                    present.append((child, comp))
            if not present:
                continue
            ok, rep = reduce_components([comp for _, comp in present], family.properties)
            if not ok or rep is None:
                logger.debug(
                    "%s %s: children conflict at %r; kept independent",
                    family.kind.value,
                    channel.value if channel else "",
                    node.name,
                )
                continue
            promoted = _promote(node, family, channel, rep, present)
            logger.debug(
                "%s promoted to %r from %d children", family.kind.value, promoted.name, len(present)
            )


# ============================================================================
# Walk
# ============================================================================


def parse_layout_size(tree: SpecTree) -> None:
    """Rename each layer's sized children's width/height signals to the layer's own."""
    for node in tree.pre_order():
        if node.kind is not NodeKind.LAYER:
            continue
        for child in tree.children(node):
            if child.kind not in SIZED_KINDS:
                continue
            for dim in SIZE_DIMENSIONS:
                child.scope.rename(NameKind.SIGNAL, child.get_name(dim), node.get_name(dim))


_PARSERS: dict[NodeKind, Callable[[SpecTree, Any, SpecNode], None]] = {
    NodeKind.UNIT: parse_unit,
    NodeKind.LAYER: parse_composite,
    NodeKind.FACET: parse_composite,
    NodeKind.CONCAT: parse_composite,
}


def resolve(tree: SpecTree, data: Any) -> None:
    """
    Resolve phase: layout sizes, then every node's components in post-order.

    Args:
        tree (SpecTree): Tree to resolve in place.
        data: The compile's DataComponent (fit sources request output names from it).
    """
    parse_layout_size(tree)
    for node in tree.post_order():
        _PARSERS[node.kind](tree, data, node)
    logger.debug("resolved %d nodes", len(tree.nodes))
