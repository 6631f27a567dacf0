"""
Spec Tree: the index-addressed composition hierarchy a compile runs over.

Each node is a tagged SpecNode (unit, layer, facet, concat) holding its children as indices
into ``SpecTree.nodes``; a child's parent is a lookup by index. Nodes own their Name Scope
and their components; nothing is shared between nodes except through ``NameScope.rename``.

Responsibilities
- Build the tree from a validated TopLevelSpec, deriving path-based node names.
- Resolve inherited data (nearest ancestor with ``data``).
- Seed the per-node size signals and answer default view sizes.
- Resolve names as seen from a node (``lookup``), following renames up the ancestor chain.

Notes
- Child-spec extraction and child naming are dispatched through a table keyed on NodeKind.
- Walks are in declaration order; ``post_order`` visits every child before its parent.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from chartc.config import CompileSettings
from chartc.core.grammar import Channel, NameKind, NodeKind, PropertyFamily, var_name
from chartc.core.schema import Config, DataSpec, TopLevelSpec
from chartc.core.typing import ComponentKey, SignalRef

from .component import NamedComponent
from .names import NameScope

__all__ = ["SpecNode", "SpecTree"]

SIZE_DIMENSIONS: tuple[str, str] = ("width", "height")

# Node kinds whose size is a signal of their own (before layout renames).
SIZED_KINDS: frozenset[NodeKind] = frozenset({NodeKind.UNIT, NodeKind.LAYER})


@dataclass
class SpecNode:
    """
    One node of the Spec Tree.

    Attributes:
        index (int): Position in ``SpecTree.nodes``.
        kind (NodeKind): Variant tag.
        name (str): Path-derived (or user-given) name; ``""`` for an unnamed root.
        parent (int | None): Parent index.
        spec (Any): The validated view model for this node.
        data (DataSpec | None): Own or inherited data.
        children (list[int]): Child indices in declaration order.
        scope (NameScope): This node's name maps.
        components (dict): Components keyed by ``(family, channel)``.
    """

    index: int
    kind: NodeKind
    name: str
    parent: int | None
    spec: Any
    data: DataSpec | None = None
    children: list[int] = field(default_factory=list)
    scope: NameScope = field(default_factory=NameScope)
    components: dict[ComponentKey, NamedComponent] = field(default_factory=dict)

    def get_name(self, text: str) -> str:
        return var_name(f"{self.name}_{text}" if self.name else text)

    def component(
        self, family: PropertyFamily, channel: Channel | None = None
    ) -> NamedComponent | None:
        return self.components.get((family, channel))

    def live_components(self, family: PropertyFamily) -> list[tuple[Channel | None, NamedComponent]]:
        return [
            (channel, comp)
            for (fam, channel), comp in self.components.items()
            if fam is family and not comp.merged
        ]

    @property
    def is_root(self) -> bool:
        return self.parent is None


def _child_specs_unit(spec: Any) -> list[Any]:
    return []


def _child_specs_layer(spec: Any) -> list[Any]:
    return list(spec.layer)


def _child_specs_facet(spec: Any) -> list[Any]:
    return [spec.spec]


def _child_specs_concat(spec: Any) -> list[Any]:
    return list(spec.concat)


# kind -> (child spec extractor, child suffix for position i)
_CHILDREN: dict[NodeKind, tuple[Callable[[Any], list[Any]], Callable[[int], str]]] = {
    NodeKind.UNIT: (_child_specs_unit, lambda i: ""),
    NodeKind.LAYER: (_child_specs_layer, lambda i: f"layer_{i}"),
    NodeKind.FACET: (_child_specs_facet, lambda i: "child"),
    NodeKind.CONCAT: (_child_specs_concat, lambda i: f"concat_{i}"),
}


class SpecTree:
    """
    Index-addressed tree of SpecNodes plus the compile-wide config and settings.

    Examples:
        >>> from chartc.core.schema import parse_spec
        >>> from chartc.compile.tree import SpecTree
        >>> top = parse_spec({"layer": [{"mark": "geoshape"}, {"mark": "geoshape"}]})
        >>> tree = SpecTree.build(top)
        >>> [n.name for n in tree.pre_order()]
        ['', 'layer_0', 'layer_1']
        >>> tree.nodes[1].get_name("projection")
        'layer_0_projection'
    """

    def __init__(self, config: Config, settings: CompileSettings) -> None:
        self.nodes: list[SpecNode] = []
        self.config = config
        self.settings = settings

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(cls, top: TopLevelSpec, settings: CompileSettings | None = None) -> SpecTree:
        tree = cls(top.config, settings or CompileSettings())
        tree._add(top.view, name=top.view.name or "", parent=None, inherited=None)
        return tree

    def _add(
        self, spec: Any, *, name: str, parent: int | None, inherited: DataSpec | None
    ) -> SpecNode:
        node = SpecNode(
            index=len(self.nodes),
            kind=spec.kind,
            name=name,
            parent=parent,
            spec=spec,
            data=spec.data or inherited,
        )
        self.nodes.append(node)
        if node.kind in SIZED_KINDS:
            for dim in SIZE_DIMENSIONS:
                node.scope.seed(NameKind.SIGNAL, node.get_name(dim))

        extract, suffix = _CHILDREN[node.kind]
        for i, child_spec in enumerate(extract(spec)):
            derived = f"{name}_{suffix(i)}" if name else suffix(i)
            child = self._add(
                child_spec,
                name=child_spec.name or derived,
                parent=node.index,
                inherited=node.data,
            )
            node.children.append(child.index)
        return node

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def root(self) -> SpecNode:
        return self.nodes[0]

    def parent(self, node: SpecNode) -> SpecNode | None:
        return None if node.parent is None else self.nodes[node.parent]

    def children(self, node: SpecNode) -> list[SpecNode]:
        return [self.nodes[i] for i in node.children]

    def ancestors(self, node: SpecNode) -> Iterator[SpecNode]:
        """Yield the node itself, then each ancestor up to the root."""
        current: SpecNode | None = node
        while current is not None:
            yield current
            current = self.parent(current)

    def pre_order(self, node: SpecNode | None = None) -> Iterator[SpecNode]:
        node = self.root if node is None else node
        yield node
        for child in self.children(node):
            yield from self.pre_order(child)

    def post_order(self, node: SpecNode | None = None) -> Iterator[SpecNode]:
        node = self.root if node is None else node
        for child in self.children(node):
            yield from self.post_order(child)
        yield node

    # ------------------------------------------------------------------
    # Names and sizes
    # ------------------------------------------------------------------

    def lookup(self, node: SpecNode, kind: NameKind, name: str) -> str:
        """
        Resolve a logical name as seen from ``node``.

        Each scope from the node up to the root maps the current name if it has an entry for
        it; unseeded names pass through unchanged, so a never-renamed name resolves to itself.
        """
        current = name
        for scope_owner in self.ancestors(node):
            mapped = scope_owner.scope.get(kind, current)
            if mapped is not None:
                current = mapped
        return current

    def size_signal(self, node: SpecNode, dim: str) -> str:
        return self.lookup(node, NameKind.SIGNAL, node.get_name(dim))

    def size_signal_ref(self, node: SpecNode, dim: str) -> SignalRef:
        return {"signal": self.size_signal(node, dim)}

    def has_live_size(self, node: SpecNode, dim: str) -> bool:
        own = node.get_name(dim)
        return node.kind in SIZED_KINDS and self.size_signal(node, dim) == own

    def _explicit_size(self, node: SpecNode, dim: str) -> float | None:
        value = getattr(node.spec, dim)
        if value is not None:
            return value
        if node.kind is NodeKind.LAYER:
            for child in self.children(node):
                if child.kind in SIZED_KINDS:
                    value = self._explicit_size(child, dim)
                    if value is not None:
                        return value
        return None

    def default_size(self, node: SpecNode, dim: str) -> float:
        value = self._explicit_size(node, dim)
        if value is not None:
            return value
        configured = getattr(self.config.view, f"continuous_{dim}")
        if configured is not None:
            return configured
        return getattr(self.settings, f"continuous_{dim}")
