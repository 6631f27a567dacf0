"""
Name scopes: per-node maps from logical names to their current assigned names.

Each Spec Tree node owns one NameScope with three independent maps (signals, scales,
projections). Entries are seeded with identity mappings when the name is created; the
merge engine rewrites an entry with ``rename`` when it promotes the named thing to a parent.

Notes:
    - ``rename`` only rewrites a seeded entry; renaming an unknown name is a no-op.
    - Renames are local to a node. Resolving a name as seen from a node walks the node's
      ancestors (see SpecTree.lookup), so a chain of promotions resolves to the final name.
"""

from __future__ import annotations

from chartc.core.grammar import NameKind

__all__ = ["NameMap", "NameScope"]


class NameMap:
    """
    Logical-to-assigned name map.

    Examples:
        >>> from chartc.compile.names import NameMap
        >>> m = NameMap()
        >>> m.seed("layer_0_projection")
        >>> m.rename("layer_0_projection", "projection")
        >>> m.rename("layer_0_projection", "projection")
        >>> m.get("layer_0_projection")
        'projection'
        >>> m.rename("unknown", "x")
        >>> m.get("unknown") is None
        True
    """

    def __init__(self) -> None:
        self._map: dict[str, str] = {}

    def seed(self, name: str) -> None:
        self._map.setdefault(name, name)

    def has(self, name: str) -> bool:
        return name in self._map

    def get(self, name: str) -> str | None:
        return self._map.get(name)

    def rename(self, old: str, new: str) -> None:
        if old in self._map:
            self._map[old] = new

    def __len__(self) -> int:
        return len(self._map)


class NameScope:
    """The three name maps owned by a single node."""

    def __init__(self) -> None:
        self._maps: dict[NameKind, NameMap] = {kind: NameMap() for kind in NameKind}

    def __getitem__(self, kind: NameKind) -> NameMap:
        return self._maps[kind]

    def seed(self, kind: NameKind, name: str) -> None:
        self._maps[kind].seed(name)

    def has(self, kind: NameKind, name: str) -> bool:
        return self._maps[kind].has(name)

    def get(self, kind: NameKind, name: str) -> str | None:
        return self._maps[kind].get(name)

    def rename(self, kind: NameKind, old: str, new: str) -> None:
        self._maps[kind].rename(old, new)
