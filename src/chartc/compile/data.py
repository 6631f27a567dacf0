"""
Per-compile data component: source datasets, view outputs, dedup and lookup.

Responsibilities
- Turn each distinct data spec into one root dataset (``source_{i}``; named datasets keep
  their name).
- Build each view's transform pipeline and register its output (``parse_data``).
- Link outputs to concrete datasets: an output with no transforms maps onto its source;
  outputs whose transform chains fingerprint equally share one derived dataset.
- Answer ``lookup(name)`` for sibling assemblers and count every consultation; only
  referenced datasets are assembled.

Notes
- ``request_data_name`` may be called before any pipeline exists (fit sources are gathered
  during resolution); whether a name is backed is only known after ``link``.
- Unknown names pass through ``lookup`` unchanged.
- Geometry signals count as produced only once a registered pipeline extracts them.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping
from typing import Any

from chartc.core.errors import UpstreamReferenceError
from chartc.core.grammar import DataSourceType, NameKind, NodeKind, PropertyFamily
from chartc.core.hashing import hash_value
from chartc.core.schema import DataSpec
from chartc.core.typing import JsonDict

from .dataflow import DataFlowNode, GeoJSONNode, GeoPointNode, OutputNode, SourceNode

__all__ = ["DataComponent", "parse_data"]

logger = logging.getLogger(__name__)


class DataComponent:
    """
    Datasets of one compile.

    Args:
        datasets (Mapping[str, list[dict]]): Top-level named inline datasets.
        strict_datasets (bool): Raise UpstreamReferenceError for a named reference that is
            not declared in ``datasets``.

    Attributes:
        ref_counts (Counter): Consultations per concrete dataset name.
    """

    def __init__(
        self, datasets: Mapping[str, list[dict[str, Any]]] | None = None, strict_datasets: bool = False
    ) -> None:
        self.datasets = dict(datasets or {})
        self.strict_datasets = strict_datasets
        self.ref_counts: Counter[str] = Counter()
        self.sources: dict[str, SourceNode] = {}
        self.outputs: dict[str, OutputNode] = {}
        self._source_count = 0
        self._resolved: dict[str, str] = {}
        self._derived: dict[str, OutputNode] = {}
        self._signals: set[str] = set()

    # ------------------------------------------------------------------
    # Sources and outputs
    # ------------------------------------------------------------------

    def source_for(self, spec: DataSpec) -> SourceNode:
        """Return the root node for a data spec, creating it on first use."""
        dumped = spec.model_dump(mode="json")
        if spec.name is not None:
            key = f"name:{spec.name}"
        else:
            key = hash_value(dumped)
        if key in self.sources:
            return self.sources[key]

        if spec.name is not None:
            if spec.name in self.datasets:
                dataset: JsonDict = {"name": spec.name, "values": self.datasets[spec.name]}
            elif self.strict_datasets:
                raise UpstreamReferenceError(f"dataset {spec.name!r} is not declared in datasets")
            else:
                dataset = {"name": spec.name}
            source = SourceNode(spec.name, dataset)
        else:
            name = f"source_{self._source_count}"
            self._source_count += 1
            dataset = {"name": name}
            if spec.values is not None:
                dataset["values"] = dumped["values"]
            else:
                dataset["url"] = dumped["url"]
                if spec.format:
                    dataset["format"] = dumped["format"]
            source = SourceNode(name, dataset)

        self.sources[key] = source
        return source

    def request_data_name(self, node: Any, kind: DataSourceType = DataSourceType.MAIN) -> str:
        """Output name of ``node`` for ``kind``; counts one reference to it."""
        name = node.get_name(kind.value)
        self.ref_counts[name] += 1
        return name

    def register_output(self, name: str, tail: DataFlowNode) -> OutputNode:
        output = OutputNode(tail, name)
        for node in output.chain():
            if isinstance(node, GeoJSONNode):
                self._signals.add(node.signal)
        self.outputs[name] = output
        return output

    # ------------------------------------------------------------------
    # Linking and lookup
    # ------------------------------------------------------------------

    def link(self) -> None:
        """Map every registered output onto its concrete dataset."""
        by_chain: dict[str, str] = {}
        for name, output in self.outputs.items():
            source = output.source()
            transforms = output.transforms()
            if source is None:
                continue
            if not transforms:
                self._resolved[name] = source.name
                continue
            key = hash_value([source.name, [t.hash() for t in transforms]])
            if key in by_chain:
                self._resolved[name] = by_chain[key]
                logger.debug("dataset %s deduplicated onto %s", name, by_chain[key])
                continue
            by_chain[key] = name
            self._resolved[name] = name
            self._derived[name] = output

    def lookup(self, name: str) -> str:
        """Concrete dataset backing an output name (unchanged if unknown); counts a reference."""
        concrete = self._resolved.get(name, name)
        self.ref_counts[concrete] += 1
        return concrete

    def backs(self, name: str) -> bool:
        return name in self._resolved

    def produces(self, signal: str) -> bool:
        """Whether a registered pipeline extracts the geometry signal ``signal``."""
        return signal in self._signals

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def assemble(self) -> list[JsonDict]:
        """Referenced root datasets, then referenced derived datasets."""
        derived = [
            output for name, output in self._derived.items() if self.ref_counts[name] > 0
        ]
        needed = {o.source().name for o in derived}  # type: ignore[union-attr]
        out: list[JsonDict] = [
            dict(source.dataset)
            for source in self.sources.values()
            if self.ref_counts[source.name] > 0 or source.name in needed
        ]
        for output in derived:
            transforms: list[JsonDict] = []
            for node in output.transforms():
                transforms.extend(node.assemble())
            out.append(
                {
                    "name": output.name,
                    "source": output.source().name,  # type: ignore[union-attr]
                    "transform": transforms,
                }
            )
        return out


def parse_data(tree: Any, data: DataComponent) -> None:
    """
    Build every view's pipeline and register its main output.

    Units get geometry extraction when their projection is fit, and point projection for
    each present coordinate pair. Composite nodes with their own data get an output straight
    onto the source.
    """
    for node in tree.pre_order():
        if node.data is None:
            continue
        if node.kind is not NodeKind.UNIT:
            if node.spec.data is not None or node.kind is NodeKind.FACET:
                data.register_output(node.get_name(DataSourceType.MAIN.value), data.source_for(node.data))
            continue

        tail: DataFlowNode = data.source_for(node.data)
        projection = node.component(PropertyFamily.PROJECTION)
        if projection is not None:
            if projection.is_fit:
                tail = GeoJSONNode.parse_all(tail, node.spec, node.get_name)
            tail = GeoPointNode.parse_all(
                tail,
                node.spec,
                projection.name,
                node.get_name,
                lambda name, n=node: tree.lookup(n, NameKind.PROJECTION, name),
            )
        data.register_output(node.get_name(DataSourceType.MAIN.value), tail)
    logger.debug("registered %d outputs over %d sources", len(data.outputs), len(data.sources))
