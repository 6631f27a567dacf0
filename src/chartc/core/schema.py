"""
Pydantic v2 models for the normalized chart spec that chartc compiles.

The spec-normalization front end (shorthand expansion, theme defaults) runs before chartc;
these models accept its output: every channel is a concrete field/datum/value definition
or absent, marks may be a bare type string or a mark definition, and composite views carry
only their children plus resolve/data mixins.

Responsibilities
- Define the view variants (unit, layer, facet, concat) and their pydantic discriminator.
- Answer per-channel questions: does a channel carry a field, a constant, a signal?
- Accept polars DataFrames wherever inline rows are expected (``values``, ``datasets``).
- Split a top-level mapping into its view, ``datasets`` and ``config`` parts.

Style
- Zero-IO (stdlib, pydantic, polars only).
- Validators raise SpecError for grammar violations; pydantic wraps them in
  ``pydantic.ValidationError``.

Examples
--------
>>> from chartc.core.schema import parse_spec, UnitSpec
>>> top = parse_spec({
...     "mark": "geoshape",
...     "data": {"url": "world.json"},
...     "encoding": {"color": {"field": "pop", "type": "quantitative"}},
... })
>>> isinstance(top.view, UnitSpec)
True
>>> top.view.mark.type
'geoshape'
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Annotated, Any, ClassVar, Literal, Union

import polars as pl
from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    field_validator,
    model_validator,
)

from .errors import SpecError
from .grammar import (
    Channel,
    MeasureType,
    NodeKind,
    PropertyFamily,
    ResolveMode,
    channel_from_value,
)
from .typing import JsonDict

__all__ = [
    "ChannelDef",
    "MarkDef",
    "DataSpec",
    "ResolveSpec",
    "UnitSpec",
    "LayerSpec",
    "FacetMapping",
    "FacetSpec",
    "ConcatSpec",
    "ViewSpec",
    "ViewConfig",
    "Config",
    "TopLevelSpec",
    "parse_spec",
]

_MEASURE_TYPES = {m.value for m in MeasureType}


def _rows(value: Any) -> Any:
    # polars frames become row dicts; everything else is left for pydantic to check.
    if isinstance(value, pl.DataFrame):
        return value.to_dicts()
    return value


def _expr_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


# ============================================================================
# Channels and marks
# ============================================================================


class ChannelDef(BaseModel):
    """
    A single channel definition: a field reference, a datum, a constant value, or absent.

    Attributes:
        field (str | None): Data field name.
        datum (Any): Constant in data space (may be a ``{"signal"|"expr": ...}`` reference).
        value (Any): Constant in visual space (may be a ``{"signal"|"expr": ...}`` reference).
        type (str | None): Measurement type (quantitative, temporal, ordinal, nominal, geojson).
        scale (dict | None): Explicit scale properties for this channel.
        axis (dict | False | None): Explicit axis properties; ``False`` disables the axis.
        legend (dict | False | None): Explicit legend properties; ``False`` disables the legend.

    Raises:
        pydantic.ValidationError: If more than one of field/datum/value is given, or the
        type is not a known measurement type.
    """

    model_config = ConfigDict(extra="allow")

    field: str | None = None
    datum: Any = None
    value: Any = None
    type: str | None = None
    scale: dict[str, Any] | None = None
    axis: dict[str, Any] | Literal[False] | None = None
    legend: dict[str, Any] | Literal[False] | None = None

    @field_validator("type")
    @classmethod
    def _check_type(cls, v: str | None) -> str | None:
        if v is None:
            return v
        lo = v.strip().lower()
        if lo not in _MEASURE_TYPES:
            raise SpecError(f"unknown measurement type: {v!r}")
        return lo

    @model_validator(mode="after")
    def _one_definition(self) -> ChannelDef:
        given = [k for k in ("field", "datum", "value") if k in self.model_fields_set]
        if len(given) > 1:
            raise SpecError(f"channel definition mixes {', '.join(given)}")
        return self

    def has_field(self) -> bool:
        return self.field is not None

    def has_datum(self) -> bool:
        return "datum" in self.model_fields_set

    def has_value(self) -> bool:
        return "value" in self.model_fields_set

    def is_signal(self) -> bool:
        """True when the datum or value is a signal/expression reference."""
        ref = self.datum if self.has_datum() else self.value if self.has_value() else None
        return isinstance(ref, dict) and ("signal" in ref or "expr" in ref)

    def has_constant(self) -> bool:
        return (self.has_datum() or self.has_value()) and not self.is_signal()

    def is_field_or_datum(self) -> bool:
        return self.has_field() or self.has_datum()

    def disables(self, guide: Literal["axis", "legend"]) -> bool:
        """True when the axis/legend was set to ``false`` or ``null`` explicitly."""
        spec = getattr(self, guide)
        return spec is False or (spec is None and guide in self.model_fields_set)

    def as_coordinate(self) -> str | JsonDict | None:
        """
        Express this channel as one side of a coordinate pair.

        Returns:
            str | dict | None: The field name; ``{"expr": ...}`` for a datum or value; or
            None when the channel carries neither.
        """
        if self.has_field():
            return self.field
        if not (self.has_datum() or self.has_value()):
            return None
        ref = self.datum if self.has_datum() else self.value
        if isinstance(ref, dict) and ("signal" in ref or "expr" in ref):
            return {"expr": ref.get("signal", ref.get("expr"))}
        return {"expr": _expr_text(ref)}


class MarkDef(BaseModel):
    """Mark definition; a bare mark string is normalized to ``{"type": ...}``."""

    model_config = ConfigDict(extra="allow")

    type: str

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"type": data}
        return data


EncodingValue = ChannelDef | list[ChannelDef]


# ============================================================================
# Data and resolve mixins
# ============================================================================


class DataSpec(BaseModel):
    """
    A data source reference.

    Exactly one of ``values`` (inline rows), ``url`` (with optional ``format``) or ``name``
    (a top-level ``datasets`` entry or a runtime-provided dataset). A polars DataFrame in
    place of the whole spec or of ``values`` is converted to inline rows.
    """

    model_config = ConfigDict(extra="forbid")

    values: list[dict[str, Any]] | None = None
    url: str | None = None
    format: dict[str, Any] | None = None
    name: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_frame(cls, data: Any) -> Any:
        if isinstance(data, pl.DataFrame):
            return {"values": data.to_dicts()}
        return data

    @field_validator("values", mode="before")
    @classmethod
    def _values_from_frame(cls, v: Any) -> Any:
        return _rows(v)

    @model_validator(mode="after")
    def _one_source(self) -> DataSpec:
        given = [k for k in ("values", "url", "name") if getattr(self, k) is not None]
        if len(given) != 1:
            raise SpecError(f"data must give exactly one of values, url, name (got {given})")
        return self


class ResolveSpec(BaseModel):
    """Resolve mixin: per-family, per-channel shared/independent choice."""

    model_config = ConfigDict(extra="forbid")

    scale: dict[Channel, ResolveMode] = Field(default_factory=dict)
    axis: dict[Channel, ResolveMode] = Field(default_factory=dict)
    legend: dict[Channel, ResolveMode] = Field(default_factory=dict)

    def mode(self, family: PropertyFamily, channel: Channel) -> ResolveMode | None:
        if family is PropertyFamily.PROJECTION:
            return None
        return getattr(self, family.value).get(channel)


# ============================================================================
# Views
# ============================================================================


class _ViewBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: ClassVar[NodeKind]

    name: str | None = None
    data: DataSpec | None = None
    width: float | None = None
    height: float | None = None

    @field_validator("width", "height", mode="before")
    @classmethod
    def _numeric_size(cls, v: Any) -> Any:
        # "container" and step sizes are handled by the layout collaborator.
        return v if isinstance(v, (int, float)) else None


class UnitSpec(_ViewBase):
    """
    Single view: one mark with its encoding and optional projection.

    Examples:
        >>> from chartc.core.schema import UnitSpec
        >>> from chartc.core.grammar import Channel
        >>> u = UnitSpec.model_validate({
        ...     "mark": "circle",
        ...     "encoding": {"longitude": {"field": "lon"}, "latitude": {"datum": 10}},
        ... })
        >>> u.channel_def(Channel.LATITUDE).as_coordinate()
        {'expr': '10'}
        >>> u.has_projection
        True
    """

    kind: ClassVar[NodeKind] = NodeKind.UNIT

    mark: MarkDef
    encoding: dict[Channel, EncodingValue] = Field(default_factory=dict)
    projection: dict[str, Any] | None = None

    @field_validator("encoding", mode="before")
    @classmethod
    def _channel_keys(cls, v: Any) -> Any:
        if not isinstance(v, Mapping):
            return v
        return {channel_from_value(k): d for k, d in v.items()}

    def channel_def(self, channel: Channel) -> ChannelDef | None:
        """Return the single definition for a channel, or None (absent or array-valued)."""
        d = self.encoding.get(channel)
        return d if isinstance(d, ChannelDef) else None

    @property
    def has_projection(self) -> bool:
        """A geoshape mark or any geo position channel with a field or datum needs one."""
        if self.mark.type == "geoshape":
            return True
        for lon, lat in (
            (Channel.LONGITUDE, Channel.LATITUDE),
            (Channel.LONGITUDE2, Channel.LATITUDE2),
        ):
            for ch in (lon, lat):
                d = self.channel_def(ch)
                if d is not None and d.is_field_or_datum():
                    return True
        return False


class LayerSpec(_ViewBase):
    kind: ClassVar[NodeKind] = NodeKind.LAYER

    layer: list[ViewSpec]
    resolve: ResolveSpec = Field(default_factory=ResolveSpec)


class FacetMapping(BaseModel):
    """Row/column facet fields; a bare field definition facets on ``facet``."""

    model_config = ConfigDict(extra="forbid")

    row: ChannelDef | None = None
    column: ChannelDef | None = None
    facet: ChannelDef | None = None

    @model_validator(mode="before")
    @classmethod
    def _wrap_field_def(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "field" in data:
            return {"facet": data}
        return data

    def fields(self) -> list[str]:
        return [
            d.field
            for d in (self.row, self.column, self.facet)
            if d is not None and d.field is not None
        ]


class FacetSpec(_ViewBase):
    kind: ClassVar[NodeKind] = NodeKind.FACET

    facet: FacetMapping
    spec: ViewSpec
    resolve: ResolveSpec = Field(default_factory=ResolveSpec)


class ConcatSpec(_ViewBase):
    """Concatenation; ``hconcat``/``vconcat`` normalize into ``concat`` plus a direction."""

    kind: ClassVar[NodeKind] = NodeKind.CONCAT

    concat: list[ViewSpec]
    direction: Literal["wrap", "horizontal", "vertical"] = "wrap"
    resolve: ResolveSpec = Field(default_factory=ResolveSpec)

    @model_validator(mode="before")
    @classmethod
    def _normalize_direction(cls, data: Any) -> Any:
        if not isinstance(data, Mapping) or "concat" in data:
            return data
        out = dict(data)
        if "hconcat" in out:
            out["concat"] = out.pop("hconcat")
            out["direction"] = "horizontal"
        elif "vconcat" in out:
            out["concat"] = out.pop("vconcat")
            out["direction"] = "vertical"
        return out


def _view_kind(v: Any) -> str | None:
    if isinstance(v, _ViewBase):
        return v.kind.value
    if not isinstance(v, Mapping):
        return None
    if "mark" in v:
        return NodeKind.UNIT.value
    if "layer" in v:
        return NodeKind.LAYER.value
    if "facet" in v:
        return NodeKind.FACET.value
    if any(k in v for k in ("concat", "hconcat", "vconcat")):
        return NodeKind.CONCAT.value
    return None


ViewSpec = Annotated[
    Union[
        Annotated[UnitSpec, Tag("unit")],
        Annotated[LayerSpec, Tag("layer")],
        Annotated[FacetSpec, Tag("facet")],
        Annotated[ConcatSpec, Tag("concat")],
    ],
    Discriminator(_view_kind),
]

LayerSpec.model_rebuild()
FacetSpec.model_rebuild()
ConcatSpec.model_rebuild()


# ============================================================================
# Config and top level
# ============================================================================


class ViewConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    continuous_width: float | None = Field(default=None, alias="continuousWidth")
    continuous_height: float | None = Field(default=None, alias="continuousHeight")


class Config(BaseModel):
    """
    Per-family property defaults applied beneath every view's explicit properties.

    Attributes:
        projection, scale, axis, legend (dict): Family defaults.
        view (ViewConfig): Default continuous view size.
    """

    model_config = ConfigDict(extra="ignore")

    projection: dict[str, Any] = Field(default_factory=dict)
    scale: dict[str, Any] = Field(default_factory=dict)
    axis: dict[str, Any] = Field(default_factory=dict)
    legend: dict[str, Any] = Field(default_factory=dict)
    view: ViewConfig = Field(default_factory=ViewConfig)

    def family_defaults(self, family: PropertyFamily) -> dict[str, Any]:
        return dict(getattr(self, family.value))


class TopLevelSpec(BaseModel):
    """
    A view spec plus its top-level ``datasets`` and ``config``.

    A plain top-level mapping (as written by authoring tools) is split automatically:
    ``datasets`` and ``config`` are lifted out, ``$schema`` is dropped, and the remainder
    becomes ``view``.
    """

    model_config = ConfigDict(extra="forbid")

    view: ViewSpec
    datasets: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    config: Config = Field(default_factory=Config)

    @model_validator(mode="before")
    @classmethod
    def _split_top_level(cls, data: Any) -> Any:
        if not isinstance(data, Mapping) or _view_kind(data) is None:
            return data
        view = dict(data)
        view.pop("$schema", None)
        out: dict[str, Any] = {"view": view}
        if "datasets" in view:
            out["datasets"] = view.pop("datasets")
        if "config" in view:
            out["config"] = view.pop("config")
        return out

    @field_validator("datasets", mode="before")
    @classmethod
    def _datasets_from_frames(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            return {k: _rows(rows) for k, rows in v.items()}
        return v


def parse_spec(spec: Any) -> TopLevelSpec:
    """
    Validate an input spec into a TopLevelSpec.

    Args:
        spec (Any): A TopLevelSpec, a mapping, or an object exposing ``to_dict()`` (such as
            an Altair chart).

    Returns:
        TopLevelSpec: The validated spec.

    Raises:
        pydantic.ValidationError: If the spec does not match the normalized grammar.
    """
    if isinstance(spec, TopLevelSpec):
        return spec
    if not isinstance(spec, Mapping) and callable(getattr(spec, "to_dict", None)):
        spec = spec.to_dict()
    return TopLevelSpec.model_validate(spec)
