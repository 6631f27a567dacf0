"""
Configuration for chartc.

Defines CompileSettings, a frozen dataclass carrying runtime configuration for a compile.
Defaults are sourced from chartc.core.constants (the single source of truth).

Source of truth
- chartc.core.constants.DEFAULT_PROJECTION_TYPE, CONTINUOUS_WIDTH, CONTINUOUS_HEIGHT,
  SCHEMA_URL

Import DAG discipline
- Depends only on stdlib and chartc.core.constants.

Notes
- A chart's own ``config.view`` sizes take precedence over these settings; the settings fill in
  only what the chart leaves unset.
- ``strict_datasets`` turns references to undeclared named datasets into
  UpstreamReferenceError instead of runtime-provided data.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

try:  # Python 3.11+ stdlib TOML parser
    import tomllib  # type: ignore
except Exception:  # pragma: no cover - environments without tomllib
    tomllib = None  # type: ignore[assignment]

from chartc.core.constants import CONTINUOUS_HEIGHT as CORE_CONTINUOUS_HEIGHT
from chartc.core.constants import CONTINUOUS_WIDTH as CORE_CONTINUOUS_WIDTH
from chartc.core.constants import DEFAULT_PROJECTION_TYPE as CORE_PROJECTION_TYPE
from chartc.core.constants import SCHEMA_URL as CORE_SCHEMA_URL


@dataclass(frozen=True)
class CompileSettings:
    """
    Runtime settings for a chartc compile.

    Attributes:
        default_projection_type (str): Projection type used when neither the view nor the
            spec config names one.
        continuous_width (float): Default view width for size signals.
        continuous_height (float): Default view height for size signals.
        schema_url (str): ``$schema`` stamped on the assembled output.
        strict_datasets (bool): Require named data references to be declared in the
            top-level ``datasets``.

    Examples:
        >>> from chartc.config import CompileSettings
        >>> CompileSettings(continuous_width=400)  # doctest: +ELLIPSIS
        CompileSettings(...)
    """

    default_projection_type: str = CORE_PROJECTION_TYPE
    continuous_width: float = CORE_CONTINUOUS_WIDTH
    continuous_height: float = CORE_CONTINUOUS_HEIGHT
    schema_url: str = CORE_SCHEMA_URL
    strict_datasets: bool = False

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: CompileSettings, cfg: dict[str, Any] | None) -> CompileSettings:
        """Apply a loose config mapping onto CompileSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        def _bool(v: Any) -> bool:
            if isinstance(v, bool):
                return v
            if isinstance(v, (int, float)):
                return bool(v)
            if isinstance(v, str):
                return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
            return False

        def _positive(v: Any) -> float | None:
            try:
                f = float(v)
            except (TypeError, ValueError):
                return None
            return f if f > 0 else None

        if "default_projection_type" in cfg and isinstance(cfg["default_projection_type"], str):
            proj = cfg["default_projection_type"].strip()
            if proj:
                s = replace(s, default_projection_type=proj)

        for key in ("continuous_width", "continuous_height"):
            if key in cfg:
                size = _positive(cfg[key])
                if size is not None:
                    s = replace(s, **{key: size})

        if "schema_url" in cfg and isinstance(cfg["schema_url"], str):
            s = replace(s, schema_url=cfg["schema_url"])

        if "strict_datasets" in cfg:
            s = replace(s, strict_datasets=_bool(cfg["strict_datasets"]))

        return s

    @classmethod
    def from_env(
        cls, base: CompileSettings | None = None, prefix: str = "CHARTC_"
    ) -> CompileSettings:
        """
        Build CompileSettings from environment variables. Precedence is env > base (if
        provided) > defaults.

        Recognized variables:
            - CHARTC_DEFAULT_PROJECTION_TYPE
            - CHARTC_CONTINUOUS_WIDTH
            - CHARTC_CONTINUOUS_HEIGHT
            - CHARTC_SCHEMA_URL
            - CHARTC_STRICT_DATASETS (1/0/true/false/yes/no/on/off)
        """
        s = base or cls()

        mapping: dict[str, Any] = {}
        for key in (
            "default_projection_type",
            "continuous_width",
            "continuous_height",
            "schema_url",
            "strict_datasets",
        ):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> CompileSettings:
        """
        Build CompileSettings from a TOML file.

        Search order when `path` is None:
            1) ./chartc.toml (with either a [compile] table or direct keys)
            2) ./pyproject.toml under [tool.chartc.compile]

        Returns defaults if no file present or tomllib is unavailable.
        """
        s = cls()
        if tomllib is None:
            return s

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)  # type: ignore[arg-type]
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cfg: dict[str, Any] | None = None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "chartc.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("chartc", {}).get("compile", {}) if isinstance(tool, dict) else None
            elif isinstance(data.get("compile"), dict):
                cfg = data["compile"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> CompileSettings:
        """
        Load CompileSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (chartc.toml,
                pyproject.toml).

        Returns:
            CompileSettings
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
