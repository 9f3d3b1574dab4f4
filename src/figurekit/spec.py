# FigureKit
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Declarative plot specifications (document-first layer).

A PlotSpec pairs a tabular dataset with a channel mapping, an ordered list
of layers and an ordered list of scale overrides. Specs are immutable:
``add_layer``/``add_scale`` return new specs. Keep this file free of
Matplotlib imports; realization lives in renderer.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

import pandas as pd

__all__ = [
    "CHANNELS",
    "LAYER_KINDS",
    "AXIS_TRANSFORMS",
    "ChannelMapping",
    "Layer",
    "Scale",
    "PlotSpec",
    "build",
    "add_layer",
    "add_scale",
    "points",
    "lines",
    "bars",
    "smooth",
]

CHANNELS = ("x", "y", "color", "size", "shape")
LAYER_KINDS = ("point", "line", "bar", "smooth")
AXIS_TRANSFORMS = ("linear", "log", "symlog", "logit")


@dataclass(frozen=True)
class ChannelMapping:
    """Data column names assigned to visual channels (None = unmapped)."""

    x: Optional[str] = None
    y: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    shape: Optional[str] = None

    def merged(self, override: Optional["ChannelMapping"]) -> "ChannelMapping":
        """Return a mapping where fields set on ``override`` win."""
        if override is None:
            return self
        updates = {
            f.name: getattr(override, f.name)
            for f in fields(override)
            if getattr(override, f.name) is not None
        }
        return replace(self, **updates)

    def columns(self) -> Dict[str, str]:
        return {ch: getattr(self, ch) for ch in CHANNELS if getattr(self, ch) is not None}


@dataclass(frozen=True)
class Layer:
    """One visual element of a figure (points, lines, bars, fitted curve)."""

    kind: str
    mapping: Optional[ChannelMapping] = None
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.kind not in LAYER_KINDS:
            raise ValueError(f"Unknown layer kind {self.kind!r}; expected one of {LAYER_KINDS}")
        # Detach from the caller's dict so later edits cannot leak in.
        object.__setattr__(self, "params", dict(self.params or {}))

    def param(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)


@dataclass(frozen=True)
class Scale:
    """Override for how one channel maps data to the page."""

    channel: str
    transform: Optional[str] = None  # x/y only
    palette: Optional[str] = None  # color only
    limits: Optional[Tuple[float, float]] = None  # x/y range or size area range
    label: Optional[str] = None
    values: Optional[Tuple[Any, ...]] = None  # explicit colors or markers

    def __post_init__(self) -> None:
        if self.channel not in CHANNELS:
            raise ValueError(f"Unknown scale channel {self.channel!r}; expected one of {CHANNELS}")
        if self.transform is not None:
            if self.channel not in ("x", "y"):
                raise ValueError("Only x/y scales accept a transform")
            if self.transform not in AXIS_TRANSFORMS:
                raise ValueError(
                    f"Unknown axis transform {self.transform!r}; expected one of {AXIS_TRANSFORMS}"
                )
        if self.limits is not None:
            lo, hi = self.limits
            object.__setattr__(self, "limits", (float(lo), float(hi)))
        if self.values is not None:
            object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class PlotSpec:
    """Immutable description of a figure: data + mapping + layers + scales."""

    data: pd.DataFrame = field(compare=False, repr=False)
    mapping: ChannelMapping = field(default_factory=ChannelMapping)
    layers: Tuple[Layer, ...] = ()
    scales: Tuple[Scale, ...] = ()
    title: Optional[str] = None

    def add_layer(self, layer: Layer) -> "PlotSpec":
        if not isinstance(layer, Layer):
            raise TypeError(f"Expected Layer, got {type(layer).__name__}")
        return replace(self, layers=self.layers + (layer,))

    def add_scale(self, scale: Scale) -> "PlotSpec":
        """Add ``scale``; an existing override for the same channel is replaced."""
        if not isinstance(scale, Scale):
            raise TypeError(f"Expected Scale, got {type(scale).__name__}")
        kept = tuple(s for s in self.scales if s.channel != scale.channel)
        return replace(self, scales=kept + (scale,))

    def with_title(self, title: Optional[str]) -> "PlotSpec":
        return replace(self, title=title)

    def scale_for(self, channel: str) -> Optional[Scale]:
        for scale in self.scales:
            if scale.channel == channel:
                return scale
        return None

    def layer_mapping(self, layer: Layer) -> ChannelMapping:
        return self.mapping.merged(layer.mapping)


def build(
    data: pd.DataFrame,
    mapping: ChannelMapping | Mapping[str, str] | None = None,
    *,
    title: Optional[str] = None,
) -> PlotSpec:
    """Start a spec from a data frame and a channel mapping.

    ``mapping`` may be a ChannelMapping or a plain dict such as
    ``{"x": "carat", "y": "price", "color": "cut"}``.
    """
    if not isinstance(data, pd.DataFrame):
        raise TypeError(f"Plot data must be a pandas DataFrame, got {type(data).__name__}")
    if mapping is None:
        mapping = ChannelMapping()
    elif not isinstance(mapping, ChannelMapping):
        unknown = set(mapping) - set(CHANNELS)
        if unknown:
            raise ValueError(f"Unknown channels {sorted(unknown)}; expected a subset of {CHANNELS}")
        mapping = ChannelMapping(**dict(mapping))
    return PlotSpec(data=data, mapping=mapping, title=title)


def add_layer(spec: PlotSpec, layer: Layer) -> PlotSpec:
    return spec.add_layer(layer)


def add_scale(spec: PlotSpec, scale: Scale) -> PlotSpec:
    return spec.add_scale(scale)


def _layer(kind: str, mapping: ChannelMapping | Mapping[str, str] | None, params: Dict[str, Any]) -> Layer:
    if mapping is not None and not isinstance(mapping, ChannelMapping):
        mapping = ChannelMapping(**dict(mapping))
    return Layer(kind=kind, mapping=mapping, params=params)


def points(mapping=None, **params: Any) -> Layer:
    return _layer("point", mapping, params)


def lines(mapping=None, **params: Any) -> Layer:
    return _layer("line", mapping, params)


def bars(mapping=None, **params: Any) -> Layer:
    return _layer("bar", mapping, params)


def smooth(mapping=None, *, degree: int = 1, **params: Any) -> Layer:
    """Least-squares polynomial fit of y on x (straight line by default)."""
    params["degree"] = int(degree)
    return _layer("smooth", mapping, params)
