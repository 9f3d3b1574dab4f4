# FigureKit
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""PlotSpec serialization helpers.

Only the recipe (mapping, layers, scales, title) is stored; the data frame
is supplied again when a spec is loaded.
"""

from __future__ import annotations

import json
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict

import pandas as pd

from .spec import ChannelMapping, Layer, PlotSpec, Scale

SPEC_VERSION = 1

__all__ = [
    "SPEC_VERSION",
    "plot_spec_to_dict",
    "plot_spec_from_dict",
    "save_plot_spec",
    "load_plot_spec",
]


def _filter_kwargs(cls, raw: Dict[str, Any] | None) -> Dict[str, Any]:
    """Drop unknown keys so older files load after we add fields."""
    if raw is None:
        return {}
    valid = {f.name for f in fields(cls)}
    return {k: v for k, v in raw.items() if k in valid}


def _mapping_to_dict(mapping: ChannelMapping | None) -> Dict[str, Any] | None:
    if mapping is None:
        return None
    return mapping.columns()


def plot_spec_to_dict(spec: PlotSpec) -> Dict[str, Any]:
    return {
        "spec_version": SPEC_VERSION,
        "title": spec.title,
        "mapping": _mapping_to_dict(spec.mapping),
        "layers": [
            {
                "kind": layer.kind,
                "mapping": _mapping_to_dict(layer.mapping),
                "params": dict(layer.params),
            }
            for layer in spec.layers
        ],
        "scales": [
            {
                "channel": s.channel,
                "transform": s.transform,
                "palette": s.palette,
                "limits": list(s.limits) if s.limits is not None else None,
                "label": s.label,
                "values": list(s.values) if s.values is not None else None,
            }
            for s in spec.scales
        ],
    }


def plot_spec_from_dict(data: Dict[str, Any], frame: pd.DataFrame) -> PlotSpec:
    mapping = ChannelMapping(**_filter_kwargs(ChannelMapping, data.get("mapping") or {}))
    layers = []
    for raw in data.get("layers", []) or []:
        layer_mapping = raw.get("mapping")
        layers.append(
            Layer(
                kind=raw.get("kind", "point"),
                mapping=(
                    ChannelMapping(**_filter_kwargs(ChannelMapping, layer_mapping))
                    if layer_mapping
                    else None
                ),
                params=raw.get("params") or {},
            )
        )
    spec = PlotSpec(data=frame, mapping=mapping, layers=tuple(layers), title=data.get("title"))
    for raw in data.get("scales", []) or []:
        kwargs = _filter_kwargs(Scale, raw)
        if kwargs.get("limits") is not None:
            kwargs["limits"] = tuple(kwargs["limits"])
        spec = spec.add_scale(Scale(**kwargs))
    return spec


def save_plot_spec(path: str | Path, spec: PlotSpec) -> None:
    path = Path(path)
    data = plot_spec_to_dict(spec)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def load_plot_spec(path: str | Path, frame: pd.DataFrame) -> PlotSpec:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    return plot_spec_from_dict(raw, frame)
