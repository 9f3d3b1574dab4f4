# FigureKit
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Single-axes Matplotlib renderer for PlotSpec.

This module owns the page model and the pure Matplotlib rendering pipeline
used by both screen display and file export. It never touches pyplot, so it
can run headless and in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import product
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

import numpy as np
import pandas as pd
from matplotlib.cm import ScalarMappable
from matplotlib.collections import LineCollection
from matplotlib.colors import Colormap, Normalize
from matplotlib.figure import Figure

from . import palettes
from .errors import RenderError
from .hygiene import frame_for_layer, is_categorical, levels
from .spec import Layer, PlotSpec

if TYPE_CHECKING:
    from matplotlib.axes import Axes

log = logging.getLogger(__name__)

_MIN_PAGE_WIDTH_IN = 1.0
_MIN_PAGE_HEIGHT_IN = 1.0
_MAX_PAGE_WIDTH_IN = 20.0
_MAX_PAGE_HEIGHT_IN = 20.0

DEFAULT_SIZE_RANGE = (9.0, 144.0)  # marker area, points^2
DEFAULT_POINT_SIZE = 24.0
DEFAULT_LINEWIDTH = 1.5

__all__ = [
    "PageSpec",
    "render_figure",
    "apply_export_background",
]


@dataclass
class PageSpec:
    width_in: float
    height_in: float
    dpi: float
    export_background: str = "white"  # "white" or "transparent"


@dataclass
class _ColorEncoding:
    kind: str  # "none", "discrete" or "continuous"
    lookup: Dict[Any, str] = field(default_factory=dict)
    cmap: Optional[Colormap] = None
    norm: Optional[Normalize] = None


@dataclass
class _RenderState:
    """Per-figure bookkeeping shared by all layers."""

    spec: PlotSpec
    axis_levels: Dict[str, List[Any]] = field(default_factory=lambda: {"x": [], "y": []})
    color_encodings: Dict[str, _ColorEncoding] = field(default_factory=dict)
    colorbar_drawn: bool = False
    legend_title: Optional[str] = None


def render_figure(spec: PlotSpec, page: PageSpec, fig: Figure | None = None) -> Figure:
    """Realize ``spec`` as a Matplotlib Figure sized by ``page``.

    A spec with no layers yields a blank, labelled axes. Any failure to map
    data onto the page is raised as RenderError.
    """
    _clamp_page_size(page)
    if fig is None:
        fig = Figure(figsize=(page.width_in, page.height_in), dpi=page.dpi)
    else:
        fig.clear()
        fig.set_size_inches(page.width_in, page.height_in, forward=False)
        fig.set_dpi(page.dpi)
    ax = fig.add_subplot(111)
    _apply_margins(fig, page)

    state = _RenderState(spec=spec)
    for index, layer in enumerate(spec.layers):
        try:
            _render_layer(ax, layer, state)
        except RenderError:
            raise
        except (ValueError, TypeError, KeyError) as exc:
            raise RenderError(f"Layer {index} ({layer.kind}) could not be drawn: {exc}") from exc

    _apply_category_ticks(ax, state)
    try:
        _apply_scales(ax, spec)
    except ValueError as exc:
        raise RenderError(f"Scale override could not be applied: {exc}") from exc
    _apply_axes_styles(ax, spec)
    _render_legend(ax, state)
    return fig


def _clamp_page_size(page: PageSpec) -> None:
    """Enforce a physical size range that keeps labels legible."""
    page.width_in = min(max(float(page.width_in), _MIN_PAGE_WIDTH_IN), _MAX_PAGE_WIDTH_IN)
    page.height_in = min(max(float(page.height_in), _MIN_PAGE_HEIGHT_IN), _MAX_PAGE_HEIGHT_IN)


def _apply_margins(fig: Figure, page: PageSpec) -> None:
    # Extra left margin keeps the y-label visible on tall/narrow sizes.
    w_in = max(page.width_in, 1e-6)
    h_in = max(page.height_in, 1e-6)
    aspect = h_in / w_in
    extra_left = 0.0
    if aspect >= 1.6 or w_in <= 3.0:
        extra_left = 0.04
    if w_in <= 2.0:
        extra_left = max(extra_left, 0.10)
    left = min(0.40, 0.14 + extra_left)
    extra_bottom = 0.0
    if aspect >= 1.0:
        extra_bottom = 0.04
    if h_in <= 2.0:
        extra_bottom = max(extra_bottom, 0.10)
    bottom = min(0.35, 0.14 + extra_bottom)
    fig.subplots_adjust(left=left, right=0.95, bottom=bottom, top=0.90)


def _render_layer(ax: "Axes", layer: Layer, state: _RenderState) -> None:
    mapping = state.spec.layer_mapping(layer)
    frame = frame_for_layer(state.spec.data, mapping)
    if layer.kind != "bar" and ("x" not in frame or "y" not in frame):
        raise RenderError(f"{layer.kind} layer needs both x and y mapped")
    if layer.kind == "bar" and "x" not in frame:
        raise RenderError("bar layer needs x mapped")
    if frame.empty:
        log.debug("Layer %s has no complete rows; nothing drawn", layer.kind)
        return

    color = _color_encoding(frame, mapping.color, state)
    if color.kind == "discrete" and state.legend_title is None:
        scale = state.spec.scale_for("color")
        state.legend_title = (scale.label if scale and scale.label else mapping.color)

    if layer.kind == "point":
        _draw_points(ax, frame, layer, color, state)
    elif layer.kind == "line":
        _draw_lines(ax, frame, layer, color, state)
    elif layer.kind == "bar":
        _draw_bars(ax, frame, layer, color, state)
    elif layer.kind == "smooth":
        _draw_smooth(ax, frame, layer, color, state)

    if color.kind == "continuous" and not state.colorbar_drawn:
        scale = state.spec.scale_for("color")
        mappable = ScalarMappable(norm=color.norm, cmap=color.cmap)
        label = scale.label if scale and scale.label else (mapping.color or "")
        ax.figure.colorbar(mappable, ax=ax, label=label)
        state.colorbar_drawn = True


def _color_encoding(frame: pd.DataFrame, column: Optional[str], state: _RenderState) -> _ColorEncoding:
    """Encoding for the color column, shared by every layer of the figure.

    Levels and value range come from the whole column, so rows dropped by
    one layer never shift the colors another layer uses.
    """
    if "color" not in frame or column is None:
        return _ColorEncoding(kind="none")
    cached = state.color_encodings.get(column)
    if cached is None:
        cached = state.color_encodings[column] = _build_color_encoding(state.spec.data[column], state)
    return cached


def _build_color_encoding(series: pd.Series, state: _RenderState) -> _ColorEncoding:
    scale = state.spec.scale_for("color")
    if is_categorical(series):
        lv = levels(series)
        colors = palettes.discrete_colors(
            len(lv),
            palette=scale.palette if scale else None,
            values=scale.values if scale else None,
        )
        return _ColorEncoding(kind="discrete", lookup=dict(zip(lv, colors)))
    cmap = palettes.continuous_cmap(scale.palette if scale else None)
    values = pd.to_numeric(series)
    norm = Normalize(vmin=float(values.min()), vmax=float(values.max()))
    if scale and scale.limits:
        norm = Normalize(vmin=scale.limits[0], vmax=scale.limits[1])
    return _ColorEncoding(kind="continuous", cmap=cmap, norm=norm)


def _default_color(layer: Layer, state: _RenderState) -> str:
    explicit = layer.param("color")
    if explicit:
        return explicit
    scale = state.spec.scale_for("color")
    palette = scale.palette if scale is not None else None
    if palette not in palettes.PALETTES:
        palette = None
    return palettes.discrete_colors(1, palette=palette)[0]


def _positions(series: pd.Series, axis: str, state: _RenderState) -> np.ndarray:
    """Numeric page positions; categorical values get stable integer slots."""
    if not is_categorical(series):
        return series.to_numpy()
    known = state.axis_levels[axis]
    for level in levels(series):
        if level not in known:
            known.append(level)
    slot = {level: i for i, level in enumerate(known)}
    return series.astype(object).map(slot).to_numpy(dtype=float)


def _groups(frame: pd.DataFrame, channels: Tuple[str, ...]):
    """Yield ({channel: level}, sub-frame) for categorical grouping channels."""
    keys = [ch for ch in channels if ch in frame and is_categorical(frame[ch])]
    if not keys:
        yield {}, frame
        return
    for combo in product(*(levels(frame[ch]) for ch in keys)):
        mask = np.ones(len(frame), dtype=bool)
        for ch, level in zip(keys, combo):
            mask &= (frame[ch] == level).to_numpy()
        if mask.any():
            yield dict(zip(keys, combo)), frame[mask]


def _group_label(layer: Layer, group: Dict[str, Any]) -> Optional[str]:
    if group:
        return " / ".join(str(v) for v in group.values())
    return layer.param("label")


def _sizes(frame: pd.DataFrame, layer: Layer, state: _RenderState):
    if "size" not in frame:
        return float(layer.param("size", DEFAULT_POINT_SIZE))
    series = frame["size"]
    if is_categorical(series):
        raise RenderError("size channel needs a numeric column")
    scale = state.spec.scale_for("size")
    lo, hi = scale.limits if scale and scale.limits else DEFAULT_SIZE_RANGE
    values = pd.to_numeric(series).to_numpy(dtype=float)
    vmin, vmax = float(np.nanmin(values)), float(np.nanmax(values))
    if vmax == vmin:
        return np.full(len(values), (lo + hi) / 2.0)
    return lo + (values - vmin) / (vmax - vmin) * (hi - lo)


def _draw_points(ax: "Axes", frame: pd.DataFrame, layer: Layer, color: _ColorEncoding, state: _RenderState) -> None:
    if "shape" in frame and not is_categorical(frame["shape"]):
        raise RenderError("shape channel needs a categorical column")
    shape_scale = state.spec.scale_for("shape")
    shape_lookup: Dict[Any, str] = {}
    if "shape" in frame:
        lv = levels(frame["shape"])
        shape_lookup = dict(zip(lv, palettes.markers(len(lv), shape_scale.values if shape_scale else None)))

    frame = frame.assign(_size=_sizes(frame, layer, state))
    alpha = layer.param("alpha", 0.85)
    for group, sub in _groups(frame, ("color", "shape")):
        kwargs: Dict[str, Any] = {
            "s": sub["_size"].to_numpy(),
            "alpha": alpha,
            "marker": shape_lookup.get(group.get("shape"), layer.param("marker", "o")),
            "label": _group_label(layer, group),
            "edgecolors": "none",
        }
        if color.kind == "discrete":
            kwargs["color"] = color.lookup[group["color"]]
        elif color.kind == "continuous":
            kwargs["c"] = pd.to_numeric(sub["color"]).to_numpy()
            kwargs["cmap"] = color.cmap
            kwargs["norm"] = color.norm
        else:
            kwargs["color"] = _default_color(layer, state)
        ax.scatter(_positions(sub["x"], "x", state), _positions(sub["y"], "y", state), **kwargs)


def _draw_lines(ax: "Axes", frame: pd.DataFrame, layer: Layer, color: _ColorEncoding, state: _RenderState) -> None:
    lw = float(layer.param("linewidth", DEFAULT_LINEWIDTH))
    linestyle = layer.param("linestyle", "-")
    if color.kind == "continuous":
        ordered = frame.sort_values("x")
        x = _positions(ordered["x"], "x", state)
        y = _positions(ordered["y"], "y", state)
        if len(ordered) < 2:
            return
        pts = np.column_stack([np.asarray(x, dtype=float), np.asarray(y, dtype=float)])
        segments = np.stack([pts[:-1], pts[1:]], axis=1)
        collection = LineCollection(segments, cmap=color.cmap, norm=color.norm, linewidths=lw, linestyles=linestyle)
        collection.set_array(pd.to_numeric(ordered["color"]).to_numpy()[:-1])
        ax.add_collection(collection)
        ax.autoscale_view()
        return
    for group, sub in _groups(frame, ("color",)):
        ordered = sub.sort_values("x")
        line_color = color.lookup[group["color"]] if color.kind == "discrete" else _default_color(layer, state)
        ax.plot(
            _positions(ordered["x"], "x", state),
            _positions(ordered["y"], "y", state),
            color=line_color,
            linewidth=lw,
            linestyle=linestyle,
            marker=layer.param("marker") or None,
            solid_capstyle="round",
            label=_group_label(layer, group),
        )


def _draw_bars(ax: "Axes", frame: pd.DataFrame, layer: Layer, color: _ColorEncoding, state: _RenderState) -> None:
    if color.kind == "continuous":
        raise RenderError("bar layer needs a categorical color column")
    if "y" in frame and is_categorical(frame["y"]):
        raise RenderError("bar heights need a numeric y column")
    groups = list(_groups(frame, ("color",)))
    width = float(layer.param("width", 0.8))
    slot = width / len(groups)
    for i, (group, sub) in enumerate(groups):
        if "y" in sub:
            heights = sub.groupby("x", sort=False, observed=True)["y"].sum()
        else:
            heights = sub.groupby("x", sort=False, observed=True).size()
        x = _positions(pd.Series(heights.index, name="x"), "x", state).astype(float)
        offset = (i - (len(groups) - 1) / 2.0) * slot
        bar_color = color.lookup[group["color"]] if color.kind == "discrete" else _default_color(layer, state)
        ax.bar(
            x + offset,
            heights.to_numpy(),
            width=slot,
            color=bar_color,
            alpha=layer.param("alpha", 1.0),
            label=_group_label(layer, group),
        )


def _draw_smooth(ax: "Axes", frame: pd.DataFrame, layer: Layer, color: _ColorEncoding, state: _RenderState) -> None:
    if is_categorical(frame["x"]) or is_categorical(frame["y"]):
        raise RenderError("smooth layer needs numeric x and y columns")
    degree = int(layer.param("degree", 1))
    n_points = int(layer.param("points", 100))
    lw = float(layer.param("linewidth", DEFAULT_LINEWIDTH))
    grouping = ("color",) if color.kind == "discrete" else ()
    for group, sub in _groups(frame, grouping):
        x = pd.to_numeric(sub["x"]).to_numpy(dtype=float)
        y = pd.to_numeric(sub["y"]).to_numpy(dtype=float)
        if len(np.unique(x)) < degree + 1:
            label = _group_label(layer, group) or "all rows"
            raise RenderError(
                f"smooth layer needs at least {degree + 1} distinct x values per group ({label})"
            )
        coeffs = np.polyfit(x, y, degree)
        xs = np.linspace(x.min(), x.max(), n_points)
        line_color = color.lookup[group["color"]] if color.kind == "discrete" else _default_color(layer, state)
        ax.plot(
            xs,
            np.polyval(coeffs, xs),
            color=line_color,
            linewidth=lw,
            linestyle=layer.param("linestyle", "-"),
            label=layer.param("label") if not group else f"_fit {_group_label(layer, group)}",
        )


def _apply_category_ticks(ax: "Axes", state: _RenderState) -> None:
    x_levels = state.axis_levels["x"]
    if x_levels:
        ax.set_xticks(range(len(x_levels)))
        ax.set_xticklabels([str(v) for v in x_levels])
    y_levels = state.axis_levels["y"]
    if y_levels:
        ax.set_yticks(range(len(y_levels)))
        ax.set_yticklabels([str(v) for v in y_levels])


def _apply_scales(ax: "Axes", spec: PlotSpec) -> None:
    for axis in ("x", "y"):
        scale = spec.scale_for(axis)
        if scale is None:
            continue
        if scale.transform:
            getattr(ax, f"set_{axis}scale")(scale.transform)
        if scale.limits is not None:
            getattr(ax, f"set_{axis}lim")(*scale.limits)


def _axis_label(spec: PlotSpec, axis: str) -> str:
    scale = spec.scale_for(axis)
    if scale is not None and scale.label is not None:
        return scale.label
    return getattr(spec.mapping, axis) or ""


def _apply_axes_styles(ax: "Axes", spec: PlotSpec) -> None:
    """Axis labels, ticks, spines and grid."""
    ax.set_xlabel(_axis_label(spec, "x"), fontsize=11.0, labelpad=8, color="black")
    ax.set_ylabel(_axis_label(spec, "y"), fontsize=11.0, labelpad=10, color="black")
    if spec.title:
        ax.set_title(spec.title, fontsize=12.0)
    ax.tick_params(
        axis="both",
        which="major",
        labelsize=9.0,
        direction="out",
        length=5,
        width=1.0,
        colors="black",
        labelcolor="black",
    )
    ax.tick_params(axis="both", which="minor", length=3, width=0.8, colors="black")
    for name, spine in ax.spines.items():
        spine.set_linewidth(1.0)
        spine.set_edgecolor("black")
        if name in ("top", "right"):
            spine.set_visible(False)
    ax.grid(True, which="major", linestyle="--", color="#c0c0c0", linewidth=0.6, alpha=0.7)
    ax.set_axisbelow(True)


def _render_legend(ax: "Axes", state: _RenderState) -> None:
    handles, labels = ax.get_legend_handles_labels()
    if not handles:
        return
    leg = ax.legend(fontsize=9.0, loc="best", framealpha=0.8, title=state.legend_title)
    if leg is not None:
        frame = leg.get_frame()
        if frame is not None:
            frame.set_linewidth(0.8)


def apply_export_background(fig: Figure, mode: str) -> Dict[str, object]:
    """Set figure/axes background and return savefig kwargs for the mode."""
    normalized = "transparent" if str(mode).lower() == "transparent" else "white"
    facecolor = "none" if normalized == "transparent" else "white"
    fig.patch.set_facecolor(facecolor)
    fig.patch.set_alpha(0.0 if normalized == "transparent" else 1.0)
    for axis in fig.axes:
        axis.set_facecolor(facecolor)
    if normalized == "transparent":
        return {"transparent": True}
    return {"transparent": False, "facecolor": facecolor, "edgecolor": facecolor}
