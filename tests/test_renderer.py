"""Tests for realizing PlotSpecs as Matplotlib figures."""

import numpy as np
import pandas as pd
import pytest
from matplotlib.collections import LineCollection
from matplotlib.colors import to_hex

from figurekit.errors import RenderError
from figurekit.renderer import PageSpec, apply_export_background, render_figure
from figurekit.spec import Scale, bars, build, lines, points, smooth


def _page() -> PageSpec:
    return PageSpec(width_in=4.0, height_in=3.0, dpi=72.0)


def _penguins() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "bill": [39.1, 39.5, 46.5, 45.4, 50.0, 49.5],
            "flipper": [181, 186, 210, 211, 220, 224],
            "mass": [3750, 3800, 4200, 4500, 5700, 5400],
            "species": ["Adelie", "Adelie", "Chinstrap", "Chinstrap", "Gentoo", "Gentoo"],
            "sex": ["m", "f", "m", "f", "m", "f"],
        }
    )


def test_empty_spec_renders_blank_labelled_axes():
    spec = build(_penguins(), {"x": "bill", "y": "flipper"})
    fig = render_figure(spec, _page())
    assert len(fig.axes) == 1
    ax = fig.axes[0]
    assert ax.get_xlabel() == "bill"
    assert ax.get_ylabel() == "flipper"
    assert not ax.collections and not ax.lines


def test_page_size_is_clamped():
    page = PageSpec(width_in=0.2, height_in=50.0, dpi=72.0)
    fig = render_figure(build(_penguins()), page)
    w, h = fig.get_size_inches()
    assert w == pytest.approx(1.0)
    assert h == pytest.approx(20.0)


def test_points_with_categorical_color_get_one_group_per_level():
    spec = build(_penguins(), {"x": "bill", "y": "flipper", "color": "species"}).add_layer(points())
    fig = render_figure(spec, _page())
    ax = fig.axes[0]
    assert len(ax.collections) == 3
    legend = ax.get_legend()
    assert [t.get_text() for t in legend.get_texts()] == ["Adelie", "Chinstrap", "Gentoo"]
    assert legend.get_title().get_text() == "species"


def test_color_scale_values_and_label_are_used():
    spec = (
        build(_penguins(), {"x": "bill", "y": "flipper", "color": "species"})
        .add_layer(points())
        .add_scale(Scale("color", values=("#ff0000", "#00ff00", "#0000ff"), label="Species"))
    )
    ax = render_figure(spec, _page()).axes[0]
    first = ax.collections[0].get_facecolor()[0]
    assert tuple(np.round(first[:3], 3)) == (1.0, 0.0, 0.0)
    assert ax.get_legend().get_title().get_text() == "Species"


def test_continuous_color_adds_colorbar():
    spec = build(_penguins(), {"x": "bill", "y": "flipper", "color": "mass"}).add_layer(points())
    fig = render_figure(spec, _page())
    assert len(fig.axes) == 2
    assert fig.axes[1].get_ylabel() == "mass"


def test_shape_channel_uses_distinct_markers():
    spec = build(_penguins(), {"x": "bill", "y": "flipper", "shape": "sex"}).add_layer(points())
    ax = render_figure(spec, _page()).axes[0]
    assert len(ax.collections) == 2
    paths = [tuple(map(tuple, c.get_paths()[0].vertices.round(3))) for c in ax.collections]
    assert paths[0] != paths[1]


def test_numeric_shape_or_categorical_size_is_a_render_error():
    df = _penguins()
    with pytest.raises(RenderError):
        render_figure(build(df, {"x": "bill", "y": "flipper", "shape": "mass"}).add_layer(points()), _page())
    with pytest.raises(RenderError):
        render_figure(build(df, {"x": "bill", "y": "flipper", "size": "species"}).add_layer(points()), _page())


def test_size_channel_scales_marker_area():
    spec = (
        build(_penguins(), {"x": "bill", "y": "flipper", "size": "mass"})
        .add_layer(points())
        .add_scale(Scale("size", limits=(10, 100)))
    )
    sizes = render_figure(spec, _page()).axes[0].collections[0].get_sizes()
    assert sizes.min() == pytest.approx(10.0)
    assert sizes.max() == pytest.approx(100.0)


def test_lines_one_per_color_group_sorted_by_x():
    df = pd.DataFrame({"t": [2, 0, 1, 0, 1, 2], "v": [2, 0, 1, 5, 6, 7], "run": ["a", "a", "a", "b", "b", "b"]})
    spec = build(df, {"x": "t", "y": "v", "color": "run"}).add_layer(lines())
    ax = render_figure(spec, _page()).axes[0]
    assert len(ax.lines) == 2
    assert list(ax.lines[0].get_xdata()) == [0, 1, 2]
    assert list(ax.lines[0].get_ydata()) == [0, 1, 2]


def test_lines_with_continuous_color_use_a_line_collection():
    df = pd.DataFrame({"t": [0, 1, 2, 3], "v": [1, 3, 2, 4], "temp": [10.0, 12.0, 15.0, 20.0]})
    spec = build(df, {"x": "t", "y": "v", "color": "temp"}).add_layer(lines())
    fig = render_figure(spec, _page())
    assert any(isinstance(c, LineCollection) for c in fig.axes[0].collections)


def test_bars_count_rows_when_y_unmapped():
    spec = build(_penguins(), {"x": "species"}).add_layer(bars())
    ax = render_figure(spec, _page()).axes[0]
    assert [p.get_height() for p in ax.patches] == [2, 2, 2]
    assert [t.get_text() for t in ax.get_xticklabels()] == ["Adelie", "Chinstrap", "Gentoo"]


def test_bars_sum_y_and_dodge_color_groups():
    spec = build(_penguins(), {"x": "species", "y": "mass", "color": "sex"}).add_layer(bars())
    ax = render_figure(spec, _page()).axes[0]
    heights = sorted(p.get_height() for p in ax.patches)
    assert heights == sorted([3750, 3800, 4200, 4500, 5700, 5400])
    widths = {round(p.get_width(), 6) for p in ax.patches}
    assert widths == {0.4}


def test_smooth_fits_a_line():
    x = np.arange(10, dtype=float)
    df = pd.DataFrame({"x": x, "y": 2.0 * x + 1.0})
    spec = build(df, {"x": "x", "y": "y"}).add_layer(smooth(points=5))
    line = render_figure(spec, _page()).axes[0].lines[0]
    np.testing.assert_allclose(line.get_ydata(), 2.0 * line.get_xdata() + 1.0, atol=1e-9)
    assert len(line.get_xdata()) == 5


def test_smooth_needs_enough_distinct_points():
    df = pd.DataFrame({"x": [1.0, 1.0, 2.0], "y": [1.0, 2.0, 3.0]})
    spec = build(df, {"x": "x", "y": "y"}).add_layer(smooth(degree=2))
    with pytest.raises(RenderError, match="at least 3 distinct"):
        render_figure(spec, _page())


def test_missing_column_is_a_render_error():
    spec = build(_penguins(), {"x": "bill", "y": "body_mass_g"}).add_layer(points())
    with pytest.raises(RenderError, match="body_mass_g"):
        render_figure(spec, _page())


def test_axis_scale_overrides_and_title():
    spec = (
        build(_penguins(), {"x": "mass", "y": "flipper"}, title="Penguins")
        .add_layer(points())
        .add_scale(Scale("x", transform="log", label="Body mass (g)"))
        .add_scale(Scale("y", limits=(150, 250)))
    )
    ax = render_figure(spec, _page()).axes[0]
    assert ax.get_xscale() == "log"
    assert ax.get_xlabel() == "Body mass (g)"
    assert ax.get_ylim() == pytest.approx((150.0, 250.0))
    assert ax.get_title() == "Penguins"


def test_incomplete_rows_are_dropped_before_drawing():
    df = pd.DataFrame({"a": [1.0, 2.0, None, 4.0], "b": [1.0, None, 3.0, 4.0]})
    spec = build(df, {"x": "a", "y": "b"}).add_layer(points())
    offsets = render_figure(spec, _page()).axes[0].collections[0].get_offsets()
    assert len(offsets) == 2


def test_point_layer_without_y_is_a_render_error():
    spec = build(_penguins(), {"x": "bill"}).add_layer(points())
    with pytest.raises(RenderError, match="needs both x and y"):
        render_figure(spec, _page())


def test_export_background_modes():
    fig = render_figure(build(_penguins()), _page())
    assert apply_export_background(fig, "transparent") == {"transparent": True}
    assert fig.patch.get_alpha() == 0.0
    kwargs = apply_export_background(fig, "white")
    assert kwargs["facecolor"] == "white"
    assert fig.patch.get_alpha() == 1.0


def test_layers_share_one_color_per_level_when_rows_differ():
    df = pd.DataFrame(
        {
            "x": [1.0, 2.0, 3.0, 4.0],
            "y": [1.0, 2.0, 3.0, 4.0],
            "y2": [np.nan, 2.5, 3.5, 4.5],
            "grp": ["a", "b", "a", "b"],
        }
    )
    spec = build(df, {"x": "x", "y": "y", "color": "grp"}).add_layer(points()).add_layer(lines({"y": "y2"}))
    ax = render_figure(spec, _page()).axes[0]

    point_colors = {c.get_label(): to_hex(c.get_facecolor()[0]) for c in ax.collections}
    line_colors = {line.get_label(): to_hex(line.get_color()) for line in ax.lines}
    assert point_colors == line_colors
    assert point_colors["a"] != point_colors["b"]


def test_numeric_object_column_is_a_continuous_axis():
    df = pd.DataFrame({"x": pd.Series([10, 20, 30], dtype=object), "y": [1.0, 2.0, 3.0]})
    ax = render_figure(build(df, {"x": "x", "y": "y"}).add_layer(points()), _page()).axes[0]
    offsets = ax.collections[0].get_offsets()
    assert offsets[:, 0].tolist() == [10.0, 20.0, 30.0]
