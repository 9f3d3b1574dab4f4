"""Export sequencing: both strategies yield a complete file or no file."""

import pandas as pd
import pytest
from matplotlib.figure import Figure

from figurekit import open_device, open_devices
from figurekit.errors import DeviceOpenError, RenderError, UnsupportedFormatError
from figurekit.export import build_figure, export_direct, export_via_device
from figurekit.spec import Scale, build, points, smooth


def _spec():
    df = pd.DataFrame(
        {
            "hp": [110, 93, 175, 105, 245, 62, 95, 123],
            "mpg": [21.0, 22.8, 18.7, 18.1, 14.3, 24.4, 22.8, 19.2],
            "cyl": ["6", "4", "8", "6", "8", "4", "4", "6"],
        }
    )
    return (
        build(df, {"x": "hp", "y": "mpg", "color": "cyl"}, title="Fuel economy")
        .add_layer(points())
        .add_layer(smooth())
        .add_scale(Scale("x", label="Horsepower"))
    )


def test_export_via_device_writes_complete_file(tmp_path):
    out = tmp_path / "cars.png"
    assert export_via_device(_spec(), out, "png", 4.0, 3.0, dpi=72) == out
    assert out.read_bytes().startswith(b"\x89PNG")
    assert open_devices() == []


def test_export_via_device_infers_format_when_none(tmp_path):
    out = tmp_path / "cars.pdf"
    export_via_device(_spec(), out, None, 4.0, 3.0)
    assert out.read_bytes().startswith(b"%PDF")


def test_failed_render_releases_device_and_writes_nothing(tmp_path):
    out = tmp_path / "cars.png"
    bad = _spec().add_layer(points({"y": "weight"}))
    with pytest.raises(RenderError, match="weight"):
        export_via_device(bad, out, "png", 4.0, 3.0, dpi=72)

    assert not out.exists()
    assert list(tmp_path.iterdir()) == []
    assert open_devices() == []
    # the destination is free again
    open_device(out, "png", 4.0, 3.0).abort()


def test_failed_export_keeps_previous_valid_file(tmp_path):
    out = tmp_path / "cars.svg"
    export_direct(_spec(), out, width=4, height=3)
    previous = out.read_bytes()

    bad = _spec().add_layer(points({"color": "gear"}))
    with pytest.raises(RenderError):
        export_direct(bad, out, width=4, height=3)
    assert out.read_bytes() == previous


def test_format_inference_matches_explicit_format(tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    inferred = export_direct(_spec(), tmp_path / "a" / "out.png", width=4, height=3, dpi=72)
    explicit = export_direct(_spec(), tmp_path / "b" / "out.png", format="png", width=4, height=3, dpi=72)
    assert inferred.read_bytes() == explicit.read_bytes()


@pytest.mark.parametrize("ext", ["svg", "pdf"])
def test_vector_output_is_reproducible(tmp_path, ext):
    first = export_direct(_spec(), tmp_path / f"one.{ext}", width=4, height=3)
    second = export_via_device(_spec(), tmp_path / f"two.{ext}", ext, 4, 3)
    assert first.read_bytes() == second.read_bytes()


@pytest.mark.parametrize("ext, magic", [("png", b"\x89PNG"), ("svg", b"<?xml")])
def test_spec_without_layers_exports_valid_blank_figure(tmp_path, ext, magic):
    empty = build(pd.DataFrame({"a": [1, 2]}), {"x": "a"})
    out = export_direct(empty, tmp_path / f"blank.{ext}", width=3, height=2, dpi=72)
    data = out.read_bytes()
    assert data.startswith(magic)
    assert len(data) > 100


@pytest.mark.parametrize("name", ["out.xyz", "out"])
def test_unsupported_extension_raises_and_creates_nothing(tmp_path, name):
    with pytest.raises(UnsupportedFormatError):
        export_direct(_spec(), tmp_path / name)
    assert list(tmp_path.iterdir()) == []
    assert open_devices() == []


def test_explicit_format_overrides_unknown_extension(tmp_path):
    out = export_direct(_spec(), tmp_path / "out.xyz", format="svg", width=3, height=2)
    assert b"<svg" in out.read_bytes()


def test_missing_directory_is_device_open_error(tmp_path):
    with pytest.raises(DeviceOpenError):
        export_direct(_spec(), tmp_path / "nope" / "out.png")
    with pytest.raises(DeviceOpenError):
        export_via_device(_spec(), tmp_path / "nope" / "out.png", "png", 3, 2)


def test_export_direct_uses_preset_size(tmp_path):
    out = export_direct(_spec(), tmp_path / "slide.png", preset="slide", dpi=40)
    # 10 x 5.625 in at 40 dpi
    header = out.read_bytes()[16:24]
    width = int.from_bytes(header[:4], "big")
    height = int.from_bytes(header[4:], "big")
    assert (width, height) == (400, 225)


def test_build_figure_returns_figure_without_writing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    fig = build_figure(_spec(), width=4, height=3, dpi=72)
    assert isinstance(fig, Figure)
    assert fig.axes[0].get_title() == "Fuel economy"
    assert fig.axes[0].get_xlabel() == "Horsepower"
    assert list(tmp_path.iterdir()) == []
