# FigureKit
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Public package interface for FigureKit."""

from figurekit.device import GraphicsDevice, close, open_device, open_devices, render
from figurekit.errors import (
    DeviceOpenError,
    FigureKitError,
    NoActiveDeviceError,
    RenderError,
    UnsupportedFormatError,
)
from figurekit.export import build_figure, export_direct, export_via_device
from figurekit.spec import (
    ChannelMapping,
    Layer,
    PlotSpec,
    Scale,
    add_layer,
    add_scale,
    bars,
    build,
    lines,
    points,
    smooth,
)

__all__ = [
    "PlotSpec",
    "ChannelMapping",
    "Layer",
    "Scale",
    "build",
    "add_layer",
    "add_scale",
    "points",
    "lines",
    "bars",
    "smooth",
    "GraphicsDevice",
    "open_device",
    "render",
    "close",
    "open_devices",
    "export_via_device",
    "export_direct",
    "build_figure",
    "FigureKitError",
    "DeviceOpenError",
    "NoActiveDeviceError",
    "UnsupportedFormatError",
    "RenderError",
]
