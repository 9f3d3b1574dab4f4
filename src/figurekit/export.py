# FigureKit
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Figure export sequencing.

Two interchangeable ways to put a PlotSpec on disk:

- ``export_via_device``: open a device, render, close, with the device
  released on every exit path.
- ``export_direct``: one call; format inferred from the extension and size
  taken from the defaults when omitted.

Either way the destination holds a complete file on success and is left
untouched on failure. ``build_figure`` is the explicit on-screen path.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from matplotlib.figure import Figure

from . import formats, settings
from .device import GraphicsDevice, open_device
from .errors import FigureKitError
from .renderer import PageSpec, render_figure
from .spec import PlotSpec

log = logging.getLogger(__name__)

__all__ = ["export_via_device", "export_direct", "build_figure"]


def export_via_device(
    spec: PlotSpec,
    path: str | os.PathLike[str],
    format: Optional[str],
    width: float,
    height: float,
    dpi: Optional[float] = None,
    *,
    background: Optional[str] = None,
) -> Path:
    """Open a device for ``path``, render ``spec`` to it and close it."""
    device = open_device(path, format, width, height, dpi=dpi, background=background)
    try:
        device.render(spec)
        return device.close()
    except FigureKitError as exc:
        log.warning("Export to %s failed: %s", path, exc)
        raise
    finally:
        device.abort()


def export_direct(
    spec: PlotSpec,
    path: str | os.PathLike[str],
    format: Optional[str] = None,
    width: Optional[float] = None,
    height: Optional[float] = None,
    dpi: Optional[float] = None,
    *,
    background: Optional[str] = None,
    preset: Optional[str] = None,
) -> Path:
    """Save ``spec`` to ``path`` in a single call.

    ``format`` defaults to the one implied by the extension; unspecified size
    and DPI come from ``preset`` (or the defaults in settings).
    """
    fmt = formats.resolve_format(path, format)
    resolved = settings.resolve_settings(width, height, dpi, background, preset=preset)
    device = GraphicsDevice(
        path,
        fmt.name,
        resolved.width_in,
        resolved.height_in,
        resolved.dpi,
        resolved.background,
    )
    try:
        with device:
            device.render(spec)
    except FigureKitError as exc:
        log.warning("Export to %s failed: %s", path, exc)
        raise
    return device.path


def build_figure(
    spec: PlotSpec,
    width: Optional[float] = None,
    height: Optional[float] = None,
    dpi: Optional[float] = None,
    *,
    preset: Optional[str] = None,
) -> Figure:
    """Render ``spec`` to a Figure for on-screen display (nothing is written)."""
    resolved = settings.resolve_settings(width, height, dpi, preset=preset)
    page = PageSpec(width_in=resolved.width_in, height_in=resolved.height_in, dpi=resolved.dpi)
    return render_figure(spec, page)
