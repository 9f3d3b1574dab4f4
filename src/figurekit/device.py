# FigureKit
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Graphics devices: explicit handles that capture a render and finalize a file.

A device is bound to one destination path, one output format and one page
size. Opening it reserves a temporary sibling of the destination; rendering
attaches a figure; closing encodes the figure and atomically replaces the
destination. Until ``close`` returns, the destination is never touched.

Usage:
    device = open_device("out.svg", width=6, height=4)
    try:
        device.render(spec)
        device.close()
    finally:
        device.abort()  # no-op once closed

Or use as context manager:
    with GraphicsDevice("out.png") as device:
        device.render(spec)
"""

from __future__ import annotations

import contextlib
import io
import logging
import os
import stat
import tempfile
import warnings
from pathlib import Path
from typing import Dict, List, Optional

from matplotlib.figure import Figure

from . import formats, settings
from .errors import DeviceOpenError, NoActiveDeviceError, RenderError
from .renderer import PageSpec, apply_export_background, render_figure
from .spec import PlotSpec

log = logging.getLogger(__name__)

__all__ = [
    "GraphicsDevice",
    "open_device",
    "render",
    "close",
    "open_devices",
]

# Devices currently open, keyed by resolved destination.
_OPEN_DEVICES: Dict[Path, "GraphicsDevice"] = {}


class GraphicsDevice:
    """Handle for one pending output file."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        format: Optional[str] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
        dpi: Optional[float] = None,
        background: Optional[str] = None,
    ):
        self.path = Path(path)
        self.format = formats.resolve_format(self.path, format)
        resolved = settings.resolve_settings(width, height, dpi, background)
        self.width_in = resolved.width_in
        self.height_in = resolved.height_in
        self.dpi = resolved.dpi
        self.background = resolved.background
        self._tmp_path: Optional[Path] = None
        self._figure: Optional[Figure] = None
        self._state = "new"  # new -> open -> closed | aborted

    def __repr__(self) -> str:
        return (
            f"GraphicsDevice(path={str(self.path)!r}, format={self.format.name!r}, "
            f"size=({self.width_in:g}, {self.height_in:g}) in, dpi={self.dpi:g}, state={self._state})"
        )

    @property
    def is_open(self) -> bool:
        return self._state == "open"

    @property
    def figure(self) -> Optional[Figure]:
        """The figure captured by the last render (None before any render)."""
        return self._figure

    def _key(self) -> Path:
        return self.path.expanduser().resolve()

    def open(self) -> "GraphicsDevice":
        if self._state != "new":
            raise DeviceOpenError(self.path, f"device is already {self._state}")
        key = self._key()
        if key in _OPEN_DEVICES:
            raise DeviceOpenError(self.path, "another device is already open for this destination")

        parent = key.parent
        if not parent.is_dir():
            raise DeviceOpenError(self.path, f"parent directory {parent} does not exist")
        if not os.access(parent, os.W_OK | os.X_OK):
            raise DeviceOpenError(self.path, f"parent directory {parent} is not writable")
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=parent)
        except OSError as exc:
            raise DeviceOpenError(self.path, str(exc)) from exc
        os.close(fd)

        self._tmp_path = Path(tmp_name)
        self._state = "open"
        _OPEN_DEVICES[key] = self
        log.info(
            "Opened graphics device path=%s format=%s size=%.2fx%.2f in dpi=%g",
            self.path,
            self.format.name,
            self.width_in,
            self.height_in,
            self.dpi,
        )
        return self

    def render(self, spec: PlotSpec) -> Figure:
        """Realize ``spec`` on this device; the last render wins."""
        if not self.is_open:
            raise NoActiveDeviceError(f"Cannot render to {self.path}: device is {self._state}")
        page = PageSpec(
            width_in=self.width_in,
            height_in=self.height_in,
            dpi=self.dpi,
            export_background=self.background,
        )
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            fig = render_figure(spec, page)
        for warning in caught:
            log.warning("Render warning for %s: %s", self.path, warning.message)
        self._figure = fig
        return fig

    def close(self) -> Path:
        """Encode the captured figure and atomically publish it at ``path``."""
        if not self.is_open:
            raise NoActiveDeviceError(f"Cannot close {self.path}: device is {self._state}")
        try:
            data = self._encode()
            with open(self._tmp_path, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(self._tmp_path, _publish_mode(self.path))
            os.replace(self._tmp_path, self.path)
        except BaseException:
            self.abort()
            raise
        self._release("closed")
        log.info("Wrote %s (%d bytes, %s)", self.path, len(data), self.format.kind)
        return self.path

    def abort(self) -> None:
        """Release the device without touching the destination. Safe to repeat."""
        if not self.is_open:
            return
        if self._tmp_path is not None:
            with contextlib.suppress(FileNotFoundError):
                self._tmp_path.unlink()
        self._release("aborted")
        log.info("Aborted graphics device path=%s", self.path)

    def _release(self, state: str) -> None:
        _OPEN_DEVICES.pop(self._key(), None)
        self._state = state
        self._figure = None
        self._tmp_path = None

    def _encode(self) -> bytes:
        fig = self._figure
        if fig is None:
            # Opened and closed with nothing rendered: a blank page.
            fig = Figure(figsize=(self.width_in, self.height_in), dpi=self.dpi)
        dpi = _clamped_dpi(fig, self.dpi)
        savefig_kwargs = apply_export_background(fig, self.background)
        savefig_kwargs.update(formats.savefig_options(self.format))
        buffer = io.BytesIO()
        try:
            with formats.reproducible_output(self.format), warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always")
                fig.savefig(buffer, dpi=dpi, **savefig_kwargs)
        except (ValueError, TypeError, RuntimeError) as exc:
            raise RenderError(f"Failed to encode {self.path} as {self.format.name}: {exc}") from exc
        for warning in caught:
            log.warning("Export warning for %s: %s", self.path, warning.message)
        return buffer.getvalue()

    def __enter__(self) -> "GraphicsDevice":
        if self._state == "new":
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abort()
            return
        if self.is_open:
            self.close()


def _publish_mode(path: Path) -> int:
    """Mode for the published file: keep the existing one, else honor the umask."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def _clamped_dpi(fig: Figure, dpi: float) -> float:
    w_in, h_in = fig.get_size_inches()
    width_px = w_in * dpi
    height_px = h_in * dpi
    max_dim = settings.MAX_EXPORT_PIXELS
    if width_px <= max_dim and height_px <= max_dim:
        return dpi
    scale = max_dim / max(width_px, height_px)
    clamped = dpi * scale
    log.warning(
        "Export size clamped from %.0f×%.0f px (%.0f dpi) to %.0f×%.0f px (%.0f dpi) "
        "to stay under max_dim=%d",
        width_px,
        height_px,
        dpi,
        w_in * clamped,
        h_in * clamped,
        clamped,
        max_dim,
    )
    return clamped


def open_device(
    path: str | os.PathLike[str],
    format: Optional[str] = None,
    width: Optional[float] = None,
    height: Optional[float] = None,
    dpi: Optional[float] = None,
    background: Optional[str] = None,
) -> GraphicsDevice:
    """Create and open a device bound to ``path``."""
    return GraphicsDevice(path, format, width, height, dpi, background).open()


def render(device: Optional[GraphicsDevice], spec: PlotSpec) -> Figure:
    """Render ``spec`` to ``device``; there is no implicit current device."""
    if device is None:
        raise NoActiveDeviceError("No graphics device is open; call open_device() first")
    return device.render(spec)


def close(device: Optional[GraphicsDevice]) -> Path:
    if device is None:
        raise NoActiveDeviceError("No graphics device is open")
    return device.close()


def open_devices() -> List[GraphicsDevice]:
    """Devices that have been opened and not yet closed or aborted."""
    return list(_OPEN_DEVICES.values())
