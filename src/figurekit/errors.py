# FigureKit
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Exceptions raised by the figure export pipeline."""

from __future__ import annotations

__all__ = [
    "FigureKitError",
    "DeviceOpenError",
    "NoActiveDeviceError",
    "UnsupportedFormatError",
    "RenderError",
]


class FigureKitError(Exception):
    """Base class for every error raised by figurekit."""


class DeviceOpenError(FigureKitError):
    """The destination of a graphics device cannot be opened for writing."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot open graphics device for {path}: {reason}")


class NoActiveDeviceError(FigureKitError):
    """A render was attempted on a device that is not open."""


class UnsupportedFormatError(FigureKitError, ValueError):
    """The output format is unknown or could not be inferred from the path."""

    def __init__(self, fmt: str | None, path=None):
        self.format = fmt
        self.path = path
        if fmt:
            msg = f"Unsupported output format {fmt!r}"
        else:
            msg = "No output format given and none could be inferred"
        if path is not None:
            msg += f" (path: {path})"
        super().__init__(msg)


class RenderError(FigureKitError):
    """A plot specification could not be realized as a figure."""
