# FigureKit
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Export size presets and defaults."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Optional

__all__ = [
    "ExportSettings",
    "DEFAULT_EXPORT",
    "DEFAULT_PRESET_ID",
    "SIZE_PRESETS",
    "MAX_EXPORT_PIXELS",
    "get_preset",
    "resolve_settings",
]

# Largest raster edge we will write; DPI is reduced to stay under it.
MAX_EXPORT_PIXELS = 8000


@dataclass(frozen=True)
class ExportSettings:
    width_in: float
    height_in: float
    dpi: float
    background: str = "white"  # "white" or "transparent"
    description: str = ""


DEFAULT_EXPORT = ExportSettings(
    width_in=6.0,
    height_in=4.0,
    dpi=300.0,
    description="General-purpose figure.",
)

DEFAULT_PRESET_ID = "default"

SIZE_PRESETS: Dict[str, ExportSettings] = {
    DEFAULT_PRESET_ID: DEFAULT_EXPORT,
    "single_column": ExportSettings(
        width_in=3.35,
        height_in=2.6,
        dpi=600.0,
        description="Single-column journal layout (~85 mm).",
    ),
    "double_column": ExportSettings(
        width_in=7.0,
        height_in=3.8,
        dpi=600.0,
        description="Double-column journal layout (~178 mm).",
    ),
    "slide": ExportSettings(
        width_in=10.0,
        height_in=5.625,  # 16:9
        dpi=150.0,
        description="Presentation slide.",
    ),
}


def get_preset(preset_id: Optional[str]) -> ExportSettings:
    """Return the preset for ``preset_id`` (fallback to default)."""
    return SIZE_PRESETS.get(preset_id or DEFAULT_PRESET_ID, DEFAULT_EXPORT)


def resolve_settings(
    width: Optional[float] = None,
    height: Optional[float] = None,
    dpi: Optional[float] = None,
    background: Optional[str] = None,
    preset: Optional[str] = None,
) -> ExportSettings:
    """Fill unspecified values from ``preset`` (or the defaults)."""
    base = get_preset(preset)
    updates = {}
    if width is not None:
        updates["width_in"] = float(width)
    if height is not None:
        updates["height_in"] = float(height)
    if dpi is not None:
        updates["dpi"] = float(dpi)
    if background is not None:
        updates["background"] = background
    for name in ("width_in", "height_in", "dpi"):
        value = updates.get(name)
        if value is not None and value <= 0:
            raise ValueError(f"{name} must be > 0, got {value}")
    return replace(base, **updates)
