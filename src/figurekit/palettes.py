# FigureKit
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Palette catalog, color-scale selection and scatter symbol choice.

Discrete palettes are for unordered categories; continuous colormaps are
for numeric values. Sequential maps suit magnitudes, diverging maps suit
values around a meaningful midpoint.
"""

from __future__ import annotations

import logging
from itertools import cycle, islice
from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib
from matplotlib.colors import Colormap, to_hex

log = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_PALETTE",
    "DEFAULT_CMAP",
    "DEFAULT_MARKERS",
    "PALETTES",
    "discrete_colors",
    "continuous_cmap",
    "classify_palette",
    "markers",
    "list_palettes",
]

DEFAULT_PALETTE = "okabe_ito"
DEFAULT_CMAP = "viridis"

# Filled, easily distinguished shapes; beyond this shape stops being a useful channel.
DEFAULT_MARKERS: Tuple[str, ...] = ("o", "s", "^", "D", "v", "P", "X")

PALETTES: Dict[str, Tuple[str, ...]] = {
    # Okabe & Ito (2008), distinguishable under the common forms of color blindness.
    "okabe_ito": (
        "#E69F00",
        "#56B4E9",
        "#009E73",
        "#F0E442",
        "#0072B2",
        "#D55E00",
        "#CC79A7",
        "#000000",
    ),
    "tableau": (
        "#1f77b4",
        "#ff7f0e",
        "#2ca02c",
        "#d62728",
        "#9467bd",
        "#8c564b",
        "#e377c2",
        "#7f7f7f",
        "#bcbd22",
        "#17becf",
    ),
    "set2": ("#66c2a5", "#fc8d62", "#8da0cb", "#e78ac3", "#a6d854", "#ffd92f", "#e5c494", "#b3b3b3"),
    "dark2": ("#1b9e77", "#d95f02", "#7570b3", "#e7298a", "#66a61e", "#e6ab02", "#a6761d", "#666666"),
    "paired": (
        "#a6cee3",
        "#1f78b4",
        "#b2df8a",
        "#33a02c",
        "#fb9a99",
        "#e31a1c",
        "#fdbf6f",
        "#ff7f00",
        "#cab2d6",
        "#6a3d9a",
        "#ffff99",
        "#b15928",
    ),
    "grayscale": ("#000000", "#4d4d4d", "#808080", "#b3b3b3", "#d9d9d9"),
}

_DIVERGING = {
    "BrBG", "PiYG", "PRGn", "PuOr", "RdBu", "RdGy", "RdYlBu", "RdYlGn", "Spectral",
    "bwr", "coolwarm", "seismic",
}
_QUALITATIVE = {
    "Pastel1", "Pastel2", "Paired", "Accent", "Dark2", "Set1", "Set2", "Set3",
    "tab10", "tab20", "tab20b", "tab20c",
}


def list_palettes() -> List[str]:
    return sorted(PALETTES)


def discrete_colors(n: int, palette: Optional[str] = None, values: Optional[Sequence[str]] = None) -> List[str]:
    """Return ``n`` hex colors for categorical levels.

    ``values`` (explicit colors) take precedence over ``palette``. A palette
    name not in the catalog is looked up as a qualitative Matplotlib colormap.
    """
    if n <= 0:
        return []
    if values:
        base = [to_hex(v) for v in values]
    else:
        name = palette or DEFAULT_PALETTE
        if name in PALETTES:
            base = [to_hex(c) for c in PALETTES[name]]
        else:
            cmap = continuous_cmap(name)
            count = getattr(cmap, "N", 256)
            if count > 32:
                # Continuous map used for categories: sample evenly.
                return [to_hex(cmap(i / max(n - 1, 1))) for i in range(n)]
            base = [to_hex(cmap(i)) for i in range(count)]
    if n > len(base):
        log.warning(
            "Palette has %d colors but %d levels were requested; colors will repeat",
            len(base),
            n,
        )
    return list(islice(cycle(base), n))


def continuous_cmap(name: Optional[str] = None) -> Colormap:
    """Return a Matplotlib colormap (perceptually uniform viridis by default)."""
    key = name or DEFAULT_CMAP
    try:
        return matplotlib.colormaps[key]
    except KeyError:
        raise ValueError(f"Unknown colormap or palette {key!r}") from None


def classify_palette(name: str) -> str:
    """Return ``qualitative``, ``sequential`` or ``diverging`` for ``name``."""
    if name in PALETTES:
        return "qualitative"
    base = name[:-2] if name.endswith("_r") else name
    continuous_cmap(name)  # validate
    if base in _DIVERGING:
        return "diverging"
    if base in _QUALITATIVE:
        return "qualitative"
    return "sequential"


def markers(n: int, values: Optional[Sequence[str]] = None) -> List[str]:
    """Return ``n`` scatter symbols, cycling when there are more levels than shapes."""
    if n <= 0:
        return []
    base = list(values) if values else list(DEFAULT_MARKERS)
    if n > len(base):
        log.warning(
            "Shape channel has %d levels but only %d distinct symbols; consider color instead",
            n,
            len(base),
        )
    return list(islice(cycle(base), n))
