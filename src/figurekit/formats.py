# FigureKit
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Output format registry.

Maps file extensions to the Matplotlib backend format key, records whether
the encoding is raster or vector, and supplies the savefig options that make
vector output byte-for-byte reproducible (no timestamps, fixed SVG ids).
"""

from __future__ import annotations

import contextlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

import matplotlib

from .errors import UnsupportedFormatError

log = logging.getLogger(__name__)

__all__ = [
    "OutputFormat",
    "FORMATS",
    "SVG_HASH_SALT",
    "get_format",
    "infer_format",
    "resolve_format",
    "supported_extensions",
    "savefig_options",
    "reproducible_output",
]

SVG_HASH_SALT = "figurekit"


@dataclass(frozen=True)
class OutputFormat:
    name: str  # Matplotlib format key
    kind: str  # "raster" or "vector"
    extensions: Tuple[str, ...]
    is_text: bool = False
    metadata: Optional[Tuple[Tuple[str, Any], ...]] = None

    @property
    def is_vector(self) -> bool:
        return self.kind == "vector"


FORMATS: Dict[str, OutputFormat] = {
    "png": OutputFormat("png", "raster", (".png",), metadata=(("Software", None),)),
    "jpeg": OutputFormat("jpeg", "raster", (".jpg", ".jpeg")),
    "tiff": OutputFormat("tiff", "raster", (".tif", ".tiff")),
    "svg": OutputFormat("svg", "vector", (".svg",), is_text=True, metadata=(("Date", None),)),
    "pdf": OutputFormat("pdf", "vector", (".pdf",), metadata=(("CreationDate", None), ("ModDate", None))),
    "eps": OutputFormat("eps", "vector", (".eps",)),
    "ps": OutputFormat("ps", "vector", (".ps",)),
}

_ALIASES = {"jpg": "jpeg", "tif": "tiff"}

_BY_EXTENSION: Dict[str, OutputFormat] = {
    ext: fmt for fmt in FORMATS.values() for ext in fmt.extensions
}


def supported_extensions() -> Tuple[str, ...]:
    return tuple(sorted(_BY_EXTENSION))


def get_format(name: str) -> OutputFormat:
    """Look up a format by name or alias (``"jpg"``, ``".PNG"``...)."""
    key = str(name).strip().lower().lstrip(".")
    key = _ALIASES.get(key, key)
    try:
        return FORMATS[key]
    except KeyError:
        raise UnsupportedFormatError(name) from None


def infer_format(path: str | os.PathLike[str]) -> OutputFormat:
    """Infer the format from the file extension of ``path``."""
    suffix = Path(path).suffix.lower()
    if not suffix:
        raise UnsupportedFormatError(None, path)
    try:
        return _BY_EXTENSION[suffix]
    except KeyError:
        raise UnsupportedFormatError(suffix.lstrip("."), path) from None


def resolve_format(path: str | os.PathLike[str], fmt: str | None = None) -> OutputFormat:
    """Explicit ``fmt`` wins; otherwise infer from ``path``."""
    if fmt is None or fmt == "":
        return infer_format(path)
    resolved = get_format(fmt)
    suffix = Path(path).suffix.lower()
    if suffix and suffix not in resolved.extensions:
        log.debug("Format %s does not match extension %s for %s", resolved.name, suffix, path)
    return resolved


def savefig_options(fmt: OutputFormat) -> Dict[str, Any]:
    """Keyword arguments for ``Figure.savefig`` for this format."""
    options: Dict[str, Any] = {"format": fmt.name}
    if fmt.metadata is not None:
        options["metadata"] = dict(fmt.metadata)
    return options


@contextlib.contextmanager
def reproducible_output(fmt: OutputFormat) -> Iterator[None]:
    """Pin rc settings and the source date so vector output is stable."""
    rc = {"svg.hashsalt": SVG_HASH_SALT}
    previous = os.environ.get("SOURCE_DATE_EPOCH")
    if fmt.is_vector and previous is None:
        # PostScript stamps the creation time unless SOURCE_DATE_EPOCH is set.
        os.environ["SOURCE_DATE_EPOCH"] = "0"
    try:
        with matplotlib.rc_context(rc):
            yield
    finally:
        if fmt.is_vector and previous is None:
            os.environ.pop("SOURCE_DATE_EPOCH", None)
