# FigureKit
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Data-frame checks applied before a spec is drawn."""

from __future__ import annotations

import logging
import re
from typing import Dict

import pandas as pd
from pandas.api import types as ptypes

from .errors import RenderError
from .spec import ChannelMapping

log = logging.getLogger(__name__)

__all__ = ["check_frame", "frame_for_layer", "is_categorical", "levels", "clean_column_names"]

_NON_WORD = re.compile(r"[^0-9a-zA-Z]+")
_CAMEL = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
# Object columns of plain numbers (after concat or JSON loads) are continuous.
_NUMERIC_INFERRED = {"integer", "floating", "mixed-integer-float", "decimal"}


def check_frame(data: pd.DataFrame, mapping: ChannelMapping) -> None:
    """Raise RenderError if any mapped column is absent from ``data``."""
    columns = mapping.columns()
    missing = [f"{channel}={col!r}" for channel, col in columns.items() if col not in data.columns]
    if missing:
        available = ", ".join(map(str, data.columns)) or "<none>"
        raise RenderError(
            f"Mapped column(s) not found in data: {', '.join(missing)}. Available: {available}"
        )


def _holds_numbers(series: pd.Series) -> bool:
    return ptypes.infer_dtype(series, skipna=True) in _NUMERIC_INFERRED


def frame_for_layer(data: pd.DataFrame, mapping: ChannelMapping) -> pd.DataFrame:
    """Return the mapped columns with incomplete rows dropped.

    Result columns are named by channel (``x``, ``y``, ...), so renderers never
    touch the caller's frame.
    """
    check_frame(data, mapping)
    columns: Dict[str, str] = mapping.columns()
    if not columns:
        return pd.DataFrame(index=data.index)
    frame = pd.DataFrame({channel: data[col] for channel, col in columns.items()})
    before = len(frame)
    frame = frame.dropna()
    dropped = before - len(frame)
    if dropped:
        log.debug("Dropped %d of %d rows with missing values in %s", dropped, before, list(columns.values()))
    for channel in frame.columns:
        if ptypes.is_object_dtype(frame[channel]) and _holds_numbers(frame[channel]):
            frame = frame.assign(**{channel: pd.to_numeric(frame[channel])})
    return frame


def is_categorical(series: pd.Series) -> bool:
    """True for string, boolean, categorical and other non-numeric columns."""
    if isinstance(series.dtype, pd.CategoricalDtype):
        return True
    if ptypes.is_bool_dtype(series):
        return True
    if ptypes.is_numeric_dtype(series) or ptypes.is_datetime64_any_dtype(series):
        return False
    if ptypes.is_object_dtype(series) and _holds_numbers(series):
        return False
    return True


def levels(series: pd.Series) -> list:
    """Category levels in display order (declared order for categoricals)."""
    if isinstance(series.dtype, pd.CategoricalDtype):
        present = set(series.dropna().unique())
        return [c for c in series.cat.categories if c in present]
    return list(pd.unique(series.dropna()))


def clean_column_names(data: pd.DataFrame) -> pd.DataFrame:
    """Return a copy with snake_case column names (``"Sepal Length"`` -> ``sepal_length``)."""
    renamed = {}
    for col in data.columns:
        name = _CAMEL.sub("_", str(col).strip())
        name = _NON_WORD.sub("_", name).strip("_").lower()
        renamed[col] = name or "column"
    seen: Dict[str, int] = {}
    for col, name in list(renamed.items()):
        count = seen.get(name, 0)
        seen[name] = count + 1
        if count:
            renamed[col] = f"{name}_{count + 1}"
    return data.rename(columns=renamed)
