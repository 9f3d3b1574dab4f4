import numpy as np
import pandas as pd
import pytest

from figurekit.errors import RenderError
from figurekit.hygiene import check_frame, clean_column_names, frame_for_layer, is_categorical, levels
from figurekit.spec import ChannelMapping


def test_missing_column_names_channel_and_available_columns():
    df = pd.DataFrame({"a": [1], "b": [2]})
    with pytest.raises(RenderError) as excinfo:
        check_frame(df, ChannelMapping(x="a", color="species"))
    msg = str(excinfo.value)
    assert "color='species'" in msg
    assert "a, b" in msg


def test_frame_for_layer_drops_incomplete_rows_and_renames_by_channel():
    df = pd.DataFrame({"t": [0.0, 1.0, 2.0, 3.0], "v": [1.0, np.nan, 3.0, 4.0], "unused": [None] * 4})
    frame = frame_for_layer(df, ChannelMapping(x="t", y="v"))
    assert list(frame.columns) == ["x", "y"]
    assert frame["x"].tolist() == [0.0, 2.0, 3.0]
    # caller's frame untouched
    assert len(df) == 4


def test_is_categorical():
    assert is_categorical(pd.Series(["a", "b"]))
    assert is_categorical(pd.Series([True, False]))
    assert is_categorical(pd.Series(["lo", "hi"], dtype="category"))
    assert not is_categorical(pd.Series([1, 2]))
    assert not is_categorical(pd.Series([1, 2, 3], dtype=object))
    assert not is_categorical(pd.Series([1.5, None, 2], dtype=object))
    assert is_categorical(pd.Series(["1", "2"], dtype=object))
    assert is_categorical(pd.Series([True, False], dtype=object))
    assert not is_categorical(pd.Series(pd.to_datetime(["2024-01-01", "2024-01-02"])))


def test_levels_follow_declared_category_order():
    s = pd.Series(pd.Categorical(["hi", "lo", "hi"], categories=["lo", "mid", "hi"]))
    assert levels(s) == ["lo", "hi"]
    assert levels(pd.Series(["b", "a", "b"])) == ["b", "a"]


def test_clean_column_names():
    df = pd.DataFrame(columns=["Sepal Length", "petalWidth", "  Species ", "sepal-length"])
    cleaned = clean_column_names(df)
    assert list(cleaned.columns) == ["sepal_length", "petal_width", "species", "sepal_length_2"]


def test_frame_for_layer_converts_numeric_object_columns():
    df = pd.DataFrame({"t": pd.Series([0, 1, 2], dtype=object), "v": [1.0, 2.0, 3.0]})
    frame = frame_for_layer(df, ChannelMapping(x="t", y="v"))
    assert pd.api.types.is_numeric_dtype(frame["x"])
    assert frame["x"].tolist() == [0, 1, 2]
