"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/tests/test_frames.py
--------------------------------------------------------------------------------
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from classdepth.core.errors import ConfigError, TransformError
from classdepth.utils.frames import append_columns
from classdepth.utils.fs import read_table, write_table
from classdepth.utils.text import format_names


def test_append_columns_keeps_index_and_order() -> None:
    df = pd.DataFrame({"a": [1, 2, 3]}, index=["x", "y", "z"])
    out = append_columns(df, {"b": np.array([0.1, 0.2, 0.3]), "c": np.zeros(3)})
    assert list(out.columns) == ["a", "b", "c"]
    assert list(out.index) == ["x", "y", "z"]
    assert out.loc["y", "b"] == pytest.approx(0.2)
    assert list(df.columns) == ["a"]


def test_append_columns_rejects_collisions_and_bad_lengths() -> None:
    df = pd.DataFrame({"a": [1, 2]})
    with pytest.raises(TransformError, match="'a'"):
        append_columns(df, {"a": np.zeros(2)})
    with pytest.raises(TransformError, match="3 value"):
        append_columns(df, {"b": np.zeros(3)})


def test_append_nothing_returns_a_copy() -> None:
    df = pd.DataFrame({"a": [1, 2]})
    out = append_columns(df, {})
    assert out is not df
    pd.testing.assert_frame_equal(out, df)


@pytest.mark.parametrize(
    "names, width, expected",
    [
        (["a", "b"], 60, "a, b"),
        (["alpha", "beta", "gamma"], 12, "alpha, beta, ..."),
        (["a-very-long-column-name"], 5, "a-very-long-column-name"),
        ([], 60, ""),
    ],
)
def test_format_names(names, width, expected) -> None:
    assert format_names(names, width=width) == expected


def test_read_table_casts_categoricals(tmp_path, iris) -> None:
    path = write_table(iris, tmp_path / "iris.parquet")
    df = read_table(path, categorical=["Species", "Genus"])
    assert isinstance(df["Species"].dtype, pd.CategoricalDtype)
    assert "Genus" not in df.columns


def test_read_table_errors(tmp_path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        read_table(tmp_path / "missing.csv")
    (tmp_path / "data.xlsx").write_text("", encoding="utf-8")
    with pytest.raises(ConfigError, match="unsupported"):
        read_table(tmp_path / "data.xlsx")
