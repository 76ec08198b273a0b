from __future__ import annotations

import math

import numpy as np
import pandas as pd

from hai_titers.services.metrics import add_derived_metrics, log2_titer


def _cleaned() -> pd.DataFrame:
    df = pd.DataFrame(
        {
            "id": ["001", "014", "003", "020"],
            "age": [64, 65, 70, 30],
            "gender": ["F", "M", "F", "M"],
            "dose": ["15", "30", "15", "30"],
            "hai_d0": [1.0, 10.0, np.nan, 8.0],
            "hai_d21": [40.0, 320.0, 80.0, np.nan],
            "hai_d42": [20.0, 160.0, 40.0, 16.0],
            "group": ["A", "B", "A", "B"],
        }
    )
    for col in ("gender", "dose", "group"):
        df[col] = df[col].astype("category")
    return df


def test_log2_of_floor_value_is_zero():
    assert log2_titer(pd.Series([1.0]))[0] == 0.0


def test_log2_missing_propagates():
    out = log2_titer(pd.Series([np.nan, 4.0]))
    assert math.isnan(out[0])
    assert out[1] == 2.0


def test_titer_increase_is_log_difference():
    out = add_derived_metrics(_cleaned(), elderly_age=65)
    assert out.loc[0, "titerincrease"] == np.log2(40.0)
    assert out.loc[1, "titerincrease"] == np.log2(320.0) - np.log2(10.0)
    # どちらかが欠損なら結果も欠損 (0 ではない)
    assert math.isnan(out.loc[2, "titerincrease"])
    assert math.isnan(out.loc[3, "titerincrease"])


def test_elderly_boundary_inclusive():
    out = add_derived_metrics(_cleaned(), elderly_age=65)
    assert out["elderly"].tolist() == [False, True, True, False]
    assert out["elderly"].dtype == bool


def test_composite_key():
    out = add_derived_metrics(_cleaned(), elderly_age=65)
    assert out.loc[1, "key"] == "B_014"
    assert out["key"].tolist() == ["A_001", "B_014", "A_003", "B_020"]


def test_input_frame_not_mutated():
    df = _cleaned()
    before = list(df.columns)
    add_derived_metrics(df, elderly_age=65)
    assert list(df.columns) == before


def test_zero_titer_gives_negative_infinity_without_error():
    out = log2_titer(pd.Series([0.0]))
    assert np.isneginf(out[0])
