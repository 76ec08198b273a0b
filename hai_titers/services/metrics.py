from __future__ import annotations

import numpy as np
import pandas as pd

from ..models.titer_record import (
    AGE,
    ELDERLY,
    GROUP,
    HAI_D0,
    HAI_D21,
    ID,
    KEY,
    LOG2_D0,
    LOG2_D21,
    TITER_INCREASE,
)

"""Derived-Metric Calculator."""

__all__ = [
    "log2_titer",
    "add_derived_metrics",
]


def log2_titer(values: pd.Series) -> pd.Series:
    """Base-2 log of a titer column; missing stays missing."""
    # 0 -> -inf (警告は抑止)、NaN はそのまま NaN
    with np.errstate(divide="ignore"):
        return np.log2(values.astype("float64"))


def add_derived_metrics(df: pd.DataFrame, elderly_age: int) -> pd.DataFrame:
    """Return a copy of ``df`` with log2 titers, titer increase, elderly flag and key.

    titerincrease = log2(hai_d21) - log2(hai_d0), NaN when either titer is missing.
    """
    out = df.copy()
    out[LOG2_D0] = log2_titer(out[HAI_D0])
    out[LOG2_D21] = log2_titer(out[HAI_D21])
    out[TITER_INCREASE] = out[LOG2_D21] - out[LOG2_D0]
    out[ELDERLY] = (out[AGE] >= elderly_age).astype(bool)
    out[KEY] = out[GROUP].astype(str) + "_" + out[ID].astype(str)
    return out
