from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

import numpy as np
import pandas as pd

from ..models.titer_record import AGE, DOSE, GENDER, GROUP, ID, TITER_COLUMNS

"""Value Normalizer.

Titer cells are reciprocal dilutions written as text, with two sentinels:
"<4" (below the detection limit, recorded as the floor value 1 so that
log2 gives 0) and "NS" (no sample, missing). Order per cell:

1. floor sentinel -> its numeric value
2. missing sentinel / empty cell -> NaN
3. anything else must parse as a non-negative number (TiterValueError otherwise)
"""

__all__ = [
    "TiterValueError",
    "normalize_titer",
    "normalize_records",
]

logger = logging.getLogger(__name__)


class TiterValueError(ValueError):
    """Raised when a cell is neither a recognised sentinel nor a valid number."""


def normalize_titer(
    values: pd.Series,
    floor_sentinels: Mapping[str, float],
    missing_sentinels: Iterable[str],
) -> pd.Series:
    """Map sentinels and coerce one titer column to float64 (NaN = missing)."""
    missing = set(missing_sentinels)

    def _map(cell):
        if cell is None or (not isinstance(cell, str) and pd.isna(cell)):
            return np.nan
        text = str(cell).strip()
        if text in floor_sentinels:
            return floor_sentinels[text]
        if text in missing or text == "":
            return np.nan
        return text

    mapped = values.map(_map)
    try:
        numeric = pd.to_numeric(mapped, errors="raise")
    except (ValueError, TypeError) as e:
        raise TiterValueError(f"column '{values.name}': {e}") from e
    numeric = numeric.astype("float64")
    # to_numeric は "inf" / "Infinity" を数値として通す
    nonfinite = ~np.isfinite(numeric) & numeric.notna()
    if nonfinite.any():
        bad = values[nonfinite].tolist()
        raise TiterValueError(f"column '{values.name}': non-finite titer value(s) {bad}")
    negative = numeric < 0
    if negative.any():
        bad = values[negative].tolist()
        raise TiterValueError(f"column '{values.name}': negative titer value(s) {bad}")
    return numeric


def _parse_age(values: pd.Series) -> pd.Series:
    stripped = values.map(lambda v: v.strip() if isinstance(v, str) else v)
    try:
        numeric = pd.to_numeric(stripped, errors="raise")
    except (ValueError, TypeError) as e:
        raise TiterValueError(f"column '{AGE}': {e}") from e
    if numeric.isna().any() or (numeric != numeric.round()).any():
        raise TiterValueError(f"column '{AGE}': ages must be whole numbers, got {values.tolist()}")
    return numeric.astype("int64")


def normalize_records(
    df: pd.DataFrame,
    floor_sentinels: Mapping[str, float],
    missing_sentinels: Iterable[str],
) -> pd.DataFrame:
    """Return a new frame with numeric titers, integer age and categorical labels.

    Raises:
        TiterValueError: on unparseable titer or age content (not recovered).
    """
    missing_sentinels = tuple(missing_sentinels)
    out = df.copy()
    out[ID] = out[ID].astype(str)
    out[AGE] = _parse_age(out[AGE])
    for col in (GENDER, DOSE, GROUP):
        out[col] = out[col].astype("category")
    for col in TITER_COLUMNS:
        out[col] = normalize_titer(df[col], floor_sentinels, missing_sentinels)

    missing_count = int(out[TITER_COLUMNS].isna().sum().sum())
    logger.debug(f"normalize: rows={len(out)} missing_titers={missing_count}")
    return out
