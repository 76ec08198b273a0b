from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pandas as pd

"""Cleaned record model and the fixed column layout of the subject table.

The publication's table has seven data columns; the group label is not a
column in the source but is recovered from the "Group X" section rows.
"""

__all__ = [
    "ID",
    "AGE",
    "GENDER",
    "DOSE",
    "HAI_D0",
    "HAI_D21",
    "HAI_D42",
    "GROUP",
    "LOG2_D0",
    "LOG2_D21",
    "TITER_INCREASE",
    "ELDERLY",
    "KEY",
    "DATA_COLUMNS",
    "RECORD_COLUMNS",
    "TITER_COLUMNS",
    "TiterRecord",
    "records_from_frame",
]

ID = "id"
AGE = "age"
GENDER = "gender"
DOSE = "dose"
HAI_D0 = "hai_d0"
HAI_D21 = "hai_d21"
HAI_D42 = "hai_d42"
GROUP = "group"

LOG2_D0 = "log2hai_d0"
LOG2_D21 = "log2hai_d21"
TITER_INCREASE = "titerincrease"
ELDERLY = "elderly"
KEY = "key"

# Column order of a data row in the source table
DATA_COLUMNS: list[str] = [ID, AGE, GENDER, DOSE, HAI_D0, HAI_D21, HAI_D42]
RECORD_COLUMNS: list[str] = DATA_COLUMNS + [GROUP]
TITER_COLUMNS: list[str] = [HAI_D0, HAI_D21, HAI_D42]


def _optional_float(value: Any) -> float | None:
    if value is None or pd.isna(value):
        return None
    return float(value)


def _optional_str(value: Any) -> str | None:
    if value is None or pd.isna(value):
        return None
    return str(value)


@dataclass(frozen=True)
class TiterRecord:
    """One study subject after normalization.

    Titers are reciprocal dilutions; ``None`` means no sample.
    Empty text cells (gender, dose) are also ``None``, never "nan".
    Derived fields are ``None`` until metrics have been attached.
    """
    id: str | None
    age: int
    gender: str | None
    dose: str | None
    hai_d0: float | None
    hai_d21: float | None
    hai_d42: float | None
    group: str | None
    log2hai_d0: float | None = None
    log2hai_d21: float | None = None
    titerincrease: float | None = None
    elderly: bool | None = None
    key: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> TiterRecord:
        elderly = row.get(ELDERLY)
        return cls(
            id=_optional_str(row[ID]),
            age=int(row[AGE]),
            gender=_optional_str(row[GENDER]),
            dose=_optional_str(row[DOSE]),
            hai_d0=_optional_float(row[HAI_D0]),
            hai_d21=_optional_float(row[HAI_D21]),
            hai_d42=_optional_float(row[HAI_D42]),
            group=_optional_str(row[GROUP]),
            log2hai_d0=_optional_float(row.get(LOG2_D0)),
            log2hai_d21=_optional_float(row.get(LOG2_D21)),
            titerincrease=_optional_float(row.get(TITER_INCREASE)),
            elderly=None if elderly is None else bool(elderly),
            key=_optional_str(row.get(KEY)),
        )


def records_from_frame(df: pd.DataFrame) -> list[TiterRecord]:
    """Convert a normalized (optionally metric-enriched) frame to records."""
    return [TiterRecord.from_row(row) for row in df.to_dict(orient="records")]
