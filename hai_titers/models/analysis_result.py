from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import pandas as pd

"""Result models for one analysis run."""


@dataclass(frozen=True)
class TrendFit:
    """Least-squares line of titer increase on baseline log2 titer for one category."""
    elderly: bool
    n: int  # complete (x, y) points used
    slope: float
    intercept: float


@dataclass(frozen=True)
class AnalysisResult:
    """Aggregated outcome of run_analysis() used for the SUMMARY line."""
    source_url: str
    subjects: int  # cleaned records
    groups: int  # distinct recovered group labels
    missing_titers: int  # titer cells that are missing after normalization
    elderly_subjects: int
    trends: list[TrendFit]
    plot_path: Path | None  # None when rendering was skipped
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    frame: pd.DataFrame = field(repr=False, compare=False, default_factory=pd.DataFrame)
