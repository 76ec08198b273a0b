from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402

from ..config.loader import FigureConfig  # noqa: E402
from ..models.analysis_result import TrendFit  # noqa: E402
from ..models.titer_record import ELDERLY, LOG2_D0, TITER_INCREASE  # noqa: E402

"""Renderer: titer increase against baseline titer, split by age category.

One scatter layer coloured by the elderly flag and one linear fit with a
95% confidence band per category. Rows missing either axis are left out
of the plot and of the fits; nothing else is validated here.
"""

__all__ = [
    "fit_trends",
    "render_titer_plot",
]

logger = logging.getLogger(__name__)

CATEGORY_LABELS = {True: "65 and older", False: "under 65"}
CATEGORY_COLORS = {True: "#d95f02", False: "#1b9e77"}


def _complete(df: pd.DataFrame) -> pd.DataFrame:
    axes = df[[LOG2_D0, TITER_INCREASE]]
    return df[np.isfinite(axes).all(axis=1)]


def fit_trends(df: pd.DataFrame) -> list[TrendFit]:
    """Least-squares line per elderly category (categories with < 2 points skipped)."""
    data = _complete(df)
    fits: list[TrendFit] = []
    for elderly in (False, True):
        sub = data[data[ELDERLY] == elderly]
        x = sub[LOG2_D0].to_numpy(dtype=float)
        y = sub[TITER_INCREASE].to_numpy(dtype=float)
        # x が全て同値だと傾きが定まらない
        if len(sub) < 2 or np.unique(x).size < 2:
            logger.debug(f"trend elderly={elderly}: not enough points (n={len(sub)})")
            continue
        slope, intercept = np.polyfit(x, y, 1)
        fits.append(TrendFit(elderly=elderly, n=len(sub), slope=float(slope), intercept=float(intercept)))
    return fits


def render_titer_plot(df: pd.DataFrame, output: Path, figure: FigureConfig | None = None) -> Path:
    """Draw the scatter/trend plot and save it to ``output``."""
    figure = figure or FigureConfig()
    data = _complete(df).copy()
    data["category"] = data[ELDERLY].map(CATEGORY_LABELS)
    palette = {CATEGORY_LABELS[k]: v for k, v in CATEGORY_COLORS.items()}

    sns.set_theme(style="whitegrid")
    fig, ax = plt.subplots(figsize=(figure.width, figure.height))
    try:
        sns.scatterplot(
            data=data,
            x=LOG2_D0,
            y=TITER_INCREASE,
            hue="category",
            hue_order=[CATEGORY_LABELS[False], CATEGORY_LABELS[True]],
            palette=palette,
            alpha=0.8,
            ax=ax,
        )
        for elderly in (False, True):
            sub = data[data[ELDERLY] == elderly]
            if len(sub) < 2:
                continue
            sns.regplot(
                data=sub,
                x=LOG2_D0,
                y=TITER_INCREASE,
                scatter=False,
                ci=95,
                color=CATEGORY_COLORS[elderly],
                ax=ax,
            )
        ax.set_xlabel("Pre-vaccination HAI titer (log2)")
        ax.set_ylabel("Titer increase, day 21 vs day 0 (log2)")
        ax.legend(title="Age")
        fig.tight_layout()

        output.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output, dpi=figure.dpi)
    finally:
        plt.close(fig)
    return output
