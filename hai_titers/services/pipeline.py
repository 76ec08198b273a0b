from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pandas as pd

from ..config.loader import AnalysisConfig, RequestConfig
from ..models.analysis_result import AnalysisResult
from ..models.titer_record import ELDERLY, GROUP, TITER_COLUMNS
from ..source.fetcher import fetch_html
from ..source.tables import RawTable, locate_table
from .metrics import add_derived_metrics
from .normalize import normalize_records
from .render import fit_trends, render_titer_plot
from .reshape import reshape_table
from .summary import render_trend_line

"""Analysis orchestration.

fetch -> locate -> reshape -> normalize -> derive -> render, strictly in
that order and exactly once. Stage errors (FetchError, ExtractionError,
SchemaError, TiterValueError) are not caught here.
"""

__all__ = [
    "Fetch",
    "clean_table",
    "run_analysis",
]

logger = logging.getLogger(__name__)

Fetch = Callable[[str, RequestConfig], bytes]


def clean_table(config: AnalysisConfig, table: RawTable) -> pd.DataFrame:
    """Reshape and normalize: located raw table in, cleaned records out."""
    reshaped = reshape_table(
        table,
        header_row_index=config.header_row_index,
        group_header_pattern=config.group_header_pattern,
        group_char_offset=config.group_char_offset,
    )
    groups = sorted(g for g in reshaped[GROUP].unique() if g)
    logger.info(f"reshape: records={len(reshaped)} groups={','.join(groups) or '-'}")

    cleaned = normalize_records(reshaped, config.floor_sentinels, config.missing_sentinels)
    logger.info(f"normalize: missing_titers={int(cleaned[TITER_COLUMNS].isna().sum().sum())}")
    return cleaned


def run_analysis(
    config: AnalysisConfig,
    fetch: Fetch = fetch_html,
    output: Path | None = None,
    render: bool = True,
) -> AnalysisResult:
    """Run the whole analysis once and return its result.

    Args:
        config: Analysis configuration
        fetch: Callable returning the page body for a URL (tests pass a fake)
        output: Plot path; defaults to ``config.output``
        render: False skips the plot (trends are still fitted)
    """
    start_time = datetime.now(UTC)

    html = fetch(config.source_url, config.request)
    logger.info(f"fetch: {config.source_url} bytes={len(html)}")

    cleaned = clean_table(config, locate_table(html, config.table_index))

    final = add_derived_metrics(cleaned, config.elderly_age)
    elderly_subjects = int(final[ELDERLY].sum())
    logger.info(f"metrics: elderly={elderly_subjects} of {len(final)}")

    trends = fit_trends(final)
    for fit in trends:
        logger.info(render_trend_line(fit))

    plot_path: Path | None = None
    if render:
        plot_path = render_titer_plot(final, output or Path(config.output), config.figure)
        logger.info(f"render: {plot_path}")

    end_time = datetime.now(UTC)
    return AnalysisResult(
        source_url=config.source_url,
        subjects=len(final),
        groups=len({g for g in final[GROUP].astype(str) if g}),
        missing_titers=int(final[TITER_COLUMNS].isna().sum().sum()),
        elderly_subjects=elderly_subjects,
        trends=trends,
        plot_path=plot_path,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        frame=final,
    )
