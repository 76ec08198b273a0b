from __future__ import annotations

from ..models.analysis_result import AnalysisResult, TrendFit

"""SUMMARY / trend line rendering.

Format:
SUMMARY subjects={n} groups={g} missing_titers={m} elderly={e} elapsed_sec={s} plot={path|-}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if abs(value) < 0.01:
        # 指数表記を避ける
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.4f}".rstrip("0").rstrip(".")


def render_trend_line(fit: TrendFit) -> str:
    return (
        f"trend elderly={str(fit.elderly).lower()} n={fit.n} "
        f"slope={_format_number(fit.slope)} intercept={_format_number(fit.intercept)}"
    )


def render_summary_line(result: AnalysisResult) -> str:
    """Render the SUMMARY line for a finished run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2023, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = AnalysisResult(
        ...     source_url="https://doi.org/x", subjects=40, groups=2, missing_titers=3,
        ...     elderly_subjects=12, trends=[], plot_path=None,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY subjects=40 groups=2 missing_titers=3 elderly=12 elapsed_sec=2 plot=-'
    """
    plot = str(result.plot_path) if result.plot_path is not None else "-"
    return (
        f"SUMMARY subjects={result.subjects} "
        f"groups={result.groups} "
        f"missing_titers={result.missing_titers} "
        f"elderly={result.elderly_subjects} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"plot={plot}"
    )
