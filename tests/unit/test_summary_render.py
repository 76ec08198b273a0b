from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path

from hai_titers.models.analysis_result import AnalysisResult, TrendFit
from hai_titers.services.summary import render_summary_line, render_trend_line

"""Unit tests for SUMMARY / trend line rendering."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+subjects=([0-9]+)\s+groups=([0-9]+)\s+missing_titers=([0-9]+)\s+"
    r"elderly=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)\s+plot=(\S+)$"
)


def _result(elapsed: float, plot: Path | None) -> AnalysisResult:
    start = datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
    return AnalysisResult(
        source_url="https://doi.org/10.0000/x",
        subjects=7,
        groups=2,
        missing_titers=3,
        elderly_subjects=4,
        trends=[],
        plot_path=plot,
        start_time=start,
        end_time=start,
        elapsed_seconds=elapsed,
    )


def test_render_summary_line_matches_contract():
    line = render_summary_line(_result(2.0, Path("figures/plot.png")))
    match = SUMMARY_PATTERN.match(line)
    assert match, f"SUMMARY line should match regex: {line}"
    assert match.group(1) == "7"
    assert match.group(2) == "2"
    assert match.group(3) == "3"
    assert match.group(4) == "4"
    assert match.group(5) == "2"  # 整数は小数点なし
    assert match.group(6) == str(Path("figures/plot.png"))


def test_render_summary_line_without_plot():
    line = render_summary_line(_result(0.0, None))
    assert line.endswith("elapsed_sec=0 plot=-")


def test_small_elapsed_not_scientific():
    line = render_summary_line(_result(0.000123, None))
    assert "elapsed_sec=0.000123" in line
    assert "e-" not in line


def test_render_trend_line():
    fit = TrendFit(elderly=True, n=12, slope=-0.75, intercept=4.123456)
    assert render_trend_line(fit) == "trend elderly=true n=12 slope=-0.75 intercept=4.1235"
