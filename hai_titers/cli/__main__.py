from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from hai_titers.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from hai_titers.logging.error_log import ErrorLogBuffer
from hai_titers.logging.init import enable_debug, log_summary, setup_logging
from hai_titers.models.error_record import ErrorRecord
from hai_titers.models.titer_record import records_from_frame
from hai_titers.services.normalize import TiterValueError
from hai_titers.services.pipeline import clean_table, run_analysis
from hai_titers.services.reshape import SchemaError
from hai_titers.services.summary import render_summary_line
from hai_titers.source.fetcher import FetchError, fetch_html
from hai_titers.source.tables import ExtractionError, locate_table, raw_table_frame

"""CLI entrypoint.

Flow:
- Load .env (proxy / CA bundle for requests)
- Load config/analysis.yml
- run_analysis(): fetch -> locate -> reshape -> normalize -> derive -> render
- Print SUMMARY line

Any stage error is fatal: it is logged, written to logs/errors-*.log and
the process exits with EXIT_FATAL.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

# 例外型 -> (stage, error_type)
_STAGE_ERRORS: dict[type[Exception], tuple[str, str]] = {
    FetchError: ("fetch", "FETCH_ERROR"),
    ExtractionError: ("locate", "EXTRACTION_ERROR"),
    SchemaError: ("reshape", "SCHEMA_ERROR"),
    TiterValueError: ("normalize", "VALUE_ERROR"),
}


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv (existing variables are overridden)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="HAI titer table -> cleaned dataset -> titer increase plot")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config YAML path")
    p.add_argument("--output", type=Path, default=None, help="Plot path (overrides config 'output')")
    p.add_argument("--export-csv", type=Path, default=None, help="Also write the final records to CSV")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print the cleaned table's first rows then exit")
    return p.parse_args(argv)


def _record_fatal(stage: str, error_type: str, message: str, source: str) -> None:
    buffer = ErrorLogBuffer()
    buffer.append(ErrorRecord.create(stage=stage, error_type=error_type, message=message, source=source))
    buffer.flush()


def _inspect_data(cfg) -> int:
    html = fetch_html(cfg.source_url, cfg.request)
    table = locate_table(html, cfg.table_index)
    cleaned = clean_table(cfg, table)
    print(f"SOURCE: {cfg.source_url}")
    print(f"  table={cfg.table_index} shape={raw_table_frame(table).shape}")
    print(f"  records={len(cleaned)} cols={list(cleaned.columns)}")
    for rec in records_from_frame(cleaned.head(3)):
        print(f"    {rec}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # [] が渡された場合に sys.argv[1:] (pytest の引数) を拾わないよう None のみ判定
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        enable_debug(logger)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        _record_fatal("config", "CONFIG_ERROR", str(e), source="")
        return EXIT_FATAL

    logger.info(f"Analysing table {cfg.table_index} of: {cfg.source_url}")

    try:
        if args.inspect_data:
            return _inspect_data(cfg)
        result = run_analysis(cfg, fetch=fetch_html, output=args.output)
    except tuple(_STAGE_ERRORS) as e:
        stage, error_type = next(v for k, v in _STAGE_ERRORS.items() if isinstance(e, k))
        logger.error(f"{stage}: {e}")
        _record_fatal(stage, error_type, str(e), source=cfg.source_url)
        return EXIT_FATAL

    if args.export_csv is not None:
        args.export_csv.parent.mkdir(parents=True, exist_ok=True)
        result.frame.to_csv(args.export_csv, index=False)
        logger.info(f"export: {args.export_csv} rows={len(result.frame)}")

    # log_summary が "SUMMARY " を付与するため先頭を除去
    summary_line = render_summary_line(result)
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
