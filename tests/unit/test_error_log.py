from __future__ import annotations

import json
import re
from pathlib import Path

from hai_titers.logging.error_log import ErrorLogBuffer
from hai_titers.models.error_record import ErrorRecord

"""Unit tests for ErrorRecord and the JSON Lines error log buffer."""


def test_error_record_json_line_has_fixed_keys():
    rec = ErrorRecord.create(
        stage="locate",
        error_type="EXTRACTION_ERROR",
        message="no tables found in source document",
        source="https://doi.org/10.0000/x",
    )
    data = json.loads(rec.to_json_line())
    assert set(data.keys()) == {"timestamp", "stage", "error_type", "message", "source"}
    assert data["timestamp"].endswith("Z")
    assert data["stage"] == "locate"
    assert data["error_type"] == "EXTRACTION_ERROR"


def test_error_record_non_ascii_preserved():
    rec = ErrorRecord.create(stage="normalize", error_type="VALUE_ERROR", message="値 '15 µg'")
    assert "µg" in rec.to_json_line()
    assert rec.source == ""


def test_empty_buffer_writes_nothing(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_flush_appends_json_lines(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    buf.append(ErrorRecord.create(stage="fetch", error_type="FETCH_ERROR", message="boom"))
    buf.append(ErrorRecord.create(stage="config", error_type="CONFIG_ERROR", message="bad"))
    path = buf.flush()
    assert path is not None
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(l)["stage"] for l in lines] == ["fetch", "config"]
    # flush 後はバッファが空
    assert len(buf) == 0
