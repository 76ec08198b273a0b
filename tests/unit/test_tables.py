from __future__ import annotations

import pandas as pd
import pytest

from hai_titers.source.tables import ExtractionError, locate_table, raw_table_frame, read_html_tables


def test_read_html_tables_finds_all_tables_in_order(sample_html: str):
    tables = read_html_tables(sample_html)
    assert len(tables) == 2
    assert tables[1] == [["Unrelated", "table"], ["a", "b"]]


def test_locate_first_table_keeps_raw_rows(sample_html: str):
    table = locate_table(sample_html.encode("utf-8"), 0)
    # thead 1 行 + group 2 行 + data 7 行
    assert len(table) == 10
    assert table[0][0] == "Subject no."
    assert table[1] == ["Group A"]
    # 先頭ゼロ・センチネル文字列は生のまま
    assert table[2] == ["001", "34", "F", "15 µg", "<4", "40", "20"]
    assert table[8][6] == ""


def test_locate_table_index_out_of_range(sample_html: str):
    with pytest.raises(ExtractionError, match="out of range"):
        locate_table(sample_html, 2)


def test_locate_table_no_tables():
    with pytest.raises(ExtractionError, match="no tables"):
        locate_table("<html><body><p>moved</p></body></html>", 0)


def test_locate_table_empty_document():
    with pytest.raises(ExtractionError):
        locate_table(b"", 0)


def test_nested_table_rows_stay_with_inner_table():
    html = """<table>
      <tr><td>outer</td><td><table><tr><td>inner</td></tr></table></td></tr>
    </table>"""
    tables = read_html_tables(html)
    assert len(tables) == 2
    assert len(tables[0]) == 1
    assert tables[0][0][0] == "outer"
    assert tables[1] == [["inner"]]


def test_cell_whitespace_is_collapsed():
    table = locate_table("<table><tr><td>  Group\n   A </td></tr></table>", 0)
    assert table == [["Group A"]]


def test_raw_table_frame_pads_ragged_rows(sample_html: str):
    df = raw_table_frame(locate_table(sample_html, 0))
    assert df.shape == (10, 7)
    assert df.iloc[1, 0] == "Group A"
    assert pd.isna(df.iloc[1, 1])
