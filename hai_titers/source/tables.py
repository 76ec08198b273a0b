from __future__ import annotations

import logging

import pandas as pd
from lxml import etree
from lxml import html as LH  # type: ignore

"""Table Locator.

Parses every <table> in the document into a raw table (list of rows, each a
list of cell strings, ragged as in the HTML) and picks the target by
position. Cell text is kept as-is apart from whitespace collapsing, so
subject ids such as "014" keep their leading zeros.
"""

__all__ = [
    "ExtractionError",
    "RawTable",
    "read_html_tables",
    "locate_table",
    "raw_table_frame",
]

logger = logging.getLogger(__name__)

RawTable = list[list[str]]


class ExtractionError(Exception):
    """Raised when the target table is not present in the document."""


def _cell_text(cell) -> str:
    return " ".join(cell.text_content().split())


def _table_rows(table_el) -> RawTable:
    rows: RawTable = []
    for tr in table_el.xpath(".//tr"):
        # 入れ子テーブルの行は外側テーブルに含めない
        if next(tr.iterancestors("table"), None) is not table_el:
            continue
        rows.append([_cell_text(c) for c in tr.xpath("./th|./td")])
    return rows


def read_html_tables(html: bytes | str) -> list[RawTable]:
    """Return every table in the document as a raw table, in document order."""
    if not html:
        return []
    try:
        doc = LH.fromstring(html)
    except (etree.ParserError, ValueError) as e:
        raise ExtractionError(f"document could not be parsed as HTML: {e}") from e
    return [_table_rows(t) for t in doc.xpath("//table")]


def locate_table(html: bytes | str, table_index: int) -> RawTable:
    """Select the table at ``table_index`` among all tables in the document.

    Raises:
        ExtractionError: no tables at all, or the index is out of range.
    """
    tables = read_html_tables(html)
    if not tables:
        raise ExtractionError("no tables found in source document")
    if not 0 <= table_index < len(tables):
        raise ExtractionError(
            f"table index {table_index} out of range: document has {len(tables)} table(s)"
        )
    table = tables[table_index]
    logger.info(f"locate: table={table_index} rows={len(table)} tables_found={len(tables)}")
    return table


def raw_table_frame(table: RawTable) -> pd.DataFrame:
    """View a raw table as a DataFrame (ragged rows padded with None).

    The frame shape is (rows, widest row), as shown by ``--inspect-data``.
    """
    return pd.DataFrame(table, dtype=object)
