from __future__ import annotations

import logging
import re

import pandas as pd

from ..models.titer_record import DATA_COLUMNS, GROUP, RECORD_COLUMNS
from ..source.tables import RawTable

"""Reshaper: recover the flattened group structure of the subject table.

The publication splits subjects into sections introduced by a single-cell
row such as "Group A". Row handling, in raw-table order:

1. a row whose first cell matches the group-header pattern updates the
   current group (character at a fixed offset of that cell, "" if absent)
2. every other row inherits the current group
3. group-header rows and the embedded column-header row (by position) are
   dropped; empty cells become missing
4. the remaining rows must have exactly len(DATA_COLUMNS) cells
"""

__all__ = [
    "SchemaError",
    "GroupedRow",
    "is_group_header",
    "group_label",
    "fill_groups",
    "reshape_table",
]

logger = logging.getLogger(__name__)

# (raw position, cells, inherited group)
GroupedRow = tuple[int, list[str], str]


class SchemaError(Exception):
    """Raised when a reshaped row does not match the expected column layout."""


def is_group_header(row: list[str], pattern: re.Pattern[str]) -> bool:
    return bool(row) and pattern.match(row[0]) is not None


def group_label(cell: str, offset: int) -> str:
    # "Group A"[6] -> "A"; 識別文字が無ければ空 (既知の脆弱性、補正しない)
    return cell[offset:offset + 1].strip()


def fill_groups(table: RawTable, pattern: re.Pattern[str], offset: int) -> list[GroupedRow]:
    """Attach to each non-header row the group of the nearest preceding header.

    Group-header rows are consumed here and do not appear in the output;
    rows before the first header get group "".
    """
    current = ""
    grouped: list[GroupedRow] = []
    for position, row in enumerate(table):
        if is_group_header(row, pattern):
            current = group_label(row[0], offset)
            continue
        grouped.append((position, row, current))
    return grouped


def _missing(cell: str | None) -> str | None:
    if cell is None:
        return None
    return cell if cell.strip() != "" else None


def reshape_table(
    table: RawTable,
    *,
    header_row_index: int,
    group_header_pattern: str,
    group_char_offset: int,
) -> pd.DataFrame:
    """Turn the raw table into one row per subject with named columns.

    Values stay strings (or None); numeric coercion is the normalizer's job.

    Raises:
        SchemaError: a data row has the wrong number of cells.
    """
    pattern = re.compile(group_header_pattern)
    rows: list[list[str | None]] = []
    for position, cells, group in fill_groups(table, pattern, group_char_offset):
        if position == header_row_index:
            continue
        values = [_missing(c) for c in cells]
        # 完全な空行 (末尾の区切り行など) はスキップ
        if all(v is None for v in values):
            continue
        if len(values) != len(DATA_COLUMNS):
            raise SchemaError(
                f"row {position}: expected {len(DATA_COLUMNS)} cells, got {len(values)}: {cells!r}"
            )
        rows.append(values + [group])

    df = pd.DataFrame(rows, columns=RECORD_COLUMNS, dtype=object)
    logger.debug(f"reshape: kept={len(df)} of raw_rows={len(table)}")
    if not df.empty:
        groups = sorted(g for g in df[GROUP].unique() if g)
        logger.debug(f"reshape: groups={groups}")
    return df
