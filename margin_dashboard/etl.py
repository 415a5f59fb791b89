"""
Raw data loading
================

Turns the "Raw Data" table (header row + data rows) into typed RawRecords.

- Headers are trimmed and matched exactly.
- Rows with a blank Year or Quarter are skipped (they cannot be aggregated).
- Non-numeric Revenue / margin cells count as 0 so one dirty row never
  aborts the dashboard.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .config import (
    DEFAULT_MARGIN_COLUMN,
    DEFAULT_PRODUCT_COLUMN,
    QUARTER_COLUMN,
    REVENUE_COLUMN,
    YEAR_COLUMN,
)
from .errors import DashboardDataError, EmptyDatasetError, SchemaError
from .periods import QUARTERS, Period

logger = logging.getLogger(__name__)

TableLike = Union[pd.DataFrame, Sequence[Sequence[Any]]]


@dataclass(frozen=True)
class RawRecord:
    product: str
    year: int
    quarter: str  # Q1..Q4
    revenue: float
    margin_amount: float

    @property
    def period(self) -> Period:
        return Period(self.year, QUARTERS.index(self.quarter) + 1)

    @property
    def period_label(self) -> str:
        return f"{self.year} {self.quarter}"


@dataclass
class LoadReport:
    raw_rows: int
    loaded_rows: int
    skipped_blank_key: int = 0
    skipped_bad_key: int = 0
    notes: List[str] = field(default_factory=list)


# =============================================================================
# HELPERS
# =============================================================================

def _as_str(x) -> str:
    return "" if x is None or (not isinstance(x, str) and pd.isna(x)) else str(x).strip()

def _as_float(x) -> float:
    if x is None or (not isinstance(x, str) and pd.isna(x)):
        return 0.0
    if isinstance(x, (int, float, np.number)):
        v = float(x)
    else:
        s = str(x).strip()
        if s == "":
            return 0.0
        # remove currency commas
        s = s.replace("$", "").replace(",", "")
        try:
            v = float(s)
        except ValueError:
            return 0.0
    # "nan" / "inf" text parses but is not a usable amount
    return v if np.isfinite(v) else 0.0

def _as_year(s: str) -> Optional[int]:
    try:
        f = float(s)
    except ValueError:
        return None
    if not np.isfinite(f) or not f.is_integer():
        return None
    return int(f)


def _to_frame(table: TableLike) -> pd.DataFrame:
    if isinstance(table, pd.DataFrame):
        df = table.copy()
    else:
        rows = [list(r) for r in table] if table is not None else []
        if not rows:
            raise EmptyDatasetError()
        header, body = rows[0], rows[1:]
        width = len(header)
        df = pd.DataFrame([(r + [None] * width)[:width] for r in body], columns=header)

    df.columns = [_as_str(c) for c in df.columns]
    # first occurrence of a repeated header wins
    return df.loc[:, ~df.columns.duplicated()]


# =============================================================================
# LOADING
# =============================================================================

def parse_records(
    table: TableLike,
    *,
    product_column: str = DEFAULT_PRODUCT_COLUMN,
    margin_column: str = DEFAULT_MARGIN_COLUMN,
) -> Tuple[List[RawRecord], LoadReport]:
    """
    Validate and type the raw table. Returns records + reconciliation counts.
    """
    df = _to_frame(table)
    if len(df) < 1:
        raise EmptyDatasetError()

    required = [product_column, YEAR_COLUMN, QUARTER_COLUMN, REVENUE_COLUMN, margin_column]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SchemaError(missing)

    products = df[product_column].map(_as_str)
    years = df[YEAR_COLUMN].map(_as_str)
    quarters = df[QUARTER_COLUMN].map(_as_str)
    revenue = df[REVENUE_COLUMN].map(_as_float)
    margin = df[margin_column].map(_as_float)

    blank_key = (years == "") | (quarters == "")
    year_num = years.map(lambda s: _as_year(s) if s else None)
    bad_key = ~blank_key & (year_num.isna() | ~quarters.isin(QUARTERS))
    keep = ~blank_key & ~bad_key

    notes: List[str] = []
    n_bad = int(bad_key.sum())
    if n_bad:
        sample = [f"{y!r}/{q!r}" for y, q in zip(years[bad_key].head(3), quarters[bad_key].head(3))]
        notes.append(f"Skipped {n_bad} rows with unparseable Year/Quarter (e.g. {', '.join(sample)})")
        logger.warning("Skipped %d raw rows with unparseable Year/Quarter", n_bad)

    records = [
        RawRecord(product=p, year=int(y), quarter=q, revenue=r, margin_amount=m)
        for p, y, q, r, m in zip(
            products[keep], year_num[keep], quarters[keep], revenue[keep], margin[keep]
        )
    ]

    rep = LoadReport(
        raw_rows=len(df),
        loaded_rows=len(records),
        skipped_blank_key=int(blank_key.sum()),
        skipped_bad_key=n_bad,
        notes=notes,
    )
    logger.info(
        "Loaded %d of %d raw rows (%d blank keys skipped)",
        rep.loaded_rows, rep.raw_rows, rep.skipped_blank_key,
    )
    return records, rep


def load_records(
    table: TableLike,
    *,
    product_column: str = DEFAULT_PRODUCT_COLUMN,
    margin_column: str = DEFAULT_MARGIN_COLUMN,
) -> List[RawRecord]:
    records, _ = parse_records(table, product_column=product_column, margin_column=margin_column)
    return records


def load_workbook_table(file_source, sheet: str = "Raw Data") -> pd.DataFrame:
    """Read the raw data sheet of an Excel workbook."""
    try:
        xls = pd.ExcelFile(file_source)
    except Exception as e:
        raise DashboardDataError(f"Invalid Excel file: {e}") from e

    if sheet not in xls.sheet_names:
        raise DashboardDataError(f"Missing required sheet: {sheet}")
    return pd.read_excel(xls, sheet)
