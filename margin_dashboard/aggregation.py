"""
Aggregation
===========

Grouped sums of revenue and margin amount over raw records.

Keys are exact matches: trimmed, case-sensitive product name and the
canonical "YYYY Qn" period label. Empty groups sum to 0.
"""

from __future__ import annotations

from typing import Iterable, Union

import pandas as pd

from .etl import RawRecord
from .periods import PeriodLike, period_label

RECORD_COLUMNS = ["Product", "Year", "Quarter", "Period", "Revenue", "Margin_Amount"]

RecordsLike = Union[pd.DataFrame, Iterable[RawRecord]]


def records_frame(records: RecordsLike) -> pd.DataFrame:
    """Records as a typed frame; a frame built here is passed through unchanged."""
    if isinstance(records, pd.DataFrame):
        return records
    df = pd.DataFrame(
        [
            (r.product, r.year, r.quarter, r.period_label, r.revenue, r.margin_amount)
            for r in records
        ],
        columns=RECORD_COLUMNS,
    )
    return df.astype({"Revenue": "float64", "Margin_Amount": "float64"})


def _match(df: pd.DataFrame, product: str, period: PeriodLike) -> pd.Series:
    return (df["Product"] == str(product).strip()) & (df["Period"] == period_label(period))


# =============================================================================
# POINT SUMS
# =============================================================================

def sum_revenue(records: RecordsLike, product: str, period: PeriodLike) -> float:
    df = records_frame(records)
    return float(df.loc[_match(df, product, period), "Revenue"].sum())


def sum_margin(records: RecordsLike, product: str, period: PeriodLike) -> float:
    df = records_frame(records)
    return float(df.loc[_match(df, product, period), "Margin_Amount"].sum())


def sum_revenue_by_period(records: RecordsLike, period: PeriodLike) -> float:
    """Revenue across every product for one period."""
    df = records_frame(records)
    return float(df.loc[df["Period"] == period_label(period), "Revenue"].sum())


# =============================================================================
# GROUPED SUMS
# =============================================================================

def aggregate_by_product_period(records: RecordsLike) -> pd.DataFrame:
    """One row per (Product, Period) with summed Revenue and Margin_Amount."""
    df = records_frame(records)
    return (
        df.groupby(["Product", "Period"], sort=False)
        .agg({"Revenue": "sum", "Margin_Amount": "sum"})
        .reset_index()
    )


def aggregate_by_period(records: RecordsLike) -> pd.Series:
    """Revenue summed per period label, ignoring product."""
    df = records_frame(records)
    return df.groupby("Period", sort=False)["Revenue"].sum()
