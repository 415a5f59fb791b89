"""
Chart data table
================

Pivots the metrics grid into one row per quarter with one margin column per
product plus Total Revenue. Total Revenue is summed straight from the raw
records, not from the grid, so it stays right even if the margin columns
change upstream.

The excluded leading quarter keeps its label but every cell is set to
NOT_PLOTTABLE, so the chart host draws no point or bar for it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from .aggregation import RecordsLike, aggregate_by_period
from .config import NOT_PLOTTABLE, TOTAL_REVENUE_COLUMN
from .errors import PeriodFormatError
from .etl import _as_str
from .metrics import ProductPeriodMetric
from .periods import PeriodLike, period_label

logger = logging.getLogger(__name__)

Cell = Union[float, str]


@dataclass(frozen=True)
class ChartRow:
    period: str
    product_margins: Dict[str, Cell]
    total_revenue: Cell

    @property
    def plottable(self) -> bool:
        return self.total_revenue != NOT_PLOTTABLE


def _label(value: PeriodLike) -> str:
    try:
        return period_label(value)
    except PeriodFormatError:
        return _as_str(value)

def _cell(x) -> Cell:
    return x if isinstance(x, str) else float(x)


def build_chart_table(
    grid: Sequence[ProductPeriodMetric],
    records: RecordsLike,
    chart_products: Sequence[str],
    periods: Sequence[PeriodLike],
    excluded_period: Optional[PeriodLike] = None,
) -> List[ChartRow]:
    labels = [_label(p) for p in periods]
    products = [_as_str(p) for p in chart_products]

    # first grid row per (product, period); N/A margins plot as 0
    margins = pd.DataFrame(
        [(m.product, m.period, m.weighted_avg_margin) for m in grid],
        columns=["Product", "Period", "Margin"],
    ).astype({"Margin": "float64"})
    margins = margins.drop_duplicates(["Product", "Period"], keep="first")
    table = (
        margins.pivot(index="Period", columns="Product", values="Margin")
        .reindex(index=labels, columns=products)
        .fillna(0.0)
    )

    totals = aggregate_by_period(records).reindex(labels).fillna(0.0)
    table[TOTAL_REVENUE_COLUMN] = totals.to_numpy(dtype=float)

    table = table.astype(object)
    if excluded_period is not None:
        excluded = _label(excluded_period)
        mask = table.index == excluded
        if not mask.any():
            logger.warning("Excluded period %r is not in the chart periods", excluded)
        table.loc[mask, :] = NOT_PLOTTABLE

    out: List[ChartRow] = []
    for i, label in enumerate(labels):
        row = table.iloc[i]
        out.append(ChartRow(
            period=label,
            product_margins={p: _cell(row.iloc[j]) for j, p in enumerate(products)},
            total_revenue=_cell(row.iloc[len(products)]),
        ))

    logger.info("Built chart table: %d periods x %d products", len(out), len(products))
    return out


def chart_frame(chart: Sequence[ChartRow], chart_products: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Chart rows as a "Quarter"-indexed frame: product columns then Total Revenue."""
    if chart_products is None:
        products = list(chart[0].product_margins) if chart else []
    else:
        products = [_as_str(p) for p in chart_products]
    return pd.DataFrame(
        [[r.product_margins.get(p, 0.0) for p in products] + [r.total_revenue] for r in chart],
        columns=products + [TOTAL_REVENUE_COLUMN],
        index=pd.Index([r.period for r in chart], name="Quarter"),
    )
