"""
Product / quarter metrics grid
==============================

One row per (product, period) in the fixed cross-product of the product list
and the period sequence, product-major. Columns are computed in dependency
order because later ones reuse earlier ones:

1) Total Revenue       = sum(Revenue) for product + period
2) Weighted Avg Margin = sum(Margin) / Total Revenue   (N/A when revenue is 0)
3) Rolling Trend       = margin - margin of the previous period, same product
                         (N/A for the first period of the sequence)
4) YoY Margin Delta    = margin - margin of the same quarter one year earlier
                         (N/A for periods in the first year of the sequence)
5) Margin Health       = Strong (> 35%) | Moderate (20%..35%) | At Risk (< 20%)

N/A is represented as None on the records and NaN inside frames.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .aggregation import RecordsLike, aggregate_by_product_period
from .config import MODERATE_MARGIN_THRESHOLD, STRONG_MARGIN_THRESHOLD
from .errors import PeriodFormatError
from .etl import _as_str
from .periods import Period, PeriodLike, as_period

logger = logging.getLogger(__name__)


class Health(str, Enum):
    STRONG = "Strong"
    MODERATE = "Moderate"
    AT_RISK = "At Risk"
    NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class ProductPeriodMetric:
    product: str
    period: str
    total_revenue: float
    weighted_avg_margin: Optional[float]
    trailing_delta: Optional[float]
    yoy_delta: Optional[float]
    health: Health


METRIC_DEFINITIONS = {
    "Total_Revenue": {"name": "Total Revenue", "formula": "sum(Revenue) for product + quarter", "description": "Revenue booked for the product in the quarter."},
    "Weighted_Avg_Margin": {"name": "Weighted Avg Margin", "formula": "sum(Margin) / Total Revenue", "description": "Revenue-weighted margin; N/A when the quarter has no revenue."},
    "Trailing_Delta": {"name": "Rolling Trend", "formula": "Margin - Margin (previous quarter)", "description": "Quarter-on-quarter margin change for the same product."},
    "YoY_Delta": {"name": "YoY Margin Delta", "formula": "Margin - Margin (same quarter, prior year)", "description": "Year-over-year margin change for the same product."},
    "Health": {"name": "Margin Health", "formula": "> 35% Strong, 20%-35% Moderate, < 20% At Risk", "description": "Banding of the weighted average margin."},
}


# =============================================================================
# HEALTH
# =============================================================================

def classify_health(margin: Optional[float]) -> Health:
    if margin is None or pd.isna(margin):
        return Health.NOT_AVAILABLE
    if margin > STRONG_MARGIN_THRESHOLD:
        return Health.STRONG
    if margin >= MODERATE_MARGIN_THRESHOLD:
        return Health.MODERATE
    return Health.AT_RISK


# =============================================================================
# GRID
# =============================================================================

def _resolve_periods(periods: Iterable[PeriodLike]) -> List[Tuple[str, Optional[Period]]]:
    out: List[Tuple[str, Optional[Period]]] = []
    for value in periods:
        try:
            p = as_period(value)
        except PeriodFormatError as exc:
            logger.warning("%s Grid rows for it will be N/A.", exc)
            out.append((_as_str(value), None))
        else:
            out.append((p.label, p))
    return out


GRID_FRAME_COLUMNS = [
    "Product", "Period", "Year", "Quarter",
    "Total_Revenue", "Weighted_Avg_Margin", "Trailing_Delta", "YoY_Delta", "Health",
]


def _optional(x) -> Optional[float]:
    return None if pd.isna(x) else float(x)


def compute_grid_frame(
    records: RecordsLike,
    products: Sequence[str],
    periods: Sequence[PeriodLike],
) -> pd.DataFrame:
    """
    Grid as a frame, ordered by product block then period position.
    """
    resolved = _resolve_periods(periods)
    first = next((p for _, p in resolved if p is not None), None)

    rows = []
    for block, product in enumerate(products):
        name = _as_str(product)
        for position, (label, p) in enumerate(resolved):
            rows.append({
                "Block": block,
                "Position": position,
                "Product": name,
                "Period": label,
                "Year": p.year if p else np.nan,
                "Quarter": p.quarter if p else np.nan,
            })
    grid = pd.DataFrame(rows, columns=["Block", "Position", "Product", "Period", "Year", "Quarter"])
    if grid.empty:
        return pd.DataFrame(columns=GRID_FRAME_COLUMNS)

    sums = aggregate_by_product_period(records)
    grid = grid.merge(sums, on=["Product", "Period"], how="left")

    # 1-2) revenue and margin
    grid["Total_Revenue"] = grid["Revenue"].fillna(0.0).astype(float)
    margin_amount = grid["Margin_Amount"].fillna(0.0).astype(float)
    revenue = grid["Total_Revenue"]
    grid["Weighted_Avg_Margin"] = margin_amount / revenue.where(revenue != 0)

    # 3) trailing delta: previous position within the same product block
    grid = grid.sort_values(["Block", "Position"], kind="stable").reset_index(drop=True)
    prev_margin = grid.groupby("Block")["Weighted_Avg_Margin"].shift(1)
    grid["Trailing_Delta"] = grid["Weighted_Avg_Margin"] - prev_margin
    # the sequence's first period never has a trailing delta, wherever it repeats
    grid.loc[grid["Period"] == resolved[0][0], "Trailing_Delta"] = np.nan

    # 4) yoy delta: first grid row for (product, year - 1, quarter) wins
    prior = (
        grid.dropna(subset=["Year"])
        .drop_duplicates(["Product", "Year", "Quarter"], keep="first")
        .loc[:, ["Product", "Year", "Quarter", "Weighted_Avg_Margin"]]
        .rename(columns={"Weighted_Avg_Margin": "Prior_Year_Margin"})
    )
    prior["Year"] = prior["Year"] + 1
    grid = grid.merge(prior, on=["Product", "Year", "Quarter"], how="left")
    grid = grid.sort_values(["Block", "Position"], kind="stable").reset_index(drop=True)
    grid["YoY_Delta"] = grid["Weighted_Avg_Margin"] - grid["Prior_Year_Margin"]
    if first is not None:
        grid.loc[grid["Year"] == first.year, "YoY_Delta"] = np.nan

    # 5) health
    grid["Health"] = grid["Weighted_Avg_Margin"].map(classify_health)

    logger.debug("Grid frame: %d products x %d periods", len(products), len(resolved))
    return grid[GRID_FRAME_COLUMNS]


def build_metrics_grid(
    records: RecordsLike,
    products: Sequence[str],
    periods: Sequence[PeriodLike],
) -> List[ProductPeriodMetric]:
    grid = compute_grid_frame(records, products, periods)
    out = [
        ProductPeriodMetric(
            product=r.Product,
            period=r.Period,
            total_revenue=float(r.Total_Revenue),
            weighted_avg_margin=_optional(r.Weighted_Avg_Margin),
            trailing_delta=_optional(r.Trailing_Delta),
            yoy_delta=_optional(r.YoY_Delta),
            health=r.Health,
        )
        for r in grid.itertuples(index=False)
    ]
    logger.info(
        "Built metrics grid: %d rows, %d N/A margins",
        len(out), sum(1 for m in out if m.weighted_avg_margin is None),
    )
    return out


def grid_frame(grid: Sequence[ProductPeriodMetric]) -> pd.DataFrame:
    """Grid with the dashboard's column headers, for the renderer."""
    return pd.DataFrame(
        [
            {
                "Product": m.product,
                "Quarter": m.period,
                METRIC_DEFINITIONS["Total_Revenue"]["name"]: m.total_revenue,
                METRIC_DEFINITIONS["Weighted_Avg_Margin"]["name"]: m.weighted_avg_margin,
                METRIC_DEFINITIONS["Trailing_Delta"]["name"]: m.trailing_delta,
                METRIC_DEFINITIONS["YoY_Delta"]["name"]: m.yoy_delta,
                METRIC_DEFINITIONS["Health"]["name"]: m.health.value,
            }
            for m in grid
        ],
        columns=["Product", "Quarter"] + [d["name"] for d in METRIC_DEFINITIONS.values()],
    ).astype({d["name"]: "float64" for k, d in METRIC_DEFINITIONS.items() if k != "Health"})
