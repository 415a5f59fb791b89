from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from .periods import parse_period, quarter_range


# =============================================================================
# CONFIG
# =============================================================================

DEFAULT_PRODUCTS = (
    "Widget Pro",
    "Widget Standard",
    "Service Package",
    "Accessory Kit",
)

DEFAULT_PERIODS = tuple(p.label for p in quarter_range("2023 Q1", "2024 Q4"))

YEAR_COLUMN = "Year"
QUARTER_COLUMN = "Quarter"
REVENUE_COLUMN = "Revenue"
DEFAULT_PRODUCT_COLUMN = "Product"
DEFAULT_MARGIN_COLUMN = "Margin"

# Health bands: Strong is > STRONG, Moderate is [MODERATE, STRONG], At Risk below.
STRONG_MARGIN_THRESHOLD = 0.35
MODERATE_MARGIN_THRESHOLD = 0.20

# Chart hosts skip this value instead of plotting it.
NOT_PLOTTABLE = "#N/A"

TOTAL_REVENUE_COLUMN = "Total Revenue"


@dataclass(frozen=True)
class DashboardConfig:
    products: Tuple[str, ...] = DEFAULT_PRODUCTS
    periods: Tuple[str, ...] = DEFAULT_PERIODS
    # None -> same as products
    chart_products: Optional[Tuple[str, ...]] = None
    # None -> first period in the sequence; "" -> nothing excluded
    excluded_period: Optional[str] = None
    product_column: str = DEFAULT_PRODUCT_COLUMN
    margin_column: str = DEFAULT_MARGIN_COLUMN

    def resolved_chart_products(self) -> Tuple[str, ...]:
        return self.products if self.chart_products is None else self.chart_products

    def resolved_excluded_period(self) -> Optional[str]:
        if self.excluded_period is None:
            return self.periods[0] if self.periods else None
        return self.excluded_period or None


def _split_list(raw: str) -> Tuple[str, ...]:
    return tuple(s.strip() for s in raw.split(",") if s.strip())


def _parse_periods(raw: str) -> Tuple[str, ...]:
    if ".." in raw:
        start, end = raw.split("..", 1)
        return tuple(p.label for p in quarter_range(start.strip(), end.strip()))
    return tuple(parse_period(s).label for s in _split_list(raw))


def get_dashboard_config() -> DashboardConfig:
    products = os.getenv("MARGIN_DASHBOARD_PRODUCTS")
    periods = os.getenv("MARGIN_DASHBOARD_PERIODS")
    return DashboardConfig(
        products=_split_list(products) if products else DEFAULT_PRODUCTS,
        periods=_parse_periods(periods) if periods else DEFAULT_PERIODS,
        excluded_period=os.getenv("MARGIN_DASHBOARD_EXCLUDED_PERIOD"),
        product_column=os.getenv("MARGIN_DASHBOARD_PRODUCT_COLUMN", DEFAULT_PRODUCT_COLUMN),
        margin_column=os.getenv("MARGIN_DASHBOARD_MARGIN_COLUMN", DEFAULT_MARGIN_COLUMN),
    )
