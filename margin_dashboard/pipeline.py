from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from .chart import ChartRow, build_chart_table, chart_frame
from .config import DashboardConfig
from .etl import LoadReport, RawRecord, TableLike, parse_records
from .metrics import ProductPeriodMetric, build_metrics_grid, grid_frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardTables:
    records: List[RawRecord]
    grid: List[ProductPeriodMetric]
    chart: List[ChartRow]
    report: LoadReport
    config: DashboardConfig

    def grid_frame(self) -> pd.DataFrame:
        return grid_frame(self.grid)

    def chart_frame(self) -> pd.DataFrame:
        return chart_frame(self.chart, self.config.resolved_chart_products())


def build_dashboard(table: TableLike, config: Optional[DashboardConfig] = None) -> DashboardTables:
    """
    Loader -> Aggregator -> metrics grid -> chart table.

    SchemaError / EmptyDatasetError from the loader abort before any
    aggregation happens.
    """
    cfg = config or DashboardConfig()

    records, report = parse_records(
        table, product_column=cfg.product_column, margin_column=cfg.margin_column
    )
    grid = build_metrics_grid(records, cfg.products, cfg.periods)
    chart = build_chart_table(
        grid,
        records,
        cfg.resolved_chart_products(),
        cfg.periods,
        excluded_period=cfg.resolved_excluded_period(),
    )
    logger.info(
        "Dashboard built: %d records, %d grid rows, %d chart rows",
        len(records), len(grid), len(chart),
    )
    return DashboardTables(records=records, grid=grid, chart=chart, report=report, config=cfg)
