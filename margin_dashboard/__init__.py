"""Margin dashboard engine.

- etl.py: raw table -> RawRecords
- aggregation.py: revenue / margin sums by product + quarter
- metrics.py: product x quarter metrics grid and health banding
- chart.py: quarter-indexed chart data table
- pipeline.py: runs the stages above under a DashboardConfig
"""

from .chart import ChartRow, build_chart_table, chart_frame
from .config import NOT_PLOTTABLE, DashboardConfig, get_dashboard_config
from .errors import DashboardDataError, EmptyDatasetError, PeriodFormatError, SchemaError
from .etl import LoadReport, RawRecord, load_records, parse_records
from .metrics import Health, ProductPeriodMetric, build_metrics_grid, classify_health
from .periods import Period, parse_period, quarter_range
from .pipeline import DashboardTables, build_dashboard
