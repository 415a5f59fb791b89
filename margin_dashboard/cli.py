import json
import logging
import os
import sys

from .config import get_dashboard_config
from .errors import DashboardDataError
from .etl import load_workbook_table
from .pipeline import build_dashboard


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args or len(args) > 2:
        print("Usage: python -m margin_dashboard.cli <workbook.xlsx> [sheet]", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=os.getenv("MARGIN_DASHBOARD_LOG_LEVEL", "WARNING").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = args[0]
    sheet = args[1] if len(args) > 1 else "Raw Data"
    try:
        tables = build_dashboard(load_workbook_table(path, sheet), get_dashboard_config())
    except DashboardDataError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps({
        "grid": [
            {
                "product": m.product,
                "period": m.period,
                "total_revenue": m.total_revenue,
                "weighted_avg_margin": m.weighted_avg_margin,
                "trailing_delta": m.trailing_delta,
                "yoy_delta": m.yoy_delta,
                "health": m.health.value,
            }
            for m in tables.grid
        ],
        "chart": [
            {
                "period": r.period,
                "product_margins": r.product_margins,
                "total_revenue": r.total_revenue,
            }
            for r in tables.chart
        ],
        "skipped_rows": tables.report.skipped_blank_key + tables.report.skipped_bad_key,
    }, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
