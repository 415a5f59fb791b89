import unittest

from margin_dashboard.chart import build_chart_table, chart_frame
from margin_dashboard.config import NOT_PLOTTABLE
from margin_dashboard.etl import RawRecord
from margin_dashboard.metrics import build_metrics_grid

PERIODS = ["2023 Q1", "2023 Q2", "2023 Q3"]
RECORDS = [
    RawRecord("Widget Pro", 2023, "Q1", 1000.0, 400.0),
    RawRecord("Widget Pro", 2023, "Q2", 1000.0, 150.0),
    RawRecord("Service Package", 2023, "Q2", 500.0, 250.0),
    # off-chart product still counts towards total revenue
    RawRecord("Legacy Widget", 2023, "Q2", 250.0, 25.0),
    RawRecord("Legacy Widget", 2023, "Q3", 100.0, 10.0),
]
PRODUCTS = ["Widget Pro", "Service Package"]


class TestChartTable(unittest.TestCase):
    def setUp(self):
        self.grid = build_metrics_grid(RECORDS, PRODUCTS, PERIODS)

    def test_rows_follow_period_sequence(self):
        chart = build_chart_table(self.grid, RECORDS, PRODUCTS, PERIODS)
        self.assertEqual([r.period for r in chart], PERIODS)

        q2 = chart[1]
        self.assertAlmostEqual(q2.product_margins["Widget Pro"], 0.15)
        self.assertAlmostEqual(q2.product_margins["Service Package"], 0.50)
        self.assertAlmostEqual(q2.total_revenue, 1750.0)
        self.assertTrue(q2.plottable)

    def test_not_available_margin_becomes_zero(self):
        chart = build_chart_table(self.grid, RECORDS, PRODUCTS, PERIODS)
        q1, q3 = chart[0], chart[2]
        self.assertEqual(q1.product_margins["Service Package"], 0.0)
        self.assertEqual(q3.product_margins, {"Widget Pro": 0.0, "Service Package": 0.0})
        self.assertAlmostEqual(q3.total_revenue, 100.0)

    def test_product_missing_from_grid_is_zero(self):
        chart = build_chart_table(self.grid, RECORDS, PRODUCTS + ["Accessory Kit"], PERIODS)
        self.assertEqual(chart[1].product_margins["Accessory Kit"], 0.0)

    def test_excluded_period_keeps_label_only(self):
        chart = build_chart_table(self.grid, RECORDS, PRODUCTS, PERIODS, excluded_period="2023 Q1")
        first = chart[0]
        self.assertEqual(first.period, "2023 Q1")
        self.assertEqual(first.total_revenue, NOT_PLOTTABLE)
        self.assertEqual(set(first.product_margins.values()), {NOT_PLOTTABLE})
        self.assertFalse(first.plottable)
        # other rows untouched
        self.assertAlmostEqual(chart[1].total_revenue, 1750.0)

    def test_excluded_period_in_the_middle(self):
        chart = build_chart_table(self.grid, RECORDS, PRODUCTS, PERIODS, excluded_period="2023 Q2")
        self.assertEqual(chart[1].total_revenue, NOT_PLOTTABLE)
        self.assertAlmostEqual(chart[0].total_revenue, 1000.0)

    def test_unknown_excluded_period_changes_nothing(self):
        with self.assertLogs("margin_dashboard.chart", level="WARNING"):
            chart = build_chart_table(self.grid, RECORDS, PRODUCTS, PERIODS, excluded_period="2030 Q1")
        self.assertTrue(all(r.plottable for r in chart))

    def test_total_revenue_independent_of_grid(self):
        # a grid built for other products does not change total revenue
        other_grid = build_metrics_grid(RECORDS, ["Legacy Widget"], PERIODS)
        chart = build_chart_table(other_grid, RECORDS, PRODUCTS, PERIODS)
        self.assertAlmostEqual(chart[1].total_revenue, 1750.0)
        self.assertEqual(chart[1].product_margins["Widget Pro"], 0.0)

    def test_chart_frame(self):
        chart = build_chart_table(self.grid, RECORDS, PRODUCTS, PERIODS, excluded_period="2023 Q1")
        df = chart_frame(chart, PRODUCTS)
        self.assertEqual(df.index.name, "Quarter")
        self.assertEqual(list(df.index), PERIODS)
        self.assertEqual(list(df.columns), PRODUCTS + ["Total Revenue"])
        self.assertEqual(df.loc["2023 Q1", "Total Revenue"], NOT_PLOTTABLE)
        self.assertAlmostEqual(df.loc["2023 Q2", "Service Package"], 0.50)
        self.assertEqual(list(chart_frame(chart).columns), PRODUCTS + ["Total Revenue"])


if __name__ == "__main__":
    unittest.main()
