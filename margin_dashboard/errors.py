"""Error taxonomy for the margin dashboard pipeline."""

from __future__ import annotations

from typing import List


class DashboardDataError(ValueError):
    """Base class for data-shape failures raised by the pipeline."""


class SchemaError(DashboardDataError):
    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(
            f"Raw data must include headers: {', '.join(self.missing)} (exact spelling)."
        )


class EmptyDatasetError(DashboardDataError):
    def __init__(self, message: str = "Raw data looks empty (no rows found)."):
        super().__init__(message)


class PeriodFormatError(DashboardDataError):
    def __init__(self, label):
        self.label = label
        super().__init__(f"Cannot parse period {label!r}; expected 'YYYY Qn'.")
