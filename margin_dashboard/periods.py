"""
Quarter periods
===============

A Period is a (year, quarter) pair with the canonical label "YYYY Qn".
Periods order by (year, quarter), which is the order the dashboard rows use.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Union

import pandas as pd

from .errors import PeriodFormatError

_LABEL_RE = re.compile(r"^(\d{4})\s+Q([1-4])$")

QUARTERS = ("Q1", "Q2", "Q3", "Q4")


@dataclass(frozen=True, order=True)
class Period:
    year: int
    quarter: int  # 1..4

    def __post_init__(self):
        if self.quarter not in (1, 2, 3, 4):
            raise PeriodFormatError(f"{self.year} Q{self.quarter}")

    @property
    def quarter_label(self) -> str:
        return f"Q{self.quarter}"

    @property
    def label(self) -> str:
        return f"{self.year} {self.quarter_label}"

    def prior_year(self) -> "Period":
        """Same quarter, one year earlier."""
        return Period(self.year - 1, self.quarter)

    def next(self) -> "Period":
        if self.quarter == 4:
            return Period(self.year + 1, 1)
        return Period(self.year, self.quarter + 1)

    def __str__(self) -> str:
        return self.label


PeriodLike = Union[Period, str]


def parse_period(label) -> Period:
    """Parse "2023 Q1" (surrounding whitespace allowed) into a Period."""
    if label is None or (not isinstance(label, str) and pd.isna(label)):
        raise PeriodFormatError(label)
    m = _LABEL_RE.match(str(label).strip())
    if not m:
        raise PeriodFormatError(label)
    return Period(int(m.group(1)), int(m.group(2)))


def as_period(value: PeriodLike) -> Period:
    if isinstance(value, Period):
        return value
    return parse_period(value)


def period_label(value: PeriodLike) -> str:
    return as_period(value).label


def quarter_range(start: PeriodLike, end: PeriodLike) -> List[Period]:
    """Contiguous periods from start to end, both inclusive."""
    first, last = as_period(start), as_period(end)
    out: List[Period] = []
    p = first
    while p <= last:
        out.append(p)
        p = p.next()
    return out
