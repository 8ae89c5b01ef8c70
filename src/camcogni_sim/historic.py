"""Historic summary: a date-ranged series and its summary statistics.

The range selector names the requested look-back window. Local generation
always emits ``days_shown`` daily points ending at ``end_date``; the window
itself is exposed through ``requested_window()`` for a server-backed
aggregation to use.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .generators import Trend
from .randomness import RandomSource

logger = logging.getLogger(__name__)


class HistoricRange(Enum):
    """Look-back window options."""

    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"

    @property
    def days(self) -> int:
        return int(self.value[:-1])

    @property
    def label(self) -> str:
        return f"Last {self.days} days"


@dataclass(frozen=True)
class HistoricPoint:
    """One day of aggregated metrics."""

    date: date
    efficiency: float
    labor_utilization: float
    output: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "efficiency": self.efficiency,
            "laborUtilization": self.labor_utilization,
            "output": self.output,
        }


def percent_change(first: float, last: float) -> float:
    """Change from ``first`` to ``last`` in percent, one decimal."""
    if first == 0:
        return 0.0
    return round((last - first) / first * 100, 1)


def format_output(total: int) -> str:
    """Compact output total: ``12345`` -> ``12.3k``."""
    if total >= 1000:
        return f"{total / 1000:.1f}k"
    return str(total)


@dataclass(frozen=True)
class HistoricSummary:
    """Quick stats shown above the historic chart."""

    avg_efficiency: float
    avg_labor_utilization: float
    total_output: int
    efficiency_change: float
    labor_utilization_change: float
    output_change: float

    @classmethod
    def from_series(cls, series: List[HistoricPoint]) -> "HistoricSummary":
        if not series:
            return cls(0.0, 0.0, 0, 0.0, 0.0, 0.0)

        n = len(series)
        first, last = series[0], series[-1]
        return cls(
            avg_efficiency=round(sum(p.efficiency for p in series) / n, 1),
            avg_labor_utilization=round(sum(p.labor_utilization for p in series) / n, 1),
            total_output=sum(p.output for p in series),
            efficiency_change=percent_change(first.efficiency, last.efficiency),
            labor_utilization_change=percent_change(
                first.labor_utilization, last.labor_utilization
            ),
            output_change=percent_change(first.output, last.output),
        )

    def to_dict(self) -> Dict[str, Any]:
        def card(value: str, change: float) -> Dict[str, Any]:
            return {
                "value": value,
                "change": f"{change:+.1f}%",
                "trend": Trend.from_change(change).value,
            }

        return {
            "avg_efficiency": card(f"{self.avg_efficiency:.0f}%", self.efficiency_change),
            "avg_labor_utilization": card(
                f"{self.avg_labor_utilization:.0f}%", self.labor_utilization_change
            ),
            "total_output": card(format_output(self.total_output), self.output_change),
        }


class HistoricAggregator:
    """Owns the historic summary screen's range and derived series."""

    def __init__(
        self,
        source: RandomSource,
        initial_range: Union[HistoricRange, str] = HistoricRange.LAST_7_DAYS,
        end_date: Optional[date] = None,
        days_shown: int = 7,
    ):
        self.source = source
        self.end_date = end_date or date.today()
        self.days_shown = days_shown

        self._range = HistoricRange(initial_range)
        self._series = self._generate()
        self._summary = HistoricSummary.from_series(self._series)

    @property
    def range(self) -> HistoricRange:
        return self._range

    @property
    def series(self) -> List[HistoricPoint]:
        return list(self._series)

    @property
    def summary(self) -> HistoricSummary:
        return self._summary

    def requested_window(self) -> Tuple[date, date]:
        """First and last day of the selected look-back window."""
        return self.end_date - timedelta(days=self._range.days - 1), self.end_date

    def select_range(self, new_range: Union[HistoricRange, str]) -> List[HistoricPoint]:
        """Select a range and redraw the series (a new draw, not a refetch)."""
        self._range = HistoricRange(new_range)
        self._series = self._generate()
        self._summary = HistoricSummary.from_series(self._series)
        logger.info(f"Historic range set to {self._range.value}")
        return self.series

    def _generate(self) -> List[HistoricPoint]:
        start = self.end_date - timedelta(days=self.days_shown - 1)
        return [
            HistoricPoint(
                date=start + timedelta(days=i),
                efficiency=self.source.uniform_float(70, 90, 1),
                labor_utilization=self.source.uniform_float(65, 85, 1),
                output=self.source.uniform_int(80, 120),
            )
            for i in range(self.days_shown)
        ]

    def to_dict(self) -> Dict[str, Any]:
        start, end = self.requested_window()
        return {
            "range": self._range.value,
            "label": self._range.label,
            "window": {"start": start.isoformat(), "end": end.isoformat()},
            "summary": self._summary.to_dict(),
            "series": [p.to_dict() for p in self._series],
        }
