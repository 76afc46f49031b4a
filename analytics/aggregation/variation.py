"""Period-over-period variation.

The comparison period is the window of equal length immediately before the
current one. When the current period has no length (a single report, or a
query whose start equals its end) the comparison falls back to the single
most recent report before the reference date.

Variation is a raw difference in the facet's own units: a visibility score
going from 50 to 30 is a variation of -20 points, not -40%.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from enum import StrEnum

from analytics.aggregation.aggregator import FacetAggregate, PeriodAggregator
from analytics.aggregation.facets import FacetDescriptor
from analytics.aggregation.filters import ModelFilter
from analytics.aggregation.numbers import round_one_decimal
from analytics.aggregation.observer import AggregationObserver, LoggingObserver
from analytics.reports.models import ReportSnapshot
from analytics.reports.store import ReportStore


class WindowMode(StrEnum):
    PERIOD = "period"
    SINGLE_POINT = "single_point"


@dataclass(frozen=True)
class ComparisonWindow:
    """Where to look for the comparison snapshots.

    In period mode snapshots with ``start <= report_date < end`` are compared.
    In single-point mode only the latest snapshot before ``end`` is.
    """

    mode: WindowMode
    start: datetime | None
    end: datetime

    @classmethod
    def for_period(
        cls,
        snapshots: Sequence[ReportSnapshot],
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> "ComparisonWindow":
        """Comparison window for a non-empty list of current snapshots."""
        if not snapshots:
            raise ValueError("Cannot build a comparison window without snapshots")
        ordered = sorted(snapshots, key=lambda s: s.report_date)
        first, last = ordered[0].report_date, ordered[-1].report_date

        if start_date is not None and end_date is not None:
            current_start = _start_of_day(start_date)
            span = _start_of_day(end_date) - current_start
        else:
            # Without both bounds the span and its start come from the snapshots
            current_start = first
            span = last - first

        if span <= timedelta(0):
            reference = _start_of_day(start_date) if start_date is not None else first
            return cls(mode=WindowMode.SINGLE_POINT, start=None, end=reference)
        return cls(mode=WindowMode.PERIOD, start=current_start - span, end=current_start)


def _start_of_day(value: date) -> datetime:
    return datetime(value.year, value.month, value.day, tzinfo=UTC)


class VariationCalculator:
    """Computes variation figures against a comparison window.

    Fetching and differencing are separate so one comparison fetch can serve
    the headline, per-model, per-attribute and per-competitor deltas.
    """

    def __init__(self, store: ReportStore, observer: AggregationObserver | None = None):
        self.store = store
        self.observer = observer or LoggingObserver()

    async def fetch_comparison(
        self,
        project_id: str,
        window: ComparisonWindow,
        sections: Sequence[str] = (),
    ) -> list[ReportSnapshot]:
        """Snapshots of the comparison window. Store errors propagate."""
        if window.mode is WindowMode.SINGLE_POINT:
            previous = await self.store.fetch_latest_before(project_id, window.end, sections)
            return [previous] if previous is not None else []
        return await self.store.fetch_window(project_id, window.start, window.end, sections)

    def difference(self, facet: str, current: float | None, previous: float | None) -> float:
        """Rounded ``current - previous``; 0 when either side has no value."""
        if current is None or previous is None:
            delta = 0.0
        else:
            delta = round_one_decimal(current - previous)
        self.observer.variation_computed(facet, current, previous, delta)
        return delta

    def headline_variation(
        self,
        descriptor: FacetDescriptor,
        current: FacetAggregate,
        previous: FacetAggregate,
        metric: str | None = None,
    ) -> float:
        """Variation of a headline metric between two aggregates."""
        metric = metric or descriptor.headline_metric
        if metric is None:
            raise ValueError(f"Facet '{descriptor.facet}' has no headline metric")
        return self.difference(descriptor.facet, current.average(metric), previous.average(metric))

    async def calculate_variation(
        self,
        project_id: str,
        snapshots: Sequence[ReportSnapshot],
        descriptor: FacetDescriptor,
        model_filter: ModelFilter,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> float:
        """Fetch the comparison window and difference the headline scores.

        Returns 0 when there are no current snapshots or nothing to compare
        against.
        """
        if descriptor.headline_metric is None:
            raise ValueError(f"Facet '{descriptor.facet}' has no headline metric")
        if not snapshots:
            return 0.0

        window = ComparisonWindow.for_period(snapshots, start_date, end_date)
        comparison = await self.fetch_comparison(project_id, window, descriptor.sections)
        if not comparison:
            return 0.0

        aggregator = PeriodAggregator(descriptor, self.observer)
        return self.headline_variation(
            descriptor,
            aggregator.aggregate(snapshots, model_filter),
            aggregator.aggregate(comparison, model_filter),
        )
