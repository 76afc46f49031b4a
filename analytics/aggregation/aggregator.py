"""Generic period fold over report snapshots.

One ``PeriodAggregator`` serves all five facets. For each snapshot, oldest
first, the facet descriptor resolves the snapshot and computes its
contribution; the aggregator then

- averages each metric over contributing snapshots (mean of per-snapshot
  means, so a report with many models weighs the same as one with few)
- records one chart point per contributing snapshot
- accumulates breakdown samples ``{total, count}`` per key across every
  individual record

Snapshots that resolve to nothing are skipped entirely: they add no chart
point and do not pull the averages down.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from analytics.aggregation.facets import Empty, FacetDescriptor
from analytics.aggregation.filters import ModelFilter
from analytics.aggregation.observer import AggregationObserver, LoggingObserver
from analytics.reports.models import ReportSnapshot


@dataclass
class Accumulator:
    """Running ``{total, count}`` for one breakdown key."""

    total: float = 0.0
    count: int = 0

    def add(self, value: float) -> None:
        self.total += value
        self.count += 1

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0


@dataclass(frozen=True)
class ChartPoint:
    """Per-snapshot values, unrounded."""

    report_id: str
    report_date: datetime
    metrics: dict[str, float]
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def date(self) -> str:
        return self.report_date.date().isoformat()


@dataclass
class FacetAggregate:
    """Result of folding a list of snapshots for one facet."""

    descriptor: FacetDescriptor
    points: list[ChartPoint] = field(default_factory=list)
    breakdown: dict[str, Accumulator] = field(default_factory=dict)

    @property
    def contributing(self) -> int:
        return len(self.points)

    def average(self, metric: str) -> float | None:
        """Mean of a metric over contributing snapshots; None when none did."""
        if not self.points:
            return None
        return sum(p.metrics.get(metric, 0.0) for p in self.points) / len(self.points)

    @property
    def headline(self) -> float | None:
        if self.descriptor.headline_metric is None:
            return None
        return self.average(self.descriptor.headline_metric)

    def breakdown_means(self) -> dict[str, float]:
        return {key: acc.mean for key, acc in self.breakdown.items()}

    def payload_series(self, name: str) -> dict[str, list[float]]:
        """Per-key values of a numeric payload mapping across chart points."""
        series: dict[str, list[float]] = {}
        for point in self.points:
            for key, value in point.payload.get(name, {}).items():
                series.setdefault(key, []).append(value)
        return series


class PeriodAggregator:
    """Folds snapshots into a ``FacetAggregate`` for one facet.

    Example:
        aggregator = PeriodAggregator(VISIBILITY)
        aggregate = aggregator.aggregate(snapshots, ModelFilter(("gpt-4o",)))
        aggregate.headline  # e.g. 62.5
    """

    def __init__(self, descriptor: FacetDescriptor, observer: AggregationObserver | None = None):
        self.descriptor = descriptor
        self.observer = observer or LoggingObserver(facet=descriptor.facet.value)

    def aggregate(
        self, snapshots: Iterable[ReportSnapshot], model_filter: ModelFilter | None = None
    ) -> FacetAggregate:
        model_filter = model_filter or ModelFilter()
        facet = self.descriptor.facet
        result = FacetAggregate(descriptor=self.descriptor)

        for snapshot in sorted(snapshots, key=lambda s: s.report_date):
            resolution = self.descriptor.resolve(snapshot, model_filter)
            self.observer.snapshot_resolved(facet, snapshot.id, type(resolution).__name__)
            if isinstance(resolution, Empty):
                continue

            contribution = self.descriptor.contribute(
                snapshot, resolution, model_filter, self.observer
            )
            if contribution is None:
                continue

            result.points.append(
                ChartPoint(
                    report_id=snapshot.id,
                    report_date=snapshot.report_date,
                    metrics=contribution.metrics,
                    payload=contribution.payload,
                )
            )
            for key, value in contribution.samples:
                result.breakdown.setdefault(key, Accumulator()).add(value)

        return result
