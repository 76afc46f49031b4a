"""Tests for period-over-period variation."""

from datetime import UTC, date, datetime

import pytest

from analytics.aggregation.aggregator import PeriodAggregator
from analytics.aggregation.facets import COMPETITION, VISIBILITY, Facet
from analytics.aggregation.filters import ModelFilter
from analytics.aggregation.variation import ComparisonWindow, VariationCalculator, WindowMode
from tests.fixtures.report_store import InMemoryReportStore, RecordingObserver
from tests.fixtures.reports import PROJECT_ID, make_snapshot, visibility_section


def _visibility(report_id: str, day: str, rate: float):
    return make_snapshot(report_id, day, visibility=visibility_section({"gpt-4o": rate}))


class TestComparisonWindow:
    def test_explicit_dates_give_equal_length_window(self) -> None:
        snapshots = [_visibility("r1", "2024-03-09", 0.5)]
        window = ComparisonWindow.for_period(snapshots, date(2024, 3, 8), date(2024, 3, 14))

        assert window.mode is WindowMode.PERIOD
        assert window.start == datetime(2024, 3, 2, tzinfo=UTC)
        assert window.end == datetime(2024, 3, 8, tzinfo=UTC)

    def test_span_of_snapshots_without_dates(self) -> None:
        snapshots = [_visibility("r1", "2024-03-01", 0.5), _visibility("r2", "2024-03-08", 0.5)]
        window = ComparisonWindow.for_period(snapshots)

        assert window.mode is WindowMode.PERIOD
        assert window.start == datetime(2024, 2, 23, tzinfo=UTC)
        assert window.end == datetime(2024, 3, 1, tzinfo=UTC)

    def test_start_date_only_uses_span_of_snapshots(self) -> None:
        snapshots = [_visibility("r1", "2024-03-05", 0.5), _visibility("r2", "2024-03-10", 0.5)]
        window = ComparisonWindow.for_period(snapshots, start_date=date(2024, 3, 1))

        assert window.mode is WindowMode.PERIOD
        assert window.start == datetime(2024, 2, 29, tzinfo=UTC)
        assert window.end == datetime(2024, 3, 5, tzinfo=UTC)

    def test_start_date_only_single_snapshot_references_start(self) -> None:
        snapshots = [_visibility("r1", "2024-03-05", 0.5)]
        window = ComparisonWindow.for_period(snapshots, start_date=date(2024, 3, 1))

        assert window.mode is WindowMode.SINGLE_POINT
        assert window.end == datetime(2024, 3, 1, tzinfo=UTC)

    def test_single_snapshot_is_single_point(self) -> None:
        window = ComparisonWindow.for_period([_visibility("r1", "2024-03-10", 0.5)])

        assert window.mode is WindowMode.SINGLE_POINT
        assert window.start is None
        assert window.end == datetime(2024, 3, 10, tzinfo=UTC)

    def test_same_start_and_end_date_is_single_point(self) -> None:
        snapshots = [_visibility("r1", "2024-03-10", 0.5)]
        window = ComparisonWindow.for_period(snapshots, date(2024, 3, 10), date(2024, 3, 10))
        assert window.mode is WindowMode.SINGLE_POINT

    def test_requires_snapshots(self) -> None:
        with pytest.raises(ValueError):
            ComparisonWindow.for_period([])


class TestVariationCalculator:
    async def test_single_point_difference_in_points(self) -> None:
        previous = _visibility("prev", "2024-03-03", 0.5)
        current = _visibility("cur", "2024-03-10", 0.3)
        store = InMemoryReportStore([previous, current])
        observer = RecordingObserver()
        calculator = VariationCalculator(store, observer)

        variation = await calculator.calculate_variation(
            PROJECT_ID, [current], VISIBILITY, ModelFilter()
        )

        # 50 -> 30 is -20 points, not -40%
        assert variation == -20.0
        assert store.methods_called() == ["fetch_latest_before"]
        assert observer.variations[0][0] == Facet.VISIBILITY
        assert observer.variations[0][3] == -20.0

    async def test_period_window_averages_previous_snapshots(self) -> None:
        store = InMemoryReportStore(
            [
                _visibility("p1", "2024-03-02", 0.25),
                _visibility("p2", "2024-03-05", 0.75),
                _visibility("c1", "2024-03-09", 0.75),
                _visibility("c2", "2024-03-14", 0.75),
            ]
        )
        current = await store.fetch_reports(
            PROJECT_ID, start_date=date(2024, 3, 8), end_date=date(2024, 3, 14)
        )
        calculator = VariationCalculator(store, RecordingObserver())

        variation = await calculator.calculate_variation(
            PROJECT_ID,
            current,
            VISIBILITY,
            ModelFilter(),
            start_date=date(2024, 3, 8),
            end_date=date(2024, 3, 14),
        )

        assert variation == 25.0
        assert store.calls[-1] == (
            "fetch_window",
            PROJECT_ID,
            datetime(2024, 3, 2, tzinfo=UTC),
            datetime(2024, 3, 8, tzinfo=UTC),
        )

    async def test_nothing_to_compare_is_zero(self) -> None:
        current = _visibility("cur", "2024-03-10", 0.5)
        calculator = VariationCalculator(InMemoryReportStore([current]), RecordingObserver())

        variation = await calculator.calculate_variation(
            PROJECT_ID, [current], VISIBILITY, ModelFilter()
        )
        assert variation == 0.0

    async def test_no_current_snapshots_is_zero(self) -> None:
        store = InMemoryReportStore()
        calculator = VariationCalculator(store, RecordingObserver())

        assert await calculator.calculate_variation(PROJECT_ID, [], VISIBILITY, ModelFilter()) == 0
        assert store.calls == []

    async def test_store_failure_propagates(self) -> None:
        store = InMemoryReportStore()
        store.fail_with = RuntimeError("db down")
        calculator = VariationCalculator(store, RecordingObserver())

        with pytest.raises(RuntimeError, match="db down"):
            await calculator.calculate_variation(
                PROJECT_ID, [_visibility("cur", "2024-03-10", 0.5)], VISIBILITY, ModelFilter()
            )

    async def test_facet_without_headline_is_rejected(self) -> None:
        calculator = VariationCalculator(InMemoryReportStore(), RecordingObserver())
        with pytest.raises(ValueError):
            await calculator.calculate_variation(PROJECT_ID, [], COMPETITION, ModelFilter())

    def test_difference_with_missing_side(self) -> None:
        calculator = VariationCalculator(InMemoryReportStore(), RecordingObserver())
        assert calculator.difference(Facet.VISIBILITY, None, 40.0) == 0.0
        assert calculator.difference(Facet.VISIBILITY, 40.0, None) == 0.0
        assert calculator.difference(Facet.VISIBILITY, 42.26, 40.0) == 2.3

    def test_headline_variation_between_aggregates(self) -> None:
        aggregator = PeriodAggregator(VISIBILITY)
        current = aggregator.aggregate([_visibility("c", "2024-03-10", 0.75)])
        previous = aggregator.aggregate([_visibility("p", "2024-03-03", 0.5)])
        calculator = VariationCalculator(InMemoryReportStore(), RecordingObserver())

        assert calculator.headline_variation(VISIBILITY, current, previous) == 25.0
