"""Tests for the aggregation service."""

from datetime import UTC, date, datetime

import pytest

from analytics.aggregation.facets import Facet
from analytics.aggregation.results import CompetitionReport, VisibilityReport
from api.exceptions import NotFoundError, ReportStoreError, ValidationError
from api.schemas.aggregation import AggregationQuery
from api.services.aggregation_service import AggregationService
from tests.fixtures.report_store import InMemoryReportStore, RecordingObserver
from tests.fixtures.reports import (
    PROJECT_ID,
    competition_result,
    make_snapshot,
    visibility_section,
)


def _visibility(report_id: str, day: str, rates: dict[str, float]):
    return make_snapshot(report_id, day, visibility=visibility_section(rates))


@pytest.fixture
def store() -> InMemoryReportStore:
    return InMemoryReportStore(
        [
            _visibility("p1", "2024-03-05", {"gpt-4o": 0.25}),
            _visibility("c1", "2024-03-09", {"gpt-4o": 0.75, "claude": 0.25}),
            _visibility("c2", "2024-03-14", {"gpt-4o": 0.75}),
        ]
    )


@pytest.fixture
def service(store: InMemoryReportStore) -> AggregationService:
    return AggregationService(store, observer=RecordingObserver())


class TestQueryValidation:
    async def test_start_after_end_is_rejected(
        self, service: AggregationService, store: InMemoryReportStore
    ) -> None:
        query = AggregationQuery(start_date=date(2024, 3, 14), end_date=date(2024, 3, 8))

        with pytest.raises(ValidationError) as exc_info:
            await service.aggregate(PROJECT_ID, Facet.VISIBILITY, query)

        assert exc_info.value.details == {"field": "startDate"}
        assert store.calls == []

    async def test_unknown_facet(self, service: AggregationService) -> None:
        with pytest.raises(ValidationError):
            await service.aggregate(PROJECT_ID, "weather", AggregationQuery())

    async def test_facet_by_name(self, service: AggregationService) -> None:
        report = await service.aggregate(PROJECT_ID, "visibility", AggregationQuery())
        assert isinstance(report, VisibilityReport)


class TestEmptyResults:
    async def test_known_project_without_reports_gets_empty_report(self) -> None:
        store = InMemoryReportStore()
        service = AggregationService(store)

        report = await service.aggregate(PROJECT_ID, Facet.VISIBILITY, AggregationQuery())

        assert report == VisibilityReport.empty()
        assert store.methods_called() == ["fetch_reports", "get_project"]

    async def test_no_match_in_range(self, service: AggregationService) -> None:
        query = AggregationQuery(start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))
        report = await service.aggregate(PROJECT_ID, Facet.COMPETITION, query)
        assert report == CompetitionReport.empty()

    async def test_unknown_project_is_not_found(self, service: AggregationService) -> None:
        with pytest.raises(NotFoundError):
            await service.aggregate("proj-missing", Facet.VISIBILITY, AggregationQuery())


class TestAggregate:
    async def test_date_range_and_scores(self, service: AggregationService) -> None:
        query = AggregationQuery(start_date=date(2024, 3, 8), end_date=date(2024, 3, 14))
        report = await service.aggregate(PROJECT_ID, Facet.VISIBILITY, query)

        # c1 averages 50, c2 is 75
        assert report.average_score == 63
        assert report.report_count == 2
        assert [point.date for point in report.chart_data] == ["2024-03-09", "2024-03-14"]
        assert report.score_variation == 0.0

    async def test_same_query_gives_same_report(self, service: AggregationService) -> None:
        query = AggregationQuery(models=["gpt-4o"], include_variation=True)
        first = await service.aggregate(PROJECT_ID, Facet.VISIBILITY, query)
        second = await service.aggregate(PROJECT_ID, Facet.VISIBILITY, query)
        assert first == second

    async def test_model_filter_keeps_available_models(self, service: AggregationService) -> None:
        query = AggregationQuery(models=["claude"])
        report = await service.aggregate(PROJECT_ID, Facet.VISIBILITY, query)

        assert report.available_models == ["claude", "gpt-4o"]
        assert [m.model for m in report.model_breakdown] == ["claude"]

    async def test_unknown_models_are_ignored(self, service: AggregationService) -> None:
        unfiltered = await service.aggregate(PROJECT_ID, Facet.VISIBILITY, AggregationQuery())
        query = AggregationQuery(models=["mistral"])
        report = await service.aggregate(PROJECT_ID, Facet.VISIBILITY, query)
        assert report == unfiltered

    async def test_latest_only_ignores_dates(
        self, service: AggregationService, store: InMemoryReportStore
    ) -> None:
        query = AggregationQuery(
            start_date=date(2024, 1, 1), end_date=date(2024, 1, 2), latest_only=True
        )
        report = await service.aggregate(PROJECT_ID, Facet.VISIBILITY, query)

        assert report.report_count == 1
        assert report.average_score == 75
        assert store.calls[0] == ("fetch_reports", PROJECT_ID, None, None, True)


class TestVariation:
    async def test_period_comparison(
        self, service: AggregationService, store: InMemoryReportStore
    ) -> None:
        query = AggregationQuery(
            start_date=date(2024, 3, 8), end_date=date(2024, 3, 14), include_variation=True
        )
        report = await service.aggregate(PROJECT_ID, Facet.VISIBILITY, query)

        # current (50 + 75) / 2 = 62.5 against 25
        assert report.score_variation == 37.5
        assert (
            "fetch_window",
            PROJECT_ID,
            datetime(2024, 3, 2, tzinfo=UTC),
            datetime(2024, 3, 8, tzinfo=UTC),
        ) in store.calls
        assert sorted(store.methods_called()) == ["fetch_reports", "fetch_window", "get_project"]

    async def test_latest_only_compares_with_previous_report(
        self, service: AggregationService, store: InMemoryReportStore
    ) -> None:
        query = AggregationQuery(latest_only=True, include_variation=True)
        report = await service.aggregate(PROJECT_ID, Facet.VISIBILITY, query)

        # c2 at 75 against c1 at 50
        assert report.score_variation == 25.0
        assert ("fetch_latest_before", PROJECT_ID, datetime(2024, 3, 14, tzinfo=UTC)) in (
            store.calls
        )

    async def test_no_comparison_fetch_without_flag(
        self, service: AggregationService, store: InMemoryReportStore
    ) -> None:
        await service.aggregate(PROJECT_ID, Facet.VISIBILITY, AggregationQuery())
        assert store.methods_called() == ["fetch_reports", "get_project"]

    async def test_competition_never_compares(self) -> None:
        store = InMemoryReportStore(
            [
                make_snapshot(
                    "r1",
                    "2024-03-01",
                    competition={
                        "detailedResults": [
                            competition_result("gpt-4o", "Orange", strengths=["price"])
                        ]
                    },
                )
            ]
        )
        service = AggregationService(store)

        await service.aggregate(
            PROJECT_ID, Facet.COMPETITION, AggregationQuery(include_variation=True)
        )
        assert store.methods_called() == ["fetch_reports", "get_project"]


class TestStoreFailures:
    async def test_fetch_failure_propagates(
        self, service: AggregationService, store: InMemoryReportStore
    ) -> None:
        store.fail_with = ReportStoreError("Failed to fetch reports", operation="fetch reports")

        with pytest.raises(ReportStoreError):
            await service.aggregate(PROJECT_ID, Facet.SENTIMENT, AggregationQuery())

    async def test_comparison_failure_propagates(self, store: InMemoryReportStore) -> None:
        class FailingComparisonStore(InMemoryReportStore):
            async def fetch_latest_before(self, project_id, before, sections=()):
                raise ReportStoreError("Failed to fetch previous report")

        failing = FailingComparisonStore(store.snapshots)
        service = AggregationService(failing)
        query = AggregationQuery(latest_only=True, include_variation=True)

        with pytest.raises(ReportStoreError):
            await service.aggregate(PROJECT_ID, Facet.VISIBILITY, query)
