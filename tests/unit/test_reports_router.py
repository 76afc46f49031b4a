"""Tests for the aggregated report endpoints."""

import pytest
from httpx import AsyncClient

from api.exceptions import ReportStoreError
from api.routers.reports import split_models
from tests.fixtures.report_store import InMemoryReportStore
from tests.fixtures.reports import (
    PROJECT_ID,
    arena_metric,
    competition_result,
    make_snapshot,
    sentiment_result,
    visibility_section,
)

BASE = f"/v1/projects/{PROJECT_ID}/reports/aggregated"


@pytest.fixture
def seeded_store(report_store: InMemoryReportStore) -> InMemoryReportStore:
    report_store.snapshots = [
        make_snapshot(
            "r1",
            "2024-03-01",
            visibility=visibility_section(
                {"gpt-4o": 0.5, "claude": 0.25}, arena=[arena_metric("Orange", "40%")]
            ),
            sentiment={"detailedResults": [sentiment_result("gpt-4o", label="positive")]},
            competition={
                "detailedResults": [
                    competition_result("gpt-4o", "Orange", strengths=["price"], weaknesses=[])
                ]
            },
        ),
        make_snapshot(
            "r2",
            "2024-03-08",
            visibility=visibility_section({"gpt-4o": 0.75}),
        ),
    ]
    return report_store


class TestSplitModels:
    def test_repeated_and_comma_separated(self) -> None:
        assert split_models(["gpt-4o,claude", " mistral ", ""]) == ["gpt-4o", "claude", "mistral"]

    def test_none(self) -> None:
        assert split_models(None) == []


class TestAggregatedEndpoints:
    @pytest.mark.asyncio
    async def test_visibility_camel_case(
        self, client: AsyncClient, seeded_store: InMemoryReportStore
    ) -> None:
        response = await client.get(f"{BASE}/visibility")

        assert response.status_code == 200
        data = response.json()
        assert data["averageScore"] == 56
        assert data["reportCount"] == 2
        assert data["availableModels"] == ["claude", "gpt-4o"]
        assert data["chartData"][0] == {
            "date": "2024-03-01",
            "brand": 38,
            "competitors": {"Orange": 40},
        }
        assert data["competitors"][0]["averageScore"] == 40
        assert data["dateRange"] == {
            "start": "2024-03-01T00:00:00+00:00",
            "end": "2024-03-08T00:00:00+00:00",
        }

    @pytest.mark.asyncio
    async def test_models_parameter(
        self, client: AsyncClient, seeded_store: InMemoryReportStore
    ) -> None:
        response = await client.get(f"{BASE}/visibility", params={"models": "claude,mistral"})

        data = response.json()
        assert [m["model"] for m in data["modelBreakdown"]] == ["claude"]
        assert data["averageScore"] == 25

    @pytest.mark.asyncio
    async def test_date_parameters(
        self, client: AsyncClient, seeded_store: InMemoryReportStore
    ) -> None:
        response = await client.get(
            f"{BASE}/visibility",
            params={"startDate": "2024-03-05", "endDate": "2024-03-08", "includeVariation": "true"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["reportCount"] == 1
        assert data["averageScore"] == 75
        assert "fetch_window" in seeded_store.methods_called()

    @pytest.mark.asyncio
    async def test_sentiment(self, client: AsyncClient, seeded_store: InMemoryReportStore) -> None:
        response = await client.get(f"{BASE}/sentiment", params={"latestOnly": "true"})

        assert response.status_code == 200
        data = response.json()
        # r2 has no sentiment section
        assert data["reportCount"] == 1
        assert data["positivePercentage"] == 0
        assert data["overallSentiment"] == "neutral"
        assert "sentimentVariation" in data

    @pytest.mark.asyncio
    async def test_competition(
        self, client: AsyncClient, seeded_store: InMemoryReportStore
    ) -> None:
        response = await client.get(f"{BASE}/competition")

        data = response.json()
        assert data["brandName"] == "Acme"
        insight = data["competitorInsights"][0]
        assert insight["competitor"] == "Orange"
        assert insight["strengthsCount"] == 1
        assert insight["topStrengths"] == ["price"]
        assert data["chartData"][0]["competitors"]["Orange"] == {
            "strengthsCount": 1,
            "weaknessesCount": 0,
        }

    @pytest.mark.asyncio
    async def test_empty_project(self, client: AsyncClient) -> None:
        for facet in ("visibility", "sentiment", "alignment", "competition", "explorer"):
            response = await client.get(f"{BASE}/{facet}")
            assert response.status_code == 200
            assert response.json()["reportCount"] == 0


class TestErrors:
    @pytest.mark.asyncio
    async def test_unknown_project(self, client: AsyncClient) -> None:
        response = await client.get("/v1/projects/proj-missing/reports/aggregated/alignment")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "not_found"
        assert "proj-missing" in error["message"]
        assert "details" not in error

    @pytest.mark.asyncio
    async def test_start_after_end(self, client: AsyncClient) -> None:
        response = await client.get(
            f"{BASE}/visibility", params={"startDate": "2024-03-08", "endDate": "2024-03-01"}
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "validation_error"
        assert error["details"] == {"field": "startDate"}

    @pytest.mark.asyncio
    async def test_malformed_date(self, client: AsyncClient) -> None:
        response = await client.get(f"{BASE}/explorer", params={"startDate": "March 1st"})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "validation_error"
        assert error["field"] == "startDate"

    @pytest.mark.asyncio
    async def test_store_failure(
        self, client: AsyncClient, report_store: InMemoryReportStore
    ) -> None:
        report_store.fail_with = ReportStoreError("Failed to fetch reports", "fetch reports")

        response = await client.get(f"{BASE}/competition")

        assert response.status_code == 502
        error = response.json()["error"]
        assert error["code"] == "report_store_error"
        assert error["details"] == {"operation": "fetch reports"}
