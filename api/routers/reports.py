"""Aggregated brand report endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel

from analytics.aggregation.facets import Facet
from api.deps import AggregationServiceDep
from api.schemas.aggregation import (
    AggregatedAlignmentResponse,
    AggregatedCompetitionResponse,
    AggregatedExplorerResponse,
    AggregatedSentimentResponse,
    AggregatedVisibilityResponse,
    AggregationQuery,
)
from api.schemas.responses import ErrorResponse

router = APIRouter(prefix="/projects/{project_id}/reports", tags=["reports"])

ERROR_RESPONSES: dict[int | str, dict] = {
    404: {"model": ErrorResponse, "description": "Project not found"},
    422: {"model": ErrorResponse, "description": "Invalid query"},
    502: {"model": ErrorResponse, "description": "Report store unavailable"},
}


def split_models(values: list[str] | None) -> list[str]:
    """Accept ``models=a&models=b`` as well as ``models=a,b``."""
    models: list[str] = []
    for value in values or []:
        models.extend(part.strip() for part in value.split(",") if part.strip())
    return models


def aggregation_query(
    start_date: date | None = Query(None, alias="startDate", description="YYYY-MM-DD"),
    end_date: date | None = Query(None, alias="endDate", description="YYYY-MM-DD"),
    models: list[str] | None = Query(None, description="Model names, repeated or comma-separated"),
    include_variation: bool = Query(False, alias="includeVariation"),
    latest_only: bool = Query(False, alias="latestOnly"),
) -> AggregationQuery:
    """Parse aggregation query parameters."""
    return AggregationQuery(
        start_date=start_date,
        end_date=end_date,
        models=split_models(models),
        include_variation=include_variation,
        latest_only=latest_only,
    )


QueryDep = Annotated[AggregationQuery, Depends(aggregation_query)]


def _respond(schema: type[BaseModel], report: object) -> ORJSONResponse:
    body = schema.model_validate(report).model_dump(mode="json", by_alias=True)
    return ORJSONResponse(content=body)


@router.get(
    "/aggregated/visibility",
    response_model=AggregatedVisibilityResponse,
    responses=ERROR_RESPONSES,
    summary="Aggregated visibility",
)
async def aggregated_visibility(
    project_id: str,
    query: QueryDep,
    service: AggregationServiceDep,
) -> ORJSONResponse:
    """
    Brand visibility across the selected reports.

    - Mean of per-report scores, per model and per competitor
    - Top mentioned companies and cited domains
    - Brand/competitor/other split of cited sources
    """
    report = await service.aggregate(project_id, Facet.VISIBILITY, query)
    return _respond(AggregatedVisibilityResponse, report)


@router.get(
    "/aggregated/sentiment",
    response_model=AggregatedSentimentResponse,
    responses=ERROR_RESPONSES,
    summary="Aggregated sentiment",
)
async def aggregated_sentiment(
    project_id: str,
    query: QueryDep,
    service: AggregationServiceDep,
) -> ORJSONResponse:
    """Positive, neutral and negative shares with merged citations."""
    report = await service.aggregate(project_id, Facet.SENTIMENT, query)
    return _respond(AggregatedSentimentResponse, report)


@router.get(
    "/aggregated/alignment",
    response_model=AggregatedAlignmentResponse,
    responses=ERROR_RESPONSES,
    summary="Aggregated alignment",
)
async def aggregated_alignment(
    project_id: str,
    query: QueryDep,
    service: AggregationServiceDep,
) -> ORJSONResponse:
    """How closely answers match the brand's intended attributes."""
    report = await service.aggregate(project_id, Facet.ALIGNMENT, query)
    return _respond(AggregatedAlignmentResponse, report)


@router.get(
    "/aggregated/competition",
    response_model=AggregatedCompetitionResponse,
    responses=ERROR_RESPONSES,
    summary="Aggregated competition",
)
async def aggregated_competition(
    project_id: str,
    query: QueryDep,
    service: AggregationServiceDep,
) -> ORJSONResponse:
    """Strengths and weaknesses against each competitor."""
    report = await service.aggregate(project_id, Facet.COMPETITION, query)
    return _respond(AggregatedCompetitionResponse, report)


@router.get(
    "/aggregated/explorer",
    response_model=AggregatedExplorerResponse,
    responses=ERROR_RESPONSES,
    summary="Aggregated explorer",
)
async def aggregated_explorer(
    project_id: str,
    query: QueryDep,
    service: AggregationServiceDep,
) -> ORJSONResponse:
    report = await service.aggregate(project_id, Facet.EXPLORER, query)
    return _respond(AggregatedExplorerResponse, report)
