"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends

from analytics.reports.store import ReportStore
from api.config import Settings, get_settings
from api.database import get_session_maker
from api.services.aggregation_service import AggregationService
from api.services.report_store import SqlReportStore

__all__ = ["SettingsDep", "ReportStoreDep", "AggregationServiceDep"]


# Settings dependency
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_report_store(settings: SettingsDep) -> ReportStore:
    """Report store backed by the application database."""
    return SqlReportStore(get_session_maker(), fetch_limit=settings.report_fetch_limit)


ReportStoreDep = Annotated[ReportStore, Depends(get_report_store)]


def get_aggregation_service(store: ReportStoreDep, settings: SettingsDep) -> AggregationService:
    """Aggregation service for one request."""
    return AggregationService(store, config=settings.aggregation_config())


AggregationServiceDep = Annotated[AggregationService, Depends(get_aggregation_service)]
