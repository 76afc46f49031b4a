"""Business logic services package."""

from api.services.aggregation_service import AggregationService
from api.services.report_store import SqlReportStore

__all__ = [
    "AggregationService",
    "SqlReportStore",
]
