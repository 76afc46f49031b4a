"""Pydantic schemas package.

Use explicit imports:
    from api.schemas.aggregation import AggregationQuery, AggregatedVisibilityResponse
    from api.schemas.responses import ErrorResponse
"""
