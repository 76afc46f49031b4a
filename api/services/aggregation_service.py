"""Aggregation facade: fetch, fold, compare, assemble."""

import asyncio

import structlog

from analytics.aggregation.builders import BUILDERS, AggregationConfig, FacetContext
from analytics.aggregation.facets import Facet, get_descriptor
from analytics.aggregation.filters import ModelFilter
from analytics.aggregation.observer import AggregationObserver, LoggingObserver
from analytics.aggregation.results import (
    AlignmentReport,
    CompetitionReport,
    ExplorerReport,
    SentimentReport,
    VisibilityReport,
)
from analytics.aggregation.variation import ComparisonWindow, VariationCalculator
from analytics.reports.store import ReportStore
from api.exceptions import ValidationError
from api.schemas.aggregation import AggregationQuery

logger = structlog.get_logger(__name__)

# Facets whose responses carry variation figures
VARIATION_FACETS = frozenset({Facet.VISIBILITY, Facet.SENTIMENT, Facet.ALIGNMENT})

# Facets that classify cited domains against the project's websites
PROJECT_FACETS = frozenset({Facet.VISIBILITY, Facet.EXPLORER})

EMPTY_REPORTS = {
    Facet.VISIBILITY: VisibilityReport.empty,
    Facet.SENTIMENT: SentimentReport.empty,
    Facet.ALIGNMENT: AlignmentReport.empty,
    Facet.COMPETITION: CompetitionReport.empty,
    Facet.EXPLORER: ExplorerReport.empty,
}


class AggregationService:
    """Produces aggregated facet reports for a project.

    The store is only read; every tracker and accumulator lives for one call.
    Store failures propagate to the caller.
    """

    def __init__(
        self,
        store: ReportStore,
        config: AggregationConfig | None = None,
        observer: AggregationObserver | None = None,
    ):
        self.store = store
        self.config = config or AggregationConfig()
        self.observer = observer or LoggingObserver()
        self.variation = VariationCalculator(store, self.observer)

    async def aggregate(self, project_id: str, facet: Facet | str, query: AggregationQuery):
        """Aggregate one facet over the reports matching ``query``."""
        try:
            facet = Facet(facet)
        except ValueError as e:
            raise ValidationError(f"Unknown facet '{facet}'", field="facet") from e
        if query.start_date and query.end_date and query.start_date > query.end_date:
            raise ValidationError("startDate must not be after endDate", field="startDate")

        descriptor = get_descriptor(facet)
        log = logger.bind(project_id=project_id, facet=facet.value)

        snapshots = await self.store.fetch_reports(
            project_id,
            start_date=None if query.latest_only else query.start_date,
            end_date=None if query.latest_only else query.end_date,
            latest_only=query.latest_only,
            sections=descriptor.sections,
        )
        if not snapshots:
            # Unknown projects still surface as 404
            await self.store.get_project(project_id)
            log.info("No reports matched query")
            return EMPTY_REPORTS[facet]()

        available_models = descriptor.available_models(snapshots)
        model_filter = ModelFilter.resolve(query.models, available_models)

        compare = query.include_variation and facet in VARIATION_FACETS
        comparison_task = None
        if compare:
            window = ComparisonWindow.for_period(
                snapshots,
                None if query.latest_only else query.start_date,
                None if query.latest_only else query.end_date,
            )
            comparison_task = self.variation.fetch_comparison(
                project_id, window, descriptor.sections
            )

        if comparison_task is not None:
            project, comparison = await asyncio.gather(
                self.store.get_project(project_id), comparison_task
            )
        else:
            project, comparison = await self.store.get_project(project_id), None

        context = FacetContext(
            snapshots=snapshots,
            model_filter=model_filter,
            available_models=available_models,
            project=project if facet in PROJECT_FACETS else None,
            comparison=comparison,
            variation=self.variation if compare else None,
            config=self.config,
            observer=self.observer,
        )
        report = BUILDERS[facet](context)

        log.info(
            "Aggregated reports",
            report_count=len(snapshots),
            selected_models=list(model_filter.models),
            comparison_count=len(comparison) if comparison is not None else None,
        )
        return report
