"""Assembly of per-facet reports from folded snapshots.

The builders are pure: they receive already-fetched snapshots (and, when a
variation was requested, the comparison snapshots) and return the
``*Report`` dataclasses of ``analytics.aggregation.results``.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from analytics.aggregation.aggregator import FacetAggregate, PeriodAggregator
from analytics.aggregation.facets import (
    ALIGNMENT,
    COMPETITION,
    EXPLORER,
    SENTIMENT,
    SENTIMENT_METRICS,
    VISIBILITY,
    Facet,
    FacetDescriptor,
)
from analytics.aggregation.filters import ModelFilter
from analytics.aggregation.numbers import mean, percentage, round_half_up
from analytics.aggregation.observer import AggregationObserver, LoggingObserver
from analytics.aggregation.results import (
    AlignmentPoint,
    AlignmentReport,
    AttributeShare,
    CompetitionPoint,
    CompetitionReport,
    CompetitorInsight,
    CompetitorScore,
    DateRange,
    DomainShare,
    ExplorerPoint,
    ExplorerReport,
    ExplorerSummary,
    MentionShare,
    ModelScore,
    RankedItem,
    SentimentPoint,
    SentimentReport,
    SentimentShare,
    SentimentVariation,
    StrengthCounts,
    VisibilityPoint,
    VisibilityReport,
)
from analytics.aggregation.trackers import DomainTracker, MentionTracker
from analytics.aggregation.variation import VariationCalculator
from analytics.citations.domains import DomainClassifier, DomainTally
from analytics.citations.merger import CitationMerger
from analytics.reports.models import ReportSnapshot, SentimentLabel, WebSearchResult
from analytics.reports.store import ProjectProfile

UNKNOWN_KEYWORD = "unknown"
DEFAULT_BRAND_NAME = "Brand"


@dataclass(frozen=True)
class AggregationConfig:
    """Limits applied when assembling reports."""

    top_mentions_limit: int = 10
    top_domains_limit: int = 9
    top_items_limit: int = 10
    insight_items_limit: int = 5


@dataclass
class FacetContext:
    """Everything a builder needs for one request."""

    snapshots: list[ReportSnapshot]
    model_filter: ModelFilter
    available_models: list[str]
    project: ProjectProfile | None = None
    comparison: list[ReportSnapshot] | None = None
    variation: VariationCalculator | None = None
    config: AggregationConfig = field(default_factory=AggregationConfig)
    observer: AggregationObserver = field(default_factory=LoggingObserver)

    def fold(self, descriptor: FacetDescriptor) -> tuple[FacetAggregate, FacetAggregate | None]:
        """Aggregate the current snapshots and, if requested, the comparison."""
        aggregator = PeriodAggregator(descriptor, self.observer)
        current = aggregator.aggregate(self.snapshots, self.model_filter)
        previous = None
        if self.comparison is not None:
            previous = aggregator.aggregate(self.comparison, self.model_filter)
        return current, previous

    def compare(self, facet: Facet, current: float | None, previous: float | None) -> float:
        """Variation between two values; 0 when no variation was requested."""
        if self.variation is None or self.comparison is None:
            return 0.0
        return self.variation.difference(facet, current, previous)

    def classifier(self) -> DomainClassifier:
        if self.project is None:
            return DomainClassifier()
        return DomainClassifier(self.project.website, self.project.competitors)

    @property
    def date_range(self) -> DateRange:
        if not self.snapshots:
            return DateRange()
        return DateRange(
            start=self.snapshots[0].report_date.isoformat(),
            end=self.snapshots[-1].report_date.isoformat(),
        )


def _rounded(value: float | None) -> int:
    return round_half_up(value) if value is not None else 0


def _ranked(counts: dict[str, int], limit: int) -> list[tuple[str, int]]:
    # Stable sort: ties keep first-seen order
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


def _prompts_tested(snapshot: ReportSnapshot, model_filter: ModelFilter) -> int:
    visibility = snapshot.visibility
    if visibility is None:
        return 0
    detail = visibility.detailed_results or []
    if model_filter.active and detail:
        return sum(1 for r in detail if model_filter.matches(r.model))
    if visibility.prompts_tested:
        return visibility.prompts_tested
    return len(detail)


def build_visibility(ctx: FacetContext) -> VisibilityReport:
    current, previous = ctx.fold(VISIBILITY)
    config = ctx.config

    mentions = MentionTracker(ctx.observer)
    domains = DomainTracker(ctx.observer)
    total_prompts = 0
    for snapshot in ctx.snapshots:
        mentions.track(snapshot, ctx.model_filter)
        domains.track(snapshot, ctx.model_filter)
        total_prompts += _prompts_tested(snapshot, ctx.model_filter)

    chart_data = [
        VisibilityPoint(
            date=point.date,
            brand=round_half_up(point.metrics["score"]),
            competitors={
                name: round_half_up(score)
                for name, score in point.payload.get("competitors", {}).items()
            },
        )
        for point in current.points
    ]

    previous_models = previous.breakdown_means() if previous else {}
    model_breakdown = [
        ModelScore(
            model=model,
            score=round_half_up(score),
            variation=ctx.compare(Facet.VISIBILITY, score, previous_models.get(model)),
        )
        for model, score in current.breakdown_means().items()
    ]

    previous_competitors = previous.payload_series("competitors") if previous else {}
    competitors = []
    for name, scores in current.payload_series("competitors").items():
        average = mean(scores)
        competitors.append(
            CompetitorScore(
                name=name,
                average_score=_rounded(average),
                variation=ctx.compare(
                    Facet.VISIBILITY, average, mean(previous_competitors.get(name, []))
                ),
            )
        )

    return VisibilityReport(
        average_score=_rounded(current.headline),
        score_variation=ctx.compare(
            Facet.VISIBILITY, current.headline, previous.headline if previous else None
        ),
        available_models=ctx.available_models,
        chart_data=chart_data,
        model_breakdown=model_breakdown,
        competitors=competitors,
        top_mentions=[
            MentionShare(mention=e.name, count=e.count, percentage=e.percentage)
            for e in mentions.top(config.top_mentions_limit)
        ],
        top_domains=[
            DomainShare(domain=e.name, count=e.count, percentage=e.percentage)
            for e in domains.top(config.top_domains_limit)
        ],
        total_prompts_tested=total_prompts,
        domain_source_analysis=ctx.classifier().classify(domains.counts()),
        report_count=len(ctx.snapshots),
        date_range=ctx.date_range,
    )


# ---------------------------------------------------------------------------
# Sentiment
# ---------------------------------------------------------------------------


def overall_sentiment(positive: float, neutral: float, negative: float) -> SentimentLabel:
    """Positive or negative only when strictly dominant, else neutral."""
    if positive > neutral and positive > negative:
        return SentimentLabel.POSITIVE
    if negative > neutral and negative > positive:
        return SentimentLabel.NEGATIVE
    return SentimentLabel.NEUTRAL


def _merge_sentiment_citations(
    snapshot: ReportSnapshot, model_filter: ModelFilter, merger: CitationMerger
) -> None:
    sentiment = snapshot.sentiment
    detail = (sentiment.detailed_results or []) if sentiment else []

    for result in detail:
        if not model_filter.matches(result.model):
            continue
        label = result.overall_sentiment or SentimentLabel.NEUTRAL
        for citation in result.citations:
            merger.add(
                citation.url,
                title=citation.title,
                text=citation.text,
                prompt=result.original_prompt,
                model=result.model,
                sentiment=label.value,
            )

    for entry in sentiment.heatmap_data if sentiment else []:
        for result in entry.results:
            if not model_filter.matches(result.model):
                continue
            for citation in result.citations:
                merger.add(
                    citation.url,
                    title=citation.title,
                    text=citation.text,
                    prompt=entry.question,
                    model=result.model,
                    sentiment=result.sentiment.value,
                )

    if snapshot.explorer is None:
        return
    prompts = {(r.model, r.prompt_index): r.original_prompt for r in detail}
    for citation in snapshot.explorer.citations():
        if citation.prompt_type != Facet.SENTIMENT or not citation.link:
            continue
        if not model_filter.matches(citation.model):
            continue
        prompt = prompts.get((citation.model, citation.prompt_index))
        merger.add(
            citation.link,
            title=citation.website,
            prompt=prompt or f"Brand sentiment query #{citation.prompt_index + 1}",
            model=citation.model,
            sentiment=SentimentLabel.NEUTRAL.value,
        )


def build_sentiment(ctx: FacetContext) -> SentimentReport:
    current, previous = ctx.fold(SENTIMENT)

    percentages = {name: _rounded(current.average(name)) for name in SENTIMENT_METRICS}
    variations = {
        name: ctx.compare(
            Facet.SENTIMENT,
            current.average(name),
            previous.average(name) if previous else None,
        )
        for name in SENTIMENT_METRICS
    }

    merger = CitationMerger(Facet.SENTIMENT, ctx.observer)
    for snapshot in ctx.snapshots:
        _merge_sentiment_citations(snapshot, ctx.model_filter, merger)

    return SentimentReport(
        positive_percentage=percentages["positive"],
        neutral_percentage=percentages["neutral"],
        negative_percentage=percentages["negative"],
        overall_sentiment=overall_sentiment(
            percentages["positive"], percentages["neutral"], percentages["negative"]
        ).value,
        sentiment_variation=SentimentVariation(**variations),
        available_models=ctx.available_models,
        chart_data=[
            SentimentPoint(
                date=point.date,
                positive=round_half_up(point.metrics["positive"]),
                neutral=round_half_up(point.metrics["neutral"]),
                negative=round_half_up(point.metrics["negative"]),
            )
            for point in current.points
        ],
        sentiment_breakdown=[
            SentimentShare(type=name, percentage=percentages[name], variation=variations[name])
            for name in SENTIMENT_METRICS
        ],
        citations=merger.collection(),
        report_count=len(ctx.snapshots),
        date_range=ctx.date_range,
    )


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------


def build_alignment(ctx: FacetContext) -> AlignmentReport:
    current, previous = ctx.fold(ALIGNMENT)

    attribute_scores = current.breakdown_means()
    previous_scores = previous.breakdown_means() if previous else {}
    attribute_breakdown = []
    for attribute, score in attribute_scores.items():
        previous_score = previous_scores.get(attribute)
        # Variation in points on the 0-100 scale of averageScore
        attribute_breakdown.append(
            AttributeShare(
                attribute=attribute,
                score=score,
                variation=ctx.compare(
                    Facet.ALIGNMENT,
                    score * 100,
                    previous_score * 100 if previous_score is not None else None,
                ),
            )
        )

    merger = CitationMerger(Facet.ALIGNMENT, ctx.observer)
    for snapshot in ctx.snapshots:
        if snapshot.alignment is None:
            continue
        for result in snapshot.alignment.detailed_results or []:
            if not ctx.model_filter.matches(result.model):
                continue
            for citation in result.citations:
                merger.add(
                    citation.url,
                    title=citation.title,
                    text=citation.text,
                    prompt=result.original_prompt,
                    model=result.model,
                    score=result.average_score,
                )

    return AlignmentReport(
        average_score=_rounded(current.headline),
        score_variation=ctx.compare(
            Facet.ALIGNMENT, current.headline, previous.headline if previous else None
        ),
        available_models=ctx.available_models,
        chart_data=[
            AlignmentPoint(
                date=point.date,
                score=round_half_up(point.metrics["score"]),
                report_id=point.report_id,
            )
            for point in current.points
        ],
        aggregated_attribute_scores=attribute_scores,
        attribute_breakdown=attribute_breakdown,
        citations=merger.collection(),
        report_count=len(ctx.snapshots),
        date_range=ctx.date_range,
    )


# ---------------------------------------------------------------------------
# Competition
# ---------------------------------------------------------------------------


def _normalized_counts(items: list[str]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for item in items:
        key = item.strip().casefold()
        if key:
            counts[key] = counts.get(key, 0) + 1
    return counts


def _top_items(items: list[str], limit: int) -> list[str]:
    return [key for key, _ in _ranked(_normalized_counts(items), limit)]


def common_items(item_lists: list[list[str]], limit: int) -> list[str]:
    """Items cited for at least half of the lists, most widespread first."""
    if not item_lists:
        return []
    presence: dict[str, int] = {}
    for items in item_lists:
        for key in _normalized_counts(items):
            presence[key] = presence.get(key, 0) + 1
    qualifying = {key: n for key, n in presence.items() if n * 2 >= len(item_lists)}
    return [key for key, _ in _ranked(qualifying, limit)]


def build_competition(ctx: FacetContext) -> CompetitionReport:
    current, _ = ctx.fold(COMPETITION)
    limit = ctx.config.insight_items_limit

    brand_name = ""
    competitors: list[str] = []
    strengths: dict[str, list[str]] = {}
    weaknesses: dict[str, list[str]] = {}
    merger = CitationMerger(Facet.COMPETITION, ctx.observer)

    for snapshot in ctx.snapshots:
        competition = snapshot.competition
        if competition is None:
            continue
        brand_name = brand_name or snapshot.brand_name or competition.brand_name
        for name in competition.competitors:
            if name not in competitors:
                competitors.append(name)
        for result in competition.detailed_results or []:
            if not ctx.model_filter.matches(result.model):
                continue
            strengths.setdefault(result.competitor, []).extend(result.brand_strengths)
            weaknesses.setdefault(result.competitor, []).extend(result.brand_weaknesses)
            for citation in result.citations:
                merger.add(
                    citation.url,
                    title=citation.title,
                    text=citation.text,
                    prompt=result.original_prompt,
                    model=result.model,
                )

    insights = []
    for competitor in strengths:
        insights.append(
            CompetitorInsight(
                competitor=competitor,
                strengths_count=len(strengths[competitor]),
                weaknesses_count=len(weaknesses[competitor]),
                top_strengths=_top_items(strengths[competitor], limit),
                top_weaknesses=_top_items(weaknesses[competitor], limit),
            )
        )

    chart_data = [
        CompetitionPoint(
            date=point.date,
            report_id=point.report_id,
            competitors={
                name: StrengthCounts(
                    strengths_count=counts["strengths"], weaknesses_count=counts["weaknesses"]
                )
                for name, counts in point.payload.get("competitors", {}).items()
            },
        )
        for point in current.points
    ]

    return CompetitionReport(
        brand_name=brand_name or DEFAULT_BRAND_NAME,
        competitors=competitors,
        available_models=ctx.available_models,
        competitor_insights=insights,
        common_strengths=common_items(list(strengths.values()), limit),
        common_weaknesses=common_items(list(weaknesses.values()), limit),
        chart_data=chart_data,
        citations=merger.collection(),
        report_count=len(ctx.snapshots),
        date_range=ctx.date_range,
    )


# ---------------------------------------------------------------------------
# Explorer
# ---------------------------------------------------------------------------


def build_explorer(ctx: FacetContext) -> ExplorerReport:
    current, _ = ctx.fold(EXPLORER)
    model_filter = ctx.model_filter
    classifier = ctx.classifier()

    keywords: dict[str, int] = {}
    sources: dict[str, int] = {}
    web_search_results: list[WebSearchResult] = []
    tally = DomainTally()

    for snapshot in ctx.snapshots:
        explorer = snapshot.explorer
        if explorer is None:
            continue

        for item in explorer.top_keywords:
            if item.name.casefold() != UNKNOWN_KEYWORD:
                keywords[item.name] = keywords.get(item.name, 0) + item.count

        citations = [c for c in explorer.citations() if model_filter.matches(c.model)]
        if not model_filter.active and explorer.top_sources:
            for item in explorer.top_sources:
                key = item.name.lower()
                sources[key] = sources.get(key, 0) + item.count
        else:
            for citation in citations:
                if citation.website:
                    key = citation.website.lower()
                    sources[key] = sources.get(key, 0) + 1

        for result in explorer.web_search_results or []:
            kept = [c for c in result.citations if model_filter.matches(c.model)]
            if model_filter.active and not kept:
                continue
            web_search_results.append(
                WebSearchResult(query=result.query, citations=kept, timestamp=result.timestamp)
            )

        if not model_filter.active and explorer.domain_source_analysis is not None:
            tally.add_precomputed(explorer.domain_source_analysis)
        else:
            websites: dict[str, int] = {}
            for citation in citations:
                if citation.website:
                    key = citation.website.lower()
                    websites[key] = websites.get(key, 0) + 1
            classifier.tally(websites, into=tally)

    total_prompts = int(sum(p.metrics["totalPrompts"] for p in current.points))
    with_access = int(sum(p.metrics["promptsWithWebAccess"] for p in current.points))

    return ExplorerReport(
        summary=ExplorerSummary(
            total_prompts=total_prompts,
            prompts_with_web_access=with_access,
            web_access_percentage=percentage(with_access, total_prompts),
            total_citations=sum(len(r.citations) for r in web_search_results),
            unique_sources=len(sources),
        ),
        top_keywords=[
            RankedItem(name=name, count=count)
            for name, count in _ranked(keywords, ctx.config.top_items_limit)
        ],
        top_sources=[
            RankedItem(name=name, count=count)
            for name, count in _ranked(sources, ctx.config.top_items_limit)
        ],
        web_search_results=web_search_results,
        chart_data=[
            ExplorerPoint(
                date=point.date,
                total_prompts=int(point.metrics["totalPrompts"]),
                prompts_with_web_access=int(point.metrics["promptsWithWebAccess"]),
                web_access_percentage=round_half_up(point.metrics["webAccessPercentage"]),
            )
            for point in current.points
        ],
        domain_source_analysis=tally.result(),
        available_models=ctx.available_models,
        report_count=len(ctx.snapshots),
        date_range=ctx.date_range,
    )


BUILDERS: dict[Facet, Callable[[FacetContext], object]] = {
    Facet.VISIBILITY: build_visibility,
    Facet.SENTIMENT: build_sentiment,
    Facet.ALIGNMENT: build_alignment,
    Facet.COMPETITION: build_competition,
    Facet.EXPLORER: build_explorer,
}
