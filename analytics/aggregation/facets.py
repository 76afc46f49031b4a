"""Facet descriptors for the generic period fold.

A facet is one analytical dimension of a brand report. Each descriptor tells
the ``PeriodAggregator`` three things about its facet:

- which models a snapshot exposes (for ``availableModels``)
- how a snapshot resolves: to its model-filtered detail records, to the
  report's pre-computed summary, or to nothing
- how a resolved snapshot contributes: per-snapshot metric means, breakdown
  samples (one per detail record) and an optional chart payload

Resolution happens once per snapshot, so one report falling back to its
summary never changes how the others are read.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from analytics.aggregation.filters import ModelFilter
from analytics.aggregation.numbers import mean
from analytics.aggregation.observer import AggregationObserver
from analytics.reports.models import (
    ArenaMetric,
    ReportSnapshot,
    SentimentLabel,
)


class Facet(StrEnum):
    """Analytical dimension of a brand report."""

    VISIBILITY = "visibility"
    SENTIMENT = "sentiment"
    ALIGNMENT = "alignment"
    COMPETITION = "competition"
    EXPLORER = "explorer"


# ---------------------------------------------------------------------------
# Per-snapshot resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DetailRecords:
    """Model-level records left after applying the model filter."""

    records: list


@dataclass(frozen=True)
class PrecomputedSummary:
    """The report's own pre-aggregated figures."""

    summary: Any


@dataclass(frozen=True)
class Empty:
    """Nothing usable in this snapshot."""

    reason: str


Resolution = DetailRecords | PrecomputedSummary | Empty


@dataclass
class Contribution:
    """What one snapshot adds to a period aggregate."""

    metrics: dict[str, float]
    samples: list[tuple[str, float]] = field(default_factory=list)
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FacetDescriptor:
    """Declarative description of how one facet folds."""

    facet: Facet
    sections: tuple[str, ...]
    metrics: tuple[str, ...]
    headline_metric: str | None
    models_of: Callable[[ReportSnapshot], Iterable[str]]
    resolve: Callable[[ReportSnapshot, ModelFilter], Resolution]
    contribute: Callable[
        [ReportSnapshot, Resolution, ModelFilter, AggregationObserver], Contribution | None
    ]

    def available_models(self, snapshots: Iterable[ReportSnapshot]) -> list[str]:
        """Sorted set of models seen in the unfiltered snapshots."""
        models: set[str] = set()
        for snapshot in snapshots:
            models.update(m for m in self.models_of(snapshot) if m)
        return sorted(models)


def _filtered(records: list, model_filter: ModelFilter) -> Resolution:
    matching = [r for r in records if model_filter.matches(r.model)]
    if not matching:
        return Empty("no records for selected models")
    return DetailRecords(matching)


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


def competitor_score(metric: ArenaMetric, model_filter: ModelFilter) -> float | None:
    """A competitor's score in one report.

    With an active model filter and per-model rates available, only the
    selected models' rates are averaged. Otherwise the global percentage is
    used.
    """
    if model_filter.active and metric.models_mentions_rate is not None:
        rates = [r.rate for r in metric.models_mentions_rate if model_filter.matches(r.model)]
        return mean(rates)
    return metric.global_rate


def _visibility_models(snapshot: ReportSnapshot) -> Iterable[str]:
    if snapshot.visibility is None:
        return []
    return [mv.model for mv in snapshot.visibility.model_visibility]


def _visibility_resolve(snapshot: ReportSnapshot, model_filter: ModelFilter) -> Resolution:
    visibility = snapshot.visibility
    if visibility is None:
        return Empty("missing section")
    if visibility.model_visibility:
        return _filtered(visibility.model_visibility, model_filter)
    if visibility.overall_mention_rate is not None:
        return PrecomputedSummary(visibility.overall_mention_rate)
    return Empty("no model visibility")


def _visibility_competitors(
    snapshot: ReportSnapshot, model_filter: ModelFilter, observer: AggregationObserver
) -> dict[str, float]:
    scores: dict[str, float] = {}
    for metric in snapshot.visibility.arena_metrics:
        score = competitor_score(metric, model_filter)
        if score is None:
            observer.item_skipped(
                Facet.VISIBILITY, "competitor without usable score", competitor=metric.name
            )
            continue
        scores[metric.name] = score
    return scores


def _visibility_contribute(
    snapshot: ReportSnapshot,
    resolution: Resolution,
    model_filter: ModelFilter,
    observer: AggregationObserver,
) -> Contribution | None:
    if isinstance(resolution, DetailRecords):
        samples = [(mv.model, mv.rate * 100) for mv in resolution.records]
        score = mean([value for _, value in samples])
    elif isinstance(resolution, PrecomputedSummary):
        samples = []
        score = resolution.summary * 100
    else:
        return None
    return Contribution(
        metrics={"score": score},
        samples=samples,
        payload={"competitors": _visibility_competitors(snapshot, model_filter, observer)},
    )


# ---------------------------------------------------------------------------
# Sentiment
# ---------------------------------------------------------------------------


SENTIMENT_METRICS = tuple(label.value for label in SentimentLabel)


def _sentiment_models(snapshot: ReportSnapshot) -> Iterable[str]:
    if snapshot.sentiment is None:
        return []
    detail_models = [r.model for r in snapshot.sentiment.detailed_results or []]
    return [*snapshot.sentiment.model_sentiments, *detail_models]


def _sentiment_resolve(snapshot: ReportSnapshot, model_filter: ModelFilter) -> Resolution:
    sentiment = snapshot.sentiment
    if sentiment is None:
        return Empty("missing section")
    if sentiment.detailed_results:
        return _filtered(sentiment.detailed_results, model_filter)
    if sentiment.distribution is not None and sentiment.distribution.total > 0:
        return PrecomputedSummary(sentiment.distribution)
    return Empty("no sentiment data")


def _sentiment_contribute(
    snapshot: ReportSnapshot,
    resolution: Resolution,
    model_filter: ModelFilter,
    observer: AggregationObserver,
) -> Contribution | None:
    if isinstance(resolution, PrecomputedSummary):
        distribution = resolution.summary
        return Contribution(
            metrics={
                "positive": distribution.positive / distribution.total * 100,
                "neutral": distribution.neutral / distribution.total * 100,
                "negative": distribution.negative / distribution.total * 100,
            }
        )
    if not isinstance(resolution, DetailRecords):
        return None

    totals = dict.fromkeys(SENTIMENT_METRICS, 0.0)
    counted = 0
    for result in resolution.records:
        if result.sentiment_breakdown is not None:
            totals["positive"] += result.sentiment_breakdown.positive
            totals["neutral"] += result.sentiment_breakdown.neutral
            totals["negative"] += result.sentiment_breakdown.negative
        elif result.overall_sentiment is not None:
            totals[result.overall_sentiment.value] += 100
        else:
            observer.item_skipped(
                Facet.SENTIMENT,
                "result without sentiment",
                model=result.model,
                prompt_index=result.prompt_index,
            )
            continue
        counted += 1
    if counted == 0:
        return None
    return Contribution(metrics={name: total / counted for name, total in totals.items()})


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------


def _alignment_models(snapshot: ReportSnapshot) -> Iterable[str]:
    if snapshot.alignment is None:
        return []
    return [r.model for r in snapshot.alignment.detailed_results or []]


def _alignment_resolve(snapshot: ReportSnapshot, model_filter: ModelFilter) -> Resolution:
    alignment = snapshot.alignment
    if alignment is None:
        return Empty("missing section")
    if alignment.detailed_results:
        return _filtered(alignment.detailed_results, model_filter)
    if alignment.average_attribute_scores:
        return PrecomputedSummary(alignment.average_attribute_scores)
    return Empty("no alignment data")


def _alignment_contribute(
    snapshot: ReportSnapshot,
    resolution: Resolution,
    model_filter: ModelFilter,
    observer: AggregationObserver,
) -> Contribution | None:
    if isinstance(resolution, DetailRecords):
        samples = [
            (score.attribute, score.score)
            for result in resolution.records
            for score in result.attribute_scores
        ]
    elif isinstance(resolution, PrecomputedSummary):
        samples = list(resolution.summary.items())
    else:
        return None
    if not samples:
        return None
    # Every attribute score weighs the same within a snapshot
    return Contribution(
        metrics={"score": mean([value for _, value in samples]) * 100},
        samples=samples,
    )


# ---------------------------------------------------------------------------
# Competition
# ---------------------------------------------------------------------------


def _competition_models(snapshot: ReportSnapshot) -> Iterable[str]:
    if snapshot.competition is None:
        return []
    return [r.model for r in snapshot.competition.detailed_results or []]


def _competition_resolve(snapshot: ReportSnapshot, model_filter: ModelFilter) -> Resolution:
    competition = snapshot.competition
    if competition is None:
        return Empty("missing section")
    if competition.detailed_results:
        return _filtered(competition.detailed_results, model_filter)
    if competition.competitor_analyses:
        analyses = [
            (
                analysis.competitor,
                [m for m in analysis.analysis_by_model if model_filter.matches(m.model)],
            )
            for analysis in competition.competitor_analyses
        ]
        return PrecomputedSummary(analyses)
    return Empty("no competition data")


def _competition_contribute(
    snapshot: ReportSnapshot,
    resolution: Resolution,
    model_filter: ModelFilter,
    observer: AggregationObserver,
) -> Contribution | None:
    counts: dict[str, dict[str, int]] = {}
    if isinstance(resolution, DetailRecords):
        for result in resolution.records:
            entry = counts.setdefault(result.competitor, {"strengths": 0, "weaknesses": 0})
            entry["strengths"] += len(result.brand_strengths)
            entry["weaknesses"] += len(result.brand_weaknesses)
    elif isinstance(resolution, PrecomputedSummary):
        for competitor, by_model in resolution.summary:
            counts[competitor] = {
                "strengths": sum(len(m.strengths) for m in by_model),
                "weaknesses": sum(len(m.weaknesses) for m in by_model),
            }
    else:
        return None
    if not counts:
        return None
    return Contribution(
        metrics={
            "strengths": float(sum(c["strengths"] for c in counts.values())),
            "weaknesses": float(sum(c["weaknesses"] for c in counts.values())),
        },
        payload={"competitors": counts},
    )


# ---------------------------------------------------------------------------
# Explorer
# ---------------------------------------------------------------------------


def _explorer_models(snapshot: ReportSnapshot) -> Iterable[str]:
    if snapshot.explorer is None:
        return []
    return [c.model for c in snapshot.explorer.citations()]


def _explorer_resolve(snapshot: ReportSnapshot, model_filter: ModelFilter) -> Resolution:
    # The summary also counts prompts answered without web access, which the
    # citations cannot show, so it wins whenever no model filter applies.
    explorer = snapshot.explorer
    if explorer is None:
        return Empty("missing section")
    if not model_filter.active and explorer.total_prompts is not None:
        return PrecomputedSummary(explorer)
    return _filtered(explorer.citations(), model_filter)


def _explorer_contribute(
    snapshot: ReportSnapshot,
    resolution: Resolution,
    model_filter: ModelFilter,
    observer: AggregationObserver,
) -> Contribution | None:
    if isinstance(resolution, PrecomputedSummary):
        total = resolution.summary.total_prompts or 0
        with_access = resolution.summary.prompts_with_web_access or 0
    elif isinstance(resolution, DetailRecords):
        # Every cited prompt used web access by construction
        total = with_access = len({c.prompt_key for c in resolution.records})
    else:
        return None
    if total <= 0:
        return None
    return Contribution(
        metrics={
            "totalPrompts": float(total),
            "promptsWithWebAccess": float(with_access),
            "webAccessPercentage": with_access / total * 100,
        }
    )


VISIBILITY = FacetDescriptor(
    facet=Facet.VISIBILITY,
    sections=("visibility", "explorer"),
    metrics=("score",),
    headline_metric="score",
    models_of=_visibility_models,
    resolve=_visibility_resolve,
    contribute=_visibility_contribute,
)

SENTIMENT = FacetDescriptor(
    facet=Facet.SENTIMENT,
    sections=("sentiment", "explorer"),
    metrics=SENTIMENT_METRICS,
    headline_metric="positive",
    models_of=_sentiment_models,
    resolve=_sentiment_resolve,
    contribute=_sentiment_contribute,
)

ALIGNMENT = FacetDescriptor(
    facet=Facet.ALIGNMENT,
    sections=("alignment",),
    metrics=("score",),
    headline_metric="score",
    models_of=_alignment_models,
    resolve=_alignment_resolve,
    contribute=_alignment_contribute,
)

COMPETITION = FacetDescriptor(
    facet=Facet.COMPETITION,
    sections=("competition",),
    metrics=("strengths", "weaknesses"),
    headline_metric=None,
    models_of=_competition_models,
    resolve=_competition_resolve,
    contribute=_competition_contribute,
)

EXPLORER = FacetDescriptor(
    facet=Facet.EXPLORER,
    sections=("explorer",),
    metrics=("totalPrompts", "promptsWithWebAccess", "webAccessPercentage"),
    headline_metric="webAccessPercentage",
    models_of=_explorer_models,
    resolve=_explorer_resolve,
    contribute=_explorer_contribute,
)

DESCRIPTORS: dict[Facet, FacetDescriptor] = {
    d.facet: d for d in (VISIBILITY, SENTIMENT, ALIGNMENT, COMPETITION, EXPLORER)
}


def get_descriptor(facet: Facet | str) -> FacetDescriptor:
    """Descriptor for a facet name; raises ValueError for unknown facets."""
    return DESCRIPTORS[Facet(facet)]
