"""Report snapshot data model.

Brand reports are stored as camelCase JSON documents, one sub-document per
section (visibility, sentiment, alignment, competition, explorer). Every
section and every field inside it is optional: older reports predate some
fields, and LLM pipelines occasionally write partial results. Parsing here is
deliberately lenient. Missing sections become ``None``, malformed scalars fall
back to neutral defaults with a warning, and nothing in a single record can
make a whole snapshot unreadable.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class SentimentLabel(StrEnum):
    """Sentiment bucket assigned to an LLM answer."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


# ---------------------------------------------------------------------------
# Lenient field coercion
# ---------------------------------------------------------------------------


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _as_float(value: Any, field_name: str, default: float | None = 0.0) -> float | None:
    if value is None:
        return default
    if isinstance(value, bool):
        return float(value)
    try:
        parsed = float(value if isinstance(value, int | float) else str(value).strip())
    except (ValueError, OverflowError):
        logger.warning("Malformed numeric field", field=field_name, value=value)
        return default
    if not math.isfinite(parsed):
        logger.warning("Non-finite numeric field", field=field_name, value=value)
        return default
    return parsed


def _as_int(value: Any, field_name: str, default: int = 0) -> int:
    parsed = _as_float(value, field_name, None)
    return int(parsed) if parsed is not None else default


def _as_str_list(value: Any) -> list[str]:
    return [item for item in _as_list(value) if isinstance(item, str)]


def parse_percentage(value: Any) -> float | None:
    """Parse a percentage string such as ``"48%"`` into ``48.0``.

    Returns None (and logs a warning) when the value is not a finite number.
    """
    if value is None:
        return None
    numeric = isinstance(value, int | float) and not isinstance(value, bool)
    try:
        parsed = float(value if numeric else str(value).strip().rstrip("%").strip())
    except (ValueError, OverflowError):
        logger.warning("Malformed percentage", value=value)
        return None
    if not math.isfinite(parsed):
        logger.warning("Non-finite percentage", value=value)
        return None
    return parsed


def parse_sentiment(value: Any) -> SentimentLabel:
    """Map a sentiment label to a bucket; unknown labels count as neutral."""
    if isinstance(value, str):
        try:
            return SentimentLabel(value.strip().lower())
        except ValueError:
            pass
    logger.warning("Unrecognized sentiment label", value=value)
    return SentimentLabel.NEUTRAL


def parse_datetime(value: Any) -> datetime:
    """Parse a report timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value)
    else:
        raise ValueError(f"Invalid report timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Citation:
    """A source URL attached to an LLM answer."""

    url: str
    title: str | None = None
    text: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "Citation | None":
        data = _as_mapping(data)
        url = data.get("url") or data.get("link")
        if not url:
            return None
        return cls(
            url=_as_str(url),
            title=data.get("title") or data.get("website"),
            text=data.get("text"),
        )


def _citations(value: Any) -> list[Citation]:
    parsed = (Citation.from_dict(item) for item in _as_list(value))
    return [c for c in parsed if c is not None]


@dataclass(frozen=True)
class NamedCount:
    """A ``{name, count}`` pair from a pre-aggregated top list."""

    name: str
    count: int


def _named_counts(value: Any, name_key: str) -> list[NamedCount]:
    items = []
    for raw in _as_list(value):
        raw = _as_mapping(raw)
        name = raw.get(name_key)
        if not name:
            continue
        items.append(NamedCount(name=_as_str(name), count=_as_int(raw.get("count"), "count")))
    return items


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ModelRate:
    """Mention rate of one model."""

    model: str
    rate: float


@dataclass(frozen=True)
class ArenaMetric:
    """A competitor's visibility figure within one report."""

    name: str
    global_rate: float | None
    models_mentions_rate: list[ModelRate] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "ArenaMetric | None":
        data = _as_mapping(data)
        name = data.get("name")
        if not name:
            return None
        rates = None
        if isinstance(data.get("modelsMentionsRate"), list):
            rates = [
                ModelRate(
                    model=_as_str(r.get("model")),
                    rate=_as_float(r.get("mentionsRate"), "mentionsRate") or 0.0,
                )
                for r in data["modelsMentionsRate"]
                if isinstance(r, Mapping)
            ]
        return cls(
            name=_as_str(name),
            global_rate=parse_percentage(data.get("global")),
            models_mentions_rate=rates,
        )


@dataclass(frozen=True)
class VisibilityResult:
    """One model's answer to one visibility prompt."""

    model: str
    prompt_index: int
    brand_mentioned: bool
    extracted_companies: list[str] = field(default_factory=list)
    citations: list[Citation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "VisibilityResult":
        data = _as_mapping(data)
        return cls(
            model=_as_str(data.get("model")),
            prompt_index=_as_int(data.get("promptIndex"), "promptIndex"),
            brand_mentioned=bool(data.get("brandMentioned", False)),
            extracted_companies=_as_str_list(data.get("extractedCompanies")),
            citations=_citations(data.get("citations")),
        )


@dataclass(frozen=True)
class VisibilitySection:
    """How often the brand shows up in LLM answers."""

    overall_mention_rate: float | None = None
    prompts_tested: int | None = None
    model_visibility: list[ModelRate] = field(default_factory=list)
    arena_metrics: list[ArenaMetric] = field(default_factory=list)
    detailed_results: list[VisibilityResult] | None = None
    top_mentions: list[NamedCount] | None = None
    top_domains: list[NamedCount] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "VisibilitySection":
        data = _as_mapping(data)
        model_visibility = [
            ModelRate(
                model=_as_str(mv.get("model")),
                rate=_as_float(mv.get("mentionRate"), "mentionRate") or 0.0,
            )
            for mv in _as_list(data.get("modelVisibility"))
            if isinstance(mv, Mapping) and mv.get("model")
        ]
        arena = [ArenaMetric.from_dict(a) for a in _as_list(data.get("arenaMetrics"))]
        prompts_tested = data.get("promptsTested")
        return cls(
            overall_mention_rate=_as_float(
                data.get("overallMentionRate"), "overallMentionRate", None
            ),
            prompts_tested=(
                _as_int(prompts_tested, "promptsTested") if prompts_tested is not None else None
            ),
            model_visibility=model_visibility,
            arena_metrics=[a for a in arena if a is not None],
            detailed_results=(
                [VisibilityResult.from_dict(r) for r in data["detailedResults"]]
                if isinstance(data.get("detailedResults"), list)
                else None
            ),
            top_mentions=(
                _named_counts(data["topMentions"], "mention")
                if isinstance(data.get("topMentions"), list)
                else None
            ),
            top_domains=(
                _named_counts(data["topDomains"], "domain")
                if isinstance(data.get("topDomains"), list)
                else None
            ),
        )


# ---------------------------------------------------------------------------
# Sentiment
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SentimentSplit:
    """Positive/neutral/negative percentages (0-100)."""

    positive: float = 0.0
    neutral: float = 0.0
    negative: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> "SentimentSplit":
        data = _as_mapping(data)
        return cls(
            positive=_as_float(data.get("positive"), "positive") or 0.0,
            neutral=_as_float(data.get("neutral"), "neutral") or 0.0,
            negative=_as_float(data.get("negative"), "negative") or 0.0,
        )


@dataclass(frozen=True)
class SentimentDistribution:
    """Answer counts per sentiment bucket."""

    positive: int = 0
    neutral: int = 0
    negative: int = 0
    total: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "SentimentDistribution":
        data = _as_mapping(data)
        return cls(
            positive=_as_int(data.get("positive"), "positive"),
            neutral=_as_int(data.get("neutral"), "neutral"),
            negative=_as_int(data.get("negative"), "negative"),
            total=_as_int(data.get("total"), "total"),
        )


@dataclass(frozen=True)
class SentimentResult:
    """One model's answer to one sentiment prompt."""

    model: str
    prompt_index: int
    original_prompt: str = ""
    sentiment_breakdown: SentimentSplit | None = None
    overall_sentiment: SentimentLabel | None = None
    citations: list[Citation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "SentimentResult":
        data = _as_mapping(data)
        label = data.get("overallSentiment") or data.get("sentiment")
        breakdown = data.get("sentimentBreakdown")
        return cls(
            model=_as_str(data.get("model")),
            prompt_index=_as_int(data.get("promptIndex"), "promptIndex"),
            original_prompt=_as_str(data.get("originalPrompt")),
            sentiment_breakdown=(
                SentimentSplit.from_dict(breakdown) if isinstance(breakdown, Mapping) else None
            ),
            overall_sentiment=parse_sentiment(label) if label is not None else None,
            citations=_citations(data.get("citations")),
        )


@dataclass(frozen=True)
class HeatmapResult:
    model: str
    sentiment: SentimentLabel
    citations: list[Citation] = field(default_factory=list)


@dataclass(frozen=True)
class HeatmapEntry:
    """Per-question sentiment of every model."""

    question: str
    results: list[HeatmapResult] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "HeatmapEntry":
        data = _as_mapping(data)
        results = [
            HeatmapResult(
                model=_as_str(r.get("model")),
                sentiment=parse_sentiment(r.get("sentiment", SentimentLabel.NEUTRAL.value)),
                citations=_citations(r.get("citations")),
            )
            for r in _as_list(data.get("results"))
            if isinstance(r, Mapping)
        ]
        return cls(question=_as_str(data.get("question")), results=results)


@dataclass(frozen=True)
class SentimentSection:
    """Tone of LLM answers about the brand."""

    distribution: SentimentDistribution | None = None
    model_sentiments: list[str] = field(default_factory=list)
    detailed_results: list[SentimentResult] | None = None
    heatmap_data: list[HeatmapEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "SentimentSection":
        data = _as_mapping(data)
        distribution = data.get("distribution")
        return cls(
            distribution=(
                SentimentDistribution.from_dict(distribution)
                if isinstance(distribution, Mapping)
                else None
            ),
            model_sentiments=[
                _as_str(ms.get("model"))
                for ms in _as_list(data.get("modelSentiments"))
                if isinstance(ms, Mapping) and ms.get("model")
            ],
            detailed_results=(
                [SentimentResult.from_dict(r) for r in data["detailedResults"]]
                if isinstance(data.get("detailedResults"), list)
                else None
            ),
            heatmap_data=[HeatmapEntry.from_dict(h) for h in _as_list(data.get("heatmapData"))],
        )


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AttributeScore:
    attribute: str
    score: float


@dataclass(frozen=True)
class AlignmentResult:
    """How well one answer matches the brand's intended attributes."""

    model: str
    prompt_index: int
    original_prompt: str = ""
    attribute_scores: list[AttributeScore] = field(default_factory=list)
    citations: list[Citation] = field(default_factory=list)

    @property
    def average_score(self) -> float:
        if not self.attribute_scores:
            return 0.0
        return sum(s.score for s in self.attribute_scores) / len(self.attribute_scores)

    @classmethod
    def from_dict(cls, data: Any) -> "AlignmentResult":
        data = _as_mapping(data)
        scores = [
            AttributeScore(
                attribute=_as_str(s.get("attribute")),
                score=_as_float(s.get("score"), "score") or 0.0,
            )
            for s in _as_list(data.get("attributeScores"))
            if isinstance(s, Mapping) and s.get("attribute")
        ]
        return cls(
            model=_as_str(data.get("model")),
            prompt_index=_as_int(data.get("promptIndex"), "promptIndex"),
            original_prompt=_as_str(data.get("originalPrompt")),
            attribute_scores=scores,
            citations=_citations(data.get("citations")),
        )


@dataclass(frozen=True)
class AlignmentSection:
    detailed_results: list[AlignmentResult] | None = None
    average_attribute_scores: dict[str, float] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "AlignmentSection":
        data = _as_mapping(data)
        summary = _as_mapping(data.get("summary"))
        averages = summary.get("averageAttributeScores")
        return cls(
            detailed_results=(
                [AlignmentResult.from_dict(r) for r in data["detailedResults"]]
                if isinstance(data.get("detailedResults"), list)
                else None
            ),
            average_attribute_scores=(
                {
                    _as_str(k): _as_float(v, "averageAttributeScores") or 0.0
                    for k, v in averages.items()
                }
                if isinstance(averages, Mapping)
                else None
            ),
        )


# ---------------------------------------------------------------------------
# Competition
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompetitionResult:
    """One model's head-to-head comparison of the brand against a competitor."""

    model: str
    competitor: str
    prompt_index: int = 0
    original_prompt: str = ""
    brand_strengths: list[str] = field(default_factory=list)
    brand_weaknesses: list[str] = field(default_factory=list)
    citations: list[Citation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "CompetitionResult":
        data = _as_mapping(data)
        return cls(
            model=_as_str(data.get("model")),
            competitor=_as_str(data.get("competitor")),
            prompt_index=_as_int(data.get("promptIndex"), "promptIndex"),
            original_prompt=_as_str(data.get("originalPrompt")),
            brand_strengths=_as_str_list(data.get("brandStrengths")),
            brand_weaknesses=_as_str_list(data.get("brandWeaknesses")),
            citations=_citations(data.get("citations")),
        )


@dataclass(frozen=True)
class ModelAnalysis:
    model: str
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CompetitorAnalysis:
    """Pre-aggregated strengths/weaknesses per model for one competitor."""

    competitor: str
    analysis_by_model: list[ModelAnalysis] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "CompetitorAnalysis":
        data = _as_mapping(data)
        return cls(
            competitor=_as_str(data.get("competitor")),
            analysis_by_model=[
                ModelAnalysis(
                    model=_as_str(m.get("model")),
                    strengths=_as_str_list(m.get("strengths")),
                    weaknesses=_as_str_list(m.get("weaknesses")),
                )
                for m in _as_list(data.get("analysisByModel"))
                if isinstance(m, Mapping)
            ],
        )


@dataclass(frozen=True)
class CompetitionSection:
    brand_name: str = ""
    competitors: list[str] = field(default_factory=list)
    competitor_analyses: list[CompetitorAnalysis] = field(default_factory=list)
    detailed_results: list[CompetitionResult] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "CompetitionSection":
        data = _as_mapping(data)
        return cls(
            brand_name=_as_str(data.get("brandName")),
            competitors=_as_str_list(data.get("competitors")),
            competitor_analyses=[
                CompetitorAnalysis.from_dict(a)
                for a in _as_list(data.get("competitorAnalyses"))
                if isinstance(a, Mapping) and a.get("competitor")
            ],
            detailed_results=(
                [CompetitionResult.from_dict(r) for r in data["detailedResults"]]
                if isinstance(data.get("detailedResults"), list)
                else None
            ),
        )


# ---------------------------------------------------------------------------
# Explorer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExplorerCitation:
    """A web source consulted by a model while answering a prompt."""

    website: str
    model: str
    prompt_type: str
    prompt_index: int
    link: str | None = None

    @property
    def prompt_key(self) -> str:
        return f"{self.model}-{self.prompt_type}-{self.prompt_index}"

    @classmethod
    def from_dict(cls, data: Any) -> "ExplorerCitation":
        data = _as_mapping(data)
        return cls(
            website=_as_str(data.get("website")),
            model=_as_str(data.get("model")),
            prompt_type=_as_str(data.get("promptType")),
            prompt_index=_as_int(data.get("promptIndex"), "promptIndex"),
            link=data.get("link") or None,
        )

    def to_dict(self) -> dict:
        return {
            "website": self.website,
            "link": self.link,
            "model": self.model,
            "promptType": self.prompt_type,
            "promptIndex": self.prompt_index,
        }


@dataclass(frozen=True)
class WebSearchResult:
    query: str
    citations: list[ExplorerCitation] = field(default_factory=list)
    timestamp: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "WebSearchResult":
        data = _as_mapping(data)
        return cls(
            query=_as_str(data.get("query")),
            citations=[
                ExplorerCitation.from_dict(c)
                for c in _as_list(data.get("citations"))
                if isinstance(c, Mapping)
            ],
            timestamp=data.get("timestamp"),
        )


@dataclass(frozen=True)
class DomainSourceCounts:
    """Pre-computed brand/competitor/unknown citation split of one report."""

    brand_domain_count: int = 0
    other_sources_count: int = 0
    unknown_sources_count: int = 0
    competitor_counts: list[NamedCount] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "DomainSourceCounts":
        data = _as_mapping(data)
        return cls(
            brand_domain_count=_as_int(data.get("brandDomainCount"), "brandDomainCount"),
            other_sources_count=_as_int(data.get("otherSourcesCount"), "otherSourcesCount"),
            unknown_sources_count=_as_int(
                data.get("unknownSourcesCount"), "unknownSourcesCount"
            ),
            competitor_counts=_named_counts(data.get("competitorBreakdown"), "name"),
        )


@dataclass(frozen=True)
class ExplorerSection:
    """Web access behaviour of the models: searches, sources, keywords."""

    total_prompts: int | None = None
    prompts_with_web_access: int | None = None
    top_keywords: list[NamedCount] = field(default_factory=list)
    top_sources: list[NamedCount] = field(default_factory=list)
    web_search_results: list[WebSearchResult] | None = None
    domain_source_analysis: DomainSourceCounts | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "ExplorerSection":
        data = _as_mapping(data)
        summary = data.get("summary")
        analysis = data.get("domainSourceAnalysis")
        return cls(
            total_prompts=(
                _as_int(summary.get("totalPrompts"), "totalPrompts")
                if isinstance(summary, Mapping)
                else None
            ),
            prompts_with_web_access=(
                _as_int(summary.get("promptsWithWebAccess"), "promptsWithWebAccess")
                if isinstance(summary, Mapping)
                else None
            ),
            top_keywords=_named_counts(data.get("topKeywords"), "keyword"),
            top_sources=_named_counts(data.get("topSources"), "domain"),
            web_search_results=(
                [WebSearchResult.from_dict(r) for r in data["webSearchResults"]]
                if isinstance(data.get("webSearchResults"), list)
                else None
            ),
            domain_source_analysis=(
                DomainSourceCounts.from_dict(analysis) if isinstance(analysis, Mapping) else None
            ),
        )

    def citations(self) -> list[ExplorerCitation]:
        return [c for r in self.web_search_results or [] for c in r.citations]


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


SECTION_NAMES = ("visibility", "sentiment", "alignment", "competition", "explorer")

_SECTION_PARSERS = {
    "visibility": VisibilitySection.from_dict,
    "sentiment": SentimentSection.from_dict,
    "alignment": AlignmentSection.from_dict,
    "competition": CompetitionSection.from_dict,
    "explorer": ExplorerSection.from_dict,
}


@dataclass(frozen=True)
class ReportSnapshot:
    """One persisted brand report, read-only input to the aggregation core."""

    id: str
    project_id: str
    report_date: datetime
    generated_at: datetime | None = None
    brand_name: str = ""
    visibility: VisibilitySection | None = None
    sentiment: SentimentSection | None = None
    alignment: AlignmentSection | None = None
    competition: CompetitionSection | None = None
    explorer: ExplorerSection | None = None

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "ReportSnapshot":
        """Build a snapshot from a camelCase report document."""
        sections = {
            name: parser(document[name]) if isinstance(document.get(name), Mapping) else None
            for name, parser in _SECTION_PARSERS.items()
        }
        generated_at = document.get("generatedAt")
        return cls(
            id=_as_str(document.get("id")),
            project_id=_as_str(document.get("projectId")),
            report_date=parse_datetime(document.get("reportDate")),
            generated_at=parse_datetime(generated_at) if generated_at else None,
            brand_name=_as_str(document.get("brandName")),
            **sections,
        )
