"""Per-facet aggregation results.

Plain dataclasses shaped like the API responses. Each result has an
``empty()`` constructor returning the all-zero form used when no report
matches a query.
"""

from dataclasses import dataclass, field

from analytics.citations.domains import DomainClassification
from analytics.citations.merger import CitationCollection
from analytics.reports.models import WebSearchResult


@dataclass(frozen=True)
class DateRange:
    start: str = ""
    end: str = ""


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VisibilityPoint:
    date: str
    brand: int
    competitors: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ModelScore:
    model: str
    score: int
    variation: float = 0.0


@dataclass(frozen=True)
class CompetitorScore:
    name: str
    average_score: int
    variation: float = 0.0


@dataclass(frozen=True)
class MentionShare:
    mention: str
    count: int
    percentage: int


@dataclass(frozen=True)
class DomainShare:
    domain: str
    count: int
    percentage: int


@dataclass
class VisibilityReport:
    average_score: int = 0
    score_variation: float = 0.0
    available_models: list[str] = field(default_factory=list)
    chart_data: list[VisibilityPoint] = field(default_factory=list)
    model_breakdown: list[ModelScore] = field(default_factory=list)
    competitors: list[CompetitorScore] = field(default_factory=list)
    top_mentions: list[MentionShare] = field(default_factory=list)
    top_domains: list[DomainShare] = field(default_factory=list)
    total_prompts_tested: int = 0
    domain_source_analysis: DomainClassification | None = None
    report_count: int = 0
    date_range: DateRange = field(default_factory=DateRange)

    @classmethod
    def empty(cls) -> "VisibilityReport":
        return cls()


# ---------------------------------------------------------------------------
# Sentiment
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SentimentVariation:
    positive: float = 0.0
    neutral: float = 0.0
    negative: float = 0.0


@dataclass(frozen=True)
class SentimentPoint:
    date: str
    positive: int
    neutral: int
    negative: int


@dataclass(frozen=True)
class SentimentShare:
    type: str
    percentage: int
    variation: float = 0.0


@dataclass
class SentimentReport:
    positive_percentage: int = 0
    neutral_percentage: int = 0
    negative_percentage: int = 0
    overall_sentiment: str = "neutral"
    sentiment_variation: SentimentVariation = field(default_factory=SentimentVariation)
    available_models: list[str] = field(default_factory=list)
    chart_data: list[SentimentPoint] = field(default_factory=list)
    sentiment_breakdown: list[SentimentShare] = field(default_factory=list)
    citations: CitationCollection = field(default_factory=CitationCollection)
    report_count: int = 0
    date_range: DateRange = field(default_factory=DateRange)

    @classmethod
    def empty(cls) -> "SentimentReport":
        return cls()


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AlignmentPoint:
    date: str
    score: int
    report_id: str


@dataclass(frozen=True)
class AttributeShare:
    attribute: str
    score: float
    variation: float = 0.0


@dataclass
class AlignmentReport:
    average_score: int = 0
    score_variation: float = 0.0
    available_models: list[str] = field(default_factory=list)
    chart_data: list[AlignmentPoint] = field(default_factory=list)
    aggregated_attribute_scores: dict[str, float] = field(default_factory=dict)
    attribute_breakdown: list[AttributeShare] = field(default_factory=list)
    citations: CitationCollection = field(default_factory=CitationCollection)
    report_count: int = 0
    date_range: DateRange = field(default_factory=DateRange)

    @classmethod
    def empty(cls) -> "AlignmentReport":
        return cls()


# ---------------------------------------------------------------------------
# Competition
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StrengthCounts:
    strengths_count: int
    weaknesses_count: int


@dataclass(frozen=True)
class CompetitionPoint:
    date: str
    report_id: str
    competitors: dict[str, StrengthCounts] = field(default_factory=dict)


@dataclass(frozen=True)
class CompetitorInsight:
    competitor: str
    strengths_count: int
    weaknesses_count: int
    top_strengths: list[str] = field(default_factory=list)
    top_weaknesses: list[str] = field(default_factory=list)


@dataclass
class CompetitionReport:
    brand_name: str = ""
    competitors: list[str] = field(default_factory=list)
    available_models: list[str] = field(default_factory=list)
    competitor_insights: list[CompetitorInsight] = field(default_factory=list)
    common_strengths: list[str] = field(default_factory=list)
    common_weaknesses: list[str] = field(default_factory=list)
    chart_data: list[CompetitionPoint] = field(default_factory=list)
    citations: CitationCollection = field(default_factory=CitationCollection)
    report_count: int = 0
    date_range: DateRange = field(default_factory=DateRange)

    @classmethod
    def empty(cls) -> "CompetitionReport":
        return cls()


# ---------------------------------------------------------------------------
# Explorer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExplorerSummary:
    total_prompts: int = 0
    prompts_with_web_access: int = 0
    web_access_percentage: int = 0
    total_citations: int = 0
    unique_sources: int = 0


@dataclass(frozen=True)
class RankedItem:
    name: str
    count: int


@dataclass(frozen=True)
class ExplorerPoint:
    date: str
    total_prompts: int
    prompts_with_web_access: int
    web_access_percentage: int


@dataclass
class ExplorerReport:
    summary: ExplorerSummary = field(default_factory=ExplorerSummary)
    top_keywords: list[RankedItem] = field(default_factory=list)
    top_sources: list[RankedItem] = field(default_factory=list)
    web_search_results: list[WebSearchResult] = field(default_factory=list)
    chart_data: list[ExplorerPoint] = field(default_factory=list)
    domain_source_analysis: DomainClassification | None = None
    available_models: list[str] = field(default_factory=list)
    report_count: int = 0
    date_range: DateRange = field(default_factory=DateRange)

    @classmethod
    def empty(cls) -> "ExplorerReport":
        return cls()
