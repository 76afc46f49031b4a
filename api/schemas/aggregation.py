"""Aggregated report query and response schemas.

Responses are serialized with camelCase aliases to match the dashboard's
contract (``averageScore``, ``chartData``, ...). They validate straight from
the aggregation core's result dataclasses.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema with camelCase aliases on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class AggregationQuery(CamelModel):
    """Aggregation query parameters."""

    start_date: date | None = Field(None, description="First report date (inclusive)")
    end_date: date | None = Field(None, description="Last report date (inclusive)")
    models: list[str] = Field(default_factory=list, description="Restrict to these models")
    include_variation: bool = Field(False, description="Compare with the previous period")
    latest_only: bool = Field(False, description="Only the most recent report")


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class DateRange(CamelModel):
    start: str = Field("", description="ISO timestamp of the first report")
    end: str = Field("", description="ISO timestamp of the last report")


class CitationItem(CamelModel):
    domain: str
    url: str
    title: str = ""
    text: str | None = None
    prompts: list[str] = Field(default_factory=list)
    sentiments: list[str] = Field(default_factory=list)
    scores: list[float] = Field(default_factory=list)
    models: list[str] = Field(default_factory=list)
    count: int = 0


class Citations(CamelModel):
    items: list[CitationItem] = Field(default_factory=list)
    unique_domains: int = 0
    total_citations: int = 0


class CompetitorShare(CamelModel):
    name: str
    count: int
    percentage: float


class DomainSourceAnalysis(CamelModel):
    brand_domain_percentage: float
    other_sources_percentage: float
    unknown_sources_percentage: float
    brand_domain_count: int
    other_sources_count: int
    unknown_sources_count: int
    competitor_breakdown: list[CompetitorShare] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


class VisibilityChartPoint(CamelModel):
    date: str
    brand: int
    competitors: dict[str, int] = Field(default_factory=dict)


class ModelScore(CamelModel):
    model: str
    score: int
    variation: float = 0.0


class CompetitorScore(CamelModel):
    name: str
    average_score: int
    variation: float = 0.0


class TopMention(CamelModel):
    mention: str
    count: int
    percentage: int


class TopDomain(CamelModel):
    domain: str
    count: int
    percentage: int


class AggregatedVisibilityResponse(CamelModel):
    """Brand visibility across the selected reports."""

    average_score: int = 0
    score_variation: float = 0.0
    available_models: list[str] = Field(default_factory=list)
    chart_data: list[VisibilityChartPoint] = Field(default_factory=list)
    model_breakdown: list[ModelScore] = Field(default_factory=list)
    competitors: list[CompetitorScore] = Field(default_factory=list)
    top_mentions: list[TopMention] = Field(default_factory=list)
    top_domains: list[TopDomain] = Field(default_factory=list)
    total_prompts_tested: int = 0
    domain_source_analysis: DomainSourceAnalysis | None = None
    report_count: int = 0
    date_range: DateRange = Field(default_factory=DateRange)


# ---------------------------------------------------------------------------
# Sentiment
# ---------------------------------------------------------------------------


class SentimentVariation(CamelModel):
    positive: float = 0.0
    neutral: float = 0.0
    negative: float = 0.0


class SentimentChartPoint(CamelModel):
    date: str
    positive: int
    neutral: int
    negative: int


class SentimentShare(CamelModel):
    type: str
    percentage: int
    variation: float = 0.0


class AggregatedSentimentResponse(CamelModel):
    """Tone of answers across the selected reports."""

    positive_percentage: int = 0
    neutral_percentage: int = 0
    negative_percentage: int = 0
    overall_sentiment: str = "neutral"
    sentiment_variation: SentimentVariation = Field(default_factory=SentimentVariation)
    available_models: list[str] = Field(default_factory=list)
    chart_data: list[SentimentChartPoint] = Field(default_factory=list)
    sentiment_breakdown: list[SentimentShare] = Field(default_factory=list)
    citations: Citations = Field(default_factory=Citations)
    report_count: int = 0
    date_range: DateRange = Field(default_factory=DateRange)


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------


class AlignmentChartPoint(CamelModel):
    date: str
    score: int
    report_id: str


class AttributeScore(CamelModel):
    attribute: str
    score: float
    variation: float = 0.0


class AggregatedAlignmentResponse(CamelModel):
    """Brand attribute alignment across the selected reports."""

    average_score: int = 0
    score_variation: float = 0.0
    available_models: list[str] = Field(default_factory=list)
    chart_data: list[AlignmentChartPoint] = Field(default_factory=list)
    aggregated_attribute_scores: dict[str, float] = Field(default_factory=dict)
    attribute_breakdown: list[AttributeScore] = Field(default_factory=list)
    citations: Citations = Field(default_factory=Citations)
    report_count: int = 0
    date_range: DateRange = Field(default_factory=DateRange)


# ---------------------------------------------------------------------------
# Competition
# ---------------------------------------------------------------------------


class StrengthCounts(CamelModel):
    strengths_count: int
    weaknesses_count: int


class CompetitionChartPoint(CamelModel):
    date: str
    report_id: str
    competitors: dict[str, StrengthCounts] = Field(default_factory=dict)


class CompetitorInsight(CamelModel):
    competitor: str
    strengths_count: int
    weaknesses_count: int
    top_strengths: list[str] = Field(default_factory=list)
    top_weaknesses: list[str] = Field(default_factory=list)


class AggregatedCompetitionResponse(CamelModel):
    """Head-to-head comparisons across the selected reports."""

    brand_name: str = ""
    competitors: list[str] = Field(default_factory=list)
    available_models: list[str] = Field(default_factory=list)
    competitor_insights: list[CompetitorInsight] = Field(default_factory=list)
    common_strengths: list[str] = Field(default_factory=list)
    common_weaknesses: list[str] = Field(default_factory=list)
    chart_data: list[CompetitionChartPoint] = Field(default_factory=list)
    citations: Citations = Field(default_factory=Citations)
    report_count: int = 0
    date_range: DateRange = Field(default_factory=DateRange)


# ---------------------------------------------------------------------------
# Explorer
# ---------------------------------------------------------------------------


class ExplorerSummary(CamelModel):
    total_prompts: int = 0
    prompts_with_web_access: int = 0
    web_access_percentage: int = 0
    total_citations: int = 0
    unique_sources: int = 0


class RankedItem(CamelModel):
    name: str
    count: int


class ExplorerCitation(CamelModel):
    website: str
    link: str | None = None
    model: str
    prompt_type: str
    prompt_index: int


class WebSearchResult(CamelModel):
    query: str
    citations: list[ExplorerCitation] = Field(default_factory=list)
    timestamp: str | None = None


class ExplorerChartPoint(CamelModel):
    date: str
    total_prompts: int
    prompts_with_web_access: int
    web_access_percentage: int


class AggregatedExplorerResponse(CamelModel):
    """Web access behaviour across the selected reports."""

    summary: ExplorerSummary = Field(default_factory=ExplorerSummary)
    top_keywords: list[RankedItem] = Field(default_factory=list)
    top_sources: list[RankedItem] = Field(default_factory=list)
    web_search_results: list[WebSearchResult] = Field(default_factory=list)
    chart_data: list[ExplorerChartPoint] = Field(default_factory=list)
    domain_source_analysis: DomainSourceAnalysis | None = None
    available_models: list[str] = Field(default_factory=list)
    report_count: int = 0
    date_range: DateRange = Field(default_factory=DateRange)
