"""Tests for lenient report document parsing."""

from datetime import UTC, datetime

import pytest

from analytics.reports.models import (
    ArenaMetric,
    Citation,
    ExplorerSection,
    ReportSnapshot,
    SentimentLabel,
    SentimentResult,
    VisibilitySection,
    parse_datetime,
    parse_percentage,
    parse_sentiment,
)
from tests.fixtures.reports import (
    arena_metric,
    explorer_citation,
    explorer_section,
    report_document,
    visibility_result,
    visibility_section,
)


class TestScalarParsing:
    def test_percentage_strings(self) -> None:
        assert parse_percentage("48%") == 48.0
        assert parse_percentage(" 12.5 % ") == 12.5
        assert parse_percentage(30) == 30.0

    def test_malformed_percentage_is_none(self) -> None:
        assert parse_percentage("n/a") is None
        assert parse_percentage(None) is None

    @pytest.mark.parametrize("value", ["NaN", "inf", "-inf%", "1e400", float("nan")])
    def test_non_finite_percentage_is_none(self, value) -> None:
        assert parse_percentage(value) is None

    def test_sentiment_labels(self) -> None:
        assert parse_sentiment("Positive") is SentimentLabel.POSITIVE
        assert parse_sentiment("negative") is SentimentLabel.NEGATIVE

    def test_unknown_sentiment_is_neutral(self) -> None:
        assert parse_sentiment("ecstatic") is SentimentLabel.NEUTRAL
        assert parse_sentiment(None) is SentimentLabel.NEUTRAL

    def test_naive_datetime_is_utc(self) -> None:
        parsed = parse_datetime("2024-03-01T12:00:00")
        assert parsed == datetime(2024, 3, 1, 12, tzinfo=UTC)

    def test_missing_datetime_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_datetime(None)


class TestCitation:
    def test_link_is_accepted_as_url(self) -> None:
        citation = Citation.from_dict({"link": "https://a.com/x", "website": "a.com"})
        assert citation == Citation(url="https://a.com/x", title="a.com")

    def test_citation_without_url_is_dropped(self) -> None:
        assert Citation.from_dict({"title": "nothing"}) is None


class TestVisibilitySection:
    def test_parses_camel_case(self) -> None:
        section = VisibilitySection.from_dict(
            visibility_section(
                {"gpt-4o": 0.5},
                arena=[arena_metric("Orange", "40%", {"gpt-4o": 35})],
                detailed=[visibility_result("gpt-4o", companies=["Acme"])],
                prompts_tested=12,
                top_mentions={"Acme": 4},
            )
        )
        assert section.model_visibility[0].model == "gpt-4o"
        assert section.model_visibility[0].rate == 0.5
        assert section.arena_metrics[0].global_rate == 40.0
        assert section.arena_metrics[0].models_mentions_rate[0].rate == 35.0
        assert section.detailed_results[0].extracted_companies == ["Acme"]
        assert section.prompts_tested == 12
        assert section.top_mentions[0].name == "Acme"
        assert section.top_domains is None

    def test_malformed_rate_defaults_to_zero(self) -> None:
        section = VisibilitySection.from_dict(
            {"modelVisibility": [{"model": "gpt-4o", "mentionRate": "lots"}]}
        )
        assert section.model_visibility[0].rate == 0.0

    def test_non_finite_values_fall_back(self) -> None:
        section = VisibilitySection.from_dict(
            visibility_section(
                {"gpt-4o": "NaN", "claude": "inf"},
                arena=[arena_metric("Orange", "inf%")],
                overall="-inf",
            )
        )
        assert [m.rate for m in section.model_visibility] == [0.0, 0.0]
        assert section.arena_metrics[0].global_rate is None
        assert section.overall_mention_rate is None

    def test_arena_metric_without_global(self) -> None:
        metric = ArenaMetric.from_dict({"name": "Orange", "global": "??"})
        assert metric.global_rate is None
        assert metric.models_mentions_rate is None


class TestSentimentResult:
    def test_label_falls_back_to_sentiment_key(self) -> None:
        result = SentimentResult.from_dict({"model": "m", "sentiment": "negative"})
        assert result.overall_sentiment is SentimentLabel.NEGATIVE
        assert result.sentiment_breakdown is None

    def test_no_label_stays_unset(self) -> None:
        assert SentimentResult.from_dict({"model": "m"}).overall_sentiment is None


class TestExplorerSection:
    def test_citations_are_flattened(self) -> None:
        section = ExplorerSection.from_dict(
            explorer_section(
                total_prompts=10,
                with_web_access=4,
                searches=[
                    ("q1", [explorer_citation("a.com", "gpt-4o")]),
                    ("q2", [explorer_citation("b.com", "claude", prompt_index=2)]),
                ],
                sources={"a.com": 3},
            )
        )
        assert section.total_prompts == 10
        assert section.prompts_with_web_access == 4
        assert [c.website for c in section.citations()] == ["a.com", "b.com"]
        assert section.citations()[1].prompt_key == "claude-visibility-2"
        assert section.top_sources[0].name == "a.com"

    def test_without_summary(self) -> None:
        section = ExplorerSection.from_dict({"webSearchResults": []})
        assert section.total_prompts is None
        assert section.citations() == []


class TestReportSnapshot:
    def test_missing_sections_are_none(self) -> None:
        snapshot = ReportSnapshot.from_document(
            report_document("r1", "2024-03-01", visibility=visibility_section({"m": 0.5}))
        )
        assert snapshot.id == "r1"
        assert snapshot.report_date == datetime(2024, 3, 1, tzinfo=UTC)
        assert snapshot.visibility is not None
        assert snapshot.sentiment is None
        assert snapshot.explorer is None

    def test_non_mapping_section_is_ignored(self) -> None:
        snapshot = ReportSnapshot.from_document(
            report_document("r1", "2024-03-01", sentiment=["not", "a", "section"])
        )
        assert snapshot.sentiment is None

    def test_accepts_datetime_values(self) -> None:
        document = report_document("r1", "2024-03-01")
        document["reportDate"] = datetime(2024, 3, 1, 8, 30)
        snapshot = ReportSnapshot.from_document(document)
        assert snapshot.report_date == datetime(2024, 3, 1, 8, 30, tzinfo=UTC)
