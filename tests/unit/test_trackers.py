"""Tests for mention and domain trackers."""

from analytics.aggregation.filters import ModelFilter
from analytics.aggregation.trackers import (
    OTHERS_LABEL,
    DomainTracker,
    EntityTracker,
    MentionTracker,
    TopEntry,
)
from tests.fixtures.report_store import RecordingObserver
from tests.fixtures.reports import (
    explorer_citation,
    explorer_section,
    make_snapshot,
    visibility_result,
    visibility_section,
)

NO_FILTER = ModelFilter()
GPT_ONLY = ModelFilter(("gpt-4o",))


def _snapshot(**visibility_kwargs):
    return make_snapshot(
        "r1",
        "2024-03-01",
        visibility=visibility_section(
            {"gpt-4o": 0.5, "claude": 0.5},
            detailed=[
                visibility_result(
                    "gpt-4o", companies=["Acme", "Orange"], urls=["https://www.acme.com/a"]
                ),
                visibility_result("claude", companies=["Acme"], urls=["https://wiki.org/x"]),
            ],
            **visibility_kwargs,
        ),
    )


class TestEntityTracker:
    def test_case_insensitive_with_first_seen_display(self) -> None:
        tracker = EntityTracker()
        tracker.add("Acme", 2)
        tracker.add(" ACME ", 1)
        tracker.add("Orange")

        assert len(tracker) == 2
        assert tracker.top(5) == [TopEntry("Acme", 3, 75), TopEntry("Orange", 1, 25)]

    def test_ties_keep_insertion_order(self) -> None:
        tracker = EntityTracker()
        for name in ("b", "a", "c"):
            tracker.add(name, 2)
        assert [entry.name for entry in tracker.top(3)] == ["b", "a", "c"]

    def test_blank_and_non_positive_ignored(self) -> None:
        tracker = EntityTracker()
        tracker.add("  ")
        tracker.add("Acme", 0)
        assert tracker.total == 0
        assert tracker.top(3) == []


class TestMentionTracker:
    def test_prefers_top_mentions_without_filter(self) -> None:
        tracker = MentionTracker()
        tracker.track(_snapshot(top_mentions={"Acme": 10, "Orange": 5}), NO_FILTER)
        assert tracker.counts() == {"acme": 10, "orange": 5}

    def test_filter_counts_matching_detail(self) -> None:
        tracker = MentionTracker()
        tracker.track(_snapshot(top_mentions={"Acme": 10}), GPT_ONLY)
        assert tracker.top(5) == [TopEntry("Acme", 1, 50), TopEntry("Orange", 1, 50)]

    def test_detail_without_top_mentions(self) -> None:
        tracker = MentionTracker()
        tracker.track(_snapshot(), NO_FILTER)
        assert tracker.counts() == {"acme": 2, "orange": 1}

    def test_accumulates_across_snapshots(self) -> None:
        tracker = MentionTracker()
        tracker.track(_snapshot(top_mentions={"Acme": 5, "Orange": 3}), NO_FILTER)
        tracker.track(_snapshot(top_mentions={"acme": 1}), NO_FILTER)
        assert tracker.top(5) == [TopEntry("Acme", 6, 67), TopEntry("Orange", 3, 33)]


class TestDomainTracker:
    def test_prefers_top_domains_without_filter(self) -> None:
        tracker = DomainTracker()
        tracker.track(_snapshot(top_domains={"Acme.com": 7}), NO_FILTER)
        assert tracker.counts() == {"acme.com": 7}

    def test_filter_uses_citation_hosts(self) -> None:
        tracker = DomainTracker()
        tracker.track(_snapshot(top_domains={"acme.com": 7}), GPT_ONLY)
        assert tracker.counts() == {"www.acme.com": 1}

    def test_explorer_visibility_citations_take_precedence(self) -> None:
        snapshot = make_snapshot(
            "r1",
            "2024-03-01",
            visibility=visibility_section(
                {"gpt-4o": 0.5},
                detailed=[visibility_result("gpt-4o", urls=["https://wiki.org/x"])],
            ),
            explorer=explorer_section(
                searches=[
                    (
                        "q",
                        [
                            explorer_citation("Acme.com", "gpt-4o"),
                            explorer_citation("other.com", "gpt-4o", prompt_type="sentiment"),
                            explorer_citation("claude.com", "claude"),
                        ],
                    )
                ]
            ),
        )
        tracker = DomainTracker()
        tracker.track(snapshot, GPT_ONLY)
        assert tracker.counts() == {"acme.com": 1}

    def test_unparsable_citation_is_observed(self) -> None:
        observer = RecordingObserver()
        snapshot = make_snapshot(
            "r1",
            "2024-03-01",
            visibility=visibility_section(
                {"gpt-4o": 0.5}, detailed=[visibility_result("gpt-4o", urls=["nonsense"])]
            ),
        )
        tracker = DomainTracker(observer)
        tracker.track(snapshot, NO_FILTER)

        assert tracker.total == 0
        assert observer.skipped[0][:2] == ("visibility", "unparsable citation url")

    def test_top_folds_the_rest_into_others(self) -> None:
        tracker = DomainTracker()
        for domain, count in (("a.com", 3), ("b.com", 2), ("c.com", 1), ("d.com", 1)):
            tracker.add(domain, count)

        assert tracker.top(2) == [
            TopEntry("a.com", 3, 43),
            TopEntry("b.com", 2, 29),
            TopEntry(OTHERS_LABEL, 2, 29),
        ]

    def test_no_others_when_everything_fits(self) -> None:
        tracker = DomainTracker()
        tracker.add("a.com", 1)
        assert [entry.name for entry in tracker.top(9)] == ["a.com"]
