"""Entity trackers for mentioned companies and cited domains.

Each report either carries per-answer detail (companies extracted from every
answer, citations of every answer) or only its pre-aggregated top lists.
Trackers pick per snapshot:

1. a model filter is active and detail exists: count the matching detail
2. the report has a pre-aggregated list: add its counts verbatim
3. otherwise: count whatever detail there is
"""

from dataclasses import dataclass
from urllib.parse import urlsplit

from analytics.aggregation.filters import ModelFilter
from analytics.aggregation.numbers import percentage
from analytics.aggregation.observer import AggregationObserver, LoggingObserver
from analytics.reports.models import NamedCount, ReportSnapshot

OTHERS_LABEL = "Others"


@dataclass
class TrackedEntity:
    display_name: str
    count: int = 0


@dataclass(frozen=True)
class TopEntry:
    """A ranked entry of a top list."""

    name: str
    count: int
    percentage: int


class EntityTracker:
    """Case-normalized counter that remembers first-seen display names.

    Iteration order is insertion order, which is also the tie-break when
    ranking: among equal counts the entity seen first ranks higher.
    """

    def __init__(self, observer: AggregationObserver | None = None):
        self.observer = observer or LoggingObserver()
        self._entries: dict[str, TrackedEntity] = {}

    def normalize(self, name: str) -> str:
        return name.strip().casefold()

    def add(self, name: str, count: int = 1) -> None:
        key = self.normalize(name)
        if not key or count <= 0:
            return
        entry = self._entries.get(key)
        if entry is None:
            entry = TrackedEntity(display_name=name)
            self._entries[key] = entry
        entry.count += count

    def add_counts(self, counts: list[NamedCount]) -> None:
        for item in counts:
            self.add(item.name, item.count)

    @property
    def total(self) -> int:
        return sum(entry.count for entry in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def counts(self) -> dict[str, int]:
        return {key: entry.count for key, entry in self._entries.items()}

    def ranked(self) -> list[TrackedEntity]:
        # sorted() is stable, so equal counts keep insertion order
        return sorted(self._entries.values(), key=lambda entry: entry.count, reverse=True)

    def top(self, limit: int) -> list[TopEntry]:
        total = self.total
        return [
            TopEntry(entry.display_name, entry.count, percentage(entry.count, total))
            for entry in self.ranked()[:limit]
        ]


class MentionTracker(EntityTracker):
    """Companies mentioned in visibility answers."""

    def track(self, snapshot: ReportSnapshot, model_filter: ModelFilter) -> None:
        visibility = snapshot.visibility
        if visibility is None:
            return
        detail = visibility.detailed_results or []

        if model_filter.active and detail:
            self._track_detail(snapshot, model_filter)
        elif visibility.top_mentions:
            self.add_counts(visibility.top_mentions)
        else:
            self._track_detail(snapshot, model_filter)

    def _track_detail(self, snapshot: ReportSnapshot, model_filter: ModelFilter) -> None:
        for result in snapshot.visibility.detailed_results or []:
            if not model_filter.matches(result.model):
                continue
            for company in result.extracted_companies:
                if company.strip():
                    self.add(company)


class DomainTracker(EntityTracker):
    """Domains cited in visibility answers.

    Detail comes from the explorer's visibility-prompt citations when the
    report has them, else from the citation URLs of visibility answers.
    """

    def normalize(self, name: str) -> str:
        return name.strip().lower()

    def add(self, name: str, count: int = 1) -> None:
        super().add(self.normalize(name), count)

    def track(self, snapshot: ReportSnapshot, model_filter: ModelFilter) -> None:
        visibility = snapshot.visibility
        if visibility is None:
            return
        has_detail = bool(self._explorer_citations(snapshot)) or bool(visibility.detailed_results)

        if model_filter.active and has_detail:
            self._track_detail(snapshot, model_filter)
        elif visibility.top_domains:
            self.add_counts(visibility.top_domains)
        else:
            self._track_detail(snapshot, model_filter)

    @staticmethod
    def _explorer_citations(snapshot: ReportSnapshot):
        if snapshot.explorer is None:
            return []
        return [
            c
            for c in snapshot.explorer.citations()
            if c.prompt_type == "visibility" and c.website
        ]

    def _track_detail(self, snapshot: ReportSnapshot, model_filter: ModelFilter) -> None:
        explorer_citations = self._explorer_citations(snapshot)
        if explorer_citations:
            for citation in explorer_citations:
                if model_filter.matches(citation.model):
                    self.add(citation.website)
            return

        for result in snapshot.visibility.detailed_results or []:
            if not model_filter.matches(result.model):
                continue
            for citation in result.citations:
                try:
                    hostname = urlsplit(citation.url).hostname
                except ValueError:
                    hostname = None
                if not hostname:
                    self.observer.item_skipped(
                        "visibility", "unparsable citation url", url=citation.url
                    )
                    continue
                self.add(hostname)

    def top(self, limit: int) -> list[TopEntry]:
        """Top domains, with everything past ``limit`` folded into "Others"."""
        ranked = self.ranked()
        total = self.total
        entries = [
            TopEntry(entry.display_name, entry.count, percentage(entry.count, total))
            for entry in ranked[:limit]
        ]
        others = sum(entry.count for entry in ranked[limit:])
        if others > 0:
            entries.append(TopEntry(OTHERS_LABEL, others, percentage(others, total)))
        return entries
