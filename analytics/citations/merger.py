"""Citation deduplication across detail records.

Every detail record (visibility answer, sentiment answer, alignment answer,
competition comparison, explorer web citation) may carry source URLs. The
dashboard lists each source once, with the prompts, models, sentiments and
scores it was seen with, so the merger keys citations by domain and URL and
accumulates the multi-valued fields as ordered sets.
"""

from dataclasses import dataclass, field
from urllib.parse import urlsplit

from analytics.aggregation.observer import AggregationObserver, LoggingObserver


def citation_domain(url: str) -> str | None:
    """Lowercased hostname without a leading ``www.``; None when unparsable."""
    try:
        hostname = urlsplit(url.strip()).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    hostname = hostname.lower()
    return hostname[4:] if hostname.startswith("www.") else hostname


@dataclass
class CitationItem:
    """One distinct cited source."""

    domain: str
    url: str
    title: str = ""
    text: str | None = None
    prompts: list[str] = field(default_factory=list)
    sentiments: list[str] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)
    models: list[str] = field(default_factory=list)
    count: int = 0


@dataclass
class CitationCollection:
    """Merged citations with summary stats."""

    items: list[CitationItem] = field(default_factory=list)
    unique_domains: int = 0
    total_citations: int = 0


def _append_unique(values: list, value) -> None:
    if value not in values:
        values.append(value)


class CitationMerger:
    """Accumulates citations for one aggregation request.

    Example:
        merger = CitationMerger(facet="sentiment")
        merger.add(url, prompt="Is Acme reliable?", model="gpt-4o", sentiment="positive")
        collection = merger.collection()
    """

    def __init__(self, facet: str = "", observer: AggregationObserver | None = None):
        self.facet = facet
        self.observer = observer or LoggingObserver()
        self._items: dict[str, CitationItem] = {}

    def add(
        self,
        url: str | None,
        *,
        title: str | None = None,
        text: str | None = None,
        prompt: str | None = None,
        model: str | None = None,
        sentiment: str | None = None,
        score: float | None = None,
    ) -> CitationItem | None:
        """Record one occurrence of a citation.

        Returns the merged item, or None when the URL was skipped.
        """
        if not url:
            return None
        domain = citation_domain(url)
        if domain is None:
            self.observer.item_skipped(self.facet, "malformed citation url", url=url)
            return None

        key = f"{domain}_{url}"
        item = self._items.get(key)
        if item is None:
            item = CitationItem(domain=domain, url=url, title=title or "", text=text)
            self._items[key] = item

        item.count += 1
        if prompt:
            _append_unique(item.prompts, prompt)
        if sentiment is not None:
            _append_unique(item.sentiments, sentiment)
        if score is not None:
            _append_unique(item.scores, score)
        if model:
            _append_unique(item.models, model)
        return item

    def __len__(self) -> int:
        return len(self._items)

    def collection(self) -> CitationCollection:
        """Merged items sorted by count, ties in first-seen order."""
        items = sorted(self._items.values(), key=lambda item: item.count, reverse=True)
        return CitationCollection(
            items=items,
            unique_domains=len({item.domain for item in items}),
            total_citations=sum(item.count for item in items),
        )
