"""Brand / competitor / unknown classification of cited domains.

Websites are matched on their root domain: the hostname without ``www.`` and
without the top-level domain (``www.sfr.fr`` -> ``sfr``). A cited domain
belongs to the brand when it contains ``<root>.``, which also catches
subdomains and country variants (``boutique.sfr.fr``, ``sfr.co.uk``).
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from analytics.aggregation.numbers import percentage_one_decimal
from analytics.reports.models import DomainSourceCounts
from analytics.reports.store import CompetitorWebsite


def website_hostname(website: str) -> str | None:
    """Hostname of a website given with or without a scheme."""
    candidate = website.strip().lower()
    if not candidate:
        return None
    if not candidate.startswith(("http://", "https://")):
        candidate = f"https://{candidate}"
    try:
        hostname = urlsplit(candidate).hostname
    except ValueError:
        hostname = None
    if not hostname:
        # Fall back to a manual split for inputs urlsplit rejects
        hostname = candidate.removeprefix("https://").removeprefix("http://").split("/")[0]
    hostname = hostname.removeprefix("www.")
    return hostname or None


def root_domain(website: str | None) -> str | None:
    """Root domain used for matching, e.g. ``https://www.sfr.fr`` -> ``sfr``."""
    if not website:
        return None
    hostname = website_hostname(website)
    if not hostname:
        return None
    labels = hostname.split(".")
    return ".".join(labels[:-1]) if len(labels) > 1 else hostname


@dataclass(frozen=True)
class CompetitorShare:
    name: str
    count: int
    percentage: float


@dataclass(frozen=True)
class DomainClassification:
    """Citation volume split between the brand and everything else.

    ``other_sources_count`` covers competitor and unknown sources alike, so
    ``brand_domain_count + other_sources_count`` is the total classified volume.
    """

    brand_domain_count: int
    other_sources_count: int
    unknown_sources_count: int
    brand_domain_percentage: float
    other_sources_percentage: float
    unknown_sources_percentage: float
    competitor_breakdown: list[CompetitorShare] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.brand_domain_count + self.other_sources_count


class DomainTally:
    """Running brand/other/unknown/competitor counts for one request."""

    def __init__(self):
        self.brand = 0
        self.other = 0
        self.unknown = 0
        self.competitors: dict[str, int] = {}

    def add_competitor(self, name: str, count: int) -> None:
        self.competitors[name] = self.competitors.get(name, 0) + count

    def add_precomputed(self, counts: DomainSourceCounts) -> None:
        """Add a report's stored analysis verbatim."""
        self.brand += counts.brand_domain_count
        self.other += counts.other_sources_count
        self.unknown += counts.unknown_sources_count
        for competitor in counts.competitor_counts:
            self.add_competitor(competitor.name, competitor.count)

    def result(self) -> DomainClassification | None:
        """Final classification, or None when there is no volume at all."""
        total = self.brand + self.other
        if total <= 0:
            return None
        breakdown = [
            CompetitorShare(name=name, count=count, percentage=percentage_one_decimal(count, total))
            for name, count in self.competitors.items()
        ]
        breakdown.sort(key=lambda share: share.count, reverse=True)
        return DomainClassification(
            brand_domain_count=self.brand,
            other_sources_count=self.other,
            unknown_sources_count=self.unknown,
            brand_domain_percentage=percentage_one_decimal(self.brand, total),
            other_sources_percentage=percentage_one_decimal(self.other, total),
            unknown_sources_percentage=percentage_one_decimal(self.unknown, total),
            competitor_breakdown=breakdown,
        )


class DomainClassifier:
    """Classifies cited domains against a brand website and competitor websites.

    Example:
        classifier = DomainClassifier("https://www.sfr.fr", competitors)
        analysis = classifier.classify({"sfr.fr": 3, "orange.fr": 2})
    """

    def __init__(
        self,
        brand_website: str | None = None,
        competitors: Iterable[CompetitorWebsite] = (),
    ):
        self.brand_root = root_domain(brand_website)
        # Insertion order is match priority
        self.competitor_roots: list[tuple[str, str]] = []
        for competitor in competitors:
            root = root_domain(competitor.website)
            if root:
                self.competitor_roots.append((root, competitor.name))

    def match(self, domain: str) -> tuple[str, str | None]:
        """Bucket of one domain: ("brand"|"competitor"|"unknown", competitor name)."""
        domain = domain.lower()
        if self.brand_root and f"{self.brand_root}." in domain:
            return "brand", None
        for root, name in self.competitor_roots:
            if f"{root}." in domain:
                return "competitor", name
        return "unknown", None

    def tally(
        self, domain_counts: Mapping[str, int], into: DomainTally | None = None
    ) -> DomainTally:
        """Add classified counts to a tally (a new one unless ``into`` is given)."""
        tally = into if into is not None else DomainTally()
        for domain, count in domain_counts.items():
            bucket, competitor = self.match(domain)
            if bucket == "brand":
                tally.brand += count
                continue
            if bucket == "competitor":
                tally.add_competitor(competitor, count)
            else:
                tally.unknown += count
            tally.other += count
        return tally

    def classify(self, domain_counts: Mapping[str, int]) -> DomainClassification | None:
        """Classify observed domain counts; None when there is no volume."""
        return self.tally(domain_counts).result()
