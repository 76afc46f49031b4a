"""Report Store contract consumed by the aggregation core.

The core never talks to a database. It asks a ``ReportStore`` for snapshots
and project metadata, and everything after the fetch is pure computation.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Protocol

from analytics.reports.models import ReportSnapshot


@dataclass(frozen=True)
class CompetitorWebsite:
    """A competitor as configured on the project."""

    name: str
    website: str | None = None


@dataclass(frozen=True)
class ProjectProfile:
    """Project metadata needed for domain classification."""

    id: str
    name: str = ""
    website: str | None = None
    competitors: list[CompetitorWebsite] = field(default_factory=list)


class ReportStore(Protocol):
    """Source of report snapshots for a project.

    All fetch methods return snapshots ordered ascending by ``report_date``,
    populated only with the requested ``sections``.
    """

    async def fetch_reports(
        self,
        project_id: str,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        latest_only: bool = False,
        sections: Sequence[str] = (),
    ) -> list[ReportSnapshot]:
        """Snapshots for a query window.

        ``latest_only`` ignores the dates and returns at most one snapshot.
        Otherwise ``end_date`` is inclusive of its whole day and the result is
        capped to the most recent snapshots in the window.
        """
        ...

    async def fetch_window(
        self,
        project_id: str,
        start: datetime,
        end: datetime,
        sections: Sequence[str] = (),
    ) -> list[ReportSnapshot]:
        """All snapshots with ``start <= report_date < end``."""
        ...

    async def fetch_latest_before(
        self,
        project_id: str,
        before: datetime,
        sections: Sequence[str] = (),
    ) -> ReportSnapshot | None:
        """The most recent snapshot strictly before ``before``."""
        ...

    async def get_project(self, project_id: str) -> ProjectProfile:
        """Project metadata; raises when the project does not exist."""
        ...
