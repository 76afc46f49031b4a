"""PostgreSQL-backed Report Store."""

from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta

import structlog
from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import load_only

from analytics.reports.models import SECTION_NAMES, ReportSnapshot
from analytics.reports.store import CompetitorWebsite, ProjectProfile
from api.exceptions import NotFoundError, ReportStoreError
from api.models import BrandReport, Project

logger = structlog.get_logger(__name__)


def _start_of_day(value: date) -> datetime:
    return datetime(value.year, value.month, value.day, tzinfo=UTC)


class SqlReportStore:
    """Report Store over the ``brand_reports`` table.

    Every call opens its own session, so independent fetches can run
    concurrently. Database failures surface as ``ReportStoreError``.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], fetch_limit: int = 10):
        self.session_maker = session_maker
        self.fetch_limit = fetch_limit

    @staticmethod
    def _projected(sections: Sequence[str]) -> tuple[str, ...]:
        unknown = set(sections) - set(SECTION_NAMES)
        if unknown:
            raise ValueError(f"Unknown report sections: {sorted(unknown)}")
        return tuple(sections)

    def _select(self, project_id: str, sections: tuple[str, ...]) -> Select:
        columns = [
            BrandReport.id,
            BrandReport.project_id,
            BrandReport.report_date,
            BrandReport.generated_at,
            BrandReport.brand_name,
            *(getattr(BrandReport, section) for section in sections),
        ]
        return (
            select(BrandReport)
            .options(load_only(*columns))
            .where(BrandReport.project_id == project_id)
        )

    async def _run(
        self, operation: str, query: Select, sections: tuple[str, ...]
    ) -> list[ReportSnapshot]:
        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                rows = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Report store query failed", operation=operation, error=str(e))
            raise ReportStoreError(f"Failed to {operation}", operation=operation) from e

        snapshots = [ReportSnapshot.from_document(row.to_document(sections)) for row in rows]
        snapshots.sort(key=lambda s: s.report_date)
        return snapshots

    async def fetch_reports(
        self,
        project_id: str,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        latest_only: bool = False,
        sections: Sequence[str] = (),
    ) -> list[ReportSnapshot]:
        projected = self._projected(sections)
        query = self._select(project_id, projected).order_by(BrandReport.report_date.desc())

        if latest_only:
            return await self._run("fetch latest report", query.limit(1), projected)

        if start_date is not None:
            query = query.where(BrandReport.report_date >= _start_of_day(start_date))
        if end_date is not None:
            # The end date covers its whole day
            query = query.where(
                BrandReport.report_date < _start_of_day(end_date) + timedelta(days=1)
            )
        return await self._run("fetch reports", query.limit(self.fetch_limit), projected)

    async def fetch_window(
        self,
        project_id: str,
        start: datetime,
        end: datetime,
        sections: Sequence[str] = (),
    ) -> list[ReportSnapshot]:
        projected = self._projected(sections)
        query = (
            self._select(project_id, projected)
            .where(BrandReport.report_date >= start, BrandReport.report_date < end)
            .order_by(BrandReport.report_date.asc())
        )
        return await self._run("fetch comparison window", query, projected)

    async def fetch_latest_before(
        self,
        project_id: str,
        before: datetime,
        sections: Sequence[str] = (),
    ) -> ReportSnapshot | None:
        projected = self._projected(sections)
        query = (
            self._select(project_id, projected)
            .where(BrandReport.report_date < before)
            .order_by(BrandReport.report_date.desc())
            .limit(1)
        )
        snapshots = await self._run("fetch previous report", query, projected)
        return snapshots[0] if snapshots else None

    async def get_project(self, project_id: str) -> ProjectProfile:
        try:
            async with self.session_maker() as session:
                project = await session.get(Project, project_id)
        except SQLAlchemyError as e:
            logger.error("Project lookup failed", project_id=project_id, error=str(e))
            raise ReportStoreError("Failed to load project", operation="get project") from e

        if project is None:
            raise NotFoundError("Project", project_id)

        competitors = [
            CompetitorWebsite(name=str(c["name"]), website=c.get("website") or None)
            for c in project.competitor_details or []
            if isinstance(c, dict) and c.get("name")
        ]
        return ProjectProfile(
            id=project.id,
            name=project.name,
            website=project.website,
            competitors=competitors,
        )
