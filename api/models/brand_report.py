"""Brand report model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from api.database import Base

if TYPE_CHECKING:
    from api.models.project import Project


class BrandReport(Base):
    """One generated brand intelligence report.

    Each section column holds the camelCase document produced by the report
    pipeline; any of them may be null. Rows are immutable once written.
    """

    __tablename__ = "brand_reports"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    project_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Logical date the data represents, and when it was produced
    report_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    brand_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Sections
    visibility: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    sentiment: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    alignment: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    competition: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    explorer: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    project: Mapped[Project] = relationship("Project", back_populates="reports")

    __table_args__ = (Index("ix_brand_reports_project_date", "project_id", "report_date"),)

    def to_document(self, sections: tuple[str, ...] | list[str]) -> dict[str, Any]:
        """camelCase document with only the requested sections."""
        document: dict[str, Any] = {
            "id": self.id,
            "projectId": self.project_id,
            "reportDate": self.report_date,
            "generatedAt": self.generated_at,
            "brandName": self.brand_name or "",
        }
        for section in sections:
            document[section] = getattr(self, section)
        return document

    def __repr__(self) -> str:
        return f"<BrandReport {self.id} {self.report_date:%Y-%m-%d}>"
