"""SQLAlchemy models package."""

from api.models.brand_report import BrandReport
from api.models.project import Project

__all__ = [
    "BrandReport",
    "Project",
]
