"""Test fixtures for report aggregation tests."""

from tests.fixtures.report_store import InMemoryReportStore, RecordingObserver
from tests.fixtures.reports import (
    ACME_PROJECT,
    PROJECT_ID,
    make_snapshot,
    report_document,
)

__all__ = [
    "ACME_PROJECT",
    "PROJECT_ID",
    "InMemoryReportStore",
    "RecordingObserver",
    "make_snapshot",
    "report_document",
]
