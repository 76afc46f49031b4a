"""Passive instrumentation for the aggregation folds.

Folds report what they did through an observer instead of logging inline.
Observers only watch: nothing they return is read, and an aggregation runs
the same with or without one.
"""

from typing import Any, Protocol

import structlog

logger = structlog.get_logger(__name__)


class AggregationObserver(Protocol):
    def snapshot_resolved(self, facet: str, snapshot_id: str, resolution: str) -> None:
        """A snapshot was resolved to detail records, a summary, or nothing."""
        ...

    def item_skipped(self, facet: str, reason: str, **context: Any) -> None:
        """A malformed item was dropped or replaced by a default."""
        ...

    def variation_computed(
        self, facet: str, current: float | None, previous: float | None, delta: float
    ) -> None:
        """A period-over-period delta was computed."""
        ...


class LoggingObserver:
    """Default observer that forwards to structlog."""

    def __init__(self, **context: Any):
        self._log = logger.bind(**context) if context else logger

    def snapshot_resolved(self, facet: str, snapshot_id: str, resolution: str) -> None:
        self._log.debug(
            "Snapshot resolved", facet=facet, snapshot_id=snapshot_id, resolution=resolution
        )

    def item_skipped(self, facet: str, reason: str, **context: Any) -> None:
        self._log.warning("Skipped malformed item", facet=facet, reason=reason, **context)

    def variation_computed(
        self, facet: str, current: float | None, previous: float | None, delta: float
    ) -> None:
        self._log.debug(
            "Variation computed", facet=facet, current=current, previous=previous, delta=delta
        )

