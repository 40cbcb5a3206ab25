"""Structured events for billing runs, payment rejections and persistence failures.

Events are written through their own session so that a caller rolling back
its transaction does not lose the record of why it did so.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from time import perf_counter
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models

LOGGER = logging.getLogger(__name__)


class MetricOutcome:
    SUCCESS = "success"
    REJECTED = "rejected"
    ERROR = "error"


class Stopwatch:
    """Wall-clock timer for the ``duration_ms`` of an event."""

    def __init__(self) -> None:
        self._started = perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return (perf_counter() - self._started) * 1000


class ObservabilityService:
    @staticmethod
    def record_event(
        db: Session,
        event_type: str,
        outcome: str,
        *,
        duration_ms: float | None = None,
        tags: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        duration = None if duration_ms is None else Decimal(f"{duration_ms:.3f}")
        event = models.OperationalMetricEvent(
            event_type=event_type,
            outcome=outcome,
            duration_ms=duration,
            tags=dict(tags or {}),
            details=metadata or None,
        )
        try:
            with Session(bind=db.get_bind()) as events_session:
                events_session.add(event)
                events_session.commit()
        except SQLAlchemyError:
            LOGGER.exception("Could not store %s event (%s)", event_type, outcome)

    @classmethod
    def record_validation_result(
        cls,
        db: Session,
        event_type: str,
        *,
        outcome: str,
        reason: str,
        tags: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ) -> None:
        """Record a rejected or failed operation together with its reason."""

        cls.record_event(
            db,
            event_type,
            outcome,
            duration_ms=duration_ms,
            tags={**(tags or {}), "reason": reason},
            metadata={"rejection_reason": reason},
        )

    @staticmethod
    def recent_events(
        db: Session, event_type: Optional[str] = None, *, limit: int = 50
    ) -> list[models.OperationalMetricEvent]:
        query = db.query(models.OperationalMetricEvent)
        if event_type:
            query = query.filter(models.OperationalMetricEvent.event_type == event_type)
        return (
            query.order_by(models.OperationalMetricEvent.created_at.desc())
            .limit(max(limit, 1))
            .all()
        )
