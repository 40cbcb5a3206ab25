"""Select billable journeys for a period and group them per client."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from .. import models
from .billing_periods import BillingPeriod, business_date

LOGGER = logging.getLogger(__name__)

UNKNOWN_TRUCK_NUMBER = "N/A"


@dataclass
class ClientJourneyGroup:
    """Journeys of one client plus the truck that hauled each trip."""

    client_id: str
    journeys: list[models.Journey] = field(default_factory=list)
    truck_number_by_trip: dict[str, str] = field(default_factory=dict)


@dataclass
class JourneyGrouping:
    groups: dict[str, ClientJourneyGroup]
    skipped_journeys: list[models.Journey] = field(default_factory=list)


def journey_date(journey: models.Journey) -> date:
    return business_date(journey.created_at)


def journeys_in_period(
    trips: Iterable[models.Trip], period: BillingPeriod
) -> list[models.Journey]:
    """Journeys of completed or locked trips created inside ``period``.

    Both ends of the period are inclusive and only the calendar date of the
    journey's creation timestamp is considered.
    """

    selected: list[models.Journey] = []
    for trip in trips:
        if not trip.is_billable:
            continue
        for journey in trip.journeys:
            if period.contains(journey_date(journey)):
                selected.append(journey)
    return selected


def _parent_trip(
    journey: models.Journey, trips_by_id: dict[str, models.Trip]
) -> Optional[models.Trip]:
    trip = trips_by_id.get(journey.trip_id) if journey.trip_id else None
    return trip or journey.trip


def group_by_client(
    journeys: Iterable[models.Journey], trips: Sequence[models.Trip]
) -> JourneyGrouping:
    """Partition journeys per client in first-seen order.

    Journeys without a client reference cannot be invoiced and are returned
    in ``skipped_journeys`` instead of failing the whole grouping.
    """

    trips_by_id = {trip.id: trip for trip in trips if trip.id is not None}
    groups: dict[str, ClientJourneyGroup] = {}
    skipped: list[models.Journey] = []

    for journey in journeys:
        if not journey.client_id:
            LOGGER.warning(
                "Skipping journey %s: it no longer references a client", journey.id
            )
            skipped.append(journey)
            continue

        group = groups.get(journey.client_id)
        if group is None:
            group = ClientJourneyGroup(client_id=journey.client_id)
            groups[journey.client_id] = group
        group.journeys.append(journey)

        trip = _parent_trip(journey, trips_by_id)
        trip_key = journey.trip_id or (trip.id if trip is not None else None)
        if trip_key is not None:
            truck_number = trip.truck_number if trip is not None else None
            group.truck_number_by_trip[trip_key] = truck_number or UNKNOWN_TRUCK_NUMBER

    return JourneyGrouping(groups=groups, skipped_journeys=skipped)
