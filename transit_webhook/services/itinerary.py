from __future__ import annotations
import logging
from typing import Iterable, List, Optional

from transit_webhook.models.schemas import STAY_AT_STOP, BusSegment, Itinerary, RawItinerary, Step

logger = logging.getLogger(__name__)


def _segment_from_step(step: Step, walk_to_stop: str, walk_from_stop: str) -> BusSegment:
    details = step.transit_details
    return BusSegment(
        bus_number=details.line.label,
        headsign=details.headsign,
        departure_stop=details.departure_stop.name,
        departure_time=details.departure_time.text,
        arrival_stop=details.arrival_stop.name,
        arrival_time=details.arrival_time.text,
        duration=step.duration.text,
        num_stops=details.num_stops,
        walk_to_stop=walk_to_stop,
        walk_from_stop=walk_from_stop,
    )


def reduce_itinerary(raw: RawItinerary) -> Optional[Itinerary]:
    """
    Reduce a raw itinerary to its bus segments. The first walking step feeds
    the first segment's walk_to_stop, the last walking step feeds the last
    segment's walk_from_stop. Returns None when there is nothing to board.
    """
    walk_to: Optional[Step] = None
    walk_from: Optional[Step] = None
    transit_steps: List[Step] = []
    for step in raw.steps:
        if step.is_pure_walk:
            if walk_to is None:
                walk_to = step
            walk_from = step
        elif step.is_transit:
            transit_steps.append(step)

    if not transit_steps:
        return None

    last = len(transit_steps) - 1
    segments: Itinerary = []
    for i, step in enumerate(transit_steps):
        walk_to_stop = walk_to.duration.text if i == 0 and walk_to and walk_to.duration.text else STAY_AT_STOP
        walk_from_stop = (
            walk_from.duration.text if i == last and walk_from and walk_from.duration.text else STAY_AT_STOP
        )
        segments.append(_segment_from_step(step, walk_to_stop, walk_from_stop))
    return segments


def reduce_itineraries(raws: Iterable[RawItinerary]) -> List[Itinerary]:
    itineraries: List[Itinerary] = []
    dropped = 0
    for raw in raws:
        reduced = reduce_itinerary(raw)
        if reduced is None:
            dropped += 1
            continue
        itineraries.append(reduced)
    if dropped:
        logger.debug("Dropped %d itineraries without bus legs", dropped)
    return itineraries
