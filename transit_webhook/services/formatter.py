from __future__ import annotations
from typing import List, Sequence

from transit_webhook.models.schemas import BusSegment, Itinerary

SEGMENT_SEPARATOR = "\n"
ITINERARY_SEPARATOR = "\n\n\n"


def format_segment(segment: BusSegment) -> str:
    lines = [
        f"Bus {segment.bus_number} towards {segment.headsign}:",
        f"  - Walk to stop: {segment.walk_to_stop}",
        f"  - Departure: {segment.departure_stop} at {segment.departure_time}",
        f"  - Arrival: {segment.arrival_stop} at {segment.arrival_time}",
        f"  - Walk from stop: {segment.walk_from_stop}",
        f"  - Duration: {segment.duration} ({segment.num_stops} stops)",
    ]
    return "\n".join(lines)


def render_itineraries(itineraries: Sequence[Itinerary]) -> str:
    blocks: List[str] = []
    for number, itinerary in enumerate(itineraries, start=1):
        segments = SEGMENT_SEPARATOR.join(format_segment(s) for s in itinerary)
        blocks.append(f"Route Option {number}:\n{segments}")
    return ITINERARY_SEPARATOR.join(blocks)
