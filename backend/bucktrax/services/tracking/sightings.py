# backend/bucktrax/services/tracking/sightings.py
from __future__ import annotations

from datetime import timedelta
from itertools import groupby
from typing import Iterable

from bucktrax.schemas.tracking import Sighting, SightingEvent
from bucktrax.utils.logging import get_logger

logger = get_logger(__name__)


def aggregate_sightings(events: Iterable[SightingEvent], window_minutes: int = 15) -> list[Sighting]:
    """Collapse photo bursts into sightings, one per camera visit.

    Each sighting is anchored at its first photo; a photo more than
    ``window_minutes`` after the anchor opens the next sighting. The anchor
    photo represents the sighting. Output is newest first.
    """
    window = timedelta(minutes=window_minutes)
    by_camera = sorted(events, key=lambda e: (e.camera_id, e.timestamp, e.photo_id))

    sightings: list[Sighting] = []
    for camera_id, group in groupby(by_camera, key=lambda e: e.camera_id):
        anchor = None
        count = 0
        for event in group:
            if anchor is not None and event.timestamp - anchor.timestamp > window:
                sightings.append(Sighting(**anchor.model_dump(), photo_count=count))
                anchor = None
            if anchor is None:
                anchor, count = event, 0
            count += 1
        if anchor is not None:
            sightings.append(Sighting(**anchor.model_dump(), photo_count=count))

    sightings.sort(key=lambda s: (s.timestamp, s.camera_id, s.photo_id), reverse=True)
    logger.debug("sightings_aggregated", events=len(by_camera), sightings=len(sightings))
    return sightings


def chronological(sightings: Iterable[Sighting]) -> list[Sighting]:
    return sorted(sightings, key=lambda s: (s.timestamp, s.camera_id, s.photo_id))
