# backend/bucktrax/services/tracking/segments.py
from __future__ import annotations

from typing import Iterable, NamedTuple, Optional, Sequence

from bucktrax.config import BuckTraxConfig
from bucktrax.schemas.tracking import MovementCorridor, Sighting, TimeSegmentPrediction, TrackedFeature
from bucktrax.services.tracking.zones import prediction_zones
from bucktrax.utils.logging import get_logger

logger = get_logger(__name__)

NIGHT = "Night"
LIMITED_DATA_MESSAGE = "Due to limited data, the predictive model is extremely limited."


class TimeSegment(NamedTuple):
    name: str
    start_hour: int
    end_hour: int

    def contains(self, hour: int) -> bool:
        if self.start_hour <= self.end_hour:
            return self.start_hour <= hour < self.end_hour
        # wraps midnight
        return hour >= self.start_hour or hour < self.end_hour


SEGMENTS: tuple[TimeSegment, ...] = (
    TimeSegment("Early Morning", 5, 8),
    TimeSegment("Morning", 8, 11),
    TimeSegment("Midday", 11, 14),
    TimeSegment("Afternoon", 14, 17),
    TimeSegment("Evening", 17, 20),
    TimeSegment(NIGHT, 20, 5),
)


def segment_for_hour(hour: int) -> TimeSegment:
    for seg in SEGMENTS:
        if seg.contains(hour):
            return seg
    raise ValueError(f"hour out of range: {hour}")


def pattern_labels(hours: Sequence[int], threshold: float = 0.3) -> list[str]:
    """Segments holding more than ``threshold`` of the hours, in day order."""
    if not hours:
        return []
    total = len(hours)
    labels = []
    for seg in SEGMENTS:
        share = sum(1 for h in hours if seg.contains(h)) / total
        if share > threshold:
            labels.append(seg.name)
    return labels


def confidence_score(segment_sightings: int, total_sightings: int, corridor_count: int = 0) -> float:
    data_confidence = min(segment_sightings / 10.0, 1.0)
    proportion_confidence = segment_sightings / total_sightings if total_sightings else 0.0
    corridor_bonus = min(corridor_count / 5.0, 0.2)
    score = (data_confidence * 0.6 + proportion_confidence * 0.4) * 100 + corridor_bonus * 100
    return round(min(score, 100.0), 1)


def default_segment_index(predictions: Sequence[TimeSegmentPrediction]) -> int:
    """Index of the most active segment; ties go to the earliest non-Night one."""
    scores = [p.sighting_count + len(p.corridors) for p in predictions]
    if not scores:
        return 0
    best = max(scores)
    tied = [i for i, s in enumerate(scores) if s == best]
    for i in tied:
        if predictions[i].time_segment != NIGHT:
            return i
    return tied[0]


def is_limited_data(total_sightings: int, total_transitions: int, config: BuckTraxConfig) -> bool:
    return (
        total_sightings < config.minimum_sightings_threshold
        or total_transitions < config.minimum_transitions_threshold
    )


def limited_data_message(limited: bool, config: BuckTraxConfig) -> Optional[str]:
    if limited and config.show_limited_data_warning:
        return LIMITED_DATA_MESSAGE
    return None


def predict_time_segments(
    sightings: Iterable[Sighting],
    corridors: Sequence[MovementCorridor],
    features: Sequence[TrackedFeature] = (),
) -> list[TimeSegmentPrediction]:
    """Bucket sightings and corridors into the six daily segments.

    Always returns all six segments, empty ones included.
    """
    sightings = list(sightings)
    total = len(sightings)
    out: list[TimeSegmentPrediction] = []
    for seg in SEGMENTS:
        seg_sightings = [s for s in sightings if seg.contains(s.hour)]
        seg_corridors = [c for c in corridors if seg.name in c.time_of_day_pattern]
        zones = prediction_zones(seg_sightings, seg_corridors, features) if (seg_sightings or seg_corridors) else []
        out.append(
            TimeSegmentPrediction(
                time_segment=seg.name,
                start_hour=seg.start_hour,
                end_hour=seg.end_hour,
                sighting_count=len(seg_sightings),
                confidence_score=confidence_score(len(seg_sightings), total, len(seg_corridors)),
                predicted_zones=zones,
                corridors=seg_corridors,
            )
        )
    logger.debug(
        "time_segments_predicted",
        sightings=total,
        corridors=len(corridors),
        counts={p.time_segment: p.sighting_count for p in out},
    )
    return out
