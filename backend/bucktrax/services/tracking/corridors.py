# backend/bucktrax/services/tracking/corridors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from bucktrax.config import BuckTraxConfig
from bucktrax.schemas.tracking import MovementCorridor, Sighting, TrackedFeature
from bucktrax.services.geo.distance import distance_m, haversine_m
from bucktrax.services.tracking.segments import pattern_labels
from bucktrax.services.tracking.sightings import chronological
from bucktrax.utils.logging import get_logger

logger = get_logger(__name__)

AMPLIFY_EXPONENT = 1.5


def associate_sightings(
    sightings: Iterable[Sighting],
    features: Sequence[TrackedFeature],
    proximity_m: float,
) -> list[Sighting]:
    """Tag each sighting with the nearest feature within ``proximity_m``.

    Returns copies; sightings with no feature in range come back unassociated.
    """
    out = []
    for s in sightings:
        best: Optional[tuple[float, int, TrackedFeature]] = None
        for f in features:
            d = haversine_m(s.longitude, s.latitude, f.longitude, f.latitude)
            if d > proximity_m:
                continue
            if best is None or (d, f.id) < best[:2]:
                best = (d, f.id, f)
        if best is None:
            out.append(s.model_copy(update={"associated_feature_id": None, "associated_feature_name": None}))
        else:
            f = best[2]
            out.append(s.model_copy(update={"associated_feature_id": f.id, "associated_feature_name": f.name}))
    return out


def corridor_score(transition_count: int, start_weight: float, end_weight: float, amplify: bool = False) -> float:
    if amplify:
        start_weight = start_weight ** AMPLIFY_EXPONENT
        end_weight = end_weight ** AMPLIFY_EXPONENT
    return transition_count * (start_weight + end_weight) / 2


@dataclass
class _Tally:
    start_id: int
    end_id: int
    hours: list[int] = field(default_factory=list)
    distances: list[float] = field(default_factory=list)
    spans_h: list[float] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.hours)


def _weight(feature: TrackedFeature, weights: Optional[Mapping[int, float]]) -> float:
    if weights is not None and feature.id in weights:
        return weights[feature.id]
    return feature.effective_weight


def mine_corridors(
    sightings: Iterable[Sighting],
    features: Sequence[TrackedFeature],
    config: Optional[BuckTraxConfig] = None,
    weights: Optional[Mapping[int, float]] = None,
) -> list[MovementCorridor]:
    """Count feature-to-feature transitions and score them as corridors.

    Sightings must already be associated (see ``associate_sightings``); only
    associated sightings take part in pairing. Pairs are undirected: the
    corridor's start is the feature the first counted transition left from.
    ``weights`` (feature id -> weight) overrides each feature's own
    ``effective_weight`` when given.
    """
    config = config or BuckTraxConfig()
    by_id = {f.id: f for f in features}
    window_s = config.movement_time_window_minutes * 60
    associated = [s for s in chronological(sightings) if s.associated_feature_id in by_id]

    tallies: dict[tuple[int, int], _Tally] = {}
    for a, b in zip(associated, associated[1:]):
        if a.associated_feature_id == b.associated_feature_id:
            continue
        gap_s = (b.timestamp - a.timestamp).total_seconds()
        if gap_s > window_s:
            continue
        d = distance_m(a, b)
        if d > config.max_movement_distance_meters:
            continue
        key = tuple(sorted((a.associated_feature_id, b.associated_feature_id)))
        tally = tallies.get(key)
        if tally is None:
            tally = tallies[key] = _Tally(a.associated_feature_id, b.associated_feature_id)
        tally.hours.append(b.hour)
        tally.distances.append(d)
        tally.spans_h.append(gap_s / 3600.0)

    corridors = []
    for t in tallies.values():
        start, end = by_id[t.start_id], by_id[t.end_id]
        ws, we = _weight(start, weights), _weight(end, weights)
        corridors.append(
            MovementCorridor(
                name=f"{start.name or start.classification} - {end.name or end.classification}",
                start_feature_id=start.id,
                end_feature_id=end.id,
                start_feature_name=start.name,
                end_feature_name=end.name,
                start_feature_type=start.classification,
                end_feature_type=end.classification,
                start_latitude=start.latitude,
                start_longitude=start.longitude,
                end_latitude=end.latitude,
                end_longitude=end.longitude,
                transition_count=t.count,
                corridor_score=corridor_score(t.count, ws, we, config.amplify_corridor_weights),
                start_feature_weight=ws,
                end_feature_weight=we,
                distance_m=sum(t.distances) / t.count,
                average_time_span_hours=sum(t.spans_h) / t.count,
                time_of_day_pattern=pattern_labels(t.hours, config.pattern_share_threshold),
                transition_hours=list(t.hours),
            )
        )

    corridors.sort(key=lambda c: (-c.corridor_score, min(c.start_feature_id, c.end_feature_id), max(c.start_feature_id, c.end_feature_id)))
    logger.debug(
        "corridors_mined",
        sightings=len(associated),
        corridors=len(corridors),
        transitions=sum(c.transition_count for c in corridors),
    )
    return corridors


def total_transitions(corridors: Iterable[MovementCorridor]) -> int:
    return sum(c.transition_count for c in corridors)
