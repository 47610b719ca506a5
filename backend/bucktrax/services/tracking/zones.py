# backend/bucktrax/services/tracking/zones.py
from __future__ import annotations

from collections import OrderedDict
from typing import Sequence

from bucktrax.schemas.tracking import MovementCorridor, PredictionZone, Sighting, TrackedFeature

MAX_CORRIDOR_ZONES = 8
HIGH_WEIGHT_THRESHOLD = 0.7
UNASSOCIATED_WEIGHT = 0.5


def _sighting_radius(p: float) -> float:
    if p > 0.6:
        return 80.0
    if p > 0.3:
        return 150.0
    return 250.0


def _location_zones(sightings: Sequence[Sighting], features: dict[int, TrackedFeature]) -> list[PredictionZone]:
    groups: "OrderedDict[tuple, list[Sighting]]" = OrderedDict()
    for s in sightings:
        key = (s.camera_id, s.camera_name, s.latitude, s.longitude, s.associated_feature_id)
        groups.setdefault(key, []).append(s)

    total = max(len(sightings), 1)
    zones = []
    for (camera_id, camera_name, lat, lon, feature_id), members in groups.items():
        feature = features.get(feature_id) if feature_id is not None else None
        weight = feature.effective_weight if feature is not None else UNASSOCIATED_WEIGHT
        p = len(members) / total * (1 + weight)
        zones.append(
            PredictionZone(
                location_name=camera_name or f"Camera {camera_id}",
                latitude=lat,
                longitude=lon,
                probability=min(p, 1.0),
                sighting_count=len(members),
                radius_meters=_sighting_radius(p),
                associated_feature_id=feature.id if feature else None,
                feature_type=feature.classification if feature else None,
                feature_weight=feature.effective_weight if feature else None,
            )
        )
    return zones


def _corridor_zones(corridors: Sequence[MovementCorridor]) -> list[PredictionZone]:
    zones = []
    for c in corridors[:MAX_CORRIDOR_ZONES]:
        base = min(c.corridor_score / 15.0, 0.9)
        p = min(base + (c.start_feature_weight + c.end_feature_weight) / 4, 0.95)
        for label, fid, name, ftype, lat, lon, w in (
            ("Corridor Entry", c.start_feature_id, c.start_feature_name, c.start_feature_type,
             c.start_latitude, c.start_longitude, c.start_feature_weight),
            ("Corridor Exit", c.end_feature_id, c.end_feature_name, c.end_feature_type,
             c.end_latitude, c.end_longitude, c.end_feature_weight),
        ):
            zones.append(
                PredictionZone(
                    location_name=f"{name or ftype} ({label})",
                    latitude=lat,
                    longitude=lon,
                    probability=p,
                    sighting_count=c.transition_count,
                    radius_meters=float(int(100 + w * 100)),
                    is_corridor_prediction=True,
                    associated_feature_id=fid,
                    feature_type=ftype,
                    feature_weight=w,
                )
            )
    return zones


def prediction_zones(
    sightings: Sequence[Sighting],
    corridors: Sequence[MovementCorridor],
    features: Sequence[TrackedFeature] = (),
) -> list[PredictionZone]:
    """Where to expect the animal within one time segment, most likely first.

    Sighting locations are boosted by the weight of their associated feature,
    corridor endpoints score from corridor strength, and high-weight features
    not already covered get a zone of their own.
    """
    by_id = {f.id: f for f in features}
    zones = _location_zones(sightings, by_id) + _corridor_zones(corridors)

    covered = {z.associated_feature_id for z in zones if z.associated_feature_id is not None}
    for f in sorted(features, key=lambda f: f.id):
        if f.effective_weight > HIGH_WEIGHT_THRESHOLD and f.id not in covered:
            zones.append(
                PredictionZone(
                    location_name=f"{f.name or f.classification} (High Priority Feature)",
                    latitude=f.latitude,
                    longitude=f.longitude,
                    probability=f.effective_weight * 0.6,
                    radius_meters=float(int(120 + f.effective_weight * 80)),
                    associated_feature_id=f.id,
                    feature_type=f.classification,
                    feature_weight=f.effective_weight,
                )
            )

    # stable: equal probabilities keep insertion order
    zones.sort(key=lambda z: z.probability, reverse=True)
    return zones
