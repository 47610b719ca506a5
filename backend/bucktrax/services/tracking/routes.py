# backend/bucktrax/services/tracking/routes.py
from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

from bucktrax.config import BuckTraxConfig
from bucktrax.schemas.tracking import MovementRoute, RoutePoint, Sighting, TrackedFeature
from bucktrax.services.geo.distance import detour_m, distance_m
from bucktrax.services.tracking.sightings import chronological
from bucktrax.services.weights.classifications import is_transit_type
from bucktrax.utils.logging import get_logger

logger = get_logger(__name__)

CAMERA_LOCATION = "Camera Location"
FEATURE_WAYPOINT = "Feature Waypoint"


def sighting_point(sighting: Sighting, order: int) -> RoutePoint:
    return RoutePoint(
        order=order,
        location_id=sighting.camera_id,
        location_name=sighting.camera_name or f"Camera {sighting.camera_id}",
        location_type=CAMERA_LOCATION,
        latitude=sighting.latitude,
        longitude=sighting.longitude,
        visit_time=sighting.timestamp,
    )


def waypoint_candidates(
    start: RoutePoint,
    end: Sighting,
    features: Sequence[TrackedFeature],
    config: BuckTraxConfig,
    weights: Optional[Mapping[int, float]] = None,
) -> list[tuple[TrackedFeature, float, float]]:
    """Transit features worth routing through, best first, as (feature, weight, detour_m)."""
    direct = distance_m(start, end)
    budget = direct * config.maximum_detour_percentage
    proximity = config.camera_feature_proximity_meters

    ranked = []
    for f in features:
        if not is_transit_type(f.classification_type):
            continue
        if distance_m(start, f) <= proximity or distance_m(f, end) <= proximity:
            continue
        extra = detour_m(start, f, end)
        if extra > budget:
            continue
        w = weights.get(f.id, f.effective_weight) if weights else f.effective_weight
        ranked.append((f, w, extra))
    ranked.sort(key=lambda r: (-r[1], r[2], r[0].id))
    return ranked


def synthesize_route(
    start: RoutePoint,
    end: Sighting,
    features: Sequence[TrackedFeature],
    config: Optional[BuckTraxConfig] = None,
    weights: Optional[Mapping[int, float]] = None,
) -> list[RoutePoint]:
    """Start point plus any feature waypoints on the way to ``end``.

    The end point is not included; callers append it. Returns just the start
    point when routing is disabled or the hop is too short to bother.
    """
    config = config or BuckTraxConfig()
    direct = distance_m(start, end)
    if not config.enable_feature_aware_routing or direct < config.minimum_distance_for_feature_routing:
        return [start]

    chosen = [f for f, _, _ in waypoint_candidates(start, end, features, config, weights)]
    chosen = chosen[: config.maximum_waypoints_per_route]
    if not chosen:
        return [start]
    chosen.sort(key=lambda f: (distance_m(start, f), f.id))

    # visit times interpolated along the route by distance travelled
    legs = [start, *chosen, end]
    lengths = [distance_m(a, b) for a, b in zip(legs, legs[1:])]
    total = sum(lengths) or 1.0
    elapsed = end.timestamp - start.visit_time

    points = [start]
    travelled = 0.0
    for i, f in enumerate(chosen):
        travelled += lengths[i]
        points.append(
            RoutePoint(
                order=start.order + i + 1,
                location_id=f.id,
                location_name=f.name or f.classification,
                location_type=FEATURE_WAYPOINT,
                latitude=f.latitude,
                longitude=f.longitude,
                visit_time=start.visit_time + elapsed * (travelled / total),
            )
        )
    return points


def build_movement_routes(
    sightings: Iterable[Sighting],
    features: Sequence[TrackedFeature],
    config: Optional[BuckTraxConfig] = None,
    weights: Optional[Mapping[int, float]] = None,
) -> list[MovementRoute]:
    """Routes between consecutive sightings at different cameras.

    Hops longer than the movement window or distance limit are not routes.
    """
    config = config or BuckTraxConfig()
    ordered = chronological(sightings)
    window_s = config.movement_time_window_minutes * 60

    routes = []
    for a, b in zip(ordered, ordered[1:]):
        if a.camera_id == b.camera_id:
            continue
        if (b.timestamp - a.timestamp).total_seconds() > window_s:
            continue
        direct = distance_m(a, b)
        if direct > config.max_movement_distance_meters:
            continue
        points = synthesize_route(sighting_point(a, 1), b, features, config, weights)
        points.append(sighting_point(b, len(points) + 1))
        routes.append(
            MovementRoute(
                id=f"route-{len(routes) + 1}",
                points=points,
                direct_distance_m=direct,
                waypoint_count=len(points) - 2,
            )
        )
    logger.debug("routes_built", routes=len(routes), waypoints=sum(r.waypoint_count for r in routes))
    return routes
