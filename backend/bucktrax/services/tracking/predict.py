# backend/bucktrax/services/tracking/predict.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from shapely.errors import ShapelyError
from sqlalchemy.orm import Session

from bucktrax.config import BuckTraxConfig
from bucktrax.models.property_feature import PropertyFeature
from bucktrax.schemas.tracking import PredictionResult, SightingEvent, TrackedFeature
from bucktrax.services.geo.distance import feature_centroid
from bucktrax.services.seasons.calendar import Season
from bucktrax.services.tracking.corridors import associate_sightings, mine_corridors, total_transitions
from bucktrax.services.tracking.routes import build_movement_routes
from bucktrax.services.tracking.segments import (
    default_segment_index,
    is_limited_data,
    limited_data_message,
    predict_time_segments,
)
from bucktrax.services.tracking.sightings import aggregate_sightings
from bucktrax.services.weights.classifications import ClassificationType
from bucktrax.services.weights.resolver import FeatureWeightResolver
from bucktrax.utils.logging import get_logger

logger = get_logger(__name__)


def _classification_name(value: int) -> str:
    try:
        return ClassificationType(value).name
    except ValueError:
        return str(value)


def load_tracked_features(db: Session, property_id: int, season: Optional[Season] = None) -> list[TrackedFeature]:
    """Property features reduced to centroid + season-scoped effective weight.

    Features whose geometry cannot be read are left out and logged.
    """
    table = FeatureWeightResolver(db).table(property_id)
    rows = (
        db.query(PropertyFeature)
        .filter(PropertyFeature.property_id == property_id)
        .order_by(PropertyFeature.id)
        .all()
    )
    out = []
    for row in rows:
        try:
            c = feature_centroid(row.geometry)
        except (ValueError, TypeError, KeyError, AttributeError, ShapelyError) as exc:
            logger.warning("feature_geometry_unreadable", feature_id=row.id, error=str(exc))
            continue
        out.append(
            TrackedFeature(
                id=row.id,
                name=row.name or "",
                classification_type=row.classification_type,
                classification=_classification_name(row.classification_type),
                latitude=c.latitude,
                longitude=c.longitude,
                effective_weight=table.weight_for_feature(row, season),
            )
        )
    return out


def predict_movement(
    events: Iterable[SightingEvent],
    features: Sequence[TrackedFeature],
    config: Optional[BuckTraxConfig] = None,
    season: Optional[Season] = None,
    property_id: Optional[int] = None,
    property_name: str = "",
    include_routes: bool = True,
    now: Optional[datetime] = None,
) -> PredictionResult:
    """Run the whole pipeline: sightings, corridors, time segments, routes."""
    config = config or BuckTraxConfig()
    events = list(events)

    sightings = aggregate_sightings(events, config.sighting_window_minutes)
    sightings = associate_sightings(sightings, features, config.camera_feature_proximity_meters)
    corridors = mine_corridors(sightings, features, config)
    transitions = total_transitions(corridors)

    segments = predict_time_segments(sightings, corridors, features)
    limited = is_limited_data(len(sightings), transitions, config)
    routes = build_movement_routes(sightings, features, config) if include_routes else []

    result = PredictionResult(
        property_id=property_id,
        property_name=property_name,
        season=season.name if season is not None else None,
        total_sightings=len(sightings),
        total_transitions=transitions,
        prediction_date=now or datetime.now(timezone.utc),
        is_limited_data=limited,
        limited_data_message=limited_data_message(limited, config),
        time_segments=segments,
        default_time_segment_index=default_segment_index(segments),
        movement_corridors=corridors,
        movement_routes=routes,
        configuration=config,
    )
    logger.info(
        "movement_predicted",
        property_id=property_id,
        season=result.season,
        events=len(events),
        sightings=result.total_sightings,
        corridors=len(corridors),
        transitions=transitions,
        routes=len(routes),
        limited=limited,
    )
    return result
