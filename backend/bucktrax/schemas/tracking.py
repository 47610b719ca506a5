# backend/bucktrax/schemas/tracking.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Union
import datetime as dt

from bucktrax.config import BuckTraxConfig


def _as_utc(value: dt.datetime) -> dt.datetime:
    # naive timestamps are read as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


class WeatherSnapshot(BaseModel):
    temperature: Optional[float] = None
    wind_speed: Optional[float] = None
    wind_direction: Optional[float] = None
    wind_direction_text: Optional[str] = None
    visibility: Optional[float] = None
    pressure: Optional[float] = None
    pressure_trend: Optional[str] = None
    humidity: Optional[float] = None
    conditions: Optional[str] = None
    cloud_cover: Optional[float] = None
    moon_phase: Optional[float] = None
    moon_phase_text: Optional[str] = None


class SightingEvent(BaseModel):
    """A raw tagged photo: where and when a camera saw the animal."""

    photo_id: int
    camera_id: int
    camera_name: str = ""
    timestamp: dt.datetime
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    weather: Optional[WeatherSnapshot] = None

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, v: dt.datetime) -> dt.datetime:
        return _as_utc(v)


class Sighting(SightingEvent):
    photo_count: int = 1
    associated_feature_id: Optional[int] = None
    associated_feature_name: Optional[str] = None

    @property
    def hour(self) -> int:
        return self.timestamp.hour


class TrackedFeature(BaseModel):
    """A property feature reduced to its centroid and resolved weight."""

    id: int
    name: str = ""
    classification_type: int
    classification: str
    latitude: float
    longitude: float
    effective_weight: float = 0.5


class MovementCorridor(BaseModel):
    name: str
    start_feature_id: int
    end_feature_id: int
    start_feature_name: str = ""
    end_feature_name: str = ""
    start_feature_type: str = ""
    end_feature_type: str = ""
    start_latitude: float
    start_longitude: float
    end_latitude: float
    end_longitude: float
    transition_count: int
    corridor_score: float
    start_feature_weight: float
    end_feature_weight: float
    distance_m: float = 0.0
    average_time_span_hours: float = 0.0
    time_of_day_pattern: List[str] = Field(default_factory=list)
    transition_hours: List[int] = Field(default_factory=list)


class PredictionZone(BaseModel):
    location_name: str
    latitude: float
    longitude: float
    probability: float
    sighting_count: int = 0
    radius_meters: float
    is_corridor_prediction: bool = False
    associated_feature_id: Optional[int] = None
    feature_type: Optional[str] = None
    feature_weight: Optional[float] = None


class TimeSegmentPrediction(BaseModel):
    time_segment: str
    start_hour: int
    end_hour: int
    sighting_count: int = 0
    confidence_score: float = 0.0
    predicted_zones: List[PredictionZone] = Field(default_factory=list)
    corridors: List[MovementCorridor] = Field(default_factory=list)


class RoutePoint(BaseModel):
    order: int
    location_id: int
    location_name: str = ""
    location_type: str
    latitude: float
    longitude: float
    visit_time: dt.datetime

    @field_validator("visit_time")
    @classmethod
    def _utc(cls, v: dt.datetime) -> dt.datetime:
        return _as_utc(v)


class MovementRoute(BaseModel):
    id: str
    points: List[RoutePoint]
    direct_distance_m: float = 0.0
    waypoint_count: int = 0


class PredictionRequest(BaseModel):
    season: Optional[Union[int, str]] = None
    events: List[SightingEvent] = Field(default_factory=list)
    include_routes: bool = True


class PredictionResult(BaseModel):
    property_id: Optional[int] = None
    property_name: str = ""
    season: Optional[str] = None
    total_sightings: int
    total_transitions: int
    prediction_date: dt.datetime
    is_limited_data: bool
    limited_data_message: Optional[str] = None
    time_segments: List[TimeSegmentPrediction]
    default_time_segment_index: int = 0
    movement_corridors: List[MovementCorridor] = Field(default_factory=list)
    movement_routes: List[MovementRoute] = Field(default_factory=list)
    configuration: BuckTraxConfig
