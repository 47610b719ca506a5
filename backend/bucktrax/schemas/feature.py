# backend/bucktrax/schemas/feature.py
from pydantic import BaseModel, Field
from typing import Literal, Optional, Union
from .commons import GeoJSONFeature


class PropertyFeatureIn(BaseModel):
    classification: Union[int, str]
    feature: GeoJSONFeature
    name: Optional[str] = None
    notes: str = ""
    # per-feature override; outranks the property's weight row
    weight: Optional[float] = None

    # 許可する形状のみ
    def geometry_type(self) -> Literal["Point", "LineString", "Polygon"]:
        g = self.feature.geometry or {}
        t = g.get("type")
        if t not in ("Point", "LineString", "Polygon"):
            raise ValueError("feature.geometry.type must be Point|LineString|Polygon")
        return t  # type: ignore[return-value]


class PropertyFeatureOut(BaseModel):
    id: int
    property_id: int
    classification_type: int
    classification: str
    name: Optional[str] = None
    notes: str = ""
    weight: Optional[float] = None
    effective_weight: float
    latitude: float
    longitude: float
    geometry: dict = Field(default_factory=dict)
