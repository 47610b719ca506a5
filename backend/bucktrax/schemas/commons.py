# backend/bucktrax/schemas/commons.py
from pydantic import BaseModel
from typing import Literal

GeometryType = Literal["Point", "LineString", "Polygon"]


class GeoJSONFeature(BaseModel):
    type: Literal["Feature"] = "Feature"
    geometry: dict
    properties: dict = {}
