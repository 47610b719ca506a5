# backend/bucktrax/schemas/property.py
from pydantic import BaseModel
from typing import Optional
import datetime as dt


class PropertyIn(BaseModel):
    name: str
    time_zone: str = "UTC"


class PropertyOut(BaseModel):
    id: int
    name: str
    time_zone: str
    created_at: Optional[dt.datetime] = None
    feature_count: int = 0


class PropertyUpdate(BaseModel):
    name: Optional[str] = None
    time_zone: Optional[str] = None
