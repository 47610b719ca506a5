# backend/bucktrax/schemas/season.py
from pydantic import BaseModel
from typing import List, Optional
import datetime as dt


class SeasonOverrideIn(BaseModel):
    months: List[int]


class SeasonOverrideOut(BaseModel):
    season: str
    season_value: int
    label: str
    default_months: List[int]
    custom_months: Optional[List[int]] = None
    effective_months: List[int]
    is_overridden: bool


class ActiveSeasonsOut(BaseModel):
    date: dt.date
    active_seasons: List[str]
    primary_season: Optional[str] = None
