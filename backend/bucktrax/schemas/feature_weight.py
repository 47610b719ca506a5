# backend/bucktrax/schemas/feature_weight.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
import datetime as dt


class FeatureWeightOut(BaseModel):
    classification_type: int
    classification: str
    display_name: str
    category: str
    default_weight: float
    user_weight: Optional[float] = None
    seasonal_weights: Dict[str, float] = Field(default_factory=dict)  # season name -> weight
    effective_weight: float
    is_custom: bool
    updated_at: Optional[dt.datetime] = None
    feature_count: int = 0
    feature_override_count: int = 0


class FeatureWeightUpdate(BaseModel):
    """One classification's change set.

    Omitted fields are left alone; an explicit null clears that layer.
    Seasonal keys may be season names or ordinals.
    """

    classification: str
    user_weight: Optional[float] = None
    seasonal_weights: Optional[Dict[str, float]] = None


class FeatureWeightBulkUpdate(BaseModel):
    updates: List[FeatureWeightUpdate]
    season: Optional[str] = None  # season used for effective_weight in the response
