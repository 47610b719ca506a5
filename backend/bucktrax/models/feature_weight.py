# backend/bucktrax/models/feature_weight.py
from datetime import datetime

from sqlalchemy import Integer, Column, ForeignKey, Float, Boolean, JSON, DateTime, UniqueConstraint
from .base import Base


class FeatureWeight(Base):
    __tablename__ = "feature_weights"
    __table_args__ = (
        UniqueConstraint("property_id", "classification_type", name="uq_feature_weight_property_classification"),
    )
    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    classification_type = Column(Integer, nullable=False)
    default_weight = Column(Float, nullable=False)
    user_weight = Column(Float, nullable=True)
    # {"<season value>": weight}; JSON object keys are strings
    seasonal_weights = Column(JSON, nullable=True)
    is_custom = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow)
