# backend/bucktrax/models/property_feature.py
from datetime import datetime

from sqlalchemy import Integer, Column, ForeignKey, Float, String, Text, DateTime
from .base import Base


class PropertyFeature(Base):
    __tablename__ = "property_features"
    id = Column(Integer, primary_key=True)
    property_id = Column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    classification_type = Column(Integer, nullable=False)  # ClassificationType value
    geometry = Column(Text, nullable=False)  # GeoJSON string (Point | LineString | Polygon, EPSG:4326)
    name = Column(String, nullable=True)
    notes = Column(String, default="")
    # 0..1; when set it outranks the property-level FeatureWeight row
    weight = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
