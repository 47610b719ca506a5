# backend/bucktrax/models/season_override.py
from datetime import datetime

from sqlalchemy import Integer, Column, ForeignKey, JSON, DateTime, UniqueConstraint
from .base import Base


class PropertySeasonMonthsOverride(Base):
    __tablename__ = "property_season_months_overrides"
    __table_args__ = (UniqueConstraint("property_id", "season", name="uq_season_override_property_season"),)
    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    season = Column(Integer, nullable=False)  # Season value
    months = Column(JSON, nullable=True)  # [1..12]; null/empty means defaults apply
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)
