# backend/bucktrax/models/property.py
from datetime import datetime

from sqlalchemy import Integer, String, Column, DateTime
from .base import Base


class Property(Base):
    __tablename__ = "properties"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    time_zone = Column(String, default="UTC")
    created_at = Column(DateTime, default=datetime.utcnow)
