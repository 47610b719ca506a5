# backend/bucktrax/api/deps.py
from fastapi import Depends
from sqlalchemy.orm import Session

from bucktrax.db import get_db
from bucktrax.errors import PropertyNotFoundError
from bucktrax.models.property import Property


def get_property(property_id: int, db: Session = Depends(get_db)) -> Property:
    prop = db.get(Property, property_id)
    if prop is None:
        raise PropertyNotFoundError(property_id)
    return prop
