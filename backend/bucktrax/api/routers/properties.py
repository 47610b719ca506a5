from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bucktrax.api.deps import get_property
from bucktrax.db import get_db
from bucktrax.models.feature_weight import FeatureWeight
from bucktrax.models.property import Property
from bucktrax.models.property_feature import PropertyFeature
from bucktrax.models.season_override import PropertySeasonMonthsOverride
from bucktrax.schemas.property import PropertyIn, PropertyOut, PropertyUpdate
from bucktrax.services.weights.resolver import FeatureWeightResolver
from bucktrax.utils.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)


def _out(p: Property, db: Session) -> PropertyOut:
    n = db.query(PropertyFeature).filter(PropertyFeature.property_id == p.id).count()
    return PropertyOut(
        id=p.id,
        name=p.name,
        time_zone=p.time_zone or "UTC",
        created_at=p.created_at,
        feature_count=n,
    )


@router.get("")
@router.get("/")
def list_properties(db: Session = Depends(get_db)) -> list[PropertyOut]:
    rows = db.query(Property).order_by(Property.id.asc()).all()
    return [_out(p, db) for p in rows]


@router.post("")
@router.post("/")
def create_property(payload: PropertyIn, db: Session = Depends(get_db)) -> PropertyOut:
    obj = Property(name=payload.name, time_zone=payload.time_zone or "UTC")
    db.add(obj)
    db.commit()
    db.refresh(obj)
    # new properties start with one default weight row per classification
    FeatureWeightResolver(db).materialize(obj.id)
    logger.info("property_created", property_id=obj.id, name=obj.name)
    return _out(obj, db)


@router.get("/{property_id}")
def get_property_detail(prop: Property = Depends(get_property), db: Session = Depends(get_db)) -> PropertyOut:
    return _out(prop, db)


@router.patch("/{property_id}")
def update_property(
    payload: PropertyUpdate,
    prop: Property = Depends(get_property),
    db: Session = Depends(get_db),
) -> PropertyOut:
    if payload.name is not None:
        prop.name = payload.name
    if payload.time_zone is not None:
        prop.time_zone = payload.time_zone
    db.add(prop)
    db.commit()
    db.refresh(prop)
    return _out(prop, db)


@router.delete("/{property_id}")
def delete_property(prop: Property = Depends(get_property), db: Session = Depends(get_db)):
    property_id = prop.id
    # 子テーブルも明示削除（SQLite は FK の ON DELETE を既定で無視する）
    for model in (PropertyFeature, FeatureWeight, PropertySeasonMonthsOverride):
        db.query(model).filter(model.property_id == property_id).delete(synchronize_session=False)
    db.delete(prop)
    db.commit()
    logger.info("property_deleted", property_id=property_id)
    return {"ok": True}
