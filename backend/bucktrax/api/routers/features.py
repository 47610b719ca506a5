from fastapi import APIRouter, Depends, HTTPException
from shapely.errors import ShapelyError
from sqlalchemy.orm import Session
from typing import Optional
import json

from bucktrax.api.deps import get_property
from bucktrax.db import get_db
from bucktrax.models.property import Property
from bucktrax.models.property_feature import PropertyFeature
from bucktrax.schemas.feature import PropertyFeatureIn, PropertyFeatureOut
from bucktrax.services.geo.distance import feature_centroid
from bucktrax.services.seasons.calendar import parse_season
from bucktrax.services.weights.classifications import ClassificationType, parse_classification, validate_weight
from bucktrax.services.weights.resolver import FeatureWeightResolver
from bucktrax.utils.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)


def _classification(value) -> ClassificationType:
    try:
        return parse_classification(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _out(f: PropertyFeature, effective: float) -> PropertyFeatureOut:
    geom = json.loads(f.geometry)
    c = feature_centroid(geom)
    return PropertyFeatureOut(
        id=f.id,
        property_id=f.property_id,
        classification_type=f.classification_type,
        classification=ClassificationType(f.classification_type).name,
        name=f.name,
        notes=f.notes or "",
        weight=f.weight,
        effective_weight=effective,
        latitude=c.latitude,
        longitude=c.longitude,
        geometry=geom,
    )


@router.post("/{property_id}/features")
def create_feature(
    payload: PropertyFeatureIn,
    prop: Property = Depends(get_property),
    db: Session = Depends(get_db),
) -> PropertyFeatureOut:
    classification = _classification(payload.classification)
    try:
        payload.geometry_type()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    weight = None
    if payload.weight is not None:
        weight = validate_weight(payload.weight, "weight", classification)

    geom = payload.feature.geometry
    try:
        feature_centroid(geom)
    except (ValueError, TypeError, KeyError, IndexError, ShapelyError) as exc:
        raise HTTPException(status_code=400, detail=f"invalid geometry: {exc}") from exc

    obj = PropertyFeature(
        property_id=prop.id,
        classification_type=int(classification),
        geometry=json.dumps(geom, ensure_ascii=False),
        name=payload.name,
        notes=payload.notes or "",
        weight=weight,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info("feature_created", property_id=prop.id, feature_id=obj.id, classification=classification.name)
    return _out(obj, FeatureWeightResolver(db).effective_weight(obj))


@router.get("/{property_id}/features")
def list_features(
    season: Optional[str] = None,
    prop: Property = Depends(get_property),
    db: Session = Depends(get_db),
):
    """
    プロパティの地物を GeoJSON FeatureCollection で返す。
    - season が指定されれば季節別の重みで effective_weight を解決
    """
    try:
        the_season = parse_season(season) if season else None
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    table = FeatureWeightResolver(db).table(prop.id)
    rows = (
        db.query(PropertyFeature)
        .filter(PropertyFeature.property_id == prop.id)
        .order_by(PropertyFeature.id.asc())
        .all()
    )
    feats: list[dict] = []
    for f in rows:
        out = _out(f, table.weight_for_feature(f, the_season))
        props = out.model_dump(exclude={"geometry"})
        feats.append({"type": "Feature", "geometry": out.geometry, "properties": props})
    return {"type": "FeatureCollection", "features": feats}


@router.patch("/{property_id}/features/{feature_id}/weight")
def set_feature_weight(
    feature_id: int,
    weight: Optional[float] = None,
    prop: Property = Depends(get_property),
    db: Session = Depends(get_db),
) -> PropertyFeatureOut:
    """Set or clear (omit ``weight``) a feature's own weight override."""
    f = db.get(PropertyFeature, feature_id)
    if not f or f.property_id != prop.id:
        raise HTTPException(status_code=404, detail="feature not found")
    if weight is not None:
        weight = validate_weight(weight, "weight", ClassificationType(f.classification_type))
    f.weight = weight
    db.add(f)
    db.commit()
    db.refresh(f)
    return _out(f, FeatureWeightResolver(db).effective_weight(f))


@router.delete("/{property_id}/features/{feature_id}")
def delete_feature(feature_id: int, prop: Property = Depends(get_property), db: Session = Depends(get_db)):
    f = db.get(PropertyFeature, feature_id)
    if not f or f.property_id != prop.id:
        raise HTTPException(status_code=404, detail="feature not found")
    db.delete(f)
    db.commit()
    return {"ok": True}
