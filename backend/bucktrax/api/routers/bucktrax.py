from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from bucktrax.api.deps import get_property
from bucktrax.config import BuckTraxConfig, get_settings
from bucktrax.db import get_db
from bucktrax.models.property import Property
from bucktrax.schemas.tracking import PredictionRequest, PredictionResult
from bucktrax.services.seasons.calendar import parse_season
from bucktrax.services.tracking.predict import load_tracked_features, predict_movement

router = APIRouter()


@router.get("/configuration")
def get_configuration() -> BuckTraxConfig:
    return get_settings().bucktrax


@router.post("/properties/{property_id}/predict")
def predict(
    payload: PredictionRequest,
    prop: Property = Depends(get_property),
    db: Session = Depends(get_db),
) -> PredictionResult:
    try:
        season = parse_season(payload.season) if payload.season is not None else None
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    features = load_tracked_features(db, prop.id, season)
    return predict_movement(
        payload.events,
        features,
        config=get_settings().bucktrax,
        season=season,
        property_id=prop.id,
        property_name=prop.name,
        include_routes=payload.include_routes,
    )
