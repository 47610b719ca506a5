from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Optional

from bucktrax.api.deps import get_property
from bucktrax.db import get_db
from bucktrax.errors import InvalidWeightError
from bucktrax.models.property import Property
from bucktrax.schemas.feature_weight import FeatureWeightBulkUpdate, FeatureWeightOut
from bucktrax.services.seasons.calendar import Season, parse_season
from bucktrax.services.weights.classifications import ClassificationType, parse_classification, validate_weight
from bucktrax.services.weights.resolver import FeatureWeightResolver

router = APIRouter()


def _season(value: Optional[str]) -> Optional[Season]:
    if not value:
        return None
    try:
        return parse_season(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _classification(value) -> ClassificationType:
    try:
        c = parse_classification(value)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if c is ClassificationType.Other:
        raise HTTPException(status_code=404, detail="classification Other carries no weight row")
    return c


@router.get("/{property_id}/feature-weights")
def list_feature_weights(
    season: Optional[str] = None,
    prop: Property = Depends(get_property),
    db: Session = Depends(get_db),
) -> list[FeatureWeightOut]:
    return FeatureWeightResolver(db).list_for_property(prop.id, _season(season))


@router.put("/{property_id}/feature-weights")
def update_feature_weights(
    payload: FeatureWeightBulkUpdate,
    prop: Property = Depends(get_property),
    db: Session = Depends(get_db),
) -> list[FeatureWeightOut]:
    """Apply a batch of user/seasonal weight changes.

    The whole batch is validated before the first row is written.
    """
    resolver = FeatureWeightResolver(db)
    plan = []
    for u in payload.updates:
        c = _classification(u.classification)
        fields = u.model_fields_set
        if "user_weight" in fields and u.user_weight is not None:
            validate_weight(u.user_weight, "user_weight", c)
        if "seasonal_weights" in fields and u.seasonal_weights:
            for key, value in u.seasonal_weights.items():
                try:
                    s = parse_season(key)
                except ValueError as exc:
                    raise InvalidWeightError(str(exc), field="seasonal_weights", subject=c) from exc
                validate_weight(value, f"seasonal_weights.{s.name}", c)
        plan.append((c, u, fields))

    for c, u, fields in plan:
        if "user_weight" in fields:
            resolver.update_user_weight(prop.id, c, u.user_weight)
        if "seasonal_weights" in fields:
            resolver.update_seasonal_weights(prop.id, c, u.seasonal_weights)
    return resolver.list_for_property(prop.id, _season(payload.season))


@router.post("/{property_id}/feature-weights/{classification}/reset")
def reset_feature_weight(
    classification: str,
    prop: Property = Depends(get_property),
    db: Session = Depends(get_db),
) -> FeatureWeightOut:
    c = _classification(classification)
    resolver = FeatureWeightResolver(db)
    resolver.reset_to_default(prop.id, c)
    return next(w for w in resolver.list_for_property(prop.id) if w.classification_type == int(c))
