from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from datetime import date as Date
from typing import Optional

from bucktrax.api.deps import get_property
from bucktrax.db import get_db
from bucktrax.models.property import Property
from bucktrax.schemas.season import ActiveSeasonsOut, SeasonOverrideIn, SeasonOverrideOut
from bucktrax.services.seasons.calendar import Season, parse_season
from bucktrax.services.seasons.resolver import SeasonResolver

router = APIRouter()


def _season(value: str) -> Season:
    try:
        return parse_season(value)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def _one(resolver: SeasonResolver, property_id: int, season: Season) -> SeasonOverrideOut:
    return next(s for s in resolver.list_for_property(property_id) if s.season_value == int(season))


@router.get("/{property_id}/seasons")
def list_seasons(prop: Property = Depends(get_property), db: Session = Depends(get_db)) -> list[SeasonOverrideOut]:
    return SeasonResolver(db).list_for_property(prop.id)


# "active" must be registered before "/{season}"
@router.get("/{property_id}/seasons/active")
def active_seasons(
    date: Optional[Date] = None,
    prop: Property = Depends(get_property),
    db: Session = Depends(get_db),
) -> ActiveSeasonsOut:
    the_date = date or Date.today()
    cal = SeasonResolver(db).calendar(prop.id)
    primary = cal.primary_season(the_date)
    return ActiveSeasonsOut(
        date=the_date,
        active_seasons=[s.name for s in cal.active_seasons(the_date)],
        primary_season=primary.name if primary is not None else None,
    )


@router.get("/{property_id}/seasons/{season}")
def get_season(season: str, prop: Property = Depends(get_property), db: Session = Depends(get_db)) -> SeasonOverrideOut:
    return _one(SeasonResolver(db), prop.id, _season(season))


@router.put("/{property_id}/seasons/{season}")
def put_season(
    season: str,
    payload: SeasonOverrideIn,
    prop: Property = Depends(get_property),
    db: Session = Depends(get_db),
) -> SeasonOverrideOut:
    the_season = _season(season)
    resolver = SeasonResolver(db)
    resolver.set_override(prop.id, the_season, payload.months)
    return _one(resolver, prop.id, the_season)


@router.delete("/{property_id}/seasons/{season}")
def delete_season(season: str, prop: Property = Depends(get_property), db: Session = Depends(get_db)):
    removed = SeasonResolver(db).remove_override(prop.id, _season(season))
    return {"ok": True, "removed": removed}
