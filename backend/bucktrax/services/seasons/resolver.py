# backend/bucktrax/services/seasons/resolver.py
from __future__ import annotations

from datetime import date as Date, datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from bucktrax.models.season_override import PropertySeasonMonthsOverride
from bucktrax.schemas.season import SeasonOverrideOut
from bucktrax.services.seasons.calendar import (
    SEASON_LABELS,
    Season,
    SeasonCalendar,
    default_months,
    validate_months,
)
from bucktrax.utils.logging import get_logger

logger = get_logger(__name__)


class SeasonResolver:
    """Hybrid season-to-month mapping backed by the override table.

    Unknown or absent property ids resolve against the defaults; checking that
    a property exists is the caller's job.
    """

    def __init__(self, db: Session):
        self.db = db

    def _find(self, property_id: int, season: Season) -> Optional[PropertySeasonMonthsOverride]:
        return (
            self.db.query(PropertySeasonMonthsOverride)
            .filter(
                PropertySeasonMonthsOverride.property_id == property_id,
                PropertySeasonMonthsOverride.season == int(season),
            )
            .first()
        )

    def overrides_for_property(self, property_id: Optional[int]) -> dict[Season, list[int]]:
        if property_id is None:
            return {}
        rows = (
            self.db.query(PropertySeasonMonthsOverride)
            .filter(PropertySeasonMonthsOverride.property_id == property_id)
            .all()
        )
        result: dict[Season, list[int]] = {}
        for row in rows:
            if row.months:
                result[Season(row.season)] = list(row.months)
        return result

    def calendar(self, property_id: Optional[int]) -> SeasonCalendar:
        return SeasonCalendar(self.overrides_for_property(property_id))

    def months_for_property(self, season: Season, property_id: Optional[int] = None) -> list[int]:
        if property_id is None:
            return default_months(season)
        row = self._find(property_id, season)
        if row is not None and row.months:
            return list(row.months)
        return default_months(season)

    def active_seasons(self, when: Date, property_id: Optional[int] = None) -> list[Season]:
        return self.calendar(property_id).active_seasons(when)

    def primary_season(self, when: Date, property_id: Optional[int] = None) -> Optional[Season]:
        return self.calendar(property_id).primary_season(when)

    def set_override(self, property_id: int, season: Season, months: Iterable[int]) -> PropertySeasonMonthsOverride:
        values = validate_months(months, season)
        row = self._find(property_id, season)
        now = datetime.utcnow()
        if row is None:
            row = PropertySeasonMonthsOverride(
                property_id=property_id,
                season=int(season),
                months=values,
                created_at=now,
                updated_at=now,
            )
        else:
            row.months = values
            row.updated_at = now
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info("season_override_set", property_id=property_id, season=season.name, months=values)
        return row

    def remove_override(self, property_id: int, season: Season) -> bool:
        row = self._find(property_id, season)
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        logger.info("season_override_removed", property_id=property_id, season=season.name)
        return True

    def list_for_property(self, property_id: Optional[int]) -> list[SeasonOverrideOut]:
        cal = self.calendar(property_id)
        overrides = cal.overrides
        return [
            SeasonOverrideOut(
                season=season.name,
                season_value=int(season),
                label=SEASON_LABELS[season],
                default_months=default_months(season),
                custom_months=overrides.get(season),
                effective_months=cal.months_for(season),
                is_overridden=cal.is_overridden(season),
            )
            for season in sorted(Season)
        ]
