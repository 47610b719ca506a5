# backend/bucktrax/services/seasons/calendar.py
from __future__ import annotations

from datetime import date as Date
from enum import IntEnum
from typing import Iterable, Mapping, Optional

from bucktrax.errors import InvalidMonthsError


class Season(IntEnum):
    # value doubles as tie-break priority: lower wins
    EarlySeason = 1
    PreRut = 2
    Rut = 3
    PostRut = 4
    LateSeason = 5
    YearRound = 6


DEFAULT_MONTHS: dict[Season, tuple[int, ...]] = {
    Season.EarlySeason: (9, 10),
    Season.PreRut: (10,),
    Season.Rut: (11,),
    Season.PostRut: (12,),
    Season.LateSeason: (12, 1),
    Season.YearRound: tuple(range(1, 13)),
}

SEASON_LABELS: dict[Season, str] = {
    Season.EarlySeason: "Early Season",
    Season.PreRut: "Pre-Rut",
    Season.Rut: "Rut",
    Season.PostRut: "Post-Rut",
    Season.LateSeason: "Late Season",
    Season.YearRound: "Year Round",
}


def parse_season(value) -> Season:
    """Accept a Season, its integer value or its name (case-insensitive)."""
    if isinstance(value, Season):
        return value
    if isinstance(value, int):
        return Season(value)
    text = str(value).strip()
    if text.isdigit():
        return Season(int(text))
    for season in Season:
        if season.name.lower() == text.lower():
            return season
    raise ValueError(f"unknown season: {value!r}")


def default_months(season: Season) -> list[int]:
    return list(DEFAULT_MONTHS[season])


def validate_months(months: Optional[Iterable[int]], season: Optional[Season] = None) -> list[int]:
    """Return the months as a list, or raise before anything is persisted."""
    label = season.name if season is not None else "season"
    if months is None:
        raise InvalidMonthsError(f"months for {label} must not be empty", field="months", subject=season)
    values = list(months)
    if not values:
        raise InvalidMonthsError(f"months for {label} must not be empty", field="months", subject=season)
    for m in values:
        if isinstance(m, bool) or not isinstance(m, int) or m < 1 or m > 12:
            raise InvalidMonthsError(
                f"month value {m!r} for {label} is invalid, must be between 1 and 12",
                field="months",
                subject=season,
            )
    return values


class SeasonCalendar:
    """Season-to-month mapping for one property: overrides layered over defaults.

    Holds an immutable snapshot of the property's overrides, so lookups are pure.
    An override that is absent or empty falls through to the default months.
    """

    def __init__(self, overrides: Optional[Mapping[Season, Iterable[int]]] = None):
        self._overrides: dict[Season, tuple[int, ...]] = {}
        for season, months in (overrides or {}).items():
            values = tuple(months or ())
            if values:
                self._overrides[Season(season)] = values

    @property
    def overrides(self) -> dict[Season, list[int]]:
        return {s: list(m) for s, m in sorted(self._overrides.items())}

    def is_overridden(self, season: Season) -> bool:
        return season in self._overrides

    def months_for(self, season: Season) -> list[int]:
        custom = self._overrides.get(season)
        if custom:
            return list(custom)
        return default_months(season)

    def active_seasons(self, when: Date) -> list[Season]:
        month = when.month
        return [s for s in sorted(Season) if month in self.months_for(s)]

    def primary_season(self, when: Date) -> Optional[Season]:
        active = self.active_seasons(when)
        return active[0] if active else None
