"""Tests for the static season table and the pure SeasonCalendar."""

from datetime import date

import pytest

from bucktrax.errors import BuckTraxValidationError, InvalidMonthsError
from bucktrax.services.seasons.calendar import (
    DEFAULT_MONTHS,
    Season,
    SeasonCalendar,
    default_months,
    parse_season,
    validate_months,
)


class TestDefaults:
    def test_every_season_has_non_empty_defaults(self):
        for season in Season:
            months = DEFAULT_MONTHS[season]
            assert months
            assert all(1 <= m <= 12 for m in months)

    def test_documented_default_months(self):
        assert default_months(Season.EarlySeason) == [9, 10]
        assert default_months(Season.PreRut) == [10]
        assert default_months(Season.Rut) == [11]
        assert default_months(Season.PostRut) == [12]
        assert default_months(Season.LateSeason) == [12, 1]
        assert default_months(Season.YearRound) == list(range(1, 13))

    def test_default_months_returns_a_copy(self):
        months = default_months(Season.Rut)
        months.append(5)
        assert default_months(Season.Rut) == [11]


class TestPrimarySeason:
    @pytest.mark.parametrize(
        "month, expected",
        [
            (11, Season.Rut),
            (1, Season.LateSeason),
            (10, Season.EarlySeason),  # PreRut also matches; lower ordinal wins
            (12, Season.PostRut),
            (6, Season.YearRound),
        ],
    )
    def test_primary_season_with_defaults(self, month, expected):
        assert SeasonCalendar().primary_season(date(2024, month, 15)) == expected

    def test_no_match_returns_none(self):
        cal = SeasonCalendar({Season.YearRound: [1]})
        assert cal.active_seasons(date(2024, 6, 1)) == []
        assert cal.primary_season(date(2024, 6, 1)) is None


class TestActiveSeasons:
    def test_october_overlap(self):
        active = SeasonCalendar().active_seasons(date(2024, 10, 3))
        assert active == [Season.EarlySeason, Season.PreRut, Season.YearRound]

    def test_strictly_ascending_for_every_month(self):
        cal = SeasonCalendar({Season.Rut: [10, 11, 12]})
        for month in range(1, 13):
            active = cal.active_seasons(date(2024, month, 1))
            assert active == sorted(set(active))
            primary = cal.primary_season(date(2024, month, 1))
            assert primary == (active[0] if active else None)


class TestOverrides:
    def test_override_replaces_defaults(self):
        cal = SeasonCalendar({Season.Rut: [10, 11]})
        assert cal.months_for(Season.Rut) == [10, 11]
        assert cal.is_overridden(Season.Rut)
        assert Season.Rut in cal.active_seasons(date(2024, 10, 20))

    def test_empty_override_falls_back(self):
        cal = SeasonCalendar({Season.Rut: []})
        assert cal.months_for(Season.Rut) == [11]
        assert not cal.is_overridden(Season.Rut)
        assert cal.overrides == {}

    def test_other_seasons_untouched(self):
        cal = SeasonCalendar({Season.Rut: [10]})
        for season in Season:
            if season is not Season.Rut:
                assert cal.months_for(season) == default_months(season)


class TestValidateMonths:
    def test_valid_months_pass_through(self):
        assert validate_months([1, 12], Season.LateSeason) == [1, 12]

    @pytest.mark.parametrize("months", [None, [], [0], [13], [1, 14], [True], ["3"]])
    def test_invalid_months_rejected(self, months):
        with pytest.raises(InvalidMonthsError) as exc_info:
            validate_months(months, Season.Rut)
        assert exc_info.value.field == "months"
        assert exc_info.value.subject is Season.Rut

    def test_error_is_a_value_error(self):
        assert issubclass(InvalidMonthsError, BuckTraxValidationError)
        assert issubclass(InvalidMonthsError, ValueError)


class TestParseSeason:
    @pytest.mark.parametrize("value", [Season.Rut, 3, "3", "rut", "RUT", " Rut "])
    def test_accepted_forms(self, value):
        assert parse_season(value) is Season.Rut

    @pytest.mark.parametrize("value", ["spring", "0", 7])
    def test_unknown_rejected(self, value):
        with pytest.raises(ValueError):
            parse_season(value)
