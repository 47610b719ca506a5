"""Tests for classification defaults and feature weight resolution."""

import pytest

from bucktrax.errors import InvalidWeightError
from bucktrax.models.feature_weight import FeatureWeight
from bucktrax.services.seasons.calendar import Season
from bucktrax.services.weights.classifications import (
    CLASSIFICATIONS,
    TRANSIT_TYPES,
    ClassificationType,
    FeatureCategory,
    materializable_types,
    parse_classification,
    system_default_weight,
    validate_weight,
)
from bucktrax.services.weights.resolver import (
    FeatureWeightResolver,
    WeightLayers,
    WeightTable,
    diff_layers,
)

CT = ClassificationType


class TestClassificationTable:
    def test_every_type_has_metadata(self):
        for ct in ClassificationType:
            info = CLASSIFICATIONS[ct]
            assert 0.0 <= info.default_weight <= 1.0
            assert info.display_name

    def test_known_defaults(self):
        assert system_default_weight(CT.PinchPointFunnel) == 0.9
        assert system_default_weight(CT.BeddingArea) == 0.9
        assert system_default_weight(CT.Ditch) == 0.4
        assert CLASSIFICATIONS[CT.AgCropField].category is FeatureCategory.FOOD
        assert CLASSIFICATIONS[CT.Pond].category is FeatureCategory.WATER

    def test_unknown_type_uses_system_fallback(self):
        assert system_default_weight(12345) == 0.5

    def test_transit_types_are_topographical(self):
        assert CT.CreekCrossing in TRANSIT_TYPES
        assert CT.BeddingArea not in TRANSIT_TYPES
        for ct in TRANSIT_TYPES:
            assert CLASSIFICATIONS[ct].category is FeatureCategory.TOPOGRAPHICAL

    def test_other_is_not_materialized(self):
        types = materializable_types()
        assert CT.Other not in types
        assert len(types) == len(ClassificationType) - 1

    def test_parse_classification(self):
        assert parse_classification("saddle") is CT.Saddle
        assert parse_classification("4") is CT.Saddle
        assert parse_classification(4) is CT.Saddle
        with pytest.raises(ValueError):
            parse_classification("mountain")


class TestValidateWeight:
    @pytest.mark.parametrize("value", [0, 0.0, 0.5, 1, 1.0])
    def test_bounds_inclusive(self, value):
        assert validate_weight(value, "user_weight", CT.Ridge) == float(value)

    @pytest.mark.parametrize("value", [-0.01, 1.01, float("nan"), "0.5", None, True])
    def test_out_of_range_rejected(self, value):
        with pytest.raises(InvalidWeightError) as exc_info:
            validate_weight(value, "user_weight", CT.Ridge)
        assert exc_info.value.field == "user_weight"
        assert exc_info.value.to_detail()["subject"] == "Ridge"


class TestWeightTable:
    """Each layer of the priority chain, exercised on its own."""

    def _table(self, **layers):
        return WeightTable({CT.Saddle: WeightLayers(**layers)})

    def test_feature_override_wins(self):
        table = self._table(default_weight=0.4, user_weight=0.6, seasonal_weights={Season.Rut: 0.9})
        assert table.effective_weight(CT.Saddle, feature_override=0.2, season=Season.Rut) == 0.2

    def test_seasonal_beats_user(self):
        table = self._table(default_weight=0.4, user_weight=0.6, seasonal_weights={Season.Rut: 0.9})
        assert table.effective_weight(CT.Saddle, season=Season.Rut) == 0.9

    def test_seasonal_ignored_for_other_season(self):
        table = self._table(default_weight=0.4, user_weight=0.6, seasonal_weights={Season.Rut: 0.9})
        assert table.effective_weight(CT.Saddle, season=Season.PreRut) == 0.6
        assert table.effective_weight(CT.Saddle) == 0.6

    def test_user_beats_default(self):
        assert self._table(default_weight=0.4, user_weight=0.6).effective_weight(CT.Saddle) == 0.6

    def test_row_default(self):
        assert self._table(default_weight=0.4).effective_weight(CT.Saddle) == 0.4

    def test_system_default_without_row(self):
        assert WeightTable().effective_weight(CT.Saddle) == 0.8


class TestDiff:
    def test_identical_values_produce_no_changes(self):
        current = WeightLayers(default_weight=0.5, user_weight=0.7, seasonal_weights={Season.Rut: 0.9})
        assert diff_layers(current, user_weight=0.7) == {}
        assert diff_layers(current, seasonal_weights={Season.Rut: 0.9}) == {}
        assert diff_layers(current, default_weight=0.5) == {}

    def test_changed_values_are_reported(self):
        current = WeightLayers(default_weight=0.5)
        assert diff_layers(current, user_weight=0.7) == {"user_weight": 0.7}
        assert diff_layers(current, seasonal_weights={Season.Rut: 0.9}) == {
            "seasonal_weights": {Season.Rut: 0.9}
        }

    def test_none_and_empty_map_are_no_change_when_unset(self):
        current = WeightLayers(default_weight=0.5)
        assert diff_layers(current, user_weight=None, seasonal_weights={}) == {}


class TestMaterialize:
    def test_creates_one_row_per_classification(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        added = resolver.materialize(prop.id)
        assert added == len(ClassificationType) - 1
        rows = db_session.query(FeatureWeight).filter_by(property_id=prop.id).all()
        assert {r.classification_type for r in rows} == {int(c) for c in materializable_types()}
        assert all(not r.is_custom for r in rows)

    def test_idempotent(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        resolver.update_user_weight(prop.id, CT.Ridge, 0.3)
        assert resolver.materialize(prop.id) == 0
        assert db_session.query(FeatureWeight).filter_by(property_id=prop.id).count() == len(ClassificationType) - 1
        assert resolver.table(prop.id).effective_weight(CT.Ridge) == 0.3

    def test_materialize_all(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        assert resolver.materialize_all() == len(ClassificationType) - 1
        assert resolver.materialize_all() == 0


class TestCustomFlag:
    def _row(self, db_session, prop, ct):
        return db_session.query(FeatureWeight).filter_by(property_id=prop.id, classification_type=int(ct)).one()

    def test_same_value_never_flips_flag(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        before = self._row(db_session, prop, CT.Saddle).updated_at

        resolver.update_user_weight(prop.id, CT.Saddle, None)
        resolver.update_seasonal_weights(prop.id, CT.Saddle, {})
        row = self._row(db_session, prop, CT.Saddle)
        assert row.is_custom is False
        assert row.updated_at == before

    def test_new_value_sets_flag(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        row = resolver.update_user_weight(prop.id, CT.Saddle, 0.65)
        assert row.is_custom is True
        assert row.user_weight == 0.65

    def test_repeating_value_keeps_flag_and_timestamp(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        first = resolver.update_user_weight(prop.id, CT.Saddle, 0.65)
        stamp = first.updated_at
        again = resolver.update_user_weight(prop.id, CT.Saddle, 0.65)
        assert again.is_custom is True
        assert again.updated_at == stamp

    def test_clearing_layer_recomputes_flag(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        resolver.update_user_weight(prop.id, CT.Saddle, 0.65)
        resolver.update_seasonal_weights(prop.id, CT.Saddle, {"Rut": 0.95})
        row = resolver.update_user_weight(prop.id, CT.Saddle, None)
        # seasonal layer still set
        assert row.is_custom is True
        row = resolver.update_seasonal_weights(prop.id, CT.Saddle, None)
        assert row.is_custom is False

    def test_reset_clears_user_and_seasonal(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        resolver.update_user_weight(prop.id, CT.Saddle, 0.1)
        resolver.update_seasonal_weights(prop.id, CT.Saddle, {Season.Rut: 0.2})
        row = resolver.reset_to_default(prop.id, CT.Saddle)
        assert row.user_weight is None
        assert row.seasonal_weights is None
        assert row.is_custom is False
        assert row.default_weight == 0.8

    def test_default_weight_change_is_not_custom(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        (row,) = resolver.update_default_weights(prop.id, {"Saddle": 0.55})
        assert row.default_weight == 0.55
        assert row.is_custom is False


class TestValidationBeforeWrite:
    def test_invalid_user_weight_leaves_row(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        with pytest.raises(InvalidWeightError):
            resolver.update_user_weight(prop.id, CT.Saddle, 1.5)
        row = db_session.query(FeatureWeight).filter_by(property_id=prop.id, classification_type=int(CT.Saddle)).one()
        assert row.user_weight is None
        assert row.is_custom is False

    def test_invalid_seasonal_entry_rejects_whole_map(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        with pytest.raises(InvalidWeightError) as exc_info:
            resolver.update_seasonal_weights(prop.id, CT.Saddle, {"Rut": 0.5, "PreRut": -1})
        assert exc_info.value.field == "seasonal_weights.PreRut"
        assert resolver.table(prop.id).layers(CT.Saddle).seasonal_weights == {}

    def test_unknown_season_key_rejected(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        with pytest.raises(InvalidWeightError):
            resolver.update_seasonal_weights(prop.id, CT.Saddle, {"Spring": 0.5})

    def test_invalid_default_batch_writes_nothing(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        with pytest.raises(InvalidWeightError):
            resolver.update_default_weights(prop.id, {"Saddle": 0.3, "Ridge": 2.0})
        assert resolver.table(prop.id).effective_weight(CT.Saddle) == 0.8

    def test_other_never_gets_a_row(self, db_session, prop):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        writes = [
            lambda: resolver.update_default_weights(prop.id, {"Saddle": 0.3, "Other": 0.3}),
            lambda: resolver.update_user_weight(prop.id, CT.Other, 0.4),
            lambda: resolver.update_seasonal_weights(prop.id, CT.Other, {"Rut": 0.4}),
            lambda: resolver.reset_to_default(prop.id, CT.Other),
        ]
        for write in writes:
            with pytest.raises(InvalidWeightError) as exc_info:
                write()
            assert exc_info.value.field == "classification"
        other_rows = db_session.query(FeatureWeight).filter_by(
            property_id=prop.id, classification_type=int(CT.Other)
        ).count()
        assert other_rows == 0
        # the batch was rejected as a whole
        assert resolver.table(prop.id).effective_weight(CT.Saddle) == 0.8


class TestEffectiveWeights:
    def test_priority_chain_on_stored_features(self, db_session, prop, add_feature):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        resolver.update_user_weight(prop.id, CT.Saddle, 0.6)
        resolver.update_seasonal_weights(prop.id, CT.Saddle, {Season.Rut: 0.95})

        plain = add_feature(prop.id, CT.Saddle, -90.0, 40.0)
        pinned = add_feature(prop.id, CT.Saddle, -90.001, 40.0, weight=0.15)
        other = add_feature(prop.id, CT.Ditch, -90.002, 40.0)

        assert resolver.effective_weight(plain) == 0.6
        assert resolver.effective_weight(plain, Season.Rut) == 0.95
        assert resolver.effective_weight(pinned, Season.Rut) == 0.15
        assert resolver.effective_weight(other) == 0.4

        weights = resolver.all_effective_weights(prop.id, Season.Rut)
        assert weights == {plain.id: 0.95, pinned.id: 0.15, other.id: 0.4}

    def test_unmaterialized_property_uses_system_defaults(self, db_session, prop, add_feature):
        f = add_feature(prop.id, CT.PinchPointFunnel, -90.0, 40.0)
        assert FeatureWeightResolver(db_session).all_effective_weights(prop.id) == {f.id: 0.9}


class TestListing:
    def test_listing_order_and_counts(self, db_session, prop, add_feature):
        resolver = FeatureWeightResolver(db_session)
        resolver.materialize(prop.id)
        add_feature(prop.id, CT.Saddle, -90.0, 40.0)
        add_feature(prop.id, CT.Saddle, -90.001, 40.0, weight=0.2)
        resolver.update_seasonal_weights(prop.id, CT.Saddle, {Season.Rut: 0.95})

        listing = resolver.list_for_property(prop.id, Season.Rut)
        assert len(listing) == len(ClassificationType) - 1
        categories = [w.category for w in listing]
        assert categories == sorted(categories, key=lambda c: list(FeatureCategory).index(FeatureCategory(c)))

        saddle = next(w for w in listing if w.classification == "Saddle")
        assert saddle.feature_count == 2
        assert saddle.feature_override_count == 1
        assert saddle.seasonal_weights == {"Rut": 0.95}
        assert saddle.effective_weight == 0.95
        assert saddle.is_custom is True
