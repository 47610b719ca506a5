# backend/bucktrax/services/weights/resolver.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from bucktrax.errors import InvalidWeightError
from bucktrax.models.feature_weight import FeatureWeight
from bucktrax.models.property import Property
from bucktrax.models.property_feature import PropertyFeature
from bucktrax.schemas.feature_weight import FeatureWeightOut
from bucktrax.services.seasons.calendar import Season, parse_season
from bucktrax.services.weights.classifications import (
    CLASSIFICATIONS,
    ClassificationType,
    category_rank,
    materializable_types,
    parse_classification,
    system_default_weight,
    validate_weight,
)
from bucktrax.utils.logging import get_logger

logger = get_logger(__name__)

_UNSET: Any = object()


@dataclass(frozen=True)
class WeightLayers:
    """The stored layers of one property+classification weight row."""

    default_weight: float
    user_weight: Optional[float] = None
    seasonal_weights: Mapping[Season, float] = field(default_factory=dict)

    @property
    def is_custom(self) -> bool:
        return self.user_weight is not None or bool(self.seasonal_weights)

    def resolve(self, season: Optional[Season] = None) -> float:
        if season is not None and season in self.seasonal_weights:
            return self.seasonal_weights[season]
        if self.user_weight is not None:
            return self.user_weight
        return self.default_weight


def _seasonal_from_row(raw: Optional[Mapping[str, float]]) -> dict[Season, float]:
    out: dict[Season, float] = {}
    for key, value in (raw or {}).items():
        out[parse_season(key)] = float(value)
    return out


def _seasonal_to_row(seasonal: Mapping[Season, float]) -> Optional[dict[str, float]]:
    if not seasonal:
        return None
    return {str(int(s)): float(w) for s, w in sorted(seasonal.items())}


def layers_from_row(row: FeatureWeight) -> WeightLayers:
    return WeightLayers(
        default_weight=row.default_weight,
        user_weight=row.user_weight,
        seasonal_weights=_seasonal_from_row(row.seasonal_weights),
    )


class WeightTable:
    """Immutable per-property snapshot of weight rows.

    Classifications with no row fall through to the system default table.
    """

    def __init__(self, rows: Optional[Mapping[ClassificationType, WeightLayers]] = None):
        self._rows = dict(rows or {})

    @classmethod
    def from_rows(cls, rows: Iterable[FeatureWeight]) -> "WeightTable":
        return cls({ClassificationType(r.classification_type): layers_from_row(r) for r in rows})

    def layers(self, classification) -> Optional[WeightLayers]:
        try:
            return self._rows.get(ClassificationType(classification))
        except ValueError:
            return None

    def effective_weight(
        self,
        classification,
        feature_override: Optional[float] = None,
        season: Optional[Season] = None,
    ) -> float:
        # per-feature override > seasonal > user > row default > system default
        if feature_override is not None:
            return float(feature_override)
        layers = self.layers(classification)
        if layers is not None:
            return layers.resolve(season)
        return system_default_weight(classification)

    def weight_for_feature(self, feature, season: Optional[Season] = None) -> float:
        return self.effective_weight(feature.classification_type, feature.weight, season)


def _same(a: Optional[float], b: Optional[float]) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return math.isclose(a, b, rel_tol=0.0, abs_tol=1e-9)


def _same_seasonal(a: Mapping[Season, float], b: Mapping[Season, float]) -> bool:
    return set(a) == set(b) and all(_same(a[s], b[s]) for s in a)


def diff_layers(
    current: WeightLayers,
    default_weight: Optional[float] = _UNSET,
    user_weight: Optional[float] = _UNSET,
    seasonal_weights: Optional[Mapping[Season, float]] = _UNSET,
) -> dict[str, Any]:
    """Return only the proposed fields that differ from what is stored.

    An empty result means the write (and the custom-flag recomputation) is skipped.
    """
    changes: dict[str, Any] = {}
    if default_weight is not _UNSET and not _same(default_weight, current.default_weight):
        changes["default_weight"] = default_weight
    if user_weight is not _UNSET and not _same(user_weight, current.user_weight):
        changes["user_weight"] = user_weight
    if seasonal_weights is not _UNSET:
        proposed = dict(seasonal_weights or {})
        if not _same_seasonal(proposed, current.seasonal_weights):
            changes["seasonal_weights"] = proposed
    return changes


class FeatureWeightResolver:
    """Hybrid weight resolution over the feature_weights table."""

    def __init__(self, db: Session):
        self.db = db

    # --- reads ---------------------------------------------------------

    def _row(self, property_id: int, classification: ClassificationType) -> Optional[FeatureWeight]:
        return (
            self.db.query(FeatureWeight)
            .filter(
                FeatureWeight.property_id == property_id,
                FeatureWeight.classification_type == int(classification),
            )
            .first()
        )

    def _rows(self, property_id: Optional[int]) -> list[FeatureWeight]:
        if property_id is None:
            return []
        return self.db.query(FeatureWeight).filter(FeatureWeight.property_id == property_id).all()

    def table(self, property_id: Optional[int]) -> WeightTable:
        return WeightTable.from_rows(self._rows(property_id))

    def effective_weight(self, feature: PropertyFeature, season: Optional[Season] = None) -> float:
        if feature.weight is not None:
            return float(feature.weight)
        row = self._row(feature.property_id, feature.classification_type)
        if row is not None:
            return layers_from_row(row).resolve(season)
        return system_default_weight(feature.classification_type)

    def all_effective_weights(self, property_id: int, season: Optional[Season] = None) -> dict[int, float]:
        """Feature id -> effective weight for every feature on the property."""
        table = self.table(property_id)
        features = self.db.query(PropertyFeature).filter(PropertyFeature.property_id == property_id).all()
        weights = {f.id: table.weight_for_feature(f, season) for f in features}
        logger.debug("weights_resolved", property_id=property_id, season=getattr(season, "name", None), count=len(weights))
        return weights

    # --- materialization ----------------------------------------------

    def materialize(self, property_id: int) -> int:
        """Insert a default row for each classification the property lacks. Returns rows added."""
        existing = {r.classification_type for r in self._rows(property_id)}
        now = datetime.utcnow()
        added = 0
        for classification in materializable_types():
            if int(classification) in existing:
                continue
            self.db.add(
                FeatureWeight(
                    property_id=property_id,
                    classification_type=int(classification),
                    default_weight=system_default_weight(classification),
                    user_weight=None,
                    seasonal_weights=None,
                    is_custom=False,
                    updated_at=now,
                )
            )
            added += 1
        if added:
            self.db.commit()
            logger.info("feature_weights_materialized", property_id=property_id, added=added)
        return added

    def materialize_all(self) -> int:
        total = 0
        for (property_id,) in self.db.query(Property.id).order_by(Property.id).all():
            total += self.materialize(property_id)
        return total

    # --- mutations ----------------------------------------------------

    def _writable(self, classification) -> ClassificationType:
        try:
            c = parse_classification(classification)
        except ValueError as exc:
            raise InvalidWeightError(str(exc), field="classification", subject=classification) from exc
        if c is ClassificationType.Other:
            raise InvalidWeightError("classification Other carries no weight row", field="classification", subject=c)
        return c

    def _row_for_write(self, property_id: int, classification: ClassificationType) -> FeatureWeight:
        row = self._row(property_id, classification)
        if row is None:
            row = FeatureWeight(
                property_id=property_id,
                classification_type=int(classification),
                default_weight=system_default_weight(classification),
                user_weight=None,
                seasonal_weights=None,
                is_custom=False,
                updated_at=datetime.utcnow(),
            )
            self.db.add(row)
        return row

    def _apply(self, row: FeatureWeight, changes: Mapping[str, Any]) -> None:
        if "default_weight" in changes:
            row.default_weight = changes["default_weight"]
        if "user_weight" in changes:
            row.user_weight = changes["user_weight"]
        if "seasonal_weights" in changes:
            row.seasonal_weights = _seasonal_to_row(changes["seasonal_weights"])
        row.is_custom = layers_from_row(row).is_custom
        row.updated_at = datetime.utcnow()

    def _write(self, property_id: int, classification: ClassificationType, **proposed) -> FeatureWeight:
        row = self._row_for_write(property_id, classification)
        if row.id is None:
            current = WeightLayers(default_weight=row.default_weight)
        else:
            current = layers_from_row(row)
        changes = diff_layers(current, **proposed)
        if not changes and row.id is not None:
            return row
        self._apply(row, changes)
        self.db.commit()
        self.db.refresh(row)
        logger.info(
            "feature_weight_updated",
            property_id=property_id,
            classification=classification.name,
            fields=sorted(changes),
            is_custom=row.is_custom,
        )
        return row

    def update_user_weight(
        self, property_id: int, classification: ClassificationType, value: Optional[float]
    ) -> FeatureWeight:
        classification = self._writable(classification)
        if value is not None:
            value = validate_weight(value, "user_weight", classification)
        return self._write(property_id, classification, user_weight=value)

    def update_seasonal_weights(
        self, property_id: int, classification: ClassificationType, mapping: Optional[Mapping[Any, float]]
    ) -> FeatureWeight:
        classification = self._writable(classification)
        seasonal: dict[Season, float] = {}
        for key, value in (mapping or {}).items():
            try:
                season = parse_season(key)
            except ValueError as exc:
                raise InvalidWeightError(str(exc), field="seasonal_weights", subject=classification) from exc
            seasonal[season] = validate_weight(value, f"seasonal_weights.{season.name}", classification)
        return self._write(property_id, classification, seasonal_weights=seasonal)

    def reset_to_default(self, property_id: int, classification: ClassificationType) -> FeatureWeight:
        classification = self._writable(classification)
        return self._write(property_id, classification, user_weight=None, seasonal_weights={})

    def update_default_weights(self, property_id: int, mapping: Mapping[Any, float]) -> list[FeatureWeight]:
        """Replace row default weights; every value is validated before the first write."""
        validated: list[tuple[ClassificationType, float]] = []
        for key, value in mapping.items():
            classification = self._writable(key)
            validated.append((classification, validate_weight(value, "default_weight", classification)))
        return [self._write(property_id, c, default_weight=v) for c, v in validated]

    # --- listings -----------------------------------------------------

    def list_for_property(self, property_id: int, season: Optional[Season] = None) -> list[FeatureWeightOut]:
        rows = {ClassificationType(r.classification_type): r for r in self._rows(property_id)}
        counts = dict(
            self.db.query(PropertyFeature.classification_type, func.count(PropertyFeature.id))
            .filter(PropertyFeature.property_id == property_id)
            .group_by(PropertyFeature.classification_type)
            .all()
        )
        override_counts = dict(
            self.db.query(PropertyFeature.classification_type, func.count(PropertyFeature.id))
            .filter(PropertyFeature.property_id == property_id, PropertyFeature.weight.isnot(None))
            .group_by(PropertyFeature.classification_type)
            .all()
        )

        out: list[FeatureWeightOut] = []
        for classification, row in rows.items():
            meta = CLASSIFICATIONS[classification]
            layers = layers_from_row(row)
            out.append(
                FeatureWeightOut(
                    classification_type=int(classification),
                    classification=classification.name,
                    display_name=meta.display_name,
                    category=meta.category.value,
                    default_weight=layers.default_weight,
                    user_weight=layers.user_weight,
                    seasonal_weights={s.name: w for s, w in sorted(layers.seasonal_weights.items())},
                    effective_weight=layers.resolve(season),
                    is_custom=row.is_custom,
                    updated_at=row.updated_at,
                    feature_count=counts.get(int(classification), 0),
                    feature_override_count=override_counts.get(int(classification), 0),
                )
            )
        out.sort(key=lambda w: (category_rank(CLASSIFICATIONS[ClassificationType(w.classification_type)].category), w.display_name))
        return out
