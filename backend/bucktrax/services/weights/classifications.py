# backend/bucktrax/services/weights/classifications.py
from __future__ import annotations

import math
from enum import Enum, IntEnum
from typing import NamedTuple

from bucktrax.errors import InvalidWeightError

SYSTEM_FALLBACK_WEIGHT = 0.5


class FeatureCategory(str, Enum):
    TOPOGRAPHICAL = "topographical"
    FOOD = "food"
    WATER = "water"
    BEDDING = "bedding"
    OTHER = "other"


_CATEGORY_ORDER = {c: i for i, c in enumerate(FeatureCategory)}


class ClassificationType(IntEnum):
    # Topographical
    Ridge = 1
    RidgePoint = 2
    RidgeSpur = 3
    Saddle = 4
    Bench = 5
    Draw = 6
    CreekCrossing = 7
    Ditch = 8
    Valley = 9
    Bluff = 10
    FieldEdge = 11
    InsideCorner = 12
    Peninsula = 13
    Island = 14
    PinchPointFunnel = 15
    TravelCorridor = 16
    Spur = 17
    Knob = 18
    # Food
    AgCropField = 31
    FoodPlot = 32
    MastTreePatch = 33
    BrowsePatch = 34
    PrairieForbPatch = 35
    # Water
    Creek = 51
    Pond = 52
    Lake = 53
    Spring = 54
    Waterhole = 55
    Trough = 56
    # Bedding & cover
    BeddingArea = 70
    ThickBrush = 71
    Clearcut = 72
    CRP = 73
    Swamp = 74
    CedarThicket = 75
    LeewardSlope = 76
    EdgeCover = 77
    IsolatedCover = 78
    ManMadeCover = 79

    Other = 99


class ClassificationInfo(NamedTuple):
    category: FeatureCategory
    default_weight: float
    display_name: str
    description: str


_T, _F, _W, _B = FeatureCategory.TOPOGRAPHICAL, FeatureCategory.FOOD, FeatureCategory.WATER, FeatureCategory.BEDDING
C = ClassificationType

CLASSIFICATIONS: dict[ClassificationType, ClassificationInfo] = {
    C.Ridge: ClassificationInfo(_T, 0.6, "Ridge", "High ground that directs deer movement"),
    C.RidgePoint: ClassificationInfo(_T, 0.7, "Ridge Point", "Point extending from a main ridge"),
    C.RidgeSpur: ClassificationInfo(_T, 0.6, "Ridge Spur", "Secondary ridge extending from main ridge"),
    C.Saddle: ClassificationInfo(_T, 0.8, "Saddle", "Low point between two ridges or hills"),
    C.Bench: ClassificationInfo(_T, 0.6, "Bench", "Flat area on a hillside"),
    C.Draw: ClassificationInfo(_T, 0.7, "Draw", "Small drainage or depression"),
    C.CreekCrossing: ClassificationInfo(_T, 0.8, "Creek Crossing", "Natural crossing point over water"),
    C.Ditch: ClassificationInfo(_T, 0.4, "Ditch", "Drainage ditch or channel"),
    C.Valley: ClassificationInfo(_T, 0.5, "Valley", "Low area between hills or ridges"),
    C.Bluff: ClassificationInfo(_T, 0.5, "Bluff", "Steep bank or cliff"),
    C.FieldEdge: ClassificationInfo(_T, 0.7, "Field Edge", "Edge of agricultural field"),
    C.InsideCorner: ClassificationInfo(_T, 0.8, "Inside Corner", "Inside corner of field or opening"),
    C.Peninsula: ClassificationInfo(_T, 0.6, "Peninsula", "Land extending into water or opening"),
    C.Island: ClassificationInfo(_T, 0.5, "Island", "Isolated high ground or timber"),
    C.PinchPointFunnel: ClassificationInfo(_T, 0.9, "Pinch Point/Funnel", "Natural funnels that concentrate deer movement"),
    C.TravelCorridor: ClassificationInfo(_T, 0.8, "Travel Corridor", "Paths deer use to move between areas"),
    C.Spur: ClassificationInfo(_T, 0.6, "Spur", "Ridge extending from main ridge"),
    C.Knob: ClassificationInfo(_T, 0.5, "Knob", "Small rounded hill or elevation"),
    C.AgCropField: ClassificationInfo(_F, 0.8, "Agricultural Crop Field", "Agricultural crops providing food source"),
    C.FoodPlot: ClassificationInfo(_F, 0.8, "Food Plot", "Planted food plots for wildlife"),
    C.MastTreePatch: ClassificationInfo(_F, 0.7, "Mast Tree Patch", "Hard or soft mast producing trees"),
    C.BrowsePatch: ClassificationInfo(_F, 0.6, "Browse Patch", "Areas with good browse vegetation"),
    C.PrairieForbPatch: ClassificationInfo(_F, 0.5, "Prairie Forb Patch", "Prairie forbs and wildflowers"),
    C.Creek: ClassificationInfo(_W, 0.6, "Creek", "Natural flowing water source"),
    C.Pond: ClassificationInfo(_W, 0.7, "Pond", "Small body of standing water"),
    C.Lake: ClassificationInfo(_W, 0.6, "Lake", "Larger body of standing water"),
    C.Spring: ClassificationInfo(_W, 0.7, "Spring", "Natural water source from ground"),
    C.Waterhole: ClassificationInfo(_W, 0.8, "Waterhole", "Small water collection area"),
    C.Trough: ClassificationInfo(_W, 0.6, "Trough", "Artificial water source"),
    C.BeddingArea: ClassificationInfo(_B, 0.9, "Bedding Area", "Areas where deer rest during the day"),
    C.ThickBrush: ClassificationInfo(_B, 0.7, "Thick Brush", "Dense brush providing cover"),
    C.Clearcut: ClassificationInfo(_B, 0.5, "Clearcut", "Recently harvested timber area"),
    C.CRP: ClassificationInfo(_B, 0.6, "CRP (Conservation Reserve Program)", "Conservation Reserve Program grassland"),
    C.Swamp: ClassificationInfo(_B, 0.6, "Swamp", "Wetland area providing cover"),
    C.CedarThicket: ClassificationInfo(_B, 0.7, "Cedar Thicket", "Dense cedar trees providing cover"),
    C.LeewardSlope: ClassificationInfo(_B, 0.6, "Leeward Slope", "Protected slope providing shelter"),
    C.EdgeCover: ClassificationInfo(_B, 0.7, "Edge Cover", "Cover along field or opening edges"),
    C.IsolatedCover: ClassificationInfo(_B, 0.6, "Isolated Cover", "Small isolated patches of cover"),
    C.ManMadeCover: ClassificationInfo(_B, 0.4, "Man-made Cover", "Artificial cover structures"),
    C.Other: ClassificationInfo(FeatureCategory.OTHER, SYSTEM_FALLBACK_WEIGHT, "Other", "Other important features on the property"),
}

# Features a deer passes through rather than stops at; candidates for route waypoints.
TRANSIT_TYPES = frozenset({
    C.Draw,
    C.CreekCrossing,
    C.FieldEdge,
    C.PinchPointFunnel,
    C.TravelCorridor,
})

del C


def parse_classification(value) -> ClassificationType:
    if isinstance(value, ClassificationType):
        return value
    if isinstance(value, int):
        return ClassificationType(value)
    text = str(value).strip()
    if text.isdigit():
        return ClassificationType(int(text))
    for ct in ClassificationType:
        if ct.name.lower() == text.lower():
            return ct
    raise ValueError(f"unknown classification type: {value!r}")


def info(classification: ClassificationType) -> ClassificationInfo:
    return CLASSIFICATIONS[classification]


def system_default_weight(classification) -> float:
    try:
        return CLASSIFICATIONS[ClassificationType(classification)].default_weight
    except (KeyError, ValueError):
        return SYSTEM_FALLBACK_WEIGHT


def category_of(classification: ClassificationType) -> FeatureCategory:
    return CLASSIFICATIONS[classification].category


def category_rank(category: FeatureCategory) -> int:
    return _CATEGORY_ORDER[category]


def is_transit_type(classification) -> bool:
    try:
        return ClassificationType(classification) in TRANSIT_TYPES
    except ValueError:
        return False


def materializable_types() -> list[ClassificationType]:
    """Every classification that gets a property-level weight row."""
    return [c for c in ClassificationType if c is not ClassificationType.Other]


def validate_weight(value, field: str, subject=None) -> float:
    """Return value as a float in [0, 1], or raise InvalidWeightError."""
    label = getattr(subject, "name", subject) or "weight"
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidWeightError(f"{field} for {label} must be a number", field=field, subject=subject)
    v = float(value)
    if math.isnan(v) or v < 0.0 or v > 1.0:
        raise InvalidWeightError(
            f"{field} for {label} is {value!r}, must be between 0 and 1",
            field=field,
            subject=subject,
        )
    return v
