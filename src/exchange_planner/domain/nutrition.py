"""Nutrition value domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NutritionValueCandidate:
    """Raw nutrition value record for a food, as stored by a data source."""

    id: int
    food_id: int
    data_source_id: int | None
    state: str | None
    calories_kcal: float | None
    protein_g: float | None
    carbs_g: float | None
    fat_g: float | None
    serving_qty: float | None = None
    serving_unit: str | None = None


@dataclass(frozen=True)
class CanonicalNutritionValue:
    """The single macro profile chosen for a food."""

    nutrition_value_id: int
    food_id: int
    data_source_id: int | None
    calories_kcal: float
    protein_g: float
    carbs_g: float
    fat_g: float
    serving_qty: float = 100.0
    serving_unit: str = "g"
