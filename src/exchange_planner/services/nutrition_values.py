"""Canonical nutrition value selection."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from exchange_planner.domain.nutrition import (
    CanonicalNutritionValue,
    NutritionValueCandidate,
)
from exchange_planner.services.group_codes import normalize_label

DEFAULT_SOURCE_PRIORITY = 1000
STANDARD_STATE = "standard"

SOURCE_KEYWORDS_BY_SYSTEM: dict[str, tuple[str, ...]] = {
    "mx_smae": ("smae", "mex"),
    "us_usda": ("usda", "usa", "united states"),
    "es_exchange": ("spain", "espana"),
    "ar_exchange": ("argentina", "arg"),
}

_logger = logging.getLogger(__name__)


class NutritionValueRepository(Protocol):
    """Read access to raw nutrition value records."""

    def list_candidates(self, system_id: str) -> list[NutritionValueCandidate]:
        """Return every non-deleted nutrition value for the system's foods."""

    def list_source_priorities(self, system_id: str) -> dict[int, int]:
        """Return active data source ranks for the system (lower wins)."""


def is_utilizable(candidate: NutritionValueCandidate) -> bool:
    """Return whether a candidate carries all four macro fields."""
    return (
        candidate.calories_kcal is not None
        and candidate.protein_g is not None
        and candidate.carbs_g is not None
        and candidate.fat_g is not None
    )


def _rank_key(
    candidate: NutritionValueCandidate, source_priority: Mapping[int, int]
) -> tuple[int, int, int]:
    state_order = 0 if candidate.state == STANDARD_STATE else 1
    if candidate.data_source_id is None:
        priority = DEFAULT_SOURCE_PRIORITY
    else:
        priority = source_priority.get(
            candidate.data_source_id, DEFAULT_SOURCE_PRIORITY
        )
    return state_order, priority, -candidate.id


def select_canonical(
    candidates: list[NutritionValueCandidate],
    source_priority: Mapping[int, int],
) -> CanonicalNutritionValue | None:
    """Pick the canonical value: standard state, then source rank, then newest id."""
    utilizable = [candidate for candidate in candidates if is_utilizable(candidate)]
    if not utilizable:
        return None
    selected = min(utilizable, key=lambda item: _rank_key(item, source_priority))
    return CanonicalNutritionValue(
        nutrition_value_id=selected.id,
        food_id=selected.food_id,
        data_source_id=selected.data_source_id,
        calories_kcal=float(selected.calories_kcal),
        protein_g=float(selected.protein_g),
        carbs_g=float(selected.carbs_g),
        fat_g=float(selected.fat_g),
        serving_qty=float(selected.serving_qty)
        if selected.serving_qty is not None
        else 100.0,
        serving_unit=selected.serving_unit or "g",
    )


def source_preference_score(system_id: str, source_name: str | None) -> int:
    """Rank a data source by how well its name matches the system's keywords."""
    keywords = SOURCE_KEYWORDS_BY_SYSTEM.get(system_id, ())
    normalized = normalize_label(source_name)
    if not normalized:
        return len(keywords)
    for index, keyword in enumerate(keywords):
        if keyword in normalized:
            return index
    return len(keywords)


@dataclass
class NutritionValueResolver:
    """Resolves one canonical nutrition value per food for a system."""

    repository: NutritionValueRepository

    def resolve_for_system(self, system_id: str) -> dict[int, CanonicalNutritionValue]:
        """Return canonical values keyed by food id."""
        source_priority = self.repository.list_source_priorities(system_id)
        candidates_by_food: dict[int, list[NutritionValueCandidate]] = {}
        for candidate in self.repository.list_candidates(system_id):
            candidates_by_food.setdefault(candidate.food_id, []).append(candidate)

        resolved: dict[int, CanonicalNutritionValue] = {}
        for food_id, candidates in candidates_by_food.items():
            canonical = select_canonical(candidates, source_priority)
            if canonical is not None:
                resolved[food_id] = canonical
        skipped = len(candidates_by_food) - len(resolved)
        if skipped:
            _logger.info(
                "Nutrition values: system=%s foods without usable macros=%s",
                system_id,
                skipped,
            )
        return resolved
