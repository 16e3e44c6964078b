"""Food catalog provider for exchange systems."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from exchange_planner.domain.catalog import (
    CatalogSnapshot,
    ClassificationRule,
    ExchangeGroupRow,
    ExchangeSubgroupRow,
    FoodItem,
    FoodOverride,
    FoodTag,
    GroupCode,
    GroupMeta,
    RawFoodRow,
    SubgroupCode,
    SubgroupMeta,
)
from exchange_planner.domain.nutrition import CanonicalNutritionValue
from exchange_planner.services.cache import Cache
from exchange_planner.services.classification import (
    classify_protein_subgroup,
    classify_subgroup_code,
    is_likely_legume,
)
from exchange_planner.services.group_codes import infer_group_code, infer_subgroup_code
from exchange_planner.services.nutrition_values import NutritionValueResolver

_logger = logging.getLogger(__name__)


class CatalogRepository(Protocol):
    """Read access to the raw exchange catalog."""

    def list_foods(self, system_id: str) -> list[RawFoodRow]:
        """Return food rows whose exchange group belongs to the system."""

    def list_groups(self, system_id: str) -> list[ExchangeGroupRow]:
        """Return the system's exchange groups."""

    def list_subgroups(self, system_id: str) -> list[ExchangeSubgroupRow]:
        """Return the system's exchange subgroups."""

    def list_overrides(self, system_id: str, *, active: bool) -> list[FoodOverride]:
        """Return active or inactive food exchange overrides."""

    def list_classification_rules(self, system_id: str) -> list[ClassificationRule]:
        """Return active protein subgroup classification rules."""

    def list_tags(self) -> dict[int, tuple[FoodTag, ...]]:
        """Return profile tags keyed by food id."""

    def list_geo_weights(
        self, country_code: str, state_code: str | None
    ) -> dict[int, float]:
        """Return the highest geographic weight per food for a region."""


def cache_key(
    system_id: str, country_code: str | None = None, state_code: str | None = None
) -> str:
    """Return the cache key for a catalog request."""
    return f"catalog:{system_id}:{country_code or '_'}:{state_code or '_'}"


def _positive_qty(value: float | None) -> float | None:
    if value is None or value <= 0:
        return None
    return float(value)


def _non_empty(value: str | None) -> str | None:
    trimmed = (value or "").strip()
    return trimmed or None


@dataclass
class CatalogService:
    """Builds resolved catalog snapshots, cached per system and region."""

    repository: CatalogRepository
    nutrition_resolver: NutritionValueResolver
    cache: Cache
    classify_subgroups_for: frozenset[str] = field(
        default_factory=lambda: frozenset({"mx_smae"})
    )

    def load(
        self,
        system_id: str,
        country_code: str | None = None,
        state_code: str | None = None,
    ) -> CatalogSnapshot:
        """Return the catalog for a system, using the cache when fresh."""
        key = cache_key(system_id, country_code, state_code)
        cached = self.cache.get(key)
        if isinstance(cached, CatalogSnapshot):
            return cached

        snapshot = self._fetch(system_id, country_code, state_code)
        self.cache.put(key, snapshot)
        _logger.info(
            "Catalog loaded: system=%s country=%s state=%s foods=%s",
            system_id,
            country_code,
            state_code,
            len(snapshot.foods),
        )
        return snapshot

    def _fetch(
        self, system_id: str, country_code: str | None, state_code: str | None
    ) -> CatalogSnapshot:
        canonical_values = self.nutrition_resolver.resolve_for_system(system_id)
        groups_by_id = {
            row.id: GroupMeta(id=row.id, name=row.name, group_code=infer_group_code(row.name))
            for row in self.repository.list_groups(system_id)
        }
        subgroups_by_id = _build_subgroups(self.repository.list_subgroups(system_id))
        subgroup_id_by_code: dict[SubgroupCode, int] = {}
        for subgroup in subgroups_by_id.values():
            if subgroup.subgroup_code is not None:
                subgroup_id_by_code.setdefault(subgroup.subgroup_code, subgroup.id)

        overrides = {
            row.food_id: row
            for row in self.repository.list_overrides(system_id, active=True)
        }
        excluded = {
            row.food_id
            for row in self.repository.list_overrides(system_id, active=False)
        }
        classify = system_id in self.classify_subgroups_for
        rules = self.repository.list_classification_rules(system_id) if classify else []
        tags_by_food = self.repository.list_tags()
        geo_weights = (
            self.repository.list_geo_weights(country_code, state_code)
            if country_code
            else {}
        )

        foods: list[FoodItem] = []
        for row in self.repository.list_foods(system_id):
            if row.id in excluded:
                continue
            canonical = canonical_values.get(row.id)
            if canonical is None:
                continue
            override = overrides.get(row.id)

            group_id = (override.group_id if override else None) or row.exchange_group_id
            subgroup_id = override.subgroup_id if override else None
            if subgroup_id is None and classify:
                subgroup_id = _classify(row, canonical, rules, subgroup_id_by_code)
            if subgroup_id is not None and subgroup_id in subgroups_by_id:
                group_id = subgroups_by_id[subgroup_id].parent_group_id
            if not group_id:
                continue

            group = groups_by_id.get(group_id)
            subgroup = subgroups_by_id.get(subgroup_id) if subgroup_id else None
            foods.append(
                FoodItem(
                    id=row.id,
                    name=row.name,
                    group_id=group_id,
                    group_code=group.group_code
                    if group
                    else infer_group_code(row.exchange_group_name),
                    carbs_g=canonical.carbs_g,
                    protein_g=canonical.protein_g,
                    fat_g=canonical.fat_g,
                    calories_kcal=canonical.calories_kcal,
                    serving_qty=_positive_qty(
                        override.equivalent_portion_qty if override else None
                    )
                    or _positive_qty(row.base_serving_size)
                    or _positive_qty(canonical.serving_qty)
                    or 100.0,
                    serving_unit=_non_empty(override.portion_unit if override else None)
                    or _non_empty(row.base_unit)
                    or _non_empty(canonical.serving_unit)
                    or "g",
                    source_system_id=system_id,
                    nutrition_value_id=canonical.nutrition_value_id,
                    data_source_id=canonical.data_source_id,
                    subgroup_id=subgroup_id,
                    subgroup_code=subgroup.subgroup_code if subgroup else None,
                    geo_weight=geo_weights.get(row.id),
                    tags=tags_by_food.get(row.id, ()),
                )
            )

        return CatalogSnapshot(
            foods=tuple(foods),
            groups_by_id=groups_by_id,
            subgroups_by_id=subgroups_by_id,
        )


def _build_subgroups(rows: list[ExchangeSubgroupRow]) -> dict[int, SubgroupMeta]:
    subgroups: dict[int, SubgroupMeta] = {}
    for row in rows:
        parent_code = infer_group_code(row.parent_group_name)
        subgroups[row.id] = SubgroupMeta(
            id=row.id,
            parent_group_id=row.parent_group_id,
            name=row.name,
            parent_group_code=parent_code,
            subgroup_code=infer_subgroup_code(row.name, parent_code),
        )
    return subgroups


def _classify(
    row: RawFoodRow,
    canonical: CanonicalNutritionValue,
    rules: list[ClassificationRule],
    subgroup_id_by_code: dict[SubgroupCode, int],
) -> int | None:
    group_code = infer_group_code(row.exchange_group_name or row.category_name)
    if group_code == GroupCode.PROTEIN:
        if is_likely_legume(
            row.name,
            row.category_name,
            canonical.protein_g,
            canonical.carbs_g,
            canonical.fat_g,
        ):
            return None
        return classify_protein_subgroup(canonical.protein_g, canonical.fat_g, rules)
    code = classify_subgroup_code(
        group_code, canonical.protein_g, canonical.carbs_g, canonical.fat_g
    )
    if code is None:
        return None
    return subgroup_id_by_code.get(code)
