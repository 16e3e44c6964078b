"""Supabase repository for the exchange food catalog."""

from dataclasses import dataclass

from supabase import Client

from exchange_planner.adapters.supabase_paging import fetch_all
from exchange_planner.domain.catalog import (
    ClassificationRule,
    ExchangeGroupRow,
    ExchangeSubgroupRow,
    FoodOverride,
    FoodTag,
    RawFoodRow,
)
from exchange_planner.services.catalog import CatalogRepository


@dataclass
class SupabaseCatalogRepository(CatalogRepository):
    """Supabase implementation for catalog reads."""

    client: Client

    def list_groups(self, system_id: str) -> list[ExchangeGroupRow]:
        """Return the system's exchange groups ordered by id."""
        response = (
            self.client.table("exchange_groups")
            .select("id, name")
            .eq("system_id", system_id)
            .order("id", desc=False)
            .execute()
        )
        return [
            ExchangeGroupRow(id=int(row["id"]), name=str(row.get("name") or ""))
            for row in response.data or []
        ]

    def list_subgroups(self, system_id: str) -> list[ExchangeSubgroupRow]:
        """Return the system's subgroups with their parent group names."""
        group_names = {group.id: group.name for group in self.list_groups(system_id)}
        if not group_names:
            return []
        response = (
            self.client.table("exchange_subgroups")
            .select("id, exchange_group_id, name")
            .in_("exchange_group_id", list(group_names))
            .order("id", desc=False)
            .execute()
        )
        subgroups = []
        for row in response.data or []:
            parent_group_id = int(row["exchange_group_id"])
            subgroups.append(
                ExchangeSubgroupRow(
                    id=int(row["id"]),
                    parent_group_id=parent_group_id,
                    name=str(row.get("name") or ""),
                    parent_group_name=group_names.get(parent_group_id, ""),
                )
            )
        return subgroups

    def list_foods(self, system_id: str) -> list[RawFoodRow]:
        """Return foods assigned to one of the system's groups."""
        group_names = {group.id: group.name for group in self.list_groups(system_id)}
        if not group_names:
            return []
        rows = fetch_all(
            lambda: (
                self.client.table("foods")
                .select(
                    "id, name, exchange_group_id, category_id, base_serving_size, base_unit"
                )
                .in_("exchange_group_id", list(group_names))
                .order("id", desc=False)
            )
        )
        category_ids = {row["category_id"] for row in rows if row.get("category_id")}
        category_names = self._category_names(category_ids)
        return [
            RawFoodRow(
                id=int(row["id"]),
                name=str(row.get("name") or ""),
                exchange_group_id=_optional_int(row.get("exchange_group_id")),
                exchange_group_name=group_names.get(
                    _optional_int(row.get("exchange_group_id"))
                ),
                category_name=category_names.get(_optional_int(row.get("category_id"))),
                base_serving_size=_optional_float(row.get("base_serving_size")),
                base_unit=_optional_str(row.get("base_unit")),
            )
            for row in rows
        ]

    def list_overrides(self, system_id: str, *, active: bool) -> list[FoodOverride]:
        """Return manual group and subgroup assignments."""
        response = (
            self.client.table("food_exchange_overrides")
            .select(
                "food_id, group_id, subgroup_id, equivalent_portion_qty, portion_unit"
            )
            .eq("system_id", system_id)
            .eq("is_active", active)
            .execute()
        )
        return [
            FoodOverride(
                food_id=int(row["food_id"]),
                group_id=_optional_int(row.get("group_id")),
                subgroup_id=_optional_int(row.get("subgroup_id")),
                equivalent_portion_qty=_optional_float(row.get("equivalent_portion_qty")),
                portion_unit=_optional_str(row.get("portion_unit")),
            )
            for row in response.data or []
        ]

    def list_classification_rules(self, system_id: str) -> list[ClassificationRule]:
        """Return active protein classification rules by priority."""
        response = (
            self.client.table("subgroup_classification_rules")
            .select("subgroup_id, min_fat_per_7g_pro, max_fat_per_7g_pro, priority")
            .eq("system_id", system_id)
            .eq("is_active", True)
            .order("priority", desc=False)
            .execute()
        )
        return [
            ClassificationRule(
                subgroup_id=int(row["subgroup_id"]),
                min_fat_per_7g_pro=float(row.get("min_fat_per_7g_pro") or 0.0),
                max_fat_per_7g_pro=_optional_float(row.get("max_fat_per_7g_pro")),
                priority=int(row.get("priority") or 0),
            )
            for row in response.data or []
        ]

    def list_tags(self) -> dict[int, tuple[FoodTag, ...]]:
        """Return profile tags grouped by food."""
        response = (
            self.client.table("food_profile_tags")
            .select("food_id, tag_type, tag_value, weight")
            .execute()
        )
        tags: dict[int, list[FoodTag]] = {}
        for row in response.data or []:
            tags.setdefault(int(row["food_id"]), []).append(
                FoodTag(
                    type=str(row.get("tag_type") or ""),
                    value=str(row.get("tag_value") or ""),
                    weight=_optional_float(row.get("weight")),
                )
            )
        return {food_id: tuple(items) for food_id, items in tags.items()}

    def list_geo_weights(
        self, country_code: str, state_code: str | None
    ) -> dict[int, float]:
        """Return the highest weight per food among rows matching the region."""
        response = (
            self.client.table("food_geo_weights")
            .select("food_id, state_code, weight")
            .eq("country_code", country_code)
            .execute()
        )
        weights: dict[int, float] = {}
        for row in response.data or []:
            row_state = row.get("state_code")
            if state_code is not None and row_state is not None and row_state != state_code:
                continue
            weight = _optional_float(row.get("weight"))
            if weight is None:
                continue
            food_id = int(row["food_id"])
            weights[food_id] = max(weight, weights.get(food_id, weight))
        return weights

    def _category_names(self, category_ids: set[object]) -> dict[int, str]:
        if not category_ids:
            return {}
        response = (
            self.client.table("food_categories")
            .select("id, name")
            .in_("id", sorted(int(value) for value in category_ids))
            .execute()
        )
        return {int(row["id"]): str(row.get("name") or "") for row in response.data or []}


def _optional_int(value: object) -> int | None:
    if value is None:
        return None
    return int(value)


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    trimmed = str(value).strip()
    return trimmed or None
