"""Supabase repository for food nutrition values."""

from dataclasses import dataclass

from supabase import Client

from exchange_planner.adapters.supabase_paging import chunked, fetch_all
from exchange_planner.domain.nutrition import NutritionValueCandidate
from exchange_planner.services.nutrition_values import (
    NutritionValueRepository,
    source_preference_score,
)


@dataclass
class SupabaseNutritionValueRepository(NutritionValueRepository):
    """Supabase implementation for nutrition value candidates."""

    client: Client

    def list_candidates(self, system_id: str) -> list[NutritionValueCandidate]:
        """Return the non-deleted nutrition values of the system's foods."""
        food_ids = self._system_food_ids(system_id)
        rows: list[dict[str, object]] = []
        for chunk in chunked(food_ids):
            rows.extend(
                fetch_all(
                    lambda chunk=chunk: (
                        self.client.table("food_nutrition_values")
                        .select(
                            "id, food_id, data_source_id, state, calories_kcal, "
                            "protein_g, carbs_g, fat_g, base_serving_size, base_unit"
                        )
                        .in_("food_id", chunk)
                        .is_("deleted_at", "null")
                        .order("id", desc=False)
                    )
                )
            )
        return [_parse_candidate(row) for row in rows]

    def list_source_priorities(self, system_id: str) -> dict[int, int]:
        """Return configured source ranks, or ranks derived from source names."""
        response = (
            self.client.table("exchange_source_priorities")
            .select("data_source_id, priority")
            .eq("system_id", system_id)
            .eq("is_active", True)
            .execute()
        )
        priorities = {
            int(row["data_source_id"]): int(row["priority"])
            for row in response.data or []
            if row.get("data_source_id") is not None and row.get("priority") is not None
        }
        if priorities:
            return priorities

        sources = self.client.table("data_sources").select("id, name").execute()
        return {
            int(row["id"]): source_preference_score(system_id, row.get("name"))
            for row in sources.data or []
        }

    def _system_food_ids(self, system_id: str) -> list[int]:
        groups = (
            self.client.table("exchange_groups")
            .select("id")
            .eq("system_id", system_id)
            .execute()
        )
        group_ids = [int(row["id"]) for row in groups.data or []]
        if not group_ids:
            return []
        foods = fetch_all(
            lambda: (
                self.client.table("foods")
                .select("id")
                .in_("exchange_group_id", group_ids)
                .order("id", desc=False)
            )
        )
        return [int(row["id"]) for row in foods]


def _maybe_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)


def _parse_candidate(row: dict[str, object]) -> NutritionValueCandidate:
    data_source_id = row.get("data_source_id")
    return NutritionValueCandidate(
        id=int(row["id"]),
        food_id=int(row["food_id"]),
        data_source_id=int(data_source_id) if data_source_id is not None else None,
        state=row.get("state") or None,
        calories_kcal=_maybe_float(row.get("calories_kcal")),
        protein_g=_maybe_float(row.get("protein_g")),
        carbs_g=_maybe_float(row.get("carbs_g")),
        fat_g=_maybe_float(row.get("fat_g")),
        serving_qty=_maybe_float(row.get("base_serving_size")),
        serving_unit=row.get("base_unit") or None,
    )
