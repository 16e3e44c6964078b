"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field

import pytest

from exchange_planner.adapters import supabase_paging
from exchange_planner.adapters.supabase_bucket_profile_store import (
    SupabaseBucketProfileStore,
)
from exchange_planner.adapters.supabase_catalog_repository import (
    SupabaseCatalogRepository,
)
from exchange_planner.adapters.supabase_nutrition_value_repository import (
    SupabaseNutritionValueRepository,
)
from exchange_planner.adapters.supabase_policy_repository import (
    SupabasePolicyRepository,
)
from exchange_planner.domain.profiles import BucketType
from tests.conftest import make_profile


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "upsert": [], "delete": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_on_conflict: str | None = None
    actions: list[str] = field(default_factory=list)
    ranges: list[tuple[int, int]] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def upsert(  # type: ignore[no-untyped-def]
        self, payload, on_conflict: str = ""
    ) -> "FakeTable":
        self._action = "upsert"
        self.last_payload = payload
        self.last_on_conflict = on_conflict
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def in_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def is_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def range(self, start: int, end: int) -> "FakeTable":
        self.ranges.append((start, end))
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        self.actions.append(action)
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _value_row(value_id: int, food_id: int) -> dict[str, object]:
    return {
        "id": value_id,
        "food_id": food_id,
        "data_source_id": 1,
        "state": "standard",
        "calories_kcal": 60,
        "protein_g": 0,
        "carbs_g": 15,
        "fat_g": 0,
        "base_serving_size": 100,
        "base_unit": "g",
    }


def test_catalog_repository_joins_group_and_category_names() -> None:
    client = FakeSupabaseClient()
    groups = [{"id": 3, "name": "Cereales"}, {"id": 5, "name": "Origen animal"}]
    client.table("exchange_groups").queue("select", groups)
    client.table("foods").queue(
        "select",
        [
            {
                "id": 1,
                "name": "Tortilla",
                "exchange_group_id": 3,
                "category_id": 9,
                "base_serving_size": 30,
                "base_unit": " g ",
            },
            {
                "id": 2,
                "name": "Pollo",
                "exchange_group_id": 5,
                "category_id": None,
                "base_serving_size": None,
                "base_unit": "",
            },
        ],
    )
    client.table("food_categories").queue("select", [{"id": 9, "name": "Tortillas"}])

    foods = SupabaseCatalogRepository(client).list_foods("mx_smae")

    assert foods[0].exchange_group_name == "Cereales"
    assert foods[0].category_name == "Tortillas"
    assert foods[0].base_serving_size == 30.0
    assert foods[0].base_unit == "g"
    assert foods[1].exchange_group_name == "Origen animal"
    assert foods[1].category_name is None
    assert foods[1].base_unit is None
    assert ("exchange_group_id", [3, 5]) in client.table("foods").last_filters


def test_catalog_repository_reads_foods_past_one_page(monkeypatch) -> None:
    monkeypatch.setattr(supabase_paging, "PAGE_SIZE", 2)
    client = FakeSupabaseClient()
    client.table("exchange_groups").queue("select", [{"id": 2, "name": "Frutas"}])
    foods = client.table("foods")
    foods.queue(
        "select",
        [
            {"id": 1, "name": "Manzana", "exchange_group_id": 2},
            {"id": 2, "name": "Pera", "exchange_group_id": 2},
        ],
    )
    foods.queue("select", [{"id": 3, "name": "Mango", "exchange_group_id": 2}])

    rows = SupabaseCatalogRepository(client).list_foods("mx_smae")

    assert [row.name for row in rows] == ["Manzana", "Pera", "Mango"]
    assert foods.ranges == [(0, 1), (2, 3)]


def test_catalog_repository_without_groups_skips_food_query() -> None:
    client = FakeSupabaseClient()

    assert SupabaseCatalogRepository(client).list_foods("us_usda") == []
    assert "foods" not in client.tables


def test_catalog_repository_subgroups_carry_parent_names() -> None:
    client = FakeSupabaseClient()
    client.table("exchange_groups").queue("select", [{"id": 6, "name": "Leche"}])
    client.table("exchange_subgroups").queue(
        "select", [{"id": 61, "exchange_group_id": 6, "name": "Leche descremada"}]
    )

    (subgroup,) = SupabaseCatalogRepository(client).list_subgroups("mx_smae")

    assert subgroup.parent_group_id == 6
    assert subgroup.parent_group_name == "Leche"


def test_catalog_repository_overrides_filter_by_active_flag() -> None:
    client = FakeSupabaseClient()
    client.table("food_exchange_overrides").queue(
        "select",
        [
            {
                "food_id": 4,
                "group_id": None,
                "subgroup_id": 61,
                "equivalent_portion_qty": "240",
                "portion_unit": "ml",
            }
        ],
    )

    (override,) = SupabaseCatalogRepository(client).list_overrides(
        "mx_smae", active=False
    )

    assert override.subgroup_id == 61
    assert override.equivalent_portion_qty == 240.0
    assert ("is_active", False) in client.table("food_exchange_overrides").last_filters


def test_catalog_repository_geo_weights_take_region_maximum() -> None:
    client = FakeSupabaseClient()
    client.table("food_geo_weights").queue(
        "select",
        [
            {"food_id": 1, "state_code": None, "weight": 0.4},
            {"food_id": 1, "state_code": "JAL", "weight": 0.9},
            {"food_id": 1, "state_code": "NLE", "weight": 1.5},
            {"food_id": 2, "state_code": "NLE", "weight": 0.7},
        ],
    )

    weights = SupabaseCatalogRepository(client).list_geo_weights("MX", "JAL")

    assert weights == {1: 0.9}


def test_catalog_repository_groups_tags_by_food() -> None:
    client = FakeSupabaseClient()
    client.table("food_profile_tags").queue(
        "select",
        [
            {"food_id": 1, "tag_type": "diet", "tag_value": "vegan", "weight": None},
            {"food_id": 1, "tag_type": "meal", "tag_value": "breakfast", "weight": 2},
        ],
    )

    tags = SupabaseCatalogRepository(client).list_tags()

    assert [tag.value for tag in tags[1]] == ["vegan", "breakfast"]
    assert tags[1][1].weight == 2.0


def test_nutrition_repository_parses_candidates() -> None:
    client = FakeSupabaseClient()
    client.table("exchange_groups").queue("select", [{"id": 2}])
    client.table("foods").queue("select", [{"id": 1}])
    client.table("food_nutrition_values").queue(
        "select",
        [
            {
                "id": 7,
                "food_id": 1,
                "data_source_id": None,
                "state": "standard",
                "calories_kcal": "64.5",
                "protein_g": 2,
                "carbs_g": 13,
                "fat_g": None,
                "base_serving_size": None,
                "base_unit": None,
            }
        ],
    )

    (candidate,) = SupabaseNutritionValueRepository(client).list_candidates("mx_smae")

    assert candidate.calories_kcal == 64.5
    assert candidate.fat_g is None
    assert candidate.data_source_id is None
    assert ("deleted_at", "null") in client.table("food_nutrition_values").last_filters
    assert ("food_id", [1]) in client.table("food_nutrition_values").last_filters
    assert ("exchange_group_id", [2]) in client.table("foods").last_filters


def test_nutrition_repository_without_system_foods_skips_value_query() -> None:
    client = FakeSupabaseClient()
    client.table("exchange_groups").queue("select", [{"id": 2}])

    assert SupabaseNutritionValueRepository(client).list_candidates("us_usda") == []
    assert "food_nutrition_values" not in client.tables


def test_nutrition_repository_reads_every_page(monkeypatch) -> None:
    monkeypatch.setattr(supabase_paging, "PAGE_SIZE", 2)
    client = FakeSupabaseClient()
    client.table("exchange_groups").queue("select", [{"id": 2}])
    foods = client.table("foods")
    foods.queue("select", [{"id": 1}, {"id": 2}])
    foods.queue("select", [{"id": 3}])
    values = client.table("food_nutrition_values")
    values.queue("select", [_value_row(10, 1), _value_row(11, 2)])
    values.queue("select", [_value_row(12, 3), _value_row(13, 3)])
    values.queue("select", [])

    candidates = SupabaseNutritionValueRepository(client).list_candidates("mx_smae")

    assert [candidate.id for candidate in candidates] == [10, 11, 12, 13]
    assert foods.ranges == [(0, 1), (2, 3)]
    assert values.ranges == [(0, 1), (2, 3), (4, 5)]


def test_nutrition_repository_prefers_configured_priorities() -> None:
    client = FakeSupabaseClient()
    client.table("exchange_source_priorities").queue(
        "select", [{"data_source_id": 3, "priority": 1}]
    )

    priorities = SupabaseNutritionValueRepository(client).list_source_priorities(
        "mx_smae"
    )

    assert priorities == {3: 1}
    assert "data_sources" not in client.tables


def test_nutrition_repository_derives_priorities_from_source_names() -> None:
    client = FakeSupabaseClient()
    client.table("data_sources").queue(
        "select",
        [{"id": 1, "name": "USDA FoodData"}, {"id": 2, "name": "SMAE"}],
    )

    priorities = SupabaseNutritionValueRepository(client).list_source_priorities(
        "mx_smae"
    )

    assert priorities == {1: 2, 2: 0}


def test_bucket_profile_store_upserts_rows() -> None:
    client = FakeSupabaseClient()
    table = client.table("exchange_bucket_profiles")
    table.queue("upsert", [{"bucket_id": 3}])
    rows = [
        make_profile(3, "Cereales", 15.0, 2.0, 0.5, 70),
        make_profile(
            31, "Cereales sin grasa", 15.0, 2.0, 0.0, 68,
            bucket_type=BucketType.SUBGROUP, parent_group_id=3,
        ),
    ]

    SupabaseBucketProfileStore(client).save("v1", "mx_smae", rows)

    assert table.last_on_conflict == "profile_version,system_id,bucket_type,bucket_id"
    assert table.last_payload[1] == {
        "profile_version": "v1",
        "system_id": "mx_smae",
        "bucket_type": "subgroup",
        "bucket_id": 31,
        "parent_group_id": 3,
        "cho_g": 15.0,
        "pro_g": 2.0,
        "fat_g": 0.0,
        "kcal": 68,
        "sample_size": 5,
    }


def test_bucket_profile_store_raises_when_upsert_returns_nothing() -> None:
    client = FakeSupabaseClient()
    rows = [make_profile(3, "Cereales", 15.0, 2.0, 0.5, 70)]

    with pytest.raises(RuntimeError):
        SupabaseBucketProfileStore(client).save("v1", "mx_smae", rows)


def test_bucket_profile_store_skips_empty_batches() -> None:
    client = FakeSupabaseClient()

    SupabaseBucketProfileStore(client).save("v1", "mx_smae", [])

    assert "exchange_bucket_profiles" not in client.tables


def test_bucket_profile_store_deletes_one_version() -> None:
    client = FakeSupabaseClient()

    SupabaseBucketProfileStore(client).delete_version("v1", "mx_smae")

    table = client.table("exchange_bucket_profiles")
    assert table.actions == ["delete"]
    assert table.last_filters == [("profile_version", "v1"), ("system_id", "mx_smae")]


def test_bucket_profile_store_latest_version() -> None:
    client = FakeSupabaseClient()
    store = SupabaseBucketProfileStore(client)
    client.table("exchange_bucket_profiles").queue(
        "select", [{"profile_version": "2026-10", "created_at": "2026-10-01T00:00:00"}]
    )

    assert store.latest_version("mx_smae") == "2026-10"
    assert store.latest_version("mx_smae") is None


def test_bucket_profile_store_load_attaches_names() -> None:
    client = FakeSupabaseClient()
    client.table("exchange_bucket_profiles").queue(
        "select",
        [
            {
                "profile_version": "v1",
                "system_id": "mx_smae",
                "bucket_type": "group",
                "bucket_id": 6,
                "parent_group_id": None,
                "cho_g": "12.00",
                "pro_g": "9.00",
                "fat_g": "2.00",
                "kcal": 95,
                "sample_size": 4,
            },
            {
                "profile_version": "v1",
                "system_id": "mx_smae",
                "bucket_type": "subgroup",
                "bucket_id": 61,
                "parent_group_id": 6,
                "cho_g": 12,
                "pro_g": 9,
                "fat_g": 0.5,
                "kcal": 86,
                "sample_size": 2,
            },
        ],
    )
    client.table("exchange_groups").queue("select", [{"id": 6, "name": "Leche"}])
    client.table("exchange_subgroups").queue(
        "select", [{"id": 61, "name": "Leche descremada"}]
    )

    group, subgroup = SupabaseBucketProfileStore(client).load("mx_smae", "v1")

    assert group.bucket_type == BucketType.GROUP
    assert group.bucket_name == "Leche"
    assert group.carbs_g == 12.0
    assert group.parent_group_name is None
    assert subgroup.bucket_name == "Leche descremada"
    assert subgroup.parent_group_name == "Leche"
    assert subgroup.calories == 86


def test_policy_repository_skips_rows_without_subgroup() -> None:
    client = FakeSupabaseClient()
    client.table("subgroup_selection_policies").queue(
        "select",
        [
            {
                "goal": "maintain",
                "diet_pattern": "any",
                "subgroup_id": 51,
                "target_share_pct": "30.00",
                "score_adjustment": "6.00",
            },
            {
                "goal": "maintain",
                "diet_pattern": "any",
                "subgroup_id": None,
                "target_share_pct": 100,
                "score_adjustment": 0,
            },
        ],
    )

    (policy,) = SupabasePolicyRepository(client).list_active_policies("mx_smae")

    assert policy.subgroup_id == 51
    assert policy.target_share_pct == 30.0
    assert policy.score_adjustment == 6.0
    assert policy.goal == "maintain"
