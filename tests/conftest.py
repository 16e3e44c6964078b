"""Shared test fixtures."""

from dataclasses import dataclass, field

import pytest

from exchange_planner.config import Settings
from exchange_planner.containers import AppContainer
from exchange_planner.domain.catalog import (
    ClassificationRule,
    ExchangeGroupRow,
    ExchangeSubgroupRow,
    FoodOverride,
    FoodTag,
    RawFoodRow,
)
from exchange_planner.domain.nutrition import NutritionValueCandidate
from exchange_planner.domain.plans import SubgroupPolicy
from exchange_planner.domain.profiles import (
    BucketProfile,
    BucketType,
    StoredBucketProfile,
)
from exchange_planner.services.allocation import ExchangeAllocationEngine
from exchange_planner.services.bucket_profiles import (
    BucketProfileBuilder,
    BucketProfileStore,
)
from exchange_planner.services.cache import TtlCache
from exchange_planner.services.catalog import CatalogRepository, CatalogService
from exchange_planner.services.nutrition_values import (
    NutritionValueRepository,
    NutritionValueResolver,
)
from exchange_planner.services.plans import PlanService
from exchange_planner.services.policies import (
    SubgroupPolicyRepository,
    SubgroupPolicyService,
)

SMAE_GROUPS = {
    1: "Verduras",
    2: "Frutas",
    3: "Cereales y tubérculos",
    4: "Leguminosas",
    5: "Alimentos de origen animal",
    6: "Leche",
    7: "Aceites y grasas",
    8: "Azúcares",
}

SMAE_SUBGROUPS = {
    31: (3, "Cereales sin grasa"),
    32: (3, "Cereales con grasa"),
    51: (5, "Muy bajo aporte de grasa"),
    52: (5, "Bajo aporte de grasa"),
    61: (6, "Leche descremada"),
    62: (6, "Leche semidescremada"),
    71: (7, "Aceites y grasas sin proteína"),
    72: (7, "Aceites y grasas con proteína"),
    81: (8, "Azúcares sin grasa"),
    82: (8, "Azúcares con grasa"),
}

# (carbs, protein, fat, kcal) per exchange
SMAE_GROUP_MACROS = {
    1: (4.0, 2.0, 0.0, 25),
    2: (15.0, 0.0, 0.0, 60),
    3: (15.0, 2.0, 0.0, 70),
    4: (20.0, 8.0, 1.0, 120),
    5: (0.0, 7.0, 3.0, 55),
    6: (12.0, 9.0, 2.0, 95),
    7: (0.0, 0.0, 5.0, 45),
    8: (10.0, 0.0, 0.0, 40),
}


def stored_profile(  # noqa: PLR0913
    bucket_type: BucketType,
    bucket_id: int,
    carbs_g: float,
    protein_g: float,
    fat_g: float,
    calories: int,
    *,
    bucket_name: str | None = None,
    parent_group_id: int | None = None,
    parent_group_name: str | None = None,
    sample_size: int = 5,
    profile_version: str = "v1",
    system_id: str = "mx_smae",
) -> StoredBucketProfile:
    return StoredBucketProfile(
        profile_version=profile_version,
        system_id=system_id,
        bucket_type=bucket_type,
        bucket_id=bucket_id,
        parent_group_id=parent_group_id,
        carbs_g=carbs_g,
        protein_g=protein_g,
        fat_g=fat_g,
        calories=calories,
        sample_size=sample_size,
        bucket_name=bucket_name,
        parent_group_name=parent_group_name,
    )


def smae_stored_profiles(profile_version: str = "v1") -> list[StoredBucketProfile]:
    rows = [
        stored_profile(
            BucketType.GROUP,
            group_id,
            *SMAE_GROUP_MACROS[group_id],
            bucket_name=name,
            profile_version=profile_version,
        )
        for group_id, name in SMAE_GROUPS.items()
    ]
    for subgroup_id, (parent_id, name) in SMAE_SUBGROUPS.items():
        rows.append(
            stored_profile(
                BucketType.SUBGROUP,
                subgroup_id,
                *SMAE_GROUP_MACROS[parent_id],
                bucket_name=name,
                parent_group_id=parent_id,
                parent_group_name=SMAE_GROUPS[parent_id],
                profile_version=profile_version,
            )
        )
    return rows


def make_profile(  # noqa: PLR0913
    bucket_id: int,
    bucket_name: str,
    carbs_g: float,
    protein_g: float,
    fat_g: float,
    calories: int = 0,
    *,
    bucket_type: BucketType = BucketType.GROUP,
    parent_group_id: int | None = None,
    legacy_code: str | None = None,
    sample_size: int = 5,
) -> BucketProfile:
    return BucketProfile(
        profile_version="v1",
        system_id="mx_smae",
        bucket_type=bucket_type,
        bucket_id=bucket_id,
        parent_group_id=parent_group_id,
        carbs_g=carbs_g,
        protein_g=protein_g,
        fat_g=fat_g,
        calories=calories,
        sample_size=sample_size,
        bucket_name=bucket_name,
        legacy_code=legacy_code,
    )


@dataclass
class InMemoryCatalogRepository(CatalogRepository):
    """In-memory catalog repository for tests."""

    foods: list[RawFoodRow] = field(default_factory=list)
    groups: list[ExchangeGroupRow] = field(default_factory=list)
    subgroups: list[ExchangeSubgroupRow] = field(default_factory=list)
    overrides: list[FoodOverride] = field(default_factory=list)
    inactive_overrides: list[FoodOverride] = field(default_factory=list)
    rules: list[ClassificationRule] = field(default_factory=list)
    tags: dict[int, tuple[FoodTag, ...]] = field(default_factory=dict)
    geo_weights: dict[tuple[str, str | None], dict[int, float]] = field(
        default_factory=dict
    )
    food_calls: int = 0

    def list_foods(self, system_id: str) -> list[RawFoodRow]:
        self.food_calls += 1
        return list(self.foods)

    def list_groups(self, system_id: str) -> list[ExchangeGroupRow]:
        return list(self.groups)

    def list_subgroups(self, system_id: str) -> list[ExchangeSubgroupRow]:
        return list(self.subgroups)

    def list_overrides(self, system_id: str, *, active: bool) -> list[FoodOverride]:
        return list(self.overrides if active else self.inactive_overrides)

    def list_classification_rules(self, system_id: str) -> list[ClassificationRule]:
        return list(self.rules)

    def list_tags(self) -> dict[int, tuple[FoodTag, ...]]:
        return dict(self.tags)

    def list_geo_weights(
        self, country_code: str, state_code: str | None
    ) -> dict[int, float]:
        return dict(self.geo_weights.get((country_code, state_code), {}))


@dataclass
class InMemoryNutritionValueRepository(NutritionValueRepository):
    """In-memory nutrition value repository for tests."""

    candidates: list[NutritionValueCandidate] = field(default_factory=list)
    priorities: dict[int, int] = field(default_factory=dict)

    def list_candidates(self, system_id: str) -> list[NutritionValueCandidate]:
        return list(self.candidates)

    def list_source_priorities(self, system_id: str) -> dict[int, int]:
        return dict(self.priorities)


@dataclass
class InMemoryBucketProfileStore(BucketProfileStore):
    """In-memory profile store that records the order of writes."""

    rows: dict[tuple[str, str], list[StoredBucketProfile]] = field(default_factory=dict)
    group_names: dict[int, str] = field(default_factory=dict)
    versions: list[tuple[str, str]] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)

    def save(
        self, profile_version: str, system_id: str, rows: list[BucketProfile]
    ) -> None:
        self.calls.append("save")
        self.rows[(system_id, profile_version)] = [
            StoredBucketProfile(
                profile_version=row.profile_version,
                system_id=row.system_id,
                bucket_type=row.bucket_type,
                bucket_id=row.bucket_id,
                parent_group_id=row.parent_group_id,
                carbs_g=row.carbs_g,
                protein_g=row.protein_g,
                fat_g=row.fat_g,
                calories=row.calories,
                sample_size=row.sample_size,
                bucket_name=row.bucket_name,
                parent_group_name=self.group_names.get(row.parent_group_id)
                if row.parent_group_id is not None
                else None,
            )
            for row in rows
        ]
        self.versions.append((system_id, profile_version))

    def delete_version(self, profile_version: str, system_id: str) -> None:
        self.calls.append("delete")
        self.rows.pop((system_id, profile_version), None)

    def load(self, system_id: str, profile_version: str) -> list[StoredBucketProfile]:
        return list(self.rows.get((system_id, profile_version), []))

    def latest_version(self, system_id: str) -> str | None:
        for stored_system, version in reversed(self.versions):
            if stored_system == system_id:
                return version
        return None

    def seed(
        self, system_id: str, profile_version: str, rows: list[StoredBucketProfile]
    ) -> None:
        self.rows[(system_id, profile_version)] = list(rows)
        self.versions.append((system_id, profile_version))


@dataclass
class InMemoryPolicyRepository(SubgroupPolicyRepository):
    """In-memory subgroup policy repository for tests."""

    policies: list[SubgroupPolicy] = field(default_factory=list)

    def list_active_policies(self, system_id: str) -> list[SubgroupPolicy]:
        return list(self.policies)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        admin_token="admin-token",
    )


@pytest.fixture
def catalog_repository() -> InMemoryCatalogRepository:
    return InMemoryCatalogRepository()


@pytest.fixture
def nutrition_repository() -> InMemoryNutritionValueRepository:
    return InMemoryNutritionValueRepository()


@pytest.fixture
def profile_store() -> InMemoryBucketProfileStore:
    return InMemoryBucketProfileStore(group_names=dict(SMAE_GROUPS))


@pytest.fixture
def policy_repository() -> InMemoryPolicyRepository:
    return InMemoryPolicyRepository()


@pytest.fixture
def container(
    settings: Settings,
    catalog_repository: InMemoryCatalogRepository,
    nutrition_repository: InMemoryNutritionValueRepository,
    profile_store: InMemoryBucketProfileStore,
    policy_repository: InMemoryPolicyRepository,
) -> AppContainer:
    catalog_service = CatalogService(
        repository=catalog_repository,
        nutrition_resolver=NutritionValueResolver(nutrition_repository),
        cache=TtlCache(ttl_seconds=settings.catalog_cache_ttl_seconds),
    )
    bucket_profile_builder = BucketProfileBuilder(
        catalog=catalog_service, store=profile_store
    )
    policy_service = SubgroupPolicyService(policy_repository)
    plan_service = PlanService(
        profiles=bucket_profile_builder,
        policies=policy_service,
        engine=ExchangeAllocationEngine(),
    )
    return AppContainer(
        settings=settings,
        catalog_service=catalog_service,
        bucket_profile_builder=bucket_profile_builder,
        policy_service=policy_service,
        plan_service=plan_service,
    )
