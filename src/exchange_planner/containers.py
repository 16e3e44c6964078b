"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

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
from exchange_planner.config import Settings, classified_systems
from exchange_planner.services.allocation import ExchangeAllocationEngine
from exchange_planner.services.bucket_profiles import BucketProfileBuilder
from exchange_planner.services.cache import TtlCache
from exchange_planner.services.catalog import CatalogService
from exchange_planner.services.nutrition_values import NutritionValueResolver
from exchange_planner.services.plans import PlanService
from exchange_planner.services.policies import SubgroupPolicyService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    catalog_service: CatalogService
    bucket_profile_builder: BucketProfileBuilder
    policy_service: SubgroupPolicyService
    plan_service: PlanService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    catalog_repository = SupabaseCatalogRepository(supabase_client)
    nutrition_repository = SupabaseNutritionValueRepository(supabase_client)
    profile_store = SupabaseBucketProfileStore(supabase_client)
    policy_repository = SupabasePolicyRepository(supabase_client)

    catalog_service = CatalogService(
        repository=catalog_repository,
        nutrition_resolver=NutritionValueResolver(nutrition_repository),
        cache=TtlCache(ttl_seconds=resolved_settings.catalog_cache_ttl_seconds),
        classify_subgroups_for=classified_systems(resolved_settings),
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
        settings=resolved_settings,
        catalog_service=catalog_service,
        bucket_profile_builder=bucket_profile_builder,
        policy_service=policy_service,
        plan_service=plan_service,
    )
