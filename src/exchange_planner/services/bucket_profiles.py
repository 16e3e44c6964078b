"""Versioned bucket profile aggregation.

A bucket profile is the average macro content of one exchange of a group or
subgroup, computed from every catalog food assigned to that bucket. Profiles
are written in full batches under a version label; plans record the version
they were computed against, so rebuilding a new version never changes an
existing plan.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from exchange_planner.domain.catalog import (
    EXCHANGE_SYSTEM_IDS,
    CatalogSnapshot,
    FoodItem,
    GroupCode,
)
from exchange_planner.domain.profiles import (
    BucketProfile,
    BucketType,
    RebuildResult,
    StoredBucketProfile,
)
from exchange_planner.errors import DataIntegrityError
from exchange_planner.services.group_codes import infer_group_code, infer_subgroup_code

_GRAMS = Decimal("0.01")
_WHOLE = Decimal("1")

_logger = logging.getLogger(__name__)


class CatalogProvider(Protocol):
    """Source of resolved catalog snapshots."""

    def load(
        self,
        system_id: str,
        country_code: str | None = None,
        state_code: str | None = None,
    ) -> CatalogSnapshot:
        """Return the resolved catalog for a system."""


class BucketProfileStore(Protocol):
    """Persistence interface for bucket profiles."""

    def save(
        self, profile_version: str, system_id: str, rows: list[BucketProfile]
    ) -> None:
        """Upsert rows keyed by version, system, bucket type and bucket id."""

    def delete_version(self, profile_version: str, system_id: str) -> None:
        """Delete every row of a version for a system."""

    def load(self, system_id: str, profile_version: str) -> list[StoredBucketProfile]:
        """Return stored rows joined with bucket and parent group names."""

    def latest_version(self, system_id: str) -> str | None:
        """Return the most recently written version for a system."""


@dataclass
class _Accumulator:
    parent_group_id: int | None
    count: int = 0
    carbs: Decimal = Decimal(0)
    protein: Decimal = Decimal(0)
    fat: Decimal = Decimal(0)
    calories: Decimal = Decimal(0)

    def add(self, food: FoodItem) -> None:
        self.count += 1
        self.carbs += Decimal(str(food.carbs_g))
        self.protein += Decimal(str(food.protein_g))
        self.fat += Decimal(str(food.fat_g))
        self.calories += Decimal(str(food.calories_kcal))


def _mean_grams(total: Decimal, count: int) -> float:
    return max(0.0, float((total / count).quantize(_GRAMS, rounding=ROUND_HALF_UP)))


def _mean_calories(total: Decimal, count: int) -> int:
    return max(0, int((total / count).quantize(_WHOLE, rounding=ROUND_HALF_UP)))


def _to_profile(  # noqa: PLR0913
    profile_version: str,
    system_id: str,
    bucket_type: BucketType,
    bucket_id: int,
    bucket_name: str,
    parent_group_id: int | None,
    parent_group_code: GroupCode | None,
    stats: _Accumulator,
) -> BucketProfile:
    if bucket_type == BucketType.SUBGROUP:
        legacy_code = infer_subgroup_code(bucket_name, parent_group_code)
    else:
        legacy_code = infer_group_code(bucket_name)
    return BucketProfile(
        profile_version=profile_version,
        system_id=system_id,
        bucket_type=bucket_type,
        bucket_id=bucket_id,
        parent_group_id=parent_group_id,
        carbs_g=_mean_grams(stats.carbs, stats.count),
        protein_g=_mean_grams(stats.protein, stats.count),
        fat_g=_mean_grams(stats.fat, stats.count),
        calories=_mean_calories(stats.calories, stats.count),
        sample_size=stats.count,
        bucket_name=bucket_name,
        legacy_code=str(legacy_code) if legacy_code else None,
    )


def aggregate_profiles(
    profile_version: str, system_id: str, catalog: CatalogSnapshot
) -> list[BucketProfile]:
    """Average the catalog's foods into group and subgroup profiles."""
    groups: dict[int, _Accumulator] = {}
    subgroups: dict[int, _Accumulator] = {}

    for food in catalog.foods:
        groups.setdefault(food.group_id, _Accumulator(parent_group_id=None)).add(food)
        if food.subgroup_id is None:
            continue
        stats = subgroups.setdefault(
            food.subgroup_id, _Accumulator(parent_group_id=food.group_id)
        )
        if stats.parent_group_id != food.group_id:
            raise DataIntegrityError(
                f"Subgroup {food.subgroup_id} has foods in groups "
                f"{stats.parent_group_id} and {food.group_id}"
            )
        stats.add(food)

    rows: list[BucketProfile] = []
    for group_id in sorted(groups):
        meta = catalog.groups_by_id.get(group_id)
        rows.append(
            _to_profile(
                profile_version,
                system_id,
                BucketType.GROUP,
                group_id,
                meta.name if meta else f"Grupo {group_id}",
                None,
                None,
                groups[group_id],
            )
        )

    for subgroup_id in sorted(subgroups):
        stats = subgroups[subgroup_id]
        meta = catalog.subgroups_by_id.get(subgroup_id)
        parent_group_id = meta.parent_group_id if meta else stats.parent_group_id
        if parent_group_id != stats.parent_group_id:
            raise DataIntegrityError(
                f"Subgroup {subgroup_id} declares parent group {parent_group_id} "
                f"but its foods belong to group {stats.parent_group_id}"
            )
        parent = catalog.groups_by_id.get(parent_group_id)
        rows.append(
            _to_profile(
                profile_version,
                system_id,
                BucketType.SUBGROUP,
                subgroup_id,
                meta.name if meta else f"Subgrupo {subgroup_id}",
                parent_group_id,
                parent.group_code if parent else None,
                stats,
            )
        )

    return rows


def _from_stored(row: StoredBucketProfile) -> BucketProfile:
    bucket_name = row.bucket_name or f"{row.bucket_type}:{row.bucket_id}"
    if row.bucket_type == BucketType.SUBGROUP:
        parent_code = (
            infer_group_code(row.parent_group_name) if row.parent_group_name else None
        )
        legacy_code = infer_subgroup_code(bucket_name, parent_code)
    else:
        legacy_code = infer_group_code(bucket_name)
    return BucketProfile(
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
        bucket_name=bucket_name,
        legacy_code=str(legacy_code) if legacy_code else None,
    )


@dataclass
class BucketProfileBuilder:
    """Builds, stores and reads versioned bucket profiles."""

    catalog: CatalogProvider
    store: BucketProfileStore

    def rebuild(self, profile_version: str, system_id: str) -> RebuildResult:
        """Recompute every profile of a system under a version label."""
        snapshot = self.catalog.load(system_id)
        rows = aggregate_profiles(profile_version, system_id, snapshot)
        self.store.delete_version(profile_version, system_id)
        self.store.save(profile_version, system_id, rows)
        _logger.info(
            "Bucket profiles rebuilt: system=%s version=%s rows=%s",
            system_id,
            profile_version,
            len(rows),
        )
        return RebuildResult(system_id=system_id, row_count=len(rows))

    def rebuild_many(
        self, profile_version: str, system_ids: Iterable[str] | None = None
    ) -> list[RebuildResult]:
        """Rebuild a version for several systems, all known systems by default."""
        selected = list(system_ids) if system_ids is not None else list(EXCHANGE_SYSTEM_IDS)
        return [self.rebuild(profile_version, system_id) for system_id in selected]

    def load(self, system_id: str, profile_version: str) -> list[BucketProfile]:
        """Return a version's profiles with codes derived from current rules."""
        return [_from_stored(row) for row in self.store.load(system_id, profile_version)]

    def latest_version(self, system_id: str) -> str | None:
        """Return the newest profile version for a system."""
        return self.store.latest_version(system_id)
