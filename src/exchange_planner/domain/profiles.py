"""Bucket profile domain models."""

from dataclasses import dataclass
from enum import StrEnum


class BucketType(StrEnum):
    """Kind of allocation bucket."""

    GROUP = "group"
    SUBGROUP = "subgroup"


@dataclass(frozen=True)
class BucketProfile:
    """Average macro content of one exchange of a group or subgroup."""

    profile_version: str
    system_id: str
    bucket_type: BucketType
    bucket_id: int
    parent_group_id: int | None
    carbs_g: float
    protein_g: float
    fat_g: float
    calories: int
    sample_size: int
    bucket_name: str
    legacy_code: str | None = None

    @property
    def bucket_key(self) -> str:
        """Stable key for the bucket, e.g. ``group:3``."""
        return f"{self.bucket_type}:{self.bucket_id}"


@dataclass(frozen=True)
class StoredBucketProfile:
    """Bucket profile row as persisted, joined with catalog names."""

    profile_version: str
    system_id: str
    bucket_type: BucketType
    bucket_id: int
    parent_group_id: int | None
    carbs_g: float
    protein_g: float
    fat_g: float
    calories: int
    sample_size: int
    bucket_name: str | None
    parent_group_name: str | None


@dataclass(frozen=True)
class RebuildResult:
    """Outcome of rebuilding one profile version for a system."""

    system_id: str
    row_count: int
