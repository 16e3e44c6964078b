"""Supabase storage for versioned bucket profiles."""

from dataclasses import dataclass

from supabase import Client

from exchange_planner.domain.profiles import (
    BucketProfile,
    BucketType,
    StoredBucketProfile,
)
from exchange_planner.services.bucket_profiles import BucketProfileStore

_TABLE = "exchange_bucket_profiles"


@dataclass
class SupabaseBucketProfileStore(BucketProfileStore):
    """Supabase implementation for bucket profile rows."""

    client: Client

    def save(
        self, profile_version: str, system_id: str, rows: list[BucketProfile]
    ) -> None:
        """Upsert a batch of profile rows."""
        if not rows:
            return
        payload = [
            {
                "profile_version": profile_version,
                "system_id": system_id,
                "bucket_type": str(row.bucket_type),
                "bucket_id": row.bucket_id,
                "parent_group_id": row.parent_group_id,
                "cho_g": row.carbs_g,
                "pro_g": row.protein_g,
                "fat_g": row.fat_g,
                "kcal": row.calories,
                "sample_size": row.sample_size,
            }
            for row in rows
        ]
        response = (
            self.client.table(_TABLE)
            .upsert(payload, on_conflict="profile_version,system_id,bucket_type,bucket_id")
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save bucket profiles")

    def delete_version(self, profile_version: str, system_id: str) -> None:
        """Delete a version's rows for a system."""
        self.client.table(_TABLE).delete().eq("profile_version", profile_version).eq(
            "system_id", system_id
        ).execute()

    def latest_version(self, system_id: str) -> str | None:
        """Return the version of the most recently created row."""
        response = (
            self.client.table(_TABLE)
            .select("profile_version, created_at")
            .eq("system_id", system_id)
            .order("created_at", desc=True)
            .order("profile_version", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return str(response.data[0]["profile_version"])

    def load(self, system_id: str, profile_version: str) -> list[StoredBucketProfile]:
        """Return a version's rows with group and subgroup names attached."""
        response = (
            self.client.table(_TABLE)
            .select(
                "profile_version, system_id, bucket_type, bucket_id, parent_group_id, "
                "cho_g, pro_g, fat_g, kcal, sample_size"
            )
            .eq("system_id", system_id)
            .eq("profile_version", profile_version)
            .order("bucket_type", desc=False)
            .order("bucket_id", desc=False)
            .execute()
        )
        rows = response.data or []
        group_ids = {
            int(row["bucket_id"]) for row in rows if row["bucket_type"] == BucketType.GROUP
        } | {int(row["parent_group_id"]) for row in rows if row.get("parent_group_id")}
        subgroup_ids = {
            int(row["bucket_id"])
            for row in rows
            if row["bucket_type"] == BucketType.SUBGROUP
        }
        group_names = self._names("exchange_groups", group_ids)
        subgroup_names = self._names("exchange_subgroups", subgroup_ids)
        return [_parse_row(row, group_names, subgroup_names) for row in rows]

    def _names(self, table: str, ids: set[int]) -> dict[int, str]:
        if not ids:
            return {}
        response = (
            self.client.table(table).select("id, name").in_("id", sorted(ids)).execute()
        )
        return {int(row["id"]): str(row["name"]) for row in response.data or []}


def _parse_row(
    row: dict[str, object],
    group_names: dict[int, str],
    subgroup_names: dict[int, str],
) -> StoredBucketProfile:
    bucket_type = BucketType(str(row["bucket_type"]))
    bucket_id = int(row["bucket_id"])
    parent_raw = row.get("parent_group_id")
    parent_group_id = int(parent_raw) if parent_raw is not None else None
    names = group_names if bucket_type == BucketType.GROUP else subgroup_names
    return StoredBucketProfile(
        profile_version=str(row["profile_version"]),
        system_id=str(row["system_id"]),
        bucket_type=bucket_type,
        bucket_id=bucket_id,
        parent_group_id=parent_group_id,
        carbs_g=float(row.get("cho_g") or 0.0),
        protein_g=float(row.get("pro_g") or 0.0),
        fat_g=float(row.get("fat_g") or 0.0),
        calories=int(row.get("kcal") or 0),
        sample_size=int(row.get("sample_size") or 0),
        bucket_name=names.get(bucket_id),
        parent_group_name=group_names.get(parent_group_id)
        if parent_group_id is not None
        else None,
    )
