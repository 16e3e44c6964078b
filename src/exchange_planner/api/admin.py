"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from exchange_planner.api.models import RebuildRequest
from exchange_planner.domain.catalog import EXCHANGE_SYSTEM_IDS

if TYPE_CHECKING:
    from exchange_planner.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _require_known_system(system_id: str) -> None:
    if system_id not in EXCHANGE_SYSTEM_IDS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown exchange system {system_id}",
        )


@router.post("/bucket-profiles/rebuild", dependencies=[Depends(require_admin)])
def rebuild_bucket_profiles(payload: RebuildRequest, request: Request) -> dict[str, object]:
    """Rebuild a profile version for one system, or for all of them."""
    container: AppContainer = request.app.state.container
    system_ids = None
    if payload.system_id is not None:
        _require_known_system(payload.system_id)
        system_ids = [payload.system_id]
    results = container.bucket_profile_builder.rebuild_many(
        payload.profile_version, system_ids
    )
    return {
        "profile_version": payload.profile_version,
        "systems": [
            {"system_id": result.system_id, "rows": result.row_count}
            for result in results
        ],
        "total_rows": sum(result.row_count for result in results),
    }


@router.get("/bucket-profiles/{system_id}/latest", dependencies=[Depends(require_admin)])
def latest_bucket_profiles(system_id: str, request: Request) -> dict[str, object]:
    """Return the newest profile version of a system and its rows."""
    _require_known_system(system_id)
    container: AppContainer = request.app.state.container
    builder = container.bucket_profile_builder
    version = builder.latest_version(system_id)
    if version is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No bucket profiles for {system_id}",
        )
    return {
        "system_id": system_id,
        "profile_version": version,
        "profiles": [
            {
                "bucket_key": profile.bucket_key,
                "bucket_type": str(profile.bucket_type),
                "bucket_id": profile.bucket_id,
                "bucket_name": profile.bucket_name,
                "parent_group_id": profile.parent_group_id,
                "legacy_code": profile.legacy_code,
                "carbs_g": profile.carbs_g,
                "protein_g": profile.protein_g,
                "fat_g": profile.fat_g,
                "calories": profile.calories,
                "sample_size": profile.sample_size,
            }
            for profile in builder.load(system_id, version)
        ],
    }
