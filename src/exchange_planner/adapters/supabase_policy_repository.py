"""Supabase repository for subgroup selection policies."""

from dataclasses import dataclass

from supabase import Client

from exchange_planner.domain.plans import SubgroupPolicy
from exchange_planner.services.policies import SubgroupPolicyRepository


@dataclass
class SupabasePolicyRepository(SubgroupPolicyRepository):
    """Supabase implementation for subgroup policies."""

    client: Client

    def list_active_policies(self, system_id: str) -> list[SubgroupPolicy]:
        """Return active policies that target a subgroup."""
        response = (
            self.client.table("subgroup_selection_policies")
            .select("goal, diet_pattern, subgroup_id, target_share_pct, score_adjustment")
            .eq("system_id", system_id)
            .eq("is_active", True)
            .execute()
        )
        return [
            SubgroupPolicy(
                subgroup_id=int(row["subgroup_id"]),
                target_share_pct=float(row.get("target_share_pct") or 0.0),
                score_adjustment=float(row.get("score_adjustment") or 0.0),
                goal=row.get("goal"),
                diet_pattern=row.get("diet_pattern"),
            )
            for row in response.data or []
            if row.get("subgroup_id") is not None
        ]
