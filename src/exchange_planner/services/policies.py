"""Subgroup share policies per goal and diet pattern."""

import logging
from dataclasses import dataclass
from typing import Protocol

from exchange_planner.domain.catalog import SubgroupCode
from exchange_planner.domain.plans import (
    ANY_DIET_PATTERN,
    Goal,
    PatientConstraints,
    SubgroupPolicy,
)
from exchange_planner.domain.profiles import BucketProfile, BucketType

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DefaultPolicy:
    """Built-in policy addressed by subgroup code instead of id."""

    goal: Goal
    subgroup_code: SubgroupCode
    target_share_pct: float
    score_adjustment: float


def _defaults(
    goal: Goal, rows: list[tuple[SubgroupCode, float, float]]
) -> tuple[DefaultPolicy, ...]:
    return tuple(
        DefaultPolicy(goal, code, share, adjustment) for code, share, adjustment in rows
    )


DEFAULT_POLICIES: dict[str, tuple[DefaultPolicy, ...]] = {
    "mx_smae": (
        _defaults(
            Goal.LOSE_FAT,
            [
                (SubgroupCode.AOA_MUY_BAJO_GRASA, 50, 12),
                (SubgroupCode.AOA_BAJO_GRASA, 35, 8),
                (SubgroupCode.AOA_MODERADO_GRASA, 12, -6),
                (SubgroupCode.AOA_ALTO_GRASA, 3, -12),
                (SubgroupCode.CEREAL_SIN_GRASA, 85, 10),
                (SubgroupCode.CEREAL_CON_GRASA, 15, -8),
                (SubgroupCode.LECHE_DESCREMADA, 100, 10),
                (SubgroupCode.LECHE_SEMIDESCREMADA, 0, -4),
                (SubgroupCode.LECHE_ENTERA, 0, -8),
                (SubgroupCode.LECHE_CON_AZUCAR, 0, -12),
                (SubgroupCode.AZUCAR_SIN_GRASA, 0, -8),
                (SubgroupCode.AZUCAR_CON_GRASA, 0, -12),
                (SubgroupCode.GRASA_SIN_PROTEINA, 100, 6),
                (SubgroupCode.GRASA_CON_PROTEINA, 0, -4),
            ],
        )
        + _defaults(
            Goal.MAINTAIN,
            [
                (SubgroupCode.AOA_MUY_BAJO_GRASA, 30, 6),
                (SubgroupCode.AOA_BAJO_GRASA, 40, 8),
                (SubgroupCode.AOA_MODERADO_GRASA, 25, 2),
                (SubgroupCode.AOA_ALTO_GRASA, 5, -6),
                (SubgroupCode.CEREAL_SIN_GRASA, 70, 4),
                (SubgroupCode.CEREAL_CON_GRASA, 30, 0),
                (SubgroupCode.LECHE_DESCREMADA, 0, 2),
                (SubgroupCode.LECHE_SEMIDESCREMADA, 100, 6),
                (SubgroupCode.LECHE_ENTERA, 0, 0),
                (SubgroupCode.LECHE_CON_AZUCAR, 0, -6),
                (SubgroupCode.AZUCAR_SIN_GRASA, 100, 2),
                (SubgroupCode.AZUCAR_CON_GRASA, 0, -4),
                (SubgroupCode.GRASA_SIN_PROTEINA, 60, 2),
                (SubgroupCode.GRASA_CON_PROTEINA, 40, 2),
            ],
        )
        + _defaults(
            Goal.GAIN_MUSCLE,
            [
                (SubgroupCode.AOA_MUY_BAJO_GRASA, 20, 4),
                (SubgroupCode.AOA_BAJO_GRASA, 35, 8),
                (SubgroupCode.AOA_MODERADO_GRASA, 35, 6),
                (SubgroupCode.AOA_ALTO_GRASA, 10, -2),
                (SubgroupCode.CEREAL_SIN_GRASA, 60, 2),
                (SubgroupCode.CEREAL_CON_GRASA, 40, 2),
                (SubgroupCode.LECHE_DESCREMADA, 0, -2),
                (SubgroupCode.LECHE_SEMIDESCREMADA, 40, 4),
                (SubgroupCode.LECHE_ENTERA, 60, 6),
                (SubgroupCode.LECHE_CON_AZUCAR, 0, -2),
                (SubgroupCode.AZUCAR_SIN_GRASA, 70, 0),
                (SubgroupCode.AZUCAR_CON_GRASA, 30, 2),
                (SubgroupCode.GRASA_SIN_PROTEINA, 30, 0),
                (SubgroupCode.GRASA_CON_PROTEINA, 70, 4),
            ],
        )
    ),
}


class SubgroupPolicyRepository(Protocol):
    """Read access to stored subgroup policies."""

    def list_active_policies(self, system_id: str) -> list[SubgroupPolicy]:
        """Return every active policy of a system."""


def select_policies(
    policies: list[SubgroupPolicy], constraints: PatientConstraints
) -> list[SubgroupPolicy]:
    """Pick the policies for the goal, preferring an exact diet pattern."""
    for_goal = [policy for policy in policies if policy.goal == constraints.goal]
    exact = [
        policy for policy in for_goal if policy.diet_pattern == constraints.diet_pattern
    ]
    if exact:
        return exact
    return [policy for policy in for_goal if policy.diet_pattern == ANY_DIET_PATTERN]


def default_policies(
    system_id: str, subgroup_profiles: list[BucketProfile]
) -> list[SubgroupPolicy]:
    """Map the built-in policies of a system onto the loaded subgroup ids."""
    ids_by_code: dict[str, int] = {}
    for profile in sorted(subgroup_profiles, key=lambda p: p.bucket_id):
        if profile.bucket_type == BucketType.SUBGROUP and profile.legacy_code:
            ids_by_code.setdefault(profile.legacy_code, profile.bucket_id)

    policies = []
    for default in DEFAULT_POLICIES.get(system_id, ()):
        subgroup_id = ids_by_code.get(default.subgroup_code)
        if subgroup_id is None:
            continue
        policies.append(
            SubgroupPolicy(
                subgroup_id=subgroup_id,
                target_share_pct=default.target_share_pct,
                score_adjustment=default.score_adjustment,
                goal=default.goal,
                diet_pattern=ANY_DIET_PATTERN,
            )
        )
    return policies


@dataclass
class SubgroupPolicyService:
    """Resolves the subgroup policies that apply to one patient."""

    repository: SubgroupPolicyRepository

    def resolve(
        self,
        system_id: str,
        constraints: PatientConstraints,
        subgroup_profiles: list[BucketProfile],
    ) -> list[SubgroupPolicy]:
        """Return the patient's policies restricted to profiled subgroups."""
        stored = self.repository.list_active_policies(system_id)
        if not stored:
            stored = default_policies(system_id, subgroup_profiles)
            _logger.info(
                "No stored subgroup policies: system=%s defaults=%s",
                system_id,
                len(stored),
            )
        profiled = {
            profile.bucket_id
            for profile in subgroup_profiles
            if profile.bucket_type == BucketType.SUBGROUP
        }
        return [
            policy
            for policy in select_policies(stored, constraints)
            if policy.subgroup_id in profiled
        ]
