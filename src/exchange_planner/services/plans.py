"""Plan generation: bucket profiles, policies and the allocation engine."""

import logging
from dataclasses import dataclass, field

from exchange_planner.domain.catalog import GroupCode
from exchange_planner.domain.plans import EnergyTargets, ExchangePlan, PatientConstraints
from exchange_planner.domain.profiles import BucketType
from exchange_planner.errors import DataIntegrityError, MissingProfileWarning
from exchange_planner.services.allocation import (
    ExchangeAllocationEngine,
    family_code,
    partition_usable,
)
from exchange_planner.services.bucket_profiles import BucketProfileBuilder
from exchange_planner.services.policies import SubgroupPolicyService

_logger = logging.getLogger(__name__)


@dataclass
class PlanService:
    """Generates daily exchange plans from the latest profile version."""

    profiles: BucketProfileBuilder
    policies: SubgroupPolicyService
    engine: ExchangeAllocationEngine = field(default_factory=ExchangeAllocationEngine)

    def generate(
        self,
        system_id: str,
        targets: EnergyTargets,
        constraints: PatientConstraints,
    ) -> ExchangePlan:
        profile_version = self.profiles.latest_version(system_id)
        if profile_version is None:
            raise DataIntegrityError(f"No bucket profiles for system {system_id}")

        loaded = self.profiles.load(system_id, profile_version)
        if not loaded:
            raise DataIntegrityError(
                f"Bucket profile version {profile_version} for {system_id} is empty"
            )

        group_rows = [row for row in loaded if row.bucket_type == BucketType.GROUP]
        subgroup_rows = [row for row in loaded if row.bucket_type == BucketType.SUBGROUP]
        groups, group_warnings = partition_usable(group_rows, BucketType.GROUP)
        subgroups, subgroup_warnings = partition_usable(subgroup_rows, BucketType.SUBGROUP)
        if not groups:
            raise DataIntegrityError(
                f"No usable group profiles for {system_id} version {profile_version}"
            )
        if not any(family_code(group) == GroupCode.PROTEIN for group in groups):
            raise DataIntegrityError("no protein-group profile for this system/version")

        for warning in (*group_warnings, *subgroup_warnings):
            _logger.warning(
                "Profile skipped: system=%s version=%s %s",
                system_id,
                profile_version,
                warning,
            )

        group_plan = self.engine.build_group_plan(targets, groups, constraints)
        policies = self.policies.resolve(system_id, constraints, subgroups)
        split_warnings: list[MissingProfileWarning] = []
        subgroup_plan = self.engine.build_subgroup_plan(
            group_plan, subgroups, policies, constraints, warnings=split_warnings
        )
        warnings = (*group_warnings, *subgroup_warnings, *split_warnings)
        _logger.info(
            "Plan generated: system=%s version=%s groups=%s subgroups=%s",
            system_id,
            profile_version,
            len(group_plan),
            len(subgroup_plan),
        )
        return ExchangePlan(
            system_id=system_id,
            profile_version=profile_version,
            targets=targets,
            groups=tuple(group_plan),
            subgroups=tuple(subgroup_plan),
            warnings=warnings,
        )
