"""Exchange allocation: macro targets to exchanges per group and subgroup."""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from exchange_planner.domain.catalog import GroupCode, SubgroupCode
from exchange_planner.domain.plans import (
    EnergyTargets,
    Goal,
    GroupPlanEntry,
    MacroTotals,
    PatientConstraints,
    SubgroupPlanEntry,
    SubgroupPolicy,
)
from exchange_planner.domain.profiles import BucketProfile, BucketType
from exchange_planner.errors import MissingProfileWarning
from exchange_planner.services.group_codes import infer_group_code, normalize_label

FAMILY_ORDER: dict[GroupCode, int] = {
    GroupCode.VEGETABLE: 1,
    GroupCode.FRUIT: 2,
    GroupCode.LEGUME: 3,
    GroupCode.PROTEIN: 4,
    GroupCode.MILK: 5,
    GroupCode.SUGAR: 6,
    GroupCode.FAT: 7,
    GroupCode.CARB: 8,
}

SWEET_PREFERENCE_KEYWORDS = (
    "nieve",
    "helado",
    "postre",
    "dulce",
    "chocolate",
    "cajeta",
    "miel",
    "caramelo",
    "azucar",
)

MAX_EXCHANGES = 30.0
# Fixed serving, not a floor: larger sugar estimates are cut back to it.
SUGAR_TREAT_EXCHANGES = 0.5
FAT_FLOOR_EXCHANGES = 1.0

_logger = logging.getLogger(__name__)


def round_half(value: float) -> float:
    """Round to the nearest half exchange, never below zero."""
    return max(0.0, math.floor(value * 2 + 0.5) / 2)


def has_sweet_preference_signal(likes: Iterable[str]) -> bool:
    """Return whether any liked food reads as a sweet snack."""
    normalized = [normalize_label(like) for like in likes]
    return any(
        keyword in like
        for like in normalized
        if like
        for keyword in SWEET_PREFERENCE_KEYWORDS
    )


def should_apply_sugar_floor(constraints: PatientConstraints) -> bool:
    """Sweet allowance for fat loss, only without diabetes."""
    if constraints.goal != Goal.LOSE_FAT or constraints.has_diabetes:
        return False
    return has_sweet_preference_signal(constraints.likes)


def should_apply_fat_floor(constraints: PatientConstraints) -> bool:
    """The fat floor is lifted for dyslipidemia."""
    return not constraints.has_dyslipidemia


def subgroup_share_overrides(constraints: PatientConstraints) -> dict[str, float]:
    """Return subgroup shares forced by health flags, keyed by subgroup code."""
    overrides: dict[str, float] = {}
    if constraints.goal == Goal.LOSE_FAT and not constraints.has_dyslipidemia:
        overrides[SubgroupCode.GRASA_SIN_PROTEINA] = 60.0
        overrides[SubgroupCode.GRASA_CON_PROTEINA] = 40.0
    if should_apply_sugar_floor(constraints):
        overrides[SubgroupCode.AZUCAR_SIN_GRASA] = 100.0
        overrides[SubgroupCode.AZUCAR_CON_GRASA] = 0.0
    return overrides


def _profile_problem(profile: BucketProfile, bucket_type: BucketType) -> str | None:
    if profile.bucket_type != bucket_type:
        return f"expected a {bucket_type} profile"
    if profile.sample_size < 1:
        return "profile has no contributing foods"
    macros = (profile.carbs_g, profile.protein_g, profile.fat_g, profile.calories)
    if any(not math.isfinite(value) or value < 0 for value in macros):
        return "profile has invalid macros"
    if bucket_type == BucketType.SUBGROUP and profile.parent_group_id is None:
        return "subgroup profile has no parent group"
    return None


def partition_usable(
    profiles: Iterable[BucketProfile], bucket_type: BucketType
) -> tuple[list[BucketProfile], list[MissingProfileWarning]]:
    """Split profiles into usable ones and warnings for the rest."""
    usable: list[BucketProfile] = []
    warnings: list[MissingProfileWarning] = []
    for profile in profiles:
        problem = _profile_problem(profile, bucket_type)
        if problem is None:
            usable.append(profile)
        else:
            warnings.append(MissingProfileWarning(profile.bucket_key, problem))
    return usable, warnings


def family_code(profile: BucketProfile) -> GroupCode:
    """Return the group code of a group profile."""
    if profile.legacy_code in GroupCode.__members__.values():
        return GroupCode(profile.legacy_code)
    return infer_group_code(profile.bucket_name)


def contribution(exchanges: float, profile: BucketProfile) -> MacroTotals:
    """Macros supplied by a number of exchanges of a bucket."""
    return MacroTotals(
        carbs_g=exchanges * profile.carbs_g,
        protein_g=exchanges * profile.protein_g,
        fat_g=exchanges * profile.fat_g,
        calories=exchanges * profile.calories,
    )


@dataclass
class _Remaining:
    carbs: float
    protein: float
    fat: float

    def consume(self, totals: MacroTotals) -> None:
        self.carbs -= totals.carbs_g
        self.protein -= totals.protein_g
        self.fat -= totals.fat_g


def _estimate(family: GroupCode, profile: BucketProfile, remaining: _Remaining) -> float:
    by_carbs = remaining.carbs / profile.carbs_g if profile.carbs_g > 0 else None
    by_protein = remaining.protein / profile.protein_g if profile.protein_g > 0 else None
    by_fat = remaining.fat / profile.fat_g if profile.fat_g > 0 else None

    if family == GroupCode.PROTEIN and by_protein is not None:
        return by_protein
    if family == GroupCode.FAT and by_fat is not None:
        return by_fat
    if family == GroupCode.LEGUME:
        bounds = [value for value in (by_protein, by_carbs) if value is not None]
        return min(bounds) if bounds else 0.0
    for value in (by_carbs, by_protein, by_fat):
        if value is not None:
            return value
    return 0.0


@dataclass(frozen=True)
class SubgroupShare:
    """Effective share of one subgroup within its parent group."""

    profile: BucketProfile
    share_pct: float
    score_adjustment: float


def distribute_by_shares(total: float, shares: list[SubgroupShare]) -> dict[int, float]:
    """Split a half-unit total across subgroups by share percentage."""
    result = {share.profile.bucket_id: 0.0 for share in shares}
    positive = [share for share in shares if share.share_pct > 0]
    if total <= 0 or not positive:
        return result

    weight_total = sum(share.share_pct for share in positive)
    for share in positive:
        result[share.profile.bucket_id] = round_half(
            total * share.share_pct / weight_total
        )

    diff = round_half(total) - sum(result.values())
    by_priority = sorted(
        positive,
        key=lambda share: (
            -share.share_pct,
            -share.score_adjustment,
            share.profile.bucket_id,
        ),
    )
    for share in by_priority:
        if diff == 0:
            break
        bucket_id = share.profile.bucket_id
        if diff > 0:
            result[bucket_id] += diff
            diff = 0.0
        else:
            reduction = min(result[bucket_id], -diff)
            result[bucket_id] -= reduction
            diff += reduction
    return result


def _default_anchors() -> dict[GroupCode, float]:
    return {GroupCode.VEGETABLE: 3.0, GroupCode.FRUIT: 2.0}


def _default_caps() -> dict[GroupCode, float]:
    return {GroupCode.LEGUME: 2.0, GroupCode.MILK: 2.0, GroupCode.SUGAR: 2.0}


@dataclass
class ExchangeAllocationEngine:
    """Turns macro targets into exchanges using bucket profiles as units.

    Groups are filled in a fixed order against running macro remainders. Each
    group covers its dominant macro: protein for protein, fat for fat, the
    tighter of protein and carbohydrate for legumes, and carbohydrate for
    milk, sugar and starches. Vegetables and fruit get anchored servings.
    """

    anchored_exchanges: dict[GroupCode, float] = field(default_factory=_default_anchors)
    exchange_caps: dict[GroupCode, float] = field(default_factory=_default_caps)
    max_exchanges: float = MAX_EXCHANGES

    def build_group_plan(
        self,
        targets: EnergyTargets,
        group_profiles: list[BucketProfile],
        constraints: PatientConstraints,
    ) -> list[GroupPlanEntry]:
        """Return exchanges per day for every usable group profile."""
        usable, warnings = partition_usable(group_profiles, BucketType.GROUP)
        for warning in warnings:
            _logger.warning("Skipping group profile: %s", warning)

        ordered = sorted(
            ((family_code(profile), profile) for profile in usable),
            key=lambda item: (FAMILY_ORDER[item[0]], item[1].bucket_id),
        )
        remaining = _Remaining(
            carbs=targets.carbs_g, protein=targets.protein_g, fat=targets.fat_g
        )
        exchanges_by_group: dict[int, float] = {}

        for family, profile in ordered:
            anchored = self.anchored_exchanges.get(family)
            if anchored is None:
                continue
            exchanges_by_group[profile.bucket_id] = anchored
            remaining.consume(contribution(anchored, profile))

        for family, profile in ordered:
            if profile.bucket_id in exchanges_by_group:
                continue
            cap = min(self.exchange_caps.get(family, self.max_exchanges), self.max_exchanges)
            estimated = _estimate(family, profile, remaining)
            base = round_half(min(max(estimated, 0.0), cap))
            exchanges = self._apply_policy(family, base, constraints)
            exchanges_by_group[profile.bucket_id] = exchanges
            remaining.consume(contribution(exchanges, profile))

        return [
            GroupPlanEntry(
                bucket_id=profile.bucket_id,
                bucket_name=profile.bucket_name,
                legacy_code=str(family),
                exchanges_per_day=exchanges_by_group[profile.bucket_id],
                totals=contribution(exchanges_by_group[profile.bucket_id], profile),
            )
            for family, profile in ordered
        ]

    @staticmethod
    def _apply_policy(
        family: GroupCode, exchanges: float, constraints: PatientConstraints
    ) -> float:
        if family == GroupCode.SUGAR:
            if constraints.has_diabetes:
                return 0.0
            if constraints.goal == Goal.LOSE_FAT:
                return (
                    SUGAR_TREAT_EXCHANGES if should_apply_sugar_floor(constraints) else 0.0
                )
        if family == GroupCode.FAT and should_apply_fat_floor(constraints):
            return max(exchanges, FAT_FLOOR_EXCHANGES)
        return exchanges

    def build_subgroup_plan(
        self,
        group_plan: list[GroupPlanEntry],
        subgroup_profiles: list[BucketProfile],
        policies: list[SubgroupPolicy],
        constraints: PatientConstraints,
        warnings: list[MissingProfileWarning] | None = None,
    ) -> list[SubgroupPlanEntry]:
        """Split group exchanges across subgroups that have an active share.

        A group whose remaining shares are all zero is left out of the split
        and reported in ``warnings``, when a list is given.
        """
        usable, skipped = partition_usable(subgroup_profiles, BucketType.SUBGROUP)
        for warning in skipped:
            _logger.warning("Skipping subgroup profile: %s", warning)

        policies_by_subgroup = {policy.subgroup_id: policy for policy in policies}
        overrides = subgroup_share_overrides(constraints)
        rows: list[SubgroupPlanEntry] = []

        for group in group_plan:
            if group.exchanges_per_day <= 0:
                continue
            shares: list[SubgroupShare] = []
            children = sorted(
                (p for p in usable if p.parent_group_id == group.bucket_id),
                key=lambda p: p.bucket_id,
            )
            for child in children:
                policy = policies_by_subgroup.get(child.bucket_id)
                override = overrides.get(child.legacy_code) if child.legacy_code else None
                if override is None and policy is None:
                    continue
                shares.append(
                    SubgroupShare(
                        profile=child,
                        share_pct=override
                        if override is not None
                        else policy.target_share_pct,
                        score_adjustment=policy.score_adjustment if policy else 0.0,
                    )
                )
            if not shares:
                continue
            if not any(share.share_pct > 0 for share in shares):
                unsplit = MissingProfileWarning(
                    group.bucket_key, "no subgroup with a positive share"
                )
                _logger.warning("Group left unsplit: %s", unsplit)
                if warnings is not None:
                    warnings.append(unsplit)
                continue

            distribution = distribute_by_shares(group.exchanges_per_day, shares)
            for share in shares:
                subgroup = share.profile
                exchanges = distribution[subgroup.bucket_id]
                rows.append(
                    SubgroupPlanEntry(
                        bucket_id=subgroup.bucket_id,
                        parent_group_id=group.bucket_id,
                        bucket_name=subgroup.bucket_name,
                        legacy_code=subgroup.legacy_code,
                        exchanges_per_day=exchanges,
                        totals=contribution(exchanges, subgroup),
                    )
                )

        return rows
