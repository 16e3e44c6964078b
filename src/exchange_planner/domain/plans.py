"""Domain models for exchange plans."""

from dataclasses import dataclass, field
from enum import StrEnum

from exchange_planner.errors import MissingProfileWarning


class Goal(StrEnum):
    """Patient body-composition goal."""

    MAINTAIN = "maintain"
    LOSE_FAT = "lose_fat"
    GAIN_MUSCLE = "gain_muscle"


class DietPattern(StrEnum):
    """Dietary pattern declared by the patient."""

    OMNIVORE = "omnivore"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    PESCATARIAN = "pescatarian"


ANY_DIET_PATTERN = "any"


@dataclass(frozen=True)
class EnergyTargets:
    """Daily macro targets in grams."""

    carbs_g: float
    protein_g: float
    fat_g: float
    target_calories: float | None = None

    @property
    def calories(self) -> float:
        """Target calories, derived from macros when not given."""
        if self.target_calories is not None:
            return self.target_calories
        return self.carbs_g * 4 + self.protein_g * 4 + self.fat_g * 9


@dataclass(frozen=True)
class PatientConstraints:
    """Patient profile fields that drive allocation policies."""

    goal: Goal = Goal.MAINTAIN
    diet_pattern: DietPattern = DietPattern.OMNIVORE
    has_diabetes: bool = False
    has_hypertension: bool = False
    has_dyslipidemia: bool = False
    likes: tuple[str, ...] = ()
    dislikes: tuple[str, ...] = ()


@dataclass(frozen=True)
class SubgroupPolicy:
    """Share of a parent group's exchanges assigned to one subgroup."""

    subgroup_id: int
    target_share_pct: float
    score_adjustment: float = 0.0
    goal: str | None = None
    diet_pattern: str | None = None


@dataclass(frozen=True)
class MacroTotals:
    """Macros contributed by a number of exchanges."""

    carbs_g: float
    protein_g: float
    fat_g: float
    calories: float


@dataclass(frozen=True)
class GroupPlanEntry:
    """Exchanges per day for a group."""

    bucket_id: int
    bucket_name: str
    legacy_code: str
    exchanges_per_day: float
    totals: MacroTotals

    @property
    def bucket_key(self) -> str:
        """Bucket key of the group."""
        return f"group:{self.bucket_id}"


@dataclass(frozen=True)
class SubgroupPlanEntry:
    """Exchanges per day for a subgroup of a split group."""

    bucket_id: int
    parent_group_id: int
    bucket_name: str
    legacy_code: str | None
    exchanges_per_day: float
    totals: MacroTotals

    @property
    def bucket_key(self) -> str:
        """Bucket key of the subgroup."""
        return f"subgroup:{self.bucket_id}"


@dataclass(frozen=True)
class ExchangePlan:
    """Generated daily exchange plan."""

    system_id: str
    profile_version: str
    targets: EnergyTargets
    groups: tuple[GroupPlanEntry, ...]
    subgroups: tuple[SubgroupPlanEntry, ...]
    warnings: tuple[MissingProfileWarning, ...] = field(default=())

    @property
    def totals(self) -> MacroTotals:
        """Macros covered by the group-level plan."""
        return MacroTotals(
            carbs_g=sum(entry.totals.carbs_g for entry in self.groups),
            protein_g=sum(entry.totals.protein_g for entry in self.groups),
            fat_g=sum(entry.totals.fat_g for entry in self.groups),
            calories=sum(entry.totals.calories for entry in self.groups),
        )
