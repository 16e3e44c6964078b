"""Pydantic models for the plan and admin endpoints."""

from pydantic import BaseModel, Field

from exchange_planner.domain.plans import (
    DietPattern,
    EnergyTargets,
    ExchangePlan,
    Goal,
    GroupPlanEntry,
    MacroTotals,
    PatientConstraints,
    SubgroupPlanEntry,
)


class TargetsPayload(BaseModel):
    """Daily macro targets in grams."""

    carbs_g: float = Field(ge=0)
    protein_g: float = Field(ge=0)
    fat_g: float = Field(ge=0)
    target_calories: float | None = Field(default=None, ge=0)

    def to_domain(self) -> EnergyTargets:
        return EnergyTargets(
            carbs_g=self.carbs_g,
            protein_g=self.protein_g,
            fat_g=self.fat_g,
            target_calories=self.target_calories,
        )


class ConstraintsPayload(BaseModel):
    """Patient fields that drive allocation policies."""

    goal: Goal = Goal.MAINTAIN
    diet_pattern: DietPattern = DietPattern.OMNIVORE
    has_diabetes: bool = False
    has_hypertension: bool = False
    has_dyslipidemia: bool = False
    likes: list[str] = Field(default_factory=list)
    dislikes: list[str] = Field(default_factory=list)

    def to_domain(self) -> PatientConstraints:
        return PatientConstraints(
            goal=self.goal,
            diet_pattern=self.diet_pattern,
            has_diabetes=self.has_diabetes,
            has_hypertension=self.has_hypertension,
            has_dyslipidemia=self.has_dyslipidemia,
            likes=tuple(self.likes),
            dislikes=tuple(self.dislikes),
        )


class PlanRequest(BaseModel):
    """Request body for plan generation."""

    system_id: str = "mx_smae"
    targets: TargetsPayload
    constraints: ConstraintsPayload = Field(default_factory=ConstraintsPayload)


class TotalsResponse(BaseModel):
    carbs_g: float
    protein_g: float
    fat_g: float
    calories: float

    @classmethod
    def from_domain(cls, totals: MacroTotals) -> "TotalsResponse":
        return cls(
            carbs_g=round(totals.carbs_g, 2),
            protein_g=round(totals.protein_g, 2),
            fat_g=round(totals.fat_g, 2),
            calories=round(totals.calories, 2),
        )


class GroupEntryResponse(BaseModel):
    bucket_key: str
    bucket_id: int
    bucket_name: str
    legacy_code: str
    exchanges_per_day: float
    totals: TotalsResponse

    @classmethod
    def from_domain(cls, entry: GroupPlanEntry) -> "GroupEntryResponse":
        return cls(
            bucket_key=entry.bucket_key,
            bucket_id=entry.bucket_id,
            bucket_name=entry.bucket_name,
            legacy_code=entry.legacy_code,
            exchanges_per_day=entry.exchanges_per_day,
            totals=TotalsResponse.from_domain(entry.totals),
        )


class SubgroupEntryResponse(BaseModel):
    bucket_key: str
    bucket_id: int
    parent_group_id: int
    bucket_name: str
    legacy_code: str | None
    exchanges_per_day: float
    totals: TotalsResponse

    @classmethod
    def from_domain(cls, entry: SubgroupPlanEntry) -> "SubgroupEntryResponse":
        return cls(
            bucket_key=entry.bucket_key,
            bucket_id=entry.bucket_id,
            parent_group_id=entry.parent_group_id,
            bucket_name=entry.bucket_name,
            legacy_code=entry.legacy_code,
            exchanges_per_day=entry.exchanges_per_day,
            totals=TotalsResponse.from_domain(entry.totals),
        )


class WarningResponse(BaseModel):
    bucket_key: str
    reason: str


class PlanResponse(BaseModel):
    """Generated plan as returned to clients."""

    system_id: str
    profile_version: str
    groups: list[GroupEntryResponse]
    subgroups: list[SubgroupEntryResponse]
    totals: TotalsResponse
    warnings: list[WarningResponse]

    @classmethod
    def from_domain(cls, plan: ExchangePlan) -> "PlanResponse":
        return cls(
            system_id=plan.system_id,
            profile_version=plan.profile_version,
            groups=[GroupEntryResponse.from_domain(entry) for entry in plan.groups],
            subgroups=[
                SubgroupEntryResponse.from_domain(entry) for entry in plan.subgroups
            ],
            totals=TotalsResponse.from_domain(plan.totals),
            warnings=[
                WarningResponse(bucket_key=warning.bucket_key, reason=warning.reason)
                for warning in plan.warnings
            ],
        )


class RebuildRequest(BaseModel):
    """Request body for rebuilding bucket profiles."""

    profile_version: str = Field(min_length=1)
    system_id: str | None = None
