"""Domain models for the exchange food catalog."""

from dataclasses import dataclass, field
from enum import StrEnum


class GroupCode(StrEnum):
    """Semantic code of an exchange group."""

    VEGETABLE = "vegetable"
    FRUIT = "fruit"
    LEGUME = "legume"
    MILK = "milk"
    SUGAR = "sugar"
    FAT = "fat"
    PROTEIN = "protein"
    CARB = "carb"


class SubgroupCode(StrEnum):
    """Semantic code of an exchange subgroup."""

    AOA_MUY_BAJO_GRASA = "aoa_muy_bajo_grasa"
    AOA_BAJO_GRASA = "aoa_bajo_grasa"
    AOA_MODERADO_GRASA = "aoa_moderado_grasa"
    AOA_ALTO_GRASA = "aoa_alto_grasa"
    CEREAL_SIN_GRASA = "cereal_sin_grasa"
    CEREAL_CON_GRASA = "cereal_con_grasa"
    LECHE_DESCREMADA = "leche_descremada"
    LECHE_SEMIDESCREMADA = "leche_semidescremada"
    LECHE_ENTERA = "leche_entera"
    LECHE_CON_AZUCAR = "leche_con_azucar"
    AZUCAR_SIN_GRASA = "azucar_sin_grasa"
    AZUCAR_CON_GRASA = "azucar_con_grasa"
    GRASA_SIN_PROTEINA = "grasa_sin_proteina"
    GRASA_CON_PROTEINA = "grasa_con_proteina"


EXCHANGE_SYSTEM_IDS = ("mx_smae", "us_usda", "es_exchange", "ar_exchange")


@dataclass(frozen=True)
class FoodTag:
    """Preference or profile tag attached to a food."""

    type: str
    value: str
    weight: float | None = None


@dataclass(frozen=True)
class FoodItem:
    """Resolved catalog food with canonical macros and bucket assignment."""

    id: int
    name: str
    group_id: int
    group_code: GroupCode
    carbs_g: float
    protein_g: float
    fat_g: float
    calories_kcal: float
    serving_qty: float
    serving_unit: str
    source_system_id: str
    nutrition_value_id: int | None = None
    data_source_id: int | None = None
    subgroup_id: int | None = None
    subgroup_code: SubgroupCode | None = None
    geo_weight: float | None = None
    tags: tuple[FoodTag, ...] = ()

    @property
    def bucket_key(self) -> str:
        """Key of the most specific bucket the food belongs to."""
        if self.subgroup_id is not None:
            return f"subgroup:{self.subgroup_id}"
        return f"group:{self.group_id}"


@dataclass(frozen=True)
class GroupMeta:
    """Exchange group metadata from the catalog."""

    id: int
    name: str
    group_code: GroupCode


@dataclass(frozen=True)
class SubgroupMeta:
    """Exchange subgroup metadata from the catalog."""

    id: int
    parent_group_id: int
    name: str
    parent_group_code: GroupCode
    subgroup_code: SubgroupCode | None = None


@dataclass(frozen=True)
class CatalogSnapshot:
    """Read-only snapshot of a system catalog."""

    foods: tuple[FoodItem, ...]
    groups_by_id: dict[int, GroupMeta] = field(default_factory=dict)
    subgroups_by_id: dict[int, SubgroupMeta] = field(default_factory=dict)


@dataclass(frozen=True)
class RawFoodRow:
    """Food row as stored, before nutrition values and overrides are applied."""

    id: int
    name: str
    exchange_group_id: int | None
    exchange_group_name: str | None
    category_name: str | None
    base_serving_size: float | None
    base_unit: str | None


@dataclass(frozen=True)
class FoodOverride:
    """Manual exchange assignment for a food."""

    food_id: int
    group_id: int | None
    subgroup_id: int | None
    equivalent_portion_qty: float | None
    portion_unit: str | None


@dataclass(frozen=True)
class ClassificationRule:
    """Assigns protein foods to a subgroup by fat per 7 g of protein."""

    subgroup_id: int
    min_fat_per_7g_pro: float
    max_fat_per_7g_pro: float | None
    priority: int


@dataclass(frozen=True)
class ExchangeGroupRow:
    """Exchange group row as stored."""

    id: int
    name: str


@dataclass(frozen=True)
class ExchangeSubgroupRow:
    """Exchange subgroup row joined with its parent group name."""

    id: int
    parent_group_id: int
    name: str
    parent_group_name: str
