"""Macro-based subgroup assignment for catalog foods."""

from exchange_planner.domain.catalog import ClassificationRule, GroupCode, SubgroupCode
from exchange_planner.services.group_codes import normalize_label

LEGUME_KEYWORDS = (
    "frijol",
    "lenteja",
    "garbanzo",
    "haba",
    "edamame",
    "soya",
    "soja",
    "alubia",
    "judia",
    "chicharo",
    "tofu",
    "tempeh",
)


def is_likely_legume(
    food_name: str,
    category_name: str | None,
    protein_g: float,
    carbs_g: float,
    fat_g: float,
) -> bool:
    """Return whether a protein-group food is really a legume."""
    name = normalize_label(food_name)
    if any(keyword in name for keyword in LEGUME_KEYWORDS):
        return True
    if "legum" in normalize_label(category_name):
        return True
    return protein_g >= 6 and carbs_g >= 10 and fat_g <= 6  # noqa: PLR2004


def classify_protein_subgroup(
    protein_g: float, fat_g: float, rules: list[ClassificationRule]
) -> int | None:
    """Return the subgroup id of the first rule matching fat per 7 g protein."""
    fat_per_7g_pro = fat_g / max(protein_g, 0.1) * 7
    for rule in sorted(rules, key=lambda item: item.priority):
        within_min = fat_per_7g_pro >= rule.min_fat_per_7g_pro
        within_max = (
            rule.max_fat_per_7g_pro is None or fat_per_7g_pro < rule.max_fat_per_7g_pro
        )
        if within_min and within_max:
            return rule.subgroup_id
    return None


def classify_subgroup_code(
    group_code: GroupCode, protein_g: float, carbs_g: float, fat_g: float
) -> SubgroupCode | None:
    """Return the subgroup code for a non-protein food from its macros."""
    if group_code == GroupCode.CARB:
        return (
            SubgroupCode.CEREAL_SIN_GRASA if fat_g <= 1 else SubgroupCode.CEREAL_CON_GRASA
        )
    if group_code == GroupCode.MILK:
        if carbs_g > 20:  # noqa: PLR2004
            return SubgroupCode.LECHE_CON_AZUCAR
        if fat_g <= 2:  # noqa: PLR2004
            return SubgroupCode.LECHE_DESCREMADA
        if fat_g <= 5:  # noqa: PLR2004
            return SubgroupCode.LECHE_SEMIDESCREMADA
        return SubgroupCode.LECHE_ENTERA
    if group_code == GroupCode.SUGAR:
        return (
            SubgroupCode.AZUCAR_SIN_GRASA if fat_g <= 1 else SubgroupCode.AZUCAR_CON_GRASA
        )
    if group_code == GroupCode.FAT:
        return (
            SubgroupCode.GRASA_CON_PROTEINA
            if protein_g >= 1.5  # noqa: PLR2004
            else SubgroupCode.GRASA_SIN_PROTEINA
        )
    return None
