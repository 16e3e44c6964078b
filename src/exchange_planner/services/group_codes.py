"""Keyword classification of group and subgroup labels.

Labels come from free-text catalog names (mostly Spanish, sometimes English).
Both the profile builder and the catalog loader classify through this module,
so changing a keyword table relabels every profile version on its next read.
"""

import unicodedata

from exchange_planner.domain.catalog import GroupCode, SubgroupCode

GROUP_KEYWORDS: tuple[tuple[GroupCode, tuple[str, ...]], ...] = (
    (GroupCode.VEGETABLE, ("verdura", "vegetable")),
    (GroupCode.FRUIT, ("fruta", "fruit")),
    (GroupCode.LEGUME, ("legum",)),
    (GroupCode.MILK, ("leche", "milk", "lacteo", "dairy")),
    (GroupCode.SUGAR, ("azucar", "sugar", "dulce", "sweet")),
    (GroupCode.FAT, ("grasa", "fat", "aceite", "oil")),
    (GroupCode.PROTEIN, ("prote", "animal", "protein")),
)

_FAT_WORDS = ("grasa", "fat")
_PROTEIN_WORDS = ("prote",)


def normalize_label(value: str | None) -> str:
    """Lowercase a label and strip diacritics for keyword matching."""
    decomposed = unicodedata.normalize("NFD", (value or "").strip().lower())
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def infer_group_code(label: str | None) -> GroupCode:
    """Classify a group label, defaulting to ``carb`` when nothing matches."""
    text = normalize_label(label)
    for code, keywords in GROUP_KEYWORDS:
        if _contains_any(text, keywords):
            return code
    return GroupCode.CARB


def infer_subgroup_code(
    label: str | None, parent_group_code: GroupCode | None = None
) -> SubgroupCode | None:
    """Classify a subgroup label within its parent group."""
    text = normalize_label(label)
    if not text or parent_group_code is None:
        return None
    if parent_group_code == GroupCode.PROTEIN:
        return _protein_subgroup(text)
    if parent_group_code == GroupCode.MILK:
        return _milk_subgroup(text)
    if parent_group_code == GroupCode.FAT:
        return _fat_subgroup(text)
    if parent_group_code == GroupCode.SUGAR:
        return _with_or_without_fat(
            text, SubgroupCode.AZUCAR_SIN_GRASA, SubgroupCode.AZUCAR_CON_GRASA
        )
    if parent_group_code == GroupCode.CARB:
        return _with_or_without_fat(
            text, SubgroupCode.CEREAL_SIN_GRASA, SubgroupCode.CEREAL_CON_GRASA
        )
    return None


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def _protein_subgroup(text: str) -> SubgroupCode | None:
    if not _contains_any(text, _FAT_WORDS):
        return None
    if ("muy" in text and "bajo" in text) or "very low" in text:
        return SubgroupCode.AOA_MUY_BAJO_GRASA
    if "bajo" in text or "low" in text:
        return SubgroupCode.AOA_BAJO_GRASA
    if "moderado" in text or "moderate" in text:
        return SubgroupCode.AOA_MODERADO_GRASA
    if "alto" in text or "high" in text:
        return SubgroupCode.AOA_ALTO_GRASA
    return None


def _milk_subgroup(text: str) -> SubgroupCode | None:
    # Sweetened milk names may also say "entera", so sugar is checked first.
    if _contains_any(text, ("azucar", "sugar")):
        return SubgroupCode.LECHE_CON_AZUCAR
    if "semi" in text:
        return SubgroupCode.LECHE_SEMIDESCREMADA
    if _contains_any(text, ("descremada", "skim")):
        return SubgroupCode.LECHE_DESCREMADA
    if _contains_any(text, ("entera", "whole")):
        return SubgroupCode.LECHE_ENTERA
    return None


def _fat_subgroup(text: str) -> SubgroupCode | None:
    if not _contains_any(text, _PROTEIN_WORDS):
        return None
    if "sin" in text.split() or "without" in text:
        return SubgroupCode.GRASA_SIN_PROTEINA
    if "con" in text.split() or "with" in text:
        return SubgroupCode.GRASA_CON_PROTEINA
    return None


def _with_or_without_fat(
    text: str, without_fat: SubgroupCode, with_fat: SubgroupCode
) -> SubgroupCode | None:
    words = text.split()
    if not _contains_any(text, _FAT_WORDS):
        return None
    if "sin" in words or "without" in words:
        return without_fat
    if "con" in words or "with" in words:
        return with_fat
    return None
