"""Tests for group and subgroup label classification."""

import pytest

from exchange_planner.domain.catalog import GroupCode, SubgroupCode
from exchange_planner.services.group_codes import (
    infer_group_code,
    infer_subgroup_code,
    normalize_label,
)


def test_normalize_label_strips_diacritics_and_case() -> None:
    assert normalize_label("  Azúcares y Proteína ") == "azucares y proteina"
    assert normalize_label(None) == ""


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Verduras", GroupCode.VEGETABLE),
        ("Frutas", GroupCode.FRUIT),
        ("Leguminosas", GroupCode.LEGUME),
        ("Leche", GroupCode.MILK),
        ("Azúcares", GroupCode.SUGAR),
        ("Aceites y grasas", GroupCode.FAT),
        ("Alimentos de origen animal", GroupCode.PROTEIN),
        ("Cereales y tubérculos", GroupCode.CARB),
        ("Whole milk and dairy", GroupCode.MILK),
    ],
)
def test_infer_group_code(label: str, expected: GroupCode) -> None:
    assert infer_group_code(label) == expected


def test_infer_group_code_defaults_to_carb() -> None:
    assert infer_group_code("Misceláneos") == GroupCode.CARB
    assert infer_group_code(None) == GroupCode.CARB


def test_fat_keyword_wins_over_protein_keyword() -> None:
    assert infer_group_code("Aceites y grasas con proteína") == GroupCode.FAT


@pytest.mark.parametrize(
    ("label", "parent", "expected"),
    [
        ("Muy bajo aporte de grasa", GroupCode.PROTEIN, SubgroupCode.AOA_MUY_BAJO_GRASA),
        ("Bajo aporte de grasa", GroupCode.PROTEIN, SubgroupCode.AOA_BAJO_GRASA),
        ("Moderado aporte de grasa", GroupCode.PROTEIN, SubgroupCode.AOA_MODERADO_GRASA),
        ("Alto aporte de grasa", GroupCode.PROTEIN, SubgroupCode.AOA_ALTO_GRASA),
        ("Cereales sin grasa", GroupCode.CARB, SubgroupCode.CEREAL_SIN_GRASA),
        ("Cereales con grasa", GroupCode.CARB, SubgroupCode.CEREAL_CON_GRASA),
        ("Leche descremada", GroupCode.MILK, SubgroupCode.LECHE_DESCREMADA),
        ("Leche semidescremada", GroupCode.MILK, SubgroupCode.LECHE_SEMIDESCREMADA),
        ("Leche entera", GroupCode.MILK, SubgroupCode.LECHE_ENTERA),
        ("Leche entera con azúcar", GroupCode.MILK, SubgroupCode.LECHE_CON_AZUCAR),
        ("Azúcares sin grasa", GroupCode.SUGAR, SubgroupCode.AZUCAR_SIN_GRASA),
        ("Azúcares con grasa", GroupCode.SUGAR, SubgroupCode.AZUCAR_CON_GRASA),
        ("Aceites y grasas sin proteína", GroupCode.FAT, SubgroupCode.GRASA_SIN_PROTEINA),
        ("Aceites y grasas con proteína", GroupCode.FAT, SubgroupCode.GRASA_CON_PROTEINA),
    ],
)
def test_infer_subgroup_code(label: str, parent: GroupCode, expected: SubgroupCode) -> None:
    assert infer_subgroup_code(label, parent) == expected


def test_infer_subgroup_code_without_match() -> None:
    assert infer_subgroup_code("Verduras de hoja", GroupCode.VEGETABLE) is None
    assert infer_subgroup_code("Cereales", GroupCode.CARB) is None
    assert infer_subgroup_code("Leche descremada", None) is None
    assert infer_subgroup_code("", GroupCode.MILK) is None
