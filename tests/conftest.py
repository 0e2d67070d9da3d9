import pytest

from gastro_costing.models import Ingredient, Recipe, RecipeLine


def ing_line(line_id, recipe_id, ingredient_id, qty, unit="g", **kw):
    return RecipeLine(id=line_id, recipe_id=recipe_id, line_type="ingredient",
                      ingredient_id=ingredient_id, qty=qty, unit=unit, **kw)


def sub_line(line_id, recipe_id, sub_recipe_id, qty, unit="portion", **kw):
    return RecipeLine(id=line_id, recipe_id=recipe_id, line_type="subrecipe",
                      sub_recipe_id=sub_recipe_id, qty=qty, unit=unit, **kw)


@pytest.fixture
def ingredients():
    items = [
        Ingredient(id="flour", name="Mehl", pack_unit="g", net_unit_cost=0.002,
                   kcal_per_100g=364, protein_per_100g=10, carbs_per_100g=76, fat_per_100g=1),
        Ingredient(id="butter", name="Butter", pack_unit="kg", net_unit_cost=12.0,
                   density_g_per_ml=0.91, kcal_per_100g=717, protein_per_100g=0.9,
                   carbs_per_100g=0.1, fat_per_100g=81),
        Ingredient(id="milk", name="Milch", pack_unit="l", net_unit_cost=1.5,
                   density_g_per_ml=1.03, kcal_per_100g=42, protein_per_100g=3.4,
                   carbs_per_100g=5, fat_per_100g=1),
        Ingredient(id="egg", name="Ei", pack_unit="pcs", net_unit_cost=0.4,
                   grams_per_piece=50, kcal_per_100g=143, protein_per_100g=12.6,
                   carbs_per_100g=0.7, fat_per_100g=9.5),
        Ingredient(id="salt", name="Salz", pack_unit="kg", net_unit_cost=0.8),
        Ingredient(id="saffron", name="Safran", pack_unit="g", net_unit_cost=0),
        Ingredient(id="cream", name="Rahm", pack_unit="l", net_unit_cost=6.0,
                   kcal_per_100g=292, fat_per_100g=30),
        Ingredient(id="old", name="Alt", pack_unit="g", net_unit_cost=1.0, is_active=False),
    ]
    return {i.id: i for i in items}
