import pytest

from gastro_costing.costing import (
    calc_cost_per_portion,
    calc_food_cost_pct,
    calc_margin,
    compute_recipe_totals,
    dedupe_warnings,
)
from gastro_costing.models import LineComputed, Recipe, RecipeLine, calc_ingredient_costs

from .conftest import ing_line


def _computed(cost, warnings=()):
    return LineComputed(net=1, gross=1, yield_pct=100, unit_cost=cost, line_cost=cost, warnings=list(warnings))


def test_totals_with_selling_price():
    recipe = Recipe(id="R", portions=10, selling_price=2.0)
    lines = [ing_line("a", "R", "x", 1), ing_line("b", "R", "y", 1)]
    t = compute_recipe_totals(recipe, lines, {"a": _computed(3.0), "b": _computed(2.0)})
    assert t.total_cost == pytest.approx(5.0)
    assert t.cpp == pytest.approx(0.5)
    assert t.fc_pct == pytest.approx(25.0)
    assert t.margin == pytest.approx(1.5)
    assert t.margin_pct == pytest.approx(75.0)


def test_totals_without_selling_price():
    recipe = Recipe(id="R", portions=4)
    lines = [ing_line("a", "R", "x", 1)]
    t = compute_recipe_totals(recipe, lines, {"a": _computed(8.0)})
    assert t.cpp == pytest.approx(2.0)
    assert t.fc_pct is None
    assert t.margin == pytest.approx(-2.0)
    assert t.margin_pct is None


def test_invalid_portions_default_to_one():
    recipe = Recipe(id="R", portions=0)
    t = compute_recipe_totals(recipe, [ing_line("a", "R", "x", 1)], {"a": _computed(8.0)})
    assert t.cpp == pytest.approx(8.0)


@pytest.mark.parametrize("portions", (2.5, 0.5, -4, "abc", None))
def test_fractional_or_bad_portions_default_to_one(portions):
    recipe = Recipe(id="R", portions=portions)
    assert recipe.safe_portions == 1
    t = compute_recipe_totals(recipe, [ing_line("a", "R", "x", 1)], {"a": _computed(1.0)})
    assert t.cpp == pytest.approx(1.0)


def test_group_lines_are_not_summed():
    recipe = Recipe(id="R")
    lines = [RecipeLine(id="g", recipe_id="R", line_type="group"), ing_line("a", "R", "x", 1)]
    t = compute_recipe_totals(recipe, lines, {"g": _computed(99.0, ["MISSING_INGREDIENT"]), "a": _computed(1.0)})
    assert t.total_cost == pytest.approx(1.0)
    assert t.warnings == []


def test_warnings_deduplicated_and_capped():
    recipe = Recipe(id="R")
    lines = [ing_line(str(n), "R", "x", 1) for n in range(3)]
    computed = {
        "0": _computed(0, ["MISSING_INGREDIENT", "UNIT_FAMILY_MISMATCH"]),
        "1": _computed(0, ["MISSING_INGREDIENT", "INGREDIENT_WITHOUT_PRICE"]),
        "2": _computed(0, ["MISSING_SUBRECIPE_REFERENCE", "MISSING_YIELD_ON_SUBRECIPE"]),
    }
    t = compute_recipe_totals(recipe, lines, computed)
    assert t.warnings == [
        "MISSING_INGREDIENT",
        "UNIT_FAMILY_MISMATCH",
        "INGREDIENT_WITHOUT_PRICE",
        "MISSING_SUBRECIPE_REFERENCE",
    ]


def test_total_cost_can_be_supplied():
    recipe = Recipe(id="R", portions=2)
    t = compute_recipe_totals(recipe, [], {}, total_cost=7.0)
    assert t.total_cost == 7.0
    assert t.cpp == 3.5


def test_dedupe_warnings_limit():
    assert dedupe_warnings(["a", "b", "a", "c"], limit=2) == ["a", "b"]
    assert dedupe_warnings(["a"], limit=0) == []


def test_helpers():
    assert calc_cost_per_portion(10, 0) == 10
    assert calc_cost_per_portion(10, 4) == 2.5
    assert calc_food_cost_pct(3, 0) is None
    assert calc_food_cost_pct(3, 10) == pytest.approx(30)
    assert calc_margin(3, None) == (-3, None)


def test_ingredient_costs_from_pack_price():
    costs = calc_ingredient_costs(10, 5, 80)
    assert costs.gross_unit_cost == pytest.approx(2.0)
    assert costs.net_unit_cost == pytest.approx(2.5)


@pytest.mark.parametrize("size,yld", ((0, 100), (5, 0), (None, 100)))
def test_ingredient_costs_invalid_inputs(size, yld):
    costs = calc_ingredient_costs(10, size, yld)
    assert costs.gross_unit_cost == 0
    assert costs.net_unit_cost == 0
