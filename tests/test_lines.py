import pytest

from gastro_costing.lines import compute_line_computed, group_lines, resolve_line
from gastro_costing.models import Recipe, RecipeLine

from .conftest import ing_line, sub_line


@pytest.fixture
def recipes():
    items = [
        Recipe(id="B", name="Grundteig", portions=4, yield_qty=1000, yield_unit="g", is_subrecipe=True),
        Recipe(id="K", name="Fond", portions=1, yield_qty=2, yield_unit="kg", is_subrecipe=True),
        Recipe(id="V", name="Sauce", portions=10, yield_qty=1, yield_unit="l", is_subrecipe=True),
        Recipe(id="N", name="Beilage", portions=10, is_subrecipe=False),
        Recipe(id="S", name="Sub ohne Ausbeute", portions=10, is_subrecipe=True),
    ]
    return {r.id: r for r in items}


def test_flour_line_cost(ingredients):
    res = resolve_line(ing_line("l1", "R", "flour", 500, "g"), ingredients)
    assert res.net == 500
    assert res.gross == 500
    assert res.unit_cost == 0.002
    assert res.line_cost == pytest.approx(1.0)
    assert res.warnings == []


def test_yield_increases_gross(ingredients):
    res = resolve_line(ing_line("l1", "R", "flour", 100, "g", yield_percent=50), ingredients)
    assert res.gross == pytest.approx(200)
    assert res.line_cost == pytest.approx(0.4)


@pytest.mark.parametrize("yield_percent,expected", ((0, 0.0001), (-5, 0.0001), (150, 100), (80, 80)))
def test_yield_is_clamped(ingredients, yield_percent, expected):
    res = resolve_line(ing_line("l1", "R", "flour", 10, "g", yield_percent=yield_percent), ingredients)
    assert res.yield_pct == expected


def test_gross_override_wins(ingredients):
    res = resolve_line(ing_line("l1", "R", "flour", 100, "g", yield_percent=50, gross_qty_override=120),
                       ingredients)
    assert res.net == 100
    assert res.gross == 120


def test_zero_override_is_ignored(ingredients):
    res = resolve_line(ing_line("l1", "R", "flour", 100, "g", gross_qty_override=0), ingredients)
    assert res.gross == 100


def test_negative_qty_becomes_zero(ingredients):
    res = resolve_line(ing_line("l1", "R", "flour", -30, "g"), ingredients)
    assert res.net == 0
    assert res.line_cost == 0


def test_gross_converted_into_pack_unit(ingredients):
    res = resolve_line(ing_line("l1", "R", "butter", 250, "g"), ingredients)
    assert res.line_cost == pytest.approx(3.0)


def test_volume_line_with_density_into_mass_pack(ingredients):
    res = resolve_line(ing_line("l1", "R", "butter", 1, "cup"), ingredients)
    assert res.warnings == []
    assert res.line_cost == pytest.approx(236.5882365 * 0.91 / 1000 * 12.0)


def test_missing_ingredient(ingredients):
    res = resolve_line(ing_line("l1", "R", "ghost", 100, "g"), ingredients)
    assert res.line_cost == 0
    assert res.warnings == ["MISSING_INGREDIENT"]


def test_inactive_ingredient_counts_as_missing(ingredients):
    res = resolve_line(ing_line("l1", "R", "old", 100, "g"), ingredients)
    assert res.line_cost == 0
    assert res.warnings == ["MISSING_INGREDIENT"]


def test_ingredient_without_price_keeps_going(ingredients):
    lines = [ing_line("l1", "R", "saffron", 2, "g"), ing_line("l2", "R", "flour", 500, "g")]
    res = compute_line_computed(lines, ingredients)
    assert res["l1"].line_cost == 0
    assert res["l1"].warnings == ["INGREDIENT_WITHOUT_PRICE"]
    assert res["l2"].line_cost == pytest.approx(1.0)


def test_unit_family_mismatch_is_warning_not_abort(ingredients):
    res = resolve_line(ing_line("l1", "R", "salt", 2, "pcs"), ingredients)
    assert res.warnings == ["UNIT_FAMILY_MISMATCH"]
    # Menge unverändert durchgereicht: 2 "kg" x 0.8
    assert res.line_cost == pytest.approx(1.6)


def test_missing_pack_unit_uses_line_unit():
    from gastro_costing.models import Ingredient
    ings = {"x": Ingredient(id="x", net_unit_cost=0.5)}
    res = resolve_line(ing_line("l1", "R", "x", 4, "bunch"), ings)
    assert res.line_cost == pytest.approx(2.0)
    assert res.warnings == []


def test_subrecipe_by_yield_unit(ingredients, recipes):
    res = resolve_line(sub_line("l1", "A", "B", 250, "g"), ingredients, {"B": 10.0}, recipes)
    assert res.unit_cost == pytest.approx(0.01)
    assert res.line_cost == pytest.approx(2.5)
    assert res.warnings == []


def test_subrecipe_yield_converted_within_family(ingredients, recipes):
    res = resolve_line(sub_line("l1", "A", "K", 500, "g"), ingredients, {"K": 10.0}, recipes)
    assert res.line_cost == pytest.approx(2.5)


def test_subrecipe_by_portion(ingredients, recipes):
    res = resolve_line(sub_line("l1", "A", "B", 2, "portion"), ingredients, {"B": 8.0}, recipes)
    assert res.unit_cost == pytest.approx(2.0)
    assert res.line_cost == pytest.approx(4.0)


def test_subrecipe_line_uses_gross_quantity(ingredients, recipes):
    line = sub_line("l1", "A", "B", 2, "portion", yield_percent=50)
    res = resolve_line(line, ingredients, {"B": 8.0}, recipes)
    assert res.net == 2
    assert res.gross == pytest.approx(4.0)
    assert res.line_cost == pytest.approx(8.0)


def test_subrecipe_yield_family_mismatch_falls_back_to_cpp(ingredients, recipes):
    res = resolve_line(sub_line("l1", "A", "V", 100, "g"), ingredients, {"V": 10.0}, recipes)
    assert res.warnings == ["MISSING_YIELD_ON_SUBRECIPE"]
    assert res.line_cost == pytest.approx(100.0)


def test_subrecipe_without_yield(ingredients, recipes):
    res = resolve_line(sub_line("l1", "A", "S", 3, "g"), ingredients, {"S": 20.0}, recipes)
    assert res.warnings == ["MISSING_YIELD_ON_SUBRECIPE"]
    assert res.line_cost == pytest.approx(6.0)


def test_plain_recipe_as_component_has_no_yield_warning(ingredients, recipes):
    res = resolve_line(sub_line("l1", "A", "N", 3, "g"), ingredients, {"N": 20.0}, recipes)
    assert res.warnings == []
    assert res.line_cost == pytest.approx(6.0)


@pytest.mark.parametrize("sub_id", (None, "ghost"))
def test_missing_subrecipe_reference(ingredients, recipes, sub_id):
    line = RecipeLine(id="l1", recipe_id="A", line_type="subrecipe", sub_recipe_id=sub_id, qty=1, unit="portion")
    res = resolve_line(line, ingredients, {}, recipes)
    assert res.line_cost == 0
    assert res.warnings == ["MISSING_SUBRECIPE_REFERENCE"]


def test_subrecipe_not_yet_costed_is_zero(ingredients, recipes):
    res = resolve_line(sub_line("l1", "A", "B", 250, "g"), ingredients, {}, recipes)
    assert res.line_cost == 0


def test_group_line_costs_nothing(ingredients):
    line = RecipeLine(id="g1", recipe_id="R", line_type="group", qty=5, unit="kg")
    res = resolve_line(line, ingredients)
    assert res.unit_cost == 0
    assert res.line_cost == 0
    assert res.warnings == []


def test_resolve_is_pure(ingredients, recipes):
    line = sub_line("l1", "A", "B", 250, "g")
    costs = {"B": 10.0}
    assert resolve_line(line, ingredients, costs, recipes) == resolve_line(line, ingredients, costs, recipes)
    assert costs == {"B": 10.0}


def test_group_lines_keeps_order():
    lines = [ing_line("1", "A", "x", 1), ing_line("2", "B", "x", 1), ing_line("3", "A", "x", 1)]
    grouped = group_lines(lines)
    assert [l.id for l in grouped["A"]] == ["1", "3"]
    assert [l.id for l in grouped["B"]] == ["2"]
