# gastro_costing/__main__.py
# Demo: Datenbank anlegen, alle Rezepte kalkulieren und ausgeben

import os

from .config import DB_PATH, setup_logging
from .convergence import converge_costs
from .nutrition import calc_all_nutrition
from .report import dashboard_kpis, print_recipe_calculation
from .storage import load_snapshot, setup_database


def main(db_path: str = DB_PATH) -> None:
    log = setup_logging()

    if not os.path.exists(db_path):
        setup_database(db_path)

    snap = load_snapshot(db_path)
    result = converge_costs(snap.recipes, snap.lines, snap.ingredients)
    diag = result.diagnostics
    log.info("Kalkulation: %d Durchläufe, konvergiert=%s", diag.passes, diag.converged)

    nutrition = calc_all_nutrition(snap.recipes, snap.lines, snap.ingredients)
    for recipe in snap.recipes:
        if recipe.is_archived:
            continue
        print_recipe_calculation(recipe.id, snap.recipes, snap.lines, snap.ingredients, result)
        n = nutrition[recipe.id].totals.per_portion(recipe.safe_portions)
        print(f"Nährwerte/Portion: {n.kcal:.0f} kcal, P {n.protein:.1f} g, "
              f"KH {n.carbs:.1f} g, F {n.fat:.1f} g")

    kpis = dashboard_kpis(snap.recipes, snap.lines, snap.ingredients, result)
    print(f"\nØ Kosten/Portion: {kpis['avg_cpp']:.2f}")
    print(f"Rohstoffe ohne Preis: {kpis['ingredients_missing_cost']}")
    if kpis["subrecipes_missing_yield"]:
        print(f"Sub-Rezepte ohne Ausbeute: {', '.join(kpis['subrecipes_missing_yield'])}")


if __name__ == "__main__":
    main()
