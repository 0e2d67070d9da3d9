# gastro_costing/report.py
# Auswertung für Dashboard/Konsole: Kennzahlen-Tabellen mit pandas, Baum-Ausgabe

from typing import Dict, Iterable, List, Optional

import pandas as pd

from .config import OUTLIER_THRESHOLD
from .convergence import CostEngineResult
from .lines import group_lines
from .models import LINE_GROUP, LINE_INGREDIENT, Ingredient, Recipe, RecipeLine
from .numeric import to_num

TOTALS_COLUMNS = [
    "recipe_id", "name", "portions", "is_subrecipe", "is_archived",
    "total_cost", "cpp", "fc_pct", "margin", "margin_pct", "warnings",
]


def totals_frame(recipes: Iterable[Recipe], result: CostEngineResult) -> pd.DataFrame:
    """Eine Zeile pro Rezept mit allen Kennzahlen."""
    rows = []
    for r in recipes:
        t = result.totals.get(r.id)
        if t is None:
            continue
        rows.append({
            "recipe_id": r.id,
            "name": r.name,
            "portions": r.safe_portions,
            "is_subrecipe": r.is_subrecipe,
            "is_archived": r.is_archived,
            "total_cost": t.total_cost,
            "cpp": t.cpp,
            "fc_pct": t.fc_pct,
            "margin": t.margin,
            "margin_pct": t.margin_pct,
            "warnings": ", ".join(t.warnings),
        })
    return pd.DataFrame(rows, columns=TOTALS_COLUMNS)


def ingredients_missing_cost(recipes: Iterable[Recipe],
                             lines: Iterable[RecipeLine],
                             ingredients: Iterable[Ingredient]) -> int:
    """Anzahl VERSCHIEDENER Rohstoffe in aktiven Rezepten ohne gültigen Preis."""
    active_ids = {r.id for r in recipes if not r.is_archived}
    used = {l.ingredient_id for l in lines if l.recipe_id in active_ids and l.ingredient_id}
    by_id = {i.id: i for i in ingredients}
    count = 0
    for ing_id in used:
        ing = by_id.get(ing_id)
        if ing is None or to_num(ing.net_unit_cost, 0.0) <= 0:
            count += 1
    return count


def dashboard_kpis(recipes: Iterable[Recipe],
                   lines: Iterable[RecipeLine],
                   ingredients: Iterable[Ingredient],
                   result: CostEngineResult,
                   outlier_threshold: float = OUTLIER_THRESHOLD) -> Dict:
    """Kennzahlen über alle nicht archivierten Rezepte."""
    recipes = list(recipes)
    df = totals_frame(recipes, result)
    active = df[~df["is_archived"].astype(bool)]

    top5 = active.sort_values("total_cost", ascending=False, kind="stable").head(5)
    missing_yield = [
        r.name for r in recipes
        if r.is_subrecipe and not r.is_archived and not r.has_yield
    ]

    kpis = {
        "active_recipes": int(len(active)),
        "avg_cpp": float(active["cpp"].mean()) if len(active) else 0.0,
        "total_active_cost": float(active["total_cost"].sum()),
        "most_expensive": None,
        "cheapest": None,
        "top5": top5[["recipe_id", "name", "total_cost", "cpp"]].to_dict("records"),
        "subrecipes_missing_yield": missing_yield,
        "has_outliers": bool((top5["total_cost"] > outlier_threshold).any()),
        "ingredients_missing_cost": ingredients_missing_cost(recipes, lines, ingredients),
        "diagnostics": result.diagnostics,
    }
    if len(active):
        hi = active.loc[active["total_cost"].idxmax()]
        lo = active.loc[active["total_cost"].idxmin()]
        kpis["most_expensive"] = {"id": hi["recipe_id"], "name": hi["name"], "total": float(hi["total_cost"])}
        kpis["cheapest"] = {"id": lo["recipe_id"], "name": lo["name"], "total": float(lo["total_cost"])}
    return kpis


def recipe_lines_frame(recipe_id: str,
                       recipes: Iterable[Recipe],
                       lines: Iterable[RecipeLine],
                       ingredients: Iterable[Ingredient],
                       result: CostEngineResult) -> pd.DataFrame:
    """Detailtabelle der Zeilen eines Rezepts."""
    recipe_by_id = {r.id: r for r in recipes}
    if recipe_id not in recipe_by_id:
        raise ValueError(f"Recipe {recipe_id} nicht gefunden")
    ing_by_id = {i.id: i for i in ingredients}

    rows: List[dict] = []
    for line in group_lines(lines).get(recipe_id, []):
        c = result.lines.get(line.id)
        if line.line_type == LINE_INGREDIENT:
            ing = ing_by_id.get(line.ingredient_id)
            name = ing.name if ing else f"? ({line.ingredient_id})"
        elif line.line_type == LINE_GROUP:
            name = "(Gruppe)"
        else:
            sub = recipe_by_id.get(line.sub_recipe_id)
            name = sub.name if sub else f"? ({line.sub_recipe_id})"
        rows.append({
            "line_id": line.id,
            "type": line.line_type,
            "name": name,
            "qty": line.qty,
            "unit": line.unit,
            "gross": c.gross if c else 0.0,
            "unit_cost": c.unit_cost if c else 0.0,
            "line_cost": c.line_cost if c else 0.0,
            "warnings": ", ".join(c.warnings) if c else "",
        })
    return pd.DataFrame(rows)


def print_recipe_calculation(recipe_id: str,
                             recipes: Iterable[Recipe],
                             lines: Iterable[RecipeLine],
                             ingredients: Iterable[Ingredient],
                             result: CostEngineResult,
                             currency: Optional[str] = None) -> None:
    """Formatierte Ausgabe einer Rezept-Kalkulation."""
    recipes = list(recipes)
    recipe = {r.id: r for r in recipes}.get(recipe_id)
    if recipe is None:
        raise ValueError(f"Recipe {recipe_id} nicht gefunden")
    cur = currency or recipe.currency
    df = recipe_lines_frame(recipe_id, recipes, lines, ingredients, result)
    t = result.totals[recipe_id]

    print(f"\n{'='*80}")
    print(f"REZEPT-KALKULATION: {recipe.name}")
    print(f"{'='*80}")
    print(f"├─ Portionen: {recipe.safe_portions}")
    if recipe.has_yield:
        print(f"├─ Ausbeute: {recipe.yield_qty:.2f} {recipe.yield_unit}")

    for row in df.itertuples():
        if row.type == LINE_GROUP:
            continue
        flag = f"  ⚠ {row.warnings}" if row.warnings else ""
        print(f"│  ├─ {row.name}: {row.qty:.2f} {row.unit} (brutto {row.gross:.2f}) "
              f"@ {row.unit_cost:.4f} = {row.line_cost:.2f} {cur}{flag}")

    print(f"├─ TOTAL: {t.total_cost:.2f} {cur}")
    print(f"├─ Kosten/Portion: {t.cpp:.2f} {cur}")
    if t.fc_pct is not None:
        print(f"├─ Wareneinsatz: {t.fc_pct:.1f}%")
        print(f"└─ Marge: {t.margin:.2f} {cur} ({t.margin_pct:.1f}%)")
    else:
        print("└─ Kein Verkaufspreis hinterlegt")
    print(f"{'='*80}\n")
