# gastro_costing/nutrition.py
# Nährwerte: kcal / Protein / Kohlenhydrate / Fett pro Rezept aus den Zutaten-Zeilen

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping

from .lines import group_lines
from .models import (
    LINE_GROUP,
    LINE_INGREDIENT,
    CalcDiagnostics,
    Ingredient,
    Recipe,
    RecipeLine,
    SkipReason,
)
from .numeric import round_to, to_optional_num
from .units import to_grams

log = logging.getLogger("gastro.nutrition")

NUTRIENTS = ("kcal", "protein", "carbs", "fat")


@dataclass(frozen=True)
class NutritionTotals:
    kcal: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    def per_portion(self, portions: int) -> "NutritionTotals":
        p = max(1, int(portions or 1))
        return NutritionTotals(
            kcal=round_to(self.kcal / p),
            protein=round_to(self.protein / p),
            carbs=round_to(self.carbs / p),
            fat=round_to(self.fat / p),
        )

    def as_dict(self) -> Dict[str, float]:
        return {"kcal": self.kcal, "protein": self.protein, "carbs": self.carbs, "fat": self.fat}


@dataclass
class NutritionResult:
    totals: NutritionTotals = field(default_factory=NutritionTotals)
    diagnostics: CalcDiagnostics = field(default_factory=CalcDiagnostics)


_UNIT_REASONS = {
    "MISSING_DENSITY": SkipReason.MISSING_DENSITY,
    "MISSING_GRAMS_PER_PIECE": SkipReason.MISSING_GRAMS_PER_PIECE,
    "UNSUPPORTED_UNIT": SkipReason.UNSUPPORTED_UNIT,
}


def calc_recipe_nutrition(lines: Iterable[RecipeLine],
                          ingredients: Mapping[str, Ingredient]) -> NutritionResult:
    """
    Nährwerte eines Rezepts. Nur direkte Zutaten-Zeilen zählen,
    Sub-Rezepte werden immer mit NO_INGREDIENT_ID übersprungen.
    Gruppen-Überschriften zählen nicht als Zeile, inaktive Rohstoffe
    gelten wie auf der Kostenseite als nicht vorhanden.
    """
    diag = CalcDiagnostics()
    sums = {k: 0.0 for k in NUTRIENTS}

    for line in lines:
        if line.line_type == LINE_GROUP:
            continue
        diag.total_lines += 1

        if line.line_type != LINE_INGREDIENT or not line.ingredient_id:
            diag.skip(line.id, SkipReason.NO_INGREDIENT_ID)
            continue

        ing = ingredients.get(line.ingredient_id)
        if ing is None or not ing.is_active:
            diag.skip(line.id, SkipReason.NO_INGREDIENT_JOIN, line.ingredient_id)
            continue

        qty = to_optional_num(line.qty)
        if qty is None or qty <= 0:
            diag.skip(line.id, SkipReason.BAD_QTY, repr(line.qty))
            continue

        if not ing.has_nutrition:
            diag.skip(line.id, SkipReason.MISSING_NUTRITION, ing.name)
            continue

        grams = to_grams(qty, line.unit, ing.density_g_per_ml, ing.grams_per_piece)
        if not grams.ok:
            diag.skip(line.id, _UNIT_REASONS.get(grams.reason, SkipReason.UNSUPPORTED_UNIT), line.unit)
            continue

        diag.used_lines += 1
        for key, per100 in ing.nutrition.items():
            if per100:
                sums[key] += per100 * grams.value / 100

    if diag.skipped_lines:
        log.debug("Nährwerte: %d von %d Zeilen übersprungen %s",
                  diag.skipped_lines, diag.total_lines, diag.reasons())

    totals = NutritionTotals(**{k: round_to(v) for k, v in sums.items()})
    return NutritionResult(totals=totals, diagnostics=diag)


def calc_all_nutrition(recipes: Iterable[Recipe],
                       lines: Iterable[RecipeLine],
                       ingredients: Iterable[Ingredient]) -> Dict[str, NutritionResult]:
    """Nährwerte für mehrere Rezepte, nach Rezept-ID."""
    ing_by_id = {i.id: i for i in ingredients}
    by_recipe = group_lines(lines)
    return {
        r.id: calc_recipe_nutrition(by_recipe.get(r.id, []), ing_by_id)
        for r in recipes
    }
