# gastro_costing/lines.py
# Zeilen-Kalkulation: Netto/Brutto-Menge, Stückkosten und Zeilenkosten

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .models import (
    LINE_INGREDIENT,
    LINE_SUBRECIPE,
    CostWarning,
    Ingredient,
    LineComputed,
    Recipe,
    RecipeLine,
)
from .numeric import clamp, to_num
from .units import ConversionStatus, convert_qty, normalize_unit, unit_family

log = logging.getLogger("gastro.lines")

MIN_YIELD_PCT = 0.0001


def net_and_gross(line: RecipeLine) -> Tuple[float, float, float]:
    """(net, gross, yield_pct) einer Zeile; Override hat Vorrang vor der Ausbeute."""
    net = max(0.0, to_num(line.qty, 0.0))
    yield_pct = clamp(to_num(line.yield_percent, 100.0), MIN_YIELD_PCT, 100.0)
    override = to_num(line.gross_qty_override, 0.0)
    gross = override if override > 0 else net / (yield_pct / 100)
    return net, gross, yield_pct


def _resolve_ingredient(line: RecipeLine, gross: float,
                        ingredients: Mapping[str, Ingredient],
                        warnings: List[str]) -> Tuple[float, float]:
    ing = ingredients.get(line.ingredient_id) if line.ingredient_id else None
    if ing is None or not ing.is_active:
        warnings.append(CostWarning.MISSING_INGREDIENT.value)
        return 0.0, 0.0

    unit_cost = to_num(ing.net_unit_cost, 0.0)
    if unit_cost <= 0:
        warnings.append(CostWarning.INGREDIENT_WITHOUT_PRICE.value)
        return 0.0, 0.0

    pack_unit = ing.pack_unit or line.unit
    conv = convert_qty(gross, line.unit, pack_unit,
                       density=ing.density_g_per_ml,
                       grams_per_piece=ing.grams_per_piece)
    if conv.status == ConversionStatus.APPROXIMATED:
        log.debug("Zeile %s: %s -> %s nicht umrechenbar, Menge unverändert",
                  line.id, line.unit, pack_unit)
        warnings.append(CostWarning.UNIT_FAMILY_MISMATCH.value)
    return unit_cost, conv.value * unit_cost


def _resolve_subrecipe(line: RecipeLine, gross: float,
                       subrecipe_costs: Mapping[str, float],
                       recipes: Mapping[str, Recipe],
                       warnings: List[str]) -> Tuple[float, float]:
    sub = recipes.get(line.sub_recipe_id) if line.sub_recipe_id else None
    if sub is None:
        warnings.append(CostWarning.MISSING_SUBRECIPE_REFERENCE.value)
        return 0.0, 0.0

    sub_total = max(0.0, to_num(subrecipe_costs.get(sub.id, 0.0), 0.0))
    sub_cpp = sub_total / sub.safe_portions
    u = normalize_unit(line.unit)

    if u == "portion":
        return sub_cpp, gross * sub_cpp

    # Sub-Rezept mit Ausbeute -> Kosten pro Ausbeute-Einheit
    if sub.has_yield and unit_family(u) == unit_family(sub.yield_unit):
        yield_qty = to_num(sub.yield_qty, 0.0)
        cost_per_yield_unit = sub_total / yield_qty
        conv = convert_qty(gross, u, sub.yield_unit)
        return cost_per_yield_unit, conv.value * cost_per_yield_unit

    if sub.is_subrecipe:
        warnings.append(CostWarning.MISSING_YIELD_ON_SUBRECIPE.value)

    # Fallback: Kosten pro Portion
    return sub_cpp, gross * sub_cpp


def resolve_line(line: RecipeLine,
                 ingredients: Mapping[str, Ingredient],
                 subrecipe_costs: Optional[Mapping[str, float]] = None,
                 recipes: Optional[Mapping[str, Recipe]] = None) -> LineComputed:
    """
    Berechnet eine Rezeptzeile. Wirft nie: Datenprobleme landen als
    Warn-Codes im Ergebnis, die Zeile kostet dann 0.
    """
    warnings: List[str] = []
    net, gross, yield_pct = net_and_gross(line)

    if line.line_type == LINE_INGREDIENT:
        unit_cost, line_cost = _resolve_ingredient(line, gross, ingredients, warnings)
    elif line.line_type == LINE_SUBRECIPE:
        unit_cost, line_cost = _resolve_subrecipe(
            line, gross, subrecipe_costs or {}, recipes or {}, warnings
        )
    else:
        # Gruppen-Überschrift
        unit_cost, line_cost = 0.0, 0.0

    return LineComputed(
        net=net,
        gross=gross,
        yield_pct=yield_pct,
        unit_cost=unit_cost,
        line_cost=line_cost,
        warnings=warnings,
    )


def compute_line_computed(lines: Iterable[RecipeLine],
                          ingredients: Mapping[str, Ingredient],
                          subrecipe_costs: Optional[Mapping[str, float]] = None,
                          recipes: Optional[Mapping[str, Recipe]] = None) -> Dict[str, LineComputed]:
    """Alle Zeilen auf einmal, Ergebnis nach Zeilen-ID."""
    return {
        line.id: resolve_line(line, ingredients, subrecipe_costs, recipes)
        for line in lines
    }


def group_lines(lines: Iterable[RecipeLine]) -> Dict[str, List[RecipeLine]]:
    """Zeilen nach Rezept-ID, Reihenfolge bleibt erhalten."""
    by_recipe: Dict[str, List[RecipeLine]] = {}
    for line in lines:
        by_recipe.setdefault(line.recipe_id, []).append(line)
    return by_recipe
