# gastro_costing/costing.py
# Rezept-Summen: Gesamtkosten, Kosten pro Portion, Wareneinsatz %, Marge

from typing import Iterable, List, Mapping, Optional, Tuple

from .config import MAX_WARNINGS
from .models import LINE_GROUP, LineComputed, Recipe, RecipeLine, RecipeTotals
from .numeric import to_num

# ============================================================
# KERN-FUNKTIONEN
# ============================================================

def calc_cost_per_portion(total_cost: float, portions: float) -> float:
    """Gesamtkosten / Portionen (mind. 1 Portion)."""
    return to_num(total_cost, 0.0) / max(1.0, to_num(portions, 1.0))


def calc_food_cost_pct(cpp: float, selling_price: Optional[float]) -> Optional[float]:
    """Wareneinsatz in % vom Verkaufspreis; None ohne Verkaufspreis."""
    sell = max(0.0, to_num(selling_price, 0.0))
    if sell <= 0:
        return None
    return cpp / sell * 100


def calc_margin(cpp: float, selling_price: Optional[float]) -> Tuple[float, Optional[float]]:
    """(Marge, Marge %) pro Portion."""
    sell = max(0.0, to_num(selling_price, 0.0))
    margin = sell - cpp
    margin_pct = margin / sell * 100 if sell > 0 else None
    return margin, margin_pct


def dedupe_warnings(warnings: Iterable[str], limit: int = MAX_WARNINGS) -> List[str]:
    """Reihenfolge bleibt, Duplikate fliegen raus, max. `limit` Einträge."""
    seen = []
    for w in warnings:
        if w not in seen:
            seen.append(w)
    return seen[:max(0, limit)]


def sum_line_costs(lines: Iterable[RecipeLine], line_computed: Mapping[str, LineComputed]) -> float:
    total = 0.0
    for line in lines:
        if line.line_type == LINE_GROUP:
            continue
        c = line_computed.get(line.id)
        if c is not None:
            total += c.line_cost
    return total


# ============================================================
# REZEPT-SUMMEN
# ============================================================

def compute_recipe_totals(recipe: Recipe,
                          lines: Iterable[RecipeLine],
                          line_computed: Mapping[str, LineComputed],
                          max_warnings: int = MAX_WARNINGS,
                          total_cost: Optional[float] = None) -> RecipeTotals:
    """
    Summiert die Zeilenkosten eines Rezepts und leitet die Portions-Kennzahlen ab.
    total_cost kann vorgegeben werden (z.B. aus der Kostentabelle des Konvergenz-Laufs).
    """
    lines = list(lines)
    if total_cost is None:
        total_cost = sum_line_costs(lines, line_computed)

    warnings: List[str] = []
    for line in lines:
        if line.line_type == LINE_GROUP:
            continue
        c = line_computed.get(line.id)
        if c is not None:
            warnings.extend(c.warnings)

    cpp = calc_cost_per_portion(total_cost, recipe.safe_portions)
    margin, margin_pct = calc_margin(cpp, recipe.selling_price)

    return RecipeTotals(
        total_cost=total_cost,
        cpp=cpp,
        fc_pct=calc_food_cost_pct(cpp, recipe.selling_price),
        margin=margin,
        margin_pct=margin_pct,
        warnings=dedupe_warnings(warnings, max_warnings),
    )
