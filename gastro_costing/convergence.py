# gastro_costing/convergence.py
# Konvergenz-Lauf: Rezeptkosten wiederholt berechnen, bis sich nichts mehr ändert

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from .config import DEFAULT_CONFIG, EngineConfig
from .costing import compute_recipe_totals, sum_line_costs
from .lines import compute_line_computed, group_lines
from .models import (
    LINE_GROUP,
    CostDiagnostics,
    CostWarning,
    Ingredient,
    LineComputed,
    Recipe,
    RecipeLine,
    RecipeTotals,
)

log = logging.getLogger("gastro.convergence")


@dataclass
class CostEngineResult:
    recipe_total_cost: Dict[str, float] = field(default_factory=dict)
    totals: Dict[str, RecipeTotals] = field(default_factory=dict)
    lines: Dict[str, LineComputed] = field(default_factory=dict)
    diagnostics: CostDiagnostics = field(default_factory=CostDiagnostics)


def _count_warnings(lines: Iterable[RecipeLine], results: Dict[str, LineComputed]) -> CostDiagnostics:
    diag = CostDiagnostics()
    for line in lines:
        if line.line_type == LINE_GROUP:
            continue
        c = results.get(line.id)
        if c is None:
            continue
        for w in c.warnings:
            if w == CostWarning.UNIT_FAMILY_MISMATCH.value:
                diag.unit_mismatch_count += 1
            elif w == CostWarning.MISSING_YIELD_ON_SUBRECIPE.value:
                diag.missing_yield_subrecipe_count += 1
            elif w == CostWarning.INGREDIENT_WITHOUT_PRICE.value:
                diag.missing_ingredient_cost_count += 1
            elif w == CostWarning.MISSING_INGREDIENT.value:
                diag.missing_ingredient_count += 1
            elif w == CostWarning.MISSING_SUBRECIPE_REFERENCE.value:
                diag.missing_subrecipe_reference_count += 1
    return diag


def converge_costs(recipes: Iterable[Recipe],
                   lines: Iterable[RecipeLine],
                   ingredients: Iterable[Ingredient],
                   config: Optional[EngineConfig] = None) -> CostEngineResult:
    """
    Fixpunkt-Iteration über alle Rezepte.

    Jeder Durchlauf liest die Sub-Rezept-Kosten aus dem Stand zu Beginn
    des Durchlaufs (Snapshot), damit das Ergebnis nicht von der Reihenfolge
    abhängt. Zyklen werden nicht erkannt: nach max_passes Durchläufen
    bleiben die zuletzt berechneten Werte stehen.
    """
    cfg = (config or DEFAULT_CONFIG).normalized()
    recipes = list(recipes)
    lines = list(lines)

    ing_by_id = {i.id: i for i in ingredients}
    recipe_by_id = {r.id: r for r in recipes}
    lines_by_recipe = group_lines(lines)

    totals: Dict[str, float] = {r.id: 0.0 for r in recipes}
    line_results: Dict[str, LineComputed] = {}
    passes = 0
    converged = False
    last_delta = 0.0

    for pass_no in range(1, cfg.max_passes + 1):
        snapshot = dict(totals)
        pass_results: Dict[str, LineComputed] = {}
        changed = 0
        overflowed = 0
        max_delta = 0.0

        for r in recipes:
            r_lines = lines_by_recipe.get(r.id, [])
            computed = compute_line_computed(r_lines, ing_by_id, snapshot, recipe_by_id)
            pass_results.update(computed)

            new_total = sum_line_costs(r_lines, computed)
            if not math.isfinite(new_total):
                # Überlauf: letzter endlicher Wert bleibt stehen
                overflowed += 1
                continue
            delta = abs(new_total - snapshot.get(r.id, 0.0))
            max_delta = max(max_delta, delta)
            if delta > cfg.epsilon:
                totals[r.id] = new_total
                changed += 1

        passes = pass_no
        line_results = pass_results
        last_delta = max_delta
        log.debug("Durchlauf %d: %d Rezepte geändert, max. Delta %.3g", pass_no, changed, max_delta)

        if overflowed:
            log.debug("Durchlauf %d: %d Rezepte übergelaufen", pass_no, overflowed)
        if not changed and not overflowed:
            converged = True
            break

    if not converged:
        log.warning("Keine Konvergenz nach %d Durchläufen (Delta %.3g), evtl. Zyklus in Sub-Rezepten",
                    passes, last_delta)

    diag = _count_warnings(lines, line_results)
    diag.passes = passes
    diag.converged = converged
    diag.last_delta = last_delta

    result = CostEngineResult(recipe_total_cost=totals, lines=line_results, diagnostics=diag)
    for r in recipes:
        result.totals[r.id] = compute_recipe_totals(
            r, lines_by_recipe.get(r.id, []), line_results,
            max_warnings=cfg.max_warnings, total_cost=totals[r.id],
        )
    return result
