# gastro_costing/__init__.py
# Rezept-Kalkulation: Kosten-Konvergenz über Sub-Rezepte + Nährwerte

from .config import EngineConfig
from .convergence import CostEngineResult, converge_costs
from .costing import compute_recipe_totals
from .lines import resolve_line
from .models import (
    CalcDiagnostics,
    CostDiagnostics,
    CostWarning,
    Ingredient,
    LineComputed,
    Recipe,
    RecipeLine,
    RecipeTotals,
    SkipReason,
)
from .nutrition import NutritionResult, calc_all_nutrition, calc_recipe_nutrition
from .units import ConversionResult, ConversionStatus, convert_qty, to_grams, to_milliliters

__version__ = "1.1.0"
