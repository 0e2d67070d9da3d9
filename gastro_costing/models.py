# gastro_costing/models.py
# Datenmodell: Rohstoffe, Rezepte, Rezeptzeilen und abgeleitete Ergebnisse

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .numeric import positive_or_none, to_num, to_optional_num

# ============================================================
# WARNUNGEN & SKIP-GRÜNDE
# ============================================================

class CostWarning(str, Enum):
    MISSING_INGREDIENT = "MISSING_INGREDIENT"
    INGREDIENT_WITHOUT_PRICE = "INGREDIENT_WITHOUT_PRICE"
    MISSING_SUBRECIPE_REFERENCE = "MISSING_SUBRECIPE_REFERENCE"
    MISSING_YIELD_ON_SUBRECIPE = "MISSING_YIELD_ON_SUBRECIPE"
    UNIT_FAMILY_MISMATCH = "UNIT_FAMILY_MISMATCH"


class SkipReason(str, Enum):
    NO_INGREDIENT_ID = "NO_INGREDIENT_ID"
    NO_INGREDIENT_JOIN = "NO_INGREDIENT_JOIN"
    BAD_QTY = "BAD_QTY"
    UNSUPPORTED_UNIT = "UNSUPPORTED_UNIT"
    MISSING_DENSITY = "MISSING_DENSITY"
    MISSING_GRAMS_PER_PIECE = "MISSING_GRAMS_PER_PIECE"
    MISSING_NUTRITION = "MISSING_NUTRITION"


LINE_INGREDIENT = "ingredient"
LINE_SUBRECIPE = "subrecipe"
LINE_GROUP = "group"
LINE_TYPES = (LINE_INGREDIENT, LINE_SUBRECIPE, LINE_GROUP)


def _clean(x: Any) -> Any:
    """NULL aus DB/pandas (None, NaN) -> None."""
    if x is None:
        return None
    if isinstance(x, float) and math.isnan(x):
        return None
    return x


def _opt_str(x: Any) -> Optional[str]:
    x = _clean(x)
    if x is None:
        return None
    s = str(x).strip()
    return s or None


def _id(x: Any) -> Optional[str]:
    """IDs als String; pandas macht aus INTEGER-Spalten mit NULL floats (1.0)."""
    x = _clean(x)
    if isinstance(x, float) and x.is_integer():
        x = int(x)
    return _opt_str(x)


def _flag(x: Any, default: bool = False) -> bool:
    x = _clean(x)
    if x is None:
        return default
    if isinstance(x, str):
        return x.strip().lower() in ("1", "true", "yes", "t")
    return bool(x)


# ============================================================
# EINGABEN (vom Storage geliefert, nie verändert)
# ============================================================

@dataclass(frozen=True)
class IngredientCosts:
    gross_unit_cost: float
    net_unit_cost: float


def calc_ingredient_costs(pack_price: Any, pack_size: Any, yield_percent: Any = 100) -> IngredientCosts:
    """Stückpreis aus Gebindepreis; Netto berücksichtigt die Ausbeute."""
    price = to_num(pack_price, 0.0)
    size = to_num(pack_size, 0.0)
    yld = to_num(yield_percent, 100.0)
    if size <= 0 or yld <= 0:
        return IngredientCosts(0.0, 0.0)
    gross = price / size
    return IngredientCosts(gross, gross / (yld / 100))


@dataclass(frozen=True)
class Ingredient:
    id: str
    name: str = ""
    pack_unit: Optional[str] = None
    net_unit_cost: Optional[float] = None
    density_g_per_ml: Optional[float] = None
    grams_per_piece: Optional[float] = None
    kcal_per_100g: Optional[float] = None
    protein_per_100g: Optional[float] = None
    carbs_per_100g: Optional[float] = None
    fat_per_100g: Optional[float] = None
    is_active: bool = True

    @property
    def nutrition(self) -> Dict[str, Optional[float]]:
        return {
            "kcal": self.kcal_per_100g,
            "protein": self.protein_per_100g,
            "carbs": self.carbs_per_100g,
            "fat": self.fat_per_100g,
        }

    @property
    def has_nutrition(self) -> bool:
        return any(v is not None and v > 0 for v in self.nutrition.values())

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Ingredient":
        net = to_optional_num(_clean(row.get("net_unit_cost")))
        if net is None and _clean(row.get("pack_price")) is not None:
            net = calc_ingredient_costs(
                row.get("pack_price"), row.get("pack_size"),
                _clean(row.get("yield_percent")) or 100,
            ).net_unit_cost

        def nutr(key: str) -> Optional[float]:
            v = to_optional_num(_clean(row.get(key)))
            return None if v is None else max(0.0, v)

        return cls(
            id=_id(row["id"]) or "",
            name=_opt_str(row.get("name")) or "",
            pack_unit=_opt_str(row.get("pack_unit")),
            net_unit_cost=net,
            density_g_per_ml=positive_or_none(_clean(row.get("density_g_per_ml"))),
            grams_per_piece=positive_or_none(_clean(row.get("grams_per_piece"))),
            kcal_per_100g=nutr("kcal_per_100g"),
            protein_per_100g=nutr("protein_per_100g"),
            carbs_per_100g=nutr("carbs_per_100g"),
            fat_per_100g=nutr("fat_per_100g"),
            is_active=_flag(row.get("is_active"), default=True),
        )


@dataclass(frozen=True)
class Recipe:
    id: str
    name: str = ""
    portions: int = 1
    yield_qty: Optional[float] = None
    yield_unit: Optional[str] = None
    selling_price: Optional[float] = None
    is_subrecipe: bool = False
    is_archived: bool = False
    currency: str = "USD"

    @property
    def safe_portions(self) -> int:
        p = to_num(self.portions, 1)
        return int(p) if p >= 1 and p.is_integer() else 1

    @property
    def has_yield(self) -> bool:
        return to_num(self.yield_qty, 0) > 0 and bool((self.yield_unit or "").strip())

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Recipe":
        portions = to_num(_clean(row.get("portions")), 1)
        return cls(
            id=_id(row["id"]) or "",
            name=_opt_str(row.get("name")) or "",
            portions=int(portions) if portions >= 1 and portions.is_integer() else 1,
            yield_qty=to_optional_num(_clean(row.get("yield_qty"))),
            yield_unit=_opt_str(row.get("yield_unit")),
            selling_price=to_optional_num(_clean(row.get("selling_price"))),
            is_subrecipe=_flag(row.get("is_subrecipe")),
            is_archived=_flag(row.get("is_archived")),
            currency=(_opt_str(row.get("currency")) or "USD").upper(),
        )


@dataclass(frozen=True)
class RecipeLine:
    id: str
    recipe_id: str
    line_type: str = LINE_INGREDIENT
    ingredient_id: Optional[str] = None
    sub_recipe_id: Optional[str] = None
    qty: float = 0.0
    unit: str = "g"
    yield_percent: float = 100.0
    gross_qty_override: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any], fallback_id: Optional[str] = None) -> "RecipeLine":
        ingredient_id = _id(row.get("ingredient_id"))
        sub_recipe_id = _id(row.get("sub_recipe_id"))
        line_type = (_opt_str(row.get("line_type")) or "").lower()
        if line_type not in LINE_TYPES:
            if ingredient_id:
                line_type = LINE_INGREDIENT
            elif sub_recipe_id:
                line_type = LINE_SUBRECIPE
            else:
                line_type = LINE_GROUP

        line_id = _id(row.get("id")) or fallback_id
        if line_id is None:
            raise ValueError("Rezeptzeile ohne id")

        return cls(
            id=line_id,
            recipe_id=_id(row["recipe_id"]) or "",
            line_type=line_type,
            ingredient_id=ingredient_id,
            sub_recipe_id=sub_recipe_id,
            qty=to_num(_clean(row.get("qty")), 0.0),
            unit=_opt_str(row.get("unit")) or "g",
            yield_percent=to_num(_clean(row.get("yield_percent")), 100.0),
            gross_qty_override=to_optional_num(_clean(row.get("gross_qty_override"))),
        )


# ============================================================
# ABGELEITETE ERGEBNISSE
# ============================================================

@dataclass(frozen=True)
class LineComputed:
    net: float
    gross: float
    yield_pct: float
    unit_cost: float
    line_cost: float
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RecipeTotals:
    total_cost: float
    cpp: float
    fc_pct: Optional[float]
    margin: float
    margin_pct: Optional[float]
    warnings: List[str] = field(default_factory=list)


@dataclass
class CostDiagnostics:
    unit_mismatch_count: int = 0
    missing_yield_subrecipe_count: int = 0
    missing_ingredient_cost_count: int = 0
    missing_ingredient_count: int = 0
    missing_subrecipe_reference_count: int = 0
    passes: int = 0
    converged: bool = False
    last_delta: float = 0.0


@dataclass(frozen=True)
class SkippedLine:
    line_id: str
    reason: SkipReason
    detail: str = ""


@dataclass
class CalcDiagnostics:
    total_lines: int = 0
    used_lines: int = 0
    skipped_lines: int = 0
    skipped: List[SkippedLine] = field(default_factory=list)

    def skip(self, line_id: str, reason: SkipReason, detail: str = "") -> None:
        self.skipped_lines += 1
        self.skipped.append(SkippedLine(line_id, reason, detail))

    def reasons(self) -> Dict[str, int]:
        """Skip-Gründe gezählt (für Warn-Chips in der UI)."""
        out: Dict[str, int] = {}
        for s in self.skipped:
            out[s.reason.value] = out.get(s.reason.value, 0) + 1
        return out
