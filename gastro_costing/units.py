# gastro_costing/units.py
# Einheiten: Normalisierung, Familien (Masse/Volumen/Stück) und Umrechnung

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .numeric import positive_or_none, to_num

# ============================================================
# EINHEITEN-TABELLEN
# ============================================================

MASS_TO_G: Dict[str, float] = {
    "mg": 0.001,
    "g": 1.0,
    "kg": 1000.0,
    "oz": 28.349523125,
    "lb": 453.59237,
}

VOLUME_TO_ML: Dict[str, float] = {
    "ml": 1.0,
    "l": 1000.0,
    "tsp": 4.92892159375,
    "tbsp": 14.78676478125,
    "cup": 236.5882365,
    "floz": 29.5735295625,
}

UNIT_SYNONYMS: Dict[str, str] = {
    "gram": "g", "grams": "g", "gr": "g", "gramm": "g",
    "kilogram": "kg", "kilograms": "kg", "kilo": "kg", "kilos": "kg", "kgs": "kg",
    "milligram": "mg", "milligrams": "mg",
    "ounce": "oz", "ounces": "oz",
    "pound": "lb", "pounds": "lb", "lbs": "lb",
    "milliliter": "ml", "milliliters": "ml", "millilitre": "ml", "millilitres": "ml",
    "liter": "l", "liters": "l", "litre": "l", "litres": "l",
    "teaspoon": "tsp", "teaspoons": "tsp", "tsps": "tsp",
    "tablespoon": "tbsp", "tablespoons": "tbsp", "tbsps": "tbsp",
    "cups": "cup",
    "fl oz": "floz", "fl_oz": "floz", "fl. oz": "floz",
    "fluid ounce": "floz", "fluid ounces": "floz",
    "each": "pcs", "ea": "pcs", "pc": "pcs", "piece": "pcs", "pieces": "pcs",
    "stk": "pcs", "stück": "pcs",
    "portions": "portion", "serving": "portion", "servings": "portion",
}

MASS = "mass"
VOLUME = "volume"
COUNT = "count"
PORTION = "portion"
OTHER = "other"


def normalize_unit(u: Optional[str]) -> str:
    """Trim + lowercase + Synonyme; leere Einheit gilt als Gramm."""
    x = (u or "").strip().lower()
    if not x:
        return "g"
    return UNIT_SYNONYMS.get(x, x)


def unit_family(u: Optional[str]) -> str:
    x = normalize_unit(u)
    if x in MASS_TO_G:
        return MASS
    if x in VOLUME_TO_ML:
        return VOLUME
    if x == "pcs":
        return COUNT
    if x == "portion":
        return PORTION
    return OTHER


# ============================================================
# ERGEBNIS-TYP
# ============================================================

class ConversionStatus(str, Enum):
    CONVERTED = "converted"
    UNSUPPORTED = "unsupported"
    # Menge unverändert durchgereicht, weil zwischen den Familien kein Umrechner existiert
    APPROXIMATED = "approximated"


@dataclass(frozen=True)
class ConversionResult:
    status: ConversionStatus
    value: Optional[float]
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != ConversionStatus.UNSUPPORTED

    @property
    def exact(self) -> bool:
        return self.status == ConversionStatus.CONVERTED


def _converted(value: float) -> ConversionResult:
    return ConversionResult(ConversionStatus.CONVERTED, value)


def _unsupported(reason: str) -> ConversionResult:
    return ConversionResult(ConversionStatus.UNSUPPORTED, None, reason)


# ============================================================
# KANONISCHE MENGEN (Gramm / Milliliter)
# ============================================================

def to_grams(qty: float, unit: Optional[str], density: Optional[float] = None,
             grams_per_piece: Optional[float] = None) -> ConversionResult:
    """
    Rechnet eine Menge in Gramm um.
    Volumen braucht eine Dichte (g/ml), Stück ein Stückgewicht (g/Stk);
    fehlen diese, ist das ein harter Abbruch, nie stillschweigend 0.
    """
    u = normalize_unit(unit)
    q = to_num(qty, 0.0)
    if u in MASS_TO_G:
        return _converted(q * MASS_TO_G[u])
    if u in VOLUME_TO_ML:
        d = positive_or_none(density)
        if d is None:
            return _unsupported("MISSING_DENSITY")
        return _converted(q * VOLUME_TO_ML[u] * d)
    if u == "pcs":
        gpp = positive_or_none(grams_per_piece)
        if gpp is None:
            return _unsupported("MISSING_GRAMS_PER_PIECE")
        return _converted(q * gpp)
    return _unsupported("UNSUPPORTED_UNIT")


def to_milliliters(qty: float, unit: Optional[str], density: Optional[float] = None,
                   grams_per_piece: Optional[float] = None) -> ConversionResult:
    """Gegenstück zu to_grams für Volumen; Masse/Stück nur über die Dichte."""
    u = normalize_unit(unit)
    q = to_num(qty, 0.0)
    if u in VOLUME_TO_ML:
        return _converted(q * VOLUME_TO_ML[u])
    if u in MASS_TO_G or u == "pcs":
        grams = to_grams(q, u, density, grams_per_piece)
        if not grams.ok:
            return grams
        d = positive_or_none(density)
        if d is None:
            return _unsupported("MISSING_DENSITY")
        return _converted(grams.value / d)
    return _unsupported("UNSUPPORTED_UNIT")


def _from_grams(grams: float, unit: str, density: Optional[float],
                grams_per_piece: Optional[float]) -> Optional[float]:
    if unit in MASS_TO_G:
        return grams / MASS_TO_G[unit]
    if unit in VOLUME_TO_ML:
        d = positive_or_none(density)
        return None if d is None else grams / d / VOLUME_TO_ML[unit]
    if unit == "pcs":
        gpp = positive_or_none(grams_per_piece)
        return None if gpp is None else grams / gpp
    return None


# ============================================================
# ALLGEMEINE UMRECHNUNG
# ============================================================

def convert_qty(qty: float, from_unit: Optional[str], to_unit: Optional[str],
                density: Optional[float] = None,
                grams_per_piece: Optional[float] = None) -> ConversionResult:
    """
    Rechnet qty von from_unit nach to_unit um.
    Ohne passenden Umrechner zwischen zwei Familien bleibt die Menge
    unverändert (Status APPROXIMATED) - bekannte Näherung, siehe DESIGN.md.
    """
    q = to_num(qty, 0.0)
    src = normalize_unit(from_unit)
    dst = normalize_unit(to_unit)
    if src == dst:
        return _converted(q)

    sf = unit_family(src)
    df = unit_family(dst)

    if sf == df:
        if sf == MASS:
            return _converted(q * MASS_TO_G[src] / MASS_TO_G[dst])
        if sf == VOLUME:
            return _converted(q * VOLUME_TO_ML[src] / VOLUME_TO_ML[dst])
        # pcs/portion/other: keine Umrechnung nötig
        return _converted(q)

    measurable = (MASS, VOLUME, COUNT)
    if sf in measurable and df in measurable:
        grams = to_grams(q, src, density, grams_per_piece)
        if grams.ok:
            value = _from_grams(grams.value, dst, density, grams_per_piece)
            if value is not None:
                return _converted(value)

    return ConversionResult(ConversionStatus.APPROXIMATED, q, "UNIT_FAMILY_MISMATCH")


def convert_within_family(qty: float, from_unit: Optional[str], to_unit: Optional[str]) -> float:
    """Numerische Sicht auf convert_qty (ohne Dichte/Stückgewicht)."""
    return convert_qty(qty, from_unit, to_unit).value
