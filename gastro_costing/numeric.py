# gastro_costing/numeric.py
# Zahlen-Helfer: sichere Umwandlung, Begrenzung, Rundung, Portionen-Skalierung

import math
from typing import Any, Optional


def to_num(x: Any, fallback: float = 0.0) -> float:
    """Wandelt beliebige Eingaben in eine endliche Zahl um, sonst fallback."""
    if x is None or isinstance(x, bool):
        return fallback
    try:
        n = float(x)
    except (TypeError, ValueError):
        return fallback
    return n if math.isfinite(n) else fallback


def to_optional_num(x: Any) -> Optional[float]:
    """Wie to_num, aber None statt fallback (für nullable Felder)."""
    if x is None or isinstance(x, bool):
        return None
    try:
        n = float(x)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def clamp(n: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, n))


def round_to(n: float, places: int = 2) -> float:
    return round(to_num(n, 0.0), places)


def positive_or_none(x: Any) -> Optional[float]:
    """Gibt den Wert nur zurück, wenn er > 0 ist (Dichte, Stückgewicht, Ausbeute)."""
    n = to_optional_num(x)
    if n is None or n <= 0:
        return None
    return n


def scale_quantity(qty: Any, from_servings: Any, to_servings: Any) -> float:
    """
    Skaliert eine Menge von einer Portionenzahl auf eine andere.
    3 Nachkommastellen reichen für die Küche.
    """
    q = to_optional_num(qty)
    if q is None:
        return 0.0
    a = to_optional_num(from_servings)
    b = to_optional_num(to_servings)
    if a is None or a <= 0 or b is None or b <= 0:
        return q
    return round(q * (b / a), 3)
