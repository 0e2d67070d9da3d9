# gastro_costing/config.py
# Konfiguration der Kalkulations-Engine (Umgebungsvariablen + Defaults)

import logging
import os
from dataclasses import dataclass
from typing import Optional

# ============================================================
# KONSTANTEN
# ============================================================

MAX_PASSES: int = int(os.getenv("GASTRO_MAX_PASSES", "12"))
EPSILON: float = float(os.getenv("GASTRO_EPSILON", "1e-7"))
MAX_WARNINGS: int = int(os.getenv("GASTRO_MAX_WARNINGS", "4"))
OUTLIER_THRESHOLD: float = float(os.getenv("GASTRO_OUTLIER_THRESHOLD", "10000"))
DB_PATH: str = os.getenv("GASTRO_DB_PATH", "gastro.db")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class EngineConfig:
    """Parameter für einen Kalkulationslauf."""
    max_passes: int = MAX_PASSES
    epsilon: float = EPSILON
    max_warnings: int = MAX_WARNINGS

    def normalized(self) -> "EngineConfig":
        """Korrigiert unsinnige Werte (mind. 1 Durchlauf, Epsilon >= 0)."""
        return EngineConfig(
            max_passes=max(1, int(self.max_passes)),
            epsilon=max(0.0, float(self.epsilon)),
            max_warnings=max(0, int(self.max_warnings)),
        )


DEFAULT_CONFIG = EngineConfig()


# ============================================================
# LOGGING
# ============================================================

def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Globales Logging für Skripte; die Bibliothek selbst setzt keine Handler."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
    return logging.getLogger("gastro")
