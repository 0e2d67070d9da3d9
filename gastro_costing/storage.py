# gastro_costing/storage.py
# SQLite-Anbindung: Schema, Demo-Daten und Laden eines Snapshots für die Engine

import logging
import os
import sqlite3
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import pandas as pd

from .config import DB_PATH
from .models import Ingredient, Recipe, RecipeLine

log = logging.getLogger("gastro.storage")

# ============================================================
# SCHEMA & DEMO-DATEN
# ============================================================

SCHEMA = """
DROP TABLE IF EXISTS recipe_lines;
DROP TABLE IF EXISTS recipes;
DROP TABLE IF EXISTS ingredients;

CREATE TABLE ingredients (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    pack_unit TEXT,
    net_unit_cost REAL,
    pack_price REAL,
    pack_size REAL,
    yield_percent REAL,
    density_g_per_ml REAL,
    grams_per_piece REAL,
    kcal_per_100g REAL CHECK(kcal_per_100g IS NULL OR kcal_per_100g >= 0),
    protein_per_100g REAL CHECK(protein_per_100g IS NULL OR protein_per_100g >= 0),
    carbs_per_100g REAL CHECK(carbs_per_100g IS NULL OR carbs_per_100g >= 0),
    fat_per_100g REAL CHECK(fat_per_100g IS NULL OR fat_per_100g >= 0),
    is_active INTEGER DEFAULT 1,
    supplier TEXT,
    last_update DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE recipes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    portions INTEGER DEFAULT 1,
    yield_qty REAL,
    yield_unit TEXT,
    is_archived INTEGER DEFAULT 0,
    is_subrecipe INTEGER DEFAULT 0,
    selling_price REAL,
    currency TEXT DEFAULT 'CHF'
);

CREATE TABLE recipe_lines (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    recipe_id INTEGER NOT NULL,
    line_type TEXT NOT NULL CHECK(line_type IN ('ingredient', 'subrecipe', 'group')),
    ingredient_id INTEGER,
    sub_recipe_id INTEGER,
    qty REAL DEFAULT 0,
    unit TEXT DEFAULT 'g',
    yield_percent REAL DEFAULT 100,
    gross_qty_override REAL,
    FOREIGN KEY (recipe_id) REFERENCES recipes(id),
    FOREIGN KEY (ingredient_id) REFERENCES ingredients(id),
    FOREIGN KEY (sub_recipe_id) REFERENCES recipes(id)
);

CREATE INDEX idx_recipe_lines_recipe ON recipe_lines(recipe_id);
CREATE INDEX idx_recipe_lines_ingredient ON recipe_lines(ingredient_id);
CREATE INDEX idx_recipe_lines_subrecipe ON recipe_lines(sub_recipe_id);
"""

DEMO_DATA = """
-- Rohstoffe (Preis pro Gebinde-Einheit)
INSERT INTO ingredients (name, pack_unit, net_unit_cost, pack_price, pack_size, yield_percent,
                         density_g_per_ml, grams_per_piece,
                         kcal_per_100g, protein_per_100g, carbs_per_100g, fat_per_100g, supplier) VALUES
('Kalbsknochen', 'kg', 1.50, NULL, NULL, NULL, NULL, NULL, NULL, NULL, NULL, NULL, 'Transgourmet'),
('Mirepoix-Gemüse', 'kg', 3.33, NULL, NULL, NULL, NULL, NULL, 35, 1.0, 7.0, 0.2, 'Prodega'),
('Weisswein', 'l', 7.00, NULL, NULL, NULL, 0.99, NULL, 82, 0.1, 2.6, 0, 'Rahm'),
('Tomatenpüree', 'kg', 4.50, NULL, NULL, NULL, NULL, NULL, 82, 4.3, 19.0, 0.5, 'Transgourmet'),
('Cognac', 'l', 45.00, NULL, NULL, NULL, 0.95, NULL, 231, 0, 0, 0, 'Rahm'),
('Schalotten', 'kg', 8.00, NULL, NULL, NULL, NULL, NULL, 72, 2.5, 17.0, 0.1, 'Prodega'),
('Morcheln getrocknet', 'kg', 380.00, NULL, NULL, NULL, NULL, NULL, 296, 24.0, 45.0, 1.6, 'Delikatessen AG'),
('Portwein', 'l', 22.00, NULL, NULL, NULL, 1.02, NULL, 160, 0.1, 12.0, 0, 'Rahm'),
('Eier', 'pcs', 0.45, NULL, NULL, NULL, NULL, 60, 143, 12.6, 0.7, 9.5, 'Prodega'),
('Butter', 'kg', NULL, 12.80, 1.0, 100, 0.91, NULL, 717, 0.9, 0.1, 81.0, 'Emmi');

-- Rezepturen
INSERT INTO recipes (name, portions, yield_qty, yield_unit, is_subrecipe, selling_price) VALUES
('Grundfond Kalb', 1, 60.0, 'l', 1, NULL),
('Demi-Glace Classique', 1, 22.5, 'l', 1, NULL),
('Sauce Périgueux', 40, 9.0, 'l', 0, 9.50),
('Sauce Hollandaise', 10, NULL, NULL, 0, 6.00);

-- Grundfond: nur Rohstoffe
INSERT INTO recipe_lines (recipe_id, line_type, ingredient_id, sub_recipe_id, qty, unit, yield_percent) VALUES
(1, 'ingredient', 1, NULL, 100.0, 'kg', 100),
(1, 'ingredient', 2, NULL, 30.0, 'kg', 80),
(1, 'ingredient', 3, NULL, 20.0, 'l', 100);

-- Demi-Glace: Grundfond + Rohstoffe
INSERT INTO recipe_lines (recipe_id, line_type, ingredient_id, sub_recipe_id, qty, unit, yield_percent) VALUES
(2, 'subrecipe', NULL, 1, 50.0, 'l', 100),
(2, 'ingredient', 4, NULL, 5.0, 'kg', 100),
(2, 'ingredient', 5, NULL, 500.0, 'ml', 100);

-- Sauce Périgueux: Demi-Glace + Luxus-Zutaten
INSERT INTO recipe_lines (recipe_id, line_type, ingredient_id, sub_recipe_id, qty, unit, yield_percent) VALUES
(3, 'subrecipe', NULL, 2, 10.0, 'l', 100),
(3, 'ingredient', 6, NULL, 500.0, 'g', 90),
(3, 'ingredient', 7, NULL, 100.0, 'g', 100),
(3, 'ingredient', 8, NULL, 1.5, 'l', 100);

-- Hollandaise: Gruppe + Rohstoffe in Stück/Gramm/Tassen
INSERT INTO recipe_lines (recipe_id, line_type, ingredient_id, sub_recipe_id, qty, unit, yield_percent) VALUES
(4, 'group', NULL, NULL, 0, '', 100),
(4, 'ingredient', 9, NULL, 6, 'pcs', 100),
(4, 'ingredient', 10, NULL, 250, 'g', 100),
(4, 'ingredient', 3, NULL, 0.5, 'cup', 100);
"""


def setup_database(db_path: str = DB_PATH, with_demo: bool = True) -> None:
    """Erstellt die Datenbank mit Schema und (optional) Test-Daten."""
    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.cursor()
        cursor.executescript(SCHEMA)
        if with_demo:
            cursor.executescript(DEMO_DATA)
        conn.commit()
    finally:
        conn.close()
    log.info("Datenbank '%s' erfolgreich erstellt.", db_path)


# ============================================================
# SNAPSHOT
# ============================================================

@dataclass(frozen=True)
class Snapshot:
    """Unveränderlicher Stand aller Engine-Eingaben für einen Lauf."""
    recipes: List[Recipe] = field(default_factory=list)
    lines: List[RecipeLine] = field(default_factory=list)
    ingredients: List[Ingredient] = field(default_factory=list)

    def recipe_by_id(self) -> Dict[str, Recipe]:
        return {r.id: r for r in self.recipes}

    def ingredient_by_id(self) -> Dict[str, Ingredient]:
        return {i.id: i for i in self.ingredients}


def _records(conn: sqlite3.Connection, query: str) -> List[dict]:
    df = pd.read_sql_query(query, conn)
    # NULL -> None statt NaN
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict("records")


def load_snapshot(db_path: str = DB_PATH) -> Snapshot:
    """Holt Rezepte, Zeilen und Rohstoffe aus der DB."""
    if not os.path.exists(db_path):
        raise FileNotFoundError(f"Datenbank '{db_path}' nicht gefunden")

    conn = sqlite3.connect(db_path)
    try:
        recipe_rows = _records(conn, "SELECT * FROM recipes ORDER BY id")
        line_rows = _records(conn, "SELECT * FROM recipe_lines ORDER BY recipe_id, id")
        ingredient_rows = _records(conn, "SELECT * FROM ingredients ORDER BY id")
    finally:
        conn.close()

    lines = [
        RecipeLine.from_row(row, fallback_id=f"{row.get('recipe_id')}:{n}")
        for n, row in enumerate(line_rows)
    ]
    snapshot = Snapshot(
        recipes=[Recipe.from_row(row) for row in recipe_rows],
        lines=lines,
        ingredients=[Ingredient.from_row(row) for row in ingredient_rows],
    )
    log.debug("Snapshot geladen: %d Rezepte, %d Zeilen, %d Rohstoffe",
              len(snapshot.recipes), len(snapshot.lines), len(snapshot.ingredients))
    return snapshot


def update_ingredient_price(db_path: str, ingredient_id: int, new_price: float) -> None:
    """Aktualisiert den Nettopreis eines Rohstoffs."""
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(
            "UPDATE ingredients SET net_unit_cost = ?, last_update = CURRENT_TIMESTAMP WHERE id = ?",
            (new_price, ingredient_id),
        )
        conn.commit()
    finally:
        conn.close()


# ============================================================
# READ-THROUGH CACHE (gehört dem Aufrufer, nie der Engine)
# ============================================================

class SnapshotCache:
    def __init__(self, loader: Callable[[], Snapshot]):
        self._loader = loader
        self._snapshot: Optional[Snapshot] = None
        self.loads = 0

    def get(self) -> Snapshot:
        if self._snapshot is None:
            self._snapshot = self._loader()
            self.loads += 1
        return self._snapshot

    def invalidate(self) -> None:
        self._snapshot = None
