"""
Row access shared by the routers.

Rows come back as plain dicts so they can be handed straight to the costing
functions in ``recipe_costing.services``.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError as DBIntegrityError
from sqlalchemy.orm import Session

from recipe_costing.exceptions import IntegrityError, NotFoundError
from recipe_costing.services import costing

logger = logging.getLogger(__name__)


INGREDIENT_COLUMNS = """
    i.id, i.name, i.cost_per_unit, i.cost_per_box, i.base_cost, i.quantity,
    i.unit_type, i.box_count, i.vendor_id, i.last_price_check,
    i.created_at, i.updated_at
"""

RECIPE_COLUMNS = """
    r.id, r.name, r.servings, r.week, r.selling_price_per_serving,
    r.desired_profit_margin, r.total_recipe_cost, r.cost_per_serving,
    r.total_revenue, r.profit_margin, r.created_at, r.updated_at
"""


def as_dict(row) -> Optional[dict]:
    if row is None:
        return None
    return dict(row._mapping)


@contextmanager
def transaction(db: Session, conflict_message: str = "Conflicting record already exists"):
    """
    Commit everything executed inside the block, or nothing.

    Database integrity violations become ``IntegrityError``.
    """
    try:
        yield
        db.commit()
    except DBIntegrityError as exc:
        db.rollback()
        logger.warning("Integrity violation, rolled back: %s", exc.orig)
        raise IntegrityError(conflict_message) from exc
    except Exception:
        db.rollback()
        raise


# Vendors

def fetch_vendor(db: Session, vendor_id: int, active_only: bool = False) -> dict:
    query = "SELECT * FROM vendors WHERE id = :vendor_id"
    params = {"vendor_id": vendor_id}
    if active_only:
        query += " AND is_active = :active"
        params["active"] = True
    vendor = db.execute(text(query), params).fetchone()
    if not vendor:
        raise NotFoundError("Vendor", vendor_id, field="vendor_id")
    return as_dict(vendor)


def fetch_vendors(db: Session, active_only: bool = False) -> List[dict]:
    query = "SELECT * FROM vendors"
    params = {}
    if active_only:
        query += " WHERE is_active = :active"
        params["active"] = True
    query += " ORDER BY name ASC"
    return [as_dict(r) for r in db.execute(text(query), params).fetchall()]


# Ingredients

def fetch_ingredient(db: Session, ingredient_id: int) -> dict:
    result = db.execute(
        text(f"""
            SELECT {INGREDIENT_COLUMNS}, v.name as vendor_name
            FROM ingredients i
            LEFT JOIN vendors v ON v.id = i.vendor_id
            WHERE i.id = :ingredient_id
        """),
        {"ingredient_id": ingredient_id}
    ).fetchone()
    if not result:
        raise NotFoundError("Ingredient", ingredient_id, field="ingredient_id")
    return as_dict(result)


def fetch_ingredients(db: Session) -> List[dict]:
    results = db.execute(
        text(f"""
            SELECT {INGREDIENT_COLUMNS}, v.name as vendor_name
            FROM ingredients i
            LEFT JOIN vendors v ON v.id = i.vendor_id
            ORDER BY i.name ASC, i.id ASC
        """)
    ).fetchall()
    return [as_dict(r) for r in results]


# Packing

def fetch_packing(db: Session, packing_id: int) -> dict:
    result = db.execute(
        text("SELECT * FROM packing WHERE id = :packing_id"),
        {"packing_id": packing_id}
    ).fetchone()
    if not result:
        raise NotFoundError("Packing item", packing_id, field="packaging_id")
    return as_dict(result)


# Recipes

def fetch_recipe(db: Session, recipe_id: int) -> dict:
    result = db.execute(
        text(f"SELECT {RECIPE_COLUMNS} FROM recipes r WHERE r.id = :recipe_id"),
        {"recipe_id": recipe_id}
    ).fetchone()
    if not result:
        raise NotFoundError("Recipe", recipe_id, field="recipe_id")
    return as_dict(result)


def fetch_recipes(db: Session) -> List[dict]:
    results = db.execute(
        text(f"""
            SELECT {RECIPE_COLUMNS}
            FROM recipes r
            ORDER BY CASE WHEN r.week IS NULL THEN 1 ELSE 0 END, r.week DESC, r.name ASC
        """)
    ).fetchall()
    return [as_dict(r) for r in results]


def fetch_recipe_ingredient_rows(db: Session, recipe_id: int) -> List[dict]:
    """Line items joined with the ingredient's pricing columns"""
    results = db.execute(
        text("""
            SELECT
                ri.id, ri.recipe_id, ri.ingredient_id, ri.quantity_used, ri.unit_type,
                i.name as ingredient_name, i.cost_per_unit, i.base_cost,
                i.quantity, i.unit_type as ingredient_unit_type
            FROM recipe_ingredients ri
            JOIN ingredients i ON i.id = ri.ingredient_id
            WHERE ri.recipe_id = :recipe_id
            ORDER BY i.name ASC, ri.id ASC
        """),
        {"recipe_id": recipe_id}
    ).fetchall()
    return [as_dict(r) for r in results]


def fetch_recipe_packaging_rows(db: Session, recipe_id: int) -> List[dict]:
    results = db.execute(
        text("""
            SELECT
                rp.id, rp.recipe_id, rp.packaging_id, rp.quantity,
                p.name as packaging_name, p.price as packaging_price
            FROM recipe_packaging rp
            JOIN packing p ON p.id = rp.packaging_id
            WHERE rp.recipe_id = :recipe_id
            ORDER BY p.name ASC, rp.id ASC
        """),
        {"recipe_id": recipe_id}
    ).fetchall()
    return [as_dict(r) for r in results]


def fetch_all_line_items(db: Session) -> List[dict]:
    """Every recipe ingredient line with its recipe's servings"""
    results = db.execute(
        text("""
            SELECT ri.recipe_id, ri.ingredient_id, ri.quantity_used, ri.unit_type, r.servings
            FROM recipe_ingredients ri
            JOIN recipes r ON r.id = ri.recipe_id
        """)
    ).fetchall()
    return [as_dict(r) for r in results]


def ingredient_view(row: dict) -> dict:
    """The pricing view of an ingredient from a joined line-item row"""
    return {
        "id": row["ingredient_id"],
        "name": row["ingredient_name"],
        "cost_per_unit": row["cost_per_unit"],
        "base_cost": row["base_cost"],
        "quantity": row["quantity"],
        "unit_type": row["ingredient_unit_type"],
    }


def current_line_items(db: Session, recipe_id: int) -> List[dict]:
    return [
        {
            "ingredient_id": row["ingredient_id"],
            "ingredient": ingredient_view(row),
            "quantity": row["quantity_used"],
            "unit": row["unit_type"],
        }
        for row in fetch_recipe_ingredient_rows(db, recipe_id)
    ]


def current_packaging_items(db: Session, recipe_id: int) -> List[dict]:
    return [
        {
            "packaging_id": row["packaging_id"],
            "packing": {"id": row["packaging_id"], "name": row["packaging_name"], "price": row["packaging_price"]},
            "quantity": row["quantity"],
        }
        for row in fetch_recipe_packaging_rows(db, recipe_id)
    ]


def load_line_items(db: Session, items: Iterable) -> List[dict]:
    """Resolve requested ingredient lines; any missing ingredient aborts the write"""
    return [
        {
            "ingredient_id": item.ingredient_id,
            "ingredient": fetch_ingredient(db, item.ingredient_id),
            "quantity": item.quantity,
            "unit": item.unit,
        }
        for item in items
    ]


def load_packaging_items(db: Session, items: Iterable) -> List[dict]:
    return [
        {
            "packaging_id": item.packaging_id,
            "packing": fetch_packing(db, item.packaging_id),
            "quantity": item.quantity,
        }
        for item in items
    ]


def replace_line_items(db: Session, recipe_id: int, line_items: List[dict]):
    db.execute(
        text("DELETE FROM recipe_ingredients WHERE recipe_id = :recipe_id"),
        {"recipe_id": recipe_id}
    )
    for item in line_items:
        db.execute(
            text("""
                INSERT INTO recipe_ingredients (recipe_id, ingredient_id, quantity_used, unit_type)
                VALUES (:recipe_id, :ingredient_id, :quantity_used, :unit_type)
            """),
            {
                "recipe_id": recipe_id,
                "ingredient_id": item["ingredient_id"],
                "quantity_used": float(item["quantity"]),
                "unit_type": item["unit"]
            }
        )


def replace_packaging_items(db: Session, recipe_id: int, packaging_items: List[dict]):
    db.execute(
        text("DELETE FROM recipe_packaging WHERE recipe_id = :recipe_id"),
        {"recipe_id": recipe_id}
    )
    for item in packaging_items:
        db.execute(
            text("""
                INSERT INTO recipe_packaging (recipe_id, packaging_id, quantity)
                VALUES (:recipe_id, :packaging_id, :quantity)
            """),
            {
                "recipe_id": recipe_id,
                "packaging_id": item["packaging_id"],
                "quantity": float(item["quantity"])
            }
        )


def cost_params(summary: costing.RecipeCosting) -> dict:
    return {
        "total_recipe_cost": summary.total_recipe_cost,
        "cost_per_serving": summary.cost_per_serving,
        "total_revenue": summary.total_revenue,
        "profit_margin": summary.profit_margin,
    }


def summarize_stored_recipe(db: Session, recipe: dict) -> costing.RecipeCosting:
    """Cost figures of a stored recipe from its current line items and prices"""
    return costing.summarize_recipe(
        current_line_items(db, recipe["id"]),
        current_packaging_items(db, recipe["id"]),
        recipe["servings"],
        recipe["selling_price_per_serving"]
    )


def recipe_ids_using(db: Session, ingredient_id: Optional[int] = None, packing_id: Optional[int] = None) -> List[int]:
    if ingredient_id is not None:
        query = "SELECT DISTINCT recipe_id FROM recipe_ingredients WHERE ingredient_id = :item_id"
        item_id = ingredient_id
    else:
        query = "SELECT DISTINCT recipe_id FROM recipe_packaging WHERE packaging_id = :item_id"
        item_id = packing_id
    return [row.recipe_id for row in db.execute(text(query), {"item_id": item_id}).fetchall()]


def refresh_recipe_costs(db: Session, recipe_ids: Iterable[int]):
    """
    Recompute the stored cost columns of each recipe.

    Runs inside the caller's transaction, after a price it depends on changed.
    """
    for recipe_id in recipe_ids:
        recipe = fetch_recipe(db, recipe_id)
        summary = summarize_stored_recipe(db, recipe)
        db.execute(
            text("""
                UPDATE recipes
                SET total_recipe_cost = :total_recipe_cost,
                    cost_per_serving = :cost_per_serving,
                    total_revenue = :total_revenue,
                    profit_margin = :profit_margin,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = :recipe_id
            """),
            {**cost_params(summary), "recipe_id": recipe_id}
        )
        logger.info("Recomputed recipe %s: cost/serving %.4f", recipe_id, summary.cost_per_serving)
