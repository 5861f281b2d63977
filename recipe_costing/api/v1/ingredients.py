import logging
from datetime import date
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from sqlalchemy import text
from typing import List, Optional

from recipe_costing import repository
from recipe_costing.config import settings
from recipe_costing.database import get_db
from recipe_costing.dependencies import get_today
from recipe_costing.exceptions import InputError, IntegrityError
from recipe_costing.schemas.ingredient import (
    IngredientCreate,
    IngredientUpdate,
    IngredientResponse
)
from recipe_costing.services import costing, reports
from recipe_costing.services.units import is_known_unit

logger = logging.getLogger(__name__)

router = APIRouter()

PRICING_FIELDS = ("cost_per_unit", "box_count", "quantity")


def ingredient_out(row: dict, today: date) -> dict:
    """Present an ingredient row; unit prices keep 4 decimals, totals 2"""
    return {
        **row,
        "cost_per_unit": costing.to_money(row["cost_per_unit"]),
        "cost_per_box": costing.to_money(row["cost_per_box"]) if row.get("cost_per_box") is not None else None,
        "base_cost": round(costing.cost_per_base_unit(row), 4),
        "quantity": float(row["quantity"]),
        "unit_recognized": is_known_unit(row["unit_type"]),
        "price_outdated": reports.price_status(
            row.get("last_price_check"), today, settings.PRICE_STALE_DAYS
        ) == reports.OUTDATED,
    }


def _check_vendor(db: Session, vendor_id: Optional[int]):
    if vendor_id is None:
        return
    vendor = db.execute(
        text("SELECT id, is_active FROM vendors WHERE id = :vendor_id"),
        {"vendor_id": vendor_id}
    ).fetchone()
    if not vendor or not vendor.is_active:
        raise InputError(f"Vendor {vendor_id} does not exist or is inactive", field="vendor_id")


def _check_name_free(db: Session, name: str, vendor_id: Optional[int], ingredient_id: Optional[int] = None):
    query = "SELECT id FROM ingredients WHERE LOWER(name) = LOWER(:name)"
    params = {"name": name}
    if vendor_id is None:
        query += " AND vendor_id IS NULL"
    else:
        query += " AND vendor_id = :vendor_id"
        params["vendor_id"] = vendor_id
    if ingredient_id is not None:
        query += " AND id != :ingredient_id"
        params["ingredient_id"] = ingredient_id

    if db.execute(text(query), params).fetchone():
        raise IntegrityError(
            f"Ingredient '{name}' already exists for this vendor",
            field="name",
            entity="Ingredient",
            entity_id=ingredient_id
        )


@router.get("/", response_model=List[IngredientResponse])
def get_all_ingredients(
    search: Optional[str] = Query(None, description="Search by name"),
    vendor_id: Optional[int] = Query(None, description="Filter by vendor"),
    db: Session = Depends(get_db),
    today: date = Depends(get_today)
):
    """
    Get all ingredients with optional filters.

    Names are unique per vendor, so the same ingredient bought from two
    vendors is listed once for each.
    """

    query = f"""
        SELECT {repository.INGREDIENT_COLUMNS}, v.name as vendor_name
        FROM ingredients i
        LEFT JOIN vendors v ON v.id = i.vendor_id
        WHERE 1 = 1
    """

    params = {}

    if search:
        query += " AND LOWER(i.name) LIKE LOWER(:search)"
        params["search"] = f"%{search}%"

    if vendor_id is not None:
        query += " AND i.vendor_id = :vendor_id"
        params["vendor_id"] = vendor_id

    query += " ORDER BY i.name ASC, i.id ASC"

    results = db.execute(text(query), params).fetchall()

    return [ingredient_out(repository.as_dict(r), today) for r in results]


@router.get("/{ingredient_id}", response_model=IngredientResponse)
def get_ingredient_by_id(
    ingredient_id: int,
    db: Session = Depends(get_db),
    today: date = Depends(get_today)
):
    """Get ingredient by ID"""

    return ingredient_out(repository.fetch_ingredient(db, ingredient_id), today)


@router.post("/", response_model=IngredientResponse, status_code=status.HTTP_201_CREATED)
def create_ingredient(
    data: IngredientCreate,
    db: Session = Depends(get_db),
    today: date = Depends(get_today)
):
    """
    Create new ingredient; cost_per_box and base_cost are derived here.

    The name only has to be unique for its vendor (409 otherwise).
    """

    _check_vendor(db, data.vendor_id)
    _check_name_free(db, data.name, data.vendor_id)

    with repository.transaction(db, f"Ingredient '{data.name}' already exists for this vendor"):
        result = db.execute(
            text("""
                INSERT INTO ingredients
                (name, cost_per_unit, cost_per_box, base_cost, quantity, unit_type,
                 box_count, vendor_id, last_price_check)
                VALUES (:name, :cost_per_unit, :cost_per_box, :base_cost, :quantity, :unit_type,
                        :box_count, :vendor_id, :last_price_check)
                RETURNING id
            """),
            {
                "name": data.name,
                "cost_per_unit": data.cost_per_unit,
                "cost_per_box": costing.cost_per_box(data.cost_per_unit, data.box_count),
                "base_cost": costing.compute_base_cost(data.cost_per_unit, data.box_count, data.quantity),
                "quantity": data.quantity,
                "unit_type": data.unit_type,
                "box_count": data.box_count,
                "vendor_id": data.vendor_id,
                "last_price_check": data.last_price_check or today
            }
        ).fetchone()

    logger.info("Created ingredient %s (%s)", result.id, data.name)
    if not is_known_unit(data.unit_type):
        logger.warning("Ingredient %s uses unrecognized unit %r", result.id, data.unit_type)

    return ingredient_out(repository.fetch_ingredient(db, result.id), today)


@router.patch("/{ingredient_id}", response_model=IngredientResponse)
def update_ingredient(
    ingredient_id: int,
    data: IngredientUpdate,
    db: Session = Depends(get_db),
    today: date = Depends(get_today)
):
    """
    Update ingredient, recomputing base_cost when any pricing input changes.

    Recipes using the ingredient get their stored costs recomputed in the
    same commit.
    """

    existing = repository.fetch_ingredient(db, ingredient_id)
    changes = data.model_dump(exclude_unset=True)

    if not changes:
        raise InputError("No fields to update")

    for field in ("name", "cost_per_unit", "quantity", "unit_type", "box_count"):
        if field in changes and changes[field] is None:
            raise InputError(f"{field} cannot be null", field=field)

    if "vendor_id" in changes:
        _check_vendor(db, changes["vendor_id"])

    if "name" in changes or "vendor_id" in changes:
        _check_name_free(
            db,
            changes.get("name", existing["name"]),
            changes.get("vendor_id", existing["vendor_id"]),
            ingredient_id
        )

    # Derived prices always follow the merged record
    if any(field in changes for field in PRICING_FIELDS):
        merged = {**existing, **changes}
        changes["cost_per_box"] = costing.cost_per_box(merged["cost_per_unit"], merged["box_count"])
        changes["base_cost"] = costing.compute_base_cost(
            merged["cost_per_unit"], merged["box_count"], merged["quantity"]
        )

    update_fields = [f"{field} = :{field}" for field in changes]
    update_fields.append("updated_at = CURRENT_TIMESTAMP")
    params = {**changes, "ingredient_id": ingredient_id}

    query = f"""
        UPDATE ingredients
        SET {', '.join(update_fields)}
        WHERE id = :ingredient_id
    """

    with repository.transaction(db, "Ingredient already exists for this vendor"):
        db.execute(text(query), params)
        if any(field in changes for field in PRICING_FIELDS + ("unit_type",)):
            repository.refresh_recipe_costs(
                db, repository.recipe_ids_using(db, ingredient_id=ingredient_id)
            )

    logger.info("Updated ingredient %s: %s", ingredient_id, ", ".join(sorted(changes)))

    return ingredient_out(repository.fetch_ingredient(db, ingredient_id), today)


@router.delete("/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ingredient(
    ingredient_id: int,
    db: Session = Depends(get_db)
):
    """Delete ingredient"""

    existing = repository.fetch_ingredient(db, ingredient_id)

    # Check if used in recipes
    used_in_recipes = db.execute(
        text("""
            SELECT COUNT(DISTINCT recipe_id) as count
            FROM recipe_ingredients
            WHERE ingredient_id = :ingredient_id
        """),
        {"ingredient_id": ingredient_id}
    ).fetchone().count

    if used_in_recipes > 0:
        raise IntegrityError(
            f"Cannot delete ingredient. It is used in {used_in_recipes} recipe(s)",
            entity="Ingredient",
            entity_id=ingredient_id
        )

    with repository.transaction(db):
        db.execute(
            text("DELETE FROM ingredients WHERE id = :ingredient_id"),
            {"ingredient_id": ingredient_id}
        )

    logger.info("Deleted ingredient %s (%s)", ingredient_id, existing["name"])

    return None
