import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy import text
from typing import List, Optional

from recipe_costing import repository
from recipe_costing.config import settings
from recipe_costing.database import get_db
from recipe_costing.schemas.recipe import (
    RecipeCreate,
    RecipeUpdate,
    RecipeDuplicate,
    RecipeResponse,
    RecipeDetailResponse
)
from recipe_costing.services import costing

logger = logging.getLogger(__name__)

router = APIRouter()

MONEY_FIELDS = ("selling_price_per_serving", "total_recipe_cost", "cost_per_serving", "total_revenue", "profit_margin")


def recipe_out(row: dict) -> dict:
    """Present a recipe row with money figures rounded to cents"""
    recipe = dict(row)
    for field in MONEY_FIELDS:
        recipe[field] = costing.to_money(recipe.get(field))
    if recipe.get("desired_profit_margin") is not None:
        recipe["desired_profit_margin"] = float(recipe["desired_profit_margin"])
    return recipe


def _detail(db: Session, recipe_id: int) -> dict:
    recipe = recipe_out(repository.fetch_recipe(db, recipe_id))

    ingredients = []
    all_recognized = True
    for row in repository.fetch_recipe_ingredient_rows(db, recipe_id):
        ingredient = repository.ingredient_view(row)
        line = costing.price_line_item(ingredient, row["quantity_used"], row["unit_type"])
        all_recognized = all_recognized and line.unit_recognized
        ingredients.append({
            **row,
            "quantity_used": float(row["quantity_used"]),
            "ingredient_base_cost": round(costing.cost_per_base_unit(ingredient), 4),
            "line_cost": costing.to_money(line.cost),
            "unit_recognized": line.unit_recognized,
        })

    packaging = [
        {
            **row,
            "packaging_price": costing.to_money(row["packaging_price"]),
            "quantity": float(row["quantity"]),
            "line_cost": costing.to_money(
                costing.cost_of_packaging_item({"price": row["packaging_price"]}, row["quantity"])
            ),
        }
        for row in repository.fetch_recipe_packaging_rows(db, recipe_id)
    ]

    return {
        **recipe,
        "ingredients": ingredients,
        "packaging": packaging,
        "all_units_recognized": all_recognized,
    }


def _desired_margin(value: Optional[float]) -> float:
    if value is None:
        return settings.DEFAULT_PROFIT_MARGIN
    return value


@router.get("/", response_model=List[RecipeResponse])
def get_all_recipes(
    db: Session = Depends(get_db)
):
    """Get all recipes, most recent week first"""

    return [recipe_out(r) for r in repository.fetch_recipes(db)]


@router.get("/{recipe_id}", response_model=RecipeDetailResponse)
def get_recipe_by_id(
    recipe_id: int,
    db: Session = Depends(get_db)
):
    """Get recipe with its ingredient and packaging lines"""

    return _detail(db, recipe_id)


@router.post("/", response_model=RecipeDetailResponse, status_code=status.HTTP_201_CREATED)
def create_recipe(
    data: RecipeCreate,
    db: Session = Depends(get_db)
):
    """
    Create recipe with its ingredient and packaging lines.
    All derived cost figures are computed from the lines; nothing is written
    if any referenced ingredient or packing item is missing.
    """

    line_items = repository.load_line_items(db, data.recipe_ingredients)
    packaging_items = repository.load_packaging_items(db, data.recipe_packaging)
    summary = costing.summarize_recipe(
        line_items, packaging_items, data.servings, data.selling_price_per_serving
    )

    with repository.transaction(db):
        result = db.execute(
            text("""
                INSERT INTO recipes
                (name, servings, week, selling_price_per_serving, desired_profit_margin,
                 total_recipe_cost, cost_per_serving, total_revenue, profit_margin)
                VALUES (:name, :servings, :week, :selling_price_per_serving, :desired_profit_margin,
                        :total_recipe_cost, :cost_per_serving, :total_revenue, :profit_margin)
                RETURNING id
            """),
            {
                "name": data.name,
                "servings": data.servings,
                "week": data.week,
                "selling_price_per_serving": data.selling_price_per_serving,
                "desired_profit_margin": _desired_margin(data.desired_profit_margin),
                **repository.cost_params(summary)
            }
        ).fetchone()

        repository.replace_line_items(db, result.id, line_items)
        repository.replace_packaging_items(db, result.id, packaging_items)

    logger.info(
        "Created recipe %s (%s): %s ingredient line(s), cost/serving %.4f",
        result.id, data.name, len(line_items), summary.cost_per_serving
    )
    if not summary.all_units_recognized:
        logger.warning("Recipe %s has line items with unrecognized units", result.id)

    return _detail(db, result.id)


@router.put("/{recipe_id}", response_model=RecipeDetailResponse)
def update_recipe(
    recipe_id: int,
    data: RecipeUpdate,
    db: Session = Depends(get_db)
):
    """
    Replace recipe fields and recompute its costs.
    Omitted line-item lists keep the recipe's current lines.
    """

    existing = repository.fetch_recipe(db, recipe_id)

    if data.recipe_ingredients is None:
        line_items = repository.current_line_items(db, recipe_id)
    else:
        line_items = repository.load_line_items(db, data.recipe_ingredients)

    if data.recipe_packaging is None:
        packaging_items = repository.current_packaging_items(db, recipe_id)
    else:
        packaging_items = repository.load_packaging_items(db, data.recipe_packaging)

    summary = costing.summarize_recipe(
        line_items, packaging_items, data.servings, data.selling_price_per_serving
    )

    desired_margin = data.desired_profit_margin
    if desired_margin is None:
        desired_margin = existing.get("desired_profit_margin")

    with repository.transaction(db):
        db.execute(
            text("""
                UPDATE recipes
                SET name = :name,
                    servings = :servings,
                    week = :week,
                    selling_price_per_serving = :selling_price_per_serving,
                    desired_profit_margin = :desired_profit_margin,
                    total_recipe_cost = :total_recipe_cost,
                    cost_per_serving = :cost_per_serving,
                    total_revenue = :total_revenue,
                    profit_margin = :profit_margin,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = :recipe_id
            """),
            {
                "name": data.name,
                "servings": data.servings,
                "week": data.week,
                "selling_price_per_serving": data.selling_price_per_serving,
                "desired_profit_margin": _desired_margin(desired_margin),
                "recipe_id": recipe_id,
                **repository.cost_params(summary)
            }
        )

        if data.recipe_ingredients is not None:
            repository.replace_line_items(db, recipe_id, line_items)
        if data.recipe_packaging is not None:
            repository.replace_packaging_items(db, recipe_id, packaging_items)

    logger.info("Updated recipe %s, cost/serving %.4f", recipe_id, summary.cost_per_serving)

    return _detail(db, recipe_id)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recipe(
    recipe_id: int,
    db: Session = Depends(get_db)
):
    """Delete recipe and its lines"""

    existing = repository.fetch_recipe(db, recipe_id)

    with repository.transaction(db):
        db.execute(
            text("DELETE FROM recipe_ingredients WHERE recipe_id = :recipe_id"),
            {"recipe_id": recipe_id}
        )
        db.execute(
            text("DELETE FROM recipe_packaging WHERE recipe_id = :recipe_id"),
            {"recipe_id": recipe_id}
        )
        db.execute(
            text("DELETE FROM recipes WHERE id = :recipe_id"),
            {"recipe_id": recipe_id}
        )

    logger.info("Deleted recipe %s (%s)", recipe_id, existing["name"])

    return None


@router.post("/{recipe_id}/duplicate", response_model=RecipeDetailResponse, status_code=status.HTTP_201_CREATED)
def duplicate_recipe(
    recipe_id: int,
    data: Optional[RecipeDuplicate] = None,
    db: Session = Depends(get_db)
):
    """Copy a recipe and its lines, e.g. to schedule it for another week"""

    original = repository.fetch_recipe(db, recipe_id)
    data = data or RecipeDuplicate()

    line_items = repository.current_line_items(db, recipe_id)
    packaging_items = repository.current_packaging_items(db, recipe_id)

    name = data.name if data.name else f"{original['name']} (Copy)"
    week = data.week if data.week is not None else original["week"]

    with repository.transaction(db):
        result = db.execute(
            text("""
                INSERT INTO recipes
                (name, servings, week, selling_price_per_serving, desired_profit_margin,
                 total_recipe_cost, cost_per_serving, total_revenue, profit_margin)
                VALUES (:name, :servings, :week, :selling_price_per_serving, :desired_profit_margin,
                        :total_recipe_cost, :cost_per_serving, :total_revenue, :profit_margin)
                RETURNING id
            """),
            {
                "name": name,
                "servings": original["servings"],
                "week": week,
                "selling_price_per_serving": original["selling_price_per_serving"],
                "desired_profit_margin": original["desired_profit_margin"],
                "total_recipe_cost": original["total_recipe_cost"],
                "cost_per_serving": original["cost_per_serving"],
                "total_revenue": original["total_revenue"],
                "profit_margin": original["profit_margin"]
            }
        ).fetchone()

        repository.replace_line_items(db, result.id, line_items)
        repository.replace_packaging_items(db, result.id, packaging_items)

    logger.info("Duplicated recipe %s as %s (%s)", recipe_id, result.id, name)

    return _detail(db, result.id)
