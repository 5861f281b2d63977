import logging
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from recipe_costing import repository
from recipe_costing.config import settings
from recipe_costing.database import get_db
from recipe_costing.dependencies import get_today, get_profit_multiplier
from recipe_costing.services import costing, reports
from recipe_costing.utils.timezone import get_local_now

logger = logging.getLogger(__name__)

router = APIRouter()


def _money(row: dict, *fields) -> dict:
    return {**row, **{field: costing.to_money(row.get(field)) for field in fields}}


def _ranked_out(recipe: dict) -> dict:
    return {
        "recipe_id": recipe["id"],
        "recipe_name": recipe["name"],
        "servings": recipe["servings"],
        "week": reports.parse_date(recipe.get("week")),
        "total_recipe_cost": costing.to_money(recipe["total_recipe_cost"]),
        "cost_per_serving": costing.to_money(recipe["cost_per_serving"]),
        "created_at": recipe.get("created_at"),
    }


def _profitable_out(recipe: dict) -> dict:
    return {
        **_ranked_out(recipe),
        "estimated_revenue": costing.to_money(recipe["estimated_revenue"]),
        "estimated_profit": costing.to_money(recipe["estimated_profit"]),
        "profit_margin_percent": costing.to_money(recipe["profit_margin_percent"]),
    }


def _week_out(row: dict) -> dict:
    return _money(row, "total_cost", "estimated_revenue", "estimated_profit", "avg_profit_margin")


def _metrics_out(metrics: dict) -> dict:
    return _money(
        metrics,
        "total_cost_all_recipes", "avg_recipe_cost", "highest_recipe_cost",
        "lowest_recipe_cost", "avg_servings_per_recipe"
    )


@router.get("/highest-cost-recipes")
def get_highest_cost_recipes(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
) -> List[dict]:
    """Most expensive recipes by total cost"""

    ranked = reports.rank_highest_cost(repository.fetch_recipes(db), limit)

    return [_ranked_out(r) for r in ranked]


@router.get("/most-profitable-recipes")
def get_most_profitable_recipes(
    limit: int = Query(10, ge=1, le=100),
    profit_multiplier: float = Depends(get_profit_multiplier),
    db: Session = Depends(get_db)
) -> List[dict]:
    """Recipes ranked by estimated profit"""

    ranked = reports.rank_most_profitable(repository.fetch_recipes(db), limit, profit_multiplier)

    return [_profitable_out(r) for r in ranked]


@router.get("/weekly-analysis")
def get_weekly_analysis(
    weeks: int = Query(8, ge=1, le=52),
    profit_multiplier: float = Depends(get_profit_multiplier),
    db: Session = Depends(get_db),
    today: date = Depends(get_today)
) -> List[dict]:
    """Cost and estimated profit of the recipes created in each of the last N weeks"""

    rollup = reports.weekly_rollup(repository.fetch_recipes(db), profit_multiplier, weeks, today)

    return [_week_out(row) for row in rollup]


@router.get("/vendor-analysis")
def get_vendor_analysis(
    db: Session = Depends(get_db)
) -> List[dict]:
    """Ingredient count and purchase totals per vendor"""

    analysis = reports.vendor_analysis(
        repository.fetch_vendors(db),
        repository.fetch_ingredients(db)
    )

    return [_money(row, "total_vendor_cost", "avg_ingredient_cost") for row in analysis]


@router.get("/recipe-metrics")
def get_recipe_metrics(
    profit_multiplier: float = Depends(get_profit_multiplier),
    db: Session = Depends(get_db)
) -> dict:
    """Totals and averages over every costed recipe"""

    recipes = repository.fetch_recipes(db)
    margin = reports.average_profit_margin(recipes, profit_multiplier)

    return {
        **_metrics_out(reports.recipe_metrics(recipes)),
        "avg_profit_margin": costing.to_money(margin["avg_profit_margin"]),
    }


@router.get("/dashboard")
def get_dashboard(
    profit_multiplier: float = Depends(get_profit_multiplier),
    db: Session = Depends(get_db),
    today: date = Depends(get_today)
) -> dict:
    """Every report in one response"""

    recipes = repository.fetch_recipes(db)
    margin = reports.average_profit_margin(recipes, profit_multiplier)

    logger.info("Building dashboard for %s recipe(s), multiplier %s", len(recipes), profit_multiplier)

    return {
        "generated_at": get_local_now(),
        "profit_multiplier": profit_multiplier,
        "highest_cost_recipes": [_ranked_out(r) for r in reports.rank_highest_cost(recipes, 5)],
        "most_profitable_recipes": [
            _profitable_out(r) for r in reports.rank_most_profitable(recipes, 5, profit_multiplier)
        ],
        "average_profit_margin": {
            "avg_profit_margin": costing.to_money(margin["avg_profit_margin"]),
            "total_recipes": margin["total_recipes"],
        },
        "weekly_analysis": [
            _week_out(row) for row in reports.weekly_rollup(recipes, profit_multiplier, 4, today)
        ],
        "recipe_metrics": _metrics_out(reports.recipe_metrics(recipes)),
        "vendor_analysis": [
            _money(row, "total_vendor_cost", "avg_ingredient_cost")
            for row in reports.vendor_analysis(
                repository.fetch_vendors(db),
                repository.fetch_ingredients(db)
            )
        ],
        "price_stale_days": settings.PRICE_STALE_DAYS,
    }
