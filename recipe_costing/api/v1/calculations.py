import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from recipe_costing import repository
from recipe_costing.config import settings
from recipe_costing.database import get_db
from recipe_costing.schemas.calculation import (
    PricingScenarioRequest,
    PricingScenarioResponse,
    SuggestedPriceRequest,
    ScenarioResponse,
    CostBreakdownResponse
)
from recipe_costing.services import costing, pricing, reports

logger = logging.getLogger(__name__)

router = APIRouter()


def scenario_out(scenario: pricing.Scenario) -> dict:
    return {
        "profit_margin": scenario.margin,
        "suggested_price_per_serving": costing.to_money(scenario.suggested_price),
        "profit_per_serving": costing.to_money(scenario.profit_per_serving),
        "total_profit": costing.to_money(scenario.total_profit),
    }


@router.get("/recipe/{recipe_id}", response_model=CostBreakdownResponse)
def get_recipe_cost_breakdown(
    recipe_id: int,
    margin: Optional[float] = Query(None, description="Target margin %, defaults to the recipe's"),
    db: Session = Depends(get_db)
):
    """
    Full cost breakdown of a recipe, recomputed from current ingredient prices,
    with the suggested price at the target margin.
    """

    recipe = repository.fetch_recipe(db, recipe_id)

    if margin is None:
        margin = recipe.get("desired_profit_margin")
    if margin is None:
        margin = settings.DEFAULT_PROFIT_MARGIN
    margin = pricing.validate_margin(margin, field="margin")

    line_items = repository.current_line_items(db, recipe_id)
    packaging_items = repository.current_packaging_items(db, recipe_id)
    summary = costing.summarize_recipe(line_items, packaging_items, recipe["servings"])
    scenario = pricing.price_at_margin(summary.cost_per_serving, recipe["servings"], margin)

    ingredients = []
    for item in line_items:
        line = costing.price_line_item(item["ingredient"], item["quantity"], item["unit"])
        share = None
        if summary.ingredient_cost_per_serving > 0:
            share = round(line.cost / summary.ingredient_cost_per_serving * 100, 2)
        ingredients.append({
            "ingredient_id": item["ingredient_id"],
            "ingredient_name": item["ingredient"]["name"],
            "quantity_used": float(item["quantity"]),
            "unit_type": item["unit"],
            "line_cost": costing.to_money(line.cost),
            "percentage_of_ingredient_cost": share,
            "unit_recognized": line.unit_recognized,
        })
    ingredients.sort(key=lambda row: row["line_cost"], reverse=True)

    packaging = [
        {
            "packaging_id": item["packaging_id"],
            "packaging_name": item["packing"]["name"],
            "quantity": float(item["quantity"]),
            "line_cost": costing.to_money(costing.cost_of_packaging_item(item["packing"], item["quantity"])),
        }
        for item in packaging_items
    ]

    return {
        "recipe_id": recipe["id"],
        "recipe_name": recipe["name"],
        "servings": recipe["servings"],
        "costs": {
            "ingredient_cost_per_serving": costing.to_money(summary.ingredient_cost_per_serving),
            "packaging_cost_per_serving": costing.to_money(summary.packaging_cost_per_serving),
            "cost_per_serving": costing.to_money(summary.cost_per_serving),
            "total_recipe_cost": costing.to_money(summary.total_recipe_cost),
        },
        "pricing": {
            "desired_profit_margin": margin,
            "suggested_price_per_serving": costing.to_money(scenario.suggested_price),
            "profit_per_serving": costing.to_money(scenario.profit_per_serving),
            "total_profit": costing.to_money(scenario.total_profit),
        },
        "ingredients": ingredients,
        "packaging": packaging,
        "all_units_recognized": summary.all_units_recognized,
    }


@router.post("/pricing-scenarios", response_model=PricingScenarioResponse)
def get_pricing_scenarios(
    data: PricingScenarioRequest,
    db: Session = Depends(get_db)
):
    """
    Suggested price and profit for each requested margin, in request order,
    from the recipe's current ingredient prices.
    """

    recipe = repository.fetch_recipe(db, data.recipe_id)

    for index, margin in enumerate(data.profit_margins):
        pricing.validate_margin(margin, field=f"profit_margins[{index}]")

    cost_per_serving = repository.summarize_stored_recipe(db, recipe).cost_per_serving
    scenarios = pricing.evaluate_scenarios(cost_per_serving, recipe["servings"], data.profit_margins)

    return {
        "recipe_id": recipe["id"],
        "recipe_name": recipe["name"],
        "servings": recipe["servings"],
        "cost_per_serving": costing.to_money(cost_per_serving),
        "scenarios": [scenario_out(s) for s in scenarios],
    }


@router.post("/suggested-price", response_model=ScenarioResponse)
def get_suggested_price(
    data: SuggestedPriceRequest
):
    """Price a serving at a target margin without a stored recipe"""

    scenario = pricing.price_at_margin(data.cost_per_serving, data.servings, data.desired_profit_margin)

    return scenario_out(scenario)


@router.get("/ingredient-usage")
def get_ingredient_usage(
    db: Session = Depends(get_db)
) -> List[dict]:
    """How much of each ingredient all recipes use, most costly first"""

    usage = reports.ingredient_usage(
        repository.fetch_ingredients(db),
        repository.fetch_all_line_items(db)
    )

    return [
        {
            **row,
            "total_quantity_oz": round(row["total_quantity_oz"], 2),
            "total_cost_across_recipes": costing.to_money(row["total_cost_across_recipes"]),
        }
        for row in usage
    ]


@router.get("/profitability-analysis")
def get_profitability_analysis(
    db: Session = Depends(get_db)
) -> List[dict]:
    """
    Recipes grouped by scheduled week (unscheduled last), each next to the
    price it would need at its desired margin.
    """

    def recipe_row(recipe: dict) -> dict:
        margin = recipe.get("desired_profit_margin")
        if margin is None:
            margin = settings.DEFAULT_PROFIT_MARGIN
        summary = repository.summarize_stored_recipe(db, recipe)
        scenario = pricing.price_at_margin(summary.cost_per_serving, recipe["servings"], margin)
        selling_price = float(recipe["selling_price_per_serving"] or 0)

        return {
            "recipe_id": recipe["id"],
            "recipe_name": recipe["name"],
            "week": reports.parse_date(recipe.get("week")),
            "servings": recipe["servings"],
            "total_recipe_cost": costing.to_money(summary.total_recipe_cost),
            "cost_per_serving": costing.to_money(summary.cost_per_serving),
            "selling_price_per_serving": costing.to_money(selling_price),
            "profit_margin": costing.to_money(summary.profit_margin),
            "desired_profit_margin": float(margin),
            "suggested_price_per_serving": costing.to_money(scenario.suggested_price),
            "profit_per_serving": costing.to_money(scenario.profit_per_serving),
            "total_profit": costing.to_money(scenario.total_profit),
        }

    return [
        {
            "week": group["week"],
            "recipes_created": group["recipes_created"],
            "total_cost": costing.to_money(group["total_cost"]),
            "total_revenue": costing.to_money(group["total_revenue"]),
            "total_profit": costing.to_money(group["total_profit"]),
            "avg_profit_margin": costing.to_money(group["avg_profit_margin"]),
            "recipes": [recipe_row(r) for r in group["recipes"]],
        }
        for group in reports.aggregate_by_week(repository.fetch_recipes(db))
    ]
