"""
Ingredient and recipe cost arithmetic.

Ingredient rows are purchase records: ``cost_per_unit`` is the total paid for
``box_count`` boxes each holding ``quantity`` of ``unit_type``.  The
per-unit price (``base_cost``) is derived from those and stored with the row.

Recipe line-item quantities are per serving, so the sum of the line items is
the cost of one serving and the recipe total is derived from it.  Nothing in
this module rounds; round at the presentation boundary with ``to_money``.
"""

import logging
import math
from typing import Iterable, List, Mapping, NamedTuple, Optional

from recipe_costing.exceptions import ComputationError, InputError
from recipe_costing.services.units import convert_to_ounces

logger = logging.getLogger(__name__)


class LineItemCost(NamedTuple):
    cost: float
    unit_recognized: bool


class RecipeCosting(NamedTuple):
    ingredient_cost_per_serving: float
    packaging_cost_per_serving: float
    cost_per_serving: float
    total_recipe_cost: float
    total_revenue: float
    total_profit: float
    profit_margin: float
    all_units_recognized: bool


def to_money(value) -> float:
    return round(float(value or 0), 2)


def as_number(value, field: str) -> float:
    """Missing values count as 0; Infinity and NaN are rejected."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InputError(f"{field} must be a number, got {value!r}", field=field)
    if not math.isfinite(number):
        raise InputError(f"{field} must be a finite number, got {value!r}", field=field)
    return number


# Ingredient cost model

def effective_box_count(box_count) -> int:
    """Missing or zero box counts mean a single purchase."""
    return max(int(box_count or 1), 1)


def cost_per_box(total_paid: float, box_count: int) -> float:
    return as_number(total_paid, "cost_per_unit") / effective_box_count(box_count)


def compute_base_cost(total_paid: float, box_count: int, quantity_per_box: float) -> float:
    """Cost of one unit: ``(total_paid / box_count) / quantity_per_box``."""
    quantity_per_box = as_number(quantity_per_box, "quantity")
    if quantity_per_box <= 0:
        raise ComputationError(
            f"Quantity per box must be greater than 0, got {quantity_per_box}",
            field="quantity",
        )
    return cost_per_box(total_paid, box_count) / quantity_per_box


def cost_per_base_unit(ingredient: Mapping) -> float:
    """
    Price of one ``unit_type`` of the ingredient.

    Uses the stored ``base_cost`` when it is set and non-zero.  Rows written
    before box-aware costing have no ``base_cost``; for those the whole
    purchase is assumed to be a single box.
    """
    base_cost = as_number(ingredient.get("base_cost"), "base_cost")
    if base_cost:
        return base_cost
    total_paid = as_number(ingredient.get("cost_per_unit"), "cost_per_unit")
    quantity = as_number(ingredient.get("quantity"), "quantity")
    if quantity <= 0:
        raise ComputationError(
            f"Quantity must be greater than 0 to price {ingredient.get('name') or 'ingredient'}, got {quantity}",
            field="quantity",
            entity="Ingredient",
            entity_id=ingredient.get("id"),
        )
    return total_paid / quantity


# Recipe cost engine

def price_line_item(ingredient: Mapping, quantity_used: float, unit_used: str) -> LineItemCost:
    """
    Cost of ``quantity_used`` ``unit_used`` of an ingredient priced per its own ``unit_type``.

    Both sides go through ounces, so "2 cup" of flour bought "per lb" works.
    The result is flagged when either unit had to fall back to ounces.
    """
    used = convert_to_ounces(as_number(quantity_used, "quantity"), unit_used)
    storage = convert_to_ounces(1, ingredient.get("unit_type"))
    cost_per_ounce = cost_per_base_unit(ingredient) / storage.ounces
    return LineItemCost(
        used.ounces * cost_per_ounce,
        used.unit_recognized and storage.unit_recognized,
    )


def cost_of_line_item(ingredient: Mapping, quantity_used: float, unit_used: str) -> float:
    return price_line_item(ingredient, quantity_used, unit_used).cost


def cost_of_packaging_item(packing: Mapping, quantity: float) -> float:
    return as_number(packing.get("price"), "price") * as_number(quantity, "quantity")


def _ingredient_total(line_items: Iterable[Mapping]) -> LineItemCost:
    total = 0.0
    recognized = True
    for item in line_items:
        line = price_line_item(item["ingredient"], item["quantity"], item["unit"])
        total += line.cost
        recognized = recognized and line.unit_recognized
    return LineItemCost(total, recognized)


def _packaging_total(packaging_items: Iterable[Mapping]) -> float:
    return sum(
        cost_of_packaging_item(item["packing"], item["quantity"])
        for item in packaging_items
    )


def total_cost_per_serving(line_items: Iterable[Mapping], packaging_items: Iterable[Mapping]) -> float:
    """
    Cost of one serving.

    ``line_items`` are mappings with ``ingredient`` (an ingredient row),
    ``quantity`` and ``unit``; ``packaging_items`` have ``packing`` (a packing
    row) and ``quantity``.
    """
    return _ingredient_total(line_items).cost + _packaging_total(packaging_items)


def total_recipe_cost(per_serving_cost: float, servings: int) -> float:
    return float(per_serving_cost) * int(servings or 0)


def profit_margin(selling_price_per_serving: float, cost_per_serving: float) -> float:
    """Margin in percent of the selling price; negative when selling below cost."""
    selling_price = as_number(selling_price_per_serving, "selling_price_per_serving")
    if selling_price <= 0:
        return 0.0
    return ((selling_price - float(cost_per_serving)) / selling_price) * 100


def total_revenue(selling_price_per_serving: float, servings: int) -> float:
    return as_number(selling_price_per_serving, "selling_price_per_serving") * int(servings or 0)


def total_profit(revenue: float, recipe_cost: float) -> float:
    return float(revenue) - float(recipe_cost)


def summarize_recipe(
    line_items: List[Mapping],
    packaging_items: List[Mapping],
    servings: int,
    selling_price_per_serving: Optional[float] = None,
) -> RecipeCosting:
    """Every derived recipe figure, computed bottom-up from the line items."""
    ingredients = _ingredient_total(line_items)
    packaging = _packaging_total(packaging_items)
    per_serving = ingredients.cost + packaging
    recipe_cost = total_recipe_cost(per_serving, servings)
    revenue = total_revenue(selling_price_per_serving, servings)
    return RecipeCosting(
        ingredient_cost_per_serving=ingredients.cost,
        packaging_cost_per_serving=packaging,
        cost_per_serving=per_serving,
        total_recipe_cost=recipe_cost,
        total_revenue=revenue,
        total_profit=total_profit(revenue, recipe_cost),
        profit_margin=profit_margin(selling_price_per_serving, per_serving),
        all_units_recognized=ingredients.unit_recognized,
    )
