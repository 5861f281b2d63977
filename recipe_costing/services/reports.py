"""
Aggregate business reports built from recipe, ingredient and vendor rows.

Weeks start on Sunday.  Recipes without a week are grouped under
``UNSCHEDULED``, which always sorts after every dated week.

Recipes with no recorded revenue are valued at ``cost x profit_multiplier``
for the estimated-profit reports; the multiplier is always passed in.
"""

from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional

from recipe_costing.exceptions import InputError
from recipe_costing.services import costing
from recipe_costing.services.units import convert_to_ounces

UNSCHEDULED = "Unscheduled"
OUTDATED = "Outdated"
CURRENT = "Current"


def parse_date(value, field: str = "week") -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise InputError(f"{field} must be an ISO date, got {value!r}", field=field)


def week_start_of(value) -> date:
    """The Sunday on or before ``value``."""
    day = parse_date(value)
    days_since_sunday = (day.weekday() + 1) % 7
    return day - timedelta(days=days_since_sunday)


def week_key(value) -> str:
    if parse_date(value) is None:
        return UNSCHEDULED
    return week_start_of(value).isoformat()


def _sorted_weeks(keys: Iterable[str]) -> List[str]:
    dated = sorted((k for k in keys if k != UNSCHEDULED), reverse=True)
    if UNSCHEDULED in keys:
        dated.append(UNSCHEDULED)
    return dated


def _recipe_margin(recipe: Mapping) -> float:
    margin = recipe.get("desired_profit_margin")
    if margin is None:
        margin = recipe.get("profit_margin")
    return float(margin or 0)


def _recipe_revenue(recipe: Mapping) -> float:
    return costing.total_revenue(recipe.get("selling_price_per_serving") or 0, recipe.get("servings") or 0)


def aggregate_by_week(recipes: Iterable[Mapping]) -> List[dict]:
    """
    Roll recipes up by the Sunday-start week of their ``week`` date.

    Groups are ordered newest week first with ``UNSCHEDULED`` last; recipes
    inside a group are ordered by id.
    """
    groups: Dict[str, List[Mapping]] = {}
    for recipe in recipes:
        groups.setdefault(week_key(recipe.get("week")), []).append(recipe)

    summaries = []
    for week in _sorted_weeks(groups.keys()):
        members = sorted(groups[week], key=lambda r: r.get("id") or 0)
        total_cost = sum(float(r.get("total_recipe_cost") or 0) for r in members)
        total_revenue = sum(_recipe_revenue(r) for r in members)
        total_profit = sum(
            costing.total_profit(_recipe_revenue(r), float(r.get("total_recipe_cost") or 0))
            for r in members
        )
        avg_margin = sum(_recipe_margin(r) for r in members) / len(members) if members else 0
        summaries.append({
            "week": week,
            "recipes": members,
            "recipes_created": len(members),
            "total_cost": total_cost,
            "total_revenue": total_revenue,
            "total_profit": total_profit,
            "avg_profit_margin": avg_margin,
        })
    return summaries


def price_status(last_price_check, today: date, stale_days: int = 30) -> str:
    checked = parse_date(last_price_check, field="last_price_check")
    if checked is not None and (today - checked).days > stale_days:
        return OUTDATED
    return CURRENT


def vendor_cost_comparison(
    ingredients: Iterable[Mapping],
    vendors: Iterable[Mapping],
    today: date,
    stale_days: int = 30,
) -> Dict[str, List[dict]]:
    """
    Group active vendors' ingredients by name, cheapest vendor first.

    Keys are ingredient names in alphabetical order.
    """
    active = {v["id"]: v for v in vendors if v.get("is_active", True)}

    comparison: Dict[str, List[dict]] = {}
    for ingredient in ingredients:
        vendor = active.get(ingredient.get("vendor_id"))
        if vendor is None:
            continue
        comparison.setdefault(ingredient["name"], []).append({
            "ingredient_id": ingredient.get("id"),
            "vendor_id": vendor["id"],
            "vendor_name": vendor["name"],
            "unit_type": ingredient.get("unit_type"),
            "cost_per_unit": float(ingredient.get("cost_per_unit") or 0),
            "base_cost": costing.cost_per_base_unit(ingredient),
            "last_price_check": parse_date(ingredient.get("last_price_check"), field="last_price_check"),
            "price_status": price_status(ingredient.get("last_price_check"), today, stale_days),
        })

    return OrderedDict(
        (name, sorted(rows, key=lambda row: (row["cost_per_unit"], row["vendor_name"])))
        for name, rows in sorted(comparison.items())
    )


def vendor_analysis(vendors: Iterable[Mapping], ingredients: Iterable[Mapping]) -> List[dict]:
    """Ingredient count and purchase totals per vendor, biggest spend first."""
    by_vendor: Dict[int, List[float]] = {}
    for ingredient in ingredients:
        if ingredient.get("vendor_id") is not None:
            by_vendor.setdefault(ingredient["vendor_id"], []).append(float(ingredient.get("cost_per_unit") or 0))

    rows = []
    for vendor in vendors:
        costs = by_vendor.get(vendor["id"], [])
        rows.append({
            "vendor_id": vendor["id"],
            "vendor_name": vendor["name"],
            "is_active": bool(vendor.get("is_active", True)),
            "ingredient_count": len(costs),
            "total_vendor_cost": sum(costs),
            "avg_ingredient_cost": sum(costs) / len(costs) if costs else 0,
        })
    return sorted(rows, key=lambda row: row["total_vendor_cost"], reverse=True)


def ingredient_usage(ingredients: Iterable[Mapping], line_items: Iterable[Mapping]) -> List[dict]:
    """
    How much of each ingredient all recipes use.

    ``line_items`` carry ``ingredient_id``, ``recipe_id``, ``quantity_used``,
    ``unit_type`` and the recipe's ``servings``.  Quantities are summed in
    ounces and costs over every serving of every recipe.
    """
    usage = OrderedDict(
        (i["id"], {
            "ingredient_id": i["id"],
            "ingredient_name": i["name"],
            "unit_type": i.get("unit_type"),
            "recipe_ids": set(),
            "total_quantity_oz": 0.0,
            "total_cost_across_recipes": 0.0,
            "all_units_recognized": True,
            "_row": i,
        })
        for i in ingredients
    )

    for item in line_items:
        entry = usage.get(item["ingredient_id"])
        if entry is None:
            continue
        servings = int(item.get("servings") or 0)
        line = costing.price_line_item(entry["_row"], item["quantity_used"], item["unit_type"])
        entry["recipe_ids"].add(item["recipe_id"])
        entry["total_quantity_oz"] += convert_to_ounces(item["quantity_used"], item["unit_type"]).ounces * servings
        entry["total_cost_across_recipes"] += line.cost * servings
        entry["all_units_recognized"] = entry["all_units_recognized"] and line.unit_recognized

    rows = []
    for entry in usage.values():
        entry.pop("_row")
        entry["used_in_recipes"] = len(entry.pop("recipe_ids"))
        rows.append(entry)
    return sorted(rows, key=lambda row: row["total_cost_across_recipes"], reverse=True)


# Estimated-profit reports

def _has_cost(recipe: Mapping) -> bool:
    return float(recipe.get("total_recipe_cost") or 0) != 0


def estimated_revenue(recipe: Mapping, profit_multiplier: float) -> float:
    """Recorded total revenue, or ``cost x profit_multiplier`` when none was recorded."""
    revenue = float(recipe.get("total_revenue") or 0)
    if revenue > 0:
        return revenue
    return float(recipe.get("total_recipe_cost") or 0) * float(profit_multiplier)


def estimate_profitability(recipe: Mapping, profit_multiplier: float) -> dict:
    cost = float(recipe.get("total_recipe_cost") or 0)
    revenue = estimated_revenue(recipe, profit_multiplier)
    return {
        **recipe,
        "estimated_revenue": revenue,
        "estimated_profit": costing.total_profit(revenue, cost),
        "profit_margin_percent": costing.profit_margin(revenue, cost),
    }


def rank_highest_cost(recipes: Iterable[Mapping], limit: int) -> List[Mapping]:
    ranked = sorted(
        (r for r in recipes if _has_cost(r)),
        key=lambda r: float(r.get("total_recipe_cost") or 0),
        reverse=True
    )
    return ranked[:limit]


def rank_most_profitable(recipes: Iterable[Mapping], limit: int, profit_multiplier: float) -> List[dict]:
    estimated = [estimate_profitability(r, profit_multiplier) for r in recipes if _has_cost(r)]
    estimated.sort(key=lambda r: r["estimated_profit"], reverse=True)
    return estimated[:limit]


def average_profit_margin(recipes: Iterable[Mapping], profit_multiplier: float) -> dict:
    margins = [
        estimate_profitability(r, profit_multiplier)["profit_margin_percent"]
        for r in recipes if _has_cost(r)
    ]
    return {
        "avg_profit_margin": sum(margins) / len(margins) if margins else 0,
        "total_recipes": len(margins),
    }


def weekly_rollup(
    recipes: Iterable[Mapping],
    profit_multiplier: float,
    weeks: int,
    today: date,
) -> List[dict]:
    """Recipes created in the last ``weeks`` weeks, grouped by the week they were created in."""
    since = today - timedelta(weeks=weeks)
    groups: Dict[date, List[dict]] = {}
    for recipe in recipes:
        created = parse_date(recipe.get("created_at"), field="created_at")
        if created is None or created < since or not _has_cost(recipe):
            continue
        groups.setdefault(week_start_of(created), []).append(estimate_profitability(recipe, profit_multiplier))

    rows = []
    for week_start in sorted(groups, reverse=True):
        members = groups[week_start]
        rows.append({
            "week_start": week_start,
            "week_label": week_start.strftime("%m/%d/%Y"),
            "recipes_created": len(members),
            "total_cost": sum(float(r.get("total_recipe_cost") or 0) for r in members),
            "estimated_revenue": sum(r["estimated_revenue"] for r in members),
            "estimated_profit": sum(r["estimated_profit"] for r in members),
            "avg_profit_margin": sum(r["profit_margin_percent"] for r in members) / len(members),
        })
    return rows


def recipe_metrics(recipes: Iterable[Mapping]) -> dict:
    costed = [r for r in recipes if _has_cost(r)]
    costs = [float(r["total_recipe_cost"]) for r in costed]
    servings = [int(r.get("servings") or 0) for r in costed]
    return {
        "total_recipes": len(costed),
        "total_cost_all_recipes": sum(costs),
        "avg_recipe_cost": sum(costs) / len(costs) if costs else 0,
        "highest_recipe_cost": max(costs) if costs else 0,
        "lowest_recipe_cost": min(costs) if costs else 0,
        "total_servings_all_recipes": sum(servings),
        "avg_servings_per_recipe": sum(servings) / len(servings) if servings else 0,
    }
