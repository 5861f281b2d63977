"""
Suggested pricing at a target margin.

The margin is a percentage of the selling price, so the suggested price is
``cost / (1 - margin / 100)``.  Margins outside (0, 100) are rejected rather
than producing an infinite or negative price.
"""

import math
from typing import Iterable, List, NamedTuple

from recipe_costing.exceptions import InputError, MarginOutOfRange
from recipe_costing.services.costing import as_number


class Scenario(NamedTuple):
    margin: float
    suggested_price: float
    profit_per_serving: float
    total_profit: float


def validate_margin(desired_margin_percent, field: str = "desired_profit_margin") -> float:
    try:
        margin = float(desired_margin_percent)
    except (TypeError, ValueError):
        raise InputError(
            f"Profit margin must be a number, got {desired_margin_percent!r}", field=field
        )
    if math.isnan(margin) or margin <= 0 or margin >= 100:
        raise MarginOutOfRange(desired_margin_percent, field=field)
    return margin


def suggested_price(cost_per_serving: float, desired_margin_percent: float) -> float:
    margin = validate_margin(desired_margin_percent)
    return as_number(cost_per_serving, "cost_per_serving") / (1 - margin / 100)


def profit_per_serving(price: float, cost_per_serving: float) -> float:
    return float(price) - float(cost_per_serving)


def total_profit_at_margin(profit_per_serving: float, servings: int) -> float:
    return float(profit_per_serving) * int(servings or 0)


def price_at_margin(cost_per_serving: float, servings: int, margin: float) -> Scenario:
    price = suggested_price(cost_per_serving, margin)
    per_serving = profit_per_serving(price, cost_per_serving)
    return Scenario(
        margin=float(margin),
        suggested_price=price,
        profit_per_serving=per_serving,
        total_profit=total_profit_at_margin(per_serving, servings),
    )


def evaluate_scenarios(cost_per_serving: float, servings: int, margins: Iterable[float]) -> List[Scenario]:
    """One scenario per margin, in the order given; repeats are kept."""
    return [price_at_margin(cost_per_serving, servings, margin) for margin in margins]
