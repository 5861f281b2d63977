from fastapi import Query
from datetime import date
from typing import Optional

from recipe_costing.config import settings
from recipe_costing.utils.timezone import get_local_today


def get_today() -> date:
    """
    Today's date in the business timezone.
    Tests override this to pin price staleness and weekly windows.
    """
    return get_local_today()


def get_profit_multiplier(
    profit_multiplier: Optional[float] = Query(
        None,
        gt=0,
        description="Revenue = cost x multiplier for recipes without recorded revenue"
    )
) -> float:
    """Per-request override of the configured revenue fallback"""
    if profit_multiplier is None:
        return settings.DEFAULT_PROFIT_MULTIPLIER
    return profit_multiplier
