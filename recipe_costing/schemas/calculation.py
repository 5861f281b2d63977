from pydantic import BaseModel, Field
from typing import Optional, List


class PricingScenarioRequest(BaseModel):
    recipe_id: int
    profit_margins: List[float] = Field(..., min_length=1)

    class Config:
        allow_inf_nan = False


class ScenarioResponse(BaseModel):
    profit_margin: float
    suggested_price_per_serving: float
    profit_per_serving: float
    total_profit: float


class PricingScenarioResponse(BaseModel):
    recipe_id: int
    recipe_name: str
    servings: int
    cost_per_serving: float
    scenarios: List[ScenarioResponse]


class SuggestedPriceRequest(BaseModel):
    cost_per_serving: float = Field(..., ge=0)
    desired_profit_margin: float
    servings: int = Field(1, ge=1)

    class Config:
        allow_inf_nan = False


class CostBreakdownCosts(BaseModel):
    ingredient_cost_per_serving: float
    packaging_cost_per_serving: float
    cost_per_serving: float
    total_recipe_cost: float


class CostBreakdownPricing(BaseModel):
    desired_profit_margin: float
    suggested_price_per_serving: float
    profit_per_serving: float
    total_profit: float


class IngredientBreakdown(BaseModel):
    ingredient_id: int
    ingredient_name: str
    quantity_used: float
    unit_type: str
    line_cost: float
    percentage_of_ingredient_cost: Optional[float] = None
    unit_recognized: bool


class PackagingBreakdown(BaseModel):
    packaging_id: int
    packaging_name: str
    quantity: float
    line_cost: float


class CostBreakdownResponse(BaseModel):
    recipe_id: int
    recipe_name: str
    servings: int
    costs: CostBreakdownCosts
    pricing: CostBreakdownPricing
    ingredients: List[IngredientBreakdown]
    packaging: List[PackagingBreakdown]
    all_units_recognized: bool
