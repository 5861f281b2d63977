from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, datetime

from recipe_costing.schemas import not_blank


class RecipeIngredientIn(BaseModel):
    ingredient_id: int
    quantity: float = Field(..., gt=0, description="Quantity used per serving")
    unit: str = Field("oz", min_length=1)

    @field_validator("unit")
    @classmethod
    def strip_unit(cls, value: str) -> str:
        return not_blank(value)
    
    class Config:
        allow_inf_nan = False


class RecipePackagingIn(BaseModel):
    packaging_id: int
    quantity: float = Field(..., gt=0, description="Packaging units used per serving")

    class Config:
        allow_inf_nan = False


class RecipeBase(BaseModel):
    name: str = Field(..., min_length=1)
    servings: int = Field(..., ge=1)
    week: Optional[date] = None
    selling_price_per_serving: float = Field(0, ge=0)
    desired_profit_margin: Optional[float] = Field(None, gt=0, lt=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return not_blank(value)
    
    class Config:
        allow_inf_nan = False


class RecipeCreate(RecipeBase):
    recipe_ingredients: List[RecipeIngredientIn] = []
    recipe_packaging: List[RecipePackagingIn] = []


class RecipeUpdate(RecipeBase):
    # None keeps the current set, a list (even empty) replaces it
    recipe_ingredients: Optional[List[RecipeIngredientIn]] = None
    recipe_packaging: Optional[List[RecipePackagingIn]] = None


class RecipeDuplicate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    week: Optional[date] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        return not_blank(value)


class RecipeIngredientResponse(BaseModel):
    id: int
    recipe_id: int
    ingredient_id: int
    ingredient_name: Optional[str] = None
    quantity_used: float
    unit_type: str
    ingredient_unit_type: Optional[str] = None
    ingredient_base_cost: Optional[float] = None
    line_cost: float
    unit_recognized: bool
    
    class Config:
        from_attributes = True


class RecipePackagingResponse(BaseModel):
    id: int
    recipe_id: int
    packaging_id: int
    packaging_name: Optional[str] = None
    packaging_price: Optional[float] = None
    quantity: float
    line_cost: float
    
    class Config:
        from_attributes = True


class RecipeResponse(RecipeBase):
    id: int
    total_recipe_cost: float
    cost_per_serving: float
    total_revenue: float
    profit_margin: float
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class RecipeDetailResponse(RecipeResponse):
    ingredients: List[RecipeIngredientResponse] = []
    packaging: List[RecipePackagingResponse] = []
    all_units_recognized: bool = True
