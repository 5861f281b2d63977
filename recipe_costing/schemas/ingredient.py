from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date, datetime

from recipe_costing.schemas import not_blank


class IngredientBase(BaseModel):
    name: str = Field(..., min_length=1)
    cost_per_unit: float = Field(..., ge=0, description="Total amount paid for all boxes")
    quantity: float = Field(..., gt=0, description="Quantity in one box, in unit_type")
    unit_type: str = Field(..., min_length=1)
    box_count: int = Field(1, ge=1)
    vendor_id: Optional[int] = None
    last_price_check: Optional[date] = None
    
    @field_validator("name", "unit_type")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return not_blank(value)
    
    class Config:
        allow_inf_nan = False


class IngredientCreate(IngredientBase):
    pass


class IngredientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    cost_per_unit: Optional[float] = Field(None, ge=0)
    quantity: Optional[float] = Field(None, gt=0)
    unit_type: Optional[str] = Field(None, min_length=1)
    box_count: Optional[int] = Field(None, ge=1)
    vendor_id: Optional[int] = None
    last_price_check: Optional[date] = None

    @field_validator("name", "unit_type")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        return not_blank(value)
    
    class Config:
        allow_inf_nan = False


class IngredientResponse(IngredientBase):
    id: int
    cost_per_box: Optional[float] = None
    base_cost: Optional[float] = None
    vendor_name: Optional[str] = None
    unit_recognized: bool = True
    price_outdated: bool = False
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True
