from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from recipe_costing.schemas import not_blank
from recipe_costing.schemas.ingredient import IngredientResponse


class VendorBase(BaseModel):
    name: str = Field(..., min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return not_blank(value)


class VendorCreate(VendorBase):
    pass


class VendorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        return not_blank(value)


class VendorResponse(VendorBase):
    id: int
    is_active: bool
    ingredient_count: int = 0
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class VendorDetailResponse(VendorResponse):
    ingredients: List[IngredientResponse] = []


class VendorDeleteResponse(BaseModel):
    message: str
    deactivated: bool
    vendor: Optional[VendorResponse] = None
