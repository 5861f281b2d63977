from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from recipe_costing.schemas import not_blank


class PackingBase(BaseModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0, description="Flat price of one unit of packaging")

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return not_blank(value)
    
    class Config:
        allow_inf_nan = False


class PackingCreate(PackingBase):
    pass


class PackingUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        return not_blank(value)
    
    class Config:
        allow_inf_nan = False


class PackingResponse(PackingBase):
    id: int
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True
