from sqlalchemy import Column, String, ForeignKey, Integer, Numeric, Date, UniqueConstraint
from sqlalchemy.orm import relationship

from recipe_costing.database import Base
from recipe_costing.models.base import TimestampMixin


class Ingredient(Base, TimestampMixin):
    __tablename__ = "ingredients"
    __table_args__ = (
        UniqueConstraint("name", "vendor_id", name="uq_ingredients_name_vendor"),
    )
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    cost_per_unit = Column(Numeric(12, 4), nullable=False)  # total paid for all boxes
    cost_per_box = Column(Numeric(12, 4))
    base_cost = Column(Numeric(14, 6))  # cost of ONE unit_type
    quantity = Column(Numeric(12, 4), nullable=False)  # per box, in unit_type
    unit_type = Column(String(20), nullable=False)
    box_count = Column(Integer, nullable=False, default=1, server_default="1")
    vendor_id = Column(Integer, ForeignKey('vendors.id'))
    last_price_check = Column(Date)
    
    # Relationships
    vendor = relationship("Vendor", back_populates="ingredients")
    recipe_ingredients = relationship("RecipeIngredient", back_populates="ingredient")
