from sqlalchemy import Column, String, Integer, Numeric
from sqlalchemy.orm import relationship

from recipe_costing.database import Base
from recipe_costing.models.base import TimestampMixin


class Packing(Base, TimestampMixin):
    __tablename__ = "packing"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 4), nullable=False)
    
    # Relationships
    recipe_packaging = relationship("RecipePackaging", back_populates="packing")
