from sqlalchemy import Column, String, Boolean, Integer, true
from sqlalchemy.orm import relationship

from recipe_costing.database import Base
from recipe_costing.models.base import TimestampMixin


class Vendor(Base, TimestampMixin):
    __tablename__ = "vendors"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    address = Column(String)
    phone = Column(String(50))
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    
    # Relationships
    ingredients = relationship("Ingredient", back_populates="vendor")
