from sqlalchemy import Column, String, ForeignKey, Integer, Numeric, Date
from sqlalchemy.orm import relationship

from recipe_costing.database import Base
from recipe_costing.models.base import TimestampMixin


class Recipe(Base, TimestampMixin):
    __tablename__ = "recipes"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    servings = Column(Integer, nullable=False)
    week = Column(Date)
    selling_price_per_serving = Column(Numeric(12, 4), nullable=False, default=0, server_default="0")
    desired_profit_margin = Column(Numeric(6, 2))
    
    # Derived, recomputed from the line items on every write
    total_recipe_cost = Column(Numeric(14, 6), nullable=False, default=0, server_default="0")
    cost_per_serving = Column(Numeric(14, 6), nullable=False, default=0, server_default="0")
    total_revenue = Column(Numeric(14, 6), nullable=False, default=0, server_default="0")
    profit_margin = Column(Numeric(10, 4), nullable=False, default=0, server_default="0")
    
    # Relationships
    ingredients = relationship("RecipeIngredient", back_populates="recipe", cascade="all, delete-orphan")
    packaging = relationship("RecipePackaging", back_populates="recipe", cascade="all, delete-orphan")


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    recipe_id = Column(Integer, ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False)
    ingredient_id = Column(Integer, ForeignKey('ingredients.id'), nullable=False)
    quantity_used = Column(Numeric(12, 4), nullable=False)
    unit_type = Column(String(20), nullable=False)
    
    # Relationships
    recipe = relationship("Recipe", back_populates="ingredients")
    ingredient = relationship("Ingredient", back_populates="recipe_ingredients")


class RecipePackaging(Base):
    __tablename__ = "recipe_packaging"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    recipe_id = Column(Integer, ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False)
    packaging_id = Column(Integer, ForeignKey('packing.id'), nullable=False)
    quantity = Column(Numeric(12, 4), nullable=False)
    
    # Relationships
    recipe = relationship("Recipe", back_populates="packaging")
    packing = relationship("Packing", back_populates="recipe_packaging")
