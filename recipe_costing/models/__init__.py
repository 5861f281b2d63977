from recipe_costing.models.base import TimestampMixin
from recipe_costing.models.vendor import Vendor
from recipe_costing.models.ingredient import Ingredient
from recipe_costing.models.packing import Packing
from recipe_costing.models.recipe import Recipe, RecipeIngredient, RecipePackaging

__all__ = [
    "TimestampMixin",
    "Vendor",
    "Ingredient",
    "Packing",
    "Recipe",
    "RecipeIngredient",
    "RecipePackaging",
]
