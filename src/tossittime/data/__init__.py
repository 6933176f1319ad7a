"""Persistence layer: dataclass models and the SQLite interface."""

from .database import DatabaseInterface
from .models import (
    CookingReminder,
    Dish,
    FoodItem,
    MealPlan,
    ParsedIngredient,
    PlannedMeal,
    RecipeImportResult,
    ShelfLifeResult,
    ShoppingList,
    ShoppingListItem,
)

__all__ = [
    "DatabaseInterface",
    "CookingReminder",
    "Dish",
    "FoodItem",
    "MealPlan",
    "ParsedIngredient",
    "PlannedMeal",
    "RecipeImportResult",
    "ShelfLifeResult",
    "ShoppingList",
    "ShoppingListItem",
]
