"""Meal planner: ingredient reservation, dish claims and cooking reminders."""

from .meal_planning import MealPlanningService, week_start
from .reminders import CookingReminderScheduler, calculate_start_cooking_at
from .reservation import (
    AVAILABLE,
    MISSING,
    PARTIAL,
    ClaimPlan,
    IngredientStatus,
    calculate_dish_reserved_quantities,
    calculate_reserved_quantities,
    check_ingredient_availability,
    outstanding_reserved_quantities,
    plan_dish_claims,
)

__all__ = [
    "AVAILABLE",
    "MISSING",
    "PARTIAL",
    "ClaimPlan",
    "CookingReminderScheduler",
    "IngredientStatus",
    "MealPlanningService",
    "calculate_dish_reserved_quantities",
    "calculate_reserved_quantities",
    "calculate_start_cooking_at",
    "check_ingredient_availability",
    "outstanding_reserved_quantities",
    "plan_dish_claims",
    "week_start",
]
