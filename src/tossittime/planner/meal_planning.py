"""
Meal planning service: dishes, their inventory claims, and completion.

Saving a dish is two phases. The read phase snapshots the pantry and
shopping list and computes a ClaimPlan; the write phase persists the
claims and the planned meal in one transaction. In conditional claim
mode the write phase re-checks every item and rolls back on conflict.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from ..config import CLAIM_MODE_CONDITIONAL, CLAIM_MODE_READ_THEN_WRITE
from ..data.database import DatabaseInterface, new_id
from ..data.models import MEAL_TYPES, Dish, PlannedMeal, ShoppingListItem
from ..errors import NotFoundError, ValidationError
from ..ingredient_parser import clean_ingredient_name, ingredient_key, parse_ingredient_quantity
from .reminders import CookingReminderScheduler, default_start_cooking_at
from .reservation import (
    ClaimPlan,
    IngredientStatus,
    calculate_reserved_quantities,
    check_ingredients,
    outstanding_reserved_quantities,
    pantry_quantity,
    plan_dish_claims,
)

logger = logging.getLogger(__name__)

RECIPE_IMPORT_SOURCE = "recipe_import"


def week_start(day: date) -> date:
    """Sunday on or before day."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


class MealPlanningService:
    """Persists dishes and keeps pantry/shopping claims consistent."""

    def __init__(
        self,
        db: DatabaseInterface,
        claim_mode: str = CLAIM_MODE_CONDITIONAL,
        reminders: Optional[CookingReminderScheduler] = None,
    ):
        if claim_mode not in (CLAIM_MODE_CONDITIONAL, CLAIM_MODE_READ_THEN_WRITE):
            raise ValueError(f"Unknown claim mode: {claim_mode}")
        self.db = db
        self.claim_mode = claim_mode
        self.reminders = reminders

    @property
    def conditional_claims(self) -> bool:
        return self.claim_mode == CLAIM_MODE_CONDITIONAL

    # ==================== Read phase ====================

    def _open_dishes(self, user_id: str) -> List[Dish]:
        dishes = []
        for meal in self.db.get_planned_meals(user_id):
            dishes.extend(d for d in meal.dishes if not d.completed)
        return dishes

    def reserved_quantities(self, user_id: str, exclude_dish_id: Optional[str] = None) -> Dict[str, float]:
        pantry = self.db.get_food_items(user_id)
        return calculate_reserved_quantities(self._open_dishes(user_id), pantry, exclude_dish_id)

    def check_availability(
        self,
        user_id: str,
        ingredients: List[str],
        dish_id: Optional[str] = None,
    ) -> List[IngredientStatus]:
        """Availability of each ingredient against current inventory and other dishes' reservations."""
        snapshot = self.db.snapshot_inventory(user_id)
        pantry = snapshot["pantry"]
        reserved = outstanding_reserved_quantities(self._open_dishes(user_id), pantry, dish_id)
        return check_ingredients(ingredients, pantry, snapshot["shopping"], reserved, dish_id)

    def plan_dish(self, user_id: str, dish_id: str, ingredients: List[str]) -> ClaimPlan:
        """Snapshot inventory and compute what dish_id would claim."""
        snapshot = self.db.snapshot_inventory(user_id)
        pantry = snapshot["pantry"]
        reserved = outstanding_reserved_quantities(self._open_dishes(user_id), pantry, dish_id)
        return plan_dish_claims(dish_id, ingredients, pantry, snapshot["shopping"], reserved)

    # ==================== Write phase ====================

    def _get_or_create_meal(
        self,
        user_id: str,
        meal_date: date,
        meal_type: str,
        finish_by: Optional[str] = None,
    ) -> PlannedMeal:
        if meal_type not in MEAL_TYPES:
            raise ValidationError(f"mealType must be one of: {', '.join(MEAL_TYPES)}")

        meal = self.db.get_planned_meal_by_slot(user_id, meal_date, meal_type)
        if meal:
            if finish_by and finish_by != meal.finish_by:
                meal.finish_by = finish_by
                meal.start_cooking_at = default_start_cooking_at(meal_type, finish_by)
            return meal

        plan = self.db.get_or_create_meal_plan(user_id, week_start(meal_date))
        finish_by = finish_by or "18:00"
        return PlannedMeal(
            id=new_id("meal"),
            user_id=user_id,
            meal_plan_id=plan.id,
            date=meal_date,
            meal_type=meal_type,
            finish_by=finish_by,
            start_cooking_at=default_start_cooking_at(meal_type, finish_by),
        )

    def _missing_shopping_items(self, user_id: str, list_id: str, plan: ClaimPlan) -> List[ShoppingListItem]:
        items = []
        for status in plan.missing:
            parsed = parse_ingredient_quantity(status.ingredient)
            name = clean_ingredient_name(parsed.item_name) or status.ingredient
            items.append(ShoppingListItem(
                id=new_id("si"),
                user_id=user_id,
                list_id=list_id,
                name=name,
                quantity=parsed.quantity,
                quantity_unit=parsed.unit,
                source=RECIPE_IMPORT_SOURCE,
                meal_id=plan.dish_id,
            ))
        return items

    def save_dish(
        self,
        user_id: str,
        meal_date: date,
        meal_type: str,
        dish_name: str,
        ingredients: List[str],
        recipe: Optional[Dict[str, Any]] = None,
        finish_by: Optional[str] = None,
        add_missing_to_list: bool = False,
        list_id: Optional[str] = None,
        dish_id: Optional[str] = None,
        claim_plan: Optional[ClaimPlan] = None,
    ) -> Dict[str, Any]:
        """
        Add a dish to the (date, meal_type) slot and claim its ingredients.

        Args:
            recipe: Optional imported recipe fields (title, sourceUrl,
                sourceDomain, imageUrl)
            add_missing_to_list: Put missing ingredients on the shopping
                list, claimed by this dish
            claim_plan: A plan computed earlier by plan_dish(); by default
                a fresh one is computed

        Raises:
            ClaimConflictError: conditional mode and another dish claimed
                one of the planned items in the meantime (nothing is saved)
        """
        if not dish_name or not dish_name.strip():
            raise ValidationError("dishName is required")

        dish_id = dish_id or (claim_plan.dish_id if claim_plan else new_id("dish"))
        meal = self._get_or_create_meal(user_id, meal_date, meal_type, finish_by)
        plan = claim_plan or self.plan_dish(user_id, dish_id, ingredients)

        new_items: List[ShoppingListItem] = []
        if add_missing_to_list and plan.missing:
            target = list_id or self.db.get_default_shopping_list(user_id).id
            new_items = self._missing_shopping_items(user_id, target, plan)

        recipe = recipe or {}
        dish = Dish(
            id=dish_id,
            dish_name=dish_name.strip(),
            recipe_ingredients=list(ingredients),
            recipe_title=recipe.get("title"),
            recipe_source_url=recipe.get("sourceUrl"),
            recipe_source_domain=recipe.get("sourceDomain"),
            recipe_image_url=recipe.get("imageUrl"),
            reserved_quantities=plan.reserved_quantities,
            claimed_item_ids=list(plan.claimed_item_ids),
            claimed_shopping_list_item_ids=list(plan.claimed_shopping_list_item_ids) + [i.id for i in new_items],
        )
        meal.dishes = [d for d in meal.dishes if d.id != dish_id] + [dish]

        with self.db.transaction() as conn:
            self.db.claim_items(
                conn,
                dish_id,
                plan.claimed_item_ids,
                plan.claimed_shopping_list_item_ids,
                conditional=self.conditional_claims,
            )
            self.db.insert_shopping_items(conn, new_items)
            meal.id = self.db.save_planned_meal(meal, conn)

        logger.info(
            f"[CLAIM] Dish {dish_id} saved to {meal_date} {meal_type}: "
            f"{len(plan.claimed_item_ids)} pantry, {len(dish.claimed_shopping_list_item_ids)} shopping claims"
        )
        self._reschedule(meal)

        return {"meal": meal, "dish": dish, "plan": plan, "addedShoppingItems": new_items}

    def update_dish_ingredients(
        self,
        meal_id: str,
        dish_id: str,
        ingredients: List[str],
        dish_name: Optional[str] = None,
        add_missing_to_list: bool = True,
        list_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Replace a dish's ingredients: release old claims, claim the new plan."""
        meal = self.db.require_planned_meal(meal_id)
        dish = meal.get_dish(dish_id)
        if dish is None:
            raise NotFoundError(f"Dish {dish_id} not found in meal {meal_id}")

        plan = self.plan_dish(meal.user_id, dish_id, ingredients)

        new_items: List[ShoppingListItem] = []
        if add_missing_to_list and plan.missing:
            target = list_id or self.db.get_default_shopping_list(meal.user_id).id
            new_items = self._missing_shopping_items(meal.user_id, target, plan)

        old_items, old_shopping = dish.claimed_item_ids, dish.claimed_shopping_list_item_ids
        dish.recipe_ingredients = list(ingredients)
        if dish_name:
            dish.dish_name = dish_name.strip()
        dish.reserved_quantities = plan.reserved_quantities
        dish.claimed_item_ids = list(plan.claimed_item_ids)
        dish.claimed_shopping_list_item_ids = list(plan.claimed_shopping_list_item_ids) + [i.id for i in new_items]

        with self.db.transaction() as conn:
            self.db.release_items(conn, dish_id, old_items, old_shopping)
            self.db.claim_items(
                conn,
                dish_id,
                plan.claimed_item_ids,
                plan.claimed_shopping_list_item_ids,
                conditional=self.conditional_claims,
            )
            self.db.insert_shopping_items(conn, new_items)
            self.db.save_planned_meal(meal, conn)

        logger.info(f"[CLAIM] Dish {dish_id} updated with {len(ingredients)} ingredients")
        self._reschedule(meal)
        return {"meal": meal, "dish": dish, "plan": plan, "addedShoppingItems": new_items}

    def remove_dish(self, meal_id: str, dish_id: str) -> PlannedMeal:
        """Remove a dish from its meal and release everything it claimed."""
        meal = self.db.require_planned_meal(meal_id)
        dish = meal.get_dish(dish_id)
        if dish is None:
            raise NotFoundError(f"Dish {dish_id} not found in meal {meal_id}")

        meal.dishes = [d for d in meal.dishes if d.id != dish_id]
        with self.db.transaction() as conn:
            self.db.release_items(conn, dish_id, dish.claimed_item_ids, dish.claimed_shopping_list_item_ids)
            self.db.save_planned_meal(meal, conn)

        logger.info(f"[CLAIM] Released claims of removed dish {dish_id}")
        self._reschedule(meal)
        return meal

    def delete_planned_meal(self, meal_id: str) -> bool:
        """Delete a planned meal after releasing the claims of all its dishes."""
        meal = self.db.require_planned_meal(meal_id)
        with self.db.transaction() as conn:
            for dish in meal.dishes:
                self.db.release_items(conn, dish.id, dish.claimed_item_ids, dish.claimed_shopping_list_item_ids)
            deleted = self.db.delete_planned_meal_row(conn, meal_id)

        if self.reminders:
            self.reminders.cancel_for_meal(meal_id)
        logger.info(f"[CLAIM] Deleted planned meal {meal_id} ({len(meal.dishes)} dishes released)")
        return deleted

    def mark_dish_prepared(
        self,
        meal_id: str,
        dish_id: str,
        checked_ingredients: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Mark a dish cooked and consume its inventory.

        For every checked ingredient (all of them by default) the claimed
        pantry items are reduced by the reserved amount, falling back to
        the line's quantity (items reaching zero are deleted), and the
        claimed shopping items are removed. Remaining claims are released.
        """
        meal = self.db.require_planned_meal(meal_id)
        dish = meal.get_dish(dish_id)
        if dish is None:
            raise NotFoundError(f"Dish {dish_id} not found in meal {meal_id}")

        checked = dish.recipe_ingredients if checked_ingredients is None else checked_ingredients
        needed: Dict[str, Optional[float]] = {}
        for line in checked:
            key = ingredient_key(line)
            if key:
                qty = parse_ingredient_quantity(line).quantity
                needed[key] = dish.reserved_quantities.get(key, qty)

        pantry = {item.id: item for item in self.db.get_food_items(meal.user_id)}
        consumed: Dict[str, float] = {}
        remaining_by_key = dict(needed)
        for item_id in dish.claimed_item_ids:
            item = pantry.get(item_id)
            if item is None:
                continue
            key = ingredient_key(item.name)
            if key not in remaining_by_key:
                continue
            want = remaining_by_key[key]
            # "salt to taste": nothing measurable to consume
            if want is None:
                continue
            amount = min(want, pantry_quantity(item))
            if amount <= 0:
                continue
            consumed[item_id] = amount
            remaining_by_key[key] = want - amount

        shopping_to_delete = []
        for item_id in dish.claimed_shopping_list_item_ids:
            item = self.db.get_shopping_list_item(item_id)
            if item is not None and ingredient_key(item.name) in needed:
                shopping_to_delete.append(item_id)

        dish.completed = True
        with self.db.transaction() as conn:
            for item_id, amount in consumed.items():
                self.db.decrement_food_item(conn, item_id, amount)
            deleted = self.db.delete_shopping_items(conn, shopping_to_delete)
            self.db.release_items(conn, dish_id, dish.claimed_item_ids, dish.claimed_shopping_list_item_ids)
            self.db.save_planned_meal(meal, conn)

        logger.info(
            f"[CLAIM] Dish {dish_id} prepared: consumed {len(consumed)} pantry items, "
            f"removed {deleted} shopping items"
        )
        return {"dish": dish, "consumed": consumed, "deletedShoppingItems": deleted}

    def set_meal_confirmed(self, meal_id: str, confirmed: bool = True, skipped: bool = False) -> PlannedMeal:
        meal = self.db.require_planned_meal(meal_id)
        meal.confirmed = confirmed
        meal.skipped = skipped
        self.db.save_planned_meal(meal)
        self._reschedule(meal)
        return meal

    def _reschedule(self, meal: PlannedMeal):
        if self.reminders:
            self.reminders.schedule_for_meal(meal)
