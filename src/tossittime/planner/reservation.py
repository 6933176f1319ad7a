"""
Ingredient availability and reservation for planned dishes.

Pure functions over snapshots of the user's pantry and shopping list.
Persisting the resulting claims is MealPlanningService's job.

Matching is by normalized name: both the recipe line and the item name
are reduced with ingredient_key() and compared for equality.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..data.models import Dish, FoodItem, ShoppingListItem
from ..ingredient_parser import ingredient_key, parse_ingredient_quantity

AVAILABLE = "available"
PARTIAL = "partial"
MISSING = "missing"


@dataclass
class IngredientStatus:
    """Availability of one recipe ingredient line."""
    ingredient: str
    key: str
    status: str
    needed_quantity: Optional[float] = None
    available_quantity: float = 0
    matching_items: List[FoodItem] = field(default_factory=list)
    matching_shopping_items: List[ShoppingListItem] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "ingredient": self.ingredient,
            "status": self.status,
            "neededQuantity": self.needed_quantity,
            "availableQuantity": self.available_quantity,
            "matchingItems": [item.to_dict() for item in self.matching_items],
            "matchingShoppingItems": [item.to_dict() for item in self.matching_shopping_items],
        }


@dataclass
class ClaimPlan:
    """What a dish would claim, computed from one inventory snapshot."""
    dish_id: str
    statuses: List[IngredientStatus]
    claimed_item_ids: List[str]
    claimed_shopping_list_item_ids: List[str]
    reserved_quantities: Dict[str, float]

    @property
    def missing(self) -> List[IngredientStatus]:
        return [s for s in self.statuses if s.status == MISSING]


def pantry_quantity(item: FoodItem) -> float:
    """Pantry quantity, counting items without one as a single unit."""
    return item.quantity if item.quantity is not None else 1


def usable_pantry_items(pantry_items: Iterable[FoodItem], dish_id: Optional[str] = None) -> List[FoodItem]:
    """Items not claimed by a dish other than dish_id."""
    return [
        item for item in pantry_items
        if all(claimant == dish_id for claimant in item.used_by_meals)
    ]


def usable_shopping_items(
    shopping_items: Iterable[ShoppingListItem],
    dish_id: Optional[str] = None,
) -> List[ShoppingListItem]:
    """Open shopping items not claimed by a dish other than dish_id."""
    return [
        item for item in shopping_items
        if not item.crossed_off and (item.meal_id is None or item.meal_id == dish_id)
    ]


def check_ingredient_availability(
    ingredient: str,
    pantry_items: Iterable[FoodItem],
    shopping_items: Iterable[ShoppingListItem],
    reserved: Optional[Dict[str, float]] = None,
    dish_id: Optional[str] = None,
) -> IngredientStatus:
    """
    Classify one ingredient line as available, partial or missing.

    Args:
        ingredient: Recipe ingredient line, e.g. "2 large eggs"
        pantry_items: Current pantry snapshot
        shopping_items: Current shopping-list snapshot
        reserved: Quantities already reserved by other dishes, keyed by
            ingredient_key()
        dish_id: The dish being checked; its own claims do not exclude items

    available: pantry holds at least the needed quantity (or any
    quantity when the line has none). partial: some pantry quantity, or
    only a shopping-list match. missing: nothing usable.
    """
    reserved = reserved or {}
    parsed = parse_ingredient_quantity(ingredient)
    key = ingredient_key(ingredient)
    needed = parsed.quantity

    if not key:
        return IngredientStatus(ingredient=ingredient, key=key, status=MISSING, needed_quantity=needed)

    matches = [item for item in usable_pantry_items(pantry_items, dish_id) if ingredient_key(item.name) == key]
    shopping_matches = [
        item for item in usable_shopping_items(shopping_items, dish_id)
        if ingredient_key(item.name) == key
    ]

    total = sum(pantry_quantity(item) for item in matches)
    available = max(total - reserved.get(key, 0), 0)

    if matches and available > 0:
        status = AVAILABLE if needed is None or available >= needed else PARTIAL
    elif shopping_matches:
        status = PARTIAL
    else:
        status = MISSING

    return IngredientStatus(
        ingredient=ingredient,
        key=key,
        status=status,
        needed_quantity=needed,
        available_quantity=available,
        matching_items=matches if available > 0 else [],
        matching_shopping_items=shopping_matches,
    )


def check_ingredients(
    ingredients: Iterable[str],
    pantry_items: List[FoodItem],
    shopping_items: List[ShoppingListItem],
    reserved: Optional[Dict[str, float]] = None,
    dish_id: Optional[str] = None,
) -> List[IngredientStatus]:
    return [
        check_ingredient_availability(line, pantry_items, shopping_items, reserved, dish_id)
        for line in ingredients
    ]


def calculate_dish_reserved_quantities(
    ingredients: Iterable[str],
    pantry_items: Iterable[FoodItem],
    already_reserved: Optional[Dict[str, float]] = None,
) -> Dict[str, float]:
    """
    Pantry amounts one dish reserves, keyed by ingredient_key().

    Each ingredient with a quantity reserves min(needed, remaining) of the
    matching pantry total; lines without a quantity reserve nothing.
    """
    already_reserved = already_reserved or {}
    totals: Dict[str, float] = {}
    for item in pantry_items:
        key = ingredient_key(item.name)
        totals[key] = totals.get(key, 0) + pantry_quantity(item)

    reserved: Dict[str, float] = {}
    for line in ingredients:
        needed = parse_ingredient_quantity(line).quantity
        if needed is None:
            continue
        key = ingredient_key(line)
        if key not in totals:
            continue
        remaining = totals[key] - already_reserved.get(key, 0) - reserved.get(key, 0)
        amount = min(needed, remaining)
        if amount > 0:
            reserved[key] = reserved.get(key, 0) + amount
    return reserved


def calculate_reserved_quantities(
    dishes: Iterable[Dish],
    pantry_items: List[FoodItem],
    exclude_dish_id: Optional[str] = None,
) -> Dict[str, float]:
    """Pantry amounts reserved across all open dishes, greedily in order."""
    reserved: Dict[str, float] = {}
    for dish in dishes:
        if dish.completed or dish.id == exclude_dish_id:
            continue
        for key, amount in calculate_dish_reserved_quantities(
            dish.recipe_ingredients, pantry_items, reserved
        ).items():
            reserved[key] = reserved.get(key, 0) + amount
    return reserved


def _claimed_totals(pantry_items: Iterable[FoodItem], dish_id: str) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for item in pantry_items:
        if dish_id in item.used_by_meals:
            key = ingredient_key(item.name)
            totals[key] = totals.get(key, 0) + pantry_quantity(item)
    return totals


def outstanding_reserved_quantities(
    dishes: Iterable[Dish],
    pantry_items: List[FoodItem],
    exclude_dish_id: Optional[str] = None,
) -> Dict[str, float]:
    """
    Reservations by other dishes that still compete for unclaimed items.

    The part of a dish's reservation held by items it has claimed is
    left out: those items are already hidden from every other dish by
    usable_pantry_items().
    """
    dishes = [d for d in dishes if not d.completed and d.id != exclude_dish_id]
    reserved: Dict[str, float] = {}
    outstanding: Dict[str, float] = {}
    for dish in dishes:
        held = _claimed_totals(pantry_items, dish.id)
        for key, amount in calculate_dish_reserved_quantities(
            dish.recipe_ingredients, pantry_items, reserved
        ).items():
            reserved[key] = reserved.get(key, 0) + amount
            uncovered = amount - held.get(key, 0)
            if uncovered > 0:
                outstanding[key] = outstanding.get(key, 0) + uncovered
    return outstanding


def plan_dish_claims(
    dish_id: str,
    ingredients: List[str],
    pantry_items: List[FoodItem],
    shopping_items: List[ShoppingListItem],
    reserved: Optional[Dict[str, float]] = None,
) -> ClaimPlan:
    """Compute which pantry and shopping items a dish should claim."""
    statuses = check_ingredients(ingredients, pantry_items, shopping_items, reserved, dish_id)

    claimed_items: List[str] = []
    claimed_shopping: List[str] = []
    for status in statuses:
        for item in status.matching_items:
            if item.id not in claimed_items:
                claimed_items.append(item.id)
        for item in status.matching_shopping_items:
            if item.id not in claimed_shopping:
                claimed_shopping.append(item.id)

    return ClaimPlan(
        dish_id=dish_id,
        statuses=statuses,
        claimed_item_ids=claimed_items,
        claimed_shopping_list_item_ids=claimed_shopping,
        reserved_quantities=calculate_dish_reserved_quantities(
            ingredients, usable_pantry_items(pantry_items, dish_id), reserved
        ),
    )
