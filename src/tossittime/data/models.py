"""
Data models for TossItTime kitchen services.

- ParsedIngredient / RecipeImportResult: output of the recipe importer
- FoodItem: pantry inventory
- ShoppingList / ShoppingListItem: shopping lists
- MealPlan / PlannedMeal / Dish: weekly planner
- CookingReminder: scheduled "start cooking" notifications
- ShelfLifeResult: scraped storage guidance

Wire format (to_dict/from_dict) uses the camelCase keys of the client API.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

MEAL_TYPES = ("breakfast", "lunch", "dinner")
STORAGE_TYPES = ("refrigerator", "freezer", "pantry")
MEAL_PLAN_STATUSES = ("draft", "confirmed", "active")


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _parse_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def _iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class ParsedIngredient:
    """One ingredient line split by the AI parser.

    unit is one of the canonical abbreviations in tossittime.units or None.
    """
    name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None

    def __str__(self) -> str:
        if self.quantity is not None and self.unit:
            return f"{_format_quantity(self.quantity)} {self.unit} {self.name}"
        elif self.quantity is not None:
            return f"{_format_quantity(self.quantity)} {self.name}"
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "quantity": self.quantity, "unit": self.unit}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedIngredient":
        return cls(name=data.get("name", ""), quantity=data.get("quantity"), unit=data.get("unit"))


def _format_quantity(quantity: float) -> str:
    return str(int(quantity)) if float(quantity).is_integer() else f"{quantity:g}"


@dataclass(frozen=True)
class RecipeImportResult:
    """Result of importing a recipe from a URL. Built once, never mutated."""
    title: str
    ingredients: List[str]
    source_url: str
    source_domain: str
    image_url: Optional[str] = None
    parsed_ingredients: List[ParsedIngredient] = field(default_factory=list)
    usage: Optional[Dict[str, Any]] = None
    strategy: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "title": self.title,
            "ingredients": list(self.ingredients),
            "imageUrl": self.image_url,
            "sourceUrl": self.source_url,
            "sourceDomain": self.source_domain,
            "parsedIngredients": [p.to_dict() for p in self.parsed_ingredients],
            "strategy": self.strategy,
        }
        if self.usage is not None:
            data["usage"] = self.usage
        return data


@dataclass
class FoodItem:
    """Pantry item. used_by_meals holds the ids of dishes claiming it."""
    id: str
    user_id: str
    name: str
    quantity: Optional[float] = None
    quantity_unit: Optional[str] = None
    category: Optional[str] = None
    expiration_date: Optional[date] = None
    thaw_date: Optional[date] = None
    used_by_meals: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_claimed(self) -> bool:
        return bool(self.used_by_meals)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "quantity": self.quantity,
            "quantityUnit": self.quantity_unit,
            "category": self.category,
            "expirationDate": _iso(self.expiration_date),
            "thawDate": _iso(self.thaw_date),
            "usedByMeals": list(self.used_by_meals),
            "createdAt": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FoodItem":
        return cls(
            id=data["id"],
            user_id=data.get("userId", ""),
            name=data["name"],
            quantity=data.get("quantity"),
            quantity_unit=data.get("quantityUnit"),
            category=data.get("category"),
            expiration_date=_parse_date(data.get("expirationDate")),
            thaw_date=_parse_date(data.get("thawDate")),
            used_by_meals=list(data.get("usedByMeals") or []),
            created_at=_parse_datetime(data.get("createdAt")) or datetime.now(),
        )


@dataclass
class ShoppingList:
    id: str
    user_id: str
    name: str
    is_default: bool = False
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "isDefault": self.is_default,
            "createdAt": _iso(self.created_at),
        }


@dataclass
class ShoppingListItem:
    """Shopping list entry. meal_id is the id of the dish claiming it."""
    id: str
    user_id: str
    list_id: str
    name: str
    quantity: Optional[float] = None
    quantity_unit: Optional[str] = None
    crossed_off: bool = False
    source: Optional[str] = None
    meal_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "listId": self.list_id,
            "name": self.name,
            "quantity": self.quantity,
            "quantityUnit": self.quantity_unit,
            "crossedOff": self.crossed_off,
            "source": self.source,
            "mealId": self.meal_id,
            "createdAt": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShoppingListItem":
        return cls(
            id=data["id"],
            user_id=data.get("userId", ""),
            list_id=data.get("listId", ""),
            name=data["name"],
            quantity=data.get("quantity"),
            quantity_unit=data.get("quantityUnit"),
            crossed_off=bool(data.get("crossedOff", False)),
            source=data.get("source"),
            meal_id=data.get("mealId"),
            created_at=_parse_datetime(data.get("createdAt")) or datetime.now(),
        )


@dataclass
class Dish:
    """A dish inside a planned meal, with the inventory it has claimed."""
    id: str
    dish_name: str
    recipe_ingredients: List[str] = field(default_factory=list)
    recipe_title: Optional[str] = None
    recipe_source_url: Optional[str] = None
    recipe_source_domain: Optional[str] = None
    recipe_image_url: Optional[str] = None
    reserved_quantities: Dict[str, float] = field(default_factory=dict)
    claimed_item_ids: List[str] = field(default_factory=list)
    claimed_shopping_list_item_ids: List[str] = field(default_factory=list)
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "dishName": self.dish_name,
            "recipeTitle": self.recipe_title,
            "recipeIngredients": list(self.recipe_ingredients),
            "recipeSourceUrl": self.recipe_source_url,
            "recipeSourceDomain": self.recipe_source_domain,
            "recipeImageUrl": self.recipe_image_url,
            "reservedQuantities": dict(self.reserved_quantities),
            "claimedItemIds": list(self.claimed_item_ids),
            "claimedShoppingListItemIds": list(self.claimed_shopping_list_item_ids),
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dish":
        return cls(
            id=data["id"],
            dish_name=data.get("dishName", ""),
            recipe_title=data.get("recipeTitle"),
            recipe_ingredients=list(data.get("recipeIngredients") or []),
            recipe_source_url=data.get("recipeSourceUrl"),
            recipe_source_domain=data.get("recipeSourceDomain"),
            recipe_image_url=data.get("recipeImageUrl"),
            reserved_quantities=dict(data.get("reservedQuantities") or {}),
            claimed_item_ids=list(data.get("claimedItemIds") or []),
            claimed_shopping_list_item_ids=list(data.get("claimedShoppingListItemIds") or []),
            completed=bool(data.get("completed", False)),
        )


@dataclass
class PlannedMeal:
    """One meal slot; unique per (user_id, date, meal_type)."""
    id: str
    user_id: str
    meal_plan_id: str
    date: date
    meal_type: str
    finish_by: str = "18:00"
    start_cooking_at: Optional[str] = None
    confirmed: bool = False
    skipped: bool = False
    is_leftover: bool = False
    dishes: List[Dish] = field(default_factory=list)

    def get_dish(self, dish_id: str) -> Optional[Dish]:
        for dish in self.dishes:
            if dish.id == dish_id:
                return dish
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "mealPlanId": self.meal_plan_id,
            "date": _iso(self.date),
            "mealType": self.meal_type,
            "finishBy": self.finish_by,
            "startCookingAt": self.start_cooking_at,
            "confirmed": self.confirmed,
            "skipped": self.skipped,
            "isLeftover": self.is_leftover,
            "dishes": [d.to_dict() for d in self.dishes],
        }


@dataclass
class MealPlan:
    """Week container for planned meals. week_start_date is a Sunday."""
    id: str
    user_id: str
    week_start_date: date
    status: str = "draft"
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "weekStartDate": _iso(self.week_start_date),
            "status": self.status,
            "createdAt": _iso(self.created_at),
        }


@dataclass
class CookingReminder:
    id: str
    user_id: str
    meal_id: str
    fire_at: datetime
    title: str
    body: str
    sent: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "mealId": self.meal_id,
            "fireAt": _iso(self.fire_at),
            "title": self.title,
            "body": self.body,
            "sent": self.sent,
        }


@dataclass
class ShelfLifeResult:
    food_name: str
    storage_type: str
    days: int
    source: str = "eatbydate"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "foodName": self.food_name,
            "storageType": self.storage_type,
            "days": self.days,
            "source": self.source,
        }
