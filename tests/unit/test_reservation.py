"""
Tests for ingredient availability and reservation (pure functions).
"""

from tossittime.data.models import Dish, FoodItem, ShoppingListItem
from tossittime.planner.reservation import (
    AVAILABLE,
    MISSING,
    PARTIAL,
    calculate_dish_reserved_quantities,
    calculate_reserved_quantities,
    check_ingredient_availability,
    outstanding_reserved_quantities,
    plan_dish_claims,
)


def food(item_id, name, quantity=None, used_by=None):
    return FoodItem(id=item_id, user_id="u1", name=name, quantity=quantity, used_by_meals=used_by or [])


def shop(item_id, name, meal_id=None, crossed_off=False):
    return ShoppingListItem(id=item_id, user_id="u1", list_id="l1", name=name, meal_id=meal_id, crossed_off=crossed_off)


class TestCheckIngredientAvailability:

    def test_available_when_enough(self):
        status = check_ingredient_availability("2 large eggs", [food("f1", "Eggs", 6)], [])
        assert status.status == AVAILABLE
        assert status.needed_quantity == 2
        assert status.available_quantity == 6
        assert [i.id for i in status.matching_items] == ["f1"]

    def test_partial_when_not_enough(self):
        status = check_ingredient_availability("4 eggs", [food("f1", "eggs", 2)], [])
        assert status.status == PARTIAL

    def test_missing_quantity_defaults_to_one(self):
        status = check_ingredient_availability("3 onions", [food("f1", "Onions")], [])
        assert status.available_quantity == 1
        assert status.status == PARTIAL

    def test_no_needed_quantity_available_if_anything(self):
        status = check_ingredient_availability("Salt to taste", [food("f1", "salt", 0.2)], [])
        assert status.status == AVAILABLE

    def test_shopping_only_is_partial(self):
        status = check_ingredient_availability("1 cup milk", [], [shop("s1", "Milk")])
        assert status.status == PARTIAL
        assert [i.id for i in status.matching_shopping_items] == ["s1"]

    def test_missing(self):
        assert check_ingredient_availability("1 lemon", [food("f1", "lime", 3)], []).status == MISSING

    def test_items_claimed_by_other_dish_excluded(self):
        pantry = [food("f1", "eggs", 6, used_by=["dish-a"])]
        assert check_ingredient_availability("2 eggs", pantry, []).status == MISSING
        # the claiming dish itself still sees its items
        assert check_ingredient_availability("2 eggs", pantry, [], dish_id="dish-a").status == AVAILABLE

    def test_crossed_off_and_claimed_shopping_excluded(self):
        shopping = [shop("s1", "milk", crossed_off=True), shop("s2", "milk", meal_id="dish-a")]
        assert check_ingredient_availability("1 cup milk", [], shopping).status == MISSING

    def test_reserved_quantities_subtracted(self):
        status = check_ingredient_availability("2 eggs", [food("f1", "eggs", 3)], [], reserved={"eggs": 2})
        assert status.available_quantity == 1
        assert status.status == PARTIAL

    def test_fully_reserved_pantry_falls_back_to_shopping(self):
        status = check_ingredient_availability(
            "2 eggs", [food("f1", "eggs", 2)], [shop("s1", "eggs")], reserved={"eggs": 2}
        )
        assert status.status == PARTIAL
        assert status.matching_items == []


class TestReservedQuantities:

    def test_dish_reserves_min_of_needed_and_available(self):
        pantry = [food("f1", "eggs", 3), food("f2", "flour", 5)]
        reserved = calculate_dish_reserved_quantities(["4 eggs", "2 cups flour", "salt"], pantry)
        assert reserved == {"eggs": 3, "flour": 2}

    def test_across_dishes_never_exceeds_pantry(self):
        pantry = [food("f1", "eggs", 6)]
        dishes = [
            Dish(id="a", dish_name="Omelette", recipe_ingredients=["4 eggs"]),
            Dish(id="b", dish_name="Cake", recipe_ingredients=["4 eggs"]),
            Dish(id="c", dish_name="Done", recipe_ingredients=["6 eggs"], completed=True),
        ]
        assert calculate_reserved_quantities(dishes, pantry) == {"eggs": 6}
        assert calculate_reserved_quantities(dishes, pantry, exclude_dish_id="a") == {"eggs": 4}

    def test_claimed_items_hold_their_dish_reservation(self):
        pantry = [food("f1", "eggs", 6, used_by=["a"]), food("f2", "eggs", 2)]
        dishes = [Dish(id="a", dish_name="Omelette", recipe_ingredients=["2 eggs"])]
        assert outstanding_reserved_quantities(dishes, pantry) == {}

    def test_unclaimed_reservation_still_competes(self):
        pantry = [food("f1", "eggs", 3)]
        dishes = [Dish(id="a", dish_name="Omelette", recipe_ingredients=["2 eggs"])]
        assert outstanding_reserved_quantities(dishes, pantry) == {"eggs": 2}
        assert check_ingredient_availability(
            "2 eggs", pantry, [], reserved=outstanding_reserved_quantities(dishes, pantry)
        ).status == PARTIAL


class TestPlanDishClaims:

    def test_plan_collects_item_ids(self):
        pantry = [food("f1", "eggs", 6), food("f2", "butter", 1)]
        shopping = [shop("s1", "milk")]
        plan = plan_dish_claims("dish-1", ["2 eggs", "1 cup milk", "1 lemon"], pantry, shopping)

        assert plan.claimed_item_ids == ["f1"]
        assert plan.claimed_shopping_list_item_ids == ["s1"]
        assert plan.reserved_quantities == {"eggs": 2}
        assert [s.ingredient for s in plan.missing] == ["1 lemon"]
