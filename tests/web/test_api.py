"""
Flask API tests using the test client.

Services run for real against a temp database; the HTTP fetcher and the
LLM are replaced so nothing leaves the process.
"""

from datetime import date
from unittest.mock import Mock

import pytest

from tossittime.errors import ClaimConflictError, FetchError
from tossittime.planner import CookingReminderScheduler
from tossittime.recipe_import.fetcher import FetchedPage
from tossittime.web import create_app

USER = "user-1"


def page(html, url="https://www.example.com/recipe"):
    return FetchedPage(url=url, html=html, status_code=200, domain="example.com")


@pytest.fixture
def fetcher():
    return Mock()


@pytest.fixture
def scheduler(db, fake_timer, frozen_now):
    return CookingReminderScheduler(db, clock=lambda: frozen_now, timer_factory=fake_timer)


@pytest.fixture
def app(settings, db, fetcher, scheduler):
    app = create_app(settings, db=db, fetcher=fetcher, reminders=scheduler)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def create_dish(client, **overrides):
    body = {
        "userId": USER,
        "date": "2025-11-24",
        "mealType": "dinner",
        "dishName": "Omelette",
        "ingredients": ["2 eggs"],
    }
    body.update(overrides)
    return client.post("/api/dishes", json=body)


class TestGeneral:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"

    def test_unknown_route_is_json_404(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Not found"}

    def test_wrong_method_is_json_405(self, client):
        response = client.get("/api/recipe-import")
        assert response.status_code == 405
        assert response.get_json() == {"error": "Method not allowed"}

    def test_preflight(self, client):
        assert client.options("/api/recipe-import").status_code == 204


class TestRecipeImportEndpoint:

    def test_import(self, client, fetcher, json_ld_recipe_html):
        fetcher.fetch.return_value = page(json_ld_recipe_html)

        response = client.post("/api/recipe-import", json={"url": "https://www.example.com/recipe"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["title"] == "Lemon Garlic Chicken"
        assert data["sourceDomain"] == "example.com"
        assert data["imageUrl"] == "https://example.com/img/chicken.jpg"
        assert len(data["ingredients"]) == 4

    def test_missing_url(self, client, fetcher):
        response = client.post("/api/recipe-import", json={})
        assert response.status_code == 400
        assert response.get_json() == {"error": "URL is required"}
        fetcher.fetch.assert_not_called()

    def test_upstream_status_passed_through(self, client, fetcher):
        fetcher.fetch.side_effect = FetchError("Failed to fetch recipe page: 403 Forbidden", status_code=403)
        response = client.post("/api/recipe-import", json={"url": "https://example.com/r"})
        assert response.status_code == 403
        assert "403" in response.get_json()["error"]

    def test_no_ingredients(self, client, fetcher):
        fetcher.fetch.return_value = page("<p>Just a blog post.</p>")
        response = client.post("/api/recipe-import", json={"url": "https://example.com/r"})
        assert response.status_code == 422
        assert response.get_json() == {"error": "No ingredients found on this page"}


class TestIngredientParserEndpoint:

    def test_parse(self, settings, db, scheduler, scripted_llm):
        provider = scripted_llm({"parsedIngredients": [{"name": "flour", "quantity": 2, "unit": "cups"}]})
        client = create_app(settings, db=db, provider=provider, reminders=scheduler).test_client()

        response = client.post(
            "/api/ai-ingredient-parser",
            json={"ingredients": ["2 cups flour"], "userId": USER},
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["parsedIngredients"] == [{"name": "flour", "quantity": 2.0, "unit": "c"}]
        assert data["usage"]["totalTokens"] == 160
        assert data["userId"] == USER
        assert data["feature"] == "ingredient_parsing"

    @pytest.mark.parametrize("flag, expected", [
        (True, True),
        (False, False),
        ("false", False),
        ("true", False),
        (1, False),
    ])
    def test_premium_flag_must_be_json_true(self, settings, db, scheduler, flag, expected):
        parser = Mock()
        parser.parse.return_value.to_dict.return_value = {"parsedIngredients": []}
        client = create_app(settings, db=db, ingredient_parser=parser, reminders=scheduler).test_client()

        client.post("/api/ai-ingredient-parser", json={"ingredients": ["1 egg"], "isPremium": flag})

        assert parser.parse.call_args.kwargs["is_premium"] is expected

    def test_empty_ingredients(self, client):
        response = client.post("/api/ai-ingredient-parser", json={"ingredients": []})
        assert response.status_code == 400
        assert response.get_json() == {"error": "Ingredients array is required"}

    def test_no_api_key(self, client):
        response = client.post("/api/ai-ingredient-parser", json={"ingredients": ["1 egg"]})
        assert response.status_code == 500


class TestShelfLifeEndpoint:

    @pytest.mark.parametrize("path", ["/api/eatbydate-scraper", "/api/eatbydate"])
    def test_lookup(self, client, fetcher, path):
        fetcher.fetch.return_value = page("<ul><li>Refrigerator 7 days</li></ul>")

        response = client.get(path, query_string={"foodName": "milk", "storageType": "refrigerator"})

        assert response.status_code == 200
        assert response.get_json()["days"] == 7
        assert response.headers["Cache-Control"] == "public, max-age=86400"

    def test_not_found(self, client, fetcher):
        fetcher.fetch.side_effect = FetchError("Failed to fetch recipe page: 404 Not Found", status_code=404)
        response = client.get("/api/eatbydate-scraper", query_string={"foodName": "unobtainium"})
        assert response.status_code == 404
        assert response.get_json() == {"error": "Shelf life information not found"}

    def test_missing_food_name(self, client):
        assert client.get("/api/eatbydate-scraper").status_code == 400


class TestRecipeSearchUrlEndpoint:

    def test_explicit_query(self, client):
        response = client.post("/api/recipe-search-url", json={
            "baseUrl": "https://www.allrecipes.com",
            "searchTemplateUrl": "https://www.allrecipes.com/search?q={query}",
            "query": "beef stew",
        })
        assert response.get_json()["url"] == "https://www.allrecipes.com/search?q=beef%20stew"

    def test_query_from_expiring_items(self, client, db):
        db.add_food_item(USER, "spinach", expiration_date=date(2025, 11, 25))
        db.add_food_item(USER, "feta", expiration_date=date(2025, 11, 26))
        db.add_food_item(USER, "rice")

        response = client.post("/api/recipe-search-url", json={
            "baseUrl": "https://www.allrecipes.com",
            "searchTemplateUrl": "https://www.allrecipes.com/search?q={query}",
            "userId": USER,
        })

        data = response.get_json()
        assert data["query"] == "spinach feta"
        assert data["url"].endswith("q=spinach%20feta")

    def test_base_url_required(self, client):
        assert client.post("/api/recipe-search-url", json={"query": "x"}).status_code == 400


class TestPlannerEndpoints:

    def test_create_dish(self, client, db):
        eggs = db.add_food_item(USER, "Eggs", quantity=6)

        response = create_dish(client, ingredients=["2 eggs", "1 lemon"], addMissingToList=True)

        assert response.status_code == 201
        data = response.get_json()
        assert data["dish"]["claimedItemIds"] == [eggs.id]
        assert [s["status"] for s in data["statuses"]] == ["available", "missing"]
        assert data["addedShoppingItems"][0]["name"] == "lemon"
        assert data["meal"]["mealType"] == "dinner"

    @pytest.mark.parametrize("overrides", [
        {"userId": None},
        {"date": "next tuesday"},
        {"mealType": "brunch"},
        {"dishName": ""},
    ])
    def test_create_dish_validation(self, client, overrides):
        assert create_dish(client, **overrides).status_code == 400

    def test_claim_conflict_is_409(self, settings, db, scheduler):
        planning = Mock()
        planning.save_dish.side_effect = ClaimConflictError(
            "Items already claimed by another dish: fi_1", item_ids=["fi_1"]
        )
        client = create_app(settings, db=db, planning=planning, reminders=scheduler).test_client()

        response = create_dish(client)

        assert response.status_code == 409
        assert response.get_json()["itemIds"] == ["fi_1"]

    def test_availability(self, client, db):
        db.add_food_item(USER, "Eggs", quantity=1)
        response = client.post("/api/ingredient-availability", json={"userId": USER, "ingredients": ["2 eggs"]})
        assert response.get_json()["statuses"][0]["status"] == "partial"

    def test_update_remove_and_list(self, client, db):
        created = create_dish(client).get_json()
        meal_id, dish_id = created["meal"]["id"], created["dish"]["id"]

        updated = client.put(f"/api/dishes/{dish_id}", json={"mealId": meal_id, "ingredients": ["1 cup rice"]})
        assert updated.status_code == 200
        assert updated.get_json()["dish"]["recipeIngredients"] == ["1 cup rice"]

        listed = client.get("/api/planned-meals", query_string={"userId": USER, "start": "2025-11-23"})
        assert [m["id"] for m in listed.get_json()["meals"]] == [meal_id]

        assert client.delete(f"/api/dishes/{dish_id}").status_code == 400
        removed = client.delete(f"/api/dishes/{dish_id}", query_string={"mealId": meal_id})
        assert removed.get_json()["meal"]["dishes"] == []

    def test_mark_prepared(self, client, db):
        eggs = db.add_food_item(USER, "Eggs", quantity=6)
        created = create_dish(client).get_json()

        response = client.post(
            f"/api/dishes/{created['dish']['id']}/prepared", json={"mealId": created["meal"]["id"]}
        )

        assert response.status_code == 200
        assert response.get_json()["dish"]["completed"] is True
        assert db.get_food_item(eggs.id).quantity == 4

    def test_confirm_and_delete_meal(self, client, scheduler):
        meal_id = create_dish(client).get_json()["meal"]["id"]

        confirmed = client.post(f"/api/planned-meals/{meal_id}/confirm", json={})
        assert confirmed.get_json()["meal"]["confirmed"] is True
        assert scheduler.armed_meal_ids == [meal_id]

        assert client.delete(f"/api/planned-meals/{meal_id}").status_code == 200
        assert scheduler.armed_meal_ids == []
        assert client.delete(f"/api/planned-meals/{meal_id}").status_code == 404

    def test_planned_meals_requires_user(self, client):
        assert client.get("/api/planned-meals").status_code == 400
