#!/usr/bin/env python3
"""
Flask application for TossItTime kitchen services.

JSON API used by the mobile/web client:
- /api/recipe-import: import a recipe from a URL
- /api/ai-ingredient-parser: split ingredient lines into quantity/unit/name
- /api/eatbydate-scraper: shelf-life lookup
- /api/dishes, /api/planned-meals, /api/ingredient-availability: planner
"""

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from ..config import Settings
from ..data.database import DatabaseInterface
from ..errors import ClaimConflictError, TossItTimeError, ValidationError
from ..ingredient_ai import AIIngredientParser
from ..llm_provider import get_llm_provider
from ..planner.meal_planning import MealPlanningService
from ..planner.reminders import CookingReminderScheduler
from ..recipe_import.fetcher import HtmlFetcher
from ..recipe_import.importer import RecipeImporter
from ..recipe_sites import RecipeSite, build_search_url, generate_suggested_query
from ..shelf_life import ShelfLifeScraper

logger = logging.getLogger(__name__)

SHELF_LIFE_CACHE_CONTROL = "public, max-age=86400"


def configure_logging(settings: Settings):
    """Console plus rotating file logging."""
    os.makedirs(settings.log_dir, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            RotatingFileHandler(
                os.path.join(settings.log_dir, "app.log"),
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5
            )
        ]
    )


@dataclass
class Services:
    settings: Settings
    db: DatabaseInterface
    importer: RecipeImporter
    ingredient_parser: AIIngredientParser
    shelf_life: ShelfLifeScraper
    planning: MealPlanningService
    reminders: CookingReminderScheduler


def build_services(settings: Settings, **overrides) -> Services:
    """Wire the default service graph; keyword overrides replace single services."""
    db = overrides.get("db") or DatabaseInterface(db_dir=settings.db_dir)
    provider = overrides.get("provider") or get_llm_provider(
        api_key=settings.anthropic_api_key, use_null=settings.use_null_llm
    )
    fetcher = overrides.get("fetcher") or HtmlFetcher(timeout=settings.fetch_timeout)
    reminders = overrides.get("reminders") or CookingReminderScheduler(
        db, lead_minutes=settings.reminder_lead_minutes
    )

    return Services(
        settings=settings,
        db=db,
        importer=overrides.get("importer") or RecipeImporter(
            fetcher,
            provider,
            model=settings.llm_model,
            text_limit=settings.ai_text_limit,
            max_tokens=settings.llm_max_tokens,
        ),
        ingredient_parser=overrides.get("ingredient_parser") or AIIngredientParser(
            provider, model=settings.llm_model, max_tokens=settings.llm_max_tokens
        ),
        shelf_life=overrides.get("shelf_life") or ShelfLifeScraper(fetcher),
        planning=overrides.get("planning") or MealPlanningService(
            db, claim_mode=settings.claim_mode, reminders=reminders
        ),
        reminders=reminders,
    )


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _is_premium(data: Dict[str, Any]) -> bool:
    return data.get("isPremium") is True


def _parse_date(value: Optional[str], field_name: str) -> date:
    if not value:
        raise ValidationError(f"{field_name} is required")
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO date (YYYY-MM-DD)")


def _require(data: Dict[str, Any], field_name: str) -> Any:
    value = data.get(field_name)
    if value in (None, "", []):
        raise ValidationError(f"{field_name} is required")
    return value


def _error_response(e: Exception, context: str):
    if isinstance(e, ClaimConflictError):
        logger.warning(f"{context}: {e}")
        return jsonify({"error": str(e), "itemIds": e.item_ids}), e.status_code
    if isinstance(e, TossItTimeError):
        if e.status_code >= 500:
            logger.error(f"{context}: {e}", exc_info=True)
        else:
            logger.warning(f"{context}: {e}")
        return jsonify({"error": str(e)}), e.status_code
    logger.error(f"{context}: {e}", exc_info=True)
    return jsonify({"error": str(e) or "Internal server error"}), 500


def create_app(settings: Optional[Settings] = None, **overrides) -> Flask:
    """
    Build the Flask app.

    Args:
        settings: Service settings (defaults to Settings.from_env())
        **overrides: Replacement services (db, provider, fetcher, importer,
            ingredient_parser, shelf_life, planning, reminders)
    """
    settings = settings or Settings.from_env()
    services = build_services(settings, **overrides)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.extensions["tossittime"] = services
    CORS(app)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.route("/health")
    def health_check():
        return jsonify({"status": "healthy", "timestamp": datetime.now().isoformat()}), 200

    # ==================== Recipe import ====================

    @app.route("/api/recipe-import", methods=["POST", "OPTIONS"])
    def api_recipe_import():
        """Import a recipe from {url, userId?, isPremium?}."""
        if request.method == "OPTIONS":
            return "", 204
        data = _json_body()
        try:
            result = services.importer.import_recipe(
                data.get("url"),
                user_id=data.get("userId"),
                is_premium=_is_premium(data),
            )
            return jsonify(result.to_dict()), 200
        except Exception as e:
            return _error_response(e, f"[IMPORT] Recipe import failed for {data.get('url')!r}")

    @app.route("/api/ai-ingredient-parser", methods=["POST", "OPTIONS"])
    def api_ai_ingredient_parser():
        """Parse {ingredients[], userId?, isPremium?} into name/quantity/unit."""
        if request.method == "OPTIONS":
            return "", 204
        data = _json_body()
        try:
            result = services.ingredient_parser.parse(
                data.get("ingredients"),
                is_premium=_is_premium(data),
                user_id=data.get("userId"),
            )
            return jsonify(result.to_dict()), 200
        except Exception as e:
            return _error_response(e, "AI ingredient parsing failed")

    @app.route("/api/eatbydate-scraper", methods=["GET", "OPTIONS"])
    @app.route("/api/eatbydate", methods=["GET", "OPTIONS"])
    def api_shelf_life():
        """Shelf life for ?foodName=&storageType=."""
        if request.method == "OPTIONS":
            return "", 204
        food_name = request.args.get("foodName", "")
        storage_type = request.args.get("storageType", "refrigerator")
        try:
            result = services.shelf_life.lookup(food_name, storage_type)
        except Exception as e:
            return _error_response(e, f"Shelf life lookup failed for {food_name!r}")

        if result is None:
            return jsonify({"error": "Shelf life information not found"}), 404

        response = jsonify(result.to_dict())
        response.headers["Cache-Control"] = SHELF_LIFE_CACHE_CONTROL
        return response, 200

    @app.route("/api/recipe-search-url", methods=["POST"])
    def api_recipe_search_url():
        """Search link for a favorite site; query defaults to expiring pantry items."""
        data = _json_body()
        try:
            site = RecipeSite(
                label=data.get("label", ""),
                base_url=_require(data, "baseUrl"),
                search_template_url=data.get("searchTemplateUrl"),
            )
            query = data.get("query")
            if not query and data.get("userId"):
                query = generate_suggested_query(services.db.get_food_items(data["userId"]))
            return jsonify({"url": build_search_url(site, query or ""), "query": query or ""}), 200
        except Exception as e:
            return _error_response(e, "Building recipe search URL failed")

    # ==================== Planner ====================

    @app.route("/api/ingredient-availability", methods=["POST"])
    def api_ingredient_availability():
        data = _json_body()
        try:
            statuses = services.planning.check_availability(
                _require(data, "userId"),
                _require(data, "ingredients"),
                dish_id=data.get("dishId"),
            )
            return jsonify({"statuses": [s.to_dict() for s in statuses]}), 200
        except Exception as e:
            return _error_response(e, "Availability check failed")

    @app.route("/api/dishes", methods=["POST"])
    def api_create_dish():
        """Add a dish to a meal slot and claim its ingredients."""
        data = _json_body()
        try:
            result = services.planning.save_dish(
                user_id=_require(data, "userId"),
                meal_date=_parse_date(data.get("date"), "date"),
                meal_type=_require(data, "mealType"),
                dish_name=_require(data, "dishName"),
                ingredients=data.get("ingredients") or [],
                recipe=data.get("recipe"),
                finish_by=data.get("finishBy"),
                add_missing_to_list=bool(data.get("addMissingToList", False)),
                list_id=data.get("listId"),
            )
            return jsonify({
                "meal": result["meal"].to_dict(),
                "dish": result["dish"].to_dict(),
                "statuses": [s.to_dict() for s in result["plan"].statuses],
                "addedShoppingItems": [i.to_dict() for i in result["addedShoppingItems"]],
            }), 201
        except Exception as e:
            return _error_response(e, "[CLAIM] Saving dish failed")

    @app.route("/api/dishes/<dish_id>", methods=["PUT"])
    def api_update_dish(dish_id):
        data = _json_body()
        try:
            result = services.planning.update_dish_ingredients(
                meal_id=_require(data, "mealId"),
                dish_id=dish_id,
                ingredients=data.get("ingredients") or [],
                dish_name=data.get("dishName"),
                add_missing_to_list=bool(data.get("addMissingToList", True)),
                list_id=data.get("listId"),
            )
            return jsonify({
                "dish": result["dish"].to_dict(),
                "statuses": [s.to_dict() for s in result["plan"].statuses],
                "addedShoppingItems": [i.to_dict() for i in result["addedShoppingItems"]],
            }), 200
        except Exception as e:
            return _error_response(e, f"[CLAIM] Updating dish {dish_id} failed")

    @app.route("/api/dishes/<dish_id>", methods=["DELETE"])
    def api_remove_dish(dish_id):
        meal_id = request.args.get("mealId") or _json_body().get("mealId")
        try:
            if not meal_id:
                raise ValidationError("mealId is required")
            meal = services.planning.remove_dish(meal_id, dish_id)
            return jsonify({"meal": meal.to_dict()}), 200
        except Exception as e:
            return _error_response(e, f"[CLAIM] Removing dish {dish_id} failed")

    @app.route("/api/dishes/<dish_id>/prepared", methods=["POST"])
    def api_mark_prepared(dish_id):
        data = _json_body()
        try:
            result = services.planning.mark_dish_prepared(
                _require(data, "mealId"),
                dish_id,
                checked_ingredients=data.get("checkedIngredients"),
            )
            return jsonify({
                "dish": result["dish"].to_dict(),
                "consumed": result["consumed"],
                "deletedShoppingItems": result["deletedShoppingItems"],
            }), 200
        except Exception as e:
            return _error_response(e, f"Marking dish {dish_id} prepared failed")

    @app.route("/api/planned-meals", methods=["GET"])
    def api_planned_meals():
        try:
            user_id = request.args.get("userId")
            if not user_id:
                raise ValidationError("userId is required")
            start = _parse_date(request.args["start"], "start") if request.args.get("start") else None
            end = _parse_date(request.args["end"], "end") if request.args.get("end") else None
            meals = services.db.get_planned_meals(user_id, start=start, end=end)
            return jsonify({"meals": [m.to_dict() for m in meals]}), 200
        except Exception as e:
            return _error_response(e, "Listing planned meals failed")

    @app.route("/api/planned-meals/<meal_id>", methods=["DELETE"])
    def api_delete_planned_meal(meal_id):
        try:
            services.planning.delete_planned_meal(meal_id)
            return jsonify({"deleted": meal_id}), 200
        except Exception as e:
            return _error_response(e, f"Deleting planned meal {meal_id} failed")

    @app.route("/api/planned-meals/<meal_id>/confirm", methods=["POST"])
    def api_confirm_meal(meal_id):
        data = _json_body()
        try:
            meal = services.planning.set_meal_confirmed(
                meal_id,
                confirmed=bool(data.get("confirmed", True)),
                skipped=bool(data.get("skipped", False)),
            )
            return jsonify({"meal": meal.to_dict()}), 200
        except Exception as e:
            return _error_response(e, f"Confirming planned meal {meal_id} failed")

    logger.info(f"App created (db={settings.db_dir}, claim_mode={settings.claim_mode})")
    return app
