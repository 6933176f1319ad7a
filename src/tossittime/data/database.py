"""
Database interface for TossItTime kitchen services.

Single SQLite database (kitchen.db) holding the user documents:
- food_items: pantry inventory (used_by_meals = JSON list of claiming dish ids)
- shopping_lists / shopping_list_items (meal_id = claiming dish id)
- meal_plans / planned_meals (dishes stored as JSON, one row per user/date/meal type)
- cooking_reminders: persisted reminder schedule

Claims on pantry and shopping items are written inside a single
BEGIN IMMEDIATE transaction so a dish either claims everything it
planned or nothing.
"""

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..errors import ClaimConflictError, NotFoundError
from .models import (
    CookingReminder,
    Dish,
    FoodItem,
    MealPlan,
    PlannedMeal,
    ShoppingList,
    ShoppingListItem,
)

logger = logging.getLogger(__name__)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


class DatabaseInterface:
    """Interface for the kitchen SQLite database."""

    def __init__(self, db_dir: str = "data"):
        """
        Initialize database interface.

        Args:
            db_dir: Directory holding kitchen.db (created if missing)
        """
        self.db_dir = Path(db_dir)
        self.db_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = self.db_dir / "kitchen.db"

        self._init_database()

    def _init_database(self):
        """Create tables and indexes."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS food_items (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    quantity REAL,
                    quantity_unit TEXT,
                    category TEXT,
                    expiration_date TEXT,
                    thaw_date TEXT,
                    used_by_meals TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS shopping_lists (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    is_default INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS shopping_list_items (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    list_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    quantity REAL,
                    quantity_unit TEXT,
                    crossed_off INTEGER NOT NULL DEFAULT 0,
                    source TEXT,
                    meal_id TEXT,
                    created_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS meal_plans (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    week_start_date TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'draft',
                    created_at TEXT NOT NULL,
                    UNIQUE(user_id, week_start_date)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS planned_meals (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    meal_plan_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    meal_type TEXT NOT NULL,
                    finish_by TEXT NOT NULL DEFAULT '18:00',
                    start_cooking_at TEXT,
                    confirmed INTEGER NOT NULL DEFAULT 0,
                    skipped INTEGER NOT NULL DEFAULT 0,
                    is_leftover INTEGER NOT NULL DEFAULT 0,
                    dishes_json TEXT NOT NULL DEFAULT '[]'
                )
            """)

            cursor.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_planned_meals_slot
                ON planned_meals(user_id, date, meal_type)
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS cooking_reminders (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    meal_id TEXT NOT NULL UNIQUE,
                    fire_at TEXT NOT NULL,
                    title TEXT NOT NULL,
                    body TEXT NOT NULL,
                    sent INTEGER NOT NULL DEFAULT 0
                )
            """)

            cursor.execute("CREATE INDEX IF NOT EXISTS idx_food_items_user ON food_items(user_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_shopping_items_user ON shopping_list_items(user_id)")

            conn.commit()

        logger.info(f"Database initialized at {self.db_path}")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Write transaction holding the database write lock from the start."""
        conn = sqlite3.connect(self.db_path, timeout=10, isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    # ==================== Pantry ====================

    def add_food_item(
        self,
        user_id: str,
        name: str,
        quantity: Optional[float] = None,
        quantity_unit: Optional[str] = None,
        category: Optional[str] = None,
        expiration_date: Optional[date] = None,
        thaw_date: Optional[date] = None,
    ) -> FoodItem:
        item = FoodItem(
            id=new_id("fi"),
            user_id=user_id,
            name=name,
            quantity=quantity,
            quantity_unit=quantity_unit,
            category=category,
            expiration_date=expiration_date,
            thaw_date=thaw_date,
        )
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO food_items
                (id, user_id, name, quantity, quantity_unit, category,
                 expiration_date, thaw_date, used_by_meals, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                item.id, user_id, name, quantity, quantity_unit, category,
                expiration_date.isoformat() if expiration_date else None,
                thaw_date.isoformat() if thaw_date else None,
                "[]",
                item.created_at.isoformat(),
            ))
            conn.commit()
        return item

    def get_food_item(self, item_id: str) -> Optional[FoodItem]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute("SELECT * FROM food_items WHERE id = ?", (item_id,)).fetchone()
        return self._row_to_food_item(row) if row else None

    def get_food_items(self, user_id: str) -> List[FoodItem]:
        """All pantry items for a user, soonest expiration first."""
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute("""
                SELECT * FROM food_items WHERE user_id = ?
                ORDER BY expiration_date IS NULL, expiration_date, created_at
            """, (user_id,)).fetchall()
        return [self._row_to_food_item(row) for row in rows]

    def _row_to_food_item(self, row: sqlite3.Row) -> FoodItem:
        return FoodItem(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            quantity=row["quantity"],
            quantity_unit=row["quantity_unit"],
            category=row["category"],
            expiration_date=date.fromisoformat(row["expiration_date"]) if row["expiration_date"] else None,
            thaw_date=date.fromisoformat(row["thaw_date"]) if row["thaw_date"] else None,
            used_by_meals=json.loads(row["used_by_meals"] or "[]"),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # ==================== Shopping lists ====================

    def create_shopping_list(self, user_id: str, name: str, is_default: bool = False) -> ShoppingList:
        shopping_list = ShoppingList(id=new_id("sl"), user_id=user_id, name=name, is_default=is_default)
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO shopping_lists (id, user_id, name, is_default, created_at)
                VALUES (?, ?, ?, ?, ?)
            """, (shopping_list.id, user_id, name, int(is_default), shopping_list.created_at.isoformat()))
            conn.commit()
        return shopping_list

    def get_shopping_lists(self, user_id: str) -> List[ShoppingList]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                "SELECT * FROM shopping_lists WHERE user_id = ? ORDER BY is_default DESC, created_at",
                (user_id,),
            ).fetchall()
        return [
            ShoppingList(
                id=row["id"],
                user_id=row["user_id"],
                name=row["name"],
                is_default=bool(row["is_default"]),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def get_default_shopping_list(self, user_id: str) -> ShoppingList:
        """Return the user's default list, creating "Shop list" if none exists."""
        lists = self.get_shopping_lists(user_id)
        for shopping_list in lists:
            if shopping_list.is_default:
                return shopping_list
        if lists:
            return lists[0]
        return self.create_shopping_list(user_id, "Shop list", is_default=True)

    def add_shopping_list_item(
        self,
        user_id: str,
        list_id: str,
        name: str,
        quantity: Optional[float] = None,
        quantity_unit: Optional[str] = None,
        source: Optional[str] = None,
        meal_id: Optional[str] = None,
    ) -> ShoppingListItem:
        item = ShoppingListItem(
            id=new_id("si"),
            user_id=user_id,
            list_id=list_id,
            name=name,
            quantity=quantity,
            quantity_unit=quantity_unit,
            source=source,
            meal_id=meal_id,
        )
        with sqlite3.connect(self.db_path) as conn:
            self._insert_shopping_item(conn, item)
            conn.commit()
        return item

    def _insert_shopping_item(self, conn: sqlite3.Connection, item: ShoppingListItem):
        conn.execute("""
            INSERT INTO shopping_list_items
            (id, user_id, list_id, name, quantity, quantity_unit,
             crossed_off, source, meal_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            item.id, item.user_id, item.list_id, item.name, item.quantity,
            item.quantity_unit, int(item.crossed_off), item.source, item.meal_id,
            item.created_at.isoformat(),
        ))

    def get_shopping_list_item(self, item_id: str) -> Optional[ShoppingListItem]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute("SELECT * FROM shopping_list_items WHERE id = ?", (item_id,)).fetchone()
        return self._row_to_shopping_item(row) if row else None

    def get_shopping_list_items(self, user_id: str, list_id: Optional[str] = None) -> List[ShoppingListItem]:
        query = "SELECT * FROM shopping_list_items WHERE user_id = ?"
        params: List[Any] = [user_id]
        if list_id:
            query += " AND list_id = ?"
            params.append(list_id)
        query += " ORDER BY created_at"

        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_shopping_item(row) for row in rows]

    def _row_to_shopping_item(self, row: sqlite3.Row) -> ShoppingListItem:
        return ShoppingListItem(
            id=row["id"],
            user_id=row["user_id"],
            list_id=row["list_id"],
            name=row["name"],
            quantity=row["quantity"],
            quantity_unit=row["quantity_unit"],
            crossed_off=bool(row["crossed_off"]),
            source=row["source"],
            meal_id=row["meal_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # ==================== Meal plans ====================

    def get_or_create_meal_plan(self, user_id: str, week_start_date: date) -> MealPlan:
        """Return the plan for the week starting week_start_date (a Sunday)."""
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute(
                "SELECT * FROM meal_plans WHERE user_id = ? AND week_start_date = ?",
                (user_id, week_start_date.isoformat()),
            ).fetchone()
            if row:
                return self._row_to_meal_plan(row)

            plan = MealPlan(id=new_id("mp"), user_id=user_id, week_start_date=week_start_date)
            conn.execute("""
                INSERT INTO meal_plans (id, user_id, week_start_date, status, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, week_start_date) DO NOTHING
            """, (plan.id, user_id, week_start_date.isoformat(), plan.status, plan.created_at.isoformat()))
            conn.commit()

            row = conn.execute(
                "SELECT * FROM meal_plans WHERE user_id = ? AND week_start_date = ?",
                (user_id, week_start_date.isoformat()),
            ).fetchone()

        logger.info(f"Created meal plan for user {user_id}, week {week_start_date}")
        return self._row_to_meal_plan(row)

    def get_meal_plan(self, plan_id: str) -> Optional[MealPlan]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute("SELECT * FROM meal_plans WHERE id = ?", (plan_id,)).fetchone()
        return self._row_to_meal_plan(row) if row else None

    def _row_to_meal_plan(self, row: sqlite3.Row) -> MealPlan:
        return MealPlan(
            id=row["id"],
            user_id=row["user_id"],
            week_start_date=date.fromisoformat(row["week_start_date"]),
            status=row["status"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # ==================== Planned meals ====================

    def save_planned_meal(self, meal: PlannedMeal, conn: Optional[sqlite3.Connection] = None) -> str:
        """Insert or update a planned meal, keyed by (user, date, meal type).

        Returns the id of the stored row, which is the existing row's id
        when the slot was already taken.
        """
        if conn is None:
            with sqlite3.connect(self.db_path) as own_conn:
                own_conn.row_factory = sqlite3.Row
                meal_id = self._upsert_planned_meal(own_conn, meal)
                own_conn.commit()
            return meal_id
        return self._upsert_planned_meal(conn, meal)

    def _upsert_planned_meal(self, conn: sqlite3.Connection, meal: PlannedMeal) -> str:
        conn.execute("""
            INSERT INTO planned_meals
            (id, user_id, meal_plan_id, date, meal_type, finish_by, start_cooking_at,
             confirmed, skipped, is_leftover, dishes_json)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, date, meal_type) DO UPDATE SET
                meal_plan_id = excluded.meal_plan_id,
                finish_by = excluded.finish_by,
                start_cooking_at = excluded.start_cooking_at,
                confirmed = excluded.confirmed,
                skipped = excluded.skipped,
                is_leftover = excluded.is_leftover,
                dishes_json = excluded.dishes_json
        """, (
            meal.id,
            meal.user_id,
            meal.meal_plan_id,
            meal.date.isoformat(),
            meal.meal_type,
            meal.finish_by,
            meal.start_cooking_at,
            int(meal.confirmed),
            int(meal.skipped),
            int(meal.is_leftover),
            json.dumps([d.to_dict() for d in meal.dishes]),
        ))
        row = conn.execute(
            "SELECT id FROM planned_meals WHERE user_id = ? AND date = ? AND meal_type = ?",
            (meal.user_id, meal.date.isoformat(), meal.meal_type),
        ).fetchone()
        return row[0]

    def get_planned_meal(self, meal_id: str) -> Optional[PlannedMeal]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute("SELECT * FROM planned_meals WHERE id = ?", (meal_id,)).fetchone()
        return self._row_to_planned_meal(row) if row else None

    def get_planned_meal_by_slot(self, user_id: str, meal_date: date, meal_type: str) -> Optional[PlannedMeal]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute(
                "SELECT * FROM planned_meals WHERE user_id = ? AND date = ? AND meal_type = ?",
                (user_id, meal_date.isoformat(), meal_type),
            ).fetchone()
        return self._row_to_planned_meal(row) if row else None

    def get_planned_meals(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        meal_plan_id: Optional[str] = None,
    ) -> List[PlannedMeal]:
        """Planned meals for a user, optionally bounded by date (inclusive) or plan."""
        query = "SELECT * FROM planned_meals WHERE user_id = ?"
        params: List[Any] = [user_id]
        if start:
            query += " AND date >= ?"
            params.append(start.isoformat())
        if end:
            query += " AND date <= ?"
            params.append(end.isoformat())
        if meal_plan_id:
            query += " AND meal_plan_id = ?"
            params.append(meal_plan_id)
        query += " ORDER BY date, CASE meal_type WHEN 'breakfast' THEN 0 WHEN 'lunch' THEN 1 ELSE 2 END"

        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_planned_meal(row) for row in rows]

    def _row_to_planned_meal(self, row: sqlite3.Row) -> PlannedMeal:
        return PlannedMeal(
            id=row["id"],
            user_id=row["user_id"],
            meal_plan_id=row["meal_plan_id"],
            date=date.fromisoformat(row["date"]),
            meal_type=row["meal_type"],
            finish_by=row["finish_by"],
            start_cooking_at=row["start_cooking_at"],
            confirmed=bool(row["confirmed"]),
            skipped=bool(row["skipped"]),
            is_leftover=bool(row["is_leftover"]),
            dishes=[Dish.from_dict(d) for d in json.loads(row["dishes_json"] or "[]")],
        )

    # ==================== Claims ====================

    def claim_items(
        self,
        conn: sqlite3.Connection,
        dish_id: str,
        food_item_ids: Iterable[str],
        shopping_item_ids: Iterable[str],
        conditional: bool = True,
    ):
        """
        Mark pantry and shopping items as claimed by dish_id.

        Must run inside transaction(). In conditional mode an item already
        claimed by a different dish raises ClaimConflictError, which rolls
        back the whole transaction. Otherwise the dish id is appended
        without checking (legacy behavior, allows double claims).
        """
        conflicts = []

        for item_id in food_item_ids:
            row = conn.execute("SELECT used_by_meals FROM food_items WHERE id = ?", (item_id,)).fetchone()
            if row is None:
                raise NotFoundError(f"Food item {item_id} no longer exists")
            used_by = json.loads(row["used_by_meals"] or "[]")
            if dish_id in used_by:
                continue
            if conditional and used_by:
                conflicts.append(item_id)
                continue
            used_by.append(dish_id)
            conn.execute(
                "UPDATE food_items SET used_by_meals = ? WHERE id = ?",
                (json.dumps(used_by), item_id),
            )

        for item_id in shopping_item_ids:
            row = conn.execute("SELECT meal_id FROM shopping_list_items WHERE id = ?", (item_id,)).fetchone()
            if row is None:
                raise NotFoundError(f"Shopping list item {item_id} no longer exists")
            if row["meal_id"] == dish_id:
                continue
            if conditional and row["meal_id"]:
                conflicts.append(item_id)
                continue
            conn.execute("UPDATE shopping_list_items SET meal_id = ? WHERE id = ?", (dish_id, item_id))

        if conflicts:
            logger.warning(f"[CLAIM] Conflict for dish {dish_id}: {conflicts}")
            raise ClaimConflictError(
                f"Items already claimed by another dish: {', '.join(conflicts)}",
                item_ids=conflicts,
            )

    def release_items(
        self,
        conn: sqlite3.Connection,
        dish_id: str,
        food_item_ids: Iterable[str],
        shopping_item_ids: Iterable[str],
    ):
        """Remove dish_id's claim from the given items (missing items are ignored)."""
        for item_id in food_item_ids:
            row = conn.execute("SELECT used_by_meals FROM food_items WHERE id = ?", (item_id,)).fetchone()
            if row is None:
                continue
            used_by = [m for m in json.loads(row["used_by_meals"] or "[]") if m != dish_id]
            conn.execute(
                "UPDATE food_items SET used_by_meals = ? WHERE id = ?",
                (json.dumps(used_by), item_id),
            )

        for item_id in shopping_item_ids:
            conn.execute(
                "UPDATE shopping_list_items SET meal_id = NULL WHERE id = ? AND meal_id = ?",
                (item_id, dish_id),
            )

    def insert_shopping_items(self, conn: sqlite3.Connection, items: Iterable[ShoppingListItem]):
        for item in items:
            self._insert_shopping_item(conn, item)

    def decrement_food_item(self, conn: sqlite3.Connection, item_id: str, amount: float) -> Optional[float]:
        """Reduce a pantry item's quantity, deleting it when nothing remains.

        Returns the remaining quantity, or None if the item was removed.
        """
        row = conn.execute("SELECT quantity FROM food_items WHERE id = ?", (item_id,)).fetchone()
        if row is None:
            return None
        current = row["quantity"] if row["quantity"] is not None else 1
        remaining = current - amount
        if remaining <= 0:
            conn.execute("DELETE FROM food_items WHERE id = ?", (item_id,))
            return None
        conn.execute("UPDATE food_items SET quantity = ? WHERE id = ?", (remaining, item_id))
        return remaining

    def delete_shopping_items(self, conn: sqlite3.Connection, item_ids: Iterable[str]) -> int:
        deleted = 0
        for item_id in item_ids:
            cursor = conn.execute("DELETE FROM shopping_list_items WHERE id = ?", (item_id,))
            deleted += cursor.rowcount
        return deleted

    def delete_planned_meal_row(self, conn: sqlite3.Connection, meal_id: str) -> bool:
        cursor = conn.execute("DELETE FROM planned_meals WHERE id = ?", (meal_id,))
        return cursor.rowcount > 0

    # ==================== Cooking reminders ====================

    def save_reminder(self, reminder: CookingReminder) -> str:
        """Store a reminder; one per meal, rescheduling replaces it."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO cooking_reminders (id, user_id, meal_id, fire_at, title, body, sent)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(meal_id) DO UPDATE SET
                    fire_at = excluded.fire_at,
                    title = excluded.title,
                    body = excluded.body,
                    sent = excluded.sent
            """, (
                reminder.id, reminder.user_id, reminder.meal_id, reminder.fire_at.isoformat(),
                reminder.title, reminder.body, int(reminder.sent),
            ))
            conn.commit()
            row = conn.execute("SELECT id FROM cooking_reminders WHERE meal_id = ?", (reminder.meal_id,)).fetchone()
        return row[0]

    def get_reminder_for_meal(self, meal_id: str) -> Optional[CookingReminder]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute("SELECT * FROM cooking_reminders WHERE meal_id = ?", (meal_id,)).fetchone()
        return self._row_to_reminder(row) if row else None

    def get_pending_reminders(self) -> List[CookingReminder]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute("SELECT * FROM cooking_reminders WHERE sent = 0 ORDER BY fire_at").fetchall()
        return [self._row_to_reminder(row) for row in rows]

    def mark_reminder_sent(self, reminder_id: str):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("UPDATE cooking_reminders SET sent = 1 WHERE id = ?", (reminder_id,))
            conn.commit()

    def delete_reminder_for_meal(self, meal_id: str) -> bool:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM cooking_reminders WHERE meal_id = ?", (meal_id,))
            conn.commit()
            return cursor.rowcount > 0

    def _row_to_reminder(self, row: sqlite3.Row) -> CookingReminder:
        return CookingReminder(
            id=row["id"],
            user_id=row["user_id"],
            meal_id=row["meal_id"],
            fire_at=datetime.fromisoformat(row["fire_at"]),
            title=row["title"],
            body=row["body"],
            sent=bool(row["sent"]),
        )

    def require_planned_meal(self, meal_id: str) -> PlannedMeal:
        meal = self.get_planned_meal(meal_id)
        if meal is None:
            raise NotFoundError(f"Planned meal {meal_id} not found")
        return meal

    def snapshot_inventory(self, user_id: str) -> Dict[str, List[Any]]:
        """Current pantry and shopping items for a user (the planner's read phase)."""
        return {
            "pantry": self.get_food_items(user_id),
            "shopping": self.get_shopping_list_items(user_id),
        }
