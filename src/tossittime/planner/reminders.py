"""
Cooking reminders: notify the user shortly before a meal's start-cooking time.

CookingReminderScheduler is an explicit service. The clock and timer
factory are injectable, the schedule is persisted in the database,
start() re-arms persisted reminders and shutdown() cancels every timer.
"""

import logging
import threading
from datetime import datetime, time, timedelta
from typing import Any, Callable, Dict, List, Optional

from ..data.database import DatabaseInterface, new_id
from ..data.models import CookingReminder, PlannedMeal

logger = logging.getLogger(__name__)

DEFAULT_LEAD_MINUTES = 15
DEFAULT_FINISH_BY = "18:00"
DEFAULT_COOKING_MINUTES = {
    "breakfast": 20,
    "lunch": 30,
    "dinner": 40,
}

Notifier = Callable[[CookingReminder], None]
TimerFactory = Callable[..., Any]


def parse_hhmm(value: str) -> time:
    hours, minutes = value.strip().split(":")[:2]
    return time(int(hours), int(minutes))


def calculate_start_cooking_at(finish_by: str, cooking_minutes: int) -> str:
    """finish_by minus cooking time, as "HH:MM" (wraps past midnight)."""
    finish = parse_hhmm(finish_by)
    total = (finish.hour * 60 + finish.minute - cooking_minutes) % (24 * 60)
    return f"{total // 60:02d}:{total % 60:02d}"


def default_start_cooking_at(meal_type: str, finish_by: Optional[str] = None) -> str:
    return calculate_start_cooking_at(
        finish_by or DEFAULT_FINISH_BY,
        DEFAULT_COOKING_MINUTES.get(meal_type, DEFAULT_COOKING_MINUTES["dinner"]),
    )


def meal_display_name(meal: PlannedMeal) -> str:
    names = [dish.dish_name for dish in meal.dishes if dish.dish_name]
    return ", ".join(names) if names else meal.meal_type.title()


def reminder_text(meal: PlannedMeal) -> Dict[str, str]:
    name = meal_display_name(meal)
    return {
        "title": f"Time to start cooking: {name}",
        "body": f"Start cooking at {meal.start_cooking_at} to have {name} ready by {meal.finish_by}",
    }


def log_notifier(reminder: CookingReminder):
    logger.info(f"[REMINDER] {reminder.title} - {reminder.body} (user={reminder.user_id})")


class CookingReminderScheduler:
    """Arms one timer per planned meal and persists the schedule."""

    def __init__(
        self,
        db: DatabaseInterface,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = datetime.now,
        timer_factory: TimerFactory = threading.Timer,
        lead_minutes: int = DEFAULT_LEAD_MINUTES,
    ):
        self.db = db
        self.notifier = notifier or log_notifier
        self.clock = clock
        self.timer_factory = timer_factory
        self.lead = timedelta(minutes=lead_minutes)
        self._timers: Dict[str, Any] = {}
        self._lock = threading.Lock()

    @property
    def armed_meal_ids(self) -> List[str]:
        with self._lock:
            return list(self._timers)

    def reminder_time(self, meal: PlannedMeal) -> Optional[datetime]:
        if not meal.start_cooking_at:
            return None
        return datetime.combine(meal.date, parse_hhmm(meal.start_cooking_at)) - self.lead

    @staticmethod
    def is_eligible(meal: PlannedMeal) -> bool:
        return meal.confirmed and not meal.skipped and bool(meal.start_cooking_at)

    def start(self) -> int:
        """Re-arm persisted reminders. Returns the number of timers armed."""
        now = self.clock()
        armed = 0
        for reminder in self.db.get_pending_reminders():
            if reminder.fire_at <= now:
                logger.info(f"[REMINDER] Skipping missed reminder for meal {reminder.meal_id}")
                self.db.mark_reminder_sent(reminder.id)
                continue
            self._arm(reminder, now)
            armed += 1
        logger.info(f"[REMINDER] Scheduler started with {armed} pending reminders")
        return armed

    def shutdown(self):
        """Cancel all timers. Persisted reminders are kept for the next start()."""
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        logger.info(f"[REMINDER] Scheduler stopped, cancelled {len(timers)} timers")

    def schedule_for_meal(self, meal: PlannedMeal) -> Optional[CookingReminder]:
        """
        (Re)schedule the reminder for one meal.

        Meals that are unconfirmed, skipped, lack a start time, or whose
        reminder time has passed get no reminder (and lose any old one).
        """
        self._cancel_timer(meal.id)

        fire_at = self.reminder_time(meal) if self.is_eligible(meal) else None
        now = self.clock()
        if fire_at is None or fire_at <= now:
            self.db.delete_reminder_for_meal(meal.id)
            return None

        text = reminder_text(meal)
        reminder = CookingReminder(
            id=new_id("rem"),
            user_id=meal.user_id,
            meal_id=meal.id,
            fire_at=fire_at,
            title=text["title"],
            body=text["body"],
        )
        reminder.id = self.db.save_reminder(reminder)
        self._arm(reminder, now)
        logger.info(f"[REMINDER] Scheduled for meal {meal.id} at {fire_at.isoformat()}")
        return reminder

    def schedule_for_plan(self, user_id: str, meal_plan_id: str) -> List[CookingReminder]:
        reminders = []
        for meal in self.db.get_planned_meals(user_id, meal_plan_id=meal_plan_id):
            reminder = self.schedule_for_meal(meal)
            if reminder:
                reminders.append(reminder)
        return reminders

    def cancel_for_meal(self, meal_id: str):
        self._cancel_timer(meal_id)
        self.db.delete_reminder_for_meal(meal_id)

    def cancel_all(self):
        """Cancel every armed reminder and drop it from the schedule."""
        for meal_id in self.armed_meal_ids:
            self.cancel_for_meal(meal_id)

    def _arm(self, reminder: CookingReminder, now: datetime):
        delay = max((reminder.fire_at - now).total_seconds(), 0)
        timer = self.timer_factory(delay, self._fire, args=(reminder,))
        timer.daemon = True
        with self._lock:
            previous = self._timers.get(reminder.meal_id)
            self._timers[reminder.meal_id] = timer
        if previous is not None:
            previous.cancel()
        timer.start()

    def _cancel_timer(self, meal_id: str):
        with self._lock:
            timer = self._timers.pop(meal_id, None)
        if timer is not None:
            timer.cancel()

    def _fire(self, reminder: CookingReminder):
        with self._lock:
            self._timers.pop(reminder.meal_id, None)
        self.db.mark_reminder_sent(reminder.id)
        try:
            self.notifier(reminder)
        except Exception as e:
            logger.error(f"[REMINDER] Notifier failed for meal {reminder.meal_id}: {e}", exc_info=True)
