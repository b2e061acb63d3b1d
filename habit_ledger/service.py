import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, Optional
from uuid import UUID

from .models import (
    EventKind,
    PurchaseFailure,
    Habit,
    Reward,
    DailyPointsEntry,
    LedgerEvent,
    PurchaseResult,
)

logger = logging.getLogger(__name__)

Subscriber = Callable[[LedgerEvent], None]


class LedgerError(Exception):
    pass


class HabitNotFoundError(LedgerError):
    pass


class RewardNotFoundError(LedgerError):
    pass


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def day_label(day: date, today: date) -> str:
    """Short label for a history bar: "Today", "Yesterday" or e.g. "Mon 05"."""
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return day.strftime("%a %d")


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _clean_name(name) -> Optional[str]:
    if not isinstance(name, str):
        return None
    name = name.strip()
    return name or None


class InMemoryStorage:
    def __init__(self, seed: bool = False, now: Optional[datetime] = None):
        self.habits: list[Habit] = []
        self.rewards: list[Reward] = []
        self.balance: int = 0
        self.history: list[DailyPointsEntry] = []
        if seed:
            self._seed_data(now or datetime.now())

    def _seed_data(self, now: datetime):
        self.habits = [
            Habit(name="Work out for 1h", points=20),
            Habit(name="Read 30 pages", points=10),
            Habit(name="Meditate 10 min", points=15, is_completed_today=True),
            Habit(name="Drink 2L of water", points=5),
        ]
        self.rewards = [
            Reward(name="1h of video games", cost=50),
            Reward(name="Watch a movie", cost=100),
            Reward(name="Night out with friends", cost=150),
        ]
        self.balance = 120

        # Last week of earnings; today's 15 points come from the completed habit.
        today = start_of_day(now.date())
        daily_points = [50, 70, 30, 10, 100, 5, 30, 15]
        self.history = [
            DailyPointsEntry(points=points, date=today - timedelta(days=len(daily_points) - 1 - offset))
            for offset, points in enumerate(daily_points)
        ]


class PointsLedger:
    """Habits, rewards, point balance and per-day earnings history.

    Every point gained or lost through a habit is mirrored between the
    balance and today's history entry. Purchases only move the balance.
    Habits and history entries are frozen; the ledger swaps in updated
    copies, so records handed out by the accessors never change underneath
    the caller.

    Subscribers registered with :meth:`subscribe` receive a
    :class:`LedgerEvent` after each mutation that changed state.
    """

    def __init__(
        self,
        storage: Optional[InMemoryStorage] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.storage = storage or InMemoryStorage()
        self.clock = clock or datetime.now
        self._subscribers: list[Subscriber] = []

    # Read accessors

    @property
    def habits(self) -> list[Habit]:
        return list(self.storage.habits)

    @property
    def rewards(self) -> list[Reward]:
        return list(self.storage.rewards)

    @property
    def balance(self) -> int:
        return self.storage.balance

    @property
    def history(self) -> list[DailyPointsEntry]:
        return list(self.storage.history)

    def today(self) -> date:
        return self.clock().date()

    def get_habit(self, habit_id: UUID) -> Optional[Habit]:
        index = self._habit_index(habit_id)
        return None if index is None else self.storage.habits[index]

    def get_reward(self, reward_id: UUID) -> Optional[Reward]:
        return next((r for r in self.storage.rewards if r.id == reward_id), None)

    def require_habit(self, habit_id: UUID) -> Habit:
        habit = self.get_habit(habit_id)
        if habit is None:
            raise HabitNotFoundError(f"Habit {habit_id} not found")
        return habit

    def require_reward(self, reward_id: UUID) -> Reward:
        reward = self.get_reward(reward_id)
        if reward is None:
            raise RewardNotFoundError(f"Reward {reward_id} not found")
        return reward

    def completion_ratio(self) -> float:
        habits = self.storage.habits
        if not habits:
            return 0.0
        return sum(1 for h in habits if h.is_completed_today) / len(habits)

    def can_afford(self, reward_id: UUID) -> bool:
        reward = self.get_reward(reward_id)
        return reward is not None and self.storage.balance >= reward.cost

    def points_for_day(self, day: date) -> int:
        entry = self._history_entry(day)
        return entry.points if entry else 0

    def history_peak(self) -> int:
        return max((e.points for e in self.storage.history), default=0)

    # Subscriptions

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _emit(self, kind: EventKind, **fields) -> None:
        event = LedgerEvent(kind=kind, balance=self.storage.balance, **fields)
        for callback in list(self._subscribers):
            callback(event)

    # Habits

    def add_habit(self, name: str, points: int) -> Optional[Habit]:
        clean_name = _clean_name(name)
        if clean_name is None or not _is_positive_int(points):
            logger.debug("Ignoring invalid habit name=%r points=%r", name, points)
            return None

        habit = Habit(name=clean_name, points=points)
        self.storage.habits.append(habit)
        logger.info("Added habit %r worth %d points", habit.name, habit.points)
        self._emit(EventKind.HABIT_ADDED, habit_id=habit.id)
        return habit

    def delete_habits(self, indices: Iterable[int]) -> list[Habit]:
        removed = self._remove_at(self.storage.habits, indices)
        for habit in removed:
            logger.info("Deleted habit %r", habit.name)
            self._emit(EventKind.HABIT_DELETED, habit_id=habit.id)
        return removed

    def complete_habit(self, habit_id: UUID) -> Optional[Habit]:
        index = self._habit_index(habit_id)
        if index is None:
            logger.debug("complete_habit: no habit with id %s", habit_id)
            return None

        current = self.storage.habits[index]
        habit = current.model_copy(update={"is_completed_today": not current.is_completed_today})
        today = self.today()

        if habit.is_completed_today:
            self._add_points_to_history(habit.points, today)
            self.storage.balance += habit.points
            self.storage.habits[index] = habit
            logger.info("Completed %r: +%d points (balance %d)", habit.name, habit.points, self.storage.balance)
            self._emit(EventKind.HABIT_COMPLETED, habit_id=habit.id, points_delta=habit.points)
        else:
            self._subtract_points_from_history(habit.points, today)
            self.storage.balance -= habit.points
            self.storage.habits[index] = habit
            logger.info("Uncompleted %r: -%d points (balance %d)", habit.name, habit.points, self.storage.balance)
            self._emit(EventKind.HABIT_UNCOMPLETED, habit_id=habit.id, points_delta=-habit.points)
        return habit

    def start_new_day(self) -> int:
        """Clear today's completion flags. Balance and history are kept.

        Returns the number of habits that were reset.
        """
        reset = 0
        for index, habit in enumerate(self.storage.habits):
            if habit.is_completed_today:
                self.storage.habits[index] = habit.model_copy(update={"is_completed_today": False})
                reset += 1
        logger.info("Started a new day, reset %d habit(s)", reset)
        self._emit(EventKind.DAY_STARTED)
        return reset

    # Rewards

    def add_reward(self, name: str, cost: int) -> Optional[Reward]:
        clean_name = _clean_name(name)
        if clean_name is None or not _is_positive_int(cost):
            logger.debug("Ignoring invalid reward name=%r cost=%r", name, cost)
            return None

        reward = Reward(name=clean_name, cost=cost)
        self.storage.rewards.append(reward)
        logger.info("Added reward %r costing %d points", reward.name, reward.cost)
        self._emit(EventKind.REWARD_ADDED, reward_id=reward.id)
        return reward

    def delete_rewards(self, indices: Iterable[int]) -> list[Reward]:
        removed = self._remove_at(self.storage.rewards, indices)
        for reward in removed:
            logger.info("Deleted reward %r", reward.name)
            self._emit(EventKind.REWARD_DELETED, reward_id=reward.id)
        return removed

    def buy_reward(self, reward_id: UUID) -> PurchaseResult:
        reward = self.get_reward(reward_id)
        if reward is None:
            return PurchaseResult(
                reward_id=reward_id,
                success=False,
                balance=self.storage.balance,
                reason=PurchaseFailure.NOT_FOUND,
                message=f"Reward {reward_id} not found",
            )

        if self.storage.balance < reward.cost:
            logger.info(
                "Insufficient points for %r: have %d, need %d",
                reward.name, self.storage.balance, reward.cost,
            )
            return PurchaseResult(
                reward_id=reward.id,
                success=False,
                balance=self.storage.balance,
                reason=PurchaseFailure.INSUFFICIENT_BALANCE,
                message=(
                    f"Not enough points to buy {reward.name}: "
                    f"you have {self.storage.balance}, it costs {reward.cost}"
                ),
            )

        self.storage.balance -= reward.cost
        logger.info("Bought %r for %d points (balance %d)", reward.name, reward.cost, self.storage.balance)
        self._emit(EventKind.REWARD_PURCHASED, reward_id=reward.id, points_delta=-reward.cost)
        return PurchaseResult(
            reward_id=reward.id,
            success=True,
            balance=self.storage.balance,
            message=f"{reward.name} purchased",
        )

    # Lookups and history

    def _habit_index(self, habit_id: UUID) -> Optional[int]:
        return next((i for i, h in enumerate(self.storage.habits) if h.id == habit_id), None)

    def _history_index(self, day: date) -> Optional[int]:
        return next((i for i, e in enumerate(self.storage.history) if e.date.date() == day), None)

    def _history_entry(self, day: date) -> Optional[DailyPointsEntry]:
        index = self._history_index(day)
        return None if index is None else self.storage.history[index]

    def _add_points_to_history(self, points: int, day: date) -> None:
        index = self._history_index(day)
        if index is not None:
            entry = self.storage.history[index]
            self.storage.history[index] = entry.model_copy(update={"points": entry.points + points})
            return

        self.storage.history.append(DailyPointsEntry(points=points, date=start_of_day(day)))
        self.storage.history.sort(key=lambda e: e.date)

    def _subtract_points_from_history(self, points: int, day: date) -> None:
        index = self._history_index(day)
        if index is not None:
            entry = self.storage.history[index]
            self.storage.history[index] = entry.model_copy(update={"points": max(entry.points - points, 0)})

    @staticmethod
    def _remove_at(items: list, indices: Iterable[int]) -> list:
        positions = sorted({i for i in indices if 0 <= i < len(items)}, reverse=True)
        removed = [items.pop(i) for i in positions]
        removed.reverse()
        return removed
