from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4
from pydantic import BaseModel, Field, ConfigDict, field_validator


class EventKind(str, Enum):
    HABIT_ADDED = "HABIT_ADDED"
    HABIT_DELETED = "HABIT_DELETED"
    HABIT_COMPLETED = "HABIT_COMPLETED"
    HABIT_UNCOMPLETED = "HABIT_UNCOMPLETED"
    REWARD_ADDED = "REWARD_ADDED"
    REWARD_DELETED = "REWARD_DELETED"
    REWARD_PURCHASED = "REWARD_PURCHASED"
    DAY_STARTED = "DAY_STARTED"


class PurchaseFailure(str, Enum):
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    NOT_FOUND = "NOT_FOUND"


class Habit(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1)
    points: int = Field(..., gt=0)
    is_completed_today: bool = False

    model_config = ConfigDict(frozen=True)


class Reward(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1)
    cost: int = Field(..., gt=0)

    model_config = ConfigDict(frozen=True)


class DailyPointsEntry(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    points: int = Field(default=0, ge=0)
    date: datetime

    model_config = ConfigDict(frozen=True)


class LedgerEvent(BaseModel):
    kind: EventKind
    balance: int
    points_delta: int = 0
    habit_id: Optional[UUID] = None
    reward_id: Optional[UUID] = None


class PurchaseResult(BaseModel):
    reward_id: UUID
    success: bool
    balance: int
    reason: Optional[PurchaseFailure] = None
    message: str


# Presentation adapter shapes


class _NamedItemRequest(BaseModel):
    name: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class CreateHabitRequest(_NamedItemRequest):
    points: int = Field(..., gt=0)

    model_config = ConfigDict(json_schema_extra={
        "example": {"name": "Read 30 pages", "points": 10}
    })


class CreateRewardRequest(_NamedItemRequest):
    cost: int = Field(..., gt=0)

    model_config = ConfigDict(json_schema_extra={
        "example": {"name": "Watch a movie", "cost": 100}
    })


class DeleteItemsRequest(BaseModel):
    indices: list[int] = Field(default_factory=list)


class HabitListResponse(BaseModel):
    habits: list[Habit]
    completion_ratio: float


class RewardListing(BaseModel):
    reward: Reward
    affordable: bool


class RewardListResponse(BaseModel):
    rewards: list[RewardListing]
    balance: int


class BalanceResponse(BaseModel):
    balance: int


class HistoryPoint(BaseModel):
    entry: DailyPointsEntry
    label: str


class HistoryResponse(BaseModel):
    entries: list[HistoryPoint]
    peak: int
    total_count: int
