import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .models import (
    PurchaseFailure,
    Habit,
    Reward,
    PurchaseResult,
    CreateHabitRequest,
    CreateRewardRequest,
    DeleteItemsRequest,
    HabitListResponse,
    RewardListing,
    RewardListResponse,
    BalanceResponse,
    HistoryPoint,
    HistoryResponse,
)
from .service import (
    InMemoryStorage, PointsLedger, HabitNotFoundError, RewardNotFoundError, day_label,
)

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_ledger(settings: Settings) -> PointsLedger:
    return PointsLedger(InMemoryStorage(seed=settings.seed_demo_data))


def get_ledger(request: Request) -> PointsLedger:
    return request.app.state.ledger


def create_app(
    ledger: Optional[PointsLedger] = None,
    settings: Optional[Settings] = None,
    root_path: str = "",
) -> FastAPI:
    """Build the HTTP front end around one ledger instance.

    The ledger is created here from ``settings`` unless the caller passes
    its own; every route receives that same instance through ``get_ledger``.
    """
    settings = settings or Settings()
    if ledger is None:
        ledger = build_ledger(settings)

    app = FastAPI(
        title="Habit Ledger API",
        description="Habits earn points, rewards spend them, earnings are tracked per day",
        version="1.0.0",
        root_path=root_path,
    )
    app.state.ledger = ledger

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "healthy", "service": "habit-ledger"}

    @app.get("/habits", response_model=HabitListResponse, tags=["Habits"])
    def list_habits(ledger: PointsLedger = Depends(get_ledger)) -> HabitListResponse:
        return HabitListResponse(habits=ledger.habits, completion_ratio=ledger.completion_ratio())

    @app.post("/habits", response_model=Habit, status_code=status.HTTP_201_CREATED, tags=["Habits"])
    def create_habit(request: CreateHabitRequest, ledger: PointsLedger = Depends(get_ledger)) -> Habit:
        return ledger.add_habit(request.name, request.points)

    @app.post("/habits/delete", response_model=list[Habit], tags=["Habits"])
    def delete_habits(request: DeleteItemsRequest, ledger: PointsLedger = Depends(get_ledger)) -> list[Habit]:
        return ledger.delete_habits(request.indices)

    @app.post("/habits/start-day", response_model=HabitListResponse, tags=["Habits"])
    def start_day(ledger: PointsLedger = Depends(get_ledger)) -> HabitListResponse:
        ledger.start_new_day()
        return HabitListResponse(habits=ledger.habits, completion_ratio=ledger.completion_ratio())

    @app.post("/habits/{habit_id}/complete", response_model=Habit, tags=["Habits"])
    def complete_habit(habit_id: UUID, ledger: PointsLedger = Depends(get_ledger)) -> Habit:
        try:
            ledger.require_habit(habit_id)
        except HabitNotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
        return ledger.complete_habit(habit_id)

    @app.get("/rewards", response_model=RewardListResponse, tags=["Rewards"])
    def list_rewards(ledger: PointsLedger = Depends(get_ledger)) -> RewardListResponse:
        return RewardListResponse(
            rewards=[RewardListing(reward=r, affordable=ledger.can_afford(r.id)) for r in ledger.rewards],
            balance=ledger.balance,
        )

    @app.post("/rewards", response_model=Reward, status_code=status.HTTP_201_CREATED, tags=["Rewards"])
    def create_reward(request: CreateRewardRequest, ledger: PointsLedger = Depends(get_ledger)) -> Reward:
        return ledger.add_reward(request.name, request.cost)

    @app.post("/rewards/delete", response_model=list[Reward], tags=["Rewards"])
    def delete_rewards(request: DeleteItemsRequest, ledger: PointsLedger = Depends(get_ledger)) -> list[Reward]:
        return ledger.delete_rewards(request.indices)

    @app.post("/rewards/{reward_id}/buy", response_model=PurchaseResult, tags=["Rewards"])
    def buy_reward(reward_id: UUID, ledger: PointsLedger = Depends(get_ledger)) -> PurchaseResult:
        try:
            ledger.require_reward(reward_id)
        except RewardNotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

        result = ledger.buy_reward(reward_id)
        if result.reason == PurchaseFailure.INSUFFICIENT_BALANCE:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.message)
        return result

    @app.get("/balance", response_model=BalanceResponse, tags=["Points"])
    def get_balance(ledger: PointsLedger = Depends(get_ledger)) -> BalanceResponse:
        return BalanceResponse(balance=ledger.balance)

    @app.get("/history", response_model=HistoryResponse, tags=["Points"])
    def get_history(ledger: PointsLedger = Depends(get_ledger)) -> HistoryResponse:
        today = ledger.today()
        entries = [HistoryPoint(entry=e, label=day_label(e.date.date(), today)) for e in ledger.history]
        return HistoryResponse(entries=entries, peak=ledger.history_peak(), total_count=len(entries))

    logger.info("Habit ledger API ready with %d habits and %d rewards", len(ledger.habits), len(ledger.rewards))
    return app


if __name__ == "__main__":
    import uvicorn

    settings = Settings()
    configure_logging(settings)
    uvicorn.run(create_app(settings=settings), host=settings.server_host, port=settings.server_port)
