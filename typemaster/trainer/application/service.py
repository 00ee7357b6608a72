import asyncio
import threading

from typemaster.shared.telemetry import Telemetry, measure_time, measure_time_async
from typemaster.trainer.adapters.repository import TypeMasterRepository
from typemaster.trainer.domain import progression
from typemaster.trainer.domain.models import (
    DashboardSummary,
    LeaderboardEntry,
    TestResult,
    UserRecord,
)


class ProgressionService:
    """
    Applies finished tests to user records and keeps the derived views
    (history, leaderboard, dashboard) in step.
    """

    def __init__(self, repo: TypeMasterRepository):
        self.repo = repo
        self.telemetry = Telemetry("ProgressionService")
        # Held across the whole read-modify-write of user, history and leaderboard.
        self._save_lock = threading.Lock()

    @property
    def repository(self) -> TypeMasterRepository:
        return self.repo

    @measure_time_async("save_result")
    async def save_result(self, user: UserRecord, result: TestResult) -> UserRecord:
        """Persists off the event loop so keystrokes keep flowing."""
        return await asyncio.to_thread(self.save_result_sync, user, result)

    @measure_time("save_result_sync")
    def save_result_sync(self, user: UserRecord, result: TestResult) -> UserRecord:
        if result.user_id != user.id:
            result = result.model_copy(update={"user_id": user.id})

        with self._save_lock:
            # The stored record wins over the caller's copy, which may be stale.
            current = self.repo.get_user(user.id) or user
            updated = progression.apply_result(current, result)

            self.repo.save_user(updated)
            self.repo.append_result(result)
            self.repo.upsert_leaderboard(
                LeaderboardEntry.from_user(updated, achieved_at=result.timestamp)
            )

        self.telemetry.log_info(
            "Result Saved",
            user_id=updated.id,
            xp=updated.xp,
            level=updated.level,
            best_wpm=updated.best_wpm,
            level_up=updated.level > current.level,
        )
        return updated

    def get_history(self, user_id: str) -> list[TestResult]:
        return self.repo.get_history(user_id)

    def get_leaderboard(self, n: int | None = None) -> list[LeaderboardEntry]:
        return self.repo.load_leaderboard().top(n)

    def get_dashboard(self, user: UserRecord) -> DashboardSummary:
        current = self.repo.get_user(user.id) or user
        return DashboardSummary(
            user=current,
            progress=progression.level_progress(current),
            milestones=progression.milestone_statuses(current),
            history=self.get_history(current.id),
        )
