from datetime import UTC, datetime

from typemaster.config import GameConfig
from typemaster.shared.telemetry import Telemetry, measure_time
from typemaster.trainer.domain.leaderboard import Leaderboard
from typemaster.trainer.domain.models import LeaderboardEntry, TestResult, UserRecord
from typemaster.trainer.domain.ports import IKeyValueStore


class StorageKeys:
    USERS = f"{GameConfig.STORAGE_PREFIX}users"
    CURRENT_USER = f"{GameConfig.STORAGE_PREFIX}current_user"
    RESULTS = f"{GameConfig.STORAGE_PREFIX}results"
    LEADERBOARD = f"{GameConfig.STORAGE_PREFIX}leaderboard"


def placeholder_entries() -> list[LeaderboardEntry]:
    """Shown on first run so the leaderboard is never empty."""
    seeded_at = datetime(2024, 1, 1, tzinfo=UTC)
    return [
        LeaderboardEntry(
            user_id="1",
            username="SpeedDemon",
            avatar=GameConfig.avatar_url("SpeedDemon", "red"),
            wpm=120,
            level=8,
            xp=9000,
            achieved_at=seeded_at,
        ),
        LeaderboardEntry(
            user_id="2",
            username="TypingNinja",
            avatar=GameConfig.avatar_url("TypingNinja", "blue"),
            wpm=115,
            level=7,
            xp=7500,
            achieved_at=seeded_at,
        ),
        LeaderboardEntry(
            user_id="3",
            username="KeyboardWarrior",
            avatar=GameConfig.avatar_url("KW", "green"),
            wpm=105,
            level=6,
            xp=6200,
            achieved_at=seeded_at,
        ),
    ]


class TypeMasterRepository:
    """
    Typed access to the four whole-value keys the app persists:
    users, current user, result history and leaderboard.
    """

    def __init__(self, store: IKeyValueStore) -> None:
        self.store = store
        self.telemetry = Telemetry("TypeMasterRepository")

    # --- Users ---
    def list_users(self) -> list[UserRecord]:
        raw = self.store.get(StorageKeys.USERS, [])
        return [UserRecord.model_validate(u) for u in raw]

    def get_user(self, user_id: str) -> UserRecord | None:
        for user in self.list_users():
            if user.id == user_id:
                return user
        return None

    def find_user(self, username: str) -> UserRecord | None:
        for user in self.list_users():
            if user.same_username(username):
                return user
        return None

    def add_user(self, user: UserRecord) -> None:
        users = self.list_users()
        users.append(user)
        self._write_users(users)

    @measure_time("save_user")
    def save_user(self, user: UserRecord) -> None:
        """Replaces the stored record with the same id (and the session copy)."""
        users = [user if u.id == user.id else u for u in self.list_users()]
        self._write_users(users)

        current = self.get_current_user()
        if current is not None and current.id == user.id:
            self.set_current_user(user)

    def _write_users(self, users: list[UserRecord]) -> None:
        self.store.set(StorageKeys.USERS, [u.model_dump(mode="json") for u in users])

    # --- Current User ---
    def get_current_user(self) -> UserRecord | None:
        raw = self.store.get(StorageKeys.CURRENT_USER)
        return UserRecord.model_validate(raw) if raw else None

    def set_current_user(self, user: UserRecord | None) -> None:
        if user is None:
            self.store.delete(StorageKeys.CURRENT_USER)
            return
        self.store.set(StorageKeys.CURRENT_USER, user.model_dump(mode="json"))

    # --- History ---
    def append_result(self, result: TestResult) -> None:
        """History is append-only and kept most-recent-first."""
        history = self.store.get(StorageKeys.RESULTS, [])
        history.insert(0, result.model_dump(mode="json"))
        self.store.set(StorageKeys.RESULTS, history)

    def get_history(self, user_id: str) -> list[TestResult]:
        raw = self.store.get(StorageKeys.RESULTS, [])
        return [
            TestResult.model_validate(r) for r in raw if r.get("user_id") == user_id
        ]

    # --- Leaderboard ---
    def load_leaderboard(self) -> Leaderboard:
        raw = self.store.get(StorageKeys.LEADERBOARD, [])
        if not raw:
            self.telemetry.log_info("Leaderboard empty. Seeding placeholders.")
            board = Leaderboard(placeholder_entries())
            self.save_leaderboard(board)
            return board
        return Leaderboard(LeaderboardEntry.model_validate(e) for e in raw)

    def save_leaderboard(self, board: Leaderboard) -> None:
        self.store.set(
            StorageKeys.LEADERBOARD, [e.model_dump(mode="json") for e in board.top()]
        )

    @measure_time("upsert_leaderboard")
    def upsert_leaderboard(self, entry: LeaderboardEntry) -> Leaderboard:
        board = self.load_leaderboard()
        board.upsert(entry)
        self.save_leaderboard(board)
        return board
