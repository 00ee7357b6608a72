import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from typemaster.config import GameConfig


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


# --- Enums ---
class TestMode(str, Enum):
    __test__ = False  # not a pytest class

    QUOTE = "text"
    TIMED = "time"


class CharState(str, Enum):
    UNTYPED = "untyped"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    CURSOR = "cursor"


# --- Value Objects ---
class SessionMode(BaseModel):
    """Which kind of test is being run. Timed tests carry their duration."""

    model_config = ConfigDict(frozen=True)

    mode: TestMode = TestMode.QUOTE
    duration_seconds: int | None = None

    @model_validator(mode="after")
    def _check_duration(self) -> "SessionMode":
        if self.mode is TestMode.TIMED:
            if self.duration_seconds not in GameConfig.TIMED_DURATIONS:
                raise ValueError(
                    f"Timed tests support {GameConfig.TIMED_DURATIONS} seconds, "
                    f"got {self.duration_seconds}"
                )
        elif self.duration_seconds is not None:
            raise ValueError("Quote tests have no duration")
        return self

    @classmethod
    def quote(cls) -> "SessionMode":
        return cls(mode=TestMode.QUOTE)

    @classmethod
    def timed(cls, duration_seconds: int) -> "SessionMode":
        return cls(mode=TestMode.TIMED, duration_seconds=duration_seconds)

    @property
    def is_timed(self) -> bool:
        return self.mode is TestMode.TIMED


@dataclass(frozen=True)
class Score:
    wpm: int
    accuracy: int
    mistakes: int


# --- Entities ---
class TestResult(BaseModel):
    """Immutable record of one finished session."""

    __test__ = False
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    user_id: str = GameConfig.GUEST_USER_ID
    wpm: int = Field(ge=0)
    accuracy: int = Field(ge=0, le=100)
    mistakes: int = Field(ge=0)
    mode: TestMode
    duration_seconds: int | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
    xp_earned: int = Field(ge=0)


class UserRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    username: str
    email: str = ""
    avatar: str = ""
    xp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    total_tests: int = Field(default=0, ge=0)
    best_wpm: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)
    # Placeholder auth only: salted hash, never the plain password.
    password_hash: str | None = None

    def same_username(self, username: str) -> bool:
        return self.username.casefold() == username.casefold()


class LeaderboardEntry(BaseModel):
    """Denormalized projection of a user's best score."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    avatar: str = ""
    wpm: int = Field(ge=0)
    level: int = Field(default=1, ge=1)
    xp: int = Field(default=0, ge=0)
    achieved_at: datetime = Field(default_factory=_utcnow)

    @field_validator("achieved_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # Ranking compares timestamps; naive values are taken as UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @classmethod
    def from_user(cls, user: UserRecord, achieved_at: datetime | None = None) -> "LeaderboardEntry":
        return cls(
            user_id=user.id,
            username=user.username,
            avatar=user.avatar,
            wpm=user.best_wpm,
            level=user.level,
            xp=user.xp,
            achieved_at=achieved_at or _utcnow(),
        )


# --- DTOs for the dashboard ---
class LevelProgress(BaseModel):
    level: int
    xp: int
    current_floor: int
    next_threshold: int
    percent: float


class MilestoneStatus(BaseModel):
    id: str
    name: str
    description: str
    required_tests: int | None = None
    required_wpm: int | None = None
    unlocked: bool


class DashboardSummary(BaseModel):
    user: UserRecord
    progress: LevelProgress
    milestones: list[MilestoneStatus]
    history: list[TestResult]
