import os
from enum import Enum
from typing import Final

from pydantic import BaseModel


class Milestone(Enum):
    # Enum Member = (key, label, description, required_tests, required_wpm)
    BRONZE = ("bronze", "Novice Typist", "Complete 5 tests", 5, None)
    SILVER = ("silver", "Dedicated Typist", "Complete 25 tests", 25, None)
    GOLD = ("gold", "Master Typist", "Complete 50 tests", 50, None)
    PLATINUM = ("platinum", "Keyboard Legend", "Complete 100 tests", 100, None)
    SPEED_40 = ("speed-40", "Cruising Speed", "Reach 40 WPM", None, 40)
    SPEED_60 = ("speed-60", "Rapid Typer", "Reach 60 WPM", None, 60)
    SPEED_80 = ("speed-80", "Lightning Fingers", "Reach 80 WPM", None, 80)
    SPEED_100 = ("speed-100", "Grandmaster Speed", "Reach 100 WPM", None, 100)

    def __init__(
        self,
        key: str,
        label: str,
        description: str,
        required_tests: int | None,
        required_wpm: int | None,
    ):
        self.key = key
        self.label = label
        self.description = description
        self.required_tests = required_tests
        self.required_wpm = required_wpm

    @classmethod
    def by_key(cls, key: str) -> "Milestone":
        for milestone in cls:
            if milestone.key == key:
                return milestone
        raise KeyError(key)

    @classmethod
    def all_keys(cls) -> list[str]:
        return [m.key for m in cls]


class GameConfig:
    # --- Accounts ---
    GUEST_USER_ID = "guest"

    # --- Scoring ---
    WORD_SIZE: Final[int] = 5
    MIN_ELAPSED_SECONDS = 0.001
    LIVE_ELAPSED_FLOOR_SECONDS = 0.5

    # --- Clock ---
    TICK_INTERVAL_SECONDS = 0.1
    TIMED_DURATIONS: Final[tuple[int, ...]] = (60, 120, 300)

    # --- Passage Building ---
    # ~15 chars/second is roughly 180 WPM, beyond any realistic sprint.
    CHARS_PER_SECOND_CEILING = 15
    MAX_PASSAGE_APPENDS = 15
    PROVIDER_TIMEOUT_SECONDS = 10.0

    # --- Progression ---
    # (level, xp threshold), ascending
    LEVELS: Final[list[tuple[int, int]]] = [
        (1, 0),
        (2, 100),
        (3, 250),
        (4, 500),
        (5, 1000),
        (6, 2000),
        (7, 4000),
        (8, 8000),
        (9, 16000),
        (10, 32000),
    ]
    MAX_LEVEL_NEXT_XP = 100000

    # --- Leaderboard ---
    LEADERBOARD_SIZE: Final[int] = 50

    # --- Text Provider ---
    GEMINI_MODEL = "gemini-2.5-flash"
    GEMINI_PROMPT = (
        "Generate a random interesting paragraph about science, history, or "
        "technology for a typing test. It should be approximately 60-80 words "
        "long. Plain text only, no markdown."
    )

    SAMPLE_TEXTS: Final[list[str]] = [
        "The quick brown fox jumps over the lazy dog. This pangram contains "
        "every letter of the English alphabet at least once.",
        "Typing fast is a skill that takes practice and patience. Regular "
        "exercises can help improve both your speed and accuracy over time.",
        "Technology continues to evolve at a rapid pace, changing the way we "
        "live, work, and communicate with one another across the globe.",
        "A journey of a thousand miles begins with a single step. Consistency "
        "is key to mastering any new skill, including touch typing.",
        "In software engineering, clean code is often more important than "
        "clever code. Readability helps teams maintain projects in the long run.",
    ]

    # --- Persistence ---
    STORAGE_PREFIX = "typemaster_"

    @staticmethod
    def fallback_passage() -> str:
        return GameConfig.SAMPLE_TEXTS[0]

    @staticmethod
    def avatar_url(username: str, background: str = "random") -> str:
        return f"https://ui-avatars.com/api/?name={username}&background={background}"


class Settings(BaseModel):
    """Deployment settings read from the environment."""

    db_path: str = "data/typemaster.db"
    gemini_api_key: str | None = None
    metrics_port: int | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        port = os.getenv("TYPEMASTER_METRICS_PORT")
        return cls(
            db_path=os.getenv("TYPEMASTER_DB_PATH", "data/typemaster.db"),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
            metrics_port=int(port) if port else None,
        )
