import math

from typemaster.config import GameConfig
from typemaster.trainer.domain.models import CharState, Score


def round_half_up(value: float) -> int:
    """Rounds .5 away from zero for non-negative values (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def count_correct(typed: str, reference: str) -> int:
    """Positions where typed matches the reference. Overflow never matches."""
    return sum(1 for a, b in zip(typed, reference) if a == b)


def words_per_minute(char_count: int, elapsed_seconds: float) -> int:
    words = char_count / GameConfig.WORD_SIZE
    minutes = max(elapsed_seconds, GameConfig.MIN_ELAPSED_SECONDS) / 60
    return round_half_up(words / minutes)


def clamp_elapsed(elapsed_seconds: float) -> float:
    """Live stats floor: avoids absurd WPM right after the first key."""
    return max(elapsed_seconds, GameConfig.LIVE_ELAPSED_FLOOR_SECONDS)


def score(typed: str, reference: str, elapsed_seconds: float) -> Score:
    """
    Recomputes speed and accuracy from scratch.

    Pure and deterministic, so it is safe to call on every keystroke and
    every clock tick.

    Example:
        >>> score("cat", "car", 6)
        Score(wpm=6, accuracy=67, mistakes=1)
    """
    correct = count_correct(typed, reference)
    accuracy = round_half_up(correct / max(len(typed), 1) * 100)
    return Score(
        wpm=words_per_minute(len(typed), elapsed_seconds),
        accuracy=accuracy,
        mistakes=len(typed) - correct,
    )


def xp_for(wpm: int, accuracy: int) -> int:
    return round_half_up(wpm * accuracy / 10)


def classify(typed: str, reference: str) -> list[CharState]:
    """One state per reference character, for rendering the passage."""
    states: list[CharState] = []
    cursor = len(typed)
    for index, char in enumerate(reference):
        if index < cursor:
            states.append(
                CharState.CORRECT if typed[index] == char else CharState.INCORRECT
            )
        elif index == cursor:
            states.append(CharState.CURSOR)
        else:
            states.append(CharState.UNTYPED)
    return states
