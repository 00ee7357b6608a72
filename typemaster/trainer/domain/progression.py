from bisect import bisect_right
from collections.abc import Sequence

from typemaster.config import GameConfig, Milestone
from typemaster.trainer.domain.models import (
    LevelProgress,
    MilestoneStatus,
    TestResult,
    UserRecord,
)

LevelTable = Sequence[tuple[int, int]]


def level_for_xp(xp: int, table: LevelTable = GameConfig.LEVELS) -> int:
    """
    Highest level whose XP threshold is <= xp.
    Always derived from the table, never stepped incrementally.

    Example:
        >>> level_for_xp(105, [(1, 0), (2, 100), (3, 250)])
        2
    """
    thresholds = [threshold for _, threshold in table]
    index = bisect_right(thresholds, xp) - 1
    if index < 0:
        return table[0][0]
    return table[index][0]


def apply_result(
    user: UserRecord, result: TestResult, table: LevelTable = GameConfig.LEVELS
) -> UserRecord:
    """Folds a finished test into the user's stats. Returns a new record."""
    new_xp = user.xp + result.xp_earned
    return user.model_copy(
        update={
            "xp": new_xp,
            "level": level_for_xp(new_xp, table),
            "total_tests": user.total_tests + 1,
            "best_wpm": max(user.best_wpm, result.wpm),
        }
    )


def is_unlocked(milestone: Milestone, user: UserRecord) -> bool:
    if milestone.required_tests is not None:
        return user.total_tests >= milestone.required_tests
    if milestone.required_wpm is not None:
        return user.best_wpm >= milestone.required_wpm
    return False


def unlocked_milestones(user: UserRecord) -> list[Milestone]:
    return [m for m in Milestone if is_unlocked(m, user)]


def milestone_statuses(user: UserRecord) -> list[MilestoneStatus]:
    return [
        MilestoneStatus(
            id=m.key,
            name=m.label,
            description=m.description,
            required_tests=m.required_tests,
            required_wpm=m.required_wpm,
            unlocked=is_unlocked(m, user),
        )
        for m in Milestone
    ]


def level_progress(user: UserRecord, table: LevelTable = GameConfig.LEVELS) -> LevelProgress:
    """Where the user sits between their level floor and the next threshold."""
    thresholds = dict(table)
    floor = thresholds.get(user.level, 0)
    ceiling = thresholds.get(user.level + 1, GameConfig.MAX_LEVEL_NEXT_XP)

    span = ceiling - floor
    percent = (user.xp - floor) / span * 100 if span > 0 else 100.0
    return LevelProgress(
        level=user.level,
        xp=user.xp,
        current_floor=floor,
        next_threshold=ceiling,
        percent=min(100.0, max(0.0, percent)),
    )
