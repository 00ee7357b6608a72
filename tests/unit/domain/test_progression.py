import pytest

from typemaster.config import GameConfig, Milestone
from typemaster.trainer.domain.models import TestMode, TestResult, UserRecord
from typemaster.trainer.domain.progression import (
    apply_result,
    is_unlocked,
    level_for_xp,
    level_progress,
    milestone_statuses,
    unlocked_milestones,
)

SMALL_TABLE = [(1, 0), (2, 100), (3, 250)]


def make_result(wpm=50, accuracy=100, xp=None):
    return TestResult(
        user_id="u-1",
        wpm=wpm,
        accuracy=accuracy,
        mistakes=0,
        mode=TestMode.QUOTE,
        xp_earned=xp if xp is not None else wpm * accuracy // 10,
    )


class TestLevelForXp:
    @pytest.mark.parametrize(
        "xp, expected",
        [(0, 1), (99, 1), (100, 2), (249, 2), (250, 3), (10_000, 3)],
    )
    def test_small_table_steps(self, xp, expected):
        assert level_for_xp(xp, SMALL_TABLE) == expected

    def test_default_table_tops_out_at_level_ten(self):
        assert level_for_xp(32_000) == 10
        assert level_for_xp(1_000_000) == 10

    def test_is_monotonic_over_the_default_table(self):
        levels = [level_for_xp(xp) for xp in range(0, 40_000, 37)]

        assert levels == sorted(levels)


class TestApplyResult:
    def test_crossing_a_threshold_levels_up(self):
        user = UserRecord(username="Alice", xp=90, level=1)

        updated = apply_result(user, make_result(xp=15), SMALL_TABLE)

        assert updated.xp == 105
        assert updated.level == 2

    def test_counts_the_test_and_tracks_best_speed(self):
        user = UserRecord(username="Alice", total_tests=4, best_wpm=70)

        slower = apply_result(user, make_result(wpm=60))
        faster = apply_result(user, make_result(wpm=85))

        assert slower.total_tests == 5
        assert slower.best_wpm == 70
        assert faster.best_wpm == 85

    def test_returns_a_new_record(self):
        user = UserRecord(username="Alice")

        updated = apply_result(user, make_result())

        assert updated is not user
        assert user.xp == 0
        assert user.total_tests == 0

    def test_is_deterministic_for_independent_copies(self):
        user = UserRecord(username="Alice", xp=240, total_tests=3, best_wpm=40)
        result = make_result(wpm=45, accuracy=90)

        first = apply_result(user.model_copy(), result)
        second = apply_result(user.model_copy(), result)

        assert first == second

    def test_level_is_rederived_even_if_stored_level_is_wrong(self):
        user = UserRecord(username="Alice", xp=500, level=1)

        updated = apply_result(user, make_result(xp=0))

        assert updated.level == level_for_xp(500)


class TestMilestones:
    def test_test_count_milestone(self):
        user = UserRecord(username="Alice", total_tests=5)

        assert is_unlocked(Milestone.BRONZE, user)
        assert not is_unlocked(Milestone.SILVER, user)

    def test_speed_milestone_uses_best_wpm(self):
        user = UserRecord(username="Alice", best_wpm=60)

        unlocked = unlocked_milestones(user)

        assert Milestone.SPEED_40 in unlocked
        assert Milestone.SPEED_60 in unlocked
        assert Milestone.SPEED_80 not in unlocked

    def test_new_user_has_nothing_unlocked(self):
        assert unlocked_milestones(UserRecord(username="Alice")) == []

    def test_statuses_cover_the_whole_catalogue(self):
        statuses = milestone_statuses(UserRecord(username="Alice", total_tests=30))

        assert [s.id for s in statuses] == Milestone.all_keys()
        assert {s.id for s in statuses if s.unlocked} == {"bronze", "silver"}


class TestLevelProgress:
    def test_midway_between_thresholds(self):
        user = UserRecord(username="Alice", xp=175, level=2)

        progress = level_progress(user)

        assert progress.current_floor == 100
        assert progress.next_threshold == 250
        assert progress.percent == pytest.approx(50.0)

    def test_top_level_aims_at_fixed_ceiling(self):
        user = UserRecord(username="Alice", xp=40_000, level=10)

        progress = level_progress(user)

        assert progress.next_threshold == GameConfig.MAX_LEVEL_NEXT_XP
        assert 0 <= progress.percent <= 100
