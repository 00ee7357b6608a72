# ==============================================================================
# ARCHITECTURE: UNIT TEST (CORE LOGIC)
# ------------------------------------------------------------------------------
# GOAL: Verify pure business logic, state transitions, and algorithms.
# CONSTRAINTS:
#   1. EXECUTION: FAST (< 50ms per test).
#   2. I/O: FORBIDDEN. No Database, No Network, No File System.
#   3. MOCKS: Mandatory for Repositories and External Services.
# ==============================================================================
import pytest

from typemaster.trainer.domain.models import CharState, Score
from typemaster.trainer.domain.scoring import (
    clamp_elapsed,
    classify,
    count_correct,
    round_half_up,
    score,
    words_per_minute,
    xp_for,
)

REFERENCE = "The quick brown fox jumps over the lazy dog."


def test_cat_versus_car_in_six_seconds():
    assert score("cat", "car", 6) == Score(wpm=6, accuracy=67, mistakes=1)


@pytest.mark.parametrize("length", [1, 5, 17, len(REFERENCE)])
def test_any_prefix_is_perfectly_accurate(length):
    result = score(REFERENCE[:length], REFERENCE, 10)

    assert result.accuracy == 100
    assert result.mistakes == 0


def test_empty_input_reports_full_accuracy_and_zero_speed():
    assert score("", REFERENCE, 3) == Score(wpm=0, accuracy=100, mistakes=0)


def test_wpm_grows_with_typed_length():
    speeds = [score(REFERENCE[:n], REFERENCE, 12).wpm for n in range(len(REFERENCE) + 1)]

    assert speeds == sorted(speeds)


def test_wpm_shrinks_as_time_passes():
    speeds = [score(REFERENCE, REFERENCE, t).wpm for t in (1, 2, 5, 10, 30, 60)]

    assert speeds == sorted(speeds, reverse=True)


def test_zero_or_negative_elapsed_is_floored():
    """Division by zero must never happen, even with clock drift."""
    assert words_per_minute(5, 0) == words_per_minute(5, 0.001)
    assert words_per_minute(5, -3) == words_per_minute(5, 0.001)


def test_live_clamp_lifts_instant_keystrokes_to_half_a_second():
    assert clamp_elapsed(0.0) == 0.5
    assert clamp_elapsed(0.2) == 0.5
    assert clamp_elapsed(4.0) == 4.0


def test_overflow_beyond_reference_counts_as_mistakes():
    result = score("abcdef", "abc", 60)

    assert count_correct("abcdef", "abc") == 3
    assert result.mistakes == 3
    assert result.accuracy == 50


def test_rounding_goes_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(2.49) == 2


def test_xp_is_speed_times_accuracy_over_ten():
    assert xp_for(60, 95) == 570
    assert xp_for(0, 100) == 0
    assert xp_for(15, 99) == 149  # 148.5 rounds up


class TestClassify:
    def test_marks_correct_incorrect_cursor_and_untyped(self):
        states = classify("cx", "cats")

        assert states == [
            CharState.CORRECT,
            CharState.INCORRECT,
            CharState.CURSOR,
            CharState.UNTYPED,
        ]

    def test_no_cursor_once_passage_is_complete(self):
        states = classify("cat", "cat")

        assert CharState.CURSOR not in states
        assert len(states) == 3

    def test_nothing_typed_puts_cursor_on_first_char(self):
        assert classify("", "ab") == [CharState.CURSOR, CharState.UNTYPED]
