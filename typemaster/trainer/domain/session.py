import time
from collections.abc import Callable

from typemaster.config import GameConfig
from typemaster.fsm import SessionAction, SessionState, SessionStateMachine
from typemaster.shared.telemetry import Telemetry
from typemaster.trainer.domain import scoring
from typemaster.trainer.domain.models import (
    CharState,
    Score,
    SessionMode,
    TestResult,
)
from typemaster.trainer.domain.ports import ITimer, ITimerFactory

Clock = Callable[[], float]
FinishedCallback = Callable[[TestResult], None]


class TypingSession:
    """
    One test attempt: a passage, the text typed so far and the clock.

    Lifecycle is IDLE -> RUNNING -> FINISHED. The first non-empty input starts
    the clock; a quote test finishes the moment the input is as long as the
    passage, a timed test on the first tick at or past the deadline. Elapsed
    time is always re-read from the clock, never accumulated per tick.

    Anything arriving after FINISHED (or after cancel) is ignored, so the
    result is produced exactly once.
    """

    def __init__(
        self,
        passage: str,
        mode: SessionMode,
        timer_factory: ITimerFactory | None = None,
        on_finished: FinishedCallback | None = None,
        clock: Clock = time.monotonic,
        user_id: str = GameConfig.GUEST_USER_ID,
    ) -> None:
        self.passage = passage
        self.mode = mode
        self.user_id = user_id
        self._timer_factory = timer_factory
        self._on_finished = on_finished
        self._clock = clock
        self._fsm = SessionStateMachine(initial_state=SessionState.IDLE)
        self.telemetry = Telemetry("TypingSession")

        self._typed = ""
        self._started_at: float | None = None
        self._elapsed = 0.0
        self._timer: ITimer | None = None
        self._live = Score(wpm=0, accuracy=100, mistakes=0)
        self._result: TestResult | None = None
        self._discarded = False

    # --- Observable State ---
    @property
    def state(self) -> SessionState:
        return self._fsm.current_state

    @property
    def typed(self) -> str:
        return self._typed

    @property
    def live(self) -> Score:
        return self._live

    @property
    def result(self) -> TestResult | None:
        return self._result

    @property
    def elapsed(self) -> float:
        return self._elapsed

    @property
    def remaining(self) -> float | None:
        if not self.mode.is_timed or self.mode.duration_seconds is None:
            return None
        return max(self.mode.duration_seconds - self._elapsed, 0.0)

    @property
    def display_seconds(self) -> float:
        """Countdown for timed tests, stopwatch for quotes."""
        remaining = self.remaining
        return self._elapsed if remaining is None else remaining

    @property
    def is_discarded(self) -> bool:
        return self._discarded

    def char_states(self) -> list[CharState]:
        return scoring.classify(self._typed, self.passage)

    # --- Events ---
    def handle_input(self, text: str) -> None:
        """Input-change event carrying the full current input value."""
        if self._discarded or not self._fsm.is_in(SessionState.IDLE, SessionState.RUNNING):
            return

        if self._fsm.current_state is SessionState.IDLE:
            if not text:
                return
            self._start_clock()
        elif self.mode.is_timed and self._deadline_passed():
            # Late keystroke raced the tick: the test is already over.
            self.tick()
            return

        if not self.mode.is_timed:
            text = text[: len(self.passage)]

        self._typed = text
        self._elapsed = self._read_clock()
        self._live = scoring.score(
            self._typed, self.passage, scoring.clamp_elapsed(self._elapsed)
        )

        if not self.mode.is_timed and len(self._typed) == len(self.passage):
            self._finish(scoring.clamp_elapsed(self._elapsed))

    def tick(self) -> None:
        if self._discarded or self._fsm.current_state is not SessionState.RUNNING:
            return

        self._elapsed = self._read_clock()

        if self.mode.is_timed and self._deadline_passed():
            # Advertised duration is the time base, not the measured one.
            self._elapsed = float(self.mode.duration_seconds or 0)
            self._finish(self._elapsed)

    def cancel(self) -> None:
        """Stops the clock and discards the attempt without a result."""
        if self._discarded:
            return
        self._stop_clock()
        self._discarded = True
        if self._fsm.current_state is SessionState.RUNNING:
            self.telemetry.log_info("Session discarded", typed=len(self._typed))

    def reset(self, passage: str, mode: SessionMode | None = None) -> None:
        """Back to IDLE with a freshly built passage (and optionally a new mode)."""
        self._stop_clock()
        self.passage = passage
        if mode is not None:
            self.mode = mode
        self._typed = ""
        self._started_at = None
        self._elapsed = 0.0
        self._timer = None
        self._live = Score(wpm=0, accuracy=100, mistakes=0)
        self._result = None
        self._discarded = False
        self._fsm.transition(SessionAction.RESET)

    # --- Internals ---
    def _read_clock(self) -> float:
        if self._started_at is None:
            return 0.0
        return max(self._clock() - self._started_at, 0.0)

    def _deadline_passed(self) -> bool:
        duration = self.mode.duration_seconds or 0
        return duration - self._read_clock() <= 0

    def _start_clock(self) -> None:
        self._started_at = self._clock()
        self._fsm.transition(SessionAction.START)
        if self._timer_factory is not None:
            self._timer = self._timer_factory.start(
                GameConfig.TICK_INTERVAL_SECONDS, self.tick
            )

    def _stop_clock(self) -> None:
        if self._timer is not None:
            self._timer.cancel()

    def _finish(self, time_base: float) -> None:
        if not self._fsm.transition(SessionAction.FINISH):
            return
        self._stop_clock()

        final = scoring.score(self._typed, self.passage, time_base)
        self._live = final
        self._result = TestResult(
            user_id=self.user_id,
            wpm=final.wpm,
            accuracy=final.accuracy,
            mistakes=final.mistakes,
            mode=self.mode.mode,
            duration_seconds=self.mode.duration_seconds,
            xp_earned=scoring.xp_for(final.wpm, final.accuracy),
        )
        self.telemetry.log_info(
            "Session finished",
            mode=self.mode.mode.value,
            wpm=final.wpm,
            accuracy=final.accuracy,
            mistakes=final.mistakes,
        )

        if self._on_finished is not None:
            self._on_finished(self._result)
