import asyncio
import time
from enum import Enum

from pydantic import BaseModel

from typemaster.config import GameConfig
from typemaster.fsm import SessionState
from typemaster.shared.telemetry import Telemetry
from typemaster.trainer.application.service import ProgressionService
from typemaster.trainer.domain.models import CharState, SessionMode, TestResult, UserRecord
from typemaster.trainer.domain.passage import PassageBuilder
from typemaster.trainer.domain.ports import ITextSource, ITimerFactory
from typemaster.trainer.domain.session import Clock, TypingSession


class SaveStatus(str, Enum):
    NONE = "none"  # nothing finished yet
    SKIPPED = "skipped"  # guest session, result shown but not stored
    SAVING = "saving"
    SAVED = "saved"
    FAILED = "failed"


class TypingView(BaseModel):
    """Everything the UI needs to paint one frame."""

    passage: str
    typed: str
    char_states: list[CharState]
    state: SessionState
    preparing: bool
    mode: SessionMode
    ai_mode: bool
    wpm: int
    accuracy: int
    mistakes: int
    seconds: float
    result: TestResult | None = None
    save_status: SaveStatus = SaveStatus.NONE


class TypingTestController:
    """
    UI-facing surface of the engine.

    Owns the passage source selection, the current mode and the active
    TypingSession. The logged-in user is handed in explicitly; there is no
    ambient "current user". Must be driven from a running event loop.
    """

    def __init__(
        self,
        service: ProgressionService,
        static_source: ITextSource,
        ai_source: ITextSource | None = None,
        builder: PassageBuilder | None = None,
        timer_factory: ITimerFactory | None = None,
        clock: Clock = time.monotonic,
        user: UserRecord | None = None,
    ) -> None:
        self.service = service
        self.static_source = static_source
        self.ai_source = ai_source
        self.builder = builder or PassageBuilder()
        self.timer_factory = timer_factory
        self.clock = clock
        self.user = user
        self.telemetry = Telemetry("TypingTestController")

        self.mode = SessionMode.quote()
        self.ai_mode = False
        self.preparing = False
        self.session: TypingSession | None = None
        self.last_result: TestResult | None = None
        self.save_task: asyncio.Task[UserRecord] | None = None
        self._pending_saves: list[asyncio.Task[UserRecord]] = []
        self.save_status = SaveStatus.NONE
        self._generation = 0

    # --- Properties ---
    @property
    def state(self) -> SessionState | None:
        return self.session.state if self.session else None

    @property
    def source(self) -> ITextSource:
        if self.ai_mode and self.ai_source is not None:
            return self.ai_source
        return self.static_source

    # --- Actions ---
    def set_user(self, user: UserRecord | None) -> None:
        self.user = user

    async def prepare(self) -> None:
        """
        Discards any attempt in flight and builds a fresh passage.
        Input is ignored until the passage is ready.
        """
        Telemetry.start_trace()
        self._generation += 1
        generation = self._generation

        if self.session is not None:
            self.session.cancel()
        self.preparing = True
        self.telemetry.log_info(
            "Preparing test", mode=self.mode.mode.value, ai=self.ai_mode
        )

        mode = self.mode
        passage = await self.builder.build(self.source, mode)

        if generation != self._generation:
            # A newer restart/mode change superseded this build.
            return

        if self.session is None:
            self.session = TypingSession(
                passage,
                mode,
                timer_factory=self.timer_factory,
                on_finished=self._on_finished,
                clock=self.clock,
                user_id=self._user_id(),
            )
        else:
            self.session.user_id = self._user_id()
            self.session.reset(passage, mode)

        self.last_result = None
        self.save_status = SaveStatus.NONE
        self.preparing = False

    async def restart(self) -> None:
        await self.prepare()

    async def change_mode(self, mode: SessionMode) -> None:
        self.mode = mode
        await self.prepare()

    async def toggle_ai(self, enabled: bool | None = None) -> None:
        self.ai_mode = (not self.ai_mode) if enabled is None else enabled
        await self.prepare()

    def handle_input(self, text: str) -> None:
        if self.preparing or self.session is None:
            return
        self.session.handle_input(text)

    def tick(self) -> None:
        if self.session is not None:
            self.session.tick()

    async def wait_saved(self) -> UserRecord | None:
        """
        Resolves once every pending save has landed. Re-raises the first
        failure; otherwise returns the user as updated by the latest save.
        """
        if not self._pending_saves:
            return None
        tasks, self._pending_saves = self._pending_saves, []
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return outcomes[-1]

    def view(self) -> TypingView:
        session = self.session
        if session is None:
            return TypingView(
                passage="",
                typed="",
                char_states=[],
                state=SessionState.IDLE,
                preparing=self.preparing,
                mode=self.mode,
                ai_mode=self.ai_mode,
                wpm=0,
                accuracy=100,
                mistakes=0,
                seconds=float(self.mode.duration_seconds or 0),
            )

        live = session.live
        return TypingView(
            passage=session.passage,
            typed=session.typed,
            char_states=session.char_states(),
            state=session.state,
            preparing=self.preparing,
            mode=session.mode,
            ai_mode=self.ai_mode,
            wpm=live.wpm,
            accuracy=live.accuracy,
            mistakes=live.mistakes,
            seconds=session.display_seconds,
            result=self.last_result,
            save_status=self.save_status,
        )

    # --- Internals ---
    def _user_id(self) -> str:
        return self.user.id if self.user else GameConfig.GUEST_USER_ID

    def _on_finished(self, result: TestResult) -> None:
        # Whoever is logged in at finish time owns the result.
        result = result.model_copy(update={"user_id": self._user_id()})
        self.last_result = result

        if self.user is None:
            self.save_status = SaveStatus.SKIPPED
            self.telemetry.log_info("Guest result not persisted", wpm=result.wpm)
            return

        self.save_status = SaveStatus.SAVING

        # Finished saves that succeeded need no further tracking.
        self._pending_saves = [
            t
            for t in self._pending_saves
            if not t.done() or (not t.cancelled() and t.exception() is not None)
        ]
        previous = self.save_task
        loop = asyncio.get_running_loop()
        self.save_task = loop.create_task(self._persist(self.user, result, previous))
        self._pending_saves.append(self.save_task)

    async def _persist(
        self,
        user: UserRecord,
        result: TestResult,
        previous: asyncio.Task[UserRecord] | None = None,
    ) -> UserRecord:
        if previous is not None and not previous.done():
            # Saves land in finish order; the earlier outcome is collected by wait_saved.
            await asyncio.wait([previous])

        try:
            updated = await self.service.save_result(user, result)
        except Exception as e:
            self.save_status = SaveStatus.FAILED
            self.telemetry.log_error("Result could not be saved", e, result_id=result.id)
            raise

        if asyncio.current_task() is self.save_task:
            self.save_status = SaveStatus.SAVED
        if self.user is not None and self.user.id == updated.id:
            self.user = updated
        return updated
