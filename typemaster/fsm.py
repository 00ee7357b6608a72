from enum import Enum, auto
import logging

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = auto()  # Passage ready, waiting for the first keystroke
    RUNNING = auto()  # Clock ticking
    FINISHED = auto()  # Result produced, terminal until reset


class SessionAction(Enum):
    START = auto()
    FINISH = auto()
    RESET = auto()


class SessionStateMachine:
    """
    Pure FSM Logic.
    Only cares about lifecycle transitions, not the clock or scoring.
    """

    def __init__(self, initial_state=SessionState.IDLE):
        self._state = initial_state

    @property
    def current_state(self) -> SessionState:
        return self._state

    def is_in(self, *states: SessionState) -> bool:
        return self._state in states

    def transition(self, action: SessionAction) -> bool:
        """
        The Transition Table.
        Returns False (and leaves the state untouched) for invalid moves.
        """
        previous = self._state

        match (self._state, action):
            # IDLE -> RUNNING (first keystroke)
            case (SessionState.IDLE, SessionAction.START):
                self._state = SessionState.RUNNING

            # RUNNING -> FINISHED (quote complete or countdown elapsed)
            case (SessionState.RUNNING, SessionAction.FINISH):
                self._state = SessionState.FINISHED

            # Restart with a fresh passage
            case (_, SessionAction.RESET):
                self._state = SessionState.IDLE

            case _:
                logger.error(f"⛔ INVALID TRANSITION: {self._state.name} + {action.name}")
                return False

        logger.info(f"🔄 FSM: {previous.name} --[{action.name}]--> {self._state.name}")
        return True
