"""
Trade state machine.

States: WAIT -> ARMED -> ENTER -> WAIT

A signal arms the machine; a second signal in the next cycle enters the
position. ENTER always falls back to WAIT on the following cycle. The
machine therefore needs two consecutive non-HOLD signals before acting.

State is kept per session (usually one session per ticker) in a
SessionStateStore. Each session has its own asyncio.Lock so that
read -> transition -> write never interleaves for the same session, while
different sessions proceed independently.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union
import logging

from tradeflow.decision.models import Signal

logger = logging.getLogger(__name__)


class TradeState(str, Enum):
    """Trading session state."""
    WAIT = "WAIT"
    ARMED = "ARMED"
    ENTER = "ENTER"


class TradeAction(str, Enum):
    """Action label produced by a transition."""
    ARM_FOR_BUY = "ARM_FOR_BUY"
    ARM_FOR_SELL = "ARM_FOR_SELL"
    WAIT = "WAIT"
    BUY = "BUY"
    SELL = "SELL"
    DISARM = "DISARM"
    POSITION_ENTERED = "POSITION_ENTERED"
    RESET_TO_WAIT = "RESET_TO_WAIT"


@dataclass(frozen=True)
class StateTransition:
    """
    One applied transition.

    reset_from holds the unrecognized state value when the machine had to
    reset to WAIT; previous_state is then WAIT.
    """
    previous_state: TradeState
    next_state: TradeState
    action: TradeAction
    reset_from: Optional[str] = None

    @property
    def recorded_state(self) -> str:
        """State label for the decision record."""
        return self.reset_from if self.reset_from is not None else self.previous_state.value

    @property
    def changed(self) -> bool:
        return self.previous_state != self.next_state


# (state, signal) -> (next state, action)
TRANSITIONS: Dict[TradeState, Dict[Signal, tuple]] = {
    TradeState.WAIT: {
        Signal.BUY: (TradeState.ARMED, TradeAction.ARM_FOR_BUY),
        Signal.SELL: (TradeState.ARMED, TradeAction.ARM_FOR_SELL),
        Signal.HOLD: (TradeState.WAIT, TradeAction.WAIT),
    },
    TradeState.ARMED: {
        Signal.BUY: (TradeState.ENTER, TradeAction.BUY),
        Signal.SELL: (TradeState.ENTER, TradeAction.SELL),
        Signal.HOLD: (TradeState.WAIT, TradeAction.DISARM),
    },
    TradeState.ENTER: {
        Signal.BUY: (TradeState.WAIT, TradeAction.POSITION_ENTERED),
        Signal.SELL: (TradeState.WAIT, TradeAction.POSITION_ENTERED),
        Signal.HOLD: (TradeState.WAIT, TradeAction.POSITION_ENTERED),
    },
}


def _coerce_state(value) -> Optional[TradeState]:
    if isinstance(value, TradeState):
        return value
    try:
        return TradeState(value)
    except ValueError:
        return None


def _coerce_signal(value) -> Signal:
    if isinstance(value, Signal):
        return value
    try:
        return Signal(value)
    except ValueError:
        return Signal.HOLD


def determine_next_state(
    current_state: Union[TradeState, str],
    signal: Union[Signal, str]
) -> StateTransition:
    """
    Compute the next state and action label.

    Unrecognized states reset to WAIT with RESET_TO_WAIT; unrecognized
    signals count as HOLD. Never raises.

    Args:
        current_state: State before this cycle
        signal: Overall signal from the aggregator

    Returns:
        StateTransition with previous state, next state and action
    """
    state = _coerce_state(current_state)
    if state is None:
        logger.warning(f"Unrecognized trade state {current_state!r}, resetting to WAIT")
        return StateTransition(
            previous_state=TradeState.WAIT,
            next_state=TradeState.WAIT,
            action=TradeAction.RESET_TO_WAIT,
            reset_from=str(current_state),
        )

    next_state, action = TRANSITIONS[state][_coerce_signal(signal)]
    return StateTransition(previous_state=state, next_state=next_state, action=action)


class SessionStateStore:
    """
    In-memory TradeState per session id.

    Sessions start in WAIT. The store hands out one asyncio.Lock per
    session; callers that read and write the same session must hold it.
    """

    def __init__(self, initial_state: TradeState = TradeState.WAIT):
        self.initial_state = initial_state
        self._states: Dict[str, TradeState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, session_id: str) -> TradeState:
        return self._states.get(session_id, self.initial_state)

    def set(self, session_id: str, state: TradeState) -> None:
        self._states[session_id] = state

    def reset(self, session_id: str) -> None:
        """Start a new session in the initial state."""
        self._states[session_id] = self.initial_state

    def discard(self, session_id: str) -> None:
        """Forget a session. A lock that is currently held is kept."""
        self._states.pop(session_id, None)
        lock = self._locks.get(session_id)
        if lock is not None and not lock.locked():
            del self._locks[session_id]

    def lock(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def sessions(self) -> List[str]:
        return list(self._states.keys())

    def snapshot(self) -> Dict[str, str]:
        return {session_id: state.value for session_id, state in self._states.items()}


class TradeStateMachine:
    """
    Owns the session store and applies transitions.

    advance() is the only way session state changes after a session starts.
    """

    def __init__(self, store: Optional[SessionStateStore] = None, name: str = "TradeStateMachine"):
        self.store = store or SessionStateStore()
        self.name = name
        self.logger = logging.getLogger(f"{__name__}.{name}")

    def current_state(self, session_id: str) -> TradeState:
        return self.store.get(session_id)

    def start_session(self, session_id: str) -> None:
        self.store.reset(session_id)
        self.logger.info(f"Session {session_id} started in {self.store.initial_state.value}")

    def end_session(self, session_id: str) -> None:
        self.store.discard(session_id)
        self.logger.info(f"Session {session_id} ended")

    async def advance(self, session_id: str, signal: Union[Signal, str]) -> StateTransition:
        """
        Apply a signal to a session atomically.

        Args:
            session_id: Session (ticker) identity
            signal: Overall signal for this cycle

        Returns:
            StateTransition that was applied
        """
        async with self.store.lock(session_id):
            transition = determine_next_state(self.store.get(session_id), signal)
            self.store.set(session_id, transition.next_state)

        self.logger.info(
            f"{session_id}: {transition.recorded_state} -> "
            f"{transition.next_state.value} ({transition.action.value})"
        )
        return transition
