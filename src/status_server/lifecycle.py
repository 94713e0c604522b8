"""Status server lifecycle: STARTING -> SERVING -> STOPPED.

STOPPED is only reached through an external stop request; normal operation
stays in SERVING indefinitely.
"""

import enum
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ServerState(str, enum.Enum):
    """Status server lifecycle states."""

    STARTING = "starting"
    SERVING = "serving"
    STOPPED = "stopped"


# Valid transitions: from_state -> set of allowed to_states
_TRANSITIONS: dict[ServerState, set[ServerState]] = {
    ServerState.STARTING: {ServerState.SERVING, ServerState.STOPPED},
    ServerState.SERVING: {ServerState.STOPPED},
    ServerState.STOPPED: set(),
}


class ServerLifecycle:
    """Tracks the status server state; transitions may come from the serving thread or a stopper."""

    def __init__(
        self,
        on_transition: Optional[Callable[[ServerState, ServerState], None]] = None,
    ):
        self._lock = threading.Lock()
        self._current = ServerState.STARTING
        self._on_transition = on_transition

    @property
    def current(self) -> ServerState:
        with self._lock:
            return self._current

    def can_transition_to(self, to_state: ServerState) -> bool:
        with self._lock:
            return to_state in _TRANSITIONS.get(self._current, set())

    def transition(self, to_state: ServerState) -> bool:
        """
        Transition to new state if valid. Returns True on success, False otherwise.
        Calls on_transition(from, to) outside the lock.
        """
        with self._lock:
            allowed = _TRANSITIONS.get(self._current, set())
            if to_state not in allowed:
                logger.warning(
                    "Invalid transition: %s -> %s (allowed: %s)",
                    self._current.value,
                    to_state.value,
                    sorted(s.value for s in allowed),
                )
                return False
            from_state = self._current
            self._current = to_state
        logger.debug("State: %s -> %s", from_state.value, to_state.value)
        if self._on_transition:
            self._on_transition(from_state, to_state)
        return True

    def is_serving(self) -> bool:
        return self.current == ServerState.SERVING
