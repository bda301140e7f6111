"""
Single-flight execution guard.

At most one evaluation cycle runs at a time. A trigger that arrives while a
cycle is in flight is dropped, never queued: a stale evaluation stacked
behind a slow one would act on prices that no longer exist.
"""

import threading
from enum import Enum

from .utils import get_logger

logger = get_logger(__name__)


class GuardState(str, Enum):
    IDLE = "idle"
    EVALUATING = "evaluating"


class ExecutionGuard:
    """
    Two-state flag with compare-and-set transitions.

    ``try_acquire`` and ``release`` are the only code paths that change the
    state. The internal lock makes the transition atomic even if triggers
    are delivered from callback threads.
    """

    def __init__(self):
        self._state = GuardState.IDLE
        self._lock = threading.Lock()
        self.cycles_started = 0
        self.triggers_dropped = 0

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state is GuardState.EVALUATING

    def _compare_and_set(self, expected: GuardState, new: GuardState) -> bool:
        with self._lock:
            if self._state is not expected:
                return False
            self._state = new
            return True

    def try_acquire(self) -> bool:
        """IDLE -> EVALUATING. Returns False (and counts a drop) if busy."""
        if self._compare_and_set(GuardState.IDLE, GuardState.EVALUATING):
            self.cycles_started += 1
            return True
        with self._lock:
            self.triggers_dropped += 1
        return False

    def release(self) -> None:
        """EVALUATING -> IDLE."""
        if not self._compare_and_set(GuardState.EVALUATING, GuardState.IDLE):
            logger.warning("Guard released while already idle")

    def record_drop(self) -> None:
        with self._lock:
            self.triggers_dropped += 1
