# categorysync/lifecycle.py
"""
Process lifecycle signal (active / background / inactive).
"""

import logging
from enum import Enum
from typing import Callable, List

logger = logging.getLogger(__name__)


class AppState(str, Enum):
    ACTIVE = "active"
    BACKGROUND = "background"
    INACTIVE = "inactive"


AppStateListener = Callable[[AppState], None]


class Subscription:
    """Handle returned by AppStateSignal.add_listener()."""

    def __init__(self, signal: "AppStateSignal", listener: AppStateListener):
        self._signal = signal
        self._listener = listener
        self.active = True

    def remove(self) -> None:
        if self.active:
            self._signal._remove(self._listener)
            self.active = False


class AppStateSignal:
    """Observable holding the current lifecycle state."""

    def __init__(self, initial: AppState = AppState.ACTIVE):
        self.current = initial
        self._listeners: List[AppStateListener] = []

    def add_listener(self, listener: AppStateListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: AppStateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def set_state(self, state: AppState) -> None:
        """Move to ``state`` and notify listeners of the new state."""
        if state == self.current:
            return
        logger.debug(f"App state {self.current.value} -> {state.value}")
        self.current = state
        for listener in list(self._listeners):
            listener(state)
