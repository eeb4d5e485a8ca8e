# categorysync/notifications.py
"""
Transient user notifications (toasts).

A ToastCenter holds the currently visible toast, keeps a history, and fans
every toast out to registered listeners (the UI layer, or a CLI printer).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class ToastType(Enum):
    """Visual flavour of a toast."""
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass
class Toast:
    """A short-lived message shown to the user."""
    message: str
    toast_type: ToastType = ToastType.INFO
    duration: float = 3.0  # seconds
    created_at: datetime = field(default_factory=datetime.now)


ToastListener = Callable[[Toast], None]


class ToastCenter:
    """Collects toasts and notifies listeners."""

    def __init__(self):
        self.current: Optional[Toast] = None
        self.history: List[Toast] = []
        self._listeners: List[ToastListener] = []

    def add_listener(self, listener: ToastListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def show(self, message: str, toast_type: ToastType = ToastType.INFO) -> Toast:
        toast = Toast(message=message, toast_type=toast_type)
        self.current = toast
        self.history.append(toast)
        logger.debug(f"Toast [{toast_type.value}]: {message}")
        for listener in list(self._listeners):
            listener(toast)
        return toast
