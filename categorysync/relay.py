# categorysync/relay.py
"""
Cross-view update relay.

The edit view hands its result back to the list view as string-keyed
navigation parameters, never as a shared object. The list view takes the
payload once and then acknowledges it, which clears the parameters so a
re-render without a new transition cannot apply it again.

    EMPTY --navigate()--> UNCONSUMED --take()--> CONSUMED --acknowledge()--> EMPTY
"""

import logging
import time
from enum import Enum
from typing import Dict, Mapping, Optional

from .models import PendingUpdate

logger = logging.getLogger(__name__)

PARAM_UPDATED = "updated"
PARAM_CATEGORY_ID = "updatedCategoryId"
PARAM_NAME = "updatedCategoryName"
PARAM_IMAGE_URL = "updatedCategoryImageUrl"
PARAM_TIMESTAMP = "timestamp"


def now_ms() -> int:
    return int(time.time() * 1000)


def encode_update(update: PendingUpdate) -> Dict[str, str]:
    """Navigation parameters for a PendingUpdate."""
    params = {
        PARAM_UPDATED: "true",
        PARAM_CATEGORY_ID: str(update.category_id),
        PARAM_TIMESTAMP: str(update.issued_at),
    }
    if update.new_name is not None:
        params[PARAM_NAME] = update.new_name
    if update.new_image_url is not None:
        params[PARAM_IMAGE_URL] = update.new_image_url
    return params


def decode_update(params: Mapping[str, str]) -> Optional[PendingUpdate]:
    """PendingUpdate carried by navigation parameters, if any."""
    if params.get(PARAM_UPDATED) != "true" or not params.get(PARAM_CATEGORY_ID):
        return None
    try:
        return PendingUpdate(
            category_id=int(params[PARAM_CATEGORY_ID]),
            new_name=params.get(PARAM_NAME),
            new_image_url=params.get(PARAM_IMAGE_URL),
            issued_at=int(params.get(PARAM_TIMESTAMP) or 0),
        )
    except ValueError as e:
        logger.warning(f"Dropping malformed update params {dict(params)}: {e}")
        return None


class RelayState(str, Enum):
    EMPTY = "empty"
    UNCONSUMED = "unconsumed"
    CONSUMED = "consumed"


class UpdateRelay:
    """Parameters of the most recent transition into the list view."""

    def __init__(self):
        self._params: Dict[str, str] = {}
        self._state = RelayState.EMPTY

    @property
    def state(self) -> RelayState:
        return self._state

    @property
    def params(self) -> Dict[str, str]:
        return dict(self._params)

    def navigate(self, params: Optional[Mapping[str, str]] = None) -> None:
        """Transition into the list view with the given parameters."""
        self._params = dict(params or {})
        self._state = RelayState.UNCONSUMED if self._params else RelayState.EMPTY

    def attach(self, update: PendingUpdate) -> None:
        """Return to the list view carrying ``update``."""
        logger.info(f"Returning to categories with update for {update.category_id}")
        self.navigate(encode_update(update))

    def take(self) -> Optional[PendingUpdate]:
        """The pending update, at most once per transition."""
        if self._state != RelayState.UNCONSUMED:
            return None
        self._state = RelayState.CONSUMED
        return decode_update(self._params)

    def acknowledge(self) -> None:
        """Follow-up transition that clears the parameters."""
        self._params = {}
        self._state = RelayState.EMPTY
