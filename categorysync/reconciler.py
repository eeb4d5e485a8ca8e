# categorysync/reconciler.py
"""
Snapshot merge and change detection.

Merging and diffing are pure functions over immutable snapshots; the
Reconciler only remembers the last snapshot it saw and emits at most one
toast per diff pass.
"""

import logging
from typing import Dict, Optional, Sequence

from .models import Category, ListSnapshot, PendingUpdate
from .notifications import ToastCenter, ToastType

logger = logging.getLogger(__name__)

CHANGED_MESSAGE = "Categories updated successfully"


def to_snapshot(categories: Sequence[Category]) -> ListSnapshot:
    return tuple(categories)


def apply_pending_update(snapshot: ListSnapshot, update: PendingUpdate) -> ListSnapshot:
    """
    Merge ``update`` into ``snapshot`` by category id.

    A missing or empty name keeps the existing one. A missing image URL keeps
    the existing one; an empty image URL clears it. An id that is not in the
    snapshot leaves it unchanged. Applying the same update twice gives the
    same result as applying it once.
    """
    merged = []
    found = False
    for category in snapshot:
        if category.id != update.category_id:
            merged.append(category)
            continue
        found = True
        changes = {}
        if update.new_name:
            changes["name"] = update.new_name
        if update.new_image_url is not None:
            changes["image_url"] = update.new_image_url
        merged.append(category.model_copy(update=changes) if changes else category)

    if not found:
        logger.info(f"Update for unknown category {update.category_id} ignored")
    return tuple(merged)


def snapshot_changed(previous: ListSnapshot, current: ListSnapshot) -> bool:
    """
    True if ``current`` shows something ``previous`` did not.

    A new id, or a different name or image URL, is a change. Removals alone
    are not. Strings are compared as-is.
    """
    before: Dict[int, Category] = {c.id: c for c in previous}
    for category in current:
        old = before.get(category.id)
        if old is None:
            return True
        if category.name != old.name or category.image_url != old.image_url:
            return True
    return False


class Reconciler:
    """Diffs each observed snapshot against the previous one."""

    def __init__(self, toasts: ToastCenter, message: str = CHANGED_MESSAGE):
        self._toasts = toasts
        self._message = message
        self.previous: Optional[ListSnapshot] = None

    def observe(self, snapshot: ListSnapshot) -> bool:
        """Record ``snapshot``; returns True (and toasts once) if it changed."""
        previous, self.previous = self.previous, snapshot
        if previous is None:
            return False
        if not snapshot_changed(previous, snapshot):
            return False
        logger.info("Category list changed")
        self._toasts.show(self._message, ToastType.SUCCESS)
        return True

    def reset(self) -> None:
        self.previous = None
