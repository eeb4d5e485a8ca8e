# categorysync/views.py
"""
View models for the category list and edit screens.

Rendering is left to the UI layer; these classes hold the state a screen
presents (snapshot, loading flags, error text) and run the sync logic behind
it. The list view owns its snapshot exclusively. The edit view never touches
it and talks back only through the UpdateRelay.
"""

import logging
from typing import Optional, Set, Tuple

from pydantic import ValidationError

from .client import CategoryClient
from .exceptions import CategorySyncError, ExhaustedStrategies, StaleViewDiscard
from .lifecycle import AppStateSignal
from .models import Category, ListSnapshot, PendingUpdate
from .notifications import ToastCenter, ToastType
from .reconciler import Reconciler, apply_pending_update, to_snapshot
from .relay import RelayState, UpdateRelay, now_ms
from .scheduler import RefreshTrigger, SyncScheduler

logger = logging.getLogger(__name__)

LOAD_ERROR = "Failed to load categories. Please try again later."
LOAD_ERROR_TOAST = "Error loading categories"
UPDATED_TOAST = "Category updated successfully"
UPDATE_ERROR = "Failed to update category. Please try again."
NOT_FOUND_TOAST = "Error: category not found"


def edited_category(category: Category, name: str, image_url: str) -> Category:
    """Validated copy of ``category`` with new field values."""
    return Category.model_validate({"id": category.id, "name": name, "imageUrl": image_url})


class CategoryListView:
    """State and sync behaviour of the category list screen."""

    def __init__(
        self,
        client: CategoryClient,
        relay: UpdateRelay,
        app_state: AppStateSignal,
        toasts: Optional[ToastCenter] = None,
        refresh_interval: float = 5.0,
    ):
        self._client = client
        self.relay = relay
        self.toasts = toasts or ToastCenter()
        self.reconciler = Reconciler(self.toasts)
        self.scheduler = SyncScheduler(self.refresh, app_state, interval=refresh_interval)

        self._snapshot: ListSnapshot = ()
        self._applied: Set[Tuple[int, int]] = set()
        # Bumped on every mount and unmount; a result is applied only if the
        # generation it was requested under is still current.
        self._generation = 0
        self.active = False
        self.loaded = False
        self.loading = False
        self.refreshing = False
        self.error: Optional[str] = None

    @property
    def snapshot(self) -> ListSnapshot:
        return self._snapshot

    async def mount(self) -> None:
        """Activate the view; the scheduler fires the initial load."""
        if self.active:
            return
        logger.info("Categories view mounted, loading categories")
        self._generation += 1
        self.active = True
        self.loaded = False
        self.loading = True
        self.refreshing = False
        self.error = None
        self.reconciler.reset()
        self.scheduler.start()

    async def unmount(self) -> None:
        """Tear down: no callback mutates this view afterwards."""
        self._generation += 1
        self.active = False
        self.scheduler.stop()
        logger.info("Categories view unmounted")

    async def refresh(self, trigger: RefreshTrigger = RefreshTrigger.MANUAL) -> None:
        """Re-fetch the list and replace the snapshot wholesale."""
        if not self.active:
            return
        generation = self._generation
        if trigger == RefreshTrigger.MANUAL:
            self.refreshing = True

        failure: Optional[CategorySyncError] = None
        try:
            categories = await self._client.fetch_categories()
        except CategorySyncError as e:
            failure = e

        try:
            self._ensure_current(generation, f"{trigger.value} refresh")
        except StaleViewDiscard as e:
            logger.debug(str(e))
            return

        if failure is not None:
            self._refresh_failed(trigger, failure)
            return
        self.refreshing = False
        self.loading = False
        logger.debug(f"Fetched {len(categories)} categories ({trigger.value})")
        self._replace(to_snapshot(categories))

    async def retry(self) -> None:
        self.error = None
        await self.refresh(RefreshTrigger.MANUAL)

    def on_render(self) -> bool:
        """
        Apply a pending update from the relay, once.

        Returns True if an update was merged. Waits until the first snapshot
        has loaded so the update is not merged into an empty list.
        """
        if not self.active or not self.loaded:
            return False
        if self.relay.state != RelayState.UNCONSUMED:
            return False

        update = self.relay.take()
        applied = False
        if update is not None and update.key not in self._applied:
            logger.info(f"Applying update for category {update.category_id}")
            self._applied.add(update.key)
            self._snapshot = apply_pending_update(self._snapshot, update)
            self.reconciler.observe(self._snapshot)
            applied = True
        self.relay.acknowledge()
        return applied

    async def rename_category(self, category_id: int, new_name: str) -> bool:
        """Rename a category directly from the list."""
        category = next((c for c in self._snapshot if c.id == category_id), None)
        if category is None:
            logger.error(f"Category with id {category_id} not found")
            self.toasts.show(NOT_FOUND_TOAST, ToastType.ERROR)
            return False

        try:
            edited = edited_category(category, new_name, category.image_url)
        except ValidationError as e:
            logger.warning(f"Rejected rename of category {category_id}: {e}")
            self.toasts.show(UPDATE_ERROR, ToastType.ERROR)
            return False

        generation = self._generation
        failure: Optional[ExhaustedStrategies] = None
        try:
            await self._client.update_category(edited)
        except ExhaustedStrategies as e:
            logger.error(f"Failed to update category directly: {e}")
            failure = e

        try:
            self._ensure_current(generation, f"rename of category {category_id}")
        except StaleViewDiscard as e:
            logger.debug(str(e))
            return False

        if failure is not None:
            self.toasts.show(UPDATE_ERROR, ToastType.ERROR)
            return False
        self.toasts.show(UPDATED_TOAST, ToastType.SUCCESS)
        await self.refresh(RefreshTrigger.MANUAL)
        return True

    def edit(self, category_id: int) -> "EditCategoryView":
        return EditCategoryView(self._client, self.relay, category_id)

    def _replace(self, snapshot: ListSnapshot) -> None:
        self._snapshot = snapshot
        self.loaded = True
        self.error = None
        self.reconciler.observe(snapshot)
        self.on_render()

    def _refresh_failed(self, trigger: RefreshTrigger, error: CategorySyncError) -> None:
        self.refreshing = False
        self.loading = False
        if trigger.is_silent:
            logger.warning(f"Background refresh ({trigger.value}) failed: {error}")
            return
        logger.error(f"Failed to fetch categories: {error}")
        self.error = LOAD_ERROR
        self.toasts.show(LOAD_ERROR_TOAST, ToastType.ERROR)

    def _ensure_current(self, generation: int, what: str) -> None:
        """Raise StaleViewDiscard if the view was torn down or remounted since ``generation``."""
        if generation != self._generation:
            raise StaleViewDiscard(f"Result of {what} arrived after teardown, discarded")


class EditCategoryView:
    """State of the edit screen for one category."""

    def __init__(self, client: CategoryClient, relay: UpdateRelay, category_id: int):
        self._client = client
        self._relay = relay
        self.category_id = category_id
        self.category: Optional[Category] = None
        self.name = ""
        self.image_url = ""
        self.loading = True
        self.updating = False
        self.error: Optional[str] = None

    async def load(self) -> None:
        try:
            category = await self._client.fetch_category(self.category_id)
        except CategorySyncError as e:
            logger.error(f"Failed to fetch category {self.category_id}: {e}")
            self.error = "Failed to load category. Please try again later."
        else:
            self.category = category
            self.name = category.name
            self.image_url = category.image_url
        finally:
            self.loading = False

    @property
    def has_changes(self) -> bool:
        if self.category is None:
            return False
        return self.name != self.category.name or self.image_url != self.category.image_url

    async def submit(self) -> Optional[PendingUpdate]:
        """
        Persist the edit and hand it back to the list view.

        Returns the PendingUpdate attached to the relay, or None when the
        input is invalid or every update strategy failed.
        """
        if self.category is None:
            return None
        if not self.name.strip():
            self.error = "Category name cannot be empty"
            return None

        if not self.has_changes:
            logger.info("No changes detected, returning to previous screen")
            update = PendingUpdate(category_id=self.category.id, issued_at=now_ms())
            self._relay.attach(update)
            return update

        try:
            edited = edited_category(self.category, self.name, self.image_url)
        except ValidationError as e:
            self.error = f"Invalid category: {e.errors()[0]['msg']}"
            return None

        self.updating = True
        self.error = None
        try:
            stored = await self._client.update_category(edited)
        except ExhaustedStrategies as e:
            logger.error(f"Failed to update category: {e}")
            self.error = UPDATE_ERROR
            return None
        finally:
            self.updating = False

        update = PendingUpdate(
            category_id=stored.id,
            new_name=stored.name,
            new_image_url=stored.image_url,
            issued_at=now_ms(),
        )
        self.category = stored
        self._relay.attach(update)
        return update

    def cancel(self) -> None:
        """Go back without a payload."""
        self._relay.navigate({})
