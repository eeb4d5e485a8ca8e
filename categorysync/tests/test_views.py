# categorysync/tests/test_views.py
"""
Tests for the list/edit view models and the sync scheduler.

Most tests drive a FakeClient whose fetches resolve on demand, so the order
in which responses arrive is fully controlled.
"""

import asyncio
import logging

import pytest
import httpx

from categorysync import CategoryClient
from categorysync.exceptions import ExhaustedStrategies, TransportFailure
from categorysync.lifecycle import AppState, AppStateSignal
from categorysync.models import Category, PendingUpdate
from categorysync.notifications import ToastCenter, ToastType
from categorysync.relay import RelayState, UpdateRelay, decode_update
from categorysync.scheduler import RefreshTrigger
from categorysync.views import CategoryListView, EditCategoryView, LOAD_ERROR, UPDATE_ERROR


def cat(id: int, name: str, image_url: str = "") -> Category:
    return Category(id=id, name=name, imageUrl=image_url)


@pytest.fixture
def app_state():
    return AppStateSignal()


@pytest.fixture
def relay():
    return UpdateRelay()


@pytest.fixture
def list_view(fake_client, relay, app_state):
    # Long interval: periodic refresh is exercised separately
    return CategoryListView(fake_client, relay, app_state, toasts=ToastCenter(), refresh_interval=60)


async def mounted(view, client, settle, initial):
    await view.mount()
    await settle()
    client.resolve(0, initial)
    await view.scheduler.wait_idle()
    return view


# -------------------------
# Refresh behaviour
# -------------------------

@pytest.mark.asyncio
class TestListRefresh:
    """Tests for CategoryListView refreshes."""

    async def test_mount_loads_without_notification(self, list_view, fake_client, settle_loop, books):
        await mounted(list_view, fake_client, settle_loop, books)

        assert list_view.snapshot == tuple(books)
        assert list_view.loaded and not list_view.loading
        assert list_view.toasts.history == []
        await list_view.unmount()

    async def test_last_arrival_wins(self, list_view, fake_client, settle_loop):
        await mounted(list_view, fake_client, settle_loop, [cat(1, "Start")])

        list_view.scheduler.trigger(RefreshTrigger.MANUAL)
        list_view.scheduler.trigger(RefreshTrigger.INTERVAL)
        await settle_loop()
        assert len(fake_client.pending) == 3

        # Issued last, resolves first
        fake_client.resolve(2, [cat(1, "B")])
        await settle_loop()
        fake_client.resolve(1, [cat(1, "A")])
        await list_view.scheduler.wait_idle()

        assert list_view.snapshot == (cat(1, "A"),)
        await list_view.unmount()

    async def test_teardown_discards_in_flight_refresh(self, list_view, fake_client, settle_loop):
        await mounted(list_view, fake_client, settle_loop, [cat(1, "Books")])

        task = list_view.scheduler.trigger(RefreshTrigger.INTERVAL)
        await settle_loop()
        await list_view.unmount()

        fake_client.resolve(1, [cat(1, "Ebooks")])
        await task

        assert list_view.snapshot == (cat(1, "Books"),)
        assert list_view.toasts.history == []

    async def test_teardown_discards_in_flight_failure(self, list_view, fake_client, settle_loop):
        await mounted(list_view, fake_client, settle_loop, [cat(1, "Books")])

        task = list_view.scheduler.trigger(RefreshTrigger.MANUAL)
        await settle_loop()
        await list_view.unmount()

        fake_client.resolve(1, TransportFailure("gone"))
        await task

        assert list_view.error is None
        assert list_view.toasts.history == []

    async def test_remount_discards_refresh_from_previous_mount(self, list_view, fake_client, settle_loop, caplog):
        caplog.set_level(logging.DEBUG, logger="categorysync.views")
        await mounted(list_view, fake_client, settle_loop, [cat(1, "Books")])

        list_view.scheduler.trigger(RefreshTrigger.INTERVAL)
        await settle_loop()
        await list_view.unmount()
        await list_view.mount()
        await settle_loop()
        assert len(fake_client.pending) == 3

        # Issued under the first mount, resolves under the second
        fake_client.resolve(1, [cat(1, "Stale")])
        await settle_loop()
        assert list_view.snapshot == (cat(1, "Books"),)
        assert "arrived after teardown" in caplog.text

        fake_client.resolve(2, [cat(1, "Books")])
        await list_view.scheduler.wait_idle()
        assert list_view.snapshot == (cat(1, "Books"),)
        assert list_view.loaded
        await list_view.unmount()

    async def test_remount_first_snapshot_is_silent(self, list_view, fake_client, settle_loop):
        await mounted(list_view, fake_client, settle_loop, [cat(1, "Books")])
        await list_view.unmount()

        await list_view.mount()
        await settle_loop()
        fake_client.resolve(1, [cat(1, "Ebooks")])
        await list_view.scheduler.wait_idle()

        assert list_view.snapshot == (cat(1, "Ebooks"),)
        assert list_view.toasts.history == []
        await list_view.unmount()

    async def test_silent_refresh_failure_is_only_logged(self, list_view, fake_client, settle_loop):
        await mounted(list_view, fake_client, settle_loop, [cat(1, "Books")])

        list_view.scheduler.trigger(RefreshTrigger.INTERVAL)
        await settle_loop()
        fake_client.resolve(1, TransportFailure("offline", timed_out=True))
        await list_view.scheduler.wait_idle()

        assert list_view.error is None
        assert list_view.toasts.history == []
        assert list_view.snapshot == (cat(1, "Books"),)
        await list_view.unmount()

    async def test_initial_load_failure_offers_retry(self, list_view, fake_client, settle_loop):
        await mounted(list_view, fake_client, settle_loop, TransportFailure("offline"))

        assert list_view.error == LOAD_ERROR
        assert list_view.toasts.current.toast_type == ToastType.ERROR

        fake_client.auto = [cat(1, "Books")]
        await list_view.retry()

        assert list_view.error is None
        assert list_view.snapshot == (cat(1, "Books"),)
        await list_view.unmount()

    async def test_changed_refresh_notifies(self, list_view, fake_client, settle_loop):
        await mounted(list_view, fake_client, settle_loop, [cat(1, "Books")])

        fake_client.auto = [cat(1, "Ebooks")]
        await list_view.refresh(RefreshTrigger.MANUAL)

        assert len(list_view.toasts.history) == 1
        assert not list_view.refreshing
        await list_view.unmount()


# -------------------------
# Scheduler triggers
# -------------------------

@pytest.mark.asyncio
class TestSchedulerTriggers:
    """Tests for foreground and interval triggers."""

    async def test_foreground_transition_refreshes(self, fake_client, relay, app_state):
        fake_client.auto = [cat(1, "Books")]
        view = CategoryListView(fake_client, relay, app_state, refresh_interval=60)
        await view.mount()
        await view.scheduler.wait_idle()
        assert fake_client.fetch_count == 1

        app_state.set_state(AppState.BACKGROUND)
        assert fake_client.fetch_count == 1
        app_state.set_state(AppState.ACTIVE)
        await view.scheduler.wait_idle()
        assert fake_client.fetch_count == 2

        app_state.set_state(AppState.INACTIVE)
        app_state.set_state(AppState.ACTIVE)
        await view.scheduler.wait_idle()
        assert fake_client.fetch_count == 3

        await view.unmount()
        assert app_state.listener_count == 0
        app_state.set_state(AppState.BACKGROUND)
        app_state.set_state(AppState.ACTIVE)
        await asyncio.sleep(0)
        assert fake_client.fetch_count == 3

    async def test_interval_refresh_until_unmount(self, fake_client, relay, app_state):
        fake_client.auto = [cat(1, "Books")]
        view = CategoryListView(fake_client, relay, app_state, refresh_interval=0.05)
        await view.mount()
        await asyncio.sleep(0.4)

        assert fake_client.fetch_count >= 3

        await view.unmount()
        await view.scheduler.wait_idle()
        stopped_at = fake_client.fetch_count
        await asyncio.sleep(0.2)
        assert fake_client.fetch_count == stopped_at

    async def test_trigger_after_stop_is_ignored(self, list_view):
        assert list_view.scheduler.trigger(RefreshTrigger.MANUAL) is None


# -------------------------
# Cross-view updates
# -------------------------

@pytest.mark.asyncio
class TestPendingUpdates:
    """Tests for applying relay payloads in the list view."""

    async def test_update_applied_once(self, list_view, fake_client, relay, settle_loop):
        await mounted(list_view, fake_client, settle_loop, [cat(1, "Books"), cat(2, "Music")])
        update = PendingUpdate(category_id=2, new_name="Audio", issued_at=1000)

        relay.attach(update)
        assert list_view.on_render() is True
        assert list_view.snapshot == (cat(1, "Books"), cat(2, "Audio"))
        assert relay.state == RelayState.EMPTY
        assert len(list_view.toasts.history) == 1

        # Re-render without a new transition
        assert list_view.on_render() is False

        # Channel re-delivers the same payload
        relay.attach(update)
        assert list_view.on_render() is False
        assert list_view.snapshot == (cat(1, "Books"), cat(2, "Audio"))
        assert len(list_view.toasts.history) == 1
        await list_view.unmount()

    async def test_update_waits_for_first_load(self, list_view, fake_client, relay, settle_loop):
        relay.attach(PendingUpdate(category_id=1, new_name="Ebooks", issued_at=5))
        await list_view.mount()
        assert list_view.on_render() is False
        assert relay.state == RelayState.UNCONSUMED

        await settle_loop()
        fake_client.resolve(0, [cat(1, "Books")])
        await list_view.scheduler.wait_idle()

        assert list_view.snapshot == (cat(1, "Ebooks"),)
        assert relay.state == RelayState.EMPTY
        await list_view.unmount()

    async def test_cleared_image_is_merged(self, list_view, fake_client, settle_loop):
        await mounted(list_view, fake_client, settle_loop, [cat(1, "Books", "a.png")])
        fake_client.categories[1] = cat(1, "Books", "a.png")

        edit_view = list_view.edit(1)
        await edit_view.load()
        edit_view.image_url = ""
        update = await edit_view.submit()

        assert update.new_image_url == ""
        assert list_view.on_render() is True
        assert list_view.snapshot == (cat(1, "Books"),)
        await list_view.unmount()

    async def test_rename_directly(self, list_view, fake_client, settle_loop):
        await mounted(list_view, fake_client, settle_loop, [cat(1, "Books")])
        fake_client.auto = [cat(1, "Ebooks")]

        assert await list_view.rename_category(1, "Ebooks") is True
        assert fake_client.updated == [cat(1, "Ebooks")]
        assert list_view.snapshot == (cat(1, "Ebooks"),)
        await list_view.unmount()

    async def test_rename_unknown_category(self, list_view, fake_client, settle_loop):
        await mounted(list_view, fake_client, settle_loop, [cat(1, "Books")])

        assert await list_view.rename_category(9, "Ghost") is False
        assert list_view.toasts.current.toast_type == ToastType.ERROR
        await list_view.unmount()


# -------------------------
# Edit view
# -------------------------

@pytest.mark.asyncio
class TestEditCategoryView:
    """Tests for EditCategoryView."""

    async def test_no_changes_is_a_noop_update(self, fake_client, relay):
        fake_client.categories[3] = cat(3, "Games", "g.png")
        view = EditCategoryView(fake_client, relay, 3)
        await view.load()

        update = await view.submit()

        assert update.is_noop
        assert fake_client.updated == []
        assert relay.state == RelayState.UNCONSUMED

    async def test_empty_name_is_rejected(self, fake_client, relay):
        fake_client.categories[3] = cat(3, "Games")
        view = EditCategoryView(fake_client, relay, 3)
        await view.load()
        view.name = "   "

        assert await view.submit() is None
        assert view.error == "Category name cannot be empty"
        assert relay.state == RelayState.EMPTY

    async def test_success_attaches_persisted_values(self, fake_client, relay):
        fake_client.categories[3] = cat(3, "Games", "g.png")
        view = EditCategoryView(fake_client, relay, 3)
        await view.load()
        view.name = "New"

        update = await view.submit()

        assert decode_update(relay.params) == update
        assert update.new_name == "New"
        assert update.new_image_url == "g.png"
        assert not view.updating

    async def test_exhausted_shows_single_error(self, fake_client, relay):
        fake_client.categories[3] = cat(3, "Games")
        fake_client.update_error = ExhaustedStrategies([])
        view = EditCategoryView(fake_client, relay, 3)
        await view.load()
        view.name = "New"

        assert await view.submit() is None
        assert view.error == UPDATE_ERROR
        assert relay.state == RelayState.EMPTY

    async def test_load_failure(self, fake_client, relay):
        view = EditCategoryView(fake_client, relay, 3)

        await view.load()

        assert view.category is None
        assert view.error is not None
        assert not view.loading
        assert await view.submit() is None


# -------------------------
# End to end over HTTP
# -------------------------

@pytest.mark.asyncio
class TestEditRoundTrip:
    """Edit in one view, see it merged in the other."""

    async def test_edit_flows_back_to_list(self, api, reject_unmatched, base_url, books_payload, relay, app_state):
        api.get("/api/Categories").mock(return_value=httpx.Response(200, json=books_payload))
        api.get("/api/Categories/3").mock(return_value=httpx.Response(200, json=books_payload[2]))
        api.post("/api/Categories").mock(return_value=httpx.Response(200))
        reject_unmatched(405)

        async with CategoryClient(api_url=base_url) as client:
            list_view = CategoryListView(client, relay, app_state, refresh_interval=60)
            await list_view.mount()
            await list_view.scheduler.wait_idle()

            edit_view = list_view.edit(3)
            await edit_view.load()
            edit_view.name = "New"
            await edit_view.submit()

            assert list_view.on_render() is True
            await list_view.unmount()

        assert list_view.snapshot[2] == Category(id=3, name="New", imageUrl="https://img.test/games.png")
        assert len(list_view.toasts.history) == 1
