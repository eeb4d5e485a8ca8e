# categorysync/tests/test_reconciler.py
"""
Unit tests for snapshot merging, change detection and the update relay.
"""

import pytest

from categorysync.models import Category, PendingUpdate
from categorysync.notifications import ToastCenter, ToastType
from categorysync.reconciler import (
    Reconciler,
    apply_pending_update,
    snapshot_changed,
    to_snapshot,
)
from categorysync.relay import (
    PARAM_CATEGORY_ID,
    PARAM_UPDATED,
    RelayState,
    UpdateRelay,
    decode_update,
    encode_update,
)


def cat(id: int, name: str, image_url: str = "") -> Category:
    return Category(id=id, name=name, imageUrl=image_url)


@pytest.fixture
def toasts():
    return ToastCenter()


# -------------------------
# Change detection
# -------------------------

class TestReconciler:
    """Tests for Reconciler.observe() and snapshot_changed()."""

    def test_identical_snapshot_is_silent(self, toasts):
        reconciler = Reconciler(toasts)
        reconciler.observe((cat(1, "Books"),))

        assert reconciler.observe((cat(1, "Books"),)) is False
        assert toasts.history == []

    def test_renamed_category_notifies_once(self, toasts):
        reconciler = Reconciler(toasts)
        reconciler.observe((cat(1, "Books"),))

        assert reconciler.observe((cat(1, "Ebooks"),)) is True
        assert len(toasts.history) == 1
        assert toasts.current.toast_type == ToastType.SUCCESS

    def test_first_snapshot_is_silent(self, toasts):
        reconciler = Reconciler(toasts)

        assert reconciler.observe((cat(1, "Books"), cat(2, "Music"))) is False
        assert toasts.history == []

    def test_many_changes_one_notification(self, toasts):
        reconciler = Reconciler(toasts)
        reconciler.observe((cat(1, "Books"), cat(2, "Music", "a.png")))
        reconciler.observe((cat(1, "Ebooks"), cat(2, "Audio", "b.png"), cat(3, "Games")))

        assert len(toasts.history) == 1

    def test_new_id_is_a_change_removal_is_not(self):
        before = (cat(1, "Books"), cat(2, "Music"))

        assert snapshot_changed(before, before + (cat(3, "Games"),))
        assert not snapshot_changed(before, (cat(1, "Books"),))

    def test_raw_strings_are_compared(self):
        before = (cat(1, "Books"),)

        assert snapshot_changed(before, (cat(1, "Books "),))
        assert snapshot_changed(before, (cat(1, "books"),))

    def test_image_change_is_a_change(self):
        assert snapshot_changed((cat(1, "Books", "a.png"),), (cat(1, "Books", "b.png"),))


# -------------------------
# Merging
# -------------------------

class TestApplyPendingUpdate:
    """Tests for apply_pending_update()."""

    def test_merges_by_id(self):
        snapshot = to_snapshot([cat(1, "Books", "a.png"), cat(2, "Music", "m.png")])
        update = PendingUpdate(category_id=2, new_name="Audio", issued_at=1000)

        merged = apply_pending_update(snapshot, update)

        assert merged == (cat(1, "Books", "a.png"), cat(2, "Audio", "m.png"))
        # Input snapshot untouched
        assert snapshot[1].name == "Music"

    def test_applying_twice_equals_applying_once(self):
        snapshot = (cat(1, "Books", "a.png"),)
        update = PendingUpdate(category_id=1, new_name="Ebooks", new_image_url="e.png", issued_at=1000)

        once = apply_pending_update(snapshot, update)
        twice = apply_pending_update(once, update)

        assert once == twice == (cat(1, "Ebooks", "e.png"),)

    def test_empty_fields_keep_existing_values(self):
        snapshot = (cat(1, "Books", "a.png"),)
        update = PendingUpdate(category_id=1, new_name="", new_image_url=None, issued_at=1)

        assert apply_pending_update(snapshot, update) == snapshot

    def test_empty_image_url_clears_image(self):
        snapshot = (cat(1, "Books", "a.png"),)
        update = PendingUpdate(category_id=1, new_image_url="", issued_at=1)

        assert not update.is_noop
        assert apply_pending_update(snapshot, update) == (cat(1, "Books"),)

    def test_unknown_id_is_ignored(self):
        snapshot = (cat(1, "Books"),)
        update = PendingUpdate(category_id=99, new_name="Ghost", issued_at=1)

        assert apply_pending_update(snapshot, update) == snapshot


# -------------------------
# Relay
# -------------------------

class TestUpdateRelay:
    """Tests for the consume-once relay."""

    def test_take_once_then_acknowledge(self):
        relay = UpdateRelay()
        update = PendingUpdate(category_id=3, new_name="New", issued_at=1700000000000)
        relay.attach(update)

        assert relay.state == RelayState.UNCONSUMED
        assert relay.take() == update
        assert relay.state == RelayState.CONSUMED
        assert relay.take() is None

        relay.acknowledge()
        assert relay.state == RelayState.EMPTY
        assert relay.params == {}

    def test_params_survive_encoding(self):
        update = PendingUpdate(category_id=3, new_name="New", new_image_url="n.png", issued_at=42)
        params = encode_update(update)

        assert all(isinstance(v, str) for v in params.values())
        assert decode_update(params) == update

    def test_malformed_params_are_dropped(self):
        relay = UpdateRelay()
        relay.navigate({PARAM_UPDATED: "true", PARAM_CATEGORY_ID: "three"})

        assert relay.take() is None

    def test_params_without_update_flag(self):
        assert decode_update({PARAM_CATEGORY_ID: "3"}) is None

    def test_navigate_without_params_is_empty(self):
        relay = UpdateRelay()
        relay.navigate({})

        assert relay.state == RelayState.EMPTY
        assert relay.take() is None
