# categorysync/__init__.py
"""
Category Sync

Client core for a storefront app's category list: capability discovery,
resilient updates against a backend that rejects some REST verbs, periodic
and foreground refresh, and reconciliation of edits made on another screen.

Quick Start:
    ```python
    from categorysync import CategoryClient

    async with CategoryClient(api_url="http://localhost:5158") as client:
        categories = await client.fetch_categories()

        edited = categories[0].model_copy(update={"name": "Ebooks"})
        stored = await client.update_category(edited)
    ```

Keeping a list fresh:
    ```python
    from categorysync import CategoryListView, UpdateRelay, AppStateSignal

    view = CategoryListView(client, UpdateRelay(), AppStateSignal())
    await view.mount()      # initial load, 5 s polling, foreground refresh
    ...
    await view.unmount()
    ```
"""

__version__ = "0.1.0"

from .capabilities import CapabilityProber, CapabilityRecord, VerbOutcome
from .client import CategoryClient
from .config import CategorySyncConfig, get_config, initialize_config
from .exceptions import (
    CategorySyncError,
    TransportFailure,
    HttpRejection,
    DiscoveryInconclusive,
    ExhaustedStrategies,
    StaleViewDiscard,
)
from .lifecycle import AppState, AppStateSignal
from .models import Category, HttpVerb, ListSnapshot, PayloadEncoding, PendingUpdate
from .notifications import Toast, ToastCenter, ToastType
from .reconciler import Reconciler, apply_pending_update, snapshot_changed
from .relay import UpdateRelay
from .scheduler import RefreshTrigger, SyncScheduler
from .strategies import DEFAULT_STRATEGIES, UpdateStrategy, UpdateStrategyChain
from .views import CategoryListView, EditCategoryView

__all__ = [
    "CategoryClient",
    "CategorySyncConfig",
    "get_config",
    "initialize_config",
    "Category",
    "PendingUpdate",
    "ListSnapshot",
    "HttpVerb",
    "PayloadEncoding",
    "CapabilityRecord",
    "CapabilityProber",
    "VerbOutcome",
    "UpdateStrategy",
    "UpdateStrategyChain",
    "DEFAULT_STRATEGIES",
    "UpdateRelay",
    "Reconciler",
    "apply_pending_update",
    "snapshot_changed",
    "Toast",
    "ToastCenter",
    "ToastType",
    "AppState",
    "AppStateSignal",
    "RefreshTrigger",
    "SyncScheduler",
    "CategoryListView",
    "EditCategoryView",
    "CategorySyncError",
    "TransportFailure",
    "HttpRejection",
    "DiscoveryInconclusive",
    "ExhaustedStrategies",
    "StaleViewDiscard",
]
