# categorysync/tests/conftest.py
"""
Shared fixtures for the category sync test suite.

HTTP is mocked with respx; view and scheduler tests use FakeClient, whose
fetches resolve only when the test says so.
"""

import asyncio
from typing import Any, List, Optional

import httpx
import pytest
import respx

from categorysync.exceptions import HttpRejection
from categorysync.models import Category

BASE_URL = "http://categories.test"


@pytest.fixture
def base_url():
    return BASE_URL


@pytest.fixture
def api():
    """respx router bound to the test backend; unmatched routes are an error."""
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as router:
        yield router


@pytest.fixture
def reject_unmatched(api):
    """Call last: every request not matched by an earlier route gets ``status``."""

    def install(status: int = 405, text: str = ""):
        return api.route().mock(return_value=httpx.Response(status, text=text))

    return install


@pytest.fixture
def books_payload():
    """Sample list response."""
    return [
        {"id": 1, "name": "Books", "imageUrl": "https://img.test/books.png"},
        {"id": 2, "name": "Music", "imageUrl": ""},
        {"id": 3, "name": "Games", "imageUrl": "https://img.test/games.png"},
    ]


@pytest.fixture
def books(books_payload):
    return [Category.model_validate(item) for item in books_payload]


class FakeClient:
    """
    Stand-in for CategoryClient in view tests.

    Each fetch_categories() call parks on a future collected in ``pending``
    unless ``auto`` is set, in which case it returns ``auto`` immediately.
    """

    def __init__(self, auto: Optional[List[Category]] = None):
        self.auto = auto
        self.fetch_count = 0
        self.pending: List[asyncio.Future] = []
        self.categories = {}
        self.update_error: Optional[Exception] = None
        self.updated: List[Category] = []

    async def fetch_categories(self) -> List[Category]:
        self.fetch_count += 1
        if self.auto is not None:
            return list(self.auto)
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future

    def resolve(self, index: int, result: Any) -> None:
        future = self.pending[index]
        if isinstance(result, Exception):
            future.set_exception(result)
        else:
            future.set_result(result)

    async def fetch_category(self, category_id: int) -> Category:
        if category_id not in self.categories:
            raise HttpRejection(404, "", "GET", f"/api/Categories/{category_id}")
        return self.categories[category_id]

    async def update_category(self, category: Category) -> Category:
        if self.update_error is not None:
            raise self.update_error
        self.updated.append(category)
        return category


@pytest.fixture
def fake_client():
    return FakeClient()


async def settle(rounds: int = 5):
    """Let freshly spawned tasks run up to their first real suspension."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle_loop():
    return settle
