# categorysync/client.py
"""
Categories API Client

Async client for the categories REST endpoints. Reads go straight through the
transport; updates go through the UpdateStrategyChain because the deployed
backend is known to reject some standard update verbs.
"""

import os
import logging
from typing import Optional, Dict, List, Sequence, Set, Tuple

from pydantic import ValidationError

from .capabilities import CapabilityProber, CapabilityRecord
from .config import CategorySyncConfig, ENVIRONMENTS, Environment, get_config
from .exceptions import CategorySyncError, HttpRejection
from .models import Category
from .strategies import DEFAULT_STRATEGIES, UpdateStrategy, UpdateStrategyChain
from .transport import Transport, TransportResponse

logger = logging.getLogger(__name__)


class CategoryClient:
    """
    Async categories API client.

    Example:
        ```python
        async with CategoryClient(environment="android") as client:
            categories = await client.fetch_categories()

            methods = await client.check_api_methods()

            renamed = categories[0].model_copy(update={"name": "Ebooks"})
            stored = await client.update_category(renamed)
        ```

    The CapabilityRecord is per session; pass one in to share it between
    clients or to start from known outcomes.
    """

    def __init__(
        self,
        environment: str = "local",
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        collection_path: str = "/api/Categories",
        probe_resource_id: int = 1,
        capabilities: Optional[CapabilityRecord] = None,
        strategies: Sequence[UpdateStrategy] = DEFAULT_STRATEGIES,
        transport: Optional[Transport] = None,
    ):
        """
        Initialize the categories client.

        Args:
            environment: One of "local", "ios", "android"
            api_url: Override the API URL
            api_key: Bearer token for authentication (optional)
            timeout: Request timeout in seconds
            collection_path: Path of the categories collection
            probe_resource_id: Category id used for capability discovery
            capabilities: Session capability cache (a fresh one if omitted)
            strategies: Ordered update strategies
            transport: Pre-built transport (tests)
        """
        # Resolve environment
        if environment in ENVIRONMENTS:
            env = ENVIRONMENTS[environment]
            self._env = Environment(name=env.name, api_url=env.api_url)
        else:
            self._env = Environment(name=environment, api_url="")

        if api_url:
            self._env.api_url = api_url

        # Try environment variables
        if not self._env.api_url:
            self._env.api_url = os.environ.get("CATEGORYSYNC_API_URL", ENVIRONMENTS["local"].api_url)

        api_key = api_key or os.environ.get("CATEGORYSYNC_API_KEY")

        self.collection_path = collection_path.rstrip("/")
        self.transport = transport or Transport(self._env.api_url, timeout=timeout, api_key=api_key)
        self.capabilities = capabilities if capabilities is not None else CapabilityRecord()
        self.prober = CapabilityProber(
            self.transport,
            self.capabilities,
            collection_path=self.collection_path,
            probe_resource_id=probe_resource_id,
        )
        self.updater = UpdateStrategyChain(
            self.transport,
            self.capabilities,
            strategies=strategies,
            collection_path=self.collection_path,
        )

        logger.info(f"CategoryClient initialized for {self._env.name} ({self._env.api_url})")

    @classmethod
    def from_config(cls, config: Optional[CategorySyncConfig] = None, **kwargs) -> "CategoryClient":
        """Build a client from a CategorySyncConfig (the global one by default)."""
        if config is None:
            config = get_config()
        return cls(
            environment=config.environment,
            api_url=config.resolve_api_url(),
            api_key=config.api_key or None,
            timeout=config.timeout,
            collection_path=config.collection_path,
            probe_resource_id=config.probe_resource_id,
            **kwargs,
        )

    @property
    def api_url(self) -> str:
        return self._env.api_url

    # -------------------------------------------------------------------------
    # Reads and plain writes
    # -------------------------------------------------------------------------

    async def fetch_categories(self) -> List[Category]:
        """Fetch the full category list."""
        response = await self.transport.request("GET", self.collection_path)
        data = self._expect_ok(response)
        if not isinstance(data, list):
            raise CategorySyncError(f"Expected a list of categories, got {type(data).__name__}")
        try:
            categories = [Category.model_validate(item) for item in data]
        except ValidationError as e:
            raise CategorySyncError(f"Malformed category in list response: {e}") from e
        logger.debug(f"Fetched {len(categories)} categories")
        return categories

    async def fetch_category(self, category_id: int) -> Category:
        """Fetch a single category by id."""
        response = await self.transport.request("GET", f"{self.collection_path}/{category_id}")
        data = self._expect_ok(response)
        try:
            return Category.model_validate(data)
        except ValidationError as e:
            raise CategorySyncError(f"Malformed category {category_id}: {e}") from e

    async def create_category(self, name: str, image_url: str = "") -> Category:
        """Create a new category."""
        response = await self.transport.request(
            "POST",
            self.collection_path,
            json={"name": name, "imageUrl": image_url},
        )
        data = self._expect_ok(response)
        try:
            return Category.model_validate(data)
        except ValidationError as e:
            raise CategorySyncError(f"Malformed category in create response: {e}") from e

    async def delete_category(self, category_id: int) -> None:
        """Delete a category."""
        response = await self.transport.request("DELETE", f"{self.collection_path}/{category_id}")
        self._expect_ok(response)

    # -------------------------------------------------------------------------
    # Resilient update and discovery
    # -------------------------------------------------------------------------

    async def update_category(self, category: Category) -> Category:
        """Persist an edited category through the strategy chain."""
        return await self.updater.execute(category)

    async def check_api_methods(self) -> Set[str]:
        """Verbs the backend advertises for a category resource (never raises)."""
        return await self.prober.discover()

    async def scan_endpoints(self) -> Dict[Tuple[str, str], Optional[int]]:
        """Diagnostic sweep of candidate category routes with safe verbs."""
        return await self.prober.scan_endpoints()

    @staticmethod
    def _expect_ok(response: TransportResponse):
        if not response.ok:
            raise HttpRejection(response.status_code, response.text, response.method, response.path)
        return response.json()

    async def close(self):
        """Close the HTTP client."""
        await self.transport.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
