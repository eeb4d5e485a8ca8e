# categorysync/transport.py
"""
Request executor for the categories API.

Wraps httpx.AsyncClient with a fixed timeout and turns network failures into
TransportFailure. Non-success statuses are returned to the caller untouched;
deciding what a 405 or a 404 means is the caller's job.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

import httpx

from .exceptions import TransportFailure

logger = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """Result of one completed HTTP exchange."""
    method: str
    path: str
    status_code: int
    headers: httpx.Headers
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Optional[Any]:
        """Decoded JSON body, or None when the body is empty or not JSON."""
        if not self.text.strip():
            return None
        try:
            return json.loads(self.text)
        except ValueError:
            return None


class Transport:
    """Thin async HTTP executor bound to one backend."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        api_key: Optional[str] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self.base_url = base_url
        self.timeout = timeout
        self._http = http or httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Any] = None,
        files: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> TransportResponse:
        """Send one request; raise TransportFailure if no response arrives."""
        method = method.upper()
        try:
            response = await self._http.request(
                method,
                path,
                json=json,
                files=files,
                params=params,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out after {self.timeout}s")
            raise TransportFailure(f"{method} {path} timed out", method=method, path=path, timed_out=True) from e
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TransportFailure(f"{method} {path} failed: {e}", method=method, path=path) from e

        logger.debug(f"{method} {path} -> {response.status_code}")
        return TransportResponse(
            method=method,
            path=path,
            status_code=response.status_code,
            headers=response.headers,
            text=response.text,
        )

    async def close(self):
        """Close the HTTP client."""
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
