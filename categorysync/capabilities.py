# categorysync/capabilities.py
"""
Capability discovery for the categories API.

The deployed backend does not reliably support every REST verb, so the client
learns what it can from an OPTIONS request (the Allow header) and, failing
that, from a plain GET. Unsafe verbs are never probed; their support is only
learned as a side effect of real update attempts (see strategies.py).

Usage:
    record = CapabilityRecord()
    prober = CapabilityProber(transport, record)

    verbs = await prober.discover()       # e.g. {"GET", "POST"}
    record.is_known_unsupported(HttpVerb.PUT)
"""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .exceptions import CategorySyncError, DiscoveryInconclusive, HttpRejection
from .models import HttpVerb
from .transport import Transport, TransportResponse

logger = logging.getLogger(__name__)


# Candidate routes swept by scan_endpoints(); {id} is the probe resource id.
SCAN_PATHS = (
    "",
    "/{id}",
    "/Edit/{id}",
    "/Update",
    "/Update/{id}",
    "/Edit",
    "/UpdateName",
    "/UpdateImage",
)


class VerbOutcome(str, Enum):
    """What the session has learned about a verb."""
    SUPPORTED = "supported"
    UNSUPPORTED = "unsupported"


class CapabilityRecord:
    """
    Session cache of verb outcomes for one resource type.

    Lives as long as the object does and is never persisted. Support always
    wins over non-support: once a verb has worked it is not demoted.
    """

    def __init__(
        self,
        resource: str = "categories",
        seed: Optional[Dict[HttpVerb, VerbOutcome]] = None,
    ):
        self.resource = resource
        self._outcomes: Dict[HttpVerb, VerbOutcome] = dict(seed or {})

    def mark_supported(self, verb: HttpVerb) -> None:
        if self._outcomes.get(verb) != VerbOutcome.SUPPORTED:
            logger.info(f"[{self.resource}] {verb.value} marked supported")
        self._outcomes[verb] = VerbOutcome.SUPPORTED

    def mark_unsupported(self, verb: HttpVerb) -> None:
        current = self._outcomes.get(verb)
        if current == VerbOutcome.SUPPORTED:
            logger.debug(f"[{self.resource}] ignoring rejection of {verb.value}, already proven supported")
            return
        if current is None:
            logger.info(f"[{self.resource}] {verb.value} marked unsupported")
        self._outcomes[verb] = VerbOutcome.UNSUPPORTED

    def outcome(self, verb: HttpVerb) -> Optional[VerbOutcome]:
        return self._outcomes.get(verb)

    def is_known_unsupported(self, verb: HttpVerb) -> bool:
        return self._outcomes.get(verb) == VerbOutcome.UNSUPPORTED

    def supported_verbs(self) -> Set[HttpVerb]:
        return {v for v, o in self._outcomes.items() if o == VerbOutcome.SUPPORTED}

    def unsupported_verbs(self) -> Set[HttpVerb]:
        return {v for v, o in self._outcomes.items() if o == VerbOutcome.UNSUPPORTED}

    def snapshot(self) -> Dict[HttpVerb, VerbOutcome]:
        return dict(self._outcomes)

    def clear(self) -> None:
        self._outcomes.clear()

    def __repr__(self) -> str:
        body = ", ".join(f"{v.value}={o.value}" for v, o in sorted(self._outcomes.items()))
        return f"CapabilityRecord({self.resource}: {body})"


def parse_allow_header(response: TransportResponse) -> Set[str]:
    """Split an Allow header into upper-cased verb tokens."""
    header = response.headers.get("Allow")
    if header is None:
        raise DiscoveryInconclusive(f"{response.method} {response.path} returned no Allow header")
    return {token.strip().upper() for token in header.split(",") if token.strip()}


def _known_verbs(tokens: Iterable[str]) -> List[HttpVerb]:
    verbs = []
    for token in tokens:
        try:
            verbs.append(HttpVerb(token))
        except ValueError:
            logger.debug(f"Ignoring unknown verb token in Allow header: {token}")
    return verbs


class CapabilityProber:
    """Learns which verbs the backend accepts on a category resource."""

    def __init__(
        self,
        transport: Transport,
        record: CapabilityRecord,
        collection_path: str = "/api/Categories",
        probe_resource_id: int = 1,
    ):
        self._transport = transport
        self.record = record
        self.collection_path = collection_path.rstrip("/")
        self.probe_resource_id = probe_resource_id

    async def discover(self, resource_id: Optional[int] = None) -> Set[str]:
        """
        Determine the verbs the backend is willing to accept.

        Never raises: an empty set means nothing could be learned and callers
        should try every strategy blind.
        """
        rid = self.probe_resource_id if resource_id is None else resource_id
        path = f"{self.collection_path}/{rid}"
        logger.info(f"Checking available HTTP methods on {path}")

        try:
            response = await self._transport.request(HttpVerb.OPTIONS.value, path)
            tokens = parse_allow_header(response)
        except CategorySyncError as e:
            logger.info(f"Capability discovery via OPTIONS inconclusive: {e}")
        else:
            for verb in _known_verbs(tokens):
                self.record.mark_supported(verb)
            logger.info(f"Available methods (Allow header): {sorted(tokens)}")
            return tokens

        tokens = await self._probe_safe_verbs(path)
        if not tokens:
            logger.warning(f"No capability information for {path}")
        logger.info(f"Available methods (manual check): {sorted(tokens)}")
        return tokens

    async def _probe_safe_verbs(self, path: str) -> Set[str]:
        tokens: Set[str] = set()
        try:
            response = await self._transport.request(HttpVerb.GET.value, path)
            # A 404 still proves the route answers GET; the row just does not exist.
            if not (response.ok or response.status_code == 404):
                raise HttpRejection(response.status_code, response.text, response.method, path)
        except CategorySyncError as e:
            logger.info(f"GET probe failed: {e}")
        else:
            tokens.add(HttpVerb.GET.value)
            self.record.mark_supported(HttpVerb.GET)
        return tokens

    async def scan_endpoints(
        self,
        paths: Iterable[str] = SCAN_PATHS,
        verbs: Iterable[HttpVerb] = (HttpVerb.GET, HttpVerb.HEAD),
    ) -> Dict[Tuple[str, str], Optional[int]]:
        """
        Diagnostic sweep over candidate category routes.

        Only safe verbs are allowed. Returns ``{(verb, path): status}``, with
        None for requests that never got a response.
        """
        verbs = list(verbs)
        unsafe = [v for v in verbs if not v.is_safe]
        if unsafe:
            raise ValueError(f"Refusing to scan with unsafe verbs: {[v.value for v in unsafe]}")

        results: Dict[Tuple[str, str], Optional[int]] = {}
        for suffix in paths:
            path = self.collection_path + suffix.format(id=self.probe_resource_id)
            for verb in verbs:
                try:
                    response = await self._transport.request(verb.value, path)
                    results[(verb.value, path)] = response.status_code
                    logger.info(f"{verb.value} {path} - Status: {response.status_code}")
                except CategorySyncError as e:
                    results[(verb.value, path)] = None
                    logger.warning(f"Error testing {verb.value} {path}: {e}")

        logger.info("Endpoint scan complete")
        return results
