# categorysync/strategies.py
"""
Update Strategy Chain

The backend rejects some otherwise-standard update verbs, so an edit is
persisted by walking an ordered list of strategies until one is accepted.

Each strategy is a fixed sequence of request steps (verb, path template,
payload encoding, fields). A strategy succeeds only when all of its steps
return 2xx. The first success ends the chain; a transport failure or any other
status moves on to the next strategy without retrying the same one.

Verbs the CapabilityRecord already knows to be unsupported when a run starts
are skipped for that run. What a run learns (405/501 => unsupported, 2xx =>
supported) only affects later runs.

The chain is not idempotent across crashes: a multi-step strategy can apply
its first field and then fail on the second while later strategies are still
tried.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from .capabilities import CapabilityRecord
from .exceptions import ExhaustedStrategies, TransportFailure
from .models import Category, HttpVerb, PayloadEncoding
from .transport import Transport, TransportResponse

logger = logging.getLogger(__name__)

# Statuses that say the verb itself is not accepted on the resource.
VERB_REJECTION_STATUSES = (405, 501)

ALL_FIELDS = ("id", "name", "imageUrl")


class ChainState(str, Enum):
    """Per-run state of an update attempt."""
    PENDING = "pending"
    TRYING = "trying"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class RequestStep:
    """One HTTP request within a strategy."""
    verb: HttpVerb
    path_template: str
    encoding: PayloadEncoding = PayloadEncoding.JSON
    fields: Tuple[str, ...] = ALL_FIELDS

    def path(self, collection_path: str, category_id: int) -> str:
        return self.path_template.format(collection=collection_path, id=category_id)

    def request_kwargs(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Body/query arguments for Transport.request."""
        values = {k: payload[k] for k in self.fields}
        if self.encoding == PayloadEncoding.JSON:
            return {"json": values}
        if self.encoding == PayloadEncoding.FORM:
            # multipart/form-data, one plain part per field
            return {"files": {k: (None, str(v).encode("utf-8")) for k, v in values.items()}}
        return {"params": {k: str(v) for k, v in values.items()}}


@dataclass(frozen=True)
class UpdateStrategy:
    """A named, fully specified way of persisting an update."""
    name: str
    steps: Tuple[RequestStep, ...]

    @property
    def verbs(self) -> Tuple[HttpVerb, ...]:
        return tuple(dict.fromkeys(step.verb for step in self.steps))

    def __str__(self) -> str:
        return self.name


def _single(name: str, verb: HttpVerb, path_template: str, encoding: PayloadEncoding = PayloadEncoding.JSON) -> UpdateStrategy:
    return UpdateStrategy(name=name, steps=(RequestStep(verb, path_template, encoding),))


DEFAULT_STRATEGIES: Tuple[UpdateStrategy, ...] = (
    _single("put_json", HttpVerb.PUT, "{collection}/{id}"),
    _single("post_json", HttpVerb.POST, "{collection}/{id}"),
    _single("post_edit", HttpVerb.POST, "{collection}/Edit/{id}"),
    _single("patch_json", HttpVerb.PATCH, "{collection}/{id}"),
    _single("put_form", HttpVerb.PUT, "{collection}/{id}", PayloadEncoding.FORM),
    _single("get_query", HttpVerb.GET, "{collection}/Update", PayloadEncoding.QUERY),
    UpdateStrategy(
        name="get_fields",
        steps=(
            RequestStep(HttpVerb.GET, "{collection}/UpdateName", PayloadEncoding.QUERY, ("id", "name")),
            RequestStep(HttpVerb.GET, "{collection}/UpdateImage", PayloadEncoding.QUERY, ("id", "imageUrl")),
        ),
    ),
    _single("post_root", HttpVerb.POST, "{collection}"),
)


@dataclass
class StrategyAttempt:
    """Outcome of one strategy within a run."""
    strategy: str
    skipped: bool = False
    succeeded: bool = False
    status_code: Optional[int] = None
    body: Optional[str] = None
    error: Optional[str] = None


@dataclass
class ChainRun:
    """Book-keeping for a single execute() call."""
    category_id: int
    state: ChainState = ChainState.PENDING
    current: Optional[str] = None
    attempts: List[StrategyAttempt] = field(default_factory=list)

    def transition(self, state: ChainState, strategy: Optional[str] = None) -> None:
        self.state = state
        self.current = strategy
        suffix = f"({strategy})" if strategy else ""
        logger.debug(f"Update of category {self.category_id}: {state.value}{suffix}")


class StepRejected(Exception):
    """Internal signal that a step did not apply; carries the response."""

    def __init__(self, response: TransportResponse, reason: str):
        super().__init__(reason)
        self.response = response


class UpdateStrategyChain:
    """Persists a category edit by trying strategies in order."""

    def __init__(
        self,
        transport: Transport,
        record: CapabilityRecord,
        strategies: Sequence[UpdateStrategy] = DEFAULT_STRATEGIES,
        collection_path: str = "/api/Categories",
    ):
        if not strategies:
            raise ValueError("At least one update strategy is required")
        self._transport = transport
        self.record = record
        self.strategies = tuple(strategies)
        self.collection_path = collection_path.rstrip("/")
        self.last_run: Optional[ChainRun] = None

    async def execute(self, category: Category) -> Category:
        """
        Persist ``category`` and return the stored representation.

        Raises:
            ExhaustedStrategies: every strategy failed or was skipped.
        """
        run = ChainRun(category_id=category.id)
        self.last_run = run
        known_unsupported = self.record.unsupported_verbs()
        payload = category.to_payload()

        for strategy in self.strategies:
            blocked = [v for v in strategy.verbs if v in known_unsupported]
            if blocked:
                logger.info(f"Skipping {strategy}: {', '.join(v.value for v in blocked)} known unsupported")
                run.attempts.append(StrategyAttempt(strategy=strategy.name, skipped=True))
                continue

            run.transition(ChainState.TRYING, strategy.name)
            attempt = StrategyAttempt(strategy=strategy.name)
            run.attempts.append(attempt)

            try:
                result = await self._run_strategy(strategy, category, payload, attempt)
            except TransportFailure as e:
                attempt.error = str(e)
                logger.warning(f"Strategy {strategy} failed: {e}")
                continue
            except StepRejected as e:
                attempt.status_code = e.response.status_code
                attempt.body = e.response.text
                attempt.error = str(e)
                logger.warning(f"Strategy {strategy} rejected: {e}")
                continue

            attempt.succeeded = True
            run.transition(ChainState.SUCCEEDED, strategy.name)
            logger.info(f"Category {category.id} updated via {strategy}")
            return result

        run.transition(ChainState.EXHAUSTED)
        error = ExhaustedStrategies(run.attempts)
        logger.error(f"Failed to update category {category.id}: {error}")
        raise error

    async def _run_strategy(
        self,
        strategy: UpdateStrategy,
        category: Category,
        payload: Dict[str, Any],
        attempt: StrategyAttempt,
    ) -> Category:
        result = category
        for step in strategy.steps:
            path = step.path(self.collection_path, category.id)
            response = await self._transport.request(step.verb.value, path, **step.request_kwargs(payload))
            attempt.status_code = response.status_code
            attempt.body = response.text

            if not response.ok:
                if response.status_code in VERB_REJECTION_STATUSES:
                    self.record.mark_unsupported(step.verb)
                raise StepRejected(response, f"{step.verb.value} {path} returned {response.status_code}")

            self.record.mark_supported(step.verb)
            echoed = self._parse_echo(response, category)
            if echoed is not None:
                mismatched = [k for k in step.fields if k != "id" and echoed.to_payload()[k] != payload[k]]
                if mismatched:
                    raise StepRejected(response, f"{step.verb.value} {path} did not apply {', '.join(mismatched)}")
                if len(strategy.steps) == 1:
                    result = echoed
        return result

    @staticmethod
    def _parse_echo(response: TransportResponse, category: Category) -> Optional[Category]:
        """Server representation of the category, if the body is one."""
        data = response.json()
        if not isinstance(data, dict):
            return None
        try:
            echoed = Category.model_validate(data)
        except ValidationError:
            return None
        if echoed.id != category.id:
            return None
        return echoed
