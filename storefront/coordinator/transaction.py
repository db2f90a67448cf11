# storefront/coordinator/transaction.py
import asyncio
import inspect
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional

from pydantic import BaseModel

from storefront.cache.query_cache import QueryCache, QueryKey, as_key
from storefront.domain.errors import ApiError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

Values = Dict[QueryKey, Any]
Precondition = Callable[[QueryCache, Any], Any]
Apply = Callable[[Values, Any], Values]
Commit = Callable[[Values, Any, Any], Values]


class MutationState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def merge_fields(current: BaseModel | None, server: BaseModel, fields: Iterable[str] | None = None):
    """
    Field-level merge of a (possibly partial) server model into the cached one.
    Without `fields`, only the fields the server actually sent are taken.
    """
    if current is None:
        return server
    names = list(fields) if fields is not None else list(server.model_fields_set)
    return current.model_copy(update={name: getattr(server, name) for name in names})


class OptimisticMutation:
    """
    One optimistic transaction over the query cache.

    Every invocation runs, in this order and never reordered:
        precondition -> cancel refreshes -> snapshot -> speculative apply
        -> network call -> commit (success) | rollback (failure)

    `apply` and `commit` are pure: they receive cache values and return the
    new values per key; the coordinator does all the writing, all-or-nothing.
    Invocations are independent, two rapid calls give two round-trips.
    """

    def __init__(
        self,
        cache: QueryCache,
        *,
        name: str,
        keys: Iterable[Any],
        mutation_fn: Callable[[Any], Any],
        apply: Optional[Apply] = None,
        commit: Optional[Commit] = None,
        precondition: Optional[Precondition] = None,
        error_message: Optional[str] = None,
    ):
        self.cache = cache
        self.name = name
        self.keys = tuple(as_key(k) for k in keys)
        self.mutation_fn = mutation_fn
        self.apply = apply
        self.commit = commit
        self.precondition = precondition
        self.error_message = error_message or f"An unexpected error occurred during {name}"
        self.last_state = MutationState.IDLE
        self._pending = 0

    @property
    def is_pending(self) -> bool:
        return self._pending > 0

    async def __call__(self, variables: Any = None) -> Any:
        return await self.run(variables)

    def _check_keys(self, values: Values, phase: str) -> None:
        unknown = [key for key in values if key not in self.keys]
        if unknown:
            raise ValueError(f"{self.name}: {phase} wrote undeclared keys {unknown}")

    def _write(self, values: Values) -> None:
        for key, value in values.items():
            self.cache.set_query_data(key, (lambda _old, v=value: v))

    def _rollback(self, snapshot: Values) -> None:
        for key in self.keys:
            if key in snapshot:
                self.cache.set_query_data(key, (lambda _old, v=snapshot[key]: v))
            else:
                self.cache.remove_query(key)

    async def _dispatch(self, variables: Any) -> Any:
        if inspect.iscoroutinefunction(self.mutation_fn):
            return await self.mutation_fn(variables)
        return await asyncio.to_thread(self.mutation_fn, variables)

    async def run(self, variables: Any = None) -> Any:
        # 1. precondition, nothing touched yet
        if self.precondition is not None:
            self.precondition(self.cache, variables)

        # 2. a refresh landing after the speculative write would overwrite it
        await asyncio.gather(*(self.cache.cancel_queries(key) for key in self.keys))

        # 3. snapshot, absent keys are left out and removed again on rollback
        snapshot = {
            key: self.cache.get_query_data(key)
            for key in self.keys
            if self.cache.has_query(key)
        }
        current = {key: snapshot.get(key) for key in self.keys}

        # 4. speculative apply
        speculative = self.apply(current, variables) if self.apply is not None else {}
        self._check_keys(speculative, "apply")
        self._write(speculative)
        self.last_state = MutationState.PENDING
        self._pending += 1
        logger.info(f"{self.name}: speculative update of {[k[0] for k in speculative]}")

        # 5. network call, 6. commit or 7. rollback
        try:
            result = await self._dispatch(variables)
            latest = {key: self.cache.get_query_data(key) for key in self.keys}
            committed = self.commit(latest, result, variables) if self.commit is not None else {}
            self._check_keys(committed, "commit")
        except asyncio.CancelledError:
            self._rollback(snapshot)
            self.last_state = MutationState.ROLLED_BACK
            logger.warning(f"{self.name}: cancelled while pending, rolled back")
            raise
        except Exception as e:
            self._rollback(snapshot)
            self.last_state = MutationState.ROLLED_BACK
            logger.error(f"{self.name}: rolled back: {e}")
            if isinstance(e, ApiError):
                raise
            raise ApiError(self.error_message) from e
        finally:
            self._pending -= 1

        #None never creates an entry, a key that was not loaded stays unloaded
        committed = {
            key: value
            for key, value in committed.items()
            if value is not None or self.cache.has_query(key)
        }
        self._write(committed)
        self.last_state = MutationState.COMMITTED
        logger.info(f"{self.name}: committed {[k[0] for k in committed]}")
        return result
