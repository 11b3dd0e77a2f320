"""Cached collection state with loading/error tracking and refetch-on-write."""

import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar


logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")

ChangeListener = Callable[[], None]


class CollectionStore(Generic[ItemT]):
    """Holds one collection in memory on behalf of a UI.

    After every successful mutation the whole collection is fetched again,
    so the cache always mirrors storage. A failed mutation sets ``error``,
    leaves the cache as it was and re-raises.
    """

    label = "items"

    def __init__(self) -> None:
        self._items: list[ItemT] = []
        self.loading = True
        self.error: str | None = None
        self._listeners: list[ChangeListener] = []

    @property
    def items(self) -> list[ItemT]:
        return list(self._items)

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Call listener after each refresh. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                logger.warning("store_listener_failed", extra={"store": self.label, "error": str(e)})

    async def _fetch(self) -> list[ItemT]:
        raise NotImplementedError

    async def refresh(self) -> None:
        """Reload the collection. Failures are recorded in ``error``, not raised."""
        self.loading = True
        try:
            self._items = await self._fetch()
            self.error = None
        except Exception as e:
            logger.error("store_fetch_failed", extra={"store": self.label, "error": str(e)})
            self.error = f"Failed to fetch {self.label}"
        finally:
            self.loading = False
        self._notify()

    async def _mutate(self, failure_message: str, operation: Callable[[], Awaitable[ResultT]]) -> ResultT:
        """Run a mutation, then refetch.

        Raises:
            Exception: Whatever the operation raised, after recording failure_message
        """
        try:
            result = await operation()
        except Exception as e:
            logger.error("store_mutation_failed", extra={"store": self.label, "error": str(e)})
            self.error = failure_message
            raise

        self.error = None
        await self.refresh()
        return result
