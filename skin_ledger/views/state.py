"""Mutable view state owned by the presentation layer."""
from __future__ import annotations

import asyncio
import inspect
import logging
import sys
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from ..models import PagedResult, ViewQuery
from .query import DEFAULT_SORT, clamp_int, filter_sort_page

if TYPE_CHECKING:
    from ..config import ViewConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Debouncer:
    """Run only the latest of a burst of calls, ``delay`` seconds after it."""

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def call(self, func: Callable[[], Any]) -> None:
        """Schedule ``func``, superseding any call still waiting."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._fire(func))

    def cancel(self) -> None:
        if self.pending:
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for the scheduled call (if any) to finish."""
        task = self._task
        if task is None:
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            # superseded calls end cancelled; a cancelled waiter propagates
            if not task.cancelled():
                raise

    async def _fire(self, func: Callable[[], Any]) -> None:
        await asyncio.sleep(self.delay)
        try:
            result = func()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error("Debounced call failed: %s", e, exc_info=True)


class ViewState:
    """Current query for one holdings or transactions view.

    ``apply`` writes the clamped page back, so the page stays within
    ``[1, page_count]`` after the collection or page size changes.
    """

    def __init__(
        self,
        page_size: int = 20,
        sort_key: str = DEFAULT_SORT,
        debounce_seconds: float = 0.25,
    ) -> None:
        self.query = ViewQuery(
            sort_key=sort_key, page_size=clamp_int(page_size, 1, sys.maxsize)
        )
        self._debouncer = Debouncer(debounce_seconds)

    @classmethod
    def from_config(cls, config: ViewConfig) -> ViewState:
        return cls(
            page_size=config.page_size,
            sort_key=config.default_sort,
            debounce_seconds=config.search_debounce_ms / 1000,
        )

    @property
    def debouncer(self) -> Debouncer:
        return self._debouncer

    def set_search(self, text: str) -> None:
        self.query = replace(self.query, search_text=text or "", page=1)

    def set_search_debounced(self, text: str, on_change: Callable[[], Any]) -> None:
        """Apply ``text`` and call ``on_change`` once typing pauses."""

        def _apply() -> Any:
            self.set_search(text)
            return on_change()

        self._debouncer.call(_apply)

    def set_filter(self, status_filter: str) -> None:
        self.query = replace(self.query, status_filter=status_filter or "all", page=1)

    def set_sort(self, sort_key: str) -> None:
        self.query = replace(self.query, sort_key=sort_key or DEFAULT_SORT, page=1)

    def set_page_size(self, page_size: Any) -> None:
        size = clamp_int(page_size, 1, sys.maxsize)
        self.query = replace(self.query, page_size=size, page=1)

    def set_page(self, page: Any) -> None:
        self.query = replace(self.query, page=clamp_int(page, 1, sys.maxsize))

    def next_page(self) -> None:
        self.set_page(self.query.page + 1)

    def previous_page(self) -> None:
        self.set_page(self.query.page - 1)

    def apply(self, collection: Sequence[T]) -> PagedResult[T]:
        result = filter_sort_page(collection, self.query)
        if result.page != self.query.page:
            logger.debug("Page %d out of range, showing page %d", self.query.page, result.page)
            self.query = replace(self.query, page=result.page)
        return result


class ValueCache:
    """Last seen value per entity, e.g. previous line values for transitions.

    Each ``update`` evicts entities missing from the latest collection.
    """

    def __init__(self, value: Callable[[Any], float] = lambda row: row.value) -> None:
        self._value = value
        self._values: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def get(self, key: str) -> float | None:
        return self._values.get(key)

    def update(self, rows: Iterable[Any]) -> dict[str, float | None]:
        """Store the latest values; returns each row's previous value."""
        previous: dict[str, float | None] = {}
        latest: dict[str, float] = {}
        for row in rows:
            key = str(row.identifier)
            previous[key] = self._values.get(key)
            latest[key] = self._value(row)
        self._values = latest
        return previous
