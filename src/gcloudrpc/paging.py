"""Pagination of list RPCs.

A list RPC is wrapped as a page fetch, ``async def fetch(query) -> Page``.
The core is a lazy sequence of pages re-issuing the fetch with the returned
page token; three adapters consume it:

* ``fetch_once`` makes one fetch and hands back a query for the next page.
* ``fetch_all`` follows page tokens and returns every item.
* ``ItemStream`` yields items one at a time, fetching a page only when the
  consumer asks for more.
"""

from __future__ import annotations

import dataclasses
import enum
import functools
import logging
import types
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, NamedTuple, TypeVar

from typing_extensions import Self

from gcloudrpc._naming import camel_to_snake

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PagedQuery:
    """A query against a list RPC.

    Attributes:
        fields: Service-specific request fields, such as filters
        page_token: Opaque token of the page to fetch, passed back unmodified
        page_size: Maximum number of items per page, sent to the service
        auto_paginate: Follow page tokens until every item is fetched
        max_results: Stop after this many items
        max_api_calls: Stop after this many page fetches
    """

    fields: Mapping[str, Any] = field(default_factory=dict)
    page_token: str | None = None
    page_size: int | None = None
    auto_paginate: bool = True
    max_results: int | None = None
    max_api_calls: int | None = None

    @classmethod
    def from_mapping(cls, query: Mapping[str, Any] | None) -> PagedQuery:
        """Builds a query from a mapping with camelCase or snake_case keys.

        Keys that are not pagination options end up in ``fields``.
        """
        options: dict[str, Any] = {}
        fields: dict[str, Any] = {}
        names = {f.name for f in dataclasses.fields(cls)} - {"fields"}
        for key, value in (query or {}).items():
            name = camel_to_snake(key)
            if name in names:
                options[name] = value
            elif name != "auto_paginate_val":
                fields[key] = value
        return cls(fields=fields, **options)

    def with_page_token(self, page_token: str) -> PagedQuery:
        return dataclasses.replace(self, page_token=page_token)

    def to_wire_fields(self) -> dict[str, Any]:
        """The request fields for one page fetch, without adapter-only options."""
        fields = dict(self.fields)
        if self.page_token:
            fields["page_token"] = self.page_token
        if self.page_size is not None:
            fields["page_size"] = self.page_size
        return fields


class Page(NamedTuple, Generic[T]):
    items: list[T]
    next_query: PagedQuery | None
    response: Any = None

    @classmethod
    def from_response(
        cls,
        items: list[T] | str,
        query: PagedQuery,
        response: Any,
        token_field: str = "next_page_token",
    ) -> Page[T]:
        """Builds a page, carrying the response's next page token if any.

        ``items`` is either the list of items or the name of the response
        field holding them. A response that is not a mapping, such as the
        sandbox sentinel, gives an empty last page.
        """
        if not isinstance(response, Mapping):
            return cls([], None, response)
        if isinstance(items, str):
            items = list(response.get(items, []))
        token = response.get(token_field)
        next_query = query.with_page_token(token) if token else None
        return cls(items, next_query, response)


PageFetch = Callable[[PagedQuery], Awaitable[Page[T]]]


class PaginationMode(enum.Enum):
    SINGLE = enum.auto()
    """One page fetch, returning the page and a query for the next one."""

    ALL = enum.auto()
    """Every page fetched, returning all items."""

    STREAM = enum.auto()
    """Items yielded lazily, fetching pages on demand."""


async def iter_pages(fetch: PageFetch[T], query: PagedQuery) -> AsyncIterator[Page[T]]:
    """Yields pages until no page token is returned or ``max_api_calls`` is hit."""
    current: PagedQuery | None = query
    calls = 0
    while current is not None:
        if query.max_api_calls is not None and calls >= query.max_api_calls:
            return
        logger.debug("Fetching page %d", calls + 1)
        page = await fetch(current)
        calls += 1
        yield page
        current = page.next_query


async def iter_items(fetch: PageFetch[T], query: PagedQuery) -> AsyncIterator[T]:
    """Yields items across pages, stopping after ``max_results`` items."""
    if query.max_results is not None and query.max_results <= 0:
        return
    count = 0
    pages = iter_pages(fetch, query)
    try:
        async for page in pages:
            for item in page.items:
                yield item
                count += 1
                if query.max_results is not None and count >= query.max_results:
                    return
    finally:
        await pages.aclose()


async def fetch_once(fetch: PageFetch[T], query: PagedQuery) -> Page[T]:
    return await fetch(query)


async def fetch_all(fetch: PageFetch[T], query: PagedQuery) -> list[T]:
    return [item async for item in iter_items(fetch, query)]


class ItemStream(Generic[T]):
    """A lazy stream of items from a list RPC.

    Pages are fetched only as items are consumed. Use the stream as an async
    context manager or call ``end()`` when stopping early; once ended, no
    further page is fetched. An error from a page fetch ends the stream and
    is raised to the consumer, while items already yielded stay valid.
    """

    def __init__(self, fetch: PageFetch[T], query: PagedQuery) -> None:
        self._items = iter_items(fetch, query)
        self._ended = False
        self._fetching = False

    @property
    def ended(self) -> bool:
        return self._ended

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> T:
        if self._ended:
            raise StopAsyncIteration
        self._fetching = True
        try:
            item = await self._items.__anext__()
        except BaseException:
            self._fetching = False
            await self.end()
            raise
        self._fetching = False

        if self._ended:
            # Ended while this item was being fetched
            await self._items.aclose()
            raise StopAsyncIteration
        return item

    async def end(self) -> None:
        """End the stream. Pending results are discarded.

        A page fetch already in flight runs to completion, then its result is
        dropped and the stream is closed.
        """
        if self._ended:
            return
        self._ended = True
        if not self._fetching:
            await self._items.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self.end()


def paginate(
    fetch: PageFetch[T],
    query: PagedQuery | Mapping[str, Any] | None = None,
    mode: PaginationMode | None = None,
) -> Awaitable[Page[T]] | Awaitable[list[T]] | ItemStream[T]:
    """Consumes a list RPC in the given mode.

    Without a mode, the query's ``auto_paginate`` picks between ``ALL`` and
    ``SINGLE``. ``SINGLE`` and ``ALL`` return awaitables; ``STREAM`` returns
    an ItemStream directly.
    """
    if not isinstance(query, PagedQuery):
        query = PagedQuery.from_mapping(query)
    if mode is None:
        mode = PaginationMode.ALL if query.auto_paginate else PaginationMode.SINGLE

    match mode:
        case PaginationMode.SINGLE:
            return fetch_once(fetch, query)
        case PaginationMode.ALL:
            return fetch_all(fetch, query)
        case PaginationMode.STREAM:
            return ItemStream(fetch, query)


class BoundPaginatedMethod(Generic[T]):
    def __init__(self, fetch: PageFetch[T]) -> None:
        self._fetch = fetch
        functools.update_wrapper(self, fetch)

    def __call__(
        self, query: PagedQuery | Mapping[str, Any] | None = None
    ) -> Awaitable[Page[T]] | Awaitable[list[T]]:
        return paginate(self._fetch, query)  # type: ignore[return-value]

    def stream(self, query: PagedQuery | Mapping[str, Any] | None = None) -> ItemStream[T]:
        return paginate(self._fetch, query, PaginationMode.STREAM)  # type: ignore[return-value]


class paginated(Generic[T]):  # noqa: N801
    """Decorates a page-fetch method of a client.

    The decorated method takes a PagedQuery and returns a Page. Callers get:

        instances = await client.get_instances()
        page = await client.get_instances({"autoPaginate": False})
        async with client.get_instances.stream() as stream:
            async for instance in stream:
                ...
    """

    def __init__(self, func: Callable[[Any, PagedQuery], Awaitable[Page[T]]]) -> None:
        self._func = func
        functools.update_wrapper(self, func)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return BoundPaginatedMethod(functools.partial(self._func, instance))
