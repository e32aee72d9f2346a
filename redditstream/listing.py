from __future__ import annotations

import logging
from collections import deque
from itertools import islice
from typing import Any, Deque, Dict, Iterator, Mapping, Optional

from .clients.reddit_client import Transport
from .config import MAX_PAGE_LIMIT
from .decoder import Cursor, Decoder, decode_listing
from .models import Item


logger = logging.getLogger(__name__)


class Listing(Iterator[Item]):
    """
    Lazy, paginated view over one listing endpoint.

    Responsibilities:
    - Hold the unconsumed items of the current page plus the cursor
      for the next one.
    - Fetch exactly one page whenever the buffer runs dry, following
      the `after` chain strictly in order.
    - Stop for good once the API reports no further page.

    A failed fetch raises out of `__next__` without touching the
    cursor, so calling `next()` again repeats the same request.
    Restarting means building a new Listing.
    """

    def __init__(
        self,
        transport: Transport,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        cursor: Optional[Cursor] = None,
        decoder: Decoder = decode_listing,
    ) -> None:
        if limit is not None and not 1 <= limit <= MAX_PAGE_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_LIMIT}, got {limit}")

        self._transport = transport
        self._path = path
        self._params: Dict[str, Any] = dict(params or {})
        self._limit = limit
        self._decoder = decoder

        self._buffer: Deque[Item] = deque()
        self._cursor: Cursor = cursor or Cursor.start()
        self._has_more = True
        self._pages_fetched = 0

    def __repr__(self) -> str:
        return f"Listing(path={self._path!r}, cursor={self._cursor!r}, pages={self._pages_fetched})"

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def path(self) -> str:
        return self._path

    @property
    def cursor(self) -> Cursor:
        """Cursor the next fetch will send."""
        return self._cursor

    @property
    def pages_fetched(self) -> int:
        return self._pages_fetched

    @property
    def exhausted(self) -> bool:
        return not self._buffer and not self._has_more

    def __iter__(self) -> "Listing":
        return self

    def __next__(self) -> Item:
        while not self._buffer:
            if not self._has_more:
                raise StopIteration
            self._fetch_page()
        return self._buffer.popleft()

    def take(self, n: int) -> Iterator[Item]:
        """
        Yield at most `n` more items. Pages are still fetched whole,
        but no page is requested once `n` items have been produced.
        """
        if n < 0:
            raise ValueError("n must be non-negative")
        return islice(self, n)

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _request_params(self) -> Dict[str, Any]:
        params = dict(self._params)
        if self._limit is not None:
            params["limit"] = self._limit
        params.update(self._cursor.as_params())
        return params

    def _fetch_page(self) -> None:
        params = self._request_params()
        logger.debug("Fetching %s with %s", self._path, params)

        # Both calls may raise; state is only updated after a clean decode.
        raw = self._transport.fetch(self._path, params)
        page = self._decoder(raw)

        self._pages_fetched += 1
        self._buffer.extend(page.items)

        next_cursor = page.next_cursor
        if next_cursor is None:
            self._has_more = False
        else:
            self._cursor = next_cursor

        logger.debug(
            "Page %d of %s: %d items, after=%s",
            self._pages_fetched,
            self._path,
            len(page.items),
            page.after,
        )
