from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Union

from .errors import RedditError, StreamCancelled
from .models import Item, item_key


logger = logging.getLogger(__name__)

# One poll's worth of items, in API order. Usually a fresh Listing.
Query = Callable[[], Iterable[Item]]
ErrorHandler = Callable[["PollFailed"], None]


@dataclass(frozen=True)
class PollFailed:
    """A poll that raised; the stream carries on with the next tick."""

    tick: int
    error: RedditError


StreamEvent = Union[Item, PollFailed]


class SeenSet:
    """
    Identifiers a stream has already recorded.

    limit=None keeps everything for the lifetime of the stream. With a
    limit, the oldest identifiers are evicted first, so an item that
    drops out of the window and later reappears upstream is emitted again.
    """

    def __init__(self, limit: Optional[int] = None) -> None:
        if limit is not None and limit <= 0:
            raise ValueError("limit must be positive or None")
        self._limit = limit
        self._keys: "OrderedDict[str, None]" = OrderedDict()

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def add(self, key: str) -> None:
        if key in self._keys:
            self._keys.move_to_end(key)
            return
        self._keys[key] = None
        if self._limit is not None and len(self._keys) > self._limit:
            self._keys.popitem(last=False)


class Stream:
    """
    Polls a query forever and yields only items it has not seen before.

    Each tick runs `query()`, drops items whose fullname is already in
    the seen set and yields the rest in the order the API returned them.
    With skip_existing, the first successful poll only seeds the seen
    set. Failed polls are reported and do not touch the seen set.

    `cancel()` may be called from another thread; it wakes a sleeping
    stream immediately. A fetch already in flight is allowed to finish.
    """

    def __init__(
        self,
        query: Query,
        interval: float = 5.0,
        skip_existing: bool = True,
        seen_limit: Optional[int] = None,
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        if interval < 0:
            raise ValueError("interval must be non-negative")

        self._query = query
        self._interval = interval
        self._skip_existing = skip_existing
        self._on_error = on_error or _log_poll_failure

        self._seen = SeenSet(seen_limit)
        self._cancelled = threading.Event()
        self._baseline_done = not skip_existing
        self._polls = 0

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def polls(self) -> int:
        """Number of polls issued so far, failed ones included."""
        return self._polls

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def seen(self) -> SeenSet:
        return self._seen

    def cancel(self) -> None:
        if not self._cancelled.is_set():
            logger.info("Stream cancelled after %d polls", self._polls)
        self._cancelled.set()

    def poll_once(self) -> List[Item]:
        """
        Run one poll and return the items not seen before.

        Fetch/decode errors propagate to the caller. Raises
        StreamCancelled if the stream has been cancelled.
        """
        if self.cancelled:
            raise StreamCancelled("stream was cancelled")

        self._polls += 1
        # Materialise the whole poll before touching the seen set.
        fetched = list(self._query())

        fresh: List[Item] = []
        for item in fetched:
            key = item_key(item)
            if key in self._seen:
                continue
            self._seen.add(key)
            fresh.append(item)

        if not self._baseline_done:
            self._baseline_done = True
            logger.debug("Baseline poll recorded %d existing items", len(fresh))
            return []

        logger.debug("Poll %d: %d fetched, %d new", self._polls, len(fetched), len(fresh))
        return fresh

    def events(self) -> Iterator[StreamEvent]:
        """
        Yield new items and PollFailed events until cancelled.
        """
        logger.info("Stream started (interval=%.1fs, skip_existing=%s)", self._interval, self._skip_existing)
        while not self.cancelled:
            try:
                batch = self.poll_once()
            except StreamCancelled:
                return
            except RedditError as exc:
                yield PollFailed(tick=self._polls, error=exc)
                batch = []

            for item in batch:
                if self.cancelled:
                    return
                yield item

            # Event.wait doubles as an interruptible sleep.
            if self._cancelled.wait(self._interval):
                return

    def __iter__(self) -> Iterator[Item]:
        for event in self.events():
            if isinstance(event, PollFailed):
                self._on_error(event)
                continue
            yield event


def _log_poll_failure(event: PollFailed) -> None:
    logger.warning("Poll %d failed: %s", event.tick, event.error)
