from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


# Hard upper bound Reddit applies to the `limit` query parameter.
MAX_PAGE_LIMIT = 100


# ---------- Transport configuration ----------


@dataclass
class ClientConfig:
    """
    Settings for talking to the Reddit HTTP API.
    """

    oauth_base_url: str = "https://oauth.reddit.com"
    public_base_url: str = "https://www.reddit.com"
    token_url: str = "https://www.reddit.com/api/v1/access_token"
    user_agent: str = "redditstream/0.1"
    timeout_seconds: float = 10.0  # HTTP timeout
    max_retries: int = 3  # retries for 429 / 5xx / connection errors
    retry_delay_seconds: float = 1.0  # base delay, doubled per attempt


# ---------- Listing configuration ----------


@dataclass
class ListingConfig:
    """
    Defaults applied when a listing is created without explicit options.
    """

    # None leaves the page size to the API (25 for most endpoints)
    page_limit: Optional[int] = None


# ---------- Stream configuration ----------


@dataclass
class StreamConfig:
    """
    Polling behaviour of streams.

    skip_existing:
        When True the first successful poll only records what is already
        there; the stream reports items that show up in later polls.
    seen_limit:
        None keeps every identifier for the lifetime of the stream.
        A positive value turns the seen set into an LRU of that size.
    """

    poll_interval_seconds: float = 5.0
    poll_limit: int = MAX_PAGE_LIMIT
    skip_existing: bool = True
    seen_limit: Optional[int] = None


# ---------- Top-level application configuration ----------


@dataclass
class AppConfig:
    client: ClientConfig = field(default_factory=ClientConfig)
    listing: ListingConfig = field(default_factory=ListingConfig)
    stream: StreamConfig = field(default_factory=StreamConfig)


def get_config() -> AppConfig:
    """
    Main entrypoint to get the full library config.

    Usage:
        from redditstream.config import get_config
        cfg = get_config()
        cfg.stream.poll_interval_seconds
    """
    return AppConfig()
