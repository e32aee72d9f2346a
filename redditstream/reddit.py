from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Mapping, Optional

from .actions import ThingActions
from .clients.reddit_client import RedditApiClient, RedditApiCredentials, Transport
from .config import AppConfig, get_config
from .decoder import (
    Decoder,
    decode_action,
    decode_comment_tree,
    decode_flair_choices,
    decode_listing,
    decode_thing,
)
from .errors import DecodeError
from .listing import Listing
from .models import FlairList, Item, Post, SubredditAbout, UserAbout
from .stream import ErrorHandler, Stream


logger = logging.getLogger(__name__)

TimeFilter = Literal["hour", "day", "week", "month", "year", "all"]
FrontPageSort = Literal["best", "hot", "new", "rising", "top", "controversial"]


class Reddit:
    """
    Entry point: hands out handles for subreddits, users and the inbox.

    Usage:
        reddit = Reddit()  # anonymous, read-only
        for post in reddit.subreddit("python").new().take(10):
            print(post.title)

        for comment in reddit.subreddit("python").stream_comments():
            print(comment.body)
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        credentials: Optional[RedditApiCredentials] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self.config = config or get_config()
        self.transport: Transport = transport or RedditApiClient.from_credentials(
            credentials, config=self.config.client
        )

    @classmethod
    def from_env(cls, config: Optional[AppConfig] = None) -> "Reddit":
        """
        Authenticate with REDDIT_* environment variables when they are
        set, anonymously otherwise.
        """
        credentials = RedditApiCredentials.from_env()
        if credentials is None:
            logger.info("No Reddit API credentials in environment; using anonymous access")
        return cls(credentials=credentials, config=config)

    # -------------------------------------------------------------------------
    # Handles
    # -------------------------------------------------------------------------

    def subreddit(self, name: str) -> "Subreddit":
        return Subreddit(self, name)

    def user(self, name: str) -> "User":
        return User(self, name)

    def inbox(self) -> "Inbox":
        return Inbox(self)

    def submission(self, post_id: str) -> "LazySubmission":
        return LazySubmission(self, post_id)

    def thing(self, fullname: str) -> ThingActions:
        return ThingActions(self.transport, fullname)

    def front_page(self, sort: FrontPageSort = "hot", limit: Optional[int] = None) -> Listing:
        return self.listing(f"/{sort}", limit=limit)

    def by_id(self, *fullnames: str) -> Listing:
        if not fullnames:
            raise ValueError("by_id needs at least one fullname")
        return self.listing("/by_id/" + ",".join(fullnames))

    # -------------------------------------------------------------------------
    # Engine factories
    # -------------------------------------------------------------------------

    def listing(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        decoder: Decoder = decode_listing,
    ) -> Listing:
        if limit is None:
            limit = self.config.listing.page_limit
        return Listing(self.transport, path, params=params, limit=limit, decoder=decoder)

    def stream(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        decoder: Decoder = decode_listing,
        interval: Optional[float] = None,
        skip_existing: Optional[bool] = None,
        on_error: Optional[ErrorHandler] = None,
    ) -> Stream:
        """
        Poll the newest page of `path`. Unset options fall back to
        the stream section of the config.
        """
        cfg = self.config.stream
        poll_limit = cfg.poll_limit

        def query() -> List[Item]:
            listing = Listing(self.transport, path, params=params, limit=poll_limit, decoder=decoder)
            return list(listing.take(poll_limit))

        return Stream(
            query,
            interval=cfg.poll_interval_seconds if interval is None else interval,
            skip_existing=cfg.skip_existing if skip_existing is None else skip_existing,
            seen_limit=cfg.seen_limit,
            on_error=on_error,
        )


class Subreddit:
    def __init__(self, reddit: Reddit, name: str) -> None:
        self._reddit = reddit
        self.name = name

    def __repr__(self) -> str:
        return f"Subreddit({self.name!r})"

    @property
    def _base(self) -> str:
        return f"/r/{self.name}"

    def hot(self, limit: Optional[int] = None) -> Listing:
        return self._reddit.listing(f"{self._base}/hot", limit=limit)

    def new(self, limit: Optional[int] = None) -> Listing:
        return self._reddit.listing(f"{self._base}/new", limit=limit)

    def rising(self, limit: Optional[int] = None) -> Listing:
        return self._reddit.listing(f"{self._base}/rising", limit=limit)

    def top(self, time_filter: TimeFilter = "day", limit: Optional[int] = None) -> Listing:
        return self._reddit.listing(f"{self._base}/top", {"t": time_filter}, limit=limit)

    def controversial(self, time_filter: TimeFilter = "day", limit: Optional[int] = None) -> Listing:
        return self._reddit.listing(f"{self._base}/controversial", {"t": time_filter}, limit=limit)

    def comments(self, limit: Optional[int] = None) -> Listing:
        """Newest comments across the whole subreddit."""
        return self._reddit.listing(f"{self._base}/comments", limit=limit)

    def about(self) -> SubredditAbout:
        raw = self._reddit.transport.fetch(f"{self._base}/about")
        return decode_thing(raw, SubredditAbout)

    def submit(self, title: str, text: Optional[str] = None, url: Optional[str] = None) -> "LazySubmission":
        """
        Create a self post (text) or link post (url); exactly one of
        the two must be given.
        """
        if (text is None) == (url is None):
            raise ValueError("submit needs exactly one of text or url")

        form: Dict[str, Any] = {"api_type": "json", "sr": self.name, "title": title}
        if url is not None:
            form.update(kind="link", url=url)
        else:
            form.update(kind="self", text=text)

        data = decode_action(self._reddit.transport.post("/api/submit", form))
        fullname = data.get("name")
        if not fullname:
            raise DecodeError("submit: response did not include the new post's name")
        logger.info("Submitted %s to r/%s", fullname, self.name)
        return LazySubmission(self._reddit, fullname)

    def stream_submissions(self, **options: Any) -> Stream:
        return self._reddit.stream(f"{self._base}/new", **options)

    def stream_comments(self, **options: Any) -> Stream:
        return self._reddit.stream(f"{self._base}/comments", **options)


class User:
    def __init__(self, reddit: Reddit, name: str) -> None:
        self._reddit = reddit
        self.name = name

    def __repr__(self) -> str:
        return f"User({self.name!r})"

    @property
    def _base(self) -> str:
        return f"/user/{self.name}"

    def about(self) -> UserAbout:
        raw = self._reddit.transport.fetch(f"{self._base}/about")
        return decode_thing(raw, UserAbout)

    def flair_options(self, subreddit: str) -> FlairList:
        """
        User flair templates for this user in `subreddit`. Needs
        moderator rights unless the subreddit lets users pick their own.
        """
        raw = self._reddit.transport.post(f"/r/{subreddit}/api/flairselector", {"user": self.name})
        return decode_flair_choices(raw)

    def flair(self, subreddit: str, template: str) -> None:
        form = {"api_type": "json", "user": self.name, "flair_template_id": template}
        decode_action(self._reddit.transport.post(f"/r/{subreddit}/api/selectflair", form))

    def submissions(self, limit: Optional[int] = None) -> Listing:
        return self._reddit.listing(f"{self._base}/submitted", limit=limit)

    def comments(self, limit: Optional[int] = None) -> Listing:
        return self._reddit.listing(f"{self._base}/comments", limit=limit)

    def overview(self, limit: Optional[int] = None) -> Listing:
        """Posts and comments interleaved, newest first."""
        return self._reddit.listing(f"{self._base}/overview", limit=limit)

    def stream_submissions(self, **options: Any) -> Stream:
        return self._reddit.stream(f"{self._base}/submitted", {"sort": "new"}, **options)

    def stream_comments(self, **options: Any) -> Stream:
        return self._reddit.stream(f"{self._base}/comments", {"sort": "new"}, **options)


class Inbox:
    """Private messages and comment replies of the authenticated user."""

    def __init__(self, reddit: Reddit) -> None:
        self._reddit = reddit

    def all(self, limit: Optional[int] = None) -> Listing:
        return self._reddit.listing("/message/inbox", limit=limit)

    def unread(self, limit: Optional[int] = None) -> Listing:
        return self._reddit.listing("/message/unread", limit=limit)

    def sent(self, limit: Optional[int] = None) -> Listing:
        return self._reddit.listing("/message/sent", limit=limit)

    def mark_read(self, *fullnames: str) -> None:
        if not fullnames:
            return
        decode_action(self._reddit.transport.post("/api/read_message", {"id": ",".join(fullnames)}))

    def compose(self, to: str, subject: str, text: str) -> None:
        form = {"api_type": "json", "to": to, "subject": subject, "text": text}
        decode_action(self._reddit.transport.post("/api/compose", form))

    def stream(self, **options: Any) -> Stream:
        return self._reddit.stream("/message/unread", **options)


class LazySubmission:
    """
    A post known only by id. Nothing is fetched until `get()`,
    `comments()` or `reply_stream()` is called.
    """

    def __init__(self, reddit: Reddit, post_id: str) -> None:
        self._reddit = reddit
        # accept both "abc123" and "t3_abc123"
        self.id = post_id.split("_", 1)[1] if post_id.startswith("t3_") else post_id

    def __repr__(self) -> str:
        return f"LazySubmission({self.id!r})"

    @property
    def fullname(self) -> str:
        return f"t3_{self.id}"

    def get(self) -> Post:
        page = decode_listing(self._reddit.transport.fetch(f"/by_id/{self.fullname}"))
        for item in page.items:
            if isinstance(item, Post):
                return item
        raise DecodeError(f"by_id returned no post for {self.fullname}")

    def comments(self, sort: str = "confidence") -> Listing:
        """The full comment tree, flattened depth-first."""
        return self._reddit.listing(f"/comments/{self.id}", {"sort": sort}, decoder=decode_comment_tree)

    def reply_stream(self, **options: Any) -> Stream:
        return self._reddit.stream(
            f"/comments/{self.id}",
            {"sort": "new"},
            decoder=decode_comment_tree,
            **options,
        )

    def actions(self) -> ThingActions:
        return ThingActions(self._reddit.transport, self.fullname)
