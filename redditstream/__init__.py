from __future__ import annotations

"""
Reddit API client built around lazy listings and polling streams.
"""

from .actions import ThingActions
from .clients import RedditApiClient, RedditApiCredentials, Transport
from .config import AppConfig, get_config
from .decoder import Cursor, Page
from .errors import (
    APIError,
    AuthenticationError,
    DecodeError,
    RedditError,
    StreamCancelled,
    TransportError,
)
from .listing import Listing
from .models import Comment, FlairChoice, FlairList, Item, Message, Post, SubredditAbout, UserAbout
from .reddit import Inbox, LazySubmission, Reddit, Subreddit, User
from .stream import PollFailed, SeenSet, Stream

__all__ = [
    "APIError",
    "AppConfig",
    "AuthenticationError",
    "Comment",
    "Cursor",
    "DecodeError",
    "FlairChoice",
    "FlairList",
    "Inbox",
    "Item",
    "LazySubmission",
    "Listing",
    "Message",
    "Page",
    "PollFailed",
    "Post",
    "Reddit",
    "RedditApiClient",
    "RedditApiCredentials",
    "RedditError",
    "SeenSet",
    "Stream",
    "StreamCancelled",
    "Subreddit",
    "SubredditAbout",
    "ThingActions",
    "Transport",
    "TransportError",
    "User",
    "UserAbout",
    "get_config",
]
