from __future__ import annotations

"""
Client package for the Reddit HTTP API.

This package exposes:
- Transport: minimal protocol the listing/stream engines fetch through.
- RedditApiCredentials: helper for loading Reddit API credentials from env vars.
- RedditApiClient: requests-based Transport with OAuth and retry handling.
- Authenticators for anonymous, application-only and password access.
"""

from .auth import (
    AnonymousAuthenticator,
    ApplicationOnlyAuthenticator,
    Authenticator,
    PasswordAuthenticator,
    TokenResponse,
)
from .reddit_client import (
    RedditApiClient,
    RedditApiCredentials,
    Transport,
    authenticator_from_credentials,
)

__all__ = [
    "AnonymousAuthenticator",
    "ApplicationOnlyAuthenticator",
    "Authenticator",
    "PasswordAuthenticator",
    "RedditApiClient",
    "RedditApiCredentials",
    "TokenResponse",
    "Transport",
    "authenticator_from_credentials",
]
