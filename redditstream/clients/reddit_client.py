from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from time import sleep
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import requests

from ..config import ClientConfig
from ..errors import TransportError
from .auth import (
    AnonymousAuthenticator,
    ApplicationOnlyAuthenticator,
    Authenticator,
    PasswordAuthenticator,
)


logger = logging.getLogger(__name__)

RETRY_STATUSES = {429, 500, 502, 503, 504}


@runtime_checkable
class Transport(Protocol):
    """
    Minimal HTTP abstraction the listing and stream engines depend on.

    Implementations return raw response bodies and raise
    `TransportError` on failure. Retrying is up to the implementation;
    the engines never retry on their own.
    """

    def fetch(self, path: str, params: Optional[Mapping[str, Any]] = None) -> bytes:
        """GET `path` (e.g. /r/python/new) with query parameters."""
        raise NotImplementedError

    def post(self, path: str, data: Optional[Mapping[str, Any]] = None) -> bytes:
        """POST a form body to `path` (e.g. /api/vote)."""
        raise NotImplementedError


@dataclass
class RedditApiCredentials:
    """
    Simple container for Reddit API credentials.

    username/password are only needed for the password grant
    (acting as a user: voting, replying, reading the inbox).
    """

    client_id: str
    client_secret: str
    user_agent: str
    username: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_env(cls) -> Optional["RedditApiCredentials"]:
        """
        Load credentials from environment variables.

        Expected variables:
        - REDDIT_CLIENT_ID
        - REDDIT_CLIENT_SECRET
        - REDDIT_USER_AGENT
        - REDDIT_USERNAME / REDDIT_PASSWORD (optional)

        Returns None if any required variable is missing.
        """
        client_id = os.getenv("REDDIT_CLIENT_ID")
        client_secret = os.getenv("REDDIT_CLIENT_SECRET")
        user_agent = os.getenv("REDDIT_USER_AGENT")

        if not (client_id and client_secret and user_agent):
            return None

        return cls(
            client_id=client_id,
            client_secret=client_secret,
            user_agent=user_agent,
            username=os.getenv("REDDIT_USERNAME") or None,
            password=os.getenv("REDDIT_PASSWORD") or None,
        )


def authenticator_from_credentials(
    credentials: Optional[RedditApiCredentials],
    config: Optional[ClientConfig] = None,
) -> Authenticator:
    """
    Pick the grant type that matches the available credentials.
    """
    if credentials is None:
        return AnonymousAuthenticator()
    if credentials.username and credentials.password:
        return PasswordAuthenticator(
            credentials.client_id,
            credentials.client_secret,
            credentials.username,
            credentials.password,
            config=config,
        )
    return ApplicationOnlyAuthenticator(
        credentials.client_id,
        credentials.client_secret,
        config=config,
    )


class RedditApiClient(Transport):
    """
    requests-based transport for the Reddit JSON API.

    Responsibilities:
    - Route requests to oauth.reddit.com (token) or www.reddit.com (anonymous).
    - Attach User-Agent and Authorization headers.
    - Retry 429 / 5xx / connection errors with exponential backoff.
    - Turn every other failure into a TransportError.
    """

    def __init__(
        self,
        authenticator: Optional[Authenticator] = None,
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self._cfg = config or ClientConfig()
        self._auth = authenticator or AnonymousAuthenticator()

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent or self._cfg.user_agent})

    @classmethod
    def from_credentials(
        cls,
        credentials: Optional[RedditApiCredentials],
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> "RedditApiClient":
        return cls(
            authenticator=authenticator_from_credentials(credentials, config),
            config=config,
            session=session,
            user_agent=credentials.user_agent if credentials else None,
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def fetch(self, path: str, params: Optional[Mapping[str, Any]] = None) -> bytes:
        query: Dict[str, Any] = {"raw_json": 1}
        if params:
            query.update({k: v for k, v in params.items() if v is not None})
        return self._request("GET", path, params=query)

    def post(self, path: str, data: Optional[Mapping[str, Any]] = None) -> bytes:
        return self._request("POST", path, data=dict(data or {}))

    # -------------------------------------------------------------------------
    # Internal: HTTP
    # -------------------------------------------------------------------------

    def _url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        if self._auth.oauth:
            return f"{self._cfg.oauth_base_url}{path}"
        return f"{self._cfg.public_base_url}{path.rstrip('/')}.json"

    def _request(self, method: str, path: str, **kwargs: Any) -> bytes:
        """
        Send with basic retry + timeout + status handling.

        Returns the response body on a 2xx, raises TransportError otherwise.
        """
        url = self._url(path)
        reauthenticated = False
        attempt = 0

        while True:
            headers = self._auth.headers(self._session)
            try:
                resp = self._session.request(
                    method,
                    url,
                    headers=headers,
                    timeout=self._cfg.timeout_seconds,
                    **kwargs,
                )
            except (requests.RequestException, OSError) as exc:
                last_exc = TransportError(f"{method} {url} failed: {exc}", url=url)
            else:
                if 200 <= resp.status_code < 300:
                    return resp.content

                if resp.status_code == 401 and self._auth.oauth and not reauthenticated:
                    # token revoked or expired early; fetch a new one once
                    logger.info("401 from %s, refreshing access token", url)
                    self._auth.invalidate()
                    reauthenticated = True
                    continue

                last_exc = TransportError(
                    f"Unexpected status {resp.status_code} for {url}",
                    url=url,
                    status_code=resp.status_code,
                )
                if resp.status_code not in RETRY_STATUSES:
                    raise last_exc

            if attempt >= self._cfg.max_retries:
                raise last_exc

            delay = self._cfg.retry_delay_seconds * (2**attempt)
            logger.warning("%s (attempt %d), retrying in %.1fs", last_exc, attempt + 1, delay)
            sleep(delay)
            attempt += 1
