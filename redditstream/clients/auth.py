from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, runtime_checkable

import requests

from ..config import ClientConfig
from ..errors import AuthenticationError, DecodeError, TransportError


logger = logging.getLogger(__name__)

# Refresh tokens this many seconds before Reddit says they expire.
EXPIRY_MARGIN_SECONDS = 60


@dataclass(frozen=True)
class TokenResponse:
    """Body of a successful /api/v1/access_token call."""

    access_token: str
    expires_in: int
    scope: str
    token_type: str


@runtime_checkable
class Authenticator(Protocol):
    """
    Supplies request headers for the transport.

    `oauth` tells the transport which host to use: OAuth tokens only
    work against oauth.reddit.com, anonymous access only against
    www.reddit.com.
    """

    oauth: bool

    def headers(self, session: requests.Session) -> Dict[str, str]:
        ...

    def invalidate(self) -> None:
        ...


class AnonymousAuthenticator:
    """No credentials; read-only access to public endpoints."""

    oauth = False

    def headers(self, session: requests.Session) -> Dict[str, str]:
        return {}

    def invalidate(self) -> None:
        return None


class _OAuthAuthenticator:
    """
    Shared token handling for the OAuth grant types.

    Subclasses only provide the form body for the token request.
    """

    oauth = True

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        config: Optional[ClientConfig] = None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._cfg = config or ClientConfig()
        self._token: Optional[TokenResponse] = None
        self._expires_at = 0.0

    def _grant(self) -> Dict[str, str]:
        raise NotImplementedError

    def headers(self, session: requests.Session) -> Dict[str, str]:
        token = self._token
        if token is None or time.monotonic() >= self._expires_at:
            token = self._refresh(session)
        return {"Authorization": f"bearer {token.access_token}"}

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0

    def _refresh(self, session: requests.Session) -> TokenResponse:
        url = self._cfg.token_url
        try:
            resp = session.post(
                url,
                data=self._grant(),
                auth=(self._client_id, self._client_secret),
                timeout=self._cfg.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise TransportError(f"token request failed: {exc}", url=url) from exc

        if resp.status_code in {401, 403}:
            raise AuthenticationError(
                f"credentials rejected ({resp.status_code})",
                url=url,
                status_code=resp.status_code,
            )
        if resp.status_code != 200:
            raise TransportError(
                f"Unexpected status {resp.status_code} for {url}",
                url=url,
                status_code=resp.status_code,
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise DecodeError(f"token response is not valid JSON: {exc}") from exc

        # Reddit answers bad passwords with 200 + {"error": "invalid_grant"}
        if "error" in body:
            raise AuthenticationError(
                f"token endpoint returned error {body['error']!r}",
                url=url,
                status_code=resp.status_code,
            )

        try:
            token = TokenResponse(
                access_token=body["access_token"],
                expires_in=int(body["expires_in"]),
                scope=body.get("scope", ""),
                token_type=body.get("token_type", "bearer"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DecodeError(f"token response: {exc!r}") from exc

        self._token = token
        self._expires_at = time.monotonic() + max(token.expires_in - EXPIRY_MARGIN_SECONDS, 0)
        logger.info("Obtained access token (scope=%s, expires_in=%ss)", token.scope, token.expires_in)
        return token


class ApplicationOnlyAuthenticator(_OAuthAuthenticator):
    """client_credentials grant: app-level access, no user context."""

    def _grant(self) -> Dict[str, str]:
        return {"grant_type": "client_credentials"}


class PasswordAuthenticator(_OAuthAuthenticator):
    """password grant for script apps acting as a single user."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
        config: Optional[ClientConfig] = None,
    ) -> None:
        super().__init__(client_id, client_secret, config)
        self._username = username
        self._password = password

    def _grant(self) -> Dict[str, str]:
        return {
            "grant_type": "password",
            "username": self._username,
            "password": self._password,
        }
