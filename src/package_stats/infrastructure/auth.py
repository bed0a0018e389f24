"""Authentication — builds the authenticated httpx client for a run.

Two interchangeable :class:`ClientAuthenticator` implementations exist: a
static personal access token, and GitHub App credentials exchanged for an
installation token.  :func:`authenticator_from_settings` picks one before any
network call is made.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator, Callable, Generator
from datetime import datetime
from typing import Protocol

import httpx
import jwt

from package_stats.domain.exceptions import AuthenticationError, MissingCredentialsError
from package_stats.infrastructure.config import Settings

logger = logging.getLogger(__name__)

USER_AGENT = "package-stats/1.0"
_API_VERSION = "2022-11-28"
_JWT_BACKDATE_S = 60
_JWT_LIFETIME_S = 9 * 60
_REFRESH_MARGIN_S = 60


def _default_headers() -> dict[str, str]:
    return {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": _API_VERSION,
        "User-Agent": USER_AGENT,
    }


def _client_kwargs(
    settings: Settings, transport: httpx.AsyncBaseTransport | None
) -> dict[str, object]:
    return {
        "base_url": settings.api_url.rstrip("/"),
        "headers": _default_headers(),
        "timeout": httpx.Timeout(settings.request_timeout),
        "transport": transport,
    }


class ClientAuthenticator(Protocol):
    """Produces an httpx client that is authenticated against the GitHub API.

    The returned client may already have sent requests, so callers release it
    with ``await client.aclose()`` rather than entering it with ``async with``.
    """

    async def create_client(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> httpx.AsyncClient:
        ...


# ── Personal access token ───────────────────────────────────────────────────


class TokenAuthenticator:
    """Authenticate every request with a static bearer token."""

    def __init__(self, token: str) -> None:
        self._token = token

    async def create_client(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> httpx.AsyncClient:
        logger.info("Authenticating with Personal Access Token")
        client = httpx.AsyncClient(**_client_kwargs(settings, transport))
        client.headers["Authorization"] = f"Bearer {self._token}"
        return client


# ── GitHub App installation ─────────────────────────────────────────────────


class InstallationTokenAuth(httpx.Auth):
    """httpx auth flow that attaches a GitHub App installation token.

    The token is obtained by signing a short-lived RS256 JWT with the app's
    private key and posting it to
    ``/app/installations/{installation_id}/access_tokens``.  It is exchanged
    again shortly before it expires.
    """

    requires_response_body = True

    def __init__(
        self,
        app_id: str,
        private_key: str,
        installation_id: str,
        api_url: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._app_id = app_id
        self._private_key = private_key.replace("\\n", "\n")
        self._installation_id = installation_id
        self._api_url = api_url.rstrip("/")
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0

    @property
    def needs_refresh(self) -> bool:
        return self._token is None or self._clock() >= self._expires_at - _REFRESH_MARGIN_S

    def app_jwt(self) -> str:
        """Return a JWT identifying the app itself."""
        now = int(self._clock())
        payload = {
            "iat": now - _JWT_BACKDATE_S,
            "exp": now + _JWT_LIFETIME_S,
            "iss": str(self._app_id),
        }
        try:
            return jwt.encode(payload, self._private_key, algorithm="RS256")
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            raise AuthenticationError(f"Could not sign GitHub App JWT: {exc}") from exc

    def build_token_request(self) -> httpx.Request:
        headers = _default_headers()
        headers["Authorization"] = f"Bearer {self.app_jwt()}"
        return httpx.Request(
            "POST",
            f"{self._api_url}/app/installations/{self._installation_id}/access_tokens",
            headers=headers,
        )

    def update_token(self, response: httpx.Response) -> None:
        """Store the token from an access-token response."""
        if response.status_code != 201:
            raise AuthenticationError(
                f"GitHub App token exchange failed with HTTP {response.status_code} "
                f"for installation {self._installation_id}"
            )
        try:
            data = response.json()
            token = data["token"]
            expires_at = datetime.fromisoformat(data["expires_at"].replace("Z", "+00:00"))
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise AuthenticationError(
                "GitHub App token exchange returned an unexpected payload"
            ) from exc
        self._token = token
        self._expires_at = expires_at.timestamp()

    async def refresh(self, client: httpx.AsyncClient) -> None:
        """Exchange the app JWT for a new installation token via *client*."""
        try:
            response = await client.send(self.build_token_request(), auth=None)
        except httpx.HTTPError as exc:
            raise AuthenticationError(
                f"Network error during GitHub App token exchange: {exc}"
            ) from exc
        self.update_token(response)

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        if self.needs_refresh:
            response = yield self.build_token_request()
            self.update_token(response)
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request

    def sync_auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("InstallationTokenAuth only supports httpx.AsyncClient")


class AppInstallationAuthenticator:
    """Authenticate as a GitHub App installation."""

    def __init__(self, app_id: str, private_key: str, installation_id: str) -> None:
        self._app_id = app_id
        self._private_key = private_key
        self._installation_id = installation_id

    async def create_client(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> httpx.AsyncClient:
        logger.info("Authenticating with GitHub App")
        auth = InstallationTokenAuth(
            app_id=self._app_id,
            private_key=self._private_key,
            installation_id=self._installation_id,
            api_url=settings.api_url,
        )
        client = httpx.AsyncClient(auth=auth, **_client_kwargs(settings, transport))
        try:
            # fail the run on bad app credentials before any package request
            await auth.refresh(client)
        except AuthenticationError:
            await client.aclose()
            raise
        return client


# ── Selection ───────────────────────────────────────────────────────────────


def authenticator_from_settings(settings: Settings) -> ClientAuthenticator:
    """Pick the authenticator for the configured credentials.

    Raises
    ------
    MissingCredentialsError
        If there is no token and the GitHub App credentials are absent or
        incomplete.
    """
    if settings.token is not None:
        return TokenAuthenticator(settings.token.get_secret_value())

    app_parts = {
        "app-id": settings.app_id,
        "private-key": settings.private_key,
        "installation-id": settings.installation_id,
    }
    missing = [name for name, value in app_parts.items() if not value]
    if not missing:
        assert settings.app_id and settings.private_key and settings.installation_id
        return AppInstallationAuthenticator(
            app_id=settings.app_id,
            private_key=settings.private_key.get_secret_value(),
            installation_id=settings.installation_id,
        )
    if len(missing) < len(app_parts):
        raise MissingCredentialsError(
            f"Incomplete GitHub App credentials: missing {', '.join(missing)}. "
            "Provide app-id, private-key and installation-id, or a token."
        )
    raise MissingCredentialsError(
        "Authentication is required. Please provide either a Personal Access Token "
        "(token) or GitHub App credentials (app-id, private-key, and installation-id)."
    )
