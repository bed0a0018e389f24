"""GitHub Packages REST API adapter — implements the PackageRegistry port."""

from __future__ import annotations

import asyncio
import logging
import time
from urllib.parse import quote

import httpx

from package_stats.domain.entities import PackageDetail, PackageSummary, PackageType
from package_stats.domain.exceptions import (
    AuthenticationError,
    GitHubRateLimitError,
    MalformedResponseError,
    PackageNotFoundError,
    RegistryAccessDeniedError,
    RegistryError,
    SecondaryRateLimitError,
    TransientRegistryError,
)
from package_stats.domain.value_objects import Organization
from package_stats.infrastructure.retry import RetryPolicy, Sleep

logger = logging.getLogger(__name__)


class GitHubPackagesAdapter:
    """Concrete PackageRegistry backed by the GitHub v3 REST API.

    The client is expected to be authenticated and to have the API root as
    its ``base_url``.  Every request goes through the retry policy; each page
    of a listing is retried on its own.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        retry_policy: RetryPolicy | None = None,
        per_page: int = 100,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._retry_policy = retry_policy or RetryPolicy()
        self._per_page = per_page
        self._sleep = sleep

    async def list_packages(
        self, org: Organization, package_type: PackageType
    ) -> list[PackageSummary]:
        """GET /orgs/{org}/packages?package_type=… → [PackageSummary], all pages."""
        endpoint: str | None = f"/orgs/{quote(org.login)}/packages"
        params: dict[str, str] | None = {
            "package_type": package_type.value,
            "per_page": str(self._per_page),
        }
        packages: list[PackageSummary] = []

        while endpoint:
            resp = await self._api_get(endpoint, params=params)
            data = _json(resp)
            if not isinstance(data, list):
                raise MalformedResponseError(
                    f"Expected a list of packages from {resp.request.url}"
                )
            for item in data:
                if not isinstance(item, dict) or not item.get("name"):
                    raise MalformedResponseError(
                        f"Package entry without a name from {resp.request.url}"
                    )
                packages.append(PackageSummary(name=item["name"], package_type=package_type))
            logger.debug(
                "Fetched %d %s packages from %s", len(data), package_type.value, resp.request.url
            )

            # the next link already carries the query string
            endpoint = resp.links.get("next", {}).get("url")
            params = None

        return packages

    async def get_package(
        self, org: Organization, package_type: PackageType, name: str
    ) -> PackageDetail:
        """GET /orgs/{org}/packages/{type}/{name} → PackageDetail."""
        resp = await self._api_get(
            f"/orgs/{quote(org.login)}/packages/{package_type.value}/{quote(name, safe='')}"
        )
        data = _json(resp)
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected a package object for {name}")

        try:
            version_count = int(data.get("version_count") or 0)
        except (TypeError, ValueError) as exc:
            raise MalformedResponseError(
                f"Invalid version_count for {name}: {data.get('version_count')!r}"
            ) from exc

        repository = data.get("repository")
        full_name = repository.get("full_name") if isinstance(repository, dict) else None

        return PackageDetail(
            name=data.get("name") or name,
            package_type=package_type,
            version_count=max(version_count, 0),
            repository=full_name or None,
        )

    async def _api_get(
        self,
        endpoint: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """GitHub API GET with retries and error translation."""
        retrying = self._retry_policy.retrying(sleep=self._sleep)
        return await retrying(self._get_once, endpoint, params)

    async def _get_once(
        self,
        endpoint: str,
        params: dict[str, str] | None,
    ) -> httpx.Response:
        try:
            resp = await self._client.get(endpoint, params=params)
        except httpx.HTTPError as exc:
            raise TransientRegistryError(f"Network error fetching {endpoint}: {exc}") from exc
        except AuthenticationError as exc:
            raise RegistryAccessDeniedError(str(exc)) from exc

        if resp.status_code == 200:
            return resp

        url = resp.request.url
        if resp.status_code == 404:
            raise PackageNotFoundError(f"Not found: {url}")

        if resp.status_code in (403, 429):
            _raise_for_rate_limit(resp)

        if resp.status_code in (401, 403):
            raise RegistryAccessDeniedError(
                f"Access denied ({resp.status_code}) for {url}: {_error_message(resp)}"
            )

        if resp.status_code >= 500:
            raise TransientRegistryError(f"GitHub API returned HTTP {resp.status_code} for {url}")

        raise RegistryError(
            f"GitHub API returned HTTP {resp.status_code} for {url}: {_error_message(resp)}"
        )


def _raise_for_rate_limit(resp: httpx.Response) -> None:
    """Raise the matching rate-limit error if *resp* is rate limited."""
    retry_after = _seconds(resp.headers.get("retry-after"))

    if resp.headers.get("x-ratelimit-remaining") == "0":
        if retry_after is None:
            reset = _seconds(resp.headers.get("x-ratelimit-reset"))
            if reset is not None:
                retry_after = max(0.0, reset - time.time())
        raise GitHubRateLimitError(
            f"Request quota exhausted for request GET {resp.request.url}",
            retry_after=retry_after,
        )

    message = _error_message(resp)
    if "secondary rate limit" in message.lower():
        raise SecondaryRateLimitError(
            f"Secondary rate limit detected for request GET {resp.request.url}",
            retry_after=retry_after,
        )

    if resp.status_code == 429:
        raise GitHubRateLimitError(
            f"GitHub API rate limit exceeded (HTTP 429) for {resp.request.url}",
            retry_after=retry_after,
        )


def _json(resp: httpx.Response) -> object:
    try:
        return resp.json()
    except ValueError as exc:
        raise MalformedResponseError(f"Invalid JSON from {resp.request.url}") from exc


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return resp.text[:200]


def _seconds(raw: str | None) -> float | None:
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None
