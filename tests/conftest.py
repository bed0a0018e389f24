"""Shared fixtures: a clean environment, an in-memory registry and a fake GitHub API."""

from __future__ import annotations

from collections import defaultdict
from urllib.parse import unquote

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from package_stats.domain.entities import PackageDetail, PackageSummary, PackageType
from package_stats.domain.exceptions import PackageNotFoundError, RegistryAccessDeniedError
from package_stats.domain.value_objects import Organization
from package_stats.infrastructure.config import get_settings

_ENV_VARS = (
    "INPUT_ORG",
    "GITHUB_ORG",
    "INPUT_MODE",
    "PACKAGE_STATS_MODE",
    "INPUT_TOKEN",
    "GITHUB_TOKEN",
    "INPUT_APP-ID",
    "INPUT_APP_ID",
    "GITHUB_APP_ID",
    "INPUT_PRIVATE-KEY",
    "INPUT_PRIVATE_KEY",
    "GITHUB_APP_PRIVATE_KEY",
    "INPUT_INSTALLATION-ID",
    "INPUT_INSTALLATION_ID",
    "GITHUB_APP_INSTALLATION_ID",
    "GITHUB_API_URL",
    "GITHUB_OUTPUT",
    "PACKAGE_STATS_OUTPUT_DIR",
    "PACKAGE_STATS_MAX_RETRIES",
    "PACKAGE_STATS_RETRY_AFTER",
    "PACKAGE_STATS_PER_PAGE",
    "PACKAGE_STATS_REQUEST_TIMEOUT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Run every test in an empty directory with no inherited configuration."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ── In-memory registry ──────────────────────────────────────────────────────


class FakeRegistry:
    """PackageRegistry double with scripted listing / detail failures."""

    def __init__(self) -> None:
        self.packages: dict[PackageType, list[PackageDetail]] = defaultdict(list)
        self.failing_types: set[PackageType] = set()
        self.failing_packages: set[str] = set()
        self.calls: list[tuple[str, PackageType, str | None]] = []

    def add(
        self,
        package_type: PackageType,
        name: str,
        version_count: int = 0,
        repository: str | None = None,
    ) -> None:
        self.packages[package_type].append(
            PackageDetail(
                name=name,
                package_type=package_type,
                version_count=version_count,
                repository=repository,
            )
        )

    async def list_packages(
        self, org: Organization, package_type: PackageType
    ) -> list[PackageSummary]:
        self.calls.append(("list", package_type, None))
        if package_type in self.failing_types:
            raise RegistryAccessDeniedError(f"no access to {package_type.value}")
        return [
            PackageSummary(name=d.name, package_type=package_type)
            for d in self.packages[package_type]
        ]

    async def get_package(
        self, org: Organization, package_type: PackageType, name: str
    ) -> PackageDetail:
        self.calls.append(("detail", package_type, name))
        if name in self.failing_packages:
            raise PackageNotFoundError(f"package {name} was deleted")
        for detail in self.packages[package_type]:
            if detail.name == name:
                return detail
        raise PackageNotFoundError(f"package {name} not found")


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


# ── Fake GitHub REST API ────────────────────────────────────────────────────


_Canned = tuple[int, object, dict[str, str]]


class FakeGitHubAPI:
    """Serves the package endpoints from memory through ``httpx.MockTransport``.

    Responses queued with :meth:`queue` for a route are returned (in order)
    before the normal answer.
    """

    installation_token = "ghs_installation"

    def __init__(self) -> None:
        self.packages: dict[str, list[dict]] = defaultdict(list)
        self.queued: dict[tuple[str, ...], list[_Canned]] = defaultdict(list)
        self.requests: list[httpx.Request] = []
        self.token_status = 201

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def add_package(
        self,
        package_type: str,
        name: str,
        version_count: int | None = 0,
        repository: str | None = None,
    ) -> None:
        payload: dict = {"name": name, "package_type": package_type}
        if version_count is not None:
            payload["version_count"] = version_count
        if repository is not None:
            payload["repository"] = {"full_name": repository, "name": repository.split("/")[-1]}
        self.packages[package_type].append(payload)

    def queue(
        self,
        route: tuple[str, ...],
        status_code: int,
        json: object = None,
        headers: dict[str, str] | None = None,
        times: int = 1,
    ) -> None:
        self.queued[route].extend([(status_code, json, headers or {})] * times)

    def paths(self) -> list[str]:
        return [r.url.raw_path.decode().split("?")[0] for r in self.requests]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        raw_path = request.url.raw_path.decode().split("?")[0]
        segments = [unquote(s) for s in raw_path.strip("/").split("/")]

        if request.method == "POST" and segments[-1] == "access_tokens":
            if self.token_status != 201:
                return httpx.Response(self.token_status, json={"message": "Bad credentials"})
            return httpx.Response(
                201,
                json={"token": self.installation_token, "expires_at": "2099-01-01T00:00:00Z"},
            )

        if segments[:1] != ["orgs"] or len(segments) < 3 or segments[2] != "packages":
            return httpx.Response(404, json={"message": "Not Found"})

        if len(segments) == 3:
            package_type = request.url.params["package_type"]
            route: tuple[str, ...] = ("list", package_type)
            if self.queued[route]:
                return self._queued_response(route)
            return self._page(request, self.packages[package_type])

        package_type, name = segments[3], "/".join(segments[4:])
        route = ("detail", package_type, name)
        if self.queued[route]:
            return self._queued_response(route)
        for payload in self.packages[package_type]:
            if payload["name"] == name:
                return httpx.Response(200, json=payload)
        return httpx.Response(404, json={"message": "Package not found."})

    def _queued_response(self, route: tuple[str, ...]) -> httpx.Response:
        status_code, payload, headers = self.queued[route].pop(0)
        return httpx.Response(status_code, json=payload, headers=headers)

    def _page(self, request: httpx.Request, items: list[dict]) -> httpx.Response:
        per_page = int(request.url.params.get("per_page", "30"))
        page = int(request.url.params.get("page", "1"))
        start = (page - 1) * per_page
        chunk = [
            {"name": p["name"], "package_type": p["package_type"]}
            for p in items[start : start + per_page]
        ]
        headers = {}
        if start + per_page < len(items):
            next_url = request.url.copy_set_param("page", str(page + 1))
            headers["Link"] = f'<{next_url}>; rel="next"'
        return httpx.Response(200, json=chunk, headers=headers)


@pytest.fixture
def github_api() -> FakeGitHubAPI:
    return FakeGitHubAPI()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]):
    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep


# ── GitHub App key ──────────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
