"""Pytest configuration and shared fixtures."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from statehome.config.settings import HomeSettings
from statehome.credentials import CredentialResolver, EnvironmentBackend
from statehome.providers.cloudflare import CloudflareProvider

API_PREFIX = "/client/v4"

CLOUDFLARE_VARS = (
    "CLOUDFLARE_API_TOKEN",
    "CLOUDFLARE_API_KEY",
    "CLOUDFLARE_EMAIL",
    "CLOUDFLARE_DEFAULT_ACCOUNT_ID",
)


def _envelope(result: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        json={"success": True, "errors": [], "messages": [], "result": result},
    )


def _error(status_code: int, code: int, message: str) -> httpx.Response:
    return httpx.Response(
        status_code,
        json={"success": False, "errors": [{"code": code, "message": message}], "messages": [], "result": None},
    )


class FakeCloudflareAPI:
    """In-memory stand-in for the Cloudflare accounts and R2 endpoints.

    Several provider instances can share one fake to model separate
    processes talking to the same account.
    """

    def __init__(self, accounts: list[dict[str, str]] | None = None) -> None:
        self.accounts = accounts if accounts is not None else [{"id": "acc-123", "name": "Main"}]
        self.buckets: dict[str, set[str]] = {}
        self.objects: dict[tuple[str, str, str], bytes] = {}
        self.requests: list[httpx.Request] = []
        self._failures: list[tuple[str, str, httpx.Response]] = []
        self.on_request: Callable[[httpx.Request], None] | None = None

    def fail(self, method: str, path_suffix: str, response: httpx.Response) -> None:
        """Answer the next matching request with ``response``."""
        self._failures.append((method, path_suffix, response))

    def requests_for(self, method: str, path_suffix: str = "") -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.endswith(path_suffix)]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)

        path = request.url.path
        for index, (method, suffix, response) in enumerate(self._failures):
            if request.method == method and path.endswith(suffix):
                del self._failures[index]
                return response

        if not self._authenticated(request):
            return _error(400, 10000, "Authentication error")

        assert path.startswith(API_PREFIX), path
        parts = path[len(API_PREFIX) :].strip("/").split("/")

        if parts == ["accounts"] and request.method == "GET":
            return _envelope(self.accounts)

        if len(parts) >= 4 and parts[0] == "accounts" and parts[2:4] == ["r2", "buckets"]:
            account = parts[1]
            if len(parts) == 4:
                return self._buckets(request, account)
            if len(parts) >= 7 and parts[5] == "objects":
                return self._objects(request, account, parts[4], "/".join(parts[6:]))

        return _error(404, 7003, "Could not route to " + path)

    @staticmethod
    def _authenticated(request: httpx.Request) -> bool:
        auth = request.headers.get("Authorization", "")
        if auth.startswith("Bearer ") and len(auth) > len("Bearer "):
            return True
        return bool(request.headers.get("X-Auth-Key") and request.headers.get("X-Auth-Email"))

    def _buckets(self, request: httpx.Request, account: str) -> httpx.Response:
        names = self.buckets.setdefault(account, set())
        if request.method == "GET":
            needle = request.url.params.get("name_contains", "")
            found = [{"name": name, "creation_date": "2024-06-15T10:30:00.000Z"} for name in sorted(names) if needle in name]
            return _envelope({"buckets": found})
        if request.method == "POST":
            name = json.loads(request.content)["name"]
            if name in names:
                return _error(409, 10004, "The bucket you tried to create already exists, and you own it.")
            names.add(name)
            return _envelope({"name": name, "creation_date": "2024-06-15T10:30:00.000Z", "location": "ENAM"})
        return _error(405, 10000, "Method not allowed")

    def _objects(self, request: httpx.Request, account: str, bucket: str, key: str) -> httpx.Response:
        if bucket not in self.buckets.get(account, set()):
            return _error(404, 10006, "The specified bucket does not exist.")

        location = (account, bucket, key)
        if request.method == "PUT":
            self.objects[location] = request.content
            return _envelope({"key": key, "size": len(request.content)})
        if request.method == "GET":
            if location not in self.objects:
                return _error(404, 10007, "The specified key does not exist.")
            return httpx.Response(200, content=self.objects[location])
        if request.method == "DELETE":
            self.objects.pop(location, None)
            return _envelope({})
        return _error(405, 10000, "Method not allowed")


@pytest.fixture(autouse=True)
def clean_cloudflare_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real Cloudflare credentials in the developer's shell out of tests."""
    for var in CLOUDFLARE_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fake_api() -> FakeCloudflareAPI:
    """Fake Cloudflare API with one account."""
    return FakeCloudflareAPI()


@pytest.fixture
def settings() -> HomeSettings:
    """Default settings."""
    return HomeSettings()


@pytest.fixture
def make_provider(fake_api: FakeCloudflareAPI, settings: HomeSettings) -> Callable[..., CloudflareProvider]:
    """Build providers wired to the fake API and an explicit environment."""

    def factory(environ: dict[str, str] | None = None, api: FakeCloudflareAPI | None = None) -> CloudflareProvider:
        return CloudflareProvider(
            settings=settings,
            resolver=CredentialResolver(EnvironmentBackend(environ or {})),
            transport=(api or fake_api).transport(),
        )

    return factory


@pytest.fixture
def home(make_provider: Callable[..., CloudflareProvider]) -> CloudflareProvider:
    """Initialized and bootstrapped provider using token auth."""
    provider = make_provider({"CLOUDFLARE_API_TOKEN": "test-token"})
    provider.init()
    return provider.as_home()
