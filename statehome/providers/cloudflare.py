"""Cloudflare R2 state backend."""

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from statehome.config.settings import CloudflareCredentials, HomeSettings
from statehome.credentials import CredentialResolver
from statehome.enums import ProviderState
from statehome.exceptions import (
    AccountResolutionError,
    BackendRequestError,
    BootstrapError,
    BucketAlreadyExistsError,
    NotReadyError,
    ObjectNotFoundError,
    ProviderStateError,
    StateHomeError,
)
from statehome.models.domain import BlobAddress, BootstrapRecord
from statehome.providers.base import Home
from statehome.utils.api_client import CloudflareAPIClient

log = structlog.get_logger(__name__)


class CloudflareProvider(Home):
    """State backend storing blobs in a Cloudflare R2 bucket.

    Lifecycle: ``init`` resolves credentials and selects the account,
    ``as_home`` makes sure the state bucket exists. Blob and passphrase
    operations are only valid after ``as_home``. A failure in either step
    leaves the instance permanently unusable.

    Example:
        >>> provider = CloudflareProvider()
        >>> provider.init({"apiToken": "..."})
        >>> home = provider.as_home()
        >>> home.set_passphrase("my-app", "dev", "hunter2")
    """

    def __init__(
        self,
        settings: HomeSettings | None = None,
        resolver: CredentialResolver | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize provider.

        Args:
            settings: Backend settings (API URL, timeout, state bucket name)
            resolver: Credential resolver. Defaults to the process environment.
            transport: Optional httpx transport (used by tests)
        """
        self.settings = settings or HomeSettings()
        self._resolver = resolver or CredentialResolver()
        self._transport = transport
        self.state = ProviderState.UNINITIALIZED
        self._client: CloudflareAPIClient | None = None
        self._account_id: str | None = None
        self._env: dict[str, str] = {}
        self._bootstrap: BootstrapRecord | None = None

    @property
    def key(self) -> str:
        return "cloudflare"

    @property
    def account_id(self) -> str | None:
        """Account all requests are scoped to, once ``init`` has run."""
        return self._account_id

    @property
    def bootstrap(self) -> BootstrapRecord | None:
        """Bucket adopted by ``as_home``, or None before bootstrap."""
        return self._bootstrap

    def init(self, overrides: Mapping[str, Any] | None = None) -> None:
        """Resolve credentials and select the target account.

        Args:
            overrides: Provider configuration block; non-empty values win
                over the matching ``CLOUDFLARE_*`` environment variables

        Raises:
            ProviderStateError: If ``init`` already ran on this instance
            AuthConfigurationError: If no usable auth mode is configured
            AccountResolutionError: If no account can be selected
        """
        if self.state is not ProviderState.UNINITIALIZED:
            raise ProviderStateError(f"Provider cannot be initialized from state '{self.state}'")

        try:
            credentials = self._resolver.resolve(overrides)
            client = CloudflareAPIClient(
                credentials,
                base_url=self.settings.api_base_url,
                timeout=self.settings.request_timeout,
                transport=self._transport,
            )
            self._client = client
            account_id = self._select_account(client, credentials)
        except StateHomeError:
            self.state = ProviderState.FAILED
            raise

        self._account_id = account_id
        self._env = credentials.to_env(account_id)
        self.state = ProviderState.AUTHENTICATED
        log.info("cloudflare_account_selected", account=account_id, auth_mode=str(credentials.auth_mode))

    def _select_account(self, client: CloudflareAPIClient, credentials: CloudflareCredentials) -> str:
        if credentials.account_id:
            return credentials.account_id

        try:
            accounts = client.list_accounts()
        except BackendRequestError as e:
            raise AccountResolutionError(f"Failed to list Cloudflare accounts: {e.message}") from e

        if not accounts:
            raise AccountResolutionError(
                "No Cloudflare accounts are visible to these credentials; "
                "set CLOUDFLARE_DEFAULT_ACCOUNT_ID or check the token permissions"
            )
        return accounts[0].id

    def as_home(self) -> "CloudflareProvider":
        """Make sure the state bucket exists and return the ready backend.

        Runs the bootstrap at most once per instance; later calls return
        immediately without remote requests.

        Raises:
            NotReadyError: If ``init`` has not completed
            BootstrapError: If the bucket cannot be listed or created
        """
        if self._bootstrap is not None:
            return self

        if self.state is not ProviderState.AUTHENTICATED:
            raise NotReadyError(f"Provider must be initialized before bootstrap (state: '{self.state}')")

        try:
            self._bootstrap = self._ensure_bucket()
        except BootstrapError:
            self.state = ProviderState.FAILED
            raise

        self.state = ProviderState.BOOTSTRAPPED
        return self

    def _ensure_bucket(self) -> BootstrapRecord:
        assert self._client is not None and self._account_id is not None
        name = self.settings.state_bucket

        try:
            buckets = self._client.list_r2_buckets(self._account_id, name_contains=name)
        except BackendRequestError as e:
            raise BootstrapError(f"Failed to list R2 buckets: {e.message}") from e

        for bucket in buckets:
            if bucket.name == name:
                log.info("bucket_found", bucket=name)
                return BootstrapRecord(bucket=name)

        log.info("bucket_creating", bucket=name)
        try:
            self._client.create_r2_bucket(self._account_id, name)
        except BucketAlreadyExistsError:
            # another process won the first-run race
            log.info("bucket_created_concurrently", bucket=name)
            return BootstrapRecord(bucket=name)
        except BackendRequestError as e:
            raise BootstrapError(f"Failed to create R2 bucket {name}: {e.message}") from e

        return BootstrapRecord(bucket=name, created=True)

    def _object_path(self, kind: str, app: str, stage: str) -> str:
        if self._bootstrap is None:
            raise NotReadyError(f"Provider must be bootstrapped before blob operations (state: '{self.state}')")

        address = BlobAddress(kind, app, stage)
        key = quote(address.path, safe="/")
        return f"/accounts/{self._account_id}/r2/buckets/{self._bootstrap.bucket}/objects/{key}"

    def put(self, kind: str, app: str, stage: str, data: bytes) -> None:
        if not isinstance(data, bytes | bytearray):
            raise TypeError(f"Blob data must be bytes, got {type(data).__name__}")

        path = self._object_path(kind, app, stage)
        assert self._client is not None
        log.debug("blob_put", kind=str(kind), app=app, stage=stage, size=len(data))
        self._client.request("PUT", path, body=bytes(data))

    def get(self, kind: str, app: str, stage: str) -> bytes | None:
        path = self._object_path(kind, app, stage)
        assert self._client is not None
        log.debug("blob_get", kind=str(kind), app=app, stage=stage)

        try:
            return self._client.request("GET", path)
        except ObjectNotFoundError:
            log.debug("blob_not_found", kind=str(kind), app=app, stage=stage)
            return None

    def remove(self, kind: str, app: str, stage: str) -> None:
        path = self._object_path(kind, app, stage)
        assert self._client is not None
        log.debug("blob_remove", kind=str(kind), app=app, stage=stage)
        self._client.request("DELETE", path)

    def env(self) -> dict[str, str]:
        """Copy of the resolved credential environment.

        Raises:
            NotReadyError: If ``init`` has not completed
        """
        if self._account_id is None:
            raise NotReadyError("Provider must be initialized before exporting its environment")
        return dict(self._env)

    def close(self) -> None:
        """Release the HTTP client."""
        if self._client is not None:
            self._client.close()

    def __enter__(self) -> "CloudflareProvider":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
