"""
Authenticated client for the Cloudflare v4 REST API.

Covers only what the state backend needs: raw object requests against R2
plus account and bucket listing/creation. Every failure is raised as a
``BackendRequestError`` (or one of its typed subclasses) so callers never
see transport exceptions directly.
"""

from typing import Any

import httpx
import structlog

from statehome.config.settings import DEFAULT_API_BASE_URL, CloudflareCredentials
from statehome.exceptions import (
    BackendRequestError,
    BucketAlreadyExistsError,
    ObjectNotFoundError,
)
from statehome.models.domain import Account, Bucket

log = structlog.get_logger(__name__)

# Cloudflare API error codes
ERROR_BUCKET_ALREADY_EXISTS = 10004
ERROR_NO_SUCH_KEY = 10007

_TYPED_ERRORS: dict[int, type[BackendRequestError]] = {
    ERROR_NO_SUCH_KEY: ObjectNotFoundError,
    ERROR_BUCKET_ALREADY_EXISTS: BucketAlreadyExistsError,
}


def _parse_errors(response: httpx.Response) -> list[dict[str, Any]]:
    """Extract the ``errors`` list from a Cloudflare response envelope."""
    try:
        payload = response.json()
    except ValueError:
        return []
    if not isinstance(payload, dict):
        return []
    errors = payload.get("errors") or []
    return [error for error in errors if isinstance(error, dict)]


def _error_for(
    method: str,
    path: str,
    response: httpx.Response,
    errors: list[dict[str, Any]],
) -> BackendRequestError:
    codes = [int(error["code"]) for error in errors if isinstance(error.get("code"), int)]
    detail = "; ".join(f"{error.get('message', '')} ({error.get('code')})" for error in errors)
    message = f"{method} {path} failed"
    if detail:
        message = f"{message}: {detail}"

    error_class = BackendRequestError
    for code in codes:
        if code in _TYPED_ERRORS:
            error_class = _TYPED_ERRORS[code]
            break

    return error_class(
        message,
        method=method,
        path=path,
        status_code=response.status_code,
        response_text=response.text,
        error_codes=codes,
    )


class CloudflareAPIClient:
    """Synchronous Cloudflare API client bound to one set of credentials."""

    def __init__(
        self,
        credentials: CloudflareCredentials,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize client.

        Args:
            credentials: Credentials with an auth mode selected
            base_url: API base URL
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._credentials = credentials
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Underlying httpx client, created on first use."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._credentials.auth_headers(),
                transport=self._transport,
            )
            log.debug("cloudflare_client_initialized", base_url=self.base_url)
        return self._client

    def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None
            log.debug("cloudflare_client_closed", base_url=self.base_url)

    def __enter__(self) -> "CloudflareAPIClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _send(
        self,
        method: str,
        path: str,
        body: bytes | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        try:
            response = self.client.request(method, path, content=body, params=params, json=json)
        except httpx.HTTPError as e:
            log.error("cloudflare_request_failed", method=method, path=path, error=str(e))
            raise BackendRequestError(f"{method} {path} failed: {e}", method=method, path=path) from e

        if response.is_error:
            raise _error_for(method, path, response, _parse_errors(response))

        return response

    def request(
        self,
        method: str,
        path: str,
        body: bytes | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> bytes:
        """Send an authenticated request and return the raw response body.

        Args:
            method: HTTP method
            path: API path relative to the base URL
            body: Raw request body
            params: Query parameters
            json: JSON request body (mutually exclusive with ``body``)

        Returns:
            Response body bytes

        Raises:
            ObjectNotFoundError: If the API reports a missing object key
            BucketAlreadyExistsError: If the API reports an existing bucket
            BackendRequestError: For any other transport or API failure
        """
        return self._send(method, path, body=body, params=params, json=json).content

    def request_json(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send a request and unwrap the ``result`` of the response envelope.

        Raises:
            BackendRequestError: If the request fails or the envelope reports
                ``success: false``
        """
        response = self._send(method, path, params=params, json=json)

        try:
            payload = response.json()
        except ValueError as e:
            raise BackendRequestError(
                f"{method} {path} returned invalid JSON",
                method=method,
                path=path,
                status_code=response.status_code,
                response_text=response.text,
            ) from e

        if not isinstance(payload, dict) or not payload.get("success", False):
            raise _error_for(method, path, response, _parse_errors(response))

        return payload.get("result")

    @staticmethod
    def _unexpected_payload(method: str, path: str, error: Exception) -> BackendRequestError:
        return BackendRequestError(
            f"{method} {path} returned an unexpected payload: {error!r}", method=method, path=path
        )

    def list_accounts(self) -> list[Account]:
        """List the accounts visible to the configured credentials."""
        log.debug("list_accounts")
        result = self.request_json("GET", "/accounts", params={"per_page": 50})
        try:
            return [Account.from_api(item) for item in result or []]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise self._unexpected_payload("GET", "/accounts", e) from e

    def list_r2_buckets(self, account_id: str, name_contains: str | None = None) -> list[Bucket]:
        """List R2 buckets in an account, optionally filtered by name."""
        log.debug("list_r2_buckets", account=account_id, name_contains=name_contains)
        params = {"name_contains": name_contains} if name_contains else None
        path = f"/accounts/{account_id}/r2/buckets"
        result = self.request_json("GET", path, params=params)
        try:
            buckets = (result or {}).get("buckets") or []
            return [Bucket.from_api(item) for item in buckets]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise self._unexpected_payload("GET", path, e) from e

    def create_r2_bucket(self, account_id: str, name: str) -> Bucket:
        """Create an R2 bucket.

        Raises:
            BucketAlreadyExistsError: If the bucket already exists
            BackendRequestError: For any other failure
        """
        log.debug("create_r2_bucket", account=account_id, bucket=name)
        path = f"/accounts/{account_id}/r2/buckets"
        result = self.request_json("POST", path, json={"name": name})
        try:
            return Bucket.from_api(result or {"name": name})
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise self._unexpected_payload("POST", path, e) from e
