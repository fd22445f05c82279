"""Tests for statehome/utils/api_client.py - Cloudflare REST client."""

import httpx
import pytest

from statehome.config.settings import CloudflareCredentials
from statehome.exceptions import BackendRequestError, BucketAlreadyExistsError, ObjectNotFoundError
from statehome.models.domain import Account, Bucket
from statehome.utils.api_client import CloudflareAPIClient

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def token_client(fake_api) -> CloudflareAPIClient:
    return CloudflareAPIClient(CloudflareCredentials(api_token="test-token"), transport=fake_api.transport())


def client_for(handler) -> CloudflareAPIClient:
    return CloudflareAPIClient(
        CloudflareCredentials(api_token="test-token"),
        transport=httpx.MockTransport(handler),
    )


# =============================================================================
# Authentication
# =============================================================================


class TestAuthentication:
    def test_token_sent_as_bearer(self, token_client, fake_api):
        token_client.list_accounts()

        request = fake_api.requests[-1]
        assert request.headers["Authorization"] == "Bearer test-token"
        assert "X-Auth-Key" not in request.headers

    def test_key_email_headers(self, fake_api):
        client = CloudflareAPIClient(
            CloudflareCredentials(api_key="global-key", email="ops@example.com"),
            transport=fake_api.transport(),
        )

        client.list_accounts()

        request = fake_api.requests[-1]
        assert request.headers["X-Auth-Key"] == "global-key"
        assert request.headers["X-Auth-Email"] == "ops@example.com"
        assert "Authorization" not in request.headers

    def test_base_url_prefix(self, token_client, fake_api):
        token_client.list_accounts()

        assert str(fake_api.requests[-1].url).startswith("https://api.cloudflare.com/client/v4/accounts")


# =============================================================================
# Higher-level calls
# =============================================================================


class TestAccountsAndBuckets:
    def test_list_accounts(self, token_client):
        assert token_client.list_accounts() == [Account(id="acc-123", name="Main")]

    def test_list_accounts_empty(self, fake_api, token_client):
        fake_api.accounts = []

        assert token_client.list_accounts() == []

    def test_list_buckets_filters_by_name(self, fake_api, token_client):
        fake_api.buckets["acc-123"] = {"sst-state", "sst-state-old", "media"}

        buckets = token_client.list_r2_buckets("acc-123", name_contains="sst-state")

        assert [bucket.name for bucket in buckets] == ["sst-state", "sst-state-old"]
        assert fake_api.requests[-1].url.params["name_contains"] == "sst-state"

    def test_create_bucket(self, fake_api, token_client):
        bucket = token_client.create_r2_bucket("acc-123", "sst-state")

        assert isinstance(bucket, Bucket)
        assert bucket.name == "sst-state"
        assert fake_api.buckets["acc-123"] == {"sst-state"}

    def test_create_existing_bucket_raises_typed_error(self, fake_api, token_client):
        fake_api.buckets["acc-123"] = {"sst-state"}

        with pytest.raises(BucketAlreadyExistsError) as exc_info:
            token_client.create_r2_bucket("acc-123", "sst-state")

        assert exc_info.value.status_code == 409
        assert exc_info.value.error_codes == (10004,)

    def test_malformed_account_raises_backend_error(self, fake_api, token_client):
        fake_api.accounts = [{"name": "no-id"}]

        with pytest.raises(BackendRequestError, match="unexpected payload") as exc_info:
            token_client.list_accounts()

        assert exc_info.value.path == "/accounts"
        assert isinstance(exc_info.value.__cause__, KeyError)

    def test_malformed_bucket_date_raises_backend_error(self):
        client = client_for(
            lambda request: httpx.Response(
                200,
                json={"success": True, "result": {"buckets": [{"name": "sst-state", "creation_date": "yesterday"}]}},
            )
        )

        with pytest.raises(BackendRequestError, match="unexpected payload"):
            client.list_r2_buckets("acc-123")


# =============================================================================
# Raw requests and error mapping
# =============================================================================


class TestRequest:
    def test_returns_raw_bytes(self, fake_api, token_client):
        fake_api.buckets["acc-123"] = {"sst-state"}
        fake_api.objects[("acc-123", "sst-state", "app/web/dev")] = b"\x00binary\xff"

        data = token_client.request("GET", "/accounts/acc-123/r2/buckets/sst-state/objects/app/web/dev")

        assert data == b"\x00binary\xff"

    def test_sends_raw_body(self, fake_api, token_client):
        fake_api.buckets["acc-123"] = {"sst-state"}

        token_client.request("PUT", "/accounts/acc-123/r2/buckets/sst-state/objects/app/web/dev", body=b"payload")

        assert fake_api.objects[("acc-123", "sst-state", "app/web/dev")] == b"payload"

    def test_missing_key_raises_object_not_found(self, fake_api, token_client):
        fake_api.buckets["acc-123"] = {"sst-state"}

        with pytest.raises(ObjectNotFoundError) as exc_info:
            token_client.request("GET", "/accounts/acc-123/r2/buckets/sst-state/objects/app/web/dev")

        assert exc_info.value.error_codes == (10007,)
        assert "The specified key does not exist." in exc_info.value.message

    def test_other_not_found_is_not_object_not_found(self, token_client):
        with pytest.raises(BackendRequestError) as exc_info:
            token_client.request("GET", "/accounts/acc-123/r2/buckets/missing/objects/app/web/dev")

        assert not isinstance(exc_info.value, ObjectNotFoundError)
        assert exc_info.value.status_code == 404
        assert exc_info.value.error_codes == (10006,)

    def test_server_error_without_envelope(self):
        client = client_for(lambda request: httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(BackendRequestError) as exc_info:
            client.request("GET", "/accounts")

        assert exc_info.value.status_code == 502
        assert exc_info.value.response_text == "Bad Gateway"
        assert exc_info.value.error_codes == ()
        assert exc_info.value.method == "GET"
        assert exc_info.value.path == "/accounts"

    def test_transport_error_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = client_for(handler)

        with pytest.raises(BackendRequestError, match="connection refused") as exc_info:
            client.request("GET", "/accounts")

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_timeout_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(BackendRequestError):
            client_for(handler).request("GET", "/accounts")


class TestRequestJson:
    def test_unwraps_result(self):
        client = client_for(lambda request: httpx.Response(200, json={"success": True, "result": {"a": 1}}))

        assert client.request_json("GET", "/anything") == {"a": 1}

    def test_unsuccessful_envelope_raises(self):
        client = client_for(
            lambda request: httpx.Response(
                200, json={"success": False, "errors": [{"code": 9109, "message": "Unauthorized"}]}
            )
        )

        with pytest.raises(BackendRequestError, match="Unauthorized") as exc_info:
            client.request_json("GET", "/accounts")

        assert exc_info.value.error_codes == (9109,)

    def test_invalid_json_raises(self):
        client = client_for(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(BackendRequestError, match="invalid JSON"):
            client.request_json("GET", "/accounts")


class TestLifecycle:
    def test_client_created_lazily_and_closed(self, token_client):
        assert token_client._client is None

        token_client.list_accounts()
        assert token_client._client is not None

        token_client.close()
        assert token_client._client is None

    def test_context_manager_closes(self, fake_api):
        with CloudflareAPIClient(CloudflareCredentials(api_token="t"), transport=fake_api.transport()) as client:
            client.list_accounts()

        assert client._client is None
