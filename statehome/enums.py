"""Enumerations for statehome blob kinds, auth modes and provider states."""

from enum import Enum


class BlobKind(str, Enum):
    """Well-known blob kinds stored in the state bucket.

    Callers may use any other non-empty kind string as well; these are the
    ones the provider itself knows about.
    """

    APP = "app"
    PASSPHRASE = "passphrase"

    def __str__(self) -> str:
        return self.value


class AuthMode(str, Enum):
    """Cloudflare API authentication modes.

    - token: scoped API token sent as a bearer token
    - key-email: legacy global API key plus the account email
    """

    TOKEN = "token"
    KEY_EMAIL = "key-email"

    def __str__(self) -> str:
        return self.value


class ProviderState(str, Enum):
    """Lifecycle states of a provider instance.

    The happy path is UNINITIALIZED -> AUTHENTICATED -> BOOTSTRAPPED. A failed
    init or bootstrap moves the instance to FAILED, which is terminal.
    """

    UNINITIALIZED = "uninitialized"
    AUTHENTICATED = "authenticated"
    BOOTSTRAPPED = "bootstrapped"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value
