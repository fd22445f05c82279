"""Custom exception hierarchy for the statehome provider.

This module defines a structured exception hierarchy that lets callers tell
a misconfigured provider apart from an unreachable state store, and an
unreachable state store apart from an object that simply does not exist.

Exception Hierarchy:
    StateHomeError (base)
    ├── ConfigurationError
    ├── CredentialError
    │   └── AuthConfigurationError
    ├── AccountResolutionError
    ├── BootstrapError
    ├── ProviderStateError
    │   └── NotReadyError
    ├── BlobAddressError
    └── ExternalServiceError
        └── BackendRequestError
            ├── ObjectNotFoundError
            └── BucketAlreadyExistsError

Example Usage:
    >>> from statehome.exceptions import BackendRequestError
    >>> try:
    ...     home.put("app", "my-app", "dev", payload)
    ... except BackendRequestError as e:
    ...     log.error("state_upload_failed", status=e.status_code)
"""

from collections.abc import Sequence


class StateHomeError(Exception):
    """Base exception for all statehome errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(StateHomeError):
    """Configuration-related errors.

    Examples:
        - Settings file not found
        - Invalid YAML syntax
        - Invalid setting values
    """

    pass


class CredentialError(StateHomeError):
    """Credential-related errors.

    Attributes:
        message: Human-readable error description
        reference: The credential field or variable that failed
        suggestion: Optional suggestion for resolution
    """

    def __init__(
        self,
        message: str,
        reference: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            reference: The credential field or variable that failed
            suggestion: Optional suggestion for resolution
        """
        self.reference = reference
        self.suggestion = suggestion

        full_message = message
        if reference:
            full_message = f"{message} (reference: {reference})"
        if suggestion:
            full_message = f"{full_message}\nSuggestion: {suggestion}"

        super().__init__(full_message)
        # Preserve original message (super sets self.message to full_message)
        self.message = message


class AuthConfigurationError(CredentialError):
    """No usable authentication mode could be assembled.

    Raised when neither an API token nor a complete API key + email pair is
    available after merging the environment with explicit overrides, or when
    an override value has the wrong type.
    """

    pass


class AccountResolutionError(StateHomeError):
    """The target account could not be determined.

    Raised when the account listing request fails or returns no accounts.
    """

    pass


class BootstrapError(StateHomeError):
    """The state bucket could not be found or created."""

    pass


class ProviderStateError(StateHomeError):
    """An operation was invoked in a lifecycle state that does not allow it."""

    pass


class NotReadyError(ProviderStateError):
    """The provider has not reached the state this operation requires.

    Blob and passphrase operations require a bootstrapped provider; the
    environment export requires an initialized one.
    """

    pass


class BlobAddressError(StateHomeError, ValueError):
    """A (kind, app, stage) component cannot be turned into an object path."""

    pass


class ExternalServiceError(StateHomeError):
    """External service communication errors.

    Raised when communication with the object-store API fails
    (HTTP errors, API failures, timeouts, etc.).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code (if applicable)
            response_text: Response body text (if applicable)
        """
        self.status_code = status_code
        self.response_text = response_text

        full_message = message
        if status_code:
            full_message = f"{message} (HTTP {status_code})"

        super().__init__(full_message)
        self.message = message


class BackendRequestError(ExternalServiceError):
    """A request to the Cloudflare API failed.

    Attributes:
        method: HTTP method of the failed request
        path: API path of the failed request
        error_codes: Cloudflare error codes reported in the response envelope
    """

    def __init__(
        self,
        message: str,
        method: str | None = None,
        path: str | None = None,
        status_code: int | None = None,
        response_text: str | None = None,
        error_codes: Sequence[int] = (),
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            method: HTTP method of the failed request
            path: API path of the failed request
            status_code: HTTP status code (if a response was received)
            response_text: Response body text (if a response was received)
            error_codes: Cloudflare error codes from the response envelope
        """
        self.method = method
        self.path = path
        self.error_codes = tuple(error_codes)
        super().__init__(message, status_code=status_code, response_text=response_text)


class ObjectNotFoundError(BackendRequestError):
    """The requested object key does not exist in the bucket."""

    pass


class BucketAlreadyExistsError(BackendRequestError):
    """The bucket being created already exists and is owned by the caller."""

    pass
