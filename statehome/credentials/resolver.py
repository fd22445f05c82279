"""Layered Cloudflare credential resolution."""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from statehome.config.settings import CLOUDFLARE_ENV_VARS, CloudflareCredentials
from statehome.enums import AuthMode
from statehome.exceptions import AuthConfigurationError

from .backend import CredentialSource
from .environment_backend import EnvironmentBackend

logger = logging.getLogger(__name__)

MISSING_AUTH_SUGGESTION = (
    "Set CLOUDFLARE_API_TOKEN, or CLOUDFLARE_API_KEY and CLOUDFLARE_EMAIL, in the environment,\n"
    "or provide apiToken, or apiKey and email, in the cloudflare provider configuration."
)


class CredentialResolver:
    """Merge explicit provider configuration with ambient credentials.

    For each of the four credential fields (token, key, email, account id)
    a non-empty override wins; otherwise the ambient source is consulted.
    The result keeps only the fields of the selected auth mode, plus the
    account id when one was found.

    Example:
        >>> resolver = CredentialResolver(EnvironmentBackend({"CLOUDFLARE_API_TOKEN": "t"}))
        >>> resolver.resolve({"accountId": "abc"}).auth_mode
        <AuthMode.TOKEN: 'token'>
    """

    def __init__(self, source: CredentialSource | None = None) -> None:
        """Initialize credential resolver.

        Args:
            source: Ambient credential source. Defaults to the process
                environment.
        """
        self.source: CredentialSource = source or EnvironmentBackend()

    def resolve(self, overrides: Mapping[str, Any] | None = None) -> CloudflareCredentials:
        """Resolve credentials from overrides and the ambient source.

        Args:
            overrides: Provider configuration block (``apiToken``, ``apiKey``,
                ``email``, ``accountId``)

        Returns:
            Credentials with exactly one auth mode populated

        Raises:
            AuthConfigurationError: If an override is malformed or no auth
                mode can be assembled
        """
        explicit = self._parse_overrides(overrides)

        merged: dict[str, str] = {}
        for field, var_name in CLOUDFLARE_ENV_VARS.items():
            value = getattr(explicit, field)
            if value:
                logger.debug(f"Credential {field} taken from provider configuration")
            else:
                value = self.source.get(var_name)
                if value:
                    logger.debug(f"Credential {field} taken from {self.source.name}: {var_name}")
            if value:
                merged[field] = value

        credentials = CloudflareCredentials(**merged)
        mode = credentials.auth_mode

        if mode is None:
            raise AuthConfigurationError(
                "Cloudflare API not initialized: no API token or API key and email found",
                reference=self._missing_reference(credentials),
                suggestion=MISSING_AUTH_SUGGESTION,
            )

        if mode is AuthMode.KEY_EMAIL:
            return credentials.model_copy(update={"api_token": None})
        return credentials.model_copy(update={"api_key": None, "email": None})

    @staticmethod
    def _parse_overrides(overrides: Mapping[str, Any] | None) -> CloudflareCredentials:
        if overrides is None:
            return CloudflareCredentials()

        if not isinstance(overrides, Mapping):
            raise AuthConfigurationError(
                f"Cloudflare provider configuration must be a mapping, got {type(overrides).__name__}"
            )

        try:
            return CloudflareCredentials.model_validate(dict(overrides))
        except ValidationError as e:
            fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in e.errors())
            raise AuthConfigurationError(
                f"Invalid Cloudflare provider configuration value for {fields}: expected a string",
                reference=fields,
            ) from e

    @staticmethod
    def _missing_reference(credentials: CloudflareCredentials) -> str | None:
        """Name the half of a key + email pair that is missing, if any."""
        if credentials.api_key and not credentials.email:
            return CLOUDFLARE_ENV_VARS["email"]
        if credentials.email and not credentials.api_key:
            return CLOUDFLARE_ENV_VARS["api_key"]
        return None
