"""
Configuration system using Pydantic for type-safe settings management.

This module provides the typed credential structure for the Cloudflare
provider and the process-level settings of the state backend.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from statehome.enums import AuthMode
from statehome.exceptions import ConfigurationError

DEFAULT_API_BASE_URL = "https://api.cloudflare.com/client/v4"

# Shared by every provider instance talking to the same account.
DEFAULT_STATE_BUCKET = "sst-state"

# Credential field -> ambient environment variable
CLOUDFLARE_ENV_VARS: dict[str, str] = {
    "api_token": "CLOUDFLARE_API_TOKEN",
    "api_key": "CLOUDFLARE_API_KEY",
    "email": "CLOUDFLARE_EMAIL",
    "account_id": "CLOUDFLARE_DEFAULT_ACCOUNT_ID",
}

_BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]{1,61}[a-z0-9]$")


class CloudflareCredentials(BaseModel):
    """Cloudflare credential fields.

    Accepts the project-configuration spelling (``apiToken``, ``apiKey``,
    ``email``, ``accountId``) as well as the field names. Every value must be
    a string; unrelated keys in a provider block are ignored.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    api_token: StrictStr | None = Field(default=None, alias="apiToken", repr=False)
    api_key: StrictStr | None = Field(default=None, alias="apiKey", repr=False)
    email: StrictStr | None = Field(default=None)
    account_id: StrictStr | None = Field(default=None, alias="accountId")

    @property
    def auth_mode(self) -> AuthMode | None:
        """Authentication mode these fields support, if any.

        A complete key + email pair takes precedence over a token.
        """
        if self.api_key and self.email:
            return AuthMode.KEY_EMAIL
        if self.api_token:
            return AuthMode.TOKEN
        return None

    def auth_headers(self) -> dict[str, str]:
        """HTTP headers authenticating a request with the selected mode."""
        mode = self.auth_mode
        if mode is AuthMode.KEY_EMAIL:
            return {"X-Auth-Key": self.api_key or "", "X-Auth-Email": self.email or ""}
        if mode is AuthMode.TOKEN:
            return {"Authorization": f"Bearer {self.api_token}"}
        return {}

    def to_env(self, account_id: str) -> dict[str, str]:
        """Environment variables reproducing this auth context for other tools."""
        env: dict[str, str] = {}
        if self.auth_mode is AuthMode.KEY_EMAIL:
            env[CLOUDFLARE_ENV_VARS["api_key"]] = self.api_key or ""
            env[CLOUDFLARE_ENV_VARS["email"]] = self.email or ""
        elif self.auth_mode is AuthMode.TOKEN:
            env[CLOUDFLARE_ENV_VARS["api_token"]] = self.api_token or ""
        env[CLOUDFLARE_ENV_VARS["account_id"]] = account_id
        return env


class HomeSettings(BaseSettings):
    """State backend settings.

    Values come from ``STATEHOME_*`` environment variables or a YAML file
    (see ``from_yaml``). Provider credential overrides live under
    ``providers.<key>`` using the same keys as ``CloudflareCredentials``.
    """

    model_config = SettingsConfigDict(
        env_prefix="STATEHOME_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    home: str = Field(default="cloudflare", description="Key of the provider that stores state")
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, description="Cloudflare API base URL")
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    state_bucket: str = Field(default=DEFAULT_STATE_BUCKET, description="Reserved R2 bucket for state")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    providers: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Per-provider credential overrides"
    )

    @field_validator("state_bucket")
    @classmethod
    def validate_state_bucket(cls, value: str) -> str:
        """R2 bucket names: 3-63 chars, lowercase letters, digits and hyphens."""
        if not _BUCKET_NAME_PATTERN.match(value):
            raise ValueError(
                f"Invalid bucket name {value!r}: use 3-63 lowercase letters, digits or hyphens, "
                "starting and ending with a letter or digit"
            )
        return value

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, value: str) -> str:
        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError(f"api_base_url must start with http:// or https://, got: {value}")
        return value.rstrip("/")

    def provider_overrides(self, key: str) -> dict[str, Any]:
        """Copy of the override map configured for provider ``key``."""
        return dict(self.providers.get(key) or {})

    @classmethod
    def from_yaml(cls, config_path: str) -> HomeSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} and ${VAR_NAME:-default} substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            HomeSettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing required fields
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_file.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except Exception as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        YAML comment lines are left untouched.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
