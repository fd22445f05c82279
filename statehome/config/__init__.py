"""Configuration for the state backend.

Key Components:
    - HomeSettings: Process settings with YAML loading support
    - CloudflareCredentials: Typed Cloudflare credential fields

Example:
    >>> from statehome.config import HomeSettings
    >>> settings = HomeSettings.from_yaml("statehome.yaml")
    >>> settings.provider_overrides("cloudflare")
"""

from statehome.config.settings import (
    CLOUDFLARE_ENV_VARS,
    DEFAULT_API_BASE_URL,
    DEFAULT_STATE_BUCKET,
    CloudflareCredentials,
    HomeSettings,
)

__all__ = [
    "CLOUDFLARE_ENV_VARS",
    "DEFAULT_API_BASE_URL",
    "DEFAULT_STATE_BUCKET",
    "CloudflareCredentials",
    "HomeSettings",
]
