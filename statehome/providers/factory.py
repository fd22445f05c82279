"""Factory for creating state-backend providers from configuration."""

import structlog

from statehome.config.settings import HomeSettings
from statehome.providers.base import Home
from statehome.providers.cloudflare import CloudflareProvider

log = structlog.get_logger(__name__)

PROVIDERS: dict[str, type[CloudflareProvider]] = {
    "cloudflare": CloudflareProvider,
}


def create_home_provider(key: str, settings: HomeSettings | None = None) -> CloudflareProvider:
    """Create an uninitialized provider by its configuration key.

    Args:
        key: Provider key (e.g., 'cloudflare')
        settings: Backend settings shared with the provider

    Returns:
        Provider instance; call ``init`` and ``as_home`` before use

    Raises:
        ValueError: If the key is not a known provider

    Example:
        >>> settings = HomeSettings.from_yaml("statehome.yaml")
        >>> provider = create_home_provider(settings.home, settings)
        >>> provider.init(settings.provider_overrides(settings.home))
        >>> home = provider.as_home()
    """
    try:
        provider_class = PROVIDERS[key]
    except KeyError:
        raise ValueError(
            f"Unsupported home provider: {key}. Supported providers: {', '.join(sorted(PROVIDERS))}"
        ) from None

    log.info("creating_home_provider", provider=key)
    return provider_class(settings=settings)


def open_home(settings: HomeSettings) -> Home:
    """Create, initialize and bootstrap the provider named by ``settings.home``."""
    provider = create_home_provider(settings.home, settings)
    provider.init(settings.provider_overrides(settings.home))
    return provider.as_home()
