"""State-backend provider implementations.

Key Components:
    - Home: Abstract blob/passphrase storage contract
    - CloudflareProvider: Cloudflare R2 implementation
    - create_home_provider: Look up a provider by configuration key

Example:
    >>> from statehome.providers import CloudflareProvider
    >>> provider = CloudflareProvider()
    >>> provider.init({"apiToken": "..."})
    >>> provider.as_home().get("app", "my-app", "dev")
"""

from statehome.providers.base import Home
from statehome.providers.cloudflare import CloudflareProvider
from statehome.providers.factory import create_home_provider, open_home

__all__ = ["CloudflareProvider", "Home", "create_home_provider", "open_home"]
