"""statehome: Cloudflare R2 state backend for infrastructure deployments.

Stores serialized stack state and secrets passphrases in a reserved R2
bucket, and exports the resolved Cloudflare credentials so resource
provisioning can run under the same account.
"""

from statehome.enums import BlobKind, ProviderState
from statehome.models.domain import BlobAddress
from statehome.providers import CloudflareProvider, Home, create_home_provider

__version__ = "0.1.0"

__all__ = [
    "BlobAddress",
    "BlobKind",
    "CloudflareProvider",
    "Home",
    "ProviderState",
    "create_home_provider",
]
