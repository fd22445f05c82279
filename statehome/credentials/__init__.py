"""Credential resolution for the Cloudflare state backend.

Credentials come from two layers: the process environment and the explicit
provider configuration block, where the configuration wins field by field.

Example:
    >>> from statehome.credentials import CredentialResolver
    >>> credentials = CredentialResolver().resolve({"apiToken": "..."})
"""

from statehome.credentials.backend import CredentialSource
from statehome.credentials.environment_backend import EnvironmentBackend
from statehome.credentials.resolver import CredentialResolver

__all__ = ["CredentialResolver", "CredentialSource", "EnvironmentBackend"]
