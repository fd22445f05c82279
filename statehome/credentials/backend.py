"""Protocol for ambient credential sources."""

from typing import Protocol


class CredentialSource(Protocol):
    """Read-only source of ambient credential values.

    The resolver falls back to a source for every credential field that the
    explicit overrides leave unset.
    """

    @property
    def name(self) -> str:
        """Source identifier (e.g., 'environment')."""
        ...

    def get(self, var_name: str) -> str | None:
        """Retrieve a credential value.

        Args:
            var_name: Variable name (e.g., 'CLOUDFLARE_API_TOKEN')

        Returns:
            Credential value, or None if unset or empty
        """
        ...
