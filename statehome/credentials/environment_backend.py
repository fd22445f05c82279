"""Environment variable credential source for CI/CD and local shells."""

import logging
import os
from collections.abc import Mapping

logger = logging.getLogger(__name__)


class EnvironmentBackend:
    """Ambient credentials from environment variables.

    Reads ``os.environ`` unless an explicit mapping is supplied, which keeps
    tests and embedding callers away from the real process environment.
    Variables that are set but empty are treated as unset.

    Example:
        >>> backend = EnvironmentBackend({"CLOUDFLARE_API_TOKEN": "abc"})
        >>> backend.get("CLOUDFLARE_API_TOKEN")
        'abc'
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    @property
    def name(self) -> str:
        return "environment"

    def get(self, var_name: str) -> str | None:
        """Retrieve credential from environment variable.

        Args:
            var_name: Environment variable name (e.g., 'CLOUDFLARE_EMAIL')

        Returns:
            Credential value or None if not set
        """
        environ = os.environ if self._environ is None else self._environ
        value = environ.get(var_name)

        if not value:
            return None

        logger.debug(f"Retrieved credential from environment: {var_name}")
        return value
