"""
Abstract base class for state-backend providers.

A "home" is the remote place where a deployment tool keeps its state: the
serialized stack state for each app and stage, and the passphrase used to
encrypt secrets inside that state.
"""

from abc import ABC, abstractmethod

from statehome.enums import BlobKind


class Home(ABC):
    """Blob storage contract every state-backend provider fulfils.

    Blobs are addressed by (kind, app, stage). Implementations store opaque
    bytes and must report an absent blob as ``None`` from ``get`` rather
    than raising, so callers can tell "no prior state" apart from "state
    store unreachable".

    The passphrase helpers are defined purely in terms of ``put`` and
    ``get`` and need no provider-specific code.
    """

    @property
    @abstractmethod
    def key(self) -> str:
        """Provider key used in project configuration (e.g., 'cloudflare')."""
        pass

    @abstractmethod
    def put(self, kind: str, app: str, stage: str, data: bytes) -> None:
        """Write the full content of a blob, replacing any prior content.

        Raises:
            NotReadyError: If the provider has not been bootstrapped
            BlobAddressError: If a component is not a valid path segment
            BackendRequestError: If the remote call fails
        """
        pass

    @abstractmethod
    def get(self, kind: str, app: str, stage: str) -> bytes | None:
        """Read the full content of a blob.

        Returns:
            Blob bytes, or None when no blob exists at the address

        Raises:
            NotReadyError: If the provider has not been bootstrapped
            BlobAddressError: If a component is not a valid path segment
            BackendRequestError: If the remote call fails for any other reason
        """
        pass

    @abstractmethod
    def remove(self, kind: str, app: str, stage: str) -> None:
        """Delete a blob.

        Whether deleting a missing blob is an error depends on the backend;
        callers should not rely on either behaviour.

        Raises:
            NotReadyError: If the provider has not been bootstrapped
            BackendRequestError: If the remote call fails
        """
        pass

    @abstractmethod
    def env(self) -> dict[str, str]:
        """Environment variables carrying this provider's auth context."""
        pass

    def set_passphrase(self, app: str, stage: str, passphrase: str) -> None:
        """Store the secrets passphrase for an app and stage."""
        self.put(BlobKind.PASSPHRASE, app, stage, passphrase.encode("utf-8"))

    def lookup_passphrase(self, app: str, stage: str) -> str | None:
        """Return the stored passphrase, or None when none was ever set."""
        data = self.get(BlobKind.PASSPHRASE, app, stage)
        if data is None:
            return None
        return data.decode("utf-8")

    def get_passphrase(self, app: str, stage: str) -> str:
        """Return the stored passphrase, or an empty string when none was set.

        An explicitly stored empty passphrase is indistinguishable from a
        missing one here; use ``lookup_passphrase`` when that matters.
        """
        return self.lookup_passphrase(app, stage) or ""
