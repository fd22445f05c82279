"""
Domain models for the state backend.

These dataclasses are the normalized internal representation of the
Cloudflare resources the provider touches (accounts, R2 buckets) and of the
addresses under which state blobs are stored.

Example:
    Building an object path::

        address = BlobAddress("passphrase", "my-app", "production")
        address.path  # "passphrase/my-app/production"
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from statehome.exceptions import BlobAddressError

PATH_SEPARATOR = "/"

_FORBIDDEN_SEGMENTS = {".", ".."}


@dataclass
class Account:
    """Cloudflare account visible to the configured credentials."""

    id: str
    name: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Account":
        return cls(id=data["id"], name=data.get("name", ""))


@dataclass
class Bucket:
    """R2 bucket within an account."""

    name: str
    creation_date: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Bucket":
        created = data.get("creation_date")
        return cls(
            name=data["name"],
            creation_date=datetime.fromisoformat(created.replace("Z", "+00:00")) if created else None,
        )


@dataclass(frozen=True)
class BootstrapRecord:
    """The bucket adopted or created by the bootstrap step.

    Attributes:
        bucket: Name of the bucket holding all state blobs
        created: True when this process created the bucket
    """

    bucket: str
    created: bool = False


def _normalize_segment(name: str, value: str) -> str:
    if not isinstance(value, str):
        raise BlobAddressError(f"Blob address {name} must be a string, got {type(value).__name__}")

    segment = value.strip(PATH_SEPARATOR)
    if not segment:
        raise BlobAddressError(f"Blob address {name} must not be empty")
    if PATH_SEPARATOR in segment or "\\" in segment:
        raise BlobAddressError(f"Blob address {name} must not contain path separators: {value!r}")
    if segment in _FORBIDDEN_SEGMENTS:
        raise BlobAddressError(f"Blob address {name} must not be {segment!r}")
    return segment


@dataclass(frozen=True)
class BlobAddress:
    """Location of a blob inside the state bucket.

    Components are normalized on construction: surrounding separators are
    stripped, and a component that is empty or still contains a separator
    is rejected. Two addresses built from the same triple therefore always
    share the same ``path``.
    """

    kind: str
    app: str
    stage: str

    def __post_init__(self) -> None:
        # str() turns a BlobKind member into its value
        kind = str(self.kind) if isinstance(self.kind, str) else self.kind
        object.__setattr__(self, "kind", _normalize_segment("kind", kind))
        object.__setattr__(self, "app", _normalize_segment("app", self.app))
        object.__setattr__(self, "stage", _normalize_segment("stage", self.stage))

    @property
    def path(self) -> str:
        """Hierarchical object key, ``{kind}/{app}/{stage}``."""
        return PATH_SEPARATOR.join((self.kind, self.app, self.stage))

    @classmethod
    def from_path(cls, path: str) -> "BlobAddress":
        """Parse an object key back into an address.

        Redundant separators (leading, trailing or doubled) are ignored.

        Raises:
            BlobAddressError: If the path does not have exactly three segments
        """
        parts = [part for part in path.split(PATH_SEPARATOR) if part]
        if len(parts) != 3:
            raise BlobAddressError(f"Blob path must have exactly three segments (kind/app/stage): {path!r}")
        return cls(*parts)

    def __str__(self) -> str:
        return self.path
