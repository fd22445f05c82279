"""Domain models for the state backend.

Key Models:
    - Account: Cloudflare account
    - Bucket: R2 bucket
    - BootstrapRecord: The bucket adopted by the bootstrap step
    - BlobAddress: (kind, app, stage) object location

Example:
    >>> from statehome.models import BlobAddress
    >>> BlobAddress.from_path("passphrase/my-app/dev/").path
    'passphrase/my-app/dev'
"""

from statehome.models.domain import Account, BlobAddress, BootstrapRecord, Bucket

__all__ = ["Account", "BlobAddress", "BootstrapRecord", "Bucket"]
