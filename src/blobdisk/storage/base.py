"""Base protocol and records for blob client implementations."""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Protocol


@dataclass(frozen=True)
class BlobRecord:
    """A fetched blob: content plus the properties the backend returned."""
    name: str
    content: bytes = b""
    content_length: Optional[int] = None
    content_type: Optional[str] = None
    last_modified: Optional[datetime] = None
    content_md5: Optional[str] = None       # base64, as sent in Content-MD5
    creation_time: Optional[datetime] = None


@dataclass(frozen=True)
class ContainerProperties:
    """Container-level properties."""
    name: str
    public_access: Optional[str] = None     # "blob" | "container" | None
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None


class BlobItem:
    """
    A listed blob name, resolvable to a full record.

    Listing only returns names; ``get()`` issues a second request against
    the client that produced the listing.
    """

    def __init__(self, client: "BlobClient", name: str):
        self.client = client
        self.name = name

    def get(self) -> BlobRecord:
        return self.client.get(self.name)

    def __repr__(self) -> str:
        return f"BlobItem(name={self.name!r})"


class BlobClient(Protocol):
    """
    Protocol for blob clients bound to a single container.

    Every request failure raises ``BlobRequestError``. Translation into
    filesystem errors is the adapter's responsibility, not the client's.
    """

    container: str

    def get(self, path: str) -> BlobRecord:
        """
        Fetch a blob with its content and properties.

        Raises:
            BlobRequestError: If the blob is missing or the request fails
        """
        ...

    def put_block(self, path: str, content: bytes, content_type: Optional[str] = None) -> None:
        """Upload ``content`` as a single block, overwriting any existing blob."""
        ...

    def delete(self, path: str, force: bool = False) -> None:
        """
        Delete a blob.

        Args:
            path: Blob name
            force: Also delete snapshots instead of refusing
        """
        ...

    def copy(self, source: str, destination: str) -> None:
        """Server-side copy; returns once the copy is complete."""
        ...

    def list(self, prefix: str = "") -> Iterable[BlobItem]:
        """
        List blobs whose name starts with ``prefix``.

        The first request is issued before returning so that listing
        failures surface from this call.
        """
        ...

    def temporary_url(self, path: str, expiration: datetime, permission: str = "r") -> str:
        """Signed URL valid until ``expiration`` with SAS-style permissions."""
        ...

    def get_properties(self) -> ContainerProperties:
        """Fetch the bound container's properties."""
        ...

    def uri(self, path: str) -> str:
        """Unsigned URL for ``path`` (already prefixed with the container)."""
        ...
