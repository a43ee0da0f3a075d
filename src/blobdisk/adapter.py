"""Filesystem adapter over a blob client.

Maps each filesystem operation onto one or more blob client calls and
translates ``BlobRequestError`` into the typed filesystem errors. Blob
storage is flat: directories and per-object visibility are not supported.
"""

import io
import mimetypes
import re
from datetime import datetime
from typing import IO, Any, Dict, Mapping, Optional, Union

from .attributes import FileAttributes, Visibility
from .errors import (
    BlobRequestError,
    UnableToCopyFile,
    UnableToDeleteFile,
    UnableToListContents,
    UnableToMoveFile,
    UnableToReadFile,
    UnableToRetrieveMetadata,
    UnableToWriteFile,
    UnsupportedOperationError,
)
from .listing import DirectoryListing, resolve_items
from .storage.base import BlobClient, BlobRecord, ContainerProperties


def _timestamp(value: Optional[datetime]) -> Optional[int]:
    return int(value.timestamp()) if value else None


def listing_prefix(path: str) -> str:
    """Prefix for listing ``path``: trailing slash added, repeated slashes collapsed."""
    if not path.strip("/"):
        return ""
    return re.sub(r"/{2,}", "/", f"{path}/")


class BlobStorageAdapter:
    """
    Filesystem contract bound to a single container.

    Stateless apart from the client and container name; every call goes to
    the backend and builds fresh attributes.
    """

    def __init__(self, client: BlobClient, container: str):
        self._client = client
        self._container = container

    @property
    def client(self) -> BlobClient:
        return self._client

    @property
    def container(self) -> str:
        return self._container

    # URLs

    def url(self, path: str) -> str:
        """Direct URL for ``path``. Access may still require authorization."""
        return self._client.uri(f"{self._container}/{path}")

    def provides_temporary_urls(self) -> bool:
        return True

    def temporary_url(
        self, path: str, expiration: datetime, options: Optional[Mapping[str, Any]] = None
    ) -> str:
        """Signed read URL. Signing failures propagate unchanged."""
        return self._client.temporary_url(path, expiration)

    def temporary_upload_url(
        self, path: str, expiration: datetime, options: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        """Signed upload URL; Azure needs no extra upload headers."""
        url = self._client.temporary_url(path, expiration, permission="rcw")
        return {"url": url, "headers": {}}

    # Existence

    def file_exists(self, path: str) -> bool:
        """
        Check whether a blob exists by fetching it.

        Any request failure counts as "does not exist", so an unreachable
        backend is indistinguishable from a missing blob.
        """
        try:
            self._client.get(path)
        except BlobRequestError:
            return False
        return True

    def directory_exists(self, path: str) -> bool:
        raise UnsupportedOperationError("directory_exists", "Directory existence is not supported", location=path)

    # Writing

    def write(
        self, path: str, contents: Union[str, bytes], config: Optional[Mapping[str, Any]] = None
    ) -> None:
        """Upload ``contents`` as a single block, replacing any existing blob."""
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        content_type = (config or {}).get("mimetype") or mimetypes.guess_type(path)[0]

        try:
            self._client.put_block(path, contents, content_type=content_type)
        except BlobRequestError as e:
            raise UnableToWriteFile.at_location(path, str(e)) from e

    def write_stream(
        self, path: str, stream: IO, config: Optional[Mapping[str, Any]] = None
    ) -> None:
        """Buffer the whole stream in memory, then ``write`` it."""
        self.write(path, stream.read(), config)

    # Reading

    def read(self, path: str) -> bytes:
        try:
            record = self._client.get(path)
        except BlobRequestError as e:
            raise UnableToReadFile.from_location(path, str(e)) from e
        return record.content

    def read_stream(self, path: str) -> io.BytesIO:
        """Fetch the whole blob and expose it as an in-memory stream at offset 0."""
        return io.BytesIO(self.read(path))

    # Deleting

    def delete(self, path: str) -> None:
        try:
            self._client.delete(path, force=True)
        except BlobRequestError as e:
            raise UnableToDeleteFile.at_location(path, str(e)) from e

    def delete_directory(self, path: str) -> None:
        raise UnsupportedOperationError("delete_directory", "Directory deletion is not supported", location=path)

    def create_directory(self, path: str, config: Optional[Mapping[str, Any]] = None) -> None:
        raise UnsupportedOperationError("create_directory", "Directory creation is not supported", location=path)

    # Visibility and metadata

    def set_visibility(self, path: str, visibility: Union[str, Visibility]) -> None:
        raise UnsupportedOperationError("set_visibility", "Setting visibility is not supported", location=path)

    def visibility(self, path: str) -> FileAttributes:
        """
        Visibility of ``path``.

        Derived from the container's public access level, so every path in
        the container reports the same value.
        """
        try:
            properties = self._client.get_properties()
        except BlobRequestError as e:
            raise UnableToRetrieveMetadata.visibility(path, str(e)) from e
        return self.create_file_visibility(path, properties)

    def mime_type(self, path: str) -> FileAttributes:
        try:
            record = self._client.get(path)
        except BlobRequestError as e:
            raise UnableToRetrieveMetadata.mime_type(path, str(e)) from e
        return self.create_file_attributes(path, record)

    def last_modified(self, path: str) -> FileAttributes:
        try:
            record = self._client.get(path)
        except BlobRequestError as e:
            raise UnableToRetrieveMetadata.last_modified(path, str(e)) from e
        return self.create_file_attributes(path, record)

    def file_size(self, path: str) -> FileAttributes:
        try:
            record = self._client.get(path)
        except BlobRequestError as e:
            raise UnableToRetrieveMetadata.file_size(path, str(e)) from e
        return self.create_file_attributes(path, record)

    # Listing

    def list_contents(self, path: str, deep: bool = False) -> DirectoryListing:
        """
        List blobs under ``path``.

        The listing request is made immediately; each blob is then fetched
        only when the listing is advanced. ``deep`` is accepted for
        compatibility: prefix listings are always flat.

        Raises:
            UnableToListContents: If the listing request fails
        """
        try:
            items = self._client.list(prefix=listing_prefix(path))
        except BlobRequestError as e:
            raise UnableToListContents(path, deep, str(e)) from e
        return DirectoryListing(resolve_items(items, self.create_file_attributes, path, deep))

    # Copy and move

    def move(self, source: str, destination: str, config: Optional[Mapping[str, Any]] = None) -> None:
        """
        Copy then delete the source.

        A failed delete after a successful copy is still reported as a move
        failure, and the copy is not rolled back. Moving a path onto itself
        is a no-op.
        """
        if source == destination:
            return
        try:
            self._client.copy(source, destination)
            self._client.delete(source, force=True)
        except BlobRequestError as e:
            raise UnableToMoveFile(source, destination, str(e)) from e

    def copy(self, source: str, destination: str, config: Optional[Mapping[str, Any]] = None) -> None:
        try:
            self._client.copy(source, destination)
        except BlobRequestError as e:
            raise UnableToCopyFile(source, destination, str(e)) from e

    # Attribute builders

    def create_file_attributes(self, path: str, record: BlobRecord) -> FileAttributes:
        extra_metadata: Dict[str, Union[str, int]] = {}
        if record.content_md5:
            extra_metadata["contentMd5"] = record.content_md5
        creation_time = _timestamp(record.creation_time)
        if creation_time:
            extra_metadata["creationTime"] = creation_time

        return FileAttributes(
            path=path,
            file_size=record.content_length,
            last_modified=_timestamp(record.last_modified),
            mime_type=record.content_type,
            extra_metadata=extra_metadata,
        )

    def create_file_visibility(self, path: str, properties: ContainerProperties) -> FileAttributes:
        visibility = Visibility.PRIVATE if properties.public_access is None else Visibility.PUBLIC
        return FileAttributes(path=path, visibility=visibility)
