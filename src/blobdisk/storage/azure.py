"""Azure blob storage client implementation."""

import base64
import logging
import time
import urllib.parse
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Optional

from azure.core.exceptions import AzureError
from azure.storage.blob import (
    BlobSasPermissions,
    BlobServiceClient,
    ContentSettings,
    generate_blob_sas,
)

from ..errors import BlobRequestError
from .base import BlobItem, BlobRecord, ContainerProperties

logger = logging.getLogger(__name__)

# Seconds between copy status checks while a server-side copy is pending
COPY_POLL_INTERVAL = 0.5


def _request_error(exc: AzureError) -> BlobRequestError:
    """Wrap an SDK error, keeping the HTTP status when there is one."""
    message = getattr(exc, "message", None) or str(exc)
    return BlobRequestError(message, status_code=getattr(exc, "status_code", None))


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class AzureBlobClient:
    """
    Blob client bound to one Azure container.

    The container must already exist; it is never created or deleted here.
    """

    def __init__(
        self,
        service_client: BlobServiceClient,
        container: str,
        account_key: Optional[str] = None,
    ):
        """
        Initialize Azure blob client.

        Args:
            service_client: Authenticated service client for the account
            container: Container name
            account_key: Account key for SAS signing; user delegation keys
                are requested when omitted
        """
        self.service = service_client
        self.container = container
        self.account_key = account_key
        self.container_client = service_client.get_container_client(container)
        logger.debug("Azure blob client bound to %s/%s", service_client.url, container)

    def get(self, path: str) -> BlobRecord:
        blob_client = self.container_client.get_blob_client(path)
        try:
            downloader = blob_client.download_blob()
            content = downloader.readall()
        except AzureError as e:
            raise _request_error(e) from e

        props = downloader.properties
        settings = props.content_settings
        md5 = settings.content_md5 if settings else None
        return BlobRecord(
            name=path,
            content=content,
            content_length=props.size,
            content_type=settings.content_type if settings else None,
            last_modified=props.last_modified,
            content_md5=base64.b64encode(bytes(md5)).decode("ascii") if md5 else None,
            creation_time=props.creation_time,
        )

    def put_block(self, path: str, content: bytes, content_type: Optional[str] = None) -> None:
        blob_client = self.container_client.get_blob_client(path)
        settings = ContentSettings(content_type=content_type) if content_type else None
        try:
            blob_client.upload_blob(
                content,
                blob_type="BlockBlob",
                overwrite=True,
                content_settings=settings,
            )
        except AzureError as e:
            raise _request_error(e) from e

    def delete(self, path: str, force: bool = False) -> None:
        blob_client = self.container_client.get_blob_client(path)
        try:
            blob_client.delete_blob(delete_snapshots="include" if force else None)
        except AzureError as e:
            raise _request_error(e) from e

    def copy(self, source: str, destination: str) -> None:
        source_url = self.container_client.get_blob_client(source).url
        dest_client = self.container_client.get_blob_client(destination)
        try:
            result = dest_client.start_copy_from_url(source_url)
            status = result.get("copy_status")
            # Large or cross-account copies complete asynchronously
            while status == "pending":
                logger.debug("Copy %s -> %s pending", source, destination)
                time.sleep(COPY_POLL_INTERVAL)
                status = dest_client.get_blob_properties().copy.status
        except AzureError as e:
            raise _request_error(e) from e

        if status != "success":
            raise BlobRequestError(f"Copy of {source} to {destination} ended with status '{status}'")

    def list(self, prefix: str = "") -> Iterable[BlobItem]:
        try:
            pages = self.container_client.list_blobs(name_starts_with=prefix or None).by_page()
            first_page = [blob.name for blob in next(pages, [])]
        except AzureError as e:
            raise _request_error(e) from e
        return self._iter_items(first_page, pages)

    def _iter_items(self, first_page: List[str], pages: Iterator) -> Iterator[BlobItem]:
        for name in first_page:
            yield BlobItem(self, name)
        while True:
            try:
                page = next(pages, None)
                if page is None:
                    return
                names = [blob.name for blob in page]
            except AzureError as e:
                raise _request_error(e) from e
            for name in names:
                yield BlobItem(self, name)

    def temporary_url(self, path: str, expiration: datetime, permission: str = "r") -> str:
        expiry = _as_utc(expiration)
        try:
            if self.account_key:
                sas = generate_blob_sas(
                    account_name=self.service.account_name,
                    container_name=self.container,
                    blob_name=path,
                    account_key=self.account_key,
                    permission=BlobSasPermissions.from_string(permission),
                    expiry=expiry,
                )
            else:
                delegation_key = self.service.get_user_delegation_key(
                    key_start_time=datetime.now(timezone.utc),
                    key_expiry_time=expiry,
                )
                sas = generate_blob_sas(
                    account_name=self.service.account_name,
                    container_name=self.container,
                    blob_name=path,
                    user_delegation_key=delegation_key,
                    permission=BlobSasPermissions.from_string(permission),
                    expiry=expiry,
                )
        except AzureError as e:
            raise _request_error(e) from e

        return f"{self.container_client.get_blob_client(path).url}?{sas}"

    def get_properties(self) -> ContainerProperties:
        try:
            props = self.container_client.get_container_properties()
        except AzureError as e:
            raise _request_error(e) from e
        return ContainerProperties(
            name=props.name,
            public_access=props.public_access,
            last_modified=props.last_modified,
            etag=props.etag,
        )

    def uri(self, path: str) -> str:
        base = self.service.url.split("?", 1)[0].rstrip("/")
        return f"{base}/{urllib.parse.quote(path)}"
