"""Blob clients consumed by the storage adapter."""

from .azure import AzureBlobClient
from .base import BlobClient, BlobItem, BlobRecord, ContainerProperties
from .fs import FilesystemBlobClient

__all__ = [
    "AzureBlobClient",
    "BlobClient",
    "BlobItem",
    "BlobRecord",
    "ContainerProperties",
    "FilesystemBlobClient",
]
