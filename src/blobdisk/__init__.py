"""Filesystem adapter for Azure Blob Storage."""

from .adapter import BlobStorageAdapter
from .attributes import FileAttributes, Visibility
from .config import DiskConfig, FilesystemsConfig, load_filesystems_config
from .listing import DirectoryListing
from .manager import FilesystemManager, build_adapter

__version__ = "0.1.0"

__all__ = [
    "BlobStorageAdapter",
    "DirectoryListing",
    "DiskConfig",
    "FileAttributes",
    "FilesystemManager",
    "FilesystemsConfig",
    "Visibility",
    "build_adapter",
    "load_filesystems_config",
]
