"""Driver registry and named disk management."""

import logging
from pathlib import Path
from typing import Callable, Dict, Optional

from .adapter import BlobStorageAdapter
from .config import DiskConfig, FilesystemsConfig
from .errors import UnsupportedDriverError
from .factory import BlobStorageFactory
from .storage.fs import FilesystemBlobClient

logger = logging.getLogger(__name__)

DriverCreator = Callable[[DiskConfig], BlobStorageAdapter]


def create_azure_adapter(config: DiskConfig) -> BlobStorageAdapter:
    """Build an adapter for the ``azure`` driver."""
    factory = BlobStorageFactory(config)
    return BlobStorageAdapter(factory.create_client(), factory.get_container())


def create_local_adapter(config: DiskConfig) -> BlobStorageAdapter:
    """Build an adapter for the ``local`` driver (directory-backed blobs)."""
    client = FilesystemBlobClient(Path(config.root), config.container, config.public_access)
    return BlobStorageAdapter(client, config.container)


BUILTIN_DRIVERS: Dict[str, DriverCreator] = {
    "azure": create_azure_adapter,
    "local": create_local_adapter,
}


def build_adapter(config: DiskConfig, drivers: Optional[Dict[str, DriverCreator]] = None) -> BlobStorageAdapter:
    """
    Create an adapter for a disk config.

    Args:
        config: Disk configuration
        drivers: Driver table (defaults to the built-in drivers)

    Returns:
        Configured BlobStorageAdapter

    Raises:
        UnsupportedDriverError: If ``config.driver`` is not registered
    """
    drivers = BUILTIN_DRIVERS if drivers is None else drivers
    creator = drivers.get(config.driver)
    if creator is None:
        raise UnsupportedDriverError(config.driver)
    return creator(config)


class FilesystemManager:
    """Resolves named disks to adapters, creating each one once."""

    def __init__(self, config: FilesystemsConfig):
        self.config = config
        self._drivers: Dict[str, DriverCreator] = dict(BUILTIN_DRIVERS)
        self._disks: Dict[str, BlobStorageAdapter] = {}

    def extend(self, driver: str, creator: DriverCreator) -> None:
        """Register (or replace) a driver."""
        self._drivers[driver] = creator

    def disk(self, name: Optional[str] = None) -> BlobStorageAdapter:
        """
        Get the adapter for a named disk (default disk when omitted).

        Raises:
            DiskNotConfiguredError: If the disk is not configured
            UnsupportedDriverError: If its driver is not registered
        """
        name = name or self.config.default
        if name not in self._disks:
            disk_config = self.config.get_disk(name)
            logger.debug("Creating disk %s (driver=%s)", name, disk_config.driver)
            self._disks[name] = build_adapter(disk_config, self._drivers)
        return self._disks[name]

    def forget_disk(self, name: str) -> None:
        """Drop a cached disk so the next ``disk()`` call rebuilds it."""
        self._disks.pop(name, None)
