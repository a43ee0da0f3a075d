"""Custom exceptions for blobdisk.

This module defines the typed exceptions raised by the storage adapter, the
blob clients and the configuration layer. Adapter failures always carry the
offending location and the backend's message, and chain the original
exception as their cause.
"""

from typing import Optional


class BlobDiskError(RuntimeError):
    """Base class for all blobdisk errors."""
    pass


# Backend Errors
class BlobRequestError(BlobDiskError):
    """A request against the blob backend failed (not found, auth, transport)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


# Filesystem Errors
class FilesystemError(BlobDiskError):
    """Base class for errors raised through the filesystem contract."""
    pass


class FilesystemOperationFailed(FilesystemError):
    """A filesystem operation could not be completed."""

    operation = "unknown"

    def __init__(self, message: str, location: str = "", reason: str = ""):
        self.location = location
        self.reason = reason
        super().__init__(message)


class UnsupportedOperationError(FilesystemOperationFailed):
    """Operation has no meaning on flat object storage."""

    def __init__(self, operation: str, message: str, location: str = ""):
        self.operation = operation
        super().__init__(message, location=location)


class UnableToWriteFile(FilesystemOperationFailed):
    operation = "write"

    @classmethod
    def at_location(cls, location: str, reason: str = "") -> "UnableToWriteFile":
        message = f"Unable to write file at location: {location}."
        if reason:
            message += f" {reason}"
        return cls(message, location=location, reason=reason)


class UnableToReadFile(FilesystemOperationFailed):
    operation = "read"

    @classmethod
    def from_location(cls, location: str, reason: str = "") -> "UnableToReadFile":
        message = f"Unable to read file from location: {location}."
        if reason:
            message += f" {reason}"
        return cls(message, location=location, reason=reason)


class UnableToDeleteFile(FilesystemOperationFailed):
    operation = "delete"

    @classmethod
    def at_location(cls, location: str, reason: str = "") -> "UnableToDeleteFile":
        message = f"Unable to delete file located at: {location}."
        if reason:
            message += f" {reason}"
        return cls(message, location=location, reason=reason)


class UnableToCopyFile(FilesystemOperationFailed):
    """Copy failed. ``location`` is the source."""

    operation = "copy"

    def __init__(self, source: str, destination: str, reason: str = ""):
        self.source = source
        self.destination = destination
        message = f"Unable to copy file from {source} to {destination}"
        if reason:
            message += f": {reason}"
        super().__init__(message, location=source, reason=reason)


class UnableToMoveFile(FilesystemOperationFailed):
    """Move failed.

    The move is a copy followed by a delete of the source. When the copy
    succeeded and the delete failed, the object exists at both locations.
    """

    operation = "move"

    def __init__(self, source: str, destination: str, reason: str = ""):
        self.source = source
        self.destination = destination
        message = f"Unable to move file from {source} to {destination}"
        if reason:
            message += f": {reason}"
        super().__init__(message, location=source, reason=reason)


class UnableToListContents(FilesystemOperationFailed):
    operation = "list"

    def __init__(self, location: str, deep: bool, reason: str = ""):
        self.deep = deep
        kind = "deep" if deep else "shallow"
        message = f"Unable to list contents for '{location}', {kind} listing"
        if reason:
            message += f"\n\nReason: {reason}"
        super().__init__(message, location=location, reason=reason)


class UnableToRetrieveMetadata(FilesystemOperationFailed):
    """Metadata lookup failed. ``metadata_type`` names the requested field."""

    operation = "metadata"

    VISIBILITY = "visibility"
    MIME_TYPE = "mime_type"
    LAST_MODIFIED = "last_modified"
    FILE_SIZE = "file_size"

    def __init__(self, location: str, metadata_type: str, reason: str = ""):
        self.metadata_type = metadata_type
        message = f"Unable to retrieve the {metadata_type} for file at location: {location}."
        if reason:
            message += f" {reason}"
        super().__init__(message, location=location, reason=reason)

    @classmethod
    def visibility(cls, location: str, reason: str = "") -> "UnableToRetrieveMetadata":
        return cls(location, cls.VISIBILITY, reason)

    @classmethod
    def mime_type(cls, location: str, reason: str = "") -> "UnableToRetrieveMetadata":
        return cls(location, cls.MIME_TYPE, reason)

    @classmethod
    def last_modified(cls, location: str, reason: str = "") -> "UnableToRetrieveMetadata":
        return cls(location, cls.LAST_MODIFIED, reason)

    @classmethod
    def file_size(cls, location: str, reason: str = "") -> "UnableToRetrieveMetadata":
        return cls(location, cls.FILE_SIZE, reason)


# Configuration Errors
class ConfigurationError(BlobDiskError):
    """Base class for configuration errors."""
    pass


class InvalidContainerNameError(ConfigurationError):
    """Container name does not follow the Azure naming rules."""

    def __init__(self, container: str):
        self.container = container
        super().__init__(f"Invalid container name: [{container}]")


class InvalidAuthProviderError(ConfigurationError):
    """Authentication method is not one of the supported providers."""

    def __init__(self, provider: object):
        self.provider = provider
        super().__init__("The authentication provider must implement the Auth interface.")


class MissingCredentialsError(ConfigurationError):
    """Selected authentication method lacks required settings."""

    def __init__(self, method: str, missing: list):
        self.method = method
        self.missing = missing
        super().__init__(
            f"Authentication method '{method}' requires: {', '.join(missing)}"
        )


class UnsupportedDriverError(ConfigurationError):
    """No driver registered under the configured name."""

    def __init__(self, driver: str):
        self.driver = driver
        super().__init__(f"Filesystem driver '{driver}' not supported")


class DiskNotConfiguredError(ConfigurationError):
    """Requested disk is missing from the filesystems configuration."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Disk [{name}] does not have a configured driver.")
