"""Factory for building configured Azure blob clients."""

import logging

from .auth import AuthProvider, make_auth_provider
from .config import DiskConfig, validate_container_name
from .storage.azure import AzureBlobClient

logger = logging.getLogger(__name__)

AZURE_BLOB_DOMAIN = "blob.core.windows.net"


class BlobStorageFactory:
    """Builds an AzureBlobClient and container name from a disk config."""

    def __init__(self, config: DiskConfig):
        self.config = config

    def get_container(self) -> str:
        """
        Get the validated container name.

        Raises:
            InvalidContainerNameError: If the name breaks Azure naming rules
        """
        return validate_container_name(self.config.container)

    def account_url(self) -> str:
        """
        Account endpoint.

        ``options.url`` overrides the default ``<account>.blob.core.windows.net``
        domain (e.g. Azurite at ``127.0.0.1:10000/devstoreaccount1``) and
        ``options.secure`` picks https or http.
        """
        options = self.config.options
        domain = options.url
        if not domain:
            if not self.config.account:
                return ""
            domain = f"{self.config.account}.{AZURE_BLOB_DOMAIN}"
        if "://" in domain:
            return domain.rstrip("/")

        protocol = "https" if options.secure else "http"
        return f"{protocol}://{domain.strip('/')}"

    def get_authentication_provider(self) -> AuthProvider:
        return make_auth_provider(self.config)

    def create_client(self) -> AzureBlobClient:
        """
        Create an authenticated client bound to the configured container.

        Raises:
            ConfigurationError: If the container or credentials are invalid
        """
        container = self.get_container()
        auth = self.get_authentication_provider()
        account_url = self.account_url()
        logger.debug(
            "Creating Azure blob client (auth=%s, endpoint=%s, container=%s)",
            auth.method.value,
            account_url or "<connection string>",
            container,
        )
        service = auth.create_service_client(account_url)
        return AzureBlobClient(service, container, auth.account_key)
