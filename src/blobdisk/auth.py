"""Authentication providers for Azure Blob Storage.

The set of providers is closed: a disk selects one through
``options.authentication`` and the choice is validated when the
configuration is loaded, not when the first request is made.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from azure.core.credentials import AzureNamedKeyCredential
from azure.identity import ClientSecretCredential, DefaultAzureCredential
from azure.storage.blob import BlobServiceClient

from .errors import MissingCredentialsError

if TYPE_CHECKING:
    from .config import DiskConfig


class AuthMethod(str, Enum):
    """Supported authentication methods."""
    ENTRA_ID = "entra_id"                      # Service principal (tenant/client/secret)
    SHARED_KEY = "shared_key"                  # Account name + account key
    CONNECTION_STRING = "connection_string"    # Full storage connection string
    DEFAULT_CREDENTIAL = "default_credential"  # Environment / managed identity chain


REQUIRED_SETTINGS: Dict[AuthMethod, List[str]] = {
    AuthMethod.ENTRA_ID: ["account", "directory", "application", "secret"],
    AuthMethod.SHARED_KEY: ["account", "key"],
    AuthMethod.CONNECTION_STRING: ["connection_string"],
    AuthMethod.DEFAULT_CREDENTIAL: ["account"],
}


def missing_settings(method: AuthMethod, settings: Dict[str, Optional[str]]) -> List[str]:
    """Return the required settings for ``method`` that are unset."""
    return [name for name in REQUIRED_SETTINGS[method] if not settings.get(name)]


class AuthProvider(ABC):
    """Builds an authenticated service client for one storage account."""

    method: AuthMethod

    @abstractmethod
    def create_service_client(self, account_url: str) -> BlobServiceClient:
        """Create a service client for ``account_url``."""
        ...

    @property
    def account_key(self) -> Optional[str]:
        """Account key usable for SAS signing, if this method has one."""
        return None


class EntraIdAuth(AuthProvider):
    """Microsoft Entra ID service principal."""

    method = AuthMethod.ENTRA_ID

    def __init__(self, directory: str, application: str, secret: str):
        self.directory = directory
        self.application = application
        self.secret = secret

    def create_service_client(self, account_url: str) -> BlobServiceClient:
        credential = ClientSecretCredential(
            tenant_id=self.directory,
            client_id=self.application,
            client_secret=self.secret,
        )
        return BlobServiceClient(account_url=account_url, credential=credential)


class SharedKeyAuth(AuthProvider):
    """Storage account shared key."""

    method = AuthMethod.SHARED_KEY

    def __init__(self, account: str, key: str):
        self.account = account
        self.key = key

    def create_service_client(self, account_url: str) -> BlobServiceClient:
        credential = AzureNamedKeyCredential(self.account, self.key)
        return BlobServiceClient(account_url=account_url, credential=credential)

    @property
    def account_key(self) -> Optional[str]:
        return self.key


class ConnectionStringAuth(AuthProvider):
    """Connection string; the endpoint comes from the string itself."""

    method = AuthMethod.CONNECTION_STRING

    def __init__(self, connection_string: str):
        self.connection_string = connection_string
        self._account_key: Optional[str] = None

    def create_service_client(self, account_url: str) -> BlobServiceClient:
        client = BlobServiceClient.from_connection_string(self.connection_string)
        # SAS connection strings carry no key
        self._account_key = getattr(client.credential, "account_key", None)
        return client

    @property
    def account_key(self) -> Optional[str]:
        return self._account_key


class DefaultCredentialAuth(AuthProvider):
    """DefaultAzureCredential chain (env vars, managed identity, az login)."""

    method = AuthMethod.DEFAULT_CREDENTIAL

    def create_service_client(self, account_url: str) -> BlobServiceClient:
        return BlobServiceClient(account_url=account_url, credential=DefaultAzureCredential())


def make_auth_provider(config: "DiskConfig") -> AuthProvider:
    """
    Create the auth provider selected by a disk configuration.

    Args:
        config: Validated disk configuration

    Returns:
        AuthProvider for ``config.options.authentication``

    Raises:
        MissingCredentialsError: If a required setting is empty
    """
    method = config.options.authentication
    missing = missing_settings(method, config.credential_settings())
    if missing:
        raise MissingCredentialsError(method.value, missing)

    if method == AuthMethod.ENTRA_ID:
        return EntraIdAuth(config.directory, config.application, config.secret)
    if method == AuthMethod.SHARED_KEY:
        return SharedKeyAuth(config.account, config.key)
    if method == AuthMethod.CONNECTION_STRING:
        return ConnectionStringAuth(config.connection_string)
    return DefaultCredentialAuth()


__all__ = [
    "AuthMethod",
    "AuthProvider",
    "EntraIdAuth",
    "SharedKeyAuth",
    "ConnectionStringAuth",
    "DefaultCredentialAuth",
    "make_auth_provider",
]
