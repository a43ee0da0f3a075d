"""Disk configuration models and YAML loading."""

import os
import re
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .auth import AuthMethod, missing_settings
from .errors import (
    ConfigurationError,
    DiskNotConfiguredError,
    InvalidAuthProviderError,
    InvalidContainerNameError,
    MissingCredentialsError,
)

CONFIG_ENV_VAR = "BLOBDISK_CONFIG"
DEFAULT_CONFIG_FILE = "filesystems.yaml"

# 3-63 chars, lowercase alphanumerics and single hyphens, alphanumeric at both ends
CONTAINER_NAME_RE = re.compile(r"^(?=.{3,63}$)[a-z0-9]+(?:-[a-z0-9]+)*$")


def validate_container_name(name: object) -> str:
    """
    Validate an Azure container name.

    Args:
        name: Raw configured value (integers are accepted)

    Returns:
        The container name as a string

    Raises:
        InvalidContainerNameError: If the name breaks Azure naming rules
    """
    container = "" if name is None else str(name)
    if not CONTAINER_NAME_RE.match(container):
        raise InvalidContainerNameError(container)
    return container


class DiskOptions(BaseModel):
    """Driver options: auth method, endpoint override and protocol."""
    authentication: AuthMethod = AuthMethod.ENTRA_ID
    url: Optional[str] = None       # Endpoint override, e.g. "127.0.0.1:10000/devstoreaccount1"
    secure: bool = True             # https when true, http otherwise

    @field_validator("authentication", mode="before")
    @classmethod
    def validate_authentication(cls, v):
        """Reject unknown auth providers with a configuration error."""
        if v is None:
            return AuthMethod.ENTRA_ID
        if isinstance(v, AuthMethod):
            return v
        try:
            return AuthMethod(str(v).lower())
        except ValueError:
            raise InvalidAuthProviderError(v)

    @field_validator("secure", mode="before")
    @classmethod
    def default_secure(cls, v):
        return True if v is None else v


class DiskConfig(BaseModel):
    """
    Configuration for one disk.

    ``driver`` selects the adapter factory ("azure" or "local"). Azure
    credentials are checked against the selected auth method at load time.
    """
    model_config = ConfigDict(extra="ignore")

    driver: str = "azure"
    container: str = Field(default="", validate_default=True)

    # Azure credentials
    account: Optional[str] = None
    key: Optional[str] = Field(default_factory=lambda: os.environ.get("AZURE_STORAGE_KEY"))
    directory: Optional[str] = None     # Tenant id
    application: Optional[str] = None   # Client id
    secret: Optional[str] = None        # Client secret
    connection_string: Optional[str] = Field(
        default_factory=lambda: os.environ.get("AZURE_STORAGE_CONNECTION_STRING")
    )

    # Local driver
    root: Optional[str] = None
    public_access: Optional[str] = None

    options: DiskOptions = Field(default_factory=DiskOptions)

    @field_validator("container", mode="before")
    @classmethod
    def validate_container(cls, v) -> str:
        return validate_container_name(v)

    @field_validator("options", mode="before")
    @classmethod
    def default_options(cls, v):
        return {} if v is None else v

    @model_validator(mode="after")
    def validate_credentials(self):
        """Fail fast when the selected auth method lacks settings."""
        if self.driver == "azure":
            method = self.options.authentication
            missing = missing_settings(method, self.credential_settings())
            if missing:
                raise MissingCredentialsError(method.value, missing)
        elif self.driver == "local" and not self.root:
            raise ConfigurationError("root (directory path) required for local disks")
        return self

    def credential_settings(self) -> Dict[str, Optional[str]]:
        return {
            "account": self.account,
            "key": self.key,
            "directory": self.directory,
            "application": self.application,
            "secret": self.secret,
            "connection_string": self.connection_string,
        }


class FilesystemsConfig(BaseModel):
    """All configured disks plus the default disk name."""
    default: str = "local"
    disks: Dict[str, DiskConfig] = Field(default_factory=dict)

    def get_disk(self, name: Optional[str] = None) -> DiskConfig:
        """
        Get configuration for a disk.

        Raises:
            DiskNotConfiguredError: If no disk has that name
        """
        name = name or self.default
        if name not in self.disks:
            raise DiskNotConfiguredError(name)
        return self.disks[name]


def resolve_config_path(path: Optional[Path] = None) -> Path:
    """Resolution order: explicit path > $BLOBDISK_CONFIG > ./filesystems.yaml."""
    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_CONFIG_FILE


def load_filesystems_config(path: Optional[Path] = None) -> FilesystemsConfig:
    """
    Load filesystem configuration from YAML.

    Args:
        path: Config file; see ``resolve_config_path`` for the fallback order

    Returns:
        Validated FilesystemsConfig

    Raises:
        FileNotFoundError: If the config file does not exist
        ConfigurationError: If a disk is misconfigured
    """
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(
            f"Filesystem configuration not found at {cfg_path}\n"
            f"Pass --config or set {CONFIG_ENV_VAR}"
        )

    data = yaml.safe_load(cfg_path.read_text()) or {}
    return FilesystemsConfig.model_validate(data)
