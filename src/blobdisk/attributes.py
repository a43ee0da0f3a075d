"""Attribute models returned by the storage adapter."""

from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Visibility(str, Enum):
    """Read access classification of a stored object."""
    PUBLIC = "public"
    PRIVATE = "private"


class FileAttributes(BaseModel):
    """
    Metadata describing one stored object.

    Built fresh on every adapter call. Fields the backend did not return
    stay ``None``; ``extra_metadata`` only holds keys that were present.
    """
    model_config = ConfigDict(frozen=True)

    path: str
    file_size: Optional[int] = None        # Bytes
    last_modified: Optional[int] = None    # Epoch seconds
    mime_type: Optional[str] = None
    visibility: Optional[Visibility] = None
    extra_metadata: Dict[str, Union[str, int]] = Field(default_factory=dict)
