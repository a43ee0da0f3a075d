"""Filesystem blob client implementation for local disks and testing."""

import base64
import hashlib
import json
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from ..errors import BlobRequestError
from .base import BlobItem, BlobRecord, ContainerProperties

META_DIR = ".blobmeta"


class FilesystemBlobClient:
    """
    Local directory client (avoids Azurite dependency).

    Blobs live at root/<container>/<name>. Properties that a plain file
    cannot carry (content type, MD5, creation time) are kept in a JSON
    sidecar at root/.blobmeta/<container>/<name>.json.
    """

    def __init__(self, root: Path, container: str, public_access: Optional[str] = None):
        """
        Initialize filesystem client.

        Args:
            root: Base directory holding container directories
            container: Container (sub-directory) name
            public_access: Reported as the container's public access level
        """
        self.root = Path(root)
        self.container = container
        self.public_access = public_access
        self.container_dir = self.root / container
        self.meta_dir = self.root / META_DIR / container
        self.container_dir.mkdir(parents=True, exist_ok=True)

    def _blob_path(self, name: str) -> Path:
        """Resolve a blob name, refusing names that escape the container."""
        target = (self.container_dir / name).resolve()
        if not target.is_relative_to(self.container_dir.resolve()) or not name.strip("/"):
            raise BlobRequestError(f"Invalid blob name: {name}", status_code=400)
        return target

    def _meta_path(self, name: str) -> Path:
        return self.meta_dir / f"{name}.json"

    def _require(self, name: str) -> Path:
        path = self._blob_path(name)
        if not path.is_file():
            raise BlobRequestError(f"The specified blob does not exist: {name}", status_code=404)
        return path

    def get(self, path: str) -> BlobRecord:
        blob_path = self._require(path)
        try:
            content = blob_path.read_bytes()
            stat = blob_path.stat()
            meta_path = self._meta_path(path)
            meta = json.loads(meta_path.read_text()) if meta_path.exists() else {}
        except (OSError, ValueError) as e:
            raise BlobRequestError(f"Failed to read {path}: {e}") from e

        creation_time = meta.get("creation_time")
        return BlobRecord(
            name=path,
            content=content,
            content_length=stat.st_size,
            content_type=meta.get("content_type") or "application/octet-stream",
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            content_md5=meta.get("content_md5"),
            creation_time=datetime.fromisoformat(creation_time) if creation_time else None,
        )

    def put_block(self, path: str, content: bytes, content_type: Optional[str] = None) -> None:
        blob_path = self._blob_path(path)
        meta = {
            "content_type": content_type,
            "content_md5": base64.b64encode(hashlib.md5(content).digest()).decode("ascii"),
            "creation_time": datetime.now(timezone.utc).isoformat(),
        }
        try:
            blob_path.parent.mkdir(parents=True, exist_ok=True)
            blob_path.write_bytes(content)
            meta_path = self._meta_path(path)
            meta_path.parent.mkdir(parents=True, exist_ok=True)
            meta_path.write_text(json.dumps(meta))
        except OSError as e:
            # A blob without its sidecar must not outlive a failed write
            if blob_path.is_file():
                blob_path.unlink()
            raise BlobRequestError(f"Failed to write {path}: {e}") from e

    def delete(self, path: str, force: bool = False) -> None:
        blob_path = self._require(path)
        try:
            blob_path.unlink()
            self._meta_path(path).unlink(missing_ok=True)
        except OSError as e:
            raise BlobRequestError(f"Failed to delete {path}: {e}") from e

    def copy(self, source: str, destination: str) -> None:
        src = self._require(source)
        dest = self._blob_path(destination)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dest)
            src_meta = self._meta_path(source)
            if src_meta.exists():
                dest_meta = self._meta_path(destination)
                dest_meta.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(src_meta, dest_meta)
        except OSError as e:
            raise BlobRequestError(f"Failed to copy {source} to {destination}: {e}") from e

    def list(self, prefix: str = "") -> Iterable[BlobItem]:
        if not self.container_dir.is_dir():
            raise BlobRequestError(
                f"The specified container does not exist: {self.container}", status_code=404
            )
        names = sorted(
            p.relative_to(self.container_dir).as_posix()
            for p in self.container_dir.rglob("*")
            if p.is_file()
        )
        return iter([BlobItem(self, name) for name in names if name.startswith(prefix)])

    def temporary_url(self, path: str, expiration: datetime, permission: str = "r") -> str:
        raise NotImplementedError("Local disks cannot sign temporary URLs")

    def get_properties(self) -> ContainerProperties:
        if not self.container_dir.is_dir():
            raise BlobRequestError(
                f"The specified container does not exist: {self.container}", status_code=404
            )
        return ContainerProperties(
            name=self.container,
            public_access=self.public_access,
            last_modified=datetime.fromtimestamp(
                self.container_dir.stat().st_mtime, tz=timezone.utc
            ),
        )

    def uri(self, path: str) -> str:
        return (self.root.resolve() / path).as_uri()
