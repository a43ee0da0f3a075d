"""Lazy directory listings.

A listing is single-pass: each advance pulls the next listed blob and
fetches it. Items already produced stay valid when a later fetch fails,
but the listing cannot continue past the failure.
"""

from typing import Callable, Iterable, Iterator, List

from .attributes import FileAttributes
from .errors import BlobRequestError, UnableToListContents, UnableToReadFile
from .storage.base import BlobItem, BlobRecord


class DirectoryListing:
    """Iterator over FileAttributes with lazy filter/map helpers."""

    def __init__(self, listing: Iterable[FileAttributes]):
        self._iterator = iter(listing)

    def __iter__(self) -> Iterator[FileAttributes]:
        return self

    def __next__(self) -> FileAttributes:
        return next(self._iterator)

    def filter(self, predicate: Callable[[FileAttributes], bool]) -> "DirectoryListing":
        return DirectoryListing(item for item in self if predicate(item))

    def map(self, fn: Callable[[FileAttributes], FileAttributes]) -> "DirectoryListing":
        return DirectoryListing(fn(item) for item in self)

    def sort_by_path(self) -> "DirectoryListing":
        """Consumes the listing; sorting needs every item."""
        return DirectoryListing(sorted(self, key=lambda item: item.path))

    def to_list(self) -> List[FileAttributes]:
        return list(self)


def resolve_items(
    items: Iterable[BlobItem],
    build: Callable[[str, BlobRecord], FileAttributes],
    location: str,
    deep: bool,
) -> Iterator[FileAttributes]:
    """
    Fetch each listed blob on demand and build its attributes.

    Args:
        items: Listed blob references (may page lazily)
        build: Attribute factory taking (name, record)
        location: Listed path, reported on listing failures
        deep: Requested listing depth, reported on listing failures

    Raises:
        UnableToListContents: If advancing the backend listing fails
        UnableToReadFile: If fetching a listed blob fails
    """
    iterator = iter(items)
    while True:
        try:
            item = next(iterator)
        except StopIteration:
            return
        except BlobRequestError as e:
            raise UnableToListContents(location, deep, str(e)) from e

        try:
            record = item.get()
        except BlobRequestError as e:
            raise UnableToReadFile.from_location(item.name, str(e)) from e

        yield build(item.name, record)
