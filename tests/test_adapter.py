"""Tests for BlobStorageAdapter against a mocked blob client."""

import io
from datetime import datetime, timedelta, timezone

import pytest

from blobdisk.attributes import FileAttributes, Visibility
from blobdisk.errors import (
    BlobRequestError,
    UnableToCopyFile,
    UnableToDeleteFile,
    UnableToListContents,
    UnableToMoveFile,
    UnableToReadFile,
    UnableToRetrieveMetadata,
    UnableToWriteFile,
    UnsupportedOperationError,
)
from blobdisk.storage.base import BlobItem, ContainerProperties


EXPIRATION = datetime(2030, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=5)


class TestUrls:
    """URL generation."""

    def test_url_prefixes_container(self, adapter, mock_client):
        """Direct URL is built from container/path without a request."""
        mock_client.uri.return_value = "http://account.blob.core.windows.net/container/file.txt"

        assert adapter.url("file.txt") == "http://account.blob.core.windows.net/container/file.txt"
        mock_client.uri.assert_called_once_with("container/file.txt")
        mock_client.get.assert_not_called()

    def test_provides_temporary_urls(self, adapter):
        assert adapter.provides_temporary_urls() is True

    def test_temporary_url(self, adapter, mock_client):
        mock_client.temporary_url.return_value = "http://assigned_url"

        assert adapter.temporary_url("file.txt", EXPIRATION) == "http://assigned_url"
        mock_client.temporary_url.assert_called_once_with("file.txt", EXPIRATION)

    def test_temporary_upload_url_has_no_headers(self, adapter, mock_client):
        mock_client.temporary_url.return_value = "http://assigned_url"

        result = adapter.temporary_upload_url("file.txt", EXPIRATION)

        assert result == {"url": "http://assigned_url", "headers": {}}
        args, kwargs = mock_client.temporary_url.call_args
        assert args == ("file.txt", EXPIRATION)
        assert "c" in kwargs["permission"] and "w" in kwargs["permission"]

    def test_signing_failure_is_not_translated(self, adapter, mock_client):
        """Signing problems are configuration errors, not filesystem errors."""
        mock_client.temporary_url.side_effect = BlobRequestError("AuthorizationFailure", status_code=403)

        with pytest.raises(BlobRequestError):
            adapter.temporary_url("file.txt", EXPIRATION)


class TestFileExists:
    """Existence checks."""

    def test_exists(self, adapter, mock_client, make_record):
        mock_client.get.return_value = make_record()
        assert adapter.file_exists("file.txt") is True
        mock_client.get.assert_called_once_with("file.txt")

    @pytest.mark.parametrize("error", [
        BlobRequestError("The specified blob does not exist.", status_code=404),
        BlobRequestError("Connection refused"),
        BlobRequestError("Server busy", status_code=503),
    ])
    def test_any_request_failure_means_missing(self, adapter, mock_client, error):
        """Not-found and transport failures are indistinguishable."""
        mock_client.get.side_effect = error
        assert adapter.file_exists("file.txt") is False


@pytest.mark.parametrize("method,args", [
    ("directory_exists", ("path",)),
    ("delete_directory", ("path",)),
    ("create_directory", ("path", {})),
    ("set_visibility", ("path", "public")),
    ("set_visibility", ("", Visibility.PRIVATE)),
])
def test_unsupported_operations(adapter, mock_client, method, args):
    """Directory and visibility mutations always fail, whatever the input."""
    with pytest.raises(UnsupportedOperationError) as exc_info:
        getattr(adapter, method)(*args)

    assert exc_info.value.operation == method
    assert exc_info.value.location == args[0]
    assert not mock_client.method_calls


class TestWrite:
    """Uploads."""

    def test_write_bytes(self, adapter, mock_client):
        adapter.write("path/file.txt", b"contents")
        mock_client.put_block.assert_called_once_with(
            "path/file.txt", b"contents", content_type="text/plain"
        )

    def test_write_str_is_utf8(self, adapter, mock_client):
        adapter.write("path/naïve.txt", "naïve")
        args, _ = mock_client.put_block.call_args
        assert args[1] == "naïve".encode("utf-8")

    def test_write_explicit_mimetype(self, adapter, mock_client):
        adapter.write("path/file", b"{}", {"mimetype": "application/json"})
        _, kwargs = mock_client.put_block.call_args
        assert kwargs["content_type"] == "application/json"

    def test_write_unknown_extension_leaves_type_to_backend(self, adapter, mock_client):
        adapter.write("path/file.unknownext", b"data")
        _, kwargs = mock_client.put_block.call_args
        assert kwargs["content_type"] is None

    def test_write_stream_buffers_then_writes(self, adapter, mock_client):
        adapter.write_stream("path/file.txt", io.BytesIO(b"contents"))
        mock_client.put_block.assert_called_once_with(
            "path/file.txt", b"contents", content_type="text/plain"
        )

    @pytest.mark.parametrize("method,contents", [
        ("write", b"contents"),
        ("write_stream", io.BytesIO(b"contents")),
    ])
    def test_write_failure(self, adapter, mock_client, method, contents):
        mock_client.put_block.side_effect = BlobRequestError("Unable to write file")

        with pytest.raises(UnableToWriteFile) as exc_info:
            getattr(adapter, method)("path/file.txt", contents)

        assert exc_info.value.location == "path/file.txt"
        assert exc_info.value.reason == "Unable to write file"
        assert isinstance(exc_info.value.__cause__, BlobRequestError)


class TestRead:
    """Downloads."""

    def test_read(self, adapter, mock_client, make_record):
        mock_client.get.return_value = make_record("path/file.txt", b"contents")
        assert adapter.read("path/file.txt") == b"contents"

    def test_read_stream_starts_at_beginning(self, adapter, mock_client, make_record):
        mock_client.get.return_value = make_record("path/file.txt", b"contents")

        stream = adapter.read_stream("path/file.txt")

        assert stream.tell() == 0
        assert stream.read() == b"contents"

    @pytest.mark.parametrize("method", ["read", "read_stream"])
    def test_read_failure(self, adapter, mock_client, method):
        mock_client.get.side_effect = BlobRequestError("Unable to read file")

        with pytest.raises(UnableToReadFile) as exc_info:
            getattr(adapter, method)("path/file.txt")

        assert exc_info.value.location == "path/file.txt"


class TestDelete:
    """Deletes."""

    def test_delete_is_forced(self, adapter, mock_client):
        adapter.delete("path/file.txt")
        mock_client.delete.assert_called_once_with("path/file.txt", force=True)

    def test_delete_failure(self, adapter, mock_client):
        mock_client.delete.side_effect = BlobRequestError("Unable to delete file")

        with pytest.raises(UnableToDeleteFile) as exc_info:
            adapter.delete("path/file.txt")

        assert exc_info.value.location == "path/file.txt"


class TestVisibility:
    """Container-wide visibility."""

    @pytest.mark.parametrize("public_access,expected", [
        ("blob", Visibility.PUBLIC),
        ("container", Visibility.PUBLIC),
        ("", Visibility.PUBLIC),
        (None, Visibility.PRIVATE),
    ])
    def test_visibility_from_public_access(self, adapter, mock_client, public_access, expected):
        mock_client.get_properties.return_value = ContainerProperties("container", public_access)

        result = adapter.visibility("file.txt")

        assert isinstance(result, FileAttributes)
        assert result.visibility == expected
        assert result.path == "file.txt"
        assert result.file_size is None

    def test_visibility_ignores_path(self, adapter, mock_client):
        mock_client.get_properties.return_value = ContainerProperties("container", "blob")

        assert adapter.visibility("a.txt").visibility == adapter.visibility("b/c.txt").visibility

    def test_visibility_failure(self, adapter, mock_client):
        mock_client.get_properties.side_effect = BlobRequestError("Unable to read properties")

        with pytest.raises(UnableToRetrieveMetadata) as exc_info:
            adapter.visibility("file.txt")

        assert exc_info.value.metadata_type == "visibility"


class TestMetadata:
    """mime_type / last_modified / file_size."""

    @pytest.mark.parametrize("method", ["mime_type", "last_modified", "file_size"])
    def test_returns_full_attributes(self, adapter, mock_client, make_record, method):
        mock_client.get.return_value = make_record("file.txt", b"content")

        result = getattr(adapter, method)("file.txt")

        assert isinstance(result, FileAttributes)
        assert result.file_size == 7
        assert result.mime_type == "text/plain"
        assert result.last_modified == 1633046400
        mock_client.get.assert_called_once_with("file.txt")

    @pytest.mark.parametrize("method", ["mime_type", "last_modified", "file_size"])
    def test_failure_names_the_field(self, adapter, mock_client, method):
        mock_client.get.side_effect = BlobRequestError("Unable to read file")

        with pytest.raises(UnableToRetrieveMetadata) as exc_info:
            getattr(adapter, method)("file.txt")

        assert exc_info.value.metadata_type == method
        assert exc_info.value.location == "file.txt"


class TestListContents:
    """Lazy prefix listing."""

    def test_lists_every_item(self, adapter, mock_client, make_record):
        mock_client.list.return_value = [
            BlobItem(mock_client, "path/file.txt"),
            BlobItem(mock_client, "path/directory"),
        ]
        mock_client.get.side_effect = [make_record("path/file.txt"), make_record("path/directory")]

        result = list(adapter.list_contents("path/", False))

        assert [item.path for item in result] == ["path/file.txt", "path/directory"]
        assert all(isinstance(item, FileAttributes) for item in result)
        mock_client.list.assert_called_once_with(prefix="path/")

    @pytest.mark.parametrize("path,prefix", [
        ("path", "path/"),
        ("path/", "path/"),
        ("a//b", "a/b/"),
        ("", ""),
    ])
    def test_prefix(self, adapter, mock_client, path, prefix):
        mock_client.list.return_value = []
        list(adapter.list_contents(path))
        mock_client.list.assert_called_once_with(prefix=prefix)

    def test_deep_flag_does_not_change_listing(self, adapter, mock_client, make_record):
        mock_client.list.return_value = [BlobItem(mock_client, "path/a/b.txt")]
        mock_client.get.return_value = make_record("path/a/b.txt")

        assert [i.path for i in adapter.list_contents("path", True)] == ["path/a/b.txt"]

    def test_listing_failure_yields_nothing(self, adapter, mock_client):
        mock_client.list.side_effect = BlobRequestError("Unable to list files")

        with pytest.raises(UnableToListContents) as exc_info:
            adapter.list_contents("path/", False)

        assert exc_info.value.location == "path/"
        mock_client.get.assert_not_called()

    def test_item_failure_keeps_earlier_items(self, adapter, mock_client, make_record):
        """The Nth fetch failing stops iteration after N-1 items."""
        mock_client.list.return_value = [
            BlobItem(mock_client, "path/one.txt"),
            BlobItem(mock_client, "path/two.txt"),
            BlobItem(mock_client, "path/three.txt"),
        ]
        mock_client.get.side_effect = [
            make_record("path/one.txt"),
            BlobRequestError("Unable to read file"),
        ]

        listing = adapter.list_contents("path")
        first = next(listing)

        with pytest.raises(UnableToReadFile) as exc_info:
            next(listing)

        assert first.path == "path/one.txt"
        assert exc_info.value.location == "path/two.txt"
        with pytest.raises(StopIteration):
            next(listing)
        assert mock_client.get.call_count == 2

    def test_fetch_happens_on_advance(self, adapter, mock_client, make_record):
        mock_client.list.return_value = [BlobItem(mock_client, "path/one.txt")]
        mock_client.get.return_value = make_record("path/one.txt")

        listing = adapter.list_contents("path")
        mock_client.get.assert_not_called()

        next(listing)
        mock_client.get.assert_called_once_with("path/one.txt")


class TestCopyMove:
    """Copy and copy+delete."""

    def test_copy(self, adapter, mock_client):
        adapter.copy("source/file.txt", "destination/file.txt")
        mock_client.copy.assert_called_once_with("source/file.txt", "destination/file.txt")

    def test_copy_failure(self, adapter, mock_client):
        mock_client.copy.side_effect = BlobRequestError("Unable to copy file")

        with pytest.raises(UnableToCopyFile) as exc_info:
            adapter.copy("source/file.txt", "destination/file.txt")

        assert exc_info.value.source == "source/file.txt"
        assert exc_info.value.destination == "destination/file.txt"

    def test_move_copies_then_deletes(self, adapter, mock_client):
        adapter.move("source/file.txt", "destination/file.txt")

        assert [c[0] for c in mock_client.method_calls] == ["copy", "delete"]
        mock_client.delete.assert_called_once_with("source/file.txt", force=True)

    def test_move_copy_failure_skips_delete(self, adapter, mock_client):
        mock_client.copy.side_effect = BlobRequestError("Unable to copy file")

        with pytest.raises(UnableToMoveFile):
            adapter.move("source/file.txt", "destination/file.txt")

        mock_client.delete.assert_not_called()

    def test_move_delete_failure_is_move_failure(self, adapter, mock_client):
        mock_client.delete.side_effect = BlobRequestError("Unable to delete file")

        with pytest.raises(UnableToMoveFile):
            adapter.move("source/file.txt", "destination/file.txt")

        mock_client.copy.assert_called_once()

    def test_move_onto_itself_keeps_blob(self, adapter, mock_client):
        """Moving a path onto itself must not delete the only copy."""
        blobs = {"a.txt": b"payload"}
        mock_client.copy.side_effect = lambda src, dst: blobs.__setitem__(dst, blobs[src])
        mock_client.delete.side_effect = lambda path, force=False: blobs.pop(path)

        adapter.move("a.txt", "a.txt")

        assert blobs == {"a.txt": b"payload"}
        mock_client.copy.assert_not_called()
        mock_client.delete.assert_not_called()


def test_client_and_container(adapter, mock_client):
    assert adapter.client is mock_client
    assert adapter.container == "container"


class TestCreateFileAttributes:
    """Attribute synthesis from blob records."""

    def test_all_fields(self, adapter, make_record):
        attributes = adapter.create_file_attributes("file.txt", make_record())

        assert attributes.extra_metadata == {
            "contentMd5": "Y29udGVudA==",
            "creationTime": 1633046400,
        }
        assert list(attributes.extra_metadata) == ["contentMd5", "creationTime"]
        assert attributes.mime_type == "text/plain"
        assert attributes.file_size == 7
        assert attributes.last_modified == 1633046400
        assert attributes.path == "file.txt"
        assert attributes.visibility is None

    def test_empty_md5_is_omitted(self, adapter, make_record):
        attributes = adapter.create_file_attributes("file.txt", make_record(content_md5=""))
        assert attributes.extra_metadata == {"creationTime": 1633046400}

    def test_absent_fields_are_omitted(self, adapter, make_record):
        record = make_record(content_md5=None, creation_time=None)
        attributes = adapter.create_file_attributes("file.txt", record)
        assert attributes.extra_metadata == {}

    def test_missing_typed_fields_are_none(self, adapter, make_record):
        record = make_record(content_length=None, content_type=None, last_modified=None)
        attributes = adapter.create_file_attributes("file.txt", record)

        assert attributes.file_size is None
        assert attributes.mime_type is None
        assert attributes.last_modified is None

    def test_attributes_are_immutable(self, adapter, make_record):
        attributes = adapter.create_file_attributes("file.txt", make_record())
        with pytest.raises(Exception):
            attributes.path = "other.txt"
