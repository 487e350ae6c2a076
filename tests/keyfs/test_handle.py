from __future__ import annotations

import hashlib
import io

import pytest

from keyfs.bucket import Bucket
from keyfs.errors import NotFoundError, WrongKindOfHandleError
from keyfs.nodes import NodeState
from keyfs.store.models import ListRequest, StoredObject
from keyfs.testing.memory_store import MemoryS3Store


class _BodyKeepingStore(MemoryS3Store):
    """Remembers every content stream it hands out."""

    def __init__(self) -> None:
        super().__init__()
        self.bodies: list[io.BytesIO] = []

    def fetch_object(self, bucket: str, key: str) -> StoredObject:
        stored = super().fetch_object(bucket, key)
        self.bodies.append(stored.body)
        return stored


def test_file_handle_starts_unknown_without_store_calls(bucket: Bucket, store: MemoryS3Store) -> None:
    handle = bucket.file("notes/todo.txt")

    assert handle.state is NodeState.UNKNOWN
    assert handle.name == "todo.txt"
    assert handle.absolute_name == "notes/todo.txt"
    assert handle.bucket_name == "bucket"
    assert store.ops == []


def test_unknown_resolving_to_absence_caches_new_object(bucket: Bucket, store: MemoryS3Store) -> None:
    handle = bucket.file("missing.txt")

    assert handle.exists() is False
    assert handle.state is NodeState.NEW_OBJECT
    assert handle.is_file() is False
    assert handle.is_directory() is False

    with pytest.raises(NotFoundError, match="Key 'missing.txt' not found in bucket 'bucket'"):
        handle.get_value_as_string()
    with pytest.raises(NotFoundError):
        handle.get_etag()
    with pytest.raises(NotFoundError):
        handle.get_metadata()
    with pytest.raises(NotFoundError):
        handle.delete()
    assert store.count("fetch_object") == 1


def test_unknown_resolving_to_presence_caches_metadata(bucket: Bucket, store: MemoryS3Store) -> None:
    store.seed("bucket", "data.txt", "hello")
    handle = bucket.file("data.txt")

    assert handle.exists() is True
    assert handle.state is NodeState.METADATA
    assert handle.is_file() is True
    assert handle.get_size() == 5
    assert handle.get_etag() is not None
    assert handle.get_last_modified() is not None
    assert store.count("fetch_object") == 1
    assert store.count("fetch_metadata") == 0


def test_first_read_uses_body_fetched_during_resolution(bucket: Bucket, store: MemoryS3Store) -> None:
    store.seed("bucket", "data.txt", "hello")
    handle = bucket.file("data.txt")

    assert handle.get_value_as_string() == "hello"
    assert store.count("fetch_object") == 1

    assert handle.get_value_as_string() == "hello"
    assert store.count("fetch_object") == 2
    assert handle.state is NodeState.METADATA


def test_read_of_key_deleted_behind_handle_becomes_new_object(bucket: Bucket, store: MemoryS3Store) -> None:
    store.seed("bucket", "gone.txt", "x")
    handle = bucket.get_file("gone.txt")
    bucket.delete_object("gone.txt")

    with pytest.raises(NotFoundError):
        handle.get_value_as_bytes()
    assert handle.state is NodeState.NEW_OBJECT


def test_store_failure_during_resolution_propagates_and_keeps_state(
    bucket: Bucket, store: MemoryS3Store
) -> None:
    handle = bucket.file("data.txt")
    store.fail_next("fetch_object", ConnectionError("boom"))

    with pytest.raises(ConnectionError):
        handle.exists()
    assert handle.state is NodeState.UNKNOWN


def test_listing_yields_summaries_not_directories(bucket: Bucket, store: MemoryS3Store) -> None:
    store.seed("bucket", "colors/red.txt", "r")
    store.seed("bucket", "colors/green.txt", "gg")

    handles = list(bucket.file("colors").files())

    assert [h.absolute_name for h in handles] == ["colors/green.txt", "colors/red.txt"]
    assert all(h.state is NodeState.LISTING_SUMMARY for h in handles)
    assert all(h.is_file() and not h.is_directory() for h in handles)
    assert [h.get_size() for h in handles] == [2, 1]
    assert store.count("fetch_object") == 0
    assert store.count("fetch_metadata") == 0


def test_listing_summary_metadata_refreshes_once(bucket: Bucket, store: MemoryS3Store) -> None:
    store.seed("bucket", "colors/red.txt", "r")
    (handle,) = bucket.file("colors").files()

    metadata = handle.get_metadata()

    assert metadata.size == 1
    assert metadata.content_type == "binary/octet-stream"
    assert handle.state is NodeState.METADATA
    handle.get_metadata()
    assert store.count("fetch_metadata") == 1


def test_listing_summary_read_resolves_with_a_single_fetch(bucket: Bucket, store: MemoryS3Store) -> None:
    store.seed("bucket", "colors/red.txt", "red")
    (handle,) = bucket.file("colors").files()

    assert handle.get_value_as_string() == "red"
    assert store.count("fetch_object") == 1
    assert handle.state is NodeState.METADATA


def test_files_with_delimiter_yields_directories_for_common_prefixes(
    bucket: Bucket, store: MemoryS3Store
) -> None:
    store.seed("bucket", "a/1.txt", "1")
    store.seed("bucket", "a/x/2.txt", "2")

    handles = list(bucket.file("a").files(ListRequest(delimiter="/")))

    assert [(h.absolute_name, h.state) for h in handles] == [
        ("a/1.txt", NodeState.LISTING_SUMMARY),
        ("a/x", NodeState.DIRECTORY),
    ]


def test_files_honours_explicit_prefix(bucket: Bucket, store: MemoryS3Store) -> None:
    store.seed("bucket", "a/1.txt", "1")
    store.seed("bucket", "a/x/2.txt", "2")
    store.seed("bucket", "b/3.txt", "3")

    handles = bucket.as_file().files(ListRequest(prefix="a/x/"))

    assert [h.absolute_name for h in handles] == ["a/x/2.txt"]


def test_listing_skips_directory_marker_objects(bucket: Bucket, store: MemoryS3Store) -> None:
    store.seed("bucket", "a/", "")
    store.seed("bucket", "a/b.txt", "b")

    assert [h.absolute_name for h in bucket.file("a").files()] == ["a/b.txt"]


def test_root_lists_whole_bucket(bucket: Bucket, store: MemoryS3Store) -> None:
    store.seed("bucket", "b.txt", "b")
    store.seed("bucket", "a/c.txt", "c")

    assert [h.absolute_name for h in bucket.as_file().files()] == ["a/c.txt", "b.txt"]


def test_write_installs_updated_object_from_acknowledgement(bucket: Bucket, store: MemoryS3Store) -> None:
    handle = bucket.file("out.txt")

    handle.set_value_as_string("payload")

    assert handle.state is NodeState.UPDATED_OBJECT
    assert handle.exists() is True
    assert handle.get_size() == 7
    assert handle.get_etag() == hashlib.md5(b"payload").hexdigest()  # noqa: S324
    assert store.count("fetch_metadata") == 0
    assert store.count("fetch_object") == 0


def test_updated_object_refreshes_fields_missing_from_acknowledgement(
    bucket: Bucket, store: MemoryS3Store
) -> None:
    handle = bucket.file("out.txt")
    handle.set_value_as_bytes(b"abc", content_type="application/octet-stream")

    assert handle.get_last_modified() is not None
    assert handle.state is NodeState.METADATA
    assert handle.get_metadata().content_type == "application/octet-stream"
    assert store.count("fetch_metadata") == 1


def test_write_then_read_returns_written_content(bucket: Bucket) -> None:
    handle = bucket.file("round.txt")

    handle.set_value_as_string("first")
    assert handle.get_value_as_string() == "first"

    handle.set_value_as_string("second")
    assert handle.get_value_as_string() == "second"


def test_write_from_stream_and_file(bucket: Bucket, store: MemoryS3Store, tmp_path) -> None:
    source = tmp_path / "local.bin"
    source.write_bytes(b"from-file")

    bucket.file("s.bin").set_value_as_stream(io.BytesIO(b"from-stream"))
    bucket.file("f.bin").set_value_as_file(source)

    assert store.read("bucket", "s.bin") == b"from-stream"
    assert store.read("bucket", "f.bin") == b"from-file"


def test_write_metadata_is_stored(bucket: Bucket) -> None:
    handle = bucket.file("meta.txt")

    handle.set_value_as_string("x", metadata={"owner": "etl"})

    assert bucket.get_file("meta.txt").get_metadata().user_metadata == {"owner": "etl"}


def test_failed_write_keeps_state(bucket: Bucket, store: MemoryS3Store) -> None:
    handle = bucket.file("out.txt")
    store.fail_next("put_object", RuntimeError("denied"))

    with pytest.raises(RuntimeError, match="denied"):
        handle.set_value_as_string("x")
    assert handle.state is NodeState.UNKNOWN


def test_delete_existing_object_becomes_new_object(bucket: Bucket, store: MemoryS3Store) -> None:
    store.seed("bucket", "old.txt", "x")
    handle = bucket.get_file("old.txt")

    handle.delete()

    assert handle.state is NodeState.NEW_OBJECT
    assert handle.exists() is False
    assert store.keys("bucket") == []


def test_delete_from_unknown_resolves_first(bucket: Bucket, store: MemoryS3Store) -> None:
    store.seed("bucket", "old.txt", "x")
    handle = bucket.file("old.txt")

    handle.delete()

    assert handle.state is NodeState.NEW_OBJECT
    assert [op.name for op in store.ops] == ["fetch_object", "delete_object"]


def test_new_object_can_be_written(bucket: Bucket) -> None:
    handle = bucket.file("later.txt")
    assert handle.exists() is False

    handle.set_value_as_string("now")

    assert handle.exists() is True
    assert handle.get_value_as_string() == "now"


def test_directory_rejects_value_operations(bucket: Bucket, store: MemoryS3Store, tmp_path) -> None:
    root = bucket.as_file()

    assert root.exists() is True
    assert root.is_directory() is True
    assert root.is_file() is False
    assert root.state is NodeState.DIRECTORY
    for call in (
        root.get_value_as_stream,
        root.get_etag,
        root.get_size,
        root.get_last_modified,
        root.get_metadata,
        root.delete,
        lambda: root.set_value_as_string("x"),
        lambda: root.download(tmp_path / "out"),
    ):
        with pytest.raises(WrongKindOfHandleError):
            call()
    assert store.ops == []


def test_object_states_reject_child_operations(bucket: Bucket, store: MemoryS3Store) -> None:
    store.seed("bucket", "leaf.txt", "x")
    handle = bucket.get_file("leaf.txt")

    with pytest.raises(WrongKindOfHandleError) as excinfo:
        handle.get_file("child")
    assert excinfo.value.path == "leaf.txt"
    assert excinfo.value.child == "child"

    with pytest.raises(WrongKindOfHandleError):
        list(handle.files())
    with pytest.raises(WrongKindOfHandleError):
        handle.walk()


def test_child_with_trailing_separator_is_directory(bucket: Bucket) -> None:
    root = bucket.as_file()

    directory = root.get_file("logs/")
    leaf = directory.get_file("today.log")

    assert directory.state is NodeState.DIRECTORY
    assert directory.absolute_name == "logs"
    assert leaf.state is NodeState.UNKNOWN
    assert leaf.absolute_name == "logs/today.log"


def test_get_parent(bucket: Bucket) -> None:
    handle = bucket.file("a/b/c.txt")

    parent = handle.get_parent()

    assert parent is not None
    assert parent.absolute_name == "a/b"
    assert parent.state is NodeState.DIRECTORY
    assert bucket.file("top.txt").get_parent() == bucket.as_file()
    assert bucket.as_file().get_parent() is None


def test_identity_and_representation(bucket: Bucket) -> None:
    first = bucket.file("a/b")
    second = bucket.as_file().get_file("a").get_file("b")

    assert first == second
    assert hash(first) == hash(second)
    assert first.uri == "s3://bucket/a/b"
    assert str(first) == "s3://bucket/a/b"
    assert repr(first) == "Handle(bucket='bucket', path='a/b', node=Unknown)"


def test_untaken_body_is_closed_when_delete_replaces_it() -> None:
    store = _BodyKeepingStore()
    store.seed("bucket", "data.txt", "hello")
    handle = Bucket("bucket", store).file("data.txt")

    assert handle.exists() is True
    assert handle.state is NodeState.METADATA
    (body,) = store.bodies
    assert body.closed is False

    handle.delete()

    assert handle.state is NodeState.NEW_OBJECT
    assert body.closed is True


def test_untaken_body_is_closed_when_write_replaces_it() -> None:
    store = _BodyKeepingStore()
    store.seed("bucket", "data.txt", "hello")
    handle = Bucket("bucket", store).file("data.txt")

    handle.exists()
    handle.set_value_as_string("bye")

    assert handle.state is NodeState.UPDATED_OBJECT
    assert store.bodies[0].closed is True
    assert handle.get_value_as_string() == "bye"


def test_taken_body_belongs_to_the_reader() -> None:
    store = _BodyKeepingStore()
    store.seed("bucket", "data.txt", "hello")
    handle = Bucket("bucket", store).file("data.txt")
    handle.exists()

    stream = handle.get_value_as_stream()
    handle.delete()

    assert stream is store.bodies[0]
    assert stream.closed is False
    assert stream.read() == b"hello"
    stream.close()


def test_read_closes_the_body_it_took() -> None:
    store = _BodyKeepingStore()
    store.seed("bucket", "data.txt", "hello")
    handle = Bucket("bucket", store).file("data.txt")

    assert handle.get_value_as_bytes() == b"hello"
    assert [body.closed for body in store.bodies] == [True]
