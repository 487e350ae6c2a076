"""Stable, file-like reference to one key of a bucket.

Like a local file path, a :class:`Handle` can refer to an object before it
exists, after it is created, after it is overwritten and after it is deleted.
Callers keep the same instance across all of these; it reflects the most
recent information fetched through it.

The current knowledge lives in a single :class:`~keyfs.cell.AtomicCell`
holding a :mod:`~keyfs.nodes` instance. Every transition is a compare-and-set
against the node that started it: a thread that loses the race adopts the
winner's node instead of overwriting it. Concurrent first reads may each hit
the store, but only one result is kept.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from datetime import datetime
from pathlib import Path as LocalPath
from typing import IO, TYPE_CHECKING

from keyfs.cell import AtomicCell
from keyfs.errors import NotFoundError
from keyfs.io.uri import SEPARATOR, build_s3_uri, is_directory_key
from keyfs.nodes import (
    Directory,
    ListingSummary,
    Metadata,
    NewObject,
    Node,
    NodeState,
    Unknown,
    UpdatedObject,
)
from keyfs.path import ROOT, Path
from keyfs.store.models import ListRequest, ObjectMetadata, ObjectSummary, StoredObject, WriteAck
from keyfs.store.object_store import Body, ObjectStore
from keyfs.store.pagination import iter_pages
from keyfs.store.transfer import Transfer, TransferState
from keyfs.writer import HandleWriter

if TYPE_CHECKING:
    from keyfs.bucket import Bucket


class Handle:
    def __init__(self, bucket: Bucket, path: Path, node_factory: Callable[[Handle], Node] = Unknown) -> None:
        self._bucket = bucket
        self._path = path
        self._cell: AtomicCell[Node] = AtomicCell(node_factory(self))

    # construction

    @classmethod
    def root(cls, bucket: Bucket) -> Handle:
        return cls(bucket, ROOT, Directory)

    @classmethod
    def directory(cls, bucket: Bucket, key: str) -> Handle:
        return cls(bucket, Path.from_key(key), Directory)

    @classmethod
    def from_summary(cls, bucket: Bucket, summary: ObjectSummary) -> Handle:
        return cls(bucket, Path.from_key(summary.key), lambda handle: ListingSummary(handle, summary))

    @classmethod
    def from_metadata(
        cls, bucket: Bucket, key: str, metadata: ObjectMetadata, body: IO[bytes] | None = None
    ) -> Handle:
        return cls(bucket, Path.from_key(key), lambda handle: Metadata(handle, metadata, body))

    @classmethod
    def from_object(cls, bucket: Bucket, stored: StoredObject) -> Handle:
        return cls.from_metadata(bucket, stored.key, stored.metadata, stored.body)

    # identity

    @property
    def bucket(self) -> Bucket:
        return self._bucket

    @property
    def bucket_name(self) -> str:
        return self._bucket.name

    @property
    def store(self) -> ObjectStore:
        return self._bucket.store

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def absolute_name(self) -> str:
        return self._path.absolute_name

    @property
    def uri(self) -> str:
        return build_s3_uri(self.bucket_name, self.absolute_name)

    @property
    def state(self) -> NodeState:
        """The kind of knowledge currently cached; reading it never calls the store."""

        return self._node.state

    @property
    def _node(self) -> Node:
        return self._cell.get()

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Handle):
            return NotImplemented
        return self._path == other._path

    def __hash__(self) -> int:
        return hash(self._path)

    def __repr__(self) -> str:
        return (
            f"Handle(bucket={self.bucket_name!r}, path={self.absolute_name!r}, "
            f"node={type(self._node).__name__})"
        )

    def __str__(self) -> str:
        return self.uri

    # navigation

    def exists(self) -> bool:
        return self._node.exists()

    def is_file(self) -> bool:
        return self._node.is_file()

    def is_directory(self) -> bool:
        return self._node.is_directory()

    def get_parent(self) -> Handle | None:
        """Parent directory handle, or None for the bucket root."""

        if self._path.is_root:
            return None
        return Handle(self._bucket, self._path.parent_path(), Directory)

    def get_file(self, name: str) -> Handle:
        """Child handle; a trailing ``/`` on ``name`` marks the child as a directory."""

        return self._node.get_file(name)

    def files(self, request: ListRequest | None = None) -> Iterator[Handle]:
        """Lazily list keys under this handle.

        Without a request every descendant object is listed (no delimiter). A
        request without prefix is scoped to this handle's search prefix; with
        a delimiter, common prefixes come back as directory handles.
        """

        return self._node.files(request)

    def walk(self, max_depth: int | None = None, min_depth: int = 0) -> Iterator[Handle]:
        """Lazily walk the pseudo-directory tree below this handle.

        ``max_depth=None`` walks without bound; ``0`` and ``1`` list only the
        immediate children. See :func:`keyfs.walk.walk`.
        """

        return self._node.walk(max_depth, min_depth)

    # values

    def get_value_as_stream(self) -> IO[bytes]:
        return self._node.get_value_as_stream()

    def get_value_as_bytes(self) -> bytes:
        stream = self.get_value_as_stream()
        try:
            return stream.read()
        finally:
            stream.close()

    def get_value_as_string(self, encoding: str = "utf-8") -> str:
        return self.get_value_as_bytes().decode(encoding)

    def set_value_as_string(
        self,
        value: str,
        *,
        encoding: str = "utf-8",
        content_type: str | None = "text/plain; charset=utf-8",
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        self._node.set_value(value.encode(encoding), content_type, metadata)

    def set_value_as_bytes(
        self,
        value: bytes,
        *,
        content_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        self._node.set_value(value, content_type, metadata)

    def set_value_as_stream(
        self,
        stream: IO[bytes] | None = None,
        *,
        content_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> HandleWriter | None:
        """Write the content of ``stream``, or return a writer when called without one.

        The writer buffers locally; the object is written when the writer is
        closed, on normal exit or not, and the handle's metadata is refreshed
        afterwards::

            with handle.set_value_as_stream() as out:
                out.write(b"...")
        """

        if stream is None:
            return self._node.open_writer(content_type, metadata)
        self._node.set_value(stream, content_type, metadata)
        return None

    def set_value_as_file(
        self,
        file: str | LocalPath,
        *,
        content_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        self._node.set_value(LocalPath(file), content_type, metadata)

    def get_etag(self) -> str | None:
        return self._node.get_etag()

    def get_size(self) -> int | None:
        return self._node.get_size()

    def get_last_modified(self) -> datetime | None:
        return self._node.get_last_modified()

    def get_metadata(self) -> ObjectMetadata:
        return self._node.get_metadata()

    def delete(self) -> None:
        self._node.delete()

    def upload(self, source: Body | str, *, metadata: Mapping[str, str] | None = None) -> Transfer:
        """Start a background upload; the handle refreshes itself when it ends, however it ends."""

        if isinstance(source, str):
            source = LocalPath(source)
        return self._node.upload(source, metadata)

    def download(self, destination: str | LocalPath) -> Transfer:
        return self._node.download(LocalPath(destination))

    # transitions (called by nodes)

    def _compare_and_set(self, expected: Node, new: Node) -> bool:
        return self._cell.compare_and_set(expected, new)

    def _swap(self, expected: Node, new: Node) -> Node:
        """Install ``new`` if ``expected`` is still current; return whatever is current.

        The node swapped out gives up whatever it still holds (an untaken body).
        """

        if self._cell.compare_and_set(expected, new):
            expected.discard()
            return new
        return self._cell.get()

    def _resolve(self, current: Node) -> Node:
        try:
            stored = self.store.fetch_object(self.bucket_name, self.absolute_name)
        except NotFoundError:
            return self._swap(current, NewObject(self))
        resolved = Metadata(self, stored.metadata, stored.body)
        installed = self._swap(current, resolved)
        if installed is not resolved:
            stored.body.close()
        return installed

    def _refresh(self, current: Node) -> Node:
        try:
            metadata = self.store.fetch_metadata(self.bucket_name, self.absolute_name)
        except NotFoundError:
            return self._swap(current, NewObject(self))
        return self._swap(current, Metadata(self, metadata))

    def _fetch_content(self, current: Node) -> IO[bytes]:
        try:
            stored = self.store.fetch_object(self.bucket_name, self.absolute_name)
        except NotFoundError:
            self._swap(current, NewObject(self))
            raise
        self._swap(current, Metadata(self, stored.metadata))
        return stored.body

    def _write(
        self,
        current: Node,
        body: Body,
        content_type: str | None,
        metadata: Mapping[str, str] | None,
    ) -> None:
        ack: WriteAck = self.store.put_object(
            self.bucket_name,
            self.absolute_name,
            body,
            content_type=content_type,
            metadata=metadata,
        )
        self._swap(current, UpdatedObject(self, ack))

    def _open_writer(
        self,
        current: Node,
        content_type: str | None,
        metadata: Mapping[str, str] | None,
    ) -> HandleWriter:
        def _finish(buffer: IO[bytes]) -> None:
            self.store.put_object(
                self.bucket_name,
                self.absolute_name,
                buffer,
                content_type=content_type,
                metadata=metadata,
            )
            self._refresh(current)

        return HandleWriter(self.uri, _finish)

    def _delete(self, current: Node) -> None:
        self.store.delete_object(self.bucket_name, self.absolute_name)
        self._swap(current, NewObject(self))

    def _refresh_on_cancel(self, current: Node, transfer: Transfer) -> Transfer:
        # A transfer canceled before it started never runs its on_finish.
        def _canceled(done: Transfer) -> None:
            if done.state is TransferState.CANCELED:
                self._refresh(current)

        transfer.add_done_callback(_canceled)
        return transfer

    def _upload(self, current: Node, source: Body, metadata: Mapping[str, str] | None) -> Transfer:
        transfer = self.store.begin_upload(
            self.bucket_name,
            self.absolute_name,
            source,
            metadata=metadata,
            on_finish=lambda: self._refresh(current),
        )
        return self._refresh_on_cancel(current, transfer)

    def _download(self, current: Node, destination: LocalPath) -> Transfer:
        transfer = self.store.begin_download(
            self.bucket_name,
            self.absolute_name,
            destination,
            on_finish=lambda: self._refresh(current),
        )
        return self._refresh_on_cancel(current, transfer)

    # children and listings

    def _child(self, name: str) -> Handle:
        child = self._path.get_child(name)
        if is_directory_key(name):
            return Handle(self._bucket, child, Directory)
        return Handle(self._bucket, child, Unknown)

    def _list(self, request: ListRequest | None) -> Iterator[Handle]:
        if request is None:
            request = ListRequest(prefix=self._path.search_prefix)
        elif request.prefix is None:
            request = request.with_prefix(self._path.search_prefix)
        return self._bucket._handles(request)

    def _walk(self, max_depth: int | None, min_depth: int) -> Iterator[Handle]:
        from keyfs.walk import walk

        return walk(self, max_depth=max_depth, min_depth=min_depth)


def list_handles(bucket: Bucket, request: ListRequest) -> Iterator[Handle]:
    """Turn a paginated listing into handles: summaries first, then common prefixes, per page.

    A ``Contents`` entry equal to the listing prefix is a directory marker
    object and is skipped.
    """

    prefix = request.prefix or ""
    for page in iter_pages(bucket.store, bucket.name, request):
        for summary in page.object_summaries:
            if prefix and summary.key == prefix and prefix.endswith(SEPARATOR):
                continue
            yield Handle.from_summary(bucket, summary)
        for common_prefix in page.common_prefixes:
            yield Handle.directory(bucket, common_prefix)
