"""What a handle currently knows about its key.

S3 describes the same object in several shapes: a GET/HEAD response, an entry
of a bucket listing, the acknowledgement of a put. Each shape, plus the
"directory", "not looked up yet" and "confirmed absent" cases, is one node
class below. All nodes answer the same operations; a node either serves the
answer from its own fields, asks its handle to resolve a fresher node and
delegates to it, or raises.

A node never mutates. Transitions happen by the handle swapping one node for
another with compare-and-set against the node that started the transition.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping
from datetime import datetime
from pathlib import Path as LocalPath
from typing import IO, TYPE_CHECKING, Any

from keyfs.errors import NotFoundError, WrongKindOfHandleError
from keyfs.store.models import ListRequest, ObjectMetadata, ObjectSummary, WriteAck
from keyfs.store.object_store import Body
from keyfs.store.transfer import Transfer

if TYPE_CHECKING:
    from keyfs.handle import Handle
    from keyfs.writer import HandleWriter


class NodeState(str, enum.Enum):
    DIRECTORY = "directory"
    METADATA = "metadata"
    LISTING_SUMMARY = "listing_summary"
    UPDATED_OBJECT = "updated_object"
    UNKNOWN = "unknown"
    NEW_OBJECT = "new_object"


class Node:
    state: NodeState

    def __init__(self, handle: Handle) -> None:
        self.handle = handle

    def exists(self) -> bool:
        raise NotImplementedError

    def is_file(self) -> bool:
        raise NotImplementedError

    def is_directory(self) -> bool:
        raise NotImplementedError

    def get_file(self, name: str) -> Handle:
        raise NotImplementedError

    def files(self, request: ListRequest | None) -> Iterator[Handle]:
        raise NotImplementedError

    def walk(self, max_depth: int | None, min_depth: int) -> Iterator[Handle]:
        raise NotImplementedError

    def get_value_as_stream(self) -> IO[bytes]:
        raise NotImplementedError

    def set_value(
        self,
        body: Body,
        content_type: str | None,
        metadata: Mapping[str, str] | None,
    ) -> None:
        raise NotImplementedError

    def open_writer(
        self,
        content_type: str | None,
        metadata: Mapping[str, str] | None,
    ) -> HandleWriter:
        raise NotImplementedError

    def get_etag(self) -> str | None:
        raise NotImplementedError

    def get_size(self) -> int | None:
        raise NotImplementedError

    def get_last_modified(self) -> datetime | None:
        raise NotImplementedError

    def get_metadata(self) -> ObjectMetadata:
        raise NotImplementedError

    def delete(self) -> None:
        raise NotImplementedError

    def upload(self, source: Body, metadata: Mapping[str, str] | None) -> Transfer:
        raise NotImplementedError

    def download(self, destination: LocalPath) -> Transfer:
        raise NotImplementedError

    def discard(self) -> None:
        """Release what this node holds once it is no longer current."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.handle.absolute_name!r})"


class Directory(Node):
    """A pseudo-directory: a key prefix, never a real remote entity.

    Directories are assumed to exist; S3 has nothing to ask about them.
    """

    state = NodeState.DIRECTORY

    def exists(self) -> bool:
        return True

    def is_file(self) -> bool:
        return False

    def is_directory(self) -> bool:
        return True

    def get_file(self, name: str) -> Handle:
        return self.handle._child(name)

    def files(self, request: ListRequest | None) -> Iterator[Handle]:
        return self.handle._list(request)

    def walk(self, max_depth: int | None, min_depth: int) -> Iterator[Handle]:
        return self.handle._walk(max_depth, min_depth)

    def _not_a_value(self) -> WrongKindOfHandleError:
        return WrongKindOfHandleError.not_a_value(self.handle.absolute_name)

    def get_value_as_stream(self) -> IO[bytes]:
        raise self._not_a_value()

    def set_value(self, body, content_type, metadata) -> None:  # noqa: ANN001
        raise self._not_a_value()

    def open_writer(self, content_type, metadata) -> HandleWriter:  # noqa: ANN001
        raise self._not_a_value()

    def get_etag(self) -> str | None:
        raise self._not_a_value()

    def get_size(self) -> int | None:
        raise self._not_a_value()

    def get_last_modified(self) -> datetime | None:
        raise self._not_a_value()

    def get_metadata(self) -> ObjectMetadata:
        raise self._not_a_value()

    def delete(self) -> None:
        raise self._not_a_value()

    def upload(self, source, metadata) -> Transfer:  # noqa: ANN001
        raise self._not_a_value()

    def download(self, destination) -> Transfer:  # noqa: ANN001
        raise self._not_a_value()


class _ExistingObject(Node):
    """Shared behaviour of every node that describes an object known to exist."""

    def exists(self) -> bool:
        return True

    def is_file(self) -> bool:
        return True

    def is_directory(self) -> bool:
        return False

    def get_file(self, name: str) -> Handle:
        raise WrongKindOfHandleError.not_a_directory(self.handle.absolute_name, name)

    def files(self, request: ListRequest | None) -> Iterator[Handle]:
        raise WrongKindOfHandleError.not_a_directory(self.handle.absolute_name)

    def walk(self, max_depth: int | None, min_depth: int) -> Iterator[Handle]:
        raise WrongKindOfHandleError.not_a_directory(self.handle.absolute_name)

    def get_value_as_stream(self) -> IO[bytes]:
        return self.handle._resolve(self).get_value_as_stream()

    def get_metadata(self) -> ObjectMetadata:
        return self.handle._refresh(self).get_metadata()

    def set_value(self, body, content_type, metadata) -> None:  # noqa: ANN001
        self.handle._write(self, body, content_type, metadata)

    def open_writer(self, content_type, metadata) -> HandleWriter:  # noqa: ANN001
        return self.handle._open_writer(self, content_type, metadata)

    def delete(self) -> None:
        self.handle._delete(self)

    def upload(self, source, metadata) -> Transfer:  # noqa: ANN001
        return self.handle._upload(self, source, metadata)

    def download(self, destination) -> Transfer:  # noqa: ANN001
        return self.handle._download(self, destination)


class Metadata(_ExistingObject):
    """Resolved through a single-object GET or HEAD.

    A node built from a GET keeps the unread content stream; the first reader
    takes it, later reads fetch the content again. A stream nobody took is
    closed when the node is replaced.
    """

    state = NodeState.METADATA

    def __init__(self, handle: Handle, metadata: ObjectMetadata, body: IO[bytes] | Any = None) -> None:
        super().__init__(handle)
        self.metadata = metadata
        self._body = body

    def get_value_as_stream(self) -> IO[bytes]:
        body = self._body
        if body is not None and self.handle._compare_and_set(self, Metadata(self.handle, self.metadata)):
            return body
        return self.handle._fetch_content(self)

    def discard(self) -> None:
        if self._body is not None:
            self._body.close()

    def get_etag(self) -> str | None:
        return self.metadata.etag

    def get_size(self) -> int | None:
        return self.metadata.size

    def get_last_modified(self) -> datetime | None:
        return self.metadata.last_modified

    def get_metadata(self) -> ObjectMetadata:
        return self.metadata


class ListingSummary(_ExistingObject):
    """Resolved through a bucket listing entry."""

    state = NodeState.LISTING_SUMMARY

    def __init__(self, handle: Handle, summary: ObjectSummary) -> None:
        super().__init__(handle)
        self.summary = summary

    def get_etag(self) -> str | None:
        return self.summary.etag

    def get_size(self) -> int | None:
        return self.summary.size

    def get_last_modified(self) -> datetime | None:
        return self.summary.last_modified


class UpdatedObject(_ExistingObject):
    """Resolved through the acknowledgement of a write.

    Acknowledgement fields the store left empty are filled by refreshing the
    metadata once.
    """

    state = NodeState.UPDATED_OBJECT

    def __init__(self, handle: Handle, ack: WriteAck) -> None:
        super().__init__(handle)
        self.ack = ack

    def get_etag(self) -> str | None:
        if self.ack.etag is None:
            return self.handle._refresh(self).get_etag()
        return self.ack.etag

    def get_size(self) -> int | None:
        if self.ack.size is None:
            return self.handle._refresh(self).get_size()
        return self.ack.size

    def get_last_modified(self) -> datetime | None:
        if self.ack.last_modified is None:
            return self.handle._refresh(self).get_last_modified()
        return self.ack.last_modified


class Unknown(Node):
    """Not looked up yet: may be an object, may imply a directory, may not exist.

    Questions that need remote truth resolve the handle first and delegate to
    the resolved node. Listings and child navigation are attempted as if this
    were a directory.
    """

    state = NodeState.UNKNOWN

    def _resolved(self) -> Node:
        return self.handle._resolve(self)

    def exists(self) -> bool:
        return self._resolved().exists()

    def is_file(self) -> bool:
        return self._resolved().is_file()

    def is_directory(self) -> bool:
        return self._resolved().is_directory()

    def get_file(self, name: str) -> Handle:
        return self.handle._child(name)

    def files(self, request: ListRequest | None) -> Iterator[Handle]:
        return self.handle._list(request)

    def walk(self, max_depth: int | None, min_depth: int) -> Iterator[Handle]:
        return self.handle._walk(max_depth, min_depth)

    def get_value_as_stream(self) -> IO[bytes]:
        return self._resolved().get_value_as_stream()

    def set_value(self, body, content_type, metadata) -> None:  # noqa: ANN001
        self.handle._write(self, body, content_type, metadata)

    def open_writer(self, content_type, metadata) -> HandleWriter:  # noqa: ANN001
        return self.handle._open_writer(self, content_type, metadata)

    def get_etag(self) -> str | None:
        return self._resolved().get_etag()

    def get_size(self) -> int | None:
        return self._resolved().get_size()

    def get_last_modified(self) -> datetime | None:
        return self._resolved().get_last_modified()

    def get_metadata(self) -> ObjectMetadata:
        return self._resolved().get_metadata()

    def delete(self) -> None:
        self._resolved().delete()

    def upload(self, source, metadata) -> Transfer:  # noqa: ANN001
        return self.handle._upload(self, source, metadata)

    def download(self, destination) -> Transfer:  # noqa: ANN001
        return self._resolved().download(destination)


class NewObject(Node):
    """Confirmed absent. It may be written, not read.

    Listings and child navigation stay available: a missing object at ``a``
    says nothing about keys under ``a/``.
    """

    state = NodeState.NEW_OBJECT

    def _not_found(self) -> NotFoundError:
        return NotFoundError(self.handle.bucket_name, self.handle.absolute_name)

    def exists(self) -> bool:
        return False

    def is_file(self) -> bool:
        return False

    def is_directory(self) -> bool:
        return False

    def get_file(self, name: str) -> Handle:
        return self.handle._child(name)

    def files(self, request: ListRequest | None) -> Iterator[Handle]:
        return self.handle._list(request)

    def walk(self, max_depth: int | None, min_depth: int) -> Iterator[Handle]:
        return self.handle._walk(max_depth, min_depth)

    def get_value_as_stream(self) -> IO[bytes]:
        raise self._not_found()

    def set_value(self, body, content_type, metadata) -> None:  # noqa: ANN001
        self.handle._write(self, body, content_type, metadata)

    def open_writer(self, content_type, metadata) -> HandleWriter:  # noqa: ANN001
        return self.handle._open_writer(self, content_type, metadata)

    def get_etag(self) -> str | None:
        raise self._not_found()

    def get_size(self) -> int | None:
        raise self._not_found()

    def get_last_modified(self) -> datetime | None:
        raise self._not_found()

    def get_metadata(self) -> ObjectMetadata:
        raise self._not_found()

    def delete(self) -> None:
        raise self._not_found()

    def upload(self, source, metadata) -> Transfer:  # noqa: ANN001
        return self.handle._upload(self, source, metadata)

    def download(self, destination) -> Transfer:  # noqa: ANN001
        raise self._not_found()
