from __future__ import annotations

from collections.abc import Iterator, Mapping
from pathlib import Path as LocalPath
from typing import IO

from keyfs.handle import Handle, list_handles
from keyfs.path import Path
from keyfs.store.models import ListRequest, ObjectMetadata, WriteAck
from keyfs.store.object_store import Body, ObjectStore
from keyfs.store.transfer import Transfer


class Bucket:
    """Named bucket bound to the store that serves it; the entry point to handles."""

    def __init__(self, name: str, store: ObjectStore) -> None:
        if not name:
            raise ValueError("bucket name is required")
        self.name = name
        self.store = store

    def as_file(self) -> Handle:
        """Handle of the bucket root, a directory."""

        return Handle.root(self)

    def file(self, key: str) -> Handle:
        """Handle of ``key`` without any store call; it resolves lazily."""

        if not Path.from_key(key).absolute_name:
            return self.as_file()
        return self.as_file().get_file(key)

    def get_file(self, key: str) -> Handle:
        """Handle of ``key`` with its metadata fetched now.

        Raises :class:`~keyfs.errors.NotFoundError` when the key is absent.
        """

        metadata = self.store.fetch_metadata(self.name, key)
        return Handle.from_metadata(self, key, metadata)

    def objects(self, request: ListRequest | None = None) -> Iterator[Handle]:
        """Flat listing of the bucket (or of ``request.prefix``) as handles."""

        return self._handles(request or ListRequest())

    def put_object(
        self,
        key: str,
        body: Body | str,
        *,
        content_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> WriteAck:
        if isinstance(body, str):
            body = body.encode("utf-8")
        return self.store.put_object(self.name, key, body, content_type=content_type, metadata=metadata)

    def get_object_as_string(self, key: str, encoding: str = "utf-8") -> str:
        stored = self.store.fetch_object(self.name, key)
        try:
            return stored.body.read().decode(encoding)
        finally:
            stored.body.close()

    def get_object_as_stream(self, key: str) -> IO[bytes]:
        """Open content stream of ``key``; the caller closes it."""

        return self.store.fetch_object(self.name, key).body

    def get_object_metadata(self, key: str) -> ObjectMetadata:
        return self.store.fetch_metadata(self.name, key)

    def upload(
        self,
        key: str,
        source: Body | str,
        *,
        metadata: Mapping[str, str] | None = None,
    ) -> Transfer:
        """Start a background upload of ``source``; a ``str`` is a local file path."""

        if isinstance(source, str):
            source = LocalPath(source)
        return self.store.begin_upload(self.name, key, source, metadata=metadata)

    def download(self, key: str, destination: str | LocalPath) -> Transfer:
        return self.store.begin_download(self.name, key, LocalPath(destination))

    def delete_object(self, key: str) -> None:
        self.store.delete_object(self.name, key)

    def _handles(self, request: ListRequest) -> Iterator[Handle]:
        return list_handles(self, request)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bucket):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"Bucket(name={self.name!r})"
