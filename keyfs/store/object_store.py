from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path as LocalPath
from typing import IO, Protocol

from keyfs.store.models import (
    ListingPage,
    ListRequest,
    ObjectMetadata,
    StoredObject,
    WriteAck,
)
from keyfs.store.transfer import Transfer

# bytes, a readable binary stream, or a local file path
Body = bytes | bytearray | IO[bytes] | LocalPath


class ObjectStore(Protocol):
    """Narrow, synchronous view of an S3-style object store.

    Every call blocks until the store answers. Absence of a key is reported as
    :class:`keyfs.errors.NotFoundError`; every other failure propagates as the
    transport raised it.
    """

    def fetch_object(self, bucket: str, key: str) -> StoredObject:
        """Fetch an object's metadata together with its content stream."""

    def fetch_metadata(self, bucket: str, key: str) -> ObjectMetadata:
        """Fetch an object's metadata only (HEAD)."""

    def put_object(
        self,
        bucket: str,
        key: str,
        body: Body,
        *,
        content_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> WriteAck:
        """Write the full content of an object in one request (overwrite)."""

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete one object; deleting a missing key is not an error for S3."""

    def list_page(
        self,
        bucket: str,
        request: ListRequest,
        continuation_token: str | None = None,
    ) -> ListingPage:
        """Return one page of a listing."""

    def begin_upload(
        self,
        bucket: str,
        key: str,
        source: Body,
        *,
        metadata: Mapping[str, str] | None = None,
        on_finish: Callable[[], object] | None = None,
    ) -> Transfer:
        """Start a (possibly multipart) upload in the background.

        ``on_finish`` runs inside the transfer task after the upload succeeded
        or failed, before the transfer reports completion.
        """

    def begin_download(
        self,
        bucket: str,
        key: str,
        destination: LocalPath,
        *,
        on_finish: Callable[[], object] | None = None,
    ) -> Transfer:
        """Start a download to a local file in the background; see ``begin_upload`` for ``on_finish``."""

    def bucket_exists(self, bucket: str) -> bool:
        """Return True when the bucket exists and is reachable."""

    def list_buckets(self) -> list[str]:
        """Return the names of all visible buckets."""

    def create_bucket(self, bucket: str) -> None:
        """Create a bucket."""
