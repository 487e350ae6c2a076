"""Value types exchanged with an :class:`~keyfs.store.object_store.ObjectStore`."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import IO, Any


def normalize_etag(value: str | None) -> str | None:
    """S3 returns ETags wrapped in double quotes; keep the bare value."""

    if value is None:
        return None
    text = str(value).strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1]
    return text or None


@dataclass(frozen=True)
class ObjectMetadata:
    """Metadata of a single object as returned by a GET or HEAD request."""

    etag: str | None
    size: int | None
    last_modified: datetime | None
    content_type: str | None = None
    version_id: str | None = None
    storage_class: str | None = None
    user_metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class StoredObject:
    """A fetched object: its metadata plus an unread content stream."""

    key: str
    metadata: ObjectMetadata
    body: IO[bytes] | Any


@dataclass(frozen=True)
class ObjectSummary:
    """One ``Contents`` entry of a bucket listing."""

    key: str
    etag: str | None
    size: int | None
    last_modified: datetime | None
    storage_class: str | None = None


@dataclass(frozen=True)
class WriteAck:
    """Acknowledgement of a completed put.

    S3 acknowledges a put with an ETag (and a version id on versioned buckets)
    but no length or timestamp; ``size`` carries the byte count sent when the
    store knows it and ``last_modified`` is usually None.
    """

    etag: str | None
    size: int | None = None
    last_modified: datetime | None = None
    version_id: str | None = None


@dataclass(frozen=True)
class ListRequest:
    """Parameters of a bucket listing.

    ``prefix=None`` lets the caller (usually a handle) fill in its own search
    prefix. ``delimiter="/"`` turns the listing into a single-level one.
    """

    prefix: str | None = None
    delimiter: str | None = None
    start_after: str | None = None
    max_keys: int | None = None

    def with_prefix(self, prefix: str | None) -> ListRequest:
        return replace(self, prefix=prefix)

    def with_delimiter(self, delimiter: str | None) -> ListRequest:
        return replace(self, delimiter=delimiter)


@dataclass(frozen=True)
class ListingPage:
    """One page of a listing response."""

    object_summaries: tuple[ObjectSummary, ...] = ()
    common_prefixes: tuple[str, ...] = ()
    is_truncated: bool = False
    next_continuation_token: str | None = None
