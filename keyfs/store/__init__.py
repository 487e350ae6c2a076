"""Object store abstraction, value types and adapters."""

from keyfs.store.boto3_store import Boto3S3Store
from keyfs.store.models import (
    ListingPage,
    ListRequest,
    ObjectMetadata,
    ObjectSummary,
    StoredObject,
    WriteAck,
)
from keyfs.store.object_store import Body, ObjectStore
from keyfs.store.pagination import iter_entries, iter_object_summaries, iter_pages
from keyfs.store.transfer import Transfer, TransferState

__all__ = [
    "Body",
    "Boto3S3Store",
    "ListRequest",
    "ListingPage",
    "ObjectMetadata",
    "ObjectStore",
    "ObjectSummary",
    "StoredObject",
    "Transfer",
    "TransferState",
    "WriteAck",
    "iter_entries",
    "iter_object_summaries",
    "iter_pages",
]
