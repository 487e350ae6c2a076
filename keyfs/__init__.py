"""File-like handles over S3-style object storage."""

from keyfs.bucket import Bucket
from keyfs.client import S3Client
from keyfs.errors import (
    KeyfsError,
    NoSuchBucketError,
    NotFoundError,
    RootPathError,
    WrongKindOfHandleError,
)
from keyfs.handle import Handle
from keyfs.nodes import NodeState
from keyfs.path import ROOT, Path
from keyfs.store.models import ListRequest
from keyfs.walk import depth_of, walk

__all__ = [
    "Bucket",
    "Handle",
    "KeyfsError",
    "ListRequest",
    "NoSuchBucketError",
    "NodeState",
    "NotFoundError",
    "Path",
    "ROOT",
    "RootPathError",
    "S3Client",
    "WrongKindOfHandleError",
    "depth_of",
    "walk",
]
