"""Global pytest configuration.

Tests run from the project root without an installed package, so the root is
put on `sys.path` before collection.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from keyfs.bucket import Bucket
from keyfs.testing.memory_store import MemoryS3Store


def pytest_configure() -> None:
    root_dir = Path(__file__).resolve().parents[1]

    raw = str(root_dir)
    if raw not in sys.path:
        sys.path.insert(0, raw)


@pytest.fixture
def store() -> MemoryS3Store:
    return MemoryS3Store()


@pytest.fixture
def bucket(store: MemoryS3Store) -> Bucket:
    return Bucket("bucket", store)
