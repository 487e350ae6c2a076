"""Test doubles for keyfs stores."""

from keyfs.testing.memory_store import MemoryS3Store, StoreOp

__all__ = ["MemoryS3Store", "StoreOp"]
