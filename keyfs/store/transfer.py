from __future__ import annotations

import enum
from collections.abc import Callable
from concurrent.futures import CancelledError, Future
from typing import Any


def finishing(fn: Callable[[], Any], on_finish: Callable[[], Any] | None) -> Callable[[], Any]:
    """Wrap a transfer body so ``on_finish`` runs inside the task, however the body ends.

    The task's future completes only after ``on_finish`` returned; an error it
    raises becomes the transfer's error.
    """

    if on_finish is None:
        return fn

    def _run() -> Any:
        try:
            return fn()
        finally:
            on_finish()

    return _run


class TransferState(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"


class Transfer:
    """A bulk upload or download running in the background.

    Wraps the :class:`concurrent.futures.Future` produced by the store. Done
    callbacks fire exactly once on completion, failure or cancellation, and
    immediately when registered after the transfer finished.
    """

    def __init__(self, kind: str, bucket: str, key: str, future: Future) -> None:
        self.kind = kind
        self.bucket = bucket
        self.key = key
        self._future = future

    @classmethod
    def finished(cls, kind: str, bucket: str, key: str, fn: Callable[[], Any]) -> Transfer:
        """Run ``fn`` inline and wrap its outcome, for stores without a worker pool."""

        future: Future = Future()
        future.set_running_or_notify_cancel()
        try:
            future.set_result(fn())
        except Exception as exc:  # noqa: BLE001
            future.set_exception(exc)
        return cls(kind, bucket, key, future)

    @property
    def state(self) -> TransferState:
        if not self._future.done():
            return TransferState.PENDING
        if self._future.cancelled():
            return TransferState.CANCELED
        if self._future.exception() is not None:
            return TransferState.FAILED
        return TransferState.COMPLETED

    def done(self) -> bool:
        return self._future.done()

    def cancel(self) -> bool:
        return self._future.cancel()

    def result(self, timeout: float | None = None) -> Any:
        return self._future.result(timeout)

    def exception(self, timeout: float | None = None) -> BaseException | None:
        try:
            return self._future.exception(timeout)
        except CancelledError as exc:
            return exc

    def add_done_callback(self, fn: Callable[[Transfer], None]) -> None:
        self._future.add_done_callback(lambda _future: fn(self))

    def __repr__(self) -> str:
        return (
            f"Transfer(kind={self.kind!r}, bucket={self.bucket!r}, key={self.key!r}, "
            f"state={self.state.value!r})"
        )
