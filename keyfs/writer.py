from __future__ import annotations

import io
import tempfile
from collections.abc import Callable
from typing import IO

SPOOL_MAX_SIZE = 8 * 1024 * 1024


class HandleWriter(io.RawIOBase):
    """Writable stream whose content is stored as one object when it is closed.

    Content is buffered in memory and spills to a temporary file past
    ``SPOOL_MAX_SIZE``. ``on_close`` receives the rewound buffer exactly once,
    on ``close()`` or on leaving a ``with`` block, whether the block raised or
    not. If ``on_close`` raises, the error propagates and the writer is still
    closed.
    """

    def __init__(
        self,
        name: str,
        on_close: Callable[[IO[bytes]], None],
        *,
        max_size: int = SPOOL_MAX_SIZE,
    ) -> None:
        super().__init__()
        self.name = name
        self._on_close = on_close
        self._buffer = tempfile.SpooledTemporaryFile(max_size=max_size)
        self._finalized = False

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:  # noqa: ANN001
        if self.closed:
            raise ValueError(f"write to closed writer: {self.name}")
        return self._buffer.write(data)

    def close(self) -> None:
        if self._finalized:
            return
        self._finalized = True
        try:
            self._buffer.seek(0)
            self._on_close(self._buffer)
        finally:
            self._buffer.close()
            super().close()

    def __repr__(self) -> str:
        return f"HandleWriter(name={self.name!r}, closed={self.closed})"
