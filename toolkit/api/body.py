"""Blocking access to an ASGI request body.

The toolkit helpers read plain file-like objects. FastAPI runs sync endpoints
in a worker thread, and from there ``RequestBodyReader`` pulls body chunks off
the event loop one at a time, so uploads stream instead of being buffered.
"""

import io

from anyio import from_thread
from fastapi import Request


class RequestBodyReader(io.RawIOBase):
    """Readable view over ``request.stream()`` for use inside worker threads."""

    def __init__(self, request: Request) -> None:
        self._chunks = request.stream()
        self._pending = b""
        self._eof = False

    def readable(self) -> bool:
        return True

    async def _next_chunk(self) -> bytes | None:
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            return None

    def readinto(self, buffer) -> int:  # type: ignore[no-untyped-def]
        while not self._pending and not self._eof:
            chunk = from_thread.run(self._next_chunk)
            if chunk is None:
                self._eof = True
            else:
                self._pending = chunk
        n = min(len(buffer), len(self._pending))
        buffer[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n
