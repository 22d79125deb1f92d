"""Content sniffing for uploaded byte streams.

The MIME type of an upload is decided from its leading bytes with libmagic,
never from the client-supplied ``Content-Type``. Sniffing must not consume the
stream: callers get back a readable that still starts at the first byte.
"""

import io
import logging
from typing import BinaryIO

import magic

from toolkit.core.validation import SNIFF_LEN

logger = logging.getLogger(__name__)


class ReplayReader(io.RawIOBase):
    """Readable that serves a peeked prefix before the rest of a stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._head = bytearray()

    def readable(self) -> bool:
        return True

    def peek(self, size: int) -> bytes:
        """Return up to ``size`` leading bytes without consuming them."""
        while len(self._head) < size:
            chunk = self._stream.read(size - len(self._head))
            if not chunk:
                break
            self._head += chunk
        return bytes(self._head[:size])

    def readinto(self, buffer) -> int:  # type: ignore[no-untyped-def]
        n = min(len(buffer), len(self._head))
        buffer[:n] = self._head[:n]
        del self._head[:n]
        if n < len(buffer):
            chunk = self._stream.read(len(buffer) - n)
            buffer[n : n + len(chunk)] = chunk
            n += len(chunk)
        return n


def _is_seekable(stream: BinaryIO) -> bool:
    seekable = getattr(stream, "seekable", None)
    return bool(callable(seekable) and seekable())


def sniff_content_type(stream: BinaryIO) -> tuple[str, BinaryIO]:
    """Classify ``stream`` by its first ``SNIFF_LEN`` bytes.

    Args:
        stream: Any binary readable.

    Returns:
        The detected MIME type, and a readable positioned at the same byte the
        input was. Seekable inputs are rewound and returned as-is; others are
        wrapped in a ``ReplayReader``.
    """
    if _is_seekable(stream):
        start = stream.tell()
        head = stream.read(SNIFF_LEN)
        stream.seek(start)
        readable: BinaryIO = stream
    else:
        replay = ReplayReader(stream)
        head = replay.peek(SNIFF_LEN)
        readable = replay  # type: ignore[assignment]

    mime = magic.from_buffer(head, mime=True)
    logger.debug("Sniffed %d leading bytes as %s", len(head), mime)
    return mime, readable
