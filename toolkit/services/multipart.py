"""Pull-style iteration over a streaming ``multipart/form-data`` body.

``python-multipart`` is a push parser driven by callbacks. ``MultipartReader``
feeds it from a blocking readable one chunk at a time and turns the callbacks
into a queue of events, so callers can walk the body part by part and read
each part like a file without the whole body ever being held in memory.

Parts must be consumed in order: advancing the iterator drains whatever the
previous part left unread.
"""

import logging
from collections import deque
from collections.abc import Iterator
from typing import BinaryIO

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser
from python_multipart.multipart import parse_options_header

from toolkit.core.exceptions import InvalidMultipartError
from toolkit.core.validation import COPY_BUFFER_SIZE

logger = logging.getLogger(__name__)

_HEADERS = "headers"
_DATA = "data"
_END = "end"


def parse_boundary(content_type: str | None) -> bytes:
    """Extract the boundary from a ``multipart/form-data`` Content-Type header.

    Raises:
        InvalidMultipartError: If the header is missing, of another type, or
            carries no boundary.
    """
    if not content_type:
        raise InvalidMultipartError("request has no Content-Type header")
    ctype, options = parse_options_header(content_type)
    if ctype.strip().lower() != b"multipart/form-data":
        raise InvalidMultipartError(f"request Content-Type isn't multipart/form-data: {content_type}")
    boundary = options.get(b"boundary")
    if not boundary:
        raise InvalidMultipartError("no multipart boundary param in Content-Type")
    return boundary


class MultipartPart:
    """One part of a multipart body, readable until its closing boundary."""

    def __init__(self, reader: "MultipartReader", headers: dict[str, str]) -> None:
        self._reader = reader
        self._buffer = bytearray()
        self._done = False
        self.headers = headers

        _, options = parse_options_header(headers.get("content-disposition", ""))
        self.name = options.get(b"name", b"").decode("utf-8", "replace")
        filename = options.get(b"filename")
        self.filename: str | None = filename.decode("utf-8", "replace") if filename is not None else None
        self.content_type = headers.get("content-type")

    def __repr__(self) -> str:
        return f"MultipartPart(name={self.name!r}, filename={self.filename!r})"

    def _fill(self) -> None:
        event = self._reader._next_event()
        if event is None:
            raise InvalidMultipartError("unexpected end of multipart body")
        kind, payload = event
        if kind == _DATA:
            self._buffer += payload
        elif kind == _END:
            self._done = True

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            while not self._done:
                self._fill()
            out = bytes(self._buffer)
            self._buffer.clear()
            return out

        while len(self._buffer) < size and not self._done:
            self._fill()
        out = bytes(self._buffer[:size])
        del self._buffer[:size]
        return out

    def drain(self) -> None:
        """Discard the rest of this part."""
        while not self._done:
            self._buffer.clear()
            self._fill()
        self._buffer.clear()


class MultipartReader:
    """Iterates the parts of a multipart body read from ``stream``."""

    def __init__(self, stream: BinaryIO, boundary: bytes, chunk_size: int = COPY_BUFFER_SIZE) -> None:
        self._stream = stream
        self._chunk_size = chunk_size
        self._events: deque[tuple[str, bytes | dict[str, str] | None]] = deque()
        self._eof = False
        self._current: MultipartPart | None = None
        self._finished = False

        self._header_field = bytearray()
        self._header_value = bytearray()
        self._headers: dict[str, str] = {}

        self._parser = MultipartParser(
            boundary,
            callbacks={
                "on_part_begin": self._on_part_begin,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_end": self._on_end,
            },
        )

    # --- parser callbacks ---

    def _on_part_begin(self) -> None:
        self._headers = {}

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        field = bytes(self._header_field).decode("latin-1").lower()
        self._headers[field] = bytes(self._header_value).decode("latin-1")
        self._header_field.clear()
        self._header_value.clear()

    def _on_headers_finished(self) -> None:
        self._events.append((_HEADERS, dict(self._headers)))

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if end > start:
            self._events.append((_DATA, bytes(data[start:end])))

    def _on_part_end(self) -> None:
        self._events.append((_END, None))

    def _on_end(self) -> None:
        self._finished = True

    # --- event pump ---

    def _next_event(self) -> tuple[str, bytes | dict[str, str] | None] | None:
        while not self._events:
            if self._eof:
                if not self._finished:
                    raise InvalidMultipartError("unexpected end of multipart body")
                return None
            chunk = self._stream.read(self._chunk_size)
            if not chunk:
                self._eof = True
                self._parser.finalize()
                continue
            try:
                self._parser.write(chunk)
            except MultipartParseError as e:
                logger.warning("Malformed multipart body: %s", e)
                raise InvalidMultipartError(f"malformed multipart body: {e}") from e
        return self._events.popleft()

    def __iter__(self) -> Iterator[MultipartPart]:
        while True:
            if self._current is not None:
                self._current.drain()
                self._current = None
            event = self._next_event()
            if event is None:
                return
            kind, payload = event
            if kind != _HEADERS:
                continue
            self._current = MultipartPart(self, payload)  # type: ignore[arg-type]
            yield self._current


def iter_parts(stream: BinaryIO, content_type: str | None) -> Iterator[MultipartPart]:
    """Yield the parts of the multipart body in ``stream``."""
    return iter(MultipartReader(stream, parse_boundary(content_type)))
