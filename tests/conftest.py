import io

import pytest
from PIL import Image

from toolkit.models.upload_models import UploadConfig

BOUNDARY = "toolkit-test-boundary"


class ChunkedReader:
    """Readable that never returns more than ``step`` bytes per read, like a socket."""

    def __init__(self, data: bytes, step: int = 7):
        self._stream = io.BytesIO(data)
        self._step = step

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            size = self._step
        return self._stream.read(min(size, self._step))


@pytest.fixture
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (16, 16), color=(200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


# Fixture factory to build multipart/form-data bodies from (field, filename, content) triples
@pytest.fixture
def make_multipart():
    def _make_multipart(parts, boundary: str = BOUNDARY):
        body = bytearray()
        for field, filename, content in parts:
            body += f"--{boundary}\r\n".encode()
            disposition = f'form-data; name="{field}"'
            if filename is not None:
                disposition += f'; filename="{filename}"'
            body += f"Content-Disposition: {disposition}\r\n".encode()
            if filename is not None:
                # Deliberately wrong: the pipeline must ignore client content types
                body += b"Content-Type: application/octet-stream\r\n"
            body += b"\r\n" + content + b"\r\n"
        body += f"--{boundary}--\r\n".encode()
        return bytes(body), f"multipart/form-data; boundary={boundary}"

    return _make_multipart


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def make_config(upload_dir):
    def _make_config(**overrides) -> UploadConfig:
        overrides.setdefault("upload_dir", upload_dir)
        overrides.setdefault("allowed_types", set())
        overrides.setdefault("max_file_size", 0)
        return UploadConfig(**overrides)

    return _make_config


@pytest.fixture
def chunked_reader():
    return ChunkedReader
