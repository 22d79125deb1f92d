"""Streams multipart file uploads to disk.

For every file part of a ``multipart/form-data`` body the pipeline:

- sniffs the content type from the leading bytes (client headers are ignored);
- checks it against the allow-list before anything is written;
- picks a destination name (random or the client's base name);
- copies the part to ``upload_dir`` in fixed-size chunks, enforcing the
  per-file size limit before each write.

Errors stop the whole call. Files accepted from earlier parts are kept, and a
part whose copy is cut short leaves its partial file behind; its path is
logged so operators can find it.
"""

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from toolkit.core.config import settings
from toolkit.core.exceptions import FileCountError
from toolkit.core.exceptions import FileTooLargeError
from toolkit.core.exceptions import UnsupportedTypeError
from toolkit.core.sniffing import sniff_content_type
from toolkit.core.validation import COPY_BUFFER_SIZE
from toolkit.core.validation import is_allowed_type
from toolkit.models.upload_models import UploadConfig
from toolkit.models.upload_models import UploadedFile
from toolkit.services.multipart import MultipartPart
from toolkit.services.multipart import iter_parts
from toolkit.services.naming import FileNamer
from toolkit.services.naming import base_name

logger = logging.getLogger(__name__)


def create_dir_if_not_exist(path: str | os.PathLike[str], mode: int = 0o755) -> None:
    """Create ``path`` (and parents) unless it already exists as a directory."""
    try:
        os.makedirs(path, mode=mode, exist_ok=True)
    except FileExistsError:
        # exist_ok only covers directories; a file at ``path`` still lands here.
        logger.error("Cannot create directory %s: a non-directory already exists there", path)
        raise


def _file_parts(body: BinaryIO, content_type: str | None, request_id: str) -> Iterator[MultipartPart]:
    for part in iter_parts(body, content_type):
        if not part.filename:
            logger.debug("[%s] Skipping non-file form field %r", request_id, part.name)
            continue
        yield part


def _copy_limited(src: BinaryIO, dest: Path, max_size: int, request_id: str) -> int:
    written = 0
    try:
        with open(dest, "wb") as out:
            while chunk := src.read(COPY_BUFFER_SIZE):
                if written + len(chunk) > max_size:
                    raise FileTooLargeError(f"the uploaded file is too big, limit is {max_size} bytes")
                out.write(chunk)
                written += len(chunk)
    except Exception:
        logger.warning("[%s] Upload to %s aborted after %d bytes, partial file left on disk", request_id, dest, written)
        raise
    return written


def _save_part(part: MultipartPart, config: UploadConfig, namer: FileNamer, request_id: str) -> UploadedFile:
    original_name = base_name(part.filename or "")
    mime, stream = sniff_content_type(part)  # type: ignore[arg-type]

    if not is_allowed_type(mime, config.allowed_types):
        logger.warning(
            "[%s] Rejected file %s with content type %s. Allowed: %s",
            request_id,
            original_name,
            mime,
            ", ".join(sorted(config.allowed_types)),
        )
        raise UnsupportedTypeError(f"the uploaded file type is not permitted: {mime}")

    new_name = namer.name(original_name, config.rename)
    dest = Path(config.upload_dir) / new_name
    size = _copy_limited(stream, dest, config.effective_max_file_size, request_id)

    logger.info("[%s] Stored %s as %s (%d bytes, MIME: %s)", request_id, original_name, dest, size, mime)
    return UploadedFile(original_name=original_name, new_name=new_name, size=size)


def _upload(
    body: BinaryIO,
    content_type: str | None,
    config: UploadConfig | None,
    namer: FileNamer | None,
    request_id: str | None,
    max_files: int | None,
) -> list[UploadedFile]:
    config = config or UploadConfig()
    namer = namer or FileNamer(length=settings.random_name_length)
    request_id = request_id or "-"

    create_dir_if_not_exist(config.upload_dir)

    uploaded: list[UploadedFile] = []
    for part in _file_parts(body, content_type, request_id):
        if max_files is not None and len(uploaded) >= max_files:
            logger.warning("[%s] Rejected extra file part %r: only %d allowed", request_id, part.filename, max_files)
            raise FileCountError(f"expected at most {max_files} file(s) in the request")
        uploaded.append(_save_part(part, config, namer, request_id))

    logger.info("[%s] Upload complete: %d file(s) into %s", request_id, len(uploaded), config.upload_dir)
    return uploaded


def upload_files(
    body: BinaryIO,
    content_type: str | None,
    config: UploadConfig | None = None,
    *,
    namer: FileNamer | None = None,
    request_id: str | None = None,
) -> list[UploadedFile]:
    """Write every file part of a multipart body to ``config.upload_dir``.

    Args:
        body: Blocking readable over the raw request body.
        content_type: The request's Content-Type header, carrying the boundary.
        config: Upload options; defaults come from the settings.
        namer: Destination name source; by default a CSPRNG-backed ``FileNamer``
            producing ``settings.random_name_length`` characters.
        request_id: Identifier used to prefix log lines.

    Returns:
        One ``UploadedFile`` per file part, in body order.

    Raises:
        InvalidMultipartError: Bad Content-Type or malformed body.
        UnsupportedTypeError: A part's sniffed type is not allowed.
        FileTooLargeError: A part exceeds ``config.max_file_size``.
        InvalidFilenameError: A part's name is unusable and renaming is off.
        OSError: Filesystem failures, unchanged.
    """
    return _upload(body, content_type, config, namer, request_id, max_files=None)


def upload_one_file(
    body: BinaryIO,
    content_type: str | None,
    config: UploadConfig | None = None,
    *,
    namer: FileNamer | None = None,
    request_id: str | None = None,
) -> UploadedFile:
    """Like ``upload_files`` but the body must carry exactly one file part.

    A second file part is rejected before any of its bytes are written.
    """
    uploaded = _upload(body, content_type, config, namer, request_id, max_files=1)
    if not uploaded:
        raise FileCountError("no file found in the request")
    return uploaded[0]
