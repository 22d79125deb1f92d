import errno
import logging
import os
from pathlib import Path

from starlette.responses import FileResponse

logger = logging.getLogger(__name__)


def download_static_file(path: str | os.PathLike[str], display_name: str) -> FileResponse:
    """Serve the file at ``path`` as an attachment named ``display_name``.

    The response carries ``Content-Disposition: attachment; filename="..."``
    and the exact ``Content-Length`` of the file, which is streamed verbatim.

    Raises:
        FileNotFoundError: If ``path`` is not an existing regular file.
    """
    file_path = Path(path)
    if not file_path.is_file():
        logger.warning("Download requested for missing file %s", file_path)
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(file_path))

    stat_result = file_path.stat()
    logger.info("Serving %s as attachment %r (%d bytes)", file_path, display_name, stat_result.st_size)
    return FileResponse(
        file_path,
        filename=display_name,
        content_disposition_type="attachment",
        stat_result=stat_result,
    )
