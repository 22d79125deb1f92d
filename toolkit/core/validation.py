"""Limits and the content-type allow-list check for uploads."""

import logging
from collections.abc import Collection

logger = logging.getLogger(__name__)

# Size limits used when a caller passes 0
DEFAULT_MAX_FILE_SIZE: int = 1024 * 1024 * 1024  # 1 GiB per file
DEFAULT_MAX_JSON_SIZE: int = 1024 * 1024  # 1 MiB per JSON body

# Bytes inspected by the content sniffer
SNIFF_LEN: int = 512

# Chunk size for streaming copies and body reads
COPY_BUFFER_SIZE: int = 64 * 1024

RANDOM_NAME_LENGTH: int = 25


def is_allowed_type(sniffed_type: str, allowed_types: Collection[str]) -> bool:
    """Return True if ``sniffed_type`` passes the allow-list.

    An empty allow-list accepts everything; otherwise the match is exact and
    case-sensitive.
    """
    if not allowed_types:
        return True
    allowed = sniffed_type in allowed_types
    if not allowed:
        logger.debug("Content type %s not in allow-list %s", sniffed_type, sorted(allowed_types))
    return allowed
