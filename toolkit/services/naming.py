import logging
import random
import secrets
import string
from pathlib import PurePosixPath

from toolkit.core.exceptions import InvalidFilenameError
from toolkit.core.validation import RANDOM_NAME_LENGTH

logger = logging.getLogger(__name__)

RANDOM_ALPHABET = string.ascii_letters + string.digits


def base_name(filename: str) -> str:
    """Strip any client-side directory part, Windows or POSIX."""
    return PurePosixPath(filename.replace("\\", "/")).name


def file_extension(filename: str) -> str:
    """Return the extension including its dot, or '' if there is none."""
    name = base_name(filename)
    idx = name.rfind(".")
    if idx < 0 or not name.strip("."):
        return ""
    return name[idx:]


class FileNamer:
    """Chooses destination names for uploaded files.

    The random source is injectable; the default draws from the OS CSPRNG so
    concurrent uploads need no coordination to avoid collisions.
    """

    def __init__(self, rng: random.Random | None = None, length: int = RANDOM_NAME_LENGTH) -> None:
        self._rng = rng or secrets.SystemRandom()
        self.length = length

    def random_string(self, n: int) -> str:
        return "".join(self._rng.choice(RANDOM_ALPHABET) for _ in range(n))

    def name(self, original: str, rename: bool) -> str:
        """Return the destination name for ``original``.

        With ``rename`` the base becomes ``self.length`` random characters and
        the original extension is kept as given. Without it the client's base
        name is used unchanged and later writes overwrite earlier ones.

        Raises:
            InvalidFilenameError: If the name is unusable and ``rename`` is False.
        """
        if rename:
            return f"{self.random_string(self.length)}{file_extension(original)}"

        name = base_name(original)
        if name in ("", ".", ".."):
            logger.warning("Rejected unusable upload filename %r", original)
            raise InvalidFilenameError(f"invalid file name: {original!r}")
        return name
