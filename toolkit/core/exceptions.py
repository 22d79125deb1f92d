"""Core custom exceptions for the toolkit.

Every failure a helper can report to its caller is a ``ToolkitError`` carrying
an ``ErrKind``, so HTTP handlers can map kinds to status codes in one place.
Filesystem errors (``OSError``) are not wrapped and propagate as-is.
"""

from enum import Enum


class ErrKind(str, Enum):
    """Machine-readable category of a toolkit failure."""

    UNSUPPORTED_TYPE = "UnsupportedType"
    FILE_TOO_LARGE = "FileTooLarge"
    FILE_COUNT = "FileCount"
    INVALID_FILENAME = "InvalidFilename"
    INVALID_MULTIPART = "InvalidMultipart"
    BODY_TOO_LARGE = "BodyTooLarge"
    SYNTAX_ERROR = "SyntaxError"
    TYPE_MISMATCH = "TypeMismatch"
    EMPTY_BODY = "EmptyBody"
    UNKNOWN_FIELD = "UnknownField"
    TRAILING_DATA = "TrailingData"
    ENCODE_ERROR = "EncodeError"
    EMPTY_RESULT = "EmptyResult"
    REMOTE_ERROR = "RemoteError"


class ToolkitError(Exception):
    """Base exception for all toolkit errors."""

    kind: ErrKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# --- Uploads ---------------------------------------------------------------


class UploadError(ToolkitError):
    """Base exception for multipart upload failures."""


class UnsupportedTypeError(UploadError):
    """Raised when a sniffed content type is not in the allow-list."""

    kind = ErrKind.UNSUPPORTED_TYPE


class FileTooLargeError(UploadError):
    """Raised when a single uploaded file exceeds the configured size."""

    kind = ErrKind.FILE_TOO_LARGE


class FileCountError(UploadError):
    """Raised when a single-file upload carries zero or several files."""

    kind = ErrKind.FILE_COUNT


class InvalidFilenameError(UploadError):
    """Raised when a client filename cannot be used as a destination name."""

    kind = ErrKind.INVALID_FILENAME


class InvalidMultipartError(UploadError):
    """Raised for a missing boundary or malformed multipart framing."""

    kind = ErrKind.INVALID_MULTIPART


# --- JSON request bodies ----------------------------------------------------


class RequestBodyError(ToolkitError):
    """Base exception for strict JSON decoding failures.

    Attributes:
        field: Offending field or key, when known.
        offset: Character offset into the body, when known.
    """

    def __init__(self, message: str, *, field: str | None = None, offset: int | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.offset = offset


class BodyTooLargeError(RequestBodyError):
    kind = ErrKind.BODY_TOO_LARGE


class JSONSyntaxError(RequestBodyError):
    kind = ErrKind.SYNTAX_ERROR


class TypeMismatchError(RequestBodyError):
    kind = ErrKind.TYPE_MISMATCH


class EmptyBodyError(RequestBodyError):
    kind = ErrKind.EMPTY_BODY


class UnknownFieldError(RequestBodyError):
    kind = ErrKind.UNKNOWN_FIELD


class TrailingDataError(RequestBodyError):
    kind = ErrKind.TRAILING_DATA


# --- Everything else ----------------------------------------------------------


class ResponseEncodingError(ToolkitError):
    """Raised when a payload cannot be serialized to JSON."""

    kind = ErrKind.ENCODE_ERROR


class EmptyResultError(ToolkitError):
    """Raised when a text transform leaves nothing behind."""

    kind = ErrKind.EMPTY_RESULT


class RemotePushError(ToolkitError):
    """Raised when a JSON push to a remote endpoint fails in transport."""

    kind = ErrKind.REMOTE_ERROR
