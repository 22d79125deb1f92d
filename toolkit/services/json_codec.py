"""Strict JSON request decoding and JSON response writing.

Decoding rules, in the order they are applied:

1. the body is read incrementally and rejected once it passes the size limit;
2. an empty (or whitespace-only) body is an error;
3. exactly one JSON document is parsed, and anything after it but whitespace
   is rejected, so concatenated documents never slip through;
4. unless allowed, keys the target model does not declare are rejected;
5. the document is validated against the target model in strict JSON mode.

Every failure is a ``RequestBodyError`` subclass whose message is safe to
return to the client.
"""

import json
import logging
import re
from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from types import UnionType
from typing import Annotated
from typing import Any
from typing import BinaryIO
from typing import TypeVar
from typing import Union
from typing import get_args
from typing import get_origin

from pydantic import BaseModel
from pydantic import ValidationError
from starlette.responses import Response

from toolkit.core.exceptions import BodyTooLargeError
from toolkit.core.exceptions import EmptyBodyError
from toolkit.core.exceptions import JSONSyntaxError
from toolkit.core.exceptions import ResponseEncodingError
from toolkit.core.exceptions import ToolkitError
from toolkit.core.exceptions import TrailingDataError
from toolkit.core.exceptions import TypeMismatchError
from toolkit.core.exceptions import UnknownFieldError
from toolkit.core.validation import COPY_BUFFER_SIZE
from toolkit.models.response_models import JSONDecodeConfig
from toolkit.models.response_models import JSONResponseEnvelope

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

JSON_CONTENT_TYPE = "application/json"

_WHITESPACE = re.compile(r"[ \t\n\r]*")


def _reject_constant(name: str) -> Any:
    raise JSONSyntaxError(f"body contains badly-formed JSON (invalid literal {name})")


_decoder = json.JSONDecoder(parse_constant=_reject_constant)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _read_limited(body: BinaryIO, limit: int) -> bytes:
    """Read ``body`` to EOF, failing as soon as more than ``limit`` bytes arrive."""
    buf = bytearray()
    while True:
        chunk = body.read(min(COPY_BUFFER_SIZE, limit + 1 - len(buf)))
        if not chunk:
            return bytes(buf)
        buf += chunk
        if len(buf) > limit:
            raise BodyTooLargeError(f"body must not be larger than {limit} bytes")


def _known_keys(model: type[BaseModel]) -> dict[str, Any]:
    """Map each accepted input key of ``model`` to its field annotation.

    An aliased field is only known by its alias unless the model also
    populates by name.
    """
    by_name = model.model_config.get("populate_by_name") or model.model_config.get("validate_by_name")
    keys: dict[str, Any] = {}
    for name, field in model.model_fields.items():
        alias = field.validation_alias if isinstance(field.validation_alias, str) else field.alias
        if alias:
            keys[alias] = field.annotation
        if not alias or by_name:
            keys[name] = field.annotation
    return keys


def _shape_fits(annotation: Any, value: Any) -> bool:
    if annotation is Any:
        return True
    origin = get_origin(annotation) or annotation
    if origin is Annotated:
        return _shape_fits(get_args(annotation)[0], value)
    if origin is Union or origin is UnionType:
        return any(_shape_fits(arg, value) for arg in get_args(annotation))
    if isinstance(value, dict):
        return isinstance(origin, type) and issubclass(origin, (BaseModel, Mapping))
    if isinstance(value, list):
        return isinstance(origin, type) and issubclass(origin, Iterable) and not issubclass(origin, (str, bytes, Mapping))
    return True


def _check_unknown_fields(annotation: Any, value: Any, path: str = "") -> None:
    """Reject keys in ``value`` that ``annotation`` does not declare, at any depth."""
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        if not isinstance(value, dict):
            return
        known = _known_keys(annotation)
        for key, item in value.items():
            field_path = f"{path}.{key}" if path else key
            if key not in known:
                raise UnknownFieldError(f'body contains unknown key "{field_path}"', field=field_path)
            _check_unknown_fields(known[key], item, field_path)
        return

    origin = get_origin(annotation)
    args = get_args(annotation)
    if not args:
        return

    if origin is Annotated:
        _check_unknown_fields(args[0], value, path)
    elif origin is Union or origin is UnionType:
        # the value must satisfy one member of matching shape; report the first complaint
        errors: list[UnknownFieldError] = []
        for candidate in (c for c in args if _shape_fits(c, value)):
            try:
                _check_unknown_fields(candidate, value, path)
                return
            except UnknownFieldError as e:
                errors.append(e)
        if errors:
            raise errors[0]
    elif isinstance(value, dict) and isinstance(origin, type) and issubclass(origin, Mapping):
        for key, item in value.items():
            _check_unknown_fields(args[-1], item, f"{path}.{key}" if path else str(key))
    elif isinstance(value, list) and origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
        for index, (item, item_type) in enumerate(zip(value, args)):
            _check_unknown_fields(item_type, item, f"{path}.{index}" if path else str(index))
    elif isinstance(value, list) and isinstance(origin, type) and issubclass(origin, Iterable):
        for index, item in enumerate(value):
            _check_unknown_fields(args[0], item, f"{path}.{index}" if path else str(index))


def _parse_document(raw: bytes) -> tuple[Any, str]:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise JSONSyntaxError(f"body contains badly-formed JSON (at character {e.start})", offset=e.start) from e

    start = _WHITESPACE.match(text).end()  # type: ignore[union-attr]
    if start == len(text):
        raise EmptyBodyError("body must not be empty")

    try:
        value, end = _decoder.raw_decode(text, start)
    except json.JSONDecodeError as e:
        if e.pos >= len(text):
            raise JSONSyntaxError("body contains badly-formed JSON", offset=e.pos) from e
        raise JSONSyntaxError(f"body contains badly-formed JSON (at character {e.pos})", offset=e.pos) from e
    except RecursionError as e:
        raise JSONSyntaxError("body contains badly-formed JSON (nesting too deep)") from e
    except ValueError as e:
        # e.g. integers past the interpreter's digit limit
        raise JSONSyntaxError(f"body contains badly-formed JSON ({e})") from e

    if _WHITESPACE.match(text, end).end() != len(text):  # type: ignore[union-attr]
        raise TrailingDataError("body must only contain a single JSON value", offset=end)

    return value, text[start:end]


def read_json(body: BinaryIO, target: type[M] | None = None, config: JSONDecodeConfig | None = None) -> M | Any:
    """Decode exactly one JSON document from ``body``.

    Args:
        body: Blocking readable over the raw request body.
        target: Pydantic model the document must match. With None the decoded
            Python value is returned unchecked.
        config: Size limit and unknown-field policy; defaults come from the settings.

    Returns:
        An instance of ``target``, or the plain decoded value.

    Raises:
        RequestBodyError: One of its subclasses, per the module rules.
    """
    config = config or JSONDecodeConfig()
    raw = _read_limited(body, config.effective_max_body_bytes)
    value, document = _parse_document(raw)

    if target is None:
        return value

    if not isinstance(value, dict):
        raise TypeMismatchError(
            f"body contains incorrect JSON type (expected object, got {type(value).__name__})",
            offset=0,
        )

    if not config.allow_unknown_fields:
        _check_unknown_fields(target, value)

    try:
        return target.model_validate_json(document, strict=True)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(loc) for loc in first["loc"])
        logger.debug("JSON body failed validation against %s: %s", target.__name__, e.errors())
        if first["type"] == "missing":
            raise TypeMismatchError(f'body is missing required field "{field}"', field=field) from e
        raise TypeMismatchError(f'body contains incorrect JSON type for field "{field}"', field=field) from e


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_json(payload: Any) -> bytes:
    """Serialize ``payload`` to compact UTF-8 JSON.

    Raises:
        ResponseEncodingError: If the payload holds values JSON cannot represent.
    """
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    try:
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        logger.error("Failed to serialize JSON payload: %s", e)
        raise ResponseEncodingError(f"error encoding JSON response: {e}") from e


def write_json(
    status: int,
    payload: Any,
    headers: Mapping[str, str | Sequence[str]] | None = None,
) -> Response:
    """Build a JSON response for ``payload``.

    The body is fully serialized before the response exists, so encoding
    errors never produce a half-written reply. Extra headers are applied
    verbatim; ``Content-Type`` is always ``application/json``.
    """
    body = encode_json(payload)
    response = Response(content=body, status_code=status, media_type=JSON_CONTENT_TYPE)

    for key, value in (headers or {}).items():
        if isinstance(value, str):
            response.headers[key] = value
            continue
        del response.headers[key]
        for item in value:
            response.headers.append(key, item)

    response.headers["content-type"] = JSON_CONTENT_TYPE
    return response


def error_json(err: BaseException, status: int = 400) -> Response:
    """Wrap ``err`` in an error envelope and write it with ``status``."""
    message = err.message if isinstance(err, ToolkitError) else str(err)
    return write_json(status, JSONResponseEnvelope(error=True, message=message))
