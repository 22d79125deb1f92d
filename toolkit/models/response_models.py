from typing import Any
from typing import NamedTuple

from pydantic import BaseModel
from pydantic import Field
from pydantic import SerializerFunctionWrapHandler
from pydantic import model_serializer

from toolkit.core.config import settings
from toolkit.core.validation import DEFAULT_MAX_JSON_SIZE


class JSONResponseEnvelope(BaseModel):
    """Uniform wire shape for every JSON response, success or failure.

    ``data`` is left out of the serialized form when it is None.
    """

    error: bool = False
    message: str = ""
    data: Any | None = None

    @model_serializer(mode="wrap")
    def _omit_empty_data(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        dumped = handler(self)
        if self.data is None:
            dumped.pop("data", None)
        return dumped


class JSONDecodeConfig(BaseModel):
    """Options for strict JSON request decoding."""

    max_body_bytes: int = Field(default_factory=lambda: settings.max_json_size, ge=0)
    allow_unknown_fields: bool = Field(default_factory=lambda: settings.allow_unknown_fields)

    @property
    def effective_max_body_bytes(self) -> int:
        """The body limit, with 0 meaning the built-in default."""
        return self.max_body_bytes or DEFAULT_MAX_JSON_SIZE


class PushResult(NamedTuple):
    """Outcome of a JSON push to a remote endpoint."""

    status_code: int
    body: bytes
