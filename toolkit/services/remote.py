import logging
from typing import Any

import httpx

from toolkit.core.config import settings
from toolkit.core.exceptions import RemotePushError
from toolkit.models.response_models import PushResult
from toolkit.services.json_codec import JSON_CONTENT_TYPE
from toolkit.services.json_codec import encode_json

logger = logging.getLogger(__name__)


def push_json_to_remote(url: str, payload: Any, client: httpx.Client | None = None) -> PushResult:
    """POST ``payload`` as JSON to ``url``.

    Args:
        url: Target endpoint.
        payload: Anything ``encode_json`` accepts.
        client: Client to send with. When omitted a short-lived client with
            the configured push timeout is used.

    Returns:
        The response status code and body. Non-2xx statuses are returned, not raised.

    Raises:
        ResponseEncodingError: If ``payload`` cannot be serialized.
        RemotePushError: On transport failures (connect, timeout, protocol).
    """
    body = encode_json(payload)

    owns_client = client is None
    http = client or httpx.Client(timeout=settings.push_timeout)
    try:
        logger.debug("Pushing %d bytes of JSON to %s", len(body), url)
        response = http.post(url, content=body, headers={"Content-Type": JSON_CONTENT_TYPE})
    except httpx.HTTPError as e:
        logger.error("JSON push to %s failed: %s", url, e)
        raise RemotePushError(f"failed to push JSON to {url}: {e}") from e
    finally:
        if owns_client:
            http.close()

    logger.info("JSON push to %s answered %d", url, response.status_code)
    return PushResult(status_code=response.status_code, body=response.content)
