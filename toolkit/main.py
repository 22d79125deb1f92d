import logging

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.responses import Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from toolkit.api.routes import router
from toolkit.core.exceptions import ErrKind
from toolkit.core.exceptions import ToolkitError
from toolkit.core.logging import setup_logging
from toolkit.services.json_codec import error_json

setup_logging()

app = FastAPI(title="Web Toolkit")

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[ErrKind, int] = {
    ErrKind.FILE_TOO_LARGE: 413,
    ErrKind.BODY_TOO_LARGE: 413,
    ErrKind.UNSUPPORTED_TYPE: 415,
    ErrKind.ENCODE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrKind.REMOTE_ERROR: status.HTTP_502_BAD_GATEWAY,
}


def status_for(exc: ToolkitError) -> int:
    """HTTP status for a toolkit error; client errors default to 400."""
    return ERROR_STATUS.get(exc.kind, status.HTTP_400_BAD_REQUEST)


@app.exception_handler(ToolkitError)
async def toolkit_exception_handler(_request: Request, exc: ToolkitError) -> Response:
    status_code = status_for(exc)
    logger.error("Toolkit error %s: %s (status: %d)", exc.kind.value, exc.message, status_code)
    return error_json(exc, status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> Response:
    logger.error("HTTP exception: %s (status: %d)", exc.detail, exc.status_code)
    return error_json(Exception(str(exc.detail)), exc.status_code)


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    logger.info("Health check endpoint called")
    return {"status": "ok"}


app.include_router(router)
