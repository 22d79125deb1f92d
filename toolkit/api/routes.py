import logging
from collections.abc import Callable
from functools import wraps
from typing import Any
from uuid import uuid4

from fastapi import APIRouter
from fastapi import HTTPException
from fastapi import Query
from fastapi import Request
from fastapi import status
from fastapi.responses import FileResponse
from fastapi.responses import Response
from pydantic import BaseModel

from toolkit.api.body import RequestBodyReader
from toolkit.core.config import settings
from toolkit.core.exceptions import ToolkitError
from toolkit.models.response_models import JSONResponseEnvelope
from toolkit.services.downloads import download_static_file
from toolkit.services.json_codec import read_json
from toolkit.services.json_codec import write_json
from toolkit.services.naming import base_name
from toolkit.services.slugify import slugify
from toolkit.services.uploads import upload_files
from toolkit.services.uploads import upload_one_file

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class SlugRequest(BaseModel):
    text: str


def with_request_id(func: Callable) -> Callable:
    """Tag the request with an id and log how toolkit calls end."""

    @wraps(func)
    def wrapper(request: Request, *args: Any, **kwargs: Any) -> Response:
        request_id = str(uuid4())
        request.state.request_id = request_id
        try:
            return func(request, *args, **kwargs)
        except ToolkitError as e:
            logger.warning("[%s] %s failed with %s: %s", request_id, func.__name__, e.kind.value, e.message)
            raise
        except Exception as e:
            logger.error("[%s] Unexpected error in %s: %s", request_id, func.__name__, str(e), exc_info=True)
            raise

    return wrapper


@router.post("/uploads", status_code=status.HTTP_201_CREATED)
@with_request_id
def upload_many(request: Request) -> Response:
    files = upload_files(
        RequestBodyReader(request),
        request.headers.get("content-type"),
        request_id=request.state.request_id,
    )
    envelope = JSONResponseEnvelope(
        message=f"{len(files)} file(s) uploaded",
        data=[f.model_dump() for f in files],
    )
    return write_json(status.HTTP_201_CREATED, envelope)


@router.post("/uploads/one", status_code=status.HTTP_201_CREATED)
@with_request_id
def upload_one(request: Request) -> Response:
    uploaded = upload_one_file(
        RequestBodyReader(request),
        request.headers.get("content-type"),
        request_id=request.state.request_id,
    )
    envelope = JSONResponseEnvelope(message=f"uploaded {uploaded.original_name}", data=uploaded.model_dump())
    return write_json(status.HTTP_201_CREATED, envelope)


@router.post("/slugify")
@with_request_id
def make_slug(request: Request) -> Response:
    payload = read_json(RequestBodyReader(request), SlugRequest)
    slug = slugify(payload.text)
    return write_json(status.HTTP_200_OK, JSONResponseEnvelope(message="slug created", data={"slug": slug}))


@router.get("/downloads/{name}")
def download(name: str, display_name: str | None = Query(default=None, alias="as")) -> FileResponse:
    safe_name = base_name(name)
    if safe_name != name or safe_name in ("", ".", ".."):
        logger.warning("Rejected download of unsafe name %r", name)
        raise HTTPException(status_code=404, detail="file not found")
    try:
        return download_static_file(settings.download_dir / safe_name, display_name or safe_name)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail="file not found") from e
