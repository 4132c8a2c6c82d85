"""FastAPI application exposing ``GET /{owner_id}/{picture_id}``."""

from typing import List, Optional, Tuple

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse

from ..core.exceptions import BadRequestError, CodecError, NotFoundError
from ..core.logging_config import get_logger
from ..core.services import DerivativeService, build_image_request

INVALID_PATH_MESSAGE = "Invalid URL format. Expected format: uid/pid"
UNSUPPORTED_TYPE_MESSAGE = "Unsupported image type"
NOT_FOUND_MESSAGE = "Image not found"
INTERNAL_ERROR_MESSAGE = "Error processing image"


def split_image_path(path: str) -> Optional[Tuple[str, str]]:
    """Return (owner_id, picture_id) when path has exactly two non-empty segments."""
    segments: List[str] = [segment for segment in path.split("/") if segment]
    if len(segments) != 2:
        return None
    return segments[0], segments[1]


def first_query_value(request: Request, name: str) -> Optional[str]:
    """Return the first occurrence of a repeated query parameter."""
    values = request.query_params.getlist(name)
    return values[0] if values else None


def create_app(service: DerivativeService) -> FastAPI:
    """Build the application around an already wired service."""
    app = FastAPI(title="webp-edge", docs_url=None, redoc_url=None, openapi_url=None)
    logger = get_logger("webp-edge.api")

    @app.get("/{image_path:path}")
    def get_derivative(image_path: str, request: Request) -> Response:
        segments = split_image_path(image_path)
        if segments is None:
            return PlainTextResponse(INVALID_PATH_MESSAGE, status_code=400)
        owner_id, picture_id = segments

        try:
            image_request = build_image_request(
                owner_id,
                picture_id,
                first_query_value(request, "quality"),
                first_query_value(request, "th"),
            )
            result = service.render(image_request)
        except BadRequestError as e:
            logger.info(f"Rejected {image_path}: {e}")
            return PlainTextResponse(UNSUPPORTED_TYPE_MESSAGE, status_code=400)
        except NotFoundError as e:
            logger.info(f"Missing origin for {image_path}: {e}")
            return PlainTextResponse(NOT_FOUND_MESSAGE, status_code=404)
        except CodecError as e:
            # The codec wrapper already logged the traceback
            logger.error(f"Failed to render {image_path}: {e}")
            return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=500)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Failed to render {image_path}: {e}", exc_info=True)
            return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=500)

        return Response(content=result.data, media_type=result.content_type)

    return app
