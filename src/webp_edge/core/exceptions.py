"""Custom exceptions and error handling utilities for the WebP edge service."""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Type, TypeVar

from .logging_config import get_logger


class WebpEdgeError(Exception):
    """Base exception for all WebP edge errors."""


class BadRequestError(WebpEdgeError):
    """Error raised when the inbound request cannot be interpreted."""


class UnsupportedFormatError(BadRequestError):
    """Error raised when a picture id does not carry a supported extension."""


class NotFoundError(WebpEdgeError):
    """Error raised when the origin object is absent or empty."""


class CodecError(WebpEdgeError):
    """Error raised when a codec stage fails."""


class DecodeError(CodecError):
    """Error raised when decoding the origin bytes fails."""


class ResizeError(CodecError):
    """Error raised when resampling a decoded image fails."""


class EncodeError(CodecError):
    """Error raised when encoding the WebP derivative fails."""


class StoreError(WebpEdgeError):
    """Error raised for failures of an external key/value or blob store."""


class OriginStoreError(StoreError):
    """Error raised when the origin store fails for a reason other than a miss."""


class CacheStoreError(StoreError):
    """Error raised by the derivative cache backend. Never fatal to a request."""


class ConfigurationError(WebpEdgeError):
    """Error raised for invalid configuration options."""


F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(error_cls: Type[WebpEdgeError]) -> Callable[[F], F]:
    """Wrap a function so foreign exceptions surface as ``error_cls``.

    Errors that are already part of the service taxonomy pass through
    unchanged.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:  # type: ignore[override]
            logger = get_logger("webp-edge.codec")
            try:
                return func(*args, **kwargs)
            except WebpEdgeError:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    f"Unhandled error in {func.__name__}: {exc}", exc_info=True
                )
                raise error_cls(f"{func.__name__} failed: {exc}") from exc

        return wrapper  # type: ignore[return-value]

    return decorator
