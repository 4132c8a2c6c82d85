"""Core components of the WebP edge service."""

from .cache_keys import derive_key, parse_target_width
from .exceptions import (
    BadRequestError,
    CacheStoreError,
    CodecError,
    ConfigurationError,
    DecodeError,
    EncodeError,
    NotFoundError,
    OriginStoreError,
    ResizeError,
    UnsupportedFormatError,
    WebpEdgeError,
)
from .formats import classify
from .logging_config import get_logger, setup_logger
from .models import (
    DecodedImage,
    EncodedDerivative,
    ImageFormat,
    ImageRequest,
    QualityTier,
    RenderResult,
)
from .quality import resolve_quality

__all__ = [
    "derive_key",
    "parse_target_width",
    "classify",
    "resolve_quality",
    "setup_logger",
    "get_logger",
    "ImageFormat",
    "QualityTier",
    "ImageRequest",
    "DecodedImage",
    "EncodedDerivative",
    "RenderResult",
    "WebpEdgeError",
    "BadRequestError",
    "UnsupportedFormatError",
    "NotFoundError",
    "CodecError",
    "DecodeError",
    "ResizeError",
    "EncodeError",
    "OriginStoreError",
    "CacheStoreError",
    "ConfigurationError",
]
