"""Protocol definitions for dependency injection and testability."""

from typing import Any, Optional, Protocol

from .models import DecodedImage


class OriginStoreProtocol(Protocol):
    """Protocol for the blob store holding original uploads."""

    def get(self, key: str) -> Optional[bytes]:
        """Return the object bytes, or None when no object exists."""
        ...


class CacheStoreProtocol(Protocol):
    """Protocol for the key/value store holding encoded derivatives."""

    def get(self, key: str) -> Optional[bytes]:
        """Return the cached bytes, or None on a miss."""
        ...

    def put(self, key: str, data: bytes, ttl_seconds: int) -> None:
        """Store bytes under key for ttl_seconds."""
        ...


class DecoderProtocol(Protocol):
    """Protocol for decoders of one container format."""

    def decode(self, data: bytes) -> DecodedImage:
        """Decode container bytes into RGBA pixels."""
        ...


class ResizerProtocol(Protocol):
    """Protocol for image resamplers."""

    def resize(self, image: DecodedImage, width: int, height: int) -> DecodedImage:
        """Resample to exactly width x height."""
        ...


class EncoderProtocol(Protocol):
    """Protocol for the WebP encoder."""

    def encode(self, image: DecodedImage, quality: Optional[int] = None) -> bytes:
        """Encode to WebP, using the encoder default when quality is None."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...
