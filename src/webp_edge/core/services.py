"""Service implementations for the request-to-derivative pipeline."""

import time
from typing import Optional

from .cache_keys import parse_target_width
from .codecs import CodecSet
from .exceptions import NotFoundError, OriginStoreError, WebpEdgeError
from .formats import classify
from .models import EncodedDerivative, ImageFormat, ImageRequest, RenderResult
from .observability import LogContext, MetricsCollector, stage_timer
from .protocols import CacheStoreProtocol, LoggerProtocol, OriginStoreProtocol
from .quality import resolve_quality

DERIVATIVE_TTL_SECONDS = 60 * 60 * 24 * 7


def build_image_request(
    owner_id: str,
    picture_id: str,
    quality: Optional[str] = None,
    th: Optional[str] = None,
) -> ImageRequest:
    """Normalise raw path segments and query values into an ImageRequest."""
    return ImageRequest(
        owner_id=owner_id,
        picture_id=picture_id,
        quality=resolve_quality(quality),
        target_width=parse_target_width(th),
    )


def scaled_height(width: int, height: int, target_width: int) -> int:
    """Height that keeps the aspect ratio when scaling to target_width."""
    return max(1, round(height * target_width / width))


class DerivativeCache:
    """Best-effort cache of encoded derivatives.

    Store failures never fail a request: a failed read is a miss and a
    failed write is logged and dropped.
    """

    def __init__(
        self,
        store: CacheStoreProtocol,
        logger: LoggerProtocol,
        ttl_seconds: int = DERIVATIVE_TTL_SECONDS,
    ):
        self._store = store
        self._logger = logger
        self.ttl_seconds = ttl_seconds

    def get(self, key: str, context: Optional[LogContext] = None) -> Optional[bytes]:
        try:
            return self._store.get(key)
        except Exception as e:  # noqa: BLE001
            self._logger.warning(
                f"Cache read failed, treating as miss: {e}", context, cache_key=key
            )
            return None

    def put(self, key: str, data: bytes, context: Optional[LogContext] = None) -> bool:
        """Store data under key. Returns False when the store rejected it."""
        try:
            self._store.put(key, data, self.ttl_seconds)
            return True
        except Exception as e:  # noqa: BLE001
            self._logger.warning(
                f"Cache write failed, serving uncached: {e}", context, cache_key=key
            )
            return False


class OriginFetcher:
    """Single-attempt reader of original uploads."""

    def __init__(self, store: OriginStoreProtocol, logger: LoggerProtocol):
        self._store = store
        self._logger = logger

    def fetch(
        self, owner_id: str, picture_id: str, context: Optional[LogContext] = None
    ) -> bytes:
        key = f"{owner_id}/{picture_id}"
        self._logger.debug("Fetching origin", context, origin_key=key)
        try:
            data = self._store.get(key)
        except WebpEdgeError:
            raise
        except Exception as e:
            raise OriginStoreError(f"Origin fetch failed for {key}: {e}") from e

        if not data:
            raise NotFoundError(f"Image not found: {key}")
        return data


class TranscodePipeline:
    """Decode, optionally resize, and encode to WebP, doing only needed work."""

    def __init__(
        self,
        codecs: CodecSet,
        logger: LoggerProtocol,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._codecs = codecs
        self._logger = logger
        self._metrics_collector = metrics_collector

    def transcode(
        self,
        data: bytes,
        image_format: ImageFormat,
        quality: int,
        target_width: Optional[int] = None,
        context: Optional[LogContext] = None,
    ) -> EncodedDerivative:
        context = context or LogContext(component="transcode_pipeline")

        # An already-WebP original needing no resize is served byte-for-byte
        if image_format is ImageFormat.WEBP and target_width is None:
            self._logger.debug("WebP fast path, skipping transcode", context)
            return EncodedDerivative(data=data, transcoded=False)

        with stage_timer("decode", self._logger, context, self._metrics_collector):
            image = self._codecs.decoder_for(image_format).decode(data)

        if target_width is not None and target_width != image.width:
            new_height = scaled_height(image.width, image.height, target_width)
            with stage_timer(
                "resize", self._logger, context, self._metrics_collector
            ) as resize_context:
                self._logger.debug(
                    f"Resizing {image.width}x{image.height} -> {target_width}x{new_height}",
                    resize_context,
                )
                image = self._codecs.resizer.resize(image, target_width, new_height)

        # Re-encoded WebP sources use the encoder default quality, not the
        # requested one
        encode_quality = None if image_format is ImageFormat.WEBP else quality

        with stage_timer("encode", self._logger, context, self._metrics_collector):
            encoded = self._codecs.encoder.encode(image, quality=encode_quality)

        return EncodedDerivative(
            data=encoded,
            quality=encode_quality,
            width=image.width,
            height=image.height,
        )


class DerivativeService:
    """Orchestrates cache lookup, origin fetch, transcode and cache fill."""

    def __init__(
        self,
        cache: DerivativeCache,
        fetcher: OriginFetcher,
        pipeline: TranscodePipeline,
        logger: LoggerProtocol,
    ):
        self._cache = cache
        self._fetcher = fetcher
        self._pipeline = pipeline
        self._logger = logger

    def render(self, request: ImageRequest) -> RenderResult:
        """Return the WebP derivative for a request, computing it on a miss.

        Raises:
            UnsupportedFormatError: The picture extension is not supported
            NotFoundError: The origin object is absent or empty
            CodecError: Decode, resize or encode failed
            OriginStoreError: The origin store failed
        """
        cache_key = request.cache_key
        context = LogContext(component="derivative_service").with_metadata(
            cache_key=cache_key
        )
        start_time = time.perf_counter()

        cached = self._cache.get(cache_key, context)
        if cached is not None:
            self._logger.info("Cache hit", context)
            return RenderResult(data=cached, cache_key=cache_key, cache_hit=True)

        # Reject unsupported types before touching the origin store
        image_format = classify(request.picture_id)
        origin_bytes = self._fetcher.fetch(
            request.owner_id, request.picture_id, context
        )

        derivative = self._pipeline.transcode(
            origin_bytes,
            image_format,
            request.quality,
            request.target_width,
            context,
        )

        self._cache.put(cache_key, derivative.data, context)

        self._logger.info(
            "Derivative rendered",
            context,
            transcoded=derivative.transcoded,
            size_bytes=len(derivative.data),
            processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return RenderResult(data=derivative.data, cache_key=cache_key)
