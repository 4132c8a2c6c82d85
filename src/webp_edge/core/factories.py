"""Factory classes for creating configured service instances."""

from typing import Any, Optional

import boto3

from ..config import EdgeSettings
from .codecs import CodecSet, default_codecs
from .exceptions import ConfigurationError
from .logging_config import get_logger
from .observability import MetricsCollector, StructuredLogger
from .protocols import CacheStoreProtocol, LoggerProtocol, OriginStoreProtocol
from .services import (
    DerivativeCache,
    DerivativeService,
    OriginFetcher,
    TranscodePipeline,
)
from .storage import InMemoryCacheStore, S3CacheStore, S3OriginStore


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str = "webp-edge", level: Optional[str] = None) -> LoggerProtocol:
        logger = get_logger(name)
        if level:
            logger.setLevel(level.upper())
        return StructuredLogger(logger)


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(**kwargs: Any) -> Any:
        session = boto3.Session()
        return session.client("s3", **kwargs)


class StoreFactory:
    """Factory for the origin and cache backends named in the settings."""

    @staticmethod
    def create_origin_store(settings: EdgeSettings, s3_client: Any) -> OriginStoreProtocol:
        if not settings.origin_bucket:
            raise ConfigurationError("origin_bucket is required for the S3 origin store")
        return S3OriginStore(s3_client, settings.origin_bucket, settings.origin_prefix)

    @staticmethod
    def create_cache_store(settings: EdgeSettings, s3_client: Any) -> CacheStoreProtocol:
        if settings.cache_backend == "s3":
            return S3CacheStore(s3_client, settings.cache_bucket or "", settings.cache_prefix)
        return InMemoryCacheStore(max_entries=settings.cache_max_entries)


class DerivativeServiceFactory:
    """Factory for creating the complete request-to-derivative service."""

    @staticmethod
    def create_service(
        settings: Optional[EdgeSettings] = None,
        origin_store: Optional[OriginStoreProtocol] = None,
        cache_store: Optional[CacheStoreProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        codecs: Optional[CodecSet] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        s3_client: Any = None,
    ) -> DerivativeService:
        """Create a fully wired service. Explicit collaborators win over settings."""
        settings = settings or EdgeSettings.from_env()

        if logger is None:
            logger = LoggerFactory.create_logger(
                "webp-edge", "DEBUG" if settings.debug else None
            )

        needs_s3 = origin_store is None or (
            cache_store is None and settings.cache_backend == "s3"
        )
        if needs_s3 and s3_client is None:
            s3_client = S3ClientFactory.create_s3_client()

        if origin_store is None:
            origin_store = StoreFactory.create_origin_store(settings, s3_client)
        if cache_store is None:
            cache_store = StoreFactory.create_cache_store(settings, s3_client)

        return DerivativeService(
            cache=DerivativeCache(cache_store, logger),
            fetcher=OriginFetcher(origin_store, logger),
            pipeline=TranscodePipeline(codecs or default_codecs(), logger, metrics_collector),
            logger=logger,
        )
