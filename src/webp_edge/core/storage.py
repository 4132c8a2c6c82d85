"""Origin and cache store backends."""

import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, TYPE_CHECKING

from botocore.exceptions import ClientError

from .exceptions import CacheStoreError, OriginStoreError

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client
else:
    S3Client = Any

EXPIRES_AT_METADATA = "expires-at"
_MISSING_OBJECT_CODES = ("NoSuchKey", "404", "NotFound")


def _is_missing_object(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in _MISSING_OBJECT_CODES


def _join_key(prefix: str, key: str) -> str:
    if not prefix:
        return key
    return f"{prefix.rstrip('/')}/{key}"


class S3OriginStore:
    """Original uploads stored in S3 under ``{prefix}/{owner}/{picture}``."""

    def __init__(self, s3_client: S3Client, bucket: str, prefix: str = ""):
        self._s3_client = s3_client
        self._bucket = bucket
        self._prefix = prefix

    def get(self, key: str) -> Optional[bytes]:
        object_key = _join_key(self._prefix, key)
        try:
            response = self._s3_client.get_object(Bucket=self._bucket, Key=object_key)
        except ClientError as e:
            if _is_missing_object(e):
                return None
            raise OriginStoreError(f"S3 get failed for s3://{self._bucket}/{object_key}: {e}") from e
        return response["Body"].read()


class LocalOriginStore:
    """Original uploads read from a directory tree, used by the CLI."""

    def __init__(self, root: Path):
        self._root = Path(root).resolve()

    def get(self, key: str) -> Optional[bytes]:
        path = (self._root / key).resolve()
        # Keys come from URL segments; never read outside the root
        if self._root not in path.parents:
            return None
        if not path.is_file():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            raise OriginStoreError(f"Could not read {path}: {e}") from e


class InMemoryCacheStore:
    """Thread-safe key/value store with per-entry expiry and a size cap.

    Expired entries are swept on writes, at most once per ``sweep_interval``
    seconds. When the cap is reached the oldest entry is evicted.
    """

    def __init__(
        self,
        max_entries: int = 10_000,
        sweep_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._max_entries = max_entries
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._entries: Dict[str, Tuple[bytes, float]] = {}
        self._lock = threading.Lock()
        self._next_sweep = clock() + sweep_interval

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            data, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return data

    def put(self, key: str, data: bytes, ttl_seconds: int) -> None:
        with self._lock:
            now = self._clock()
            if now >= self._next_sweep:
                self._sweep(now)
            # Re-insert so insertion order tracks write age
            self._entries.pop(key, None)
            while len(self._entries) >= self._max_entries:
                del self._entries[next(iter(self._entries))]
            self._entries[key] = (data, now + ttl_seconds)

    def _sweep(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self._sweep_interval

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class S3CacheStore:
    """Derivative cache kept in an S3 bucket.

    S3 has no per-object TTL, so the expiry instant is written as object
    metadata and checked on read. A bucket lifecycle rule should reclaim the
    expired objects.
    """

    def __init__(
        self,
        s3_client: S3Client,
        bucket: str,
        prefix: str = "derivatives/",
        clock: Callable[[], float] = time.time,
    ):
        self._s3_client = s3_client
        self._bucket = bucket
        self._prefix = prefix
        self._clock = clock

    def _object_key(self, key: str) -> str:
        # Cache keys use ':' separators, which are valid in S3 keys
        return _join_key(self._prefix, key)

    def get(self, key: str) -> Optional[bytes]:
        object_key = self._object_key(key)
        try:
            response = self._s3_client.get_object(Bucket=self._bucket, Key=object_key)
        except ClientError as e:
            if _is_missing_object(e):
                return None
            raise CacheStoreError(f"S3 cache get failed for {object_key}: {e}") from e

        expires_at = response.get("Metadata", {}).get(EXPIRES_AT_METADATA)
        if expires_at is not None and float(expires_at) <= self._clock():
            response["Body"].close()
            return None
        return response["Body"].read()

    def put(self, key: str, data: bytes, ttl_seconds: int) -> None:
        object_key = self._object_key(key)
        expires_at = self._clock() + ttl_seconds
        try:
            self._s3_client.put_object(
                Bucket=self._bucket,
                Key=object_key,
                Body=data,
                ContentType="image/webp",
                Expires=datetime.fromtimestamp(expires_at, tz=timezone.utc),
                Metadata={EXPIRES_AT_METADATA: f"{expires_at:.0f}"},
            )
        except ClientError as e:
            raise CacheStoreError(f"S3 cache put failed for {object_key}: {e}") from e
