"""Tests for origin and cache store backends."""

import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from webp_edge.core.exceptions import CacheStoreError, OriginStoreError
from webp_edge.core.storage import (
    EXPIRES_AT_METADATA,
    InMemoryCacheStore,
    LocalOriginStore,
    S3CacheStore,
    S3OriginStore,
)


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "GetObject")


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestS3OriginStore:
    """Tests for S3OriginStore."""

    def test_get_reads_prefixed_key(self):
        s3 = MagicMock()
        s3.get_object.return_value = {"Body": io.BytesIO(b"origin")}
        store = S3OriginStore(s3, "originals", "uploads/")

        assert store.get("u1/p1.jpg") == b"origin"
        s3.get_object.assert_called_once_with(Bucket="originals", Key="uploads/u1/p1.jpg")

    @pytest.mark.parametrize("code", ["NoSuchKey", "404"])
    def test_missing_object_is_none(self, code):
        s3 = MagicMock()
        s3.get_object.side_effect = _client_error(code)

        assert S3OriginStore(s3, "originals").get("u1/p1.jpg") is None

    def test_other_errors_raise(self):
        s3 = MagicMock()
        s3.get_object.side_effect = _client_error("AccessDenied")

        with pytest.raises(OriginStoreError):
            S3OriginStore(s3, "originals").get("u1/p1.jpg")


class TestLocalOriginStore:
    """Tests for LocalOriginStore."""

    def test_reads_file(self, tmp_path):
        (tmp_path / "u1").mkdir()
        (tmp_path / "u1" / "p1.jpg").write_bytes(b"jpeg")

        assert LocalOriginStore(tmp_path).get("u1/p1.jpg") == b"jpeg"

    def test_missing_file_is_none(self, tmp_path):
        assert LocalOriginStore(tmp_path).get("u1/none.jpg") is None

    def test_does_not_escape_root(self, tmp_path):
        root = tmp_path / "root"
        root.mkdir()
        (tmp_path / "secret.png").write_bytes(b"secret")

        assert LocalOriginStore(root).get("../secret.png") is None


class TestInMemoryCacheStore:
    """Tests for InMemoryCacheStore."""

    def test_put_then_get(self):
        store = InMemoryCacheStore()
        store.put("k", b"v", 60)
        assert store.get("k") == b"v"

    def test_entry_expires(self):
        clock = FakeClock()
        store = InMemoryCacheStore(clock=clock)
        store.put("k", b"v", 60)

        clock.now += 59
        assert store.get("k") == b"v"
        clock.now += 1
        assert store.get("k") is None
        assert len(store) == 0

    def test_overwrite_replaces_value(self):
        store = InMemoryCacheStore()
        store.put("k", b"old", 60)
        store.put("k", b"new", 60)
        assert store.get("k") == b"new"

    def test_expired_entries_are_freed_on_write(self):
        clock = FakeClock()
        store = InMemoryCacheStore(clock=clock)
        for width in range(1, 1001):
            store.put(f"image:u1:p1.jpg:75:{width}", b"v", 604800)

        clock.now += 10 * 604800
        store.put("image:u1:p1.jpg:75", b"fresh", 604800)

        assert len(store) == 1
        assert store.get("image:u1:p1.jpg:75") == b"fresh"

    def test_sweep_keeps_live_entries(self):
        clock = FakeClock()
        store = InMemoryCacheStore(sweep_interval=10, clock=clock)
        store.put("short", b"v", 5)
        store.put("long", b"v", 600)

        clock.now += 30
        store.put("other", b"v", 600)

        assert len(store) == 2
        assert store.get("long") == b"v"

    def test_oldest_entry_evicted_at_capacity(self):
        store = InMemoryCacheStore(max_entries=2)
        store.put("a", b"1", 60)
        store.put("b", b"2", 60)
        store.put("a", b"3", 60)
        store.put("c", b"4", 60)

        assert len(store) == 2
        assert store.get("b") is None
        assert store.get("a") == b"3"
        assert store.get("c") == b"4"

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            InMemoryCacheStore(max_entries=0)


class TestS3CacheStore:
    """Tests for S3CacheStore."""

    def test_put_writes_expiry_metadata(self):
        s3 = MagicMock()
        store = S3CacheStore(s3, "cache", "derivatives/", clock=FakeClock(1000.0))

        store.put("image:u1:p1.jpg:75", b"webp", 604800)

        kwargs = s3.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "cache"
        assert kwargs["Key"] == "derivatives/image:u1:p1.jpg:75"
        assert kwargs["ContentType"] == "image/webp"
        assert kwargs["Metadata"] == {EXPIRES_AT_METADATA: "605800"}

    def test_get_fresh_entry(self):
        s3 = MagicMock()
        s3.get_object.return_value = {
            "Body": io.BytesIO(b"webp"),
            "Metadata": {EXPIRES_AT_METADATA: "2000"},
        }
        store = S3CacheStore(s3, "cache", clock=FakeClock(1000.0))

        assert store.get("k") == b"webp"

    def test_get_expired_entry_is_miss(self):
        s3 = MagicMock()
        body = io.BytesIO(b"webp")
        s3.get_object.return_value = {
            "Body": body,
            "Metadata": {EXPIRES_AT_METADATA: "999"},
        }
        store = S3CacheStore(s3, "cache", clock=FakeClock(1000.0))

        assert store.get("k") is None
        assert body.closed

    def test_get_missing_is_miss(self):
        s3 = MagicMock()
        s3.get_object.side_effect = _client_error("NoSuchKey")

        assert S3CacheStore(s3, "cache").get("k") is None

    def test_errors_raise_cache_store_error(self):
        s3 = MagicMock()
        s3.get_object.side_effect = _client_error("SlowDown")
        s3.put_object.side_effect = _client_error("SlowDown")
        store = S3CacheStore(s3, "cache")

        with pytest.raises(CacheStoreError):
            store.get("k")
        with pytest.raises(CacheStoreError):
            store.put("k", b"v", 1)
