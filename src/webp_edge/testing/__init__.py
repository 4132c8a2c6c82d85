"""Testing utilities and fakes for the WebP edge service."""

from .fakes import (
    CodecCall,
    FakeCacheStore,
    FakeLogger,
    FakeOriginStore,
    RecordingCodecs,
    create_test_image,
    image_format_name,
    image_size,
    setup_test_origin,
)

__all__ = [
    "CodecCall",
    "FakeCacheStore",
    "FakeLogger",
    "FakeOriginStore",
    "RecordingCodecs",
    "create_test_image",
    "image_format_name",
    "image_size",
    "setup_test_origin",
]
