"""Tests for the Pillow codec set."""

from unittest.mock import MagicMock, patch

import pytest

from webp_edge.core.codecs import (
    CodecRuntime,
    CodecSet,
    PillowDecoder,
    PillowResizer,
    PillowWebpEncoder,
    default_codecs,
    from_pil,
    to_pil,
)
from webp_edge.core.exceptions import (
    CodecError,
    ConfigurationError,
    DecodeError,
    ResizeError,
)
from webp_edge.core.models import DecodedImage, ImageFormat
from webp_edge.testing.fakes import create_test_image, image_format_name, image_size


class TestCodecRuntime:
    """Tests for lazy codec runtime initialisation."""

    def test_initializes_once(self):
        initializer = MagicMock()
        runtime = CodecRuntime("test", initializer)

        runtime.ensure_ready()
        runtime.ensure_ready()

        initializer.assert_called_once()
        assert runtime.ready is True
        assert runtime.initializations == 1

    def test_not_ready_until_first_use(self):
        runtime = CodecRuntime("test", MagicMock())
        assert runtime.ready is False

    def test_failed_initialization_is_retried(self):
        initializer = MagicMock(side_effect=[RuntimeError("no wasm"), None])
        runtime = CodecRuntime("test", initializer)

        with pytest.raises(CodecError, match="failed to initialise"):
            runtime.ensure_ready()
        assert runtime.ready is False

        runtime.ensure_ready()
        assert runtime.ready is True
        assert initializer.call_count == 2


class TestDecoders:
    """Tests for PillowDecoder."""

    @pytest.mark.parametrize(
        "image_format", [ImageFormat.JPEG, ImageFormat.PNG, ImageFormat.WEBP]
    )
    def test_decode_each_format(self, image_format):
        codecs = default_codecs()
        data = create_test_image(40, 20, image_format)

        image = codecs.decoder_for(image_format).decode(data)

        assert (image.width, image.height) == (40, 20)
        assert len(image.pixels) == 40 * 20 * 4

    def test_decode_garbage_raises_decode_error(self):
        decoder = default_codecs().decoder_for(ImageFormat.JPEG)
        with pytest.raises(DecodeError):
            decoder.decode(b"not an image")

    def test_decoder_only_accepts_its_format(self):
        decoder = default_codecs().decoder_for(ImageFormat.JPEG)
        with pytest.raises(DecodeError):
            decoder.decode(create_test_image(10, 10, ImageFormat.PNG))

    def test_decoder_initializes_runtime(self):
        runtime = CodecRuntime("png-test", MagicMock())
        decoder = PillowDecoder(ImageFormat.PNG, runtime)

        decoder.decode(create_test_image(8, 8, ImageFormat.PNG))

        assert runtime.ready is True


class TestResizer:
    """Tests for PillowResizer."""

    def test_resize_to_exact_size(self):
        image = DecodedImage(width=20, height=10, pixels=bytes(20 * 10 * 4))

        resized = PillowResizer().resize(image, 10, 5)

        assert (resized.width, resized.height) == (10, 5)
        assert len(resized.pixels) == 10 * 5 * 4

    @pytest.mark.parametrize("width,height", [(0, 5), (5, 0), (-1, 3)])
    def test_rejects_invalid_size(self, width, height):
        image = DecodedImage(width=2, height=2, pixels=bytes(16))
        with pytest.raises(ResizeError):
            PillowResizer().resize(image, width, height)


class TestEncoder:
    """Tests for PillowWebpEncoder."""

    def test_encode_produces_webp(self):
        image = DecodedImage(width=4, height=3, pixels=bytes(4 * 3 * 4))

        data = PillowWebpEncoder().encode(image, quality=60)

        assert image_format_name(data) == "WEBP"
        assert image_size(data) == (4, 3)

    def test_quality_is_forwarded(self):
        image = DecodedImage(width=1, height=1, pixels=bytes(4))
        pil_image = MagicMock()
        with patch("webp_edge.core.codecs.to_pil", return_value=pil_image):
            PillowWebpEncoder().encode(image, quality=42)

        _, kwargs = pil_image.save.call_args
        assert kwargs == {"format": "WEBP", "quality": 42}

    def test_default_quality_when_none(self):
        image = DecodedImage(width=1, height=1, pixels=bytes(4))
        pil_image = MagicMock()
        with patch("webp_edge.core.codecs.to_pil", return_value=pil_image):
            PillowWebpEncoder().encode(image)

        _, kwargs = pil_image.save.call_args
        assert "quality" not in kwargs


class TestCodecSet:
    """Tests for CodecSet."""

    def test_requires_a_decoder_for_every_format(self):
        codecs = default_codecs()
        with pytest.raises(ConfigurationError, match="webp"):
            CodecSet(
                decoders={
                    ImageFormat.JPEG: codecs.decoder_for(ImageFormat.JPEG),
                    ImageFormat.PNG: codecs.decoder_for(ImageFormat.PNG),
                },
                resizer=codecs.resizer,
                encoder=codecs.encoder,
            )

    def test_default_codecs_share_process_wide_runtimes(self):
        assert default_codecs().runtimes["webp-encoder"] is default_codecs().runtimes["webp-encoder"]


def test_pil_round_trip_keeps_pixels():
    image = DecodedImage(width=2, height=1, pixels=bytes(range(8)))
    assert from_pil(to_pil(image)) == image
