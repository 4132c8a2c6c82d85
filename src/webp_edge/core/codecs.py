"""Pillow-backed codecs used by the transcode pipeline.

Each codec owns a process-wide ``CodecRuntime`` that is initialised on first
use. Initialisation is an idempotent check-and-set: concurrent first requests
may both run the initializer, which is harmless.
"""

import io
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional

from PIL import Image, features

from .exceptions import (
    CodecError,
    ConfigurationError,
    DecodeError,
    EncodeError,
    ResizeError,
    with_error_handling,
)
from .logging_config import get_logger
from .models import DecodedImage, ImageFormat
from .protocols import DecoderProtocol, EncoderProtocol, ResizerProtocol

PIXEL_MODE = "RGBA"
RESAMPLE_FILTER = Image.Resampling.LANCZOS

_PIL_FORMATS: Dict[ImageFormat, str] = {
    ImageFormat.JPEG: "JPEG",
    ImageFormat.PNG: "PNG",
    ImageFormat.WEBP: "WEBP",
}


class CodecRuntime:
    """Lazily initialised execution environment for one codec."""

    def __init__(self, name: str, initializer: Callable[[], None]):
        self.name = name
        self._initializer = initializer
        self._ready = False
        self.initializations = 0

    @property
    def ready(self) -> bool:
        return self._ready

    def ensure_ready(self) -> None:
        if self._ready:
            return
        try:
            self._initializer()
        except CodecError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise CodecError(f"Codec runtime {self.name} failed to initialise: {exc}") from exc
        self.initializations += 1
        self._ready = True
        get_logger("webp-edge.codec").debug(f"Codec runtime {self.name} ready")


def _require_pil_codec(codec: str) -> Callable[[], None]:
    def initializer() -> None:
        Image.init()
        if not features.check(codec):
            raise CodecError(f"Pillow was built without {codec} support")

    return initializer


def _require_webp() -> None:
    Image.init()
    if not features.check("webp"):
        raise CodecError("Pillow was built without WebP support")


JPEG_DECODER_RUNTIME = CodecRuntime("jpeg-decoder", _require_pil_codec("jpg"))
PNG_DECODER_RUNTIME = CodecRuntime("png-decoder", _require_pil_codec("zlib"))
WEBP_DECODER_RUNTIME = CodecRuntime("webp-decoder", _require_webp)
WEBP_ENCODER_RUNTIME = CodecRuntime("webp-encoder", _require_webp)
RESIZE_RUNTIME = CodecRuntime("resize", Image.init)


def to_pil(image: DecodedImage) -> Image.Image:
    """Wrap decoded RGBA pixels in a Pillow image without touching the codec."""
    return Image.frombytes(PIXEL_MODE, (image.width, image.height), image.pixels)


def from_pil(image: Image.Image) -> DecodedImage:
    """Flatten a Pillow image into a DecodedImage."""
    rgba = image if image.mode == PIXEL_MODE else image.convert(PIXEL_MODE)
    return DecodedImage(width=rgba.width, height=rgba.height, pixels=rgba.tobytes())


class PillowDecoder:
    """Decoder for one container format."""

    def __init__(self, image_format: ImageFormat, runtime: CodecRuntime):
        self.image_format = image_format
        self._pil_format = _PIL_FORMATS[image_format]
        self._runtime = runtime

    @with_error_handling(DecodeError)
    def decode(self, data: bytes) -> DecodedImage:
        self._runtime.ensure_ready()
        with Image.open(io.BytesIO(data), formats=[self._pil_format]) as image:
            image.load()
            return from_pil(image)


class PillowResizer:
    """Lanczos resampler."""

    def __init__(self, runtime: CodecRuntime = RESIZE_RUNTIME):
        self._runtime = runtime

    @with_error_handling(ResizeError)
    def resize(self, image: DecodedImage, width: int, height: int) -> DecodedImage:
        if width <= 0 or height <= 0:
            raise ResizeError(f"Invalid target size {width}x{height}")
        self._runtime.ensure_ready()
        resized = to_pil(image).resize((width, height), RESAMPLE_FILTER)
        return from_pil(resized)


class PillowWebpEncoder:
    """WebP encoder. ``quality=None`` defers to the encoder default."""

    def __init__(self, runtime: CodecRuntime = WEBP_ENCODER_RUNTIME):
        self._runtime = runtime

    @with_error_handling(EncodeError)
    def encode(self, image: DecodedImage, quality: Optional[int] = None) -> bytes:
        self._runtime.ensure_ready()
        options = {} if quality is None else {"quality": quality}
        output = io.BytesIO()
        to_pil(image).save(output, format="WEBP", **options)
        return output.getvalue()


@dataclass
class CodecSet:
    """The decoders, resizer and encoder the pipeline dispatches to."""

    decoders: Mapping[ImageFormat, DecoderProtocol]
    resizer: ResizerProtocol
    encoder: EncoderProtocol
    runtimes: Dict[str, CodecRuntime] = field(default_factory=dict)

    def __post_init__(self) -> None:
        missing = [fmt.value for fmt in ImageFormat if fmt not in self.decoders]
        if missing:
            raise ConfigurationError(f"No decoder registered for: {', '.join(missing)}")

    def decoder_for(self, image_format: ImageFormat) -> DecoderProtocol:
        return self.decoders[image_format]


def default_codecs() -> CodecSet:
    """Build the Pillow codec set backed by the process-wide runtimes."""
    return CodecSet(
        decoders={
            ImageFormat.JPEG: PillowDecoder(ImageFormat.JPEG, JPEG_DECODER_RUNTIME),
            ImageFormat.PNG: PillowDecoder(ImageFormat.PNG, PNG_DECODER_RUNTIME),
            ImageFormat.WEBP: PillowDecoder(ImageFormat.WEBP, WEBP_DECODER_RUNTIME),
        },
        resizer=PillowResizer(RESIZE_RUNTIME),
        encoder=PillowWebpEncoder(WEBP_ENCODER_RUNTIME),
        runtimes={
            runtime.name: runtime
            for runtime in (
                JPEG_DECODER_RUNTIME,
                PNG_DECODER_RUNTIME,
                WEBP_DECODER_RUNTIME,
                WEBP_ENCODER_RUNTIME,
                RESIZE_RUNTIME,
            )
        },
    )
