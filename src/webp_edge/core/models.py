"""Shared data models for the WebP edge service."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .cache_keys import derive_key

DERIVATIVE_CONTENT_TYPE = "image/webp"


class ImageFormat(str, Enum):
    """Container formats the service knows how to decode."""

    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"


class QualityTier(str, Enum):
    """External quality selector values and the encode quality they map to."""

    ORIGINAL = "0"
    MEDIUM = "1"
    THUMBNAIL = "2"

    @property
    def encode_quality(self) -> int:
        return _TIER_QUALITY[self]


_TIER_QUALITY = {
    QualityTier.ORIGINAL: 100,
    QualityTier.MEDIUM: 75,
    QualityTier.THUMBNAIL: 50,
}


class ImageRequest(BaseModel):
    """A derivative request, already normalised from the inbound URL."""

    model_config = ConfigDict(frozen=True)

    owner_id: str = Field(min_length=1)
    picture_id: str = Field(min_length=1)
    quality: int = Field(default=75, ge=1, le=100)
    target_width: Optional[int] = Field(default=None, gt=0)

    @property
    def cache_key(self) -> str:
        return derive_key(
            self.owner_id, self.picture_id, self.quality, self.target_width
        )


class DecodedImage(BaseModel):
    """Raw RGBA pixels produced by a decoder. Never cached."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    pixels: bytes = Field(repr=False)

    @model_validator(mode="after")
    def _check_buffer_size(self) -> "DecodedImage":
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise ValueError(
                f"RGBA buffer holds {len(self.pixels)} bytes, "
                f"expected {expected} for {self.width}x{self.height}"
            )
        return self


class EncodedDerivative(BaseModel):
    """Encoded WebP bytes plus the parameters they were produced with."""

    data: bytes = Field(repr=False)
    quality: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    transcoded: bool = True


class RenderResult(BaseModel):
    """What the service hands back to the HTTP adapter."""

    data: bytes = Field(repr=False)
    cache_key: str
    cache_hit: bool = False
    content_type: str = DERIVATIVE_CONTENT_TYPE
