"""Mapping from the external quality selector to encode quality."""

from typing import Optional

from .models import QualityTier

DEFAULT_TIER = QualityTier.MEDIUM


def resolve_tier(selector: Optional[str]) -> QualityTier:
    """Resolve a raw selector to a tier, falling back to MEDIUM."""
    try:
        return QualityTier(selector)
    except ValueError:
        return DEFAULT_TIER


def resolve_quality(selector: Optional[str]) -> int:
    """Resolve a raw ``quality`` query value to an encode quality in [1, 100].

    Never raises: anything that is not "0", "1" or "2" resolves to 75.
    """
    return resolve_tier(selector).encode_quality
