"""Tests for the quality policy."""

import pytest

from webp_edge.core.models import QualityTier
from webp_edge.core.quality import resolve_quality, resolve_tier


@pytest.mark.parametrize("selector,expected", [("0", 100), ("1", 75), ("2", 50)])
def test_known_selectors(selector, expected):
    assert resolve_quality(selector) == expected


@pytest.mark.parametrize("selector", [None, "", "3", "-1", "01", " 0", "high", "1.0"])
def test_unknown_selectors_fall_back_to_medium(selector):
    assert resolve_quality(selector) == 75


def test_resolve_tier_default():
    assert resolve_tier(None) is QualityTier.MEDIUM
    assert resolve_tier("2") is QualityTier.THUMBNAIL
