"""Cache key derivation for encoded derivatives."""

import re
from typing import Optional

KEY_NAMESPACE = "image"
KEY_SEPARATOR = ":"

_LEADING_INT_RE = re.compile(r"^\s*([+-]?[0-9]+)")


def _escape_component(value: str) -> str:
    # '%' first so escapes introduced for ':' are not escaped twice
    return value.replace("%", "%25").replace(KEY_SEPARATOR, "%3A")


def parse_target_width(raw: Optional[str]) -> Optional[int]:
    """
    Normalise a raw ``th`` query value into a target width.

    Absent, empty, non-numeric and non-positive values all collapse to
    ``None``, which callers treat exactly like a request without ``th``.
    Only the leading integer is read, so ``"120px"`` yields 120.

    Args:
        raw: The query parameter as received, or None

    Returns:
        A positive width in pixels, or None
    """
    if not raw:
        return None

    match = _LEADING_INT_RE.match(raw)
    if match is None:
        return None

    width = int(match.group(1))
    return width if width > 0 else None


def derive_key(
    owner_id: str,
    picture_id: str,
    quality: int,
    target_width: Optional[int] = None,
) -> str:
    """
    Build the canonical cache key for one derivative.

    The key always carries the resolved quality. The width is appended only
    when present, so an original-size derivative and a resized one never
    share a key.

    Args:
        owner_id: Owner segment of the request path
        picture_id: Picture segment of the request path, extension included
        quality: Resolved encode quality (not the raw selector)
        target_width: Normalised target width, or None

    Returns:
        Key of the form ``image:{owner}:{picture}:{quality}[:{width}]``
    """
    parts = [
        KEY_NAMESPACE,
        _escape_component(owner_id),
        _escape_component(picture_id),
        str(quality),
    ]
    if target_width is not None:
        parts.append(str(target_width))
    return KEY_SEPARATOR.join(parts)
