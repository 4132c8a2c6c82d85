"""HTTP adapter for the WebP edge service."""

from .app import create_app, split_image_path

__all__ = ["create_app", "split_image_path"]
