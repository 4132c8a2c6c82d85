"""On-demand WebP transcoding and resizing edge service."""

__version__ = "0.1.0"
