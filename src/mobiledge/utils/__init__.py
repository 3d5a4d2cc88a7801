"""Utility helpers for mobiledge."""

from mobiledge.utils.text import format_bytes, split_images, truncate_text

__all__ = ["truncate_text", "split_images", "format_bytes"]
