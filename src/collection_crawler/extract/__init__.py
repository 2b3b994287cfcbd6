"""Extraction contracts."""

from .base import PageExtractor

__all__ = ["PageExtractor"]
