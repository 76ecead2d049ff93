"""Disk-backed, staleness-aware thumbnail cache."""

from .domain.models import CacheStats, ImageSize, RenderOptions, ThumbnailRecord
from .infrastructure.services.thumbnail_cache import ThumbnailCache

__version__ = "0.1.0"

__all__ = [
    "CacheStats",
    "ImageSize",
    "RenderOptions",
    "ThumbnailCache",
    "ThumbnailRecord",
    "__version__",
]
