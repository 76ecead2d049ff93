"""Value objects shared by the thumbnail cache layers."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from ..config import DEFAULT_THUMB_HEIGHT, DEFAULT_THUMB_QUALITY, DEFAULT_THUMB_WIDTH
from ..errors import InvalidRenderOptionsError


@dataclass(frozen=True)
class RenderOptions:
    """Bounding box and JPEG quality for a single thumbnail rendering.

    Instances are validated on construction, so anything holding a
    ``RenderOptions`` can rely on positive dimensions and a quality in
    ``1..100``.  Two instances with equal fields always map to the same
    cache key.
    """

    width: int = DEFAULT_THUMB_WIDTH
    height: int = DEFAULT_THUMB_HEIGHT
    quality: int = DEFAULT_THUMB_QUALITY

    def __post_init__(self) -> None:
        for name in ("width", "height", "quality"):
            value = getattr(self, name)
            # ``bool`` is an ``int`` subclass; ``True`` is never a valid size.
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidRenderOptionsError(
                    f"{name} must be an integer, got {value!r}"
                )
        if self.width <= 0 or self.height <= 0:
            raise InvalidRenderOptionsError(
                f"thumbnail size must be positive, got {self.width}x{self.height}"
            )
        if not 1 <= self.quality <= 100:
            raise InvalidRenderOptionsError(
                f"quality must be between 1 and 100, got {self.quality}"
            )

    def merged(self, overrides: OptionsLike = None) -> RenderOptions:
        """Return a copy with *overrides* applied on top of these values."""

        if overrides is None:
            return self
        if isinstance(overrides, RenderOptions):
            return overrides
        known = {item.name for item in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise InvalidRenderOptionsError(
                f"unknown render option(s): {', '.join(unknown)}"
            )
        # ``None`` values mean "keep the default", matching partial payloads.
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    @property
    def box(self) -> ImageSize:
        return ImageSize(self.width, self.height)


OptionsLike = Union[RenderOptions, Mapping[str, Any], None]


@dataclass(frozen=True)
class ImageSize:
    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class ThumbnailRecord:
    """Metadata about a thumbnail generated by the running process."""

    original_path: Path
    thumbnail_path: Path
    original_modified_at: datetime
    generated_at: datetime
    size: ImageSize
    options: Optional[RenderOptions] = None


@dataclass(frozen=True)
class CacheStats:
    total_thumbnails: int
    cache_size_bytes: int
    cache_directory: Path
