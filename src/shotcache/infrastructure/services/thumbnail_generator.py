from __future__ import annotations

import logging
import math
import os
import tempfile
from pathlib import Path
from typing import Protocol

from PIL import Image, ImageOps, UnidentifiedImageError

from shotcache.domain.models import ImageSize, RenderOptions
from shotcache.errors import ImageDecodeError, ThumbnailWriteError

LOGGER = logging.getLogger(__name__)


class ThumbnailGenerator(Protocol):
    """Renders *original* into *destination* and reports the written size."""

    def generate(self, original: Path, destination: Path, options: RenderOptions) -> ImageSize: ...


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_target_size(source: ImageSize, box: ImageSize) -> ImageSize:
    """Fit *source* to *box* keeping its aspect ratio.

    Wide images are pinned to the box width, everything else (portrait and
    square) to the box height; the other side follows from the ratio.
    """

    ratio = source.aspect_ratio
    if ratio > 1:
        return ImageSize(box.width, max(1, _round_half_up(box.width / ratio)))
    return ImageSize(max(1, _round_half_up(box.height * ratio)), box.height)


class PillowThumbnailGenerator:
    """
    Generates JPEG thumbnails with Pillow.
    """

    def generate(self, original: Path, destination: Path, options: RenderOptions) -> ImageSize:
        try:
            with Image.open(original) as img:
                img = ImageOps.exif_transpose(img)
                if img.mode != "RGB":
                    img = img.convert("RGB")
                source = ImageSize(*img.size)
                if source.width == 0 or source.height == 0:
                    raise ImageDecodeError(f"{original} has no pixels")
                target = compute_target_size(source, options.box)
                thumb = img.resize((target.width, target.height), Image.Resampling.LANCZOS)
        except (UnidentifiedImageError, Image.DecompressionBombError, ValueError) as exc:
            raise ImageDecodeError(f"Cannot decode {original}: {exc}") from exc
        except OSError as exc:
            # Pillow reports truncated or unreadable files as plain OSError.
            raise ImageDecodeError(f"Cannot read {original}: {exc}") from exc

        self._write_atomic(thumb, destination, options.quality)
        LOGGER.debug("Rendered %s -> %s (%s)", original, destination, target)
        return target

    @staticmethod
    def _write_atomic(image: Image.Image, destination: Path, quality: int) -> None:
        # Readers either see the previous file or the complete new one.
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{destination.stem}-", suffix=".part", dir=destination.parent
            )
        except OSError as exc:
            raise ThumbnailWriteError(f"Cannot write {destination}: {exc}") from exc
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                image.save(handle, format="JPEG", quality=quality)
            os.replace(tmp_path, destination)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise ThumbnailWriteError(f"Cannot write {destination}: {exc}") from exc
