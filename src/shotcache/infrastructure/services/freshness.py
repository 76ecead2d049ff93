"""Staleness check between an original image and its cached thumbnail."""

from __future__ import annotations

import logging
import os

from shotcache.infrastructure.services.cache_keys import PathLike

LOGGER = logging.getLogger(__name__)


def is_valid(original_path: PathLike, thumbnail_path: PathLike) -> bool:
    """Return ``True`` when *thumbnail_path* is at least as new as the original.

    Equal modification times count as fresh.  Any stat failure (missing
    file, permissions) makes the thumbnail invalid; this function never
    raises ``OSError``.
    """

    try:
        original = os.stat(original_path)
        thumbnail = os.stat(thumbnail_path)
    except OSError as exc:
        LOGGER.debug("Thumbnail %s not usable: %s", thumbnail_path, exc)
        return False
    return thumbnail.st_mtime_ns >= original.st_mtime_ns
