"""Map an original image and its render options to a cache file name."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

import xxhash

from shotcache.config import THUMBNAIL_EXTENSION
from shotcache.domain.models import RenderOptions

PathLike = Union[str, "os.PathLike[str]"]


def derive_key(original_path: PathLike, options: RenderOptions) -> str:
    """Return the cache key for *original_path* rendered with *options*.

    The key is the 128-bit XXH3 digest of the path and every option, so it
    is stable across processes and consists only of hex digits.  The path is
    taken as spelled; callers wanting ``a/../b`` and ``b`` to share a cache
    entry must normalise before asking.
    """

    # NUL cannot appear in a filesystem path, so fields cannot run together.
    material = "\0".join(
        (
            os.fspath(original_path),
            str(options.width),
            str(options.height),
            str(options.quality),
        )
    )
    return xxhash.xxh3_128_hexdigest(material.encode("utf-8", "surrogateescape"))


def derive_path(cache_dir: Path, key: str) -> Path:
    return Path(cache_dir) / f"{key}{THUMBNAIL_EXTENSION}"


def is_thumbnail_file(name: str) -> bool:
    return name.endswith(THUMBNAIL_EXTENSION)
