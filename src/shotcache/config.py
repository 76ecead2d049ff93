"""Default configuration values for shotcache."""

from __future__ import annotations

from typing import Final

APP_NAME: Final[str] = "shotcache"

# Thumbnails are stored flat as ``<key><THUMBNAIL_EXTENSION>`` inside a
# directory of this name under the application data directory.  Metadata is
# never written next to them; it is re-derived from the file name and stat.
CACHE_DIR_NAME: Final[str] = "thumbnails"
THUMBNAIL_EXTENSION: Final[str] = ".jpg"
THUMBNAIL_MIME_TYPE: Final[str] = "image/jpeg"

DEFAULT_THUMB_WIDTH: Final[int] = 200
DEFAULT_THUMB_HEIGHT: Final[int] = 200
DEFAULT_THUMB_QUALITY: Final[int] = 80

# Pregeneration works through the request list in fixed-size batches.  Each
# batch is generated concurrently and followed by a short pause.
PREGENERATE_BATCH_SIZE: Final[int] = 5
PREGENERATE_BATCH_PAUSE_SEC: Final[float] = 0.01

# Upper bound for how long a request waits on another request's in-flight
# generation of the same thumbnail before giving up with "not found".
IN_FLIGHT_WAIT_TIMEOUT_SEC: Final[float] = 30.0
